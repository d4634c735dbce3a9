"""
Agora Governance Constants

This module consolidates the protocol defaults and environment configuration
used throughout the codebase. Constants are organized by category for easy
reference and maintenance.
"""
import ast
from dotenv import dotenv_values

# =============================================================================
# ENVIRONMENT CONFIGURATION
# =============================================================================
# Load environment variables once at module import
_config = dotenv_values(".env")

LOGGER_DEFAULTS = {
    'LOG_LEVEL':                       'INFO',
    'LOG_FORMAT':                      '%(asctime)s - %(levelname)s - %(name)s - %(message)s',
    'LOG_DATE_FORMAT':                 '%Y-%m-%dT%H:%M:%S',
    'LOG_CONSOLE_HIGHLIGHTING':        'True',
    'LOG_FILE_OUTPUT':                 'False',
}

LOG_MAX_FILE_SIZE = 10 * 1024 * 1024 # 10MB
LOG_BACKUP_COUNT = 5


# ==================================================================================
# TIME UNITS
# ==================================================================================
SECONDS_PER_DAY = 86400


# ==================================================================================
# GOVERNANCE PARAMETERS
# ==================================================================================
# Voting window bounds applied at proposal creation (adjustable by the admin)
GOVERNANCE_MIN_PROPOSAL_DURATION = 1 * SECONDS_PER_DAY
GOVERNANCE_MAX_PROPOSAL_DURATION = 30 * SECONDS_PER_DAY

# Settable by the admin but never read by proposal creation, which always
# takes an explicit quorum.
GOVERNANCE_DEFAULT_QUORUM = 1000

# Time-lock between the end of voting and the earliest execution
GOVERNANCE_EXECUTION_DELAY = 1 * SECONDS_PER_DAY


# ==================================================================================
# IDENTITIES
# ==================================================================================
# The empty identity. Never a valid voter, delegate or admin.
ZERO_ADDRESS = '0x' + '00' * 20


# ==================================================================================
# CONFIGURATION WRAPPERS
# ==================================================================================
class ConfigString(str):
    """
    String subclass that stores a default value.
    """
    def __new__(cls, value, default):
        obj = str.__new__(cls, value)
        obj._default = default
        return obj

    def default(self):
        return self._default

class ConfigBool(int):
    """
    Int subclass acting as a boolean that stores a default value.
    """
    def __new__(cls, value, default):
        obj = int.__new__(cls, bool(value))
        obj._default = default
        return obj

    def default(self):
        return self._default

    def __repr__(self):
        return str(bool(self))

    def __str__(self):
        return str(bool(self))

    def __eq__(self, other):
        return bool(self) == other

    __hash__ = int.__hash__


# ==================================================================================
# DYNAMIC CONFIGURATION LOADING
# ==================================================================================
DEFAULTS = dict(LOGGER_DEFAULTS)
namespace = globals()

def parse_bool(v):
    """
    Convert "True"/"False" (any casing, with surrounding whitespace) into bool.
    Avoids exceptions by only calling ast.literal_eval for known literals.
    """
    if not isinstance(v, str):
        return v
    s = v.strip()
    if not s:
        return v
    if s.casefold() in {"true", "false"}:
        # ast.literal_eval expects "True"/"False"
        return ast.literal_eval(s.title())
    return v

for key, default_raw in DEFAULTS.items():
    # dotenv_values returns strings or None. None is treated as missing.
    raw = _config.get(key)
    value_raw = default_raw if raw is None else raw

    # Parses only boolean-literals. Leaves other values untouched.
    value = parse_bool(value_raw)
    default_val = parse_bool(default_raw)

    if isinstance(value, bool):
        namespace[key] = ConfigBool(value, default_val)
    else:
        namespace[key] = ConfigString(value_raw, default_val)


def is_null_address(address) -> bool:
    """True for the empty identity (None, "" or the all-zero address)."""
    if not address:
        return True
    return str(address).lower() == ZERO_ADDRESS
