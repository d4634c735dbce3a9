"""
Agora TOML Configuration Loader

Loads every section of agora.toml with environment variable overrides.

Environment variable mapping:
    [governance] admin                 → AGORA_ADMIN
    [governance] min_proposal_duration → AGORA_MIN_PROPOSAL_DURATION
    [governance] max_proposal_duration → AGORA_MAX_PROPOSAL_DURATION
    [governance] default_quorum        → AGORA_DEFAULT_QUORUM
    [governance] execution_delay       → AGORA_EXECUTION_DELAY
    [governance] paused                → AGORA_PAUSED
    [logging] level                    → AGORA_LOG_LEVEL
    [logging] file                     → AGORA_LOG_FILE
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

try:
    import tomllib as tomli  # Python 3.11+
except ImportError:
    import tomli  # type: ignore[no-redef]

from ..constants import (
    GOVERNANCE_DEFAULT_QUORUM,
    GOVERNANCE_EXECUTION_DELAY,
    GOVERNANCE_MAX_PROPOSAL_DURATION,
    GOVERNANCE_MIN_PROPOSAL_DURATION,
    LOG_LEVEL,
    is_null_address,
    parse_bool,
)
from ..exceptions import ConfigurationError

logger = logging.getLogger(__name__)

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _env_int(name: str) -> Optional[int]:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return None
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from None


def _bool_field(name: str, value) -> bool:
    parsed = parse_bool(value)
    if not isinstance(parsed, bool):
        raise ConfigurationError(f"{name} must be true or false, got {value!r}")
    return parsed


_INT_FIELDS = (
    "min_proposal_duration",
    "max_proposal_duration",
    "default_quorum",
    "execution_delay",
)


# ---------------------------------------------------------------------------
# Sections
# ---------------------------------------------------------------------------

@dataclass
class GovernanceSectionConfig:
    """[governance] section. Durations and delays are in seconds."""
    admin: str = ""
    min_proposal_duration: int = GOVERNANCE_MIN_PROPOSAL_DURATION
    max_proposal_duration: int = GOVERNANCE_MAX_PROPOSAL_DURATION
    default_quorum: int = GOVERNANCE_DEFAULT_QUORUM
    execution_delay: int = GOVERNANCE_EXECUTION_DELAY
    paused: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GovernanceSectionConfig":
        return cls(
            admin=data.get("admin", ""),
            min_proposal_duration=data.get("min_proposal_duration", GOVERNANCE_MIN_PROPOSAL_DURATION),
            max_proposal_duration=data.get("max_proposal_duration", GOVERNANCE_MAX_PROPOSAL_DURATION),
            default_quorum=data.get("default_quorum", GOVERNANCE_DEFAULT_QUORUM),
            execution_delay=data.get("execution_delay", GOVERNANCE_EXECUTION_DELAY),
            paused=_bool_field("governance.paused", data.get("paused", False)),
        )

    def apply_env(self) -> None:
        """Override from environment variables."""
        if v := os.environ.get("AGORA_ADMIN"):
            self.admin = v
        if (v := _env_int("AGORA_MIN_PROPOSAL_DURATION")) is not None:
            self.min_proposal_duration = v
        if (v := _env_int("AGORA_MAX_PROPOSAL_DURATION")) is not None:
            self.max_proposal_duration = v
        if (v := _env_int("AGORA_DEFAULT_QUORUM")) is not None:
            self.default_quorum = v
        if (v := _env_int("AGORA_EXECUTION_DELAY")) is not None:
            self.execution_delay = v
        if v := os.environ.get("AGORA_PAUSED"):
            parsed = parse_bool(v)
            if not isinstance(parsed, bool):
                raise ConfigurationError(f"AGORA_PAUSED must be True or False, got {v!r}")
            self.paused = parsed

    def validate(self) -> None:
        if not isinstance(self.admin, str) or is_null_address(self.admin):
            raise ConfigurationError("governance.admin must be set")
        for name in _INT_FIELDS:
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ConfigurationError(
                    f"governance.{name} must be an integer, got {value!r}"
                )
        _bool_field("governance.paused", self.paused)
        if self.min_proposal_duration <= 0:
            raise ConfigurationError("governance.min_proposal_duration must be > 0")
        if self.min_proposal_duration >= self.max_proposal_duration:
            raise ConfigurationError(
                "governance.min_proposal_duration must be below max_proposal_duration"
            )
        if self.default_quorum <= 0:
            raise ConfigurationError("governance.default_quorum must be > 0")
        if self.execution_delay < 0:
            raise ConfigurationError("governance.execution_delay must be >= 0")


@dataclass
class LoggingSectionConfig:
    """[logging] section."""
    level: str = str(LOG_LEVEL)
    file: str = ""
    console: bool = True

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LoggingSectionConfig":
        return cls(
            level=str(data.get("level", str(LOG_LEVEL))).upper(),
            file=data.get("file", ""),
            console=data.get("console", True),
        )

    def apply_env(self) -> None:
        if v := os.environ.get("AGORA_LOG_LEVEL"):
            self.level = v.upper()
        if v := os.environ.get("AGORA_LOG_FILE"):
            self.file = v

    def validate(self) -> None:
        if self.level not in _LOG_LEVELS:
            raise ConfigurationError(f"Invalid logging.level: {self.level}")

    def apply(self) -> None:
        """Reconfigure the agora logging system with these settings."""
        from ..logger import configure_logging

        configure_logging(
            log_level=self.level,
            log_file=Path(self.file) if self.file else None,
            console_output=self.console,
            file_output=bool(self.file),
        )


# -----------------------------------------------------------------------
# Top-level config
# -----------------------------------------------------------------------

@dataclass
class AgoraConfig:
    """
    Unified configuration.

    Loads every section of agora.toml and applies environment variable
    overrides. Environment always wins over the file.
    """
    governance: GovernanceSectionConfig = field(default_factory=GovernanceSectionConfig)
    logging: LoggingSectionConfig = field(default_factory=LoggingSectionConfig)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AgoraConfig":
        return cls(
            governance=GovernanceSectionConfig.from_dict(data.get("governance", {})),
            logging=LoggingSectionConfig.from_dict(data.get("logging", {})),
        )

    @classmethod
    def from_file(cls, config_path: str) -> "AgoraConfig":
        """
        Load configuration from a TOML file.

        A missing file yields defaults (with env overrides) and a warning.
        """
        path = Path(config_path)
        if not path.exists():
            logger.warning("Config file not found: %s, using defaults", config_path)
            cfg = cls()
            cfg.apply_env()
            return cfg

        try:
            with open(path, "rb") as f:
                raw = tomli.load(f)
        except tomli.TOMLDecodeError as e:
            raise ConfigurationError(f"Invalid TOML in {config_path}: {e}") from e

        cfg = cls.from_dict(raw)
        cfg.apply_env()
        return cfg

    def apply_env(self) -> None:
        self.governance.apply_env()
        self.logging.apply_env()

    def validate(self) -> bool:
        """
        Validate all sections.

        Raises:
            ConfigurationError: on invalid config
        """
        self.governance.validate()
        self.logging.validate()
        return True

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dict (for diagnostics)."""
        return {
            "governance": {
                "admin": self.governance.admin,
                "min_proposal_duration": self.governance.min_proposal_duration,
                "max_proposal_duration": self.governance.max_proposal_duration,
                "default_quorum": self.governance.default_quorum,
                "execution_delay": self.governance.execution_delay,
                "paused": self.governance.paused,
            },
            "logging": {
                "level": self.logging.level,
                "file": self.logging.file,
                "console": self.logging.console,
            },
        }


def load_config(path: Optional[str] = None) -> AgoraConfig:
    """
    Load and validate configuration.

    Resolution order:
        1. Explicit *path* argument
        2. AGORA_CONFIG env var
        3. ./agora.toml in current directory
        4. Defaults (with env overrides)
    """
    if path is None:
        path = os.environ.get("AGORA_CONFIG", "agora.toml")

    cfg = AgoraConfig.from_file(path)
    cfg.validate()
    return cfg
