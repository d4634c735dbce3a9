"""
Admin policy and global governance parameters.

`GlobalParameters` is the single owned configuration/state record of an
engine: duration bounds, default quorum, execution delay, the running
totals, and the pause flag. `AdminPolicy` wraps it with the one
administrator identity fixed at construction and the guarded setters.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from ..constants import (
    GOVERNANCE_DEFAULT_QUORUM,
    GOVERNANCE_EXECUTION_DELAY,
    GOVERNANCE_MAX_PROPOSAL_DURATION,
    GOVERNANCE_MIN_PROPOSAL_DURATION,
    is_null_address,
)
from ..logger import get_logger
from .errors import (
    ContractPausedError,
    InvalidArgumentError,
    InvalidStateError,
    UnauthorizedError,
    require_int,
)

logger = get_logger(__name__)


@dataclass
class GlobalParameters:
    """
    Engine-wide tunables and counters.

    Fields:
        min_proposal_duration: Shortest allowed voting window (seconds)
        max_proposal_duration: Longest allowed voting window (seconds)
        default_quorum:        Admin-settable default; proposal creation
                               always takes an explicit quorum instead
        execution_delay:       Time-lock after voting ends (seconds)
        total_voting_power:    Running sum of every voter's assigned power
        proposal_count:        Last allocated proposal id
        paused:                Blocks all non-admin mutations when True
    """
    min_proposal_duration: int = GOVERNANCE_MIN_PROPOSAL_DURATION
    max_proposal_duration: int = GOVERNANCE_MAX_PROPOSAL_DURATION
    default_quorum: int = GOVERNANCE_DEFAULT_QUORUM
    execution_delay: int = GOVERNANCE_EXECUTION_DELAY
    total_voting_power: int = 0
    proposal_count: int = 0
    paused: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "minProposalDuration": self.min_proposal_duration,
            "maxProposalDuration": self.max_proposal_duration,
            "defaultQuorum": self.default_quorum,
            "executionDelay": self.execution_delay,
            "totalVotingPower": self.total_voting_power,
            "proposalCount": self.proposal_count,
            "paused": self.paused,
        }


class AdminPolicy:
    """Single-administrator guard over `GlobalParameters`."""

    def __init__(self, admin: str, params: Optional[GlobalParameters] = None):
        if is_null_address(admin):
            raise InvalidArgumentError("Admin address is required")
        self.admin = admin
        self.params = params or GlobalParameters()
        p = self.params
        for name in ("min_proposal_duration", "max_proposal_duration",
                     "default_quorum", "execution_delay"):
            require_int(name, getattr(p, name))
        if p.min_proposal_duration <= 0:
            raise InvalidArgumentError("Minimum proposal duration must be positive")
        if p.min_proposal_duration >= p.max_proposal_duration:
            raise InvalidArgumentError("Minimum proposal duration must be below maximum")
        if p.default_quorum <= 0:
            raise InvalidArgumentError("Quorum must be positive")
        if p.execution_delay < 0:
            raise InvalidArgumentError("Execution delay cannot be negative")

    # ── Guards ────────────────────────────────────────────────────────

    def is_admin(self, caller: str) -> bool:
        return caller == self.admin

    def require_admin(self, caller: str):
        if not self.is_admin(caller):
            raise UnauthorizedError(f"{caller} is not the governance admin")

    def require_not_paused(self):
        if self.params.paused:
            raise ContractPausedError("Governance is paused")

    @property
    def paused(self) -> bool:
        return self.params.paused

    # ── Setters ───────────────────────────────────────────────────────

    def set_default_quorum(self, value: int) -> int:
        """Returns the previous value."""
        require_int("Quorum", value)
        if value <= 0:
            raise InvalidArgumentError("Quorum must be positive")
        old = self.params.default_quorum
        self.params.default_quorum = value
        logger.info(f"Default quorum changed: {old} → {value}")
        return old

    def set_execution_delay(self, seconds: int) -> int:
        """Returns the previous value. Zero disables the time-lock."""
        require_int("Execution delay", seconds)
        if seconds < 0:
            raise InvalidArgumentError("Execution delay cannot be negative")
        old = self.params.execution_delay
        self.params.execution_delay = seconds
        logger.info(f"Execution delay changed: {old}s → {seconds}s")
        return old

    def set_duration_bounds(self, min_duration: int, max_duration: int):
        require_int("Minimum duration", min_duration)
        require_int("Maximum duration", max_duration)
        if min_duration <= 0:
            raise InvalidArgumentError("Minimum proposal duration must be positive")
        if min_duration >= max_duration:
            raise InvalidArgumentError(
                f"Minimum duration {min_duration}s must be below maximum {max_duration}s"
            )
        self.params.min_proposal_duration = min_duration
        self.params.max_proposal_duration = max_duration
        logger.info(f"Proposal duration limits changed: [{min_duration}s, {max_duration}s]")

    def pause(self):
        if self.params.paused:
            raise InvalidStateError("Governance is already paused")
        self.params.paused = True
        logger.warning("Governance PAUSED")

    def unpause(self):
        if not self.params.paused:
            raise InvalidStateError("Governance is not paused")
        self.params.paused = False
        logger.warning("Governance unpaused")

    def to_dict(self) -> Dict[str, Any]:
        return {"admin": self.admin, "parameters": self.params.to_dict()}

    def __repr__(self) -> str:
        return f"<AdminPolicy admin={self.admin} paused={self.params.paused}>"
