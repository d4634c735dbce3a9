"""
Governance error taxonomy.

Every rejected operation raises exactly one of these, before any state is
touched. Subclasses narrow the kind so callers can match either the broad
category or the specific cause.
"""

from ..exceptions import AgoraException


# ══════════════════════════════════════════════════════════════════════
#  BASE
# ══════════════════════════════════════════════════════════════════════

class GovernanceError(AgoraException):
    """Base governance exception."""


# ══════════════════════════════════════════════════════════════════════
#  CATEGORIES
# ══════════════════════════════════════════════════════════════════════

class UnauthorizedError(GovernanceError):
    """Caller lacks the required role (voter, creator or admin)."""


class NotFoundError(GovernanceError):
    """Referenced proposal or voter does not exist."""


class InvalidArgumentError(GovernanceError):
    """An argument failed validation."""


class InvalidStateError(GovernanceError):
    """The target is not in a state that permits the operation."""


class QuorumNotMetError(GovernanceError):
    """Total cast power is below the proposal's quorum."""


class TimingViolationError(GovernanceError):
    """Execution attempted before the time-lock elapsed."""


class ContractPausedError(GovernanceError):
    """Mutating operation attempted while the engine is paused."""


# ══════════════════════════════════════════════════════════════════════
#  SPECIFIC CAUSES
# ══════════════════════════════════════════════════════════════════════

class InsufficientVotingPowerError(UnauthorizedError):
    """Voter has no effective voting power."""


class InvalidChoiceError(InvalidArgumentError):
    """Vote choice is unset or unknown."""


class InvalidDelegateError(InvalidArgumentError):
    """Delegate target is empty or the caller itself."""


class DelegateNotRegisteredError(InvalidArgumentError):
    """Delegate target holds no voting power."""


class AlreadyVotedError(InvalidStateError):
    """Voter already cast a vote on this proposal."""


class AlreadyDelegatedError(InvalidStateError):
    """Voter already has a delegate; delegation cannot be changed."""


class VotingClosedError(InvalidStateError):
    """Proposal is not accepting votes."""


class VotingStillActiveError(TimingViolationError):
    """Voting window has not closed yet."""


def require_int(name: str, value) -> int:
    """Reject anything but a plain int (bool included) as InvalidArgumentError."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidArgumentError(
            f"{name} must be an integer, got {type(value).__name__} {value!r}"
        )
    return value
