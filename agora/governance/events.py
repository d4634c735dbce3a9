"""
Governance notification events.

Every state-changing operation emits one of the frozen event records below.
They are appended to the engine's `EventLog` (the audit trail) and fanned
out to any subscribed observers.
"""

from dataclasses import dataclass
from typing import Any, Callable, ClassVar, Dict, List, Optional

from ..logger import get_logger

logger = get_logger(__name__)


# ══════════════════════════════════════════════════════════════════════
#  EVENTS
# ══════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class GovernanceEvent:
    """Common base: every event carries the clock time it was emitted at."""
    name: ClassVar[str] = "GovernanceEvent"
    timestamp: int

    def to_dict(self) -> Dict[str, Any]:
        return {"event": self.name, "timestamp": self.timestamp}


@dataclass(frozen=True)
class ProposalCreated(GovernanceEvent):
    """Emitted when a proposal is created."""
    name: ClassVar[str] = "ProposalCreated"
    proposal_id: int
    creator: str
    title: str
    end_time: int
    quorum: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": self.name,
            "proposalId": self.proposal_id,
            "creator": self.creator,
            "title": self.title,
            "endTime": self.end_time,
            "quorum": self.quorum,
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True)
class VoteCast(GovernanceEvent):
    """Emitted on every successful vote."""
    name: ClassVar[str] = "VoteCast"
    proposal_id: int
    voter: str
    choice: str
    voting_power: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": self.name,
            "proposalId": self.proposal_id,
            "voter": self.voter,
            "choice": self.choice,
            "votingPower": self.voting_power,
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True)
class DelegationRecorded(GovernanceEvent):
    """Emitted when a voter delegates to another voter."""
    name: ClassVar[str] = "DelegationRecorded"
    delegator: str
    delegate: str
    amount: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": self.name,
            "delegator": self.delegator,
            "delegate": self.delegate,
            "amount": self.amount,
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True)
class ProposalExecuted(GovernanceEvent):
    name: ClassVar[str] = "ProposalExecuted"
    proposal_id: int
    yes_votes: int
    no_votes: int
    abstain_votes: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": self.name,
            "proposalId": self.proposal_id,
            "yesVotes": self.yes_votes,
            "noVotes": self.no_votes,
            "abstainVotes": self.abstain_votes,
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True)
class ProposalCanceled(GovernanceEvent):
    name: ClassVar[str] = "ProposalCanceled"
    proposal_id: int
    canceled_by: str
    emergency: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": self.name,
            "proposalId": self.proposal_id,
            "canceledBy": self.canceled_by,
            "emergency": self.emergency,
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True)
class VotingPowerUpdated(GovernanceEvent):
    name: ClassVar[str] = "VotingPowerUpdated"
    voter: str
    old_power: int
    new_power: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": self.name,
            "voter": self.voter,
            "oldPower": self.old_power,
            "newPower": self.new_power,
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True)
class VoterRemoved(GovernanceEvent):
    name: ClassVar[str] = "VoterRemoved"
    voter: str
    removed_power: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": self.name,
            "voter": self.voter,
            "removedPower": self.removed_power,
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True)
class QuorumUpdated(GovernanceEvent):
    name: ClassVar[str] = "QuorumUpdated"
    old_quorum: int
    new_quorum: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": self.name,
            "oldQuorum": self.old_quorum,
            "newQuorum": self.new_quorum,
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True)
class ExecutionDelayUpdated(GovernanceEvent):
    name: ClassVar[str] = "ExecutionDelayUpdated"
    old_delay: int
    new_delay: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": self.name,
            "oldDelay": self.old_delay,
            "newDelay": self.new_delay,
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True)
class DurationLimitsUpdated(GovernanceEvent):
    name: ClassVar[str] = "DurationLimitsUpdated"
    min_duration: int
    max_duration: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": self.name,
            "minDuration": self.min_duration,
            "maxDuration": self.max_duration,
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True)
class PauseChanged(GovernanceEvent):
    name: ClassVar[str] = "PauseChanged"
    paused: bool
    admin: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": self.name,
            "paused": self.paused,
            "admin": self.admin,
            "timestamp": self.timestamp,
        }


# ══════════════════════════════════════════════════════════════════════
#  EVENT LOG
# ══════════════════════════════════════════════════════════════════════

Subscriber = Callable[[GovernanceEvent], None]


class EventLog:
    """
    Append-only record of emitted events plus observer fan-out.

    Observers run after the state change has been committed. An observer
    that raises is logged and skipped; it cannot undo or block the
    operation that emitted the event.
    """

    def __init__(self):
        self._events: List[GovernanceEvent] = []
        self._subscribers: List[Subscriber] = []

    def subscribe(self, callback: Subscriber) -> None:
        self._subscribers.append(callback)

    def unsubscribe(self, callback: Subscriber) -> None:
        if callback in self._subscribers:
            self._subscribers.remove(callback)

    def emit(self, event: GovernanceEvent) -> None:
        self._events.append(event)
        logger.debug(f"Event {event.name}: {event.to_dict()}")
        for callback in list(self._subscribers):
            try:
                callback(event)
            except Exception:
                logger.exception(f"Event subscriber failed on {event.name}")

    def events(self, name: Optional[str] = None) -> List[GovernanceEvent]:
        """All events in emission order, optionally filtered by event name."""
        if name is None:
            return list(self._events)
        return [e for e in self._events if e.name == name]

    def __len__(self) -> int:
        return len(self._events)

    def __repr__(self) -> str:
        return f"<EventLog events={len(self._events)} subscribers={len(self._subscribers)}>"
