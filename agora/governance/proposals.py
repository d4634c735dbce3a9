"""
Governance Proposals

Defines vote choices, the derived proposal status, the Proposal record and
the ProposalStore that allocates ids and owns the lifecycle flags.

Only two lifecycle flags are stored (`executed`, `canceled`). The status a
caller sees (ACTIVE / EXPIRED / EXECUTED / CANCELED) is recomputed from
those flags and the clock on every read.
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Dict, List

from ..logger import get_logger
from .admin import GlobalParameters
from .errors import (
    InvalidArgumentError,
    InvalidStateError,
    NotFoundError,
    UnauthorizedError,
    require_int,
)

logger = get_logger(__name__)


# ══════════════════════════════════════════════════════════════════════
#  ENUMS
# ══════════════════════════════════════════════════════════════════════

class VoteChoice(IntEnum):
    """Ballot options. NONE is the unset sentinel and is never a valid vote."""
    NONE = 0
    YES = 1
    NO = 2
    ABSTAIN = 3


class ProposalStatus(IntEnum):
    """Derived lifecycle label."""
    ACTIVE = 0      # Voting window open
    EXPIRED = 1     # Window closed, not executed or canceled (not terminal)
    EXECUTED = 2
    CANCELED = 3


# ══════════════════════════════════════════════════════════════════════
#  PROPOSAL
# ══════════════════════════════════════════════════════════════════════

@dataclass
class Proposal:
    """
    Governance proposal.

    Fields:
        id:            Sequential identifier, never reused
        title:         Short title (non-empty)
        description:   Free text, may be empty
        creator:       Address of the creating voter
        start_time:    Creation timestamp
        end_time:      End of the voting window (exclusive)
        quorum:        Minimum total cast power, fixed at creation
        min_duration:  Duration lower bound in force at creation (audit only)
        max_duration:  Duration upper bound in force at creation (audit only)
        yes_votes / no_votes / abstain_votes: Accumulated voting power
        executed / canceled: Lifecycle flags, mutually exclusive, never reset
    """
    id: int
    title: str
    description: str
    creator: str
    start_time: int
    end_time: int
    quorum: int
    min_duration: int
    max_duration: int
    yes_votes: int = 0
    no_votes: int = 0
    abstain_votes: int = 0
    executed: bool = False
    canceled: bool = False

    @property
    def total_votes(self) -> int:
        """Total power cast, abstain included."""
        return self.yes_votes + self.no_votes + self.abstain_votes

    @property
    def is_finalized(self) -> bool:
        return self.executed or self.canceled

    def status_at(self, now: int) -> ProposalStatus:
        if self.canceled:
            return ProposalStatus.CANCELED
        if self.executed:
            return ProposalStatus.EXECUTED
        if now >= self.end_time:
            return ProposalStatus.EXPIRED
        return ProposalStatus.ACTIVE

    def add_votes(self, choice: VoteChoice, power: int):
        if choice == VoteChoice.YES:
            self.yes_votes += power
        elif choice == VoteChoice.NO:
            self.no_votes += power
        elif choice == VoteChoice.ABSTAIN:
            self.abstain_votes += power
        else:
            raise InvalidArgumentError(f"Cannot tally choice {choice!r}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "creator": self.creator,
            "startTime": self.start_time,
            "endTime": self.end_time,
            "quorum": self.quorum,
            "minDuration": self.min_duration,
            "maxDuration": self.max_duration,
            "yesVotes": self.yes_votes,
            "noVotes": self.no_votes,
            "abstainVotes": self.abstain_votes,
            "totalVotes": self.total_votes,
            "executed": self.executed,
            "canceled": self.canceled,
        }

    def __repr__(self) -> str:
        flags = "executed" if self.executed else "canceled" if self.canceled else "open"
        return f"<Proposal #{self.id} '{self.title}' {flags}>"


def derived_status(proposal: Proposal, now: int) -> ProposalStatus:
    """Status of *proposal* at time *now*."""
    return proposal.status_at(now)


# ══════════════════════════════════════════════════════════════════════
#  STORE
# ══════════════════════════════════════════════════════════════════════

class ProposalStore:
    """
    Owns proposal records.

    Proposals are never deleted; ids come from
    `GlobalParameters.proposal_count`, starting at 1.
    """

    def __init__(self, params: GlobalParameters):
        self._params = params
        self._proposals: Dict[int, Proposal] = {}

    def create(
        self,
        title: str,
        description: str,
        duration: int,
        quorum: int,
        creator: str,
        now: int,
    ) -> Proposal:
        """
        Validate and store a new proposal.

        The quorum is always the caller's; the default quorum parameter is
        not consulted.
        """
        if not title:
            raise InvalidArgumentError("Proposal title cannot be empty")
        require_int("Duration", duration)
        require_int("Quorum", quorum)
        min_d = self._params.min_proposal_duration
        max_d = self._params.max_proposal_duration
        if duration < min_d or duration > max_d:
            raise InvalidArgumentError(
                f"Duration {duration}s outside allowed range [{min_d}s, {max_d}s]"
            )
        if quorum <= 0:
            raise InvalidArgumentError("Quorum must be positive")

        self._params.proposal_count += 1
        proposal = Proposal(
            id=self._params.proposal_count,
            title=title,
            description=description or "",
            creator=creator,
            start_time=now,
            end_time=now + duration,
            quorum=quorum,
            min_duration=min_d,
            max_duration=max_d,
        )
        self._proposals[proposal.id] = proposal
        logger.info(
            f"Proposal #{proposal.id} ({title}) created by {creator}: "
            f"ends at {proposal.end_time}, quorum {quorum}"
        )
        return proposal

    def get(self, proposal_id: int) -> Proposal:
        proposal = self._proposals.get(proposal_id)
        if proposal is None:
            raise NotFoundError(f"Proposal #{proposal_id} does not exist")
        return proposal

    def exists(self, proposal_id: int) -> bool:
        return proposal_id in self._proposals

    def all(self) -> List[Proposal]:
        return [self._proposals[pid] for pid in sorted(self._proposals)]

    @property
    def count(self) -> int:
        return self._params.proposal_count

    def status(self, proposal_id: int, now: int) -> ProposalStatus:
        return derived_status(self.get(proposal_id), now)

    # ── Cancellation ──────────────────────────────────────────────────

    def cancel(self, proposal_id: int, caller: str, now: int) -> Proposal:
        """Creator cancellation, allowed only while the voting window is open."""
        proposal = self.get(proposal_id)
        if caller != proposal.creator:
            raise UnauthorizedError(
                f"Only the creator may cancel proposal #{proposal_id}"
            )
        self._require_open(proposal)
        if now >= proposal.end_time:
            raise InvalidStateError(
                f"Voting for proposal #{proposal_id} has ended; it can no longer be canceled"
            )
        proposal.canceled = True
        logger.info(f"Proposal #{proposal_id} CANCELED by creator {caller}")
        return proposal

    def admin_cancel(self, proposal_id: int) -> Proposal:
        """Emergency cancellation, no window check."""
        proposal = self.get(proposal_id)
        self._require_open(proposal)
        proposal.canceled = True
        logger.warning(f"Proposal #{proposal_id} CANCELED by admin")
        return proposal

    @staticmethod
    def _require_open(proposal: Proposal):
        if proposal.executed:
            raise InvalidStateError(f"Proposal #{proposal.id} already executed")
        if proposal.canceled:
            raise InvalidStateError(f"Proposal #{proposal.id} already canceled")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "proposalCount": self._params.proposal_count,
            "proposals": {pid: p.to_dict() for pid, p in self._proposals.items()},
        }

    def __repr__(self) -> str:
        return f"<ProposalStore proposals={len(self._proposals)}>"
