"""
Time-Locked Execution

Decides whether a proposal may be executed:
  1. not already executed or canceled
  2. time-lock elapsed: now >= end_time + execution_delay
  3. voting window closed: now > end_time
  4. quorum met: yes + no + abstain >= quorum
  5. yes > no executes; otherwise the call is a no-op "rejected" outcome

Failures 1-4 raise. Outcome 5 never raises and never changes state, so it
is safe to repeat on a rejected proposal.
"""

from dataclasses import dataclass
from typing import Any, Dict

from ..logger import get_logger
from .errors import (
    InvalidStateError,
    QuorumNotMetError,
    TimingViolationError,
    VotingStillActiveError,
)
from .proposals import Proposal

logger = get_logger(__name__)


@dataclass(frozen=True)
class ExecutionResult:
    """Outcome of an execution attempt that passed every precondition."""
    proposal_id: int
    executed: bool
    yes_votes: int
    no_votes: int
    abstain_votes: int
    quorum: int
    timestamp: int

    @property
    def rejected(self) -> bool:
        return not self.executed

    @property
    def total_votes(self) -> int:
        return self.yes_votes + self.no_votes + self.abstain_votes

    def to_dict(self) -> Dict[str, Any]:
        return {
            "proposalId": self.proposal_id,
            "executed": self.executed,
            "yesVotes": self.yes_votes,
            "noVotes": self.no_votes,
            "abstainVotes": self.abstain_votes,
            "totalVotes": self.total_votes,
            "quorum": self.quorum,
            "timestamp": self.timestamp,
        }


def execution_eta(proposal: Proposal, execution_delay: int) -> int:
    """Earliest timestamp at which *proposal* may be executed."""
    return proposal.end_time + execution_delay


def check_execution(proposal: Proposal, now: int, execution_delay: int) -> bool:
    """
    Run the execution preconditions without mutating anything.

    Returns True if the proposal would pass (yes > no), False if it would
    be rejected. Raises on any failed precondition.
    """
    if proposal.executed:
        raise InvalidStateError(f"Proposal #{proposal.id} already executed")
    if proposal.canceled:
        raise InvalidStateError(f"Proposal #{proposal.id} was canceled")

    eta = execution_eta(proposal, execution_delay)
    if now < eta:
        raise TimingViolationError(
            f"Proposal #{proposal.id} is time-locked until {eta} "
            f"(remaining={eta - now}s)"
        )
    if now <= proposal.end_time:
        raise VotingStillActiveError(
            f"Voting for proposal #{proposal.id} has not ended"
        )

    if proposal.total_votes < proposal.quorum:
        raise QuorumNotMetError(
            f"Proposal #{proposal.id}: quorum not met "
            f"({proposal.total_votes}/{proposal.quorum})"
        )

    return proposal.yes_votes > proposal.no_votes


def execute(proposal: Proposal, now: int, execution_delay: int) -> ExecutionResult:
    """Apply the execution decision to *proposal*."""
    passed = check_execution(proposal, now, execution_delay)
    if passed:
        proposal.executed = True
        logger.info(
            f"Proposal #{proposal.id} EXECUTED "
            f"(yes={proposal.yes_votes}, no={proposal.no_votes}, "
            f"abstain={proposal.abstain_votes})"
        )
    else:
        logger.info(
            f"Proposal #{proposal.id} REJECTED "
            f"(yes={proposal.yes_votes} <= no={proposal.no_votes}); no state change"
        )
    return ExecutionResult(
        proposal_id=proposal.id,
        executed=passed,
        yes_votes=proposal.yes_votes,
        no_votes=proposal.no_votes,
        abstain_votes=proposal.abstain_votes,
        quorum=proposal.quorum,
        timestamp=now,
    )
