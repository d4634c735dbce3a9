"""
Power-Weighted Vote Ledger

Implements:
  - One vote per (proposal, voter), never reset
  - Yes / No / Abstain tallies accumulate voting power, not head count
    (abstain counts toward quorum only)
  - Append-only per-voter vote history
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Set, Tuple

from ..logger import get_logger
from .errors import AlreadyVotedError, InvalidChoiceError
from .proposals import Proposal, VoteChoice
from .voters import Voter

logger = get_logger(__name__)


def coerce_choice(choice) -> VoteChoice:
    """
    Normalise *choice* (VoteChoice, int or name) to a castable VoteChoice.

    Raises InvalidChoiceError for the NONE sentinel and unknown values.
    """
    try:
        if isinstance(choice, str):
            value = VoteChoice[choice.strip().upper()]
        else:
            value = VoteChoice(choice)
    except (KeyError, ValueError, TypeError):
        raise InvalidChoiceError(f"Invalid vote choice: {choice!r}") from None
    if value == VoteChoice.NONE:
        raise InvalidChoiceError("Vote choice must be YES, NO or ABSTAIN")
    return value


@dataclass(frozen=True)
class VoteRecord:
    """An individual vote, as stored in the voter's history."""
    proposal_id: int
    voter: str
    choice: VoteChoice
    voting_power: int
    timestamp: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "proposalId": self.proposal_id,
            "voter": self.voter,
            "choice": self.choice.name,
            "votingPower": self.voting_power,
            "timestamp": self.timestamp,
        }


class VoteLedger:
    """
    Owns the has-voted markers and the vote history.

    Tallies live on the Proposal itself; the ledger is the only writer of
    them.
    """

    def __init__(self):
        self._voted: Set[Tuple[int, str]] = set()
        self._history: Dict[str, List[VoteRecord]] = {}
        self._by_proposal: Dict[int, List[VoteRecord]] = {}

    def record_vote(
        self,
        proposal: Proposal,
        voter: Voter,
        choice,
        power: int,
        now: int,
    ) -> VoteRecord:
        """
        Record *voter*'s vote with *power* on *proposal*.

        Checks the has-voted marker before the choice, so a repeat vote
        reports AlreadyVotedError whatever choice it carries.
        """
        key = (proposal.id, voter.address)
        if key in self._voted:
            raise AlreadyVotedError(
                f"{voter.address} has already voted on proposal #{proposal.id}"
            )
        choice = coerce_choice(choice)

        record = VoteRecord(
            proposal_id=proposal.id,
            voter=voter.address,
            choice=choice,
            voting_power=power,
            timestamp=now,
        )
        self._voted.add(key)
        proposal.add_votes(choice, power)
        self._history.setdefault(voter.address, []).append(record)
        self._by_proposal.setdefault(proposal.id, []).append(record)

        voter.has_voted = True
        voter.last_proposal_id = proposal.id
        voter.last_choice = choice
        voter.last_vote_time = now

        logger.info(
            f"Vote: {voter.address} → {choice.name} on Proposal #{proposal.id} "
            f"(power={power})"
        )
        return record

    def has_voted(self, proposal_id: int, voter: str) -> bool:
        return (proposal_id, voter) in self._voted

    def history(self, voter: str) -> List[VoteRecord]:
        """Every vote *voter* has cast, oldest first."""
        return list(self._history.get(voter, []))

    def votes_for(self, proposal_id: int) -> List[VoteRecord]:
        return list(self._by_proposal.get(proposal_id, []))

    def voter_count(self, proposal_id: int) -> int:
        return len(self._by_proposal.get(proposal_id, []))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "votesCast": len(self._voted),
            "history": {
                addr: [r.to_dict() for r in records]
                for addr, records in self._history.items()
            },
        }

    def __repr__(self) -> str:
        return f"<VoteLedger votes={len(self._voted)}>"
