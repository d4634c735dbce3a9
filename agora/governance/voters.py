"""
Voter registry and single-hop delegation.

Voting power is assigned directly by the administrator; a voter "exists"
from the moment it first receives non-zero power. Unknown addresses read
as an empty, zero-power voter.

Delegation is one level deep and irrevocable:
  - a voter may delegate once, to another voter holding power
  - the delegate's `delegated_power` grows by the delegator's own power at
    the moment of delegation (a snapshot; later power changes do not flow)
  - the delegator keeps its own power and may still vote with it, so the
    same power can be counted twice (once directly, once via the delegate)
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from ..constants import is_null_address
from ..logger import get_logger
from .admin import GlobalParameters
from .errors import (
    AlreadyDelegatedError,
    DelegateNotRegisteredError,
    InvalidArgumentError,
    InvalidDelegateError,
    NotFoundError,
    UnauthorizedError,
    require_int,
)
from .proposals import VoteChoice

logger = get_logger(__name__)


@dataclass
class Voter:
    """
    Registered voter record.

    Fields:
        address:          Opaque caller identity
        voting_power:     Admin-assigned own power
        delegate:         Address this voter delegated to, if any
        is_delegate:      True once any voter has delegated to this one
        delegated_power:  Sum of delegators' power at their delegation time
        has_voted:        True once this voter has cast any vote
        last_proposal_id: Proposal of the most recent vote
        last_choice:      Choice of the most recent vote
        last_vote_time:   Timestamp of the most recent vote
    """
    address: str
    voting_power: int = 0
    delegate: Optional[str] = None
    is_delegate: bool = False
    delegated_power: int = 0
    has_voted: bool = False
    last_proposal_id: int = 0
    last_choice: VoteChoice = VoteChoice.NONE
    last_vote_time: int = 0

    @property
    def effective_power(self) -> int:
        return self.voting_power + (self.delegated_power if self.is_delegate else 0)

    @property
    def is_registered(self) -> bool:
        return self.voting_power > 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "address": self.address,
            "votingPower": self.voting_power,
            "effectivePower": self.effective_power,
            "delegate": self.delegate,
            "isDelegate": self.is_delegate,
            "delegatedPower": self.delegated_power,
            "hasVoted": self.has_voted,
            "lastProposalId": self.last_proposal_id,
            "lastChoice": self.last_choice.name,
            "lastVoteTime": self.last_vote_time,
        }


class VoterRegistry:
    """
    Owns voter records and the delegate → delegators reverse index.

    Keeps `GlobalParameters.total_voting_power` equal to the sum of every
    stored voter's own power.
    """

    def __init__(self, params: GlobalParameters):
        self._params = params
        self._voters: Dict[str, Voter] = {}
        self._delegators: Dict[str, List[str]] = {}  # delegate → [delegators]

    # ── Reads ─────────────────────────────────────────────────────────

    def get(self, address: str) -> Voter:
        """Stored record, or an empty default for unknown addresses."""
        voter = self._voters.get(address)
        if voter is None:
            return Voter(address=address)
        return voter

    def exists(self, address: str) -> bool:
        return address in self._voters

    def is_registered(self, address: str) -> bool:
        voter = self._voters.get(address)
        return voter is not None and voter.is_registered

    def effective_power(self, address: str) -> int:
        return self.get(address).effective_power

    def get_delegators(self, address: str) -> List[str]:
        return list(self._delegators.get(address, []))

    @property
    def total_voting_power(self) -> int:
        return self._params.total_voting_power

    def __len__(self) -> int:
        return len(self._voters)

    # ── Admin mutations ───────────────────────────────────────────────

    def set_voting_power(self, address: str, power: int) -> int:
        """
        Replace a voter's own power. Returns the previous power.

        Assigning zero to an unknown address stores nothing; assigning zero
        to a known voter keeps the record (and its history) with no power.
        """
        if is_null_address(address):
            raise InvalidArgumentError("Cannot assign voting power to the zero address")
        require_int("Voting power", power)
        if power < 0:
            raise InvalidArgumentError(f"Voting power cannot be negative ({power})")

        voter = self._voters.get(address)
        old = voter.voting_power if voter else 0
        if voter is None:
            if power == 0:
                return 0
            voter = Voter(address=address)
            self._voters[address] = voter

        voter.voting_power = power
        self._params.total_voting_power += power - old
        logger.info(
            f"Voting power {address}: {old} → {power} "
            f"(total={self._params.total_voting_power})"
        )
        return old

    def remove_voter(self, address: str) -> int:
        """
        Erase a voter record and subtract its power from the total.

        Delegations pointing at or from the voter are left in place; a
        removed delegate's accumulated delegated power is simply gone.
        Returns the removed power.
        """
        voter = self._voters.pop(address, None)
        if voter is None:
            raise NotFoundError(f"Voter {address} is not registered")
        self._params.total_voting_power -= voter.voting_power
        logger.warning(
            f"Voter {address} removed (power={voter.voting_power}, "
            f"total={self._params.total_voting_power})"
        )
        return voter.voting_power

    # ── Delegation ────────────────────────────────────────────────────

    def delegate(self, from_address: str, to_address: str) -> int:
        """
        Delegate *from_address*'s current own power to *to_address*.

        Returns the amount added to the delegate's accumulator.
        """
        delegator = self._voters.get(from_address)
        if delegator is None or not delegator.is_registered:
            raise UnauthorizedError(f"{from_address} is not a registered voter")
        if is_null_address(to_address):
            raise InvalidDelegateError("Cannot delegate to the zero address")
        if to_address == from_address:
            raise InvalidDelegateError("Cannot delegate to self")

        target = self._voters.get(to_address)
        if target is None or not target.is_registered:
            raise DelegateNotRegisteredError(f"Delegate {to_address} is not a registered voter")
        if delegator.delegate is not None:
            raise AlreadyDelegatedError(
                f"{from_address} already delegated to {delegator.delegate}"
            )

        amount = delegator.voting_power
        delegator.delegate = to_address
        target.is_delegate = True
        target.delegated_power += amount
        self._delegators.setdefault(to_address, []).append(from_address)

        logger.info(f"Delegation: {from_address} → {to_address} ({amount})")
        return amount

    def to_dict(self) -> Dict[str, Any]:
        return {
            "voterCount": len(self._voters),
            "totalVotingPower": self._params.total_voting_power,
            "voters": {a: v.to_dict() for a, v in self._voters.items()},
            "delegators": {d: list(lst) for d, lst in self._delegators.items()},
        }

    def __repr__(self) -> str:
        return (
            f"<VoterRegistry voters={len(self._voters)} "
            f"total_power={self._params.total_voting_power}>"
        )
