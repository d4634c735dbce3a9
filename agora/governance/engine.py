"""
Governance Engine

Orchestrates the public operations over the VoterRegistry, ProposalStore
and VoteLedger, guarded by the AdminPolicy and timed by a ClockSource.

Every operation runs under one re-entrant lock covering all components, so
each call is atomic with respect to every other call. All preconditions are
checked before the first mutation; a rejected call leaves no trace except a
WARNING log line.
"""

import functools
import threading
from dataclasses import replace
from typing import Any, Dict, List, Optional

from ..logger import get_logger
from .admin import AdminPolicy, GlobalParameters
from .clock import ClockSource, SystemClock
from .errors import (
    GovernanceError,
    InsufficientVotingPowerError,
    UnauthorizedError,
    VotingClosedError,
)
from .events import (
    DelegationRecorded,
    DurationLimitsUpdated,
    EventLog,
    ExecutionDelayUpdated,
    PauseChanged,
    ProposalCanceled,
    ProposalCreated,
    ProposalExecuted,
    QuorumUpdated,
    VoteCast,
    VoterRemoved,
    VotingPowerUpdated,
)
from .execution import ExecutionResult, execute, execution_eta
from .proposals import Proposal, ProposalStatus, ProposalStore
from .voters import Voter, VoterRegistry
from .voting import VoteLedger, VoteRecord

logger = get_logger(__name__)


def _operation(fn):
    """Serialize a mutating call and log its rejection before re-raising."""
    @functools.wraps(fn)
    def wrapper(self, *args, **kwargs):
        with self._lock:
            try:
                return fn(self, *args, **kwargs)
            except GovernanceError as e:
                logger.warning(f"{fn.__name__} rejected: {type(e).__name__}: {e}")
                raise
    return wrapper


def _read(fn):
    @functools.wraps(fn)
    def wrapper(self, *args, **kwargs):
        with self._lock:
            return fn(self, *args, **kwargs)
    return wrapper


class GovernanceEngine:
    """
    Power-weighted governance with single-hop delegation and a time-locked
    execution gate.

    Callers are identified by the *caller* argument of each mutating
    method; authenticating that identity is the host's job.
    """

    def __init__(
        self,
        admin: str,
        clock: Optional[ClockSource] = None,
        params: Optional[GlobalParameters] = None,
    ):
        self.clock = clock or SystemClock()
        self.policy = AdminPolicy(admin, params)
        self.voters = VoterRegistry(self.policy.params)
        self.proposals = ProposalStore(self.policy.params)
        self.ledger = VoteLedger()
        self.events = EventLog()
        self._lock = threading.RLock()
        logger.info(f"Governance engine initialised (admin={admin})")

    @classmethod
    def from_config(cls, config, clock: Optional[ClockSource] = None) -> "GovernanceEngine":
        """Build an engine from an `AgoraConfig` (see `agora.config`)."""
        gov = config.governance
        params = GlobalParameters(
            min_proposal_duration=gov.min_proposal_duration,
            max_proposal_duration=gov.max_proposal_duration,
            default_quorum=gov.default_quorum,
            execution_delay=gov.execution_delay,
        )
        engine = cls(admin=gov.admin, clock=clock, params=params)
        if gov.paused:
            engine.pause(engine.admin)
        return engine

    @property
    def params(self) -> GlobalParameters:
        return self.policy.params

    def _require_voter(self, caller: str):
        if not self.voters.is_registered(caller):
            raise UnauthorizedError(f"{caller} is not a registered voter")

    # ══════════════════════════════════════════════════════════════════
    #  VOTER OPERATIONS
    # ══════════════════════════════════════════════════════════════════

    @_operation
    def create_proposal(
        self,
        caller: str,
        title: str,
        description: str,
        duration: int,
        quorum: int,
    ) -> int:
        """Create a proposal voting for *duration* seconds from now. Returns its id."""
        self.policy.require_not_paused()
        self._require_voter(caller)

        now = self.clock.now()
        proposal = self.proposals.create(title, description, duration, quorum, caller, now)
        self.events.emit(ProposalCreated(
            timestamp=now,
            proposal_id=proposal.id,
            creator=caller,
            title=proposal.title,
            end_time=proposal.end_time,
            quorum=proposal.quorum,
        ))
        return proposal.id

    @_operation
    def vote(self, caller: str, proposal_id: int, choice) -> VoteRecord:
        """Cast *caller*'s full effective power for *choice* on a proposal."""
        self.policy.require_not_paused()
        self._require_voter(caller)

        proposal = self.proposals.get(proposal_id)
        now = self.clock.now()
        status = proposal.status_at(now)
        if status != ProposalStatus.ACTIVE or now < proposal.start_time:
            raise VotingClosedError(
                f"Proposal #{proposal_id} is not accepting votes (status={status.name})"
            )

        voter = self.voters.get(caller)
        power = voter.effective_power
        if power <= 0:
            raise InsufficientVotingPowerError(f"{caller} has no voting power")

        record = self.ledger.record_vote(proposal, voter, choice, power, now)
        self.events.emit(VoteCast(
            timestamp=now,
            proposal_id=proposal_id,
            voter=caller,
            choice=record.choice.name,
            voting_power=power,
        ))
        return record

    @_operation
    def delegate(self, caller: str, to_voter: str) -> int:
        """Delegate *caller*'s own power to *to_voter*. Irrevocable."""
        self.policy.require_not_paused()
        self._require_voter(caller)

        amount = self.voters.delegate(caller, to_voter)
        self.events.emit(DelegationRecorded(
            timestamp=self.clock.now(),
            delegator=caller,
            delegate=to_voter,
            amount=amount,
        ))
        return amount

    @_operation
    def execute_proposal(self, caller: str, proposal_id: int) -> ExecutionResult:
        """
        Execute a proposal once its time-lock has elapsed. Open to anyone.

        A proposal that met quorum but has yes <= no returns a result with
        `executed=False` and is left untouched.
        """
        self.policy.require_not_paused()
        proposal = self.proposals.get(proposal_id)
        now = self.clock.now()

        result = execute(proposal, now, self.params.execution_delay)
        if result.executed:
            self.events.emit(ProposalExecuted(
                timestamp=now,
                proposal_id=proposal_id,
                yes_votes=result.yes_votes,
                no_votes=result.no_votes,
                abstain_votes=result.abstain_votes,
            ))
        return result

    @_operation
    def cancel_proposal(self, caller: str, proposal_id: int):
        """Creator cancellation while voting is still open."""
        self.policy.require_not_paused()
        now = self.clock.now()
        self.proposals.cancel(proposal_id, caller, now)
        self.events.emit(ProposalCanceled(
            timestamp=now,
            proposal_id=proposal_id,
            canceled_by=caller,
        ))

    # ══════════════════════════════════════════════════════════════════
    #  ADMIN OPERATIONS (allowed while paused)
    # ══════════════════════════════════════════════════════════════════

    @_operation
    def set_voting_power(self, caller: str, address: str, power: int):
        self.policy.require_admin(caller)
        old = self.voters.set_voting_power(address, power)
        self.events.emit(VotingPowerUpdated(
            timestamp=self.clock.now(),
            voter=address,
            old_power=old,
            new_power=power,
        ))

    @_operation
    def set_quorum(self, caller: str, value: int):
        """Set the default quorum. Proposal creation does not read it."""
        self.policy.require_admin(caller)
        old = self.policy.set_default_quorum(value)
        self.events.emit(QuorumUpdated(
            timestamp=self.clock.now(), old_quorum=old, new_quorum=value,
        ))

    @_operation
    def set_execution_delay(self, caller: str, seconds: int):
        self.policy.require_admin(caller)
        old = self.policy.set_execution_delay(seconds)
        self.events.emit(ExecutionDelayUpdated(
            timestamp=self.clock.now(), old_delay=old, new_delay=seconds,
        ))

    @_operation
    def set_proposal_duration_limits(self, caller: str, min_duration: int, max_duration: int):
        self.policy.require_admin(caller)
        self.policy.set_duration_bounds(min_duration, max_duration)
        self.events.emit(DurationLimitsUpdated(
            timestamp=self.clock.now(),
            min_duration=min_duration,
            max_duration=max_duration,
        ))

    @_operation
    def pause(self, caller: str):
        self.policy.require_admin(caller)
        self.policy.pause()
        self.events.emit(PauseChanged(timestamp=self.clock.now(), paused=True, admin=caller))

    @_operation
    def unpause(self, caller: str):
        self.policy.require_admin(caller)
        self.policy.unpause()
        self.events.emit(PauseChanged(timestamp=self.clock.now(), paused=False, admin=caller))

    @_operation
    def emergency_remove_voter(self, caller: str, address: str):
        self.policy.require_admin(caller)
        removed = self.voters.remove_voter(address)
        self.events.emit(VoterRemoved(
            timestamp=self.clock.now(), voter=address, removed_power=removed,
        ))

    @_operation
    def emergency_cancel_proposal(self, caller: str, proposal_id: int):
        self.policy.require_admin(caller)
        self.proposals.admin_cancel(proposal_id)
        self.events.emit(ProposalCanceled(
            timestamp=self.clock.now(),
            proposal_id=proposal_id,
            canceled_by=caller,
            emergency=True,
        ))

    # ══════════════════════════════════════════════════════════════════
    #  READS
    # ══════════════════════════════════════════════════════════════════

    @_read
    def get_proposal(self, proposal_id: int) -> Proposal:
        """Snapshot copy; mutating it does not affect the engine."""
        return replace(self.proposals.get(proposal_id))

    @_read
    def get_voter(self, address: str) -> Voter:
        return replace(self.voters.get(address))

    @_read
    def get_effective_voting_power(self, address: str) -> int:
        return self.voters.effective_power(address)

    @_read
    def get_proposal_state(self, proposal_id: int) -> ProposalStatus:
        return self.proposals.status(proposal_id, self.clock.now())

    @_read
    def get_execution_eta(self, proposal_id: int) -> int:
        return execution_eta(self.proposals.get(proposal_id), self.params.execution_delay)

    @_read
    def get_vote_history(self, address: str) -> List[VoteRecord]:
        return self.ledger.history(address)

    @_read
    def get_proposal_votes(self, proposal_id: int) -> List[VoteRecord]:
        self.proposals.get(proposal_id)
        return self.ledger.votes_for(proposal_id)

    @_read
    def get_delegators(self, address: str) -> List[str]:
        return self.voters.get_delegators(address)

    @_read
    def has_voted_on_proposal(self, proposal_id: int, address: str) -> bool:
        self.proposals.get(proposal_id)
        return self.ledger.has_voted(proposal_id, address)

    @_read
    def get_parameters(self) -> GlobalParameters:
        return replace(self.params)

    @property
    def admin(self) -> str:
        return self.policy.admin

    @property
    def paused(self) -> bool:
        return self.policy.paused

    @_read
    def to_dict(self) -> Dict[str, Any]:
        return {
            "admin": self.policy.admin,
            "now": self.clock.now(),
            "parameters": self.params.to_dict(),
            "voters": self.voters.to_dict(),
            "proposals": self.proposals.to_dict(),
            "ledger": self.ledger.to_dict(),
            "eventCount": len(self.events),
        }

    def __repr__(self) -> str:
        return (
            f"<GovernanceEngine proposals={self.params.proposal_count} "
            f"voters={len(self.voters)} paused={self.params.paused}>"
        )
