"""
Agora Governance Engine

Provides:
  - VoteChoice / ProposalStatus / Proposal / ProposalStore   (proposals.py)
  - Voter / VoterRegistry                                     (voters.py)
  - VoteRecord / VoteLedger                                   (voting.py)
  - ExecutionResult / check_execution                         (execution.py)
  - GlobalParameters / AdminPolicy                            (admin.py)
  - GovernanceEngine                                          (engine.py)
"""

from .errors import (
    AlreadyDelegatedError,
    AlreadyVotedError,
    ContractPausedError,
    DelegateNotRegisteredError,
    GovernanceError,
    InsufficientVotingPowerError,
    InvalidArgumentError,
    InvalidChoiceError,
    InvalidDelegateError,
    InvalidStateError,
    NotFoundError,
    QuorumNotMetError,
    TimingViolationError,
    UnauthorizedError,
    VotingClosedError,
    VotingStillActiveError,
)
from .clock import ClockSource, ManualClock, SystemClock
from .admin import AdminPolicy, GlobalParameters
from .proposals import (
    Proposal,
    ProposalStatus,
    ProposalStore,
    VoteChoice,
    derived_status,
)
from .voters import Voter, VoterRegistry
from .voting import VoteLedger, VoteRecord
from .execution import ExecutionResult, check_execution
from .events import EventLog, GovernanceEvent
from .engine import GovernanceEngine

__all__ = [
    # Errors
    "AlreadyDelegatedError",
    "AlreadyVotedError",
    "ContractPausedError",
    "DelegateNotRegisteredError",
    "GovernanceError",
    "InsufficientVotingPowerError",
    "InvalidArgumentError",
    "InvalidChoiceError",
    "InvalidDelegateError",
    "InvalidStateError",
    "NotFoundError",
    "QuorumNotMetError",
    "TimingViolationError",
    "UnauthorizedError",
    "VotingClosedError",
    "VotingStillActiveError",
    # Clock
    "ClockSource",
    "ManualClock",
    "SystemClock",
    # Admin
    "AdminPolicy",
    "GlobalParameters",
    # Proposals
    "Proposal",
    "ProposalStatus",
    "ProposalStore",
    "VoteChoice",
    "derived_status",
    # Voters
    "Voter",
    "VoterRegistry",
    # Voting
    "VoteLedger",
    "VoteRecord",
    # Execution
    "ExecutionResult",
    "check_execution",
    # Events
    "EventLog",
    "GovernanceEvent",
    # Engine
    "GovernanceEngine",
]
