"""
Governance Component Test Suite

Coverage:
  - AdminPolicy / GlobalParameters : guarded setters, pause flag
  - VoterRegistry : power assignment, totals, single-hop delegation, removal
  - ProposalStore : creation validation, derived status, cancellation
  - VoteLedger    : one vote per pair, tallies, history
  - Execution     : time-lock, quorum gate, rejection no-op
  - Clock / EventLog
"""

import os
import sys
from unittest.mock import MagicMock

import pytest

# ── Path setup ────────────────────────────────────────────────────────
ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from agora.constants import (
    GOVERNANCE_DEFAULT_QUORUM,
    GOVERNANCE_EXECUTION_DELAY,
    GOVERNANCE_MAX_PROPOSAL_DURATION,
    GOVERNANCE_MIN_PROPOSAL_DURATION,
    SECONDS_PER_DAY,
    ZERO_ADDRESS,
)
from agora.exceptions import AgoraException
from agora.governance.admin import AdminPolicy, GlobalParameters
from agora.governance.clock import ManualClock, SystemClock
from agora.governance.errors import (
    AlreadyDelegatedError,
    AlreadyVotedError,
    ContractPausedError,
    DelegateNotRegisteredError,
    GovernanceError,
    InvalidArgumentError,
    InvalidChoiceError,
    InvalidDelegateError,
    InvalidStateError,
    NotFoundError,
    QuorumNotMetError,
    TimingViolationError,
    UnauthorizedError,
    VotingStillActiveError,
)
from agora.governance.events import EventLog, ProposalCreated, VoteCast
from agora.governance.execution import check_execution, execute, execution_eta
from agora.governance.proposals import (
    ProposalStatus,
    ProposalStore,
    VoteChoice,
    derived_status,
)
from agora.governance.voters import Voter, VoterRegistry
from agora.governance.voting import VoteLedger, coerce_choice


# ══════════════════════════════════════════════════════════════════════
#  HELPERS
# ══════════════════════════════════════════════════════════════════════

ADMIN = "0x" + "AD" * 20
ALICE = "0x" + "A1" * 20
BOB = "0x" + "B2" * 20
CAROL = "0x" + "C3" * 20

DAY = SECONDS_PER_DAY
T0 = 1_700_000_000


def make_store(params=None):
    params = params or GlobalParameters()
    return ProposalStore(params), params


def make_proposal(store, title="Raise treasury cap", duration=2 * DAY, quorum=1000,
                  creator=ALICE, now=T0, description="details"):
    return store.create(title, description, duration, quorum, creator, now)


def make_registry(powers=None):
    params = GlobalParameters()
    registry = VoterRegistry(params)
    for addr, power in (powers or {}).items():
        registry.set_voting_power(addr, power)
    return registry, params


# ══════════════════════════════════════════════════════════════════════
#  ADMIN POLICY
# ══════════════════════════════════════════════════════════════════════


class TestGlobalParameters:

    def test_defaults(self):
        p = GlobalParameters()
        assert p.min_proposal_duration == GOVERNANCE_MIN_PROPOSAL_DURATION
        assert p.max_proposal_duration == GOVERNANCE_MAX_PROPOSAL_DURATION
        assert p.default_quorum == GOVERNANCE_DEFAULT_QUORUM
        assert p.execution_delay == GOVERNANCE_EXECUTION_DELAY == DAY
        assert p.total_voting_power == 0
        assert p.proposal_count == 0
        assert not p.paused

    def test_to_dict(self):
        d = GlobalParameters().to_dict()
        assert d["executionDelay"] == DAY
        assert d["paused"] is False


class TestAdminPolicy:

    def test_requires_admin_address(self):
        with pytest.raises(InvalidArgumentError):
            AdminPolicy("")
        with pytest.raises(InvalidArgumentError):
            AdminPolicy(ZERO_ADDRESS)

    def test_rejects_inverted_initial_bounds(self):
        params = GlobalParameters(min_proposal_duration=10, max_proposal_duration=5)
        with pytest.raises(InvalidArgumentError):
            AdminPolicy(ADMIN, params)

    def test_require_admin(self):
        policy = AdminPolicy(ADMIN)
        policy.require_admin(ADMIN)
        with pytest.raises(UnauthorizedError):
            policy.require_admin(ALICE)

    def test_set_default_quorum(self):
        policy = AdminPolicy(ADMIN)
        old = policy.set_default_quorum(5000)
        assert old == GOVERNANCE_DEFAULT_QUORUM
        assert policy.params.default_quorum == 5000

    def test_set_default_quorum_zero_raises(self):
        policy = AdminPolicy(ADMIN)
        with pytest.raises(InvalidArgumentError, match="positive"):
            policy.set_default_quorum(0)

    def test_set_execution_delay_zero_allowed(self):
        policy = AdminPolicy(ADMIN)
        policy.set_execution_delay(0)
        assert policy.params.execution_delay == 0

    def test_set_execution_delay_negative_raises(self):
        policy = AdminPolicy(ADMIN)
        with pytest.raises(InvalidArgumentError):
            policy.set_execution_delay(-1)

    def test_set_duration_bounds(self):
        policy = AdminPolicy(ADMIN)
        policy.set_duration_bounds(60, 120)
        assert policy.params.min_proposal_duration == 60
        assert policy.params.max_proposal_duration == 120

    @pytest.mark.parametrize("lo,hi", [(100, 100), (200, 100), (0, 100)])
    def test_set_duration_bounds_invalid(self, lo, hi):
        policy = AdminPolicy(ADMIN)
        with pytest.raises(InvalidArgumentError):
            policy.set_duration_bounds(lo, hi)
        assert policy.params.min_proposal_duration == GOVERNANCE_MIN_PROPOSAL_DURATION

    def test_pause_unpause(self):
        policy = AdminPolicy(ADMIN)
        policy.require_not_paused()
        policy.pause()
        assert policy.paused
        with pytest.raises(ContractPausedError):
            policy.require_not_paused()
        policy.unpause()
        assert not policy.paused

    def test_double_pause_raises(self):
        policy = AdminPolicy(ADMIN)
        policy.pause()
        with pytest.raises(InvalidStateError):
            policy.pause()

    def test_unpause_when_running_raises(self):
        policy = AdminPolicy(ADMIN)
        with pytest.raises(InvalidStateError):
            policy.unpause()

    @pytest.mark.parametrize("overrides", [
        {"default_quorum": 0},
        {"execution_delay": -1},
        {"default_quorum": 2.5},
        {"execution_delay": "60"},
        {"max_proposal_duration": True},
    ])
    def test_rejects_bad_initial_parameters(self, overrides):
        with pytest.raises(InvalidArgumentError):
            AdminPolicy(ADMIN, GlobalParameters(**overrides))

    @pytest.mark.parametrize("call", [
        lambda p: p.set_default_quorum(10.0),
        lambda p: p.set_default_quorum("10"),
        lambda p: p.set_execution_delay(1.5),
        lambda p: p.set_execution_delay(False),
        lambda p: p.set_duration_bounds(60, "120"),
        lambda p: p.set_duration_bounds(60.0, 120),
    ])
    def test_setters_reject_non_integers(self, call):
        policy = AdminPolicy(ADMIN)
        before = policy.to_dict()
        with pytest.raises(InvalidArgumentError, match="integer"):
            call(policy)
        assert policy.to_dict() == before


# ══════════════════════════════════════════════════════════════════════
#  VOTER REGISTRY
# ══════════════════════════════════════════════════════════════════════


class TestVoterRegistryPower:

    def test_set_power_registers(self):
        registry, params = make_registry()
        registry.set_voting_power(ALICE, 600)
        assert registry.is_registered(ALICE)
        assert registry.get(ALICE).voting_power == 600
        assert params.total_voting_power == 600

    def test_total_tracks_signed_difference(self):
        registry, params = make_registry({ALICE: 600, BOB: 500})
        assert params.total_voting_power == 1100
        old = registry.set_voting_power(ALICE, 100)
        assert old == 600
        assert params.total_voting_power == 600

    def test_zero_power_on_unknown_stores_nothing(self):
        registry, params = make_registry()
        assert registry.set_voting_power(ALICE, 0) == 0
        assert not registry.exists(ALICE)
        assert len(registry) == 0

    def test_zero_power_keeps_record(self):
        registry, params = make_registry({ALICE: 600})
        registry.set_voting_power(ALICE, 0)
        assert registry.exists(ALICE)
        assert not registry.is_registered(ALICE)
        assert params.total_voting_power == 0

    def test_negative_power_raises(self):
        registry, _ = make_registry()
        with pytest.raises(InvalidArgumentError, match="negative"):
            registry.set_voting_power(ALICE, -5)

    def test_zero_address_raises(self):
        registry, _ = make_registry()
        with pytest.raises(InvalidArgumentError):
            registry.set_voting_power(ZERO_ADDRESS, 10)

    def test_unknown_reads_as_default(self):
        registry, _ = make_registry()
        voter = registry.get(CAROL)
        assert voter == Voter(address=CAROL)
        assert registry.effective_power(CAROL) == 0

    def test_remove_voter(self):
        registry, params = make_registry({ALICE: 600, BOB: 500})
        removed = registry.remove_voter(BOB)
        assert removed == 500
        assert not registry.exists(BOB)
        assert params.total_voting_power == 600

    def test_remove_unknown_raises(self):
        registry, _ = make_registry()
        with pytest.raises(NotFoundError):
            registry.remove_voter(ALICE)

    @pytest.mark.parametrize("power", [0.5, "600", True, None])
    def test_non_integer_power_raises(self, power):
        registry, params = make_registry({ALICE: 600})
        with pytest.raises(InvalidArgumentError, match="integer"):
            registry.set_voting_power(BOB, power)
        assert not registry.exists(BOB)
        assert params.total_voting_power == 600


class TestVoterRegistryDelegation:

    def test_delegate_adds_power_to_target(self):
        registry, _ = make_registry({ALICE: 600, BOB: 500})
        amount = registry.delegate(ALICE, BOB)
        assert amount == 600
        bob = registry.get(BOB)
        assert bob.is_delegate
        assert bob.delegated_power == 600
        assert registry.effective_power(BOB) == 1100
        assert registry.get_delegators(BOB) == [ALICE]

    def test_delegator_keeps_own_power(self):
        registry, _ = make_registry({ALICE: 600, BOB: 500})
        registry.delegate(ALICE, BOB)
        assert registry.get(ALICE).voting_power == 600
        assert registry.effective_power(ALICE) == 600
        assert registry.get(ALICE).delegate == BOB

    def test_second_delegation_raises(self):
        registry, _ = make_registry({ALICE: 600, BOB: 500, CAROL: 100})
        registry.delegate(ALICE, BOB)
        with pytest.raises(AlreadyDelegatedError):
            registry.delegate(ALICE, CAROL)
        assert registry.get(CAROL).delegated_power == 0

    def test_delegate_to_self_raises(self):
        registry, _ = make_registry({ALICE: 600})
        with pytest.raises(InvalidDelegateError, match="self"):
            registry.delegate(ALICE, ALICE)

    @pytest.mark.parametrize("target", ["", None, ZERO_ADDRESS])
    def test_delegate_to_zero_raises(self, target):
        registry, _ = make_registry({ALICE: 600})
        with pytest.raises(InvalidDelegateError):
            registry.delegate(ALICE, target)

    def test_delegate_to_unregistered_raises(self):
        registry, _ = make_registry({ALICE: 600})
        with pytest.raises(DelegateNotRegisteredError):
            registry.delegate(ALICE, BOB)

    def test_unregistered_delegator_raises(self):
        registry, _ = make_registry({BOB: 500})
        with pytest.raises(UnauthorizedError):
            registry.delegate(ALICE, BOB)

    def test_snapshot_not_updated_by_later_power_change(self):
        registry, _ = make_registry({ALICE: 600, BOB: 500})
        registry.delegate(ALICE, BOB)
        registry.set_voting_power(ALICE, 50)
        assert registry.get(BOB).delegated_power == 600

    def test_multiple_delegators_accumulate_in_order(self):
        registry, _ = make_registry({ALICE: 600, BOB: 500, CAROL: 100})
        registry.delegate(ALICE, BOB)
        registry.delegate(CAROL, BOB)
        assert registry.effective_power(BOB) == 1200
        assert registry.get_delegators(BOB) == [ALICE, CAROL]

    def test_delegation_is_single_hop(self):
        registry, _ = make_registry({ALICE: 600, BOB: 500, CAROL: 100})
        registry.delegate(CAROL, ALICE)
        registry.delegate(ALICE, BOB)
        # BOB receives only ALICE's own power, not what CAROL passed to ALICE
        assert registry.effective_power(BOB) == 1100
        assert registry.effective_power(ALICE) == 700

    def test_removed_delegate_power_is_gone(self):
        registry, params = make_registry({ALICE: 600, BOB: 500})
        registry.delegate(ALICE, BOB)
        registry.remove_voter(BOB)
        assert registry.effective_power(BOB) == 0
        assert registry.get_delegators(BOB) == [ALICE]
        assert registry.get(ALICE).delegate == BOB

    def test_reregistered_delegate_starts_without_delegated_power(self):
        registry, params = make_registry({ALICE: 600, BOB: 500})
        registry.delegate(ALICE, BOB)
        registry.remove_voter(BOB)
        registry.set_voting_power(BOB, 500)
        bob = registry.get(BOB)
        assert not bob.is_delegate
        assert bob.delegated_power == 0
        assert registry.effective_power(BOB) == 500
        # The historical edge is still listed; it carries no power
        assert registry.get_delegators(BOB) == [ALICE]
        with pytest.raises(AlreadyDelegatedError):
            registry.delegate(ALICE, BOB)
        assert params.total_voting_power == 600

    def test_get_delegators_returns_copy(self):
        registry, _ = make_registry({ALICE: 600, BOB: 500})
        registry.delegate(ALICE, BOB)
        registry.get_delegators(BOB).append(CAROL)
        assert registry.get_delegators(BOB) == [ALICE]


# ══════════════════════════════════════════════════════════════════════
#  PROPOSAL STORE
# ══════════════════════════════════════════════════════════════════════


class TestProposalCreation:

    def test_create_basic(self):
        store, params = make_store()
        p = make_proposal(store)
        assert p.id == 1
        assert p.start_time == T0
        assert p.end_time == T0 + 2 * DAY
        assert p.quorum == 1000
        assert p.creator == ALICE
        assert (p.yes_votes, p.no_votes, p.abstain_votes) == (0, 0, 0)
        assert not p.executed and not p.canceled
        assert params.proposal_count == 1

    def test_ids_are_sequential(self):
        store, _ = make_store()
        ids = [make_proposal(store).id for _ in range(3)]
        assert ids == [1, 2, 3]
        assert store.count == 3

    def test_empty_description_allowed(self):
        store, _ = make_store()
        p = make_proposal(store, description="")
        assert p.description == ""

    def test_empty_title_raises(self):
        store, params = make_store()
        with pytest.raises(InvalidArgumentError, match="title"):
            make_proposal(store, title="")
        assert params.proposal_count == 0

    def test_zero_quorum_raises(self):
        store, _ = make_store()
        with pytest.raises(InvalidArgumentError, match="Quorum"):
            make_proposal(store, quorum=0)

    @pytest.mark.parametrize("kwargs", [
        {"duration": 2.0 * DAY},
        {"duration": "172800"},
        {"quorum": 1000.0},
        {"quorum": True},
    ])
    def test_non_integer_arguments_raise(self, kwargs):
        store, params = make_store()
        with pytest.raises(InvalidArgumentError, match="integer"):
            make_proposal(store, **kwargs)
        assert params.proposal_count == 0

    def test_duration_bounds_inclusive(self):
        store, _ = make_store()
        make_proposal(store, duration=GOVERNANCE_MIN_PROPOSAL_DURATION)
        make_proposal(store, duration=GOVERNANCE_MAX_PROPOSAL_DURATION)

    @pytest.mark.parametrize("duration", [
        GOVERNANCE_MIN_PROPOSAL_DURATION - 1,
        GOVERNANCE_MAX_PROPOSAL_DURATION + 1,
    ])
    def test_duration_out_of_range_raises(self, duration):
        store, _ = make_store()
        with pytest.raises(InvalidArgumentError, match="Duration"):
            make_proposal(store, duration=duration)

    def test_bounds_snapshot_recorded(self):
        params = GlobalParameters(min_proposal_duration=60, max_proposal_duration=600)
        store, _ = make_store(params)
        p = make_proposal(store, duration=120)
        params.min_proposal_duration = 10
        assert (p.min_duration, p.max_duration) == (60, 600)

    def test_default_quorum_not_consulted(self):
        params = GlobalParameters(default_quorum=99999)
        store, _ = make_store(params)
        p = make_proposal(store, quorum=7)
        assert p.quorum == 7

    def test_get_missing_raises(self):
        store, _ = make_store()
        with pytest.raises(NotFoundError):
            store.get(42)

    def test_to_dict(self):
        store, _ = make_store()
        d = make_proposal(store).to_dict()
        assert d["id"] == 1
        assert d["totalVotes"] == 0
        assert d["endTime"] == T0 + 2 * DAY


class TestDerivedStatus:

    def test_active_before_end(self):
        store, _ = make_store()
        p = make_proposal(store)
        assert derived_status(p, T0) == ProposalStatus.ACTIVE
        assert derived_status(p, p.end_time - 1) == ProposalStatus.ACTIVE

    def test_expired_at_end(self):
        store, _ = make_store()
        p = make_proposal(store)
        assert derived_status(p, p.end_time) == ProposalStatus.EXPIRED

    def test_canceled_wins_over_time(self):
        store, _ = make_store()
        p = make_proposal(store)
        store.cancel(p.id, ALICE, T0)
        assert derived_status(p, T0) == ProposalStatus.CANCELED
        assert derived_status(p, p.end_time + DAY) == ProposalStatus.CANCELED

    def test_executed(self):
        store, _ = make_store()
        p = make_proposal(store)
        p.executed = True
        assert derived_status(p, T0) == ProposalStatus.EXECUTED


class TestProposalCancellation:

    def test_creator_cancel(self):
        store, _ = make_store()
        p = make_proposal(store)
        store.cancel(p.id, ALICE, T0 + 10)
        assert p.canceled

    def test_non_creator_raises(self):
        store, _ = make_store()
        p = make_proposal(store)
        with pytest.raises(UnauthorizedError):
            store.cancel(p.id, BOB, T0)
        assert not p.canceled

    def test_cancel_after_window_raises(self):
        store, _ = make_store()
        p = make_proposal(store)
        with pytest.raises(InvalidStateError, match="ended"):
            store.cancel(p.id, ALICE, p.end_time)

    def test_cancel_twice_raises(self):
        store, _ = make_store()
        p = make_proposal(store)
        store.cancel(p.id, ALICE, T0)
        with pytest.raises(InvalidStateError, match="canceled"):
            store.cancel(p.id, ALICE, T0)

    def test_cancel_executed_raises(self):
        store, _ = make_store()
        p = make_proposal(store)
        p.executed = True
        with pytest.raises(InvalidStateError, match="executed"):
            store.cancel(p.id, ALICE, T0)
        assert not p.canceled

    def test_admin_cancel_ignores_window(self):
        store, _ = make_store()
        p = make_proposal(store)
        store.admin_cancel(p.id)
        assert p.canceled

    def test_admin_cancel_executed_raises(self):
        store, _ = make_store()
        p = make_proposal(store)
        p.executed = True
        with pytest.raises(InvalidStateError):
            store.admin_cancel(p.id)


# ══════════════════════════════════════════════════════════════════════
#  VOTE LEDGER
# ══════════════════════════════════════════════════════════════════════


class TestCoerceChoice:

    def test_enum_int_and_name(self):
        assert coerce_choice(VoteChoice.YES) == VoteChoice.YES
        assert coerce_choice(2) == VoteChoice.NO
        assert coerce_choice("abstain") == VoteChoice.ABSTAIN

    @pytest.mark.parametrize("bad", [VoteChoice.NONE, 0, 99, "maybe", None])
    def test_invalid(self, bad):
        with pytest.raises(InvalidChoiceError):
            coerce_choice(bad)


class TestVoteLedger:

    def _setup(self):
        store, _ = make_store()
        registry, _ = make_registry({ALICE: 600, BOB: 500, CAROL: 100})
        return store, registry, VoteLedger()

    def test_record_vote_updates_tally(self):
        store, registry, ledger = self._setup()
        p = make_proposal(store)
        record = ledger.record_vote(p, registry.get(ALICE), VoteChoice.YES, 600, T0 + 5)
        assert record.voting_power == 600
        assert record.choice == VoteChoice.YES
        assert p.yes_votes == 600
        assert ledger.has_voted(p.id, ALICE)

    def test_each_bucket(self):
        store, registry, ledger = self._setup()
        p = make_proposal(store)
        ledger.record_vote(p, registry.get(ALICE), VoteChoice.YES, 600, T0)
        ledger.record_vote(p, registry.get(BOB), VoteChoice.NO, 500, T0)
        ledger.record_vote(p, registry.get(CAROL), VoteChoice.ABSTAIN, 100, T0)
        assert (p.yes_votes, p.no_votes, p.abstain_votes) == (600, 500, 100)
        assert p.total_votes == 1200
        assert ledger.voter_count(p.id) == 3

    def test_double_vote_raises_and_keeps_tally(self):
        store, registry, ledger = self._setup()
        p = make_proposal(store)
        ledger.record_vote(p, registry.get(ALICE), VoteChoice.YES, 600, T0)
        with pytest.raises(AlreadyVotedError):
            ledger.record_vote(p, registry.get(ALICE), VoteChoice.NO, 600, T0)
        assert (p.yes_votes, p.no_votes) == (600, 0)
        assert len(ledger.history(ALICE)) == 1

    def test_already_voted_checked_before_choice(self):
        store, registry, ledger = self._setup()
        p = make_proposal(store)
        ledger.record_vote(p, registry.get(ALICE), VoteChoice.YES, 600, T0)
        with pytest.raises(AlreadyVotedError):
            ledger.record_vote(p, registry.get(ALICE), VoteChoice.NONE, 600, T0)

    def test_null_choice_raises(self):
        store, registry, ledger = self._setup()
        p = make_proposal(store)
        with pytest.raises(InvalidChoiceError):
            ledger.record_vote(p, registry.get(ALICE), VoteChoice.NONE, 600, T0)
        assert not ledger.has_voted(p.id, ALICE)
        assert p.total_votes == 0

    def test_last_vote_snapshot(self):
        store, registry, ledger = self._setup()
        p = make_proposal(store)
        ledger.record_vote(p, registry.get(BOB), VoteChoice.NO, 500, T0 + 30)
        bob = registry.get(BOB)
        assert bob.has_voted
        assert bob.last_proposal_id == p.id
        assert bob.last_choice == VoteChoice.NO
        assert bob.last_vote_time == T0 + 30

    def test_history_in_insertion_order(self):
        store, registry, ledger = self._setup()
        p1 = make_proposal(store)
        p2 = make_proposal(store)
        ledger.record_vote(p2, registry.get(ALICE), VoteChoice.NO, 600, T0 + 1)
        ledger.record_vote(p1, registry.get(ALICE), VoteChoice.YES, 600, T0 + 2)
        history = ledger.history(ALICE)
        assert [r.proposal_id for r in history] == [p2.id, p1.id]
        # Restartable: a fresh call yields the same sequence
        assert ledger.history(ALICE) == history

    def test_history_unknown_voter_empty(self):
        _, _, ledger = self._setup()
        assert ledger.history(CAROL) == []

    def test_record_to_dict(self):
        store, registry, ledger = self._setup()
        p = make_proposal(store)
        d = ledger.record_vote(p, registry.get(ALICE), VoteChoice.YES, 600, T0).to_dict()
        assert d["choice"] == "YES"
        assert d["votingPower"] == 600


# ══════════════════════════════════════════════════════════════════════
#  EXECUTION DECISION
# ══════════════════════════════════════════════════════════════════════


class TestExecutionDecision:

    def _voted(self, yes=600, no=500, abstain=0, quorum=1000):
        store, _ = make_store()
        p = make_proposal(store, quorum=quorum)
        p.yes_votes, p.no_votes, p.abstain_votes = yes, no, abstain
        return p

    def test_eta(self):
        p = self._voted()
        assert execution_eta(p, DAY) == p.end_time + DAY

    def test_before_timelock_raises(self):
        p = self._voted()
        with pytest.raises(TimingViolationError, match="time-locked"):
            check_execution(p, p.end_time + DAY - 1, DAY)

    def test_exactly_at_timelock_passes(self):
        p = self._voted()
        assert check_execution(p, p.end_time + DAY, DAY) is True

    def test_zero_delay_at_end_time_reports_voting_active(self):
        p = self._voted()
        with pytest.raises(VotingStillActiveError):
            check_execution(p, p.end_time, 0)
        assert check_execution(p, p.end_time + 1, 0) is True

    def test_quorum_not_met(self):
        p = self._voted(yes=600, no=0)
        with pytest.raises(QuorumNotMetError):
            execute(p, p.end_time + DAY, DAY)
        assert not p.executed

    def test_abstain_counts_toward_quorum(self):
        p = self._voted(yes=300, no=100, abstain=600)
        result = execute(p, p.end_time + DAY, DAY)
        assert result.executed
        assert result.total_votes == 1000

    def test_execute_sets_flag(self):
        p = self._voted()
        result = execute(p, p.end_time + DAY, DAY)
        assert result.executed
        assert p.executed

    def test_tie_is_rejected_without_error(self):
        p = self._voted(yes=500, no=500)
        result = execute(p, p.end_time + DAY, DAY)
        assert result.rejected
        assert not p.executed

    def test_rejection_repeatable(self):
        p = self._voted(yes=500, no=600)
        first = execute(p, p.end_time + DAY, DAY)
        second = execute(p, p.end_time + 5 * DAY, DAY)
        assert not first.executed and not second.executed
        assert not p.executed
        assert derived_status(p, p.end_time + 5 * DAY) == ProposalStatus.EXPIRED

    def test_execute_twice_raises(self):
        p = self._voted()
        execute(p, p.end_time + DAY, DAY)
        with pytest.raises(InvalidStateError, match="already executed"):
            execute(p, p.end_time + DAY, DAY)

    def test_canceled_raises(self):
        p = self._voted()
        p.canceled = True
        with pytest.raises(InvalidStateError, match="canceled"):
            execute(p, p.end_time + DAY, DAY)

    def test_result_to_dict(self):
        p = self._voted()
        d = execute(p, p.end_time + DAY, DAY).to_dict()
        assert d["executed"] is True
        assert d["totalVotes"] == 1100


# ══════════════════════════════════════════════════════════════════════
#  CLOCK & EVENTS
# ══════════════════════════════════════════════════════════════════════


class TestClock:

    def test_manual_clock_advance(self):
        clock = ManualClock(100)
        assert clock.now() == 100
        assert clock.advance(50) == 150
        assert clock.set(200) == 200

    def test_manual_clock_never_backwards(self):
        clock = ManualClock(100)
        with pytest.raises(ValueError):
            clock.advance(-1)
        with pytest.raises(ValueError):
            clock.set(99)

    def test_system_clock_monotonic(self):
        clock = SystemClock()
        a = clock.now()
        b = clock.now()
        assert isinstance(a, int)
        assert b >= a > 0


class TestEventLog:

    def test_emit_and_filter(self):
        log = EventLog()
        log.emit(ProposalCreated(timestamp=1, proposal_id=1, creator=ALICE,
                                 title="t", end_time=10, quorum=5))
        log.emit(VoteCast(timestamp=2, proposal_id=1, voter=ALICE,
                          choice="YES", voting_power=600))
        assert len(log) == 2
        assert [e.name for e in log.events()] == ["ProposalCreated", "VoteCast"]
        assert len(log.events("VoteCast")) == 1

    def test_subscriber_notified(self):
        log = EventLog()
        observer = MagicMock()
        log.subscribe(observer)
        event = VoteCast(timestamp=2, proposal_id=1, voter=ALICE,
                         choice="YES", voting_power=600)
        log.emit(event)
        observer.assert_called_once_with(event)
        log.unsubscribe(observer)
        log.emit(event)
        observer.assert_called_once()

    def test_failing_subscriber_does_not_block(self):
        log = EventLog()
        log.subscribe(MagicMock(side_effect=RuntimeError("boom")))
        after = MagicMock()
        log.subscribe(after)
        log.emit(VoteCast(timestamp=2, proposal_id=1, voter=ALICE,
                          choice="NO", voting_power=1))
        after.assert_called_once()
        assert len(log) == 1

    def test_event_to_dict(self):
        d = VoteCast(timestamp=2, proposal_id=1, voter=BOB,
                     choice="NO", voting_power=500).to_dict()
        assert d == {
            "event": "VoteCast",
            "proposalId": 1,
            "voter": BOB,
            "choice": "NO",
            "votingPower": 500,
            "timestamp": 2,
        }


class TestErrorTaxonomy:

    def test_hierarchy(self):
        assert issubclass(GovernanceError, AgoraException)
        assert issubclass(AlreadyVotedError, InvalidStateError)
        assert issubclass(InvalidChoiceError, InvalidArgumentError)
        assert issubclass(VotingStillActiveError, TimingViolationError)
        for cls in (UnauthorizedError, NotFoundError, QuorumNotMetError, ContractPausedError):
            assert issubclass(cls, GovernanceError)
