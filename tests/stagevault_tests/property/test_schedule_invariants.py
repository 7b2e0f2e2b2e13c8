"""
Property-based tests for the distribution schedule and checked arithmetic.

Properties checked:
1. Checked arithmetic agrees with Python integers inside the uint256 range
   and raises outside it
2. Across any sequence of waits, triggers and deposits the schedule only
   moves forward one stage at a time, never pays a stage twice and never
   loses or creates primary tokens
3. A stage executes exactly when its strict time gate is open

Dependencies:
- hypothesis: Property-based testing framework

Usage:
    pytest tests/stagevault_tests/property -v
"""

import pytest
from hypothesis import given, settings, strategies as st
from hypothesis.stateful import RuleBasedStateMachine, invariant, precondition, rule
from vault_fixtures import (
    BENEFICIARIES,
    BOOTSTRAP_INTERVAL,
    DEPLOYER,
    MINTER,
    OUTSIDER,
    PRIMARY,
    PRIMARY_FUNDING,
    RECURRING_INTERVAL,
    SECONDARY,
    STAGE_PAYOUTS,
    STAGE_TOTALS,
    T0,
    VAULT,
    build_config,
)

from stagevault.core import safe_math
from stagevault.core.contracts.erc20 import create_token
from stagevault.core.safe_math import UINT256_MAX
from stagevault.core.treasury_vault import StagedTreasury
from stagevault.core.vault_exceptions import (
    ArithmeticOverflow,
    ArithmeticUnderflow,
    InsufficientInterval,
    StageExhausted,
)
from stagevault.core.vault_state import ManualClock

uint256 = st.integers(min_value=0, max_value=UINT256_MAX)


# ============================================================================
# ARITHMETIC PROPERTIES
# ============================================================================


class TestCheckedArithmetic:
    @given(uint256, uint256)
    def test_add_matches_or_overflows(self, a, b):
        if a + b <= UINT256_MAX:
            assert safe_math.add(a, b) == a + b
        else:
            with pytest.raises(ArithmeticOverflow):
                safe_math.add(a, b)

    @given(uint256, uint256)
    def test_sub_matches_or_underflows(self, a, b):
        if b <= a:
            assert safe_math.sub(a, b) == a - b
        else:
            with pytest.raises(ArithmeticUnderflow):
                safe_math.sub(a, b)

    @given(uint256, uint256)
    def test_mul_matches_or_overflows(self, a, b):
        if a * b <= UINT256_MAX:
            assert safe_math.mul(a, b) == a * b
        else:
            with pytest.raises(ArithmeticOverflow):
                safe_math.mul(a, b)

    @given(uint256, st.integers(min_value=1, max_value=UINT256_MAX))
    def test_div_mod_reconstruct(self, a, b):
        assert safe_math.div(a, b) * b + safe_math.mod(a, b) == a


# ============================================================================
# TIME GATE PROPERTIES
# ============================================================================


@settings(max_examples=50, deadline=None)
@given(delay=st.integers(min_value=0, max_value=3 * BOOTSTRAP_INTERVAL))
def test_first_stage_runs_iff_bootstrap_interval_strictly_passed(delay):
    clock = ManualClock(T0)
    primary = create_token(MINTER, "Primary", "PRI", address=PRIMARY)
    secondary = create_token(MINTER, "Secondary", "SEC", address=SECONDARY)
    vault = StagedTreasury(build_config(), DEPLOYER, primary, secondary, address=VAULT, clock=clock)
    primary.mint(MINTER, VAULT, PRIMARY_FUNDING)

    clock.advance(delay)
    if delay > BOOTSTRAP_INTERVAL:
        assert vault.advance_stage(OUTSIDER).stage == 0
    else:
        with pytest.raises(InsufficientInterval):
            vault.advance_stage(OUTSIDER)
        assert vault.stage_count == 0


# ============================================================================
# STATEFUL SCHEDULE MACHINE
# ============================================================================


class ScheduleStateMachine(RuleBasedStateMachine):
    """
    Random interleavings of time passing, stage triggers and secondary
    deposits against one vault.
    """

    def __init__(self):
        super().__init__()
        self.clock = ManualClock(T0)
        self.primary = create_token(MINTER, "Primary", "PRI", address=PRIMARY)
        self.secondary = create_token(MINTER, "Secondary", "SEC", address=SECONDARY)
        self.vault = StagedTreasury(
            build_config(), DEPLOYER, self.primary, self.secondary, address=VAULT, clock=self.clock
        )
        self.primary.mint(MINTER, VAULT, PRIMARY_FUNDING)
        self.deposited_secondary = 0
        self.executed = 0

    @rule(seconds=st.sampled_from([1, 59, 60, 61, RECURRING_INTERVAL - 1, RECURRING_INTERVAL, RECURRING_INTERVAL + 1]))
    def wait(self, seconds):
        self.clock.advance(seconds)

    @precondition(lambda self: self.executed < 4)
    @rule(amount=st.integers(min_value=0, max_value=10_000))
    def deposit_secondary(self, amount):
        self.secondary.mint(MINTER, VAULT, amount)
        self.deposited_secondary += amount

    @rule()
    def trigger(self):
        interval = BOOTSTRAP_INTERVAL if self.executed == 0 else RECURRING_INTERVAL
        elapsed = self.clock() - self.vault.last_claim_time

        if self.executed == 4:
            with pytest.raises(StageExhausted):
                self.vault.advance_stage(OUTSIDER)
        elif elapsed <= interval:
            with pytest.raises(InsufficientInterval):
                self.vault.advance_stage(OUTSIDER)
        else:
            receipt = self.vault.advance_stage(OUTSIDER)
            assert receipt.stage == self.executed
            assert self.vault.last_claim_time == self.clock()
            self.executed += 1

    @invariant()
    def stage_count_tracks_successes(self):
        assert self.vault.stage_count == self.executed
        assert 0 <= self.vault.stage_count <= 4

    @invariant()
    def primary_is_conserved(self):
        paid = sum(self.primary.balance_of(b) for b in BENEFICIARIES)
        assert paid == sum(STAGE_TOTALS[: self.executed])
        assert self.primary.balance_of(VAULT) + paid == PRIMARY_FUNDING

    @invariant()
    def each_beneficiary_paid_exactly_its_rows(self):
        for index, beneficiary in enumerate(BENEFICIARIES[:3]):
            expected = sum(STAGE_PAYOUTS[stage][index][1] for stage in range(self.executed))
            assert self.primary.balance_of(beneficiary) == expected

    @invariant()
    def secondary_moves_only_in_final_stage(self):
        swept = self.secondary.balance_of(BENEFICIARIES[3])
        if self.executed < 4:
            assert swept == 0
            assert self.secondary.balance_of(VAULT) == self.deposited_secondary
        else:
            assert swept == self.deposited_secondary == self.vault.secondary_snapshot


ScheduleStateMachine.TestCase.settings = settings(
    max_examples=50, stateful_step_count=30, deadline=None
)
TestScheduleStateMachine = ScheduleStateMachine.TestCase
