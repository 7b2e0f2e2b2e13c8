"""
Staged distribution schedule.

Releases primary tokens to a fixed set of beneficiaries across four
ordered, time-gated stages. The final stage also sweeps the vault's
entire secondary-token balance to the fourth beneficiary.

State machine:
    0 -> 1 -> 2 -> 3 -> 4 (terminal)

Security features:
- Anyone may trigger the next stage once its time gate is open; the
  payout table, not the caller, decides who gets paid
- Exactly one stage per successful call, never skipped or repeated
- Schedule effects are applied before any token call; the enclosing vault
  transaction restores them if any payout fails
- All counter and time arithmetic is checked (safe_math)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from .. import safe_math
from ..config import VaultConfig, is_null_address
from ..constants import FINAL_STAGE, STAGE_COUNT, SWEEP_BENEFICIARY_INDEX
from ..protocols import FungibleToken
from ..vault_exceptions import InsufficientInterval, InvalidConfiguration, StageExhausted
from ..vault_state import VaultContext, checked_transfer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Payout:
    """A fixed primary-token payment to one beneficiary."""

    beneficiary: str
    amount: int


@dataclass(frozen=True)
class PayoutStage:
    """
    One entry of the immutable payout table.

    ``sweep_to`` is set only on the final stage: the vault's whole
    secondary balance goes there after the primary payouts.
    """

    index: int
    payouts: Tuple[Payout, ...]
    sweep_to: Optional[str] = None

    @property
    def sweeps_secondary(self) -> bool:
        return self.sweep_to is not None

    @property
    def total_primary(self) -> int:
        return safe_math.total(payout.amount for payout in self.payouts)


@dataclass(frozen=True)
class StageReceipt:
    """Outcome of a committed ``advance_stage`` call."""

    stage: int
    executed_at: int
    caller: str
    payouts: Tuple[Payout, ...]
    secondary_swept: int = 0
    sweep_to: Optional[str] = None


def build_stage_table(config: VaultConfig) -> Tuple[PayoutStage, ...]:
    """
    Turn the configured payout pairs into the validated stage table.

    Raises:
        InvalidConfiguration: On a wrong stage count, a null beneficiary or
            an amount outside the uint256 range
    """
    if len(config.stage_payouts) != STAGE_COUNT:
        raise InvalidConfiguration(
            f"stage table needs {STAGE_COUNT} stages, got {len(config.stage_payouts)}"
        )

    stages = []
    for index, entries in enumerate(config.stage_payouts):
        payouts = []
        for beneficiary, amount in entries:
            if is_null_address(beneficiary):
                raise InvalidConfiguration(
                    f"stage {index}: payout to the zero address",
                    details={"stage": index},
                )
            if isinstance(amount, bool) or not isinstance(amount, int):
                raise InvalidConfiguration(f"stage {index}: amount must be an integer")
            if amount < 0 or amount > safe_math.UINT256_MAX:
                raise InvalidConfiguration(
                    f"stage {index}: amount {amount} outside uint256 range",
                    details={"stage": index, "amount": amount},
                )
            payouts.append(Payout(beneficiary=beneficiary.lower(), amount=amount))

        sweep_to = config.beneficiaries[SWEEP_BENEFICIARY_INDEX] if index == FINAL_STAGE else None
        stage = PayoutStage(index=index, payouts=tuple(payouts), sweep_to=sweep_to)
        stages.append(stage)

    return tuple(stages)


class DistributionScheduler:
    """
    Stage counter, time gate and payout table.

    Args:
        context: Shared vault context (state, clock, events)
        primary_token: Collaborator paying the per-stage table
        secondary_token: Collaborator swept in the final stage
        stages: Prebuilt stage table (built from the config when omitted)
    """

    def __init__(
        self,
        context: VaultContext,
        primary_token: FungibleToken,
        secondary_token: FungibleToken,
        stages: Optional[Tuple[PayoutStage, ...]] = None,
    ) -> None:
        self.context = context
        self.primary_token = primary_token
        self.secondary_token = secondary_token
        self.stages = stages if stages is not None else build_stage_table(context.config)
        if len(self.stages) != STAGE_COUNT:
            raise InvalidConfiguration(
                f"stage table needs {STAGE_COUNT} stages, got {len(self.stages)}"
            )

    # ==================== View Functions ====================

    @property
    def is_terminal(self) -> bool:
        return self.context.state.stage_count >= STAGE_COUNT

    def current_stage(self) -> Optional[PayoutStage]:
        """The stage the next successful call will execute, or None when done."""
        if self.is_terminal:
            return None
        return self.stages[self.context.state.stage_count]

    def required_interval(self, stage: int) -> int:
        """Minimum elapsed time since the last stage before ``stage`` may run."""
        if stage == 0:
            return self.context.config.bootstrap_interval
        return self.context.config.recurring_interval

    def next_eligible_time(self) -> Optional[int]:
        """
        First timestamp at which ``advance_stage`` passes the time gate.

        The gate is strict: exactly ``last_claim_time + interval`` is still
        too early.
        """
        if self.is_terminal:
            return None
        state = self.context.state
        opens_at = safe_math.add(state.last_claim_time, self.required_interval(state.stage_count))
        return safe_math.add(opens_at, 1)

    # ==================== State-Changing Functions ====================

    def advance_stage(self, caller: str) -> StageReceipt:
        """
        Execute the next stage of the payout table.

        Must run inside a vault transaction: schedule effects are applied
        before the token calls and are only undone by the journal.

        Args:
            caller: Address triggering the stage (unrestricted)

        Returns:
            Receipt describing the executed stage

        Raises:
            StageExhausted: If all stages already executed
            InsufficientInterval: If the time gate is still closed
            TransferFailed: If a token reports a failed transfer
        """
        state = self.context.state
        if state.stage_count >= STAGE_COUNT:
            raise StageExhausted(
                "advance_stage: all stages already executed",
                details={"stage_count": state.stage_count},
            )

        now = self.context.now()
        stage_index = state.stage_count
        required = self.required_interval(stage_index)
        elapsed = safe_math.sub(now, state.last_claim_time)
        if elapsed <= required:
            eligible_at = self.next_eligible_time()
            logger.info(
                "Stage gate closed",
                extra={
                    "event": "distribution.gate_closed",
                    "stage": stage_index,
                    "elapsed": elapsed,
                    "required": required,
                    "eligible_at": eligible_at,
                },
            )
            raise InsufficientInterval(
                f"advance_stage: stage {stage_index} requires more than {required}s "
                f"since last claim, only {elapsed}s elapsed",
                details={
                    "stage": stage_index,
                    "elapsed": elapsed,
                    "required": required,
                    "eligible_at": eligible_at,
                },
            )

        stage = self.stages[stage_index]

        # Effects
        state.last_claim_time = now
        state.stage_count = safe_math.add(state.stage_count, 1)

        # Interactions
        vault = self.context.address
        for payout in stage.payouts:
            checked_transfer(self.primary_token, vault, payout.beneficiary, payout.amount)

        swept = 0
        if stage.sweeps_secondary:
            swept = self.secondary_token.balance_of(vault)
            state.secondary_snapshot = swept
            checked_transfer(self.secondary_token, vault, stage.sweep_to, swept)

        self.context.emit(
            "StageAdvanced",
            stage=stage_index,
            caller=caller.lower(),
            payouts=[(payout.beneficiary, payout.amount) for payout in stage.payouts],
            secondary_swept=swept,
        )

        logger.info(
            "Stage executed",
            extra={
                "event": "distribution.stage_executed",
                "stage": stage_index,
                "caller": caller[:10],
                "primary_paid": stage.total_primary,
                "secondary_swept": swept,
            },
        )

        return StageReceipt(
            stage=stage_index,
            executed_at=now,
            caller=caller.lower(),
            payouts=stage.payouts,
            secondary_swept=swept,
            sweep_to=stage.sweep_to,
        )
