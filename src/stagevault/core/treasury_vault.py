"""
StageVault - Staged Treasury

The deployed vault: one instance owns the schedule state, the controller
and references to its collaborators, and exposes the public operations.

Every public operation:
- is guarded against re-entry from collaborator calls
- runs inside a journal transaction, so it either fully commits or leaves
  the vault and every journaled collaborator exactly as it found them
- records Prometheus metrics only after it commits

Usage:
    vault = StagedTreasury(config, deployer, primary, secondary, clock=clock)
    receipt = vault.advance_stage(anyone)
"""

from __future__ import annotations

import hashlib
import logging
import threading
from typing import Any, Callable, Dict, Optional, Tuple, TypeVar

from . import treasury_metrics
from .config import VaultConfig
from .constants import STAGE_COUNT
from .contracts.state_journal import StateJournal, non_reentrant
from .defi.access_control import Ownable
from .defi.distribution import DistributionScheduler, PayoutStage, StageReceipt
from .defi.swap_executor import SwapExecutor, SwapReceipt
from .defi.sweep_guard import SweepGuard
from .protocols import (
    Clock,
    ExchangeRouter,
    FungibleToken,
    Journaled,
    LegacyToken,
    NativeAssetLedger,
)
from .vault_exceptions import InvalidConfiguration
from .vault_state import ScheduleState, VaultContext, VaultEvent, system_clock

logger = logging.getLogger(__name__)

T = TypeVar("T")


class StagedTreasury:
    """
    Treasury holding a primary and a secondary token and releasing them
    to four beneficiaries over four time-gated stages.

    Args:
        config: Immutable deployment configuration
        deployer: Address deploying the vault; becomes the controller
        primary_token: Collaborator for the primary tracked token
        secondary_token: Collaborator for the secondary tracked token
        address: Vault address (derived from deployer and time when empty)
        router: Exchange router for swaps (optional)
        native: Native asset ledger (optional; needed for native routes)
        stable_token: Stable intermediate token (optional)
        clock: Zero-argument callable returning integer seconds
        stages: Prebuilt stage table (built from config when omitted)
        state: Restored schedule state (fresh deployment when omitted)

    Raises:
        InvalidConfiguration: A collaborator address differs from the config,
            or a collaborator cannot be snapshotted and restored
    """

    def __init__(
        self,
        config: VaultConfig,
        deployer: str,
        primary_token: FungibleToken,
        secondary_token: FungibleToken,
        *,
        address: str = "",
        router: Optional[ExchangeRouter] = None,
        native: Optional[NativeAssetLedger] = None,
        stable_token: Optional[FungibleToken] = None,
        clock: Clock = system_clock,
        stages: Optional[Tuple[PayoutStage, ...]] = None,
        state: Optional[ScheduleState] = None,
    ) -> None:
        self._check_collaborator("primary_token", primary_token.address, config.primary_token)
        self._check_collaborator("secondary_token", secondary_token.address, config.secondary_token)
        if router is not None:
            self._check_collaborator("router", router.address, config.router)
        if stable_token is not None:
            self._check_collaborator("stable_asset", stable_token.address, config.stable_asset)
        collaborators = [
            self._require_journaled(name, collaborator)
            for name, collaborator in (
                ("primary_token", primary_token),
                ("secondary_token", secondary_token),
                ("native", native),
                ("stable_token", stable_token),
                ("router", router),
            )
            if collaborator is not None
        ]

        if state is None:
            deployed_at = int(clock())
            state = ScheduleState(deployment_time=deployed_at, last_claim_time=deployed_at)
        elif not 0 <= state.stage_count <= STAGE_COUNT:
            raise InvalidConfiguration(
                f"restored stage_count {state.stage_count} outside [0, {STAGE_COUNT}]"
            )

        if not address:
            addr_input = f"stagevault:{deployer.lower()}:{state.deployment_time}".encode()
            address = f"0x{hashlib.sha3_256(addr_input).digest()[-20:].hex()}"

        self.context = VaultContext(address=address.lower(), config=config, state=state, clock=clock)
        self.primary_token = primary_token
        self.secondary_token = secondary_token
        self.router = router
        self.native = native
        self.stable_token = stable_token

        self.access = Ownable(self.context, controller=deployer)
        self.scheduler = DistributionScheduler(self.context, primary_token, secondary_token, stages)
        self.guard = SweepGuard(self.context, self.access, native)
        self.swaps = (
            SwapExecutor(self.context, self.access, router, primary_token, native, stable_token)
            if router is not None
            else None
        )

        self.journal = StateJournal()
        self.journal.register(self.context)
        self.journal.register(self.access)
        for collaborator in collaborators:
            self.journal.register(collaborator)

        self._call_lock = threading.RLock()
        self._entered = False

        logger.info(
            "Staged treasury deployed",
            extra={
                "event": "vault.deployed",
                "address": self.address[:10],
                "controller": self.controller[:10],
                "deployment_time": state.deployment_time,
                "stage_count": state.stage_count,
            },
        )

    @staticmethod
    def _check_collaborator(name: str, actual: str, expected: str) -> None:
        if actual.lower() != expected:
            raise InvalidConfiguration(
                f"{name} collaborator address {actual} does not match config {expected}",
                details={"collaborator": name, "actual": actual, "expected": expected},
            )

    @staticmethod
    def _require_journaled(name: str, collaborator: Any) -> Any:
        """Reject collaborators whose state a failed operation could not roll back."""
        if not isinstance(collaborator, Journaled):
            raise InvalidConfiguration(
                f"{name} collaborator {type(collaborator).__name__} does not implement snapshot()/restore()",
                details={"collaborator": name, "type": type(collaborator).__name__},
            )
        return collaborator

    # ==================== Read Surface ====================

    @property
    def address(self) -> str:
        return self.context.address

    @property
    def config(self) -> VaultConfig:
        return self.context.config

    @property
    def controller(self) -> str:
        return self.access.controller

    @property
    def stage_count(self) -> int:
        return self.context.state.stage_count

    @property
    def last_claim_time(self) -> int:
        return self.context.state.last_claim_time

    @property
    def deployment_time(self) -> int:
        return self.context.state.deployment_time

    @property
    def secondary_snapshot(self) -> int:
        return self.context.state.secondary_snapshot

    @property
    def primary_token_address(self) -> str:
        return self.config.primary_token

    @property
    def secondary_token_address(self) -> str:
        return self.config.secondary_token

    @property
    def beneficiaries(self) -> Tuple[str, ...]:
        return self.config.beneficiaries

    @property
    def events(self) -> Tuple[VaultEvent, ...]:
        return tuple(self.context.events)

    def primary_balance(self) -> int:
        return self.primary_token.balance_of(self.address)

    def secondary_balance(self) -> int:
        return self.secondary_token.balance_of(self.address)

    def status(self) -> Dict[str, Any]:
        """Snapshot of the public read surface."""
        return {
            "address": self.address,
            "controller": self.controller,
            "stage_count": self.stage_count,
            "terminal": self.scheduler.is_terminal,
            "last_claim_time": self.last_claim_time,
            "deployment_time": self.deployment_time,
            "next_eligible_time": self.scheduler.next_eligible_time(),
            "secondary_snapshot": self.secondary_snapshot,
            "primary_balance": self.primary_balance(),
            "secondary_balance": self.secondary_balance(),
            "admin_lockup_expires_at": self.guard.lockup_expires_at(),
            "ecosystem_unlock_time": self.guard.ecosystem_unlock_time(),
        }

    # ==================== Operations ====================

    def _run(self, operation: str, action: Callable[[], T], extra: Tuple[Journaled, ...] = ()) -> T:
        try:
            with self.journal.transaction(operation, extra=extra):
                return action()
        except Exception as exc:
            treasury_metrics.record_rejection(operation, type(exc).__name__)
            raise

    @non_reentrant
    def advance_stage(self, caller: str) -> StageReceipt:
        """Execute the next distribution stage. Open to any caller."""
        receipt = self._run("advance_stage", lambda: self.scheduler.advance_stage(caller))
        treasury_metrics.record_stage(
            self.address,
            receipt.stage,
            [(payout.beneficiary, payout.amount) for payout in receipt.payouts],
            receipt.secondary_swept,
        )
        return receipt

    @non_reentrant
    def transfer_control(self, caller: str, new_controller: str) -> str:
        """Hand the controller role over; returns the previous controller."""
        return self._run(
            "transfer_control", lambda: self.access.transfer_control(caller, new_controller)
        )

    @non_reentrant
    def recover_token(self, caller: str, token: FungibleToken, to: str, amount: int) -> None:
        """Controller-only recovery of a standard token (lockup-gated if tracked)."""
        self._run(
            "recover_token",
            lambda: self.guard.recover_token(caller, token, to, amount),
            extra=(token,) if isinstance(token, Journaled) else (),
        )
        treasury_metrics.record_recovery("token")

    @non_reentrant
    def recover_legacy_token(self, caller: str, token: LegacyToken, to: str, amount: int) -> None:
        """Controller-only recovery of a legacy token; failure is undetectable."""
        self._run(
            "recover_legacy_token",
            lambda: self.guard.recover_legacy_token(caller, token, to, amount),
            extra=(token,) if isinstance(token, Journaled) else (),
        )
        treasury_metrics.record_recovery("legacy_token")

    @non_reentrant
    def recover_native(self, caller: str, to: str, amount: int) -> None:
        """Controller-only recovery of native value held by the vault."""
        self._run("recover_native", lambda: self.guard.recover_native(caller, to, amount))
        treasury_metrics.record_recovery("native")

    @non_reentrant
    def swap_via_native(self, caller: str, amount_in: int, target_token: FungibleToken) -> SwapReceipt:
        """Controller-only primary -> native -> target swap."""
        swaps = self._require_swaps("swap_via_native")
        target = self._require_journaled("target_token", target_token)
        receipt = self._run(
            "swap_via_native",
            lambda: swaps.swap_via_native(caller, amount_in, target_token),
            extra=(target,),
        )
        treasury_metrics.record_swap(receipt.route)
        return receipt

    @non_reentrant
    def swap_via_stable(self, caller: str, amount_in: int, target_token: FungibleToken) -> SwapReceipt:
        """Controller-only primary -> stable -> target swap."""
        swaps = self._require_swaps("swap_via_stable")
        target = self._require_journaled("target_token", target_token)
        receipt = self._run(
            "swap_via_stable",
            lambda: swaps.swap_via_stable(caller, amount_in, target_token),
            extra=(target,),
        )
        treasury_metrics.record_swap(receipt.route)
        return receipt

    def _require_swaps(self, operation: str) -> SwapExecutor:
        if self.swaps is None:
            raise RuntimeError(f"{operation}: vault was deployed without an exchange router")
        return self.swaps

    # ==================== Serialization ====================

    def to_dict(self) -> Dict[str, Any]:
        """Serialize vault state (collaborator state is not included)."""
        return {
            "address": self.address,
            "controller": self.controller,
            "config": self.config.to_dict(),
            "state": self.context.state.to_dict(),
        }

    @classmethod
    def from_dict(
        cls,
        data: Dict[str, Any],
        primary_token: FungibleToken,
        secondary_token: FungibleToken,
        **collaborators: Any,
    ) -> "StagedTreasury":
        """
        Rebuild a vault from ``to_dict`` output.

        Collaborators (tokens, router, native ledger, clock) are supplied by
        the caller; only the vault's own state is restored.
        """
        return cls(
            VaultConfig.from_dict(data["config"]),
            data["controller"],
            primary_token,
            secondary_token,
            address=data["address"],
            state=ScheduleState.from_dict(data["state"]),
            **collaborators,
        )
