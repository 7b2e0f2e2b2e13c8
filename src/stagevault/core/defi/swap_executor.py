"""
Controller-triggered conversion of primary tokens through an exchange.

Both routes are two legs through an external router:

- via native: primary -> native asset (wrapped-native path), then the
  native proceeds are paid into the router to buy the target token
- via stable: primary -> stable token, then stable -> target token

Each leg approves the router for exactly the amount it sends, passes the
fixed minimum-output floor and a deadline a fixed offset from now. Proceeds
land back in the vault; if the target is the secondary token they become
part of the final-stage sweep. A failing leg fails the whole swap and the
vault transaction restores every balance. There is no retry.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from .. import safe_math
from ..protocols import ExchangeRouter, FungibleToken, NativeAssetLedger
from ..vault_state import VaultContext, checked_approve
from .access_control import Ownable

logger = logging.getLogger(__name__)

ROUTE_NATIVE = "native"
ROUTE_STABLE = "stable"


@dataclass(frozen=True)
class SwapReceipt:
    """Outcome of a committed swap, measured as vault balance deltas."""

    route: str
    amount_in: int
    intermediate_received: int
    target_token: str
    target_received: int
    deadline: int


class SwapExecutor:
    """
    Two-leg swaps of the vault's primary token.

    Args:
        context: Shared vault context
        access: Controller registry guarding both swaps
        router: Exchange collaborator
        primary_token: Token sold in the first leg
        native: Native asset ledger (required for the native route)
        stable_token: Stable intermediate token (required for the stable route)
    """

    def __init__(
        self,
        context: VaultContext,
        access: Ownable,
        router: ExchangeRouter,
        primary_token: FungibleToken,
        native: Optional[NativeAssetLedger] = None,
        stable_token: Optional[FungibleToken] = None,
    ) -> None:
        self.context = context
        self.access = access
        self.router = router
        self.primary_token = primary_token
        self.native = native
        self.stable_token = stable_token

    def deadline(self) -> int:
        return safe_math.add(self.context.now(), self.context.config.swap_deadline_seconds)

    def _validate(self, caller: str, amount_in: int, operation: str) -> None:
        self.access.require_controller(caller, operation)
        if isinstance(amount_in, bool) or not isinstance(amount_in, int) or amount_in <= 0:
            raise ValueError(f"{operation}: amount_in must be a positive integer")

    def swap_via_native(
        self, caller: str, amount_in: int, target_token: FungibleToken
    ) -> SwapReceipt:
        """
        Sell ``amount_in`` primary tokens for native value, then buy
        ``target_token`` with exactly the native value received.

        Raises:
            Unauthorized: If caller is not the controller
            TransferFailed: If the primary token rejects the approval
        """
        self._validate(caller, amount_in, "swap_via_native")
        if self.native is None:
            raise RuntimeError("swap_via_native: vault has no native asset ledger")

        config = self.context.config
        vault = self.context.address
        deadline = self.deadline()

        # Leg 1: primary -> native
        checked_approve(self.primary_token, vault, self.router.address, amount_in)
        native_before = self.native.balance_of(vault)
        self.router.swap_exact_tokens_for_native_supporting_fee_on_transfer_tokens(
            vault,
            amount_in,
            config.swap_min_output,
            [self.primary_token.address, config.wrapped_native],
            vault,
            deadline,
        )
        native_received = safe_math.sub(self.native.balance_of(vault), native_before)

        # Leg 2: native -> target (payable)
        target_before = target_token.balance_of(vault)
        self.native.transfer(vault, self.router.address, native_received)
        self.router.swap_exact_native_for_tokens_supporting_fee_on_transfer_tokens(
            vault,
            config.swap_min_output,
            [config.wrapped_native, target_token.address],
            vault,
            deadline,
            value=native_received,
        )
        target_received = safe_math.sub(target_token.balance_of(vault), target_before)

        return self._finish(ROUTE_NATIVE, amount_in, native_received, target_token, target_received, deadline)

    def swap_via_stable(
        self, caller: str, amount_in: int, target_token: FungibleToken
    ) -> SwapReceipt:
        """
        Sell ``amount_in`` primary tokens for the stable token, then sell
        the stable tokens received for ``target_token``.

        Raises:
            Unauthorized: If caller is not the controller
            TransferFailed: If either token rejects its approval
        """
        self._validate(caller, amount_in, "swap_via_stable")
        if self.stable_token is None:
            raise RuntimeError("swap_via_stable: vault has no stable token collaborator")

        config = self.context.config
        vault = self.context.address
        deadline = self.deadline()

        # Leg 1: primary -> stable
        checked_approve(self.primary_token, vault, self.router.address, amount_in)
        stable_before = self.stable_token.balance_of(vault)
        self.router.swap_exact_tokens_for_tokens_supporting_fee_on_transfer_tokens(
            vault,
            amount_in,
            config.swap_min_output,
            [self.primary_token.address, self.stable_token.address],
            vault,
            deadline,
        )
        stable_received = safe_math.sub(self.stable_token.balance_of(vault), stable_before)

        # Leg 2: stable -> target
        checked_approve(self.stable_token, vault, self.router.address, stable_received)
        target_before = target_token.balance_of(vault)
        self.router.swap_exact_tokens_for_tokens_supporting_fee_on_transfer_tokens(
            vault,
            stable_received,
            config.swap_min_output,
            [self.stable_token.address, target_token.address],
            vault,
            deadline,
        )
        target_received = safe_math.sub(target_token.balance_of(vault), target_before)

        return self._finish(ROUTE_STABLE, amount_in, stable_received, target_token, target_received, deadline)

    def _finish(
        self,
        route: str,
        amount_in: int,
        intermediate_received: int,
        target_token: FungibleToken,
        target_received: int,
        deadline: int,
    ) -> SwapReceipt:
        receipt = SwapReceipt(
            route=route,
            amount_in=amount_in,
            intermediate_received=intermediate_received,
            target_token=target_token.address.lower(),
            target_received=target_received,
            deadline=deadline,
        )
        self.context.emit(
            "SwapExecuted",
            route=route,
            amount_in=amount_in,
            intermediate_received=intermediate_received,
            target_token=receipt.target_token,
            target_received=target_received,
        )
        logger.info(
            "Swap executed",
            extra={
                "event": "swap.executed",
                "route": route,
                "amount_in": amount_in,
                "intermediate_received": intermediate_received,
                "target": receipt.target_token[:10],
                "target_received": target_received,
            },
        )
        return receipt
