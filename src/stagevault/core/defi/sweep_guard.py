"""
Controller asset recovery with a lockup on the tracked tokens.

The controller may pull any token out of the vault (tokens sent to it by
mistake, swap proceeds, leftover native value). The two tokens the
schedule pays out are protected: they cannot be recovered until
``admin_lockup_duration`` has passed since deployment, so the controller
cannot drain the schedule early.

The ecosystem lockup window is declared in the configuration and exposed
here read-only. No operation enforces it.
"""

from __future__ import annotations

import logging
from typing import Optional

from .. import safe_math
from ..protocols import FungibleToken, LegacyToken, NativeAssetLedger
from ..vault_exceptions import LockupNotExpired
from ..vault_state import VaultContext, checked_transfer
from .access_control import Ownable

logger = logging.getLogger(__name__)


class SweepGuard:
    """
    Lockup-gated recovery operations.

    Two token variants are supported and deliberately kept apart:
    ``recover_token`` requires a FungibleToken and treats a False return as
    TransferFailed; ``recover_legacy_token`` takes a LegacyToken whose
    transfer returns nothing, so a failed transfer there goes unnoticed.
    """

    def __init__(
        self,
        context: VaultContext,
        access: Ownable,
        native: Optional[NativeAssetLedger] = None,
    ) -> None:
        self.context = context
        self.access = access
        self.native = native

    # ==================== View Functions ====================

    def lockup_expires_at(self) -> int:
        """Last timestamp at which tracked tokens are still locked."""
        return safe_math.add(
            self.context.state.deployment_time, self.context.config.admin_lockup_duration
        )

    def ecosystem_unlock_time(self) -> int:
        """End of the declared (unenforced) ecosystem lockup window."""
        return safe_math.add(
            self.context.state.deployment_time, self.context.config.ecosystem_lockup_duration
        )

    def is_tracked(self, token_address: str) -> bool:
        return token_address.lower() in self.context.config.tracked_tokens

    def is_locked(self, token_address: str) -> bool:
        return self.is_tracked(token_address) and self.context.now() <= self.lockup_expires_at()

    # ==================== Recovery ====================

    def _authorize(self, caller: str, token_address: str, operation: str) -> None:
        self.access.require_controller(caller, operation)
        if self.is_locked(token_address):
            expires_at = self.lockup_expires_at()
            logger.warning(
                "Recovery of tracked token rejected: lockup active",
                extra={
                    "event": "sweep_guard.lockup_active",
                    "token": token_address[:10],
                    "expires_at": expires_at,
                },
            )
            raise LockupNotExpired(
                f"{operation}: tracked token locked until {expires_at}",
                details={"token": token_address, "expires_at": expires_at},
            )

    def recover_token(self, caller: str, token: FungibleToken, to: str, amount: int) -> None:
        """
        Transfer ``amount`` of ``token`` from the vault to ``to``.

        Raises:
            Unauthorized: If caller is not the controller
            LockupNotExpired: If token is tracked and the lockup is active
            TransferFailed: If the token returns False
        """
        self._authorize(caller, token.address, "recover_token")
        checked_transfer(token, self.context.address, to, amount)
        self._emit("TokenRecovered", token.address, to, amount, checked=True)

    def recover_legacy_token(self, caller: str, token: LegacyToken, to: str, amount: int) -> None:
        """
        Transfer ``amount`` of a legacy ``token`` from the vault to ``to``.

        The token reports no result. This call succeeds even when the token
        silently did not move the funds; callers must verify balances
        themselves if they need certainty.

        Raises:
            Unauthorized: If caller is not the controller
            LockupNotExpired: If token is tracked and the lockup is active
        """
        self._authorize(caller, token.address, "recover_legacy_token")
        token.transfer(self.context.address, to, amount)
        self._emit("TokenRecovered", token.address, to, amount, checked=False)

    def recover_native(self, caller: str, to: str, amount: int) -> None:
        """
        Transfer native value held by the vault to ``to``.

        Raises:
            Unauthorized: If caller is not the controller
            RuntimeError: If the vault was deployed without a native ledger
        """
        self.access.require_controller(caller, "recover_native")
        if self.native is None:
            raise RuntimeError("recover_native: vault has no native asset ledger")
        self.native.transfer(self.context.address, to, amount)
        self._emit("NativeRecovered", "native", to, amount, checked=True)

    def _emit(self, event_type: str, token_address: str, to: str, amount: int, checked: bool) -> None:
        self.context.emit(
            event_type, token=token_address.lower(), to=to.lower(), amount=amount, checked=checked
        )
        logger.info(
            "Asset recovered",
            extra={
                "event": "sweep_guard.recovered",
                "token": token_address[:10],
                "to": to[:10],
                "amount": amount,
                "checked": checked,
            },
        )
