"""
Native asset balances of the execution environment.

Swaps routed through the native asset credit the vault here and spend
from here. The ledger participates in vault transactions through
snapshot()/restore().
"""

from __future__ import annotations

import logging
from typing import Dict

from .. import safe_math
from ..vault_exceptions import VMExecutionError

logger = logging.getLogger(__name__)


class NativeLedger:
    """In-memory native asset balances keyed by lowercase address."""

    def __init__(self, balances: Dict[str, int] | None = None) -> None:
        self.balances: Dict[str, int] = {
            address.lower(): amount for address, amount in (balances or {}).items()
        }

    def balance_of(self, account: str) -> int:
        return self.balances.get(account.lower(), 0)

    def credit(self, account: str, amount: int) -> None:
        """Create native value out of thin air (genesis / test funding)."""
        account_norm = account.lower()
        self.balances[account_norm] = safe_math.add(self.balances.get(account_norm, 0), amount)

    def transfer(self, sender: str, recipient: str, amount: int) -> None:
        """
        Move native value between accounts.

        Raises:
            VMExecutionError: If the sender cannot cover the amount
        """
        sender_norm = sender.lower()
        recipient_norm = recipient.lower()
        available = self.balances.get(sender_norm, 0)
        if available < amount:
            raise VMExecutionError(
                f"Native transfer amount exceeds balance ({amount} > {available})"
            )
        self.balances[sender_norm] = safe_math.sub(available, amount)
        self.balances[recipient_norm] = safe_math.add(self.balances.get(recipient_norm, 0), amount)

        logger.debug(
            "Native transfer",
            extra={
                "event": "native.transfer",
                "from": sender_norm[:10],
                "to": recipient_norm[:10],
                "amount": amount,
            },
        )

    def snapshot(self) -> dict:
        return {"balances": dict(self.balances)}

    def restore(self, snapshot: dict) -> None:
        self.balances = dict(snapshot["balances"])


__all__ = ["NativeLedger"]
