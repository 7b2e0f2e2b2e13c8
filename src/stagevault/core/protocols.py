"""
StageVault - Collaborator Protocol Interfaces

This module defines Protocol interfaces for the external components the
vault calls into: fungible tokens, the native asset ledger and the
exchange router. Using Protocol (from typing) allows for structural
subtyping, enabling:
- Mock and in-memory implementations in tests
- Dependency injection without class inheritance
- A distinct, weaker type for legacy tokens that cannot report failure

Security Notes:
- Every call into a collaborator is a point where control leaves the vault.
  The vault applies its own effects before these calls and guards against
  re-entry.
"""

from __future__ import annotations

from typing import Callable, Protocol, Sequence, runtime_checkable

Clock = Callable[[], int]


@runtime_checkable
class FungibleToken(Protocol):
    """
    Protocol for a standard fungible token whose state-changing calls
    report success with a boolean.
    """

    address: str

    def balance_of(self, account: str) -> int:
        """Return the token balance held by ``account``."""
        ...

    def transfer(self, sender: str, recipient: str, amount: int) -> bool:
        """
        Move ``amount`` from ``sender`` (msg.sender) to ``recipient``.

        Returns:
            True on success, False if the token rejected the transfer
        """
        ...

    def approve(self, owner: str, spender: str, amount: int) -> bool:
        """Allow ``spender`` to move up to ``amount`` of ``owner``'s tokens."""
        ...

    def transfer_from(self, spender: str, from_addr: str, to_addr: str, amount: int) -> bool:
        """Move tokens on behalf of ``from_addr`` using an allowance."""
        ...


@runtime_checkable
class LegacyToken(Protocol):
    """
    Protocol for a legacy token whose ``transfer`` returns nothing.

    A failed transfer is indistinguishable from a successful one. Callers
    holding a LegacyToken must not assume funds moved.
    """

    address: str

    def balance_of(self, account: str) -> int:
        ...

    def transfer(self, sender: str, recipient: str, amount: int) -> None:
        ...


@runtime_checkable
class NativeAssetLedger(Protocol):
    """Protocol for the execution environment's native asset balances."""

    def balance_of(self, account: str) -> int:
        ...

    def transfer(self, sender: str, recipient: str, amount: int) -> None:
        """Move native value; raises if ``sender`` cannot cover ``amount``."""
        ...


@runtime_checkable
class ExchangeRouter(Protocol):
    """
    Protocol for a route-based exchange router.

    All entry points are the fee-on-transfer tolerant forms: they make no
    assumption that the amount received equals the amount sent, and they
    return nothing. Callers measure proceeds as balance deltas.
    """

    address: str

    def swap_exact_tokens_for_tokens_supporting_fee_on_transfer_tokens(
        self,
        caller: str,
        amount_in: int,
        amount_out_min: int,
        path: Sequence[str],
        to: str,
        deadline: int,
    ) -> None:
        ...

    def swap_exact_tokens_for_native_supporting_fee_on_transfer_tokens(
        self,
        caller: str,
        amount_in: int,
        amount_out_min: int,
        path: Sequence[str],
        to: str,
        deadline: int,
    ) -> None:
        ...

    def swap_exact_native_for_tokens_supporting_fee_on_transfer_tokens(
        self,
        caller: str,
        amount_out_min: int,
        path: Sequence[str],
        to: str,
        deadline: int,
        value: int = 0,
    ) -> None:
        """
        Payable: the execution environment has already moved ``value``
        native units from ``caller`` to the router before this call.
        """
        ...


@runtime_checkable
class Journaled(Protocol):
    """
    Protocol for collaborators whose state can be captured and restored
    by the vault's transaction journal.
    """

    def snapshot(self) -> dict:
        ...

    def restore(self, snapshot: dict) -> None:
        ...


__all__ = [
    "Clock",
    "FungibleToken",
    "LegacyToken",
    "NativeAssetLedger",
    "ExchangeRouter",
    "Journaled",
]
