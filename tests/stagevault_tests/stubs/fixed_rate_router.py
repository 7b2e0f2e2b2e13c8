"""
Fixed-rate exchange router used as the vault's swap collaborator in tests.

Quotes every hop with a fixed ``numerator / denominator`` rate, enforces
the deadline and minimum output like a real router, and settles through
the same token and native-ledger objects the vault uses.
"""

from __future__ import annotations

from typing import Callable, Dict, Sequence, Tuple

from stagevault.core.contracts.erc20 import ERC20Token
from stagevault.core.contracts.native_ledger import NativeLedger
from stagevault.core.vault_exceptions import VMExecutionError


class FixedRateRouter:
    def __init__(
        self,
        address: str,
        clock: Callable[[], int],
        native: NativeLedger,
        wrapped_native: str,
        tokens: Dict[str, ERC20Token],
        rates: Dict[Tuple[str, str], Tuple[int, int]],
    ) -> None:
        self.address = address.lower()
        self.clock = clock
        self.native = native
        self.wrapped_native = wrapped_native.lower()
        self.tokens = {address.lower(): token for address, token in tokens.items()}
        self.rates = {(a.lower(), b.lower()): rate for (a, b), rate in rates.items()}
        self.calls: list = []

    def quote(self, path: Sequence[str], amount: int) -> int:
        if len(path) < 2:
            raise VMExecutionError("Router: INVALID_PATH")
        for hop_in, hop_out in zip(path, path[1:]):
            try:
                numerator, denominator = self.rates[(hop_in.lower(), hop_out.lower())]
            except KeyError:
                raise VMExecutionError(f"Router: no pool for {hop_in}->{hop_out}")
            amount = amount * numerator // denominator
        return amount

    def _check(self, deadline: int, amount_out: int, amount_out_min: int) -> None:
        if self.clock() > deadline:
            raise VMExecutionError("Router: EXPIRED")
        if amount_out < amount_out_min:
            raise VMExecutionError("Router: INSUFFICIENT_OUTPUT_AMOUNT")

    def _pull(self, caller: str, token_address: str, amount: int) -> None:
        token = self.tokens[token_address.lower()]
        if not token.transfer_from(self.address, caller, self.address, amount):
            raise VMExecutionError("Router: TRANSFER_FROM_FAILED")

    def swap_exact_tokens_for_tokens_supporting_fee_on_transfer_tokens(
        self, caller, amount_in, amount_out_min, path, to, deadline
    ) -> None:
        self.calls.append(("tokens_for_tokens", list(path), amount_in, amount_out_min, deadline))
        self._pull(caller, path[0], amount_in)
        amount_out = self.quote(path, amount_in)
        self._check(deadline, amount_out, amount_out_min)
        self.tokens[path[-1].lower()].transfer(self.address, to, amount_out)

    def swap_exact_tokens_for_native_supporting_fee_on_transfer_tokens(
        self, caller, amount_in, amount_out_min, path, to, deadline
    ) -> None:
        self.calls.append(("tokens_for_native", list(path), amount_in, amount_out_min, deadline))
        if path[-1].lower() != self.wrapped_native:
            raise VMExecutionError("Router: INVALID_PATH")
        self._pull(caller, path[0], amount_in)
        amount_out = self.quote(path, amount_in)
        self._check(deadline, amount_out, amount_out_min)
        self.native.transfer(self.address, to, amount_out)

    def swap_exact_native_for_tokens_supporting_fee_on_transfer_tokens(
        self, caller, amount_out_min, path, to, deadline, value=0
    ) -> None:
        self.calls.append(("native_for_tokens", list(path), value, amount_out_min, deadline))
        if path[0].lower() != self.wrapped_native:
            raise VMExecutionError("Router: INVALID_PATH")
        amount_out = self.quote(path, value)
        self._check(deadline, amount_out, amount_out_min)
        self.tokens[path[-1].lower()].transfer(self.address, to, amount_out)

    def snapshot(self) -> dict:
        return {"calls": len(self.calls)}

    def restore(self, snapshot: dict) -> None:
        del self.calls[snapshot["calls"]:]
