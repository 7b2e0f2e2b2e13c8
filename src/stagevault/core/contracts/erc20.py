"""
Bundled token collaborators.

The vault talks to tokens only through the FungibleToken / LegacyToken
protocols. These in-memory implementations back the CLI simulation and the
test suite:

- ERC20Token: ``transfer``/``approve``/``transfer_from`` report success with
  True. A failed call reverts (VMExecutionError) unless the token is built
  with ``revert_on_failure=False``, in which case it answers False the way
  older tokens do.
- LegacyERC20Token: ``transfer`` has no return value and a transfer the
  holder cannot cover is dropped without any signal.

Both take part in vault transactions through snapshot()/restore().
"""

from __future__ import annotations

import hashlib
import itertools
import logging
from dataclasses import dataclass, field
from typing import Dict, List

from .. import safe_math
from ..constants import ZERO_ADDRESS
from ..vault_exceptions import VMExecutionError

logger = logging.getLogger(__name__)

_deploy_nonce = itertools.count()


@dataclass
class TokenEvent:
    event_type: str  # Transfer | Approval
    source: str
    target: str
    value: int


@dataclass
class ERC20Token:
    """
    In-memory fungible token keyed by lowercase address.

    The first argument of every state-changing method is the account
    acting as msg.sender.
    """

    name: str
    symbol: str
    total_supply: int = 0
    address: str = ""
    owner: str = ""
    balances: Dict[str, int] = field(default_factory=dict)
    allowances: Dict[str, Dict[str, int]] = field(default_factory=dict)
    events: List[TokenEvent] = field(default_factory=list)
    revert_on_failure: bool = True

    def __post_init__(self) -> None:
        if not self.address:
            seed = f"token:{self.symbol}:{self.name}:{next(_deploy_nonce)}".encode()
            self.address = "0x" + hashlib.sha3_256(seed).digest()[-20:].hex()
        self.address = self.address.lower()
        self.owner = self.owner.lower()

    # -- reads --

    def balance_of(self, account: str) -> int:
        return self.balances.get(account.lower(), 0)

    def allowance(self, owner: str, spender: str) -> int:
        return self.allowances.get(owner.lower(), {}).get(spender.lower(), 0)

    # -- writes --

    def transfer(self, sender: str, recipient: str, amount: int) -> bool:
        """
        Move ``amount`` from ``sender`` to ``recipient``.

        Raises:
            VMExecutionError: Bad recipient or amount, or (when reverting)
                an uncovered transfer
        """
        source, target = sender.lower(), self._recipient(recipient)
        self._check_amount(amount)
        held = self.balance_of(source)
        if held < amount:
            return self._reject(f"ERC20: transfer amount exceeds balance ({amount} > {held})")
        self._move(source, target, amount)
        return True

    def approve(self, owner: str, spender: str, amount: int) -> bool:
        holder, delegate = owner.lower(), self._recipient(spender, role="spender")
        self._check_amount(amount)
        self.allowances.setdefault(holder, {})[delegate] = amount
        self.events.append(TokenEvent("Approval", holder, delegate, amount))
        return True

    def transfer_from(self, spender: str, from_addr: str, to_addr: str, amount: int) -> bool:
        """
        Spend part of the allowance ``from_addr`` granted to ``spender``.

        An allowance of UINT256_MAX is treated as unlimited and never
        decremented.
        """
        delegate, source = spender.lower(), from_addr.lower()
        target = self._recipient(to_addr)
        self._check_amount(amount)

        granted = self.allowance(source, delegate)
        if granted < amount:
            return self._reject(f"ERC20: insufficient allowance ({granted} < {amount})")
        held = self.balance_of(source)
        if held < amount:
            return self._reject(f"ERC20: transfer amount exceeds balance ({amount} > {held})")

        if granted != safe_math.UINT256_MAX:
            self.allowances[source][delegate] = safe_math.sub(granted, amount)
        self._move(source, target, amount)
        return True

    def mint(self, minter: str, to: str, amount: int) -> bool:
        """Create ``amount`` new tokens for ``to``. Only the owner may mint."""
        if minter.lower() != self.owner:
            raise VMExecutionError(f"ERC20: {minter} is not the {self.symbol} owner")
        target = self._recipient(to)
        self._check_amount(amount)

        self.total_supply = safe_math.add(self.total_supply, amount)
        self.balances[target] = safe_math.add(self.balance_of(target), amount)
        self.events.append(TokenEvent("Transfer", ZERO_ADDRESS, target, amount))
        logger.info(
            "Tokens minted",
            extra={
                "event": "token.minted",
                "symbol": self.symbol,
                "to": target[:10],
                "amount": amount,
                "supply": self.total_supply,
            },
        )
        return True

    # -- journal --

    def snapshot(self) -> dict:
        return {
            "supply": self.total_supply,
            "balances": dict(self.balances),
            "allowances": {holder: dict(grants) for holder, grants in self.allowances.items()},
            "events": len(self.events),
        }

    def restore(self, snapshot: dict) -> None:
        self.total_supply = snapshot["supply"]
        self.balances = dict(snapshot["balances"])
        self.allowances = {holder: dict(grants) for holder, grants in snapshot["allowances"].items()}
        del self.events[snapshot["events"]:]

    # -- internals --

    def _move(self, source: str, target: str, amount: int) -> None:
        self.balances[source] = safe_math.sub(self.balance_of(source), amount)
        self.balances[target] = safe_math.add(self.balance_of(target), amount)
        self.events.append(TokenEvent("Transfer", source, target, amount))
        logger.debug(
            "Tokens moved",
            extra={
                "event": "token.moved",
                "symbol": self.symbol,
                "from": source[:10],
                "to": target[:10],
                "amount": amount,
            },
        )

    def _reject(self, reason: str) -> bool:
        if self.revert_on_failure:
            raise VMExecutionError(reason)
        logger.debug(
            "Token call answered false",
            extra={"event": "token.returned_false", "symbol": self.symbol, "reason": reason},
        )
        return False

    @staticmethod
    def _recipient(address: str, role: str = "recipient") -> str:
        normalized = (address or "").lower()
        if not normalized or normalized == ZERO_ADDRESS:
            raise VMExecutionError(f"ERC20: {role} is the zero address")
        return normalized

    @staticmethod
    def _check_amount(amount: int) -> None:
        if not 0 <= amount <= safe_math.UINT256_MAX:
            raise VMExecutionError(f"ERC20: amount {amount} outside uint256 range")


@dataclass
class LegacyERC20Token(ERC20Token):
    """Token whose transfer gives no success signal and fails silently."""

    def transfer(self, sender: str, recipient: str, amount: int) -> None:  # type: ignore[override]
        source, target = sender.lower(), self._recipient(recipient)
        self._check_amount(amount)
        if self.balance_of(source) < amount:
            logger.debug(
                "Legacy transfer dropped",
                extra={"event": "token.legacy_dropped", "symbol": self.symbol, "amount": amount},
            )
            return
        self._move(source, target, amount)


def create_token(
    creator: str,
    name: str,
    symbol: str,
    *,
    address: str = "",
    initial_supply: int = 0,
    mint_to: str | None = None,
    legacy: bool = False,
) -> ERC20Token:
    """
    Deploy a token owned by ``creator``.

    Args:
        creator: Owner of the new token (the only account allowed to mint)
        name: Token name
        symbol: Ticker
        address: Fixed address; derived from a deploy nonce when empty
        initial_supply: Amount minted at creation
        mint_to: Receiver of the initial supply (defaults to creator)
        legacy: Deploy a LegacyERC20Token

    Raises:
        VMExecutionError: On an empty name or symbol or a negative
            initial supply
    """
    if not name or not symbol:
        raise VMExecutionError("token name and symbol are required")
    if initial_supply < 0:
        raise VMExecutionError("initial supply cannot be negative")

    token_cls = LegacyERC20Token if legacy else ERC20Token
    token = token_cls(name=name, symbol=symbol, address=address, owner=creator)
    if initial_supply:
        token.mint(creator, mint_to or creator, initial_supply)

    logger.info(
        "Token deployed",
        extra={
            "event": "token.deployed",
            "address": token.address[:10],
            "symbol": symbol,
            "legacy": legacy,
        },
    )
    return token


__all__ = ["ZERO_ADDRESS", "TokenEvent", "ERC20Token", "LegacyERC20Token", "create_token"]
