"""
Shared vault state and the context passed to every vault component.

The schedule counters, the event log and the clock live on one
VaultContext owned by the vault instance. Components receive the context
by reference instead of reaching for module-level state, and the
transaction journal snapshots it like any other participant.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List

from .config import VaultConfig
from .protocols import Clock, FungibleToken
from .vault_exceptions import TransferFailed

logger = logging.getLogger(__name__)


def system_clock() -> int:
    """Wall-clock seconds, truncated like a block timestamp."""
    return int(time.time())


class ManualClock:
    """Clock that only moves when told to (simulations and tests)."""

    def __init__(self, start: int = 0) -> None:
        self.current = start

    def __call__(self) -> int:
        return self.current

    def set(self, timestamp: int) -> None:
        if timestamp < self.current:
            raise ValueError(f"clock cannot move backwards ({timestamp} < {self.current})")
        self.current = timestamp

    def advance(self, seconds: int) -> int:
        self.set(self.current + seconds)
        return self.current


@dataclass
class ScheduleState:
    """
    Mutable distribution schedule.

    Invariants:
    - stage_count only increases, by exactly one per executed stage
    - stage_count never exceeds the number of stages
    - last_claim_time changes only when a stage executes
    """

    deployment_time: int
    last_claim_time: int
    stage_count: int = 0
    # Secondary balance read during the final stage; 0 until then
    secondary_snapshot: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "stage_count": self.stage_count,
            "last_claim_time": self.last_claim_time,
            "deployment_time": self.deployment_time,
            "secondary_snapshot": self.secondary_snapshot,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ScheduleState":
        return cls(
            deployment_time=int(data["deployment_time"]),
            last_claim_time=int(data.get("last_claim_time", data["deployment_time"])),
            stage_count=int(data.get("stage_count", 0)),
            secondary_snapshot=int(data.get("secondary_snapshot", 0)),
        )


@dataclass
class VaultEvent:
    """A notification emitted by a committed vault operation."""

    event_type: str
    data: Dict[str, Any]
    timestamp: int


@dataclass
class VaultContext:
    """Everything a vault component needs to act on behalf of the vault."""

    address: str
    config: VaultConfig
    state: ScheduleState
    clock: Clock = system_clock
    events: List[VaultEvent] = field(default_factory=list)

    def now(self) -> int:
        current = self.clock()
        if isinstance(current, bool) or not isinstance(current, int) or current < 0:
            raise ValueError(f"clock must return a non-negative integer, got {current!r}")
        return current

    def emit(self, event_type: str, **data: Any) -> VaultEvent:
        event = VaultEvent(event_type=event_type, data=data, timestamp=self.now())
        self.events.append(event)
        return event

    def snapshot(self) -> dict:
        return {"state": self.state.to_dict(), "event_count": len(self.events)}

    def restore(self, snapshot: dict) -> None:
        restored = ScheduleState.from_dict(snapshot["state"])
        self.state.stage_count = restored.stage_count
        self.state.last_claim_time = restored.last_claim_time
        self.state.deployment_time = restored.deployment_time
        self.state.secondary_snapshot = restored.secondary_snapshot
        del self.events[snapshot["event_count"]:]


def checked_transfer(token: FungibleToken, sender: str, recipient: str, amount: int) -> None:
    """
    Call ``token.transfer`` and require an explicit success signal.

    Raises:
        TransferFailed: If the token returns anything but True
    """
    if token.transfer(sender, recipient, amount) is not True:
        logger.error(
            "Token transfer reported failure",
            extra={
                "event": "vault.transfer_failed",
                "token": token.address[:10],
                "to": recipient[:10],
                "amount": amount,
            },
        )
        raise TransferFailed(
            f"transfer of {amount} to {recipient} failed",
            details={"token": token.address, "to": recipient, "amount": amount},
        )


def checked_approve(token: FungibleToken, owner: str, spender: str, amount: int) -> None:
    """
    Call ``token.approve`` and require an explicit success signal.

    Raises:
        TransferFailed: If the token returns anything but True
    """
    if token.approve(owner, spender, amount) is not True:
        logger.error(
            "Token approval reported failure",
            extra={
                "event": "vault.approve_failed",
                "token": token.address[:10],
                "spender": spender[:10],
                "amount": amount,
            },
        )
        raise TransferFailed(
            f"approval of {amount} for {spender} failed",
            details={"token": token.address, "spender": spender, "amount": amount},
        )
