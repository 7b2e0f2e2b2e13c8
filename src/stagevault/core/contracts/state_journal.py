"""
Transactional execution environment for vault operations.

Each public vault operation runs as one indivisible unit: the journal
snapshots the vault and every registered collaborator before the
operation starts and restores all of them if any exception escapes, so a
caller observes either total success or no change at all.

``non_reentrant`` complements the journal. Collaborator calls hand control
to code outside the vault; a guarded method that is entered again before
the outer call returns raises ReentrantCall instead of running on a
half-applied state.
"""

from __future__ import annotations

import functools
import logging
from contextlib import contextmanager
from typing import Iterable, Iterator, List, Tuple

from ..protocols import Journaled
from ..vault_exceptions import ReentrantCall

logger = logging.getLogger(__name__)


class StateJournal:
    """
    Snapshot/restore coordinator for a set of participants.

    Participants implement ``snapshot() -> dict`` and ``restore(dict)``.
    Nested transactions join the outermost one; only the outermost
    transaction restores on failure.
    """

    def __init__(self) -> None:
        self._participants: List[Journaled] = []
        self._depth = 0

    @property
    def participants(self) -> Tuple[Journaled, ...]:
        return tuple(self._participants)

    @property
    def active(self) -> bool:
        return self._depth > 0

    def register(self, participant: Journaled) -> None:
        """Add a participant; registering the same object twice is a no-op."""
        if not isinstance(participant, Journaled):
            raise TypeError(
                f"{type(participant).__name__} does not implement snapshot()/restore()"
            )
        if any(existing is participant for existing in self._participants):
            return
        self._participants.append(participant)

    @contextmanager
    def transaction(self, label: str, extra: Iterable[Journaled] = ()) -> Iterator[None]:
        """
        Run the enclosed block atomically.

        Args:
            label: Operation name used in log payloads
            extra: Participants covered by this transaction only; ignored
                when joining an outer transaction

        Raises:
            Whatever the enclosed block raised, after every participant
            has been restored.
        """
        if self._depth:
            self._depth += 1
            try:
                yield
            finally:
                self._depth -= 1
            return

        participants = list(self._participants)
        for participant in extra:
            if not isinstance(participant, Journaled):
                raise TypeError(
                    f"{type(participant).__name__} does not implement snapshot()/restore()"
                )
            if not any(existing is participant for existing in participants):
                participants.append(participant)

        snapshots = [(participant, participant.snapshot()) for participant in participants]
        self._depth = 1
        try:
            yield
        except Exception as exc:
            for participant, snapshot in reversed(snapshots):
                participant.restore(snapshot)
            logger.warning(
                "Vault transaction reverted",
                extra={
                    "event": "journal.reverted",
                    "operation": label,
                    "reason": type(exc).__name__,
                    "participants": len(snapshots),
                },
            )
            raise
        finally:
            self._depth = 0


def non_reentrant(func):
    """
    Guard a vault method against re-entry.

    The owning object provides ``_call_lock`` (an RLock serializing callers
    from different threads) and ``_entered`` (the re-entry flag).
    """

    @functools.wraps(func)
    def wrapper(self, *args, **kwargs):
        with self._call_lock:
            if self._entered:
                logger.error(
                    "Reentrant call rejected",
                    extra={"event": "journal.reentrant_call", "operation": func.__name__},
                )
                raise ReentrantCall(
                    f"{func.__name__}: reentrant call",
                    details={"operation": func.__name__},
                )
            self._entered = True
            try:
                return func(self, *args, **kwargs)
            finally:
                self._entered = False

    return wrapper


__all__ = ["StateJournal", "non_reentrant"]
