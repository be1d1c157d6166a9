"""
coalescer.py

Single-flight execution keyed by normalized query.

Concurrent callers for the same key share one producer execution and all
observe its result or its exception. Failures are never remembered: once
a flight settles its slot is gone and the next caller starts a new one.
"""

from __future__ import annotations

import threading
from concurrent.futures import Future
from dataclasses import dataclass, field
from typing import Callable, Dict, Generic, Optional, Tuple, TypeVar

from moyofy.logger import get_logger

logger = get_logger(__name__)
T = TypeVar("T")


@dataclass
class InFlightSlot(Generic[T]):
    key: str
    pending: Future = field(default_factory=Future)
    waiters: int = 0


class SingleFlight(Generic[T]):
    def __init__(self, wait_timeout: Optional[float] = None) -> None:
        self.wait_timeout = wait_timeout
        self._lock = threading.Lock()
        self._slots: Dict[str, InFlightSlot[T]] = {}

    def coalesce(self, key: str, producer: Callable[[], T]) -> Tuple[T, bool]:
        """
        Run `producer` once per generation of `key`.

        Returns:
            (value, shared) where shared is True for callers that joined a
            flight started by someone else.

        Raises:
            Whatever `producer` raised, to the leader and every joined waiter.
            concurrent.futures.TimeoutError when a joined waiter gives up
            after `wait_timeout` seconds.
        """
        with self._lock:
            slot = self._slots.get(key)
            leader = slot is None
            if leader:
                slot = InFlightSlot(key=key)
                self._slots[key] = slot
            else:
                slot.waiters += 1

        if not leader:
            logger.debug(f"search.flight.join key={key!r}")
            try:
                return slot.pending.result(timeout=self.wait_timeout), True
            finally:
                with self._lock:
                    slot.waiters -= 1

        try:
            value = producer()
        except BaseException as e:
            # Release before resolving: a caller arriving after settlement
            # must start a fresh flight, never observe this one.
            self._release(slot)
            slot.pending.set_exception(e)
            raise

        self._release(slot)
        slot.pending.set_result(value)
        return value, False

    def _release(self, slot: InFlightSlot[T]) -> None:
        with self._lock:
            if self._slots.get(slot.key) is slot:
                del self._slots[slot.key]

    def in_flight(self, key: str) -> bool:
        with self._lock:
            return key in self._slots

    def waiting(self, key: str) -> int:
        """Number of callers currently joined to the flight for `key`."""
        with self._lock:
            slot = self._slots.get(key)
            return slot.waiters if slot else 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._slots)
