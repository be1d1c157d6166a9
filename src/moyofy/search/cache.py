"""
cache.py

Bounded, thread-safe TTL cache with LRU eviction.

Best-effort: a miss is a normal outcome and an eviction may drop a
still-useful entry when capacity is exceeded.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Callable, Generic, Hashable, Optional, TypeVar

from cachetools import TLRUCache

V = TypeVar("V")


@dataclass(frozen=True)
class CacheEntry(Generic[V]):
    value: V
    ttl: float


def _time_to_use(_key: Hashable, entry: CacheEntry, now: float) -> float:
    return now + entry.ttl


class BoundedTTLCache(Generic[V]):
    """
    At most `max_entries` live entries, each expiring `ttl` seconds after it
    was last set. Reads refresh recency but never extend the expiry.
    """

    def __init__(
        self,
        max_entries: int,
        ttl: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_entries <= 0:
            raise ValueError("max_entries must be positive")
        if ttl <= 0:
            raise ValueError("ttl must be positive")

        self.max_entries = max_entries
        self.default_ttl = ttl
        self._lock = threading.Lock()
        self._data: TLRUCache = TLRUCache(
            maxsize=max_entries,
            ttu=_time_to_use,
            timer=clock,
        )

    def get(self, key: Hashable) -> Optional[V]:
        with self._lock:
            # Lazy expiry: anything past its deadline is dropped on access
            self._data.expire()
            entry = self._data.get(key)
            return None if entry is None else entry.value

    def set(self, key: Hashable, value: V, ttl: Optional[float] = None) -> None:
        entry = CacheEntry(value=value, ttl=self.default_ttl if ttl is None else ttl)
        with self._lock:
            self._data.expire()
            self._data[key] = entry

    def pop(self, key: Hashable) -> Optional[V]:
        with self._lock:
            entry = self._data.pop(key, None)
            return None if entry is None else entry.value

    def clear(self) -> None:
        with self._lock:
            self._data.clear()

    def __contains__(self, key: Hashable) -> bool:
        # Liveness check only; does not touch recency
        with self._lock:
            self._data.expire()
            return key in self._data

    def __len__(self) -> int:
        with self._lock:
            self._data.expire()
            return len(self._data)
