"""
limiter.py

Per-client token bucket rate limiter.

Buckets live in a BoundedTTLCache so idle clients are forgotten and the
number of tracked clients stays bounded. A forgotten client simply starts
again with a full bucket, which is what an idle bucket would have refilled
to anyway.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Callable

from moyofy.search.cache import BoundedTTLCache


@dataclass
class RateBucket:
    client_id: str
    tokens: float
    last_refill_at: float


class TokenBucketLimiter:
    """
    `capacity` tokens of burst, refilled continuously at one token every
    `refill_interval` seconds.
    """

    def __init__(
        self,
        capacity: float = 3,
        refill_interval: float = 4.0,
        idle_ttl: float = 600.0,
        max_clients: int = 10_000,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        if refill_interval <= 0:
            raise ValueError("refill_interval must be positive")

        self.capacity = float(capacity)
        self.rate = 1.0 / refill_interval
        # A bucket must outlive its own refill, or forgetting it would hand a
        # throttled client a full bucket early
        self.idle_ttl = max(float(idle_ttl), self.capacity * refill_interval)
        self._clock = clock
        self._lock = threading.Lock()
        self._buckets: BoundedTTLCache[RateBucket] = BoundedTTLCache(
            max_entries=max_clients,
            ttl=self.idle_ttl,
            clock=clock,
        )

    def _refilled(self, client_id: str, now: float) -> RateBucket:
        bucket = self._buckets.get(client_id)
        if bucket is None:
            return RateBucket(client_id=client_id, tokens=self.capacity, last_refill_at=now)

        elapsed = max(0.0, now - bucket.last_refill_at)
        bucket.tokens = min(self.capacity, bucket.tokens + elapsed * self.rate)
        bucket.last_refill_at = now
        return bucket

    def try_consume(self, client_id: str, cost: float = 1) -> bool:
        """Spend `cost` tokens if available. Never blocks."""
        with self._lock:
            now = self._clock()
            bucket = self._refilled(client_id, now)
            allowed = bucket.tokens >= cost
            if allowed:
                bucket.tokens -= cost
            # Re-setting restarts the idle timer for this client
            self._buckets.set(client_id, bucket)
            return allowed

    def retry_after(self, client_id: str, cost: float = 1) -> float:
        """Seconds until `cost` tokens will be available (0 if they are now)."""
        with self._lock:
            bucket = self._buckets.get(client_id)
            if bucket is None:
                return 0.0
            now = self._clock()
            elapsed = max(0.0, now - bucket.last_refill_at)
            tokens = min(self.capacity, bucket.tokens + elapsed * self.rate)
            missing = cost - tokens
            return max(0.0, missing / self.rate)

    def tracked_clients(self) -> int:
        return len(self._buckets)
