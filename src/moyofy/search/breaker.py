from __future__ import annotations

import threading
import time
from typing import Callable

from moyofy.logger import get_logger

logger = get_logger(__name__)


class QuotaBreaker:
    """
    Process-wide block on upstream calls after YouTube reports quota
    exhaustion. The API quota is shared by every client and every query, so
    there is exactly one of these per process.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._blocked_until = 0.0

    def is_blocked(self) -> bool:
        with self._lock:
            return self._clock() < self._blocked_until

    def remaining(self) -> float:
        """Seconds left in the current block (0 when not blocked)."""
        with self._lock:
            return max(0.0, self._blocked_until - self._clock())

    def block(self, duration: float) -> float:
        """
        Block for `duration` seconds from now. An active longer block is
        kept as is. Returns the seconds remaining after the merge.
        """
        with self._lock:
            now = self._clock()
            self._blocked_until = max(self._blocked_until, now + duration)
            remaining = self._blocked_until - now

        logger.warning(f"search.quota.blocked remaining={remaining:.0f}s")
        return remaining

    def reset(self) -> None:
        with self._lock:
            self._blocked_until = 0.0
