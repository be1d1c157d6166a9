from __future__ import annotations

from moyofy.search.breaker import QuotaBreaker
from moyofy.search.cache import BoundedTTLCache
from moyofy.search.coalescer import SingleFlight
from moyofy.search.limiter import TokenBucketLimiter
from moyofy.search.normalize import normalize
from moyofy.search.service import (
    SearchOutcome,
    SearchResult,
    SearchService,
    SearchStatus,
)

__all__ = [
    "BoundedTTLCache",
    "QuotaBreaker",
    "SearchOutcome",
    "SearchResult",
    "SearchService",
    "SearchStatus",
    "SingleFlight",
    "TokenBucketLimiter",
    "normalize",
]
