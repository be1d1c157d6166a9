"""
service.py

Search orchestration:

    validate → rate limit → quota breaker → cache → single-flight
             → upstream search → filter → cache store → respond

Every rejection is returned as a SearchOutcome; nothing here raises for a
normal outcome. Only the upstream call can fail, and its failure is shared
by every caller joined to the same flight.
"""

from __future__ import annotations

import threading
from concurrent.futures import TimeoutError as FlightTimeoutError
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Protocol

import requests

from moyofy import config
from moyofy.logger import get_logger
from moyofy.providers.youtube.api_manager import APIError, QuotaExhaustedError
from moyofy.providers.youtube.filter_lists import FilterLists, FilterListSource
from moyofy.providers.youtube.filters import filter_music
from moyofy.search.breaker import QuotaBreaker
from moyofy.search.cache import BoundedTTLCache
from moyofy.search.coalescer import SingleFlight
from moyofy.search.limiter import TokenBucketLimiter
from moyofy.search.normalize import normalize

logger = get_logger(__name__)


class Searcher(Protocol):
    def search(self, query: str) -> List[Dict[str, Any]]: ...


class SearchStatus(str, Enum):
    OK = "ok"
    INVALID_INPUT = "invalid_input"
    RATE_LIMITED = "rate_limited"
    QUOTA_BLOCKED = "quota_blocked"
    UPSTREAM_FAILURE = "upstream_failure"


@dataclass(frozen=True)
class SearchResult:
    """Filtered upstream result; immutable once cached."""

    items: List[Dict[str, Any]]
    stats: Dict[str, Any]


@dataclass(frozen=True)
class SearchOutcome:
    status: SearchStatus
    query: str = ""
    result: Optional[SearchResult] = None
    cache_hit: bool = False
    shared: bool = False
    retry_after: float = 0.0
    error: str = ""

    @property
    def ok(self) -> bool:
        return self.status == SearchStatus.OK


class SearchStats:
    """Request counters for /health. Updated from many request threads."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.counts: Dict[str, int] = {}

    def incr(self, name: str) -> None:
        with self._lock:
            self.counts[name] = self.counts.get(name, 0) + 1

    def snapshot(self) -> Dict[str, int]:
        with self._lock:
            return dict(self.counts)


class SearchService:
    def __init__(
        self,
        searcher: Searcher,
        cache: BoundedTTLCache[SearchResult],
        limiter: TokenBucketLimiter,
        flights: SingleFlight[SearchResult],
        breaker: QuotaBreaker,
        filter_lists: Optional[Callable[[], FilterLists]] = None,
        min_query_length: int = config.DEFAULT_MIN_QUERY_LENGTH,
        quota_block_sec: float = config.DEFAULT_QUOTA_BLOCK_SEC,
    ) -> None:
        self.searcher = searcher
        self.cache = cache
        self.limiter = limiter
        self.flights = flights
        self.breaker = breaker
        self.filter_lists = filter_lists or FilterListSource().current
        self.min_query_length = min_query_length
        self.quota_block_sec = quota_block_sec
        self.stats = SearchStats()

    # --------------------------------------------------------
    # Public API
    # --------------------------------------------------------

    def search(self, raw_query: Optional[str], client_id: str) -> SearchOutcome:
        self.stats.incr("requests")
        key = normalize(raw_query)

        if len(key) < self.min_query_length:
            return self._reject(
                SearchStatus.INVALID_INPUT,
                key,
                error=(
                    "Search query cannot be empty"
                    if not key
                    else f"Search query must be at least {self.min_query_length} characters"
                ),
            )

        if not self.limiter.try_consume(client_id):
            logger.debug(f"search.rate_limited client={client_id}")
            return self._reject(
                SearchStatus.RATE_LIMITED,
                key,
                error="Too many searches, please wait a few seconds",
                retry_after=self.limiter.retry_after(client_id),
            )

        if self.breaker.is_blocked():
            return self._quota_blocked(key)

        cached = self.cache.get(key)
        if cached is not None:
            self.stats.incr("cache_hits")
            logger.debug(f"search.cache.hit query={key!r}")
            return SearchOutcome(status=SearchStatus.OK, query=key, result=cached, cache_hit=True)

        try:
            result, shared = self.flights.coalesce(key, lambda: self._fetch_and_store(key))
        except QuotaExhaustedError:
            return self._quota_blocked(key)
        except (APIError, requests.RequestException, FlightTimeoutError) as e:
            logger.error(f"search.upstream.failed query={key!r}: {e}")
            return self._reject(
                SearchStatus.UPSTREAM_FAILURE,
                key,
                error="YouTube search failed, please try again",
            )

        if shared:
            self.stats.incr("shared")
        return SearchOutcome(status=SearchStatus.OK, query=key, result=result, shared=shared)

    # --------------------------------------------------------
    # Internals
    # --------------------------------------------------------

    def _fetch_and_store(self, key: str) -> SearchResult:
        """Single-flight producer. Runs once per generation of `key`."""
        # A flight that finished between our cache miss and this one starting
        # already stored the result
        cached = self.cache.get(key)
        if cached is not None:
            self.stats.incr("late_cache_hits")
            logger.debug(f"search.cache.late_hit query={key!r}")
            return cached

        self.stats.incr("upstream_calls")
        logger.info(f"search.upstream.call query={key!r}")

        try:
            raw_items = self.searcher.search(key)
        except QuotaExhaustedError:
            self.breaker.block(self.quota_block_sec)
            raise

        items, stats = filter_music(raw_items, self.filter_lists())
        result = SearchResult(items=items, stats=stats)

        # Stored before the flight is released so no caller can miss both
        self.cache.set(key, result)
        logger.info(
            f"search.upstream.ok query={key!r} "
            f"approved={stats['approved']}/{stats['total']}"
        )
        return result

    def _quota_blocked(self, key: str) -> SearchOutcome:
        return self._reject(
            SearchStatus.QUOTA_BLOCKED,
            key,
            error="YouTube quota exceeded, search is temporarily unavailable",
            retry_after=self.breaker.remaining(),
        )

    def _reject(
        self,
        status: SearchStatus,
        key: str,
        error: str,
        retry_after: float = 0.0,
    ) -> SearchOutcome:
        self.stats.incr(status.value)
        return SearchOutcome(status=status, query=key, retry_after=retry_after, error=error)
