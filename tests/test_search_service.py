import threading
from concurrent.futures import ThreadPoolExecutor

import pytest
import requests

from helpers import FakeSearcher, wait_until
from moyofy.providers.youtube.api_manager import APIError, QuotaExhaustedError
from moyofy.search import (
    BoundedTTLCache,
    QuotaBreaker,
    SearchService,
    SearchStatus,
    SingleFlight,
    TokenBucketLimiter,
)


def make_service(clock, searcher=None, burst=3, min_len=3):
    searcher = searcher or FakeSearcher()
    service = SearchService(
        searcher=searcher,
        cache=BoundedTTLCache(max_entries=100, ttl=3600, clock=clock),
        limiter=TokenBucketLimiter(capacity=burst, refill_interval=4.0, clock=clock),
        flights=SingleFlight(wait_timeout=5),
        breaker=QuotaBreaker(clock=clock),
        min_query_length=min_len,
        quota_block_sec=1800,
    )
    return service, searcher


def test_first_search_calls_upstream_and_filters(clock):
    service, searcher = make_service(clock)

    outcome = service.search("  Metallica ", "1.1.1.1")

    assert outcome.status == SearchStatus.OK
    assert outcome.query == "metallica"
    assert outcome.cache_hit is False
    assert searcher.calls == ["metallica"]

    titles = [i["snippet"]["title"] for i in outcome.result.items]
    assert "Top 40 Dance Pop Hits 2024" not in titles
    assert len(titles) == 2
    assert outcome.result.stats["total"] == 3
    assert outcome.result.stats["approved"] == 2


def test_second_search_is_served_from_cache(clock):
    service, searcher = make_service(clock)
    first = service.search("Metallica", "1.1.1.1")
    second = service.search("METALLICA", "2.2.2.2")

    assert second.cache_hit is True
    assert second.result == first.result
    assert searcher.calls == ["metallica"]
    assert service.stats.snapshot()["cache_hits"] == 1


@pytest.mark.parametrize("raw", [None, "", "   ", "ab", "!!"])
def test_invalid_queries_are_rejected_without_upstream(clock, raw):
    service, searcher = make_service(clock)

    outcome = service.search(raw, "1.1.1.1")

    assert outcome.status == SearchStatus.INVALID_INPUT
    assert outcome.error
    assert searcher.calls == []


def test_invalid_queries_do_not_spend_rate_tokens(clock):
    service, _ = make_service(clock, burst=1)
    service.search("", "1.1.1.1")
    assert service.search("metallica", "1.1.1.1").ok


def test_rate_limit_applies_before_cache(clock):
    service, searcher = make_service(clock, burst=3)

    for _ in range(3):
        assert service.search("metallica", "9.9.9.9").ok

    denied = service.search("metallica", "9.9.9.9")
    assert denied.status == SearchStatus.RATE_LIMITED
    assert denied.retry_after == pytest.approx(4.0)

    # Another client is unaffected
    assert service.search("metallica", "8.8.8.8").ok
    assert searcher.calls == ["metallica"]


def test_quota_exhaustion_blocks_every_query(clock):
    searcher = FakeSearcher(fail_with={"test": QuotaExhaustedError("all keys")})
    service, _ = make_service(clock, searcher=searcher)

    first = service.search("test", "1.1.1.1")
    assert first.status == SearchStatus.QUOTA_BLOCKED
    assert first.retry_after == pytest.approx(1800)

    second = service.search("other", "2.2.2.2")
    assert second.status == SearchStatus.QUOTA_BLOCKED
    assert searcher.calls == ["test"]

    clock.advance(1800)
    assert service.search("other", "2.2.2.2").ok
    assert searcher.calls == ["test", "other"]


def test_blocked_breaker_rejects_before_cache_lookup(clock):
    service, searcher = make_service(clock)
    assert service.search("metallica", "1.1.1.1").ok

    service.breaker.block(600)

    outcome = service.search("metallica", "1.1.1.1")
    assert outcome.status == SearchStatus.QUOTA_BLOCKED
    assert searcher.calls == ["metallica"]


@pytest.mark.parametrize(
    "error",
    [APIError("HTTP 503"), requests.ConnectionError("reset"), requests.Timeout("slow")],
)
def test_upstream_failure_is_not_cached_or_blocking(clock, error):
    searcher = FakeSearcher(fail_with={"metallica": error})
    service, _ = make_service(clock, searcher=searcher)

    outcome = service.search("metallica", "1.1.1.1")
    assert outcome.status == SearchStatus.UPSTREAM_FAILURE
    assert not service.breaker.is_blocked()
    assert "metallica" not in service.cache

    searcher.fail_with.clear()
    assert service.search("metallica", "1.1.1.1").ok
    assert searcher.calls == ["metallica", "metallica"]


def test_concurrent_identical_queries_make_one_upstream_call(clock):
    gate = threading.Event()
    searcher = FakeSearcher(gate=gate)
    service, _ = make_service(clock, searcher=searcher)

    with ThreadPoolExecutor(max_workers=10) as pool:
        futures = [
            pool.submit(service.search, "Metallica", f"10.0.0.{n}") for n in range(10)
        ]
        assert wait_until(lambda: service.flights.waiting("metallica") == 9)
        gate.set()
        outcomes = [f.result(timeout=5) for f in futures]

    assert searcher.calls == ["metallica"]
    assert all(o.ok for o in outcomes)
    assert len({id(o.result) for o in outcomes}) == 1
    assert sum(1 for o in outcomes if o.shared) == 9
    assert len(service.cache) == 1


def test_concurrent_quota_failure_reaches_every_waiter(clock):
    gate = threading.Event()
    searcher = FakeSearcher(gate=gate, fail_with={"test": QuotaExhaustedError("all keys")})
    service, _ = make_service(clock, searcher=searcher)

    with ThreadPoolExecutor(max_workers=5) as pool:
        futures = [pool.submit(service.search, "test", f"10.0.0.{n}") for n in range(5)]
        assert wait_until(lambda: service.flights.waiting("test") == 4)
        gate.set()
        outcomes = [f.result(timeout=5) for f in futures]

    assert searcher.calls == ["test"]
    assert {o.status for o in outcomes} == {SearchStatus.QUOTA_BLOCKED}
    assert service.breaker.is_blocked()


class MissOnceCache(BoundedTTLCache):
    """Reports one miss, as if the lookup ran just before another flight stored."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.missed = False

    def get(self, key):
        if not self.missed:
            self.missed = True
            return None
        return super().get(key)


def test_flight_started_after_store_reuses_cached_result(clock):
    searcher = FakeSearcher()
    cache = MissOnceCache(max_entries=100, ttl=3600, clock=clock)
    service = SearchService(
        searcher=searcher,
        cache=cache,
        limiter=TokenBucketLimiter(capacity=3, refill_interval=4.0, clock=clock),
        flights=SingleFlight(wait_timeout=5),
        breaker=QuotaBreaker(clock=clock),
        quota_block_sec=1800,
    )
    stored = service._fetch_and_store("metallica")
    searcher.calls.clear()
    cache.missed = False

    outcome = service.search("Metallica", "1.1.1.1")

    assert outcome.status == SearchStatus.OK
    assert outcome.result is stored
    assert searcher.calls == []
