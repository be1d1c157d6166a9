"""
services.py

Explicit construction of the long-lived collaborators the HTTP app needs.

Everything that holds state (cache, limiter, in-flight table, breaker, key
pool, owner identity) is built once here and handed to create_app(); nothing
is a module-level singleton.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from moyofy.auth.providers.youtube import YouTubeOwnerProvider
from moyofy.auth.token_store import build_token_store
from moyofy.env import Environment
from moyofy.env.paths import auth_client_secrets_file
from moyofy.logger import get_logger
from moyofy.providers.youtube.api_manager import APIKeyManager
from moyofy.providers.youtube.filter_lists import FilterListSource
from moyofy.providers.youtube.search import YouTubeSearcher
from moyofy.search.breaker import QuotaBreaker
from moyofy.search.cache import BoundedTTLCache
from moyofy.search.coalescer import SingleFlight
from moyofy.search.limiter import TokenBucketLimiter
from moyofy.search.service import SearchService
from moyofy.songs import SongQueue

logger = get_logger(__name__)


@dataclass
class AppServices:
    env: Environment
    search: SearchService
    songs: SongQueue
    owner: YouTubeOwnerProvider
    breaker: QuotaBreaker


def build_owner_provider(env: Environment) -> YouTubeOwnerProvider:
    return YouTubeOwnerProvider(
        store=build_token_store(env),
        client_id=env.oauth_client_id,
        client_secret=env.oauth_client_secret,
        client_secrets_file=auth_client_secrets_file(),
    )


def build_services(env: Environment) -> AppServices:
    # One breaker for the whole process: search and suggestions share quota
    breaker = QuotaBreaker()

    searcher = YouTubeSearcher(
        APIKeyManager(env.youtube_api_keys),
        max_results=env.search_max_results,
        timeout=env.request_timeout,
        max_retries=env.max_retries,
        backoff_base=env.backoff_base,
    )
    filter_source = FilterListSource(Path(env.filter_file) if env.filter_file else None)

    search = SearchService(
        searcher=searcher,
        cache=BoundedTTLCache(max_entries=env.cache_max_entries, ttl=env.cache_ttl),
        limiter=TokenBucketLimiter(
            capacity=env.rate_limit_burst,
            refill_interval=env.rate_limit_refill_sec,
            idle_ttl=env.rate_limit_idle_ttl,
            max_clients=env.rate_limit_max_clients,
        ),
        flights=SingleFlight(wait_timeout=env.coalesce_wait_sec or None),
        breaker=breaker,
        filter_lists=filter_source.current,
        min_query_length=env.min_query_length,
        quota_block_sec=env.quota_block_sec,
    )

    owner = build_owner_provider(env)
    songs = SongQueue(
        videos=searcher,
        owner=owner,
        breaker=breaker,
        playlist_id=env.playlist_id,
        max_duration=env.max_song_duration,
        quota_block_sec=env.quota_block_sec,
    )

    logger.debug(
        f"Services ready: cache={env.cache_max_entries}x{env.cache_ttl}s "
        f"limiter={env.rate_limit_burst}/{env.rate_limit_refill_sec}s "
        f"token_store={env.token_store}"
    )
    return AppServices(env=env, search=search, songs=songs, owner=owner, breaker=breaker)
