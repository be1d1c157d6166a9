from __future__ import annotations

import os
from dataclasses import dataclass
from typing import List, Optional

from moyofy import config

# ------------------------------------------------------------
# Errors / helpers
# ------------------------------------------------------------


class ConfigError(RuntimeError):
    pass


def _as_bool(v: str) -> bool:
    return v.strip().lower() in {"1", "true", "yes", "on"}


def _as_int(v: str, default: int) -> int:
    try:
        return int(v)
    except Exception:
        return default


def _as_float(v: str, default: float) -> float:
    try:
        return float(v)
    except Exception:
        return default


def _as_list(v: str) -> List[str]:
    return [item.strip() for item in v.split(",") if item.strip()]


def _api_keys() -> List[str]:
    keys = _as_list(os.environ.get("YOUTUBE_API_KEYS", ""))
    if not keys:
        # Single-key deployments predate the key pool
        keys = _as_list(os.environ.get("YOUTUBE_API_KEY", ""))
    if not keys:
        raise ConfigError(
            "Missing required environment variable: YOUTUBE_API_KEYS (or YOUTUBE_API_KEY)"
        )
    return keys


# ------------------------------------------------------------
# Logging environment (SAFE ANYWHERE)
# ------------------------------------------------------------


@dataclass(frozen=True)
class LoggingEnvironment:
    log_level: str
    log_retention: int
    verbose: bool
    quiet: bool


def get_logging_env() -> LoggingEnvironment:
    return LoggingEnvironment(
        log_level=os.environ.get("LOG_LEVEL", config.DEFAULT_LOG_LEVEL),
        log_retention=_as_int(
            os.environ.get("LOG_RETENTION", str(config.DEFAULT_LOG_RETENTION)),
            config.DEFAULT_LOG_RETENTION,
        ),
        verbose=_as_bool(os.environ.get("MOYOFY_VERBOSE", "0")),
        quiet=_as_bool(os.environ.get("MOYOFY_QUIET", "0")),
    )


# ------------------------------------------------------------
# Full runtime environment (SERVER ONLY)
# ------------------------------------------------------------


class Environment:
    def __init__(self):
        # Logging snapshot (immutable)
        self._logging = get_logging_env()

        # ---- REQUIRED API ----
        self.youtube_api_keys = _api_keys()

        self.request_timeout = _as_float(
            os.environ.get("YT_REQUEST_TIMEOUT", str(config.DEFAULT_REQUEST_TIMEOUT_SEC)),
            config.DEFAULT_REQUEST_TIMEOUT_SEC,
        )
        self.max_retries = _as_int(
            os.environ.get("YT_MAX_RETRIES", str(config.DEFAULT_MAX_RETRIES)),
            config.DEFAULT_MAX_RETRIES,
        )
        self.backoff_base = _as_float(
            os.environ.get("YT_BACKOFF_BASE_SEC", str(config.DEFAULT_BACKOFF_BASE_SEC)),
            config.DEFAULT_BACKOFF_BASE_SEC,
        )

        # ---- SERVER ----
        self.host = os.environ.get("HOST", config.DEFAULT_HOST)
        self.port = _as_int(os.environ.get("PORT", str(config.DEFAULT_PORT)), config.DEFAULT_PORT)
        self.environment = (
            os.environ.get("MOYOFY_ENV") or os.environ.get("NODE_ENV") or "development"
        )
        self.cors_origins = _as_list(
            os.environ.get("MOYOFY_CORS_ORIGINS", ",".join(config.DEFAULT_CORS_ORIGINS))
        )
        self.trust_proxy = _as_bool(os.environ.get("MOYOFY_TRUST_PROXY", "0"))
        self.proxy_hops = max(
            1,
            _as_int(
                os.environ.get("MOYOFY_PROXY_HOPS", str(config.DEFAULT_PROXY_HOPS)),
                config.DEFAULT_PROXY_HOPS,
            ),
        )

        # ---- SEARCH LAYER ----
        self.cache_max_entries = _as_int(
            os.environ.get("SEARCH_CACHE_MAX_ENTRIES", str(config.DEFAULT_CACHE_MAX_ENTRIES)),
            config.DEFAULT_CACHE_MAX_ENTRIES,
        )
        self.cache_ttl = _as_float(
            os.environ.get("SEARCH_CACHE_TTL_SEC", str(config.DEFAULT_CACHE_TTL_SECONDS)),
            config.DEFAULT_CACHE_TTL_SECONDS,
        )
        self.min_query_length = _as_int(
            os.environ.get("SEARCH_MIN_QUERY_LEN", str(config.DEFAULT_MIN_QUERY_LENGTH)),
            config.DEFAULT_MIN_QUERY_LENGTH,
        )
        self.search_max_results = _as_int(
            os.environ.get("SEARCH_MAX_RESULTS", str(config.DEFAULT_SEARCH_MAX_RESULTS)),
            config.DEFAULT_SEARCH_MAX_RESULTS,
        )
        self.rate_limit_burst = _as_float(
            os.environ.get("RATE_LIMIT_BURST", str(config.DEFAULT_RATE_LIMIT_BURST)),
            config.DEFAULT_RATE_LIMIT_BURST,
        )
        self.rate_limit_refill_sec = _as_float(
            os.environ.get("RATE_LIMIT_REFILL_SEC", str(config.DEFAULT_RATE_LIMIT_REFILL_SEC)),
            config.DEFAULT_RATE_LIMIT_REFILL_SEC,
        )
        self.rate_limit_idle_ttl = _as_float(
            os.environ.get("RATE_LIMIT_IDLE_TTL_SEC", str(config.DEFAULT_RATE_LIMIT_IDLE_TTL_SEC)),
            config.DEFAULT_RATE_LIMIT_IDLE_TTL_SEC,
        )
        self.rate_limit_max_clients = _as_int(
            os.environ.get("RATE_LIMIT_MAX_CLIENTS", str(config.DEFAULT_RATE_LIMIT_MAX_CLIENTS)),
            config.DEFAULT_RATE_LIMIT_MAX_CLIENTS,
        )
        self.quota_block_sec = _as_float(
            os.environ.get("QUOTA_BLOCK_SEC", str(config.DEFAULT_QUOTA_BLOCK_SEC)),
            config.DEFAULT_QUOTA_BLOCK_SEC,
        )
        self.coalesce_wait_sec = _as_float(
            os.environ.get("COALESCE_WAIT_SEC", str(config.DEFAULT_COALESCE_WAIT_SEC)),
            config.DEFAULT_COALESCE_WAIT_SEC,
        )
        self.filter_file = os.environ.get("MOYOFY_FILTER_FILE", "")

        # ---- PLAYLIST / OWNER ----
        self.playlist_id = os.environ.get("DEFAULT_PLAYLIST_ID", "")
        self.max_song_duration = _as_int(
            os.environ.get("MAX_SONG_DURATION_SEC", str(config.DEFAULT_MAX_SONG_DURATION_SEC)),
            config.DEFAULT_MAX_SONG_DURATION_SEC,
        )
        self.oauth_client_id = os.environ.get("OAUTH_CLIENT_ID", "")
        self.oauth_client_secret = os.environ.get("OAUTH_CLIENT_SECRET", "")
        self.token_store = os.environ.get("MOYOFY_TOKEN_STORE", "file").strip().lower()
        self.owner_tokens_var = config.OWNER_TOKENS_ENV_VAR

    def as_dict(self) -> dict:
        return {
            "Logging": {
                "log_level": self.log_level,
                "log_retention": self.log_retention,
                "verbose": self.verbose,
                "quiet": self.quiet,
            },
            "Server": {
                "host": self.host,
                "port": self.port,
                "environment": self.environment,
                "cors_origins": ", ".join(self.cors_origins),
                "trust_proxy": self.trust_proxy,
                "proxy_hops": self.proxy_hops,
            },
            "Search": {
                "cache_max_entries": self.cache_max_entries,
                "cache_ttl": self.cache_ttl,
                "min_query_length": self.min_query_length,
                "max_results": self.search_max_results,
                "rate_limit_burst": self.rate_limit_burst,
                "rate_limit_refill": self.rate_limit_refill_sec,
                "quota_block": self.quota_block_sec,
                "filter_file": self.filter_file or "(built-in lists)",
            },
            "Playlist": {
                "playlist_id": self.playlist_id or "(not configured)",
                "token_store": self.token_store,
                "oauth_client": "configured" if self.oauth_client_id else "missing",
            },
            "API": {
                "youtube_api_keys": f"{len(self.youtube_api_keys)} keys loaded",
                "request_timeout": self.request_timeout,
                "max_retries": self.max_retries,
            },
        }

    # ---- logging passthrough ----
    @property
    def log_level(self) -> str:
        return self._logging.log_level

    @property
    def log_retention(self) -> int:
        return self._logging.log_retention

    @property
    def verbose(self) -> bool:
        return self._logging.verbose

    @property
    def quiet(self) -> bool:
        return self._logging.quiet


_ENV: Optional[Environment] = None


def reset_env_caches() -> None:
    """Invalidate cached views of environment variables."""
    global _ENV
    _ENV = None


def get_env() -> Environment:
    global _ENV
    if _ENV is None:
        _ENV = Environment()
    return _ENV
