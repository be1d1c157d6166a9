"""
api_manager.py

API key management and HTTP utilities.

Responsibilities:
- API key rotation across the configured key pool
- Quota exhaustion detection
- Retry logic with exponential backoff
- HTTP → domain error translation
"""

from __future__ import annotations

import threading
import time
from typing import Any, Callable, Dict, List, Optional, TypeVar

import requests
from googleapiclient.errors import HttpError

from moyofy import config
from moyofy.logger import get_logger


logger = get_logger(__name__)
T = TypeVar("T")


# ============================================================
# Exceptions
# ============================================================


class QuotaExhaustedError(Exception):
    """Raised when API key or OAuth quota is exhausted."""

    pass


class APIError(Exception):
    """Non-quota API failure."""

    pass


# ============================================================
# API Key Manager
# ============================================================


class APIKeyManager:
    """
    Round-robin over a pool of API keys, moving to the next key when the
    current one runs out of quota.

    When the last key is exhausted the pool rewinds to the first key and
    QuotaExhaustedError is raised; the caller's circuit breaker keeps the
    pool idle until quotas have had a chance to reset.
    """

    def __init__(self, keys: List[str]):
        if not keys:
            raise ValueError("API keys list cannot be empty")

        self.keys = list(keys)
        self.current_index = 0
        self._lock = threading.Lock()

        logger.debug(f"Initialized APIKeyManager with {len(keys)} keys")

    def current_key(self) -> str:
        with self._lock:
            return self.keys[self.current_index]

    def rotate(self, failed_key: str) -> None:
        with self._lock:
            # Another thread already moved past this key
            if self.keys[self.current_index] != failed_key:
                return

            self.current_index += 1

            if self.current_index >= len(self.keys):
                self.current_index = 0
                logger.warning("All API keys exhausted")
                raise QuotaExhaustedError("All API keys exhausted")

            logger.warning(
                f"Rotated to API key {self.current_index + 1}/{len(self.keys)}"
            )


# ============================================================
# Error detection helpers
# ============================================================


def _is_quota_payload(data: Any) -> bool:
    """
    YouTube quota errors are reliably signaled here:
    error.errors[].reason in ('quotaExceeded', 'dailyLimitExceeded')
    """
    if not isinstance(data, dict):
        return False

    error = data.get("error")
    if not isinstance(error, dict):
        return False

    for err in error.get("errors") or []:
        if isinstance(err, dict) and err.get("reason") in config.QUOTA_REASONS:
            return True
    return False


def is_quota_response(response: requests.Response) -> bool:
    if response.status_code != 403:
        return False
    try:
        return _is_quota_payload(response.json())
    except ValueError:
        return False


def is_transient_status(status_code: int) -> bool:
    return status_code in (429, 500, 502, 503, 504)


def classify_http_error(e: HttpError) -> str:
    """
    Returns: 'oauth_quota', 'auth', 'forbidden', or 'other'
    """
    # First try structured error_details
    details = getattr(e, "error_details", None)
    if isinstance(details, list):
        if any(
            isinstance(d, dict) and d.get("reason") in config.QUOTA_REASONS
            for d in details
        ):
            return "oauth_quota"

    # Then try raw HTTP content (googleapiclient puts JSON here often)
    content = getattr(e, "content", b"") or b""
    raw = (
        content.decode("utf-8", errors="ignore")
        if isinstance(content, bytes)
        else str(content)
    )
    if "quotaexceeded" in raw.lower() or "dailylimitexceeded" in raw.lower():
        return "oauth_quota"

    status = getattr(getattr(e, "resp", None), "status", None)
    if status is not None:
        status = int(status)

    if status == 401:
        return "auth"
    if status == 403:
        return "forbidden"

    return "other"


# ============================================================
# Retry engine
# ============================================================


def execute_with_retry(
    operation: Callable[[], T],
    name: str = "",
    max_retries: int = config.DEFAULT_MAX_RETRIES,
    backoff_base: float = config.DEFAULT_BACKOFF_BASE_SEC,
) -> T:
    """
    Run `operation`, retrying transient failures with exponential backoff.

    Quota exhaustion and 4xx client errors are never retried.
    """
    attempts = max(1, max_retries)
    last_exception: Optional[Exception] = None

    for attempt in range(attempts):
        try:
            return operation()

        except QuotaExhaustedError:
            # Hard stop - bubble up
            raise

        except HttpError as e:
            kind = classify_http_error(e)

            if kind == "oauth_quota":
                logger.warning("OAuth quota exhausted")
                raise QuotaExhaustedError("OAuth quota exhausted") from e

            if kind in ("auth", "forbidden"):
                raise

            last_exception = e

        except requests.HTTPError:
            # Non-transient status; retrying will not change the answer
            raise

        except (APIError, requests.RequestException) as e:
            last_exception = e

        if attempt == attempts - 1:
            break

        sleep_time = backoff_base * (2**attempt)
        logger.warning(
            f"{name} failed (attempt {attempt + 1}/{attempts}), "
            f"retrying in {sleep_time}s: {last_exception}"
        )
        time.sleep(sleep_time)

    if last_exception:
        raise last_exception

    raise APIError("execute_with_retry failed")


# ============================================================
# HTTP JSON (API key authenticated reads)
# ============================================================


def http_get_json(
    url: str,
    params: Dict[str, Any],
    api_key_manager: APIKeyManager,
    timeout: float = config.DEFAULT_REQUEST_TIMEOUT_SEC,
    max_retries: int = config.DEFAULT_MAX_RETRIES,
    backoff_base: float = config.DEFAULT_BACKOFF_BASE_SEC,
    session: Optional[requests.Session] = None,
) -> Dict[str, Any]:
    http = session or requests

    def make_request() -> Dict[str, Any]:
        # Each key is tried at most once per request; rotate() raises once
        # the pool wraps around.
        while True:
            key = api_key_manager.current_key()
            response = http.get(
                url,
                params={**params, "key": key},
                timeout=timeout,
            )

            if not is_quota_response(response):
                break

            logger.warning("API key quota exhausted - rotating")
            api_key_manager.rotate(key)

        if is_transient_status(response.status_code):
            raise APIError(f"Transient HTTP {response.status_code}")

        response.raise_for_status()

        try:
            return response.json()
        except ValueError as e:
            raise APIError(f"Malformed JSON from {url}") from e

    return execute_with_retry(
        make_request,
        name=f"GET {url.rsplit('/', 1)[-1]}",
        max_retries=max_retries,
        backoff_base=backoff_base,
    )
