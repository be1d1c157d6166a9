"""
search.py

YouTube Data API read wrappers (API key authenticated).

Responsibilities:
- search.list for song search
- videos.list for single-video validation
- ISO-8601 duration parsing

Does NOT:
- Cache (the search layer owns caching)
- Filter results (see filters.py)
- Touch the owner OAuth identity
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import isodate
import requests

from moyofy import config
from moyofy.logger import get_logger
from moyofy.providers.youtube.api_manager import APIKeyManager, http_get_json

logger = get_logger(__name__)


@dataclass(frozen=True)
class VideoInfo:
    video_id: str
    title: str
    channel_title: str
    embeddable: bool
    duration_seconds: int


def parse_duration_seconds(iso_duration: str) -> int:
    """
    Convert an ISO 8601 duration (PT4M13S) to seconds.

    Returns:
        Duration in seconds, 0 when missing or unparseable
    """
    if not iso_duration:
        return 0
    try:
        return int(isodate.parse_duration(iso_duration).total_seconds())
    except (isodate.ISO8601Error, ValueError) as e:
        logger.warning(f"Failed to parse duration '{iso_duration}': {e}")
        return 0


class YouTubeSearcher:
    """Upstream video-search provider backed by the API key pool."""

    def __init__(
        self,
        api_keys: APIKeyManager,
        max_results: int = config.DEFAULT_SEARCH_MAX_RESULTS,
        timeout: float = config.DEFAULT_REQUEST_TIMEOUT_SEC,
        max_retries: int = config.DEFAULT_MAX_RETRIES,
        backoff_base: float = config.DEFAULT_BACKOFF_BASE_SEC,
    ) -> None:
        self.api_keys = api_keys
        self.max_results = max_results
        self.timeout = timeout
        self.max_retries = max_retries
        self.backoff_base = backoff_base
        self._session = requests.Session()

    def _get(self, url: str, params: Dict[str, Any]) -> Dict[str, Any]:
        return http_get_json(
            url,
            params,
            api_key_manager=self.api_keys,
            timeout=self.timeout,
            max_retries=self.max_retries,
            backoff_base=self.backoff_base,
            session=self._session,
        )

    def search(self, query: str) -> List[Dict[str, Any]]:
        """
        Search videos in the Music category.

        Raises:
            QuotaExhaustedError: every API key is out of quota
            APIError / requests.RequestException: any other upstream failure
        """
        data = self._get(
            config.SEARCH_URL,
            {
                "part": "snippet",
                "q": query,
                "type": "video",
                "videoCategoryId": config.MUSIC_CATEGORY_ID,
                "maxResults": self.max_results,
            },
        )
        items = data.get("items") or []
        logger.debug(f"search.upstream.ok query={query!r} items={len(items)}")
        return items

    def fetch_video(self, video_id: str) -> Optional[VideoInfo]:
        """Look up one video; None when YouTube does not know it."""
        data = self._get(
            config.VIDEOS_URL,
            {"part": "snippet,status,contentDetails", "id": video_id},
        )
        items = data.get("items") or []
        if not items:
            return None

        item = items[0]
        snippet = item.get("snippet") or {}
        status = item.get("status") or {}
        details = item.get("contentDetails") or {}

        return VideoInfo(
            video_id=video_id,
            title=snippet.get("title", ""),
            channel_title=snippet.get("channelTitle", ""),
            embeddable=status.get("embeddable", True) is not False,
            duration_seconds=parse_duration_seconds(details.get("duration", "")),
        )
