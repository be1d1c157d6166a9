from __future__ import annotations

from moyofy.providers.youtube.api_manager import (
    APIError,
    APIKeyManager,
    QuotaExhaustedError,
)
from moyofy.providers.youtube.filter_lists import FilterLists, FilterListSource
from moyofy.providers.youtube.filters import filter_music
from moyofy.providers.youtube.search import VideoInfo, YouTubeSearcher

__all__ = [
    "APIError",
    "APIKeyManager",
    "FilterListSource",
    "FilterLists",
    "QuotaExhaustedError",
    "VideoInfo",
    "YouTubeSearcher",
    "filter_music",
]
