"""
playlist.py

Owner-authenticated playlist writes.
"""

from __future__ import annotations

from typing import Any, Optional

import httplib2
from googleapiclient.errors import HttpError

from moyofy.logger import get_logger
from moyofy.providers.youtube.api_manager import execute_with_retry

logger = get_logger(__name__)

# What the owner client raises when Google cannot be reached at all
# (DNS, refused connection, socket timeout); HttpError means it answered
TRANSPORT_ERRORS = (httplib2.HttpLib2Error, OSError)


def http_reason(e: HttpError) -> str:
    """Short human-readable reason for an HttpError, for logs."""
    details = getattr(e, "error_details", None)
    if details:
        return str(details)
    content = getattr(e, "content", b"") or b""
    if isinstance(content, bytes):
        return content.decode("utf-8", errors="replace")[:300]
    return str(content)[:300] or str(e)


def playlist_insert(youtube: Any, playlist_id: str, video_id: str) -> Optional[str]:
    """
    Append a video to the playlist. Returns the playlistItem id.

    Raises:
        QuotaExhaustedError: OAuth quota exhausted
        HttpError: auth / forbidden / other YouTube failures
    """

    def _op() -> Any:
        return (
            youtube.playlistItems()
            .insert(
                part="snippet",
                body={
                    "snippet": {
                        "playlistId": playlist_id,
                        "resourceId": {"kind": "youtube#video", "videoId": video_id},
                    }
                },
            )
            .execute()
        )

    resp = execute_with_retry(_op, name=f"insert {video_id}")
    item_id = (resp or {}).get("id")
    logger.info(f"playlist.insert.ok video={video_id} item={item_id}")
    return item_id
