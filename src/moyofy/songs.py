"""
songs.py

Guest song suggestions: validate a video and append it to the bar's shared
playlist as the owner account.

    configured? → valid id? → owner ready? → quota breaker
               → video lookup (API key) → insert (owner OAuth)

Like the search service, every result is a SuggestOutcome; the HTTP layer
decides status codes.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Protocol

import requests
from google.auth.exceptions import RefreshError
from googleapiclient.errors import HttpError

from moyofy import config
from moyofy.auth.errors import AuthFailed, AuthInvalid
from moyofy.auth.providers.youtube import is_invalid_grant
from moyofy.logger import get_logger
from moyofy.providers.youtube.api_manager import (
    APIError,
    QuotaExhaustedError,
    classify_http_error,
)
from moyofy.providers.youtube.playlist import TRANSPORT_ERRORS, http_reason, playlist_insert
from moyofy.providers.youtube.search import VideoInfo
from moyofy.search.breaker import QuotaBreaker

logger = get_logger(__name__)

_VIDEO_ID_RE = re.compile(config.VIDEO_ID_PATTERN)


class VideoLookup(Protocol):
    def fetch_video(self, video_id: str) -> Optional[VideoInfo]: ...


class OwnerIdentity(Protocol):
    def is_ready(self) -> bool: ...

    def credentials(self) -> Any: ...

    def build_client(self, creds: Any = None) -> Any: ...

    def save_if_rotated(self, creds: Any, previous_token: Optional[str]) -> None: ...

    def invalidate(self) -> None: ...


class SuggestStatus(str, Enum):
    OK = "ok"
    NOT_CONFIGURED = "not_configured"
    INVALID_INPUT = "invalid_input"
    OWNER_NOT_AUTHORIZED = "owner_not_authorized"
    QUOTA_BLOCKED = "quota_blocked"
    NOT_FOUND = "not_found"
    NOT_EMBEDDABLE = "not_embeddable"
    TOO_LONG = "too_long"
    OWNER_TOKENS_INVALID = "owner_tokens_invalid"
    OWNER_UNAUTHORIZED = "owner_unauthorized"
    ACCESS_DENIED = "access_denied"
    FAILED = "failed"


# Statuses the owner can only fix by authorizing again
OWNER_AUTH_STATUSES = frozenset(
    {
        SuggestStatus.OWNER_NOT_AUTHORIZED,
        SuggestStatus.OWNER_TOKENS_INVALID,
        SuggestStatus.OWNER_UNAUTHORIZED,
    }
)


@dataclass(frozen=True)
class SuggestOutcome:
    status: SuggestStatus
    video_id: str = ""
    message: str = ""
    video: Optional[VideoInfo] = None
    playlist_item_id: Optional[str] = None
    retry_after: float = 0.0

    @property
    def ok(self) -> bool:
        return self.status == SuggestStatus.OK

    @property
    def requires_owner_auth(self) -> bool:
        return self.status in OWNER_AUTH_STATUSES or self.status == SuggestStatus.NOT_CONFIGURED


class SongQueue:
    def __init__(
        self,
        videos: VideoLookup,
        owner: OwnerIdentity,
        breaker: QuotaBreaker,
        playlist_id: str = "",
        max_duration: int = config.DEFAULT_MAX_SONG_DURATION_SEC,
        quota_block_sec: float = config.DEFAULT_QUOTA_BLOCK_SEC,
    ) -> None:
        self.videos = videos
        self.owner = owner
        self.breaker = breaker
        self.playlist_id = playlist_id
        self.max_duration = max_duration
        self.quota_block_sec = quota_block_sec

    def suggest(self, video_id: Optional[str]) -> SuggestOutcome:
        video_id = (video_id or "").strip() if isinstance(video_id, str) else ""

        if not self.playlist_id:
            return SuggestOutcome(
                SuggestStatus.NOT_CONFIGURED,
                video_id,
                "Playlist is not configured",
            )

        if not _VIDEO_ID_RE.match(video_id):
            return SuggestOutcome(SuggestStatus.INVALID_INPUT, video_id, "Invalid videoId")

        if not self.owner.is_ready():
            return SuggestOutcome(
                SuggestStatus.OWNER_NOT_AUTHORIZED,
                video_id,
                "The bar owner has not authorized the playlist yet",
            )

        if self.breaker.is_blocked():
            return self._quota_blocked(video_id)

        # ---- validate with the API key pool ----
        try:
            video = self.videos.fetch_video(video_id)
        except QuotaExhaustedError:
            self.breaker.block(self.quota_block_sec)
            return self._quota_blocked(video_id)
        except (APIError, requests.RequestException) as e:
            logger.error(f"suggest.lookup.failed video={video_id}: {e}")
            return SuggestOutcome(SuggestStatus.FAILED, video_id, "Could not verify the video")

        if video is None:
            return SuggestOutcome(SuggestStatus.NOT_FOUND, video_id, "Video not found")
        if not video.embeddable:
            return SuggestOutcome(
                SuggestStatus.NOT_EMBEDDABLE, video_id, "Video cannot be embedded", video
            )
        if video.duration_seconds > self.max_duration:
            return SuggestOutcome(
                SuggestStatus.TOO_LONG,
                video_id,
                f"Video is longer than {self.max_duration // 60} minutes",
                video,
            )

        return self._insert(video)

    # --------------------------------------------------------
    # Internals
    # --------------------------------------------------------

    def _insert(self, video: VideoInfo) -> SuggestOutcome:
        video_id = video.video_id

        try:
            creds = self.owner.credentials()
            previous_token = getattr(creds, "token", None)
            youtube = self.owner.build_client(creds)
            item_id = playlist_insert(youtube, self.playlist_id, video_id)
            self.owner.save_if_rotated(creds, previous_token)

        except AuthInvalid as e:
            logger.warning(f"suggest.owner.invalid video={video_id}: {e}")
            if e.cleared:
                return self._tokens_invalid(video_id)
            return SuggestOutcome(
                SuggestStatus.OWNER_NOT_AUTHORIZED,
                video_id,
                "The bar owner has not authorized the playlist yet",
            )

        except RefreshError as e:
            if is_invalid_grant(e):
                logger.warning("oauth.invalid_grant during insert: clearing owner token")
                self.owner.invalidate()
                return self._tokens_invalid(video_id)
            logger.error(f"suggest.owner.refresh_failed video={video_id}: {e}")
            return SuggestOutcome(SuggestStatus.FAILED, video_id, "Could not add the song")

        except QuotaExhaustedError:
            self.breaker.block(self.quota_block_sec)
            return self._quota_blocked(video_id)

        except HttpError as e:
            kind = classify_http_error(e)
            logger.error(f"suggest.insert.failed video={video_id} kind={kind}: {http_reason(e)}")
            if kind == "auth":
                return SuggestOutcome(
                    SuggestStatus.OWNER_UNAUTHORIZED,
                    video_id,
                    "The owner account is no longer authorized",
                )
            if kind == "forbidden":
                return SuggestOutcome(
                    SuggestStatus.ACCESS_DENIED,
                    video_id,
                    "YouTube denied access to the playlist",
                )
            return SuggestOutcome(SuggestStatus.FAILED, video_id, "Could not add the song")

        except (AuthFailed, requests.RequestException, *TRANSPORT_ERRORS) as e:
            logger.error(f"suggest.insert.failed video={video_id}: {e!r}")
            return SuggestOutcome(SuggestStatus.FAILED, video_id, "Could not add the song")

        logger.info(f"suggest.ok video={video_id} title={video.title!r}")
        return SuggestOutcome(
            SuggestStatus.OK,
            video_id,
            "Song added to the playlist",
            video,
            playlist_item_id=item_id,
        )

    def _tokens_invalid(self, video_id: str) -> SuggestOutcome:
        return SuggestOutcome(
            SuggestStatus.OWNER_TOKENS_INVALID,
            video_id,
            "Owner authorization expired, the owner must sign in again",
        )

    def _quota_blocked(self, video_id: str) -> SuggestOutcome:
        return SuggestOutcome(
            SuggestStatus.QUOTA_BLOCKED,
            video_id,
            "YouTube quota exceeded, try again later",
            retry_after=self.breaker.remaining(),
        )
