from __future__ import annotations

import json
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from google.auth.exceptions import RefreshError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from moyofy import config
from moyofy.auth.base import AuthHealthResult, AuthHealthStatus
from moyofy.auth.errors import AuthFailed, AuthInvalid
from moyofy.auth.token_store import TokenStore
from moyofy.logger import get_logger
from moyofy.providers.youtube.api_manager import classify_http_error

GOOGLE_AUTH_URI = "https://accounts.google.com/o/oauth2/auth"
GOOGLE_TOKEN_URI = "https://oauth2.googleapis.com/token"


def is_invalid_grant(exc: Exception) -> bool:
    """Refresh token revoked or expired; only a new login can fix it."""
    return "invalid_grant" in str(exc)


def coerce_token_info(
    info: Dict[str, Any], client_id: str = "", client_secret: str = ""
) -> Dict[str, Any]:
    """
    Accept both google-auth's authorized-user JSON and the legacy
    {access_token, refresh_token, expiry_date(ms)} shape, filling the client
    id/secret from configuration when the stored token lacks them.
    """
    out = dict(info)

    if "token" not in out and out.get("access_token"):
        out["token"] = out["access_token"]

    if "expiry" not in out and out.get("expiry_date"):
        try:
            expiry = datetime.fromtimestamp(int(out["expiry_date"]) / 1000, tz=timezone.utc)
            out["expiry"] = expiry.strftime("%Y-%m-%dT%H:%M:%SZ")
        except (TypeError, ValueError):
            pass

    if not out.get("client_id") and client_id:
        out["client_id"] = client_id
    if not out.get("client_secret") and client_secret:
        out["client_secret"] = client_secret
    out.setdefault("token_uri", GOOGLE_TOKEN_URI)

    return out


class YouTubeOwnerProvider:
    """
    The bar's "owner" Google account: the one that owns the shared playlist.

    Credentials live in a TokenStore. Expired access tokens are refreshed on
    demand and rotations are written back; a revoked refresh token clears
    the store so the next login starts clean.
    """

    name = "youtube"

    def __init__(
        self,
        store: TokenStore,
        client_id: str = "",
        client_secret: str = "",
        client_secrets_file: Optional[Path] = None,
        scopes: Optional[list] = None,
    ) -> None:
        self.store = store
        self.client_id = client_id
        self.client_secret = client_secret
        self.client_secrets_file = client_secrets_file
        self.scopes = scopes or list(config.YOUTUBE_OAUTH_SCOPES)
        self._lock = threading.Lock()
        self._logger = get_logger("auth.youtube")

    # -----------------------------------------------------------------
    # Readiness
    # -----------------------------------------------------------------

    def is_ready(self) -> bool:
        info = self.store.load()
        return bool(info and (info.get("refresh_token") or info.get("token")))

    # -----------------------------------------------------------------
    # Credentials lifecycle
    # -----------------------------------------------------------------

    def credentials(self) -> Credentials:
        """
        Load credentials, refreshing them if needed.

        Raises:
            AuthInvalid: no stored token, or the refresh token was revoked
            AuthFailed: refresh failed for another reason
        """
        with self._lock:
            info = self.store.load()
            if not info:
                raise AuthInvalid("Owner account is not authorized")

            try:
                creds = Credentials.from_authorized_user_info(
                    coerce_token_info(info, self.client_id, self.client_secret),
                    self.scopes,
                )
            except ValueError as e:
                self._logger.error(f"Stored owner token is unusable: {e}")
                raise AuthInvalid(str(e)) from e

            if creds.valid:
                return creds

            if not creds.refresh_token:
                raise AuthInvalid("Owner token expired and has no refresh token")

            try:
                self._logger.debug("Refreshing owner OAuth token...")
                creds.refresh(Request())
            except RefreshError as e:
                if is_invalid_grant(e):
                    self._logger.warning("oauth.invalid_grant: clearing stored owner token")
                    self.store.clear()
                    raise AuthInvalid(
                        "Owner authorization expired or was revoked", cleared=True
                    ) from e
                self._logger.error(f"Failed to refresh token: {e}")
                raise AuthFailed(str(e)) from e

            self._logger.debug("Successfully refreshed owner OAuth token")
            self._save(creds)
            return creds

    def save_if_rotated(self, creds: Credentials, previous_token: Optional[str]) -> None:
        """Persist credentials the HTTP layer refreshed behind our back."""
        if creds.token and creds.token != previous_token:
            with self._lock:
                self._save(creds)

    def invalidate(self) -> None:
        self.store.clear()

    def logout(self) -> None:
        self.invalidate()

    def _save(self, creds: Credentials) -> None:
        try:
            self.store.save(json.loads(creds.to_json()))
        except OSError as e:
            self._logger.warning(f"Failed to save owner token: {e}")

    # -----------------------------------------------------------------
    # Client
    # -----------------------------------------------------------------

    def build_client(self, creds: Optional[Credentials] = None) -> Any:
        creds = creds or self.credentials()
        try:
            return build("youtube", "v3", credentials=creds, cache_discovery=False)
        except Exception as e:
            self._logger.error(f"Failed to build YouTube client: {e}")
            raise AuthFailed(str(e)) from e

    # -----------------------------------------------------------------
    # Interactive login (CLI)
    # -----------------------------------------------------------------

    def _client_config(self) -> Dict[str, Any]:
        if self.client_id and self.client_secret:
            return {
                "installed": {
                    "client_id": self.client_id,
                    "client_secret": self.client_secret,
                    "auth_uri": GOOGLE_AUTH_URI,
                    "token_uri": GOOGLE_TOKEN_URI,
                    "redirect_uris": ["http://localhost"],
                }
            }
        raise AuthInvalid(
            "Missing OAuth client: set OAUTH_CLIENT_ID/OAUTH_CLIENT_SECRET "
            f"or place client_secret.json at {self.client_secrets_file}"
        )

    def login(self) -> None:
        """Run the installed-app consent flow and store the owner token."""
        try:
            if self.client_secrets_file and self.client_secrets_file.exists():
                flow = InstalledAppFlow.from_client_secrets_file(
                    str(self.client_secrets_file), self.scopes
                )
            else:
                flow = InstalledAppFlow.from_client_config(self._client_config(), self.scopes)

            self._logger.debug("Starting OAuth authentication flow...")
            # offline + consent so Google always hands back a refresh token
            creds = flow.run_local_server(port=0, access_type="offline", prompt="consent")
        except AuthInvalid:
            raise
        except Exception as e:
            self._logger.error(f"OAuth authentication failed: {e}")
            raise AuthInvalid(str(e)) from e

        self._logger.info("oauth.login.ok")
        with self._lock:
            self._save(creds)

    # -----------------------------------------------------------------
    # Health
    # -----------------------------------------------------------------

    def health_check(self) -> AuthHealthResult:
        """
        Validates OAuth by making a cheap authenticated request.
        Treats API quota exhaustion as OAuth OK.
        """
        self._logger.info("oauth.check.start")

        try:
            youtube = self.build_client()
            youtube.channels().list(part="id", mine=True, maxResults=1).execute()

            self._logger.info("oauth.check.ok")
            return AuthHealthResult(
                provider=self.name,
                status=AuthHealthStatus.OK,
                message="OAuth OK",
            )

        except AuthInvalid as e:
            self._logger.error("oauth.check.auth_invalid", exc_info=e)
            return AuthHealthResult(
                provider=self.name,
                status=AuthHealthStatus.AUTH_INVALID,
                message="OAuth INVALID - reauthentication required",
            )

        except HttpError as e:
            kind = classify_http_error(e)
            if kind == "oauth_quota":
                self._logger.warning("oauth.check.ok_quota_exhausted")
                return AuthHealthResult(
                    provider=self.name,
                    status=AuthHealthStatus.OK_API_QUOTA,
                    message="OAuth OK (API quota exhausted)",
                )
            if kind == "auth":
                self._logger.error("oauth.check.auth_invalid", exc_info=e)
                return AuthHealthResult(
                    provider=self.name,
                    status=AuthHealthStatus.AUTH_INVALID,
                    message="OAuth INVALID - reauthentication required",
                )
            self._logger.error("oauth.check.failed", exc_info=e)
            return AuthHealthResult(
                provider=self.name,
                status=AuthHealthStatus.FAILED,
                message="OAuth check failed (unexpected error)",
            )

        except Exception as e:
            self._logger.error("oauth.check.failed", exc_info=e)
            return AuthHealthResult(
                provider=self.name,
                status=AuthHealthStatus.FAILED,
                message="OAuth check failed (unexpected error)",
            )
