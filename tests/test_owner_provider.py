import json
from datetime import datetime, timedelta, timezone

import pytest
from google.auth.exceptions import RefreshError
from google.oauth2.credentials import Credentials

from helpers import make_http_error
from moyofy.auth import AuthHealthStatus, AuthInvalid, FileTokenStore, check
from moyofy.auth.providers.youtube import YouTubeOwnerProvider, coerce_token_info


def _utcnow():
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _iso(dt):
    return dt.strftime("%Y-%m-%dT%H:%M:%SZ")


@pytest.fixture
def store(tmp_path):
    return FileTokenStore(tmp_path / "owner_token.json")


def make_provider(store):
    return YouTubeOwnerProvider(store, client_id="client-id", client_secret="client-secret")


def test_coerce_legacy_token_shape():
    info = coerce_token_info(
        {"access_token": "a1", "refresh_token": "r1", "expiry_date": 1_700_000_000_000},
        client_id="cid",
        client_secret="csecret",
    )
    assert info["token"] == "a1"
    assert info["expiry"] == "2023-11-14T22:13:20Z"
    assert info["client_id"] == "cid"
    assert info["client_secret"] == "csecret"
    assert info["token_uri"] == "https://oauth2.googleapis.com/token"


def test_coerce_keeps_stored_client():
    info = coerce_token_info({"refresh_token": "r", "client_id": "stored"}, client_id="env")
    assert info["client_id"] == "stored"


def test_not_ready_without_token(store):
    provider = make_provider(store)
    assert provider.is_ready() is False
    with pytest.raises(AuthInvalid):
        provider.credentials()


def test_valid_token_is_used_without_refresh(store, monkeypatch):
    store.save(
        {
            "token": "live",
            "refresh_token": "r1",
            "expiry": _iso(_utcnow() + timedelta(hours=1)),
        }
    )

    def no_refresh(self, request):
        raise AssertionError("refresh should not be called")

    monkeypatch.setattr(Credentials, "refresh", no_refresh)

    provider = make_provider(store)
    assert provider.is_ready() is True
    assert provider.credentials().token == "live"


def test_expired_legacy_token_is_refreshed_and_persisted(store, monkeypatch):
    store.save({"access_token": "old", "refresh_token": "r1", "expiry_date": 1_000})

    def fake_refresh(self, request):
        self.token = "fresh"
        self.expiry = _utcnow() + timedelta(hours=1)

    monkeypatch.setattr(Credentials, "refresh", fake_refresh)

    creds = make_provider(store).credentials()

    assert creds.token == "fresh"
    saved = store.load()
    assert saved["token"] == "fresh"
    assert saved["refresh_token"] == "r1"
    assert saved["client_id"] == "client-id"


def test_invalid_grant_clears_store(store, monkeypatch):
    store.save({"token": "old", "refresh_token": "revoked", "expiry": "2000-01-01T00:00:00Z"})

    def revoked(self, request):
        raise RefreshError("invalid_grant: Token has been expired or revoked.")

    monkeypatch.setattr(Credentials, "refresh", revoked)

    with pytest.raises(AuthInvalid) as excinfo:
        make_provider(store).credentials()
    assert excinfo.value.cleared is True
    assert store.load() is None


def test_save_if_rotated(store):
    provider = make_provider(store)
    creds = Credentials(
        token="new",
        refresh_token="r1",
        token_uri="https://oauth2.googleapis.com/token",
        client_id="client-id",
        client_secret="client-secret",
    )

    provider.save_if_rotated(creds, previous_token="new")
    assert store.load() is None

    provider.save_if_rotated(creds, previous_token="old")
    assert store.load()["token"] == "new"


def test_logout_clears_store(store):
    store.save({"refresh_token": "r1"})
    provider = make_provider(store)
    provider.logout()
    assert provider.is_ready() is False


class _Channels:
    def __init__(self, error=None):
        self.error = error

    def list(self, **kwargs):
        return self

    def execute(self):
        if self.error:
            raise self.error
        return {"items": [{"id": "UC123"}]}


class _YouTube:
    def __init__(self, error=None):
        self._channels = _Channels(error)

    def channels(self):
        return self._channels


@pytest.mark.parametrize(
    "error, expected",
    [
        (None, AuthHealthStatus.OK),
        (make_http_error(403, "quotaExceeded"), AuthHealthStatus.OK_API_QUOTA),
        (make_http_error(401, "authError"), AuthHealthStatus.AUTH_INVALID),
        (make_http_error(500, "backendError"), AuthHealthStatus.FAILED),
        (AuthInvalid("revoked"), AuthHealthStatus.AUTH_INVALID),
    ],
)
def test_health_check(store, monkeypatch, error, expected):
    provider = make_provider(store)
    monkeypatch.setattr(provider, "build_client", lambda creds=None: _YouTube(error))

    result = check(provider)

    assert result.provider == "youtube"
    assert result.status == expected


def test_stored_token_file_is_plain_json(store):
    store.save({"refresh_token": "r1"})
    assert json.loads(store.path.read_text(encoding="utf-8")) == {"refresh_token": "r1"}
