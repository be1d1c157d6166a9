import json

from moyofy.api import create_app
from moyofy.env import get_env, reset_env_caches
from moyofy.services import build_services


def test_build_services_wires_shared_breaker(monkeypatch):
    monkeypatch.setenv("DEFAULT_PLAYLIST_ID", "PL123")
    reset_env_caches()

    services = build_services(get_env())

    assert services.search.breaker is services.breaker
    assert services.songs.breaker is services.breaker
    assert services.songs.playlist_id == "PL123"
    assert services.search.cache.max_entries == 600
    assert services.owner.is_ready() is False


def test_filter_file_is_used(monkeypatch, tmp_path):
    path = tmp_path / "filters.json"
    path.write_text(json.dumps({"allowed_artists": ["los bunkers"]}), encoding="utf-8")
    monkeypatch.setenv("MOYOFY_FILTER_FILE", str(path))
    reset_env_caches()

    services = build_services(get_env())

    assert services.search.filter_lists().allowed_artists == ("los bunkers",)


def test_health_without_network():
    app = create_app(build_services(get_env()))
    body = app.test_client().get("/health").get_json()
    assert body["owner"]["authorized"] is False
    assert body["config"]["playlistConfigured"] is False
