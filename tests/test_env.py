import pytest

from moyofy.env import ConfigError, Environment, get_env, reset_env_caches


def test_env_defaults():
    env = get_env()
    assert env.youtube_api_keys == ["test-key-1", "test-key-2"]
    assert env.port == 8080
    assert env.cache_max_entries == 600
    assert env.cache_ttl == 6 * 60 * 60
    assert env.rate_limit_burst == 3
    assert env.rate_limit_refill_sec == 4.0
    assert env.quota_block_sec == 30 * 60
    assert env.min_query_length == 3
    assert env.token_store == "file"
    assert env.trust_proxy is False
    assert env.proxy_hops == 1
    assert env.verbose is False
    assert env.quiet is False


def test_env_is_cached_until_reset(monkeypatch):
    first = get_env()
    monkeypatch.setenv("PORT", "9000")
    assert get_env() is first

    reset_env_caches()
    assert get_env().port == 9000


def test_legacy_single_api_key(monkeypatch):
    monkeypatch.delenv("YOUTUBE_API_KEYS")
    monkeypatch.setenv("YOUTUBE_API_KEY", "only-key")
    assert Environment().youtube_api_keys == ["only-key"]


def test_missing_api_key_is_config_error(monkeypatch):
    monkeypatch.delenv("YOUTUBE_API_KEYS")
    with pytest.raises(ConfigError):
        Environment()


def test_bad_numbers_fall_back_to_defaults(monkeypatch):
    monkeypatch.setenv("PORT", "not-a-port")
    monkeypatch.setenv("SEARCH_CACHE_TTL_SEC", "soon")
    env = Environment()
    assert env.port == 8080
    assert env.cache_ttl == 6 * 60 * 60


def test_node_env_is_honored(monkeypatch):
    monkeypatch.setenv("NODE_ENV", "production")
    assert Environment().environment == "production"

    monkeypatch.setenv("MOYOFY_ENV", "staging")
    assert Environment().environment == "staging"


def test_cors_origins_list(monkeypatch):
    monkeypatch.setenv("MOYOFY_CORS_ORIGINS", "https://bar.example, https://admin.example")
    assert Environment().cors_origins == ["https://bar.example", "https://admin.example"]


def test_as_dict_sections():
    data = get_env().as_dict()
    assert list(data) == ["Logging", "Server", "Search", "Playlist", "API"]
    assert data["API"]["youtube_api_keys"] == "2 keys loaded"
    assert data["Playlist"]["playlist_id"] == "(not configured)"
