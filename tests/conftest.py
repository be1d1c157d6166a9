import logging

import pytest


@pytest.fixture(autouse=True)
def clean_env_and_logging(monkeypatch, tmp_path):
    """
    Ensure tests don't leak env, logger state, or cached env views.
    """

    keys = [
        "MOYOFY_LOGS_DIR",
        "MOYOFY_AUTH_DIR",
        "MOYOFY_COMMAND",
        "MOYOFY_RUN_ID",
        "MOYOFY_VERBOSE",
        "MOYOFY_QUIET",
        "MOYOFY_ENV",
        "MOYOFY_TOKEN_STORE",
        "MOYOFY_FILTER_FILE",
        "MOYOFY_CORS_ORIGINS",
        "MOYOFY_TRUST_PROXY",
        "NODE_ENV",
        "YOUTUBE_API_KEY",
        "YOUTUBE_API_KEYS",
        "DEFAULT_PLAYLIST_ID",
        "OAUTH_CLIENT_ID",
        "OAUTH_CLIENT_SECRET",
        "OWNER_TOKENS_JSON",
        "LOG_LEVEL",
        "LOG_RETENTION",
    ]
    for k in keys:
        monkeypatch.delenv(k, raising=False)

    # Minimal required env
    monkeypatch.setenv("YOUTUBE_API_KEYS", "test-key-1,test-key-2")

    # Keep logs and tokens out of the project tree
    monkeypatch.setenv("MOYOFY_LOGS_DIR", str(tmp_path / "logs"))
    monkeypatch.setenv("MOYOFY_AUTH_DIR", str(tmp_path / "auth"))

    from moyofy.env import reset_env_caches

    reset_env_caches()

    # Reset logger global state
    import moyofy.logger.state as state

    state.reset()

    root = logging.getLogger()
    for h in list(root.handlers):
        root.removeHandler(h)

    yield

    for h in list(root.handlers):
        root.removeHandler(h)
        h.close()
    reset_env_caches()


class FakeClock:
    """Manually advanced replacement for time.monotonic."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()
