import os

from moyofy import bootstrap


def _fresh(monkeypatch):
    monkeypatch.setattr(bootstrap, "_BOOTSTRAPPED", False)
    # Register the var with monkeypatch so teardown removes what load_dotenv sets
    monkeypatch.setenv("MOYOFY_TEST_FROM_DOTENV", "x")
    monkeypatch.delenv("MOYOFY_TEST_FROM_DOTENV")


def test_dotenv_override_path_is_loaded(tmp_path, monkeypatch):
    _fresh(monkeypatch)
    dotenv = tmp_path / "bar.env"
    dotenv.write_text("MOYOFY_TEST_FROM_DOTENV=loaded\n", encoding="utf-8")
    monkeypatch.setenv("MOYOFY_DOTENV", str(dotenv))

    bootstrap.bootstrap_base_env()

    assert os.environ["MOYOFY_TEST_FROM_DOTENV"] == "loaded"
    assert os.environ.get("MOYOFY_RUN_ID")


def test_real_environment_wins_over_dotenv(tmp_path, monkeypatch):
    _fresh(monkeypatch)
    dotenv = tmp_path / "bar.env"
    dotenv.write_text("YOUTUBE_API_KEYS=from-file\n", encoding="utf-8")

    bootstrap.bootstrap_base_env(dotenv)

    assert os.environ["YOUTUBE_API_KEYS"] == "test-key-1,test-key-2"


def test_run_context_sets_flags(monkeypatch):
    for name in ("MOYOFY_COMMAND", "MOYOFY_VERBOSE", "MOYOFY_QUIET"):
        monkeypatch.setenv(name, "")

    bootstrap.bootstrap_run_context(command="auth", verbose=True, quiet=False)

    assert os.environ["MOYOFY_COMMAND"] == "auth"
    assert os.environ["MOYOFY_VERBOSE"] == "1"
    assert os.environ["MOYOFY_QUIET"] == "0"
