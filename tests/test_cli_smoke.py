import os
import subprocess
import sys
from pathlib import Path

SRC = str(Path(__file__).resolve().parent.parent / "src")


def run_cli(*args):
    env = dict(os.environ)
    env["PYTHONPATH"] = SRC + os.pathsep + env.get("PYTHONPATH", "")
    return subprocess.run(
        [sys.executable, "-m", "moyofy", *args],
        capture_output=True,
        text=True,
        env=env,
    )


def test_serve_help_runs():
    assert run_cli("serve", "--help").returncode == 0


def test_auth_help_runs():
    assert run_cli("auth", "--help").returncode == 0


def test_help_command_runs():
    result = run_cli("help")
    assert result.returncode == 0
    assert "serve" in result.stdout


def test_env_dump_runs():
    result = run_cli("env", "dump")
    assert result.returncode == 0
    assert "Runtime Environment" in result.stdout


def test_auth_without_token_exits_2():
    result = run_cli("auth", "--quiet")
    assert result.returncode == 2


def test_auth_logout_exits_0():
    assert run_cli("auth", "--logout", "--quiet").returncode == 0


def test_env_dump_json_runs():
    result = run_cli("env", "dump", "--json")
    assert result.returncode == 0
    assert "youtube_api_keys" in result.stdout


def test_env_check_without_playlist_exits_2():
    result = run_cli("env", "check")
    assert result.returncode == 2
    assert "playlist" in result.stdout
