from __future__ import annotations

import os
from pathlib import Path

# src/moyofy/env/paths.py -> repository root
PROJECT_ROOT = Path(__file__).resolve().parents[3]


def _dir_from_env(env_var: str, default: Path) -> Path:
    """Directory named by `env_var` (or `default`), created on first use."""
    raw = os.environ.get(env_var)
    path = Path(raw).expanduser().resolve() if raw else default
    path.mkdir(parents=True, exist_ok=True)
    return path


def logs_dir() -> Path:
    return _dir_from_env("MOYOFY_LOGS_DIR", PROJECT_ROOT / "logs")


def auth_dir() -> Path:
    """Where the owner token and the OAuth client secrets live."""
    return _dir_from_env("MOYOFY_AUTH_DIR", PROJECT_ROOT / "auth")


def auth_token_file(filename: str = "owner_token.json") -> Path:
    return auth_dir() / filename


def auth_client_secrets_file(filename: str = "client_secret.json") -> Path:
    return auth_dir() / filename


def module_logs_dir(command: str) -> Path:
    """logs/<command>/, one subdirectory per CLI command (serve, auth, env)."""
    path = logs_dir() / command
    path.mkdir(parents=True, exist_ok=True)
    return path
