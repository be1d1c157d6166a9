"""
bootstrap.py

Runs before anything reads configuration. The two calls, in order:

    bootstrap_base_env()      once, at the entrypoint: .env file + run id
    bootstrap_run_context()   after argparse: command name and output flags

These are the only places that write to os.environ; the rest of the
process reads it through moyofy.env.
"""

from __future__ import annotations

import os
from datetime import datetime
from pathlib import Path

from dotenv import load_dotenv

from moyofy.env import PROJECT_ROOT, reset_env_caches

_BOOTSTRAPPED = False


def _dotenv_path(explicit: Path | None) -> Path:
    if explicit is not None:
        return explicit
    override = os.environ.get("MOYOFY_DOTENV")
    if override:
        return Path(override).expanduser()
    return PROJECT_ROOT / "config" / ".env"


def bootstrap_base_env(dotenv_path: Path | None = None) -> None:
    """
    Load the .env file if there is one. Real environment variables win,
    so a hosted deployment can ship without a file at all.
    """
    global _BOOTSTRAPPED
    if _BOOTSTRAPPED:
        return

    path = _dotenv_path(dotenv_path)
    if path.is_file():
        load_dotenv(path, override=False)

    # Shared by every log file this process writes
    os.environ.setdefault("MOYOFY_RUN_ID", datetime.now().strftime("%Y-%m-%d_%H-%M-%S"))

    reset_env_caches()
    _BOOTSTRAPPED = True


def bootstrap_run_context(
    *,
    command: str,
    verbose: bool | None = None,
    quiet: bool | None = None,
) -> None:
    os.environ["MOYOFY_COMMAND"] = command

    flags = {"MOYOFY_VERBOSE": verbose, "MOYOFY_QUIET": quiet}
    for name, value in flags.items():
        if value is not None:
            os.environ[name] = "1" if value else "0"

    reset_env_caches()
