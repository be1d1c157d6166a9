from __future__ import annotations

import logging
import os
from datetime import datetime
from pathlib import Path

from moyofy.env import get_logging_env
from moyofy.env.paths import module_logs_dir
from .console import build_console_handler
from .file import build_file_handler, repoint_file_handler
from .retention import enforce_retention
from . import state as _state


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def _level_to_int(level: str | int) -> int:
    if isinstance(level, int):
        return level
    lvl = logging.getLevelName(str(level).upper())
    return lvl if isinstance(lvl, int) else logging.INFO


def _ensure_run_id() -> str:
    run_id = os.environ.get("MOYOFY_RUN_ID")
    if not run_id:
        run_id = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
        os.environ["MOYOFY_RUN_ID"] = run_id
    return run_id


def _current_command() -> str:
    return os.environ.get("MOYOFY_COMMAND") or "serve"


def _target_logfile(command: str, run_id: str) -> Path:
    return module_logs_dir(command) / f"{command}-{run_id}.log"


def _squelch_noisy_loggers() -> None:
    logging.getLogger("googleapiclient.discovery_cache").setLevel(logging.ERROR)
    logging.getLogger("googleapiclient").setLevel(logging.WARNING)
    logging.getLogger("google").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    # Request lines are logged by the app itself
    logging.getLogger("werkzeug").setLevel(logging.WARNING)


def init_logging() -> None:
    """
    Initialize logging for the entire process.

    - Handlers are attached ONLY to the root logger.
    - Named loggers inherit via propagation.
    - Safe to call multiple times; file handler is repointed, not stacked.
    """
    env = get_logging_env()
    _squelch_noisy_loggers()

    root = logging.getLogger()
    command = _current_command()
    run_id = _ensure_run_id()
    logfile = _target_logfile(command, run_id)

    # Base level from env, but verbose forces DEBUG everywhere.
    root_level = logging.DEBUG if env.verbose else _level_to_int(env.log_level)

    if _state.CURRENT.matches(command, logfile):
        root.setLevel(root_level)
        return

    existing_file: logging.FileHandler | None = None
    for h in list(root.handlers):
        if isinstance(h, logging.FileHandler):
            existing_file = h
            break

    root.handlers.clear()
    root.setLevel(root_level)

    if existing_file is not None:
        repoint_file_handler(existing_file, logfile, run_id)
        root.addHandler(existing_file)
    else:
        root.addHandler(build_file_handler(logfile, run_id))

    if not env.quiet:
        root.addHandler(build_console_handler(root_level))

    _state.CURRENT = _state.LogRun(run_id=run_id, command=command, log_file=logfile)

    removed = enforce_retention(logfile.parent, int(env.log_retention), active=logfile)
    if removed:
        get_logger(__name__).debug(f"Pruned {len(removed)} old {command} log(s)")
