from __future__ import annotations

import logging
import sys

from rich.console import Console
from rich.logging import RichHandler

from moyofy.env import get_logging_env

# Console used by RichHandler (stderr keeps stdout free for CLI output)
LOG_CONSOLE = Console(
    file=sys.stderr,
    soft_wrap=True,
)


class QuietGateFilter(logging.Filter):
    """
    Drop console output when quiet mode is enabled at runtime.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        return not get_logging_env().quiet


def build_console_handler(level: int) -> logging.Handler:
    handler = RichHandler(
        console=LOG_CONSOLE,
        level=level,
        show_level=True,
        show_time=True,
        show_path=False,
        markup=False,
        rich_tracebacks=True,
    )

    # RichHandler renders the level and time columns itself.
    handler.setFormatter(logging.Formatter("%(message)s"))

    handler.addFilter(QuietGateFilter())
    return handler
