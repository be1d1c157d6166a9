"""Process-wide record of what init_logging() last set up."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional


@dataclass
class LogRun:
    run_id: Optional[str] = None
    command: Optional[str] = None
    log_file: Optional[Path] = None

    def matches(self, command: str, log_file: Path) -> bool:
        return self.command == command and self.log_file == log_file


CURRENT = LogRun()


def reset() -> None:
    global CURRENT
    CURRENT = LogRun()
