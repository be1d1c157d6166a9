from __future__ import annotations

import logging
from pathlib import Path

FILE_FORMAT = (
    "%(asctime)s | [%(levelname)s] | %(run_id)s | %(threadName)s | %(name)s | %(message)s"
)


class RunIdFilter(logging.Filter):
    """Stamp every record with the run id so interleaved server logs can be split."""

    def __init__(self, run_id: str) -> None:
        super().__init__()
        self.run_id = run_id

    def filter(self, record: logging.LogRecord) -> bool:
        record.run_id = self.run_id
        return True


def build_file_handler(logfile: Path, run_id: str) -> logging.FileHandler:
    logfile.parent.mkdir(parents=True, exist_ok=True)

    handler = logging.FileHandler(logfile, encoding="utf-8")
    handler.setLevel(logging.NOTSET)
    handler.addFilter(RunIdFilter(run_id))
    handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    return handler


def repoint_file_handler(handler: logging.FileHandler, new_logfile: Path, run_id: str) -> None:
    """Move an existing handler to a new run's file without re-adding it to root."""
    new_logfile.parent.mkdir(parents=True, exist_ok=True)

    handler.acquire()
    try:
        handler.close()
        handler.baseFilename = str(new_logfile)
        handler.stream = handler._open()
        for f in handler.filters:
            if isinstance(f, RunIdFilter):
                f.run_id = run_id
                break
        else:
            handler.addFilter(RunIdFilter(run_id))
    finally:
        handler.release()
