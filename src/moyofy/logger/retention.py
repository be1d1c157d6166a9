from __future__ import annotations

from pathlib import Path
from typing import List, Optional


def enforce_retention(log_dir: Path, keep: int, active: Optional[Path] = None) -> List[Path]:
    """
    Keep the newest `keep` logs for one command; return what was removed.

    `active` is the file the current run writes to. It is never deleted and
    counts toward `keep`, so a long-running server cannot lose its own log.
    """
    if keep <= 0 or not log_dir.is_dir():
        return []

    logs = sorted(
        (p for p in log_dir.glob("*.log") if p != active),
        key=lambda p: p.stat().st_mtime,
        reverse=True,
    )
    budget = keep - 1 if active is not None else keep

    removed: List[Path] = []
    for old in logs[max(budget, 0):]:
        try:
            old.unlink()
            removed.append(old)
        except FileNotFoundError:
            continue
    return removed
