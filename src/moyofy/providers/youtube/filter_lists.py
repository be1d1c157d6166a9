"""
filter_lists.py

Keyword/artist lists used by the result filter.

The lists are data, not code: defaults come from config.py and a deployment
may point MOYOFY_FILTER_FILE at a JSON document to replace any of them.
The file is re-read whenever its modification time changes, so the bar can
retune the filter without a restart.

JSON shape (every key optional):

    {
      "allowed_artists": [...],
      "allowed_genres": [...],
      "forbidden_keywords": [...],
      "unwanted_version_keywords": [...],
      "rock_terms": [...],
      "pop_terms": [...],
      "official_channel_terms": [...],
      "duration_hint_terms": [...]
    }
"""

from __future__ import annotations

import json
import re
import threading
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Pattern, Tuple

from moyofy import config
from moyofy.logger import get_logger

logger = get_logger(__name__)


def _compile_terms(terms: Iterable[str]) -> Tuple[Tuple[str, Pattern[str]], ...]:
    compiled = []
    for term in terms:
        t = str(term).strip().lower()
        if not t:
            continue
        # Whole-term match; \b alone misbehaves on names ending in symbols
        compiled.append((t, re.compile(rf"(?<!\w){re.escape(t)}(?!\w)", re.IGNORECASE)))
    return tuple(compiled)


@dataclass(frozen=True)
class FilterLists:
    allowed_artists: Tuple[str, ...] = tuple(config.ALLOWED_ARTISTS)
    allowed_genres: Tuple[str, ...] = tuple(config.ALLOWED_GENRES)
    forbidden_keywords: Tuple[str, ...] = tuple(config.FORBIDDEN_KEYWORDS)
    unwanted_version_keywords: Tuple[str, ...] = tuple(config.UNWANTED_VERSION_KEYWORDS)
    rock_terms: Tuple[str, ...] = tuple(config.ROCK_TERMS)
    pop_terms: Tuple[str, ...] = tuple(config.POP_TERMS)
    official_channel_terms: Tuple[str, ...] = tuple(config.OFFICIAL_CHANNEL_TERMS)
    duration_hint_terms: Tuple[str, ...] = tuple(config.DURATION_HINT_TERMS)

    _patterns: Dict[str, Tuple[Tuple[str, Pattern[str]], ...]] = field(
        default_factory=dict, init=False, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        for f in fields(self):
            if f.init:
                self._patterns[f.name] = _compile_terms(getattr(self, f.name))

    def patterns(self, name: str) -> Tuple[Tuple[str, Pattern[str]], ...]:
        return self._patterns[name]

    @classmethod
    def from_mapping(cls, data: Dict[str, List[str]]) -> "FilterLists":
        known = {f.name for f in fields(cls) if f.init}
        unknown = set(data) - known
        if unknown:
            logger.warning(f"Ignoring unknown filter list keys: {sorted(unknown)}")

        overrides = {
            name: tuple(str(v) for v in data[name])
            for name in known
            if isinstance(data.get(name), list)
        }
        return replace(cls(), **overrides)


class FilterListSource:
    """
    Serves the current FilterLists, reloading `path` when it changes.

    A broken file never takes the filter down: the last good lists (or the
    built-in defaults) stay in effect and the problem is logged.
    """

    def __init__(self, path: Optional[Path] = None) -> None:
        self.path = Path(path) if path else None
        self._lock = threading.Lock()
        self._lists = FilterLists()
        self._mtime: Optional[float] = None

    def current(self) -> FilterLists:
        if self.path is None:
            return self._lists

        with self._lock:
            try:
                mtime = self.path.stat().st_mtime
            except OSError as e:
                if self._mtime is not None:
                    logger.warning(f"Filter file unavailable, keeping last lists: {e}")
                    self._mtime = None
                return self._lists

            if mtime != self._mtime:
                self._reload(mtime)
            return self._lists

    def _reload(self, mtime: float) -> None:
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            if not isinstance(data, dict):
                raise ValueError("top-level JSON value must be an object")
            self._lists = FilterLists.from_mapping(data)
            logger.info(f"Loaded filter lists from {self.path}")
        except (OSError, ValueError) as e:
            logger.error(f"Invalid filter file {self.path}: {e}")
        # Remember the mtime either way so a bad file is not re-parsed per request
        self._mtime = mtime
