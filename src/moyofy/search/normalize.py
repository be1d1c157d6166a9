"""
normalize.py

Query canonicalization shared by the search cache and the in-flight table.

Pure and deterministic. Two queries map to the same key exactly when they
differ only in case, surrounding/internal whitespace, accents, or
punctuation that carries no meaning in a song or artist name.
"""

from __future__ import annotations

import re
import unicodedata
from typing import Optional

# Punctuation that is part of artist names (AC/DC, Guns N' Roses, blink-182)
_KEPT_SYMBOLS = "&/'-"

_SYMBOLS_RE = re.compile(rf"[^\w\s{re.escape(_KEPT_SYMBOLS)}]")
_WHITESPACE_RE = re.compile(r"\s+")


def strip_diacritics(text: str) -> str:
    decomposed = unicodedata.normalize("NFKD", text)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def normalize(raw: Optional[str]) -> str:
    """
    Canonicalize a free-text query into a stable cache key.

    Examples:
        >>> normalize("  Metallica   ")
        'metallica'

        >>> normalize("Café  Tacvba!!")
        'cafe tacvba'

        >>> normalize("AC/DC")
        'ac/dc'
    """
    if not raw:
        return ""

    # Lowercase before decomposing so that characters whose lowercase form
    # carries a combining mark (e.g. "İ") lose it below.
    text = strip_diacritics(str(raw).lower()).lower()
    text = text.replace("_", " ")
    text = _SYMBOLS_RE.sub(" ", text)
    return _WHITESPACE_RE.sub(" ", text).strip()
