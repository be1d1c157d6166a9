"""
filters.py

Pure scoring and filtering of YouTube search results.

This module:
- Contains NO I/O
- Contains NO API calls
- Contains NO caching
- Contains NO state

It is safe to call anywhere and cheap to run.
Scores and thresholds come from config.py; keyword lists come from the
FilterLists passed in.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from moyofy import config
from moyofy.providers.youtube.filter_lists import FilterLists


# ============================================================
# Scoring
# ============================================================


@dataclass
class MusicScore:
    score: int = 0
    reasons: List[str] = field(default_factory=list)
    matched_artist: Optional[str] = None
    negative_reasons: List[str] = field(default_factory=list)

    @property
    def has_artist(self) -> bool:
        return self.matched_artist is not None

    def add(self, points: int, reason: str) -> None:
        self.score += points
        self.reasons.append(reason)
        if points < 0:
            self.negative_reasons.append(reason)


def _first_match(lists: FilterLists, name: str, *texts: str) -> Optional[str]:
    for term, pattern in lists.patterns(name):
        if any(pattern.search(t) for t in texts):
            return term
    return None


def _all_matches(lists: FilterLists, name: str, *texts: str) -> List[str]:
    return [
        term
        for term, pattern in lists.patterns(name)
        if any(pattern.search(t) for t in texts)
    ]


def _snippet_texts(item: Dict[str, Any]) -> Optional[Tuple[str, str, str]]:
    snippet = item.get("snippet") or {}
    title = snippet.get("title")
    channel = snippet.get("channelTitle")
    if not title or not channel:
        return None
    return title.lower(), channel.lower(), (snippet.get("description") or "").lower()


def score_item(item: Dict[str, Any], lists: FilterLists) -> MusicScore:
    """
    Score a search result for the bar's rock/metal profile.

    Examples:
        >>> score_item({"snippet": {"title": "Metallica - One",
        ...     "channelTitle": "Metallica"}}, FilterLists()).score >= 100
        True
    """
    result = MusicScore()
    texts = _snippet_texts(item)
    if texts is None:
        result.add(-100, "missing title or channel")
        return result

    title, channel, description = texts
    combined = f"{title} {description} {channel}"

    # Allowed artist in title/channel beats one only mentioned in the description
    artist = _first_match(lists, "allowed_artists", title, channel)
    if artist:
        result.matched_artist = artist
        result.add(config.SCORE_ARTIST_TITLE, f"allowed artist: {artist}")
    else:
        artist = _first_match(lists, "allowed_artists", combined)
        if artist:
            result.matched_artist = artist
            result.add(config.SCORE_ARTIST_DESCRIPTION, f"artist in description: {artist}")

    for genre in _all_matches(lists, "allowed_genres", channel, title):
        result.add(config.SCORE_GENRE, f"allowed genre: {genre}")

    if not result.has_artist or result.score < config.STRONG_ARTIST_SCORE:
        for keyword in _all_matches(lists, "forbidden_keywords", combined):
            result.add(config.SCORE_FORBIDDEN, f"forbidden: {keyword}")

    if not result.has_artist:
        for keyword in _all_matches(lists, "unwanted_version_keywords", title):
            result.add(config.SCORE_UNWANTED_VERSION, f"unwanted version: {keyword}")

    for term in _all_matches(lists, "rock_terms", title):
        result.add(config.SCORE_ROCK_TERM, f"rock term: {term}")

    if not result.has_artist:
        for term in _all_matches(lists, "pop_terms", title, description):
            result.add(config.SCORE_POP_TERM, f"commercial pop: {term}")

    for term in _all_matches(lists, "official_channel_terms", channel):
        result.add(config.SCORE_OFFICIAL_CHANNEL, f"official channel: {term}")

    for term in _all_matches(lists, "duration_hint_terms", title):
        result.add(config.SCORE_DURATION_HINT, f"duration hint: {term}")

    return result


def is_approved(result: MusicScore) -> bool:
    if result.score >= config.APPROVE_SCORE:
        return True
    if result.has_artist:
        return result.score >= config.APPROVE_SCORE_WITH_ARTIST
    return result.score >= config.APPROVE_SCORE_WITHOUT_ARTIST


def _rejection_key(result: MusicScore) -> str:
    if result.negative_reasons:
        return result.negative_reasons[0]
    return "low score"


# ============================================================
# Filtering
# ============================================================


def filter_music(
    items: List[Dict[str, Any]], lists: FilterLists
) -> Tuple[List[Dict[str, Any]], Dict[str, Any]]:
    """
    Keep the items the bar would play.

    Returns:
        (approved_items, stats). Approved items are copies annotated with
        `filterMetadata`; input items are never modified.
    """
    approved: List[Dict[str, Any]] = []
    scores: List[int] = []
    rejected_reasons: Dict[str, int] = {}

    for item in items or []:
        result = score_item(item, lists)
        scores.append(result.score)

        if is_approved(result):
            kept = copy.deepcopy(item)
            kept["filterMetadata"] = {
                "score": result.score,
                "artistMatched": result.matched_artist,
                "approved": True,
            }
            approved.append(kept)
        else:
            key = _rejection_key(result)
            rejected_reasons[key] = rejected_reasons.get(key, 0) + 1

    total = len(scores)
    stats = {
        "total": total,
        "approved": len(approved),
        "rejected": total - len(approved),
        "averageScore": round(sum(scores) / total) if total else 0,
        "rejectedReasons": rejected_reasons,
    }
    return approved, stats
