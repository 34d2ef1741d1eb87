"""Search query variants for metadata lookup.

Leaderboard titles rarely match the movie database verbatim: they carry
season markers ("Season 2", "시즌 2"), part numbers, sequel numerals and
bracketed notes. Each title is expanded into an ordered list of
progressively looser queries; the first one that finds a result wins.
"""

from __future__ import annotations

import re

from rankboard.models import Category

_NORMALIZE_STEPS: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"\bS\d+\b", re.IGNORECASE), " "),
    (re.compile(r"\bSeason\s*\d+\b", re.IGNORECASE), " "),
    (re.compile(r"\bPart\s*\d+\b", re.IGNORECASE), " "),
    (re.compile(r"파트\s*\d+"), " "),
    (re.compile(r"시즌\s*\d+"), " "),
    (re.compile(r"[:\-]\s*(Chapter|Episode|Ep|Part)\s*\d+", re.IGNORECASE), " "),
    (re.compile(r"\b(II|III|IV|V|VI|VII|VIII|IX|X)\b", re.IGNORECASE), " "),
    (re.compile(r"\s+\d+$"), " "),
    (re.compile(r"\([^)]*\)"), " "),
    (re.compile(r"[\[\]『』〈〉「」《》【】]"), " "),
)

_SPACES = re.compile(r"\s{2,}")
_AMPERSAND = re.compile(r"\s*&\s*")
_PUNCTUATION = re.compile(r"[!?:;,.]")
_SUBTITLE = re.compile(r"[-:].*$")

ENDPOINTS_BY_CATEGORY: dict[Category | None, tuple[str, ...]] = {
    Category.FILM: ("movie", "multi"),
    Category.SERIES: ("tv", "multi"),
    None: ("multi",),
}


def _squash(text: str) -> str:
    return _SPACES.sub(" ", text).strip()


def normalize_query(title: str) -> str:
    """Strip season/part/sequel markers and bracketed notes.

    Examples:
        "Squid Game: Season 2"   -> "Squid Game:"
        "오징어 게임 시즌 2"        -> "오징어 게임"
        "Rocky III (Remastered)" -> "Rocky"
    """
    text = title
    for pattern, replacement in _NORMALIZE_STEPS:
        text = pattern.sub(replacement, text)
    return _squash(text)


def variant_queries(title: str) -> list[str]:
    """Ordered, de-duplicated search queries for a title."""
    base = normalize_query(title)
    candidates = [
        title.strip(),
        base,
        _squash(_AMPERSAND.sub(" and ", base)),
        _squash(_PUNCTUATION.sub(" ", base)),
        _SUBTITLE.sub("", base).strip(),
    ]
    seen: set[str] = set()
    variants = []
    for candidate in candidates:
        if candidate and candidate not in seen:
            seen.add(candidate)
            variants.append(candidate)
    return variants


def endpoint_candidates(category: Category | None) -> tuple[str, ...]:
    """Search endpoints to try, most specific first."""
    return ENDPOINTS_BY_CATEGORY.get(category, ENDPOINTS_BY_CATEGORY[None])
