"""Column lookup for untyped spreadsheet rows.

Netflix exports and hand-edited workbooks disagree on header spelling
("Show Title", "show_title", "SHOW TITLE"), so every logical field is
resolved through an ordered list of synonyms from config.COLUMN_SYNONYMS.
"""

from __future__ import annotations

import re
from typing import Any, Callable, Iterable, Mapping, TypeVar

from rankboard.config import COLUMN_SYNONYMS

T = TypeVar("T")
R = TypeVar("R")

_WHITESPACE = re.compile(r"\s+")


def normalize_column_name(name: str) -> str:
    """Fold a header for comparison.

    Examples:
        "Show Title"     -> "show_title"
        " weekly_views " -> "weekly_views"
    """
    return _WHITESPACE.sub("_", str(name).strip().lower())


def first_match(
    candidates: Iterable[T],
    attempt: Callable[[T], R | None],
) -> R | None:
    """Return the first non-None result of attempt() over candidates.

    The building block for every "try strategies in order" cascade in
    the pipeline: synonym columns, date formats and search variants.
    """
    for candidate in candidates:
        result = attempt(candidate)
        if result is not None:
            return result
    return None


def find_column(row: Mapping[str, Any], field: str) -> Any:
    """Return the value of the first synonym of field present in row.

    Synonyms are tried in configured order, so the earliest listed
    header wins when a row carries several of them.

    Args:
        row: Raw row object with arbitrary header spelling.
        field: Logical field name, a key of COLUMN_SYNONYMS.

    Returns:
        The raw cell value, or None if no synonym is present.
    """
    folded = {normalize_column_name(key): value for key, value in row.items()}
    return first_match(
        (normalize_column_name(name) for name in COLUMN_SYNONYMS[field]),
        folded.get,
    )


def find_text(row: Mapping[str, Any], field: str) -> str:
    """Like find_column, but stringified and stripped ("" when absent)."""
    value = find_column(row, field)
    if value is None:
        return ""
    return str(value).strip()
