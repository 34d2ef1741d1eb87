"""Row Normalizer: raw spreadsheet rows to canonical records.

Best-effort by contract. A row that lacks a title, a parseable week or
a resolvable category is dropped (normalize_* returns None) and the
batch carries on; one corrupt row must never abort a whole import.
Numeric measures that are missing or malformed default to 0 for weekly
rows. Popular (91-day) rows additionally require both measures to be
strictly positive.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Iterable, Mapping

from rankboard.config import SHEET_PATTERNS
from rankboard.models import (
    Bucket,
    Category,
    LanguageClass,
    PopularRow,
    WeeklyRow,
)
from rankboard.parsing.columns import find_column, find_text, first_match
from rankboard.parsing.dates import parse_period

logger = logging.getLogger(__name__)

NOT_AVAILABLE = "n/a"

Classification = tuple[Category, LanguageClass]


def _parse_number(value: Any) -> float:
    """Parse a non-negative finite measure, returning 0 on failure.

    Spreadsheets hand back ints, floats, strings with thousands
    separators or blanks; none of those should sink the row.
    """
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, str):
        value = value.replace(",", "").strip()
    try:
        number = float(value)
    except (ValueError, TypeError):
        return 0
    if not math.isfinite(number) or number < 0:
        return 0
    return number


def _parse_count(value: Any) -> int:
    return int(_parse_number(value))


def _parse_rank(value: Any) -> int | None:
    """Parse a source rank; 0, blanks and garbage mean "no rank"."""
    rank = _parse_count(value)
    return rank if rank > 0 else None


def resolve_title(row: Mapping[str, Any]) -> str:
    """Pick the display title for a row.

    Season-level titles ("Squid Game: Season 2") beat show titles
    ("Squid Game"), which beat a generic "title" column. Netflix writes
    the literal "N/A" in season_title for films, which counts as absent.
    """

    def present(field: str) -> str | None:
        text = find_text(row, field)
        if not text or text.lower() == NOT_AVAILABLE:
            return None
        return text

    return first_match(("season_title", "show_title", "title"), present) or ""


def classify_sheet(sheet_hint: str | None) -> Classification | None:
    """Infer (category, language) from a worksheet label.

    The label must name both a category ("TV"/"Films") and a language
    ("English"/"Non-English"), e.g. "TV (Non-English)" or "films_english".
    Non-English is checked first since every such label also contains
    "english".
    """
    if not sheet_hint:
        return None
    if SHEET_PATTERNS["series"].search(sheet_hint):
        category = Category.SERIES
    elif SHEET_PATTERNS["film"].search(sheet_hint):
        category = Category.FILM
    else:
        return None
    if SHEET_PATTERNS["non_english"].search(sheet_hint):
        return category, LanguageClass.OTHER
    if SHEET_PATTERNS["english"].search(sheet_hint):
        return category, LanguageClass.ENGLISH
    return None


def classify_category_text(text: str) -> Classification | None:
    """Infer (category, language) from a row's free-text category cell.

    Examples:
        "TV (Non-English)" -> (SERIES, OTHER)
        "Films (English)"  -> (FILM, ENGLISH)
        "Films"            -> (FILM, ENGLISH)
    """
    lowered = text.strip().lower()
    if not lowered:
        return None
    category = Category.SERIES if "tv" in lowered else Category.FILM
    language = LanguageClass.OTHER if "non" in lowered else LanguageClass.ENGLISH
    return category, language


def _classify(
    row: Mapping[str, Any], sheet_hint: str | None
) -> Classification | None:
    return classify_sheet(sheet_hint) or classify_category_text(
        find_text(row, "category")
    )


def normalize_weekly_row(
    row: Mapping[str, Any],
    sheet_hint: str | None = None,
) -> WeeklyRow | None:
    """Normalize one raw weekly row.

    Args:
        row: Raw row object (arbitrary header casing and spacing).
        sheet_hint: Worksheet label; when it names a category and
            language it takes precedence over the row's category cell.

    Returns:
        A WeeklyRow, or None if the row is missing a title, a parseable
        week, or a category.
    """
    title = resolve_title(row)
    if not title:
        logger.debug("Dropping weekly row without title: %r", row)
        return None

    period = parse_period(find_column(row, "week"))
    if period is None:
        logger.debug("Dropping weekly row %r: bad week", title)
        return None

    classification = _classify(row, sheet_hint)
    if classification is None:
        logger.debug("Dropping weekly row %r: no category", title)
        return None

    category, language = classification
    region = find_text(row, "region").upper() or None
    return WeeklyRow(
        period_start=period[0],
        period_end=period[1],
        title=title,
        category=category,
        language=language,
        hours_viewed=_parse_number(find_column(row, "weekly_hours")),
        views=_parse_number(find_column(row, "weekly_views")),
        weeks_in_top_10=_parse_count(find_column(row, "cumulative_weeks")),
        region_code=region,
        source_rank=_parse_rank(find_column(row, "rank")),
    )


def normalize_popular_row(
    row: Mapping[str, Any],
    sheet_hint: str | None = None,
) -> PopularRow | None:
    """Normalize one raw 91-day "most popular" row.

    Returns:
        A PopularRow, or None if the title or category is missing or
        either 91-day measure isn't strictly positive.
    """
    title = resolve_title(row)
    if not title:
        return None

    classification = _classify(row, sheet_hint)
    if classification is None:
        logger.debug("Dropping popular row %r: no category", title)
        return None

    views = _parse_number(find_column(row, "views_91d"))
    hours = _parse_number(find_column(row, "hours_91d"))
    if views <= 0 or hours <= 0:
        logger.debug("Dropping popular row %r: non-positive measures", title)
        return None

    category, language = classification
    return PopularRow(
        title=title,
        category=category,
        language=language,
        views_91d=views,
        hours_91d=hours,
        source_rank=_parse_rank(find_column(row, "rank")),
    )


def normalize_weekly_rows(
    rows: Iterable[Mapping[str, Any]],
    sheet_hint: str | None = None,
) -> list[WeeklyRow]:
    """Normalize a batch, keeping only rows that survive validation."""
    raw_count = 0
    normalized: list[WeeklyRow] = []
    for raw in rows:
        raw_count += 1
        parsed = normalize_weekly_row(raw, sheet_hint)
        if parsed is not None:
            normalized.append(parsed)
    if raw_count != len(normalized):
        logger.info(
            "Normalized %d of %d weekly rows (sheet=%s)",
            len(normalized),
            raw_count,
            sheet_hint,
        )
    return normalized


def normalize_popular_rows(
    rows: Iterable[Mapping[str, Any]],
    sheet_hint: str | None = None,
) -> list[PopularRow]:
    normalized = []
    for raw in rows:
        parsed = normalize_popular_row(raw, sheet_hint)
        if parsed is not None:
            normalized.append(parsed)
    return normalized


def normalize_workbook(
    sheets: Mapping[str, Iterable[Mapping[str, Any]]],
) -> list[WeeklyRow]:
    """Normalize every sheet of a workbook, using each label as the hint."""
    rows: list[WeeklyRow] = []
    for sheet_name, sheet_rows in sheets.items():
        rows.extend(normalize_weekly_rows(sheet_rows, sheet_name))
    return rows


def partition_buckets(rows: Iterable[WeeklyRow | PopularRow]) -> dict[Bucket, list]:
    """Split rows into the four category/language buckets, order kept."""
    buckets: dict[Bucket, list] = {bucket: [] for bucket in Bucket}
    for row in rows:
        buckets[row.bucket].append(row)
    return buckets
