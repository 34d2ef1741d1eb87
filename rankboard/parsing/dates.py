"""Reporting-period parsing.

Week cells arrive in several shapes depending on who produced the file:

    - ISO strings ("2025-01-06", "2025-01-06T00:00:00Z")
    - English prose ("Week of January 6, 2025", "Jan 6, 2025")
    - Ranges ("2025-01-06 to 2025-01-12"), where the start is used
    - Spreadsheet serial numbers (45663), counted from 1899-12-30
    - date/datetime objects already converted by openpyxl

Every accepted value becomes a UTC calendar date; the period always
ends six days after it starts.
"""

from __future__ import annotations

import logging
import math
import re
from datetime import date, datetime, timedelta, timezone
from typing import Any, Callable

from dateutil import parser as dparser

from rankboard.parsing.columns import first_match

logger = logging.getLogger(__name__)

EXCEL_EPOCH = date(1899, 12, 30)
PERIOD_LENGTH_DAYS = 7

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}")
_NUMERIC = re.compile(r"^\d+(\.\d+)?$")
_WEEK_OF = re.compile(r"^week\s+of\s+", re.IGNORECASE)
_RANGE_SEPARATOR = re.compile(r"\s+to\s+", re.IGNORECASE)


def _to_utc_date(value: datetime) -> date:
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.date()


def from_serial(serial: float) -> date | None:
    """Convert a spreadsheet serial day number, flooring any time part."""
    if isinstance(serial, bool) or not math.isfinite(serial) or serial < 1:
        return None
    try:
        return EXCEL_EPOCH + timedelta(days=math.floor(serial))
    except OverflowError:
        return None


def _parse_iso(text: str) -> date | None:
    if not _ISO_DATE.match(text):
        return None
    if len(text) > 10:
        try:
            return _to_utc_date(dparser.isoparse(text))
        except (ValueError, OverflowError):
            pass
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        return None


def _parse_free_text(text: str) -> date | None:
    try:
        return _to_utc_date(dparser.parse(text))
    except (ValueError, OverflowError):
        return None


def _parse_without_commas(text: str) -> date | None:
    if "," not in text:
        return None
    return _parse_free_text(text.replace(",", " "))


_TEXT_STRATEGIES: tuple[Callable[[str], date | None], ...] = (
    _parse_iso,
    _parse_free_text,
    _parse_without_commas,
)


def parse_date(value: Any) -> date | None:
    """Parse one week cell into a UTC calendar date.

    Returns:
        The parsed date, or None when no strategy accepts the value.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return _to_utc_date(value)
    if isinstance(value, date):
        return value
    if isinstance(value, (int, float)):
        return from_serial(value)

    text = str(value).strip()
    if not text:
        return None
    if _NUMERIC.match(text):
        return from_serial(float(text))

    text = _WEEK_OF.sub("", text)
    text = _RANGE_SEPARATOR.split(text, maxsplit=1)[0].strip()
    return first_match(_TEXT_STRATEGIES, lambda strategy: strategy(text))


def parse_period(value: Any) -> tuple[date, date] | None:
    """Parse a week cell into an inclusive (start, end) period."""
    start = parse_date(value)
    if start is None:
        logger.debug("Unparseable week value: %r", value)
        return None
    return start, start + timedelta(days=PERIOD_LENGTH_DAYS - 1)
