"""Primary row source: Netflix's public TSV exports.

Netflix publishes tab-separated files alongside the Top 10 site:

    all-weeks-global.tsv     week, category, weekly_rank, show_title,
                             season_title, weekly_hours_viewed, runtime,
                             weekly_views, cumulative_weeks_in_top_10, ...
    all-weeks-countries.tsv  country_name, country_iso2, week, category,
                             weekly_rank, show_title, season_title,
                             cumulative_weeks_in_top_10
    most-popular.tsv         category, rank, show_title, season_title,
                             hours_viewed_first_91_days,
                             views_first_91_days, ...

These are far more stable than the rendered pages: no CSS class names
to break on redesign, and every week of history in one download. Rows
are returned untouched; header resolution belongs to the normalizer.
"""

from __future__ import annotations

import csv
import logging
from io import StringIO

import requests

logger = logging.getLogger(__name__)


def parse_tsv(tsv_text: str) -> list[dict[str, str]]:
    """Parse TSV text into raw row dicts keyed by header.

    Blank lines are skipped. Cells past the header width are dropped.
    """
    reader = csv.DictReader(StringIO(tsv_text), delimiter="\t")
    rows = []
    for row in reader:
        row.pop(None, None)
        if any(value for value in row.values()):
            rows.append(row)
    return rows


def fetch_tsv_rows(
    session: requests.Session,
    url: str,
    timeout: int,
) -> list[dict[str, str]]:
    """Download one TSV export and parse it into raw rows.

    Args:
        session: HTTP session with retry strategy.
        url: TSV export URL.
        timeout: Request timeout in seconds.

    Returns:
        Raw row dicts in file order.

    Raises:
        requests.HTTPError: If the download returns a non-2xx status.
    """
    logger.info("Fetching TSV %s", url)
    response = session.get(url, timeout=timeout)
    response.raise_for_status()

    rows = parse_tsv(response.text)
    logger.info("Parsed %d rows from %s", len(rows), url)
    return rows
