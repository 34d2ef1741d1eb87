"""Cross-Platform Integrator.

Merges per-platform Top 10 listings into one combined leaderboard.
Each listing contributes max(0, 11 - rank) points, so only top-10-like
positions count no matter how deep a platform's chart goes. Titles are
grouped by exact string match; fuzzy matching is left to enrichment.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, Sequence

from rankboard.config import REGION_ALIASES
from rankboard.models import CrossPlatformEntry, IntegratedEntry, WeeklyRow
from rankboard.ranking.collation import korean_sort_key

logger = logging.getLogger(__name__)

SCORE_CEILING = 11
UNRANKED = 999


def rank_score(rank: int) -> int:
    """Points for one listing: 10 for rank 1, 1 for rank 10, 0 beyond."""
    return max(0, SCORE_CEILING - rank)


@dataclass
class _Tally:
    score: int = 0
    platforms: list[str] = field(default_factory=list)
    total_views: float = 0
    best_rank: int = 0
    best_platform: str = ""


def integrate(entries: Iterable[CrossPlatformEntry]) -> list[IntegratedEntry]:
    """Merge listings from every platform into one ranked list.

    Ordering: score descending, then total views descending, then title
    in Korean collation order. main_platform is the platform holding the
    title's lowest rank; the first one seen wins ties.
    """
    tallies: dict[str, _Tally] = {}
    for entry in entries:
        tally = tallies.get(entry.title)
        if tally is None:
            tally = _Tally(best_rank=entry.rank, best_platform=entry.platform)
            tallies[entry.title] = tally
        tally.score += rank_score(entry.rank)
        if entry.platform not in tally.platforms:
            tally.platforms.append(entry.platform)
        tally.total_views += entry.views or 0
        if entry.rank < tally.best_rank:
            tally.best_rank = entry.rank
            tally.best_platform = entry.platform

    merged = [
        IntegratedEntry(
            title=title,
            score=tally.score,
            platforms=tuple(tally.platforms),
            main_platform=tally.best_platform,
            total_views=tally.total_views,
        )
        for title, tally in tallies.items()
    ]
    merged.sort(
        key=lambda item: (-item.score, -item.total_views, korean_sort_key(item.title))
    )
    return merged


def region_matches(row_region: str | None, region: str) -> bool:
    if not row_region:
        return False
    aliases = REGION_ALIASES.get(region.upper(), (region.upper(),))
    return row_region.upper() in aliases


def best_rank_entries(
    rows: Sequence[WeeklyRow],
    platform: str,
    region: str,
    week: date | None = None,
    limit: int = 10,
) -> tuple[date | None, list[CrossPlatformEntry]]:
    """Reduce one platform's weekly rows to one listing per title.

    Selects the region's rows for the requested week, or for the
    region's latest week when none is given. When a requested week has
    no rows for the region, falls back to the latest week across all
    regions. Each title keeps its lowest rank; rows without a source
    rank count as UNRANKED.

    Returns:
        (week used, entries sorted by rank and cut to limit). The week
        is None when no week was requested and the region has no rows.
    """
    regional = [row for row in rows if region_matches(row.region_code, region)]
    if week is None:
        if not regional:
            return None, []
        week = max(row.period_start for row in regional)
    target = week
    selected = [row for row in regional if row.period_start == target]

    if not selected and rows:
        target = max(row.period_start for row in rows)
        selected = [row for row in rows if row.period_start == target]
        logger.info(
            "No %s rows for region %s in week %s, using latest week %s across all regions",
            platform,
            region,
            week,
            target,
        )

    best: dict[str, WeeklyRow] = {}
    for row in selected:
        current = best.get(row.title)
        rank = row.source_rank or UNRANKED
        if current is None or rank < (current.source_rank or UNRANKED):
            best[row.title] = row

    ordered = sorted(best.values(), key=lambda row: row.source_rank or UNRANKED)
    entries = [
        CrossPlatformEntry(
            platform=platform,
            title=row.title,
            rank=row.source_rank or UNRANKED,
            week=row.period_end.isoformat(),
            views=row.views or None,
        )
        for row in ordered[:limit]
    ]
    return target, entries
