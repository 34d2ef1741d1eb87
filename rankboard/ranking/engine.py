"""Ranking Engine: per-bucket Top N and the unified Top 100.

The unified ranking merges the four category/language buckets into a
single leaderboard with a weighted score:

    score = views * views_weight + hours * hours_weight
    score *= 1 + recency_boost            (rows from the latest period)
    score *= 1 - min(weeks * penalty, cap)  (longevity penalty)

Weights come from config.RankingWeights and are validated there, so a
bad configuration fails at startup rather than per request.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Iterable, Mapping, Sequence

from rankboard.config import RankingWeights
from rankboard.models import Bucket, RankedItem, WeeklyRow
from rankboard.ranking.collation import korean_sort_key

logger = logging.getLogger(__name__)

MISSING_SOURCE_RANK = 9999
DEFAULT_WEIGHTS = RankingWeights()


def latest_period(rows: Sequence[WeeklyRow]) -> tuple[date, date] | None:
    """Return (start, end) of the most recent period, None if empty."""
    if not rows:
        return None
    latest = max(rows, key=lambda row: row.period_start)
    return latest.period_start, latest.period_end


def score_row(
    row: WeeklyRow,
    latest_start: date,
    weights: RankingWeights = DEFAULT_WEIGHTS,
) -> float:
    """Compute the unified-ranking score for one row."""
    score = row.views * weights.views_weight + row.hours_viewed * weights.hours_weight
    if row.period_start == latest_start:
        score *= 1 + weights.recency_boost
    penalty = min(
        row.weeks_in_top_10 * weights.longevity_penalty_per_period,
        weights.longevity_penalty_cap,
    )
    return score * (1 - penalty)


def _dedupe_latest(rows: Iterable[WeeklyRow]) -> list[WeeklyRow]:
    """Keep one row per title: the one from the latest period.

    On equal periods the first occurrence is kept.
    """
    by_title: dict[str, WeeklyRow] = {}
    for row in rows:
        existing = by_title.get(row.title)
        if existing is None or row.period_start > existing.period_start:
            by_title[row.title] = row
    return list(by_title.values())


def to_ranked_item(row: WeeklyRow, rank: int) -> RankedItem:
    return RankedItem(
        rank=rank,
        title=row.title,
        category=row.category,
        language=row.language,
        views=row.views,
        hours_viewed=row.hours_viewed,
        weeks_in_top_10=row.weeks_in_top_10,
        period_start=row.period_start,
        period_end=row.period_end,
        region_code=row.region_code,
    )


def build_unified_top100(
    buckets: Mapping[Bucket, Sequence[WeeklyRow]],
    weights: RankingWeights = DEFAULT_WEIGHTS,
) -> list[RankedItem]:
    """Merge the four buckets into one scored leaderboard.

    Titles are deduplicated (latest period wins), scored with
    score_row, and sorted by descending score. Equal scores are ordered
    by title so the output doesn't depend on bucket iteration order.

    Args:
        buckets: Rows per bucket; missing buckets count as empty.
        weights: Scoring weights.

    Returns:
        Up to weights.unified_limit items ranked densely from 1.
    """
    working = [row for bucket in Bucket for row in buckets.get(bucket, ())]
    period = latest_period(working)
    if period is None:
        return []

    latest_start = period[0]
    scored = [
        (score_row(row, latest_start, weights), row)
        for row in _dedupe_latest(working)
    ]
    scored.sort(key=lambda pair: (-pair[0], korean_sort_key(pair[1].title)))

    top = scored[: weights.unified_limit]
    logger.debug(
        "Unified ranking: %d rows, %d unique titles, latest period %s",
        len(working),
        len(scored),
        latest_start,
    )
    return [to_ranked_item(row, index) for index, (_, row) in enumerate(top, 1)]


def _has_source_rank(rows: Sequence[WeeklyRow]) -> bool:
    return any(row.source_rank is not None for row in rows)


def convert_to_top_n(rows: Sequence[WeeklyRow], limit: int = 10) -> list[RankedItem]:
    """Rank one bucket (or one country) and keep the first limit rows.

    Rows are ordered by views, unless any row carries a source rank: the
    upstream rank is then authoritative, rows without one sort last, and
    each item's rank is its source rank (position as a fallback).
    """
    if _has_source_rank(rows):
        ordered = sorted(
            rows,
            key=lambda row: (
                row.source_rank if row.source_rank is not None else MISSING_SOURCE_RANK
            ),
        )
        return [
            to_ranked_item(
                row,
                row.source_rank if row.source_rank is not None else position,
            )
            for position, row in enumerate(ordered[:limit], 1)
        ]

    ordered = sorted(rows, key=lambda row: row.views, reverse=True)
    return [
        to_ranked_item(row, position)
        for position, row in enumerate(ordered[:limit], 1)
    ]


def rows_for_period(rows: Iterable[WeeklyRow], start: date) -> list[WeeklyRow]:
    return [row for row in rows if row.period_start == start]
