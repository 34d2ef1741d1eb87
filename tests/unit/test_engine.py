from datetime import date, timedelta

import pytest

from rankboard.config import RankingWeights
from rankboard.models import Bucket, Category, LanguageClass, WeeklyRow
from rankboard.ranking.engine import (
    build_unified_top100,
    convert_to_top_n,
    latest_period,
    rows_for_period,
    score_row,
)

W1 = date(2024, 12, 30)
W2 = date(2025, 1, 6)


def _row(title, start=W2, views=0, hours=0, weeks=0, rank=None,
         category=Category.SERIES, language=LanguageClass.ENGLISH):
    return WeeklyRow(
        period_start=start,
        period_end=start + timedelta(days=6),
        title=title,
        category=category,
        language=language,
        hours_viewed=hours,
        views=views,
        weeks_in_top_10=weeks,
        source_rank=rank,
    )


class TestLatestPeriod:
    def test_empty(self):
        assert latest_period([]) is None

    def test_picks_greatest_start(self):
        rows = [_row("A", W1), _row("B", W2), _row("C", W1)]
        assert latest_period(rows) == (W2, W2 + timedelta(days=6))


class TestScoreRow:
    def test_weighted_sum_with_recency_boost(self):
        row = _row("A", views=100, hours=50)
        assert score_row(row, W2) == pytest.approx((100 + 40) * 1.1)

    def test_no_boost_for_older_period(self):
        row = _row("A", W1, views=100, hours=50)
        assert score_row(row, W2) == pytest.approx(140)

    def test_longevity_penalty(self):
        row = _row("A", W1, views=100, weeks=5)
        assert score_row(row, W2) == pytest.approx(90)

    def test_penalty_capped_at_twenty_percent(self):
        ten = score_row(_row("A", W1, views=100, weeks=10), W2)
        fifty = score_row(_row("A", W1, views=100, weeks=50), W2)
        assert ten == pytest.approx(80)
        assert fifty == pytest.approx(ten)

    def test_more_views_or_hours_scores_higher(self):
        base = score_row(_row("A", views=100, hours=100, weeks=3), W2)
        assert score_row(_row("A", views=101, hours=100, weeks=3), W2) > base
        assert score_row(_row("A", views=100, hours=101, weeks=3), W2) > base

    def test_custom_weights(self):
        weights = RankingWeights(views_weight=2.0, hours_weight=0, recency_boost=0)
        assert score_row(_row("A", views=10, hours=99), W2, weights) == pytest.approx(20)


class TestBuildUnifiedTop100:
    def test_dedup_keeps_latest_period(self):
        rows = [
            _row("A", W1, views=100, hours=50),
            _row("A", W2, views=10, hours=5),
        ]
        items = build_unified_top100({Bucket.TV_ENGLISH: rows})
        assert len(items) == 1
        assert items[0].period_start == W2
        assert items[0].views == 10

    def test_dedup_across_buckets(self):
        items = build_unified_top100({
            Bucket.TV_ENGLISH: [_row("A", W1, views=5)],
            Bucket.FILMS_ENGLISH: [
                _row("A", W2, views=1, category=Category.FILM),
                _row("B", W2, views=3, category=Category.FILM),
            ],
        })
        titles = [item.title for item in items]
        assert titles == ["B", "A"]
        assert len(set(titles)) == len(titles)

    def test_sorted_by_score_with_dense_ranks(self):
        buckets = {
            Bucket.TV_ENGLISH: [_row("Low", views=10), _row("High", views=1000)],
            Bucket.FILMS_NON_ENGLISH: [
                _row("Mid", views=500, category=Category.FILM,
                     language=LanguageClass.OTHER),
            ],
        }
        items = build_unified_top100(buckets)
        assert [item.title for item in items] == ["High", "Mid", "Low"]
        assert [item.rank for item in items] == [1, 2, 3]
        assert all(item.change_from_last_week == 0 for item in items)

    def test_equal_scores_ordered_by_title(self):
        rows = [_row("Zeta", views=10), _row("alpha", views=10), _row("Beta", views=10)]
        items = build_unified_top100({Bucket.TV_ENGLISH: rows})
        assert [item.title for item in items] == ["alpha", "Beta", "Zeta"]

    def test_hangul_titles_sort_before_latin(self):
        rows = [_row("오징어 게임", views=10), _row("Squid Game", views=10)]
        items = build_unified_top100({Bucket.TV_NON_ENGLISH: rows})
        assert [item.title for item in items] == ["오징어 게임", "Squid Game"]

    def test_zero_view_rows_sort_last(self):
        rows = [_row("Nothing"), _row("Something", views=1)]
        items = build_unified_top100({Bucket.TV_ENGLISH: rows})
        assert items[-1].title == "Nothing"

    def test_capped_at_limit(self):
        rows = [_row(f"Title {i}", views=i) for i in range(150)]
        items = build_unified_top100({Bucket.TV_ENGLISH: rows})
        assert len(items) == 100
        assert [item.rank for item in items] == list(range(1, 101))
        assert items[0].title == "Title 149"

    def test_empty_buckets(self):
        assert build_unified_top100({}) == []
        assert build_unified_top100({bucket: [] for bucket in Bucket}) == []


class TestConvertToTopN:
    def test_views_order_without_source_rank(self):
        rows = [_row("A", views=5), _row("B", views=50), _row("C", views=20)]
        items = convert_to_top_n(rows)
        assert [item.title for item in items] == ["B", "C", "A"]
        assert [item.rank for item in items] == [1, 2, 3]

    def test_source_rank_overrides_views(self):
        rows = [
            _row("Third", views=999, rank=3),
            _row("First", views=1, rank=1),
            _row("Second", views=500, rank=2),
        ]
        items = convert_to_top_n(rows)
        assert [item.title for item in items] == ["First", "Second", "Third"]
        assert [item.rank for item in items] == [1, 2, 3]

    def test_unranked_rows_sort_last_and_use_position(self):
        rows = [_row("Loose", views=999), _row("One", rank=1), _row("Two", rank=2)]
        items = convert_to_top_n(rows)
        assert [(item.title, item.rank) for item in items] == [
            ("One", 1),
            ("Two", 2),
            ("Loose", 3),
        ]

    def test_limit(self):
        rows = [_row(f"T{i}", views=i) for i in range(25)]
        assert len(convert_to_top_n(rows, 10)) == 10
        assert convert_to_top_n([], 10) == []


def test_rows_for_period():
    rows = [_row("A", W1), _row("B", W2)]
    assert [row.title for row in rows_for_period(rows, W1)] == ["A"]
