from datetime import date

import pytest

from rankboard.models import (
    Bucket,
    Category,
    CrossPlatformEntry,
    DatasetResult,
    IntegratedEntry,
    LanguageClass,
    MetadataRecord,
    PopularRow,
    RankedItem,
    RankingResult,
)


def _item(**overrides):
    fields = dict(
        rank=1,
        title="Squid Game: Season 2",
        category=Category.SERIES,
        language=LanguageClass.OTHER,
        views=25_000_000,
        hours_viewed=170_000_000,
        weeks_in_top_10=3,
        period_start=date(2025, 1, 6),
        period_end=date(2025, 1, 12),
    )
    fields.update(overrides)
    return RankedItem(**fields)


class TestBucket:
    def test_of(self):
        assert Bucket.of(Category.SERIES, LanguageClass.ENGLISH) is Bucket.TV_ENGLISH
        assert Bucket.of(Category.SERIES, LanguageClass.OTHER) is Bucket.TV_NON_ENGLISH
        assert Bucket.of(Category.FILM, LanguageClass.ENGLISH) is Bucket.FILMS_ENGLISH
        assert Bucket.of(Category.FILM, LanguageClass.OTHER) is Bucket.FILMS_NON_ENGLISH


class TestRankedItem:
    def test_to_document(self):
        assert _item().to_document() == {
            "rank": 1,
            "title": "Squid Game: Season 2",
            "category": "TV",
            "language": "Non-English",
            "weeklyViews": 25_000_000,
            "weeklyHours": 170_000_000,
            "weeksInTop10": 3,
            "weekStart": "2025-01-06",
            "weekEnd": "2025-01-12",
            "changeFromLastWeek": 0,
        }

    def test_optional_fields(self):
        doc = _item(
            region_code="KR", poster_ref="/p.jpg", localized_title="오징어 게임"
        ).to_document()
        assert doc["country"] == "KR"
        assert doc["poster"] == "/p.jpg"
        assert doc["localizedTitle"] == "오징어 게임"

    def test_frozen(self):
        item = _item()
        with pytest.raises(AttributeError):
            item.rank = 2


class TestPopularRow:
    def test_to_document(self):
        row = PopularRow(
            title="Red Notice",
            category=Category.FILM,
            language=LanguageClass.ENGLISH,
            views_91d=230_900_000,
            hours_91d=454_200_000,
            source_rank=1,
        )
        assert row.to_document() == {
            "title": "Red Notice",
            "category": "Films",
            "languageType": "English",
            "views91d": 230_900_000,
            "hours91d": 454_200_000,
            "rank": 1,
        }
        assert row.bucket is Bucket.FILMS_ENGLISH


class TestCrossPlatformEntry:
    def test_document_round_trip(self):
        entry = CrossPlatformEntry(
            platform="netflix", title="Harbin", rank=1, week="2025-01-11", views=None
        )
        doc = entry.to_document()
        assert doc["weeklyViews"] is None
        assert CrossPlatformEntry.from_document(doc) == entry

    def test_from_document_coerces_rank(self):
        entry = CrossPlatformEntry.from_document(
            {"platform": "tving", "title": "X", "rank": "3", "week": "2025-01-11"}
        )
        assert entry.rank == 3
        assert entry.genre is None


class TestIntegratedEntry:
    def test_to_document(self):
        entry = IntegratedEntry(
            title="X",
            score=18,
            platforms=("netflix", "disney"),
            main_platform="netflix",
            total_views=0,
        )
        assert entry.to_document() == {
            "title": "X",
            "score": 18,
            "platforms": ["netflix", "disney"],
            "mainPlatform": "netflix",
            "totalViews": 0,
            "platformCount": 2,
        }


class TestMetadataRecord:
    def test_to_document(self):
        record = MetadataRecord(
            tmdb_id=7, media_type="movie", poster_ref=None,
            localized_title="하얼빈", release_year=2024, overview=None,
        )
        assert record.to_document()["year"] == 2024
        assert record.to_document()["tmdbId"] == 7


class TestDatasetResult:
    def test_rows_flatten_sheets(self):
        result = DatasetResult(
            sheets={"TV (English)": [{"a": 1}], "Films (English)": [{"b": 2}]},
            source_used="local",
        )
        assert result.rows == [{"a": 1}, {"b": 2}]
        assert not result.failed

    def test_failed(self):
        assert DatasetResult(sheets={}, source_used="none").failed


class TestRankingResult:
    def test_empty_marker(self):
        doc = RankingResult.empty().to_document()
        assert doc == {
            "status": "empty",
            "items": [],
            "weekStart": None,
            "weekEnd": None,
            "errors": [],
        }

    def test_upstream_error_distinct_from_empty(self):
        result = RankingResult.upstream_error(("TSV fetch failed",))
        assert result.status == "upstream_error"
        assert result.to_document()["errors"] == ["TSV fetch failed"]
        assert result.status != RankingResult.empty().status

    def test_ok(self):
        result = RankingResult(
            status="ok",
            items=(_item(),),
            period_start=date(2025, 1, 6),
            period_end=date(2025, 1, 12),
        )
        doc = result.to_document()
        assert doc["weekStart"] == "2025-01-06"
        assert doc["items"][0]["rank"] == 1
