"""Immutable data models for Top 10 rankings.

All dataclasses are frozen (immutable) so a ranking computed for one
request can be cached and shared without defensive copies. Enrichment
produces new records with dataclasses.replace instead of mutating.
Each output model has a to_document() method that converts it to a
JSON-ready dict for the response payload.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum


class Category(str, Enum):
    SERIES = "TV"
    FILM = "Films"


class LanguageClass(str, Enum):
    ENGLISH = "English"
    OTHER = "Non-English"


class Bucket(str, Enum):
    """One of the four fixed category/language partitions."""

    TV_ENGLISH = "tvEnglish"
    TV_NON_ENGLISH = "tvNonEnglish"
    FILMS_ENGLISH = "filmsEnglish"
    FILMS_NON_ENGLISH = "filmsNonEnglish"

    @classmethod
    def of(cls, category: Category, language: LanguageClass) -> "Bucket":
        if category is Category.SERIES:
            if language is LanguageClass.ENGLISH:
                return cls.TV_ENGLISH
            return cls.TV_NON_ENGLISH
        if language is LanguageClass.ENGLISH:
            return cls.FILMS_ENGLISH
        return cls.FILMS_NON_ENGLISH


@dataclass(frozen=True)
class WeeklyRow:
    """One title's performance in one 7-day reporting period.

    Attributes:
        period_start: First day of the period (UTC date).
        period_end: Always period_start + 6 days.
        title: Season-level title when available, else the show title.
        category: Series or Film.
        language: English or non-English original language.
        hours_viewed: Hours viewed during the period.
        views: Views during the period.
        weeks_in_top_10: Cumulative periods this title has spent in a Top 10.
        region_code: Country code, only for region-specific datasets.
        source_rank: Rank reported by the source, authoritative when set.
    """

    period_start: date
    period_end: date
    title: str
    category: Category
    language: LanguageClass
    hours_viewed: float = 0
    views: float = 0
    weeks_in_top_10: int = 0
    region_code: str | None = None
    source_rank: int | None = None

    @property
    def bucket(self) -> Bucket:
        return Bucket.of(self.category, self.language)


@dataclass(frozen=True)
class PopularRow:
    """One title's 91-day cumulative performance.

    poster_ref and localized_title are only set by enrichment.
    """

    title: str
    category: Category
    language: LanguageClass
    views_91d: float
    hours_91d: float
    source_rank: int | None = None
    poster_ref: str | None = None
    localized_title: str | None = None

    @property
    def bucket(self) -> Bucket:
        return Bucket.of(self.category, self.language)

    def to_document(self) -> dict:
        doc = {
            "title": self.title,
            "category": self.category.value,
            "languageType": self.language.value,
            "views91d": self.views_91d,
            "hours91d": self.hours_91d,
        }
        if self.source_rank is not None:
            doc["rank"] = self.source_rank
        if self.poster_ref:
            doc["poster"] = self.poster_ref
        if self.localized_title:
            doc["localizedTitle"] = self.localized_title
        return doc


@dataclass(frozen=True)
class RankedItem:
    """Display unit for a leaderboard.

    change_from_last_week is always 0 because no history is retained.
    """

    rank: int
    title: str
    category: Category
    language: LanguageClass
    views: float
    hours_viewed: float
    weeks_in_top_10: int
    period_start: date
    period_end: date
    region_code: str | None = None
    poster_ref: str | None = None
    localized_title: str | None = None
    change_from_last_week: int = 0

    def to_document(self) -> dict:
        """Convert to a JSON-ready dict. Omits unset optional fields."""
        doc = {
            "rank": self.rank,
            "title": self.title,
            "category": self.category.value,
            "language": self.language.value,
            "weeklyViews": self.views,
            "weeklyHours": self.hours_viewed,
            "weeksInTop10": self.weeks_in_top_10,
            "weekStart": self.period_start.isoformat(),
            "weekEnd": self.period_end.isoformat(),
            "changeFromLastWeek": self.change_from_last_week,
        }
        if self.region_code:
            doc["country"] = self.region_code
        if self.poster_ref:
            doc["poster"] = self.poster_ref
        if self.localized_title:
            doc["localizedTitle"] = self.localized_title
        return doc


@dataclass(frozen=True)
class CrossPlatformEntry:
    """One platform's listing of a title for one week."""

    platform: str
    title: str
    rank: int
    week: str
    genre: str | None = None
    views: float | None = None

    def to_document(self) -> dict:
        return {
            "platform": self.platform,
            "title": self.title,
            "rank": self.rank,
            "genre": self.genre,
            "week": self.week,
            "weeklyViews": self.views,
        }

    @classmethod
    def from_document(cls, doc: dict) -> "CrossPlatformEntry":
        return cls(
            platform=doc["platform"],
            title=doc["title"],
            rank=int(doc["rank"]),
            week=doc["week"],
            genre=doc.get("genre"),
            views=doc.get("weeklyViews"),
        )


@dataclass(frozen=True)
class IntegratedEntry:
    """A title merged across every platform that lists it."""

    title: str
    score: int
    platforms: tuple[str, ...]
    main_platform: str
    total_views: float

    @property
    def platform_count(self) -> int:
        return len(self.platforms)

    def to_document(self) -> dict:
        return {
            "title": self.title,
            "score": self.score,
            "platforms": list(self.platforms),
            "mainPlatform": self.main_platform,
            "totalViews": self.total_views,
            "platformCount": self.platform_count,
        }


@dataclass(frozen=True)
class MetadataRecord:
    """Best-effort metadata resolved from the movie database."""

    tmdb_id: int | None
    media_type: str | None
    poster_ref: str | None
    localized_title: str | None
    release_year: int | None
    overview: str | None

    def to_document(self) -> dict:
        return {
            "tmdbId": self.tmdb_id,
            "mediaType": self.media_type,
            "poster": self.poster_ref,
            "localizedTitle": self.localized_title,
            "year": self.release_year,
            "overview": self.overview,
        }


@dataclass(frozen=True)
class DatasetResult:
    """Raw rows from one dataset fetch.

    Attributes:
        sheets: Raw string-keyed row dicts per sheet label, in source
            order. Single-sheet sources use the dataset name as label.
        source_used: Which source succeeded ("tsv", "local", or "none").
        errors: Any errors encountered while fetching.
    """

    sheets: dict[str, list[dict]]
    source_used: str
    errors: tuple[str, ...] = ()

    @property
    def rows(self) -> list[dict]:
        return [row for rows in self.sheets.values() for row in rows]

    @property
    def failed(self) -> bool:
        return self.source_used == "none"


@dataclass(frozen=True)
class RankingResult:
    """A ranked list plus an explicit status marker.

    status is "ok", "partial" (built, but errors lists the validation
    failures), "empty" (the data has nothing for the requested period)
    or "upstream_error" (the rows could not be fetched), so the caller
    can tell an empty state from a retryable failure.
    """

    status: str
    items: tuple[RankedItem, ...] = ()
    period_start: date | None = None
    period_end: date | None = None
    errors: tuple[str, ...] = ()

    @classmethod
    def empty(cls) -> "RankingResult":
        return cls(status="empty")

    @classmethod
    def upstream_error(cls, errors: tuple[str, ...]) -> "RankingResult":
        return cls(status="upstream_error", errors=errors)

    def to_document(self) -> dict:
        return {
            "status": self.status,
            "items": [item.to_document() for item in self.items],
            "weekStart": (
                self.period_start.isoformat() if self.period_start else None
            ),
            "weekEnd": self.period_end.isoformat() if self.period_end else None,
            "errors": list(self.errors),
        }
