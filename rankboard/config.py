"""Configuration for the Top 10 ranking pipeline.

Centralizes the static tables the parsers depend on (column synonyms,
sheet label patterns, supported regions, streaming platforms) and the
tunable settings for scoring, enrichment, caching and data sources.
Secrets and deployment-specific values are read from environment
variables at runtime (no hardcoded credentials).
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

COLUMN_SYNONYMS: dict[str, tuple[str, ...]] = {
    "week": ("week", "week_start", "weekstart", "week_ending", "week_ending_date"),
    "season_title": ("season_title", "season title"),
    "show_title": ("show_title", "show title", "film_title"),
    "title": ("title",),
    "category": ("category",),
    "weekly_hours": ("weekly_hours_viewed", "hours_viewed", "hours"),
    "weekly_views": ("weekly_views", "views"),
    "cumulative_weeks": (
        "cumulative_weeks_in_top_10",
        "weeks_in_top_10",
        "weeks",
    ),
    "rank": ("weekly_rank", "rank"),
    "hours_91d": (
        "hours_viewed_91d",
        "hours_91d",
        "hours_viewed_first_91_days",
        "hours_first_91_days",
        "hours_viewed_first_91_",
        "hours_first_91_",
    ),
    "views_91d": ("views_91d", "views_first_91_days", "views_first_91_"),
    "region": ("country_iso2", "country_code", "country_iso", "country"),
}

SHEET_PATTERNS: dict[str, re.Pattern[str]] = {
    "series": re.compile(r"tv", re.IGNORECASE),
    "film": re.compile(r"film", re.IGNORECASE),
    "non_english": re.compile(r"non[\s_-]*english", re.IGNORECASE),
    "english": re.compile(r"english", re.IGNORECASE),
}

SUPPORTED_COUNTRIES: tuple[str, ...] = ("KR", "US", "GB", "JP", "FR", "DE")

REGION_ALIASES: dict[str, tuple[str, ...]] = {
    "KR": ("KR", "KOR"),
    "US": ("US", "USA"),
    "GB": ("GB", "GBR", "UK"),
    "JP": ("JP", "JPN"),
    "FR": ("FR", "FRA"),
    "DE": ("DE", "DEU"),
}

PLATFORMS: tuple[str, ...] = (
    "netflix",
    "disney",
    "wavve",
    "tving",
    "watcha",
    "coupang",
)


@dataclass(frozen=True)
class RankingWeights:
    views_weight: float = 1.0
    hours_weight: float = 0.8
    recency_boost: float = 0.1
    longevity_penalty_per_period: float = 0.02
    longevity_penalty_cap: float = 0.2
    unified_limit: int = 100

    def __post_init__(self) -> None:
        """Reject weight configurations that would corrupt every ranking."""
        for name in (
            "views_weight",
            "hours_weight",
            "recency_boost",
            "longevity_penalty_per_period",
        ):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be non-negative")
        if not 0 <= self.longevity_penalty_cap <= 1:
            raise ValueError("longevity_penalty_cap must be within [0, 1]")
        if self.unified_limit <= 0:
            raise ValueError("unified_limit must be positive")


@dataclass(frozen=True)
class TmdbConfig:
    base_url: str = "https://api.themoviedb.org/3"
    bearer_token: str | None = None
    api_key: str | None = None
    languages: tuple[str, ...] = ("ko-KR", "en-US")
    max_concurrent: int = 5
    retry_backoff: float = 0.3
    request_timeout: int = 10
    search_cache_ttl: int = 30 * 60
    user_agent: str = "RankboardEnricher/1.0"

    @property
    def has_credentials(self) -> bool:
        return bool(self.bearer_token or self.api_key)


@dataclass(frozen=True)
class EnrichmentConfig:
    enabled: bool = True
    default_limit: int = 40
    workers: int = 8
    miss_log_limit: int = 5
    miss_log_window: float = 1.0


@dataclass(frozen=True)
class CacheConfig:
    weekly_ttl: int = 86400
    most_popular_ttl: int = 604800
    rankings_ttl: int = 60 * 60 * 24 * 7


@dataclass(frozen=True)
class SourceConfig:
    global_tsv_url: str = (
        "https://www.netflix.com/tudum/top10/data/all-weeks-global.tsv"
    )
    countries_tsv_url: str = (
        "https://www.netflix.com/tudum/top10/data/all-weeks-countries.tsv"
    )
    most_popular_tsv_url: str = (
        "https://www.netflix.com/tudum/top10/data/most-popular.tsv"
    )
    data_dir: Path | None = None
    user_agent: str = "RankboardCollector/1.0"
    request_timeout: int = 30
    retry_count: int = 3

    def local_path(self, dataset: str) -> Path | None:
        """Local fallback file for a dataset, if a data directory is set."""
        if self.data_dir is None:
            return None
        return self.data_dir / LOCAL_FILES[dataset]


LOCAL_FILES: dict[str, str] = {
    "global": "netflix_global.xlsx",
    "countries": "netflix_country.xlsx",
    "most_popular": "netflix_mostpopular.xlsx",
}


@dataclass(frozen=True)
class AppConfig:
    weights: RankingWeights = field(default_factory=RankingWeights)
    tmdb: TmdbConfig = field(default_factory=TmdbConfig)
    enrichment: EnrichmentConfig = field(default_factory=EnrichmentConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    sources: SourceConfig = field(default_factory=SourceConfig)


def normalize_token(raw: str | None) -> str | None:
    """Clean a credential pasted from a dashboard.

    Examples:
        '"abc"'        -> 'abc'
        'Bearer eyJ..' -> 'eyJ..'
        '   '          -> None
    """
    if not raw:
        return None
    trimmed = raw.strip().strip('"').strip("'").strip()
    if trimmed.startswith("Bearer "):
        trimmed = trimmed[len("Bearer "):].strip()
    return trimmed or None


def _parse_flag(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def load_config() -> AppConfig:
    """Load and validate configuration from environment variables.

    Reads TMDB credentials (TMDB_API_KEY for the v4 bearer token,
    TMDB_API_KEY_V3 for the legacy api_key), the ENRICH_TMDB switch and
    RANKBOARD_DATA_DIR for local spreadsheet fallbacks.

    Returns:
        A frozen AppConfig with validated settings.

    Raises:
        ValueError: If RANKBOARD_DATA_DIR points at something that
            isn't a directory.
    """
    tmdb = TmdbConfig(
        bearer_token=normalize_token(os.environ.get("TMDB_API_KEY")),
        api_key=normalize_token(os.environ.get("TMDB_API_KEY_V3")),
    )

    enrich_flag = os.environ.get("ENRICH_TMDB")
    if enrich_flag is None:
        enabled = tmdb.has_credentials
    else:
        enabled = _parse_flag(enrich_flag)

    data_dir = None
    raw_dir = os.environ.get("RANKBOARD_DATA_DIR", "")
    if raw_dir:
        data_dir = Path(raw_dir)
        if not data_dir.is_dir():
            raise ValueError(
                f"RANKBOARD_DATA_DIR '{raw_dir}' is not a directory"
            )

    return AppConfig(
        tmdb=tmdb,
        enrichment=EnrichmentConfig(enabled=enabled),
        sources=SourceConfig(data_dir=data_dir),
    )


def credential_health(config: TmdbConfig) -> dict[str, Any]:
    """Describe the configured TMDB credentials without revealing them."""
    v4 = config.bearer_token or ""
    v3 = config.api_key or ""
    return {
        "v4_present": bool(v4),
        "v4_length": len(v4),
        "v4_looks_valid": v4.startswith("eyJ") and len(v4) > 100,
        "v3_present": bool(v3),
        "v3_length": len(v3),
        "v3_looks_valid": bool(re.fullmatch(r"[a-zA-Z0-9]{32}", v3)),
    }
