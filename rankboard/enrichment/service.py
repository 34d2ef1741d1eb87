"""Metadata Enrichment Service.

Attaches posters and localized titles to leaderboard records. Lookups
try every (endpoint, language, query variant) combination in that
nesting order and stop at the first hit. Only the first `limit` records
are looked up, since only leaderboard-visible items need artwork; the
rest, and every miss, get a local fallback poster.

Records are frozen, so enrichment returns new records built with
dataclasses.replace. Titles are never rewritten; a localized title is
attached alongside.
"""

from __future__ import annotations

import dataclasses
import itertools
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Sequence, TypeVar
from urllib.parse import quote

from rankboard.config import EnrichmentConfig
from rankboard.enrichment.misses import MissLog
from rankboard.enrichment.posters import local_poster
from rankboard.enrichment.queries import endpoint_candidates, variant_queries
from rankboard.enrichment.tmdb_client import TmdbClient
from rankboard.models import Category, MetadataRecord, PopularRow, RankedItem
from rankboard.parsing.columns import first_match

logger = logging.getLogger(__name__)

POSTER_SIZE = "w342"
BACKDROP_SIZE = "w780"

Enrichable = TypeVar("Enrichable", RankedItem, PopularRow)


def image_ref(path: str, size: str) -> str:
    """Reference to the image proxy for a database image path."""
    return f"/api/image?size={size}&path={quote(path, safe='')}"


def _release_year(result: dict[str, Any]) -> int | None:
    released = result.get("release_date") or result.get("first_air_date") or ""
    try:
        return int(str(released).split("-")[0])
    except ValueError:
        return None


def to_metadata(result: dict[str, Any], endpoint: str) -> MetadataRecord:
    """Build a MetadataRecord from one search result."""
    if result.get("poster_path"):
        poster = image_ref(result["poster_path"], POSTER_SIZE)
    elif result.get("backdrop_path"):
        poster = image_ref(result["backdrop_path"], BACKDROP_SIZE)
    else:
        poster = None

    localized = (
        result.get("title")
        or result.get("name")
        or result.get("original_title")
        or result.get("original_name")
    )
    media_type = result.get("media_type") or (None if endpoint == "multi" else endpoint)
    return MetadataRecord(
        tmdb_id=result.get("id"),
        media_type=media_type,
        poster_ref=poster,
        localized_title=localized,
        release_year=_release_year(result),
        overview=result.get("overview") or None,
    )


class EnrichmentService:
    def __init__(
        self,
        client: TmdbClient,
        miss_log: MissLog,
        config: EnrichmentConfig,
        languages: Sequence[str] = ("ko-KR", "en-US"),
    ) -> None:
        self._client = client
        self._miss_log = miss_log
        self._config = config
        self._languages = tuple(languages)

    def resolve_metadata(
        self, title: str, category: Category | None = None
    ) -> MetadataRecord | None:
        """Find metadata for title, or None when nothing matches."""
        combos = itertools.product(
            endpoint_candidates(category),
            self._languages,
            variant_queries(title),
        )

        def attempt(combo: tuple[str, str, str]) -> MetadataRecord | None:
            endpoint, language, query = combo
            result = self._client.search(query, language, endpoint)
            return to_metadata(result, endpoint) if result else None

        return first_match(combos, attempt)

    def _enrich_one(self, record: Enrichable) -> Enrichable:
        metadata = self.resolve_metadata(record.title, record.category)
        if metadata is None:
            self._miss_log.record(record.title)
            return self._with_fallback(record)
        return dataclasses.replace(
            record,
            poster_ref=(
                metadata.poster_ref
                or record.poster_ref
                or local_poster(record.title)
            ),
            localized_title=metadata.localized_title,
        )

    @staticmethod
    def _with_fallback(record: Enrichable) -> Enrichable:
        return dataclasses.replace(
            record, poster_ref=record.poster_ref or local_poster(record.title)
        )

    def enrich(
        self, records: Sequence[Enrichable], limit: int | None = None
    ) -> list[Enrichable]:
        """Enrich the first `limit` records, fallback posters for the rest.

        Lookups for the head run on a thread pool; outbound calls stay
        bounded by the client's limiter no matter the pool size. Output
        order matches input order.
        """
        if limit is None:
            limit = self._config.default_limit
        if not self._config.enabled:
            return [self._with_fallback(record) for record in records]

        head = list(records[:limit])
        tail = [self._with_fallback(record) for record in records[limit:]]
        if not head:
            return tail

        workers = max(1, min(self._config.workers, len(head)))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            enriched = list(executor.map(self._enrich_one, head))

        logger.info(
            "Enriched %d of %d records (%d looked up)",
            sum(1 for record in enriched if record.localized_title),
            len(records),
            len(head),
        )
        return enriched + tail

    def enrich_items(
        self, items: Sequence[RankedItem], limit: int | None = None
    ) -> list[RankedItem]:
        return self.enrich(items, limit)

    def enrich_popular_rows(
        self, rows: Sequence[PopularRow], limit: int | None = None
    ) -> list[PopularRow]:
        return self.enrich(rows, limit)
