"""Cache-backed repository for ranking results.

Owns the cache key layout so callers never build keys by hand:

    raw:{week}:{platform}         one platform's reduced Top 10 listings
    rankings:{week}:{platforms}   the combined cross-platform leaderboard
    weekly:{dataset}              a computed weekly/country/popular payload

Weeks are ISO period-start dates ("2025-01-06"). Values are stored as
JSON-ready documents (lists/dicts) rather than model objects.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterable

from rankboard.config import CacheConfig
from rankboard.models import CrossPlatformEntry
from rankboard.storage.cache import EphemeralCache

logger = logging.getLogger(__name__)


class RankingsRepository:
    """Reads and writes rankings through the process cache."""

    def __init__(self, cache: EphemeralCache, config: CacheConfig) -> None:
        self._cache = cache
        self._config = config

    def save_platform_entries(
        self,
        week: str,
        platform: str,
        entries: Iterable[CrossPlatformEntry],
    ) -> str:
        """Store one platform's listings for a week.

        Returns:
            The cache key written.
        """
        key = f"raw:{week}:{platform}"
        documents = [entry.to_document() for entry in entries]
        self._cache.set(key, documents, self._config.rankings_ttl)
        logger.info("Saved %d %s entries under %s", len(documents), platform, key)
        return key

    def load_platform_entries(
        self, week: str, platforms: Iterable[str]
    ) -> list[CrossPlatformEntry]:
        """Load every stored listing for the given platforms and week.

        Platforms with nothing cached are skipped.
        """
        entries: list[CrossPlatformEntry] = []
        for platform in platforms:
            documents = self._cache.get(f"raw:{week}:{platform}")
            if isinstance(documents, list):
                entries.extend(CrossPlatformEntry.from_document(d) for d in documents)
        return entries

    def combined_rankings(
        self,
        week: str,
        platform_param: str,
        compute: Callable[[], dict[str, Any]],
    ) -> dict[str, Any]:
        """Return the combined payload, computing it once per TTL window."""
        key = f"rankings:{week}:{platform_param}"
        return self._cache.get_or_compute(key, self._config.rankings_ttl, compute)

    def cached_payload(
        self,
        name: str,
        ttl_seconds: float,
        compute: Callable[[], dict[str, Any] | None],
    ) -> dict[str, Any] | None:
        return self._cache.get_or_compute(f"weekly:{name}", ttl_seconds, compute)
