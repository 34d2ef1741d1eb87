"""Process-wide service objects.

The cache, the concurrency limiter and the miss log are the only mutable
state shared between requests. They are built once per process by
get_services() and handed to request code explicitly; nothing else
reaches for module globals. A warm process (or a reused Lambda
container) keeps its cache between invocations.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from rankboard.config import AppConfig
from rankboard.enrichment.limiter import ConcurrencyLimiter
from rankboard.enrichment.misses import MissLog
from rankboard.enrichment.service import EnrichmentService
from rankboard.enrichment.tmdb_client import TmdbClient
from rankboard.storage.cache import EphemeralCache
from rankboard.storage.repository import RankingsRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Services:
    config: AppConfig
    cache: EphemeralCache
    limiter: ConcurrencyLimiter
    miss_log: MissLog
    repository: RankingsRepository
    enrichment: EnrichmentService


_services: Services | None = None


def build_services(config: AppConfig) -> Services:
    """Wire a fresh set of services for config."""
    cache = EphemeralCache()
    limiter = ConcurrencyLimiter(config.tmdb.max_concurrent)
    miss_log = MissLog(
        limit=config.enrichment.miss_log_limit,
        window=config.enrichment.miss_log_window,
    )
    client = TmdbClient(config.tmdb, cache, limiter)
    return Services(
        config=config,
        cache=cache,
        limiter=limiter,
        miss_log=miss_log,
        repository=RankingsRepository(cache, config.cache),
        enrichment=EnrichmentService(
            client, miss_log, config.enrichment, config.tmdb.languages
        ),
    )


def get_services(config: AppConfig) -> Services:
    """Return the process services, creating them on first use.

    Later calls return the existing instance; config is only read the
    first time.
    """
    global _services
    if _services is None:
        logger.info("Creating process services")
        _services = build_services(config)
    return _services


def reset_services() -> None:
    """Drop the process services so the next call rebuilds them.

    Safe to call even if nothing was created.
    """
    global _services
    if _services is not None:
        _services.cache.clear()
        _services = None
        logger.info("Process services reset")
