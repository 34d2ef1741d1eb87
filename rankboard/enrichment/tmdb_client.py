"""Movie database search client.

One call = one search on one endpoint ("movie", "tv" or "multi") in one
language. Calls are:

    1. Served from the shared cache when the same search ran recently
    2. Otherwise run under the process-wide concurrency limiter
    3. Retried once after a short pause on 429/5xx
    4. Retried once with the v3 api_key when the v4 bearer token is
       rejected with 401

Every failure (missing credentials, network error, bad JSON, non-2xx,
empty result list) comes back as None. Enrichment is best-effort and
must never fail the ranking it decorates.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable

import requests

from rankboard.config import TmdbConfig
from rankboard.enrichment.limiter import ConcurrencyLimiter
from rankboard.fetchers.http_client import TRANSIENT_STATUSES, create_session
from rankboard.storage.cache import EphemeralCache

logger = logging.getLogger(__name__)


def _first_result(response: requests.Response) -> dict[str, Any] | None:
    payload = response.json()
    if not isinstance(payload, dict):
        return None
    results = payload.get("results") or []
    if not isinstance(results, list) or not results:
        return None
    first = results[0]
    return first if isinstance(first, dict) else None


class TmdbClient:
    """Cached, rate-bounded search against the movie database."""

    def __init__(
        self,
        config: TmdbConfig,
        cache: EphemeralCache,
        limiter: ConcurrencyLimiter,
        session: requests.Session | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._config = config
        self._cache = cache
        self._limiter = limiter
        self._session = session or create_session(
            config.user_agent, retry_count=1, retry_statuses=False
        )
        self._sleep = sleep
        self._warned_missing = False

    def search(self, query: str, language: str, endpoint: str) -> dict[str, Any] | None:
        """Return the best (first) search result, or None.

        Args:
            query: Title text to search for.
            language: Response language, e.g. "ko-KR".
            endpoint: "movie", "tv" or "multi".
        """
        if not self._config.has_credentials:
            if not self._warned_missing:
                logger.warning("TMDB credentials missing; skipping enrichment")
                self._warned_missing = True
            return None

        cache_key = f"tmdb:{endpoint}|{language}|{query}"
        cached = self._cache.get(cache_key)
        if cached is not None:
            return cached

        with self._limiter.permit():
            result = self._search_uncached(query, language, endpoint)

        if result is not None:
            self._cache.set(cache_key, result, self._config.search_cache_ttl)
        return result

    def _get(
        self, url: str, params: dict[str, str], use_bearer: bool
    ) -> requests.Response:
        headers = {"Accept": "application/json"}
        if use_bearer and self._config.bearer_token:
            headers["Authorization"] = f"Bearer {self._config.bearer_token}"
        return self._session.get(
            url,
            params=params,
            headers=headers,
            timeout=self._config.request_timeout,
        )

    def _search_uncached(
        self, query: str, language: str, endpoint: str
    ) -> dict[str, Any] | None:
        url = f"{self._config.base_url}/search/{endpoint}"
        params = {
            "query": query,
            "language": language,
            "include_adult": "false",
        }
        if self._config.api_key:
            params["api_key"] = self._config.api_key

        try:
            response = self._get(url, params, use_bearer=True)
            if response.ok:
                return _first_result(response)

            if response.status_code in TRANSIENT_STATUSES:
                self._sleep(self._config.retry_backoff)
                retry = self._get(url, params, use_bearer=True)
                if retry.ok:
                    return _first_result(retry)
                logger.warning(
                    "TMDB search %s failed after retry: %d", endpoint, retry.status_code
                )
                return None

            if (
                response.status_code == 401
                and self._config.bearer_token
                and self._config.api_key
            ):
                logger.warning("TMDB bearer token rejected, retrying with api_key")
                fallback = self._get(url, params, use_bearer=False)
                if fallback.ok:
                    return _first_result(fallback)
                logger.warning(
                    "TMDB api_key retry failed: %d", fallback.status_code
                )
                return None

            logger.warning(
                "TMDB search %s failed: %d %s",
                endpoint,
                response.status_code,
                response.text[:200],
            )
            return None
        except (requests.RequestException, ValueError) as exc:
            logger.warning("TMDB search error for %r: %s", query, exc)
            return None
