"""Lambda-style entry point for the ranking pipeline.

The thin request layer that ties everything together. Each invocation
names an action and its parameters:

    weekly        global Top 10 per bucket + unified Top 100
    country       a region's Top 10 per category (source ranks)
    most_popular  91-day most popular per bucket
    ingest        reduce a platform's chart and store it for a week
    rankings      combined cross-platform leaderboard for a week
    misses        titles enrichment couldn't resolve
    health        TMDB credential diagnostics

Computed payloads are cached per process; a failed upstream fetch is
reported as 502 and never cached, "no data" as 404. Lists that fail
validation are returned with status "partial" and their errors, and
are not cached either.

All logging is structured JSON for CloudWatch readability.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Callable

import requests

from rankboard.config import (
    PLATFORMS,
    SUPPORTED_COUNTRIES,
    AppConfig,
    credential_health,
    load_config,
)
from rankboard.fetchers import fetch_dataset
from rankboard.fetchers.http_client import create_session
from rankboard.models import Bucket, Category, RankingResult
from rankboard.parsing.dates import parse_date
from rankboard.parsing.normalizer import (
    normalize_popular_rows,
    normalize_weekly_rows,
    normalize_workbook,
    partition_buckets,
)
from rankboard.ranking.engine import (
    build_unified_top100,
    convert_to_top_n,
    latest_period,
    rows_for_period,
)
from rankboard.ranking.integrate import best_rank_entries, integrate, region_matches
from rankboard.storage.cache_client import Services, get_services
from rankboard.validation.validators import validate_all

logger = logging.getLogger()
logger.setLevel(logging.INFO)

STATUS_CODES = {"ok": 200, "partial": 200, "empty": 404, "upstream_error": 502}
BUCKET_LIMIT = 10


class _JSONFormatter(logging.Formatter):
    """Format log records as single-line JSON for CloudWatch."""

    def format(self, record: logging.LogRecord) -> str:
        """Serialize the log record to a JSON string."""
        return json.dumps({
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        })


_handler = logging.StreamHandler()
_handler.setFormatter(_JSONFormatter())
if not logger.handlers:
    logger.addHandler(_handler)


class BadRequest(ValueError):
    """Invalid parameters from the caller (mapped to 400)."""


def _response(status_code: int, body: dict[str, Any]) -> dict[str, Any]:
    return {
        "statusCode": status_code,
        "body": json.dumps(body, ensure_ascii=False),
    }


def _int_param(params: dict[str, Any], name: str, default: int) -> int:
    raw = params.get(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except (TypeError, ValueError):
        raise BadRequest(f"{name} must be an integer")
    if value < 0:
        raise BadRequest(f"{name} must be non-negative")
    return value


def _validation_errors(lists: dict[str, Any]) -> tuple[str, ...]:
    """Validate ranked lists and return every error, logging them."""
    errors = tuple(
        error for result in validate_all(lists) for error in result.errors
    )
    if errors:
        logger.warning(
            "Validation produced %d errors: %s", len(errors), "; ".join(errors)
        )
    return errors


def _cached(
    services: Services,
    name: str,
    ttl: int,
    build: Callable[[], dict[str, Any]],
) -> dict[str, Any]:
    """Build a payload through the cache, caching only "ok" payloads."""
    outcome: dict[str, dict[str, Any]] = {}

    def compute() -> dict[str, Any] | None:
        payload = build()
        outcome["payload"] = payload
        return payload if payload["status"] == "ok" else None

    cached = services.repository.cached_payload(name, ttl, compute)
    return cached if cached is not None else outcome["payload"]


def _weekly(
    services: Services, session: requests.Session, params: dict[str, Any]
) -> dict[str, Any]:
    config = services.config
    enrich_limit = _int_param(params, "enrich_limit", config.enrichment.default_limit)

    def build() -> dict[str, Any]:
        dataset = fetch_dataset(session, config.sources, "global")
        if dataset.failed:
            return RankingResult.upstream_error(dataset.errors).to_document()

        rows = normalize_workbook(dataset.sheets)
        period = latest_period(rows)
        if period is None:
            return RankingResult.empty().to_document()

        buckets = partition_buckets(rows)
        unified = build_unified_top100(buckets, config.weights)
        unified = services.enrichment.enrich_items(unified, enrich_limit)
        quadrants = {
            bucket.value: convert_to_top_n(
                rows_for_period(buckets[bucket], period[0]), BUCKET_LIMIT
            )
            for bucket in Bucket
        }
        errors = _validation_errors({"unified": unified, **quadrants})

        document = RankingResult(
            status="partial" if errors else "ok",
            items=tuple(unified),
            period_start=period[0],
            period_end=period[1],
            errors=errors,
        ).to_document()
        document["globalByQuadrant"] = {
            name: [item.to_document() for item in items]
            for name, items in quadrants.items()
        }
        return document

    payload = _cached(services, f"global:{enrich_limit}", config.cache.weekly_ttl, build)
    return _response(STATUS_CODES[payload["status"]], payload)


def _country(
    services: Services, session: requests.Session, params: dict[str, Any]
) -> dict[str, Any]:
    config = services.config
    region = str(params.get("region") or "").upper()
    if region not in SUPPORTED_COUNTRIES:
        raise BadRequest(
            f"Country code '{region}' is not supported. "
            f"Supported: {', '.join(SUPPORTED_COUNTRIES)}"
        )
    requested_week = None
    if params.get("week"):
        requested_week = parse_date(params["week"])
        if requested_week is None:
            raise BadRequest("week must be a date, e.g. 2025-01-06")
    enrich_limit = _int_param(params, "enrich_limit", BUCKET_LIMIT)

    def build() -> dict[str, Any]:
        dataset = fetch_dataset(session, config.sources, "countries")
        if dataset.failed:
            return RankingResult.upstream_error(dataset.errors).to_document()

        regional = [
            row
            for row in normalize_weekly_rows(dataset.rows)
            if region_matches(row.region_code, region)
        ]
        period = latest_period(regional)
        if period is None:
            return RankingResult.empty().to_document()
        week = requested_week or period[0]
        rows = rows_for_period(regional, week)
        if not rows:
            return RankingResult.empty().to_document()

        categories = {}
        for category in Category:
            items = convert_to_top_n(
                [row for row in rows if row.category is category], BUCKET_LIMIT
            )
            categories[category.value] = services.enrichment.enrich_items(
                items, enrich_limit
            )
        errors = _validation_errors(
            {f"country/{region}/{k}": v for k, v in categories.items()}
        )

        document = RankingResult(
            status="partial" if errors else "ok",
            items=tuple(item for items in categories.values() for item in items),
            period_start=rows[0].period_start,
            period_end=rows[0].period_end,
            errors=errors,
        ).to_document()
        document["countryCode"] = region
        document["categories"] = {
            name: [item.to_document() for item in items]
            for name, items in categories.items()
        }
        return document

    week_key = requested_week.isoformat() if requested_week else "latest"
    payload = _cached(
        services, f"country:{region}:{week_key}", config.cache.weekly_ttl, build
    )
    return _response(STATUS_CODES[payload["status"]], payload)


def _most_popular(
    services: Services, session: requests.Session, params: dict[str, Any]
) -> dict[str, Any]:
    config = services.config
    enrich_limit = _int_param(params, "enrich_limit", BUCKET_LIMIT)

    def build() -> dict[str, Any]:
        dataset = fetch_dataset(session, config.sources, "most_popular")
        if dataset.failed:
            return RankingResult.upstream_error(dataset.errors).to_document()

        rows = [
            row
            for sheet, sheet_rows in dataset.sheets.items()
            for row in normalize_popular_rows(sheet_rows, sheet)
        ]
        if not rows:
            return RankingResult.empty().to_document()

        document: dict[str, Any] = {"status": "ok", "errors": []}
        for bucket, bucket_rows in partition_buckets(rows).items():
            enriched = services.enrichment.enrich_popular_rows(bucket_rows, enrich_limit)
            document[bucket.value] = [row.to_document() for row in enriched]
        return document

    payload = _cached(
        services, f"most_popular:{enrich_limit}", config.cache.most_popular_ttl, build
    )
    return _response(STATUS_CODES[payload["status"]], payload)


def _ingest(
    services: Services, session: requests.Session, params: dict[str, Any]
) -> dict[str, Any]:
    platform = str(params.get("platform") or "").lower()
    if not platform:
        raise BadRequest("Missing platform param")
    if platform != "netflix":
        return _response(501, {"error": f"Platform not implemented: {platform}"})

    region = str(params.get("region") or "KR").upper()
    week = None
    raw_week = str(params.get("week") or "")
    if raw_week and raw_week.lower() != "latest":
        week = parse_date(raw_week)
        if week is None:
            raise BadRequest("week must be a date or 'latest'")

    dataset = fetch_dataset(session, services.config.sources, "countries")
    if dataset.failed:
        return _response(502, {"error": "upstream_error", "errors": list(dataset.errors)})

    rows = normalize_weekly_rows(dataset.rows)
    used_week, entries = best_rank_entries(rows, platform, region, week)
    if used_week is None:
        return _response(400, {"error": "no_weeks_found_in_data_for_region", "region": region})

    key = services.repository.save_platform_entries(
        used_week.isoformat(), platform, entries
    )
    return _response(200, {
        "ok": True,
        "count": len(entries),
        "week": used_week.isoformat(),
        "region": region,
        "key": key,
    })


def _rankings(
    services: Services, session: requests.Session, params: dict[str, Any]
) -> dict[str, Any]:
    week_start = parse_date(params.get("week"))
    if week_start is None:
        raise BadRequest("Missing week=YYYY-MM-DD")
    week = week_start.isoformat()

    platform_param = str(params.get("platform") or "all").lower()
    if platform_param == "all":
        platforms = list(PLATFORMS)
    else:
        platforms = [p for p in platform_param.split(",") if p]
        unknown = [p for p in platforms if p not in PLATFORMS]
        if unknown:
            raise BadRequest(f"Unknown platform(s): {', '.join(unknown)}")

    def compute() -> dict[str, Any] | None:
        entries = services.repository.load_platform_entries(week, platforms)
        if not entries:
            return None
        return {
            "week": week,
            "platform": platform_param,
            "items": [item.to_document() for item in integrate(entries)],
        }

    payload = services.repository.combined_rankings(week, platform_param, compute)
    if payload is None:
        return _response(404, {"week": week, "platform": platform_param, "items": []})
    return _response(200, payload)


def _misses(
    services: Services, session: requests.Session, params: dict[str, Any]
) -> dict[str, Any]:
    return _response(200, {"misses": services.miss_log.report()})


def _health(
    services: Services, session: requests.Session, params: dict[str, Any]
) -> dict[str, Any]:
    return _response(200, credential_health(services.config.tmdb))


ACTIONS: dict[str, Callable[[Services, requests.Session, dict[str, Any]], dict[str, Any]]] = {
    "weekly": _weekly,
    "country": _country,
    "most_popular": _most_popular,
    "ingest": _ingest,
    "rankings": _rankings,
    "misses": _misses,
    "health": _health,
}


def lambda_handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    """AWS Lambda handler - entry point for every ranking request.

    The event carries "action" and its parameters, either at the top
    level or under API Gateway's "queryStringParameters". The context
    parameter is not used but required by the Lambda interface.

    Returns:
        Dict with statusCode and a JSON body. 400 for bad parameters,
        404 when there is no data, 500 for configuration errors, 502
        when the upstream dataset couldn't be fetched.
    """
    params = dict(event.get("queryStringParameters") or {})
    params.update({k: v for k, v in event.items() if k != "queryStringParameters"})
    action = str(params.get("action") or "")

    try:
        config: AppConfig = load_config()
    except ValueError as exc:
        logger.error("Configuration error: %s", exc)
        return _response(500, {"error": str(exc)})

    handler = ACTIONS.get(action)
    if handler is None:
        return _response(400, {"error": f"Unknown action: '{action}'"})

    services = get_services(config)
    session = create_session(config.sources.user_agent, config.sources.retry_count)

    try:
        response = handler(services, session, params)
    except BadRequest as exc:
        return _response(400, {"error": str(exc)})

    logger.info("Action %s completed: statusCode=%d", action, response["statusCode"])
    return response
