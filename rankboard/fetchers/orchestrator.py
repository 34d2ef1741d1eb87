"""Dataset orchestrator: remote TSV primary, local file fallback.

Rather than depending on a single source, each dataset goes through a
fallback chain:

    1. Try the Netflix TSV export (structured, all weeks in one file)
    2. If that fails, read the configured local spreadsheet
    3. If both fail, return an empty result with error details

The orchestrator never raises - it always returns a DatasetResult, even
on total failure. A result with source_used == "none" is an upstream
failure, which the handler reports differently from "no data".
"""

from __future__ import annotations

import csv
import logging
import zipfile

import requests
from openpyxl.utils.exceptions import InvalidFileException

from rankboard.config import SourceConfig
from rankboard.fetchers.file_loader import load_sheets
from rankboard.fetchers.tsv_fetcher import fetch_tsv_rows
from rankboard.models import DatasetResult

logger = logging.getLogger(__name__)

DATASETS = ("global", "countries", "most_popular")


def _tsv_url(config: SourceConfig, dataset: str) -> str:
    return {
        "global": config.global_tsv_url,
        "countries": config.countries_tsv_url,
        "most_popular": config.most_popular_tsv_url,
    }[dataset]


def fetch_dataset(
    session: requests.Session,
    config: SourceConfig,
    dataset: str,
) -> DatasetResult:
    """Fetch one dataset's raw rows using TSV primary, local fallback.

    Args:
        session: HTTP session with retry strategy.
        config: Source URLs, timeouts and the local data directory.
        dataset: One of "global", "countries", "most_popular".

    Returns:
        DatasetResult containing:
        - sheets: raw rows per sheet label (may be empty)
        - source_used: "tsv", "local", or "none"
        - errors: error messages from failed attempts

    Raises:
        ValueError: If dataset isn't a known dataset name.
    """
    if dataset not in DATASETS:
        raise ValueError(f"Unknown dataset: {dataset}")

    errors: list[str] = []

    try:
        rows = fetch_tsv_rows(session, _tsv_url(config, dataset), config.request_timeout)
        if rows:
            return DatasetResult(
                sheets={dataset: rows},
                source_used="tsv",
                errors=tuple(errors),
            )
        errors.append(f"{dataset} TSV returned zero rows")
    except requests.RequestException as exc:
        msg = f"{dataset} TSV fetch failed: {exc}"
        logger.error(msg)
        errors.append(msg)

    path = config.local_path(dataset)
    if path is None:
        errors.append("No local data directory configured")
    else:
        try:
            logger.info("Falling back to local file %s", path)
            sheets = load_sheets(path)
            if any(sheets.values()):
                return DatasetResult(
                    sheets=sheets,
                    source_used="local",
                    errors=tuple(errors),
                )
            errors.append(f"{path.name} contained zero rows")
        except (
            OSError,
            ValueError,
            KeyError,
            csv.Error,
            InvalidFileException,
            zipfile.BadZipFile,
        ) as exc:
            msg = f"Local file {path} failed: {exc}"
            logger.error(msg)
            errors.append(msg)

    logger.error("All sources exhausted for %s", dataset)
    return DatasetResult(sheets={}, source_used="none", errors=tuple(errors))
