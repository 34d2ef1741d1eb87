"""Integrity checks for computed leaderboards.

Run on every ranked list before it is returned. Catches issues like:
- Empty titles (indicates a header mapping went wrong)
- Duplicate titles (indicates deduplication was skipped)
- Duplicate or non-positive ranks (indicates a sort/rank bug)

Errors flag output that shouldn't be trusted. Warnings are logged but
don't block the response - they describe unusual but legitimate data
(e.g. a gap in source-supplied ranks, or a bucket with fewer than 10
titles).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

from rankboard.models import RankedItem

logger = logging.getLogger(__name__)

MIN_RANK = 1


@dataclass(frozen=True)
class ValidationResult:
    """Result of validating one ranked list.

    Attributes:
        valid: True if no errors (warnings are OK).
        errors: Issues that make the list untrustworthy.
        warnings: Unusual data that's still acceptable.
    """

    valid: bool
    errors: tuple[str, ...]
    warnings: tuple[str, ...]


def validate_ranked_items(
    items: Sequence[RankedItem],
    context: str,
    expected: int | None = None,
) -> ValidationResult:
    """Validate one ranked list.

    Checks:
    - Each rank is at least 1
    - Each title is non-empty
    - No duplicate ranks
    - No duplicate titles
    - Ranks form 1..N without gaps (warns otherwise)
    - At least `expected` entries, when given (warns otherwise)

    Args:
        items: The ranked list to validate.
        context: Label used in messages, e.g. "unified" or "country/KR".
        expected: Number of entries the list should normally have.

    Returns:
        ValidationResult with valid=True if no errors found.
    """
    errors: list[str] = []
    warnings: list[str] = []

    seen_ranks: set[int] = set()
    seen_titles: set[str] = set()
    for item in items:
        item_ctx = f"{context}/rank={item.rank}"

        if item.rank < MIN_RANK:
            errors.append(f"{item_ctx}: rank below {MIN_RANK}")

        if not item.title or not item.title.strip():
            errors.append(f"{item_ctx}: empty title")

        if item.rank in seen_ranks:
            errors.append(f"{item_ctx}: duplicate rank")
        seen_ranks.add(item.rank)

        if item.title in seen_titles:
            errors.append(f"{item_ctx}: duplicate title '{item.title}'")
        seen_titles.add(item.title)

    if seen_ranks and seen_ranks != set(range(1, len(items) + 1)):
        warnings.append(f"{context}: ranks are not a dense 1..{len(items)} sequence")

    if expected is not None and len(items) < expected:
        warnings.append(
            f"{context}: expected {expected} entries, got {len(items)}"
        )

    return ValidationResult(
        valid=len(errors) == 0,
        errors=tuple(errors),
        warnings=tuple(warnings),
    )


def validate_all(
    lists: dict[str, Sequence[RankedItem]],
    expected: int | None = None,
) -> tuple[ValidationResult, ...]:
    """Validate several ranked lists and log summary statistics.

    Args:
        lists: Ranked lists keyed by context label.
        expected: Expected entries per list, if any.

    Returns:
        Tuple of ValidationResult objects in the order of lists.
    """
    results = []
    total_errors = 0
    total_warnings = 0

    for context, items in lists.items():
        result = validate_ranked_items(items, context, expected)
        results.append(result)
        total_errors += len(result.errors)
        total_warnings += len(result.warnings)

    if total_errors:
        logger.warning("Validation found %d errors", total_errors)
    if total_warnings:
        logger.info("Validation found %d warnings", total_warnings)

    return tuple(results)
