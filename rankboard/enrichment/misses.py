"""Rate-limited logging of titles that enrichment couldn't resolve.

A cold cache can miss dozens of titles in a burst, so at most
`limit` misses are logged per `window` seconds. Every miss is still
counted per title for the debug report.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable

logger = logging.getLogger(__name__)


@dataclass
class _MissStats:
    count: int = 0
    last_at: float = 0.0


class MissLog:
    def __init__(
        self,
        limit: int = 5,
        window: float = 1.0,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._limit = limit
        self._window = window
        self._clock = clock
        self._lock = threading.Lock()
        self._window_start = 0.0
        self._logged_in_window = 0
        self._stats: dict[str, _MissStats] = {}

    def record(self, title: str) -> bool:
        """Count a miss for title.

        Returns:
            True if the miss was logged, False if rate-limited.
        """
        with self._lock:
            now = self._clock()
            if now - self._window_start > self._window:
                self._window_start = now
                self._logged_in_window = 0
            should_log = self._logged_in_window < self._limit
            if should_log:
                self._logged_in_window += 1

            stats = self._stats.setdefault(title, _MissStats())
            stats.count += 1
            stats.last_at = now

        if should_log:
            logger.warning("Metadata miss: %s", title)
        return should_log

    def report(self) -> list[dict]:
        """Per-title miss counts, most frequent first."""
        with self._lock:
            items = [
                (title, stats.count, stats.last_at)
                for title, stats in self._stats.items()
            ]
        items.sort(key=lambda item: item[1], reverse=True)
        return [
            {
                "title": title,
                "count": count,
                "lastAt": datetime.fromtimestamp(last_at, timezone.utc).isoformat(),
            }
            for title, count, last_at in items
        ]
