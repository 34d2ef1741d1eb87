"""Ephemeral key-value cache with per-entry TTL.

Process-local and lost on restart: a horizontally scaled deployment
needs a shared external cache instead. Expiry is lazy; an expired entry
is removed the next time it is read, and there is no size bound.

get_or_compute() adds single-flight semantics on top: concurrent
callers asking for the same missing key wait for one computation
instead of each running their own.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable

logger = logging.getLogger(__name__)


@dataclass
class _Entry:
    value: Any
    expires_at: float


class EphemeralCache:
    """Thread-safe in-memory TTL store.

    Args:
        clock: Returns the current time in seconds; injectable for tests.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._store: dict[str, _Entry] = {}
        self._lock = threading.Lock()
        self._inflight: dict[str, threading.Event] = {}

    def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        expires_at = self._clock() + ttl_seconds
        with self._lock:
            self._store[key] = _Entry(value=value, expires_at=expires_at)

    def get(self, key: str) -> Any | None:
        """Return the live value for key, or None if absent or expired."""
        with self._lock:
            return self._live(key)

    def _live(self, key: str) -> Any | None:
        entry = self._store.get(key)
        if entry is None:
            return None
        if self._clock() > entry.expires_at:
            del self._store[key]
            return None
        return entry.value

    def delete(self, key: str) -> None:
        with self._lock:
            self._store.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._store.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)

    def get_or_compute(
        self,
        key: str,
        ttl_seconds: float,
        compute: Callable[[], Any],
    ) -> Any:
        """Return the cached value, computing it at most once concurrently.

        The first caller for a missing key runs compute() and stores the
        result; callers arriving meanwhile wait and then read it. If the
        computation raises, waiters retry on their own. A None result is
        returned but never cached.
        """
        while True:
            with self._lock:
                value = self._live(key)
                if value is not None:
                    return value
                event = self._inflight.get(key)
                owner = event is None
                if owner:
                    event = threading.Event()
                    self._inflight[key] = event

            if not owner:
                event.wait()
                continue

            try:
                value = compute()
                if value is not None:
                    self.set(key, value, ttl_seconds)
                return value
            finally:
                with self._lock:
                    self._inflight.pop(key, None)
                event.set()
