"""Concurrency limiter for outbound metadata requests.

A counting semaphore with a FIFO wait queue. threading.Semaphore makes
no ordering promise, so waiters here each get their own Event and are
woken strictly in arrival order; a released permit is handed straight
to the next waiter instead of being put back up for grabs.
"""

from __future__ import annotations

import threading
from collections import deque
from contextlib import contextmanager
from typing import Iterator


class ConcurrencyLimiter:
    """Bounds in-flight calls process-wide.

    Attributes:
        peak: Highest number of permits held at once since construction.
    """

    def __init__(self, max_concurrent: int = 5) -> None:
        if max_concurrent < 1:
            raise ValueError("max_concurrent must be at least 1")
        self._max = max_concurrent
        self._lock = threading.Lock()
        self._active = 0
        self._waiters: deque[threading.Event] = deque()
        self.peak = 0

    @property
    def in_flight(self) -> int:
        with self._lock:
            return self._active

    @property
    def waiting(self) -> int:
        with self._lock:
            return len(self._waiters)

    def acquire(self) -> None:
        with self._lock:
            if self._active < self._max and not self._waiters:
                self._take()
                return
            event = threading.Event()
            self._waiters.append(event)
        # The permit is handed over by release() without touching the count.
        event.wait()

    def release(self) -> None:
        with self._lock:
            if self._waiters:
                self._waiters.popleft().set()
                return
            self._active = max(0, self._active - 1)

    def _take(self) -> None:
        self._active += 1
        self.peak = max(self.peak, self._active)

    @contextmanager
    def permit(self) -> Iterator[None]:
        """Hold a permit for the duration of the block."""
        self.acquire()
        try:
            yield
        finally:
            self.release()
