"""Global request cooldown shared by everything that goes through one client."""

from __future__ import annotations

import threading
import time
from typing import Callable


class CooldownClock:
    """Tracks when the last request started and how long the next one must wait."""

    def __init__(self, min_interval: float = 1.0, clock: Callable[[], float] = time.monotonic) -> None:
        self.min_interval = min_interval
        self._clock = clock
        self._lock = threading.Lock()
        self._last_request: float | None = None

    def now(self) -> float:
        return self._clock()

    def time_until_next_allowed(self, now: float | None = None) -> float:
        now = self._clock() if now is None else now
        with self._lock:
            return self._wait_for(now)

    def record_request_sent(self, now: float | None = None) -> None:
        now = self._clock() if now is None else now
        with self._lock:
            self._last_request = now

    def reserve(self, now: float | None = None) -> float:
        """Book the next request slot and return how long to sleep before using it.

        Check and record happen under one lock, so concurrent callers get
        consecutive slots.  The caller sleeps after the lock is released.
        """
        now = self._clock() if now is None else now
        with self._lock:
            wait = self._wait_for(now)
            self._last_request = now + wait
            return wait

    def _wait_for(self, now: float) -> float:
        if self._last_request is None:
            return 0.0
        elapsed = now - self._last_request
        if elapsed >= self.min_interval:
            return 0.0
        return self.min_interval - elapsed
