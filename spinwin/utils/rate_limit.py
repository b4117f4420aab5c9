"""In-process sliding-window rate limiter keyed by client IP.

Best effort only: each worker process keeps its own window.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from threading import Lock

from flask import Request

CLEANUP_INTERVAL_SECONDS = 300.0


class SlidingWindowRateLimiter:
    """Allow at most `max_requests` per key within `window_seconds`."""

    def __init__(
        self,
        max_requests: int = 5,
        window_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._lock = Lock()
        self._hits: dict[str, list[float]] = {}
        self._last_cleanup = clock()

    def allow(self, key: str) -> bool:
        now = self._clock()
        with self._lock:
            self._maybe_cleanup(now)

            recent = [t for t in self._hits.get(key, []) if now - t < self.window_seconds]
            if len(recent) >= self.max_requests:
                self._hits[key] = recent
                return False

            recent.append(now)
            self._hits[key] = recent
            return True

    def _maybe_cleanup(self, now: float) -> None:
        if now - self._last_cleanup < CLEANUP_INTERVAL_SECONDS:
            return
        self._last_cleanup = now
        for key in list(self._hits):
            valid = [t for t in self._hits[key] if now - t < self.window_seconds]
            if valid:
                self._hits[key] = valid
            else:
                del self._hits[key]

    def tracked_keys(self) -> int:
        with self._lock:
            return len(self._hits)


def client_ip(request: Request) -> str:
    """First X-Forwarded-For hop, else the socket peer."""

    forwarded = request.headers.get("X-Forwarded-For", "")
    first = forwarded.split(",")[0].strip()
    if first:
        return first
    return request.remote_addr or "unknown"
