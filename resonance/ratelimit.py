"""Per-client request counter.

Each client has a counter and a window reference that every admitted
request moves forward. The counter restarts only once a full window has
passed since the last admitted request, so a client that keeps coming back
before the window runs out stays at its limit. Denied requests neither count
nor move the reference.

Clients are keyed by the ``X-Forwarded-For`` header when present. The header
is trusted as-is, so behind a proxy that does not overwrite it a client can
pick its own key. Treat this as throttling for well-behaved clients, not as
an abuse control.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from threading import Lock
from typing import Callable, Dict

from starlette.requests import HTTPConnection


@dataclass
class _Visitor:
    window_start: float
    last_seen: float
    count: int


class RateLimiter:
    def __init__(self, limit: int, window_seconds: float, clock: Callable[[], float] = time.monotonic):
        if limit < 1:
            raise ValueError("limit must be at least 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        self._limit = int(limit)
        self._window = float(window_seconds)
        self._clock = clock
        self._lock = Lock()
        self._visitors: Dict[str, _Visitor] = {}

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def window(self) -> float:
        return self._window

    def admit(self, key: str) -> bool:
        """Count a request from ``key`` and report whether it may proceed."""
        now = self._clock()
        with self._lock:
            visitor = self._visitors.get(key)
            if visitor is None:
                self._visitors[key] = _Visitor(window_start=now, last_seen=now, count=1)
                return True

            if now - visitor.window_start > self._window:
                visitor.window_start = now
                visitor.last_seen = now
                visitor.count = 1
                return True

            if visitor.count >= self._limit:
                return False

            visitor.count += 1
            visitor.window_start = now
            visitor.last_seen = now
            return True

    def count(self, key: str) -> int:
        with self._lock:
            visitor = self._visitors.get(key)
            return visitor.count if visitor else 0

    def sweep(self) -> int:
        """Forget clients idle for more than two windows."""
        cutoff = self._clock() - 2 * self._window
        with self._lock:
            stale = [k for k, v in self._visitors.items() if v.last_seen < cutoff]
            for k in stale:
                del self._visitors[k]
        return len(stale)

    def __len__(self) -> int:
        with self._lock:
            return len(self._visitors)


def client_key(conn: HTTPConnection) -> str:
    forwarded = conn.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded
    if conn.client is not None:
        return conn.client.host
    return "unknown"
