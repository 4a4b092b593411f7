"""Tiny in-process TTL cache.

Memoizes the song and artist listings between writes. Entries are checked for
expiry on every read; ``sweep`` only reclaims memory and is driven by the
app's background scheduler. Best-effort: everything resets on restart.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from threading import RLock
from typing import Callable, Dict, Generic, Hashable, Optional, TypeVar

T = TypeVar("T")

SONGS_LIST_KEY = "songs:list"
ARTISTS_LIST_KEY = "artists:list"


@dataclass(frozen=True)
class _Entry(Generic[T]):
    expires_at: float
    value: T


class TTLCache(Generic[T]):
    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.monotonic):
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self._ttl = float(ttl_seconds)
        self._clock = clock
        self._lock = RLock()
        self._data: Dict[Hashable, _Entry[T]] = {}

    @property
    def ttl(self) -> float:
        return self._ttl

    def get(self, key: Hashable) -> Optional[T]:
        """Return the cached value, or None when absent or expired."""
        now = self._clock()
        with self._lock:
            entry = self._data.get(key)
        if entry is None or now > entry.expires_at:
            return None
        return entry.value

    def set(self, key: Hashable, value: T) -> None:
        expires_at = self._clock() + self._ttl
        with self._lock:
            self._data[key] = _Entry(expires_at=expires_at, value=value)

    def invalidate(self, *keys: Hashable) -> None:
        with self._lock:
            for key in keys:
                self._data.pop(key, None)

    def sweep(self) -> int:
        """Drop expired entries. Returns how many were removed."""
        now = self._clock()
        with self._lock:
            expired_keys = [k for k, v in self._data.items() if now > v.expires_at]
            for k in expired_keys:
                del self._data[k]
        return len(expired_keys)

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)
