from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from insider_lookup.cache.base import CacheBackend


@dataclass(frozen=True)
class CacheEntry:
    value: Any
    cached_at: float
    expires_at: float


class MemoryCache(CacheBackend):
    """Process-local TTL cache. Expired entries are dropped lazily on read."""

    name = "memory"

    def __init__(self, ttl_seconds: float, *, clock: Callable[[], float] = time.time):
        self.ttl_seconds = float(ttl_seconds)
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: Dict[str, CacheEntry] = {}

    def get(self, key: str) -> Optional[Any]:
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if now >= entry.expires_at:
                self._entries.pop(key, None)
                return None
            return entry.value

    def put(self, key: str, value: Any) -> None:
        if self.ttl_seconds <= 0:
            return
        now = self._clock()
        with self._lock:
            self._entries[key] = CacheEntry(value=value, cached_at=now, expires_at=now + self.ttl_seconds)

    def invalidate(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
