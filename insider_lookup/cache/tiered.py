from __future__ import annotations

from typing import Any, List, Optional, Sequence

from insider_lookup.cache.base import CacheBackend


def _debug(msg: str) -> None:
    print(f"[cache] {msg}")


class TieredCache(CacheBackend):
    """Fastest tier first. A hit in a slower tier is promoted into the faster ones."""

    name = "tiered"

    def __init__(self, tiers: Sequence[CacheBackend]):
        if not tiers:
            raise RuntimeError("TieredCache needs at least one tier")
        self.tiers: List[CacheBackend] = list(tiers)

    def get(self, key: str) -> Optional[Any]:
        for i, tier in enumerate(self.tiers):
            value = tier.get(key)
            if value is None:
                continue
            _debug(f"Hit key={key} tier={tier.name}")
            for faster in self.tiers[:i]:
                faster.put(key, value)
            return value
        return None

    def put(self, key: str, value: Any) -> None:
        for tier in self.tiers:
            tier.put(key, value)

    def invalidate(self, key: str) -> None:
        for tier in self.tiers:
            tier.invalidate(key)
