from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Optional


class CacheBackend(ABC):
    """Minimal key/value cache contract shared by every tier.

    `get` returns None on a miss (including an expired entry). Backends own
    their expiry policy; callers never compare timestamps themselves.
    """

    name: str = "cache"

    @abstractmethod
    def get(self, key: str) -> Optional[Any]:
        raise NotImplementedError

    @abstractmethod
    def put(self, key: str, value: Any) -> None:
        raise NotImplementedError

    @abstractmethod
    def invalidate(self, key: str) -> None:
        raise NotImplementedError
