from insider_lookup.cache.base import CacheBackend
from insider_lookup.cache.memory import MemoryCache
from insider_lookup.cache.store import StoreCache
from insider_lookup.cache.tiered import TieredCache

__all__ = ["CacheBackend", "MemoryCache", "StoreCache", "TieredCache"]
