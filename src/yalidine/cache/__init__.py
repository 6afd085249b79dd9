"""
Pluggable key/value cache with TTL.

All backends share one contract (get/set/delete/has/clear); they differ
only in where entries live.
"""

from yalidine.cache.base import CacheBackend, CacheEntry
from yalidine.cache.factory import create_cache
from yalidine.cache.file import FileCache
from yalidine.cache.memory import InMemoryCache
from yalidine.cache.redis import RedisCache

__all__ = [
    "CacheBackend",
    "CacheEntry",
    "FileCache",
    "InMemoryCache",
    "RedisCache",
    "create_cache",
]
