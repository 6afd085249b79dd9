"""Abstract base class for cache backends."""

import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any


def expiry_from_ttl(ttl_seconds: float | None, now: float) -> float | None:
    """
    Absolute expiry for a TTL.

    None, zero or negative TTLs mean the entry never expires.
    """
    if ttl_seconds is None or ttl_seconds <= 0:
        return None
    return now + ttl_seconds


@dataclass
class CacheEntry:
    """
    A cached value with an optional absolute expiry.

    Attributes:
        value: Cached data (JSON-serializable for persistent backends)
        expires_at: Clock reading after which the entry is gone (None = never)
    """

    value: Any
    expires_at: float | None = None

    def is_expired(self, now: float) -> bool:
        """Check if entry has expired at clock reading `now`."""
        return self.expires_at is not None and now > self.expires_at

    def ttl_remaining(self, now: float) -> float | None:
        """Get remaining TTL in seconds, or None if no expiry."""
        if self.expires_at is None:
            return None
        return max(0.0, self.expires_at - now)


class CacheBackend(ABC):
    """
    Abstract base class for cache backends.

    Every backend honours the same contract: `get` returns None for a
    missing or expired key, `set` with a TTL that is omitted or <= 0
    stores the value forever, and expired entries are removed when read.
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock

    @property
    @abstractmethod
    def name(self) -> str:
        """
        Unique identifier for this backend.

        Returns:
            Backend name (e.g., 'memory', 'redis')
        """
        ...

    @abstractmethod
    async def get(self, key: str) -> Any | None:
        """
        Get a value from the cache.

        Args:
            key: Cache key

        Returns:
            Cached value, or None if not found/expired
        """
        ...

    @abstractmethod
    async def set(self, key: str, value: Any, ttl_seconds: float | None = None) -> None:
        """
        Set a value in the cache.

        Args:
            key: Cache key
            value: Value to cache
            ttl_seconds: Time-to-live in seconds (None or <= 0 = never expires)
        """
        ...

    @abstractmethod
    async def delete(self, key: str) -> None:
        """
        Delete a value from the cache. Missing keys are ignored.

        Args:
            key: Cache key
        """
        ...

    @abstractmethod
    async def has(self, key: str) -> bool:
        """
        Check if a key exists in the cache.

        Args:
            key: Cache key

        Returns:
            True if exists and not expired, False otherwise
        """
        ...

    @abstractmethod
    async def clear(self, pattern: str | None = None) -> int:
        """
        Clear cache entries.

        Args:
            pattern: Optional glob pattern to match keys (e.g., "goupex:*")
                    None = clear all entries

        Returns:
            Number of entries cleared
        """
        ...

    async def close(self) -> None:
        """Release backend resources. Safe to call more than once."""

    async def get_or_set(
        self,
        key: str,
        factory: Callable[[], Any],
        ttl_seconds: float | None = None,
    ) -> Any:
        """
        Get a value, or compute and cache it if missing.

        Args:
            key: Cache key
            factory: Callable or coroutine function that returns the value
            ttl_seconds: TTL if value needs to be computed

        Returns:
            Cached or computed value
        """
        value = await self.get(key)
        if value is not None:
            return value

        value = factory()
        if hasattr(value, "__await__"):
            value = await value

        await self.set(key, value, ttl_seconds)
        return value
