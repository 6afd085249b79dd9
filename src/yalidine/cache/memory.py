"""In-memory cache backend implementation."""

import asyncio
import fnmatch
import logging
import time
from collections.abc import Callable
from typing import Any

from yalidine.cache.base import CacheBackend, CacheEntry, expiry_from_ttl
from yalidine.errors import CacheError

logger = logging.getLogger(__name__)


class InMemoryCache(CacheBackend):
    """
    In-process cache backed by a dictionary.

    Expired entries are dropped when read, and a background sweep
    purges entries nobody reads again. The sweep is owned by this
    instance: it starts with the first cache operation inside a running
    event loop and stops on close(). A closed cache rejects writes.
    """

    def __init__(
        self,
        cleanup_interval_seconds: float = 300,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Initialize in-memory cache.

        Args:
            cleanup_interval_seconds: How often to sweep expired entries
            clock: Monotonic clock used for expiry
        """
        super().__init__(clock)
        self._store: dict[str, CacheEntry] = {}
        self._cleanup_interval = cleanup_interval_seconds
        self._cleanup_task: asyncio.Task | None = None
        self._lock = asyncio.Lock()
        self._closed = False

        try:
            asyncio.get_running_loop()
        except RuntimeError:
            pass  # started on first use instead
        else:
            self.start_cleanup_task()

    @property
    def name(self) -> str:
        return "memory"

    @property
    def is_closed(self) -> bool:
        return self._closed

    def _live_entry(self, key: str) -> CacheEntry | None:
        """Return the entry for key, evicting it if expired (caller holds lock)."""
        entry = self._store.get(key)
        if entry is None:
            return None
        if entry.is_expired(self._clock()):
            del self._store[key]
            return None
        return entry

    async def get(self, key: str) -> Any | None:
        """Get a value from the cache."""
        self.start_cleanup_task()
        async with self._lock:
            entry = self._live_entry(key)
            return entry.value if entry is not None else None

    async def set(self, key: str, value: Any, ttl_seconds: float | None = None) -> None:
        """Set a value in the cache."""
        if self._closed:
            raise CacheError(f"Cannot write '{key}' to a closed cache")
        self.start_cleanup_task()
        async with self._lock:
            self._store[key] = CacheEntry(
                value=value,
                expires_at=expiry_from_ttl(ttl_seconds, self._clock()),
            )

    async def delete(self, key: str) -> None:
        """Delete a value from the cache."""
        async with self._lock:
            self._store.pop(key, None)

    async def has(self, key: str) -> bool:
        """Check if a key exists in the cache."""
        self.start_cleanup_task()
        async with self._lock:
            return self._live_entry(key) is not None

    async def clear(self, pattern: str | None = None) -> int:
        """Clear cache entries matching pattern."""
        async with self._lock:
            if pattern is None:
                count = len(self._store)
                self._store.clear()
                return count

            keys_to_delete = [k for k in self._store if fnmatch.fnmatch(k, pattern)]
            for key in keys_to_delete:
                del self._store[key]
            return len(keys_to_delete)

    async def cleanup_expired(self) -> int:
        """Remove all expired entries."""
        async with self._lock:
            now = self._clock()
            expired_keys = [k for k, v in self._store.items() if v.is_expired(now)]
            for key in expired_keys:
                del self._store[key]

            if expired_keys:
                logger.debug(f"Cleaned up {len(expired_keys)} expired cache entries")

            return len(expired_keys)

    def start_cleanup_task(self) -> None:
        """Start the periodic sweep if it is not running yet."""
        if self._closed or self._cleanup_task is not None:
            return

        async def cleanup_loop() -> None:
            while not self._closed:
                try:
                    await asyncio.sleep(self._cleanup_interval)
                    await self.cleanup_expired()
                except asyncio.CancelledError:
                    break
                except Exception as e:
                    logger.error(f"Cache cleanup error: {e}")

        self._cleanup_task = asyncio.get_running_loop().create_task(cleanup_loop())

    async def close(self) -> None:
        """Stop the sweep and release all entries."""
        self._closed = True
        task, self._cleanup_task = self._cleanup_task, None
        if task is not None:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._store.clear()

    def size(self) -> int:
        """Get current number of stored entries, expired ones included."""
        return len(self._store)
