"""File-backed cache backend: one JSON document per key."""

import asyncio
import fnmatch
import json
import logging
import re
import time
from collections.abc import Callable
from pathlib import Path
from typing import Any

from yalidine.cache.base import CacheBackend, expiry_from_ttl

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]")


class FileCache(CacheBackend):
    """
    Cache persisted as JSON files under a directory.

    Survives restarts. Values must be JSON-serializable. Expiry uses
    the wall clock since it has to stay meaningful across processes.
    """

    def __init__(
        self,
        cache_dir: Path | str,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """
        Initialize file cache.

        Args:
            cache_dir: Directory to store cache files (created if missing)
            clock: Wall clock used for expiry
        """
        super().__init__(clock)
        self._cache_dir = Path(cache_dir)
        self._cache_dir.mkdir(parents=True, exist_ok=True)
        self._lock = asyncio.Lock()

    @property
    def name(self) -> str:
        return "file"

    @property
    def cache_dir(self) -> Path:
        return self._cache_dir

    def _get_cache_file(self, key: str) -> Path:
        """Get cache file path for a key."""
        safe_name = _UNSAFE_CHARS.sub("_", key)
        return self._cache_dir / f"{safe_name}.json"

    def _load(self, path: Path) -> dict[str, Any] | None:
        try:
            with open(path, encoding="utf-8") as f:
                return json.load(f)
        except FileNotFoundError:
            return None
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Discarding unreadable cache file {path}: {e}")
            path.unlink(missing_ok=True)
            return None

    def _read_live(self, key: str) -> dict[str, Any] | None:
        """Load the document for key, removing it if expired or for another key."""
        path = self._get_cache_file(key)
        doc = self._load(path)
        if doc is None or doc.get("k") != key:
            return None
        expires_at = doc.get("e")
        if expires_at is not None and self._clock() > expires_at:
            path.unlink(missing_ok=True)
            return None
        return doc

    async def get(self, key: str) -> Any | None:
        async with self._lock:
            doc = self._read_live(key)
            return doc.get("v") if doc is not None else None

    async def set(self, key: str, value: Any, ttl_seconds: float | None = None) -> None:
        doc = {
            "k": key,
            "v": value,
            "e": expiry_from_ttl(ttl_seconds, self._clock()),
        }
        async with self._lock:
            path = self._get_cache_file(key)
            tmp = path.with_suffix(".tmp")
            with open(tmp, "w", encoding="utf-8") as f:
                json.dump(doc, f)
            tmp.replace(path)
        logger.debug(f"Cached {key} in {path}")

    async def delete(self, key: str) -> None:
        async with self._lock:
            self._get_cache_file(key).unlink(missing_ok=True)

    async def has(self, key: str) -> bool:
        async with self._lock:
            return self._read_live(key) is not None

    async def clear(self, pattern: str | None = None) -> int:
        count = 0
        async with self._lock:
            for path in self._cache_dir.glob("*.json"):
                if pattern is not None:
                    doc = self._load(path)
                    if doc is None or not fnmatch.fnmatch(str(doc.get("k")), pattern):
                        continue
                path.unlink(missing_ok=True)
                count += 1
        return count

    async def cleanup_expired(self) -> int:
        """Remove every expired file."""
        count = 0
        async with self._lock:
            now = self._clock()
            for path in self._cache_dir.glob("*.json"):
                doc = self._load(path)
                if doc is not None and doc.get("e") is not None and now > doc["e"]:
                    path.unlink(missing_ok=True)
                    count += 1
        return count
