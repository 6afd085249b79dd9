"""Redis cache backend implementation."""

import json
import logging
from typing import Any

import redis.asyncio as redis
from redis.exceptions import RedisError

from yalidine.cache.base import CacheBackend
from yalidine.errors import CacheError

logger = logging.getLogger(__name__)


class RedisCache(CacheBackend):
    """
    Redis cache backend.

    Best for:
    - Several processes sharing reference data
    - Caches that should survive restarts

    Expiry is delegated to Redis (PX on SET), so expired keys are never
    returned. Backend failures raise CacheError.
    """

    def __init__(
        self,
        url: str = "redis://localhost:6379/0",
        prefix: str = "yalidine:",
        max_connections: int = 10,
        socket_timeout: float = 5.0,
        socket_connect_timeout: float = 5.0,
        client: Any = None,
    ) -> None:
        """
        Initialize Redis cache.

        Args:
            url: Redis connection URL
            prefix: Key prefix for namespacing
            max_connections: Maximum connections in pool
            socket_timeout: Socket timeout in seconds
            socket_connect_timeout: Connection timeout in seconds
            client: Pre-built redis.asyncio client (skips connect)
        """
        super().__init__()
        self._url = url
        self._prefix = prefix
        self._max_connections = max_connections
        self._socket_timeout = socket_timeout
        self._socket_connect_timeout = socket_connect_timeout
        self._client: Any = client
        self._connected = client is not None

    @property
    def name(self) -> str:
        return "redis"

    @property
    def is_connected(self) -> bool:
        return self._connected

    def _get_key(self, key: str) -> str:
        """Get prefixed key."""
        return f"{self._prefix}{key}"

    def _serialize(self, value: Any) -> str:
        """Serialize value to JSON string."""
        return json.dumps({"v": value})

    def _deserialize(self, data: str | bytes | None) -> Any | None:
        """Deserialize JSON string to value."""
        if data is None:
            return None
        if isinstance(data, bytes):
            data = data.decode("utf-8")
        try:
            parsed = json.loads(data)
            return parsed.get("v")
        except (json.JSONDecodeError, TypeError, AttributeError):
            return None

    async def connect(self) -> None:
        """
        Connect to Redis.

        Raises:
            CacheError: If the server cannot be reached
        """
        if self._connected and self._client:
            return

        try:
            self._client = redis.from_url(
                self._url,
                max_connections=self._max_connections,
                socket_timeout=self._socket_timeout,
                socket_connect_timeout=self._socket_connect_timeout,
                decode_responses=False,  # We handle encoding ourselves
            )
            await self._client.ping()
        except (RedisError, OSError) as e:
            self._connected = False
            raise CacheError(f"Failed to connect to Redis at {self._url}", e) from e

        self._connected = True
        logger.info(f"Connected to Redis at {self._url}")

    async def get(self, key: str) -> Any | None:
        await self.connect()
        try:
            data = await self._client.get(self._get_key(key))
        except RedisError as e:
            raise CacheError(f"Redis GET error for {key}", e) from e
        return self._deserialize(data)

    async def set(self, key: str, value: Any, ttl_seconds: float | None = None) -> None:
        await self.connect()
        serialized = self._serialize(value)
        try:
            if ttl_seconds is not None and ttl_seconds > 0:
                await self._client.set(
                    self._get_key(key),
                    serialized,
                    px=int(ttl_seconds * 1000),
                )
            else:
                await self._client.set(self._get_key(key), serialized)
        except RedisError as e:
            raise CacheError(f"Redis SET error for {key}", e) from e

    async def delete(self, key: str) -> None:
        await self.connect()
        try:
            await self._client.delete(self._get_key(key))
        except RedisError as e:
            raise CacheError(f"Redis DELETE error for {key}", e) from e

    async def has(self, key: str) -> bool:
        await self.connect()
        try:
            return await self._client.exists(self._get_key(key)) > 0
        except RedisError as e:
            raise CacheError(f"Redis EXISTS error for {key}", e) from e

    async def clear(self, pattern: str | None = None) -> int:
        """Clear keys under our prefix, optionally matching pattern."""
        await self.connect()
        search_pattern = f"{self._prefix}{pattern or '*'}"

        try:
            # SCAN rather than KEYS so large databases are not blocked
            keys = [key async for key in self._client.scan_iter(match=search_pattern)]
            if keys:
                await self._client.delete(*keys)
        except RedisError as e:
            raise CacheError("Redis CLEAR error", e) from e

        return len(keys)

    async def close(self) -> None:
        """Close the Redis connection."""
        if self._client is None:
            return
        try:
            await self._client.aclose()
        except RedisError as e:
            logger.error(f"Error closing Redis connection: {e}")
        finally:
            self._client = None
            self._connected = False
