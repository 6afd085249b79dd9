"""Cache factory for creating cache instances based on configuration."""

import logging
from typing import Any

from yalidine.cache.base import CacheBackend
from yalidine.cache.file import FileCache
from yalidine.cache.memory import InMemoryCache
from yalidine.cache.redis import RedisCache
from yalidine.config import Settings, get_settings
from yalidine.errors import ConfigurationError

logger = logging.getLogger(__name__)


def create_cache(
    backend: str | None = None,
    settings: Settings | None = None,
    **kwargs: Any,
) -> CacheBackend:
    """
    Create a cache backend instance.

    Each call returns a new, independently owned instance.

    Args:
        backend: Backend type ("memory", "file" or "redis"), defaults to settings
        settings: Settings to read defaults from (environment if None)
        **kwargs: Additional arguments passed to the backend

    Returns:
        CacheBackend instance

    Raises:
        ConfigurationError: If backend type is unknown or under-configured
    """
    settings = settings or get_settings()
    backend_type = (backend or settings.cache_backend).lower()

    if backend_type == "memory":
        return InMemoryCache(
            cleanup_interval_seconds=kwargs.get("cleanup_interval", 300),
        )

    if backend_type == "file":
        return FileCache(cache_dir=kwargs.get("cache_dir", settings.cache_dir))

    if backend_type == "redis":
        url = kwargs.get("url", settings.redis_url)
        if not url:
            raise ConfigurationError(
                "Redis URL is required for the redis cache backend "
                "(set YALIDINE_REDIS_URL)"
            )
        return RedisCache(
            url=url,
            prefix=kwargs.get("prefix", settings.redis_prefix),
            max_connections=kwargs.get("max_connections", 10),
        )

    raise ConfigurationError(f"Unknown cache backend: {backend_type}")
