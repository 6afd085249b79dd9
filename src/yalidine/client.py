"""
Main session object for the Yalidine and Guepex delivery APIs.

Example:
    ```python
    async with Yalidine(agent="goupex", api_id="...", api_token="...") as yalidine:
        await yalidine.init()
        parcels = await yalidine.parcels.list(page_size=10)
    ```
"""

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable
from typing import Any

import httpx

from yalidine._version import __version__
from yalidine.api import HistoriesAPI, ParcelsAPI
from yalidine.cache import CacheBackend, InMemoryCache, create_cache
from yalidine.config import (
    AGENT_BASE_URLS,
    DEFAULT_RETRIES,
    DEFAULT_TIMEOUT_SECONDS,
    REFERENCE_DATA_TTL_SECONDS,
    ResolvedConfig,
    Settings,
    get_settings,
)
from yalidine.errors import ConfigurationError, InitializationError
from yalidine.http.client import HttpClient, HttpResponse
from yalidine.quota import QuotaStatus

logger = logging.getLogger(__name__)


def validate_config(
    agent: str | None,
    api_id: str | None,
    api_token: str | None,
    timeout: float | None,
    retries: int | None,
) -> None:
    """
    Check session configuration, raising on the first violation.

    Raises:
        ConfigurationError: Naming the violated constraint
    """
    if not agent:
        raise ConfigurationError("Agent is required")
    if agent not in AGENT_BASE_URLS:
        raise ConfigurationError('Agent must be either "yalidine" or "goupex"')
    if not api_id:
        raise ConfigurationError("API ID is required")
    if not api_token:
        raise ConfigurationError("API token is required")
    if timeout is not None and timeout <= 0:
        raise ConfigurationError("Timeout must be positive")
    if retries is not None and retries < 0:
        raise ConfigurationError("Retries must be non-negative")


class Yalidine:
    """
    Client session for one delivery agent.

    Owns one HttpClient (and its quota tracker) and one cache backend.
    Configuration is validated and resolved once at construction and
    cannot change afterwards.
    """

    def __init__(
        self,
        agent: str,
        api_id: str,
        api_token: str,
        database: CacheBackend | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        retries: int | None = None,
        debug: bool = False,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        """
        Initialize the session.

        Args:
            agent: "yalidine" or "goupex"
            api_id: API ID credential
            api_token: API token credential
            database: Cache backend (in-memory if None)
            base_url: Override of the agent's base URL
            timeout: Per-attempt timeout in seconds (default 30)
            retries: Retries after the first attempt (default 3)
            debug: Log requests and responses at DEBUG level
            transport: httpx transport override, mainly for tests
            sleep: Coroutine used for retry backoff

        Raises:
            ConfigurationError: If any setting is invalid
        """
        validate_config(agent, api_id, api_token, timeout, retries)

        self._config = ResolvedConfig(
            agent=agent,
            api_id=api_id,
            api_token=api_token,
            base_url=base_url or AGENT_BASE_URLS[agent],
            timeout=timeout if timeout is not None else DEFAULT_TIMEOUT_SECONDS,
            retries=retries if retries is not None else DEFAULT_RETRIES,
            debug=debug,
        )
        self._database: CacheBackend = database if database is not None else InMemoryCache()
        self._http = HttpClient(
            base_url=self._config.base_url,
            api_id=api_id,
            api_token=api_token,
            timeout=self._config.timeout,
            max_retries=self._config.retries,
            debug=debug,
            transport=transport,
            sleep=sleep,
        )
        self._initialized = False

        self.parcels = ParcelsAPI(self._http)
        self.histories = HistoriesAPI(self._http)

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        database: CacheBackend | None = None,
        **kwargs: Any,
    ) -> "Yalidine":
        """
        Build a session from YALIDINE_* settings.

        The cache backend is created from settings.cache_backend unless
        one is passed in, and only once the settings are valid.
        """
        settings = settings or get_settings()
        api_token = settings.api_token.get_secret_value() if settings.api_token else ""
        validate_config(
            settings.agent, settings.api_id, api_token, settings.timeout, settings.retries
        )

        if database is None:
            database = create_cache(settings=settings)
        return cls(
            agent=settings.agent,
            api_id=settings.api_id or "",
            api_token=api_token,
            database=database,
            base_url=settings.base_url,
            timeout=settings.timeout,
            retries=settings.retries,
            debug=settings.debug,
            **kwargs,
        )

    # =========================================================================
    # Lifecycle
    # =========================================================================

    @property
    def initialized(self) -> bool:
        return self._initialized

    def cache_key(self, resource: str) -> str:
        """Namespace a cache key by agent, e.g. "goupex:wilayas"."""
        return f"{self._config.agent}:{resource}"

    async def init(self) -> None:
        """
        Load reference data into the cache.

        A second call after a successful one does nothing. Failing to
        fetch or store reference data is logged and ignored; failing to
        read the cache at all raises.

        Raises:
            InitializationError: If the cache cannot be read
        """
        if self._initialized:
            return

        await self._load_cached_data()
        self._initialized = True

        if self._config.debug:
            logger.debug("[Yalidine SDK] Initialized successfully")

    async def _load_cached_data(self) -> None:
        key = self.cache_key("wilayas")

        try:
            cached = await self._database.get(key)
        except Exception as e:
            logger.error(f"[Yalidine SDK] Cache unavailable during init: {e}")
            raise InitializationError() from e

        if cached is not None:
            return

        try:
            response = await self._http.get("/wilayas")
            await self._database.set(key, response.data, REFERENCE_DATA_TTL_SECONDS)
        except Exception as e:
            logger.warning(f"[Yalidine SDK] Failed to load cached data: {e}")
            return

        if self._config.debug:
            rows = response.data.get("data") if isinstance(response.data, dict) else None
            logger.debug(f"[Yalidine SDK] Cached {len(rows or [])} wilayas")

    async def test_connection(self) -> bool:
        """
        Probe the API with a lightweight request.

        Returns:
            True if the request succeeded, False on any failure
        """
        try:
            await self._http.get("/wilayas?page_size=1")
            return True
        except Exception as e:
            if self._config.debug:
                logger.debug(f"[Yalidine SDK] Connection test failed: {e}")
            return False

    async def clear_cache(self) -> None:
        """Remove every cached entry."""
        await self._database.clear()
        if self._config.debug:
            logger.debug("[Yalidine SDK] Cache cleared")

    async def destroy(self) -> None:
        """Release the cache and HTTP resources. Safe to call repeatedly."""
        close = getattr(self._database, "close", None)
        if callable(close):
            result = close()
            if inspect.isawaitable(result):
                await result
        await self._http.close()
        self._initialized = False

        if self._config.debug:
            logger.debug("[Yalidine SDK] Destroyed")

    async def __aenter__(self) -> "Yalidine":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.destroy()

    # =========================================================================
    # Request primitives
    # =========================================================================

    async def get(self, endpoint: str, **kwargs: Any) -> HttpResponse[Any]:
        return await self._http.get(endpoint, **kwargs)

    async def post(self, endpoint: str, data: Any = None, **kwargs: Any) -> HttpResponse[Any]:
        return await self._http.post(endpoint, data, **kwargs)

    async def patch(self, endpoint: str, data: Any = None, **kwargs: Any) -> HttpResponse[Any]:
        return await self._http.patch(endpoint, data, **kwargs)

    async def delete(self, endpoint: str, **kwargs: Any) -> HttpResponse[Any]:
        return await self._http.delete(endpoint, **kwargs)

    # =========================================================================
    # Introspection
    # =========================================================================

    def get_config(self) -> ResolvedConfig:
        return self._config

    def get_agent(self) -> str:
        return self._config.agent

    def get_quota_status(self) -> QuotaStatus:
        """Get the latest quota snapshot reported by the API."""
        return self._http.get_quota_status()

    def can_make_request(self) -> bool:
        """Check whether every quota window has requests left."""
        return self._http.can_make_request()

    def get_database(self) -> CacheBackend:
        return self._database

    def get_version(self) -> str:
        return __version__

    def get_info(self) -> dict[str, Any]:
        """Summary of this session's state."""
        return {
            "version": self.get_version(),
            "agent": self._config.agent,
            "base_url": self._config.base_url,
            "initialized": self._initialized,
            "quota_status": self.get_quota_status().to_dict(),
        }
