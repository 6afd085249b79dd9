"""
Yalidine SDK

Async Python client for the Yalidine and Guepex delivery APIs.
"""

from yalidine._version import __version__
from yalidine.cache import CacheBackend, FileCache, InMemoryCache, RedisCache, create_cache
from yalidine.client import Yalidine
from yalidine.errors import (
    APIError,
    CacheError,
    ConfigurationError,
    InitializationError,
    NetworkError,
    RateLimitError,
    RequestTimeoutError,
    YalidineError,
)
from yalidine.http import HttpClient, HttpResponse
from yalidine.quota import QuotaStatus, QuotaTracker

__all__ = [
    "APIError",
    "CacheBackend",
    "CacheError",
    "ConfigurationError",
    "FileCache",
    "HttpClient",
    "HttpResponse",
    "InMemoryCache",
    "InitializationError",
    "NetworkError",
    "QuotaStatus",
    "QuotaTracker",
    "RateLimitError",
    "RedisCache",
    "RequestTimeoutError",
    "Yalidine",
    "YalidineError",
    "__version__",
]
