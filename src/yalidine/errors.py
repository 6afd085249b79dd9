"""Exception hierarchy for the Yalidine client."""

from typing import Any


class YalidineError(Exception):
    """
    Base error for everything raised by this package.

    Attributes:
        message: Human-readable description
        code: Short machine-readable error kind
    """

    def __init__(self, message: str, code: str | None = None) -> None:
        self.message = message
        self.code = code
        super().__init__(message)


class ConfigurationError(YalidineError):
    """Raised when a session is constructed with invalid configuration."""

    def __init__(self, message: str) -> None:
        super().__init__(message, "INVALID_CONFIG")


class InitializationError(YalidineError):
    """Raised when init() fails for a reason other than caching."""

    def __init__(self, message: str = "Failed to initialize SDK") -> None:
        super().__init__(message, "INIT_ERROR")


class NetworkError(YalidineError):
    """Transport-level failure with no usable response. Retried by the engine."""

    def __init__(
        self,
        message: str = "Network error",
        cause: BaseException | None = None,
        code: str = "NETWORK_ERROR",
    ) -> None:
        self.cause = cause
        super().__init__(message, code)


class RequestTimeoutError(NetworkError):
    """The request did not complete within its timeout."""

    def __init__(
        self,
        message: str = "Request timeout",
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message, cause, code="TIMEOUT")


class RateLimitError(YalidineError):
    """Raised on HTTP 429. Never retried internally."""

    def __init__(self, retry_after: int = 60, message: str = "Rate limit exceeded") -> None:
        self.retry_after = retry_after
        super().__init__(f"{message}. Retry after: {retry_after}s", "RATE_LIMITED")


class APIError(YalidineError):
    """
    Non-2xx response, or a response body that is not valid JSON.

    Attributes:
        status_code: HTTP status of the response
        details: Parsed body, or raw text when the body could not be parsed
    """

    def __init__(self, message: str, status_code: int, details: Any = None) -> None:
        self.status_code = status_code
        self.details = details
        super().__init__(message, "API_ERROR")


class CacheError(YalidineError):
    """A cache backend could not complete an operation."""

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        self.cause = cause
        super().__init__(message, "CACHE_ERROR")
