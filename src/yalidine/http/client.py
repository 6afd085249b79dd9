"""HTTP request engine with timeouts, retry/backoff and quota tracking."""

import asyncio
import json
import logging
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

import httpx

from yalidine._version import __version__
from yalidine.errors import APIError, NetworkError, RateLimitError, RequestTimeoutError
from yalidine.quota import QuotaStatus, QuotaTracker

logger = logging.getLogger(__name__)

T = TypeVar("T")

USER_AGENT = f"Yalidine-SDK/{__version__}"
DEFAULT_RETRY_AFTER_SECONDS = 60

_REDACTED_HEADERS = {"x-api-id", "x-api-token"}


def merge_headers(
    defaults: Mapping[str, str],
    overrides: Mapping[str, str] | None = None,
) -> dict[str, str]:
    """
    Merge default headers with caller headers, caller wins.

    Header names compare case-insensitively, so an override for
    "content-type" replaces a default "Content-Type".

    Args:
        defaults: Headers sent on every request
        overrides: Caller-supplied headers

    Returns:
        New merged header dict
    """
    if not overrides:
        return dict(defaults)

    overridden = {name.lower() for name in overrides}
    merged = {k: v for k, v in defaults.items() if k.lower() not in overridden}
    merged.update(overrides)
    return merged


@dataclass
class RequestContext:
    """Everything needed to run one logical request, retries included."""

    method: str
    endpoint: str
    headers: dict[str, str] = field(default_factory=dict)
    body: str | None = None
    timeout: float = 30.0
    max_retries: int = 3


@dataclass
class HttpResponse(Generic[T]):
    """Parsed successful response."""

    data: T
    """Parsed JSON payload (None for an empty body)."""

    status: int
    """HTTP status code."""

    headers: dict[str, str]
    """Response headers with lower-cased names."""

    quota: QuotaStatus
    """Quota snapshot taken after this response was recorded."""


class HttpClient:
    """
    Authenticated HTTP client for the Yalidine/Guepex APIs.

    Only transport failures (timeouts, connection errors) are retried,
    with capped exponential backoff. Rate limits, non-2xx statuses and
    malformed JSON are raised on the first occurrence.
    """

    def __init__(
        self,
        base_url: str,
        api_id: str,
        api_token: str,
        timeout: float = 30.0,
        max_retries: int = 3,
        debug: bool = False,
        quota_tracker: QuotaTracker | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        backoff_base: float = 1.0,
        backoff_max: float = 10.0,
    ) -> None:
        """
        Initialize the HTTP client.

        Args:
            base_url: API root, e.g. https://api.yalidine.app/v1
            api_id: Value of the X-API-ID header
            api_token: Value of the X-API-TOKEN header
            timeout: Default per-attempt timeout in seconds
            max_retries: Default retries after the first attempt
            debug: Log every request and parsed response
            quota_tracker: Shared tracker (a new one if None)
            transport: httpx transport override, mainly for tests
            sleep: Coroutine used for backoff delays
            backoff_base: Delay before the first retry, in seconds
            backoff_max: Upper bound on any single delay
        """
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._max_retries = max_retries
        self._debug = debug
        self._quota = quota_tracker or QuotaTracker()
        self._transport = transport
        self._sleep = sleep
        self._backoff_base = backoff_base
        self._backoff_max = backoff_max
        self._default_headers = {
            "X-API-ID": api_id,
            "X-API-TOKEN": api_token,
            "Content-Type": "application/json",
            "User-Agent": USER_AGENT,
        }
        self._client: httpx.AsyncClient | None = None

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def quota_tracker(self) -> QuotaTracker:
        return self._quota

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create the pooled async client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                transport=self._transport,
                follow_redirects=True,
            )
        return self._client

    def _calculate_backoff(self, attempt: int) -> float:
        """Capped exponential backoff: base * 2^attempt, at most backoff_max."""
        return min(self._backoff_base * (2**attempt), self._backoff_max)

    def _retry_after(self, headers: httpx.Headers) -> int:
        value = headers.get(self._quota.header_names.retry_after)
        if value is None:
            return DEFAULT_RETRY_AFTER_SECONDS
        try:
            seconds = int(value.strip())
        except ValueError:
            return DEFAULT_RETRY_AFTER_SECONDS
        return seconds if seconds >= 0 else DEFAULT_RETRY_AFTER_SECONDS

    def build_context(
        self,
        method: str,
        endpoint: str,
        body: Any = None,
        headers: Mapping[str, str] | None = None,
        timeout: float | None = None,
        retries: int | None = None,
    ) -> RequestContext:
        """
        Resolve per-call options against the client defaults.

        Args:
            method: HTTP method
            endpoint: Path appended to the base URL (with query string)
            body: JSON-serializable body, or None
            headers: Extra headers (override defaults)
            timeout: Per-attempt timeout override in seconds
            retries: Retry count override

        Returns:
            RequestContext for execute()
        """
        return RequestContext(
            method=method.upper(),
            endpoint=endpoint,
            headers=merge_headers(self._default_headers, headers),
            body=json.dumps(body) if body is not None else None,
            timeout=timeout if timeout is not None else self._timeout,
            max_retries=retries if retries is not None else self._max_retries,
        )

    async def _attempt(self, ctx: RequestContext, url: str) -> HttpResponse[Any]:
        """Run a single network exchange and interpret the response."""
        client = self._get_client()
        try:
            response = await asyncio.wait_for(
                client.request(
                    ctx.method,
                    url,
                    headers=ctx.headers,
                    content=ctx.body.encode("utf-8") if ctx.body is not None else None,
                    timeout=ctx.timeout,
                ),
                timeout=ctx.timeout,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException) as e:
            raise RequestTimeoutError("Request timeout", e) from e
        except httpx.TransportError as e:
            raise NetworkError(f"Network error: {e}", e) from e
        except httpx.RequestError as e:
            raise NetworkError(f"Request failed: {e}", e) from e

        # Quota headers are informative on failures too
        quota = self._quota.record_headers(response.headers)

        text = response.text
        try:
            data = json.loads(text) if text else None
        except json.JSONDecodeError as e:
            raise APIError(
                "Invalid JSON response from API",
                response.status_code,
                {"response_text": text, "parse_error": str(e)},
            ) from e

        if response.status_code == 429:
            raise RateLimitError(self._retry_after(response.headers))

        if not response.is_success:
            raise APIError(
                f"API request failed: {response.status_code} {response.reason_phrase}",
                response.status_code,
                data,
            )

        if self._debug:
            logger.debug(f"[Yalidine SDK] Response {response.status_code}: {data!r}")

        return HttpResponse(
            data=data,
            status=response.status_code,
            headers={k.lower(): v for k, v in response.headers.items()},
            quota=quota,
        )

    async def execute(self, ctx: RequestContext) -> HttpResponse[Any]:
        """
        Execute a request with retry logic.

        Args:
            ctx: Resolved request context

        Returns:
            HttpResponse for a 2xx reply

        Raises:
            RateLimitError: On HTTP 429 (not retried)
            APIError: On other non-2xx statuses or invalid JSON (not retried)
            NetworkError: When every attempt failed at the transport level
                (RequestTimeoutError if the last failure was a timeout)
        """
        url = f"{self._base_url}{ctx.endpoint}"

        if self._debug:
            shown = {
                k: ("***" if k.lower() in _REDACTED_HEADERS else v)
                for k, v in ctx.headers.items()
            }
            logger.debug(f"[Yalidine SDK] {ctx.method} {url} headers={shown} body={ctx.body}")

        last_error: NetworkError | None = None

        for attempt in range(ctx.max_retries + 1):
            try:
                return await self._attempt(ctx, url)
            except NetworkError as e:
                last_error = e
                if attempt >= ctx.max_retries:
                    break
                backoff = self._calculate_backoff(attempt)
                logger.warning(
                    f"{e.message} on {ctx.method} {url}. "
                    f"Retrying in {backoff}s (attempt {attempt + 1}/{ctx.max_retries})"
                )
                await self._sleep(backoff)

        if last_error:
            raise last_error
        raise NetworkError("Request failed after all retries")

    async def request(
        self,
        method: str,
        endpoint: str,
        body: Any = None,
        headers: Mapping[str, str] | None = None,
        timeout: float | None = None,
        retries: int | None = None,
    ) -> HttpResponse[Any]:
        """Build a context for the call and execute it."""
        ctx = self.build_context(method, endpoint, body, headers, timeout, retries)
        return await self.execute(ctx)

    async def get(self, endpoint: str, **kwargs: Any) -> HttpResponse[Any]:
        """Make a GET request."""
        return await self.request("GET", endpoint, **kwargs)

    async def post(self, endpoint: str, data: Any = None, **kwargs: Any) -> HttpResponse[Any]:
        """Make a POST request with a JSON body."""
        return await self.request("POST", endpoint, body=data, **kwargs)

    async def patch(self, endpoint: str, data: Any = None, **kwargs: Any) -> HttpResponse[Any]:
        """Make a PATCH request with a JSON body."""
        return await self.request("PATCH", endpoint, body=data, **kwargs)

    async def delete(self, endpoint: str, **kwargs: Any) -> HttpResponse[Any]:
        """Make a DELETE request."""
        return await self.request("DELETE", endpoint, **kwargs)

    def get_quota_status(self) -> QuotaStatus:
        """Get the latest quota snapshot."""
        return self._quota.current_status()

    def can_make_request(self) -> bool:
        """Check whether every quota window has requests left."""
        return self._quota.can_proceed()

    async def close(self) -> None:
        """Close the pooled HTTP client."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None
            logger.info("HTTP client closed")

    async def __aenter__(self) -> "HttpClient":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()
