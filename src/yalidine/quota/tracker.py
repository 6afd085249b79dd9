"""
Remote quota bookkeeping.

The remote service reports how many requests remain in each of four
windows (second, minute, hour, day) on every response. The tracker keeps
the latest reported snapshot; it never counts requests locally.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import asdict, dataclass, field, replace
from datetime import datetime, timezone
from typing import Any

import httpx

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class QuotaHeaders:
    """
    Response header names consumed by the engine.

    These are an external contract with the remote service; override
    them here rather than in the retry logic.
    """

    second: str = "x-second-quota-left"
    minute: str = "x-minute-quota-left"
    hour: str = "x-hour-quota-left"
    day: str = "x-day-quota-left"
    retry_after: str = "retry-after"

    def windows(self) -> dict[str, str]:
        """Map QuotaStatus field name to header name."""
        return {
            "second_quota_left": self.second,
            "minute_quota_left": self.minute,
            "hour_quota_left": self.hour,
            "day_quota_left": self.day,
        }


DEFAULT_QUOTA_HEADERS = QuotaHeaders()


@dataclass(frozen=True)
class QuotaStatus:
    """Snapshot of the remaining request counts per window."""

    second_quota_left: int = 5
    minute_quota_left: int = 50
    hour_quota_left: int = 1000
    day_quota_left: int = 10000
    last_update: datetime = field(default_factory=_utcnow)

    @property
    def exhausted(self) -> bool:
        """True if any window has no requests left."""
        return min(
            self.second_quota_left,
            self.minute_quota_left,
            self.hour_quota_left,
            self.day_quota_left,
        ) <= 0

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["last_update"] = self.last_update.isoformat()
        return data


def _parse_count(value: str | None) -> int | None:
    """Parse a quota header value, or None if missing or malformed."""
    if value is None:
        return None
    try:
        count = int(value.strip())
    except ValueError:
        return None
    return count if count >= 0 else None


class QuotaTracker:
    """
    Holds the most recent quota snapshot.

    Each update builds a new frozen QuotaStatus and swaps it in with a
    single assignment, so interleaved updates from concurrent calls
    cannot leave a half-written snapshot.
    """

    def __init__(
        self,
        initial: QuotaStatus | None = None,
        headers: QuotaHeaders = DEFAULT_QUOTA_HEADERS,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        """
        Initialize the tracker.

        Args:
            initial: Seed snapshot (conservative defaults if None)
            headers: Header names to read counters from
            clock: Source of the last-update timestamp
        """
        self._headers = headers
        self._clock = clock
        self._status = initial or QuotaStatus(last_update=clock())

    @property
    def header_names(self) -> QuotaHeaders:
        return self._headers

    def current_status(self) -> QuotaStatus:
        """Return the latest snapshot."""
        return self._status

    def record_headers(self, headers: Mapping[str, str]) -> QuotaStatus:
        """
        Replace counters from response headers.

        A header that is missing or unparseable keeps the previous value
        for its window.

        Args:
            headers: Response headers (any mapping; lookup is case-insensitive)

        Returns:
            The new snapshot
        """
        lookup = headers if isinstance(headers, httpx.Headers) else httpx.Headers(headers)
        previous = self._status

        updates: dict[str, Any] = {}
        for attr, header in self._headers.windows().items():
            parsed = _parse_count(lookup.get(header))
            if parsed is not None:
                updates[attr] = parsed

        self._status = replace(previous, last_update=self._clock(), **updates)
        if self._status.exhausted and not previous.exhausted:
            logger.warning(f"Remote quota exhausted: {self._status.to_dict()}")
        return self._status

    def can_proceed(self) -> bool:
        """True iff every window has at least one request left."""
        return not self._status.exhausted
