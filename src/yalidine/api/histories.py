"""Parcel status history endpoints."""

from __future__ import annotations

from collections import Counter
from datetime import datetime, timezone
from typing import Any

from yalidine.api.base import Resource, build_query, with_query

_FLAGS = ("desc", "asc")
_EPOCH_MIN = datetime.min.replace(tzinfo=timezone.utc)


def _status_time(entry: dict[str, Any]) -> datetime:
    """Status date as an aware datetime; naive dates are read as UTC."""
    try:
        parsed = datetime.fromisoformat(str(entry.get("date_status")))
    except ValueError:
        return _EPOCH_MIN
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class HistoriesAPI(Resource):
    """Read-only access to parcel status histories."""

    async def list(self, **filters: Any) -> dict[str, Any]:
        """
        List history entries.

        Args:
            **filters: tracking, status, date_status, reason, fields,
                page, page_size, order_by, desc, asc

        Returns:
            Paginated response
        """
        query = build_query(filters, flags=_FLAGS)
        response = await self._http.get(with_query("/histories", query))
        return response.data

    async def find(self, tracking: str) -> list[dict[str, Any]]:
        """All history entries of one parcel."""
        response = await self._http.get(f"/histories/{tracking}")
        data = response.data
        if isinstance(data, dict) and "has_more" in data:
            return data.get("data") or []
        if isinstance(data, list):
            return data
        return []

    async def find_multiple(self, trackings: list[str]) -> dict[str, Any]:
        return await self.list(tracking=trackings)

    async def by_status(self, status: str | list[str], **filters: Any) -> dict[str, Any]:
        return await self.list(**{**filters, "status": status})

    async def by_date_range(self, start: str, end: str, **filters: Any) -> dict[str, Any]:
        """Entries whose status date is within [start, end] (YYYY-MM-DD)."""
        return await self.list(**{**filters, "date_status": f"{start},{end}"})

    async def by_date(self, date: str, **filters: Any) -> dict[str, Any]:
        return await self.list(**{**filters, "date_status": date})

    async def by_reason(self, reason: str | list[str], **filters: Any) -> dict[str, Any]:
        return await self.list(**{**filters, "reason": reason})

    async def get_latest_status(self, tracking: str) -> dict[str, Any] | None:
        """Most recent history entry of a parcel, or None."""
        histories = await self.find(tracking)
        if not histories:
            return None
        return max(histories, key=_status_time)

    async def get_timeline(self, tracking: str) -> list[dict[str, Any]]:
        """History entries of a parcel, oldest first."""
        return sorted(await self.find(tracking), key=_status_time)

    async def search(self, **filters: Any) -> dict[str, Any]:
        return await self.list(**filters)

    async def get_stats(self, **filters: Any) -> dict[str, Any]:
        """Count entries per status, wilaya and center (first 1000)."""
        result = await self.list(**{**filters, "page_size": 1000})
        rows = result.get("data") or []
        return {
            "total": len(rows),
            "status_counts": dict(Counter(h.get("status") for h in rows)),
            "wilaya_counts": dict(Counter(h.get("wilaya_name") for h in rows)),
            "center_counts": dict(Counter(h.get("center_name") for h in rows)),
        }
