"""Parcel endpoints: create, read, update, delete and labels."""

from __future__ import annotations

from collections import Counter
from typing import Any

from yalidine.api.base import Resource, build_query, with_query
from yalidine.errors import YalidineError


class ParcelsAPI(Resource):
    """
    Parcel operations.

    Payloads are passed through as dicts in the remote API's own field
    names (order_id, to_wilaya_name, ...).
    """

    async def list(self, **filters: Any) -> dict[str, Any]:
        """
        List parcels.

        Args:
            **filters: Remote filters, e.g. page, page_size,
                last_status=["Livré", "Expédié"], to_wilaya_id=16

        Returns:
            Paginated response (has_more, total_data, data, links)
        """
        response = await self._http.get(with_query("/parcels", build_query(filters)))
        return response.data

    async def find(self, tracking: str) -> dict[str, Any]:
        """Get one parcel by tracking number."""
        response = await self._http.get(f"/parcels/{tracking}")
        return response.data

    async def create(self, parcel: dict[str, Any]) -> dict[str, Any]:
        """
        Create a single parcel.

        Returns:
            Creation result keyed by order_id
        """
        response = await self._http.post("/parcels", [parcel])
        return response.data

    async def create_bulk(self, parcels: list[dict[str, Any]]) -> dict[str, Any]:
        """Create several parcels in one request."""
        response = await self._http.post("/parcels", parcels)
        return response.data

    async def update(self, tracking: str, changes: dict[str, Any]) -> dict[str, Any]:
        """Update a parcel. Only allowed while it is "En préparation"."""
        response = await self._http.patch(f"/parcels/{tracking}", changes)
        return response.data

    async def delete(self, tracking: str) -> dict[str, Any]:
        """Delete a parcel. Only allowed while it is "En préparation"."""
        response = await self._http.delete(f"/parcels/{tracking}")
        # The API answers with a one-element list
        return response.data[0]

    async def delete_bulk(self, trackings: list[str]) -> list[dict[str, Any]]:
        response = await self._http.delete(
            with_query("/parcels", build_query({"tracking": trackings}))
        )
        return response.data

    async def get_label(self, tracking: str) -> str:
        """Get the label URL of a parcel."""
        parcel = await self.find(tracking)
        return parcel["label"]

    async def get_labels(self, trackings: list[str]) -> str:
        """
        Get one URL printing the labels of several parcels.

        Raises:
            YalidineError: If the API returned no labels URL
        """
        result = await self.list(tracking=trackings, fields="tracking,labels")
        rows = result.get("data") or []
        if rows and rows[0].get("labels"):
            return rows[0]["labels"]
        raise YalidineError("Unable to generate labels URL", "NOT_FOUND")

    async def search(self, term: str, **filters: Any) -> dict[str, Any]:
        """Search by tracking number, falling back to order_id."""
        results = await self.list(**{**filters, "tracking": term})
        if not results.get("data"):
            results = await self.list(**{**filters, "order_id": term})
        return results

    async def get_stats(self, **filters: Any) -> dict[str, Any]:
        """
        Count parcels per status and per destination wilaya.

        Only the first 1000 matching parcels are counted; `total` is the
        server-side total.
        """
        result = await self.list(
            **{**filters, "fields": "last_status,to_wilaya_name", "page_size": 1000}
        )
        rows = result.get("data") or []
        return {
            "total": result.get("total_data", len(rows)),
            "status_counts": dict(Counter(p.get("last_status") for p in rows)),
            "wilaya_counts": dict(Counter(p.get("to_wilaya_name") for p in rows)),
        }
