"""Tests for the parcel and history endpoints."""

import json

import httpx
import pytest

from yalidine.api.base import build_query
from yalidine.api.histories import HistoriesAPI
from yalidine.api.parcels import ParcelsAPI
from yalidine.errors import YalidineError
from yalidine.http.client import HttpClient


def make_http(transport) -> HttpClient:
    return HttpClient(
        base_url="https://api.yalidine.app/v1",
        api_id="id",
        api_token="token",
        transport=transport,
    )


def page(rows: list[dict], total: int | None = None) -> dict:
    return {
        "has_more": False,
        "total_data": len(rows) if total is None else total,
        "data": rows,
        "links": {"self": ""},
    }


class TestBuildQuery:
    """Tests for query string rendering."""

    def test_lists_and_none(self) -> None:
        """Test lists are comma-joined and None values dropped."""
        query = build_query({"last_status": ["Livré", "Expédié"], "page": 2, "order_id": None})
        params = httpx.QueryParams(query)

        assert params["last_status"] == "Livré,Expédié"
        assert params["page"] == "2"
        assert "order_id" not in params

    def test_booleans(self) -> None:
        assert build_query({"is_stopdesk": True, "freeshipping": False}) == (
            "is_stopdesk=true&freeshipping=false"
        )

    def test_flags(self) -> None:
        """Test flag filters render as empty values only when set."""
        assert build_query({"desc": True, "asc": False}, flags=("desc", "asc")) == "desc="

    def test_empty(self) -> None:
        assert build_query({}) == ""


class TestParcelsAPI:
    """Tests for ParcelsAPI."""

    @pytest.mark.asyncio
    async def test_list_with_filters(self, make_transport) -> None:
        transport = make_transport(lambda request: httpx.Response(200, json=page([])))
        parcels = ParcelsAPI(make_http(transport))

        await parcels.list(page_size=50, to_wilaya_id=16)

        url = transport.requests[0].url
        assert url.path == "/v1/parcels"
        assert url.params["page_size"] == "50"
        assert url.params["to_wilaya_id"] == "16"

    @pytest.mark.asyncio
    async def test_list_without_filters(self, make_transport) -> None:
        transport = make_transport(lambda request: httpx.Response(200, json=page([])))
        await ParcelsAPI(make_http(transport)).list()
        assert str(transport.requests[0].url) == "https://api.yalidine.app/v1/parcels"

    @pytest.mark.asyncio
    async def test_create_wraps_in_list(self, make_transport) -> None:
        """Test a single parcel is posted as a one-element array."""
        transport = make_transport(
            lambda request: httpx.Response(200, json={"ORDER-1": {"success": True, "tracking": "yal-1"}})
        )
        parcels = ParcelsAPI(make_http(transport))

        result = await parcels.create({"order_id": "ORDER-1"})

        assert result["ORDER-1"]["tracking"] == "yal-1"
        assert json.loads(transport.requests[0].content) == [{"order_id": "ORDER-1"}]

    @pytest.mark.asyncio
    async def test_update_and_delete(self, make_transport) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            if request.method == "DELETE":
                return httpx.Response(200, json=[{"tracking": "yal-1", "deleted": True}])
            return httpx.Response(200, json={"tracking": "yal-1", "firstname": "Ali"})

        transport = make_transport(handler)
        parcels = ParcelsAPI(make_http(transport))

        updated = await parcels.update("yal-1", {"firstname": "Ali"})
        deleted = await parcels.delete("yal-1")

        assert updated["firstname"] == "Ali"
        assert deleted == {"tracking": "yal-1", "deleted": True}
        assert transport.requests[0].method == "PATCH"

    @pytest.mark.asyncio
    async def test_delete_bulk(self, make_transport) -> None:
        transport = make_transport(lambda request: httpx.Response(200, json=[]))
        await ParcelsAPI(make_http(transport)).delete_bulk(["yal-1", "yal-2"])
        assert transport.requests[0].url.params["tracking"] == "yal-1,yal-2"

    @pytest.mark.asyncio
    async def test_get_label(self, make_transport) -> None:
        transport = make_transport(
            lambda request: httpx.Response(200, json={"tracking": "yal-1", "label": "https://l/1"})
        )
        assert await ParcelsAPI(make_http(transport)).get_label("yal-1") == "https://l/1"

    @pytest.mark.asyncio
    async def test_get_labels_missing(self, make_transport) -> None:
        transport = make_transport(lambda request: httpx.Response(200, json=page([])))

        with pytest.raises(YalidineError) as exc_info:
            await ParcelsAPI(make_http(transport)).get_labels(["yal-1"])

        assert exc_info.value.code == "NOT_FOUND"

    @pytest.mark.asyncio
    async def test_search_falls_back_to_order_id(self, make_transport) -> None:
        """Test search retries with order_id when tracking finds nothing."""

        def handler(request: httpx.Request) -> httpx.Response:
            if "order_id" in request.url.params:
                return httpx.Response(200, json=page([{"tracking": "yal-9"}]))
            return httpx.Response(200, json=page([]))

        transport = make_transport(handler)
        result = await ParcelsAPI(make_http(transport)).search("ORDER-9")

        assert result["data"] == [{"tracking": "yal-9"}]
        assert transport.call_count == 2

    @pytest.mark.asyncio
    async def test_get_stats(self, make_transport) -> None:
        rows = [
            {"last_status": "Livré", "to_wilaya_name": "Alger"},
            {"last_status": "Livré", "to_wilaya_name": "Oran"},
            {"last_status": "Expédié", "to_wilaya_name": "Alger"},
        ]
        transport = make_transport(lambda request: httpx.Response(200, json=page(rows, total=40)))

        stats = await ParcelsAPI(make_http(transport)).get_stats()

        assert stats == {
            "total": 40,
            "status_counts": {"Livré": 2, "Expédié": 1},
            "wilaya_counts": {"Alger": 2, "Oran": 1},
        }
        assert transport.requests[0].url.params["page_size"] == "1000"


class TestHistoriesAPI:
    """Tests for HistoriesAPI."""

    ENTRIES = [
        {"date_status": "2024-01-03 10:00:00", "status": "Livré"},
        {"date_status": "2024-01-01 09:00:00", "status": "En préparation"},
        {"date_status": "2024-01-02 12:30:00", "status": "Expédié"},
    ]

    @pytest.mark.asyncio
    async def test_find_paginated(self, make_transport) -> None:
        transport = make_transport(lambda request: httpx.Response(200, json=page(self.ENTRIES)))
        assert await HistoriesAPI(make_http(transport)).find("yal-1") == self.ENTRIES

    @pytest.mark.asyncio
    async def test_find_bare_list(self, make_transport) -> None:
        transport = make_transport(lambda request: httpx.Response(200, json=self.ENTRIES))
        assert await HistoriesAPI(make_http(transport)).find("yal-1") == self.ENTRIES

    @pytest.mark.asyncio
    async def test_find_unexpected_shape(self, make_transport) -> None:
        transport = make_transport(lambda request: httpx.Response(200, json={"foo": 1}))
        assert await HistoriesAPI(make_http(transport)).find("yal-1") == []

    @pytest.mark.asyncio
    async def test_timeline_and_latest(self, make_transport) -> None:
        transport = make_transport(lambda request: httpx.Response(200, json=page(self.ENTRIES)))
        histories = HistoriesAPI(make_http(transport))

        timeline = await histories.get_timeline("yal-1")
        latest = await histories.get_latest_status("yal-1")

        assert [e["status"] for e in timeline] == ["En préparation", "Expédié", "Livré"]
        assert latest["status"] == "Livré"

    @pytest.mark.asyncio
    async def test_timeline_mixed_date_formats(self, make_transport) -> None:
        """Test aware, naive and unparseable dates sort together."""
        entries = [
            {"tracking": "yal-1", "status": "Livré", "date_status": "2024-01-03T09:00:00+01:00"},
            {"tracking": "yal-1", "status": "Inconnu", "date_status": "not a date"},
            {"tracking": "yal-1", "status": "Expédié", "date_status": "2024-01-02 10:00:00"},
        ]
        transport = make_transport(lambda request: httpx.Response(200, json=page(entries)))
        histories = HistoriesAPI(make_http(transport))

        timeline = await histories.get_timeline("yal-1")
        latest = await histories.get_latest_status("yal-1")

        assert [e["status"] for e in timeline] == ["Inconnu", "Expédié", "Livré"]
        assert latest["status"] == "Livré"

    @pytest.mark.asyncio
    async def test_latest_status_none(self, make_transport) -> None:
        transport = make_transport(lambda request: httpx.Response(200, json=page([])))
        assert await HistoriesAPI(make_http(transport)).get_latest_status("yal-1") is None

    @pytest.mark.asyncio
    async def test_filters(self, make_transport) -> None:
        """Test the convenience filters map to query parameters."""
        transport = make_transport(lambda request: httpx.Response(200, json=page([])))
        histories = HistoriesAPI(make_http(transport))

        await histories.by_status(["Livré", "Expédié"], desc=True)
        await histories.by_date_range("2024-01-01", "2024-01-31")
        await histories.by_date("2024-01-15")
        await histories.by_reason("Client absent (échoué)")
        await histories.find_multiple(["yal-1", "yal-2"])

        params = [r.url.params for r in transport.requests]
        assert params[0]["status"] == "Livré,Expédié"
        assert params[0]["desc"] == ""
        assert params[1]["date_status"] == "2024-01-01,2024-01-31"
        assert params[2]["date_status"] == "2024-01-15"
        assert params[3]["reason"] == "Client absent (échoué)"
        assert params[4]["tracking"] == "yal-1,yal-2"

    @pytest.mark.asyncio
    async def test_get_stats(self, make_transport) -> None:
        rows = [
            {"status": "Livré", "wilaya_name": "Alger", "center_name": "Hydra"},
            {"status": "Livré", "wilaya_name": "Alger", "center_name": "Bab Ezzouar"},
        ]
        transport = make_transport(lambda request: httpx.Response(200, json=page(rows)))

        stats = await HistoriesAPI(make_http(transport)).get_stats(status="Livré")

        assert stats["total"] == 2
        assert stats["status_counts"] == {"Livré": 2}
        assert stats["center_counts"] == {"Hydra": 1, "Bab Ezzouar": 1}
