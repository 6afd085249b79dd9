"""Pytest configuration and fixtures."""

from collections.abc import Callable
from typing import Any

import httpx
import pytest


class FakeClock:
    """Manually advanced clock for TTL tests."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingSleep:
    """Stand-in for asyncio.sleep that records delays without waiting."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


class RecordingTransport(httpx.MockTransport):
    """MockTransport that keeps every request it handled."""

    def __init__(self, handler: Callable[[httpx.Request], Any]) -> None:
        self.requests: list[httpx.Request] = []

        def recording_handler(request: httpx.Request) -> Any:
            self.requests.append(request)
            return handler(request)

        super().__init__(recording_handler)

    @property
    def call_count(self) -> int:
        return len(self.requests)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fake_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def make_transport() -> Callable[..., RecordingTransport]:
    """Build a RecordingTransport from a handler function."""
    return RecordingTransport


@pytest.fixture
def sample_wilayas_response() -> dict:
    """Sample /wilayas response."""
    return {
        "has_more": False,
        "total_data": 2,
        "data": [
            {"id": 1, "name": "Adrar", "zone": 4, "is_deliverable": 1},
            {"id": 16, "name": "Alger", "zone": 1, "is_deliverable": 1},
        ],
        "links": {"self": "https://api.yalidine.app/v1/wilayas/"},
    }


@pytest.fixture
def quota_headers() -> dict[str, str]:
    return {
        "x-second-quota-left": "4",
        "x-minute-quota-left": "49",
        "x-hour-quota-left": "999",
        "x-day-quota-left": "9999",
    }
