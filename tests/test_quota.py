"""Tests for quota tracking."""

from datetime import datetime, timedelta, timezone

import httpx

from yalidine.quota import QuotaHeaders, QuotaStatus, QuotaTracker


class TestQuotaStatus:
    """Tests for the QuotaStatus snapshot."""

    def test_seed_defaults(self) -> None:
        """Test conservative seed values."""
        status = QuotaStatus()
        assert status.second_quota_left == 5
        assert status.minute_quota_left == 50
        assert status.hour_quota_left == 1000
        assert status.day_quota_left == 10000

    def test_to_dict(self) -> None:
        """Test serialization to dictionary."""
        status = QuotaStatus(
            second_quota_left=1,
            minute_quota_left=2,
            hour_quota_left=3,
            day_quota_left=4,
            last_update=datetime(2025, 1, 1, 12, 0, 0, tzinfo=timezone.utc),
        )
        data = status.to_dict()

        assert data["second_quota_left"] == 1
        assert data["day_quota_left"] == 4
        assert data["last_update"] == "2025-01-01T12:00:00+00:00"


class TestQuotaTracker:
    """Tests for QuotaTracker."""

    def test_partial_headers_keep_previous_values(self) -> None:
        """Missing hour/day headers leave those counters untouched."""
        tracker = QuotaTracker()
        before = tracker.current_status()

        after = tracker.record_headers(
            {"x-second-quota-left": "4", "x-minute-quota-left": "40"}
        )

        assert after.second_quota_left == 4
        assert after.minute_quota_left == 40
        assert after.hour_quota_left == before.hour_quota_left
        assert after.day_quota_left == before.day_quota_left
        assert tracker.current_status() is after

    def test_unparseable_header_keeps_previous_value(self) -> None:
        """Test garbage and negative values are ignored."""
        tracker = QuotaTracker(QuotaStatus(second_quota_left=3, minute_quota_left=30))

        status = tracker.record_headers(
            {"x-second-quota-left": "lots", "x-minute-quota-left": "-1"}
        )

        assert status.second_quota_left == 3
        assert status.minute_quota_left == 30

    def test_header_lookup_is_case_insensitive(self) -> None:
        """Test headers are matched regardless of case."""
        tracker = QuotaTracker()
        status = tracker.record_headers(httpx.Headers({"X-Day-Quota-Left": "12"}))
        assert status.day_quota_left == 12

    def test_last_update_stamped_even_without_headers(self) -> None:
        """Test every update refreshes the timestamp."""
        start = datetime(2025, 1, 1, tzinfo=timezone.utc)
        ticks = iter([start, start + timedelta(seconds=5)])
        tracker = QuotaTracker(clock=lambda: next(ticks))

        status = tracker.record_headers({})

        assert status.last_update == start + timedelta(seconds=5)
        assert status.second_quota_left == 5

    def test_custom_header_names(self) -> None:
        """Test header names come from configuration."""
        tracker = QuotaTracker(headers=QuotaHeaders(second="ratelimit-second"))
        status = tracker.record_headers(
            {"ratelimit-second": "2", "x-second-quota-left": "9"}
        )
        assert status.second_quota_left == 2

    def test_can_proceed_all_positive(self) -> None:
        """Test requests are allowed when every window has room."""
        assert QuotaTracker().can_proceed() is True

    def test_can_proceed_false_when_any_window_empty(self) -> None:
        """Test a single exhausted window blocks requests."""
        for header in (
            "x-second-quota-left",
            "x-minute-quota-left",
            "x-hour-quota-left",
            "x-day-quota-left",
        ):
            tracker = QuotaTracker()
            tracker.record_headers({header: "0"})
            assert tracker.can_proceed() is False, header
