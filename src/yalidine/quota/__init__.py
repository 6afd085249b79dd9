"""
Quota tracking for the remote API's per-window request limits.

Counters are read from response headers after every exchange.
"""

from yalidine.quota.tracker import (
    DEFAULT_QUOTA_HEADERS,
    QuotaHeaders,
    QuotaStatus,
    QuotaTracker,
)

__all__ = [
    "DEFAULT_QUOTA_HEADERS",
    "QuotaHeaders",
    "QuotaStatus",
    "QuotaTracker",
]
