"""Shared helpers for the resource endpoints."""

from collections.abc import Mapping
from typing import Any

import httpx

from yalidine.http.client import HttpClient


def build_query(filters: Mapping[str, Any], flags: tuple[str, ...] = ()) -> str:
    """
    Render filters as a query string.

    None values are dropped, sequences are joined with commas and
    booleans become "true"/"false". Names listed in `flags` are sent
    as empty-valued parameters when truthy and omitted otherwise.

    Args:
        filters: Filter name to value
        flags: Filter names rendered as bare flags

    Returns:
        Encoded query string without the leading "?"
    """
    params: list[tuple[str, str]] = []
    for key, value in filters.items():
        if value is None:
            continue
        if key in flags:
            if value:
                params.append((key, ""))
            continue
        if isinstance(value, bool):
            params.append((key, "true" if value else "false"))
        elif isinstance(value, (list, tuple, set)):
            params.append((key, ",".join(str(v) for v in value)))
        else:
            params.append((key, str(value)))
    return str(httpx.QueryParams(params))


def with_query(path: str, query: str) -> str:
    return f"{path}?{query}" if query else path


class Resource:
    """Base for endpoint groups bound to one HttpClient."""

    def __init__(self, http: HttpClient) -> None:
        self._http = http
