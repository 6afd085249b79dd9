"""HTTP request engine."""

from yalidine.http.client import (
    HttpClient,
    HttpResponse,
    RequestContext,
    merge_headers,
)

__all__ = ["HttpClient", "HttpResponse", "RequestContext", "merge_headers"]
