"""Resource endpoints layered over the HTTP engine."""

from yalidine.api.base import build_query
from yalidine.api.histories import HistoriesAPI
from yalidine.api.parcels import ParcelsAPI

__all__ = ["HistoriesAPI", "ParcelsAPI", "build_query"]
