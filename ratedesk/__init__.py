"""RateDesk: currency catalog, exchange-rate sync and debounced conversion."""

from ratedesk.converter import ConversionRequester
from ratedesk.filters import RateTableView, SortState
from ratedesk.sync.controller import RateSyncController

__version__ = "0.1.0"

__all__ = [
    "ConversionRequester",
    "RateSyncController",
    "RateTableView",
    "SortState",
]
