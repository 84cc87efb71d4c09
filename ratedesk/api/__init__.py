"""Upstream API client and payload parsers."""

from .base import RateProvider
from .client import CurrencyBeaconClient
from .parsers import parse_catalog, parse_conversion, parse_rates


__all__ = [
    "RateProvider",
    "CurrencyBeaconClient",
    "parse_catalog",
    "parse_conversion",
    "parse_rates",
]
