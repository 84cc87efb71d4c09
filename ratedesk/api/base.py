"""Provider interface consumed by the sync controller and conversion requester."""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Dict

from ratedesk.models import RateSnapshot


class RateProvider(ABC):
    """Abstract upstream currency-rate service."""

    NAME: str = "base"

    @abstractmethod
    async def get_currencies(self) -> Dict[str, str]:
        """Return the currency catalog (upper-case code -> display name)."""

    @abstractmethod
    async def get_latest_rates(self, base: str) -> RateSnapshot:
        """Return the latest rate table relative to ``base``."""

    @abstractmethod
    async def convert(self, from_currency: str, to_currency: str, amount: float) -> float:
        """Return ``amount`` of ``from_currency`` expressed in ``to_currency``."""

    async def get_historical_rates(self, date: str, base: str) -> RateSnapshot:
        """Return the rate table for ``base`` on ``date`` (YYYY-MM-DD)."""
        raise NotImplementedError(f"{self.NAME} does not serve historical rates")
