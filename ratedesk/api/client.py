"""CurrencyBeacon REST client."""
from __future__ import annotations

from typing import Any, Dict, Optional

import httpx

from ratedesk.api.base import RateProvider
from ratedesk.api.parsers import parse_catalog, parse_conversion, parse_rates
from ratedesk.config import Config
from ratedesk.models import RateSnapshot
from ratedesk.utils.decorators import log_execution
from ratedesk.utils.errors import MalformedResponse, NetworkFailure
from ratedesk.utils.logging import get_logger


logger = get_logger(__name__)

DEFAULT_BASE_URL = "https://api.currencybeacon.com/v1"
DEFAULT_TIMEOUT = 10.0


class CurrencyBeaconClient(RateProvider):
    """
    Client for the CurrencyBeacon API.

    Every request carries the ``api_key`` query parameter and a fixed timeout.
    Failures are not retried; they surface as :class:`NetworkFailure` or
    :class:`MalformedResponse`.
    """

    NAME = "currencybeacon"

    def __init__(
        self,
        api_key: str = "",
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = float(timeout)

    @classmethod
    def from_config(cls, config: Config) -> "CurrencyBeaconClient":
        if not config.api_key:
            logger.warning("No CurrencyBeacon API key configured; requests will likely be rejected")
        return cls(api_key=config.api_key, base_url=config.api_base_url, timeout=config.api_timeout)

    async def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        url = f"{self.base_url}{path}"
        query = dict(params or {})
        query["api_key"] = self.api_key

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                resp = await client.get(url, params=query)
                resp.raise_for_status()
        except httpx.TimeoutException:
            logger.error(f"API request timed out: {path}", extra={"url": path})
            raise NetworkFailure(f"Request to {path} timed out after {self.timeout:g}s")
        except httpx.HTTPStatusError as e:
            status = e.response.status_code if e.response is not None else None
            logger.error(f"API error: {path} returned HTTP {status}", extra={"url": path, "status": status})
            raise NetworkFailure(f"HTTP {status} from {path}")
        except httpx.HTTPError as e:
            logger.error(f"API request failed: {path}: {e}", extra={"url": path})
            raise NetworkFailure(str(e) or f"Request to {path} failed")

        try:
            data = resp.json()
        except ValueError:
            logger.error(f"API returned non-JSON body for {path}", extra={"url": path})
            raise MalformedResponse(f"Response from {path} is not valid JSON")

        logger.debug(f"API response successful: {path}", extra={"url": path, "status": resp.status_code})
        return data

    @log_execution(log_args=False)
    async def get_currencies(self) -> Dict[str, str]:
        return parse_catalog(await self._get("/currencies"))

    @log_execution(log_args=True)
    async def get_latest_rates(self, base: str = "USD") -> RateSnapshot:
        data = await self._get("/latest", {"base": base})
        return parse_rates(data, requested_base=base)

    @log_execution(log_args=True)
    async def convert(self, from_currency: str, to_currency: str, amount: float) -> float:
        data = await self._get(
            "/convert", {"from": from_currency, "to": to_currency, "amount": amount}
        )
        return parse_conversion(data)

    @log_execution(log_args=True)
    async def get_historical_rates(self, date: str, base: str = "USD") -> RateSnapshot:
        data = await self._get("/historical", {"date": date, "base": base})
        return parse_rates(data, requested_base=base)
