"""
Rate cache / sync controller.

Owns the currency catalog, the rate table, the base currency and the load status
of both, and is the only writer of that state. Consumers read immutable
snapshots or subscribe to change notifications.
"""
from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Callable, Dict, List, Mapping, Optional, Set

from ratedesk.api.base import RateProvider
from ratedesk.models import FALLBACK_CATALOG, SyncPhase, SyncSnapshot, SyncStatus
from ratedesk.scheduling import RequestSequencer
from ratedesk.utils.errors import DataProviderError, EmptyResult
from ratedesk.utils.logging import get_logger
from ratedesk.utils.validation import normalize_currency_code


logger = get_logger(__name__)

Listener = Callable[[SyncSnapshot], None]


def _describe(error: Exception) -> str:
    return str(error) or error.__class__.__name__


class RateSyncController:
    """
    Keeps catalog and rates in sync with the upstream provider.

    Startup loads the catalog first (falling back to a built-in catalog on any
    failure) and only then the rates for the current base currency. Every rate
    fetch gets a generation number; a response that arrives after a newer fetch
    was issued is discarded, so the last-issued fetch wins.

    Args:
        provider: Upstream rate service
        base_currency: Initial base currency code
        fallback_catalog: Catalog installed when the remote catalog is unusable
    """

    def __init__(
        self,
        provider: RateProvider,
        base_currency: str = "USD",
        fallback_catalog: Mapping[str, str] = FALLBACK_CATALOG,
    ) -> None:
        if not fallback_catalog:
            raise ValueError("fallback_catalog must not be empty")
        self._provider = provider
        self._fallback_catalog: Dict[str, str] = dict(fallback_catalog)
        self._catalog: Dict[str, str] = {}
        self._rates: Dict[str, float] = {}
        self._base = normalize_currency_code(base_currency)
        self._catalog_status = SyncStatus()
        self._rates_status = SyncStatus()
        self._using_fallback = False
        self._initialized = False
        self._generations = RequestSequencer()
        self._tasks: Set[asyncio.Task] = set()
        self._listeners: List[Listener] = []

    # ------------------------------------------------------------------
    # Read-only state
    # ------------------------------------------------------------------

    @property
    def catalog(self) -> Mapping[str, str]:
        return MappingProxyType(self._catalog)

    @property
    def rates(self) -> Mapping[str, float]:
        return MappingProxyType(self._rates)

    @property
    def base_currency(self) -> str:
        return self._base

    @property
    def catalog_status(self) -> SyncStatus:
        return self._catalog_status

    @property
    def rates_status(self) -> SyncStatus:
        return self._rates_status

    @property
    def using_fallback_catalog(self) -> bool:
        return self._using_fallback

    @property
    def is_initializing(self) -> bool:
        """True until the first rate fetch has completed, successfully or not."""
        return not self._initialized

    def snapshot(self) -> SyncSnapshot:
        # Dicts are replaced wholesale, never mutated, so proxies stay consistent
        return SyncSnapshot(
            catalog=MappingProxyType(self._catalog),
            rates=MappingProxyType(self._rates),
            base_currency=self._base,
            catalog_status=self._catalog_status,
            rates_status=self._rates_status,
        )

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener`` for state changes; returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        if not self._listeners:
            return
        snap = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snap)
            except Exception:
                logger.exception(f"Sync listener {listener!r} failed")

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Load the catalog, then the rates for the current base currency."""
        await self.load_catalog()
        await self.load_rates()

    async def load_catalog(self) -> bool:
        """
        Fetch the currency catalog.

        Returns:
            True if the remote catalog was installed, False if the fallback was used
        """
        self._catalog_status = SyncStatus(SyncPhase.LOADING)
        self._notify()
        logger.info("Fetching currencies")

        try:
            catalog = await self._provider.get_currencies()
            catalog = {
                code.upper(): name for code, name in (catalog or {}).items() if code and name
            }
            if not catalog:
                raise EmptyResult("No currencies could be processed")
        except DataProviderError as e:
            logger.error(f"Currency fetch failed: {e}")
            self._install_fallback(_describe(e))
            return False
        except Exception as e:
            logger.exception("Unexpected error while fetching currencies")
            self._install_fallback(_describe(e))
            return False

        self._catalog = catalog
        self._using_fallback = False
        self._catalog_status = SyncStatus(
            SyncPhase.READY, last_updated=datetime.now(timezone.utc)
        )
        logger.info(f"Loaded {len(catalog)} currencies")
        self._notify()
        return True

    def _install_fallback(self, reason: str) -> None:
        self._catalog = dict(self._fallback_catalog)
        self._using_fallback = True
        self._catalog_status = SyncStatus(
            SyncPhase.ERROR, error=f"Currency loading failed: {reason}"
        )
        logger.warning(f"Using fallback catalog ({len(self._catalog)} currencies)")
        self._notify()

    async def load_rates(self) -> bool:
        """
        Fetch rates for the current base currency.

        Returns:
            True if the fetched table was installed; False if the fetch was deferred,
            failed, or superseded by a newer fetch
        """
        return await self._fetch_rates(self._generations.next(), self._base)

    async def _fetch_rates(self, generation: int, base: str) -> bool:
        if not self._catalog:
            logger.info("Waiting for currencies to load before fetching rates")
            return False

        previous_update = self._rates_status.last_updated
        self._rates_status = SyncStatus(SyncPhase.LOADING, last_updated=previous_update)
        self._notify()
        logger.info(f"Fetching exchange rates for base {base}", extra={"base": base, "generation": generation})

        try:
            snapshot = await self._provider.get_latest_rates(base)
        except Exception as e:
            if not self._generations.is_current(generation):
                logger.debug(f"Ignoring failure of superseded rate fetch #{generation}")
                return False
            if isinstance(e, DataProviderError):
                logger.error(f"Rates fetch failed for {base}: {e}")
            else:
                logger.exception(f"Unexpected error while fetching rates for {base}")
            self._rates_status = SyncStatus(
                SyncPhase.ERROR,
                last_updated=previous_update,
                error=f"Exchange rates loading failed: {_describe(e)}",
            )
            self._initialized = True
            self._notify()
            return False

        if not self._generations.is_current(generation):
            logger.info(
                f"Discarding stale rates for {base} (fetch #{generation}, current #{self._generations.current})",
                extra={"base": base, "generation": generation},
            )
            return False

        self._rates = dict(snapshot.rates)
        self._rates_status = SyncStatus(SyncPhase.READY, last_updated=snapshot.updated_at)
        self._initialized = True
        logger.info(f"Exchange rates loaded: {len(self._rates)} for base {base}")
        self._notify()
        return True

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def set_base_currency(self, code: str) -> Optional[asyncio.Task]:
        """
        Change the base currency and schedule a rate refresh.

        Setting the current base again is a no-op and returns None.
        """
        code = normalize_currency_code(code)
        if code == self._base:
            return None
        if self._catalog and code not in self._catalog:
            logger.warning(f"Base currency {code} is not in the catalog")
        self._base = code
        self._notify()
        return self._schedule_refresh()

    def refresh(self) -> asyncio.Task:
        """Force a rate re-fetch for the current base currency."""
        logger.info("Manual refresh initiated")
        return self._schedule_refresh()

    def _schedule_refresh(self) -> asyncio.Task:
        generation = self._generations.next()
        task = asyncio.get_running_loop().create_task(self._fetch_rates(generation, self._base))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def wait_idle(self) -> None:
        """Wait for all scheduled rate refreshes to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))
