"""
Debounced currency conversion.
"""
from __future__ import annotations

import asyncio
from typing import Optional, Set

from ratedesk.api.base import RateProvider
from ratedesk.config import Config
from ratedesk.models import ConversionResult
from ratedesk.scheduling import Debouncer, RequestSequencer
from ratedesk.sync.controller import RateSyncController
from ratedesk.utils.errors import ValidationFailure
from ratedesk.utils.logging import get_logger
from ratedesk.utils.validation import normalize_currency_code, parse_amount


logger = get_logger(__name__)

DEBOUNCE_SECONDS = 0.5


class ConversionRequester:
    """
    Turns amount / currency input into conversion requests.

    Input changes restart a quiet-period timer; the request is issued only when
    the timer fires. Each request gets a sequence number and only the newest one
    may update :attr:`result` or :attr:`error`.

    Args:
        provider: Upstream service used for ``convert``
        controller: Sync controller; while it is still initializing, timer-driven
            requests are skipped
        amount_text: Initial amount text
        from_currency: Initial source currency
        to_currency: Initial target currency
        debounce_seconds: Quiet period before a request is issued
        loop: Event loop for timers and tasks; defaults to the running loop
    """

    def __init__(
        self,
        provider: RateProvider,
        controller: Optional[RateSyncController] = None,
        amount_text: str = "1000",
        from_currency: str = "USD",
        to_currency: str = "EUR",
        debounce_seconds: float = DEBOUNCE_SECONDS,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ) -> None:
        self._provider = provider
        self._controller = controller
        self._loop = loop
        self._debouncer = Debouncer(debounce_seconds, self._on_quiet, loop=loop)
        self._sequence = RequestSequencer()
        self._tasks: Set[asyncio.Task] = set()

        self.amount_text = amount_text
        self.from_currency = from_currency
        self.to_currency = to_currency
        self.result: Optional[ConversionResult] = None
        self.error: Optional[str] = None
        self.converting = False

        self._awaiting_sync = controller is not None and controller.is_initializing
        if self._awaiting_sync:
            self._unsubscribe = controller.subscribe(self._on_sync_change)

    @classmethod
    def from_config(
        cls,
        provider: RateProvider,
        controller: Optional[RateSyncController],
        config: Config,
        **kwargs,
    ) -> "ConversionRequester":
        """Create a requester using ``converter.debounce_ms`` from ``config``."""
        return cls(provider, controller, debounce_seconds=config.debounce_seconds, **kwargs)

    @property
    def display_value(self) -> str:
        """Converted amount rounded to 2 decimals, or "" when there is no result."""
        return self.result.display_value if self.result else ""

    @property
    def pending(self) -> bool:
        """True while a debounced request is waiting for its quiet period."""
        return self._debouncer.pending

    # ------------------------------------------------------------------
    # Input
    # ------------------------------------------------------------------

    def set_amount(self, text: str) -> None:
        if text == self.amount_text:
            return
        self.amount_text = text
        self.error = None
        self._debouncer.trigger()

    def set_from_currency(self, code: str) -> None:
        if code == self.from_currency:
            return
        self.from_currency = code
        self._debouncer.trigger()

    def set_to_currency(self, code: str) -> None:
        if code == self.to_currency:
            return
        self.to_currency = code
        self._debouncer.trigger()

    def swap_currencies(self) -> None:
        self.from_currency, self.to_currency = self.to_currency, self.from_currency
        self.error = None
        self._debouncer.trigger()

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------

    def convert_now(self) -> Optional[asyncio.Task]:
        """Issue a conversion immediately, dropping any pending debounced one."""
        self._debouncer.cancel()
        return self._start_conversion()

    def cancel(self) -> None:
        """Drop the pending debounced request, if any."""
        self._debouncer.cancel()

    def _on_sync_change(self, snapshot) -> None:
        # Rerun the conversion that was skipped while rates were loading
        if not self._awaiting_sync or self._controller.is_initializing:
            return
        self._awaiting_sync = False
        self._unsubscribe()
        logger.debug("Rates ready, scheduling conversion")
        self._debouncer.trigger()

    def _on_quiet(self) -> None:
        if self._controller is not None and self._controller.is_initializing:
            logger.debug("Skipping conversion while rates are still loading")
            return
        self._start_conversion()

    def _start_conversion(self) -> Optional[asyncio.Task]:
        try:
            amount = parse_amount(self.amount_text)
            from_currency = normalize_currency_code(self.from_currency)
            to_currency = normalize_currency_code(self.to_currency)
        except ValidationFailure as e:
            logger.debug(f"Not converting: {e}")
            # Invalidate anything still in flight
            self._sequence.next()
            self.result = None
            self.converting = False
            return None

        sequence = self._sequence.next()
        self.converting = True
        self.error = None
        loop = self._loop or asyncio.get_running_loop()
        task = loop.create_task(self._convert(sequence, amount, from_currency, to_currency))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _convert(
        self, sequence: int, amount: float, from_currency: str, to_currency: str
    ) -> Optional[ConversionResult]:
        logger.info(
            f"Converting {amount:g} {from_currency} -> {to_currency}",
            extra={"sequence": sequence},
        )
        try:
            value = await self._provider.convert(from_currency, to_currency, amount)
        except Exception as e:
            if not self._sequence.is_current(sequence):
                logger.debug(f"Ignoring failure of superseded conversion #{sequence}")
                return None
            logger.error(f"Conversion error: {e}")
            self.error = str(e) or e.__class__.__name__
            self.result = None
            self.converting = False
            return None

        if not self._sequence.is_current(sequence):
            logger.debug(
                f"Discarding stale conversion #{sequence} (current #{self._sequence.current})"
            )
            return None

        self.result = ConversionResult(
            amount=amount,
            from_currency=from_currency,
            to_currency=to_currency,
            value=value,
            sequence=sequence,
        )
        self.converting = False
        logger.info(f"Converted: {self.result}", extra={"sequence": sequence})
        return self.result

    async def wait_idle(self) -> None:
        """Wait for in-flight conversion requests to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))
