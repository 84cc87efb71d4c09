"""Scheduling primitives: a cancellable debounce timer and a request sequencer."""
from __future__ import annotations

import asyncio
from typing import Callable, Optional

from ratedesk.utils.logging import get_logger


logger = get_logger(__name__)


class Debouncer:
    """
    Run ``callback`` once input has been quiet for ``delay`` seconds.

    Each :meth:`trigger` cancels the pending timer and starts a new one, so a burst
    of triggers results in a single call ``delay`` seconds after the last one. The
    callback is invoked synchronously from the event loop.

    Args:
        delay: Quiet period in seconds
        callback: Zero-argument callable
        loop: Event loop used for timers; defaults to the running loop
    """

    def __init__(
        self,
        delay: float,
        callback: Callable[[], None],
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ) -> None:
        if delay < 0:
            raise ValueError(f"delay must be >= 0, got {delay}")
        self.delay = delay
        self._callback = callback
        self._loop = loop
        self._handle: Optional[asyncio.TimerHandle] = None

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def trigger(self) -> None:
        self.cancel()
        loop = self._loop or asyncio.get_running_loop()
        self._handle = loop.call_later(self.delay, self._fire)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self) -> None:
        self._handle = None
        self._callback()


class RequestSequencer:
    """Monotonic request counter; only the most recently issued token is current."""

    def __init__(self) -> None:
        self._current = 0

    @property
    def current(self) -> int:
        return self._current

    def next(self) -> int:
        self._current += 1
        return self._current

    def is_current(self, token: int) -> bool:
        return token == self._current
