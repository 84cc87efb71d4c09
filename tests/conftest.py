"""Pytest configuration and fixtures."""
import asyncio
import logging
from datetime import datetime, timezone
from pathlib import Path
import tempfile
from typing import Dict, List, Optional

import pytest
import yaml

from ratedesk.api.base import RateProvider
from ratedesk.models import RateSnapshot


SERVER_TIME = datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)


class FakeProvider(RateProvider):
    """In-memory provider with per-request gates for ordering tests."""

    NAME = "fake"

    def __init__(self):
        self.catalog: Dict[str, str] = {
            "USD": "United States Dollar",
            "EUR": "Euro",
            "GBP": "British Pound Sterling",
        }
        self.rate_tables: Dict[str, Dict[str, float]] = {
            "USD": {"USD": 1.0, "EUR": 0.9, "GBP": 0.8},
            "EUR": {"USD": 1.11, "EUR": 1.0, "GBP": 0.89},
            "GBP": {"USD": 1.25, "EUR": 1.12, "GBP": 1.0},
        }
        self.catalog_error: Optional[Exception] = None
        self.rate_errors: Dict[str, Exception] = {}
        self.rate_gates: Dict[str, asyncio.Event] = {}
        self.conversion_rate = 0.9
        self.convert_error: Optional[Exception] = None
        self.convert_gates: Dict[float, asyncio.Event] = {}
        self.calls: List[tuple] = []
        self.server_time = SERVER_TIME

    async def get_currencies(self):
        self.calls.append(("currencies",))
        if self.catalog_error:
            raise self.catalog_error
        return dict(self.catalog)

    async def get_latest_rates(self, base):
        self.calls.append(("latest", base))
        gate = self.rate_gates.get(base)
        if gate is not None:
            await gate.wait()
        if base in self.rate_errors:
            raise self.rate_errors[base]
        return RateSnapshot(
            base_currency=base,
            rates=dict(self.rate_tables.get(base, {base: 1.0})),
            updated_at=self.server_time,
            server_timestamp=True,
        )

    async def convert(self, from_currency, to_currency, amount):
        self.calls.append(("convert", from_currency, to_currency, amount))
        gate = self.convert_gates.get(amount)
        if gate is not None:
            await gate.wait()
        if self.convert_error:
            raise self.convert_error
        return amount * self.conversion_rate

    async def get_historical_rates(self, date, base):
        self.calls.append(("historical", date, base))
        return RateSnapshot(base_currency=base, rates={"EUR": 0.95, "GBP": 0.81, "JPY": 150.2})

    def calls_to(self, method: str) -> List[tuple]:
        return [c for c in self.calls if c[0] == method]


class FakeHandle:
    def __init__(self, when, callback):
        self.when = when
        self.callback = callback
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class FakeLoop:
    """Manual clock for timers; tasks are delegated to the running event loop."""

    def __init__(self):
        self.now = 0.0
        self.fired_at: List[float] = []
        self._timers: List[FakeHandle] = []

    def time(self):
        return self.now

    def call_later(self, delay, callback, *args):
        handle = FakeHandle(self.now + delay, lambda: callback(*args))
        self._timers.append(handle)
        return handle

    def create_task(self, coro):
        return asyncio.get_running_loop().create_task(coro)

    def advance(self, seconds: float) -> None:
        target = self.now + seconds
        while True:
            due = [h for h in self._timers if not h.cancelled and h.when <= target + 1e-9]
            if not due:
                break
            handle = min(due, key=lambda h: h.when)
            self._timers.remove(handle)
            self.now = handle.when
            self.fired_at.append(handle.when)
            handle.callback()
        self.now = target


@pytest.fixture
def provider():
    return FakeProvider()


@pytest.fixture
def fake_loop():
    return FakeLoop()


@pytest.fixture
def temp_config_file():
    """Create a temporary config file for testing."""
    config_data = {
        'app': {
            'name': 'Test RateDesk',
            'version': '0.1.0',
        },
        'api': {
            'base_url': 'https://api.example.test/v1/',
            'timeout': 5,
        },
        'sync': {
            'default_base': 'usd',
        },
        'converter': {
            'debounce_ms': 250,
        },
        'logging': {
            'level': 'WARNING',
            'format': 'text'
        }
    }

    with tempfile.NamedTemporaryFile(mode='w', suffix='.yaml', delete=False) as f:
        yaml.dump(config_data, f)
        config_path = f.name

    yield config_path

    Path(config_path).unlink()


@pytest.fixture(autouse=True)
def restore_root_logger():
    """Config loading reconfigures the root logger; undo it after each test."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers = handlers
    root.setLevel(level)
    logging.disable(logging.NOTSET)
