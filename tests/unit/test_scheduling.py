"""Tests for the debounce timer and request sequencer."""
import asyncio

import pytest

from ratedesk.scheduling import Debouncer, RequestSequencer


def test_debouncer_fires_once_after_quiet_period(fake_loop):
    """Triggers at 0, 100 and 200 ms produce a single call at 700 ms."""
    calls = []
    debouncer = Debouncer(0.5, lambda: calls.append(fake_loop.now), loop=fake_loop)

    debouncer.trigger()
    fake_loop.advance(0.1)
    debouncer.trigger()
    fake_loop.advance(0.1)
    debouncer.trigger()

    fake_loop.advance(0.45)
    assert calls == []
    assert debouncer.pending

    fake_loop.advance(1.0)
    assert calls == [pytest.approx(0.7)]
    assert not debouncer.pending


def test_debouncer_cancel(fake_loop):
    calls = []
    debouncer = Debouncer(0.5, lambda: calls.append(1), loop=fake_loop)

    debouncer.trigger()
    debouncer.cancel()
    fake_loop.advance(1.0)

    assert calls == []
    assert not debouncer.pending


def test_debouncer_rearms_after_firing(fake_loop):
    calls = []
    debouncer = Debouncer(0.5, lambda: calls.append(fake_loop.now), loop=fake_loop)

    debouncer.trigger()
    fake_loop.advance(0.6)
    debouncer.trigger()
    fake_loop.advance(0.6)

    assert calls == [pytest.approx(0.5), pytest.approx(1.1)]


def test_debouncer_rejects_negative_delay():
    with pytest.raises(ValueError):
        Debouncer(-1, lambda: None)


@pytest.mark.asyncio
async def test_debouncer_on_running_loop():
    """Without an explicit loop the running event loop is used."""
    fired = asyncio.Event()
    debouncer = Debouncer(0.01, fired.set)

    debouncer.trigger()
    await asyncio.wait_for(fired.wait(), timeout=1.0)

    assert not debouncer.pending


def test_request_sequencer():
    sequencer = RequestSequencer()
    assert sequencer.current == 0

    first = sequencer.next()
    second = sequencer.next()

    assert second > first
    assert sequencer.is_current(second)
    assert not sequencer.is_current(first)
