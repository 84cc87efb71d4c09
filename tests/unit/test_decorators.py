"""Tests for decorator utilities."""
import logging

import pytest
from ratedesk.utils.decorators import log_execution


@pytest.mark.asyncio
async def test_log_execution_async(caplog):
    """Completed calls are logged with their duration."""
    @log_execution(log_args=True, log_result=True)
    async def logged_function(x, y):
        return x + y

    with caplog.at_level(logging.DEBUG, logger="ratedesk.utils.decorators"):
        result = await logged_function(2, 3)

    assert result == 5
    completed = [r for r in caplog.records if r.getMessage() == "Completed logged_function"]
    assert completed and hasattr(completed[0], "execution_time_ms")


@pytest.mark.asyncio
async def test_log_execution_reraises(caplog):
    """Failures are logged and propagated unchanged."""
    @log_execution(log_args=False)
    async def failing():
        raise ValueError("upstream broke")

    with caplog.at_level(logging.WARNING, logger="ratedesk.utils.decorators"):
        with pytest.raises(ValueError, match="upstream broke"):
            await failing()

    assert any("Failed failing" in r.getMessage() for r in caplog.records)


def test_log_execution_sync():
    """Synchronous functions keep working."""
    @log_execution()
    def double(x):
        return x * 2

    assert double(21) == 42
    assert double.__name__ == "double"
