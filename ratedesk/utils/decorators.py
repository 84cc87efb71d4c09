"""Utility decorators for upstream call tracing."""
import functools
import inspect
import time
from typing import Callable
from ratedesk.utils.logging import get_logger

logger = get_logger(__name__)


def log_execution(log_args: bool = True, log_result: bool = False):
    """
    Log start, completion and failure of a call together with its duration.

    Args:
        log_args: Whether to include (truncated) call arguments
        log_result: Whether to include the (truncated) result

    Example:
        @log_execution(log_args=True)
        async def get_latest_rates(self, base):
            ...
    """
    def decorator(func: Callable):
        def _start(args, kwargs) -> float:
            extra = {"function": func.__name__}
            if log_args:
                extra["function_args"] = str(args)[:100]
                extra["function_kwargs"] = str(kwargs)[:100]
            logger.debug(f"Starting {func.__name__}", extra=extra)
            return time.perf_counter()

        def _elapsed(started: float) -> float:
            return round((time.perf_counter() - started) * 1000, 2)

        def _done(started: float, result) -> None:
            extra = {"function": func.__name__, "execution_time_ms": _elapsed(started)}
            if log_result:
                extra["result"] = str(result)[:100]
            logger.debug(f"Completed {func.__name__}", extra=extra)

        def _failed(started: float, error: Exception) -> None:
            logger.warning(
                f"Failed {func.__name__}: {error}",
                extra={"function": func.__name__, "execution_time_ms": _elapsed(started)}
            )

        @functools.wraps(func)
        async def async_wrapper(*args, **kwargs):
            started = _start(args, kwargs)
            try:
                result = await func(*args, **kwargs)
            except Exception as e:
                _failed(started, e)
                raise
            _done(started, result)
            return result

        @functools.wraps(func)
        def sync_wrapper(*args, **kwargs):
            started = _start(args, kwargs)
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                _failed(started, e)
                raise
            _done(started, result)
            return result

        if inspect.iscoroutinefunction(func):
            return async_wrapper
        return sync_wrapper

    return decorator
