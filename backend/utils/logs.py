import asyncio
import functools
import logging
import time
from typing import Callable

from cachetools.func import ttl_cache

from utils import humanize_milliseconds

logger = logging.getLogger("soundalchemy.performance")


def _log_elapsed(name: str, start: float):
    elapsed = (time.perf_counter() - start) * 1000
    logger.debug(f"{name} completed in {humanize_milliseconds(elapsed)}")


def time_it(func):
    """Log how long `func` took, sync or async"""
    if asyncio.iscoroutinefunction(func):

        @functools.wraps(func)
        async def async_wrapper(*args, **kwargs):
            start = time.perf_counter()
            try:
                return await func(*args, **kwargs)
            finally:
                _log_elapsed(func.__name__, start)

        return async_wrapper

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        start = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            _log_elapsed(func.__name__, start)

    return wrapper


# one ttl-cached caller per delay, keyed on (sink, message)
_limiters: dict[int, Callable] = {}


def _limiter(delay: int) -> Callable:
    if delay not in _limiters:

        @ttl_cache(ttl=delay)
        def call(sink, message):
            sink(message)

        _limiters[delay] = call
    return _limiters[delay]


def ratelimited_log(delay_or_fn: int | Callable, msg=None):
    """Send the same message to a sink at most once every `delay` seconds.

    ratelimited_log(logger.warning, "msg") uses the default 60 seconds,
    ratelimited_log(3600)(slack.send_message, "msg") a custom delay.
    """
    if callable(delay_or_fn):
        return _limiter(60)(delay_or_fn, msg)
    return _limiter(delay_or_fn)
