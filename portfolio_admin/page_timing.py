from __future__ import annotations

from contextlib import contextmanager
import contextvars
from dataclasses import dataclass
import functools
import inspect
import logging
import time
from typing import Callable, Generator, Optional, TypeVar

DEFAULT_LOGGER_NAME = "uvicorn.error"
logger = logging.getLogger(DEFAULT_LOGGER_NAME)

T = TypeVar("T")

_CURRENT_TIMING: contextvars.ContextVar["PageTiming | None"] = contextvars.ContextVar(
    "page_timing", default=None
)


@dataclass
class PageTiming:
    page: str
    callback: str
    start: float
    api_seconds: float = 0.0
    api_calls: int = 0

    def add_api(self, seconds: float) -> None:
        self.api_seconds += seconds
        self.api_calls += 1


def record_api_time(seconds: float) -> None:
    timing = _CURRENT_TIMING.get()
    if timing is None:
        return
    timing.add_api(seconds)


@contextmanager
def page_load_timing(
    page: str, callback: str, log: Optional[logging.Logger] = None
) -> Generator[PageTiming, None, None]:
    start = time.perf_counter()
    timing = PageTiming(page=page, callback=callback, start=start)
    token = _CURRENT_TIMING.set(timing)
    try:
        yield timing
    finally:
        total = time.perf_counter() - start
        api_seconds = timing.api_seconds
        non_api = total - api_seconds
        if non_api < 0:
            non_api = 0.0
        resolved_log = log or logger
        resolved_log.info(
            "page_load.timing page=%s callback=%s total_ms=%.2f api_ms=%.2f api_calls=%d non_api_ms=%.2f",
            page,
            callback,
            total * 1000,
            api_seconds * 1000,
            timing.api_calls,
            non_api * 1000,
        )
        _CURRENT_TIMING.reset(token)


def timed_page_load(
    page: str,
    func: Callable[..., T],
    label: Optional[str] = None,
    log: Optional[logging.Logger] = None,
) -> Callable[..., T]:
    callback = label or func.__name__
    resolved_logger = log or logging.getLogger(DEFAULT_LOGGER_NAME)

    if inspect.isgeneratorfunction(func):
        # Each step of a stream may run on a different worker thread, so the
        # contextvar is not carried across yields; only wall time is logged.
        @functools.wraps(func)
        def _wrapped_stream(*args, **kwargs):
            start = time.perf_counter()
            try:
                yield from func(*args, **kwargs)
            finally:
                resolved_logger.info(
                    "page_load.timing page=%s callback=%s total_ms=%.2f streamed=1",
                    page,
                    callback,
                    (time.perf_counter() - start) * 1000,
                )

        return _wrapped_stream  # type: ignore[return-value]

    @functools.wraps(func)
    def _wrapped(*args, **kwargs) -> T:
        with page_load_timing(page, callback, resolved_logger):
            return func(*args, **kwargs)

    return _wrapped
