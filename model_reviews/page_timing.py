from __future__ import annotations

import contextvars
import functools
import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Callable, Generator, Optional, TypeVar

logger = logging.getLogger("uvicorn.error")

T = TypeVar("T")

_CURRENT_TIMING: contextvars.ContextVar["PageTiming | None"] = contextvars.ContextVar(
    "page_timing", default=None
)


@dataclass
class PageTiming:
    page: str
    callback: str
    start: float
    sql_seconds: float = 0.0
    sql_queries: int = 0
    outcome: str = "ok"

    def add_sql(self, seconds: float) -> None:
        self.sql_seconds += seconds
        self.sql_queries += 1


def has_active_timing() -> bool:
    return _CURRENT_TIMING.get() is not None


def record_sql_time(seconds: float) -> None:
    timing = _CURRENT_TIMING.get()
    if timing is None:
        return
    timing.add_sql(seconds)


@contextmanager
def page_load_timing(
    page: str, callback: str, log: Optional[logging.Logger] = None
) -> Generator[PageTiming, None, None]:
    timing = PageTiming(page=page, callback=callback, start=time.perf_counter())
    token = _CURRENT_TIMING.set(timing)
    try:
        yield timing
    except Exception:
        timing.outcome = "error"
        raise
    finally:
        total = time.perf_counter() - timing.start
        non_sql = max(0.0, total - timing.sql_seconds)
        (log or logger).info(
            "page_load.timing page=%s callback=%s outcome=%s total_ms=%.2f sql_ms=%.2f sql_queries=%d non_sql_ms=%.2f",
            page,
            callback,
            timing.outcome,
            total * 1000,
            timing.sql_seconds * 1000,
            timing.sql_queries,
            non_sql * 1000,
        )
        _CURRENT_TIMING.reset(token)


def timed_page_load(
    page: str,
    func: Callable[..., T],
    label: Optional[str] = None,
    log: Optional[logging.Logger] = None,
) -> Callable[..., T]:
    """Wrap a Gradio callback so each invocation logs its wall and SQL time."""
    callback = label or func.__name__

    @functools.wraps(func)
    def _wrapped(*args, **kwargs) -> T:
        with page_load_timing(page, callback, log):
            return func(*args, **kwargs)

    return _wrapped
