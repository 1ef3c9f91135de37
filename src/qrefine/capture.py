"""Runtime query capture.

``QueryCapture`` is a bounded, caller-owned queue of recently executed
queries. Nothing here is process-wide: create one capture per service (or
per test) and pass it to ``intercept_query`` to record what a database
call actually ran, including queries built dynamically that static
extraction cannot see.
"""

from __future__ import annotations

import functools
import inspect
import logging
import threading
import time
from collections import deque
from dataclasses import dataclass

from qrefine.analyzer import analyze_sql
from qrefine.rules.base import Rule, Suggestion

log = logging.getLogger(__name__)

DEFAULT_MAXLEN = 100
MIN_QUERY_LENGTH = 10


@dataclass(frozen=True)
class CapturedQuery:
    query: str
    timestamp: float
    source: str = "unknown"
    user: dict | None = None

    def to_dict(self) -> dict:
        return {
            "query": self.query,
            "timestamp": self.timestamp,
            "source": self.source,
            "user": self.user,
        }


class QueryCapture:
    """Keeps the *maxlen* most recent queries; the oldest fall off first."""

    def __init__(self, maxlen: int = DEFAULT_MAXLEN):
        if maxlen < 1:
            raise ValueError("maxlen must be at least 1")
        self._items: deque[CapturedQuery] = deque(maxlen=maxlen)
        self._lock = threading.Lock()

    @property
    def maxlen(self) -> int:
        return self._items.maxlen

    def __len__(self) -> int:
        return len(self._items)

    def capture(self, query: str, source: str = "unknown", user: dict | None = None) -> CapturedQuery:
        item = CapturedQuery(query=query.strip(), timestamp=time.time(), source=source, user=user)
        with self._lock:
            self._items.append(item)
        log.info("captured query from %s: %s", source, item.query[:50])
        return item

    def recent(self, limit: int | None = 10) -> list[CapturedQuery]:
        """Most recent first."""
        with self._lock:
            items = list(reversed(self._items))
        return items if limit is None else items[:limit]

    def clear(self) -> None:
        with self._lock:
            self._items.clear()

    def analyze_recent(
        self, limit: int | None = 10, rules: list[Rule] | None = None
    ) -> list[tuple[CapturedQuery, list[Suggestion]]]:
        return [(item, analyze_sql(item.query, rules)) for item in self.recent(limit)]


def _should_capture(args) -> bool:
    return bool(args) and isinstance(args[0], str) and len(args[0]) > MIN_QUERY_LENGTH


def intercept_query(capture: QueryCapture, source: str | None = None):
    """Decorator recording the first positional argument of each call.

    The argument is captured when it is a string longer than ten
    characters. Works for plain and ``async`` functions; the wrapped call's
    result and exceptions pass through unchanged.
    """

    def decorator(fn):
        name = source or getattr(fn, "__qualname__", getattr(fn, "__name__", "unknown"))

        if inspect.iscoroutinefunction(fn):

            @functools.wraps(fn)
            async def async_wrapper(*args, **kwargs):
                if _should_capture(args):
                    capture.capture(args[0], name)
                return await fn(*args, **kwargs)

            return async_wrapper

        @functools.wraps(fn)
        def wrapper(*args, **kwargs):
            if _should_capture(args):
                capture.capture(args[0], name)
            return fn(*args, **kwargs)

        return wrapper

    return decorator
