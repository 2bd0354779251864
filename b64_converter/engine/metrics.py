"""In-process counters and timings for the conversion engine.

Usage:
    from b64_converter.engine.metrics import metrics
    metrics.inc("engine.requests.encode")
    with metrics.timed("engine.duration.encode"):
        ...
    snapshot = metrics.snapshot()

The engine runs on its worker thread while tests and the front end read
snapshots from the GUI thread, so every access goes through one lock.
"""

from __future__ import annotations

import time
from collections import defaultdict, deque
from collections.abc import Iterator
from contextlib import contextmanager
from threading import RLock
from typing import Any

# Per-key cap on kept samples; the worker may live for the whole session.
MAX_TIMINGS_PER_KEY = 1000


class _Metrics:
    def __init__(self, max_timings: int = MAX_TIMINGS_PER_KEY) -> None:
        self._counters: dict[str, int] = defaultdict(int)
        self._timings: dict[str, deque[float]] = defaultdict(lambda: deque(maxlen=max_timings))
        self._lock = RLock()

    def inc(self, key: str, amount: int = 1) -> None:
        with self._lock:
            self._counters[key] += int(amount)

    def count(self, key: str) -> int:
        with self._lock:
            return self._counters.get(key, 0)

    @contextmanager
    def timed(self, key: str) -> Iterator[None]:
        start = time.perf_counter()
        try:
            yield
        finally:
            elapsed = time.perf_counter() - start
            with self._lock:
                self._timings[key].append(elapsed)

    def snapshot(self) -> dict[str, Any]:
        with self._lock:
            return {
                "counters": dict(self._counters),
                "timings": {k: list(v) for k, v in self._timings.items()},
            }

    def reset(self) -> None:
        with self._lock:
            self._counters.clear()
            self._timings.clear()


metrics = _Metrics()
