from __future__ import annotations

import math
from collections.abc import Callable

from .messages import ProgressMessage

ProgressSink = Callable[[ProgressMessage], None]

_BYTES_PER_MB = 1024 * 1024


def format_mb(num_bytes: int) -> str:
    return f"{num_bytes / _BYTES_PER_MB:.1f}MB"


def should_report(index: int, total: int, stride: int) -> bool:
    """True after every `stride`-th chunk (1-based) and always on the last one."""
    return (index + 1) % max(1, stride) == 0 or index == total - 1


def floor_percent(done: int, total: int) -> int:
    if total <= 0:
        return 100
    return max(0, min(100, math.floor(done * 100 / total)))


def round_percent(done: int, total: int) -> int:
    if total <= 0:
        return 100
    return max(0, min(100, round(done * 100 / total)))


class ProgressReporter:
    """Turns `(percent, label)` pairs into `ProgressMessage`s on a sink.

    Holds no per-request state beyond the sink, so one reporter may be
    created per operation and thrown away afterwards.
    """

    def __init__(self, sink: ProgressSink | None = None) -> None:
        self._sink = sink

    def report(self, percent: int, label: str) -> None:
        if self._sink is None:
            return
        self._sink(ProgressMessage(percent=int(percent), label=label))

    def chunk(self, index: int, total: int, stride: int, percent: int, label: str) -> bool:
        """Report for chunk `index` if it falls on the stride; returns whether it did."""
        if not should_report(index, total, stride):
            return False
        self.report(percent, label)
        return True

    def done(self, label: str) -> None:
        self.report(100, label)
