"""Chunked binary-to-base64 encoding.

The buffer is encoded in slices whose length is a multiple of 3, so no
slice except the last needs padding. Joining the per-slice output gives
exactly `base64.b64encode(buffer)`. Chunking only bounds the work done
between progress reports.
"""

from __future__ import annotations

import base64
import time
from typing import Any

from b64_converter.logger import get_logger

from .errors import MalformedPayloadError
from .messages import EncodeResultMessage, PerformanceMetrics
from .progress import ProgressReporter, floor_percent, format_mb

_logger = get_logger("encoder")

DEFAULT_CHUNK_SIZE = 64 * 1024
DEFAULT_PROGRESS_STRIDE = 20
_GROUP = 3


def _as_byte_view(data: Any) -> memoryview:
    if isinstance(data, str):
        raise MalformedPayloadError("encode expects a byte buffer, got str")
    try:
        view = memoryview(data)
    except TypeError as exc:
        raise MalformedPayloadError(f"encode expects a byte buffer, got {type(data).__name__}") from exc
    if not view.c_contiguous:
        raise MalformedPayloadError("encode expects a contiguous byte buffer")
    return view.cast("B") if view.format != "B" or view.ndim != 1 else view


def aligned_chunk_size(chunk_size: int) -> int:
    """Round down to a multiple of 3 (minimum 3)."""
    return max(_GROUP, int(chunk_size) - int(chunk_size) % _GROUP)


def encode_chunked(
    data: Any,
    reporter: ProgressReporter | None = None,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    progress_stride: int = DEFAULT_PROGRESS_STRIDE,
) -> str:
    reporter = reporter or ProgressReporter()
    view = _as_byte_view(data)
    total = view.nbytes
    if total == 0:
        reporter.done(f"{format_mb(0)} / {format_mb(0)}")
        return ""

    step = aligned_chunk_size(chunk_size)
    total_chunks = (total + step - 1) // step
    parts: list[str] = []
    for i in range(total_chunks):
        start = i * step
        end = min(start + step, total)
        parts.append(base64.b64encode(view[start:end]).decode("ascii"))
        reporter.chunk(i, total_chunks, progress_stride, floor_percent(end, total), f"{format_mb(end)} / {format_mb(total)}")

    _logger.debug("encoded %d bytes in %d chunk(s) of %d", total, total_chunks, step)
    return "".join(parts)


def encode(
    data: Any,
    reporter: ProgressReporter | None = None,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    progress_stride: int = DEFAULT_PROGRESS_STRIDE,
) -> EncodeResultMessage:
    start_ts = time.perf_counter()
    encoded = encode_chunked(data, reporter, chunk_size=chunk_size, progress_stride=progress_stride)
    elapsed_ms = (time.perf_counter() - start_ts) * 1000.0
    size = _as_byte_view(data).nbytes
    return EncodeResultMessage(base64=encoded, metrics=PerformanceMetrics(elapsed_ms=elapsed_ms, byte_size=size))
