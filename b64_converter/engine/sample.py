"""Synthetic large payloads for throughput testing.

A sample is a short, real WebP data URI header followed by random base64
alphabet filler. Only the header decodes to anything meaningful; the filler
exists to exercise the extract/encode paths with large inputs.
"""

from __future__ import annotations

import time
from typing import Any

import numpy as np

from b64_converter.logger import get_logger

from .errors import MalformedPayloadError
from .messages import PerformanceMetrics, SampleResultMessage
from .progress import ProgressReporter, round_percent

_logger = get_logger("sample")

SAMPLE_HEADER = "data:image/webp;base64,UklGRiIAAABXRUJQVlA4IBYAAAAwAQCdASoBAAEADsD+JaQAA3AAAAAA"
BASE64_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789+/"
DEFAULT_CHUNK_SIZE = 512 * 1024
DEFAULT_PROGRESS_STRIDE = 4
BYTES_PER_MB = 1024 * 1024

_ALPHABET_CODES = np.frombuffer(BASE64_ALPHABET.encode("ascii"), dtype=np.uint8)


def make_rng(source: np.random.Generator | int | None = None) -> np.random.Generator:
    """Return `source` if it already is a Generator, else seed a new one from it."""
    if isinstance(source, np.random.Generator):
        return source
    return np.random.default_rng(source)


def random_filler(rng: np.random.Generator, length: int) -> str:
    idx = rng.integers(0, len(_ALPHABET_CODES), size=length, dtype=np.uint8)
    return _ALPHABET_CODES[idx].tobytes().decode("ascii")


def _validate_size(size_mb: Any) -> int:
    if isinstance(size_mb, bool) or not isinstance(size_mb, (int, np.integer)):
        raise MalformedPayloadError(f"sample size must be a positive integer (MB), got {size_mb!r}")
    if size_mb <= 0:
        raise MalformedPayloadError(f"sample size must be a positive integer (MB), got {size_mb!r}")
    return int(size_mb)


def generate_sample_text(
    size_mb: Any,
    reporter: ProgressReporter | None = None,
    rng: np.random.Generator | int | None = None,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    progress_stride: int = DEFAULT_PROGRESS_STRIDE,
) -> str:
    size_mb = _validate_size(size_mb)
    reporter = reporter or ProgressReporter()
    generator = make_rng(rng)
    chunk_size = max(1, int(chunk_size))

    target = size_mb * BYTES_PER_MB
    total_chunks = (target + chunk_size - 1) // chunk_size
    parts: list[str] = [SAMPLE_HEADER]
    generated = 0
    for i in range(total_chunks):
        chunk = random_filler(generator, chunk_size)
        # Overshoot of the last chunk is cut off here rather than after joining.
        remaining = target - generated
        if len(chunk) > remaining:
            chunk = chunk[:remaining]
        parts.append(chunk)
        generated += len(chunk)
        reporter.chunk(
            i,
            total_chunks,
            progress_stride,
            round_percent(i + 1, total_chunks),
            f"Generating sample: {generated / BYTES_PER_MB:.1f}MB / {size_mb}MB",
        )

    _logger.debug("generated sample: %d MB in %d chunk(s)", size_mb, total_chunks)
    return "".join(parts)


def generate_sample(
    size_mb: Any,
    reporter: ProgressReporter | None = None,
    rng: np.random.Generator | int | None = None,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    progress_stride: int = DEFAULT_PROGRESS_STRIDE,
) -> SampleResultMessage:
    start_ts = time.perf_counter()
    text = generate_sample_text(size_mb, reporter, rng, chunk_size=chunk_size, progress_stride=progress_stride)
    elapsed_ms = (time.perf_counter() - start_ts) * 1000.0
    return SampleResultMessage(base64=text, metrics=PerformanceMetrics(elapsed_ms=elapsed_ms, byte_size=len(text)))
