from __future__ import annotations

import base64

import numpy as np
import pytest

from b64_converter.engine.encoder import aligned_chunk_size, encode, encode_chunked
from b64_converter.engine.errors import MalformedPayloadError
from b64_converter.engine.messages import ProgressMessage
from b64_converter.engine.progress import ProgressReporter


def _random_bytes(n: int, seed: int = 7) -> bytes:
    return np.random.default_rng(seed).integers(0, 256, size=n, dtype=np.uint8).tobytes()


@pytest.mark.parametrize("length", [0, 1, 2, 3, 4, 5, 17, 18, 19, 1000])
def test_chunked_encoding_matches_single_shot(length):
    data = _random_bytes(length)
    # Small chunks force many boundaries, including ones that are not a multiple of 3.
    encoded = encode_chunked(data, chunk_size=7)
    assert encoded == base64.b64encode(data).decode("ascii")
    assert base64.b64decode(encoded) == data


def test_default_chunking_on_buffer_larger_than_one_chunk():
    data = _random_bytes(200_003)
    assert encode_chunked(data) == base64.b64encode(data).decode("ascii")


def test_aligned_chunk_size():
    assert aligned_chunk_size(65536) == 65535
    assert aligned_chunk_size(6) == 6
    assert aligned_chunk_size(1) == 3


def test_empty_buffer_reports_single_completion():
    events: list[ProgressMessage] = []
    assert encode_chunked(b"", ProgressReporter(events.append)) == ""
    assert [e.percent for e in events] == [100]


def test_progress_stride_and_final_chunk():
    events: list[ProgressMessage] = []
    # 30 bytes in 3-byte chunks -> 10 chunks; stride 3 reports after chunks 3, 6, 9 and 10.
    encode_chunked(bytes(30), ProgressReporter(events.append), chunk_size=3, progress_stride=3)

    percents = [e.percent for e in events]
    assert percents == [30, 60, 90, 100]
    assert events[-1].label == "0.0MB / 0.0MB"


def test_progress_is_monotonic_and_ends_at_100():
    events: list[ProgressMessage] = []
    encode_chunked(_random_bytes(100_000), ProgressReporter(events.append), chunk_size=999, progress_stride=2)

    percents = [e.percent for e in events]
    assert percents == sorted(percents)
    assert percents[-1] == 100


def test_accepts_other_buffer_types():
    arr = np.arange(5, dtype=np.uint16)
    assert encode_chunked(arr) == base64.b64encode(arr.tobytes()).decode("ascii")
    assert encode_chunked(bytearray(b"abc")) == "YWJj"
    assert encode_chunked(memoryview(b"abcd")) == "YWJjZA=="


@pytest.mark.parametrize("bad", ["text", 42, None, np.arange(10, dtype=np.uint8)[::2]])
def test_rejects_unreadable_buffers(bad):
    with pytest.raises(MalformedPayloadError):
        encode_chunked(bad)


def test_encode_result_carries_metrics():
    result = encode(b"hello world")
    assert result.base64 == "aGVsbG8gd29ybGQ="
    assert result.metrics.byte_size == 11
    assert result.metrics.elapsed_ms >= 0
    assert result.to_dict()["kind"] == "encodeResult"
