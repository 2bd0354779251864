"""Conversion engine: dispatches one request to its operation.

`ConversionEngine.handle` is synchronous and knows nothing about threads.
`ConversionWorker` runs it on a QThread, and tests call it directly.
For every request it emits zero or more progress messages through `emit`,
then returns exactly one terminal message. No exception escapes `handle`.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from b64_converter.logger import get_logger

from . import encoder, patterns, sample
from .errors import UnrecognizedActionError, error_kind
from .messages import (
    Action,
    ConversionRequest,
    ErrorMessage,
    ExtractResultMessage,
    PerformanceMetrics,
    ProgressMessage,
    RequestState,
    TerminalMessage,
)
from .metrics import metrics
from .progress import ProgressReporter

if TYPE_CHECKING:
    from b64_converter.settings_manager import SettingsManager

_logger = get_logger("engine_core")

Emit = Callable[[ProgressMessage], None]


class ConversionEngine:
    def __init__(
        self,
        encode_chunk_size: int = encoder.DEFAULT_CHUNK_SIZE,
        encode_progress_stride: int = encoder.DEFAULT_PROGRESS_STRIDE,
        sample_chunk_size: int = sample.DEFAULT_CHUNK_SIZE,
        sample_progress_stride: int = sample.DEFAULT_PROGRESS_STRIDE,
        sample_seed: int | None = None,
    ) -> None:
        self.encode_chunk_size = int(encode_chunk_size)
        self.encode_progress_stride = int(encode_progress_stride)
        self.sample_chunk_size = int(sample_chunk_size)
        self.sample_progress_stride = int(sample_progress_stride)
        self.sample_seed = sample_seed
        self._handlers: dict[Action, Callable[[ConversionRequest, ProgressReporter], TerminalMessage]] = {
            Action.EXTRACT: self._extract,
            Action.GENERATE_SAMPLE: self._generate_sample,
            Action.ENCODE: self._encode,
        }

    @classmethod
    def from_settings(cls, settings: SettingsManager) -> ConversionEngine:
        return cls(
            encode_chunk_size=settings.encode_chunk_size,
            encode_progress_stride=settings.encode_progress_stride,
            sample_chunk_size=settings.sample_chunk_size,
            sample_progress_stride=settings.sample_progress_stride,
            sample_seed=settings.sample_seed,
        )

    def handle(self, request: ConversionRequest, emit: Emit | None = None) -> TerminalMessage:
        action = Action.parse(request.action)
        if action is None:
            metrics.inc("engine.unknown_action")
            _logger.warning("unrecognized action: %r", request.action)
            exc = UnrecognizedActionError(f"Unknown action: {request.action}")
            return ErrorMessage(message=str(exc), error_kind=exc.kind)

        metrics.inc(f"engine.requests.{action.value}")
        _logger.debug("request %s: %s", action.value, RequestState.RUNNING.value)
        reporter = ProgressReporter(emit)
        try:
            with metrics.timed(f"engine.duration.{action.value}"):
                result = self._handlers[action](request, reporter)
        except Exception as exc:
            kind = error_kind(exc)
            metrics.inc(f"engine.errors.{kind}")
            _logger.error(
                "request %s: %s (%s): %s", action.value, RequestState.FAILED.value, kind, exc, exc_info=True
            )
            return ErrorMessage(message=str(exc), error_kind=kind)

        _logger.debug("request %s: %s", action.value, RequestState.COMPLETED.value)
        return result

    @staticmethod
    def _option(request: ConversionRequest, key: str, default: Any) -> Any:
        options = request.options or {}
        return options.get(key, default)

    def _extract(self, request: ConversionRequest, reporter: ProgressReporter) -> TerminalMessage:
        start_ts = time.perf_counter()
        results = patterns.extract_images(request.data, reporter)
        elapsed_ms = (time.perf_counter() - start_ts) * 1000.0
        return ExtractResultMessage(
            results=results,
            metrics=PerformanceMetrics(elapsed_ms=elapsed_ms, byte_size=len(request.data)),
        )

    def _encode(self, request: ConversionRequest, reporter: ProgressReporter) -> TerminalMessage:
        return encoder.encode(
            request.data,
            reporter,
            chunk_size=int(self._option(request, "chunk_size", self.encode_chunk_size)),
            progress_stride=int(self._option(request, "progress_stride", self.encode_progress_stride)),
        )

    def _generate_sample(self, request: ConversionRequest, reporter: ProgressReporter) -> TerminalMessage:
        return sample.generate_sample(
            request.data,
            reporter,
            rng=self._option(request, "seed", self.sample_seed),
            chunk_size=int(self._option(request, "chunk_size", self.sample_chunk_size)),
            progress_stride=int(self._option(request, "progress_stride", self.sample_progress_stride)),
        )
