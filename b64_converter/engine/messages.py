"""Request and message types exchanged between the dispatcher and the worker.

Messages are plain dataclasses so they can travel through queued Qt signals
as `object` payloads. `to_dict()` renders the wire form used by front-end
code (camelCase keys, a `kind` discriminator); `message_from_dict` is its
inverse.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class Action(str, Enum):
    EXTRACT = "extract"
    GENERATE_SAMPLE = "generateSample"
    ENCODE = "encode"

    @classmethod
    def parse(cls, name: str) -> Action | None:
        for action in cls:
            if action.value == name:
                return action
        return None


class SourcePattern(str, Enum):
    """Which recognizer produced an extracted image."""

    DATA_URI = "data_uri"
    HTML_IMG = "html_img"
    CSS_URL = "css_url"
    WHOLE_CONTENT = "whole_content"

    @property
    def label(self) -> str:
        return _SOURCE_LABELS[self]


_SOURCE_LABELS = {
    SourcePattern.DATA_URI: "Data URI",
    SourcePattern.HTML_IMG: "HTML img",
    SourcePattern.CSS_URL: "CSS url",
    SourcePattern.WHOLE_CONTENT: "Whole content",
}


class RequestState(str, Enum):
    RECEIVED = "received"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True)
class ConversionRequest:
    # Kept as the raw string so unknown names reach the engine and fail there.
    action: str
    data: Any = None
    options: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"action": self.action, "data": self.data, "options": dict(self.options)}


@dataclass(frozen=True)
class PerformanceMetrics:
    elapsed_ms: float
    byte_size: int

    def to_dict(self) -> dict[str, Any]:
        return {"elapsedMs": self.elapsed_ms, "byteSize": self.byte_size}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PerformanceMetrics:
        return cls(elapsed_ms=float(data["elapsedMs"]), byte_size=int(data["byteSize"]))


@dataclass(frozen=True)
class ExtractedImage:
    base64: str
    mime_type: str
    source: SourcePattern

    def to_dict(self) -> dict[str, Any]:
        return {"base64": self.base64, "mimeType": self.mime_type, "source": self.source.value}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ExtractedImage:
        return cls(base64=data["base64"], mime_type=data["mimeType"], source=SourcePattern(data["source"]))


@dataclass(frozen=True)
class ProgressMessage:
    percent: int
    label: str
    kind = "progress"

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, "percent": self.percent, "label": self.label}


@dataclass(frozen=True)
class ExtractResultMessage:
    results: list[ExtractedImage]
    metrics: PerformanceMetrics
    kind = "extractResult"

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "results": [r.to_dict() for r in self.results],
            "metrics": self.metrics.to_dict(),
        }


@dataclass(frozen=True)
class SampleResultMessage:
    base64: str
    metrics: PerformanceMetrics
    kind = "sampleResult"

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, "base64": self.base64, "metrics": self.metrics.to_dict()}


@dataclass(frozen=True)
class EncodeResultMessage:
    base64: str
    metrics: PerformanceMetrics
    kind = "encodeResult"

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, "base64": self.base64, "metrics": self.metrics.to_dict()}


@dataclass(frozen=True)
class ErrorMessage:
    message: str
    # Not part of the wire dict
    error_kind: str = "internal_failure"
    kind = "error"

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, "message": self.message}


ResultMessage = ExtractResultMessage | SampleResultMessage | EncodeResultMessage
TerminalMessage = ResultMessage | ErrorMessage
Message = ProgressMessage | TerminalMessage


def is_terminal(msg: Message) -> bool:
    return not isinstance(msg, ProgressMessage)


def message_from_dict(data: dict[str, Any]) -> Message:
    """Rebuild a message object from its wire dict."""
    kind = data.get("kind")
    if kind == ProgressMessage.kind:
        return ProgressMessage(percent=int(data["percent"]), label=str(data.get("label", "")))
    if kind == ExtractResultMessage.kind:
        return ExtractResultMessage(
            results=[ExtractedImage.from_dict(r) for r in data.get("results", [])],
            metrics=PerformanceMetrics.from_dict(data["metrics"]),
        )
    if kind == SampleResultMessage.kind:
        return SampleResultMessage(base64=data["base64"], metrics=PerformanceMetrics.from_dict(data["metrics"]))
    if kind == EncodeResultMessage.kind:
        return EncodeResultMessage(base64=data["base64"], metrics=PerformanceMetrics.from_dict(data["metrics"]))
    if kind == ErrorMessage.kind:
        return ErrorMessage(message=str(data.get("message", "")))
    raise ValueError(f"unknown message kind: {kind!r}")
