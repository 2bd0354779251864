"""Conversion engine - background base64 image processing.

This package provides the worker-side operations and the caller-side
dispatcher:
- Extraction of embedded base64 images from text (patterns)
- Chunked byte-to-base64 encoding (encoder)
- Synthetic large samples for throughput testing (sample)
- Request dispatch and the message protocol (engine_core, messages)

Usage:
    from b64_converter.engine import MessageDispatcher

    dispatcher = MessageDispatcher()
    dispatcher.start()
    dispatcher.result.connect(on_result)
    dispatcher.extract(text)
"""

from .engine_core import ConversionEngine
from .messages import Action, ConversionRequest, ExtractedImage, SourcePattern

try:
    from .dispatcher import MessageDispatcher, Readiness, RequestHandle
except Exception:  # pragma: no cover - allow importing the pure engine without PySide6
    MessageDispatcher = None
    Readiness = None
    RequestHandle = None

__all__ = [
    "Action",
    "ConversionEngine",
    "ConversionRequest",
    "ExtractedImage",
    "MessageDispatcher",
    "Readiness",
    "RequestHandle",
    "SourcePattern",
]
