"""Worker that runs conversion requests on a background thread.

The worker is moved onto a dedicated QThread by `MessageDispatcher`; its
`process` slot is invoked through a queued connection, so a request runs to
completion on that thread before the next one is picked up. Every outgoing
message is tagged with the request id it belongs to.
"""

from __future__ import annotations

from PySide6.QtCore import QObject, Signal, Slot

from b64_converter.logger import get_logger

from .engine_core import ConversionEngine
from .messages import ConversionRequest, ErrorMessage, ProgressMessage

_logger = get_logger("conversion_worker")


class ConversionWorker(QObject):
    """Background worker that feeds requests to a `ConversionEngine`."""

    # Emits: request_id, message (ProgressMessage or a terminal message)
    message = Signal(str, object)

    def __init__(self, engine: ConversionEngine | None = None, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._engine = engine or ConversionEngine()

    @property
    def engine(self) -> ConversionEngine:
        return self._engine

    @Slot(str, object)
    def process(self, request_id: str, request: object) -> None:
        """Run one request; emits its progress messages, then exactly one terminal message."""
        if not isinstance(request, ConversionRequest):
            self.message.emit(request_id, ErrorMessage(message=f"invalid request object: {type(request).__name__}"))
            return

        def _emit_progress(msg: ProgressMessage) -> None:
            self.message.emit(request_id, msg)

        _logger.debug("worker: request %s action=%s", request_id, request.action)
        terminal = self._engine.handle(request, _emit_progress)
        self.message.emit(request_id, terminal)
