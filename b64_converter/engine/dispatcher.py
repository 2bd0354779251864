"""Caller-side entry point for background conversions.

Usage:
    dispatcher = MessageDispatcher()
    dispatcher.start()
    dispatcher.progress.connect(on_progress)   # (request_id, percent, label)
    dispatcher.result.connect(on_result)       # (request_id, result message)
    dispatcher.error.connect(on_error)         # (request_id, message text)
    handle = dispatcher.extract(text)
    handle.future.add_done_callback(...)

Only one request may be in flight at a time. A submission made while another
is running is rejected: its handle comes back already failed with a
`WorkerBusyError` message. Messages from the worker are matched to handles by
request id, and anything that does not belong to the active request is
dropped.
"""

from __future__ import annotations

import uuid
from collections.abc import Callable
from concurrent.futures import Future
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from PySide6.QtCore import QObject, QThread, QTimer, Signal, Slot

from b64_converter.logger import get_logger

from .conversion_worker import ConversionWorker
from .engine_core import ConversionEngine
from .errors import ConversionError, WorkerBusyError, WorkerNotReadyError
from .messages import (
    Action,
    ConversionRequest,
    ErrorMessage,
    ProgressMessage,
    RequestState,
    TerminalMessage,
)

_logger = get_logger("dispatcher")

_SHUTDOWN_WAIT_MS = 5000


class Readiness(str, Enum):
    UNINITIALIZED = "uninitialized"
    READY = "ready"
    FAILED = "failed"


@dataclass(eq=False)
class RequestHandle:
    """Per-request context: what was sent, what has come back so far, and how it ended.

    `future` resolves to the terminal message (a result or an `ErrorMessage`)
    on the dispatcher's thread. Do not block on it from that same thread; the
    messages that complete it are delivered by its event loop.
    """

    request_id: str
    request: ConversionRequest
    state: RequestState = RequestState.RECEIVED
    progress: list[ProgressMessage] = field(default_factory=list)
    future: Future = field(default_factory=Future)

    def done(self) -> bool:
        return self.future.done()

    @property
    def terminal(self) -> TerminalMessage | None:
        return self.future.result() if self.future.done() else None

    @property
    def failed(self) -> bool:
        return self.state is RequestState.FAILED


class MessageDispatcher(QObject):
    """Sends requests to a `ConversionWorker` thread and routes its replies."""

    progress = Signal(str, int, str)  # request_id, percent, label
    result = Signal(str, object)  # request_id, result message
    error = Signal(str, str)  # request_id, message

    # Queued into the worker thread
    _request_posted = Signal(str, object)

    def __init__(
        self,
        engine: ConversionEngine | None = None,
        parent: QObject | None = None,
        thread_factory: Callable[[QObject], QThread] | None = None,
    ) -> None:
        super().__init__(parent)
        self._engine = engine or ConversionEngine()
        self._thread_factory = thread_factory or QThread
        self._thread: QThread | None = None
        self._worker: ConversionWorker | None = None
        self._readiness = Readiness.UNINITIALIZED
        self._active: RequestHandle | None = None

    @property
    def readiness(self) -> Readiness:
        return self._readiness

    @property
    def is_busy(self) -> bool:
        return self._active is not None

    def start(self) -> bool:
        """Start the worker thread; returns False (and stays FAILED) if startup raises."""
        if self._readiness is Readiness.READY:
            return True
        try:
            thread = self._thread_factory(self)
            worker = ConversionWorker(self._engine)
            worker.moveToThread(thread)
            self._request_posted.connect(worker.process)
            worker.message.connect(self._on_worker_message)
            thread.finished.connect(worker.deleteLater)
            thread.start()
        except Exception as exc:
            self._readiness = Readiness.FAILED
            _logger.error("worker thread startup failed: %s", exc, exc_info=True)
            return False
        self._thread = thread
        self._worker = worker
        self._readiness = Readiness.READY
        _logger.debug("dispatcher ready")
        return True

    def shutdown(self) -> None:
        thread = self._thread
        if thread is not None:
            thread.quit()
            if not thread.wait(_SHUTDOWN_WAIT_MS):
                _logger.warning("worker thread did not stop within %d ms", _SHUTDOWN_WAIT_MS)
        self._thread = None
        self._worker = None
        self._readiness = Readiness.UNINITIALIZED
        active, self._active = self._active, None
        if active is not None:
            self._finish(active, ErrorMessage(message="dispatcher shut down before completion"))

    # ═══════════════════════════════════════════════════════════════════════
    # Submission API
    # ═══════════════════════════════════════════════════════════════════════

    def submit(self, action: Action | str, data: Any = None, options: dict[str, Any] | None = None) -> RequestHandle:
        name = action.value if isinstance(action, Action) else str(action)
        request = ConversionRequest(action=name, data=data, options=dict(options or {}))
        handle = RequestHandle(request_id=uuid.uuid4().hex, request=request)
        # Requests cannot be cancelled; a RUNNING future refuses cancel().
        handle.future.set_running_or_notify_cancel()

        if self._readiness is not Readiness.READY:
            self._reject(handle, WorkerNotReadyError(f"conversion worker is not ready ({self._readiness.value})"))
            return handle
        if self._active is not None:
            self._reject(handle, WorkerBusyError(f"request {self._active.request_id} is still running"))
            return handle

        self._active = handle
        _logger.debug("submit %s action=%s", handle.request_id, name)
        self._request_posted.emit(handle.request_id, request)
        return handle

    def extract(self, text: str) -> RequestHandle:
        return self.submit(Action.EXTRACT, text)

    def encode(self, data: Any, **options: Any) -> RequestHandle:
        return self.submit(Action.ENCODE, data, options)

    def generate_sample(self, size_mb: int, **options: Any) -> RequestHandle:
        return self.submit(Action.GENERATE_SAMPLE, size_mb, options)

    # ═══════════════════════════════════════════════════════════════════════
    # Routing
    # ═══════════════════════════════════════════════════════════════════════

    def _reject(self, handle: RequestHandle, exc: ConversionError) -> None:
        _logger.warning("request %s rejected: %s", handle.request_id, exc)
        msg = ErrorMessage(message=str(exc), error_kind=exc.kind)
        handle.state = RequestState.FAILED
        handle.future.set_result(msg)
        # Deliver asynchronously so callers never see a signal before submit() returns.
        QTimer.singleShot(0, lambda: self.error.emit(handle.request_id, msg.message))

    def _finish(self, handle: RequestHandle, msg: TerminalMessage) -> None:
        if isinstance(msg, ErrorMessage):
            handle.state = RequestState.FAILED
            handle.future.set_result(msg)
            self.error.emit(handle.request_id, msg.message)
        else:
            handle.state = RequestState.COMPLETED
            handle.future.set_result(msg)
            self.result.emit(handle.request_id, msg)

    @Slot(str, object)
    def _on_worker_message(self, request_id: str, msg: object) -> None:
        handle = self._active
        if handle is None or handle.request_id != request_id:
            _logger.warning("dropping message for unknown request %s", request_id)
            return

        if isinstance(msg, ProgressMessage):
            if handle.state is RequestState.RECEIVED:
                handle.state = RequestState.RUNNING
            handle.progress.append(msg)
            self.progress.emit(request_id, msg.percent, msg.label)
            return

        # Clear first so result/error handlers may submit the next request.
        self._active = None
        self._finish(handle, msg)  # type: ignore[arg-type]
