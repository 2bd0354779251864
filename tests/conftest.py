"""Pytest configuration.

The dispatcher and worker tests rely on queued signal delivery, which needs
a Qt application object (and its event loop, pumped by pytest-qt's
`qtbot`). A single `QApplication` is created for the whole session before
collection and shut down cleanly at the end.
"""

from __future__ import annotations

from typing import Any

import pytest

_APP: Any | None = None


def pytest_configure(config) -> None:  # noqa: ARG001
    """Ensure a QApplication exists before collecting/running tests."""

    # Import lazily so the pure engine tests still run without PySide6.
    try:
        from PySide6.QtWidgets import QApplication
    except ImportError:
        return

    global _APP

    app = QApplication.instance()
    if app is None:
        # Keep a strong ref so it isn't GC'd mid-session.
        _APP = QApplication([])
    else:
        _APP = app


def pytest_sessionfinish(session, exitstatus) -> None:  # noqa: ARG001
    """Attempt a clean Qt shutdown to avoid lingering threads at interpreter exit."""

    try:
        from PySide6.QtWidgets import QApplication
    except ImportError:
        return

    app = QApplication.instance()
    if app is None:
        return

    app.quit()
    app.processEvents()


@pytest.fixture
def fresh_metrics():
    from b64_converter.engine.metrics import metrics

    metrics.reset()
    yield metrics
    metrics.reset()
