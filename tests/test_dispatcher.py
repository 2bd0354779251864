import base64

import pytest

pytest.importorskip("PySide6")
pytest.importorskip("pytestqt")

from b64_converter.engine.dispatcher import MessageDispatcher, Readiness  # noqa: E402
from b64_converter.engine.messages import (  # noqa: E402
    EncodeResultMessage,
    ErrorMessage,
    ExtractResultMessage,
    ProgressMessage,
    RequestState,
    SampleResultMessage,
)
from b64_converter.engine.sample import SAMPLE_HEADER  # noqa: E402

WAIT_MS = 10_000
GIF_PAYLOAD = "R0lGODlhAQABAIAAAAAAAP///yH5BAEAAAAALAAAAAABAAEAAAIBRAA7"


@pytest.fixture
def dispatcher():
    d = MessageDispatcher()
    assert d.start()
    yield d
    d.shutdown()


def _record(d: MessageDispatcher) -> dict[str, list]:
    seen: dict[str, list] = {"progress": [], "result": [], "error": []}
    d.progress.connect(lambda rid, p, label: seen["progress"].append((rid, p, label)))
    d.result.connect(lambda rid, msg: seen["result"].append((rid, msg)))
    d.error.connect(lambda rid, message: seen["error"].append((rid, message)))
    return seen


def test_extract_round_trip_through_worker_thread(qtbot, dispatcher):
    seen = _record(dispatcher)
    assert dispatcher.readiness is Readiness.READY

    handle = dispatcher.extract(f"<img src='data:image/gif;base64,{GIF_PAYLOAD}'>")
    assert dispatcher.is_busy
    qtbot.waitUntil(handle.done, timeout=WAIT_MS)

    assert handle.state is RequestState.COMPLETED
    assert isinstance(handle.terminal, ExtractResultMessage)
    assert [r.source.value for r in handle.terminal.results] == ["data_uri", "html_img"]
    assert seen["result"] == [(handle.request_id, handle.terminal)]
    assert seen["error"] == []
    assert not dispatcher.is_busy

    percents = [p for _rid, p, _label in seen["progress"]]
    assert percents == [m.percent for m in handle.progress]
    assert percents == sorted(percents)
    assert percents[-1] == 100


def test_encode_and_sample_in_sequence(qtbot, dispatcher):
    data = bytes(range(256)) * 1000
    encode_handle = dispatcher.encode(data, chunk_size=3000, progress_stride=5)
    qtbot.waitUntil(encode_handle.done, timeout=WAIT_MS)

    assert isinstance(encode_handle.terminal, EncodeResultMessage)
    assert base64.b64decode(encode_handle.terminal.base64) == data
    assert all(isinstance(m, ProgressMessage) for m in encode_handle.progress)

    sample_handle = dispatcher.generate_sample(1, seed=9)
    qtbot.waitUntil(sample_handle.done, timeout=WAIT_MS)

    assert isinstance(sample_handle.terminal, SampleResultMessage)
    assert sample_handle.terminal.base64.startswith(SAMPLE_HEADER)
    assert sample_handle.request_id != encode_handle.request_id


def test_unknown_action_fails_without_progress(qtbot, dispatcher):
    seen = _record(dispatcher)
    handle = dispatcher.submit("rotate", b"")
    qtbot.waitUntil(handle.done, timeout=WAIT_MS)

    assert handle.state is RequestState.FAILED
    assert handle.progress == []
    assert seen["progress"] == []
    assert seen["result"] == []
    assert len(seen["error"]) == 1
    assert seen["error"][0][0] == handle.request_id


def test_second_request_while_running_is_rejected(qtbot, dispatcher):
    seen = _record(dispatcher)
    first = dispatcher.generate_sample(2, seed=1)
    # No events have been processed yet, so the first request cannot have finished.
    second = dispatcher.extract("data")

    assert second.done()
    assert second.failed
    assert isinstance(second.terminal, ErrorMessage)
    assert second.terminal.error_kind == "worker_busy"

    qtbot.waitUntil(first.done, timeout=WAIT_MS)
    assert first.state is RequestState.COMPLETED
    qtbot.waitUntil(lambda: len(seen["error"]) == 1, timeout=WAIT_MS)
    assert seen["error"][0][0] == second.request_id
    # No progress from the first request was routed to the rejected one.
    assert second.progress == []


def test_submit_before_start_is_rejected(qtbot):
    d = MessageDispatcher()
    seen = _record(d)
    handle = d.extract("anything")

    assert d.readiness is Readiness.UNINITIALIZED
    assert handle.failed
    assert handle.terminal.error_kind == "worker_not_ready"
    qtbot.waitUntil(lambda: len(seen["error"]) == 1, timeout=WAIT_MS)


def test_failed_startup_rejects_requests():
    def broken_thread(_parent):
        raise RuntimeError("cannot start thread")

    d = MessageDispatcher(thread_factory=broken_thread)
    assert d.start() is False
    assert d.readiness is Readiness.FAILED

    handle = d.encode(b"abc")
    assert handle.failed
    assert "failed" in handle.terminal.message


def test_messages_for_unknown_requests_are_dropped(dispatcher):
    seen = _record(dispatcher)
    dispatcher._on_worker_message("not-a-request", ProgressMessage(percent=5, label="x"))
    assert seen["progress"] == []


def test_shutdown_returns_to_uninitialized(dispatcher):
    dispatcher.shutdown()
    assert dispatcher.readiness is Readiness.UNINITIALIZED
    assert dispatcher.extract("x").failed


def test_request_future_cannot_be_cancelled(qtbot, dispatcher):
    seen = _record(dispatcher)
    handle = dispatcher.encode(b"abc" * 1000)

    assert handle.future.cancel() is False
    qtbot.waitUntil(handle.done, timeout=WAIT_MS)

    assert handle.state is RequestState.COMPLETED
    assert [rid for rid, _msg in seen["result"]] == [handle.request_id]
    assert seen["result"][0][1].base64 == base64.b64encode(b"abc" * 1000).decode("ascii")


def test_rejected_request_future_cannot_be_cancelled():
    handle = MessageDispatcher().extract("x")
    assert handle.future.cancel() is False
    assert handle.failed


def test_shutdown_fails_in_flight_request(qtbot, dispatcher):
    seen = _record(dispatcher)
    handle = dispatcher.generate_sample(2, seed=1)

    dispatcher.shutdown()

    assert handle.done()
    assert handle.failed
    assert isinstance(handle.terminal, ErrorMessage)
    assert not dispatcher.is_busy
    assert [rid for rid, _message in seen["error"]] == [handle.request_id]
    # A late terminal message from the stopped worker must not surface as a result.
    qtbot.wait(300)
    assert seen["result"] == []
