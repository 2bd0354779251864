"""Error taxonomy for conversion requests.

Only the message string crosses the worker boundary; `kind` stays attached
to the in-process `ErrorMessage` so callers and logs can still tell failures
apart.
"""

from __future__ import annotations

INTERNAL_FAILURE = "internal_failure"


class ConversionError(Exception):
    """Base class for failures the engine reports as terminal errors."""

    kind = INTERNAL_FAILURE


class UnrecognizedActionError(ConversionError):
    kind = "unrecognized_action"


class MalformedPayloadError(ConversionError):
    kind = "malformed_payload"


class WorkerNotReadyError(ConversionError):
    kind = "worker_not_ready"


class WorkerBusyError(ConversionError):
    kind = "worker_busy"


def error_kind(exc: BaseException) -> str:
    if isinstance(exc, ConversionError):
        return exc.kind
    return INTERNAL_FAILURE
