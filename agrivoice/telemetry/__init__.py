"""Telemetry helpers and metrics."""

from .metrics import (
    ERROR_COUNTER,
    REQUEST_COUNT,
    REQUEST_LATENCY,
    SESSIONS_FINISHED,
    SESSIONS_IN_FLIGHT,
    SESSIONS_SUBMITTED,
    STAGE_LATENCY,
    observe_request,
    observe_stage,
    record_session_finished,
    record_session_submitted,
)

__all__ = [
    "ERROR_COUNTER",
    "REQUEST_COUNT",
    "REQUEST_LATENCY",
    "SESSIONS_FINISHED",
    "SESSIONS_IN_FLIGHT",
    "SESSIONS_SUBMITTED",
    "STAGE_LATENCY",
    "observe_request",
    "observe_stage",
    "record_session_finished",
    "record_session_submitted",
]
