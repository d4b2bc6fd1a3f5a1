"""Prometheus metrics definitions and helpers."""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests processed",
    ("method", "route", "status"),
)

REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ("method", "route"),
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

ERROR_COUNTER = Counter(
    "app_internal_errors_total",
    "Number of requests ending in internal server error responses",
    ("method", "route"),
)

SESSIONS_SUBMITTED = Counter(
    "agrivoice_sessions_submitted_total",
    "Voice sessions accepted for processing",
    ("language",),
)

SESSIONS_FINISHED = Counter(
    "agrivoice_sessions_finished_total",
    "Voice sessions that reached a terminal status",
    ("status",),
)

STAGE_LATENCY = Histogram(
    "agrivoice_pipeline_stage_duration_seconds",
    "Duration of one session pipeline stage, port call plus store write",
    ("stage", "outcome"),
    buckets=(0.1, 0.25, 0.5, 1.0, 2.0, 4.0, 8.0, 15.0, 30.0, 60.0),
)

SESSIONS_IN_FLIGHT = Gauge(
    "agrivoice_sessions_in_flight",
    "Background session pipelines currently running",
)


def observe_request(
    method: str,
    route: str,
    status_code: int,
    duration_seconds: float,
) -> None:
    """Record metrics for a completed HTTP request."""

    safe_route = route or "unknown"
    safe_method = method or "UNKNOWN"
    observed_duration = duration_seconds if duration_seconds >= 0 else 0

    REQUEST_COUNT.labels(
        method=safe_method,
        route=safe_route,
        status=str(status_code),
    ).inc()
    REQUEST_LATENCY.labels(method=safe_method, route=safe_route).observe(observed_duration)

    if status_code >= 500:
        ERROR_COUNTER.labels(method=safe_method, route=safe_route).inc()


def observe_stage(stage: str, outcome: str, duration_seconds: float) -> None:
    """Record how long a pipeline stage took and whether it succeeded."""

    STAGE_LATENCY.labels(stage=stage, outcome=outcome).observe(max(0.0, duration_seconds))


def record_session_submitted(language: str) -> None:
    SESSIONS_SUBMITTED.labels(language=language).inc()


def record_session_finished(status: str) -> None:
    SESSIONS_FINISHED.labels(status=status).inc()
