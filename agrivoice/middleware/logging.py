"""Per-request access log with the session id pulled from the route."""

from __future__ import annotations

import json
import logging
import time
from datetime import datetime, timezone
from typing import Any

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

logger = logging.getLogger("agrivoice.middleware.structured")

COLOR_RESET = "\u001b[0m"
COLOR_GREEN = "\u001b[32m"
COLOR_CYAN = "\u001b[36m"
COLOR_YELLOW = "\u001b[33m"
COLOR_RED = "\u001b[31m"

_CONSOLE_FIELDS = (
    "timestamp",
    "method",
    "path",
    "status_code",
    "duration_ms",
    "session_id",
    "client_ip",
)


def _status_color(status_code: int) -> str:
    if status_code >= 500:
        return COLOR_RED
    if status_code >= 400:
        return COLOR_YELLOW
    if status_code >= 200:
        return COLOR_GREEN
    return COLOR_CYAN


def format_console_line(entry: dict[str, Any]) -> str:
    """Render ``entry`` as one coloured ``key=value`` line."""

    body = " ".join(
        f"{name}={entry[name] if entry.get(name) is not None else '-'}"
        for name in _CONSOLE_FIELDS
    )
    return f"{_status_color(entry.get('status_code') or 0)}{body}{COLOR_RESET}"


class StructuredLoggingMiddleware(BaseHTTPMiddleware):
    """Emit one access line per request; the JSON form goes out at DEBUG."""

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        started = time.perf_counter()
        entry: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "method": request.method,
            "path": request.url.path,
            "client_ip": request.client.host if request.client else None,
        }

        try:
            response = await call_next(request)
        except Exception as exc:
            entry.update(status_code=500, error=repr(exc))
            entry["duration_ms"] = round((time.perf_counter() - started) * 1000, 2)
            logger.exception(format_console_line(entry))
            raise

        entry["status_code"] = response.status_code
        entry["duration_ms"] = round((time.perf_counter() - started) * 1000, 2)
        entry["session_id"] = request.scope.get("path_params", {}).get("session_id")
        logger.info(format_console_line(entry))
        logger.debug(json.dumps(entry, default=str, separators=(",", ":")))
        return response
