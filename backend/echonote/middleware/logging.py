"""
EchoNote Backend: Access Log Middleware
========================================

What:  One log line per HTTP request with method, path, status and duration.
How:   Level follows the status class: 5xx → ERROR, 4xx → WARNING,
       otherwise INFO. Health checks are not logged.

Example:
    2024-05-01T10:00:00 [INFO] echonote.access: POST /api/notes/…/process 200 4312.5ms [1f0c2a9b] from 127.0.0.1

Request bodies are never logged (note content and audio).
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from echonote.middleware.request_id import request_id_var

logger = logging.getLogger("echonote.access")

QUIET_PATHS = {"/health"}


def level_for_status(status: int) -> int:
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Access log with request ID correlation and duration."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if path in QUIET_PATHS:
            return await call_next(request)

        start_time = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start_time) * 1000

        rid = request_id_var.get("")
        client_ip = request.client.host if request.client else "unknown"
        status = response.status_code

        logger.log(
            level_for_status(status),
            "%s %s %d %.1fms [%s] from %s",
            request.method,
            path,
            status,
            duration_ms,
            rid,
            client_ip,
            extra={
                "request_id": rid,
                "method": request.method,
                "path": path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
            },
        )
        return response
