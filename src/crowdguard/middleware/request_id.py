"""Request ID + access log middleware.

Learn: Every HTTP request gets an ID, either from the incoming X-Request-ID
header or freshly generated. It is bound to structlog's contextvars so
service-layer log lines (incident.created, ...) carry it, and echoed
back in the response header. WebSocket traffic bypasses this middleware
and binds its own connection_id instead.
"""

import time
import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = structlog.get_logger()


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Tag each request with an ID and log its outcome."""

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)

        started = time.perf_counter()
        response: Response = await call_next(request)
        logger.info(
            "http.request",
            method=request.method,
            path=request.url.path,
            status=response.status_code,
            duration_ms=round((time.perf_counter() - started) * 1000, 1),
        )

        response.headers["X-Request-ID"] = request_id
        return response
