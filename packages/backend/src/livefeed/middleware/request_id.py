"""Request ID middleware — correlation ID + access log per request.

Learn: Every request gets an ID, either from the incoming X-Request-ID
header or freshly generated. It's bound to structlog's contextvars, so
hub log lines emitted while handling the request (hub.subscribed,
ingest.published, ...) carry it too, and it's echoed back in the
response header.

For /events the "response" is the start of a stream that may stay open
for hours, so the access log line marks when headers went out, not when
the connection ended. hub.disconnected covers the end.
"""

import time
import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = structlog.get_logger()


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Generate and propagate a request ID, then log the response."""

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )

        started = time.perf_counter()
        response: Response = await call_next(request)
        response.headers["X-Request-ID"] = request_id

        logger.debug(
            "http.response",
            status=response.status_code,
            streaming=response.headers.get("content-type", "").startswith("text/event-stream"),
            elapsed_ms=round((time.perf_counter() - started) * 1000, 2),
        )
        return response
