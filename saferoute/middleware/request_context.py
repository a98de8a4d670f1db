"""
Request Context Middleware.

Binds a request id into the structlog context so every log line emitted
while a batch is analysed (route_analyzed, intelligence_fallback_used,
route_decision_made, ...) can be tied back to the HTTP call that caused it.

An upstream X-Request-ID is reused only if it looks like an id; anything
else is replaced with a fresh UUID4. The id and the elapsed time are
echoed back as X-Request-ID / X-Response-Time.
"""

import re
import time
import uuid

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

logger = structlog.get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
_VALID_REQUEST_ID = re.compile(r"^[A-Za-z0-9._:-]{1,64}$")

# liveness checks would otherwise flood the log
QUIET_PATHS = frozenset({"/health"})


def resolve_request_id(header_value: str | None) -> str:
    if header_value and _VALID_REQUEST_ID.match(header_value):
        return header_value
    return str(uuid.uuid4())


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Request id, timing headers and a completion log line per request."""

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = resolve_request_id(request.headers.get(REQUEST_ID_HEADER))
        request.state.request_id = request_id

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )

        start = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = round((time.perf_counter() - start) * 1000, 2)

        response.headers[REQUEST_ID_HEADER] = request_id
        response.headers["X-Response-Time"] = f"{elapsed_ms}ms"

        if request.url.path not in QUIET_PATHS:
            log = logger.warning if response.status_code >= 400 else logger.info
            log("request_completed", status=response.status_code, elapsed_ms=elapsed_ms)
        return response
