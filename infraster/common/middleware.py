"""
HTTP middleware shared by every route.

``CorrelationMiddleware`` reads ``X-Correlation-Id`` (or mints a UUID4), keeps
it in a context variable for the log filter, echoes it on the response and
writes one access line per request with status and duration.

``RequestSizeLimitMiddleware`` refuses bodies larger than ``MAX_BODY_BYTES``
with 413 before they are read. The search endpoint is a list endpoint, so
its refusal is an empty list like every other search failure.
"""

from __future__ import annotations

import contextvars
import logging
import time
import uuid
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from infraster.common.config import env_int

logger = logging.getLogger("infraster.access")

HEADER_NAME = "X-Correlation-Id"
MAX_BODY_BYTES = env_int("MAX_REQUEST_BODY_BYTES", 64 * 1024)

_LIST_BODY_PATHS = {"/search"}

_correlation_id_ctx: contextvars.ContextVar[str] = contextvars.ContextVar("correlation_id", default="")


def get_correlation_id() -> str:
    return _correlation_id_ctx.get("")


class CorrelationMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        cid = request.headers.get(HEADER_NAME) or str(uuid.uuid4())
        token = _correlation_id_ctx.set(cid)
        started = time.perf_counter()
        try:
            response = await call_next(request)
            response.headers[HEADER_NAME] = cid
            logger.info(
                "%s %s -> %d (%.1f ms)",
                request.method,
                request.url.path,
                response.status_code,
                (time.perf_counter() - started) * 1000,
            )
            return response
        finally:
            _correlation_id_ctx.reset(token)


class RequestSizeLimitMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        declared = request.headers.get("content-length", "")
        if declared.isdigit() and int(declared) > MAX_BODY_BYTES:
            logger.info("Rejected %s %s: body of %s bytes", request.method, request.url.path, declared)
            if request.url.path in _LIST_BODY_PATHS:
                return JSONResponse([], status_code=413)
            return JSONResponse(
                status_code=413,
                content={"error": "payload_too_large", "detail": f"Request body exceeds {MAX_BODY_BYTES} bytes"},
            )
        return await call_next(request)
