"""
Error taxonomy and FastAPI exception handlers.

The application registers these handlers in ``main.py`` so all structured
error responses have a consistent shape:

    { "error": "<type>", "detail": "<message>" }

List endpoints never use that shape: they answer ``[]`` with the status code
of the error (see ``infraster.api.routers``).
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import DBAPIError, OperationalError, SQLAlchemyError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

logger = logging.getLogger(__name__)


# ── Base errors ────────────────────────────────────────────────────────

class AppError(Exception):
    """Generic application error (400)."""

    status_code = 400
    error = "app_error"

    def __init__(self, detail: str = "Bad request"):
        super().__init__(detail)
        self.detail = detail


class NotFoundError(AppError):
    """Resource not found (404)."""

    status_code = 404
    error = "not_found"

    def __init__(self, detail: str = "Not found"):
        super().__init__(detail)


class ForbiddenError(AppError):
    """Caller may not see this resource (403)."""

    status_code = 403
    error = "forbidden"

    def __init__(self, detail: str = "Forbidden"):
        super().__init__(detail)


class ClientInputError(AppError):
    """Malformed or missing request parameters (400)."""

    status_code = 400
    error = "client_input_error"

    def __init__(self, detail: str = "Invalid request parameters"):
        super().__init__(detail)


class UpstreamUnavailable(AppError):
    """The store could not be reached or timed out (503). Callers may retry."""

    status_code = 503
    error = "upstream_unavailable"

    def __init__(self, detail: str = "Store unavailable, try again later"):
        super().__init__(detail)


class InternalError(AppError):
    """Unexpected failure while composing or running a query (500)."""

    status_code = 500
    error = "internal_error"

    def __init__(self, detail: str = "An unexpected error occurred"):
        super().__init__(detail)


def classify_store_error(exc: Exception) -> AppError:
    """Map an exception raised while talking to the store onto the taxonomy.

    The returned error never carries the driver message: statement text and
    bound parameters stay in the server logs.
    """
    if isinstance(exc, AppError):
        return exc
    if isinstance(exc, (OperationalError, PoolTimeoutError)):
        return UpstreamUnavailable()
    if isinstance(exc, DBAPIError) and exc.connection_invalidated:
        return UpstreamUnavailable()
    return InternalError()


@contextmanager
def store_errors(operation: str) -> Iterator[None]:
    """Re-raise store exceptions raised inside the block as taxonomy errors.

    A ``ValueError`` here means a stored value (weekday label, exception kind)
    could not be decoded; it is an ``InternalError``, never a client error.
    """
    try:
        yield
    except (SQLAlchemyError, ValueError) as exc:
        error = classify_store_error(exc)
        logger.error("Store failure during %s (%s)", operation, error.error, exc_info=True)
        raise error from exc


# ── Handlers ───────────────────────────────────────────────────────────

def _body(exc: AppError) -> dict[str, str]:
    return {"error": exc.error, "detail": exc.detail}


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def _app(request: Request, exc: AppError) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content=_body(exc))

    @app.exception_handler(RequestValidationError)
    async def _request(request: Request, exc: RequestValidationError) -> JSONResponse:
        first = exc.errors()[0] if exc.errors() else {}
        where = ".".join(str(part) for part in first.get("loc", ())) or "request"
        error = ClientInputError(f"invalid parameter '{where}': {first.get('msg', 'invalid value')}")
        return JSONResponse(status_code=error.status_code, content=_body(error))

    @app.exception_handler(Exception)
    async def _unhandled(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
        error = classify_store_error(exc)
        return JSONResponse(status_code=error.status_code, content=_body(error))
