"""API middleware: CORS, request logging, and error handling.

Starlette runs middleware last-added-first, so with the order used in
``src/main.py`` the request logger wraps the error handler and logs the
final status code even when an error was converted to JSON.

:class:`ErrorHandlingMiddleware` turns :class:`BrainBrawlError` subclasses
into an :class:`ErrorResponse` with a status code from
:func:`status_for_error` and the error's ``retryable`` flag.
"""

from __future__ import annotations

import time

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from src.api.schemas import ErrorResponse
from src.utils.errors import (
    BrainBrawlError,
    ConfigurationError,
    ExtractionFailedError,
    ProviderUnavailableError,
    QuotaExceededError,
    RateLimitError,
    UnsupportedFormatError,
)
from src.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

_STATUS_BY_ERROR: dict[type[BrainBrawlError], int] = {
    UnsupportedFormatError: 415,
    ExtractionFailedError: 422,
    QuotaExceededError: 403,
    RateLimitError: 429,
    ProviderUnavailableError: 503,
    ConfigurationError: 500,
}
_STATUS_BY_NAME: dict[str, int] = {cls.__name__: code for cls, code in _STATUS_BY_ERROR.items()}

# Remaining BrainBrawlErrors are upstream provider or output problems.
_DEFAULT_ERROR_STATUS = 502


def status_for_error(error: type[BrainBrawlError] | str) -> int:
    """HTTP status for an error class, or for its class name."""
    if isinstance(error, str):
        return _STATUS_BY_NAME.get(error, _DEFAULT_ERROR_STATUS)
    for cls in error.__mro__:
        if cls in _STATUS_BY_ERROR:
            return _STATUS_BY_ERROR[cls]
    return _DEFAULT_ERROR_STATUS


# ---------------------------------------------------------------------------
# CORS
# ---------------------------------------------------------------------------


def configure_cors(app: FastAPI, *, allowed_origins: list[str] | None = None) -> None:
    """Add CORS middleware.  Defaults to ``["*"]``; pass real origins in production."""
    origins = allowed_origins or ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


# ---------------------------------------------------------------------------
# Request Logging
# ---------------------------------------------------------------------------


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log every HTTP request with method, path, status code, and duration."""

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        start = time.perf_counter()
        response: Response | None = None

        try:
            response = await call_next(request)
            return response
        finally:
            duration_ms = round((time.perf_counter() - start) * 1000, 2)
            status_code = response.status_code if response else 500
            _logger.info(
                "http_request",
                method=request.method,
                path=str(request.url.path),
                status=status_code,
                duration_ms=duration_ms,
            )


# ---------------------------------------------------------------------------
# Error Handling
# ---------------------------------------------------------------------------


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Catch ``BrainBrawlError`` subclasses and return structured JSON errors.

    Stack traces stay in the server log; the client sees the error class
    name, its message and whether retrying may help.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        try:
            return await call_next(request)
        except BrainBrawlError as exc:
            status_code = status_for_error(type(exc))
            _logger.error(
                "application_error",
                error_type=type(exc).__name__,
                message=exc.message,
                provider=exc.provider_name,
                retryable=exc.retryable,
                status=status_code,
                path=str(request.url.path),
            )
            body = ErrorResponse(
                error=type(exc).__name__,
                detail=exc.message,
                retryable=exc.retryable,
            )
            return JSONResponse(status_code=status_code, content=body.model_dump())
