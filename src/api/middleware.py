"""API middleware — CORS, request logging, and error handling.

Provides helper functions and middleware classes to configure cross-origin
resource sharing, structured request logging (via structlog), and automatic
conversion of ``StudyMaterialError`` subclasses into JSON ``ErrorResponse``
bodies with a status code per failure class.

# ─── MIDDLEWARE EXECUTION ORDER ────────────────────────────────────────
#
# Starlette middleware is a stack (last added, first executed):
#
#   In main.py:
#     app.add_middleware(ErrorHandlingMiddleware)   # added 1st → inner
#     app.add_middleware(RequestLoggingMiddleware)  # added 2nd → outermost
#
#   Request flow:
#     Client → RequestLogging → ErrorHandling → route handler
#   Response flow:
#     Client ← RequestLogging ← ErrorHandling ← route handler
#
# So RequestLoggingMiddleware sees the *final* status code, including the
# one ErrorHandling picked for a structured JSON error.
#
# Each middleware extends BaseHTTPMiddleware and overrides dispatch().
# Inside dispatch(), call_next(request) passes to the next middleware
# or the actual route handler.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

# time.perf_counter gives a monotonic clock for request durations.
import time

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from src.api.schemas import ErrorResponse
from src.utils.errors import (
    ContentUnavailableError,
    GenerationError,
    GenerationErrorKind,
    InvalidConfigurationError,
    MalformedResponseError,
    PersistenceError,
    ProviderUnavailableError,
    RateLimitError,
    StudyMaterialError,
)
from src.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

# GenerationError carries a kind; each kind maps to the status a client
# can act on (429 means "slow down", 503 means "try again later").
_KIND_STATUS = {
    GenerationErrorKind.RATE_LIMITED: 429,
    GenerationErrorKind.PROVIDER_UNAVAILABLE: 503,
    GenerationErrorKind.MALFORMED_RESPONSE: 502,
    GenerationErrorKind.UNRETRYABLE: 502,
}

# Checked in order; subclasses before their bases.
_CLASS_STATUS: list[tuple[type[StudyMaterialError], int]] = [
    (RateLimitError, 429),
    (ProviderUnavailableError, 503),
    (MalformedResponseError, 502),
    (ContentUnavailableError, 422),
    (InvalidConfigurationError, 500),
    (PersistenceError, 500),
]


def status_for_error(exc: StudyMaterialError) -> int:
    """Return the HTTP status code a client should see for *exc*."""
    if isinstance(exc, GenerationError):
        return _KIND_STATUS.get(exc.kind, 502)
    for error_cls, status in _CLASS_STATUS:
        if isinstance(exc, error_cls):
            return status
    return 500


def error_response(exc: StudyMaterialError) -> JSONResponse:
    """Build the sanitized JSON error response for *exc*."""
    body = ErrorResponse(
        error=type(exc).__name__,
        detail=exc.message,
        kind=exc.kind.value if isinstance(exc, GenerationError) else None,
    )
    return JSONResponse(status_code=status_for_error(exc), content=body.model_dump())


# ---------------------------------------------------------------------------
# CORS
# ---------------------------------------------------------------------------


def configure_cors(app: FastAPI, *, allowed_origins: list[str] | None = None) -> None:
    """Add CORS middleware to the FastAPI application.

    Defaults to ``["*"]`` for development; restrict to the deployed
    front-end origin in production via ``CORS_ORIGINS``.

    # JUNIOR DEV NOTE: What is CORS?
    # CORS (Cross-Origin Resource Sharing) controls which domains can
    # make API requests to this server.  Browsers enforce it: a study
    # front-end served from one origin cannot call this API on another
    # origin unless the response carries the matching CORS headers.
    #
    # In development: allow ["*"] (all origins) for convenience.
    # In production: list the deployed front-end origin only.
    """
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
    """Catch ``StudyMaterialError`` subclasses and return structured JSON errors.

    Each failure class gets its own status code (429 rate limited, 503
    provider unavailable, 502 unusable model output, 422 no content, 500
    configuration or persistence) so clients can render distinct messages.
    Stack traces are logged server-side only, never sent to the client.

    # JUNIOR DEV NOTE: Security and error sanitization
    # This middleware is a security boundary.  Stack traces and file
    # paths stay in the logs; the client only sees the error class name,
    # its message and, for generation failures, the kind.  Only
    # StudyMaterialError subclasses are caught here; anything else bubbles
    # up to the framework's default 500 handler, which also hides internals.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        try:
            return await call_next(request)
        except StudyMaterialError as exc:
            _logger.error(
                "application_error",
                error_type=type(exc).__name__,
                message=exc.message,
                provider=exc.provider_name,
                path=str(request.url.path),
            )
            return error_response(exc)
