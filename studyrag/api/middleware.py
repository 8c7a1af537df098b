"""API middleware: CORS, request logging, and error handling.

Provides helper functions and middleware classes to configure cross-origin
resource sharing, structured request logging (via structlog), and automatic
conversion of ``StudyRagError`` subclasses into JSON ``ErrorResponse``
bodies with a status code chosen by error type.

Starlette middleware is a stack (last added, first executed).  In
``main.py`` ErrorHandlingMiddleware is added before
RequestLoggingMiddleware, so the logger sees the final status code even
when an error was turned into a JSON body.
"""

from __future__ import annotations

import time

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from studyrag.api.schemas import ErrorResponse
from studyrag.utils.errors import (
    ChunkIndexConflictError,
    ChunkStoreError,
    ConfigurationError,
    EmbeddingProviderError,
    EmbeddingSpaceMismatchError,
    ExtractionError,
    StudyRagError,
    UnknownDocumentError,
)
from studyrag.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

# Most specific class first; the first match in the exception's MRO wins.
_STATUS_CODES: dict[type[StudyRagError], int] = {
    UnknownDocumentError: 404,
    ChunkIndexConflictError: 409,
    ChunkStoreError: 500,
    ExtractionError: 422,
    EmbeddingProviderError: 502,
    EmbeddingSpaceMismatchError: 409,
    ConfigurationError: 400,
    StudyRagError: 500,
}


def status_code_for(exc: StudyRagError) -> int:
    """Return the HTTP status code mapped to *exc*'s type."""
    for cls in type(exc).__mro__:
        if cls in _STATUS_CODES:
            return _STATUS_CODES[cls]
    return 500


# ---------------------------------------------------------------------------
# CORS
# ---------------------------------------------------------------------------


def configure_cors(app: FastAPI, *, allowed_origins: list[str] | None = None) -> None:
    """Add CORS middleware to the FastAPI application.

    Parameters
    ----------
    app:
        The FastAPI application instance.
    allowed_origins:
        Explicit list of allowed origins.  Defaults to ``["*"]`` for
        development; override with specific origins in production.
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
    """Catch ``StudyRagError`` subclasses and return structured JSON errors.

    The client receives only the exception class name and its message;
    stack traces stay in the server log.  Exceptions outside the
    hierarchy bubble up to FastAPI's default 500 handler.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        try:
            return await call_next(request)
        except StudyRagError as exc:
            status_code = status_code_for(exc)
            log = _logger.error if status_code >= 500 else _logger.warning
            log(
                "application_error",
                error_type=type(exc).__name__,
                message=exc.message,
                provider=exc.provider_name,
                path=str(request.url.path),
                status=status_code,
            )
            body = ErrorResponse(
                error=type(exc).__name__,
                detail=exc.message,
            )
            return JSONResponse(
                status_code=status_code,
                content=body.model_dump(),
            )
