"""Centralized error handling for the API.

Every error leaves the service as ``{"error": "<message>"}`` with the
matching HTTP status. Diagnostics (stderr, tracebacks) are logged, never
returned to clients.
"""

from typing import Any, Dict, Type

import structlog
from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.status import (
    HTTP_400_BAD_REQUEST,
    HTTP_401_UNAUTHORIZED,
    HTTP_500_INTERNAL_SERVER_ERROR,
)

from extractor_api.extractors.exceptions import ExtractionError

logger = structlog.get_logger(__name__)


class ErrorMessage:
    """Client-facing error messages."""

    MISSING_URL = "Missing url parameter"
    INVALID_URL = "Invalid url"
    AUTH_FAILED = "Missing or invalid API key"
    RATE_LIMIT_EXCEEDED = "Too many requests, please try again later."
    EXTRACTION_FAILED = "Failed to extract formats"
    INTERNAL_ERROR = "Internal server error"


# Exception type to (status, client message)
# Order matters: subclasses must come before their base classes
EXCEPTION_TO_ERROR: Dict[Type[Exception], tuple] = {
    ExtractionError: (HTTP_500_INTERNAL_SERVER_ERROR, ErrorMessage.EXTRACTION_FAILED),
}


class APIError(Exception):
    """Error raised by route handlers and rendered as ``{"error": message}``."""

    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        self.message = message
        super().__init__(message)

    @classmethod
    def missing_url(cls) -> "APIError":
        return cls(HTTP_400_BAD_REQUEST, ErrorMessage.MISSING_URL)

    @classmethod
    def invalid_url(cls) -> "APIError":
        return cls(HTTP_400_BAD_REQUEST, ErrorMessage.INVALID_URL)

    @classmethod
    def unauthorized(cls) -> "APIError":
        return cls(HTTP_401_UNAUTHORIZED, ErrorMessage.AUTH_FAILED)


def error_body(message: str) -> Dict[str, Any]:
    return {"error": message}


def map_exception_to_api_error(exc: Exception) -> APIError:
    """Map pipeline exceptions to APIError, falling back to a generic 500."""
    for exc_type, (status_code, message) in EXCEPTION_TO_ERROR.items():
        if isinstance(exc, exc_type):
            return APIError(status_code, message)
    return APIError(HTTP_500_INTERNAL_SERVER_ERROR, ErrorMessage.INTERNAL_ERROR)


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Convert any exception into an ``{"error": ...}`` JSON response.

    Args:
        request: The incoming request.
        exc: The exception that was raised.

    Returns:
        JSONResponse with the error body and status code.
    """
    headers = None

    if isinstance(exc, APIError):
        status_code, message = exc.status_code, exc.message
        logger.info("api_error", status_code=status_code, message=message, path=request.url.path)

    elif isinstance(exc, StarletteHTTPException):
        status_code = exc.status_code
        message = str(exc.detail) if exc.detail else "An error occurred"
        headers = getattr(exc, "headers", None)
        logger.info("http_exception", status_code=status_code, path=request.url.path)

    elif isinstance(exc, RequestValidationError):
        status_code = HTTP_400_BAD_REQUEST
        message = "Invalid request parameters"
        logger.info("validation_error", errors=exc.errors(), path=request.url.path)

    elif isinstance(exc, ExtractionError):
        api_error = map_exception_to_api_error(exc)
        status_code, message = api_error.status_code, api_error.message
        logger.error(
            "extraction_failed",
            error_type=type(exc).__name__,
            error=str(exc),
            stderr=(getattr(exc, "stderr", "") or "")[:500] or None,
            path=request.url.path,
        )

    else:
        # Unexpected error - log with full traceback
        status_code = HTTP_500_INTERNAL_SERVER_ERROR
        message = ErrorMessage.INTERNAL_ERROR
        logger.error(
            "unhandled_exception",
            error_type=type(exc).__name__,
            error=str(exc),
            path=request.url.path,
            exc_info=exc,
        )

    return JSONResponse(status_code=status_code, content=error_body(message), headers=headers)


def register_exception_handlers(app: Any) -> None:
    """Route every error type through ``global_exception_handler``."""
    app.add_exception_handler(APIError, global_exception_handler)
    app.add_exception_handler(ExtractionError, global_exception_handler)
    app.add_exception_handler(StarletteHTTPException, global_exception_handler)
    app.add_exception_handler(RequestValidationError, global_exception_handler)
    app.add_exception_handler(Exception, global_exception_handler)
