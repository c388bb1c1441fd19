"""
API error taxonomy

Every failure the API reports to a client is one of the classes below. Each
carries a short ``error`` title and a human readable ``message``; the
exception handlers turn them into ``{"error": ..., "message": ...}`` bodies.
"""

import logging
from typing import Optional

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class ApiError(Exception):
    error = "Error"

    def __init__(self, message: str, error: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if error is not None:
            self.error = error


class ValidationFailure(ApiError):
    """Client supplied malformed or incomplete input."""

    error = "Invalid request"


class NotFound(ApiError):
    """No record matches the requested identifier."""

    error = "Not found"


class StoreFailure(ApiError):
    """The document store raised or timed out."""

    error = "Database error"


class AssetNotFound(ApiError):
    """A static asset is absent."""

    error = "Image not found"


_STATUS_CODES = {
    ValidationFailure: status.HTTP_400_BAD_REQUEST,
    NotFound: status.HTTP_404_NOT_FOUND,
    AssetNotFound: status.HTTP_404_NOT_FOUND,
    StoreFailure: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def status_for(exc: ApiError) -> int:
    for cls, code in _STATUS_CODES.items():
        if isinstance(exc, cls):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def error_body(error: str, message: str) -> dict:
    return {"error": error, "message": message}


async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    code = status_for(exc)
    if code >= 500:
        logger.error("%s %s failed: %s (%s)", request.method, request.url.path, exc.error, exc.message, exc_info=exc)
    else:
        logger.warning("%s %s rejected: %s (%s)", request.method, request.url.path, exc.error, exc.message)
    return JSONResponse(status_code=code, content=error_body(exc.error, exc.message))


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report body parsing errors as 400s in the common error shape."""
    problems = []
    for err in exc.errors():
        loc = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        problems.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    message = "; ".join(problems) or "Malformed request"
    logger.warning("%s %s rejected: invalid body (%s)", request.method, request.url.path, message)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body("Invalid request body", message),
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body("Internal server error", "An unexpected error occurred"),
    )
