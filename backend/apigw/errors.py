"""Gestion standardisée des erreurs API avec enveloppes de réponse.

Every response, success or failure, uses the same envelope:
`{success, data|error, timestamp}` where `error = {message, code?, details?}`.
Stack traces never leave the process.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

import structlog
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from backend.domain.errors import AppError, ErrorCodes

log = structlog.get_logger(__name__, component="api")

# Map common HTTP status codes to error codes
_STATUS_CODES = {
    400: ErrorCodes.VALIDATION_ERROR,
    401: ErrorCodes.UNAUTHORIZED,
    403: ErrorCodes.FORBIDDEN,
    404: ErrorCodes.NOT_FOUND,
    409: ErrorCodes.CONFLICT,
    413: ErrorCodes.INVALID_INPUT,
    422: ErrorCodes.VALIDATION_ERROR,
    429: ErrorCodes.RATE_LIMIT,
    503: ErrorCodes.EXTERNAL_SERVICE_ERROR,
}


def utc_timestamp() -> str:
    """ISO-8601 timestamp used in every envelope."""
    return datetime.now(UTC).isoformat().replace("+00:00", "Z")


def success_response(
    data: Any, status_code: int = 200, **extra: Any
) -> JSONResponse:
    """Create a standardized success response."""
    content: dict[str, Any] = {"success": True, "data": data, **extra}
    content["timestamp"] = utc_timestamp()
    return JSONResponse(status_code=status_code, content=jsonable_encoder(content))


def create_error_response(
    status_code: int,
    code: str | None,
    message: str,
    details: dict[str, Any] | None = None,
) -> JSONResponse:
    """Create a standardized error response."""
    error: dict[str, Any] = {"message": message}
    if code:
        error["code"] = code
    if details:
        error["details"] = details
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(
            {"success": False, "error": error, "timestamp": utc_timestamp()}
        ),
    )


def handle_app_error(request: Request, exc: AppError) -> JSONResponse:
    """Handle domain errors with standard envelope."""
    log.warning(
        "request failed",
        path=request.url.path,
        code=exc.code,
        status_code=exc.status_code,
        error_message=exc.message,
    )
    return create_error_response(exc.status_code, exc.code, exc.message, exc.details)


def handle_http_exception(request: Request, exc: HTTPException) -> JSONResponse:
    """Handle FastAPI HTTPException with standard envelope."""
    code = _STATUS_CODES.get(exc.status_code, ErrorCodes.INTERNAL_ERROR)
    log.warning(
        "http exception",
        path=request.url.path,
        code=code,
        status_code=exc.status_code,
        error_message=str(exc.detail),
    )
    return create_error_response(exc.status_code, code, str(exc.detail))


def handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed bodies/queries are client faults (400), not 422."""
    errors = [
        {"field": ".".join(str(p) for p in e.get("loc", ()) if p != "body"), "message": e.get("msg")}
        for e in exc.errors()
    ]
    return create_error_response(
        400, ErrorCodes.VALIDATION_ERROR, "Invalid request", {"errors": errors}
    )


def handle_generic_exception(request: Request, exc: Exception) -> JSONResponse:
    """Handle generic exceptions with standard envelope."""
    log.error(
        "unexpected error",
        path=request.url.path,
        exception_type=type(exc).__name__,
        exception_message=str(exc),
        exc_info=exc,
    )
    return create_error_response(
        500, ErrorCodes.INTERNAL_ERROR, "An unexpected error occurred. Please try again."
    )


def install_error_handlers(app: FastAPI) -> None:
    """Register all envelope handlers on the application."""
    app.add_exception_handler(AppError, handle_app_error)
    app.add_exception_handler(HTTPException, handle_http_exception)
    app.add_exception_handler(RequestValidationError, handle_request_validation)
    app.add_exception_handler(Exception, handle_generic_exception)
