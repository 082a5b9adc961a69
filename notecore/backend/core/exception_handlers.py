"""
Exception Handlers.

Convert exceptions raised while serving a request into the standard
ErrorResponse envelope:

    {"success": false, "data": null,
     "error": {"code": ..., "message": ..., "details": ...},
     "metadata": {"timestamp": ..., "request_id": ...}}

Usage:
    from notecore.backend.core.exception_handlers import register_exception_handlers

    app = FastAPI()
    register_exception_handlers(app)
"""

from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from notecore.backend.core.exceptions import (
    ApplicationError,
    DatabaseError,
    ExternalServiceError,
    NotFoundError,
    ValidationError,
)
from notecore.backend.core.logging import get_logger
from notecore.backend.schemas.base import ErrorDetail, ErrorResponse, ResponseMetadata

logger = get_logger(__name__)

REQUEST_INVALID_CODE = "VAL_REQUEST_INVALID"

# Map exception types to HTTP status codes
EXCEPTION_STATUS_MAP: dict[type[ApplicationError], int] = {
    ValidationError: 400,
    NotFoundError: 404,
    ExternalServiceError: 502,
    DatabaseError: 503,
}


def _get_request_id(request: Request) -> str | None:
    """Extract request ID from request state or headers."""
    request_id = getattr(request.state, "request_id", None)
    return request_id or request.headers.get("x-request-id")


def _error_response(
    request: Request,
    status_code: int,
    code: str,
    message: str,
    details: dict[str, Any] | None = None,
) -> JSONResponse:
    envelope = ErrorResponse(
        error=ErrorDetail(code=code, message=message, details=details or None),
        metadata=ResponseMetadata(request_id=_get_request_id(request)),
    )
    return JSONResponse(
        status_code=status_code,
        content=envelope.model_dump(mode="json"),
    )


def status_for(exc: ApplicationError) -> int:
    """HTTP status for an application error; unmapped errors are 500."""
    for exc_type in type(exc).__mro__:
        if exc_type in EXCEPTION_STATUS_MAP:
            return EXCEPTION_STATUS_MAP[exc_type]
    return 500


async def application_error_handler(
    request: Request,
    exc: ApplicationError,
) -> JSONResponse:
    """Handle all ApplicationError subclasses."""
    status_code = status_for(exc)
    log_extra = {
        "code": exc.code,
        "message": exc.message,
        "status": status_code,
        "path": request.url.path,
        "method": request.method,
    }

    if status_code >= 500:
        logger.error("Server error", extra=log_extra)
    else:
        logger.warning("Client error", extra=log_extra)

    details = exc.details if isinstance(exc, ValidationError) else None
    return _error_response(request, status_code, exc.code, exc.message, details)


async def validation_error_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    """
    Handle FastAPI/Pydantic request validation errors.

    Malformed bodies, unknown fields, empty patches and out-of-range
    query parameters are all reported as 400 VAL_REQUEST_INVALID.
    """
    errors = exc.errors()
    validation_errors = [
        {
            "field": ".".join(str(loc) for loc in err.get("loc", [])),
            "message": err.get("msg", "Validation error"),
            "type": err.get("type", "unknown"),
        }
        for err in errors
    ]

    logger.warning(
        "Request validation failed",
        extra={
            "path": request.url.path,
            "method": request.method,
            "error_count": len(errors),
        },
    )

    return _error_response(
        request,
        400,
        REQUEST_INVALID_CODE,
        "Request validation failed",
        {"validation_errors": validation_errors},
    )


async def unhandled_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    """Log the full exception; the response hides its details."""
    logger.exception(
        "Unhandled exception",
        extra={
            "path": request.url.path,
            "method": request.method,
            "exception_type": type(exc).__name__,
        },
    )
    return _error_response(
        request,
        500,
        "SYS_INTERNAL_ERROR",
        "An unexpected error occurred",
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI app."""
    app.add_exception_handler(ApplicationError, application_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    logger.debug("Exception handlers registered")
