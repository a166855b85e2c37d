"""
Standardized Error Responses.

Every failed request answers with the same envelope:

    {"success": false, "error": {"code": ..., "message": ...}, "request_id": ...}

Domain exceptions map to HTTP status codes here, so routers can simply let
them propagate.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from starlette.exceptions import HTTPException as StarletteHTTPException

from temple_tax.domain.exceptions import TaxEngineError
from temple_tax.services.logging_config import get_logger, request_id_var

logger = get_logger(__name__)


class ErrorCode(str, Enum):
    """Machine-readable error codes for API responses."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_IDENTIFIER = "INVALID_IDENTIFIER"
    NOT_FOUND = "NOT_FOUND"
    METHOD_NOT_ALLOWED = "METHOD_NOT_ALLOWED"
    INTERNAL_ERROR = "INTERNAL_ERROR"
    DATABASE_ERROR = "DATABASE_ERROR"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"


ERROR_STATUS_MAP = {
    ErrorCode.VALIDATION_ERROR: status.HTTP_400_BAD_REQUEST,
    ErrorCode.INVALID_IDENTIFIER: status.HTTP_400_BAD_REQUEST,
    ErrorCode.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.METHOD_NOT_ALLOWED: status.HTTP_405_METHOD_NOT_ALLOWED,
    ErrorCode.INTERNAL_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorCode.DATABASE_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorCode.SERVICE_UNAVAILABLE: status.HTTP_503_SERVICE_UNAVAILABLE,
}

DEFAULT_MESSAGES = {
    ErrorCode.VALIDATION_ERROR: "The provided data is invalid. Please check your input.",
    ErrorCode.INVALID_IDENTIFIER: "Mobile number must have exactly 10 digits.",
    ErrorCode.NOT_FOUND: "The requested resource was not found.",
    ErrorCode.METHOD_NOT_ALLOWED: "Method not allowed.",
    ErrorCode.INTERNAL_ERROR: "An unexpected error occurred. Please try again later.",
    ErrorCode.DATABASE_ERROR: "A database error occurred. Please try again.",
    ErrorCode.SERVICE_UNAVAILABLE: "The service is temporarily unavailable.",
}


class ErrorDetail(BaseModel):
    """Error body inside the envelope."""
    code: str
    message: str
    field: Optional[str] = None
    details: Optional[Any] = None


class StandardErrorResponse(BaseModel):
    """Error envelope returned by every failing endpoint."""
    success: bool = False
    error: ErrorDetail
    request_id: Optional[str] = Field(None, description="Request ID for tracking")


def create_error_response(
    error_code: ErrorCode,
    message: Optional[str] = None,
    field: Optional[str] = None,
    details: Optional[Any] = None,
    status_code: Optional[int] = None,
) -> JSONResponse:
    """
    Create a standardized error response.

    Args:
        error_code: The error code enum
        message: Optional custom message (uses default if not provided)
        field: Offending request field, if any
        details: Optional extra information
        status_code: Override for the mapped HTTP status

    Example:
        >>> create_error_response(ErrorCode.NOT_FOUND, message="Tax setting not found")
    """
    status_code = status_code or ERROR_STATUS_MAP.get(
        error_code, status.HTTP_500_INTERNAL_SERVER_ERROR
    )
    body = StandardErrorResponse(
        error=ErrorDetail(
            code=error_code.value,
            message=message or DEFAULT_MESSAGES.get(error_code, "An error occurred."),
            field=field,
            details=details or None,
        ),
        request_id=request_id_var.get(),
    )
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


def _code_for(exc: TaxEngineError) -> ErrorCode:
    try:
        return ErrorCode(exc.code)
    except ValueError:
        return ErrorCode.INTERNAL_ERROR


async def tax_engine_error_handler(request: Request, exc: TaxEngineError) -> JSONResponse:
    """Domain errors carry their own message; it is safe to surface verbatim."""
    error_code = _code_for(exc)
    logger.warning(
        f"{error_code.value} on {request.method} {request.url.path}: {exc.message}",
        extra={"extra_data": {"field": exc.field}},
    )
    return create_error_response(
        error_code,
        message=exc.message,
        field=exc.field,
        details=exc.details,
    )


async def request_validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Malformed bodies and query parameters are answered with 400."""
    details: List[Dict[str, Any]] = []
    for error in exc.errors():
        details.append({
            "field": ".".join(str(loc) for loc in error.get("loc", ()) if loc != "body"),
            "message": error.get("msg", "Invalid value"),
        })
    first = details[0] if details else {}
    message = (
        f"{first['field']}: {first['message']}" if first.get("field")
        else DEFAULT_MESSAGES[ErrorCode.VALIDATION_ERROR]
    )
    logger.warning(f"Request validation failed on {request.url.path}: {message}")
    return create_error_response(
        ErrorCode.VALIDATION_ERROR,
        message=message,
        field=first.get("field") or None,
        details={"errors": details},
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == status.HTTP_404_NOT_FOUND:
        code = ErrorCode.NOT_FOUND
    elif exc.status_code == status.HTTP_405_METHOD_NOT_ALLOWED:
        code = ErrorCode.METHOD_NOT_ALLOWED
    elif exc.status_code >= 500:
        code = ErrorCode.INTERNAL_ERROR
    else:
        code = ErrorCode.VALIDATION_ERROR
    message = exc.detail if isinstance(exc.detail, str) else None
    return create_error_response(code, message=message, status_code=exc.status_code)


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log with the stack trace; never leak internals to the client."""
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return create_error_response(ErrorCode.INTERNAL_ERROR)


def register_exception_handlers(app: FastAPI) -> None:
    """Install the envelope handlers on an application."""
    app.add_exception_handler(TaxEngineError, tax_engine_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
