"""Structured error responses for the SafeContract API.

Every error body shares one envelope:

    {
        "success": false,
        "error": {
            "code": "VALIDATION_ERROR",
            "message": "Human-readable description",
            "details": [...optional field-level errors...],
            "request_id": "abc-123"
        }
    }
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException

from safecontract.core.errors import SourceTooLargeError

logger = logging.getLogger(__name__)


# ── Error Codes ──────────────────────────────────────────────────────────────


class ErrorCode(str, Enum):
    """Standard error codes returned in the error envelope."""

    # 4xx client errors
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    METHOD_NOT_ALLOWED = "METHOD_NOT_ALLOWED"
    FORBIDDEN = "FORBIDDEN"
    BAD_REQUEST = "BAD_REQUEST"
    PAYLOAD_TOO_LARGE = "PAYLOAD_TOO_LARGE"

    # 5xx server errors
    INTERNAL_ERROR = "INTERNAL_ERROR"
    TIMEOUT = "TIMEOUT"

    # Domain-specific
    VERIFICATION_FAILED = "VERIFICATION_FAILED"


# ── Error Schemas ────────────────────────────────────────────────────────────


class FieldError(BaseModel):
    """Individual field validation error."""

    field: str
    message: str
    type: str


class ErrorEnvelope(BaseModel):
    """Standard error envelope."""

    code: str
    message: str
    details: list[FieldError] | list[dict[str, Any]] | None = None
    request_id: str | None = None


class ErrorResponse(BaseModel):
    """Top-level error response."""

    success: bool = False
    error: ErrorEnvelope


# ── HTTP status → error code mapping ────────────────────────────────────────

_STATUS_TO_CODE: dict[int, ErrorCode] = {
    400: ErrorCode.BAD_REQUEST,
    403: ErrorCode.FORBIDDEN,
    404: ErrorCode.NOT_FOUND,
    405: ErrorCode.METHOD_NOT_ALLOWED,
    413: ErrorCode.PAYLOAD_TOO_LARGE,
    422: ErrorCode.VALIDATION_ERROR,
    500: ErrorCode.INTERNAL_ERROR,
    504: ErrorCode.TIMEOUT,
}


def _get_request_id(request: Request) -> str | None:
    """Extract request ID from headers (set by RequestIDMiddleware)."""
    return request.headers.get("X-Request-ID") or getattr(request.state, "request_id", None)


def error_response(
    request: Request,
    status_code: int,
    code: ErrorCode,
    message: str,
    details: list[dict[str, Any]] | None = None,
) -> JSONResponse:
    """Build a JSONResponse carrying the standard envelope."""
    body = ErrorResponse(
        error=ErrorEnvelope(
            code=code.value,
            message=message,
            details=details,
            request_id=_get_request_id(request),
        )
    )
    return JSONResponse(status_code=status_code, content=body.model_dump())


# ── Exception Handlers ──────────────────────────────────────────────────────


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Reject malformed request bodies with 400 before any analysis runs."""
    details = []
    for err in exc.errors():
        loc = err.get("loc", [])
        field = ".".join(str(l) for l in loc if l != "body")
        details.append(
            FieldError(
                field=field or "body",
                message=err.get("msg", "Invalid value"),
                type=err.get("type", "value_error"),
            ).model_dump()
        )

    return error_response(
        request,
        400,
        ErrorCode.VALIDATION_ERROR,
        f"Request validation failed: {len(details)} error(s)",
        details,
    )


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Handle HTTP exceptions with structured error envelope."""
    code = _STATUS_TO_CODE.get(exc.status_code, ErrorCode.INTERNAL_ERROR)
    return error_response(
        request,
        exc.status_code,
        code,
        str(exc.detail) if exc.detail else code.value,
    )


async def source_too_large_handler(
    request: Request, exc: SourceTooLargeError
) -> JSONResponse:
    return error_response(request, 413, ErrorCode.PAYLOAD_TOO_LARGE, str(exc))


async def unhandled_exception_handler(
    request: Request, exc: Exception
) -> JSONResponse:
    """Handle unexpected exceptions — log full traceback, return generic error."""
    logger.exception(
        "Unhandled exception on %s %s: %s",
        request.method,
        request.url.path,
        exc,
    )
    return error_response(
        request,
        500,
        ErrorCode.INTERNAL_ERROR,
        "An internal server error occurred. Please try again later.",
    )


# ── Domain errors ────────────────────────────────────────────────────────────


class SafeContractAPIError(Exception):
    """Domain-specific API error with structured code + message."""

    def __init__(
        self,
        status_code: int,
        code: ErrorCode,
        message: str,
        details: list[dict[str, Any]] | None = None,
    ):
        self.status_code = status_code
        self.code = code
        self.message = message
        self.details = details
        super().__init__(message)


async def safecontract_error_handler(
    request: Request, exc: SafeContractAPIError
) -> JSONResponse:
    """Handle SafeContractAPIError with structured envelope."""
    return error_response(request, exc.status_code, exc.code, exc.message, exc.details)


def register_error_handlers(app: Any) -> None:
    """Register all structured error handlers on a FastAPI app."""
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(SourceTooLargeError, source_too_large_handler)
    app.add_exception_handler(SafeContractAPIError, safecontract_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
