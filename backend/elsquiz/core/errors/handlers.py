"""FastAPI Exception Handlers for the relay service

Converts AppErrors, request validation errors and unexpected exceptions
into JSON responses carrying the relay's `success` flag.
"""
from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from elsquiz.core.logging import get_logger

from .types import AppError, ErrorCode, ErrorContext

log = get_logger("errors.handlers")


def result_to_response(error: AppError) -> JSONResponse:
    status_code = error.code.http_status
    log_method = log.warning if status_code < 500 else log.error
    log_method(
        "error_response",
        error_code=error.code.name,
        message=error.message,
        category=error.code.category,
        correlation_id=error.context.correlation_id,
        origin=error.context.origin,
        metadata=error.metadata,
    )
    return JSONResponse(
        status_code=status_code,
        content={"success": False, **error.to_dict()},
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Report malformed result payloads with the offending fields."""
    fields = [".".join(str(p) for p in err.get("loc", ())) for err in exc.errors()]
    error = AppError(
        code=ErrorCode.E2000_VALIDATION_GENERIC,
        message="Request validation failed",
        context=ErrorContext(
            correlation_id=request.headers.get("X-Correlation-ID") or ErrorContext().correlation_id,
            origin="request_validation",
        ),
        metadata={"fields": fields},
    )
    return result_to_response(error)


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    error = AppError(
        code=ErrorCode.E9001_UNEXPECTED_ERROR,
        message="Internal server error",
        context=ErrorContext(origin="unhandled"),
        metadata={"details": str(exc)},
        cause=exc,
    )
    log.exception(
        "unhandled_exception",
        error_type=type(exc).__name__,
        error_message=str(exc),
        correlation_id=error.context.correlation_id,
    )
    return result_to_response(error)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
