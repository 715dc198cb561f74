"""Domain-Specific Error Builders

Each builder returns an Err wrapping an AppError with the right code.
"""
from .types import AppError, ErrorCode, ErrorContext, Err


def _build(
    code: ErrorCode,
    message: str,
    *,
    origin: str = "",
    cause: Exception | None = None,
    **metadata,
) -> Err[AppError]:
    return Err(AppError(
        code=code,
        message=message,
        context=ErrorContext(origin=origin),
        metadata={k: v for k, v in metadata.items() if v is not None},
        cause=cause,
    ))


# =============================================================================
# Network Errors (E1xxx)
# =============================================================================

def report_delivery_failed(
    reason: str,
    *,
    url: str | None = None,
    status_code: int | None = None,
    origin: str = "reporter",
    cause: Exception | None = None,
) -> Err[AppError]:
    return _build(
        ErrorCode.E1030_REPORT_DELIVERY_FAILED,
        f"Result delivery failed: {reason}",
        origin=origin,
        cause=cause,
        url=url,
        status_code=status_code,
    )


# =============================================================================
# Validation Errors (E2xxx)
# =============================================================================

def required_field(field: str, origin: str = "") -> Err[AppError]:
    return _build(
        ErrorCode.E2001_REQUIRED_FIELD_MISSING,
        f"Required field '{field}' is missing or blank",
        origin=origin,
        field=field,
    )


def out_of_range(
    field: str, value: int | float, min_val: int | float, max_val: int | float, origin: str = ""
) -> Err[AppError]:
    return _build(
        ErrorCode.E2003_OUT_OF_RANGE,
        f"'{field}' must be between {min_val} and {max_val}, got {value}",
        origin=origin,
        field=field,
        value=value,
    )


# =============================================================================
# Storage Errors (E4xxx)
# =============================================================================

def storage_unavailable(
    reason: str = "", *, key: str | None = None, origin: str = "storage", cause: Exception | None = None
) -> Err[AppError]:
    msg = "Progress storage unavailable"
    if reason:
        msg += f": {reason}"
    return _build(ErrorCode.E4030_STORAGE_UNAVAILABLE, msg, origin=origin, cause=cause, key=key)


# =============================================================================
# Business Logic Errors (E5xxx)
# =============================================================================

def operation_not_allowed(operation: str, reason: str = "", origin: str = "") -> Err[AppError]:
    msg = f"Operation '{operation}' not allowed"
    if reason:
        msg += f": {reason}"
    return _build(ErrorCode.E5001_OPERATION_NOT_ALLOWED, msg, origin=origin, operation=operation)


# =============================================================================
# Content Errors (E6xxx)
# =============================================================================

def content_unavailable(
    unit_id: int | str | None, reason: str = "", origin: str = "content", cause: Exception | None = None
) -> Err[AppError]:
    msg = f"Unit {unit_id} is not available"
    if reason:
        msg += f": {reason}"
    return _build(
        ErrorCode.E6020_CONTENT_UNAVAILABLE,
        msg,
        origin=origin,
        cause=cause,
        unit_id=str(unit_id) if unit_id is not None else None,
    )
