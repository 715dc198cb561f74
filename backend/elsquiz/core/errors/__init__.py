"""Result-based error handling

Usage:
    from elsquiz.core.errors import Ok, Err, Result, AppError, content_unavailable

    def fetch_unit(unit_id) -> Result[Unit, AppError]:
        unit = cache.get(unit_id)
        if unit is None:
            return content_unavailable(unit_id, "not in index")
        return Ok(unit)

    match fetch_unit(1):
        case Ok(unit):
            start_quiz(unit)
        case Err(error):
            log.warning("unit_unavailable", code=error.code.name)
"""
from .types import (
    Result,
    Ok,
    Err,
    AppError,
    ErrorCode,
    ErrorContext,
)

from .builders import (
    report_delivery_failed,
    required_field,
    out_of_range,
    storage_unavailable,
    operation_not_allowed,
    content_unavailable,
)

__all__ = [
    "Result",
    "Ok",
    "Err",
    "AppError",
    "ErrorCode",
    "ErrorContext",
    "report_delivery_failed",
    "required_field",
    "out_of_range",
    "storage_unavailable",
    "operation_not_allowed",
    "content_unavailable",
]
