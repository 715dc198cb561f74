"""Result Types for Error Propagation

Ok/Err containers plus a typed AppError. Engine functions that can fail
return Result values instead of raising, so the quiz flow decides locally
whether a failure blocks the learner (missing content) or is only logged
(report delivery, storage).
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Generic, NoReturn, TypeVar, Union, final
from uuid import uuid4

T = TypeVar("T")
E = TypeVar("E", bound="AppError")


class ErrorCode(Enum):
    """Error code taxonomy.

    E1xxx: Network/external service failures
    E2xxx: Validation errors
    E4xxx: Storage errors
    E5xxx: Quiz/business rule errors
    E6xxx: Content/resource errors
    E9xxx: Internal errors
    """
    # Network/External (E1xxx)
    E1030_REPORT_DELIVERY_FAILED = 1030

    # Validation (E2xxx)
    E2000_VALIDATION_GENERIC = 2000
    E2001_REQUIRED_FIELD_MISSING = 2001
    E2003_OUT_OF_RANGE = 2003

    # Storage (E4xxx)
    E4030_STORAGE_UNAVAILABLE = 4030

    # Business logic (E5xxx)
    E5001_OPERATION_NOT_ALLOWED = 5001
    E5030_GENERATION_UNDERFLOW = 5030

    # Content (E6xxx)
    E6020_CONTENT_UNAVAILABLE = 6020

    # Internal (E9xxx)
    E9001_UNEXPECTED_ERROR = 9001

    @property
    def http_status(self) -> int:
        """HTTP status used by the relay when an error reaches a response."""
        code = self.value
        if 1000 <= code < 2000:
            return 502
        if 2000 <= code < 3000:
            return 400
        if code == 6020:
            return 404
        if 4000 <= code < 5000:
            return 503
        if 5000 <= code < 5100:
            return 409
        return 500

    @property
    def category(self) -> str:
        code = self.value
        if 1000 <= code < 2000:
            return "network"
        if 2000 <= code < 3000:
            return "validation"
        if 4000 <= code < 5000:
            return "storage"
        if 5000 <= code < 6000:
            return "business"
        if 6000 <= code < 7000:
            return "content"
        return "internal"


@dataclass(frozen=True, slots=True)
class ErrorContext:
    """Immutable tracing context attached to every error."""
    correlation_id: str = field(default_factory=lambda: str(uuid4())[:8])
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    origin: str = ""
    request_id: str | None = None


@dataclass(frozen=True, slots=True)
class AppError:
    """Base application error: code, message, metadata and optional cause."""
    code: ErrorCode
    message: str
    context: ErrorContext = field(default_factory=ErrorContext)
    metadata: dict = field(default_factory=dict)
    cause: Exception | None = None

    def to_dict(self) -> dict:
        """Serialize error for API responses."""
        return {
            "error": {
                "code": self.code.name,
                "code_num": self.code.value,
                "message": self.message,
                "category": self.code.category,
                "correlation_id": self.context.correlation_id,
                "timestamp": self.context.timestamp.isoformat(),
                "metadata": self.metadata,
            }
        }

    def __str__(self) -> str:
        return f"[{self.code.name}] {self.message} (correlation_id={self.context.correlation_id})"


@final
@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """Success variant of Result."""
    value: T

    def is_ok(self) -> bool:
        return True

    def is_err(self) -> bool:
        return False

    def unwrap(self) -> T:
        return self.value

    def unwrap_or(self, default: T) -> T:
        return self.value


@final
@dataclass(frozen=True, slots=True)
class Err(Generic[E]):
    """Failure variant of Result."""
    error: E

    def is_ok(self) -> bool:
        return False

    def is_err(self) -> bool:
        return True

    def unwrap(self) -> NoReturn:
        raise ValueError(f"Called unwrap on Err: {self.error}")

    def unwrap_or(self, default: T) -> T:
        return default

    def unwrap_err(self) -> E:
        return self.error


Result = Union[Ok[T], Err[E]]
