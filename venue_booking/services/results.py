"""
Result envelope returned by every booking operation.

Operations never raise for expected failures; callers branch on
``result.success`` and ``result.error.kind``.
"""

from enum import Enum
from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")

class ErrorKind(str, Enum):
    VALIDATION_FAILED = "VALIDATION_FAILED"
    RATE_LIMITED = "RATE_LIMITED"
    DATE_CONFLICT = "DATE_CONFLICT"
    NOT_FOUND = "NOT_FOUND"
    INVALID_TRANSITION = "INVALID_TRANSITION"
    PERSISTENCE_FAILURE = "PERSISTENCE_FAILURE"
    NOTIFICATION_FAILURE = "NOTIFICATION_FAILURE"
    INTERNAL_ERROR = "INTERNAL_ERROR"

# HTTP status used by the API layer for each failure kind
HTTP_STATUS = {
    ErrorKind.VALIDATION_FAILED: 400,
    ErrorKind.RATE_LIMITED: 429,
    ErrorKind.DATE_CONFLICT: 409,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.INVALID_TRANSITION: 400,
    ErrorKind.PERSISTENCE_FAILURE: 503,
    ErrorKind.NOTIFICATION_FAILURE: 502,
    ErrorKind.INTERNAL_ERROR: 500,
}

class BookingError(BaseModel):
    kind: ErrorKind
    message: str

class OperationResult(BaseModel, Generic[T]):
    success: bool
    message: str
    data: Optional[T] = None
    error: Optional[BookingError] = None
    # Non-fatal problems (e.g. a rejection email that could not be delivered)
    warnings: List[BookingError] = Field(default_factory=list)

    @classmethod
    def ok(cls, data: Optional[T] = None, message: str = "OK",
           warnings: Optional[List[BookingError]] = None) -> "OperationResult[T]":
        return cls(success=True, message=message, data=data, warnings=warnings or [])

    @classmethod
    def fail(cls, kind: ErrorKind, message: str) -> "OperationResult[T]":
        return cls(success=False, message=message, error=BookingError(kind=kind, message=message))

    @property
    def error_kind(self) -> Optional[ErrorKind]:
        return self.error.kind if self.error else None

    @property
    def http_status(self) -> int:
        if self.error is None:
            return 200
        return HTTP_STATUS.get(self.error.kind, 500)
