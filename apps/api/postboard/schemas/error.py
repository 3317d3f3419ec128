"""API error response schemas."""

from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel


class ErrorKind(str, Enum):
    VALIDATION = "VALIDATION_ERROR"
    CONFLICT = "CONFLICT"
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    NOT_FOUND = "RESOURCE_NOT_FOUND"
    RATE_LIMITED = "RATE_LIMITED"
    INTERNAL = "INTERNAL_ERROR"


class ErrorResponse(BaseModel):
    success: Literal[False] = False
    code: ErrorKind
    error: str
    details: dict[str, Any] | None = None


class UnauthorizedError(ErrorResponse):
    code: Literal[ErrorKind.UNAUTHORIZED]


class ForbiddenError(ErrorResponse):
    code: Literal[ErrorKind.FORBIDDEN]


class NotFoundError(ErrorResponse):
    code: Literal[ErrorKind.NOT_FOUND]


class ConflictError(ErrorResponse):
    code: Literal[ErrorKind.CONFLICT]


class ValidationFailedError(ErrorResponse):
    code: Literal[ErrorKind.VALIDATION]


class RateLimitedError(ErrorResponse):
    code: Literal[ErrorKind.RATE_LIMITED]
