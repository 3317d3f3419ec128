"""Application exception types."""

from types import MappingProxyType

from postboard.schemas.error import ErrorKind, ErrorResponse

# One transport status per error kind, never overridden at raise sites.
STATUS_BY_KIND = MappingProxyType(
    {
        ErrorKind.VALIDATION: 400,
        ErrorKind.CONFLICT: 400,
        ErrorKind.UNAUTHORIZED: 401,
        ErrorKind.FORBIDDEN: 403,
        ErrorKind.NOT_FOUND: 404,
        ErrorKind.RATE_LIMITED: 429,
        ErrorKind.INTERNAL: 500,
    }
)


class ApiError(Exception):
    """Structured API error that maps directly to contract error payloads."""

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        details: dict | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        self.kind = kind
        self.headers = headers
        self.status_code = STATUS_BY_KIND[kind]
        self.payload = ErrorResponse(code=kind, error=message, details=details)
        super().__init__(message)


__all__ = ["ApiError", "STATUS_BY_KIND"]
