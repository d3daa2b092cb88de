"""Error Hierarchy — typed exceptions with HTTP status and machine code.

Invariants:
    - Every error has status_code (int), message (str), code (str)
    - to_response() produces the failure envelope; details only when asked for
    - headers travel with the error so the handler can attach them (429 Retry-After)

Design Decisions:
    - Single hierarchy with AppError base: the global handler catches all of it
    - Subclasses fix status and code, callers only choose the message
"""

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Machine-readable error codes sent to clients."""
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    PAYLOAD_TOO_LARGE = "PAYLOAD_TOO_LARGE"
    TOO_MANY_REQUESTS = "TOO_MANY_REQUESTS"
    INTERNAL_SERVER_ERROR = "INTERNAL_SERVER_ERROR"


class AppError(Exception):
    """Base exception for all application errors."""

    def __init__(
        self,
        status_code: int,
        message: str,
        code: str = ErrorCode.INTERNAL_SERVER_ERROR.value,
        details: Any = None,
        headers: dict[str, str] | None = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.code = code
        self.details = details
        self.headers = headers or {}

    def to_response(self, include_details: bool = False) -> dict:
        """Convert to the failure envelope."""
        body = {
            "success": False,
            "message": self.message,
            "statusCode": self.status_code,
            "code": self.code,
        }
        if include_details and self.details is not None:
            body["details"] = self.details
        return body

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(status_code={self.status_code}, "
            f"code={self.code!r}, message={self.message!r})"
        )


# ─── Client Errors (400-level) ──────────────────────────────────

class ValidationError(AppError):
    """Request payload failed a schema constraint."""
    def __init__(self, message: str = "Validation failed", details: Any = None):
        super().__init__(400, message, ErrorCode.VALIDATION_ERROR.value, details)


class NotFoundError(AppError):
    """No route (or resource) matches the request."""
    def __init__(self, message: str = "Not Found", details: Any = None):
        super().__init__(404, message, ErrorCode.NOT_FOUND.value, details)


class PayloadTooLargeError(AppError):
    """Request body exceeds the configured size cap."""
    def __init__(self, limit_bytes: int):
        super().__init__(
            413,
            f"Request body exceeds the {limit_bytes} byte limit",
            ErrorCode.PAYLOAD_TOO_LARGE.value,
            {"limit_bytes": limit_bytes},
        )


class TooManyRequestsError(AppError):
    """Rate limit exceeded for the caller's key."""
    def __init__(
        self,
        message: str = "Too many requests, please try again later.",
        headers: dict[str, str] | None = None,
    ):
        super().__init__(
            429, message, ErrorCode.TOO_MANY_REQUESTS.value, headers=headers,
        )


# ─── Server Errors (500-level) ──────────────────────────────────

class InternalServerError(AppError):
    """Catch-all for faults that are not AppErrors."""
    def __init__(self, message: str = "Internal Server Error", details: Any = None):
        super().__init__(
            500, message, ErrorCode.INTERNAL_SERVER_ERROR.value, details,
        )
