"""
Error Taxonomy - Consistent error codes across the application.

Usage:
    from notetaker.config.errors import ErrorCode, NotFoundError

    raise NotFoundError("Note not found", ErrorCode.NOTE_NOT_FOUND)

Every error carries a machine-readable code for the client and an HTTP
status fixed by its class.
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Standardized error codes for machine-readable error responses."""

    # Validation (400)
    VALIDATION_ERROR = "VALIDATION_ERROR"
    EMAIL_ALREADY_VERIFIED = "EMAIL_ALREADY_VERIFIED"
    OTP_EXPIRED = "OTP_EXPIRED"
    OTP_ALREADY_USED = "OTP_ALREADY_USED"
    INVALID_OTP = "INVALID_OTP"
    NO_OTP_NEEDED = "NO_OTP_NEEDED"
    MISSING_REFRESH_TOKEN = "MISSING_REFRESH_TOKEN"
    SEARCH_QUERY_REQUIRED = "SEARCH_QUERY_REQUIRED"
    NOTE_ARCHIVED = "NOTE_ARCHIVED"

    # Authentication (401)
    AUTH_REQUIRED = "AUTH_REQUIRED"
    MISSING_TOKEN = "MISSING_TOKEN"
    INVALID_TOKEN = "INVALID_TOKEN"
    TOKEN_EXPIRED = "TOKEN_EXPIRED"
    INVALID_REFRESH_TOKEN = "INVALID_REFRESH_TOKEN"
    INVALID_GOOGLE_TOKEN = "INVALID_GOOGLE_TOKEN"
    USE_GOOGLE_LOGIN = "USE_GOOGLE_LOGIN"
    USE_EMAIL_LOGIN = "USE_EMAIL_LOGIN"
    DIFFERENT_GOOGLE_ACCOUNT = "DIFFERENT_GOOGLE_ACCOUNT"
    EMAIL_NOT_VERIFIED = "EMAIL_NOT_VERIFIED"

    # Authorization (403)
    ACCESS_DENIED = "ACCESS_DENIED"

    # Not found (404)
    NOT_FOUND = "NOT_FOUND"
    USER_NOT_FOUND = "USER_NOT_FOUND"
    NOTE_NOT_FOUND = "NOTE_NOT_FOUND"
    ROUTE_NOT_FOUND = "ROUTE_NOT_FOUND"

    # Conflict (409)
    USER_ALREADY_EXISTS = "USER_ALREADY_EXISTS"
    USER_ALREADY_VERIFIED = "USER_ALREADY_VERIFIED"
    USER_EXISTS_UNVERIFIED = "USER_EXISTS_UNVERIFIED"
    USER_EXISTS_WITH_EMAIL_AUTH = "USER_EXISTS_WITH_EMAIL_AUTH"
    USER_ALREADY_EXISTS_GOOGLE = "USER_ALREADY_EXISTS_GOOGLE"
    GOOGLE_ID_ALREADY_EXISTS = "GOOGLE_ID_ALREADY_EXISTS"

    # Rate limiting (429)
    OTP_RATE_LIMITED = "OTP_RATE_LIMITED"
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"
    AUTH_RATE_LIMIT_EXCEEDED = "AUTH_RATE_LIMIT_EXCEEDED"
    OTP_RATE_LIMIT_EXCEEDED = "OTP_RATE_LIMIT_EXCEEDED"
    SIGNUP_RATE_LIMIT_EXCEEDED = "SIGNUP_RATE_LIMIT_EXCEEDED"

    # Upstream services (503)
    EMAIL_SEND_FAILED = "EMAIL_SEND_FAILED"
    GOOGLE_UNAVAILABLE = "GOOGLE_UNAVAILABLE"

    # General (500)
    DATABASE_ERROR = "DATABASE_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class NoteTakerError(Exception):
    """Base exception with error code support."""

    status_code: int = 500

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(f"[{code.value}] {message}")

    def to_dict(self) -> dict[str, Any]:
        """Convert to API-friendly dictionary."""
        return {
            "code": self.code.value,
            "message": self.message,
            "details": self.details,
        }


class ValidationError(NoteTakerError):
    """Malformed or missing input, or a request the current state rejects."""

    status_code = 400

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.VALIDATION_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(code, message, details)


class AuthenticationError(NoteTakerError):
    """Bad, expired or missing credentials."""

    status_code = 401

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.AUTH_REQUIRED,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(code, message, details)


class AuthorizationError(NoteTakerError):
    """Authenticated, but not allowed."""

    status_code = 403

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.ACCESS_DENIED,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(code, message, details)


class NotFoundError(NoteTakerError):
    """Missing resource, including resources owned by someone else."""

    status_code = 404

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.NOT_FOUND,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(code, message, details)


class ConflictError(NoteTakerError):
    """Duplicate signup or reuse of an email under another provider."""

    status_code = 409

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.USER_ALREADY_EXISTS,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(code, message, details)


class RateLimitError(NoteTakerError):
    """Too many attempts; the client should retry after ``retry_after`` seconds."""

    status_code = 429

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.RATE_LIMIT_EXCEEDED,
        retry_after: int = 60,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.retry_after = retry_after
        super().__init__(code, message, {"retryAfter": retry_after, **(details or {})})


class ExternalServiceError(NoteTakerError):
    """Upstream dependency (email, Google) failed or timed out. Retryable."""

    status_code = 503

    def __init__(
        self,
        message: str,
        code: ErrorCode,
        service: str,
        retry_after: int = 30,
    ) -> None:
        self.retry_after = retry_after
        super().__init__(code, message, {"service": service, "retryAfter": retry_after})


class StorageError(NoteTakerError):
    """Storage/database errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.DATABASE_ERROR, message, details)
