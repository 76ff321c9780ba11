"""
Configuration - Application settings, error taxonomy, and logging setup.
"""

from .errors import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    ErrorCode,
    ExternalServiceError,
    NoteTakerError,
    NotFoundError,
    RateLimitError,
    StorageError,
    ValidationError,
)
from .logging_setup import configure_logging
from .settings import Settings, get_settings

__all__ = [
    # Settings
    "Settings",
    "get_settings",
    "configure_logging",
    # Errors
    "ErrorCode",
    "NoteTakerError",
    "ValidationError",
    "AuthenticationError",
    "AuthorizationError",
    "NotFoundError",
    "ConflictError",
    "RateLimitError",
    "ExternalServiceError",
    "StorageError",
]
