"""
Identity Models - Credential records and one-time code state.
"""

from __future__ import annotations

import re
import uuid
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PASSWORD_PATTERN = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[@$!%*?&])[A-Za-z\d@$!%*?&]+$")
PASSWORD_MIN_LENGTH = 8
PASSWORD_MAX_LENGTH = 128


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return uuid.uuid4().hex


def normalize_email(email: str) -> str:
    """Trim and lower-case an email address."""
    return email.strip().lower()


def check_password_policy(password: str) -> str:
    """
    Validate password complexity.

    Requires 8-128 characters with an upper-case letter, a lower-case
    letter, a digit and one of ``@$!%*?&``.

    Raises:
        ValueError: if the password does not meet the policy
    """
    if not PASSWORD_MIN_LENGTH <= len(password) <= PASSWORD_MAX_LENGTH:
        raise ValueError(
            f"Password must be between {PASSWORD_MIN_LENGTH} and {PASSWORD_MAX_LENGTH} characters"
        )
    if not PASSWORD_PATTERN.match(password):
        raise ValueError("Password too weak")
    return password


class AuthProvider(str, Enum):
    """How a credential record authenticates. Fixed at creation."""

    EMAIL = "email"
    GOOGLE = "google"


class OTPState(BaseModel):
    """The single in-flight one-time code of a user."""

    code: str | None = None
    expires_at: datetime | None = None
    is_used: bool = False
    attempts: int = 0
    last_attempt_at: datetime | None = None

    model_config = {"frozen": True}


class User(BaseModel):
    """Persisted credential record."""

    id: str = Field(default_factory=new_id)
    email: str
    name: str = Field(..., min_length=1)
    date_of_birth: date | None = None
    profile_picture: str | None = None
    password_hash: str | None = None
    is_email_verified: bool = False
    auth_provider: AuthProvider
    google_id: str | None = None
    otp: OTPState = Field(default_factory=OTPState)
    last_login_at: datetime | None = None
    token_version: int = 0
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    model_config = {"frozen": True}

    @field_validator("email")
    @classmethod
    def _normalize_email(cls, value: str) -> str:
        value = normalize_email(value)
        if not EMAIL_PATTERN.match(value):
            raise ValueError("Invalid email format")
        return value

    @model_validator(mode="after")
    def _check_provider_fields(self) -> User:
        if self.auth_provider == AuthProvider.GOOGLE and self.password_hash:
            raise ValueError("Google accounts cannot carry a password")
        if self.auth_provider == AuthProvider.EMAIL and self.google_id:
            raise ValueError("Email accounts cannot carry a Google id")
        return self

    def public(self) -> dict[str, Any]:
        """Client-facing projection (never includes password or OTP)."""
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "dateOfBirth": self.date_of_birth.isoformat() if self.date_of_birth else None,
            "profilePicture": self.profile_picture,
            "isEmailVerified": self.is_email_verified,
            "authProvider": self.auth_provider.value,
            "createdAt": self.created_at.isoformat(),
            "lastLoginAt": self.last_login_at.isoformat() if self.last_login_at else None,
        }


class UserCheck(BaseModel):
    """Result of looking up whether an email is registered."""

    exists: bool
    auth_provider: AuthProvider | None = None
    is_email_verified: bool | None = None
