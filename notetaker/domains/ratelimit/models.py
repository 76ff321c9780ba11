"""
Rate Limit Models - Tier definitions and decisions.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from notetaker.config.errors import ErrorCode
from notetaker.config.settings import Settings


class RateLimitDecision(BaseModel):
    """Outcome of a single hit."""

    allowed: bool
    limit: int
    remaining: int = Field(..., ge=0)
    retry_after: int = Field(0, ge=0, description="Seconds until the next hit fits")

    model_config = {"frozen": True}


class RateLimitTier(BaseModel):
    """A named limit applied to a group of routes."""

    name: str
    limit: int = Field(..., ge=1)
    window_seconds: int = Field(..., ge=1)
    code: ErrorCode
    message: str

    model_config = {"frozen": True}


def tiers_from_settings(settings: Settings) -> dict[str, RateLimitTier]:
    """Build the general/auth/otp/signup tiers."""
    return {
        "general": RateLimitTier(
            name="general",
            limit=settings.rate_limit_general_max,
            window_seconds=settings.rate_limit_general_window_seconds,
            code=ErrorCode.RATE_LIMIT_EXCEEDED,
            message="Too many requests from this IP, please try again later.",
        ),
        "auth": RateLimitTier(
            name="auth",
            limit=settings.rate_limit_auth_max,
            window_seconds=settings.rate_limit_auth_window_seconds,
            code=ErrorCode.AUTH_RATE_LIMIT_EXCEEDED,
            message="Too many authentication attempts, please try again later.",
        ),
        "otp": RateLimitTier(
            name="otp",
            limit=settings.rate_limit_otp_max,
            window_seconds=settings.rate_limit_otp_window_seconds,
            code=ErrorCode.OTP_RATE_LIMIT_EXCEEDED,
            message="Too many OTP requests, please try again later.",
        ),
        "signup": RateLimitTier(
            name="signup",
            limit=settings.rate_limit_signup_max,
            window_seconds=settings.rate_limit_signup_window_seconds,
            code=ErrorCode.SIGNUP_RATE_LIMIT_EXCEEDED,
            message="Too many signup attempts, please try again later.",
        ),
    }
