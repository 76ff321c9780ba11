"""
Identity Domain - Credential records and the OTP engine.

This domain handles:
- User records for email and Google sign-in
- One-time code generation and verification (pure functions)
- Password policy and hashing
"""

from .contracts import UserStore
from .models import AuthProvider, OTPState, User, UserCheck, normalize_email
from .otp import (
    OTPCheck,
    check_otp,
    clear_otp,
    cooldown_remaining,
    generate_otp,
    mark_used,
    verify_otp,
)
from .passwords import hash_password, verify_password

__all__ = [
    "UserStore",
    "AuthProvider",
    "OTPState",
    "User",
    "UserCheck",
    "normalize_email",
    "OTPCheck",
    "generate_otp",
    "check_otp",
    "verify_otp",
    "mark_used",
    "clear_otp",
    "cooldown_remaining",
    "hash_password",
    "verify_password",
]
