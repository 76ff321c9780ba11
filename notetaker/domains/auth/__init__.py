"""
Auth Domain - Signup, sign-in and session flows.

This domain handles:
- Email + OTP signup and sign-in
- Google signup and login
- Session refresh and access-token authentication
"""

from .contracts import IdentityVerifier, Mailer
from .models import AuthResult, GoogleIdentity
from .orchestrator import AuthOrchestrator, OTPPolicy

__all__ = [
    "IdentityVerifier",
    "Mailer",
    "AuthResult",
    "GoogleIdentity",
    "AuthOrchestrator",
    "OTPPolicy",
]
