"""
Auth Contracts - Outbound collaborators of the orchestrator.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from .models import GoogleIdentity


@runtime_checkable
class IdentityVerifier(Protocol):
    """Contract for third-party sign-in verification."""

    async def verify_id_token(self, id_token: str) -> GoogleIdentity:
        """Verify a signed ID token. Raises AuthenticationError or ExternalServiceError."""
        ...

    async def verify_access_token(self, access_token: str) -> GoogleIdentity:
        """Resolve an OAuth access token to its account."""
        ...


@runtime_checkable
class Mailer(Protocol):
    """Contract for the transactional emails the auth flows send."""

    async def send_otp(self, to: str, name: str, code: str, expiry_minutes: int) -> None:
        """Send a one-time code. Raises ExternalServiceError on failure."""
        ...

    async def send_welcome(self, to: str, name: str) -> None:
        ...
