"""
Identity Contracts - Interfaces for credential storage.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol, runtime_checkable

from .models import User


@runtime_checkable
class UserStore(Protocol):
    """Contract for credential record persistence."""

    async def create(self, user: User) -> User:
        """Persist a new record. Raises ConflictError on duplicate email or google id."""
        ...

    async def get_by_id(self, user_id: str) -> User | None:
        ...

    async def get_by_email(self, email: str) -> User | None:
        ...

    async def get_by_google_id(self, google_id: str) -> User | None:
        ...

    async def update(self, user: User) -> User:
        """Overwrite a record, stamping ``updated_at``."""
        ...

    async def delete(self, user_id: str) -> bool:
        ...

    async def clear_expired_otps(self, now: datetime) -> int:
        """Drop OTP fields whose expiry has passed. Returns rows touched."""
        ...
