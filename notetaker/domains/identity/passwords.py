"""
Password hashing for optional signup passwords.
"""

from __future__ import annotations

from passlib.context import CryptContext

from .models import check_password_policy

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(password: str) -> str:
    """Check the complexity policy, then hash."""
    return pwd_context.hash(check_password_policy(password))


def verify_password(plain: str, hashed: str) -> bool:
    return pwd_context.verify(plain, hashed)
