"""
Token Service - Signs and verifies the access/refresh session pair.

Tokens are HS256 JWTs bound to a fixed issuer and audience. The service is
stateless; ``token_version`` travels in refresh tokens but nothing checks
it against the store.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import Any

import jwt
from pydantic import ValidationError as PydanticValidationError

from notetaker.config.errors import AuthenticationError, ErrorCode
from notetaker.config.settings import Settings
from notetaker.domains.identity.models import User

from .models import AccessClaims, RefreshClaims, TokenPair

logger = logging.getLogger(__name__)

__all__ = ["TokenService"]

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TokenService:
    """
    Issues and verifies session tokens.

    Example:
        >>> tokens = TokenService.from_settings(get_settings())
        >>> pair = tokens.issue_pair(user)
        >>> tokens.verify_access(pair.access_token).user_id == user.id
        True
    """

    def __init__(
        self,
        access_secret: str,
        refresh_secret: str,
        issuer: str = "note-taking-app",
        audience: str = "note-taking-app-users",
        access_ttl: timedelta = timedelta(days=7),
        refresh_ttl: timedelta = timedelta(days=30),
        leeway: timedelta = timedelta(seconds=60),
        algorithm: str = "HS256",
        clock: Clock = _utcnow,
    ) -> None:
        if not access_secret or not refresh_secret:
            raise ValueError("Token secrets must be non-empty")
        self._access_secret = access_secret
        self._refresh_secret = refresh_secret
        self.issuer = issuer
        self.audience = audience
        self.access_ttl = access_ttl
        self.refresh_ttl = refresh_ttl
        self.leeway = leeway
        self.algorithm = algorithm
        self._clock = clock

    @classmethod
    def from_settings(cls, settings: Settings) -> TokenService:
        return cls(
            access_secret=settings.jwt_secret,
            refresh_secret=settings.jwt_refresh_secret,
            issuer=settings.jwt_issuer,
            audience=settings.jwt_audience,
            access_ttl=timedelta(days=settings.access_token_ttl_days),
            refresh_ttl=timedelta(days=settings.refresh_token_ttl_days),
            leeway=timedelta(seconds=settings.jwt_leeway_seconds),
            algorithm=settings.jwt_algorithm,
        )

    def _encode(self, claims: dict[str, Any], secret: str, ttl: timedelta) -> str:
        now = self._clock()
        payload = {
            **claims,
            "iss": self.issuer,
            "aud": self.audience,
            "iat": now,
            "exp": now + ttl,
            "jti": uuid.uuid4().hex,
        }
        return jwt.encode(payload, secret, algorithm=self.algorithm)

    def _decode(self, token: str, secret: str) -> dict[str, Any]:
        try:
            return jwt.decode(
                token,
                secret,
                algorithms=[self.algorithm],
                audience=self.audience,
                issuer=self.issuer,
                leeway=self.leeway,
                options={"require": ["exp", "iat", "iss", "aud"]},
            )
        except jwt.ExpiredSignatureError as e:
            raise AuthenticationError("Token has expired", ErrorCode.TOKEN_EXPIRED) from e
        except jwt.InvalidTokenError as e:
            logger.debug("Token rejected: %s", e)
            raise AuthenticationError("Invalid token", ErrorCode.INVALID_TOKEN) from e

    def issue_pair(self, user: User) -> TokenPair:
        """
        Issue a fresh access/refresh pair for a user.

        Args:
            user: The authenticated user

        Returns:
            TokenPair with cookie max-ages in seconds
        """
        access = self._encode(
            {
                "userId": user.id,
                "email": user.email,
                "isEmailVerified": user.is_email_verified,
            },
            self._access_secret,
            self.access_ttl,
        )
        refresh = self._encode(
            {"userId": user.id, "tokenVersion": user.token_version},
            self._refresh_secret,
            self.refresh_ttl,
        )
        return TokenPair(
            access_token=access,
            refresh_token=refresh,
            access_max_age=int(self.access_ttl.total_seconds()),
            refresh_max_age=int(self.refresh_ttl.total_seconds()),
        )

    def verify_access(self, token: str) -> AccessClaims:
        """Decode an access token. Raises AuthenticationError."""
        payload = self._decode(token, self._access_secret)
        try:
            return AccessClaims.model_validate(payload)
        except PydanticValidationError as e:
            raise AuthenticationError("Invalid token", ErrorCode.INVALID_TOKEN) from e

    def verify_refresh(self, token: str) -> RefreshClaims:
        """Decode a refresh token. Raises AuthenticationError."""
        payload = self._decode(token, self._refresh_secret)
        try:
            return RefreshClaims.model_validate(payload)
        except PydanticValidationError as e:
            raise AuthenticationError("Invalid token", ErrorCode.INVALID_TOKEN) from e
