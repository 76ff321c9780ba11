"""
Google Identity Verifier - Checks Google sign-in credentials.

Two paths:
- ID tokens: RS256 signature against Google's published JWKS
- OAuth access tokens: resolved through the userinfo endpoint

Development builds may also accept unsigned mock tokens (base64 JSON
with ``sub``, ``email`` and ``name``) when explicitly enabled.
"""

from __future__ import annotations

import asyncio
import base64
import binascii
import json
import logging
from typing import Any

import httpx
import jwt
from jwt import PyJWKClient
from jwt.exceptions import InvalidTokenError, PyJWKClientConnectionError, PyJWKClientError

from notetaker.config.errors import AuthenticationError, ErrorCode, ExternalServiceError
from notetaker.config.settings import Settings
from notetaker.domains.auth.models import GoogleIdentity

logger = logging.getLogger(__name__)

__all__ = ["GoogleIdentityVerifier", "decode_mock_token", "encode_mock_token"]

GOOGLE_CERTS_URL = "https://www.googleapis.com/oauth2/v3/certs"
GOOGLE_USERINFO_URL = "https://www.googleapis.com/oauth2/v2/userinfo"
GOOGLE_ISSUERS = ["accounts.google.com", "https://accounts.google.com"]


def _invalid(message: str = "Invalid Google token") -> AuthenticationError:
    return AuthenticationError(message, ErrorCode.INVALID_GOOGLE_TOKEN)


def _unavailable(message: str = "Google sign-in is temporarily unavailable") -> ExternalServiceError:
    return ExternalServiceError(message, ErrorCode.GOOGLE_UNAVAILABLE, service="google")


def encode_mock_token(claims: dict[str, Any]) -> str:
    """Build a development mock token."""
    return base64.b64encode(json.dumps(claims).encode()).decode()


def decode_mock_token(token: str) -> dict[str, Any] | None:
    """Return mock claims, or None if ``token`` is not a mock token."""
    if not token.startswith("ey"):
        return None
    try:
        padded = token + "=" * (-len(token) % 4)
        claims = json.loads(base64.urlsafe_b64decode(padded.replace("+", "-").replace("/", "_")))
    except (binascii.Error, ValueError, UnicodeDecodeError):
        return None
    if not isinstance(claims, dict):
        return None
    if not (claims.get("sub") and claims.get("email") and claims.get("name")):
        return None
    return claims


def _identity(external_id: Any, email: Any, name: Any, picture: Any, verified: Any) -> GoogleIdentity:
    if not external_id or not email:
        raise _invalid("Incomplete user information from Google")
    email = str(email)
    return GoogleIdentity(
        external_id=str(external_id),
        email=email,
        name=str(name) if name else email.split("@", 1)[0],
        picture=picture or None,
        email_verified=verified is True,
    )


class GoogleIdentityVerifier:
    """
    Verifies Google credentials and returns the account they belong to.

    Example:
        >>> verifier = GoogleIdentityVerifier(client_id="...apps.googleusercontent.com")
        >>> identity = await verifier.verify_id_token(id_token)
        >>> identity.email
        'alice@gmail.com'
    """

    def __init__(
        self,
        client_id: str,
        timeout_seconds: float = 10.0,
        allow_mock_tokens: bool = False,
        http_client: httpx.AsyncClient | None = None,
        jwk_client: PyJWKClient | None = None,
    ) -> None:
        self.client_id = client_id
        self.timeout_seconds = timeout_seconds
        self.allow_mock_tokens = allow_mock_tokens
        self._http = http_client
        self._jwk_client = jwk_client

    @classmethod
    def from_settings(cls, settings: Settings) -> GoogleIdentityVerifier:
        allow_mock = settings.google_allow_mock_tokens and not settings.is_production
        if settings.google_allow_mock_tokens and settings.is_production:
            logger.warning("Ignoring google_allow_mock_tokens in production")
        return cls(
            client_id=settings.google_client_id,
            timeout_seconds=settings.google_timeout_seconds,
            allow_mock_tokens=allow_mock,
        )

    def _mock_identity(self, token: str) -> GoogleIdentity | None:
        if not self.allow_mock_tokens:
            return None
        claims = decode_mock_token(token)
        if claims is None:
            return None
        logger.info("Using mock Google token for development")
        return _identity(
            claims["sub"],
            claims["email"],
            claims["name"],
            claims.get("picture"),
            claims.get("email_verified", True),
        )

    def _jwks(self) -> PyJWKClient:
        if self._jwk_client is None:
            self._jwk_client = PyJWKClient(GOOGLE_CERTS_URL, timeout=int(self.timeout_seconds))
        return self._jwk_client

    async def verify_id_token(self, id_token: str) -> GoogleIdentity:
        """
        Verify a Google ID token.

        Args:
            id_token: JWT issued by Google Sign-In

        Returns:
            GoogleIdentity for the token's subject

        Raises:
            AuthenticationError: INVALID_GOOGLE_TOKEN
            ExternalServiceError: GOOGLE_UNAVAILABLE (JWKS unreachable)
        """
        mock = self._mock_identity(id_token)
        if mock is not None:
            return mock

        if not self.client_id:
            logger.error("Google ID token received but google_client_id is not configured")
            raise _unavailable("Google sign-in is not configured")

        try:
            signing_key = await asyncio.wait_for(
                asyncio.to_thread(self._jwks().get_signing_key_from_jwt, id_token),
                timeout=self.timeout_seconds,
            )
            payload = jwt.decode(
                id_token,
                signing_key.key,
                algorithms=["RS256"],
                audience=self.client_id,
                issuer=GOOGLE_ISSUERS,
                leeway=60,
            )
        except asyncio.TimeoutError as e:
            logger.warning("Timed out fetching Google signing keys")
            raise _unavailable() from e
        except PyJWKClientConnectionError as e:
            logger.warning("Could not reach Google signing keys: %s", e)
            raise _unavailable() from e
        except (PyJWKClientError, InvalidTokenError) as e:
            logger.info("Google ID token rejected: %s", e)
            raise _invalid() from e

        return _identity(
            payload.get("sub"),
            payload.get("email"),
            payload.get("name"),
            payload.get("picture"),
            payload.get("email_verified"),
        )

    async def verify_access_token(self, access_token: str) -> GoogleIdentity:
        """Resolve an OAuth access token through Google's userinfo endpoint."""
        mock = self._mock_identity(access_token)
        if mock is not None:
            return mock

        try:
            if self._http is not None:
                response = await self._http.get(
                    GOOGLE_USERINFO_URL,
                    headers={"Authorization": f"Bearer {access_token}"},
                    timeout=self.timeout_seconds,
                )
            else:
                async with httpx.AsyncClient(timeout=self.timeout_seconds) as client:
                    response = await client.get(
                        GOOGLE_USERINFO_URL,
                        headers={"Authorization": f"Bearer {access_token}"},
                    )
        except httpx.HTTPError as e:
            logger.warning("Google userinfo request failed: %s", e)
            raise _unavailable() from e

        if response.status_code >= 500:
            logger.warning("Google userinfo returned %d", response.status_code)
            raise _unavailable()
        if response.status_code != 200:
            logger.info("Google access token rejected: %s", response.text)
            raise _invalid("Invalid Google access token")

        info = response.json()
        return _identity(
            info.get("id"),
            info.get("email"),
            info.get("name"),
            info.get("picture"),
            info.get("verified_email"),
        )
