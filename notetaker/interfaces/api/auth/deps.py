"""
Authentication Dependencies - Resolve the session user of a request.

The access token comes from the ``accessToken`` cookie or, for API
clients, an ``Authorization: Bearer <token>`` header.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import Cookie, Depends, Header

from notetaker.config import NoteTakerError
from notetaker.domains.auth import AuthOrchestrator
from notetaker.domains.identity import User

from ..deps import get_auth
from .cookies import ACCESS_COOKIE

logger = logging.getLogger(__name__)


def extract_access_token(authorization: str | None, cookie_token: str | None) -> str | None:
    """Prefer the cookie; fall back to a Bearer header."""
    if cookie_token:
        return cookie_token
    if authorization:
        parts = authorization.split()
        if len(parts) == 2 and parts[0].lower() == "bearer":
            return parts[1]
    return None


async def get_current_user(
    authorization: Optional[str] = Header(None),
    access_token: Optional[str] = Cookie(None, alias=ACCESS_COOKIE),
    auth: AuthOrchestrator = Depends(get_auth),
) -> User:
    """
    Return the verified user behind the request's access token.

    Raises:
        AuthenticationError: 401 (missing, expired or invalid token; unknown user)
        AuthorizationError: 403 when the email is not verified
    """
    token = extract_access_token(authorization, access_token)
    return await auth.authenticate(token)


async def get_current_user_optional(
    authorization: Optional[str] = Header(None),
    access_token: Optional[str] = Cookie(None, alias=ACCESS_COOKIE),
    auth: AuthOrchestrator = Depends(get_auth),
) -> User | None:
    """
    Get the session user if there is a valid session, None otherwise.
    """
    token = extract_access_token(authorization, access_token)
    if not token:
        return None

    try:
        return await auth.authenticate(token)
    except NoteTakerError as e:
        logger.debug("Ignoring invalid session: %s", e.code.value)
        return None
