"""
Session cookies.

Both tokens travel as httpOnly cookies; production adds ``Secure`` and
``SameSite=None`` so a separately hosted frontend can send them.
"""

from __future__ import annotations

from fastapi import Response

from notetaker.config import Settings
from notetaker.domains.sessions import TokenPair

ACCESS_COOKIE = "accessToken"
REFRESH_COOKIE = "refreshToken"


def _flags(settings: Settings) -> dict:
    if settings.is_production:
        return {"httponly": True, "secure": True, "samesite": "none", "path": "/"}
    return {"httponly": True, "secure": False, "samesite": "lax", "path": "/"}


def set_auth_cookies(response: Response, tokens: TokenPair, settings: Settings) -> None:
    flags = _flags(settings)
    response.set_cookie(ACCESS_COOKIE, tokens.access_token, max_age=tokens.access_max_age, **flags)
    response.set_cookie(REFRESH_COOKIE, tokens.refresh_token, max_age=tokens.refresh_max_age, **flags)


def clear_auth_cookies(response: Response, settings: Settings) -> None:
    flags = _flags(settings)
    for name in (ACCESS_COOKIE, REFRESH_COOKIE):
        response.delete_cookie(name, **flags)
