"""
Authentication - Session cookies and the current-user dependency.

Flow:
    Sign-in route: orchestrator issues tokens -> set_auth_cookies
    Protected route: get_current_user -> orchestrator.authenticate
"""

from .cookies import ACCESS_COOKIE, REFRESH_COOKIE, clear_auth_cookies, set_auth_cookies
from .deps import extract_access_token, get_current_user, get_current_user_optional

__all__ = [
    "get_current_user",
    "get_current_user_optional",
    "extract_access_token",
    "set_auth_cookies",
    "clear_auth_cookies",
    "ACCESS_COOKIE",
    "REFRESH_COOKIE",
]
