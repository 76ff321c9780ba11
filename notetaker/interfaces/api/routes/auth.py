"""
Auth Routes - Signup, sign-in, Google sign-in and session endpoints.

Successful sign-ins set the ``accessToken`` / ``refreshToken`` cookies.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import APIRouter, Cookie, Depends, Response

from notetaker.domains.auth import AuthOrchestrator
from notetaker.domains.identity import User

from ..auth import (
    REFRESH_COOKIE,
    clear_auth_cookies,
    get_current_user,
    get_current_user_optional,
    set_auth_cookies,
)
from ..deps import Services, get_auth, get_services, rate_limit
from ..schemas import (
    EmailRequest,
    GoogleTokenRequest,
    OTPRequest,
    RefreshRequest,
    SignupRequest,
    envelope,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/signup", status_code=201, dependencies=[Depends(rate_limit("signup"))])
async def signup(
    request: SignupRequest,
    auth: AuthOrchestrator = Depends(get_auth),
) -> dict[str, Any]:
    """
    Register with email. A 6-digit code is emailed for verification.

    - **email**: Address to register
    - **name**: 2-50 letters and spaces
    - **dateOfBirth**: Optional, age 13-120
    - **password**: Optional; stored hashed, never used to sign in
    """
    user = await auth.signup(request.email, request.name, request.date_of_birth, request.password)
    return envelope(
        "User created successfully. Please verify your email with the OTP sent.",
        user=user.public(),
    )


@router.post("/google-signup", status_code=201, dependencies=[Depends(rate_limit("signup"))])
async def google_signup(
    request: GoogleTokenRequest,
    response: Response,
    services: Services = Depends(get_services),
) -> dict[str, Any]:
    """Create an account from a Google ID token or access token."""
    result = await services.auth.google_signup(request.id_token, request.access_token)
    set_auth_cookies(response, result.tokens, services.settings)
    return envelope("Google signup successful", user=result.user.public())


@router.post("/verify-otp", dependencies=[Depends(rate_limit("otp"))])
async def verify_otp(
    request: OTPRequest,
    response: Response,
    services: Services = Depends(get_services),
) -> dict[str, Any]:
    """Verify the signup code and start a session."""
    result = await services.auth.verify_signup_otp(request.email, request.otp)
    set_auth_cookies(response, result.tokens, services.settings)
    return envelope("Email verified successfully", user=result.user.public())


@router.post("/signin", dependencies=[Depends(rate_limit("auth"))])
async def signin(
    request: EmailRequest,
    auth: AuthOrchestrator = Depends(get_auth),
) -> dict[str, Any]:
    """Email a sign-in code to a verified email account."""
    user = await auth.signin(request.email)
    return envelope("OTP sent to your email. Please verify to sign in.", email=user.email)


@router.post("/verify-signin-otp", dependencies=[Depends(rate_limit("otp"))])
async def verify_signin_otp(
    request: OTPRequest,
    response: Response,
    services: Services = Depends(get_services),
) -> dict[str, Any]:
    result = await services.auth.verify_signin_otp(request.email, request.otp)
    set_auth_cookies(response, result.tokens, services.settings)
    return envelope("Signin successful", user=result.user.public())


@router.post("/google-login", dependencies=[Depends(rate_limit("auth"))])
async def google_login(
    request: GoogleTokenRequest,
    response: Response,
    services: Services = Depends(get_services),
) -> dict[str, Any]:
    """Sign in an account created with Google."""
    result = await services.auth.google_login(request.id_token, request.access_token)
    set_auth_cookies(response, result.tokens, services.settings)
    return envelope("Google login successful", user=result.user.public())


@router.post("/resend-otp", dependencies=[Depends(rate_limit("otp"))])
async def resend_otp(
    request: EmailRequest,
    auth: AuthOrchestrator = Depends(get_auth),
) -> dict[str, Any]:
    """Send a new code; at most one every 30 seconds per account."""
    user = await auth.resend_otp(request.email)
    return envelope(
        "OTP sent successfully",
        user={"email": user.email, "isEmailVerified": user.is_email_verified},
    )


@router.post("/refresh")
async def refresh(
    response: Response,
    request: Optional[RefreshRequest] = None,
    refresh_cookie: Optional[str] = Cookie(None, alias=REFRESH_COOKIE),
    services: Services = Depends(get_services),
) -> dict[str, Any]:
    """Rotate the session pair. The token may come in the body or the cookie."""
    token = (request.refresh_token if request else None) or refresh_cookie
    result = await services.auth.refresh(token)
    set_auth_cookies(response, result.tokens, services.settings)
    return envelope("Tokens refreshed successfully")


@router.post("/check-user")
async def check_user(
    request: EmailRequest,
    auth: AuthOrchestrator = Depends(get_auth),
) -> dict[str, Any]:
    check = await auth.check_user(request.email)
    return envelope(
        "User check completed",
        exists=check.exists,
        authProvider=check.auth_provider.value if check.auth_provider else None,
        isEmailVerified=check.is_email_verified,
    )


@router.post("/logout")
async def logout(
    response: Response,
    user: User | None = Depends(get_current_user_optional),
    services: Services = Depends(get_services),
) -> dict[str, Any]:
    """Clear the session cookies. Always succeeds."""
    clear_auth_cookies(response, services.settings)
    if user is not None:
        logger.info("User logged out: %s", user.email)
    return envelope("Logout successful")


@router.get("/me")
async def me(user: User = Depends(get_current_user)) -> dict[str, Any]:
    """Profile of the signed-in user."""
    return envelope("Profile retrieved successfully", user=user.public())
