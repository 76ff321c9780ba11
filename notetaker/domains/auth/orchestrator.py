"""
Auth Orchestrator - Signup, sign-in, Google sign-in and session flows.

Email accounts move from pending verification to verified by proving
ownership with an emailed one-time code; Google accounts are verified
from the start when Google says so. Every successful sign-in issues a
fresh access/refresh pair.

Example:
    >>> auth = AuthOrchestrator(users, tokens, verifier, mailer)
    >>> await auth.signup("alice@example.com", "Alice", date(1990, 1, 1))
    >>> result = await auth.verify_signup_otp("alice@example.com", code)
    >>> result.tokens.access_token
"""

from __future__ import annotations

import asyncio
import logging
import secrets
from collections import defaultdict
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from datetime import date, datetime, timedelta, timezone

from notetaker.config.errors import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    ErrorCode,
    NoteTakerError,
    NotFoundError,
    RateLimitError,
    ValidationError,
)
from notetaker.config.settings import Settings
from notetaker.domains.identity import otp as otp_engine
from notetaker.domains.identity.contracts import UserStore
from notetaker.domains.identity.models import AuthProvider, User, UserCheck, normalize_email
from notetaker.domains.identity.otp import OTPCheck
from notetaker.domains.identity.passwords import hash_password
from notetaker.domains.sessions.tokens import TokenService

from .contracts import IdentityVerifier, Mailer
from .models import AuthResult, GoogleIdentity

logger = logging.getLogger(__name__)

__all__ = ["AuthOrchestrator", "OTPPolicy"]

_OTP_ERRORS = {
    OTPCheck.MISSING: ("OTP expired", ErrorCode.OTP_EXPIRED),
    OTPCheck.EXPIRED: ("OTP expired", ErrorCode.OTP_EXPIRED),
    OTPCheck.USED: ("OTP already used", ErrorCode.OTP_ALREADY_USED),
    OTPCheck.MISMATCH: ("Invalid OTP", ErrorCode.INVALID_OTP),
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class OTPPolicy:
    """Length, lifetime and resend cooldown of one-time codes."""

    def __init__(
        self,
        length: int = 6,
        ttl: timedelta = timedelta(minutes=10),
        cooldown: timedelta = timedelta(seconds=30),
    ) -> None:
        self.length = length
        self.ttl = ttl
        self.cooldown = cooldown

    @classmethod
    def from_settings(cls, settings: Settings) -> OTPPolicy:
        return cls(
            length=settings.otp_length,
            ttl=timedelta(minutes=settings.otp_expiry_minutes),
            cooldown=timedelta(seconds=settings.otp_resend_cooldown_seconds),
        )

    @property
    def expiry_minutes(self) -> int:
        return int(self.ttl.total_seconds() // 60)


class AuthOrchestrator:
    """Coordinates credential storage, codes, tokens, Google and email."""

    def __init__(
        self,
        users: UserStore,
        tokens: TokenService,
        verifier: IdentityVerifier,
        mailer: Mailer,
        policy: OTPPolicy | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.users = users
        self.tokens = tokens
        self.verifier = verifier
        self.mailer = mailer
        self.policy = policy or OTPPolicy()
        self._clock = clock
        self._locks: dict[str, asyncio.Lock] = {}
        self._lock_refs: defaultdict[str, int] = defaultdict(int)

    @asynccontextmanager
    async def _serialized(self, email: str) -> AsyncIterator[None]:
        # OTP mutations for one email run one at a time within this process
        lock = self._locks.setdefault(email, asyncio.Lock())
        self._lock_refs[email] += 1
        try:
            async with lock:
                yield
        finally:
            self._lock_refs[email] -= 1
            if not self._lock_refs[email]:
                del self._lock_refs[email]
                self._locks.pop(email, None)

    # --- helpers ---

    async def _require_user(self, email: str, message: str = "User not found") -> User:
        user = await self.users.get_by_email(email)
        if user is None:
            raise NotFoundError(message, ErrorCode.USER_NOT_FOUND)
        return user

    def _check_cooldown(self, user: User, now: datetime) -> None:
        wait = otp_engine.cooldown_remaining(user.otp, now, self.policy.cooldown)
        if wait > 0:
            raise RateLimitError(
                f"Please wait {wait} seconds before requesting a new OTP",
                ErrorCode.OTP_RATE_LIMITED,
                retry_after=wait,
                details={"waitTime": wait},
            )

    async def _issue_otp(self, user: User, now: datetime) -> tuple[User, str]:
        state, code = otp_engine.generate_otp(
            user.otp, now, length=self.policy.length, ttl=self.policy.ttl
        )
        user = await self.users.update(user.model_copy(update={"otp": state}))
        return user, code

    async def _consume_otp(self, user: User, code: str, now: datetime) -> User:
        """Verify ``code``; persist the attempt and, on success, spend the code."""
        state, result = otp_engine.verify_otp(user.otp, code, now)
        if result is not OTPCheck.VALID:
            await self.users.update(user.model_copy(update={"otp": state}))
            message, error_code = _OTP_ERRORS[result]
            raise ValidationError(message, error_code)
        return user.model_copy(update={"otp": otp_engine.mark_used(state)})

    async def _deliver_otp(self, user: User, code: str) -> None:
        """Email ``code``; if delivery fails, withdraw it so the cooldown does not apply."""
        try:
            await self.mailer.send_otp(user.email, user.name, code, self.policy.expiry_minutes)
        except NoteTakerError:
            async with self._serialized(user.email):
                current = await self.users.get_by_id(user.id)
                # Leave a newer code from a concurrent request alone
                if current is not None and current.otp.code == code:
                    await self.users.update(current.model_copy(update={"otp": otp_engine.clear_otp()}))
            logger.warning("Withdrew unsent OTP for %s", user.email)
            raise

    async def _send_welcome(self, user: User) -> None:
        try:
            await self.mailer.send_welcome(user.email, user.name)
        except NoteTakerError as e:
            logger.warning("Welcome email to %s failed: %s", user.email, e.message)

    # --- email flows ---

    async def signup(
        self,
        email: str,
        name: str,
        date_of_birth: date | None,
        password: str | None = None,
    ) -> User:
        """
        Register an email account and send its verification code.

        Args:
            email: Address to register
            name: Display name
            date_of_birth: Optional birth date
            password: Optional password (policy-checked, stored hashed)

        Returns:
            The pending (unverified) user

        Raises:
            ConflictError: USER_ALREADY_VERIFIED or USER_EXISTS_UNVERIFIED
            ExternalServiceError: EMAIL_SEND_FAILED (the record is rolled back)
        """
        email = normalize_email(email)
        async with self._serialized(email):
            existing = await self.users.get_by_email(email)
            if existing is not None:
                if existing.is_email_verified:
                    raise ConflictError(
                        "Account already exists and is verified. Please use Sign In instead.",
                        ErrorCode.USER_ALREADY_VERIFIED,
                    )
                raise ConflictError(
                    "Account exists but not verified. Please check your email for OTP or use resend OTP.",
                    ErrorCode.USER_EXISTS_UNVERIFIED,
                )

            password_hash = None
            if password:
                try:
                    password_hash = hash_password(password)
                except ValueError as e:
                    raise ValidationError(str(e), details={"field": "password"}) from e

            now = self._clock()
            state, code = otp_engine.generate_otp(
                None, now, length=self.policy.length, ttl=self.policy.ttl
            )
            user = await self.users.create(
                User(
                    email=email,
                    name=name.strip(),
                    date_of_birth=date_of_birth,
                    password_hash=password_hash,
                    auth_provider=AuthProvider.EMAIL,
                    otp=state,
                    created_at=now,
                    updated_at=now,
                )
            )

            try:
                await self.mailer.send_otp(user.email, user.name, code, self.policy.expiry_minutes)
            except NoteTakerError:
                await self.users.delete(user.id)
                logger.warning("Rolled back signup for %s after email failure", email)
                raise

            logger.info("User signup initiated for %s", email)
            return user

    async def verify_signup_otp(self, email: str, code: str) -> AuthResult:
        """Prove email ownership, mark the account verified and start a session."""
        email = normalize_email(email)
        async with self._serialized(email):
            user = await self._require_user(email)
            now = self._clock()

            if user.is_email_verified:
                # A replay of the code that just verified this account
                replay = otp_engine.check_otp(user.otp, code, now)
                if replay is OTPCheck.USED and secrets.compare_digest(user.otp.code or "", code.strip()):
                    raise ValidationError("OTP already used", ErrorCode.OTP_ALREADY_USED)
                raise ValidationError("Email already verified", ErrorCode.EMAIL_ALREADY_VERIFIED)

            user = await self._consume_otp(user, code, now)
            user = await self.users.update(
                user.model_copy(update={"is_email_verified": True, "last_login_at": now})
            )

        tokens = self.tokens.issue_pair(user)
        await self._send_welcome(user)
        logger.info("Email verified for %s", email)
        return AuthResult(user=user, tokens=tokens)

    def _require_email_account(self, user: User) -> None:
        if user.auth_provider != AuthProvider.EMAIL:
            raise AuthenticationError("Please use Google login", ErrorCode.USE_GOOGLE_LOGIN)
        if not user.is_email_verified:
            raise AuthenticationError(
                "Email not verified. Please complete signup first.",
                ErrorCode.EMAIL_NOT_VERIFIED,
            )

    async def signin(self, email: str) -> User:
        """Send a sign-in code to a verified email account."""
        email = normalize_email(email)
        async with self._serialized(email):
            user = await self._require_user(email, "User not found. Please sign up first.")
            self._require_email_account(user)

            now = self._clock()
            self._check_cooldown(user, now)
            user, code = await self._issue_otp(user, now)

        await self._deliver_otp(user, code)
        logger.info("Signin OTP sent to %s", email)
        return user

    async def verify_signin_otp(self, email: str, code: str) -> AuthResult:
        email = normalize_email(email)
        async with self._serialized(email):
            user = await self._require_user(email)
            self._require_email_account(user)

            now = self._clock()
            user = await self._consume_otp(user, code, now)
            user = await self.users.update(user.model_copy(update={"last_login_at": now}))

        logger.info("Signin successful for %s", email)
        return AuthResult(user=user, tokens=self.tokens.issue_pair(user))

    async def resend_otp(self, email: str) -> User:
        """Issue a new code to an email account (verified or not)."""
        email = normalize_email(email)
        async with self._serialized(email):
            user = await self._require_user(email)
            if user.auth_provider == AuthProvider.GOOGLE:
                raise ValidationError(
                    "Google users do not need OTP verification", ErrorCode.NO_OTP_NEEDED
                )

            now = self._clock()
            self._check_cooldown(user, now)
            user, code = await self._issue_otp(user, now)

        await self._deliver_otp(user, code)
        logger.info(
            "%s OTP resent to %s", "Signin" if user.is_email_verified else "Signup", email
        )
        return user

    # --- Google flows ---

    async def _google_identity(self, id_token: str | None, access_token: str | None) -> GoogleIdentity:
        if id_token:
            return await self.verifier.verify_id_token(id_token)
        if access_token:
            return await self.verifier.verify_access_token(access_token)
        raise ValidationError("Google ID token or access token is required")

    async def google_signup(
        self,
        id_token: str | None = None,
        access_token: str | None = None,
    ) -> AuthResult:
        """Create a Google account and start a session."""
        identity = await self._google_identity(id_token, access_token)
        email = normalize_email(identity.email)

        async with self._serialized(email):
            existing = await self.users.get_by_email(email)
            if existing is not None:
                if existing.auth_provider == AuthProvider.EMAIL:
                    raise ConflictError(
                        "An account with this email already exists. Please sign in using Email + OTP method.",
                        ErrorCode.USER_EXISTS_WITH_EMAIL_AUTH,
                    )
                raise ConflictError(
                    "You already have an account with Google. Please use Sign In instead.",
                    ErrorCode.USER_ALREADY_EXISTS_GOOGLE,
                )
            if await self.users.get_by_google_id(identity.external_id) is not None:
                raise ConflictError(
                    "This Google account is already registered. Please use Sign In instead.",
                    ErrorCode.GOOGLE_ID_ALREADY_EXISTS,
                )

            now = self._clock()
            user = await self.users.create(
                User(
                    email=email,
                    name=identity.name,
                    profile_picture=identity.picture,
                    is_email_verified=identity.email_verified,
                    auth_provider=AuthProvider.GOOGLE,
                    google_id=identity.external_id,
                    last_login_at=now,
                    created_at=now,
                    updated_at=now,
                )
            )

        tokens = self.tokens.issue_pair(user)
        if user.is_email_verified:
            await self._send_welcome(user)
        logger.info("Google signup successful for %s", email)
        return AuthResult(user=user, tokens=tokens)

    async def google_login(
        self,
        id_token: str | None = None,
        access_token: str | None = None,
    ) -> AuthResult:
        """Sign in a Google account, refreshing its profile from Google."""
        identity = await self._google_identity(id_token, access_token)
        email = normalize_email(identity.email)

        async with self._serialized(email):
            user = await self._require_user(email, "No account found with this email. Please sign up first.")
            if user.auth_provider == AuthProvider.EMAIL:
                raise AuthenticationError(
                    "This account was created with Email + OTP. Please sign in using Email + OTP method.",
                    ErrorCode.USE_EMAIL_LOGIN,
                )
            if user.google_id and user.google_id != identity.external_id:
                raise AuthenticationError(
                    "This email is associated with a different Google account.",
                    ErrorCode.DIFFERENT_GOOGLE_ACCOUNT,
                )

            user = await self.users.update(
                user.model_copy(
                    update={
                        "google_id": user.google_id or identity.external_id,
                        "name": identity.name,
                        "profile_picture": identity.picture or user.profile_picture,
                        "is_email_verified": identity.email_verified,
                        "last_login_at": self._clock(),
                    }
                )
            )

        logger.info("Google login successful for %s", email)
        return AuthResult(user=user, tokens=self.tokens.issue_pair(user))

    # --- sessions ---

    async def refresh(self, refresh_token: str | None) -> AuthResult:
        """Exchange a refresh token for a new pair."""
        if not refresh_token:
            raise ValidationError("Refresh token is required", ErrorCode.MISSING_REFRESH_TOKEN)
        try:
            claims = self.tokens.verify_refresh(refresh_token)
        except AuthenticationError as e:
            raise AuthenticationError(
                "Invalid or expired refresh token", ErrorCode.INVALID_REFRESH_TOKEN
            ) from e

        user = await self.users.get_by_id(claims.user_id)
        if user is None:
            raise AuthenticationError("User not found", ErrorCode.USER_NOT_FOUND)
        if user.auth_provider == AuthProvider.EMAIL and not user.is_email_verified:
            raise AuthenticationError("Email not verified", ErrorCode.EMAIL_NOT_VERIFIED)

        logger.info("Tokens refreshed for %s", user.email)
        return AuthResult(user=user, tokens=self.tokens.issue_pair(user))

    async def check_user(self, email: str) -> UserCheck:
        user = await self.users.get_by_email(email)
        if user is None:
            return UserCheck(exists=False)
        return UserCheck(
            exists=True,
            auth_provider=user.auth_provider,
            is_email_verified=user.is_email_verified,
        )

    async def authenticate(self, access_token: str | None, require_verified: bool = True) -> User:
        """
        Resolve the user behind an access token.

        Raises:
            AuthenticationError: MISSING_TOKEN, TOKEN_EXPIRED, INVALID_TOKEN, USER_NOT_FOUND
            AuthorizationError: EMAIL_NOT_VERIFIED when ``require_verified``
        """
        if not access_token:
            raise AuthenticationError("Access token is required", ErrorCode.MISSING_TOKEN)
        claims = self.tokens.verify_access(access_token)
        user = await self.users.get_by_id(claims.user_id)
        if user is None:
            raise AuthenticationError("User not found", ErrorCode.USER_NOT_FOUND)
        if require_verified and not user.is_email_verified:
            raise AuthorizationError("Email verification required", ErrorCode.EMAIL_NOT_VERIFIED)
        return user

    async def purge_expired_otps(self) -> int:
        return await self.users.clear_expired_otps(self._clock())
