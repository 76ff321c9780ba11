"""Tests for the session token service."""

from datetime import datetime, timedelta, timezone

import jwt
import pytest

from notetaker.config.errors import AuthenticationError, ErrorCode
from notetaker.domains.identity.models import AuthProvider, User

from .tokens import TokenService

ACCESS_SECRET = "test-access-secret-0123456789abcdef"
REFRESH_SECRET = "test-refresh-secret-0123456789abcdef"


@pytest.fixture
def user() -> User:
    return User(
        email="alice@example.com",
        name="Alice",
        auth_provider=AuthProvider.EMAIL,
        is_email_verified=True,
        token_version=3,
    )


@pytest.fixture
def tokens() -> TokenService:
    return TokenService(ACCESS_SECRET, REFRESH_SECRET)


def test_issue_and_verify_pair(tokens: TokenService, user: User):
    """Test both tokens round-trip their claims."""
    pair = tokens.issue_pair(user)

    access = tokens.verify_access(pair.access_token)
    assert access.user_id == user.id
    assert access.email == "alice@example.com"
    assert access.is_email_verified is True

    refresh = tokens.verify_refresh(pair.refresh_token)
    assert refresh.user_id == user.id
    assert refresh.token_version == 3

    assert pair.access_max_age == 7 * 24 * 3600
    assert pair.refresh_max_age == 30 * 24 * 3600


def test_tokens_carry_issuer_audience_and_jti(tokens: TokenService, user: User):
    pair = tokens.issue_pair(user)
    payload = jwt.decode(
        pair.access_token,
        ACCESS_SECRET,
        algorithms=["HS256"],
        audience="note-taking-app-users",
    )
    assert payload["iss"] == "note-taking-app"
    assert payload["jti"]
    assert tokens.issue_pair(user).access_token != pair.access_token


def test_refresh_token_is_not_an_access_token(tokens: TokenService, user: User):
    """Test secrets are separate."""
    pair = tokens.issue_pair(user)
    with pytest.raises(AuthenticationError) as exc:
        tokens.verify_access(pair.refresh_token)
    assert exc.value.code == ErrorCode.INVALID_TOKEN


def test_expired_token(user: User):
    past = datetime.now(timezone.utc) - timedelta(days=8)
    issuer = TokenService(ACCESS_SECRET, REFRESH_SECRET, clock=lambda: past)
    pair = issuer.issue_pair(user)

    verifier = TokenService(ACCESS_SECRET, REFRESH_SECRET)
    with pytest.raises(AuthenticationError) as exc:
        verifier.verify_access(pair.access_token)
    assert exc.value.code == ErrorCode.TOKEN_EXPIRED


def test_leeway_accepts_recently_expired(user: User):
    issued = datetime.now(timezone.utc) - timedelta(days=7, seconds=30)
    issuer = TokenService(ACCESS_SECRET, REFRESH_SECRET, clock=lambda: issued)
    pair = issuer.issue_pair(user)

    claims = TokenService(ACCESS_SECRET, REFRESH_SECRET).verify_access(pair.access_token)
    assert claims.user_id == user.id


def test_wrong_audience_is_invalid(tokens: TokenService, user: User):
    other = TokenService(ACCESS_SECRET, REFRESH_SECRET, audience="someone-else")
    pair = other.issue_pair(user)
    with pytest.raises(AuthenticationError) as exc:
        tokens.verify_access(pair.access_token)
    assert exc.value.code == ErrorCode.INVALID_TOKEN


def test_garbage_token(tokens: TokenService):
    with pytest.raises(AuthenticationError) as exc:
        tokens.verify_access("not.a.token")
    assert exc.value.code == ErrorCode.INVALID_TOKEN
    assert exc.value.status_code == 401
