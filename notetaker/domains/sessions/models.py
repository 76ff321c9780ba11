"""
Session Models - Token pair and decoded claims.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class TokenPair(BaseModel):
    """Access + refresh tokens issued together."""

    access_token: str
    refresh_token: str
    access_max_age: int
    refresh_max_age: int

    model_config = ConfigDict(frozen=True)


class AccessClaims(BaseModel):
    """Claims carried by an access token."""

    user_id: str
    email: str
    is_email_verified: bool
    jti: str

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


class RefreshClaims(BaseModel):
    """Claims carried by a refresh token."""

    user_id: str
    token_version: int = 0
    jti: str

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)
