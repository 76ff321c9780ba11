"""
Auth Models - Results exchanged between the orchestrator and its collaborators.
"""

from __future__ import annotations

from dataclasses import dataclass

from pydantic import BaseModel

from notetaker.domains.identity.models import User
from notetaker.domains.sessions.models import TokenPair


class GoogleIdentity(BaseModel):
    """A Google account as vouched for by Google."""

    external_id: str
    email: str
    name: str
    picture: str | None = None
    email_verified: bool = False

    model_config = {"frozen": True}


@dataclass(frozen=True)
class AuthResult:
    """A user together with a freshly issued session, when one was issued."""

    user: User
    tokens: TokenPair | None = None
