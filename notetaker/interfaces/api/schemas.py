"""
API Schemas - Request bodies and the response envelope.

Field names are camelCase on the wire and snake_case in Python.
"""

from __future__ import annotations

import re
from datetime import date
from typing import Any

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

NAME_PATTERN = re.compile(r"^[a-zA-Z\s]+$")
MIN_AGE = 13
MAX_AGE = 120


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, str_strip_whitespace=True)


class Envelope(BaseModel):
    """Successful response wrapper."""

    success: bool = True
    message: str
    data: dict[str, Any] | None = None


def envelope(message: str, **data: Any) -> dict[str, Any]:
    return Envelope(message=message, data=data or None).model_dump(exclude_none=True)


class EmailRequest(CamelModel):
    email: EmailStr = Field(..., max_length=254)


class SignupRequest(EmailRequest):
    name: str = Field(..., min_length=2, max_length=50)
    date_of_birth: date | None = None
    password: str | None = Field(None, max_length=128)

    @field_validator("name")
    @classmethod
    def _letters_only(cls, value: str) -> str:
        if not NAME_PATTERN.match(value):
            raise ValueError("Name can only contain letters and spaces")
        return value

    @field_validator("date_of_birth")
    @classmethod
    def _plausible_age(cls, value: date | None) -> date | None:
        if value is None:
            return value
        age = date.today().year - value.year
        if not MIN_AGE <= age <= MAX_AGE:
            raise ValueError(f"Age must be between {MIN_AGE} and {MAX_AGE} years")
        return value


class OTPRequest(EmailRequest):
    otp: str = Field(..., pattern=r"^\d{4,10}$", description="Numeric one-time code")


class GoogleTokenRequest(CamelModel):
    id_token: str | None = None
    access_token: str | None = None

    @model_validator(mode="after")
    def _one_token(self) -> GoogleTokenRequest:
        if not self.id_token and not self.access_token:
            raise ValueError("Google ID token or access token is required")
        return self


class RefreshRequest(CamelModel):
    refresh_token: str | None = None
