"""
Notes Models - User-owned notes, edits and listing queries.
"""

from __future__ import annotations

import math
import uuid
from datetime import datetime, timezone
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, model_validator
from pydantic.alias_generators import to_camel

TITLE_MAX = 200
CONTENT_MAX = 10000
TAG_MAX = 30
TAGS_MAX = 10

Title = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=TITLE_MAX)]
Content = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=CONTENT_MAX)]
Tag = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=TAG_MAX)]

_camel = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _unpin_archived(data: Any) -> Any:
    if isinstance(data, dict):
        archived = data.get("is_archived", data.get("isArchived"))
        if archived:
            data = {k: v for k, v in data.items() if k not in ("is_pinned", "isPinned")}
            data["is_pinned"] = False
    return data


class Note(BaseModel):
    """A stored note. Archived notes are never pinned."""

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    user_id: str
    title: Title
    content: Content
    tags: list[Tag] = Field(default_factory=list, max_length=TAGS_MAX)
    is_pinned: bool = False
    is_archived: bool = False
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="before")
    @classmethod
    def _archived_is_unpinned(cls, data: Any) -> Any:
        return _unpin_archived(data)

    def public(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "tags": list(self.tags),
            "isPinned": self.is_pinned,
            "isArchived": self.is_archived,
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
        }


class NoteCreate(BaseModel):
    """Fields accepted when creating a note."""

    model_config = _camel

    title: Title
    content: Content
    tags: list[Tag] = Field(default_factory=list, max_length=TAGS_MAX)
    is_pinned: bool = False


class NoteUpdate(BaseModel):
    """Partial edit; unset fields are left alone."""

    model_config = _camel

    title: Title | None = None
    content: Content | None = None
    tags: list[Tag] | None = Field(None, max_length=TAGS_MAX)
    is_pinned: bool | None = None
    is_archived: bool | None = None

    def changes(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True, exclude_none=True)


class NoteQuery(BaseModel):
    """Listing filters and paging."""

    model_config = _camel

    page: int = Field(1, ge=1)
    limit: int = Field(10, ge=1, le=100)
    search: str | None = None
    tags: list[str] = Field(default_factory=list)
    is_pinned: bool | None = None
    is_archived: bool | None = None

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> Pagination:
        return cls(page=page, limit=limit, total=total, pages=math.ceil(total / limit))


class NotePage(BaseModel):
    """One page of notes."""

    notes: list[Note]
    pagination: Pagination

    def public(self) -> dict[str, Any]:
        return {
            "notes": [note.public() for note in self.notes],
            "pagination": self.pagination.model_dump(),
        }
