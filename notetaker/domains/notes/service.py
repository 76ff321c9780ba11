"""
Notes Service - CRUD, pin/archive toggles and search over user-owned notes.

Every operation takes the owner's id; a note belonging to someone else is
reported exactly like a missing one.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

from notetaker.config.errors import ErrorCode, NotFoundError, ValidationError

from .contracts import NoteStore
from .models import Note, NoteCreate, NotePage, NoteQuery, NoteUpdate, Pagination

logger = logging.getLogger(__name__)

__all__ = ["NotesService"]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class NotesService:
    """
    Note operations for an authenticated owner.

    Example:
        >>> notes = NotesService(SQLiteNoteStore(db))
        >>> note = await notes.create(user.id, NoteCreate(title="T", content="C"))
        >>> page = await notes.list(user.id, NoteQuery())
    """

    def __init__(self, store: NoteStore, clock: Callable[[], datetime] = _utcnow) -> None:
        self.store = store
        self._clock = clock

    def _apply(self, note: Note, changes: dict[str, Any]) -> Note:
        # Re-validate so the archived/pinned rule is applied
        data = {**note.model_dump(), **changes, "updated_at": self._clock()}
        return Note.model_validate(data)

    async def create(self, user_id: str, data: NoteCreate) -> Note:
        now = self._clock()
        note = Note(
            user_id=user_id,
            title=data.title,
            content=data.content,
            tags=data.tags,
            is_pinned=data.is_pinned,
            created_at=now,
            updated_at=now,
        )
        note = await self.store.insert(note)
        logger.info("Note created by user %s: %s", user_id, note.id)
        return note

    async def list(self, user_id: str, query: NoteQuery) -> NotePage:
        notes, total = await self.store.list(user_id, query)
        return NotePage(
            notes=notes,
            pagination=Pagination.build(query.page, query.limit, total),
        )

    async def get(self, user_id: str, note_id: str) -> Note:
        """Raises NotFoundError(NOTE_NOT_FOUND) for missing or foreign notes."""
        note = await self.store.get(note_id, user_id)
        if note is None:
            raise NotFoundError("Note not found", ErrorCode.NOTE_NOT_FOUND)
        return note

    async def update(self, user_id: str, note_id: str, data: NoteUpdate) -> Note:
        note = await self.get(user_id, note_id)
        updated = await self.store.update(self._apply(note, data.changes()))
        logger.info("Note updated by user %s: %s", user_id, note_id)
        return updated

    async def delete(self, user_id: str, note_id: str) -> None:
        if not await self.store.delete(note_id, user_id):
            raise NotFoundError("Note not found", ErrorCode.NOTE_NOT_FOUND)
        logger.info("Note deleted by user %s: %s", user_id, note_id)

    async def toggle_pin(self, user_id: str, note_id: str) -> Note:
        """Flip ``is_pinned``. Archived notes cannot be pinned."""
        note = await self.get(user_id, note_id)
        if note.is_archived:
            raise ValidationError("Archived notes cannot be pinned", ErrorCode.NOTE_ARCHIVED)
        updated = await self.store.update(self._apply(note, {"is_pinned": not note.is_pinned}))
        logger.info(
            "Note %s by user %s: %s",
            "pinned" if updated.is_pinned else "unpinned",
            user_id,
            note_id,
        )
        return updated

    async def toggle_archive(self, user_id: str, note_id: str) -> Note:
        """Flip ``is_archived``; archiving also unpins."""
        note = await self.get(user_id, note_id)
        updated = await self.store.update(self._apply(note, {"is_archived": not note.is_archived}))
        logger.info(
            "Note %s by user %s: %s",
            "archived" if updated.is_archived else "unarchived",
            user_id,
            note_id,
        )
        return updated

    async def search(self, user_id: str, text: str | None, page: int = 1, limit: int = 10) -> NotePage:
        """
        Full-text search over title, content and tags.

        Args:
            user_id: Owner
            text: Search terms
            page: 1-based page number
            limit: Page size (1-100)

        Returns:
            NotePage ordered by relevance
        """
        if not text or not text.strip():
            raise ValidationError("Search query is required", ErrorCode.SEARCH_QUERY_REQUIRED)
        page = max(page, 1)
        limit = min(max(limit, 1), 100)
        notes, total = await self.store.search(user_id, text.strip(), limit, (page - 1) * limit)
        return NotePage(notes=notes, pagination=Pagination.build(page, limit, total))
