"""
Notes Contracts - Interfaces for note persistence.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from .models import Note, NoteQuery


@runtime_checkable
class NoteStore(Protocol):
    """Contract for note storage. Every call is scoped to one owner."""

    async def insert(self, note: Note) -> Note:
        ...

    async def get(self, note_id: str, user_id: str) -> Note | None:
        ...

    async def update(self, note: Note) -> Note:
        ...

    async def delete(self, note_id: str, user_id: str) -> bool:
        ...

    async def list(self, user_id: str, query: NoteQuery) -> tuple[list[Note], int]:
        """Return one page of notes, newest first, plus the total match count."""
        ...

    async def search(
        self,
        user_id: str,
        text: str,
        limit: int,
        offset: int,
    ) -> tuple[list[Note], int]:
        """Full-text search, best match first."""
        ...
