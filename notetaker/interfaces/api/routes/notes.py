"""
Notes Routes - CRUD, pin/archive and search for the signed-in user.

All endpoints require a verified session.
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Depends, Query

from notetaker.domains.identity import User
from notetaker.domains.notes import NoteCreate, NoteQuery, NotesService, NoteUpdate

from ..auth import get_current_user
from ..deps import get_notes
from ..schemas import envelope

router = APIRouter()


def _note_query(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: Optional[str] = Query(None),
    tags: Optional[str] = Query(None, description="Comma-separated; any tag matches"),
    is_pinned: Optional[bool] = Query(None, alias="isPinned"),
    is_archived: Optional[bool] = Query(None, alias="isArchived"),
) -> NoteQuery:
    return NoteQuery(
        page=page,
        limit=limit,
        search=search or None,
        tags=[tag.strip() for tag in tags.split(",") if tag.strip()] if tags else [],
        is_pinned=is_pinned,
        is_archived=is_archived,
    )


@router.post("", status_code=201)
async def create_note(
    request: NoteCreate,
    user: User = Depends(get_current_user),
    notes: NotesService = Depends(get_notes),
) -> dict[str, Any]:
    """
    Create a note.

    - **title**: 1-200 characters
    - **content**: 1-10000 characters
    - **tags**: Up to 10 tags of at most 30 characters
    - **isPinned**: Pin on creation
    """
    note = await notes.create(user.id, request)
    return envelope("Note created successfully", note=note.public())


@router.get("")
async def list_notes(
    query: NoteQuery = Depends(_note_query),
    user: User = Depends(get_current_user),
    notes: NotesService = Depends(get_notes),
) -> dict[str, Any]:
    """List notes newest first, with optional filters."""
    page = await notes.list(user.id, query)
    return envelope("Notes retrieved successfully", **page.public())


# Declared before /{note_id} so "search" is not taken for an id
@router.get("/search")
async def search_notes(
    q: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    user: User = Depends(get_current_user),
    notes: NotesService = Depends(get_notes),
) -> dict[str, Any]:
    """Full-text search over title, content and tags, best match first."""
    results = await notes.search(user.id, q, page=page, limit=limit)
    return envelope("Search completed successfully", **results.public())


@router.get("/{note_id}")
async def get_note(
    note_id: str,
    user: User = Depends(get_current_user),
    notes: NotesService = Depends(get_notes),
) -> dict[str, Any]:
    note = await notes.get(user.id, note_id)
    return envelope("Note retrieved successfully", note=note.public())


@router.put("/{note_id}")
async def update_note(
    note_id: str,
    request: NoteUpdate,
    user: User = Depends(get_current_user),
    notes: NotesService = Depends(get_notes),
) -> dict[str, Any]:
    """Partial update; omitted fields keep their values."""
    note = await notes.update(user.id, note_id, request)
    return envelope("Note updated successfully", note=note.public())


@router.delete("/{note_id}")
async def delete_note(
    note_id: str,
    user: User = Depends(get_current_user),
    notes: NotesService = Depends(get_notes),
) -> dict[str, Any]:
    await notes.delete(user.id, note_id)
    return envelope("Note deleted successfully")


@router.post("/{note_id}/pin")
async def toggle_pin(
    note_id: str,
    user: User = Depends(get_current_user),
    notes: NotesService = Depends(get_notes),
) -> dict[str, Any]:
    note = await notes.toggle_pin(user.id, note_id)
    state = "pinned" if note.is_pinned else "unpinned"
    return envelope(f"Note {state} successfully", note=note.public())


@router.post("/{note_id}/archive")
async def toggle_archive(
    note_id: str,
    user: User = Depends(get_current_user),
    notes: NotesService = Depends(get_notes),
) -> dict[str, Any]:
    """Archive or unarchive; archiving also unpins."""
    note = await notes.toggle_archive(user.id, note_id)
    state = "archived" if note.is_archived else "unarchived"
    return envelope(f"Note {state} successfully", note=note.public())
