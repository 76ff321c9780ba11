"""
Notes Domain - User-owned notes.

This domain handles:
- Create, read, update and delete scoped to the owner
- Pin and archive toggles (archived notes are never pinned)
- Paged listing with filters and full-text search
"""

from .contracts import NoteStore
from .models import Note, NoteCreate, NotePage, NoteQuery, NoteUpdate, Pagination
from .service import NotesService

__all__ = [
    "NoteStore",
    "Note",
    "NoteCreate",
    "NoteUpdate",
    "NoteQuery",
    "NotePage",
    "Pagination",
    "NotesService",
]
