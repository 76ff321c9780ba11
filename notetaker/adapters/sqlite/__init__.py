"""SQLite persistence for users and notes."""

from .database import Database
from .repository import SQLiteNoteStore, SQLiteUserStore

__all__ = ["Database", "SQLiteUserStore", "SQLiteNoteStore"]
