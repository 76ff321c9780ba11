"""
SQLite Database - Connection and schema for users and notes.

Features:
- Async operations via aiosqlite
- Full-text note search with FTS5 (kept in sync by triggers)
- One explicitly constructed handle per application
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from pathlib import Path

import aiosqlite

logger = logging.getLogger(__name__)

__all__ = ["Database", "to_db_time", "from_db_time"]

SCHEMA = """
    -- Credential records
    CREATE TABLE IF NOT EXISTS users (
        id TEXT PRIMARY KEY,
        email TEXT NOT NULL UNIQUE,
        name TEXT NOT NULL,
        date_of_birth TEXT,
        profile_picture TEXT,
        password_hash TEXT,
        is_email_verified INTEGER NOT NULL DEFAULT 0,
        auth_provider TEXT NOT NULL CHECK (auth_provider IN ('email', 'google')),
        google_id TEXT UNIQUE,
        otp_code TEXT,
        otp_expires_at TEXT,
        otp_is_used INTEGER NOT NULL DEFAULT 0,
        otp_attempts INTEGER NOT NULL DEFAULT 0,
        otp_last_attempt_at TEXT,
        last_login_at TEXT,
        token_version INTEGER NOT NULL DEFAULT 0,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    );

    -- Notes
    CREATE TABLE IF NOT EXISTS notes (
        seq INTEGER PRIMARY KEY AUTOINCREMENT,
        id TEXT NOT NULL UNIQUE,
        user_id TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
        title TEXT NOT NULL,
        content TEXT NOT NULL,
        tags TEXT NOT NULL DEFAULT '[]',
        is_pinned INTEGER NOT NULL DEFAULT 0,
        is_archived INTEGER NOT NULL DEFAULT 0,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    );

    -- FTS5 virtual table for full-text search
    CREATE VIRTUAL TABLE IF NOT EXISTS notes_fts USING fts5(
        title,
        content,
        tags,
        content='notes',
        content_rowid='seq',
        tokenize='porter'
    );

    -- Triggers to keep FTS in sync
    CREATE TRIGGER IF NOT EXISTS notes_ai AFTER INSERT ON notes BEGIN
        INSERT INTO notes_fts(rowid, title, content, tags)
        VALUES (new.seq, new.title, new.content, new.tags);
    END;

    CREATE TRIGGER IF NOT EXISTS notes_ad AFTER DELETE ON notes BEGIN
        INSERT INTO notes_fts(notes_fts, rowid, title, content, tags)
        VALUES ('delete', old.seq, old.title, old.content, old.tags);
    END;

    CREATE TRIGGER IF NOT EXISTS notes_au AFTER UPDATE ON notes BEGIN
        INSERT INTO notes_fts(notes_fts, rowid, title, content, tags)
        VALUES ('delete', old.seq, old.title, old.content, old.tags);
        INSERT INTO notes_fts(rowid, title, content, tags)
        VALUES (new.seq, new.title, new.content, new.tags);
    END;

    -- Indexes
    CREATE INDEX IF NOT EXISTS idx_users_otp_expires ON users(otp_expires_at);
    CREATE INDEX IF NOT EXISTS idx_notes_user_created ON notes(user_id, created_at);
    CREATE INDEX IF NOT EXISTS idx_notes_user_archived ON notes(user_id, is_archived);
"""


def to_db_time(value: datetime | None) -> str | None:
    """Store timestamps as fixed-width UTC ISO strings so they sort as text."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def from_db_time(value: str | None) -> datetime | None:
    if value is None:
        return None
    return datetime.fromisoformat(value)


class Database:
    """
    Shared aiosqlite connection.

    Example:
        >>> db = Database("data/notetaker.db")
        >>> await db.initialize()
        >>> users = SQLiteUserStore(db)
    """

    def __init__(self, db_path: str | Path) -> None:
        """
        Initialize database handle.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = Path(db_path)
        self._connection: aiosqlite.Connection | None = None
        self._connect_lock = asyncio.Lock()

    async def connection(self) -> aiosqlite.Connection:
        """Get or create the database connection."""
        if self._connection is None:
            async with self._connect_lock:
                if self._connection is None:
                    self.db_path.parent.mkdir(parents=True, exist_ok=True)
                    conn = await aiosqlite.connect(str(self.db_path))
                    conn.row_factory = aiosqlite.Row
                    await conn.execute("PRAGMA foreign_keys = ON")
                    self._connection = conn
        return self._connection

    async def initialize(self) -> None:
        """Create tables, FTS index and triggers."""
        conn = await self.connection()
        await conn.executescript(SCHEMA)
        await conn.commit()
        logger.info("Database initialized: %s", self.db_path)

    async def close(self) -> None:
        """Close database connection."""
        if self._connection:
            await self._connection.close()
            self._connection = None
