"""
SQLite Repository - User and note storage with FTS5 search.

Features:
- Async operations via aiosqlite
- Unique email / google id enforced by the schema
- Owner-scoped note queries
- Full-text note search with FTS5
"""

from __future__ import annotations

import json
import logging
import re
from datetime import date, datetime, timezone
from typing import Any

import aiosqlite

from notetaker.config.errors import ConflictError, ErrorCode, StorageError
from notetaker.domains.identity.models import AuthProvider, OTPState, User, normalize_email
from notetaker.domains.notes.models import Note, NoteQuery

from .database import Database, from_db_time, to_db_time

logger = logging.getLogger(__name__)

__all__ = ["SQLiteUserStore", "SQLiteNoteStore", "fts_query"]

_USER_COLUMNS = (
    "id, email, name, date_of_birth, profile_picture, password_hash, is_email_verified, "
    "auth_provider, google_id, otp_code, otp_expires_at, otp_is_used, otp_attempts, "
    "otp_last_attempt_at, last_login_at, token_version, created_at, updated_at"
)
_NOTE_COLUMNS = "id, user_id, title, content, tags, is_pinned, is_archived, created_at, updated_at"
_NOTE_COLUMNS_N = ", ".join("n." + c.strip() for c in _NOTE_COLUMNS.split(","))

_TERM = re.compile(r"\w+", re.UNICODE)


def fts_query(text: str) -> str:
    """
    Turn free text into a safe FTS5 MATCH expression.

    Each word is quoted (so FTS operators in user input are inert) and the
    words are OR-ed together; bm25 ranks notes matching more words higher.
    """
    terms = _TERM.findall(text)
    return " OR ".join(f'"{term}"' for term in terms)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _row_to_user(row: aiosqlite.Row) -> User:
    return User(
        id=row["id"],
        email=row["email"],
        name=row["name"],
        date_of_birth=date.fromisoformat(row["date_of_birth"]) if row["date_of_birth"] else None,
        profile_picture=row["profile_picture"],
        password_hash=row["password_hash"],
        is_email_verified=bool(row["is_email_verified"]),
        auth_provider=AuthProvider(row["auth_provider"]),
        google_id=row["google_id"],
        otp=OTPState(
            code=row["otp_code"],
            expires_at=from_db_time(row["otp_expires_at"]),
            is_used=bool(row["otp_is_used"]),
            attempts=row["otp_attempts"],
            last_attempt_at=from_db_time(row["otp_last_attempt_at"]),
        ),
        last_login_at=from_db_time(row["last_login_at"]),
        token_version=row["token_version"],
        created_at=from_db_time(row["created_at"]),
        updated_at=from_db_time(row["updated_at"]),
    )


def _user_params(user: User) -> dict[str, Any]:
    return {
        "id": user.id,
        "email": user.email,
        "name": user.name,
        "date_of_birth": user.date_of_birth.isoformat() if user.date_of_birth else None,
        "profile_picture": user.profile_picture,
        "password_hash": user.password_hash,
        "is_email_verified": int(user.is_email_verified),
        "auth_provider": user.auth_provider.value,
        "google_id": user.google_id,
        "otp_code": user.otp.code,
        "otp_expires_at": to_db_time(user.otp.expires_at),
        "otp_is_used": int(user.otp.is_used),
        "otp_attempts": user.otp.attempts,
        "otp_last_attempt_at": to_db_time(user.otp.last_attempt_at),
        "last_login_at": to_db_time(user.last_login_at),
        "token_version": user.token_version,
        "created_at": to_db_time(user.created_at),
        "updated_at": to_db_time(user.updated_at),
    }


def _row_to_note(row: aiosqlite.Row) -> Note:
    return Note(
        id=row["id"],
        user_id=row["user_id"],
        title=row["title"],
        content=row["content"],
        tags=json.loads(row["tags"]) if row["tags"] else [],
        is_pinned=bool(row["is_pinned"]),
        is_archived=bool(row["is_archived"]),
        created_at=from_db_time(row["created_at"]),
        updated_at=from_db_time(row["updated_at"]),
    )


def _conflict(error: aiosqlite.IntegrityError) -> ConflictError:
    if "google_id" in str(error):
        return ConflictError("Google account already registered", ErrorCode.GOOGLE_ID_ALREADY_EXISTS)
    return ConflictError("User already exists", ErrorCode.USER_ALREADY_EXISTS)


class SQLiteUserStore:
    """
    Credential records in SQLite.

    Example:
        >>> users = SQLiteUserStore(db)
        >>> user = await users.create(User(email="a@b.com", name="A", auth_provider="email"))
        >>> await users.get_by_email("A@B.com")
    """

    def __init__(self, db: Database) -> None:
        self.db = db

    async def create(self, user: User) -> User:
        conn = await self.db.connection()
        params = _user_params(user)
        placeholders = ", ".join(f":{name}" for name in params)
        try:
            await conn.execute(
                f"INSERT INTO users ({_USER_COLUMNS}) VALUES ({placeholders})",
                params,
            )
            await conn.commit()
        except aiosqlite.IntegrityError as e:
            await conn.rollback()
            raise _conflict(e) from e
        return user

    async def _get_one(self, where: str, value: str) -> User | None:
        conn = await self.db.connection()
        cursor = await conn.execute(f"SELECT {_USER_COLUMNS} FROM users WHERE {where} = ?", (value,))
        row = await cursor.fetchone()
        return _row_to_user(row) if row else None

    async def get_by_id(self, user_id: str) -> User | None:
        return await self._get_one("id", user_id)

    async def get_by_email(self, email: str) -> User | None:
        return await self._get_one("email", normalize_email(email))

    async def get_by_google_id(self, google_id: str) -> User | None:
        return await self._get_one("google_id", google_id)

    async def update(self, user: User) -> User:
        """Overwrite every column of an existing record."""
        user = user.model_copy(update={"updated_at": _utcnow()})
        params = _user_params(user)
        assignments = ", ".join(f"{name} = :{name}" for name in params if name != "id")

        conn = await self.db.connection()
        try:
            cursor = await conn.execute(f"UPDATE users SET {assignments} WHERE id = :id", params)
            await conn.commit()
        except aiosqlite.IntegrityError as e:
            await conn.rollback()
            raise _conflict(e) from e
        if cursor.rowcount == 0:
            raise StorageError("User record vanished during update", {"user_id": user.id})
        return user

    async def delete(self, user_id: str) -> bool:
        conn = await self.db.connection()
        cursor = await conn.execute("DELETE FROM users WHERE id = ?", (user_id,))
        await conn.commit()
        return cursor.rowcount > 0

    async def clear_expired_otps(self, now: datetime) -> int:
        """Reset OTP fields of every record whose code has expired."""
        conn = await self.db.connection()
        cursor = await conn.execute(
            """
            UPDATE users
            SET otp_code = NULL, otp_expires_at = NULL, otp_is_used = 0,
                otp_attempts = 0, otp_last_attempt_at = NULL
            WHERE otp_expires_at IS NOT NULL AND otp_expires_at < ?
            """,
            (to_db_time(now),),
        )
        await conn.commit()
        if cursor.rowcount:
            logger.debug("Cleared %d expired OTPs", cursor.rowcount)
        return cursor.rowcount


class SQLiteNoteStore:
    """Notes in SQLite, always filtered by owner."""

    def __init__(self, db: Database) -> None:
        self.db = db

    async def insert(self, note: Note) -> Note:
        conn = await self.db.connection()
        await conn.execute(
            f"""
            INSERT INTO notes ({_NOTE_COLUMNS})
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                note.id,
                note.user_id,
                note.title,
                note.content,
                json.dumps(note.tags),
                int(note.is_pinned),
                int(note.is_archived),
                to_db_time(note.created_at),
                to_db_time(note.updated_at),
            ),
        )
        await conn.commit()
        return note

    async def get(self, note_id: str, user_id: str) -> Note | None:
        conn = await self.db.connection()
        cursor = await conn.execute(
            f"SELECT {_NOTE_COLUMNS} FROM notes WHERE id = ? AND user_id = ?",
            (note_id, user_id),
        )
        row = await cursor.fetchone()
        return _row_to_note(row) if row else None

    async def update(self, note: Note) -> Note:
        conn = await self.db.connection()
        cursor = await conn.execute(
            """
            UPDATE notes
            SET title = ?, content = ?, tags = ?, is_pinned = ?, is_archived = ?, updated_at = ?
            WHERE id = ? AND user_id = ?
            """,
            (
                note.title,
                note.content,
                json.dumps(note.tags),
                int(note.is_pinned),
                int(note.is_archived),
                to_db_time(note.updated_at),
                note.id,
                note.user_id,
            ),
        )
        await conn.commit()
        if cursor.rowcount == 0:
            raise StorageError("Note vanished during update", {"note_id": note.id})
        return note

    async def delete(self, note_id: str, user_id: str) -> bool:
        conn = await self.db.connection()
        cursor = await conn.execute(
            "DELETE FROM notes WHERE id = ? AND user_id = ?", (note_id, user_id)
        )
        await conn.commit()
        return cursor.rowcount > 0

    async def list(self, user_id: str, query: NoteQuery) -> tuple[list[Note], int]:
        """
        List notes newest first.

        Args:
            user_id: Owner
            query: Filters (search text, any-of tags, pinned, archived) and paging

        Returns:
            (notes on the requested page, total matches)
        """
        clauses = ["n.user_id = ?"]
        params: list[Any] = [user_id]

        if query.search:
            match = fts_query(query.search)
            if not match:
                return [], 0
            clauses.append("n.seq IN (SELECT rowid FROM notes_fts WHERE notes_fts MATCH ?)")
            params.append(match)

        tags = [tag.strip() for tag in query.tags if tag.strip()]
        if tags:
            marks = ", ".join("?" for _ in tags)
            clauses.append(f"EXISTS (SELECT 1 FROM json_each(n.tags) WHERE json_each.value IN ({marks}))")
            params.extend(tags)

        if query.is_pinned is not None:
            clauses.append("n.is_pinned = ?")
            params.append(int(query.is_pinned))

        if query.is_archived is not None:
            clauses.append("n.is_archived = ?")
            params.append(int(query.is_archived))

        where = " AND ".join(clauses)
        conn = await self.db.connection()

        cursor = await conn.execute(f"SELECT COUNT(*) FROM notes n WHERE {where}", params)
        total = (await cursor.fetchone())[0]

        cursor = await conn.execute(
            f"""
            SELECT {_NOTE_COLUMNS_N} FROM notes n
            WHERE {where}
            ORDER BY n.created_at DESC, n.seq DESC
            LIMIT ? OFFSET ?
            """,
            [*params, query.limit, query.offset],
        )
        rows = await cursor.fetchall()
        return [_row_to_note(row) for row in rows], total

    async def search(
        self,
        user_id: str,
        text: str,
        limit: int,
        offset: int,
    ) -> tuple[list[Note], int]:
        """Full-text search using FTS5, best bm25 score first."""
        match = fts_query(text)
        if not match:
            return [], 0

        conn = await self.db.connection()
        cursor = await conn.execute(
            """
            SELECT COUNT(*)
            FROM notes_fts
            JOIN notes n ON notes_fts.rowid = n.seq
            WHERE notes_fts MATCH ? AND n.user_id = ?
            """,
            (match, user_id),
        )
        total = (await cursor.fetchone())[0]

        cursor = await conn.execute(
            f"""
            SELECT {_NOTE_COLUMNS_N},
                   bm25(notes_fts) AS score
            FROM notes_fts
            JOIN notes n ON notes_fts.rowid = n.seq
            WHERE notes_fts MATCH ? AND n.user_id = ?
            ORDER BY score, n.created_at DESC
            LIMIT ? OFFSET ?
            """,
            (match, user_id, limit, offset),
        )
        rows = await cursor.fetchall()
        return [_row_to_note(row) for row in rows], total
