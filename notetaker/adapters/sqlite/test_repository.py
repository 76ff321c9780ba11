"""Tests for the SQLite user and note stores."""

from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from notetaker.config.errors import ConflictError, ErrorCode
from notetaker.domains.identity.contracts import UserStore
from notetaker.domains.identity.models import AuthProvider, OTPState, User
from notetaker.domains.notes.contracts import NoteStore
from notetaker.domains.notes.models import Note, NoteQuery

from .database import Database
from .repository import SQLiteNoteStore, SQLiteUserStore, fts_query

NOW = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
async def db(tmp_path: Path):
    """Create a test database in a temporary directory."""
    db = Database(tmp_path / "test.db")
    await db.initialize()
    yield db
    await db.close()


@pytest.fixture
def users(db: Database) -> SQLiteUserStore:
    return SQLiteUserStore(db)


@pytest.fixture
def notes(db: Database) -> SQLiteNoteStore:
    return SQLiteNoteStore(db)


@pytest.fixture
async def owner(users: SQLiteUserStore) -> User:
    return await users.create(
        User(email="owner@example.com", name="Owner", auth_provider=AuthProvider.EMAIL)
    )


def _note(user_id: str, title: str, content: str, minutes: int = 0, **kwargs) -> Note:
    stamp = NOW + timedelta(minutes=minutes)
    return Note(user_id=user_id, title=title, content=content, created_at=stamp, updated_at=stamp, **kwargs)


async def test_initialize_creates_tables(db: Database):
    conn = await db.connection()
    cursor = await conn.execute("SELECT name FROM sqlite_master WHERE type='table'")
    tables = {row[0] for row in await cursor.fetchall()}

    assert "users" in tables
    assert "notes" in tables
    assert "notes_fts" in tables


def test_stores_satisfy_contracts(users: SQLiteUserStore, notes: SQLiteNoteStore):
    assert isinstance(users, UserStore)
    assert isinstance(notes, NoteStore)


# --- Users ---


async def test_create_and_get_user(users: SQLiteUserStore):
    user = User(
        email="alice@example.com",
        name="Alice",
        auth_provider=AuthProvider.EMAIL,
        otp=OTPState(code="123456", expires_at=NOW, last_attempt_at=NOW),
    )
    await users.create(user)

    loaded = await users.get_by_email("  ALICE@example.com")
    assert loaded is not None
    assert loaded.id == user.id
    assert loaded.otp.code == "123456"
    assert loaded.otp.expires_at == NOW
    assert loaded.auth_provider == AuthProvider.EMAIL
    assert await users.get_by_id(user.id) == loaded


async def test_duplicate_email_conflicts(users: SQLiteUserStore, owner: User):
    with pytest.raises(ConflictError) as exc:
        await users.create(User(email=owner.email, name="Again", auth_provider=AuthProvider.EMAIL))
    assert exc.value.code == ErrorCode.USER_ALREADY_EXISTS


async def test_duplicate_google_id_conflicts(users: SQLiteUserStore):
    await users.create(
        User(email="g1@example.com", name="G", auth_provider=AuthProvider.GOOGLE, google_id="sub-1")
    )
    with pytest.raises(ConflictError) as exc:
        await users.create(
            User(email="g2@example.com", name="G", auth_provider=AuthProvider.GOOGLE, google_id="sub-1")
        )
    assert exc.value.code == ErrorCode.GOOGLE_ID_ALREADY_EXISTS
    assert (await users.get_by_google_id("sub-1")).email == "g1@example.com"


async def test_update_and_delete_user(users: SQLiteUserStore, owner: User):
    updated = await users.update(owner.model_copy(update={"is_email_verified": True}))
    assert updated.updated_at >= owner.updated_at
    assert (await users.get_by_id(owner.id)).is_email_verified is True

    assert await users.delete(owner.id) is True
    assert await users.get_by_id(owner.id) is None
    assert await users.delete(owner.id) is False


async def test_clear_expired_otps(users: SQLiteUserStore):
    expired = User(
        email="old@example.com",
        name="Old",
        auth_provider=AuthProvider.EMAIL,
        otp=OTPState(code="111111", expires_at=NOW - timedelta(minutes=1)),
    )
    fresh = User(
        email="new@example.com",
        name="New",
        auth_provider=AuthProvider.EMAIL,
        otp=OTPState(code="222222", expires_at=NOW + timedelta(minutes=5)),
    )
    await users.create(expired)
    await users.create(fresh)

    assert await users.clear_expired_otps(NOW) == 1
    assert (await users.get_by_email("old@example.com")).otp == OTPState()
    assert (await users.get_by_email("new@example.com")).otp.code == "222222"


# --- Notes ---


async def test_note_crud_is_owner_scoped(users: SQLiteUserStore, notes: SQLiteNoteStore, owner: User):
    other = await users.create(User(email="other@example.com", name="O", auth_provider=AuthProvider.EMAIL))
    note = await notes.insert(_note(owner.id, "Groceries", "Milk and eggs", tags=["home"]))

    assert (await notes.get(note.id, owner.id)).tags == ["home"]
    assert await notes.get(note.id, other.id) is None
    assert await notes.delete(note.id, other.id) is False
    assert await notes.delete(note.id, owner.id) is True


async def test_list_newest_first_with_pagination(notes: SQLiteNoteStore, owner: User):
    for i in range(5):
        await notes.insert(_note(owner.id, f"Note {i}", "body", minutes=i))

    page, total = await notes.list(owner.id, NoteQuery(page=1, limit=2))
    assert total == 5
    assert [n.title for n in page] == ["Note 4", "Note 3"]

    page, _ = await notes.list(owner.id, NoteQuery(page=3, limit=2))
    assert [n.title for n in page] == ["Note 0"]


async def test_list_filters(notes: SQLiteNoteStore, owner: User):
    await notes.insert(_note(owner.id, "Work plan", "quarterly goals", tags=["work"], is_pinned=True))
    await notes.insert(_note(owner.id, "Shopping", "buy apples", tags=["home", "food"], minutes=1))
    await notes.insert(_note(owner.id, "Old", "archived thing", is_archived=True, minutes=2))

    pinned, _ = await notes.list(owner.id, NoteQuery(is_pinned=True))
    assert [n.title for n in pinned] == ["Work plan"]

    archived, _ = await notes.list(owner.id, NoteQuery(is_archived=True))
    assert [n.title for n in archived] == ["Old"]

    tagged, total = await notes.list(owner.id, NoteQuery(tags=["food", "work"]))
    assert total == 2

    found, _ = await notes.list(owner.id, NoteQuery(search="apples"))
    assert [n.title for n in found] == ["Shopping"]


async def test_search_ranks_and_scopes(users: SQLiteUserStore, notes: SQLiteNoteStore, owner: User):
    other = await users.create(User(email="x@example.com", name="X", auth_provider=AuthProvider.EMAIL))
    await notes.insert(_note(owner.id, "Meeting notes", "discuss budget"))
    await notes.insert(_note(owner.id, "Budget meeting", "budget budget review", minutes=1))
    await notes.insert(_note(owner.id, "Recipes", "pasta"))
    await notes.insert(_note(other.id, "Budget", "not yours"))

    results, total = await notes.search(owner.id, "budget", limit=10, offset=0)
    assert total == 2
    assert results[0].title == "Budget meeting"
    assert all(n.user_id == owner.id for n in results)


async def test_search_ignores_fts_syntax(notes: SQLiteNoteStore, owner: User):
    await notes.insert(_note(owner.id, "C code", "pointer tricks"))
    results, _ = await notes.search(owner.id, 'pointer" OR NEAR(', limit=10, offset=0)
    assert [n.title for n in results] == ["C code"]


def test_fts_query_quotes_terms():
    assert fts_query("hello world") == '"hello" OR "world"'
    assert fts_query("  ***  ") == ""
