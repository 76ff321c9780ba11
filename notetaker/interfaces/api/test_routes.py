"""Tests for API Routes."""

from collections.abc import Generator, Iterator
from contextlib import contextmanager
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from notetaker.adapters.google import encode_mock_token
from notetaker.config import Settings

from .main import create_app


class CapturingMailer:
    """Keeps the last code sent to each address."""

    def __init__(self) -> None:
        self.codes: dict[str, str] = {}

    async def send_otp(self, to: str, name: str, code: str, expiry_minutes: int) -> None:
        self.codes[to] = code

    async def send_welcome(self, to: str, name: str) -> None:
        pass


@pytest.fixture
def mailer() -> CapturingMailer:
    return CapturingMailer()


@contextmanager
def running_app(db_path: Path, mailer: CapturingMailer, **overrides) -> Iterator[TestClient]:
    """Start the app on a temporary database with the given settings overrides."""
    options = {
        "google_allow_mock_tokens": True,
        "otp_sweep_interval_seconds": 0,
        "otp_resend_cooldown_seconds": 0,
        **overrides,
    }
    app = create_app(Settings(_env_file=None, db_path=db_path, **options))
    with TestClient(app) as test_client:
        app.state.services.auth.mailer = mailer
        yield test_client


@pytest.fixture
def client(tmp_path: Path, mailer: CapturingMailer) -> Generator[TestClient, None, None]:
    """Create a test client backed by a temporary database."""
    with running_app(tmp_path / "api.db", mailer) as test_client:
        yield test_client


def register(client: TestClient, mailer: CapturingMailer, email: str, name: str = "Alice Smith") -> str:
    """Sign up and verify; returns the access token."""
    response = client.post("/auth/signup", json={"email": email, "name": name})
    assert response.status_code == 201
    response = client.post("/auth/verify-otp", json={"email": email, "otp": mailer.codes[email]})
    assert response.status_code == 200
    token = response.cookies["accessToken"]
    client.cookies.clear()
    return token


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def test_health_endpoint(client: TestClient) -> None:
    """Test health check endpoint."""
    response = client.get("/health")
    assert response.status_code == 200

    data = response.json()
    assert data["status"] == "healthy"
    assert data["success"] is True


def test_responses_carry_request_id(client: TestClient) -> None:
    response = client.get("/api", headers={"X-Request-ID": "req-123"})
    assert response.headers["X-Request-ID"] == "req-123"
    assert "X-Response-Time-Ms" in response.headers
    assert "X-RateLimit-Remaining" in response.headers


def test_signup_and_verify_sets_cookies(client: TestClient, mailer: CapturingMailer) -> None:
    response = client.post("/auth/signup", json={"email": "Alice@Example.com", "name": "Alice Smith"})
    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["data"]["user"]["email"] == "alice@example.com"
    assert body["data"]["user"]["isEmailVerified"] is False

    code = mailer.codes["alice@example.com"]
    response = client.post("/auth/verify-otp", json={"email": "alice@example.com", "otp": code})
    assert response.status_code == 200
    assert response.json()["data"]["user"]["isEmailVerified"] is True
    assert "accessToken" in response.cookies
    assert "refreshToken" in response.cookies

    me = client.get("/auth/me")
    assert me.status_code == 200
    assert me.json()["data"]["user"]["email"] == "alice@example.com"


def test_verify_replay_reports_used_code(client: TestClient, mailer: CapturingMailer) -> None:
    register(client, mailer, "alice@example.com")
    code = mailer.codes["alice@example.com"]

    response = client.post("/auth/verify-otp", json={"email": "alice@example.com", "otp": code})
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "OTP_ALREADY_USED"


def test_duplicate_signup_conflicts(client: TestClient, mailer: CapturingMailer) -> None:
    client.post("/auth/signup", json={"email": "alice@example.com", "name": "Alice Smith"})
    response = client.post("/auth/signup", json={"email": "alice@example.com", "name": "Alice Smith"})
    assert response.status_code == 409
    assert response.json()["error"]["code"] == "USER_EXISTS_UNVERIFIED"

    client.post("/auth/verify-otp", json={"email": "alice@example.com", "otp": mailer.codes["alice@example.com"]})
    response = client.post("/auth/signup", json={"email": "alice@example.com", "name": "Alice Smith"})
    assert response.status_code == 409
    assert response.json()["error"]["code"] == "USER_ALREADY_VERIFIED"


def test_configured_otp_length(tmp_path: Path, mailer: CapturingMailer) -> None:
    with running_app(tmp_path / "api.db", mailer, otp_length=8) as client:
        client.post("/auth/signup", json={"email": "alice@example.com", "name": "Alice Smith"})
        code = mailer.codes["alice@example.com"]
        assert len(code) == 8

        response = client.post("/auth/verify-otp", json={"email": "alice@example.com", "otp": code})
        assert response.status_code == 200
        assert response.json()["data"]["user"]["isEmailVerified"] is True


def test_otp_must_be_numeric(client: TestClient) -> None:
    response = client.post("/auth/verify-otp", json={"email": "alice@example.com", "otp": "12ab56"})
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"


def test_signup_rate_limit(tmp_path: Path, mailer: CapturingMailer) -> None:
    with running_app(tmp_path / "api.db", mailer, rate_limit_signup_max=1) as client:
        body = {"email": "alice@example.com", "name": "Alice Smith"}
        assert client.post("/auth/signup", json=body).status_code == 201

        response = client.post("/auth/signup", json=body)
        assert response.status_code == 429
        assert response.json()["error"]["code"] == "SIGNUP_RATE_LIMIT_EXCEEDED"
        assert int(response.headers["Retry-After"]) > 0


def test_otp_rate_limit(tmp_path: Path, mailer: CapturingMailer) -> None:
    with running_app(tmp_path / "api.db", mailer, rate_limit_otp_max=2) as client:
        body = {"email": "alice@example.com", "otp": "000000"}
        for _ in range(2):
            assert client.post("/auth/verify-otp", json=body).status_code != 429

        response = client.post("/auth/verify-otp", json=body)
        assert response.status_code == 429
        assert response.json()["error"]["code"] == "OTP_RATE_LIMIT_EXCEEDED"
        assert "Retry-After" in response.headers


def test_general_rate_limit(tmp_path: Path, mailer: CapturingMailer) -> None:
    with running_app(tmp_path / "api.db", mailer, rate_limit_general_max=2) as client:
        first = client.get("/api")
        assert first.headers["X-RateLimit-Limit"] == "2"
        assert first.headers["X-RateLimit-Remaining"] == "1"
        client.get("/api")

        response = client.get("/api")
        assert response.status_code == 429
        assert response.json()["error"]["code"] == "RATE_LIMIT_EXCEEDED"
        assert "Retry-After" in response.headers

        assert client.get("/health").status_code == 200


def test_signin_unknown_email(client: TestClient) -> None:
    response = client.post("/auth/signin", json={"email": "nonexistent@x.com"})
    assert response.status_code == 404
    body = response.json()
    assert body["success"] is False
    assert body["error"]["code"] == "USER_NOT_FOUND"


def test_signin_flow(client: TestClient, mailer: CapturingMailer) -> None:
    register(client, mailer, "alice@example.com")

    response = client.post("/auth/signin", json={"email": "alice@example.com"})
    assert response.status_code == 200
    assert response.json()["data"]["email"] == "alice@example.com"

    code = mailer.codes["alice@example.com"]
    response = client.post("/auth/verify-signin-otp", json={"email": "alice@example.com", "otp": code})
    assert response.status_code == 200
    assert "accessToken" in response.cookies


def test_check_user(client: TestClient, mailer: CapturingMailer) -> None:
    register(client, mailer, "alice@example.com")

    data = client.post("/auth/check-user", json={"email": "alice@example.com"}).json()["data"]
    assert data == {"exists": True, "authProvider": "email", "isEmailVerified": True}

    data = client.post("/auth/check-user", json={"email": "bob@example.com"}).json()["data"]
    assert data["exists"] is False


def test_google_signup_then_login(client: TestClient) -> None:
    token = encode_mock_token({"sub": "g-1", "email": "gina@gmail.com", "name": "Gina"})

    response = client.post("/auth/google-signup", json={"idToken": token})
    assert response.status_code == 201
    assert response.json()["data"]["user"]["authProvider"] == "google"
    assert "accessToken" in response.cookies

    client.cookies.clear()
    response = client.post("/auth/google-login", json={"idToken": token})
    assert response.status_code == 200

    response = client.post("/auth/signin", json={"email": "gina@gmail.com"})
    assert response.status_code == 401
    assert response.json()["error"]["code"] == "USE_GOOGLE_LOGIN"


def test_refresh_from_cookie(client: TestClient, mailer: CapturingMailer) -> None:
    client.post("/auth/signup", json={"email": "alice@example.com", "name": "Alice Smith"})
    client.post("/auth/verify-otp", json={"email": "alice@example.com", "otp": mailer.codes["alice@example.com"]})

    response = client.post("/auth/refresh")
    assert response.status_code == 200
    assert "accessToken" in response.cookies


def test_refresh_google_account_with_unverified_email(client: TestClient) -> None:
    token = encode_mock_token(
        {"sub": "g-2", "email": "hal@gmail.com", "name": "Hal", "email_verified": False}
    )
    response = client.post("/auth/google-signup", json={"idToken": token})
    assert response.status_code == 201
    assert response.json()["data"]["user"]["isEmailVerified"] is False
    refresh_token = response.cookies["refreshToken"]
    client.cookies.clear()

    response = client.post("/auth/refresh", json={"refreshToken": refresh_token})
    assert response.status_code == 200
    assert "accessToken" in response.cookies


def test_refresh_unverified_email_account(client: TestClient) -> None:
    client.post("/auth/signup", json={"email": "alice@example.com", "name": "Alice Smith"})
    services = client.app.state.services
    user = client.portal.call(services.auth.users.get_by_email, "alice@example.com")
    tokens = services.auth.tokens.issue_pair(user)

    response = client.post("/auth/refresh", json={"refreshToken": tokens.refresh_token})
    assert response.status_code == 401
    assert response.json()["error"]["code"] == "EMAIL_NOT_VERIFIED"


def test_refresh_without_token(client: TestClient) -> None:
    response = client.post("/auth/refresh")
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "MISSING_REFRESH_TOKEN"


def test_logout_clears_cookies(client: TestClient, mailer: CapturingMailer) -> None:
    client.post("/auth/signup", json={"email": "alice@example.com", "name": "Alice Smith"})
    client.post("/auth/verify-otp", json={"email": "alice@example.com", "otp": mailer.codes["alice@example.com"]})

    response = client.post("/auth/logout")
    assert response.status_code == 200
    assert "accessToken" not in client.cookies
    assert client.get("/auth/me").status_code == 401


def test_notes_require_session(client: TestClient) -> None:
    response = client.get("/notes")
    assert response.status_code == 401
    assert response.json()["error"]["code"] == "MISSING_TOKEN"


def test_create_and_list_notes(client: TestClient, mailer: CapturingMailer) -> None:
    token = register(client, mailer, "alice@example.com")

    response = client.post(
        "/notes",
        json={"title": "Groceries", "content": "milk and eggs", "tags": ["home"]},
        headers=bearer(token),
    )
    assert response.status_code == 201
    note = response.json()["data"]["note"]
    assert note["title"] == "Groceries"
    assert note["isPinned"] is False

    client.post("/notes", json={"title": "Work", "content": "standup"}, headers=bearer(token))

    data = client.get("/notes", headers=bearer(token)).json()["data"]
    assert data["pagination"]["total"] == 2
    assert [n["title"] for n in data["notes"]] == ["Work", "Groceries"]

    data = client.get("/notes?tags=home", headers=bearer(token)).json()["data"]
    assert [n["title"] for n in data["notes"]] == ["Groceries"]


def test_search_notes(client: TestClient, mailer: CapturingMailer) -> None:
    token = register(client, mailer, "alice@example.com")
    client.post("/notes", json={"title": "Groceries", "content": "milk and eggs"}, headers=bearer(token))
    client.post("/notes", json={"title": "Work", "content": "standup"}, headers=bearer(token))

    data = client.get("/notes/search?q=milk", headers=bearer(token)).json()["data"]
    assert [n["title"] for n in data["notes"]] == ["Groceries"]

    response = client.get("/notes/search", headers=bearer(token))
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "SEARCH_QUERY_REQUIRED"


def test_notes_are_private(client: TestClient, mailer: CapturingMailer) -> None:
    alice = register(client, mailer, "alice@example.com")
    bob = register(client, mailer, "bob@example.com", name="Bob Jones")

    note_id = client.post(
        "/notes", json={"title": "Secret", "content": "diary"}, headers=bearer(alice)
    ).json()["data"]["note"]["id"]

    for method, path in [
        ("GET", f"/notes/{note_id}"),
        ("DELETE", f"/notes/{note_id}"),
        ("POST", f"/notes/{note_id}/pin"),
    ]:
        response = client.request(method, path, headers=bearer(bob))
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NOTE_NOT_FOUND"

    assert client.get(f"/notes/{note_id}", headers=bearer(alice)).status_code == 200


def test_archive_unpins(client: TestClient, mailer: CapturingMailer) -> None:
    token = register(client, mailer, "alice@example.com")
    note_id = client.post(
        "/notes", json={"title": "Idea", "content": "x", "isPinned": True}, headers=bearer(token)
    ).json()["data"]["note"]["id"]

    note = client.post(f"/notes/{note_id}/archive", headers=bearer(token)).json()["data"]["note"]
    assert note["isArchived"] is True
    assert note["isPinned"] is False

    response = client.post(f"/notes/{note_id}/pin", headers=bearer(token))
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "NOTE_ARCHIVED"


def test_update_and_delete_note(client: TestClient, mailer: CapturingMailer) -> None:
    token = register(client, mailer, "alice@example.com")
    note_id = client.post(
        "/notes", json={"title": "Draft", "content": "v1"}, headers=bearer(token)
    ).json()["data"]["note"]["id"]

    note = client.put(f"/notes/{note_id}", json={"content": "v2"}, headers=bearer(token)).json()["data"]["note"]
    assert note["title"] == "Draft"
    assert note["content"] == "v2"

    assert client.delete(f"/notes/{note_id}", headers=bearer(token)).status_code == 200
    assert client.get(f"/notes/{note_id}", headers=bearer(token)).status_code == 404


def test_unknown_route(client: TestClient) -> None:
    response = client.get("/nope")
    assert response.status_code == 404
    error = response.json()["error"]
    assert error["code"] == "ROUTE_NOT_FOUND"
    assert error["message"] == "Route GET /nope not found"


def test_validation_error_shape(client: TestClient) -> None:
    response = client.post("/auth/signup", json={"email": "not-an-email", "name": "A"})
    assert response.status_code == 400
    error = response.json()["error"]
    assert error["code"] == "VALIDATION_ERROR"
    fields = {item["field"] for item in error["details"]["errors"]}
    assert {"email", "name"} <= fields
