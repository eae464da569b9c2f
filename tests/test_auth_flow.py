import os
import tempfile
import uuid

import pytest
from fastapi.testclient import TestClient

os.environ.setdefault(
    "DATABASE_URL",
    f"sqlite:///{os.path.join(tempfile.gettempdir(), f'coachlink-test-{os.getpid()}.db')}",
)
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DB_AUTO_CREATE", "1")
os.environ.setdefault("RATE_LIMIT_ENABLED", "0")

from coachlink.config import settings  # noqa: E402
from coachlink.db.storage import Storage  # noqa: E402
from coachlink.main import app  # noqa: E402

PASSWORD = "Passw0rd1"


@pytest.fixture(scope="module")
def client():
    with TestClient(app) as c:
        yield c


def _username(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:8]}"


def test_signup_login_me(client: TestClient):
    username = _username("u1")

    # signup
    r = client.post(
        "/api/auth/signup",
        json={"username": username, "password": PASSWORD, "is_coach": True},
    )
    assert r.status_code == 201
    body = r.json()
    assert body["user"]["username"] == username
    assert body["user"]["is_coach"] is True
    token = body["access_token"]
    client.cookies.clear()

    # me
    r = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 200
    assert r.json()["username"] == username
    assert r.json()["is_coach"] is True

    # login
    r = client.post("/api/auth/login", json={"username": username, "password": PASSWORD})
    assert r.status_code == 200
    assert "access_token" in r.json()
    client.cookies.clear()


def test_session_cookie_authenticates_until_logout(client: TestClient):
    username = _username("cookie")
    client.post("/api/auth/signup", json={"username": username, "password": PASSWORD})
    client.cookies.clear()

    r = client.post("/api/auth/login", json={"username": username, "password": PASSWORD})
    assert r.status_code == 200
    assert settings.SESSION_COOKIE_NAME in r.cookies

    r = client.get("/api/auth/me")
    assert r.status_code == 200
    assert r.json()["username"] == username

    r = client.post("/api/auth/logout")
    assert r.status_code == 200

    r = client.get("/api/auth/me")
    assert r.status_code == 401
    client.cookies.clear()


def test_logged_out_token_is_rejected(client: TestClient):
    r = client.post(
        "/api/auth/signup",
        json={"username": _username("gone"), "password": PASSWORD},
    )
    headers = {"Authorization": f"Bearer {r.json()['access_token']}"}
    client.cookies.clear()

    assert client.post("/api/auth/logout", headers=headers).status_code == 200
    assert client.get("/api/auth/me", headers=headers).status_code == 401


def test_unauthenticated_requests_get_401(client: TestClient):
    client.cookies.clear()
    assert client.get("/api/auth/me").status_code == 401
    assert client.get("/api/auth/me", headers={"Authorization": "Bearer garbage"}).status_code == 401
    assert client.post("/api/content/1/watch", json={"watched": True}).status_code == 401
    assert client.post("/api/comments/1/like").status_code == 401


def test_bad_credentials(client: TestClient):
    username = _username("u2")
    client.post("/api/auth/signup", json={"username": username, "password": PASSWORD})
    client.cookies.clear()

    r = client.post("/api/auth/login", json={"username": username, "password": "Wrong0ne"})
    assert r.status_code == 401


def test_duplicate_username_rejected(client: TestClient):
    username = _username("dup")
    assert client.post(
        "/api/auth/signup", json={"username": username, "password": PASSWORD}
    ).status_code == 201
    r = client.post("/api/auth/signup", json={"username": username, "password": PASSWORD})
    assert r.status_code == 400
    client.cookies.clear()


def test_signup_race_on_username_is_a_400(client: TestClient, monkeypatch):
    username = _username("race")
    assert client.post(
        "/api/auth/signup", json={"username": username, "password": PASSWORD}
    ).status_code == 201
    client.cookies.clear()

    # The pre-check misses, as it would for a signup that committed in between.
    monkeypatch.setattr(Storage, "get_user_by_username", lambda self, username: None)
    r = client.post("/api/auth/signup", json={"username": username, "password": PASSWORD})
    assert r.status_code == 400
    assert r.json() == {"detail": "Username already registered"}
    client.cookies.clear()


def test_signup_validation(client: TestClient):
    r = client.post("/api/auth/signup", json={"username": _username("weak"), "password": "pass"})
    assert r.status_code == 400
    r = client.post(
        "/api/auth/signup", json={"username": "bad name!", "password": PASSWORD}
    )
    assert r.status_code == 400
