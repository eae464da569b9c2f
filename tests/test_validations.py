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

from coachlink.main import app  # noqa: E402


@pytest.fixture(scope="module")
def client():
    with TestClient(app) as c:
        yield c


def _signup(client: TestClient, is_coach: bool = False) -> dict:
    r = client.post(
        "/api/auth/signup",
        json={
            "username": f"val_{uuid.uuid4().hex[:8]}",
            "password": "Passw0rd1",
            "is_coach": is_coach,
        },
    )
    assert r.status_code == 201
    client.cookies.clear()
    return {"Authorization": f"Bearer {r.json()['access_token']}"}


@pytest.fixture(scope="module")
def coach(client):
    return _signup(client, is_coach=True)


@pytest.fixture(scope="module")
def content_id(client, coach):
    r = client.post(
        "/api/content",
        headers=coach,
        json={
            "url": "https://www.youtube.com/watch?v=dQw4w9WgXcQ",
            "title": "Wall ball",
            "category": "Stick Skills",
        },
    )
    assert r.status_code == 201
    return r.json()["id"]


def test_content_requires_supported_platform(client: TestClient, coach):
    r = client.post(
        "/api/content",
        headers=coach,
        json={"url": "https://vimeo.com/12345", "title": "t", "category": "Defense"},
    )
    assert r.status_code == 400
    assert r.json()["detail"][0]["loc"][-1] == "url"


def test_content_requires_title_and_category(client: TestClient, coach):
    r = client.post(
        "/api/content",
        headers=coach,
        json={"url": "https://youtu.be/dQw4w9WgXcQ", "title": "   ", "category": "Defense"},
    )
    assert r.status_code == 400

    r = client.post(
        "/api/content",
        headers=coach,
        json={"url": "https://youtu.be/dQw4w9WgXcQ", "title": "Dodges"},
    )
    assert r.status_code == 400


def test_created_content_detects_platform_and_thumbnail(client: TestClient, coach):
    r = client.post(
        "/api/content",
        headers=coach,
        json={
            "url": "https://youtu.be/dQw4w9WgXcQ",
            "title": "Roll dodge",
            "category": "Dodging",
            "description": "  ",
        },
    )
    assert r.status_code == 201
    body = r.json()
    assert body["platform"] == "YouTube"
    assert body["thumbnail_url"] == "https://img.youtube.com/vi/dQw4w9WgXcQ/hqdefault.jpg"
    assert body["description"] is None
    assert body["views"] == 0


def test_comment_length_limits(client: TestClient, coach, content_id):
    player = _signup(client)
    r = client.post(f"/api/content/{content_id}/comments", headers=player, json={"content": "   "})
    assert r.status_code == 400

    r = client.post(
        f"/api/content/{content_id}/comments", headers=player, json={"content": "x" * 1001}
    )
    assert r.status_code == 400

    r = client.post(
        f"/api/content/{content_id}/comments", headers=player, json={"content": "x" * 1000}
    )
    assert r.status_code == 201


def test_malformed_ids_are_bad_requests(client: TestClient, coach):
    assert client.get("/api/content/abc").status_code == 400
    assert client.get("/api/content/abc/comments").status_code == 400
    assert client.post("/api/comments/abc/like", headers=coach).status_code == 400


def test_unknown_sort_is_rejected(client: TestClient, content_id):
    r = client.get(f"/api/content/{content_id}/comments?sortBy=random")
    assert r.status_code == 400


def test_watch_body_must_be_boolean(client: TestClient, content_id):
    player = _signup(client)
    r = client.post(f"/api/content/{content_id}/watch", headers=player, json={})
    assert r.status_code == 400
    r = client.post(
        f"/api/content/{content_id}/watch", headers=player, json={"watched": "sometimes"}
    )
    assert r.status_code == 400


def test_missing_entities_are_404(client: TestClient):
    player = _signup(client)
    assert client.get("/api/content/999999").status_code == 404
    assert client.get("/api/content/999999/comments").status_code == 404
    assert client.post("/api/content/999999/view", headers=player).status_code == 404
    assert client.get("/api/content/999999/watch", headers=player).status_code == 404
    assert client.post(
        "/api/content/999999/comments", headers=player, json={"content": "hi"}
    ).status_code == 404
    assert client.post("/api/comments/999999/like", headers=player).status_code == 404
    assert client.post("/api/comments/999999/unlike", headers=player).status_code == 404
