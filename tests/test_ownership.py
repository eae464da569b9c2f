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

CONTENT = {
    "url": "https://www.instagram.com/reel/abc123/",
    "title": "Ground balls",
    "category": "Stick Skills",
}


@pytest.fixture(scope="module")
def client():
    with TestClient(app) as c:
        yield c


def _signup(client: TestClient, is_coach: bool = False) -> dict:
    r = client.post(
        "/api/auth/signup",
        json={
            "username": f"own_{uuid.uuid4().hex[:8]}",
            "password": "Passw0rd1",
            "is_coach": is_coach,
        },
    )
    assert r.status_code == 201
    client.cookies.clear()
    return {"Authorization": f"Bearer {r.json()['access_token']}"}


def test_players_cannot_create_content(client: TestClient):
    player = _signup(client)
    r = client.post("/api/content", headers=player, json=CONTENT)
    assert r.status_code == 403


def test_only_owning_coach_can_delete(client: TestClient):
    owner = _signup(client, is_coach=True)
    other_coach = _signup(client, is_coach=True)
    player = _signup(client)

    content_id = client.post("/api/content", headers=owner, json=CONTENT).json()["id"]

    assert client.delete(f"/api/content/{content_id}", headers=other_coach).status_code == 403
    assert client.delete(f"/api/content/{content_id}", headers=player).status_code == 403
    assert client.delete(f"/api/content/{content_id}").status_code == 401

    r = client.delete(f"/api/content/{content_id}", headers=owner)
    assert r.status_code == 200
    assert r.json()["deleted_id"] == content_id
    assert client.get(f"/api/content/{content_id}").status_code == 404


def test_delete_removes_comments_and_watch_status(client: TestClient):
    owner = _signup(client, is_coach=True)
    player = _signup(client)
    content_id = client.post("/api/content", headers=owner, json=CONTENT).json()["id"]

    comment_id = client.post(
        f"/api/content/{content_id}/comments", headers=player, json={"content": "Great"}
    ).json()["id"]
    client.post(f"/api/comments/{comment_id}/like", headers=owner)
    client.post(f"/api/content/{content_id}/view", headers=player)

    assert client.delete(f"/api/content/{content_id}", headers=owner).status_code == 200
    assert client.post(f"/api/comments/{comment_id}/like", headers=player).status_code == 404
    assert client.get(f"/api/content/{content_id}/watch", headers=player).status_code == 404


def test_analytics_and_health_are_coach_only(client: TestClient):
    player = _signup(client)
    assert client.get("/api/analytics", headers=player).status_code == 403
    assert client.get("/api/health", headers=player).status_code == 403
    assert client.get("/api/analytics").status_code == 401


def test_coach_listing_includes_watchers(client: TestClient):
    coach = _signup(client, is_coach=True)
    player = _signup(client)
    content_id = client.post("/api/content", headers=coach, json=CONTENT).json()["id"]
    client.post(f"/api/content/{content_id}/view", headers=player)

    coach_view = {c["id"]: c for c in client.get("/api/content", headers=coach).json()}
    player_view = {c["id"]: c for c in client.get("/api/content", headers=player).json()}

    assert len(coach_view[content_id]["watchers"]) == 1
    assert coach_view[content_id]["watchers"][0]["watched"] is True
    assert player_view[content_id]["watchers"] is None


def test_listing_filters_by_category(client: TestClient):
    coach = _signup(client, is_coach=True)
    category = f"Cat {uuid.uuid4().hex[:6]}"
    client.post("/api/content", headers=coach, json={**CONTENT, "category": category})

    r = client.get("/api/content", params={"category": category})
    assert r.status_code == 200
    assert [c["category"] for c in r.json()] == [category]
