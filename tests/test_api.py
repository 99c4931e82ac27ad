"""HTTP API tests against a throwaway in-memory engine."""

import pytest
from fastapi.testclient import TestClient

from backend.app import create_app


@pytest.fixture
def client(tmp_path):
    app = create_app(":memory:", tmp_path / "missing.json")
    with TestClient(app) as c:
        yield c


@pytest.fixture
def alice(client):
    response = client.post("/api/characters", json={"id": "alice", "name": "Alice", "affection": 50})
    assert response.status_code == 201
    return response.json()


def test_health(client):
    assert client.get("/api/health").json() == {"status": "ok"}


# ── Characters ────────────────────────────────────────────────


def test_create_and_list_characters(client, alice):
    assert alice["emotion"] == "neutral"
    client.post("/api/characters", json={"name": "Bob"})
    names = [c["name"] for c in client.get("/api/characters").json()]
    assert names == ["Alice", "Bob"]


def test_duplicate_character_is_409(client, alice):
    response = client.post("/api/characters", json={"id": "alice", "name": "Other"})
    assert response.status_code == 409


def test_create_character_rejects_unknown_emotion(client):
    response = client.post("/api/characters", json={"name": "Carl", "emotion": "hangry"})
    assert response.status_code == 422


def test_missing_character_is_404(client):
    assert client.get("/api/characters/ghost").status_code == 404
    assert client.delete("/api/characters/ghost").status_code == 404


def test_patch_character_with_warning(client, alice):
    response = client.patch("/api/characters/alice", json={"affection": 80})
    assert response.status_code == 200
    body = response.json()
    assert body["character"]["affection"] == 80
    assert [w["field"] for w in body["warnings"]] == ["affection"]


def test_patch_character_out_of_range_is_422(client, alice):
    response = client.patch("/api/characters/alice", json={"affection": 500})
    assert response.status_code == 422
    assert response.json()["detail"]["errors"][0]["field"] == "affection"
    assert client.get("/api/characters/alice").json()["affection"] == 50


def test_delete_character(client, alice):
    assert client.delete("/api/characters/alice").json() == {"ok": True}
    assert client.get("/api/characters/alice").status_code == 404


# ── Inventory & memories ──────────────────────────────────────


def test_inventory_lifecycle(client, alice):
    response = client.post("/api/characters/alice/inventory", json={"item_name": "apple", "quantity": 3})
    assert response.status_code == 201
    item = response.json()["item"]

    patched = client.patch(f"/api/inventory/{item['id']}", json={"quantity": 1})
    assert patched.json()["item"]["quantity"] == 1

    assert client.delete(f"/api/inventory/{item['id']}").json() == {"ok": True}
    assert client.get("/api/characters/alice/inventory").json() == []
    assert client.delete(f"/api/inventory/{item['id']}").status_code == 404


def test_inventory_validation_is_422(client, alice):
    response = client.post("/api/characters/alice/inventory", json={"item_name": "coin", "quantity": -2})
    assert response.status_code == 422


def test_memories(client, alice):
    client.post("/api/characters/alice/memories", json={"content": "small", "importance": 1})
    client.post("/api/characters/alice/memories", json={"content": "big", "importance": 5})
    contents = [m["content"] for m in client.get("/api/characters/alice/memories").json()]
    assert contents == ["big", "small"]


# ── Locations & timeline ──────────────────────────────────────


def test_locations(client):
    response = client.post("/api/locations", json={"id": "tavern", "name": "Tavern", "type": "building"})
    assert response.status_code == 201
    assert client.get("/api/locations/tavern").json()["name"] == "Tavern"
    assert client.get("/api/locations/cellar").status_code == 404
    assert [l["id"] for l in client.get("/api/locations", params={"type": "building"}).json()] == ["tavern"]


def test_location_with_unknown_parent_is_409(client):
    response = client.post("/api/locations", json={"name": "Cellar", "parent_location": "nowhere"})
    assert response.status_code == 409


def test_timeline(client):
    response = client.post("/api/timeline", json={"event_type": "meeting", "description": "Alice meets Bob"})
    assert response.status_code == 201
    events = client.get("/api/timeline", params={"event_type": "meeting"}).json()
    assert [e["description"] for e in events] == ["Alice meets Bob"]


def test_timeline_validation_is_422(client):
    response = client.post("/api/timeline", json={"event_type": "x", "description": "y", "timestamp": -1})
    assert response.status_code == 422


# ── Messages & snapshots ──────────────────────────────────────


def test_process_message(client, alice):
    response = client.post("/api/characters/alice/messages", json={"message": "好感度增加了10点"})
    assert response.status_code == 200
    assert response.json()["updates"][0]["applied"] is True
    assert client.get("/api/characters/alice").json()["affection"] == 60


def test_process_message_for_unknown_character_is_404(client):
    response = client.post("/api/characters/ghost/messages", json={"message": "hi"})
    assert response.status_code == 404


def test_snapshot_and_restore(client, alice):
    snapshot = client.post("/api/snapshots", json={"description": "start"}).json()
    client.patch("/api/characters/alice", json={"affection": 40})

    assert [s["id"] for s in client.get("/api/snapshots").json()] == [snapshot["id"]]
    assert client.post(f"/api/snapshots/{snapshot['id']}/restore").json() == {"ok": True}
    assert client.get("/api/characters/alice").json()["affection"] == 50


def test_restore_unknown_snapshot_is_404(client):
    assert client.post("/api/snapshots/nope/restore").status_code == 404


def test_stats(client, alice):
    client.patch("/api/characters/alice", json={"affection": 55})
    stats = client.get("/api/stats").json()
    assert stats["repository"]["database"]["tables"]["characters"] == 1
    assert client.get("/api/validation/stats").json()["total"] == 1
