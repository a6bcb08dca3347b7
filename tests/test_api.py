"""HTTP-level tests through FastAPI's TestClient."""

from pymongo.errors import ServerSelectionTimeoutError

from spectra_sync.errors import surface_store_errors
from spectra_sync.repositories.story_repository import StoryRepository


def test_root_lists_collections(client):
    response = client.get("/")

    assert response.status_code == 200
    assert "collections" in response.json()


def test_chat_push_then_pull(client):
    body = {"collection": "chats", "container_id": "alice_bob", "records": [{"id": "m1", "payload": {"sentText": "hi"}}]}

    first = client.post("/sync/push", json=body).json()
    assert first["created"] is True
    assert first["accepted"] == 0

    second = client.post("/sync/push", json=body).json()
    assert second["created"] is False
    assert second["accepted"] == 1

    pulled = client.post("/sync/pull", json={"collection": "chats", "container_id": "alice_bob", "cursor": 0}).json()
    assert [r["payload"]["sentText"] for r in pulled["records"]] == ["hi"]
    assert pulled["cursor"] == pulled["records"][0]["seq"]

    again = client.post("/sync/pull", json={"collection": "chats", "container_id": "alice_bob", "cursor": pulled["cursor"]}).json()
    assert again["records"] == []


def test_upsert_conflict_is_409_with_server_version(client, clock):
    created = client.put("/sync/providers/records/p1", json={"payload": {"bio": "v1"}})
    assert created.status_code == 200
    base = created.json()["updated_at"]

    clock.advance(ms=5)
    assert client.put("/sync/providers/records/p1", json={"payload": {"bio": "v2"}, "updated_at": base}).status_code == 200

    stale = client.put("/sync/providers/records/p1", json={"payload": {"bio": "v1b"}, "updated_at": base})
    assert stale.status_code == 409
    assert stale.json()["server_version"]["payload"]["bio"] == "v2"

    current = client.get("/sync/providers/records/p1").json()
    assert current["payload"]["bio"] == "v2"


def test_unknown_collection_is_400(client):
    response = client.post("/sync/pull", json={"collection": "secrets"})

    assert response.status_code == 400


def test_bad_identifier_rejected_at_boundary(client):
    response = client.post("/sync/push", json={"collection": "chats", "container_id": "a/b", "records": []})

    assert response.status_code == 422


def test_pushed_record_needs_an_id(client):
    body = {"collection": "providers", "records": [{"payload": {"bio": "hi"}}]}

    assert client.post("/sync/push", json=body).status_code == 422


def test_updated_at_past_int64_is_422(client):
    response = client.put("/sync/providers/records/p1", json={"payload": {}, "updated_at": 2**64})

    assert response.status_code == 422


def test_oversized_cursor_counts_as_zero(client):
    client.put("/sync/providers/records/p1", json={"payload": {"bio": "hi"}})

    pulled = client.post("/sync/pull", json={"collection": "providers", "cursor": "1e30"}).json()

    assert [r["id"] for r in pulled["records"]] == ["p1"]


def test_missing_record_is_404(client):
    assert client.get("/sync/providers/records/nope").status_code == 404


def test_post_toggle_flow(client):
    assert client.post("/posts", json={"id": "post1", "owner_id": "owner"}).status_code == 200

    on = client.post("/posts/post1/toggle", json={"user_id": "alice", "kind": "like"}).json()
    assert on == {"target_id": "post1", "user_id": "alice", "kind": "like", "active": True, "count": 1}

    off = client.post("/posts/post1/toggle", json={"user_id": "alice", "kind": "like"}).json()
    assert off["active"] is False
    assert off["count"] == 0

    client.post("/posts/post1/comments", json={"username": "bob", "comment": "cool"})
    post = client.get("/posts/post1").json()
    assert post["comment_num"] == 1
    assert post["like_num"] == 0

    assert client.delete("/posts/post1").status_code == 204
    assert client.get("/posts/post1").status_code == 404
    assert client.get("/posts/post1/comments").status_code == 404


def test_toggle_rejects_unknown_kind(client):
    client.post("/posts", json={"id": "post1", "owner_id": "owner"})

    response = client.post("/posts/post1/toggle", json={"user_id": "alice", "kind": "love"})

    assert response.status_code == 422


def test_story_expiry_is_410(client, clock):
    created = client.post("/stories", json={"id": "s1", "owner_id": "owner", "payload": {"caption": "sun"}}).json()
    assert created["created"] is True

    clock.advance(hours=1)
    view = client.post("/stories/s1/view", json={"viewer_id": "alice"}).json()
    assert view == {"id": "s1", "viewers": ["alice"], "expired": False}
    assert [s["id"] for s in client.get("/stories").json()] == ["s1"]

    clock.advance(hours=24)
    gone = client.post("/stories/s1/view", json={"viewer_id": "bob"})
    assert gone.status_code == 410
    assert gone.json()["expired"] is True
    assert client.get("/stories").json() == []
    assert client.get("/stories/s1").status_code == 404


def test_story_delete(client):
    client.post("/stories", json={"id": "s1", "owner_id": "owner"})

    assert client.delete("/stories/s1").status_code == 204
    assert client.delete("/stories/s1").status_code == 404


def test_follow_endpoints(client):
    client.post("/follows", json={"follower": "me", "followed": "a"})
    client.post("/follows", json={"follower": "a", "followed": "me"})
    client.post("/follows", json={"follower": "a", "followed": "z"})

    assert client.get("/follows/me/mutual").json()["users"] == ["a"]
    assert client.get("/follows/me/suggestions").json()["users"] == ["z"]
    assert client.get("/follows/me/is-following/a").json()["following"] is True

    unfollowed = client.request("DELETE", "/follows", json={"follower": "me", "followed": "a"})
    assert unfollowed.json()["following"] is False
    assert client.get("/follows/me/following").json()["users"] == []
    assert client.post("/follows", json={"follower": "me", "followed": "me"}).status_code == 400


def test_store_outage_is_503(client, monkeypatch):
    @surface_store_errors
    async def unavailable(self):
        raise ServerSelectionTimeoutError("no primary")

    monkeypatch.setattr(StoryRepository, "list_all", unavailable)

    response = client.get("/stories")

    assert response.status_code == 503
    assert response.json() == {"error": "store unavailable"}


def test_provider_actions_over_http(client):
    client.put("/sync/providers/records/p1", json={"payload": {"bio": "plumber"}})

    assert client.post("/providers/p1/action", json={"action": "view"}).json()["views"] == 1
    rated = client.post("/providers/p1/action", json={"action": "rating", "value": 3}).json()
    assert (rated["rating"], rated["rating_count"]) == (3.0, 1)

    assert client.post("/providers/p1/action", json={"action": "rating"}).status_code == 422
    assert client.post("/providers/p1/action", json={"action": "rating", "value": 9}).status_code == 422
    assert client.post("/providers/p1/action", json={"action": "share"}).status_code == 422
    assert client.post("/providers/ghost/action", json={"action": "like"}).status_code == 404


def test_post_payload_is_validated_and_trimmed(client):
    created = client.post("/posts", json={"id": "post1", "owner_id": "owner", "payload": {"caption": "sunset", "like_num": 999}})

    assert created.status_code == 200
    body = created.json()
    assert body["payload"]["caption"] == "sunset"
    assert "like_num" not in body["payload"]
    assert body["like_num"] == 0

    bad = client.post("/posts", json={"id": "post2", "owner_id": "owner", "payload": {"caption": ["not", "text"]}})
    assert bad.status_code == 422
