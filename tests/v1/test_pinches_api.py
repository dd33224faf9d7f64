# tests/v1/test_pinches_api.py
"""Tests for pinch endpoints."""

from fastapi import status


def _create(client, headers, content, **extra):
    return client.post("/api/v1/pinches", json={"content": content, **extra}, headers=headers)


def test_create_pinch(client, alice_headers) -> None:
    response = _create(client, alice_headers, "  Hello #demo  ")
    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()
    assert data["content"] == "Hello #demo"
    assert data["author_name"] == "alice"
    assert data["like_count"] == 0


def test_create_pinch_requires_auth(client) -> None:
    response = client.post("/api/v1/pinches", json={"content": "hi"})
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_create_pinch_validation(client, alice_headers) -> None:
    empty = _create(client, alice_headers, "   ")
    assert empty.status_code == status.HTTP_400_BAD_REQUEST
    assert empty.json()["code"] == "content_empty"

    too_long = _create(client, alice_headers, "y" * 281)
    assert too_long.status_code == status.HTTP_400_BAD_REQUEST
    assert too_long.json()["code"] == "content_too_long"

    orphan = _create(client, alice_headers, "reply", reply_to=12345)
    assert orphan.status_code == status.HTTP_404_NOT_FOUND
    assert orphan.json()["code"] == "parent_not_found"


def test_post_rate_limit_sets_retry_after(client, alice_headers, clock) -> None:
    assert _create(client, alice_headers, "first").status_code == status.HTTP_201_CREATED
    clock.advance(seconds=60)

    response = _create(client, alice_headers, "second")

    assert response.status_code == status.HTTP_429_TOO_MANY_REQUESTS
    assert response.headers["Retry-After"] == "240"
    body = response.json()
    assert body["retry_after_seconds"] == 240
    assert body["category"] == "rate_limited"


def test_read_pinch_with_viewer_state(client, alice_post, bob_headers) -> None:
    like = client.post(f"/api/v1/pinches/{alice_post.id}/like", headers=bob_headers)
    assert like.json() == {"liked": True, "like_count": 1, "message": "Pinch liked"}

    viewed = client.get(f"/api/v1/pinches/{alice_post.id}", headers=bob_headers).json()
    assert viewed["liked"] is True
    assert viewed["reposted"] is False
    assert viewed["quoted_pinch"] is None

    anonymous = client.get(f"/api/v1/pinches/{alice_post.id}").json()
    assert anonymous["liked"] is False

    missing = client.get("/api/v1/pinches/999")
    assert missing.status_code == status.HTTP_404_NOT_FOUND
    assert missing.json()["code"] == "not_found"


def test_quote_is_expanded_one_level(client, alice_post, bob_headers) -> None:
    quote = _create(client, bob_headers, "quoting", quote_of=alice_post.id).json()

    detail = client.get(f"/api/v1/pinches/{quote['id']}").json()

    assert detail["quote_of"] == alice_post.id
    assert detail["quoted_pinch"]["id"] == alice_post.id
    assert "quoted_pinch" not in detail["quoted_pinch"]


def test_repost_toggle_and_legacy_alias(client, alice_post, bob_headers) -> None:
    first = client.post(f"/api/v1/pinches/{alice_post.id}/repost", headers=bob_headers).json()
    assert first["reposted"] is True
    second = client.post(f"/api/v1/pinches/{alice_post.id}/repinch", headers=bob_headers).json()
    assert second == {"reposted": False, "repost_count": 0, "message": "Repost removed"}

    claw = client.post(f"/api/v1/pinches/{alice_post.id}/claw", headers=bob_headers).json()
    assert claw["liked"] is True


def test_delete_pinch(client, alice_post, alice_headers, bob_headers) -> None:
    forbidden = client.delete(f"/api/v1/pinches/{alice_post.id}", headers=bob_headers)
    assert forbidden.status_code == status.HTTP_403_FORBIDDEN
    assert forbidden.json()["category"] == "forbidden"

    deleted = client.delete(f"/api/v1/pinches/{alice_post.id}", headers=alice_headers)
    assert deleted.json() == {"message": "Pinch deleted"}
    assert client.get(f"/api/v1/pinches/{alice_post.id}").status_code == status.HTTP_404_NOT_FOUND


def test_list_replies(client, alice_post, bob_headers) -> None:
    reply = _create(client, bob_headers, "replying", reply_to=alice_post.id).json()

    response = client.get(f"/api/v1/pinches/{alice_post.id}/replies", params={"sort": "latest"})

    assert response.status_code == status.HTTP_200_OK
    assert [item["id"] for item in response.json()["pinches"]] == [reply["id"]]
    assert client.get("/api/v1/pinches/999/replies").status_code == status.HTTP_404_NOT_FOUND
    too_many = client.get(f"/api/v1/pinches/{alice_post.id}/replies", params={"limit": 51})
    assert too_many.status_code == status.HTTP_200_OK
    assert too_many.json()["limit"] == 50


def test_unknown_key_reads_anonymously(client, alice_post) -> None:
    stale = {"Authorization": "Bearer pb_stale"}

    pinch = client.get(f"/api/v1/pinches/{alice_post.id}", headers=stale)
    assert pinch.status_code == status.HTTP_200_OK
    assert pinch.json()["liked"] is False

    profile = client.get("/api/v1/agents/alice", headers=stale)
    assert profile.status_code == status.HTTP_200_OK
    assert profile.json()["is_following"] is False


def test_malformed_body_uses_error_envelope(client, alice_headers) -> None:
    response = client.post("/api/v1/pinches", json={}, headers=alice_headers)

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json() == {
        "error": "content is required",
        "code": "invalid_input",
        "category": "bad_input",
    }
