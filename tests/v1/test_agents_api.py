# tests/v1/test_agents_api.py
"""Tests for agent endpoints."""

from fastapi import status

from pinchboard.services.errors import ProofUnavailableError

PROOF_URL = "https://x.com/alice_owner/status/777"


def test_register_returns_credentials(client) -> None:
    response = client.post(
        "/api/v1/agents/register",
        json={"name": "Pinchy", "description": "a crab"},
    )
    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()
    assert data["name"] == "pinchy"
    assert data["api_key"].startswith("pb_")
    assert len(data["verification_code"]) == 8
    assert data["claim_url"].endswith(data["verification_code"])
    assert "Bearer" in data["message"]


def test_register_conflict_and_invalid(client, alice) -> None:
    taken = client.post("/api/v1/agents/register", json={"name": "alice"})
    assert taken.status_code == status.HTTP_409_CONFLICT
    assert taken.json()["code"] == "name_taken"
    assert taken.json()["category"] == "conflict"

    invalid = client.post("/api/v1/agents/register", json={"name": "!"})
    assert invalid.status_code == status.HTTP_400_BAD_REQUEST
    assert invalid.json()["category"] == "bad_input"


def test_me_requires_auth(client) -> None:
    missing = client.get("/api/v1/agents/me")
    assert missing.status_code == status.HTTP_401_UNAUTHORIZED
    assert "Bearer <api_key>" in missing.json()["detail"]

    invalid = client.get("/api/v1/agents/me", headers={"Authorization": "Bearer pb_nope"})
    assert invalid.status_code == status.HTTP_401_UNAUTHORIZED
    assert invalid.json()["detail"] == "Invalid API key"


def test_me_returns_private_profile(client, alice, alice_headers) -> None:
    response = client.get("/api/v1/agents/me", headers=alice_headers)
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["name"] == "alice"
    assert data["api_key"] == alice.api_key
    assert data["post_count"] == 0
    assert data["recent_pinches"] == []


def test_status_and_verify_flow(client, alice, alice_headers, oracle) -> None:
    before = client.get("/api/v1/agents/status", headers=alice_headers).json()
    assert before == {"claimed": False, "verification_state": "unverified"}

    oracle.publish(PROOF_URL, f"Verification: {alice.verification_code}")
    response = client.post(
        "/api/v1/agents/verify",
        json={"verification_code": alice.verification_code, "tweet_url": PROOF_URL},
    )
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["external_username"] == "alice_owner"

    after = client.get("/api/v1/agents/status", headers=alice_headers).json()
    assert after["claimed"] is True

    again = client.post(
        "/api/v1/agents/verify",
        json={"verification_code": alice.verification_code, "tweet_url": PROOF_URL},
    )
    assert again.status_code == status.HTTP_409_CONFLICT
    assert again.json()["code"] == "already_verified"


def test_verify_error_mapping(client, alice, oracle) -> None:
    unknown = client.post(
        "/api/v1/agents/verify",
        json={"verification_code": "FFFFFFFF", "tweet_url": PROOF_URL},
    )
    assert unknown.status_code == status.HTTP_404_NOT_FOUND

    bad_url = client.post(
        "/api/v1/agents/verify",
        json={"verification_code": alice.verification_code, "tweet_url": "https://x.com/nope"},
    )
    assert bad_url.status_code == status.HTTP_400_BAD_REQUEST
    assert bad_url.json()["code"] == "proof_invalid"

    oracle.error = ProofUnavailableError()
    outage = client.post(
        "/api/v1/agents/verify",
        json={"verification_code": alice.verification_code, "tweet_url": PROOF_URL},
    )
    assert outage.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
    assert outage.json()["category"] == "unavailable"


def test_public_profile_with_follow_state(client, alice, bob_headers) -> None:
    anonymous = client.get("/api/v1/agents/alice")
    assert anonymous.status_code == status.HTTP_200_OK
    assert anonymous.json()["is_following"] is False
    assert "api_key" not in anonymous.json()

    follow = client.post("/api/v1/agents/alice/follow", headers=bob_headers)
    assert follow.status_code == status.HTTP_200_OK
    assert follow.json()["message"] == "Now following @alice"

    viewed = client.get("/api/v1/agents/alice", headers=bob_headers).json()
    assert viewed["is_following"] is True
    assert viewed["follower_count"] == 1

    assert client.get("/api/v1/agents/nobody").status_code == status.HTTP_404_NOT_FOUND


def test_follow_endpoints(client, alice, alice_headers, bob, bob_headers) -> None:
    assert client.post("/api/v1/agents/bob/follow", headers=alice_headers).json()["changed"]
    repeat = client.post("/api/v1/agents/bob/follow", headers=alice_headers).json()
    assert repeat["changed"] is False
    assert repeat["message"] == "Already following @bob"

    self_follow = client.post("/api/v1/agents/alice/follow", headers=alice_headers)
    assert self_follow.status_code == status.HTTP_400_BAD_REQUEST
    assert self_follow.json()["error"] == "Cannot follow yourself"

    followers = client.get("/api/v1/agents/bob/followers").json()
    assert [entry["name"] for entry in followers["agents"]] == ["alice"]
    following = client.get("/api/v1/agents/alice/following").json()
    assert [entry["name"] for entry in following["agents"]] == ["bob"]

    unfollow = client.delete("/api/v1/agents/bob/follow", headers=alice_headers)
    assert unfollow.json() == {
        "following": False,
        "changed": True,
        "message": "Unfollowed @bob",
    }
    assert client.delete("/api/v1/agents/bob/follow").status_code == status.HTTP_401_UNAUTHORIZED


def test_overlong_name_is_invalid_name(client) -> None:
    response = client.post("/api/v1/agents/register", json={"name": "x" * 70})

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["code"] == "invalid_name"
    assert response.json()["category"] == "bad_input"
