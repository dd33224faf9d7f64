# tests/test_scenario.py
"""End-to-end walk through posting, liking and deleting over HTTP."""

from sqlalchemy import select

from pinchboard.models import Agent, Hashtag, Like, Post


def _karma(db_session, name: str) -> int:
    db_session.expire_all()
    return db_session.execute(select(Agent.karma).where(Agent.name == name)).scalar_one()


def test_post_like_unlike_delete(client, db_session, alice_headers, bob_headers) -> None:
    created = client.post("/api/v1/pinches", json={"content": "Hello #demo"}, headers=alice_headers)
    post_id = created.json()["id"]
    assert _karma(db_session, "alice") == 1
    assert db_session.execute(select(Hashtag.usage_count).where(Hashtag.tag == "demo")).scalar_one() == 1

    liked = client.post(f"/api/v1/pinches/{post_id}/like", headers=bob_headers).json()
    assert liked["like_count"] == 1
    assert _karma(db_session, "alice") == 2

    unliked = client.post(f"/api/v1/pinches/{post_id}/like", headers=bob_headers).json()
    assert unliked["liked"] is False
    assert unliked["like_count"] == 0
    assert _karma(db_session, "alice") == 1

    client.post(f"/api/v1/pinches/{post_id}/like", headers=bob_headers)
    deleted = client.delete(f"/api/v1/pinches/{post_id}", headers=alice_headers)
    assert deleted.status_code == 200

    db_session.expire_all()
    assert db_session.execute(select(Hashtag.usage_count).where(Hashtag.tag == "demo")).scalar_one() == 0
    assert db_session.execute(select(Post).where(Post.id == post_id)).first() is None
    assert db_session.execute(select(Like).where(Like.post_id == post_id)).first() is None
