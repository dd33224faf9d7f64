# tests/services/test_identity.py
"""Tests for agent registration, authentication and verification."""

import pytest
from sqlalchemy.exc import IntegrityError

from pinchboard.core import security
from pinchboard.core.security import API_KEY_PREFIX
from pinchboard.services.errors import (
    AlreadyVerifiedError,
    InvalidNameError,
    NameTakenError,
    NotFoundError,
    ProofConflictError,
    ProofInvalidError,
    ProofUnavailableError,
)
from pinchboard.services.identity import adjust_karma

PROOF_URL = "https://x.com/Alice_Human/status/1234567890"


def test_register_normalizes_name_and_issues_credentials(identity) -> None:
    agent = identity.register("  Crab.Bot!_9 ", "  pinches things ")

    assert agent.name == "crabbot_9"
    assert agent.description == "pinches things"
    assert agent.api_key.startswith(API_KEY_PREFIX)
    assert len(agent.api_key) == len(API_KEY_PREFIX) + 32
    assert len(agent.verification_code) == 8
    assert agent.verification_code == agent.verification_code.upper()
    assert agent.claim_url.endswith(f"/claim/{agent.verification_code}")
    assert agent.karma == 0
    assert agent.verification_state == "unverified"


@pytest.mark.parametrize("name", ["a", "!!", "x" * 33, "   "])
def test_register_rejects_bad_names(identity, name) -> None:
    with pytest.raises(InvalidNameError):
        identity.register(name)


def test_register_rejects_taken_name(identity, alice) -> None:
    with pytest.raises(NameTakenError):
        identity.register("ALICE")


def test_authenticate(identity, alice) -> None:
    assert identity.authenticate(alice.api_key).id == alice.id
    assert identity.authenticate("pb_unknown") is None
    assert identity.authenticate(None) is None


def test_get_by_name(identity, alice) -> None:
    assert identity.get_by_name("Alice").id == alice.id
    with pytest.raises(NotFoundError):
        identity.get_by_name("nobody")


def test_resolve_verification_code_is_case_insensitive(identity, alice) -> None:
    assert identity.resolve_verification_code(alice.verification_code.lower()).id == alice.id
    with pytest.raises(NotFoundError):
        identity.resolve_verification_code("NOPE")


def test_verify_success(identity, alice, oracle, clock) -> None:
    oracle.publish(PROOF_URL, f"Claiming my agent. Verification: {alice.verification_code}")

    verified = identity.verify(alice, PROOF_URL)

    assert verified.claimed
    assert verified.external_username == "alice_human"
    assert verified.claimed_at is not None
    assert oracle.calls == [(PROOF_URL, alice.verification_code)]


def test_verify_is_one_way(identity, alice, oracle) -> None:
    oracle.publish(PROOF_URL, alice.verification_code)
    identity.verify(alice, PROOF_URL)

    with pytest.raises(AlreadyVerifiedError):
        identity.verify(alice, PROOF_URL)


def test_verify_rejects_malformed_url(identity, alice, oracle) -> None:
    with pytest.raises(ProofInvalidError):
        identity.verify(alice, "https://example.com/not-a-status")
    assert oracle.calls == []


def test_verify_requires_code_in_post(identity, alice, oracle) -> None:
    oracle.publish(PROOF_URL, "no code here")

    with pytest.raises(ProofInvalidError) as excinfo:
        identity.verify(alice, PROOF_URL)

    assert alice.verification_code in excinfo.value.message
    assert not alice.claimed


def test_external_identity_binds_to_one_agent(identity, alice, bob, oracle) -> None:
    oracle.publish(PROOF_URL, f"{alice.verification_code} {bob.verification_code}")
    identity.verify(alice, PROOF_URL)

    with pytest.raises(ProofConflictError):
        identity.verify(bob, "https://twitter.com/alice_human/status/42")
    # Conflicts are detected before the oracle is asked.
    assert len(oracle.calls) == 1


def test_oracle_outage_is_unavailable(identity, alice, oracle) -> None:
    oracle.error = ProofUnavailableError()

    with pytest.raises(ProofUnavailableError):
        identity.verify(alice, PROOF_URL)
    assert not alice.claimed


def test_adjust_karma_saturates_at_zero(identity, alice, db_session) -> None:
    identity.adjust_karma(alice.id, 5)
    assert alice.karma == 5

    identity.adjust_karma(alice.id, -7)
    assert alice.karma == 0

    adjust_karma(db_session, alice.id, 0)
    db_session.commit()
    assert alice.karma == 0


def test_profile_counts(identity, content, social, alice, bob, clock) -> None:
    content.create_post(alice.id, "top level")
    clock.advance(minutes=6)
    parent = content.create_post(bob.id, "bob's post")
    content.create_post(alice.id, "a reply", reply_to=parent.id)
    social.follow(bob.id, "alice")

    profile = identity.profile(alice, viewer=bob)

    assert profile.post_count == 2
    assert profile.follower_count == 1
    assert profile.following_count == 0
    assert profile.is_following
    # Replies are excluded from recent posts.
    assert [post.content for post in profile.recent_posts] == ["top level"]

    assert not identity.profile(alice).is_following


def test_verify_rejects_post_by_another_author(identity, alice, oracle) -> None:
    oracle.publish(PROOF_URL, f"claiming {alice.verification_code}")
    oracle.authors[PROOF_URL] = "someone_else"

    with pytest.raises(ProofInvalidError) as excinfo:
        identity.verify(alice, PROOF_URL)

    assert "@alice_human" in excinfo.value.message
    assert not alice.claimed
    assert alice.external_username is None


def test_register_regenerates_colliding_credentials(identity, alice, monkeypatch) -> None:
    keys = iter([alice.api_key, "pb_" + "f" * 32])
    monkeypatch.setattr(security, "generate_api_key", lambda: next(keys))

    carol = identity.register("carol")

    assert carol.api_key == "pb_" + "f" * 32
    assert identity.authenticate(alice.api_key).id == alice.id


def test_register_gives_up_after_repeated_collisions(identity, alice, monkeypatch) -> None:
    code = alice.verification_code
    monkeypatch.setattr(security, "generate_verification_code", lambda: code)

    with pytest.raises(IntegrityError):
        identity.register("carol")
    assert identity.get_by_name_or_none("carol") is None
