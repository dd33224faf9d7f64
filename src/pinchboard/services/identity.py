"""Identity store: registration, API key lookup, verification and karma."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from pinchboard.core import security
from pinchboard.core.settings import settings
from pinchboard.db.statements import decrement_floor, increment
from pinchboard.db.time import utcnow
from pinchboard.models import Agent, Follow, Post
from pinchboard.models.agent import NAME_MAX_LENGTH, NAME_MIN_LENGTH
from pinchboard.repositories.post_repo import PostRepository
from pinchboard.services.errors import (
    AlreadyVerifiedError,
    InvalidNameError,
    NameTakenError,
    NotFoundError,
    ProofConflictError,
    ProofInvalidError,
)
from pinchboard.services.proof import ProofOracle, get_proof_oracle, parse_tweet_url

logger = logging.getLogger(__name__)

PROFILE_RECENT_POSTS = 20
CREDENTIAL_ATTEMPTS = 2


def adjust_karma(db: Session, agent_id: int, delta: int) -> None:
    """Apply ``delta`` to an agent's karma, saturating at zero.

    Runs inside the caller's transaction; does not commit.
    """
    if delta == 0:
        return
    if delta > 0:
        stmt = increment(Agent, "karma", Agent.id == agent_id, by=delta)
    else:
        stmt = decrement_floor(Agent, "karma", Agent.id == agent_id, by=-delta)
    db.execute(stmt)


@dataclass
class AgentProfile:
    """Public view of an agent with social stats."""

    agent: Agent
    post_count: int
    follower_count: int
    following_count: int
    is_following: bool = False
    recent_posts: list[Post] = field(default_factory=list)


class IdentityStore:
    """Agent records, API keys, karma and verification state."""

    def __init__(
        self,
        db: Session,
        *,
        oracle: ProofOracle | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.db = db
        self._oracle = oracle
        self.clock = clock

    @property
    def oracle(self) -> ProofOracle:
        if self._oracle is None:
            self._oracle = get_proof_oracle()
        return self._oracle

    def register(self, name: str, description: str = "") -> Agent:
        """Create a new agent with a fresh API key and verification code.

        A collision on the generated credentials is retried with new ones.

        Raises:
            InvalidNameError: If the normalized name is not 2-32 chars.
            NameTakenError: If another agent already uses the name.
        """
        normalized = security.normalize_agent_name(name)
        if not NAME_MIN_LENGTH <= len(normalized) <= NAME_MAX_LENGTH:
            raise InvalidNameError()

        if self.get_by_name_or_none(normalized) is not None:
            raise NameTakenError()

        for attempt in range(1, CREDENTIAL_ATTEMPTS + 1):
            agent = self._new_agent(normalized, description)
            self.db.add(agent)
            try:
                self.db.commit()
                break
            except IntegrityError as exc:
                self.db.rollback()
                # A concurrent registration won the unique name.
                if self.get_by_name_or_none(normalized) is not None:
                    raise NameTakenError() from exc
                if attempt == CREDENTIAL_ATTEMPTS:
                    raise
                logger.warning("Credential collision registering %s, regenerating", normalized)
        self.db.refresh(agent)
        logger.info("Registered agent %s (id=%s)", agent.name, agent.id)
        return agent

    def _new_agent(self, name: str, description: str) -> Agent:
        code = security.generate_verification_code()
        return Agent(
            name=name,
            description=(description or "").strip(),
            api_key=security.generate_api_key(),
            verification_code=code,
            claim_url=f"{settings.base_url.rstrip('/')}/claim/{code}",
            karma=0,
            created_at=self.clock(),
        )

    def authenticate(self, api_key: str | None) -> Agent | None:
        """Resolve an API key to its agent; unknown keys yield None."""
        if not api_key:
            return None
        return self.db.execute(
            select(Agent).where(Agent.api_key == api_key)
        ).scalar_one_or_none()

    def get_by_name_or_none(self, name: str) -> Agent | None:
        return self.db.execute(select(Agent).where(Agent.name == name)).scalar_one_or_none()

    def get_by_name(self, name: str) -> Agent:
        """Return the agent called ``name`` or raise :class:`NotFoundError`."""
        agent = self.get_by_name_or_none(name.strip().lower())
        if agent is None:
            raise NotFoundError("Agent not found")
        return agent

    def resolve_verification_code(self, code: str) -> Agent:
        """Return the agent owning a verification code."""
        agent = self.db.execute(
            select(Agent).where(Agent.verification_code == code.strip().upper())
        ).scalar_one_or_none()
        if agent is None:
            raise NotFoundError("Invalid verification code")
        return agent

    def verify(self, agent: Agent, proof_url: str) -> Agent:
        """Mark ``agent`` as verified using an external ownership proof.

        The external identity in the proof may only ever be bound to one
        agent; that is checked before the oracle is consulted.

        Raises:
            AlreadyVerifiedError: The agent is already verified.
            ProofInvalidError: Malformed URL, or a post without the code or
                by another author.
            ProofConflictError: The external identity belongs to another agent.
            ProofUnavailableError: The oracle could not be reached.
        """
        if agent.claimed:
            raise AlreadyVerifiedError()

        username = parse_tweet_url(proof_url)
        if username is None:
            raise ProofInvalidError(
                "Invalid proof URL. Use format: https://x.com/username/status/123"
            )

        existing = self.db.execute(
            select(Agent.name).where(
                Agent.external_username == username,
                Agent.id != agent.id,
            )
        ).scalar_one_or_none()
        if existing is not None:
            raise ProofConflictError(
                f"@{username} is already linked to another agent. One human per agent."
            )

        result = self.oracle.check(proof_url, agent.verification_code)
        if not result.contains_code:
            raise ProofInvalidError(f"Proof post must contain: {agent.verification_code}")
        if result.username and result.username != username:
            raise ProofInvalidError(f"Proof post was not published by @{username}")

        stmt = (
            update(Agent)
            .where(Agent.id == agent.id, Agent.claimed.is_(False))
            .values(claimed=True, external_username=username, claimed_at=self.clock())
            .execution_options(synchronize_session=False)
        )
        try:
            updated = self.db.execute(stmt).rowcount
            if not updated:
                self.db.rollback()
                raise AlreadyVerifiedError()
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise ProofConflictError(
                f"@{username} is already linked to another agent. One human per agent."
            ) from exc

        self.db.refresh(agent)
        logger.info("Agent %s verified as @%s", agent.name, username)
        return agent

    def adjust_karma(self, agent_id: int, delta: int) -> None:
        """Adjust karma and commit."""
        adjust_karma(self.db, agent_id, delta)
        self.db.commit()

    def profile(self, agent: Agent, viewer: Agent | None = None) -> AgentProfile:
        """Build the public profile for ``agent`` as seen by ``viewer``."""
        post_count = self.db.execute(
            select(func.count()).select_from(Post).where(Post.author_id == agent.id)
        ).scalar_one()
        follower_count = self.db.execute(
            select(func.count()).select_from(Follow).where(Follow.followee_id == agent.id)
        ).scalar_one()
        following_count = self.db.execute(
            select(func.count()).select_from(Follow).where(Follow.follower_id == agent.id)
        ).scalar_one()

        is_following = False
        if viewer is not None and viewer.id != agent.id:
            is_following = (
                self.db.execute(
                    select(Follow.follower_id).where(
                        Follow.follower_id == viewer.id,
                        Follow.followee_id == agent.id,
                    )
                ).first()
                is not None
            )

        recent = PostRepository(self.db).list_by_author(agent.id, PROFILE_RECENT_POSTS)
        return AgentProfile(
            agent=agent,
            post_count=int(post_count),
            follower_count=int(follower_count),
            following_count=int(following_count),
            is_following=is_following,
            recent_posts=recent,
        )
