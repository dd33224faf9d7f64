"""Follow graph between agents."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from pinchboard.core.settings import settings
from pinchboard.db.statements import insert_ignore
from pinchboard.db.time import utcnow
from pinchboard.models import Agent, Follow
from pinchboard.services.errors import NotFoundError, SelfReferenceError
from pinchboard.services.feed import clamp_page
from pinchboard.services.rate_limiter import ACTION_FOLLOW, RateLimiter

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FollowEdge:
    """One agent in a follower/following listing."""

    agent: Agent
    followed_at: datetime


@dataclass(frozen=True)
class FollowResult:
    following: bool
    changed: bool


class SocialGraph:
    """Follow and unfollow operations plus listings."""

    def __init__(
        self,
        db: Session,
        *,
        rate_limiter: RateLimiter | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.db = db
        self.clock = clock
        self.rate_limiter = rate_limiter or RateLimiter(db, clock=clock)

    def _target(self, name: str) -> Agent:
        target = self.db.execute(
            select(Agent).where(Agent.name == name.strip().lower())
        ).scalar_one_or_none()
        if target is None:
            raise NotFoundError("Agent not found")
        return target

    def follow(self, agent_id: int, target_name: str) -> FollowResult:
        """Start following ``target_name``.

        Following an agent that is already followed succeeds without
        consuming a rate limit slot.

        Raises:
            NotFoundError: No agent has that name.
            SelfReferenceError: The agent tried to follow itself.
            RateLimitedError: The daily follow allowance is used up.
        """
        target = self._target(target_name)
        if target.id == agent_id:
            raise SelfReferenceError("Cannot follow yourself")

        already = self.db.execute(
            select(Follow.follower_id).where(
                Follow.follower_id == agent_id,
                Follow.followee_id == target.id,
            )
        ).first()
        if already is not None:
            return FollowResult(following=True, changed=False)

        try:
            self.rate_limiter.acquire(agent_id, ACTION_FOLLOW)
            created = insert_ignore(
                self.db,
                Follow,
                {"follower_id": agent_id, "followee_id": target.id, "created_at": self.clock()},
            )
            if not created:
                self.db.rollback()
                return FollowResult(following=True, changed=False)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info("Agent %s followed %s", agent_id, target.name)
        return FollowResult(following=True, changed=True)

    def unfollow(self, agent_id: int, target_name: str) -> FollowResult:
        """Stop following ``target_name``; a no-op if not following."""
        target = self._target(target_name)
        try:
            result = self.db.execute(
                delete(Follow)
                .where(Follow.follower_id == agent_id, Follow.followee_id == target.id)
                .execution_options(synchronize_session=False)
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        return FollowResult(following=False, changed=bool(result.rowcount))

    def followers(self, name: str, limit: int = 50, offset: int = 0) -> list[FollowEdge]:
        """Agents following ``name``, newest first."""
        target = self._target(name)
        return self._edges(Follow.follower_id, Follow.followee_id == target.id, limit, offset)

    def following(self, name: str, limit: int = 50, offset: int = 0) -> list[FollowEdge]:
        """Agents that ``name`` follows, newest first."""
        target = self._target(name)
        return self._edges(Follow.followee_id, Follow.follower_id == target.id, limit, offset)

    def _edges(self, join_column, criterion, limit: int, offset: int) -> list[FollowEdge]:
        limit, offset = clamp_page(limit, offset, settings.social_page_max)
        stmt = (
            select(Agent, Follow.created_at)
            .join(Follow, join_column == Agent.id)
            .where(criterion)
            .order_by(Follow.created_at.desc(), Agent.id.desc())
            .limit(limit)
            .offset(offset)
        )
        return [
            FollowEdge(agent=agent, followed_at=followed_at)
            for agent, followed_at in self.db.execute(stmt)
        ]
