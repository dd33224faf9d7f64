"""Like and repost toggles with their counter and karma side effects.

A toggle is a uniquely keyed relation row, not an event log. Removal is a
DELETE whose affected-row count decides whether counters move; creation is an
INSERT guarded by the composite primary key. Either way only the request that
actually changed the row applies the counter and karma deltas, so two racing
toggles from the same agent cannot both take effect.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from pinchboard.db.statements import decrement_floor, increment, insert_ignore
from pinchboard.db.time import utcnow
from pinchboard.models import Like, Post, Repost
from pinchboard.services.errors import NotFoundError
from pinchboard.services.identity import adjust_karma
from pinchboard.services.rate_limiter import ACTION_LIKE, RateLimiter

logger = logging.getLogger(__name__)

LIKE_KARMA = 1
REPOST_KARMA = 2


@dataclass(frozen=True)
class ToggleResult:
    """New state of a toggle relation after a call."""

    active: bool
    count: int


class EngagementEngine:
    """Applies like/repost toggles as single units of work."""

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

    def _author_of(self, post_id: int) -> int:
        author_id = self.db.execute(
            select(Post.author_id).where(Post.id == post_id)
        ).scalar_one_or_none()
        if author_id is None:
            raise NotFoundError("Pinch not found")
        return author_id

    def _remove(self, model: type, agent_id: int, post_id: int) -> bool:
        result = self.db.execute(
            delete(model)
            .where(model.agent_id == agent_id, model.post_id == post_id)
            .execution_options(synchronize_session=False)
        )
        return bool(result.rowcount)

    def _current_count(self, post_id: int, column: str) -> int:
        return self.db.execute(
            select(getattr(Post, column)).where(Post.id == post_id)
        ).scalar_one()

    def toggle_like(self, agent_id: int, post_id: int) -> ToggleResult:
        """Like the post, or remove an existing like.

        Creating a like is rate-limited and gives the author +1 karma; removing
        it is not rate-limited and takes that karma back (floor 0). Self-likes
        skip the karma side effect.

        Raises:
            NotFoundError: The post does not exist.
            RateLimitedError: The like window is exhausted.
        """
        author_id = self._author_of(post_id)
        try:
            if self._remove(Like, agent_id, post_id):
                self.db.execute(decrement_floor(Post, "like_count", Post.id == post_id))
                if author_id != agent_id:
                    adjust_karma(self.db, author_id, -LIKE_KARMA)
                count = self._current_count(post_id, "like_count")
                self.db.commit()
                return ToggleResult(active=False, count=count)

            self.rate_limiter.acquire(agent_id, ACTION_LIKE)
            created = insert_ignore(
                self.db,
                Like,
                {"agent_id": agent_id, "post_id": post_id, "created_at": self.clock()},
            )
            if not created:
                # A concurrent request from the same agent already liked it.
                self.db.rollback()
                return ToggleResult(active=True, count=self._current_count(post_id, "like_count"))

            self.db.execute(increment(Post, "like_count", Post.id == post_id))
            if author_id != agent_id:
                adjust_karma(self.db, author_id, LIKE_KARMA)
            count = self._current_count(post_id, "like_count")
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        return ToggleResult(active=True, count=count)

    def toggle_repost(self, agent_id: int, post_id: int) -> ToggleResult:
        """Repost the post, or remove an existing repost.

        Creation gives the author +2 karma (not for self-reposts) and is not
        rate-limited. Removal only decrements the repost count: karma granted
        by a repost is deliberately kept when the repost is undone, matching
        the established scoring rules.
        """
        author_id = self._author_of(post_id)
        try:
            if self._remove(Repost, agent_id, post_id):
                self.db.execute(decrement_floor(Post, "repost_count", Post.id == post_id))
                count = self._current_count(post_id, "repost_count")
                self.db.commit()
                return ToggleResult(active=False, count=count)

            created = insert_ignore(
                self.db,
                Repost,
                {"agent_id": agent_id, "post_id": post_id, "created_at": self.clock()},
            )
            if not created:
                self.db.rollback()
                return ToggleResult(
                    active=True,
                    count=self._current_count(post_id, "repost_count"),
                )

            self.db.execute(increment(Post, "repost_count", Post.id == post_id))
            if author_id != agent_id:
                adjust_karma(self.db, author_id, REPOST_KARMA)
            count = self._current_count(post_id, "repost_count")
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        return ToggleResult(active=True, count=count)

    def viewer_state(self, agent_id: int, post_id: int) -> tuple[bool, bool]:
        """Return ``(liked, reposted)`` for the agent on the post."""
        return self._has(Like, agent_id, post_id), self._has(Repost, agent_id, post_id)

    def _has(self, model: type, agent_id: int, post_id: int) -> bool:
        stmt = select(model.agent_id).where(model.agent_id == agent_id, model.post_id == post_id)
        return self.db.execute(stmt).first() is not None
