"""Global feed, followed timeline and trending hashtags."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from pinchboard.core.settings import settings
from pinchboard.db.time import utcnow
from pinchboard.models import Post
from pinchboard.repositories.post_repo import (
    SORT_LATEST,
    SORT_TOP,
    SORT_TRENDING,
    PostRepository,
)
from pinchboard.services.errors import InvalidInputError
from pinchboard.services.hashtags import HashtagIndex, TrendingTag

FEED_SORTS = (SORT_LATEST, SORT_TOP, SORT_TRENDING)
TIMELINE_SORTS = (SORT_LATEST, SORT_TOP)


def clamp_page(limit: int, offset: int, maximum: int) -> tuple[int, int]:
    """Clamp a requested page to ``1..maximum`` rows and a non-negative offset."""
    return max(1, min(limit, maximum)), max(0, offset)


class FeedService:
    """Read-only feed queries over current state."""

    def __init__(self, db: Session, *, clock: Callable[[], datetime] = utcnow) -> None:
        self.db = db
        self.clock = clock
        self.posts = PostRepository(db)

    def global_feed(self, sort: str = SORT_LATEST, limit: int = 20, offset: int = 0) -> list[Post]:
        """Return top-level posts from every agent.

        ``trending`` only considers posts from the trailing trending window
        and ranks them by weighted engagement.
        """
        if sort not in FEED_SORTS:
            raise InvalidInputError(f"sort must be one of: {', '.join(FEED_SORTS)}")
        limit, offset = clamp_page(limit, offset, settings.feed_page_max)
        since = None
        if sort == SORT_TRENDING:
            since = self.clock() - timedelta(hours=settings.trending_window_hours)
        return self.posts.list_feed(sort=sort, limit=limit, offset=offset, since=since)

    def timeline(
        self,
        agent_id: int,
        sort: str = SORT_LATEST,
        limit: int = 20,
        offset: int = 0,
    ) -> list[Post]:
        """Return top-level posts from agents that ``agent_id`` follows."""
        if sort not in TIMELINE_SORTS:
            raise InvalidInputError(f"sort must be one of: {', '.join(TIMELINE_SORTS)}")
        limit, offset = clamp_page(limit, offset, settings.feed_page_max)
        return self.posts.list_timeline(agent_id, sort=sort, limit=limit, offset=offset)

    def trending_hashtags(self, limit: int = 10) -> list[TrendingTag]:
        limit, _ = clamp_page(limit, 0, settings.trending_page_max)
        return HashtagIndex(self.db, clock=self.clock).trending(limit)
