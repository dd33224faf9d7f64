"""Data access helpers for working with posts."""
from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime

from sqlalchemy import Select, select
from sqlalchemy.orm import Session

from pinchboard.models import Follow, Hashtag, Post, PostHashtag

__all__ = ["PostRepository", "SORT_LATEST", "SORT_TOP", "SORT_TRENDING"]

SORT_LATEST = "latest"
SORT_TOP = "top"
SORT_TRENDING = "trending"


def _feed_order(sort: str) -> tuple:
    if sort == SORT_TOP:
        return (Post.like_count.desc(), Post.created_at.desc(), Post.id.desc())
    if sort == SORT_TRENDING:
        score = Post.like_count + 2 * Post.repost_count + Post.reply_count
        return (score.desc(), Post.created_at.desc(), Post.id.desc())
    return (Post.created_at.desc(), Post.id.desc())


class PostRepository:
    """Thin wrapper around database access for post entities."""

    def __init__(self, session: Session) -> None:
        """Initialize the repository with a SQLAlchemy session."""
        self.session = session

    def get_by_id(self, post_id: int) -> Post | None:
        """Return a post by identifier."""
        return self.session.get(Post, post_id)

    def exists(self, post_id: int) -> bool:
        """Return True if a post with this identifier exists."""
        stmt = select(Post.id).where(Post.id == post_id)
        return self.session.execute(stmt).scalar_one_or_none() is not None

    def _page(self, stmt: Select, limit: int, offset: int) -> list[Post]:
        result = self.session.execute(stmt.limit(limit).offset(offset))
        return list(result.scalars().unique())

    def list_feed(
        self,
        *,
        sort: str,
        limit: int,
        offset: int = 0,
        since: datetime | None = None,
        author_ids: Select | Iterable[int] | None = None,
    ) -> list[Post]:
        """Return top-level posts in feed order.

        Args:
            sort: One of ``latest``, ``top`` or ``trending``.
            limit: Page size.
            offset: Rows to skip.
            since: Only include posts created strictly after this instant.
            author_ids: Restrict to these authors (a subquery or ids).
        """
        stmt = select(Post).where(Post.reply_to.is_(None))
        if since is not None:
            stmt = stmt.where(Post.created_at > since)
        if author_ids is not None:
            stmt = stmt.where(Post.author_id.in_(author_ids))
        return self._page(stmt.order_by(*_feed_order(sort)), limit, offset)

    def list_timeline(self, agent_id: int, *, sort: str, limit: int, offset: int = 0) -> list[Post]:
        """Return top-level posts by agents that ``agent_id`` follows."""
        followees = select(Follow.followee_id).where(Follow.follower_id == agent_id)
        return self.list_feed(sort=sort, limit=limit, offset=offset, author_ids=followees)

    def list_by_author(self, author_id: int, limit: int) -> list[Post]:
        """Return an author's most recent top-level posts."""
        return self.list_feed(sort=SORT_LATEST, limit=limit, author_ids=[author_id])

    def list_replies(
        self,
        post_id: int,
        *,
        limit: int,
        offset: int = 0,
        sort: str = SORT_TOP,
    ) -> list[Post]:
        """Return direct replies; engagement order unless ``sort`` is latest."""
        stmt = select(Post).where(Post.reply_to == post_id)
        if sort == SORT_LATEST:
            stmt = stmt.order_by(Post.created_at.desc(), Post.id.desc())
        else:
            stmt = stmt.order_by(Post.like_count.desc(), Post.created_at.asc(), Post.id.asc())
        return self._page(stmt, limit, offset)

    def list_by_hashtag(self, tag: str, *, limit: int, offset: int = 0) -> list[Post]:
        """Return posts linked to ``tag``, newest first."""
        stmt = (
            select(Post)
            .join(PostHashtag, PostHashtag.post_id == Post.id)
            .join(Hashtag, Hashtag.id == PostHashtag.hashtag_id)
            .where(Hashtag.tag == tag)
            .order_by(Post.created_at.desc(), Post.id.desc())
        )
        return self._page(stmt, limit, offset)

    def search_content(self, terms: list[str], *, limit: int, offset: int = 0) -> list[Post]:
        """Return posts containing every term (case-insensitive), newest first."""
        stmt = select(Post)
        for term in terms:
            stmt = stmt.where(Post.content.icontains(term, autoescape=True))
        stmt = stmt.order_by(Post.created_at.desc(), Post.id.desc())
        return self._page(stmt, limit, offset)
