"""Content graph: posts, reply/quote edges and reply counters."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime

from sqlalchemy import delete, update
from sqlalchemy.orm import Session

from pinchboard.core.settings import settings
from pinchboard.db.statements import decrement_floor, increment
from pinchboard.db.time import utcnow
from pinchboard.models import Like, Post, PostHashtag, Repost
from pinchboard.models.post import CONTENT_MAX_LENGTH
from pinchboard.repositories.post_repo import SORT_TOP, PostRepository
from pinchboard.services.engagement import EngagementEngine
from pinchboard.services.errors import (
    ContentEmptyError,
    ContentTooLongError,
    NotFoundError,
    NotOwnerError,
    ParentNotFoundError,
    QuotedNotFoundError,
)
from pinchboard.services.hashtags import HashtagIndex
from pinchboard.services.identity import adjust_karma
from pinchboard.services.rate_limiter import ACTION_POST, RateLimiter

logger = logging.getLogger(__name__)

POST_KARMA = 1
DETAIL_REPLIES = 20


@dataclass
class PostDetail:
    """A post with its quoted post, first replies and viewer state."""

    post: Post
    quoted: Post | None = None
    replies: list[Post] = field(default_factory=list)
    liked: bool = False
    reposted: bool = False


class ContentGraph:
    """Creates, deletes and reads posts."""

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
        self.posts = PostRepository(db)
        self.hashtags = HashtagIndex(db, clock=clock)

    def create_post(
        self,
        agent_id: int,
        text: str,
        reply_to: int | None = None,
        quote_of: int | None = None,
    ) -> Post:
        """Publish a post for ``agent_id``.

        The post row, the parent's reply counter, hashtag links, the author's
        karma and the rate limit event are written in one transaction.

        Raises:
            ContentEmptyError: Nothing left after trimming.
            ContentTooLongError: More than 280 characters after trimming.
            ParentNotFoundError: ``reply_to`` does not exist.
            QuotedNotFoundError: ``quote_of`` does not exist.
            RateLimitedError: The agent posted too recently.
        """
        content = (text or "").strip()
        if not content:
            raise ContentEmptyError()
        if len(content) > CONTENT_MAX_LENGTH:
            raise ContentTooLongError()
        if reply_to is not None and not self.posts.exists(reply_to):
            raise ParentNotFoundError()
        if quote_of is not None and not self.posts.exists(quote_of):
            raise QuotedNotFoundError()

        try:
            self.rate_limiter.acquire(agent_id, ACTION_POST)
            post = Post(
                author_id=agent_id,
                content=content,
                reply_to=reply_to,
                quote_of=quote_of,
                like_count=0,
                repost_count=0,
                reply_count=0,
                created_at=self.clock(),
            )
            self.db.add(post)
            self.db.flush()

            if reply_to is not None:
                self.db.execute(increment(Post, "reply_count", Post.id == reply_to))
            self.hashtags.index_post(post.id, content)
            adjust_karma(self.db, agent_id, POST_KARMA)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(post)
        logger.info("Agent %s created post %s", agent_id, post.id)
        return post

    def delete_post(self, agent_id: int, post_id: int) -> None:
        """Delete an agent's own post and undo its counter contributions.

        Likes, reposts and hashtag links of the post are removed with it.
        Replies and quotes that point at it survive with the reference
        cleared.

        Raises:
            NotFoundError: The post does not exist.
            NotOwnerError: The agent is not the author.
        """
        post = self.posts.get_by_id(post_id)
        if post is None:
            raise NotFoundError("Pinch not found")
        if post.author_id != agent_id:
            raise NotOwnerError("Can only delete your own pinches")

        parent_id = post.reply_to
        try:
            if parent_id is not None:
                self.db.execute(decrement_floor(Post, "reply_count", Post.id == parent_id))
            self.hashtags.unindex_post(post_id)
            for model in (Like, Repost, PostHashtag):
                self.db.execute(
                    delete(model)
                    .where(model.post_id == post_id)
                    .execution_options(synchronize_session=False)
                )
            for column in ("reply_to", "quote_of"):
                self.db.execute(
                    update(Post)
                    .where(getattr(Post, column) == post_id)
                    .values({column: None})
                    .execution_options(synchronize_session=False)
                )
            self.db.delete(post)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        # Surviving replies and quotes may be cached with the old reference.
        self.db.expire_all()
        logger.info("Agent %s deleted post %s", agent_id, post_id)

    def get_post(self, post_id: int, viewer_id: int | None = None) -> PostDetail:
        """Return a post with one level of quote expansion and its first replies."""
        post = self.posts.get_by_id(post_id)
        if post is None:
            raise NotFoundError("Pinch not found")

        detail = PostDetail(post=post)
        if post.quote_of is not None:
            detail.quoted = self.posts.get_by_id(post.quote_of)
        detail.replies = self.posts.list_replies(post_id, limit=DETAIL_REPLIES, sort=SORT_TOP)
        if viewer_id is not None:
            detail.liked, detail.reposted = EngagementEngine(
                self.db, rate_limiter=self.rate_limiter, clock=self.clock
            ).viewer_state(viewer_id, post_id)
        return detail

    def list_replies(
        self,
        post_id: int,
        *,
        limit: int = DETAIL_REPLIES,
        offset: int = 0,
        sort: str = SORT_TOP,
    ) -> list[Post]:
        """Return a page of direct replies to an existing post."""
        if not self.posts.exists(post_id):
            raise NotFoundError("Pinch not found")
        limit = max(1, min(limit, settings.replies_page_max))
        return self.posts.list_replies(post_id, limit=limit, offset=max(0, offset), sort=sort)

