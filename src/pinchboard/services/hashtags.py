"""Hashtag extraction, indexing and trending computation."""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from pinchboard.core.settings import settings
from pinchboard.db.statements import decrement_floor, dialect_insert, increment, insert_ignore
from pinchboard.db.time import utcnow
from pinchboard.models import Hashtag, Post, PostHashtag
from pinchboard.models.hashtag import TAG_MAX_LENGTH

HASHTAG_PATTERN = re.compile(r"#([A-Za-z0-9_]+)")


def extract_hashtags(text: str) -> list[str]:
    """Return distinct lowercase tags in first-seen order.

    >>> extract_hashtags("hello #AI #ai #AI and #python_3")
    ['ai', 'python_3']
    """
    seen: dict[str, None] = {}
    for match in HASHTAG_PATTERN.finditer(text):
        tag = match.group(1).lower()[:TAG_MAX_LENGTH]
        seen.setdefault(tag, None)
    return list(seen)


@dataclass(frozen=True)
class TrendingTag:
    """One row of the trending hashtag ranking."""

    tag: str
    recent_count: int
    total_count: int


class HashtagIndex:
    """Maintains Hashtag rows, their usage counts and post links."""

    def __init__(self, db: Session, *, clock: Callable[[], datetime] = utcnow) -> None:
        self.db = db
        self.clock = clock

    def _bump_tag(self, tag: str) -> int:
        """Get-or-create ``tag`` and add one use; return its id."""
        stmt = dialect_insert(self.db, Hashtag)
        if stmt is not None:
            stmt = stmt.values(tag=tag, usage_count=1)
            stmt = stmt.on_conflict_do_update(
                index_elements=["tag"],
                set_={"usage_count": Hashtag.usage_count + 1},
            ).returning(Hashtag.id)
            return self.db.execute(stmt).scalar_one()

        updated = self.db.execute(increment(Hashtag, "usage_count", Hashtag.tag == tag))
        if not updated.rowcount:
            self.db.add(Hashtag(tag=tag, usage_count=1))
            self.db.flush()
        return self.db.execute(select(Hashtag.id).where(Hashtag.tag == tag)).scalar_one()

    def index_post(self, post_id: int, text: str) -> list[str]:
        """Link a new post to every tag it mentions.

        Each distinct tag counts once per post regardless of how many times
        it occurs. Runs in the caller's transaction.
        """
        tags = extract_hashtags(text)
        for tag in tags:
            hashtag_id = self._bump_tag(tag)
            insert_ignore(self.db, PostHashtag, {"post_id": post_id, "hashtag_id": hashtag_id})
        return tags

    def unindex_post(self, post_id: int) -> int:
        """Release a post's tags before it is deleted; returns tags touched."""
        hashtag_ids = list(
            self.db.execute(
                select(PostHashtag.hashtag_id).where(PostHashtag.post_id == post_id)
            ).scalars()
        )
        if hashtag_ids:
            self.db.execute(
                decrement_floor(Hashtag, "usage_count", Hashtag.id.in_(hashtag_ids))
            )
        return len(hashtag_ids)

    def get(self, tag: str) -> Hashtag | None:
        return self.db.execute(
            select(Hashtag).where(Hashtag.tag == tag.lstrip("#").lower())
        ).scalar_one_or_none()

    def trending(self, limit: int = 10, *, window: timedelta | None = None) -> list[TrendingTag]:
        """Rank tags by distinct posts created inside the trailing window.

        Ties are broken by the all-time usage count. Recomputed per call.
        """
        window = window or timedelta(hours=settings.trending_window_hours)
        since = self.clock() - window
        recent_count = func.count(func.distinct(PostHashtag.post_id)).label("recent_count")
        stmt = (
            select(Hashtag.tag, recent_count, Hashtag.usage_count)
            .join(PostHashtag, PostHashtag.hashtag_id == Hashtag.id)
            .join(Post, Post.id == PostHashtag.post_id)
            .where(Post.created_at > since)
            .group_by(Hashtag.id, Hashtag.tag, Hashtag.usage_count)
            .order_by(recent_count.desc(), Hashtag.usage_count.desc(), Hashtag.tag.asc())
            .limit(limit)
        )
        return [
            TrendingTag(tag=tag, recent_count=int(recent), total_count=int(total))
            for tag, recent, total in self.db.execute(stmt)
        ]
