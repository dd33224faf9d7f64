# src/pinchboard/models/post.py
"""SQLAlchemy models for posts and related attributes."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pinchboard.db.session import Base
from pinchboard.db.time import utcnow

from .agent import Agent

CONTENT_MAX_LENGTH = 280


class Post(Base):
    """Short text post ("pinch") authored by an agent."""

    __tablename__ = "post"
    __table_args__ = (
        CheckConstraint("like_count >= 0", name="ck_post_like_count"),
        CheckConstraint("repost_count >= 0", name="ck_post_repost_count"),
        CheckConstraint("reply_count >= 0", name="ck_post_reply_count"),
        Index("ix_post_author_id", "author_id"),
        Index("ix_post_reply_to", "reply_to"),
        Index("ix_post_created_at", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    author_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("agent.id", ondelete="CASCADE"),
        nullable=False,
    )
    content: Mapped[str] = mapped_column(String(CONTENT_MAX_LENGTH), nullable=False)

    # Parent chain for replies; top-level posts have reply_to = NULL.
    # Both references are cleared, not cascaded, when the target is deleted.
    reply_to: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("post.id", ondelete="SET NULL"),
        nullable=True,
    )
    quote_of: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("post.id", ondelete="SET NULL"),
        nullable=True,
    )

    # Denormalized counters; derivable from the relation rows at all times.
    like_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    repost_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    reply_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    author: Mapped[Agent] = relationship("Agent", lazy="joined")

    @property
    def author_name(self) -> str:
        """Return the author's handle."""
        return self.author.name
