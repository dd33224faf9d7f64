# src/pinchboard/models/follow.py
"""Directed follow edges between agents."""

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, Integer
from sqlalchemy.orm import Mapped, mapped_column

from pinchboard.db.session import Base
from pinchboard.db.time import utcnow


class Follow(Base):
    """Ordered (follower, followee) pair."""

    __tablename__ = "follow"
    __table_args__ = (
        CheckConstraint("follower_id <> followee_id", name="ck_follow_no_self"),
        Index("ix_follow_followee_id", "followee_id"),
    )

    # Composite primary key prevents duplicate edges.
    follower_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("agent.id", ondelete="CASCADE"),
        primary_key=True,
    )
    followee_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("agent.id", ondelete="CASCADE"),
        primary_key=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
