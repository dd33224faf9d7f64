# src/pinchboard/models/rate_limit.py
"""Timestamped events backing the sliding-window rate limiter."""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from pinchboard.db.session import Base
from pinchboard.db.time import utcnow


class RateLimitEvent(Base):
    """One successful rate-limited action by an agent."""

    __tablename__ = "rate_limit_event"
    __table_args__ = (
        Index("ix_rate_limit_event_agent_action_created", "agent_id", "action", "created_at"),
        Index("ix_rate_limit_event_created_at", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    agent_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("agent.id", ondelete="CASCADE"),
        nullable=False,
    )
    action: Mapped[str] = mapped_column(String(32), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
