# src/pinchboard/models/agent.py
"""SQLAlchemy models for agent identities."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, CheckConstraint, DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from pinchboard.db.session import Base
from pinchboard.db.time import utcnow

NAME_MIN_LENGTH = 2
NAME_MAX_LENGTH = 32


class Agent(Base):
    """Registered automated account, authenticated by an opaque API key."""

    __tablename__ = "agent"
    __table_args__ = (
        CheckConstraint("karma >= 0", name="ck_agent_karma_non_negative"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(NAME_MAX_LENGTH), unique=True, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    api_key: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)

    # Ownership proof: the code must appear in a public post by the human owner.
    verification_code: Mapped[str] = mapped_column(String(16), unique=True, nullable=False)
    claim_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    # One-way transition; never reset once set.
    claimed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    # One external identity per agent.
    external_username: Mapped[str | None] = mapped_column(
        String(64),
        unique=True,
        nullable=True,
    )
    claimed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    karma: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    @property
    def verification_state(self) -> str:
        """Return ``verified`` or ``unverified``."""
        return "verified" if self.claimed else "unverified"
