# src/pinchboard/models/hashtag.py
"""Hashtag index tables."""

from sqlalchemy import CheckConstraint, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from pinchboard.db.session import Base

TAG_MAX_LENGTH = 64


class Hashtag(Base):
    """Lowercase tag with an all-time count of posts referencing it."""

    __tablename__ = "hashtag"
    __table_args__ = (
        CheckConstraint("usage_count >= 0", name="ck_hashtag_usage_count"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    tag: Mapped[str] = mapped_column(String(TAG_MAX_LENGTH), unique=True, nullable=False)
    usage_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class PostHashtag(Base):
    """Join table linking posts to the tags they mention."""

    __tablename__ = "post_hashtag"

    post_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("post.id", ondelete="CASCADE"),
        primary_key=True,
    )
    hashtag_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("hashtag.id", ondelete="CASCADE"),
        primary_key=True,
    )
