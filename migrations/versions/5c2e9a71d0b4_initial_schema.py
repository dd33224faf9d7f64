"""initial schema

Revision ID: 5c2e9a71d0b4
Revises:
Create Date: 2026-10-19 09:12:40.512331

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "5c2e9a71d0b4"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create agents, posts, relations, hashtags and rate limit events."""
    op.create_table(
        "agent",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=32), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("api_key", sa.String(length=64), nullable=False),
        sa.Column("verification_code", sa.String(length=16), nullable=False),
        sa.Column("claim_url", sa.Text(), nullable=True),
        sa.Column("claimed", sa.Boolean(), nullable=False),
        sa.Column("external_username", sa.String(length=64), nullable=True),
        sa.Column("claimed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("karma", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("karma >= 0", name="ck_agent_karma_non_negative"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
        sa.UniqueConstraint("api_key"),
        sa.UniqueConstraint("verification_code"),
        sa.UniqueConstraint("external_username"),
    )
    op.create_table(
        "post",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("author_id", sa.Integer(), nullable=False),
        sa.Column("content", sa.String(length=280), nullable=False),
        sa.Column("reply_to", sa.Integer(), nullable=True),
        sa.Column("quote_of", sa.Integer(), nullable=True),
        sa.Column("like_count", sa.Integer(), nullable=False),
        sa.Column("repost_count", sa.Integer(), nullable=False),
        sa.Column("reply_count", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("like_count >= 0", name="ck_post_like_count"),
        sa.CheckConstraint("repost_count >= 0", name="ck_post_repost_count"),
        sa.CheckConstraint("reply_count >= 0", name="ck_post_reply_count"),
        sa.ForeignKeyConstraint(["author_id"], ["agent.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["reply_to"], ["post.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["quote_of"], ["post.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_post_author_id", "post", ["author_id"])
    op.create_index("ix_post_reply_to", "post", ["reply_to"])
    op.create_index("ix_post_created_at", "post", ["created_at"])

    op.create_table(
        "follow",
        sa.Column("follower_id", sa.Integer(), nullable=False),
        sa.Column("followee_id", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("follower_id <> followee_id", name="ck_follow_no_self"),
        sa.ForeignKeyConstraint(["follower_id"], ["agent.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["followee_id"], ["agent.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("follower_id", "followee_id"),
    )
    op.create_index("ix_follow_followee_id", "follow", ["followee_id"])

    for table in ("post_like", "post_repost"):
        op.create_table(
            table,
            sa.Column("agent_id", sa.Integer(), nullable=False),
            sa.Column("post_id", sa.Integer(), nullable=False),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
            sa.ForeignKeyConstraint(["agent_id"], ["agent.id"], ondelete="CASCADE"),
            sa.ForeignKeyConstraint(["post_id"], ["post.id"], ondelete="CASCADE"),
            sa.PrimaryKeyConstraint("agent_id", "post_id"),
        )
        op.create_index(f"ix_{table}_post_id", table, ["post_id"])

    op.create_table(
        "hashtag",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("tag", sa.String(length=64), nullable=False),
        sa.Column("usage_count", sa.Integer(), nullable=False),
        sa.CheckConstraint("usage_count >= 0", name="ck_hashtag_usage_count"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("tag"),
    )
    op.create_table(
        "post_hashtag",
        sa.Column("post_id", sa.Integer(), nullable=False),
        sa.Column("hashtag_id", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["post_id"], ["post.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["hashtag_id"], ["hashtag.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("post_id", "hashtag_id"),
    )

    op.create_table(
        "rate_limit_event",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("agent_id", sa.Integer(), nullable=False),
        sa.Column("action", sa.String(length=32), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["agent_id"], ["agent.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_rate_limit_event_agent_action_created",
        "rate_limit_event",
        ["agent_id", "action", "created_at"],
    )
    op.create_index("ix_rate_limit_event_created_at", "rate_limit_event", ["created_at"])


def downgrade() -> None:
    """Drop every table created by this revision."""
    op.drop_table("rate_limit_event")
    op.drop_table("post_hashtag")
    op.drop_table("hashtag")
    op.drop_table("post_repost")
    op.drop_table("post_like")
    op.drop_table("follow")
    op.drop_table("post")
    op.drop_table("agent")
