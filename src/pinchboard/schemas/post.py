"""Post-related Pydantic schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from .common import Page


class PostCreate(BaseModel):
    """Schema for creating a new post.

    Length is checked after trimming by the content service, so only the
    type is enforced here.
    """

    content: str = Field(..., description="Post text, 1-280 characters after trimming")
    reply_to: int | None = Field(None, description="Post being replied to")
    quote_of: int | None = Field(None, description="Post being quoted")


class PostResponse(BaseModel):
    """Schema for post information returned by the API."""

    id: int
    author_id: int
    author_name: str
    content: str
    reply_to: int | None
    quote_of: int | None
    like_count: int
    repost_count: int
    reply_count: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PostDetailResponse(PostResponse):
    """A single post with one level of context."""

    quoted_pinch: PostResponse | None = None
    replies: list[PostResponse] = Field(default_factory=list)
    liked: bool = False
    reposted: bool = False


class LikeResponse(BaseModel):
    liked: bool
    like_count: int
    message: str


class RepostResponse(BaseModel):
    reposted: bool
    repost_count: int
    message: str


class PostListResponse(Page):
    pinches: list[PostResponse]
