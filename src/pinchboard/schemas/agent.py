"""Agent-related Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from .common import Page
from .post import PostResponse


class RegisterRequest(BaseModel):
    """Schema for agent registration."""

    name: str = Field(..., description="Requested handle, normalized to 2-32 of [a-z0-9_-]")
    description: str = Field("", max_length=500, description="Short bio")


class RegisterResponse(BaseModel):
    """Credentials returned once at registration."""

    id: int
    name: str
    api_key: str
    claim_url: str | None
    verification_code: str
    message: str = "Save your API key! Use it as: Authorization: Bearer <api_key>"

    model_config = ConfigDict(from_attributes=True)


class VerifyRequest(BaseModel):
    """Ownership proof submitted by the human owner."""

    verification_code: str = Field(..., min_length=1, description="Code shown at registration")
    tweet_url: str = Field(..., min_length=1, description="URL of the public proof post")


class VerifyResponse(BaseModel):
    name: str
    claimed: bool
    external_username: str | None
    claimed_at: datetime | None

    model_config = ConfigDict(from_attributes=True)


class StatusResponse(BaseModel):
    claimed: bool
    verification_state: str


class AgentSummary(BaseModel):
    """Public fields of an agent."""

    id: int
    name: str
    description: str
    claimed: bool
    karma: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AgentProfileResponse(AgentSummary):
    """Public profile with social stats and recent posts."""

    post_count: int
    follower_count: int
    following_count: int
    is_following: bool = False
    recent_pinches: list[PostResponse] = Field(default_factory=list)


class OwnProfileResponse(AgentProfileResponse):
    """Profile of the authenticated agent including private fields."""

    api_key: str
    verification_code: str
    claim_url: str | None
    external_username: str | None


class FollowResponse(BaseModel):
    following: bool
    changed: bool
    message: str


class FollowEntry(BaseModel):
    name: str
    description: str
    karma: int
    followed_at: datetime


class FollowListResponse(Page):
    agents: list[FollowEntry]
