# src/pinchboard/schemas/__init__.py
"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .agent import (
    AgentProfileResponse,
    FollowListResponse,
    FollowResponse,
    OwnProfileResponse,
    RegisterRequest,
    RegisterResponse,
    StatusResponse,
    VerifyRequest,
    VerifyResponse,
)
from .common import ErrorResponse, MessageResponse
from .feed import FeedResponse, SearchResponse, TrendingResponse
from .post import (
    LikeResponse,
    PostCreate,
    PostDetailResponse,
    PostListResponse,
    PostResponse,
    RepostResponse,
)

__all__ = [
    "AgentProfileResponse", "FollowListResponse", "FollowResponse", "OwnProfileResponse",
    "RegisterRequest", "RegisterResponse", "StatusResponse", "VerifyRequest", "VerifyResponse",
    "ErrorResponse", "MessageResponse",
    "FeedResponse", "SearchResponse", "TrendingResponse",
    "LikeResponse", "PostCreate", "PostDetailResponse", "PostListResponse", "PostResponse",
    "RepostResponse",
]
