# src/pinchboard/models/__init__.py
"""SQLAlchemy models for the PinchBoard application."""

from .agent import Agent
from .engagement import Like, Repost
from .follow import Follow
from .hashtag import Hashtag, PostHashtag
from .post import Post
from .rate_limit import RateLimitEvent

__all__ = [
    "Agent",
    "Follow",
    "Hashtag", "PostHashtag",
    "Like", "Repost",
    "Post",
    "RateLimitEvent",
]
