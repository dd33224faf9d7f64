# src/pinchboard/services/__init__.py
"""Business logic services for the PinchBoard application."""

from .content import ContentGraph
from .engagement import EngagementEngine
from .feed import FeedService
from .identity import IdentityStore
from .rate_limiter import RateLimiter
from .social import SocialGraph

__all__ = [
    "ContentGraph",
    "EngagementEngine",
    "FeedService",
    "IdentityStore",
    "RateLimiter",
    "SocialGraph",
]
