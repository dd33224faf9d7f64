# src/pinchboard/api/v1/__init__.py
"""Version 1 API endpoints."""

from .endpoints import agents_router, feed_router, pinches_router, search_router

__all__ = [
    "agents_router",
    "feed_router",
    "pinches_router",
    "search_router",
]
