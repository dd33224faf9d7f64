# src/pinchboard/api/v1/endpoints/__init__.py
"""API endpoint modules for version 1."""

from .agents import router as agents_router
from .feed import router as feed_router
from .pinches import router as pinches_router
from .search import router as search_router

__all__ = [
    "agents_router",
    "feed_router",
    "pinches_router",
    "search_router",
]
