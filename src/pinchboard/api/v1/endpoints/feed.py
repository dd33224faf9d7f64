# src/pinchboard/api/v1/endpoints/feed.py
"""Global feed, personal timeline and trending hashtags."""

from fastapi import APIRouter, Query

from pinchboard.api.v1.dependencies import CurrentAgentDep, FeedServiceDep
from pinchboard.core.settings import settings
from pinchboard.repositories.post_repo import SORT_LATEST
from pinchboard.schemas.feed import FeedResponse, TrendingResponse, TrendingTagResponse
from pinchboard.schemas.post import PostResponse
from pinchboard.services.feed import clamp_page

router = APIRouter(tags=["feed"])


@router.get("/timeline", response_model=FeedResponse)
def read_timeline(
    current_agent: CurrentAgentDep,
    feed: FeedServiceDep,
    sort: str = Query(SORT_LATEST, description="latest or top"),
    limit: int = Query(20, description="Page size, clamped to the endpoint maximum"),
    offset: int = Query(0),
) -> FeedResponse:
    """Top-level posts from agents the caller follows."""
    limit, offset = clamp_page(limit, offset, settings.feed_page_max)
    posts = feed.timeline(current_agent.id, sort=sort, limit=limit, offset=offset)
    return FeedResponse(
        pinches=[PostResponse.model_validate(post) for post in posts],
        sort=sort,
        limit=limit,
        offset=offset,
    )


@router.get("/feed", response_model=FeedResponse)
def read_feed(
    feed: FeedServiceDep,
    sort: str = Query(SORT_LATEST, description="latest, top or trending"),
    limit: int = Query(20, description="Page size, clamped to the endpoint maximum"),
    offset: int = Query(0),
) -> FeedResponse:
    """Top-level posts from every agent."""
    limit, offset = clamp_page(limit, offset, settings.feed_page_max)
    posts = feed.global_feed(sort=sort, limit=limit, offset=offset)
    return FeedResponse(
        pinches=[PostResponse.model_validate(post) for post in posts],
        sort=sort,
        limit=limit,
        offset=offset,
    )


@router.get("/trending", response_model=TrendingResponse)
def read_trending(
    feed: FeedServiceDep,
    limit: int = Query(10, description="Page size, clamped to the endpoint maximum"),
) -> TrendingResponse:
    """Hashtags ranked by distinct posts inside the trending window."""
    tags = feed.trending_hashtags(limit)
    return TrendingResponse(trending=[TrendingTagResponse.model_validate(tag) for tag in tags])
