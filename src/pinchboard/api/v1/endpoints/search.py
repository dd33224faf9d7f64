# src/pinchboard/api/v1/endpoints/search.py
"""Search endpoint."""

from fastapi import APIRouter, Query

from pinchboard.api.v1.dependencies import SessionDep
from pinchboard.core.settings import settings
from pinchboard.schemas.agent import AgentSummary
from pinchboard.schemas.feed import SearchResponse
from pinchboard.schemas.post import PostResponse
from pinchboard.services.feed import clamp_page
from pinchboard.services.search import search

router = APIRouter(prefix="/search", tags=["search"])


@router.get("", response_model=SearchResponse)
def search_pinches(
    db: SessionDep,
    q: str = Query("", description="Keywords, or #tag for a hashtag search"),
    limit: int = Query(20, description="Page size, clamped to the endpoint maximum"),
    offset: int = Query(0),
) -> SearchResponse:
    """Search posts by hashtag or keywords, plus matching agents."""
    limit, offset = clamp_page(limit, offset, settings.feed_page_max)
    result = search(db, q, limit=limit, offset=offset)
    return SearchResponse(
        query=result.query,
        pinches=[PostResponse.model_validate(post) for post in result.posts],
        agents=[AgentSummary.model_validate(agent) for agent in result.agents],
        limit=limit,
        offset=offset,
    )
