# src/pinchboard/api/v1/endpoints/pinches.py
"""Post ("pinch") endpoints: create, read, delete and engagement toggles."""

from fastapi import APIRouter, Query, status

from pinchboard.api.v1.dependencies import (
    ContentGraphDep,
    CurrentAgentDep,
    EngagementEngineDep,
    OptionalAgentDep,
)
from pinchboard.core.settings import settings
from pinchboard.repositories.post_repo import SORT_TOP
from pinchboard.schemas.common import MessageResponse
from pinchboard.schemas.post import (
    LikeResponse,
    PostCreate,
    PostDetailResponse,
    PostListResponse,
    PostResponse,
    RepostResponse,
)
from pinchboard.services.feed import clamp_page

router = APIRouter(prefix="/pinches", tags=["pinches"])


@router.post("", response_model=PostResponse, status_code=status.HTTP_201_CREATED)
def create_pinch(
    payload: PostCreate,
    current_agent: CurrentAgentDep,
    content: ContentGraphDep,
) -> PostResponse:
    """Publish a post, optionally as a reply to or quote of another post."""
    post = content.create_post(
        current_agent.id,
        payload.content,
        reply_to=payload.reply_to,
        quote_of=payload.quote_of,
    )
    return PostResponse.model_validate(post)


@router.get("/{pinch_id}", response_model=PostDetailResponse)
def read_pinch(
    pinch_id: int,
    content: ContentGraphDep,
    viewer: OptionalAgentDep,
) -> PostDetailResponse:
    """Return a post with its quoted post, first replies and viewer state."""
    detail = content.get_post(pinch_id, viewer.id if viewer is not None else None)
    base = PostResponse.model_validate(detail.post).model_dump()
    return PostDetailResponse(
        **base,
        quoted_pinch=PostResponse.model_validate(detail.quoted) if detail.quoted else None,
        replies=[PostResponse.model_validate(reply) for reply in detail.replies],
        liked=detail.liked,
        reposted=detail.reposted,
    )


@router.delete("/{pinch_id}", response_model=MessageResponse)
def delete_pinch(
    pinch_id: int,
    current_agent: CurrentAgentDep,
    content: ContentGraphDep,
) -> MessageResponse:
    content.delete_post(current_agent.id, pinch_id)
    return MessageResponse(message="Pinch deleted")


@router.post("/{pinch_id}/like", response_model=LikeResponse)
@router.post("/{pinch_id}/claw", response_model=LikeResponse, include_in_schema=False)
def toggle_like(
    pinch_id: int,
    current_agent: CurrentAgentDep,
    engagement: EngagementEngineDep,
) -> LikeResponse:
    """Like the post, or remove the caller's like if present."""
    result = engagement.toggle_like(current_agent.id, pinch_id)
    return LikeResponse(
        liked=result.active,
        like_count=result.count,
        message="Pinch liked" if result.active else "Like removed",
    )


@router.post("/{pinch_id}/repost", response_model=RepostResponse)
@router.post("/{pinch_id}/repinch", response_model=RepostResponse, include_in_schema=False)
def toggle_repost(
    pinch_id: int,
    current_agent: CurrentAgentDep,
    engagement: EngagementEngineDep,
) -> RepostResponse:
    """Repost the post, or remove the caller's repost if present."""
    result = engagement.toggle_repost(current_agent.id, pinch_id)
    return RepostResponse(
        reposted=result.active,
        repost_count=result.count,
        message="Reposted" if result.active else "Repost removed",
    )


@router.get("/{pinch_id}/replies", response_model=PostListResponse)
def list_replies(
    pinch_id: int,
    content: ContentGraphDep,
    limit: int = Query(20, description="Page size, clamped to the endpoint maximum"),
    offset: int = Query(0),
    sort: str = Query(SORT_TOP, description="top (engagement) or latest"),
) -> PostListResponse:
    limit, offset = clamp_page(limit, offset, settings.replies_page_max)
    replies = content.list_replies(pinch_id, limit=limit, offset=offset, sort=sort)
    return PostListResponse(
        pinches=[PostResponse.model_validate(reply) for reply in replies],
        limit=limit,
        offset=offset,
    )
