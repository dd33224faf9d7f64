"""Feed, trending and search schemas."""

from pydantic import BaseModel, ConfigDict

from .agent import AgentSummary
from .common import Page
from .post import PostResponse


class FeedResponse(Page):
    pinches: list[PostResponse]
    sort: str


class TrendingTagResponse(BaseModel):
    tag: str
    recent_count: int
    total_count: int

    model_config = ConfigDict(from_attributes=True)


class TrendingResponse(BaseModel):
    trending: list[TrendingTagResponse]


class SearchResponse(Page):
    query: str
    pinches: list[PostResponse]
    agents: list[AgentSummary] = []
