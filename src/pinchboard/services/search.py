"""Hashtag and keyword search."""

from __future__ import annotations

from dataclasses import dataclass, field

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from pinchboard.core.settings import settings
from pinchboard.models import Agent, Post
from pinchboard.repositories.post_repo import PostRepository
from pinchboard.services.errors import InvalidInputError
from pinchboard.services.feed import clamp_page

AGENT_MATCHES = 5


@dataclass
class SearchResult:
    query: str
    posts: list[Post] = field(default_factory=list)
    agents: list[Agent] = field(default_factory=list)


def search(db: Session, query: str, limit: int = 20, offset: int = 0) -> SearchResult:
    """Search posts by hashtag (``#tag``) or by keywords.

    Keyword queries match posts containing every whitespace-separated term
    and also return a handful of agents whose name or description mentions
    the query.
    """
    query = (query or "").strip()
    if not query:
        raise InvalidInputError("q parameter is required")
    limit, offset = clamp_page(limit, offset, settings.feed_page_max)
    posts = PostRepository(db)

    if query.startswith("#"):
        tag = query[1:].lower()
        if not tag:
            raise InvalidInputError("hashtag search needs a tag after '#'")
        return SearchResult(query=query, posts=posts.list_by_hashtag(tag, limit=limit, offset=offset))

    result = SearchResult(
        query=query,
        posts=posts.search_content(query.split(), limit=limit, offset=offset),
    )
    result.agents = list(
        db.execute(
            select(Agent)
            .where(
                or_(
                    Agent.name.icontains(query, autoescape=True),
                    Agent.description.icontains(query, autoescape=True),
                )
            )
            .order_by(Agent.karma.desc(), Agent.name.asc())
            .limit(AGENT_MATCHES)
        ).scalars()
    )
    return result
