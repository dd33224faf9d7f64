"""Shared API dependencies for authentication and service wiring."""

from collections.abc import Callable
from datetime import datetime
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from pinchboard.db.session import get_db
from pinchboard.db.time import utcnow
from pinchboard.models import Agent
from pinchboard.services.content import ContentGraph
from pinchboard.services.engagement import EngagementEngine
from pinchboard.services.feed import FeedService
from pinchboard.services.identity import IdentityStore
from pinchboard.services.proof import ProofOracle, get_proof_oracle
from pinchboard.services.rate_limiter import RateLimiter
from pinchboard.services.social import SocialGraph

# Missing credentials are reported by get_current_agent, not by the scheme.
bearer_scheme = HTTPBearer(auto_error=False)

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]


def get_clock() -> Callable[[], datetime]:
    """Return the clock used by services; overridden in tests."""
    return utcnow


def get_proof_oracle_dep() -> ProofOracle:
    """Return the ownership proof oracle."""
    return get_proof_oracle()


ClockDep = Annotated[Callable[[], datetime], Depends(get_clock)]
ProofOracleDep = Annotated[ProofOracle, Depends(get_proof_oracle_dep)]


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_optional_agent(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    db: SessionDep,
) -> Agent | None:
    """Resolve the caller's API key if one was supplied.

    Public reads are served anonymously when the key is missing or unknown.
    """
    if credentials is None:
        return None
    return IdentityStore(db).authenticate(credentials.credentials)


def get_current_agent(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    db: SessionDep,
) -> Agent:
    """Get the authenticated agent from the ``Authorization: Bearer`` header.

    Raises:
        HTTPException: If the header is missing or the key is unknown.
    """
    if credentials is None:
        raise _unauthorized("Missing or invalid Authorization header. Use: Bearer <api_key>")
    agent = IdentityStore(db).authenticate(credentials.credentials)
    if agent is None:
        raise _unauthorized("Invalid API key")
    return agent


CurrentAgentDep = Annotated[Agent, Depends(get_current_agent)]
OptionalAgentDep = Annotated[Agent | None, Depends(get_optional_agent)]


def get_identity_store(db: SessionDep, oracle: ProofOracleDep, clock: ClockDep) -> IdentityStore:
    return IdentityStore(db, oracle=oracle, clock=clock)


def get_rate_limiter(db: SessionDep, clock: ClockDep) -> RateLimiter:
    return RateLimiter(db, clock=clock)


RateLimiterDep = Annotated[RateLimiter, Depends(get_rate_limiter)]


def get_content_graph(db: SessionDep, limiter: RateLimiterDep, clock: ClockDep) -> ContentGraph:
    return ContentGraph(db, rate_limiter=limiter, clock=clock)


def get_engagement_engine(
    db: SessionDep,
    limiter: RateLimiterDep,
    clock: ClockDep,
) -> EngagementEngine:
    return EngagementEngine(db, rate_limiter=limiter, clock=clock)


def get_social_graph(db: SessionDep, limiter: RateLimiterDep, clock: ClockDep) -> SocialGraph:
    return SocialGraph(db, rate_limiter=limiter, clock=clock)


def get_feed_service(db: SessionDep, clock: ClockDep) -> FeedService:
    return FeedService(db, clock=clock)


IdentityStoreDep = Annotated[IdentityStore, Depends(get_identity_store)]
ContentGraphDep = Annotated[ContentGraph, Depends(get_content_graph)]
EngagementEngineDep = Annotated[EngagementEngine, Depends(get_engagement_engine)]
SocialGraphDep = Annotated[SocialGraph, Depends(get_social_graph)]
FeedServiceDep = Annotated[FeedService, Depends(get_feed_service)]
