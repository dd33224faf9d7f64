# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Generator, Iterator
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("PYTEST_RUNNING", "true")

from pinchboard.api.v1 import dependencies as deps
from pinchboard.db.session import Base
from pinchboard.db.session import get_db as app_get_session
from pinchboard.main import app as fastapi_app
from pinchboard.models import Agent, Post
from pinchboard.services.content import ContentGraph
from pinchboard.services.engagement import EngagementEngine
from pinchboard.services.identity import IdentityStore
from pinchboard.services.proof import ProofResult
from pinchboard.services.rate_limiter import RateLimiter
from pinchboard.services.social import SocialGraph

TEST_DB_URL = "sqlite://"
CLOCK_START = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


class FakeClock:
    """Manually advanced clock shared by services under test."""

    def __init__(self, start: datetime = CLOCK_START) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


class FakeOracle:
    """Proof oracle answering from a fixed set of post texts."""

    def __init__(self) -> None:
        self.posts: dict[str, str] = {}
        self.calls: list[tuple[str, str]] = []
        self.authors: dict[str, str] = {}
        self.error: Exception | None = None

    def publish(self, url: str, text: str) -> None:
        self.posts[url] = text

    def check(self, proof_url: str, code: str) -> ProofResult:
        self.calls.append((proof_url, code))
        if self.error is not None:
            raise self.error
        text = self.posts.get(proof_url, "")
        username = self.authors.get(proof_url) or proof_url.rstrip("/").split("/")[-3].lower()
        return ProofResult(contains_code=code in text, username=username)


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    SessionLocal = sessionmaker(bind=engine, autoflush=False)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()

        # Services commit, so each test cleans up after itself.
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def oracle() -> FakeOracle:
    return FakeOracle()


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture(autouse=True)
def override_dependencies(
    app: FastAPI,
    db_session: Session,
    clock: FakeClock,
    oracle: FakeOracle,
) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    overrides: dict[Any, Any] = {
        app_get_session: _get_session_override,
        deps.get_clock: lambda: clock,
        deps.get_proof_oracle_dep: lambda: oracle,
    }
    app.dependency_overrides.update(overrides)
    try:
        yield
    finally:
        for dependency in overrides:
            app.dependency_overrides.pop(dependency, None)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture()
def limiter(db_session: Session, clock: FakeClock) -> RateLimiter:
    return RateLimiter(db_session, clock=clock, prune_probability=0.0)


@pytest.fixture()
def identity(db_session: Session, clock: FakeClock, oracle: FakeOracle) -> IdentityStore:
    return IdentityStore(db_session, oracle=oracle, clock=clock)


@pytest.fixture()
def content(db_session: Session, clock: FakeClock, limiter: RateLimiter) -> ContentGraph:
    return ContentGraph(db_session, rate_limiter=limiter, clock=clock)


@pytest.fixture()
def engagement(db_session: Session, clock: FakeClock, limiter: RateLimiter) -> EngagementEngine:
    return EngagementEngine(db_session, rate_limiter=limiter, clock=clock)


@pytest.fixture()
def social(db_session: Session, clock: FakeClock, limiter: RateLimiter) -> SocialGraph:
    return SocialGraph(db_session, rate_limiter=limiter, clock=clock)


@pytest.fixture()
def alice(identity: IdentityStore) -> Agent:
    """Create and return the primary test agent."""
    return identity.register("alice", "first test agent")


@pytest.fixture()
def bob(identity: IdentityStore) -> Agent:
    """Create and return a second agent."""
    return identity.register("bob", "second test agent")


@pytest.fixture()
def alice_headers(alice: Agent) -> dict[str, str]:
    """Return authorization headers for alice."""
    return {"Authorization": f"Bearer {alice.api_key}"}


@pytest.fixture()
def bob_headers(bob: Agent) -> dict[str, str]:
    """Return authorization headers for bob."""
    return {"Authorization": f"Bearer {bob.api_key}"}


@pytest.fixture()
def alice_post(content: ContentGraph, alice: Agent, clock: FakeClock) -> Post:
    """A top-level post by alice; the clock is moved past the post cooldown."""
    post = content.create_post(alice.id, "Hello #demo world")
    clock.advance(minutes=6)
    return post
