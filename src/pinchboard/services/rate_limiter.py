"""Sliding-window rate limiting backed by timestamped events.

Each successful guarded action leaves one ``RateLimitEvent`` row. A new
action is allowed while fewer than ``max_count`` events for the same
(agent, action) fall inside the trailing window. Services claim the slot with
:meth:`RateLimiter.acquire` inside the same transaction as the guarded
operation, so a failed or rolled back operation never consumes a slot.
"""

from __future__ import annotations

import logging
import math
import random
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy import DateTime, Integer, String, delete, func, insert, literal, select
from sqlalchemy.orm import Session

from pinchboard.core.settings import settings
from pinchboard.db.time import as_utc, utcnow
from pinchboard.models import Agent, RateLimitEvent
from pinchboard.services.errors import RateLimitedError

logger = logging.getLogger(__name__)

ACTION_POST = "post"
ACTION_LIKE = "like"
ACTION_FOLLOW = "follow"

_DENIED_MESSAGES = {
    ACTION_POST: "You can only pinch once every {window}",
    ACTION_LIKE: "You can only like {max_count} pinches per {window}",
    ACTION_FOLLOW: "You can only follow {max_count} agents per {window}",
}


def _humanize(seconds: int) -> str:
    for unit, size in (("day", 86400), ("hour", 3600), ("minute", 60)):
        if seconds % size == 0:
            count = seconds // size
            return unit if count == 1 else f"{count} {unit}s"
    return f"{seconds} seconds"


@dataclass(frozen=True)
class RateLimitPolicy:
    """Maximum number of events allowed in a trailing window."""

    action: str
    max_count: int
    window_seconds: int

    @property
    def message(self) -> str:
        template = _DENIED_MESSAGES.get(
            self.action,
            "Rate limit for {action} exceeded ({max_count} per {window})",
        )
        return template.format(
            action=self.action,
            max_count=self.max_count,
            window=_humanize(self.window_seconds),
        )


@dataclass(frozen=True)
class RateLimitDecision:
    """Outcome of a limiter consultation."""

    allowed: bool
    retry_after_seconds: int = 0


ALLOWED = RateLimitDecision(allowed=True)


def default_policies() -> dict[str, RateLimitPolicy]:
    """Build the policy table from application settings."""
    return {
        action: RateLimitPolicy(action, max_count, window)
        for action, (max_count, window) in settings.rate_limits.items()
    }


class RateLimiter:
    """Per-agent, per-action sliding-window limiter."""

    def __init__(
        self,
        db: Session,
        *,
        policies: Mapping[str, RateLimitPolicy] | None = None,
        clock: Callable[[], datetime] = utcnow,
        prune_probability: float | None = None,
        rng: Callable[[], float] = random.random,
    ) -> None:
        self.db = db
        self.policies = dict(policies) if policies is not None else default_policies()
        self.clock = clock
        self.prune_probability = (
            settings.rate_limit_prune_probability
            if prune_probability is None
            else prune_probability
        )
        self._rng = rng

    def try_consume(self, agent_id: int, action: str) -> RateLimitDecision:
        """Return whether ``action`` is currently allowed for the agent.

        Does not record anything; see :meth:`record`.
        """
        policy = self.policies.get(action)
        if policy is None:
            return ALLOWED

        now = self.clock()
        window_start = now - timedelta(seconds=policy.window_seconds)
        in_window = (
            RateLimitEvent.agent_id == agent_id,
            RateLimitEvent.action == action,
            RateLimitEvent.created_at > window_start,
        )
        count = self.db.execute(
            select(func.count()).select_from(RateLimitEvent).where(*in_window)
        ).scalar_one()
        if count < policy.max_count:
            return ALLOWED

        # The next slot frees up when the event that pushes the count over the
        # limit leaves the window.
        blocking = self.db.execute(
            select(RateLimitEvent.created_at)
            .where(*in_window)
            .order_by(RateLimitEvent.created_at.asc())
            .offset(count - policy.max_count)
            .limit(1)
        ).scalar_one_or_none()
        retry_after = policy.window_seconds
        if blocking is not None:
            expires_at = as_utc(blocking) + timedelta(seconds=policy.window_seconds)
            remaining = math.ceil((expires_at - now).total_seconds())
            retry_after = min(policy.window_seconds, max(1, remaining))
        return RateLimitDecision(allowed=False, retry_after_seconds=retry_after)

    def check(self, agent_id: int, action: str) -> None:
        """Raise :class:`RateLimitedError` if ``action`` is not allowed."""
        decision = self.try_consume(agent_id, action)
        if decision.allowed:
            return
        logger.warning(
            "Rate limit hit: agent=%s action=%s retry_after=%ss",
            agent_id,
            action,
            decision.retry_after_seconds,
        )
        raise RateLimitedError(
            decision.retry_after_seconds,
            self.policies[action].message,
        )

    def acquire(self, agent_id: int, action: str) -> None:
        """Claim one slot for ``action`` inside the caller's transaction.

        The agent row is locked first (``SELECT ... FOR UPDATE`` where the
        dialect supports it) and the event is written by a single
        ``INSERT ... SELECT`` guarded by the in-window count, so two requests
        from the same agent cannot both pass the limit. The slot is released
        again if the caller rolls back.

        Raises:
            RateLimitedError: The window is exhausted.
        """
        policy = self.policies.get(action)
        if policy is None:
            self.record(agent_id, action)
            return

        self.db.execute(select(Agent.id).where(Agent.id == agent_id).with_for_update())
        now = self.clock()
        window_start = now - timedelta(seconds=policy.window_seconds)
        in_window = (
            select(func.count())
            .select_from(RateLimitEvent)
            .where(
                RateLimitEvent.agent_id == agent_id,
                RateLimitEvent.action == action,
                RateLimitEvent.created_at > window_start,
            )
            .correlate(None)
            .scalar_subquery()
        )
        stmt = insert(RateLimitEvent).from_select(
            ["agent_id", "action", "created_at"],
            select(
                literal(agent_id, Integer),
                literal(action, String),
                literal(now, DateTime(timezone=True)),
            ).where(in_window < policy.max_count),
        )
        if self.db.execute(stmt).rowcount:
            self._maybe_prune()
            return
        self.check(agent_id, action)
        # An event left the window after the guarded insert ran.
        raise RateLimitedError(1, policy.message)

    def record(self, agent_id: int, action: str) -> None:
        """Record one ``action`` unconditionally in the caller's transaction."""
        self.db.add(RateLimitEvent(agent_id=agent_id, action=action, created_at=self.clock()))
        self.db.flush()
        self._maybe_prune()

    def _maybe_prune(self) -> None:
        if self.prune_probability > 0 and self._rng() < self.prune_probability:
            self.prune()

    def prune(self) -> int:
        """Delete events older than the longest configured window."""
        if not self.policies:
            return 0
        longest = max(policy.window_seconds for policy in self.policies.values())
        cutoff = self.clock() - timedelta(seconds=longest)
        result = self.db.execute(
            delete(RateLimitEvent)
            .where(RateLimitEvent.created_at < cutoff)
            .execution_options(synchronize_session=False)
        )
        logger.debug("Pruned %d stale rate limit events", result.rowcount)
        return result.rowcount
