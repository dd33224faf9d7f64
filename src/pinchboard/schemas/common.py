"""Shared Pydantic schemas for common API elements."""
from __future__ import annotations

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Body returned for every service-level failure."""

    error: str = Field(..., description="Human readable message")
    code: str = Field(..., description="Stable error kind")
    category: str = Field(..., description="Coarse category clients can branch on")
    retry_after_seconds: int | None = Field(
        None,
        description="Seconds until the action is allowed again (rate limits only)",
    )


class MessageResponse(BaseModel):
    message: str


class Page(BaseModel):
    """Pagination echo included in list responses."""

    limit: int
    offset: int
