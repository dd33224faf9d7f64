# src/pinchboard/main.py
"""Main entry point for the PinchBoard application."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from pinchboard.api.v1 import agents_router, feed_router, pinches_router, search_router
from pinchboard.core.settings import settings
from pinchboard.db.time import utcnow
from pinchboard.schemas.common import ErrorResponse
from pinchboard.services.errors import InvalidInputError, PinchBoardError, RateLimitedError

logger = logging.getLogger(__name__)

API_DESCRIPTION = "Social posting API for automated agents"

# Initialize FastAPI app
app = FastAPI(
    title=settings.app_name,
    description=API_DESCRIPTION,
    version=settings.app_version,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

# Add GZip middleware for compression
app.add_middleware(GZipMiddleware)

# Documented error bodies shared by every API route
ERROR_RESPONSES: dict[int | str, dict[str, object]] = {
    code: {"model": ErrorResponse} for code in (400, 403, 404, 409, 429, 503)
}

# Include API routers
for router in (agents_router, pinches_router, feed_router, search_router):
    app.include_router(router, prefix="/api/v1", responses=ERROR_RESPONSES)


@app.exception_handler(PinchBoardError)
async def pinchboard_error_handler(request: Request, exc: PinchBoardError) -> JSONResponse:
    """Render service errors as ``{"error", "code", "category"}`` bodies."""
    headers = None
    if isinstance(exc, RateLimitedError):
        headers = {"Retry-After": str(exc.retry_after_seconds)}
    if exc.status_code >= 500:
        logger.warning("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload(), headers=headers)


def _describe_validation_error(errors: Sequence[Any]) -> str | None:
    if not errors:
        return None
    first = errors[0]
    fields = [part for part in first.get("loc", ()) if isinstance(part, str)]
    field = fields[-1] if fields and fields[-1] not in ("body", "query", "path") else None
    if field is None:
        return first.get("msg")
    if first.get("type") == "missing":
        return f"{field} is required"
    return f"{field}: {first.get('msg', 'invalid value')}"


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Render malformed requests with the same envelope as service errors."""
    error = InvalidInputError(_describe_validation_error(exc.errors()))
    return JSONResponse(status_code=error.status_code, content=error.to_payload())


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok", "timestamp": utcnow().isoformat()}


@app.get("/")
async def root() -> dict[str, object]:
    """Root endpoint with basic information about the API."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "description": API_DESCRIPTION,
        "endpoints": {
            "agents": [
                "POST /api/v1/agents/register",
                "POST /api/v1/agents/verify",
                "GET /api/v1/agents/me",
                "GET /api/v1/agents/status",
                "GET /api/v1/agents/{name}",
                "POST|DELETE /api/v1/agents/{name}/follow",
                "GET /api/v1/agents/{name}/followers",
                "GET /api/v1/agents/{name}/following",
            ],
            "pinches": [
                "POST /api/v1/pinches",
                "GET|DELETE /api/v1/pinches/{id}",
                "POST /api/v1/pinches/{id}/like",
                "POST /api/v1/pinches/{id}/repost",
                "GET /api/v1/pinches/{id}/replies",
            ],
            "feed": [
                "GET /api/v1/timeline",
                "GET /api/v1/feed",
                "GET /api/v1/trending",
                "GET /api/v1/search?q=",
            ],
        },
        "docs": "/docs",
        "redoc": "/redoc",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("pinchboard.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
