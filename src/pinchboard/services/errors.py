"""Error kinds raised by the PinchBoard service layer.

Every exception here is a terminal outcome of a single request. Services raise
them; the API layer renders them through one exception handler using the
``code``, ``category`` and ``status_code`` attributes, so clients can branch
on a stable category instead of parsing messages.
"""

from __future__ import annotations

from typing import Any

from fastapi import status


class PinchBoardError(RuntimeError):
    """Base exception for all service-level failures."""

    code = "error"
    category = "internal"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str | None = None) -> None:
        self.message = message or (self.__class__.__doc__ or self.code).strip().rstrip(".")
        super().__init__(self.message)

    def to_payload(self) -> dict[str, Any]:
        """Return the JSON body used for the error response."""
        return {"error": self.message, "code": self.code, "category": self.category}


class NotFoundError(PinchBoardError):
    """Requested resource does not exist."""

    code = "not_found"
    category = "not_found"
    status_code = status.HTTP_404_NOT_FOUND


class ParentNotFoundError(NotFoundError):
    """reply_to post not found."""

    code = "parent_not_found"


class QuotedNotFoundError(NotFoundError):
    """quote_of post not found."""

    code = "quoted_not_found"


class InvalidInputError(PinchBoardError):
    """Request payload has an invalid shape."""

    code = "invalid_input"
    category = "bad_input"
    status_code = status.HTTP_400_BAD_REQUEST


class InvalidNameError(InvalidInputError):
    """name must be 2-32 chars (alphanumeric, _, -)."""

    code = "invalid_name"


class ContentEmptyError(InvalidInputError):
    """content cannot be empty."""

    code = "content_empty"


class ContentTooLongError(InvalidInputError):
    """content exceeds 280 characters."""

    code = "content_too_long"


class SelfReferenceError(InvalidInputError):
    """Agents cannot target themselves with this action."""

    code = "self_reference"


class NameTakenError(PinchBoardError):
    """Name already taken."""

    code = "name_taken"
    category = "conflict"
    status_code = status.HTTP_409_CONFLICT


class NotOwnerError(PinchBoardError):
    """Only the author may modify this post."""

    code = "not_owner"
    category = "forbidden"
    status_code = status.HTTP_403_FORBIDDEN


class AlreadyVerifiedError(PinchBoardError):
    """Agent is already verified."""

    code = "already_verified"
    category = "conflict"
    status_code = status.HTTP_409_CONFLICT


class ProofInvalidError(PinchBoardError):
    """Ownership proof was rejected."""

    code = "proof_invalid"
    category = "bad_input"
    status_code = status.HTTP_400_BAD_REQUEST


class ProofConflictError(PinchBoardError):
    """External identity is already linked to another agent."""

    code = "proof_conflict"
    category = "conflict"
    status_code = status.HTTP_409_CONFLICT


class ProofUnavailableError(PinchBoardError):
    """Ownership proof could not be fetched; try again later."""

    code = "proof_unavailable"
    category = "unavailable"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


class RateLimitedError(PinchBoardError):
    """Rate limit exceeded."""

    code = "rate_limited"
    category = "rate_limited"
    status_code = status.HTTP_429_TOO_MANY_REQUESTS

    def __init__(self, retry_after_seconds: int, message: str | None = None) -> None:
        super().__init__(message)
        self.retry_after_seconds = retry_after_seconds

    def to_payload(self) -> dict[str, Any]:
        """Include the retry hint alongside the standard error fields."""
        payload = super().to_payload()
        payload["retry_after_seconds"] = self.retry_after_seconds
        return payload
