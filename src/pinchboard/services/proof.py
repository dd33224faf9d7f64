"""Ownership proof oracle backed by the public oEmbed endpoint.

A human proves control of an agent by publishing a post containing the
agent's verification code and submitting the post URL. The oracle fetches
the embed HTML and reports whether the code is present.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Protocol

import httpx

from pinchboard.core.settings import settings
from pinchboard.services.errors import ProofUnavailableError

logger = logging.getLogger(__name__)

TWEET_URL_PATTERN = re.compile(
    r"(?:twitter\.com|x\.com)/([A-Za-z0-9_]+)/status/(\d+)",
)


def parse_tweet_url(url: str) -> str | None:
    """Return the lowercased username embedded in a status URL, if any."""
    match = TWEET_URL_PATTERN.search(url)
    if match is None:
        return None
    return match.group(1).lower()


@dataclass(frozen=True)
class ProofResult:
    """Answer from the oracle for one proof URL.

    ``username`` is the lowercased author of the post as reported by the
    embed, falling back to the handle in the URL.
    """

    contains_code: bool
    username: str


class ProofOracle(Protocol):
    """Anything able to check a proof URL for a verification code."""

    def check(self, proof_url: str, code: str) -> ProofResult:
        ...


class OEmbedProofOracle:
    """Check proofs by fetching oEmbed HTML over HTTP."""

    def __init__(
        self,
        *,
        base_url: str | None = None,
        timeout_seconds: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.base_url = base_url or settings.oembed_url
        self.timeout_seconds = (
            settings.oembed_timeout_seconds if timeout_seconds is None else timeout_seconds
        )
        self._transport = transport

    def _client(self) -> httpx.Client:
        return httpx.Client(
            timeout=self.timeout_seconds,
            headers={"User-Agent": settings.oembed_user_agent},
            transport=self._transport,
        )

    def check(self, proof_url: str, code: str) -> ProofResult:
        """Fetch the embed for ``proof_url`` and look for ``code``.

        Raises:
            ProofUnavailableError: On transport failure, a non-2xx response
                or a body that is not the expected JSON document.
        """
        try:
            with self._client() as client:
                response = client.get(self.base_url, params={"url": proof_url})
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPError as exc:
            logger.warning("oEmbed lookup failed for %s: %s", proof_url, exc)
            raise ProofUnavailableError(
                "Could not fetch the proof post. Is it public? Check the URL."
            ) from exc
        except ValueError as exc:
            logger.warning("oEmbed returned undecodable body for %s", proof_url)
            raise ProofUnavailableError("Proof lookup returned an invalid response") from exc

        html = data.get("html") if isinstance(data, dict) else None
        author = _author_from(data) or parse_tweet_url(proof_url) or ""
        return ProofResult(contains_code=bool(html) and code in html, username=author)


def _author_from(data: object) -> str | None:
    """Username from the embed's ``author_url`` (``https://x.com/<name>``)."""
    if not isinstance(data, dict):
        return None
    author_url = data.get("author_url")
    if not isinstance(author_url, str):
        return None
    name = author_url.rstrip("/").rsplit("/", 1)[-1]
    return name.lower() or None


def get_proof_oracle() -> ProofOracle:
    """Return the default proof oracle."""
    return OEmbedProofOracle()
