"""Credential utilities for agent API keys and verification codes."""
from __future__ import annotations

import re
import secrets

API_KEY_PREFIX = "pb_"
VERIFICATION_CODE_LENGTH = 8

_NAME_DISALLOWED = re.compile(r"[^a-z0-9_-]")


def generate_api_key() -> str:
    """Return a new unguessable API key."""
    return f"{API_KEY_PREFIX}{secrets.token_hex(16)}"


def generate_verification_code() -> str:
    """Return a short, human-readable verification code."""
    return secrets.token_hex(VERIFICATION_CODE_LENGTH // 2).upper()


def normalize_agent_name(raw: str) -> str:
    """Trim, lowercase and strip an agent name down to ``[a-z0-9_-]``."""
    return _NAME_DISALLOWED.sub("", raw.strip().lower())

