"""Identifier helpers for users, pairs, and invitations.

User ids are opaque strings owned by the profile directory. Everything
that is keyed by a *pair* of users uses the sorted pair, so the two
directions of a relationship always map to the same key.

INVARIANT: ``pair_key(x, y) == pair_key(y, x)``.
"""

from __future__ import annotations

import uuid

INVITATION_PREFIX = "inv_"
PAIR_SEPARATOR = "|"


def sorted_pair(x: str, y: str) -> tuple[str, str]:
    """Return ``(x, y)`` ordered so the smaller id comes first."""
    return (x, y) if x <= y else (y, x)


def pair_key(x: str, y: str) -> str:
    """Stable string key for the unordered pair ``{x, y}``."""
    low, high = sorted_pair(x, y)
    return f"{low}{PAIR_SEPARATOR}{high}"


def generate_invitation_id() -> str:
    """New invitation id: ``inv_`` followed by 12 hex chars."""
    return f"{INVITATION_PREFIX}{uuid.uuid4().hex[:12]}"


def is_valid_user_id(user_id: str) -> bool:
    """User ids must be non-blank and must not contain the pair separator."""
    return bool(user_id and user_id.strip()) and PAIR_SEPARATOR not in user_id
