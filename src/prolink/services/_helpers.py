"""Shared service-layer helper functions."""

from __future__ import annotations

from datetime import UTC, datetime

from prolink.domain.errors import InvalidArgumentError
from prolink.domain.ids import is_valid_user_id


def now_iso() -> str:
    """Current UTC time as ISO 8601 with microseconds."""
    return datetime.now(UTC).isoformat(timespec="microseconds")


def require_pair(user_id: str, other_id: str) -> None:
    """Validate two user ids that must name two different users.

    Raises:
        InvalidArgumentError: Blank or malformed ids, or ``user_id == other_id``.
    """
    for value in (user_id, other_id):
        if not is_valid_user_id(value):
            raise InvalidArgumentError(f"Invalid user id: {value!r}", detail={"user_id": value})
    if user_id == other_id:
        raise InvalidArgumentError(
            "A user cannot connect to themselves",
            detail={"user_id": user_id},
        )
