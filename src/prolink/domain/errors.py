"""Error taxonomy for the connection core.

Stores and the resolver raise these inside a unit of work, so the
surrounding transaction rolls back. Services catch them at the boundary
and turn them into a failed ``ServiceResult`` carrying the same ``code``.

Codes:
    NOT_FOUND            unknown invitation or user
    CONFLICT             duplicate pending invitation or existing record
    UNAUTHORIZED         actor is not allowed to act on the invitation
    INVALID_ARGUMENT     malformed input, e.g. a self-connection
    INVARIANT_VIOLATION  transition out of a non-pending invitation
"""

from __future__ import annotations

from typing import Any, ClassVar


class NetworkError(Exception):
    """Base for all expected connection-core failures."""

    code: ClassVar[str] = "NETWORK_ERROR"

    def __init__(self, message: str, *, detail: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.detail = detail or {}


class NotFoundError(NetworkError):
    code = "NOT_FOUND"


class ConflictError(NetworkError):
    code = "CONFLICT"


class UnauthorizedError(NetworkError):
    code = "UNAUTHORIZED"


class InvalidArgumentError(NetworkError):
    code = "INVALID_ARGUMENT"


class InvariantViolationError(NetworkError):
    """A transition was attempted from a non-pending state.

    Signals stale client state or a race the caller lost. Never ignored.
    """

    code = "INVARIANT_VIOLATION"
