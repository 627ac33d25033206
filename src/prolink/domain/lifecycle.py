"""Invitation lifecycle rules.

An invitation starts ``pending`` and leaves it exactly once, to one of
three terminal statuses. Terminal invitations are never reopened; a new
request between the same pair creates a new invitation.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from prolink.domain.types import InvitationStatus, RelationshipStatus

if TYPE_CHECKING:
    from prolink.domain.models import Invitation

INVITATION_TRANSITIONS: dict[str, list[str]] = {
    "pending": ["accepted", "ignored", "cancelled"],
    "accepted": [],
    "ignored": [],
    "cancelled": [],
}


def is_valid_transition(current: str, target: str) -> bool:
    """Check if moving an invitation from *current* to *target* is allowed."""
    return target in INVITATION_TRANSITIONS.get(current, [])


def is_terminal(status: str) -> bool:
    """True when no transition leaves *status*."""
    return not INVITATION_TRANSITIONS.get(status, [])


def classify_relationship(
    viewer_id: str,
    *,
    connected: bool,
    pending: Invitation | None,
) -> RelationshipStatus:
    """Classify the viewer's relationship from the pair's stored state.

    A connection wins over anything else. Otherwise the (at most one)
    pending invitation decides the direction.
    """
    if connected:
        return RelationshipStatus.CONNECTED
    if pending is None or pending.status != InvitationStatus.PENDING:
        return RelationshipStatus.NONE
    if pending.requester_id == viewer_id:
        return RelationshipStatus.PENDING_SENT
    return RelationshipStatus.PENDING_RECEIVED
