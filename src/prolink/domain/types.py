"""Closed status vocabularies for invitations and relationships.

Every status that crosses a service boundary is one of these enums.
They are ``StrEnum`` so they serialize to their plain value in JSON
output and compare equal to the stored database text.
"""

from __future__ import annotations

from enum import StrEnum


class InvitationStatus(StrEnum):
    """Lifecycle status of a single invitation row."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    IGNORED = "ignored"
    CANCELLED = "cancelled"


class RelationshipStatus(StrEnum):
    """Relationship between two users, seen from the viewer's side."""

    NONE = "none"
    PENDING_SENT = "pending_sent"
    PENDING_RECEIVED = "pending_received"
    CONNECTED = "connected"


class SendOutcome(StrEnum):
    """What ``send_request`` did for the caller."""

    SENT = "sent"
    ALREADY_CONNECTED = "already_connected"
    ALREADY_SENT = "already_sent"
    ALREADY_RECEIVED = "already_received"
