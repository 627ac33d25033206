"""Frozen value models for invitations, connections, and profiles.

These are the shapes the stores hand back to services. They are built
from database rows via ``model_validate`` and never mutated; a status
change produces a new row read, not an in-place update.
"""

from __future__ import annotations

from pydantic import BaseModel

from prolink.domain.types import InvitationStatus


class Invitation(BaseModel):
    """A one-directional request to connect."""

    model_config = {"frozen": True}

    id: str
    requester_id: str
    recipient_id: str
    pair_key: str
    status: InvitationStatus
    created_at: str
    resolved_at: str | None = None

    @property
    def is_pending(self) -> bool:
        return self.status == InvitationStatus.PENDING

    def counterpart(self, user_id: str) -> str:
        """The other participant, from *user_id*'s point of view."""
        return self.recipient_id if user_id == self.requester_id else self.requester_id


class Connection(BaseModel):
    """An established symmetric relationship, stored with ``user_a < user_b``."""

    model_config = {"frozen": True}

    user_a: str
    user_b: str
    established_at: str
    invitation_id: str | None = None


class ProfileProjection(BaseModel):
    """Minimal profile view the network core needs for display."""

    model_config = {"frozen": True}

    id: str
    first_name: str
    last_name: str = ""
    email: str
    headline: str | None = None
    avatar_url: str | None = None
    location: str | None = None
    connections_count: int = 0

    @property
    def name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def to_item(self) -> dict[str, object]:
        """Flat dict used in list payloads (includes the derived name)."""
        return {**self.model_dump(), "name": self.name}
