"""SQLAlchemy Core table definitions for the prolink database.

Four tables:

- ``profiles`` / ``profile_connections`` back the reference profile
  directory. ``profile_connections`` is the per-user connection list the
  directory exposes; it is a projection of ``connections``.
- ``invitations`` holds every invitation ever sent, terminal ones included.
- ``connections`` is the authoritative edge set, one row per unordered pair.
"""

from __future__ import annotations

from sqlalchemy import (
    CheckConstraint,
    Column,
    Index,
    MetaData,
    PrimaryKeyConstraint,
    Table,
    Text,
    UniqueConstraint,
)

metadata = MetaData()

profiles = Table(
    "profiles",
    metadata,
    Column("id", Text, primary_key=True),
    Column("first_name", Text, nullable=False),
    Column("last_name", Text, nullable=False, default="", server_default=""),
    Column("email", Text, nullable=False, unique=True),
    Column("headline", Text),
    Column("avatar_url", Text),
    Column("location", Text),
    Column("created", Text, nullable=False),
)

profile_connections = Table(
    "profile_connections",
    metadata,
    Column("user_id", Text, nullable=False),
    Column("other_id", Text, nullable=False),
    Column("created", Text, nullable=False),
    UniqueConstraint("user_id", "other_id"),
)

invitations = Table(
    "invitations",
    metadata,
    Column("id", Text, primary_key=True),
    Column("requester_id", Text, nullable=False),
    Column("recipient_id", Text, nullable=False),
    Column("pair_key", Text, nullable=False),  # sorted "low|high"
    Column("status", Text, nullable=False, default="pending", server_default="pending"),
    Column("created_at", Text, nullable=False),
    Column("resolved_at", Text),
    CheckConstraint("requester_id <> recipient_id", name="ck_invitations_not_self"),
    CheckConstraint(
        "status IN ('pending', 'accepted', 'ignored', 'cancelled')",
        name="ck_invitations_status",
    ),
)

connections = Table(
    "connections",
    metadata,
    Column("user_a", Text, nullable=False),
    Column("user_b", Text, nullable=False),
    Column("invitation_id", Text),
    Column("established_at", Text, nullable=False),
    PrimaryKeyConstraint("user_a", "user_b"),
    CheckConstraint("user_a < user_b", name="ck_connections_sorted"),
)

# ---------------------------------------------------------------------------
# Indexes
# ---------------------------------------------------------------------------

# At most one pending invitation per unordered pair, across processes.
Index(
    "uq_invitations_pending_pair",
    invitations.c.pair_key,
    unique=True,
    sqlite_where=invitations.c.status == "pending",
)
Index("ix_invitations_recipient", invitations.c.recipient_id, invitations.c.status)
Index("ix_invitations_requester", invitations.c.requester_id, invitations.c.status)
Index("ix_connections_user_b", connections.c.user_b)
Index("ix_profile_connections_user", profile_connections.c.user_id)
Index("ix_profiles_first_name", profiles.c.first_name)
Index("ix_profiles_last_name", profiles.c.last_name)
Index("ix_profiles_location", profiles.c.location)
