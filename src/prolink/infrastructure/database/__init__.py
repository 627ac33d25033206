"""SQLite database engine and schema via SQLAlchemy Core."""

from prolink.infrastructure.database.engine import create_db_engine, init_database
from prolink.infrastructure.database.schema import (
    connections,
    invitations,
    metadata,
    profile_connections,
    profiles,
)

__all__ = [
    "connections",
    "create_db_engine",
    "init_database",
    "invitations",
    "metadata",
    "profile_connections",
    "profiles",
]
