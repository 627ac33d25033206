"""Database engine setup for SQLite with WAL mode.

SQLite is the persistence layer: WAL mode so readers never block on the
writer, a busy timeout so concurrent writers wait instead of failing at
once, and ACID transactions for the accept unit of work.
The DB is stored at {data_root}/.prolink/prolink.db.

SQLAlchemy Core (not ORM) is used: every write is a small, explicit
statement inside a transaction the service owns.

The driver's implicit BEGIN (sent just before the first write) is
switched off. Every SQLAlchemy transaction opens with an explicit BEGIN
instead, so a read-only connection holds one WAL snapshot for all of its
SELECTs, and a unit of work started with the ``sqlite_begin`` execution
option set to ``IMMEDIATE`` takes the write lock before its first read.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from sqlalchemy import Connection, create_engine, event
from sqlalchemy.engine import Engine

from prolink.infrastructure.database.schema import metadata

DATA_DIRNAME = ".prolink"
DB_FILENAME = "prolink.db"


def create_db_engine(db_path: Path, *, busy_timeout_ms: int = 5000, echo: bool = False) -> Engine:
    """Create a SQLite engine with WAL mode and a busy timeout."""
    engine = create_engine(
        f"sqlite:///{db_path}",
        echo=echo,
        connect_args={"timeout": busy_timeout_ms / 1000},
    )

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_conn: Any, _: Any) -> None:
        dbapi_conn.isolation_level = None
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.execute(f"PRAGMA busy_timeout={int(busy_timeout_ms)}")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _begin(conn: Connection) -> None:
        mode = conn.get_execution_options().get("sqlite_begin", "DEFERRED")
        conn.exec_driver_sql(f"BEGIN {mode}")

    return engine


def init_database(data_root: Path, *, busy_timeout_ms: int = 5000, echo: bool = False) -> Engine:
    """Initialize the database at ``{data_root}/.prolink/prolink.db``.

    Creates the ``.prolink/`` directory and all tables from
    :data:`schema.metadata`.

    Idempotent; safe to call on an existing data directory.

    Returns the engine ready for use.
    """
    data_dir = data_root / DATA_DIRNAME
    data_dir.mkdir(parents=True, exist_ok=True)

    engine = create_db_engine(data_dir / DB_FILENAME, busy_timeout_ms=busy_timeout_ms, echo=echo)
    metadata.create_all(engine)
    return engine
