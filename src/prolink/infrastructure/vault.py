"""Vault: repository access with a pair-safe unit of work.

The Vault is the single dependency injected into every service. It owns
the database engine, the read-side graph engine, and the pair lock table.

- :meth:`transaction` yields a :class:`VaultTransaction` inside
  ``BEGIN IMMEDIATE``: the write lock is held from the first read, commit
  on normal exit, rollback on any exception. The graph cache is
  invalidated once the block is over.
- :meth:`snapshot` yields the same repository view inside a deferred
  read transaction, so every read in the block sees one snapshot.
- :attr:`pair_locks` serializes mutations per unordered user pair.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from functools import cached_property
from typing import TYPE_CHECKING

from prolink.infrastructure.database.engine import init_database
from prolink.infrastructure.graph.engine import GraphEngine
from prolink.infrastructure.locks import PairLockTable
from prolink.infrastructure.repositories import (
    ConnectionGraph,
    InvitationStore,
    ProfileDirectory,
)

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path

    from sqlalchemy import Connection
    from sqlalchemy.engine import Engine

    from prolink.config.settings import NetworkSettings

logger = logging.getLogger(__name__)


@dataclass
class VaultTransaction:
    """Repositories bound to one open connection.

    Inside :meth:`Vault.transaction` every write through these
    repositories commits or rolls back together.
    """

    conn: Connection

    @cached_property
    def invitations(self) -> InvitationStore:
        return InvitationStore(self.conn)

    @cached_property
    def connections(self) -> ConnectionGraph:
        return ConnectionGraph(self.conn)

    @cached_property
    def profiles(self) -> ProfileDirectory:
        return ProfileDirectory(self.conn)


class Vault:
    """Repository encapsulating database, graph, and pair-lock access.

    Constructed once at CLI startup from :class:`NetworkSettings` and
    stored on the click context. Services receive the Vault via their
    :class:`BaseService` constructor.
    """

    def __init__(self, settings: NetworkSettings) -> None:
        self._settings = settings
        self._engine: Engine = init_database(
            settings.data_root,
            busy_timeout_ms=settings.database.busy_timeout_ms,
            echo=settings.database.echo,
        )
        self._graph = GraphEngine(self._engine)
        self._pair_locks = PairLockTable()

    @property
    def root(self) -> Path:
        """The data directory holding ``.prolink/``."""
        return self._settings.data_root

    @property
    def engine(self) -> Engine:
        """The underlying SQLAlchemy engine (for direct access when needed)."""
        return self._engine

    @property
    def graph(self) -> GraphEngine:
        """The graph engine (lazy-built from committed connections)."""
        return self._graph

    @property
    def settings(self) -> NetworkSettings:
        return self._settings

    @property
    def pair_locks(self) -> PairLockTable:
        return self._pair_locks

    def close(self) -> None:
        """Dispose pooled connections."""
        self._engine.dispose()

    @contextmanager
    def transaction(self) -> Iterator[VaultTransaction]:
        """One atomic unit of work.

        All repository writes made through the yielded
        :class:`VaultTransaction` commit together when the block exits
        normally and roll back together if it raises.

        The graph cache is invalidated after commit or rollback, so the
        next ``vault.graph`` access reflects the committed state. Do not
        read ``vault.graph`` inside the block: it will not see pending
        writes.

        Usage::

            with vault.transaction() as txn:
                txn.connections.add_edge(a, b, established_at=now)
                txn.invitations.set_status(inv_id, InvitationStatus.ACCEPTED, resolved_at=now)
        """
        try:
            with self._engine.connect() as conn:
                conn.execution_options(sqlite_begin="IMMEDIATE")
                with conn.begin():
                    yield VaultTransaction(conn=conn)
        except Exception:
            logger.debug("Vault transaction rolled back", exc_info=True)
            raise
        finally:
            self._graph.invalidate()

    @contextmanager
    def snapshot(self) -> Iterator[VaultTransaction]:
        """Read-only repository view on one consistent snapshot.

        Reads inside the block never observe a write committed after the
        first of them, so two related lookups cannot straddle a commit.
        """
        with self._engine.connect() as conn:
            yield VaultTransaction(conn=conn)
