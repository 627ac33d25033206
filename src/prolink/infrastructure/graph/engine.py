"""GraphEngine: lazy-built NetworkX graph of established connections.

The SQL ``connections`` table is the source of truth; this is a read-side
cache for multi-hop questions (mutual connections, friends-of-friends,
integrity checks). It is dropped whenever a vault transaction ends and
rebuilt from committed state on next access.

A build that races with an invalidation is discarded rather than cached,
so a reader never pins a graph older than the last committed write.
"""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING, TypeAlias

import networkx as nx

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

_Graph: TypeAlias = "nx.Graph"


class GraphEngine:
    """Lazy-loading undirected graph backed by the ``connections`` table."""

    def __init__(self, db: Engine) -> None:
        self._db = db
        self._graph: _Graph | None = None
        self._generation = 0
        self._lock = threading.Lock()

    @property
    def graph(self) -> _Graph:
        """Return the graph, building from DB on first access."""
        with self._lock:
            cached = self._graph
            generation = self._generation
        if cached is not None:
            return cached

        built = self._build_from_db()
        with self._lock:
            if self._generation == generation:
                self._graph = built
        return built

    def invalidate(self) -> None:
        """Clear the cached graph, forcing rebuild on next access."""
        with self._lock:
            self._graph = None
            self._generation += 1

    def _build_from_db(self) -> _Graph:
        """Build an undirected graph with one node per profile and one edge per connection.

        Profiles are loaded first so users without connections are still
        visible to algorithms.
        """
        from sqlalchemy import select

        from prolink.infrastructure.database.schema import connections, profiles

        g: _Graph = nx.Graph()
        with self._db.connect() as conn:
            for row in conn.execute(select(profiles.c.id)):
                g.add_node(row.id)

            for row in conn.execute(select(connections)):
                g.add_edge(
                    row.user_a,
                    row.user_b,
                    established_at=row.established_at,
                    invitation_id=row.invitation_id,
                )
        return g
