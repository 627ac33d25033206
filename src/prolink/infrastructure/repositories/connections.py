"""ConnectionGraph: the authoritative symmetric edge set.

One row per unordered pair, stored sorted (``user_a < user_b``), so an
edge can never exist in one direction only.

INVARIANT: ``degree(u) == len(neighbors(u))`` for every user.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import delete, func, insert, select, union_all

from prolink.domain.ids import sorted_pair
from prolink.domain.models import Connection
from prolink.infrastructure.database.schema import connections

if TYPE_CHECKING:
    from sqlalchemy import Connection as SqlConnection


class ConnectionGraph:
    """SQL access to the ``connections`` table (caller owns the transaction)."""

    def __init__(self, conn: SqlConnection) -> None:
        self._conn = conn

    @staticmethod
    def _where_pair(x: str, y: str) -> tuple[object, object]:
        low, high = sorted_pair(x, y)
        return connections.c.user_a == low, connections.c.user_b == high

    def get(self, x: str, y: str) -> Connection | None:
        row = (
            self._conn.execute(select(connections).where(*self._where_pair(x, y)))
            .mappings()
            .first()
        )
        return Connection.model_validate(dict(row)) if row is not None else None

    def has_edge(self, x: str, y: str) -> bool:
        row = self._conn.execute(
            select(connections.c.user_a).where(*self._where_pair(x, y))
        ).first()
        return row is not None

    def add_edge(
        self,
        x: str,
        y: str,
        *,
        established_at: str,
        invitation_id: str | None = None,
    ) -> bool:
        """Insert the edge ``{x, y}``. No-op if already present.

        Returns True if a row was inserted.
        """
        if self.has_edge(x, y):
            return False
        low, high = sorted_pair(x, y)
        self._conn.execute(
            insert(connections).values(
                user_a=low,
                user_b=high,
                invitation_id=invitation_id,
                established_at=established_at,
            )
        )
        return True

    def remove_edge(self, x: str, y: str) -> bool:
        """Delete the edge ``{x, y}``. Returns True if a row was removed."""
        result = self._conn.execute(delete(connections).where(*self._where_pair(x, y)))
        return result.rowcount > 0

    def neighbors(self, user_id: str) -> set[str]:
        """All users connected to *user_id*."""
        stmt = union_all(
            select(connections.c.user_b.label("other")).where(connections.c.user_a == user_id),
            select(connections.c.user_a.label("other")).where(connections.c.user_b == user_id),
        )
        return {str(row.other) for row in self._conn.execute(stmt)}

    def degree(self, user_id: str) -> int:
        stmt = select(func.count()).where(
            (connections.c.user_a == user_id) | (connections.c.user_b == user_id)
        )
        return int(self._conn.execute(stmt).scalar_one() or 0)

    def all_edges(self) -> list[tuple[str, str]]:
        """Every edge as a sorted ``(user_a, user_b)`` tuple."""
        rows = self._conn.execute(
            select(connections.c.user_a, connections.c.user_b).order_by(
                connections.c.user_a, connections.c.user_b
            )
        )
        return [(str(row.user_a), str(row.user_b)) for row in rows]
