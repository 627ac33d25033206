"""ProfileDirectory: reference implementation of the profile collaborator.

The connection core only needs a narrow slice of profile storage:

- ``get_profile`` returns a :class:`ProfileProjection` or None.
- ``append_connection`` / ``remove_connection`` maintain the per-user
  connection list. Both are idempotent.
- ``search`` / ``find_by_location`` return raw matches. Ids in
  ``exclude_ids`` are filtered in SQL, before the page limit applies;
  de-duplication is the caller's job.

``connections_count`` is never stored. It is computed from the length of
the user's ``profile_connections`` list every time a profile is read.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy import delete, func, insert, select

from prolink.domain.errors import ConflictError
from prolink.domain.models import ProfileProjection
from prolink.infrastructure.database.schema import profile_connections, profiles

if TYPE_CHECKING:
    from collections.abc import Collection

    from sqlalchemy import Connection, Select


def _count_subquery() -> Any:
    return (
        select(func.count())
        .where(profile_connections.c.user_id == profiles.c.id)
        .scalar_subquery()
        .label("connections_count")
    )


def _projection_select() -> Select[Any]:
    return select(
        profiles.c.id,
        profiles.c.first_name,
        profiles.c.last_name,
        profiles.c.email,
        profiles.c.headline,
        profiles.c.avatar_url,
        profiles.c.location,
        _count_subquery(),
    )


def _excluding(stmt: Select[Any], exclude_ids: Collection[str]) -> Select[Any]:
    return stmt.where(profiles.c.id.not_in(list(exclude_ids))) if exclude_ids else stmt


class ProfileDirectory:
    """SQL-backed profile directory (caller owns the transaction)."""

    def __init__(self, conn: Connection) -> None:
        self._conn = conn

    def _fetch(self, stmt: Select[Any]) -> list[ProfileProjection]:
        rows = self._conn.execute(stmt).mappings().all()
        return [ProfileProjection.model_validate(dict(row)) for row in rows]

    # ------------------------------------------------------------------
    # Profiles
    # ------------------------------------------------------------------

    def get_profile(self, user_id: str) -> ProfileProjection | None:
        found = self._fetch(_projection_select().where(profiles.c.id == user_id))
        return found[0] if found else None

    def get_profiles(self, user_ids: list[str]) -> dict[str, ProfileProjection]:
        """Batch lookup. Unknown ids are simply absent from the result."""
        if not user_ids:
            return {}
        found = self._fetch(_projection_select().where(profiles.c.id.in_(user_ids)))
        return {p.id: p for p in found}

    def register(
        self,
        user_id: str,
        *,
        first_name: str,
        last_name: str,
        email: str,
        created: str,
        headline: str | None = None,
        avatar_url: str | None = None,
        location: str | None = None,
    ) -> ProfileProjection:
        """Insert a profile row. Raises :class:`ConflictError` on duplicate id/email."""
        if self.get_profile(user_id) is not None:
            raise ConflictError(f"Profile already exists: {user_id}", detail={"user_id": user_id})
        email = email.lower()
        taken = self._conn.execute(select(profiles.c.id).where(profiles.c.email == email)).first()
        if taken is not None:
            raise ConflictError(f"Email already registered: {email}", detail={"email": email})

        self._conn.execute(
            insert(profiles).values(
                id=user_id,
                first_name=first_name,
                last_name=last_name,
                email=email,
                headline=headline or f"{first_name} {last_name} at ProLink".strip(),
                avatar_url=avatar_url,
                location=location,
                created=created,
            )
        )
        profile = self.get_profile(user_id)
        assert profile is not None
        return profile

    def delete_profile(self, user_id: str) -> bool:
        """Remove a profile row (its connection list is left to the caller)."""
        result = self._conn.execute(delete(profiles).where(profiles.c.id == user_id))
        return result.rowcount > 0

    # ------------------------------------------------------------------
    # Connection list projection
    # ------------------------------------------------------------------

    def connection_ids(self, user_id: str) -> list[str]:
        rows = self._conn.execute(
            select(profile_connections.c.other_id)
            .where(profile_connections.c.user_id == user_id)
            .order_by(profile_connections.c.other_id)
        )
        return [str(row.other_id) for row in rows]

    def connections_count(self, user_id: str) -> int:
        stmt = select(func.count()).where(profile_connections.c.user_id == user_id)
        return int(self._conn.execute(stmt).scalar_one() or 0)

    def append_connection(self, user_id: str, other_id: str, *, created: str) -> bool:
        """Add *other_id* to *user_id*'s list. Returns False if already present."""
        exists = self._conn.execute(
            select(profile_connections.c.user_id).where(
                profile_connections.c.user_id == user_id,
                profile_connections.c.other_id == other_id,
            )
        ).first()
        if exists is not None:
            return False
        self._conn.execute(
            insert(profile_connections).values(user_id=user_id, other_id=other_id, created=created)
        )
        return True

    def remove_connection(self, user_id: str, other_id: str) -> bool:
        """Drop *other_id* from *user_id*'s list. Returns False if absent."""
        result = self._conn.execute(
            delete(profile_connections).where(
                profile_connections.c.user_id == user_id,
                profile_connections.c.other_id == other_id,
            )
        )
        return result.rowcount > 0

    def projection_rows(self) -> list[tuple[str, str]]:
        """Every ``(user_id, other_id)`` list entry (integrity checks only)."""
        rows = self._conn.execute(
            select(profile_connections.c.user_id, profile_connections.c.other_id)
        )
        return [(str(row.user_id), str(row.other_id)) for row in rows]

    def replace_projection(self, edges: list[tuple[str, str]], *, created: str) -> int:
        """Rewrite every connection list from *edges*. Returns rows written."""
        self._conn.execute(delete(profile_connections))
        rows = [
            {"user_id": a, "other_id": b, "created": created}
            for x, y in edges
            for a, b in ((x, y), (y, x))
        ]
        if rows:
            self._conn.execute(insert(profile_connections), rows)
        return len(rows)

    # ------------------------------------------------------------------
    # Matching
    # ------------------------------------------------------------------

    def search(
        self, term: str, *, limit: int, exclude_ids: Collection[str] = ()
    ) -> list[ProfileProjection]:
        """Raw matches for *term*: name prefixes, then exact email.

        Runs a first-name and a last-name prefix query for each of three
        casings of *term* (as typed, capitalized, lower), then one
        exact-email query. Each query skips *exclude_ids* and is capped at
        *limit*; the combined list may contain the same profile more than
        once.
        """
        term = term.strip()
        if not term:
            return []

        variants = list(dict.fromkeys([term, term[:1].upper() + term[1:], term.lower()]))
        matches: list[ProfileProjection] = []
        for variant in variants:
            for column in (profiles.c.first_name, profiles.c.last_name):
                matches.extend(
                    self._fetch(
                        _excluding(_projection_select(), exclude_ids)
                        .where(column.startswith(variant, autoescape=True))
                        .order_by(profiles.c.id)
                        .limit(limit)
                    )
                )
        matches.extend(
            self._fetch(
                _excluding(_projection_select(), exclude_ids)
                .where(profiles.c.email == term.lower())
                .order_by(profiles.c.id)
                .limit(limit)
            )
        )
        return matches

    def find_by_location(
        self, location: str, *, limit: int, exclude_ids: Collection[str] = ()
    ) -> list[ProfileProjection]:
        """Profiles whose location equals *location*, ordered by id."""
        if not location.strip():
            return []
        return self._fetch(
            _excluding(_projection_select(), exclude_ids)
            .where(profiles.c.location == location)
            .order_by(profiles.c.id)
            .limit(limit)
        )
