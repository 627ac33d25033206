"""InvitationStore: durable invitation records keyed by unordered pair.

INVARIANT: at most one ``pending`` invitation exists per unordered pair.
The store checks it before every insert, and the partial unique index
``uq_invitations_pending_pair`` backs it up against other processes.
"""

from __future__ import annotations

from collections import Counter
from typing import TYPE_CHECKING

from sqlalchemy import func, insert, literal_column, or_, select, update

from prolink.domain.errors import ConflictError, InvariantViolationError, NotFoundError
from prolink.domain.ids import generate_invitation_id, pair_key, sorted_pair
from prolink.domain.lifecycle import is_valid_transition
from prolink.domain.models import Invitation
from prolink.domain.types import InvitationStatus
from prolink.infrastructure.database.schema import connections, invitations

if TYPE_CHECKING:
    from sqlalchemy import Connection

_PENDING = str(InvitationStatus.PENDING)


class InvitationStore:
    """SQL access to the ``invitations`` table (caller owns the transaction)."""

    def __init__(self, conn: Connection) -> None:
        self._conn = conn

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_by_id(self, invitation_id: str) -> Invitation:
        """Fetch one invitation. Raises :class:`NotFoundError` if absent."""
        row = (
            self._conn.execute(select(invitations).where(invitations.c.id == invitation_id))
            .mappings()
            .first()
        )
        if row is None:
            raise NotFoundError(
                f"Invitation not found: {invitation_id}",
                detail={"invitation_id": invitation_id},
            )
        return Invitation.model_validate(dict(row))

    def get_pending_by_pair(self, x: str, y: str) -> Invitation | None:
        """The pending invitation between *x* and *y*, in either direction."""
        row = (
            self._conn.execute(
                select(invitations).where(
                    invitations.c.pair_key == pair_key(x, y),
                    invitations.c.status == _PENDING,
                )
            )
            .mappings()
            .first()
        )
        return Invitation.model_validate(dict(row)) if row is not None else None

    def list_pending_for_recipient(self, user_id: str) -> list[Invitation]:
        """Pending invitations addressed to *user_id*, newest first."""
        rows = (
            self._conn.execute(
                select(invitations)
                .where(
                    invitations.c.recipient_id == user_id,
                    invitations.c.status == _PENDING,
                )
                .order_by(
                    invitations.c.created_at.desc(),
                    literal_column("invitations.rowid").desc(),
                )
            )
            .mappings()
            .all()
        )
        return [Invitation.model_validate(dict(row)) for row in rows]

    def count_pending_for_recipient(self, user_id: str) -> int:
        stmt = select(func.count(invitations.c.id)).where(
            invitations.c.recipient_id == user_id,
            invitations.c.status == _PENDING,
        )
        return int(self._conn.execute(stmt).scalar_one() or 0)

    def pending_counterparts(self, user_id: str) -> set[str]:
        """Users sharing a pending invitation with *user_id*, in either direction."""
        stmt = select(invitations.c.requester_id, invitations.c.recipient_id).where(
            invitations.c.status == _PENDING,
            or_(invitations.c.requester_id == user_id, invitations.c.recipient_id == user_id),
        )
        return {
            row.recipient_id if row.requester_id == user_id else row.requester_id
            for row in self._conn.execute(stmt)
        }

    def list_pending(self) -> list[Invitation]:
        """Every pending invitation (integrity checks only)."""
        rows = (
            self._conn.execute(select(invitations).where(invitations.c.status == _PENDING))
            .mappings()
            .all()
        )
        return [Invitation.model_validate(dict(row)) for row in rows]

    def duplicate_pending_pairs(self) -> list[str]:
        """Pair keys holding more than one pending invitation."""
        counts = Counter(inv.pair_key for inv in self.list_pending())
        return sorted(key for key, n in counts.items() if n > 1)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create(self, requester_id: str, recipient_id: str, *, now: str) -> Invitation:
        """Insert a new pending invitation from *requester_id* to *recipient_id*.

        Raises:
            ConflictError: A pending invitation already exists for the pair
                (either direction), or the pair is already connected.
        """
        existing = self.get_pending_by_pair(requester_id, recipient_id)
        if existing is not None:
            raise ConflictError(
                "A pending invitation already exists for this pair",
                detail={"invitation_id": existing.id},
            )

        low, high = sorted_pair(requester_id, recipient_id)
        edge = self._conn.execute(
            select(connections.c.user_a).where(
                connections.c.user_a == low,
                connections.c.user_b == high,
            )
        ).first()
        if edge is not None:
            raise ConflictError(
                "Users are already connected",
                detail={"requester_id": requester_id, "recipient_id": recipient_id},
            )

        invitation_id = generate_invitation_id()
        self._conn.execute(
            insert(invitations).values(
                id=invitation_id,
                requester_id=requester_id,
                recipient_id=recipient_id,
                pair_key=pair_key(requester_id, recipient_id),
                status=_PENDING,
                created_at=now,
            )
        )
        return self.get_by_id(invitation_id)

    def set_status(self, invitation_id: str, status: InvitationStatus, *, resolved_at: str) -> Invitation:
        """Move a pending invitation to a terminal *status*.

        The UPDATE is guarded on ``status = 'pending'`` so a concurrent
        writer that resolved the row first makes this call fail rather
        than overwrite.

        Raises:
            NotFoundError: No such invitation.
            InvariantViolationError: The invitation is not pending, or
                *status* is not a legal target.
        """
        current = self.get_by_id(invitation_id)
        if not current.is_pending:
            raise InvariantViolationError(
                f"Invitation {invitation_id} is already {current.status}",
                detail={"invitation_id": invitation_id, "status": str(current.status)},
            )
        if not is_valid_transition(str(current.status), str(status)):
            raise InvariantViolationError(
                f"Cannot move invitation {invitation_id} to {status}",
                detail={"invitation_id": invitation_id, "target": str(status)},
            )

        result = self._conn.execute(
            update(invitations)
            .where(invitations.c.id == invitation_id, invitations.c.status == _PENDING)
            .values(status=str(status), resolved_at=resolved_at)
        )
        if result.rowcount != 1:
            raise InvariantViolationError(
                f"Invitation {invitation_id} was resolved concurrently",
                detail={"invitation_id": invitation_id},
            )
        return self.get_by_id(invitation_id)
