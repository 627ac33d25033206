"""RequestResolver: the connection state machine.

From the point of view of an ordered pair ``(actor, other)``::

    none -> pending_sent | pending_received -> connected
         \\-> none  (cancel / ignore)
    connected -> none  (disconnect)

The resolver is the only writer of invitations, connections, and the
per-user connection lists. Every mutation:

1. holds the pair lock for ``{x, y}`` (disjoint pairs never contend),
2. runs inside one ``Vault.transaction()`` so partial application is
   never committed,
3. is re-evaluated from scratch, a bounded number of times, when the
   storage layer reports a transient conflict.

INVARIANT: for every pair, a pending invitation and a connection never
coexist.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, TypeAlias

from prolink.domain.errors import (
    InvariantViolationError,
    NetworkError,
    NotFoundError,
    UnauthorizedError,
)
from prolink.domain.types import InvitationStatus, RelationshipStatus, SendOutcome
from prolink.services._helpers import now_iso, require_pair
from prolink.services.base import BaseService, UnitOfWork
from prolink.services.result import ServiceResult
from prolink.services.telemetry import traced

if TYPE_CHECKING:
    from prolink.domain.models import Invitation
    from prolink.infrastructure.vault import VaultTransaction

logger = logging.getLogger(__name__)

_InvitationWork: TypeAlias = "Callable[[VaultTransaction, Invitation], dict[str, Any]]"


def _require_pending(invitation: Invitation) -> None:
    if not invitation.is_pending:
        raise InvariantViolationError(
            f"Invitation {invitation.id} is already {invitation.status}",
            detail={"invitation_id": invitation.id, "status": str(invitation.status)},
        )


def _resolved_data(invitation: Invitation) -> dict[str, Any]:
    return {
        "invitation_id": invitation.id,
        "requester_id": invitation.requester_id,
        "recipient_id": invitation.recipient_id,
        "status": str(invitation.status),
        "resolved_at": invitation.resolved_at,
    }


class RequestResolver(BaseService):
    """Sends, accepts, cancels, and ignores connection requests."""

    # ------------------------------------------------------------------
    # Unit-of-work plumbing
    # ------------------------------------------------------------------

    def _run_on_pair(self, op: str, x: str, y: str, work: UnitOfWork) -> ServiceResult:
        """Run *work* as one unit of work while holding the ``{x, y}`` lock."""
        with self._vault.pair_locks.hold(x, y):
            return self._run_unit_of_work(op, work)

    def _run_on_invitation(
        self,
        op: str,
        invitation_id: str,
        work: _InvitationWork,
    ) -> ServiceResult:
        """Locate the invitation's pair, then run *work* on a fresh read.

        The first read happens without the lock only to learn which pair
        to lock; *work* always receives the row as re-read inside the
        unit of work.
        """
        try:
            with self._vault.snapshot() as view:
                located = view.invitations.get_by_id(invitation_id)
        except NetworkError as exc:
            return self._failure(op, exc)

        return self._run_on_pair(
            op,
            located.requester_id,
            located.recipient_id,
            lambda txn: work(txn, txn.invitations.get_by_id(invitation_id)),
        )

    def _require_profiles(self, txn: VaultTransaction, *user_ids: str) -> None:
        if not self._network.require_profiles:
            return
        for user_id in user_ids:
            if txn.profiles.get_profile(user_id) is None:
                raise NotFoundError(f"Unknown user: {user_id}", detail={"user_id": user_id})

    @staticmethod
    def _connect(txn: VaultTransaction, invitation: Invitation, now: str) -> None:
        """Accept *invitation*: edge, status, and both connection lists together."""
        _require_pending(invitation)
        txn.connections.add_edge(
            invitation.requester_id,
            invitation.recipient_id,
            established_at=now,
            invitation_id=invitation.id,
        )
        txn.invitations.set_status(invitation.id, InvitationStatus.ACCEPTED, resolved_at=now)
        txn.profiles.append_connection(invitation.recipient_id, invitation.requester_id, created=now)
        txn.profiles.append_connection(invitation.requester_id, invitation.recipient_id, created=now)

    # ------------------------------------------------------------------
    # send
    # ------------------------------------------------------------------

    @traced
    def send_request(self, requester_id: str, recipient_id: str) -> ServiceResult:
        """Ask *recipient_id* to connect with *requester_id*.

        Outcomes (all ``ok=True``):

        - ``already_connected``: nothing to do.
        - ``already_sent``: the existing pending invitation is returned.
        - ``already_received``: the recipient had already invited the
          requester. That earlier invitation is accepted on the spot and
          the pair ends up connected.
        - ``sent``: a new pending invitation was created.
        """
        op = "send_request"
        try:
            require_pair(requester_id, recipient_id)
        except NetworkError as exc:
            return self._failure(op, exc)

        def work(txn: VaultTransaction) -> dict[str, Any]:
            self._require_profiles(txn, requester_id, recipient_id)
            base = {"requester_id": requester_id, "recipient_id": recipient_id}

            if txn.connections.has_edge(requester_id, recipient_id):
                return {
                    **base,
                    "outcome": str(SendOutcome.ALREADY_CONNECTED),
                    "status": str(RelationshipStatus.CONNECTED),
                }

            pending = txn.invitations.get_pending_by_pair(requester_id, recipient_id)
            if pending is not None and pending.requester_id == requester_id:
                return {
                    **base,
                    "outcome": str(SendOutcome.ALREADY_SENT),
                    "status": str(RelationshipStatus.PENDING_SENT),
                    "invitation_id": pending.id,
                    "created_at": pending.created_at,
                }

            if pending is not None:
                # Both sides want the connection; the earlier invitation wins.
                self._connect(txn, pending, now_iso())
                logger.info(
                    "Crossed invitations between %s and %s resolved by accepting %s",
                    requester_id,
                    recipient_id,
                    pending.id,
                )
                return {
                    **base,
                    "outcome": str(SendOutcome.ALREADY_RECEIVED),
                    "status": str(RelationshipStatus.CONNECTED),
                    "invitation_id": pending.id,
                    "connections_count": txn.profiles.connections_count(requester_id),
                }

            invitation = txn.invitations.create(requester_id, recipient_id, now=now_iso())
            return {
                **base,
                "outcome": str(SendOutcome.SENT),
                "status": str(RelationshipStatus.PENDING_SENT),
                "invitation_id": invitation.id,
                "created_at": invitation.created_at,
            }

        return self._run_on_pair(op, requester_id, recipient_id, work)

    # ------------------------------------------------------------------
    # resolve
    # ------------------------------------------------------------------

    @traced
    def cancel_request(
        self,
        invitation_id: str,
        actor_id: str,
        recipient_id: str | None = None,
    ) -> ServiceResult:
        """Withdraw a pending invitation. Only its requester may cancel.

        *recipient_id*, when given, must name the invitation's recipient;
        a mismatch means the caller is acting on stale state.
        """

        def work(txn: VaultTransaction, invitation: Invitation) -> dict[str, Any]:
            if actor_id != invitation.requester_id or (
                recipient_id is not None and recipient_id != invitation.recipient_id
            ):
                raise UnauthorizedError(
                    "Only the requester can cancel this invitation",
                    detail={"invitation_id": invitation.id, "actor_id": actor_id},
                )
            _require_pending(invitation)
            resolved = txn.invitations.set_status(
                invitation.id, InvitationStatus.CANCELLED, resolved_at=now_iso()
            )
            return _resolved_data(resolved)

        return self._run_on_invitation("cancel_request", invitation_id, work)

    @traced
    def accept_request(
        self,
        invitation_id: str,
        actor_id: str,
        other_id: str | None = None,
    ) -> ServiceResult:
        """Accept a pending invitation. Only its recipient may accept.

        The edge, the ``accepted`` status, and both users' connection
        lists are written in one unit of work. *other_id*, when given,
        must name the invitation's requester.
        """

        def work(txn: VaultTransaction, invitation: Invitation) -> dict[str, Any]:
            if actor_id != invitation.recipient_id or (
                other_id is not None and other_id != invitation.requester_id
            ):
                raise UnauthorizedError(
                    "Only the recipient can accept this invitation",
                    detail={"invitation_id": invitation.id, "actor_id": actor_id},
                )
            self._connect(txn, invitation, now_iso())
            accepted = txn.invitations.get_by_id(invitation.id)
            return {
                **_resolved_data(accepted),
                "relationship": str(RelationshipStatus.CONNECTED),
                "connections_count": txn.profiles.connections_count(actor_id),
            }

        return self._run_on_invitation("accept_request", invitation_id, work)

    @traced
    def ignore_request(self, invitation_id: str, actor_id: str) -> ServiceResult:
        """Decline a pending invitation without connecting. Recipient only."""

        def work(txn: VaultTransaction, invitation: Invitation) -> dict[str, Any]:
            if actor_id != invitation.recipient_id:
                raise UnauthorizedError(
                    "Only the recipient can ignore this invitation",
                    detail={"invitation_id": invitation.id, "actor_id": actor_id},
                )
            _require_pending(invitation)
            resolved = txn.invitations.set_status(
                invitation.id, InvitationStatus.IGNORED, resolved_at=now_iso()
            )
            return _resolved_data(resolved)

        return self._run_on_invitation("ignore_request", invitation_id, work)

    # ------------------------------------------------------------------
    # disconnect
    # ------------------------------------------------------------------

    @traced
    def disconnect(self, user_id: str, other_id: str) -> ServiceResult:
        """Remove an established connection and both list entries."""
        op = "disconnect"
        try:
            require_pair(user_id, other_id)
        except NetworkError as exc:
            return self._failure(op, exc)

        def work(txn: VaultTransaction) -> dict[str, Any]:
            if not txn.connections.remove_edge(user_id, other_id):
                raise NotFoundError(
                    f"{user_id} and {other_id} are not connected",
                    detail={"user_id": user_id, "other_id": other_id},
                )
            txn.profiles.remove_connection(user_id, other_id)
            txn.profiles.remove_connection(other_id, user_id)
            return {
                "user_id": user_id,
                "other_id": other_id,
                "status": str(RelationshipStatus.NONE),
                "connections_count": txn.profiles.connections_count(user_id),
            }

        return self._run_on_pair(op, user_id, other_id, work)
