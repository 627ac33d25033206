"""QueryService: read-only projections over invitations and connections.

Nothing here takes a pair lock or opens a write transaction. Reads see
committed state only, so once ``accept_request`` has returned, both
participants observe ``connected``.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import networkx as nx

from prolink.domain.errors import InvalidArgumentError, NetworkError, NotFoundError
from prolink.domain.lifecycle import classify_relationship
from prolink.domain.models import ProfileProjection
from prolink.services._helpers import require_pair
from prolink.services.base import BaseService
from prolink.services.result import ServiceResult
from prolink.services.telemetry import trace_span, traced

if TYPE_CHECKING:
    from prolink.infrastructure.vault import VaultTransaction

logger = logging.getLogger(__name__)


def _list_result(op: str, items: list[dict[str, Any]], **extra: Any) -> ServiceResult:
    return ServiceResult(ok=True, op=op, data={"count": len(items), "items": items, **extra})


class QueryService(BaseService):
    """Relationship status, pending invitations, search, and graph reads."""

    # ------------------------------------------------------------------
    # status
    # ------------------------------------------------------------------

    @traced
    def invitation_status(self, viewer_id: str, other_id: str) -> ServiceResult:
        """Relationship between *viewer_id* and *other_id* from the viewer's side.

        ``connected`` if an edge exists; otherwise ``pending_sent`` /
        ``pending_received`` from the pair's pending invitation; otherwise
        ``none``. ``invitation_id`` is present only for pending states.
        """
        op = "invitation_status"
        try:
            require_pair(viewer_id, other_id)
        except NetworkError as exc:
            return ServiceResult.failure(op, exc)

        with self._vault.snapshot() as view:
            connected = view.connections.has_edge(viewer_id, other_id)
            pending = None if connected else view.invitations.get_pending_by_pair(viewer_id, other_id)

        status = classify_relationship(viewer_id, connected=connected, pending=pending)
        data: dict[str, Any] = {
            "user_id": viewer_id,
            "other_id": other_id,
            "status": str(status),
        }
        if pending is not None:
            data["invitation_id"] = pending.id
        return ServiceResult(ok=True, op=op, data=data)

    # ------------------------------------------------------------------
    # pending invitations
    # ------------------------------------------------------------------

    @traced
    def pending_invitations(self, user_id: str) -> ServiceResult:
        """Pending invitations addressed to *user_id*, newest first.

        Each item is the requester's profile plus ``invitation_id``.
        Invitations whose requester has no profile are dropped and
        reported as warnings.
        """
        op = "pending_invitations"
        warnings: list[str] = []
        items: list[dict[str, Any]] = []

        with self._vault.snapshot() as view:
            pending = view.invitations.list_pending_for_recipient(user_id)
            profiles = view.profiles.get_profiles([inv.requester_id for inv in pending])

        for invitation in pending:
            profile = profiles.get(invitation.requester_id)
            if profile is None:
                logger.warning(
                    "Dropping invitation %s: no profile for requester %s",
                    invitation.id,
                    invitation.requester_id,
                )
                warnings.append(
                    f"Skipped invitation {invitation.id}: unknown requester {invitation.requester_id}"
                )
                continue
            items.append(
                {
                    **profile.to_item(),
                    "invitation_id": invitation.id,
                    "created_at": invitation.created_at,
                }
            )

        return ServiceResult(
            ok=True,
            op=op,
            data={"user_id": user_id, "count": len(items), "items": items},
            warnings=warnings,
        )

    # ------------------------------------------------------------------
    # profile search
    # ------------------------------------------------------------------

    @traced
    def search_profiles(self, term: str, exclude_user_id: str | None = None) -> ServiceResult:
        """Profiles matching *term* by name prefix or exact email.

        Each profile appears at most once, *exclude_user_id* never
        appears, and the list is capped at ``network.search_page_size``.
        Order across match kinds is not part of the contract.
        """
        op = "search_profiles"
        if not term.strip():
            return _list_result(op, [], term=term)

        page_size = self._network.search_page_size
        with self._vault.snapshot() as view:
            matches = view.profiles.search(
                term,
                limit=page_size,
                exclude_ids=[exclude_user_id] if exclude_user_id else (),
            )

        unique: dict[str, ProfileProjection] = {}
        for profile in matches:
            if profile.id in unique:
                continue
            unique[profile.id] = profile
            if len(unique) >= page_size:
                break

        return _list_result(op, [p.to_item() for p in unique.values()], term=term)

    # ------------------------------------------------------------------
    # connections
    # ------------------------------------------------------------------

    @traced
    def connections(self, user_id: str) -> ServiceResult:
        """Profiles of everyone connected to *user_id*, ordered by id."""
        op = "connections"
        warnings: list[str] = []

        with self._vault.snapshot() as view:
            neighbor_ids = sorted(view.connections.neighbors(user_id))
            profiles = view.profiles.get_profiles(neighbor_ids)

        items: list[dict[str, Any]] = []
        for other_id in neighbor_ids:
            profile = profiles.get(other_id)
            if profile is None:
                warnings.append(f"Connection {other_id} has no profile")
                items.append({"id": other_id, "name": other_id})
                continue
            items.append(profile.to_item())

        return ServiceResult(
            ok=True,
            op=op,
            data={"user_id": user_id, "count": len(items), "items": items},
            warnings=warnings,
        )

    @traced
    def mutual_connections(self, user_id: str, other_id: str) -> ServiceResult:
        """Users connected to both *user_id* and *other_id*."""
        op = "mutual_connections"
        try:
            require_pair(user_id, other_id)
        except NetworkError as exc:
            return ServiceResult.failure(op, exc)

        g = self._vault.graph.graph
        with trace_span("common_neighbors"):
            if user_id in g and other_id in g:
                mutual = sorted(nx.common_neighbors(g, user_id, other_id))
            else:
                mutual = []

        with self._vault.snapshot() as view:
            profiles = view.profiles.get_profiles(mutual)

        items = [
            profiles[uid].to_item() if uid in profiles else {"id": uid, "name": uid}
            for uid in mutual
        ]
        return _list_result(op, items, user_id=user_id, other_id=other_id)

    # ------------------------------------------------------------------
    # candidate listings (unranked)
    # ------------------------------------------------------------------

    @staticmethod
    def _blocked_for(view: VaultTransaction, user_id: str) -> set[str]:
        """Users already connected to, or pending with, *user_id*, plus the user."""
        blocked = view.connections.neighbors(user_id) | view.invitations.pending_counterparts(user_id)
        blocked.add(user_id)
        return blocked

    @traced
    def suggestions(self, user_id: str, *, limit: int | None = None) -> ServiceResult:
        """Friends-of-friends the user has no relationship with yet.

        Looks at the neighbors of the first ``network.suggestion_fanout``
        connections (by id). Results are ordered by id: this is a
        candidate list, not a ranking.
        """
        op = "suggestions"
        limit = limit or self._network.suggestion_limit
        g = self._vault.graph.graph
        if user_id not in g or g.degree(user_id) == 0:
            return _list_result(op, [], user_id=user_id)

        with trace_span("friends_of_friends") as span:
            direct = sorted(g.neighbors(user_id))[: self._network.suggestion_fanout]
            candidates: set[str] = set()
            for friend in direct:
                candidates.update(g.neighbors(friend))
            if span:
                span.annotate("candidates", len(candidates))

        ordered = sorted(candidates)
        with self._vault.snapshot() as view:
            blocked = self._blocked_for(view, user_id)
            chosen = [uid for uid in ordered if uid not in blocked][:limit]
            profiles = view.profiles.get_profiles(chosen)
        items = [profiles[uid].to_item() for uid in chosen if uid in profiles]
        return _list_result(op, items, user_id=user_id)

    @traced
    def nearby(self, user_id: str, location: str, *, limit: int | None = None) -> ServiceResult:
        """Profiles in *location* the user has no relationship with yet."""
        op = "nearby"
        limit = limit or self._network.suggestion_limit
        if not location.strip():
            return ServiceResult.failure(
                op, InvalidArgumentError("Location must not be blank", detail={"location": location})
            )

        with self._vault.snapshot() as view:
            if view.profiles.get_profile(user_id) is None:
                return ServiceResult.failure(
                    op, NotFoundError(f"Unknown user: {user_id}", detail={"user_id": user_id})
                )
            found = view.profiles.find_by_location(
                location, limit=limit, exclude_ids=self._blocked_for(view, user_id)
            )

        items = [p.to_item() for p in found]
        return _list_result(op, items, user_id=user_id, location=location)

    # ------------------------------------------------------------------
    # badge count
    # ------------------------------------------------------------------

    @traced
    def pending_count(self, user_id: str) -> ServiceResult:
        """Number of pending invitations addressed to *user_id*."""
        with self._vault.snapshot() as view:
            count = view.invitations.count_pending_for_recipient(user_id)
        return ServiceResult(ok=True, op="pending_count", data={"user_id": user_id, "count": count})
