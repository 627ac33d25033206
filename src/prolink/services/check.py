"""CheckService: integrity checks over the connection store.

Verifies the cross-entity invariants that the resolver maintains:

- every edge appears in both users' connection lists,
- every list entry has a matching edge and a mirror entry,
- no pair holds both a pending invitation and a connection,
- no pair holds more than one pending invitation,
- every user's ``connections_count`` equals their degree in the edge set.

``rebuild()`` rewrites the per-user lists from the edge set, which is
the source of truth.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from prolink.domain.ids import sorted_pair
from prolink.services._helpers import now_iso
from prolink.services.base import BaseService
from prolink.services.result import ServiceResult
from prolink.services.telemetry import trace_span, traced

if TYPE_CHECKING:
    from prolink.infrastructure.vault import VaultTransaction

logger = logging.getLogger(__name__)


def _issue(kind: str, message: str, **detail: Any) -> dict[str, Any]:
    return {"kind": kind, "message": message, **detail}


class CheckService(BaseService):
    """Integrity verification and projection rebuild."""

    @traced
    def check(self) -> ServiceResult:
        """Report every invariant violation found. Read-only."""
        issues: list[dict[str, Any]] = []

        with self._vault.snapshot() as view:
            edges = set(view.connections.all_edges())
            rows = set(view.profiles.projection_rows())
            pending = view.invitations.list_pending()
            duplicates = view.invitations.duplicate_pending_pairs()

        with trace_span("projection"):
            for user_id, other_id in sorted(rows):
                if (other_id, user_id) not in rows:
                    issues.append(
                        _issue(
                            "asymmetric_list",
                            f"{other_id} is in {user_id}'s list but not the reverse",
                            user_id=user_id,
                            other_id=other_id,
                        )
                    )
                if sorted_pair(user_id, other_id) not in edges:
                    issues.append(
                        _issue(
                            "list_without_edge",
                            f"{user_id} lists {other_id} but they are not connected",
                            user_id=user_id,
                            other_id=other_id,
                        )
                    )

            for user_a, user_b in sorted(edges):
                if (user_a, user_b) not in rows or (user_b, user_a) not in rows:
                    issues.append(
                        _issue(
                            "edge_missing_from_list",
                            f"Connection {user_a}-{user_b} is missing from a connection list",
                            user_id=user_a,
                            other_id=user_b,
                        )
                    )

        with trace_span("degree"):
            degrees: dict[str, int] = {}
            for user_a, user_b in edges:
                degrees[user_a] = degrees.get(user_a, 0) + 1
                degrees[user_b] = degrees.get(user_b, 0) + 1
            counts: dict[str, int] = {}
            for user_id, _ in rows:
                counts[user_id] = counts.get(user_id, 0) + 1
            for user_id in sorted(set(degrees) | set(counts)):
                if degrees.get(user_id, 0) != counts.get(user_id, 0):
                    issues.append(
                        _issue(
                            "count_mismatch",
                            f"{user_id} has degree {degrees.get(user_id, 0)} "
                            f"but connections_count {counts.get(user_id, 0)}",
                            user_id=user_id,
                        )
                    )

        with trace_span("invitations"):
            for invitation in pending:
                pair = sorted_pair(invitation.requester_id, invitation.recipient_id)
                if pair in edges:
                    issues.append(
                        _issue(
                            "pending_and_connected",
                            f"Invitation {invitation.id} is pending but the pair is connected",
                            invitation_id=invitation.id,
                        )
                    )
            for key in duplicates:
                issues.append(
                    _issue("duplicate_pending", f"Pair {key} has several pending invitations", pair=key)
                )

        if issues:
            logger.warning("Integrity check found %d issue(s)", len(issues))

        return ServiceResult(
            ok=True,
            op="check",
            data={
                "count": len(issues),
                "issues": issues,
                "connections": len(edges),
                "pending_invitations": len(pending),
            },
        )

    @traced
    def rebuild(self) -> ServiceResult:
        """Rewrite every connection list from the edge set.

        The edge set is read under the write lock, so no accept can commit
        between the read and the rewrite.
        """

        def work(txn: VaultTransaction) -> dict[str, Any]:
            edges = txn.connections.all_edges()
            written = txn.profiles.replace_projection(edges, created=now_iso())
            return {"connections": len(edges), "rows": written}

        result = self._run_unit_of_work("rebuild", work)
        if result.ok:
            logger.info(
                "Rebuilt connection lists: %d rows from %d edges",
                result.data["rows"],
                result.data["connections"],
            )
        return result
