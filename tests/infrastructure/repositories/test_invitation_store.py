"""Tests for InvitationStore: pending-pair uniqueness and guarded transitions."""

from __future__ import annotations

import pytest
from sqlalchemy.engine import Engine

from prolink.domain.errors import ConflictError, InvariantViolationError, NotFoundError
from prolink.domain.types import InvitationStatus
from prolink.infrastructure.repositories import ConnectionGraph, InvitationStore

T0 = "2026-01-01T00:00:00.000000+00:00"
T1 = "2026-01-01T00:00:01.000000+00:00"
T2 = "2026-01-01T00:00:02.000000+00:00"


class TestCreate:
    def test_creates_pending(self, db_engine: Engine) -> None:
        with db_engine.begin() as conn:
            inv = InvitationStore(conn).create("alice", "bob", now=T0)
        assert inv.status == InvitationStatus.PENDING
        assert inv.requester_id == "alice"
        assert inv.recipient_id == "bob"
        assert inv.pair_key == "alice|bob"
        assert inv.created_at == T0
        assert inv.resolved_at is None

    def test_duplicate_same_direction_conflicts(self, db_engine: Engine) -> None:
        with db_engine.begin() as conn:
            store = InvitationStore(conn)
            first = store.create("alice", "bob", now=T0)
            with pytest.raises(ConflictError) as exc_info:
                store.create("alice", "bob", now=T1)
        assert exc_info.value.detail["invitation_id"] == first.id

    def test_opposite_direction_conflicts(self, db_engine: Engine) -> None:
        with db_engine.begin() as conn:
            store = InvitationStore(conn)
            store.create("alice", "bob", now=T0)
            with pytest.raises(ConflictError):
                store.create("bob", "alice", now=T1)

    def test_connected_pair_conflicts(self, db_engine: Engine) -> None:
        with db_engine.begin() as conn:
            ConnectionGraph(conn).add_edge("alice", "bob", established_at=T0)
            with pytest.raises(ConflictError):
                InvitationStore(conn).create("bob", "alice", now=T1)

    def test_new_invitation_after_terminal(self, db_engine: Engine) -> None:
        with db_engine.begin() as conn:
            store = InvitationStore(conn)
            first = store.create("alice", "bob", now=T0)
            store.set_status(first.id, InvitationStatus.IGNORED, resolved_at=T1)
            second = store.create("alice", "bob", now=T2)
        assert second.id != first.id


class TestReads:
    def test_get_by_id_missing(self, db_engine: Engine) -> None:
        with db_engine.connect() as conn, pytest.raises(NotFoundError):
            InvitationStore(conn).get_by_id("inv_missing")

    def test_get_pending_by_pair_either_order(self, db_engine: Engine) -> None:
        with db_engine.begin() as conn:
            store = InvitationStore(conn)
            inv = store.create("alice", "bob", now=T0)
            assert store.get_pending_by_pair("alice", "bob") == inv
            assert store.get_pending_by_pair("bob", "alice") == inv
            assert store.get_pending_by_pair("alice", "carol") is None

    def test_list_pending_for_recipient_newest_first(self, db_engine: Engine) -> None:
        with db_engine.begin() as conn:
            store = InvitationStore(conn)
            older = store.create("alice", "dave", now=T0)
            newer = store.create("bob", "dave", now=T1)
            resolved = store.create("carol", "dave", now=T2)
            store.set_status(resolved.id, InvitationStatus.IGNORED, resolved_at=T2)
            store.create("dave", "erin", now=T2)

            listed = store.list_pending_for_recipient("dave")
            assert [inv.id for inv in listed] == [newer.id, older.id]
            assert store.count_pending_for_recipient("dave") == 2
            assert store.count_pending_for_recipient("erin") == 1

    def test_same_timestamp_falls_back_to_insert_order(self, db_engine: Engine) -> None:
        with db_engine.begin() as conn:
            store = InvitationStore(conn)
            first = store.create("alice", "dave", now=T0)
            second = store.create("bob", "dave", now=T0)
            assert [inv.id for inv in store.list_pending_for_recipient("dave")] == [
                second.id,
                first.id,
            ]

    def test_duplicate_pending_pairs_empty_normally(self, db_engine: Engine) -> None:
        with db_engine.begin() as conn:
            store = InvitationStore(conn)
            store.create("alice", "bob", now=T0)
            store.create("alice", "carol", now=T0)
            assert store.duplicate_pending_pairs() == []
            assert len(store.list_pending()) == 2

    def test_pending_counterparts_both_directions(self, db_engine: Engine) -> None:
        with db_engine.begin() as conn:
            store = InvitationStore(conn)
            store.create("alice", "bob", now=T0)
            store.create("carol", "alice", now=T0)
            resolved = store.create("alice", "dave", now=T0)
            store.set_status(resolved.id, InvitationStatus.IGNORED, resolved_at=T1)
            store.create("bob", "carol", now=T0)
            assert store.pending_counterparts("alice") == {"bob", "carol"}
            assert store.pending_counterparts("dave") == set()


class TestSetStatus:
    @pytest.mark.parametrize(
        "target",
        [InvitationStatus.ACCEPTED, InvitationStatus.IGNORED, InvitationStatus.CANCELLED],
    )
    def test_resolves_pending(self, db_engine: Engine, target: InvitationStatus) -> None:
        with db_engine.begin() as conn:
            store = InvitationStore(conn)
            inv = store.create("alice", "bob", now=T0)
            resolved = store.set_status(inv.id, target, resolved_at=T1)
        assert resolved.status == target
        assert resolved.resolved_at == T1

    def test_second_resolution_is_invariant_violation(self, db_engine: Engine) -> None:
        with db_engine.begin() as conn:
            store = InvitationStore(conn)
            inv = store.create("alice", "bob", now=T0)
            store.set_status(inv.id, InvitationStatus.ACCEPTED, resolved_at=T1)
            with pytest.raises(InvariantViolationError):
                store.set_status(inv.id, InvitationStatus.IGNORED, resolved_at=T2)

    def test_pending_is_not_a_target(self, db_engine: Engine) -> None:
        with db_engine.begin() as conn:
            store = InvitationStore(conn)
            inv = store.create("alice", "bob", now=T0)
            with pytest.raises(InvariantViolationError):
                store.set_status(inv.id, InvitationStatus.PENDING, resolved_at=T1)

    def test_missing_invitation(self, db_engine: Engine) -> None:
        with db_engine.begin() as conn, pytest.raises(NotFoundError):
            InvitationStore(conn).set_status("inv_nope", InvitationStatus.IGNORED, resolved_at=T1)
