"""Tests for QueryService: status, pending lists, search, and graph reads."""

from __future__ import annotations

import threading
from pathlib import Path

import pytest

from prolink.config.settings import NetworkSettings
from prolink.infrastructure.repositories import ConnectionGraph
from prolink.infrastructure.vault import Vault
from prolink.services.query import QueryService
from prolink.services.resolver import RequestResolver
from prolink.services.result import ServiceResult
from tests.conftest import connect, register_profile, seed_users, send


class TestInvitationStatus:
    def test_none_for_strangers(self, vault: Vault) -> None:
        seed_users(vault, "alice", "bob")
        result = QueryService(vault).invitation_status("alice", "bob")
        assert result.ok
        assert result.data == {"user_id": "alice", "other_id": "bob", "status": "none"}

    def test_pending_includes_invitation_id(self, vault: Vault) -> None:
        seed_users(vault, "alice", "bob")
        inv_id = send(vault, "alice", "bob")["invitation_id"]
        data = QueryService(vault).invitation_status("bob", "alice").data
        assert data["status"] == "pending_received"
        assert data["invitation_id"] == inv_id

    def test_connected_has_no_invitation_id(self, vault: Vault) -> None:
        seed_users(vault, "alice", "bob")
        connect(vault, "alice", "bob")
        data = QueryService(vault).invitation_status("alice", "bob").data
        assert data["status"] == "connected"
        assert "invitation_id" not in data

    def test_self_is_invalid(self, vault: Vault) -> None:
        result = QueryService(vault).invitation_status("alice", "alice")
        assert not result.ok
        assert result.error is not None
        assert result.error.code == "INVALID_ARGUMENT"

    def test_accept_between_reads_is_not_seen(
        self, vault: Vault, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        seed_users(vault, "alice", "bob")
        inv_id = send(vault, "alice", "bob")["invitation_id"]
        original = ConnectionGraph.has_edge
        injected: list[bool] = []
        accepted: list[ServiceResult] = []

        def has_edge_then_accept(self: ConnectionGraph, x: str, y: str) -> bool:
            found = original(self, x, y)
            if not injected:
                injected.append(True)
                worker = threading.Thread(
                    target=lambda: accepted.append(RequestResolver(vault).accept_request(inv_id, "bob"))
                )
                worker.start()
                worker.join(timeout=10)
            return found

        monkeypatch.setattr(ConnectionGraph, "has_edge", has_edge_then_accept)
        data = QueryService(vault).invitation_status("alice", "bob").data
        monkeypatch.undo()

        assert [r.ok for r in accepted] == [True]
        assert data["status"] == "pending_sent"
        assert data["invitation_id"] == inv_id
        assert QueryService(vault).invitation_status("alice", "bob").data["status"] == "connected"


class TestPendingInvitations:
    def test_newest_first_with_profiles(self, vault: Vault) -> None:
        seed_users(vault, "alice", "bob", "carol")
        first = send(vault, "alice", "carol")["invitation_id"]
        second = send(vault, "bob", "carol")["invitation_id"]

        result = QueryService(vault).pending_invitations("carol")
        assert result.ok
        assert result.data["count"] == 2
        items = result.data["items"]
        assert [item["invitation_id"] for item in items] == [second, first]
        assert [item["id"] for item in items] == ["bob", "alice"]
        assert items[0]["name"] == "Bob Tester"
        assert result.warnings == []

    def test_missing_profile_dropped_with_warning(self, vault: Vault) -> None:
        seed_users(vault, "alice", "bob", "carol")
        send(vault, "alice", "carol")
        send(vault, "bob", "carol")
        with vault.transaction() as txn:
            txn.profiles.delete_profile("alice")

        result = QueryService(vault).pending_invitations("carol")
        assert result.ok
        assert [item["id"] for item in result.data["items"]] == ["bob"]
        assert len(result.warnings) == 1
        assert "alice" in result.warnings[0]

    def test_resolved_invitations_disappear(self, vault: Vault) -> None:
        seed_users(vault, "alice", "bob")
        inv_id = send(vault, "alice", "bob")["invitation_id"]
        RequestResolver(vault).ignore_request(inv_id, "bob")
        svc = QueryService(vault)
        assert svc.pending_invitations("bob").data["count"] == 0
        assert svc.pending_count("bob").data["count"] == 0

    def test_pending_count(self, vault: Vault) -> None:
        seed_users(vault, "alice", "bob", "carol")
        send(vault, "alice", "carol")
        send(vault, "bob", "carol")
        result = QueryService(vault).pending_count("carol")
        assert result.op == "pending_count"
        assert result.data == {"user_id": "carol", "count": 2}


class TestSearchProfiles:
    def test_each_profile_once(self, vault: Vault) -> None:
        register_profile(vault, "alice", first_name="Alice", last_name="Alison", email="ali@example.com")
        register_profile(vault, "bob", first_name="Bob", last_name="Stone")

        result = QueryService(vault).search_profiles("ali")
        assert result.ok
        ids = [item["id"] for item in result.data["items"]]
        assert ids == ["alice"]
        assert result.data["count"] == 1

    def test_exact_email(self, vault: Vault) -> None:
        register_profile(vault, "ann", first_name="Ann", email="ann@example.com")
        result = QueryService(vault).search_profiles("ann@example.com")
        assert [item["id"] for item in result.data["items"]] == ["ann"]

    def test_excludes_caller(self, vault: Vault) -> None:
        register_profile(vault, "sam1", first_name="Sam")
        register_profile(vault, "sam2", first_name="Samantha")
        result = QueryService(vault).search_profiles("Sam", exclude_user_id="sam1")
        assert {item["id"] for item in result.data["items"]} == {"sam2"}

    def test_exclusion_does_not_shorten_page(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("PROLINK_NETWORK__SEARCH_PAGE_SIZE", "2")
        v = Vault(NetworkSettings.from_cli(data_root=tmp_path))
        try:
            register_profile(v, "ali1", first_name="Alice")
            register_profile(v, "ali2", first_name="Alina")
            register_profile(v, "ali3", first_name="Alison")
            result = QueryService(v).search_profiles("ali", exclude_user_id="ali1")
        finally:
            v.close()
        assert sorted(item["id"] for item in result.data["items"]) == ["ali2", "ali3"]

    def test_capped_at_page_size(self, vault: Vault) -> None:
        for i in range(15):
            register_profile(vault, f"user{i:02d}", first_name="Jordan", last_name=f"Jones{i}")
        result = QueryService(vault).search_profiles("Jo")
        ids = [item["id"] for item in result.data["items"]]
        assert len(ids) == vault.settings.network.search_page_size
        assert len(set(ids)) == len(ids)

    @pytest.mark.parametrize("term", ["", "   "])
    def test_blank_term(self, vault: Vault, term: str) -> None:
        result = QueryService(vault).search_profiles(term)
        assert result.ok
        assert result.data["items"] == []

    def test_no_match(self, vault: Vault) -> None:
        seed_users(vault, "alice")
        assert QueryService(vault).search_profiles("zzz").data["count"] == 0


class TestGraphReads:
    @pytest.fixture
    def network(self, vault: Vault) -> Vault:
        seed_users(vault, "alice", "bob", "carol", "dave", "erin")
        connect(vault, "alice", "carol")
        connect(vault, "bob", "carol")
        connect(vault, "alice", "dave")
        connect(vault, "bob", "dave")
        connect(vault, "alice", "erin")
        return vault

    def test_connections_sorted(self, network: Vault) -> None:
        result = QueryService(network).connections("alice")
        assert [item["id"] for item in result.data["items"]] == ["carol", "dave", "erin"]
        assert result.data["count"] == 3
        assert result.data["items"][0]["connections_count"] == 2

    def test_mutual_connections(self, network: Vault) -> None:
        result = QueryService(network).mutual_connections("alice", "bob")
        assert result.ok
        assert [item["id"] for item in result.data["items"]] == ["carol", "dave"]

    def test_mutual_with_unknown_user(self, network: Vault) -> None:
        result = QueryService(network).mutual_connections("alice", "ghost")
        assert result.ok
        assert result.data["items"] == []

    def test_suggestions_skip_connected_and_pending(self, network: Vault) -> None:
        svc = QueryService(network)
        assert [item["id"] for item in svc.suggestions("erin").data["items"]] == ["carol", "dave"]

        send(network, "erin", "dave")
        assert [item["id"] for item in svc.suggestions("erin").data["items"]] == ["carol"]

    def test_suggestions_limit(self, network: Vault) -> None:
        result = QueryService(network).suggestions("erin", limit=1)
        assert [item["id"] for item in result.data["items"]] == ["carol"]

    def test_suggestions_for_isolated_user(self, vault: Vault) -> None:
        seed_users(vault, "loner")
        assert QueryService(vault).suggestions("loner").data["items"] == []

    def test_suggestions_see_new_connections(self, network: Vault) -> None:
        svc = QueryService(network)
        assert "bob" not in {item["id"] for item in svc.suggestions("erin").data["items"]}
        connect(network, "erin", "carol")
        ids = [item["id"] for item in svc.suggestions("erin").data["items"]]
        assert "bob" in ids
        assert "carol" not in ids


class TestNearby:
    @pytest.fixture
    def city(self, vault: Vault) -> Vault:
        register_profile(vault, "alice", location="Berlin")
        register_profile(vault, "bob", location="Berlin")
        register_profile(vault, "carol", location="Berlin")
        register_profile(vault, "dave", location="London")
        connect(vault, "alice", "bob")
        return vault

    def test_excludes_self_and_connections(self, city: Vault) -> None:
        result = QueryService(city).nearby("alice", "Berlin")
        assert result.ok
        assert [item["id"] for item in result.data["items"]] == ["carol"]
        assert result.data["location"] == "Berlin"

    def test_blank_location(self, city: Vault) -> None:
        result = QueryService(city).nearby("alice", " ")
        assert result.error is not None
        assert result.error.code == "INVALID_ARGUMENT"

    def test_unknown_user(self, city: Vault) -> None:
        result = QueryService(city).nearby("ghost", "Berlin")
        assert result.error is not None
        assert result.error.code == "NOT_FOUND"

    def test_full_page_past_many_excluded(self, vault: Vault) -> None:
        register_profile(vault, "me", location="Paris")
        for uid in ["b0", "b1", "b2", "b3", "b4", "b5", "p0", "p1", "x0", "x1", "x2", "x3"]:
            register_profile(vault, uid, location="Paris")
        for uid in ["b0", "b1", "b2", "b3", "b4", "b5"]:
            connect(vault, "me", uid)
        send(vault, "me", "p0")
        send(vault, "p1", "me")

        result = QueryService(vault).nearby("me", "Paris", limit=3)
        assert [item["id"] for item in result.data["items"]] == ["x0", "x1", "x2"]
