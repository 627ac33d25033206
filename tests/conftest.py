"""Shared pytest fixtures and test helpers for prolink tests."""

from __future__ import annotations

from collections.abc import Generator
from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner
from sqlalchemy.engine import Engine

from prolink.config.settings import NetworkSettings
from prolink.infrastructure.database.engine import init_database
from prolink.infrastructure.vault import Vault
from prolink.services.telemetry import _current_span, disable_telemetry


@pytest.fixture(autouse=True)
def _reset_telemetry() -> Generator[None]:
    """``--verbose`` CLI runs switch telemetry on for the whole thread."""
    yield
    disable_telemetry()
    _current_span.set(None)


@pytest.fixture(autouse=True)
def _no_config_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("PROLINK_CONFIG", raising=False)


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def db_engine(tmp_path: Path) -> Generator[Engine]:
    """Initialized SQLite engine with all tables created."""
    engine = init_database(tmp_path)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def vault(tmp_path: Path) -> Generator[Vault]:
    """Fully initialized vault on a temp data directory."""
    settings = NetworkSettings.from_cli(data_root=tmp_path)
    v = Vault(settings)
    try:
        yield v
    finally:
        v.close()


@pytest.fixture
def _isolated_vault(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Change CWD to a temp directory so the CLI creates an isolated database.

    Use via ``@pytest.mark.usefixtures("_isolated_vault")`` on command test
    classes.
    """
    monkeypatch.chdir(tmp_path)


# ---------------------------------------------------------------------------
# Shared test helpers
# ---------------------------------------------------------------------------


def register_profile(vault: Vault, user_id: str, **kwargs: Any) -> dict[str, Any]:
    """Register a profile via ProfileService, asserting success."""
    from prolink.services.profile import ProfileService

    first_name = kwargs.pop("first_name", user_id.capitalize())
    last_name = kwargs.pop("last_name", "Tester")
    email = kwargs.pop("email", f"{user_id}@example.com")
    result = ProfileService(vault).register(user_id, first_name, last_name, email, **kwargs)
    assert result.ok, result.error
    return result.data


def seed_users(vault: Vault, *user_ids: str) -> None:
    for user_id in user_ids:
        register_profile(vault, user_id)


def send(vault: Vault, requester_id: str, recipient_id: str) -> dict[str, Any]:
    """Send a request via RequestResolver, asserting success."""
    from prolink.services.resolver import RequestResolver

    result = RequestResolver(vault).send_request(requester_id, recipient_id)
    assert result.ok, result.error
    return result.data


def connect(vault: Vault, x: str, y: str) -> None:
    """Connect *x* and *y* through a send/accept round."""
    from prolink.services.resolver import RequestResolver

    sent = send(vault, x, y)
    result = RequestResolver(vault).accept_request(sent["invitation_id"], y)
    assert result.ok, result.error
