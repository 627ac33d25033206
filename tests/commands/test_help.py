"""Parametrized help tests for all CLI commands."""

from __future__ import annotations

import pytest
from click.testing import CliRunner

from prolink.cli import cli

# (CLI args, expected keywords in output)
HELP_COMMANDS: list[tuple[list[str], list[str]]] = [
    # -- profile group --
    (["profile", "--help"], ["register", "show", "search", "nearby"]),
    (["profile", "register", "--help"], ["USER_ID", "--first-name", "--email", "--location"]),
    (["profile", "show", "--help"], ["USER_ID"]),
    (["profile", "search", "--help"], ["TERM", "--exclude"]),
    (["profile", "nearby", "--help"], ["LOCATION", "--limit"]),
    # -- invite group --
    (["invite", "--help"], ["send", "accept", "cancel", "ignore", "pending"]),
    (["invite", "send", "--help"], ["REQUESTER_ID", "RECIPIENT_ID"]),
    (["invite", "accept", "--help"], ["INVITATION_ID", "--as", "--from"]),
    (["invite", "cancel", "--help"], ["INVITATION_ID", "--as", "--to"]),
    (["invite", "ignore", "--help"], ["INVITATION_ID", "--as"]),
    (["invite", "pending", "--help"], ["USER_ID", "--count"]),
    # -- network group --
    (["network", "--help"], ["status", "connections", "mutual", "suggest", "disconnect"]),
    (["network", "status", "--help"], ["USER_ID", "OTHER_ID"]),
    (["network", "suggest", "--help"], ["--limit"]),
    # -- check --
    (["check", "--help"], ["--rebuild"]),
]


def _help_id(args_keywords: tuple[list[str], list[str]]) -> str:
    """Generate a readable test ID from args."""
    args, _ = args_keywords
    return "_".join(a for a in args if a != "--help")


@pytest.mark.parametrize(
    "args,expected_keywords",
    HELP_COMMANDS,
    ids=[_help_id(item) for item in HELP_COMMANDS],
)
def test_command_help(cli_runner: CliRunner, args: list[str], expected_keywords: list[str]) -> None:
    result = cli_runner.invoke(cli, args)
    assert result.exit_code == 0
    for kw in expected_keywords:
        assert kw in result.output, f"Expected '{kw}' in help output for {args}"
