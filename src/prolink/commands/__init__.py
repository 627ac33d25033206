"""Subcommand modules for prolink.

``register_commands()`` imports lazily so ``prolink --help`` stays fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Attach the command groups and standalone commands to *cli*."""
    from prolink.commands.check import check
    from prolink.commands.invite import invite
    from prolink.commands.network import network
    from prolink.commands.profile import profile

    cli.add_command(profile)
    cli.add_command(invite)
    cli.add_command(network)
    cli.add_command(check)
