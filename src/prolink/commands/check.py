"""Command: connection store integrity checking and repair."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from prolink.commands._base import ProlinkCommand

if TYPE_CHECKING:
    from prolink.commands._context import AppContext


@click.command(
    cls=ProlinkCommand,
    examples="""\
  prolink check
  prolink --json check
  prolink check --rebuild""",
)
@click.option("--rebuild", is_flag=True, help="Rewrite connection lists from the edge set.")
@click.pass_obj
def check(app: AppContext, rebuild: bool) -> None:
    """Verify connection invariants and optionally rebuild connection lists."""
    from prolink.services.check import CheckService

    svc = CheckService(app.vault)
    app.emit(svc.rebuild() if rebuild else svc.check())
