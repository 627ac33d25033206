"""Command group: relationship status and connection graph reads."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from prolink.commands._base import ProlinkGroup
from prolink.services.query import QueryService
from prolink.services.resolver import RequestResolver

if TYPE_CHECKING:
    from prolink.commands._context import AppContext

_NETWORK_EXAMPLES = """\
  prolink network status alice bob
  prolink network connections alice
  prolink network mutual alice bob
  prolink network suggest alice --limit 3
  prolink network disconnect alice bob"""


@click.group(cls=ProlinkGroup, examples=_NETWORK_EXAMPLES)
def network() -> None:
    """Inspect and manage established connections."""


@network.command(examples="  prolink network status alice bob")
@click.argument("user_id")
@click.argument("other_id")
@click.pass_obj
def status(app: AppContext, user_id: str, other_id: str) -> None:
    """Relationship between USER_ID and OTHER_ID, as USER_ID sees it."""
    app.emit(QueryService(app.vault).invitation_status(user_id, other_id))


@network.command(examples="  prolink -q network connections alice")
@click.argument("user_id")
@click.pass_obj
def connections(app: AppContext, user_id: str) -> None:
    """List USER_ID's connections."""
    app.emit(QueryService(app.vault).connections(user_id))


@network.command(examples="  prolink network mutual alice bob")
@click.argument("user_id")
@click.argument("other_id")
@click.pass_obj
def mutual(app: AppContext, user_id: str, other_id: str) -> None:
    """List connections shared by USER_ID and OTHER_ID."""
    app.emit(QueryService(app.vault).mutual_connections(user_id, other_id))


@network.command(examples="  prolink network suggest alice --limit 3")
@click.argument("user_id")
@click.option("--limit", default=None, type=click.IntRange(min=1), help="Max results.")
@click.pass_obj
def suggest(app: AppContext, user_id: str, limit: int | None) -> None:
    """Friends of friends that USER_ID has no relationship with yet."""
    app.emit(QueryService(app.vault).suggestions(user_id, limit=limit))


@network.command(examples="  prolink network disconnect alice bob")
@click.argument("user_id")
@click.argument("other_id")
@click.pass_obj
def disconnect(app: AppContext, user_id: str, other_id: str) -> None:
    """Remove the connection between USER_ID and OTHER_ID."""
    app.emit(RequestResolver(app.vault).disconnect(user_id, other_id))
