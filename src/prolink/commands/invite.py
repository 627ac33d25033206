"""Command group: connection requests."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from prolink.commands._base import ProlinkGroup
from prolink.services.query import QueryService
from prolink.services.resolver import RequestResolver

if TYPE_CHECKING:
    from prolink.commands._context import AppContext

_INVITE_EXAMPLES = """\
  prolink invite send alice bob
  prolink invite pending bob
  prolink invite accept inv_0123456789ab --as bob
  prolink invite ignore inv_0123456789ab --as bob
  prolink invite cancel inv_0123456789ab --as alice"""

_actor_option = click.option(
    "--as",
    "actor_id",
    required=True,
    metavar="USER_ID",
    help="The user performing the action.",
)


@click.group(cls=ProlinkGroup, examples=_INVITE_EXAMPLES)
def invite() -> None:
    """Send and resolve connection requests."""


@invite.command(
    examples="""\
  prolink invite send alice bob
  prolink --json invite send alice bob"""
)
@click.argument("requester_id")
@click.argument("recipient_id")
@click.pass_obj
def send(app: AppContext, requester_id: str, recipient_id: str) -> None:
    """Send a connection request from REQUESTER_ID to RECIPIENT_ID."""
    app.emit(RequestResolver(app.vault).send_request(requester_id, recipient_id))


@invite.command(examples="  prolink invite accept inv_0123456789ab --as bob --from alice")
@click.argument("invitation_id")
@_actor_option
@click.option("--from", "other_id", default=None, help="Expected requester of the invitation.")
@click.pass_obj
def accept(app: AppContext, invitation_id: str, actor_id: str, other_id: str | None) -> None:
    """Accept a pending invitation addressed to you."""
    app.emit(RequestResolver(app.vault).accept_request(invitation_id, actor_id, other_id))


@invite.command(examples="  prolink invite cancel inv_0123456789ab --as alice --to bob")
@click.argument("invitation_id")
@_actor_option
@click.option("--to", "recipient_id", default=None, help="Expected recipient of the invitation.")
@click.pass_obj
def cancel(app: AppContext, invitation_id: str, actor_id: str, recipient_id: str | None) -> None:
    """Withdraw an invitation you sent."""
    app.emit(RequestResolver(app.vault).cancel_request(invitation_id, actor_id, recipient_id))


@invite.command(examples="  prolink invite ignore inv_0123456789ab --as bob")
@click.argument("invitation_id")
@_actor_option
@click.pass_obj
def ignore(app: AppContext, invitation_id: str, actor_id: str) -> None:
    """Decline an invitation addressed to you without connecting."""
    app.emit(RequestResolver(app.vault).ignore_request(invitation_id, actor_id))


@invite.command(
    examples="""\
  prolink invite pending bob
  prolink invite pending bob --count"""
)
@click.argument("user_id")
@click.option("--count", "count_only", is_flag=True, help="Only print the number of invitations.")
@click.pass_obj
def pending(app: AppContext, user_id: str, count_only: bool) -> None:
    """List pending invitations addressed to USER_ID, newest first."""
    svc = QueryService(app.vault)
    app.emit(svc.pending_count(user_id) if count_only else svc.pending_invitations(user_id))
