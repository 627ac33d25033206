"""Command group: profile registration, lookup, and search."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from prolink.commands._base import ProlinkGroup
from prolink.services.profile import ProfileService
from prolink.services.query import QueryService

if TYPE_CHECKING:
    from prolink.commands._context import AppContext

_PROFILE_EXAMPLES = """\
  prolink profile register alice --first-name Alice --last-name Smith --email alice@example.com
  prolink profile show alice
  prolink profile search Ali --exclude alice
  prolink profile nearby alice Berlin"""


@click.group(cls=ProlinkGroup, examples=_PROFILE_EXAMPLES)
def profile() -> None:
    """Register, show, and search member profiles."""


@profile.command(
    examples="""\
  prolink profile register alice --first-name Alice --email alice@example.com
  prolink profile register bob --first-name Bob --last-name Jones --email bob@example.com
  prolink profile register carol --first-name Carol --email carol@example.com --location Berlin"""
)
@click.argument("user_id")
@click.option("--first-name", required=True, help="Given name.")
@click.option("--last-name", default="", help="Family name.")
@click.option("--email", required=True, help="Unique email address.")
@click.option("--headline", default=None, help="Profile headline.")
@click.option("--avatar-url", default=None, help="Avatar image URL.")
@click.option("--location", default=None, help="Location used by 'nearby'.")
@click.pass_obj
def register(
    app: AppContext,
    user_id: str,
    first_name: str,
    last_name: str,
    email: str,
    headline: str | None,
    avatar_url: str | None,
    location: str | None,
) -> None:
    """Register a new profile."""
    app.emit(
        ProfileService(app.vault).register(
            user_id,
            first_name,
            last_name,
            email,
            headline=headline,
            avatar_url=avatar_url,
            location=location,
        )
    )


@profile.command(examples="  prolink profile show alice")
@click.argument("user_id")
@click.pass_obj
def show(app: AppContext, user_id: str) -> None:
    """Show a profile with its connection and invitation counts."""
    app.emit(ProfileService(app.vault).show(user_id))


@profile.command(
    examples="""\
  prolink profile search Ali
  prolink profile search alice@example.com
  prolink -q profile search sm --exclude alice"""
)
@click.argument("term")
@click.option("--exclude", "exclude_user_id", default=None, help="User id to leave out.")
@click.pass_obj
def search(app: AppContext, term: str, exclude_user_id: str | None) -> None:
    """Find profiles by name prefix or exact email."""
    app.emit(QueryService(app.vault).search_profiles(term, exclude_user_id=exclude_user_id))


@profile.command(examples="  prolink profile nearby alice Berlin --limit 10")
@click.argument("user_id")
@click.argument("location")
@click.option("--limit", default=None, type=click.IntRange(min=1), help="Max results.")
@click.pass_obj
def nearby(app: AppContext, user_id: str, location: str, limit: int | None) -> None:
    """List people in LOCATION that USER_ID has no relationship with."""
    app.emit(QueryService(app.vault).nearby(user_id, location, limit=limit))
