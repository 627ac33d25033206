"""Command and group classes for the prolink CLI.

Every command can carry a block of usage examples. ``--help`` stays
short; ``--examples`` prints the block and exits before any argument
validation runs, so ``prolink invite accept --examples`` works without
an invitation id.
"""

from __future__ import annotations

from typing import Any

import click


class ExamplesOption(click.Option):
    """Eager ``--examples`` flag bound to one command's example text."""

    def __init__(self, text: str) -> None:
        self.text = text.strip("\n")
        super().__init__(
            ["--examples"],
            is_flag=True,
            expose_value=False,
            is_eager=True,
            callback=self._print_and_exit,
            help="Show usage examples and exit.",
        )

    def _print_and_exit(self, ctx: click.Context, _param: click.Parameter, value: bool) -> None:
        if value and not ctx.resilient_parsing:
            click.echo(f"Usage examples for {ctx.command_path}:\n\n{self.text}")
            ctx.exit(0)


class _WithExamples:
    # Mixed in ahead of click.Command / click.Group.
    params: list[click.Parameter]

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.examples = examples
        if examples:
            self.params.append(ExamplesOption(examples))


class ProlinkCommand(_WithExamples, click.Command):
    """Leaf command taking an optional ``examples=`` text."""


class ProlinkGroup(_WithExamples, click.Group):
    """Command group whose subcommands are :class:`ProlinkCommand` by default."""

    command_class = ProlinkCommand
