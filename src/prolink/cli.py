"""Root CLI group for prolink with global flags and command registration."""

from __future__ import annotations

from pathlib import Path

import click

from prolink import __version__
from prolink.commands import register_commands
from prolink.commands._context import AppContext
from prolink.config.settings import NetworkSettings


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="prolink")
@click.option("--json", "json_output", is_flag=True, help="Structured JSON output.")
@click.option("-q", "--quiet", is_flag=True, help="Minimal output.")
@click.option("-v", "--verbose", is_flag=True, help="Detailed output with debug info.")
@click.option("--log-json", is_flag=True, help="Structured JSON log output to stderr.")
@click.option("-c", "--config", "config_path", default=None, help="Override config file path.")
@click.option(
    "--data-dir",
    "data_root",
    default=None,
    type=click.Path(file_okay=False, path_type=Path),
    help="Directory holding .prolink/prolink.db.",
)
@click.pass_context
def cli(
    ctx: click.Context,
    json_output: bool,
    quiet: bool,
    verbose: bool,
    log_json: bool,
    config_path: str | None,
    data_root: Path | None,
) -> None:
    """prolink: connection requests for a professional network."""
    settings = NetworkSettings.from_cli(
        config_path=config_path,
        data_root=data_root,
        json_output=json_output,
        quiet=quiet,
        verbose=verbose,
        log_json=log_json,
    )
    app = AppContext(settings)
    ctx.obj = app
    ctx.call_on_close(app.close)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


register_commands(cli)
