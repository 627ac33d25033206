"""AppContext: shared Click context for all commands.

Created once by the root CLI group and handed to subcommands through
``@click.pass_obj``. Builds the Vault lazily and routes results to
stdout or stderr with the right exit code.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from prolink.config.logging import configure_logging
from prolink.output.formatters import OutputSettings, format_result
from prolink.services.telemetry import enable_telemetry

if TYPE_CHECKING:
    from prolink.config.settings import NetworkSettings
    from prolink.infrastructure.vault import Vault
    from prolink.services.result import ServiceResult


class AppContext:
    """State shared across the command tree.

    The vault is created on first use so ``--help`` and ``--version``
    never touch the database.
    """

    def __init__(self, settings: NetworkSettings) -> None:
        self.settings = settings
        self._vault: Vault | None = None

        configure_logging(verbose=settings.verbose, log_json=settings.log_json)
        if settings.verbose:
            enable_telemetry()

    @property
    def vault(self) -> Vault:
        if self._vault is None:
            from prolink.infrastructure.vault import Vault

            self._vault = Vault(self.settings)
        return self._vault

    def close(self) -> None:
        if self._vault is not None:
            self._vault.close()
            self._vault = None

    def emit(self, result: ServiceResult) -> None:
        """Print *result*; failures go to stderr and exit with code 1.

        Warnings on a successful result are echoed to stderr so they
        never pollute piped output. In JSON mode they are already part
        of the payload.
        """
        settings = OutputSettings(
            json_output=self.settings.json_output,
            quiet=self.settings.quiet,
            verbose=self.settings.verbose,
        )
        output = format_result(result, settings=settings)
        if result.ok:
            click.echo(output)
            if not settings.json_output:
                for warning in result.warnings:
                    click.echo(f"WARNING: {warning}", err=True)
        else:
            click.echo(output, err=True)
            raise SystemExit(1)
