"""Rich Console factory and theme for prolink output.

Consoles render into a StringIO buffer so renderers keep a
``ServiceResult -> str`` contract. Rich drops color codes on its own
when there is no terminal (CliRunner, pipes).
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

PROLINK_THEME = Theme(
    {
        "prolink.ok": "bold green",
        "prolink.error": "bold red",
        "prolink.warning": "bold yellow",
        "prolink.op": "bold cyan",
        "prolink.key": "dim",
        "prolink.id": "bold blue",
        "prolink.name": "bold",
        "prolink.status.connected": "green",
        "prolink.status.pending_sent": "yellow",
        "prolink.status.pending_received": "magenta",
        "prolink.status.none": "dim",
    }
)

_STATUS_STYLES: dict[str, str] = {
    "connected": "prolink.status.connected",
    "pending_sent": "prolink.status.pending_sent",
    "pending_received": "prolink.status.pending_received",
    "none": "prolink.status.none",
}


def create_console(*, no_color: bool = False, width: int | None = None) -> Console:
    """Console writing to an in-memory buffer.

    Args:
        no_color: Disable ANSI escape codes.
        width: Fixed terminal width, for stable test output.
    """
    return Console(
        file=StringIO(),
        theme=PROLINK_THEME,
        no_color=no_color,
        highlight=False,
        width=width or 120,
    )


def get_output(console: Console) -> str:
    """Rendered text of a console made by :func:`create_console`."""
    assert isinstance(console.file, StringIO)
    return console.file.getvalue()


def style_for_status(status: str) -> str:
    return _STATUS_STYLES.get(status, "")
