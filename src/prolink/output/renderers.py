"""Operation-specific Rich renderers for ServiceResult.

Each renderer writes to a Rich Console backed by StringIO; the caller
extracts the text with ``get_output(console)``.

Renderers are dispatched by ``result.op`` in :func:`render_result`.
Unknown ops fall through to a generic key-value renderer.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from prolink.output.console import create_console, get_output, style_for_status

if TYPE_CHECKING:
    from rich.console import Console

    from prolink.services.result import ServiceResult


# ── Public API ────────────────────────────────────────────────────────


def render_result(result: ServiceResult, *, verbose: bool = False) -> str:
    """Render a ServiceResult to a styled string via Rich.

    Returns plain text when Rich detects no terminal, which is the case
    inside Click's CliRunner and piped output.
    """
    console = create_console()

    if result.ok:
        renderer = _OP_RENDERERS.get(result.op, _render_generic)
        renderer(result, console, verbose=verbose)
    else:
        _render_error(result, console, verbose=verbose)

    return get_output(console).rstrip("\n")


def render_quiet(result: ServiceResult) -> str:
    """Minimal output for ``--quiet`` mode: ids for lists, status otherwise."""
    if not result.ok:
        msg = result.error.message if result.error else "Unknown error"
        return f"ERROR: {result.op} - {msg}"

    items = result.data.get("items")
    if items and isinstance(items, list):
        return "\n".join(str(item["id"]) for item in items if isinstance(item, dict) and "id" in item)

    for key in ("invitation_id", "id", "status"):
        if key in result.data:
            return str(result.data[key])
    return f"OK: {result.op}"


# ── Helpers ───────────────────────────────────────────────────────────


def _status_line(console: Console, result: ServiceResult) -> None:
    label = Text("OK", style="prolink.ok")
    op = Text(f"  {result.op}", style="prolink.op")
    console.print(label, op)


def _field(console: Console, key: str, value: Any) -> None:
    """Print a single indented key-value field."""
    k = Text(f"  {key}: ", style="prolink.key")
    if key == "id" or key.endswith("_id"):
        v = Text(str(value), style="prolink.id")
    elif key in ("status", "relationship"):
        v = Text(str(value), style=style_for_status(str(value)))
    elif key == "name":
        v = Text(str(value), style="prolink.name")
    elif isinstance(value, (dict, list)):
        v = Text(json.dumps(value, separators=(",", ":")))
    else:
        v = Text(str(value))
    console.print(k, v, sep="")


def _render_meta(console: Console, result: ServiceResult) -> None:
    """Print the meta block, including the telemetry span tree."""
    if not result.meta:
        return

    console.print()
    console.print(Text("  meta:", style="dim"))
    for k, v in result.meta.items():
        if k == "telemetry":
            _render_telemetry_tree(console, v, indent=4)
        else:
            console.print(f"    {k}: {v}")


def _render_telemetry_tree(console: Console, span_data: dict[str, Any], indent: int = 4) -> None:
    """Render a span tree with color-coded timings."""
    prefix = " " * indent
    name = span_data.get("name", "?")
    duration = span_data.get("duration_ms", 0.0)

    if duration > 1000:
        style = "bold red"
    elif duration > 100:
        style = "yellow"
    else:
        style = "dim"

    line = f"{prefix}[{style}]{duration:>8.2f}ms[/{style}]  {name}"
    annotations = span_data.get("annotations") or {}
    if annotations:
        line += "  (" + ", ".join(f"{k}={v}" for k, v in annotations.items()) + ")"
    console.print(line)

    for child in span_data.get("children", []):
        _render_telemetry_tree(console, child, indent=indent + 4)


def _profile_table(items: list[dict[str, Any]], *, extra_columns: list[str] | None = None) -> Table:
    """Rich Table for a list of profile items."""
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("ID", style="prolink.id", no_wrap=True)
    table.add_column("Name", style="prolink.name")
    table.add_column("Headline")
    table.add_column("Location")
    table.add_column("Connections", justify="right")
    for col in extra_columns or []:
        table.add_column(col.replace("_", " ").title())

    for item in items:
        row = [
            str(item.get("id", "")),
            str(item.get("name", "")),
            str(item.get("headline") or ""),
            str(item.get("location") or ""),
            str(item.get("connections_count", "")),
        ]
        for col in extra_columns or []:
            row.append(str(item.get(col, "")))
        table.add_row(*row)
    return table


# ── Error renderer ────────────────────────────────────────────────────


def _render_error(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    err = result.error
    msg = err.message if err else "Unknown error"
    label = Text("ERROR", style="prolink.error")
    op = Text(f"  {result.op}", style="prolink.op")
    code = Text(f" [{err.code}]" if err else "", style="prolink.key")
    console.print(label, op, code, Text(" - "), msg, sep="")
    if verbose and err and err.detail:
        console.print(Text("  detail:", style="dim"))
        for k, v in err.detail.items():
            console.print(f"    {k}: {v}")


# ── Request renderers ─────────────────────────────────────────────────


_REQUEST_KEYS = (
    "invitation_id",
    "requester_id",
    "recipient_id",
    "user_id",
    "other_id",
    "outcome",
    "status",
    "relationship",
    "created_at",
    "resolved_at",
    "connections_count",
)


def _render_request(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render send/accept/cancel/ignore/disconnect results."""
    _status_line(console, result)
    for key in _REQUEST_KEYS:
        if key in result.data:
            _field(console, key, result.data[key])
    if verbose:
        _render_meta(console, result)


def _render_status(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render invitation_status as a single relationship line."""
    d = result.data
    status = str(d.get("status", "none"))
    line = Text.assemble(
        (str(d.get("user_id", "?")), "prolink.id"),
        " -> ",
        (str(d.get("other_id", "?")), "prolink.id"),
        ": ",
        (status, style_for_status(status)),
    )
    console.print(line)
    if "invitation_id" in d:
        _field(console, "invitation_id", d["invitation_id"])
    if verbose:
        _render_meta(console, result)


# ── Profile renderers ─────────────────────────────────────────────────


def _render_profile(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render a single profile as a panel."""
    d = result.data
    lines: list[str] = []
    for key in ("headline", "email", "location", "connections_count", "pending_invitations_count"):
        val = d.get(key)
        if val is not None:
            lines.append(f"{key}: {val}")
    title = f"{d.get('id', '?')} - {d.get('name', '')}"
    console.print(Panel("\n".join(lines), title=title, border_style="dim", expand=False))
    if verbose:
        _render_meta(console, result)


def _render_profile_list(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render search, pending, connection, and candidate listings."""
    items = result.data.get("items", [])
    extra = ["invitation_id"] if result.op == "pending_invitations" else None
    if items:
        console.print(_profile_table(items, extra_columns=extra))
    console.print(f"\n{result.data.get('count', len(items))} profiles")
    if verbose:
        _render_meta(console, result)


# ── Check renderers ───────────────────────────────────────────────────


def _render_check(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render integrity issues grouped by kind."""
    issues = result.data.get("issues", [])
    count = result.data.get("count", len(issues))

    if count == 0:
        console.print("[prolink.ok]OK[/prolink.ok]  No issues found.")
        if verbose:
            _render_meta(console, result)
        return

    by_kind: dict[str, list[dict[str, Any]]] = {}
    for issue in issues:
        by_kind.setdefault(str(issue.get("kind", "unknown")), []).append(issue)

    for kind, kind_issues in by_kind.items():
        console.print(f"\n[bold]{kind}[/bold]")
        for issue in kind_issues:
            console.print(f"  [prolink.error]error[/prolink.error]: {issue.get('message', '')}")

    console.print(f"\n{count} issues")
    if verbose:
        _render_meta(console, result)


def _render_rebuild(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    _field(console, "connections", result.data.get("connections", 0))
    _field(console, "rows", result.data.get("rows", 0))
    if verbose:
        _render_meta(console, result)


# ── Generic fallback ──────────────────────────────────────────────────


def _render_generic(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Fallback renderer: status line + all data as key-value pairs."""
    _status_line(console, result)
    for key, value in result.data.items():
        _field(console, key, value)
    if verbose:
        _render_meta(console, result)


# ── Dispatch table ────────────────────────────────────────────────────

_OP_RENDERERS: dict[str, Any] = {
    # Requests
    "send_request": _render_request,
    "accept_request": _render_request,
    "cancel_request": _render_request,
    "ignore_request": _render_request,
    "disconnect": _render_request,
    "invitation_status": _render_status,
    # Profiles
    "register_profile": _render_profile,
    "show_profile": _render_profile,
    "search_profiles": _render_profile_list,
    "pending_invitations": _render_profile_list,
    "connections": _render_profile_list,
    "mutual_connections": _render_profile_list,
    "suggestions": _render_profile_list,
    "nearby": _render_profile_list,
    # Check
    "check": _render_check,
    "rebuild": _render_rebuild,
}
