"""Operation-specific Rich renderers for ServiceResult.

Each renderer writes to a Rich Console (backed by StringIO).  The caller
extracts the rendered text via ``get_output(console)``.

Renderers are dispatched by ``result.op`` in :func:`render_result`.
Unknown ops (e.g. ``Accounts.createAccount`` from ``idlroute call``)
fall through to a generic key-value renderer.
"""

from __future__ import annotations

import json as _json
from typing import TYPE_CHECKING, Any

from rich.table import Table
from rich.text import Text

from idlroute.output.console import create_console, get_output, style_for_verb

if TYPE_CHECKING:
    from rich.console import Console

    from idlroute.services.result import ServiceResult


# ── Public API ────────────────────────────────────────────────────────


def render_result(result: ServiceResult, *, verbose: bool = False) -> str:
    """Render a ServiceResult to a styled string via Rich.

    Returns plain text (no ANSI) when Rich detects no terminal,
    which is the case inside Click's CliRunner and piped output.
    """
    console = create_console()

    if result.ok:
        renderer = _OP_RENDERERS.get(result.op, _render_generic)
        renderer(result, console, verbose=verbose)
    else:
        _render_error(result, console, verbose=verbose)

    return get_output(console).rstrip("\n")


def render_quiet(result: ServiceResult) -> str:
    """Render minimal output for ``--quiet`` mode."""
    if not result.ok:
        msg = result.error.message.splitlines()[0] if result.error else "Unknown error"
        return f"ERROR: {result.op} — {msg}"
    if result.op == "routes":
        return "\n".join(
            f"{r['verb']} {r['path']}" for r in result.data.get("routes", [])
        )
    if "result" in result.data:
        return _scalar(result.data["result"])
    return f"OK: {result.op}"


# ── Helpers ───────────────────────────────────────────────────────────


def _scalar(value: Any) -> str:
    if isinstance(value, (dict, list)):
        return _json.dumps(value, separators=(",", ":"), default=str)
    return str(value)


def _status_line(console: Console, result: ServiceResult) -> None:
    """Print the OK status line."""
    label = Text("OK", style="idl.ok")
    op = Text(f"  {result.op}", style="idl.op")
    console.print(label, op, end="")
    console.print()


def _field(console: Console, key: str, value: Any) -> None:
    """Print a single indented key-value field."""
    k = Text(f"  {key}: ", style="idl.key")
    v = Text(_scalar(value), style="idl.path" if key in ("source", "path") else "")
    console.print(k, v, end="")
    console.print()


def _render_meta(console: Console, result: ServiceResult) -> None:
    """Print meta block including telemetry span tree (verbose only)."""
    if not result.meta:
        return

    console.print()
    console.print(Text("  meta:", style="dim"))

    for k, v in result.meta.items():
        if k == "telemetry":
            _render_telemetry_tree(console, v, indent=4)
        else:
            console.print(f"    {k}: {v}")


def _render_telemetry_tree(
    console: Console,
    span_data: dict[str, Any],
    indent: int = 4,
) -> None:
    """Render a hierarchical span tree with color-coded timing."""
    prefix = " " * indent
    name = span_data.get("name", "?")
    duration = span_data.get("duration_ms", 0.0)

    if duration > 1000:
        style = "bold red"
    elif duration > 100:
        style = "yellow"
    else:
        style = "dim"

    line = Text(prefix)
    line.append(f"{duration:>8.2f}ms", style=style)
    line.append(f"  {name}")
    annotations = span_data.get("annotations") or {}
    if annotations:
        line.append(f"  ({', '.join(f'{k}={v}' for k, v in annotations.items())})")
    console.print(line)

    for child in span_data.get("children", []):
        _render_telemetry_tree(console, child, indent=indent + 4)


# ── Error renderer ────────────────────────────────────────────────────


def _render_error(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    err = result.error
    msg = err.message.splitlines()[0] if err else "Unknown error"
    label = Text("ERROR", style="idl.error")
    op = Text(f"  {result.op}", style="idl.op")
    console.print(label, op, Text(" — "), msg)
    if err is None:
        return

    # Audit and validation failures list every offending item.
    for item in err.detail.get("errors", []):
        line = Text("  - ")
        line.append(str(item.get("code") or item.get("field", "")), style="idl.code")
        if item.get("location"):
            line.append(f" [{item['location']}]", style="dim")
        line.append(f": {item.get('message', '')}")
        console.print(line)

    if verbose:
        rest = {k: v for k, v in err.detail.items() if k != "errors"}
        if rest:
            console.print(Text("  detail:", style="dim"))
            for k, v in rest.items():
                console.print(f"    {k}: {v}")
        _render_meta(console, result)


# ── Audit / routes renderers ──────────────────────────────────────────


def _render_audit(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render a clean audit: source, services and method counts."""
    _status_line(console, result)
    _field(console, "source", result.data.get("source", ""))
    services = result.data.get("services", [])
    for service in services:
        _field(console, service["name"], f"{service['methods']} method(s)")
    if verbose:
        _render_meta(console, result)


def _render_routes(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render the route table."""
    routes = result.data.get("routes", [])
    if not routes:
        console.print("[idl.warning]No routes[/idl.warning]")
        return

    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("Verb", no_wrap=True)
    table.add_column("Path", style="idl.path", no_wrap=True)
    table.add_column("Service")
    table.add_column("Method", style="idl.method")
    if verbose:
        table.add_column("Signature", style="dim")

    for route in routes:
        row = [
            Text(route["verb"], style=style_for_verb(route["verb"])),
            route["path"],
            route["service"],
            route["method"],
        ]
        if verbose:
            row.append(route.get("signature", ""))
        table.add_row(*row)
    console.print(table)
    console.print(f"\n{len(routes)} route(s) from {result.data.get('source', '')}")


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
    "audit": _render_audit,
    "routes": _render_routes,
}
