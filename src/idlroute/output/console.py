"""Rich Console factory and theme for idlroute output.

Creates Console instances that render to a StringIO buffer, preserving
the ``format_result() -> str`` contract.  In non-TTY environments
(tests, pipes) Rich automatically disables color codes.
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

IDLROUTE_THEME = Theme(
    {
        "idl.ok": "bold green",
        "idl.error": "bold red",
        "idl.warning": "bold yellow",
        "idl.op": "bold cyan",
        "idl.key": "dim",
        "idl.path": "bold blue",
        "idl.method": "bold",
        "idl.code": "magenta",
        "idl.verb.get": "green",
        "idl.verb.post": "yellow",
        "idl.verb.put": "blue",
        "idl.verb.patch": "cyan",
        "idl.verb.delete": "red",
    }
)


def create_console(*, no_color: bool = False, width: int | None = None) -> Console:
    """Create a Console that renders to a StringIO buffer.

    Args:
        no_color: Disable ANSI escape codes (used in tests).
        width: Override terminal width (useful for consistent test output).
    """
    return Console(
        file=StringIO(),
        theme=IDLROUTE_THEME,
        no_color=no_color,
        highlight=False,
        width=width or 120,
    )


def get_output(console: Console) -> str:
    """Extract rendered text from a StringIO-backed Console."""
    assert isinstance(console.file, StringIO)
    return console.file.getvalue()


def style_for_verb(verb: str) -> str:
    """Return the Rich style name for an HTTP verb."""
    name = f"idl.verb.{verb.lower()}"
    return name if name in IDLROUTE_THEME.styles else ""
