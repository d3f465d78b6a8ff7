"""Subcommand modules for idlroute.

Provides register_commands() which uses deferred imports to keep
``idlroute --help`` fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register all standalone commands on the root CLI group."""
    from idlroute.commands.audit import audit
    from idlroute.commands.call import call
    from idlroute.commands.routes import routes
    from idlroute.commands.serve import serve

    cli.add_command(audit)
    cli.add_command(routes)
    cli.add_command(call)
    cli.add_command(serve)
