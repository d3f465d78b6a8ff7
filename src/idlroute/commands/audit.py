"""Command: audit an IDL file."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from idlroute.commands._base import IdlCommand

if TYPE_CHECKING:
    from idlroute.commands._context import AppContext


@click.command(
    cls=IdlCommand,
    examples="""\
  idlroute audit thrift/service.thrift
  idlroute audit                       # uses [service] idl from idlroute.toml
  idlroute --json audit thrift/service.thrift""",
    settings=(
        "service.idl",
        "audit.require_method_docs",
        "audit.require_rest",
        "audit.audit_types",
    ),
)
@click.argument("idl", required=False)
@click.pass_obj
def audit(app: AppContext, idl: str | None) -> None:
    """Check an IDL file for missing docs, REST bindings and type order."""
    app.emit(app.project.audit(idl))
