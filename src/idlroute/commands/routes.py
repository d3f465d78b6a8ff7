"""Command: list the REST routes of an IDL file."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from idlroute.commands._base import IdlCommand

if TYPE_CHECKING:
    from idlroute.commands._context import AppContext


@click.command(
    cls=IdlCommand,
    examples="""\
  idlroute routes thrift/service.thrift
  idlroute -v routes                   # include method signatures
  idlroute -q routes                   # one 'VERB /path' per line""",
    settings=("service.idl",),
)
@click.argument("idl", required=False)
@click.pass_obj
def routes(app: AppContext, idl: str | None) -> None:
    """List verb, path, service and method for every bound route."""
    app.emit(app.project.routes(idl))
