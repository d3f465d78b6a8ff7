"""Command: invoke one method through the full route pipeline."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

import click

from idlroute.commands._base import IdlCommand

if TYPE_CHECKING:
    from idlroute.commands._context import AppContext


def _collect_params(pairs: tuple[str, ...], data: str | None) -> dict[str, Any]:
    """Merge ``--data`` JSON with ``-p name=value`` pairs.

    A name given more than once becomes a list, like a repeated query
    parameter.
    """
    params: dict[str, Any] = {}
    if data:
        try:
            decoded = json.loads(data)
        except json.JSONDecodeError as exc:
            raise click.BadParameter(f"invalid JSON: {exc.msg}", param_hint="--data") from exc
        if not isinstance(decoded, dict):
            raise click.BadParameter("must be a JSON object", param_hint="--data")
        params.update(decoded)

    for pair in pairs:
        name, sep, value = pair.partition("=")
        if not sep or not name:
            raise click.BadParameter(f"expected name=value, got {pair!r}", param_hint="-p")
        if name not in params:
            params[name] = value
        elif isinstance(params[name], list):
            params[name] = [*params[name], value]
        else:
            params[name] = [params[name], value]
    return params


@click.command(
    cls=IdlCommand,
    examples="""\
  idlroute call createAccount -p username=alice -p password=s3cret
  idlroute call tagAccount -p tags=red -p tags=blue
  idlroute call updateAccount --data '{"id": 42, "owner": {"email": "a@b.c"}}'
  idlroute call createAccount --idl api.thrift --handler myapp.handlers:Accounts -p username=bob""",
    settings=("service.idl", "service.handler"),
)
@click.argument("method")
@click.option("-p", "--param", "pairs", multiple=True, help="Parameter as name=value.")
@click.option("-d", "--data", default=None, help="Parameters as a JSON object.")
@click.option("--idl", default=None, help="IDL file (default: [service] idl).")
@click.option("--handler", default=None, help="Handler as package.module:Class.")
@click.pass_obj
def call(
    app: AppContext,
    method: str,
    pairs: tuple[str, ...],
    data: str | None,
    idl: str | None,
    handler: str | None,
) -> None:
    """Run METHOD locally with the configured handler and print the result."""
    params = _collect_params(pairs, data)
    app.emit(app.project.call(method, params, idl=idl, handler=handler))
