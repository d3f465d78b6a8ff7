"""serve: run the FastAPI host adapter (requires idlroute[http] extra)."""

from __future__ import annotations

import click

from idlroute.commands._base import IdlCommand


@click.command(
    cls=IdlCommand,
    examples="""\
  # Serve [service] idl / handler from idlroute.toml on the configured address
  idlroute serve

  # Custom bind address
  idlroute serve --host 0.0.0.0 --port 9000""",
    settings=("service.idl", "service.handler", "http.host", "http.port", "http.prefix"),
)
@click.option("--host", default=None, help="Bind address (default: [http] host).")
@click.option("--port", default=None, type=int, help="Listen port (default: [http] port).")
@click.pass_obj
def serve(app: object, host: str | None, port: int | None) -> None:
    """Serve the configured service over HTTP (requires idlroute[http] extra)."""
    from idlroute.http.server import create_app, http_available

    if not http_available:
        click.echo("HTTP extra not installed. Install with: pip install idlroute[http]", err=True)
        raise SystemExit(1)

    import uvicorn

    from idlroute.commands._context import AppContext
    from idlroute.errors import StartupError
    from idlroute.services.result import ServiceResult

    assert isinstance(app, AppContext)
    try:
        asgi = create_app(app.settings, plugin_manager=app.plugins)
    except StartupError as exc:
        app.emit(ServiceResult.failure("serve", exc))
        return

    http = app.settings.http
    uvicorn.run(asgi, host=host or http.host, port=port or http.port, log_config=None)
