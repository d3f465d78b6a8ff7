"""FastAPI application factory.

Optional extra: guarded behind try/except ImportError.
"""

from __future__ import annotations

from typing import Any

from idlroute.config.settings import IdlrouteSettings
from idlroute.plugins.manager import PluginManager
from idlroute.services.binder import BoundRoute

http_available = False
_FastAPI: Any = None
_APIRouter: Any = None

try:
    from fastapi import APIRouter as _APIRouter  # type: ignore[no-redef]
    from fastapi import FastAPI as _FastAPI  # type: ignore[no-redef]

    http_available = True
except ImportError:
    pass

__all__ = ["create_app", "http_available"]


def create_app(
    settings: IdlrouteSettings | None = None,
    *,
    routes: list[BoundRoute] | None = None,
    plugin_manager: PluginManager | None = None,
) -> Any:
    """Create a FastAPI app serving the configured service.

    Routes are bound with :func:`~idlroute.services.setup.setup_routes`
    unless *routes* is given.  Startup errors propagate, so a broken IDL
    or handler never yields a half-configured app.

    Raises RuntimeError if the http extra is not installed.
    """
    if not http_available or _FastAPI is None:
        msg = "HTTP extra not installed. Install with: pip install idlroute[http]"
        raise RuntimeError(msg)

    from idlroute import __version__
    from idlroute.http.routes import install_routes
    from idlroute.services.setup import setup_routes

    settings = settings or IdlrouteSettings.from_cli()
    if routes is None:
        routes = setup_routes(settings=settings, plugin_manager=plugin_manager)

    title = routes[0].service.name if routes else "idlroute"
    app = _FastAPI(title=title, version=__version__)
    router = _APIRouter(prefix=settings.http.prefix)
    install_routes(router, routes)
    app.include_router(router)
    return app
