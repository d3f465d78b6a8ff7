"""idlroute: expose Thrift IDL methods as individually invocable REST handlers."""

from __future__ import annotations

__version__ = "0.1.0"

from idlroute.services.binder import BoundRoute, RouteBinder
from idlroute.services.context import CallContext
from idlroute.services.handler import Handler, handles
from idlroute.services.setup import setup_routes

__all__ = [
    "BoundRoute",
    "CallContext",
    "Handler",
    "RouteBinder",
    "__version__",
    "handles",
    "setup_routes",
]
