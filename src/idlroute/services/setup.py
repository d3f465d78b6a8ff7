"""setup_routes: configuration in, audited and bound routes out.

Startup is all-or-nothing: a missing setting, an unreadable or invalid IDL
file, a failed audit or a handler that does not cover its service raises
a :class:`~idlroute.errors.StartupError` and nothing is bound.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from idlroute.config.settings import IdlrouteSettings
from idlroute.domain.parser import parse_idl
from idlroute.errors import ConfigurationError
from idlroute.infrastructure.loader import load_handler_class, read_idl_file
from idlroute.plugins.manager import PluginManager
from idlroute.services.auditor import AuditReport, SchemaAuditor
from idlroute.services.binder import BoundRoute, RouteBinder
from idlroute.services.telemetry import trace_span

logger = logging.getLogger(__name__)


def audit_idl(
    path: Path,
    *,
    settings: IdlrouteSettings,
    require_rest: bool | None = None,
    audit_types: bool | None = None,
    plugin_manager: PluginManager | None = None,
) -> AuditReport:
    """Read, parse and audit the IDL file at *path*.

    The audit options come from ``settings.audit``; *require_rest* and
    *audit_types* override the configured values.

    Raises:
        ConfigurationError: The file cannot be read.
        IdlParseError: The file is not valid IDL.
    """
    with trace_span("parse"):
        document = parse_idl(read_idl_file(path), source=str(path))
    auditor = SchemaAuditor(
        require_method_docs=settings.audit.require_method_docs,
        require_rest=settings.audit.require_rest if require_rest is None else require_rest,
        audit_types=settings.audit.audit_types if audit_types is None else audit_types,
    )
    with trace_span("audit"):
        report = auditor.audit(document)
    if plugin_manager is not None:
        plugin_manager.dispatch(
            "post_audit",
            document_source=document.source,
            service_names=document.service_names,
            error_count=len(report.errors),
        )
    return report


def setup_routes(
    *,
    idl: str | Path | None = None,
    handler: str | type[Any] | None = None,
    settings: IdlrouteSettings | None = None,
    plugin_manager: PluginManager | None = None,
) -> list[BoundRoute]:
    """Build the bound routes for one IDL file and handler class.

    Args:
        idl: Path to the IDL file.  Defaults to ``[service] idl``.
        handler: Handler class, or ``package.module:Class``.  Defaults to
            ``[service] handler``.
        settings: Defaults to settings discovered from the working directory.
        plugin_manager: Receives ``post_audit`` and every ``post_call``.

    Raises:
        StartupError: Any configuration, parse, audit or binding failure.
    """
    settings = settings or IdlrouteSettings.from_cli()
    idl = idl or settings.service.idl
    handler = handler or settings.service.handler

    if not idl or not handler:
        missing = [
            key for key, value in (("service.idl", idl), ("service.handler", handler)) if not value
        ]
        raise ConfigurationError(f"Missing configuration settings: {'; '.join(missing)}")

    path = settings.resolve_path(idl)
    # Binding needs a REST binding on every method and every type resolvable.
    report = audit_idl(
        path,
        settings=settings,
        require_rest=True,
        audit_types=True,
        plugin_manager=plugin_manager,
    )
    document = report.verified()

    handler_cls = (
        load_handler_class(handler, search_path=settings.project_root)
        if isinstance(handler, str)
        else handler
    )
    binder = RouteBinder(document, handler_cls, plugin_manager=plugin_manager)
    routes = binder.bind()
    logger.info("Bound %d route(s) from %s", len(routes), path)
    return routes
