"""ProjectService: the CLI's view of one IDL file and handler.

Each public method returns a ServiceResult; startup errors become
``ok=False`` results so the CLI can render every audit finding.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

from idlroute.errors import ConfigurationError, StartupError
from idlroute.services.result import ServiceResult
from idlroute.services.setup import audit_idl, setup_routes
from idlroute.services.telemetry import traced

if TYPE_CHECKING:
    from idlroute.config.settings import IdlrouteSettings
    from idlroute.plugins.manager import PluginManager

logger = logging.getLogger(__name__)


class ProjectService:
    """Audit, list and invoke the routes of the configured service."""

    def __init__(
        self,
        settings: IdlrouteSettings,
        plugin_manager: PluginManager | None = None,
    ) -> None:
        self._settings = settings
        self._plugins = plugin_manager

    def _idl_path(self, idl: str | None) -> Path:
        value = idl or self._settings.service.idl
        if not value:
            raise ConfigurationError(
                "No IDL file given; pass one or set [service] idl in idlroute.toml"
            )
        return self._settings.resolve_path(value)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @traced("audit")
    def audit(self, idl: str | None = None) -> ServiceResult:
        """Parse and audit an IDL file, reporting every error found."""
        try:
            path = self._idl_path(idl)
            report = audit_idl(path, settings=self._settings, plugin_manager=self._plugins)
            document = report.verified()
        except StartupError as exc:
            return ServiceResult.failure("audit", exc)
        return ServiceResult(
            ok=True,
            op="audit",
            data={
                "source": document.source,
                "services": [
                    {"name": s.name, "methods": len(s.methods)} for s in document.services
                ],
                "error_count": 0,
            },
        )

    @traced("routes")
    def routes(self, idl: str | None = None) -> ServiceResult:
        """List the REST routes of an audited IDL file."""
        try:
            path = self._idl_path(idl)
            report = audit_idl(
                path, settings=self._settings, require_rest=True, plugin_manager=self._plugins
            )
            document = report.verified()
        except StartupError as exc:
            return ServiceResult.failure("routes", exc)

        rows: list[dict[str, Any]] = []
        for service in document.services:
            for method in service.methods:
                assert method.rest is not None
                rows.append(
                    {
                        "verb": str(method.rest.verb),
                        "path": method.rest.path,
                        "service": service.name,
                        "method": method.name,
                        "signature": str(method),
                    }
                )
        return ServiceResult(
            ok=True,
            op="routes",
            data={"source": document.source, "count": len(rows), "routes": rows},
        )

    def call(
        self,
        method: str,
        params: dict[str, Any],
        *,
        idl: str | None = None,
        handler: str | None = None,
    ) -> ServiceResult:
        """Run one method through the full route pipeline in-process."""
        try:
            routes = setup_routes(
                idl=self._idl_path(idl),
                handler=handler,
                settings=self._settings,
                plugin_manager=self._plugins,
            )
        except StartupError as exc:
            return ServiceResult.failure(method, exc)

        route = next((r for r in routes if r.method.name == method), None)
        if route is None:
            known = ", ".join(r.method.name for r in routes)
            exc = ConfigurationError(f"Unknown method '{method}'; expected one of: {known}")
            return ServiceResult.failure(method, exc)
        logger.debug("Calling %s via %s", method, route.rest)
        return route.dispatch(params)
