"""Pluggy hook specifications for idlroute lifecycle events.

Hooks are dispatched synchronously on the thread that triggered them.
A failing hook implementation is logged as a warning and never affects
the audit or the call that triggered it.
"""

from __future__ import annotations

import pluggy

hookspec = pluggy.HookspecMarker("idlroute")
hookimpl = pluggy.HookimplMarker("idlroute")


class IdlrouteHookSpec:
    """Hook specifications for the idlroute plugin system."""

    @hookspec
    def post_audit(
        self,
        document_source: str,
        service_names: list[str],
        error_count: int,
    ) -> None:
        """Called after an IDL document has been audited."""

    @hookspec
    def post_call(
        self,
        service: str,
        method: str,
        outcome: str,
        duration_ms: float,
    ) -> None:
        """Called after a bound route finished a call.

        ``outcome`` is ``result``, ``exception``, ``error`` or the code of
        the CallError that ended the call.
        """
