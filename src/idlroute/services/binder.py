"""RouteBinder: checks a handler class against a service and binds its routes.

Binding happens once at startup and raises :class:`HandlerBindingError`
for any mismatch.  Each resulting :class:`BoundRoute` is a callable that
runs one request through the full pipeline::

    compose_call -> constraints -> CallContext -> ActionExecutor -> compose_reply

Bound routes only share read-only state (the audited document and the
prebuilt message adapters), so one route may serve concurrent calls.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Mapping
from typing import Any

from idlroute.domain.docs import RestBinding
from idlroute.domain.idl import Document, MethodDefinition, ServiceDefinition
from idlroute.errors import (
    BusinessError,
    BusinessException,
    CallError,
    HandlerBindingError,
)
from idlroute.plugins.manager import PluginManager
from idlroute.services.constraints import ConstraintChecker
from idlroute.services.context import CallContext, OutcomeKind
from idlroute.services.executor import ActionExecutor
from idlroute.services.handler import Handler
from idlroute.services.message import MessageAdapter
from idlroute.services.result import ServiceResult
from idlroute.services.schema import SchemaBuilder
from idlroute.services.telemetry import get_current_span, trace_span, traced

logger = logging.getLogger(__name__)


class BoundRoute:
    """One IDL method bound to its handler and REST route."""

    def __init__(
        self,
        *,
        service: ServiceDefinition,
        method: MethodDefinition,
        handler_cls: type[Handler],
        adapter: MessageAdapter,
        constraints: ConstraintChecker,
        executor: ActionExecutor | None = None,
        plugin_manager: PluginManager | None = None,
    ) -> None:
        if method.rest is None:
            raise HandlerBindingError(f"Method '{method.name}' has no REST binding")
        self.service = service
        self.method = method
        self.rest: RestBinding = method.rest
        self.handler_cls = handler_cls
        self.adapter = adapter
        self.constraints = constraints
        self.executor = executor or ActionExecutor()
        self.plugin_manager = plugin_manager

    @property
    def verb(self) -> str:
        return str(self.rest.verb)

    @property
    def path(self) -> str:
        return self.rest.path

    @property
    def handler_name(self) -> str:
        return self.handler_cls.__qualname__

    def __call__(self, params: Mapping[str, Any], *, request: Any = None) -> Any:
        """Run one call and return the validated result value.

        Raises:
            InputValidationError: *params* do not compose into a valid call.
            BusinessException: An action recorded an exception outcome.
            BusinessError: An action recorded an error outcome.
            ReplyValidationError: The result violates the return type.
            HandlerIncompleteError: No action recorded an outcome.
            HandlerFailedError: An action raised an unexpected exception.
            OutcomeConflictError: An action recorded a second outcome.
        """
        started = time.perf_counter()
        outcome_label = "unknown"
        try:
            with trace_span("compose_call"):
                message = self.adapter.compose_call(params)
            with trace_span("constraints"):
                self.constraints.check(self.method, message)

            handler = self.handler_cls()
            call = CallContext(
                message,
                self.method,
                self.service,
                handler=self.handler_name,
                request=request,
            )
            outcome = self.executor.run(call, handler.actions_for(self.method.name))
            outcome_label = str(outcome.kind)

            if outcome.kind == OutcomeKind.EXCEPTION:
                raise BusinessException(outcome.value, method=self.method.name)
            if outcome.kind == OutcomeKind.ERROR:
                raise BusinessError(outcome.value, method=self.method.name)
            with trace_span("compose_reply"):
                reply = self.adapter.compose_reply(outcome.value)
            return reply.value
        except CallError as exc:
            if outcome_label in ("unknown", str(OutcomeKind.RESULT)):
                outcome_label = exc.code
            raise
        finally:
            self._notify(outcome_label, (time.perf_counter() - started) * 1000)

    @traced("route.dispatch")
    def dispatch(self, params: Mapping[str, Any], *, request: Any = None) -> ServiceResult:
        """Run one call; per-request failures become an ``ok=False`` result."""
        op = f"{self.service.name}.{self.method.name}"
        span = get_current_span()
        if span is not None:
            span.annotate("route", str(self.rest))
        try:
            value = self(params, request=request)
        except CallError as exc:
            logger.info("%s failed: %s", op, exc)
            return ServiceResult.failure(op, exc)
        return ServiceResult(ok=True, op=op, data={"result": value})

    def _notify(self, outcome: str, duration_ms: float) -> None:
        if self.plugin_manager is None:
            return
        for warning in self.plugin_manager.dispatch(
            "post_call",
            service=self.service.name,
            method=self.method.name,
            outcome=outcome,
            duration_ms=duration_ms,
        ):
            logger.debug("post_call hook warning: %s", warning)

    def __repr__(self) -> str:
        return f"BoundRoute({self.rest}, {self.service.name}.{self.method.name})"


class RouteBinder:
    """Verifies *handler_cls* against an audited *document* and binds routes.

    Args:
        document: A document returned by ``AuditReport.verified()``.
        handler_cls: The handler class serving one service of the document.
        plugin_manager: Receives ``post_call`` after every call.
    """

    def __init__(
        self,
        document: Document,
        handler_cls: Any,
        *,
        plugin_manager: PluginManager | None = None,
        executor: ActionExecutor | None = None,
    ) -> None:
        self.document = document
        self.handler_cls = handler_cls
        self.plugin_manager = plugin_manager
        self.executor = executor or ActionExecutor()
        self.warnings: list[str] = []

    def service(self) -> ServiceDefinition:
        """Return the service *handler_cls* serves, checking it is registered."""
        cls = self.handler_cls
        name = getattr(cls, "__qualname__", repr(cls))
        if not isinstance(cls, type) or not issubclass(cls, Handler):
            raise HandlerBindingError(f"{name} must be a subclass of {Handler.__qualname__}")
        service_name = cls.service_name()
        if service_name is None:
            raise HandlerBindingError(f"{name} didn't declare a service")
        service = self.document.service(service_name)
        if service is None:
            raise HandlerBindingError(
                f"{name} is for the service {service_name}, which is not registered "
                f"with {self.document.source}"
            )
        return service

    def bind(self) -> list[BoundRoute]:
        """Bind every method of the handler's service.

        Raises:
            HandlerBindingError: Wrong class, unknown service, or an IDL
                method without actions.
        """
        service = self.service()
        cls: type[Handler] = self.handler_cls
        handled = set(cls.handled_methods())

        missing = [m.name for m in service.methods if m.name not in handled]
        if missing:
            raise HandlerBindingError(
                f"{cls.__qualname__} doesn't handle method(s) {', '.join(missing)} "
                f"of service {service.name}"
            )
        for extra in sorted(handled - set(service.method_names)):
            message = (
                f"{cls.__qualname__} handles '{extra}' which service "
                f"{service.name} does not declare"
            )
            logger.warning(message)
            self.warnings.append(message)

        lax = SchemaBuilder(self.document, strict=False)
        strict = SchemaBuilder(self.document, strict=True)
        constraints = ConstraintChecker(self.document)
        routes = [
            BoundRoute(
                service=service,
                method=method,
                handler_cls=cls,
                adapter=MessageAdapter(method, self.document, lax=lax, strict=strict),
                constraints=constraints,
                executor=self.executor,
                plugin_manager=self.plugin_manager,
            )
            for method in service.methods
        ]
        logger.debug("Bound %d route(s) for %s", len(routes), service.name)
        return routes
