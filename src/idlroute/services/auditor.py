"""SchemaAuditor: completeness and consistency checks for an IDL document.

Linter pattern: every check appends to one error list and the audit never
stops at the first problem, so a schema can be fixed in one iteration.
On success the report carries a copy of the document whose methods have
their ``rest`` binding filled in from the ``@rest`` directive.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from enum import StrEnum

from idlroute.domain.docs import RestBinding, parse_rest, parse_validate
from idlroute.domain.idl import (
    Document,
    Field,
    Location,
    MethodDefinition,
    ServiceDefinition,
    TypeRef,
)
from idlroute.errors import SchemaAuditError
from idlroute.services.telemetry import trace_span

logger = logging.getLogger(__name__)


class AuditCode(StrEnum):
    """Distinct audit failure categories."""

    MISSING_DOCS = "missing_docs"
    MISSING_REST = "missing_rest"
    INVALID_REST = "invalid_rest"
    UNKNOWN_VERB = "unknown_verb"
    UNDEFINED_TYPE = "undefined_type"
    FORWARD_REFERENCE = "forward_reference"
    DUPLICATE_DEFINITION = "duplicate_definition"
    DUPLICATE_METHOD = "duplicate_method"
    DUPLICATE_ROUTE = "duplicate_route"
    UNKNOWN_ROUTE_PARAMETER = "unknown_route_parameter"
    INVALID_VALIDATE = "invalid_validate"


@dataclass(frozen=True)
class AuditError:
    """One audit finding."""

    code: AuditCode
    message: str
    subject: str
    location: Location = Location()

    def as_dict(self) -> dict[str, str]:
        return {
            "code": str(self.code),
            "message": self.message,
            "subject": self.subject,
            "location": str(self.location),
        }

    def __str__(self) -> str:
        return self.message


@dataclass(frozen=True)
class AuditReport:
    """Outcome of :meth:`SchemaAuditor.audit`."""

    document: Document
    errors: list[AuditError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def verified(self) -> Document:
        """Return the verified document or raise with every error found."""
        if self.errors:
            raise SchemaAuditError(self.errors, source=self.document.source)
        return self.document


class SchemaAuditor:
    """Audits a parsed document.

    Args:
        require_method_docs: Every method needs a non-empty doc block.
        require_rest: Every method needs one valid ``@rest`` directive.
        audit_types: Every custom type must be defined before it is used.
    """

    def __init__(
        self,
        *,
        require_method_docs: bool = True,
        require_rest: bool = True,
        audit_types: bool = True,
    ) -> None:
        self.require_method_docs = require_method_docs
        self.require_rest = require_rest
        self.audit_types = audit_types

    def audit(self, document: Document) -> AuditReport:
        errors: list[AuditError] = []

        with trace_span("duplicates"):
            errors.extend(self._check_duplicates(document))
        if self.audit_types:
            with trace_span("type_order"):
                errors.extend(self._check_type_order(document))
        with trace_span("validate_directives"):
            errors.extend(self._check_validate_directives(document))

        services: list[ServiceDefinition] = []
        with trace_span("methods"):
            for service in document.services:
                methods: list[MethodDefinition] = []
                for method in service.methods:
                    method_errors, binding = self._check_method(service, method)
                    errors.extend(method_errors)
                    methods.append(_with_rest(method, binding))
                errors.extend(self._check_routes(service, methods))
                services.append(service.with_methods(tuple(methods)))

        logger.debug("Audited %s: %d error(s)", document.source, len(errors))
        verified = _with_services(document, tuple(services))
        return AuditReport(document=verified, errors=errors)

    # ------------------------------------------------------------------
    # Checks
    # ------------------------------------------------------------------

    def _check_method(
        self,
        service: ServiceDefinition,
        method: MethodDefinition,
    ) -> tuple[list[AuditError], RestBinding | None]:
        errors: list[AuditError] = []
        subject = f"{service.name}.{method.name}"

        if self.require_method_docs and method.doc.is_empty:
            errors.append(
                AuditError(
                    AuditCode.MISSING_DOCS,
                    f"Method '{method.name}' of service '{service.name}' is not documented",
                    subject,
                    method.location,
                )
            )

        rest_values = method.doc.tag("rest")
        if not rest_values:
            if self.require_rest:
                errors.append(
                    AuditError(
                        AuditCode.MISSING_REST,
                        f"Method '{method.name}' of service '{service.name}' has no @rest directive",
                        subject,
                        method.location,
                    )
                )
            return errors, None

        if len(rest_values) > 1:
            errors.append(
                AuditError(
                    AuditCode.INVALID_REST,
                    f"Method '{method.name}' has {len(rest_values)} @rest directives; expected one",
                    subject,
                    method.location,
                )
            )
            return errors, None

        binding, problem = parse_rest(rest_values[0])
        if binding is None:
            code = AuditCode(problem)
            if code == AuditCode.UNKNOWN_VERB:
                message = (
                    f"Method '{method.name}' uses an unknown HTTP verb in "
                    f"'@rest {rest_values[0]}'"
                )
            else:
                message = (
                    f"Method '{method.name}' has an invalid directive '@rest {rest_values[0]}'; "
                    "expected '@rest VERB /path'"
                )
            errors.append(AuditError(code, message, subject, method.location))
            return errors, None

        argument_names = {a.name for a in method.arguments}
        for param in binding.path_params:
            if param not in argument_names:
                errors.append(
                    AuditError(
                        AuditCode.UNKNOWN_ROUTE_PARAMETER,
                        f"Route '{binding}' of method '{method.name}' names parameter "
                        f"'{param}' which is not an argument",
                        subject,
                        method.location,
                    )
                )
        return errors, binding

    @staticmethod
    def _check_routes(
        service: ServiceDefinition,
        methods: list[MethodDefinition],
    ) -> list[AuditError]:
        errors: list[AuditError] = []
        seen: dict[str, str] = {}
        for method in methods:
            if method.rest is None:
                continue
            key = method.rest.route_key
            if key in seen:
                errors.append(
                    AuditError(
                        AuditCode.DUPLICATE_ROUTE,
                        f"Route '{method.rest}' of method '{method.name}' collides with "
                        f"method '{seen[key]}' in service '{service.name}'",
                        f"{service.name}.{method.name}",
                        method.location,
                    )
                )
            else:
                seen[key] = method.name
        return errors

    @staticmethod
    def _check_duplicates(document: Document) -> list[AuditError]:
        errors: list[AuditError] = []
        seen: set[str] = set()
        for name in document.order:
            if name in seen:
                errors.append(
                    AuditError(
                        AuditCode.DUPLICATE_DEFINITION,
                        f"'{name}' is defined more than once",
                        name,
                    )
                )
            seen.add(name)
        for service in document.services:
            method_names: set[str] = set()
            for method in service.methods:
                if method.name in method_names:
                    errors.append(
                        AuditError(
                            AuditCode.DUPLICATE_METHOD,
                            f"Method '{method.name}' is declared more than once "
                            f"in service '{service.name}'",
                            f"{service.name}.{method.name}",
                            method.location,
                        )
                    )
                method_names.add(method.name)
        return errors

    @staticmethod
    def _check_type_order(document: Document) -> list[AuditError]:
        """Every referenced custom type must be defined earlier in the document."""
        errors: list[AuditError] = []
        type_names = {t.name for t in document.types}
        service_names = set(document.service_names)
        position = {name: i for i, name in reversed(list(enumerate(document.order)))}

        def check(refs: list[TypeRef], subject: str, index: int) -> None:
            for ref in refs:
                if ref.name not in type_names:
                    errors.append(
                        AuditError(
                            AuditCode.UNDEFINED_TYPE,
                            f"{subject} references undefined type '{ref.name}'",
                            subject,
                            ref.location,
                        )
                    )
                elif position[ref.name] >= index:
                    errors.append(
                        AuditError(
                            AuditCode.FORWARD_REFERENCE,
                            f"{subject} references type '{ref.name}' before it is defined",
                            subject,
                            ref.location,
                        )
                    )

        for index, name in enumerate(document.order):
            definition = document.type(name)
            if definition is not None and position[name] == index:
                check(definition.references(), f"{definition.kind} '{name}'", index)
                continue
            constant = next((c for c in document.constants if c.name == name), None)
            if constant is not None:
                check(constant.type.named_refs(), f"const '{name}'", index)
                continue
            service = document.service(name)
            if service is None:
                continue
            if service.extends is not None:
                if service.extends not in service_names:
                    errors.append(
                        AuditError(
                            AuditCode.UNDEFINED_TYPE,
                            f"service '{name}' extends undefined service '{service.extends}'",
                            name,
                            service.location,
                        )
                    )
                elif position[service.extends] >= index:
                    errors.append(
                        AuditError(
                            AuditCode.FORWARD_REFERENCE,
                            f"service '{name}' extends service '{service.extends}' "
                            "before it is defined",
                            name,
                            service.location,
                        )
                    )
            for method in service.methods:
                check(method.references(), f"method '{name}.{method.name}'", index)
        return errors

    @staticmethod
    def _check_validate_directives(document: Document) -> list[AuditError]:
        errors: list[AuditError] = []

        def check_fields(fields: tuple[Field, ...], owner: str) -> None:
            for f in fields:
                _collect_validate(errors, f.doc.tag("validate"), f"{owner}.{f.name}", f.location)

        for definition in document.types:
            _collect_validate(
                errors, definition.doc.tag("validate"), definition.name, definition.location
            )
            check_fields(definition.fields, definition.name)
        for service in document.services:
            for method in service.methods:
                check_fields(method.arguments, f"{service.name}.{method.name}")
        return errors


def _collect_validate(
    errors: list[AuditError],
    values: tuple[str, ...],
    subject: str,
    location: Location,
) -> None:
    for value in values:
        _rule, problem = parse_validate(value)
        if problem is not None:
            errors.append(
                AuditError(
                    AuditCode.INVALID_VALIDATE,
                    f"{subject} has an invalid '@validate {value}': {problem}",
                    subject,
                    location,
                )
            )


def _with_rest(method: MethodDefinition, binding: RestBinding | None) -> MethodDefinition:
    return replace(method, rest=binding)


def _with_services(document: Document, services: tuple[ServiceDefinition, ...]) -> Document:
    return replace(document, services=services)
