"""ConstraintChecker: enforces ``@validate`` directives on a composed call.

Runs after :meth:`MessageAdapter.compose_call`, so every value already has
its declared type.  Rules come from the argument's own doc block plus every
typedef on the way to the concrete type; structs, lists, sets and map
values are walked recursively.  All violations are collected before
raising.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from idlroute.domain.docs import ValidateRule, validate_rules
from idlroute.domain.idl import Document, MethodDefinition, TypeRef
from idlroute.domain.types import DefinitionKind
from idlroute.errors import FieldError, InputValidationError


class ConstraintChecker:
    def __init__(self, document: Document) -> None:
        self.document = document

    def check(self, method: MethodDefinition, message: Mapping[str, Any]) -> None:
        """Raise :class:`InputValidationError` if any argument breaks a rule."""
        errors: list[FieldError] = []
        for argument in method.arguments:
            value = message.get(argument.name)
            if value is None:
                continue
            self._walk(argument.type, value, argument.name, validate_rules(argument.doc), errors)
        if errors:
            raise InputValidationError(method.name, errors)

    def _walk(
        self,
        ref: TypeRef,
        value: Any,
        path: str,
        rules: list[ValidateRule],
        errors: list[FieldError],
    ) -> None:
        rules = list(rules)
        seen: set[str] = set()
        definition = None
        while ref.is_named and ref.name not in seen:
            seen.add(ref.name)
            definition = self.document.type(ref.name)
            if definition is None:
                return
            rules.extend(validate_rules(definition.doc))
            if definition.kind != DefinitionKind.TYPEDEF or definition.target is None:
                break
            ref = definition.target
            definition = None

        for rule in rules:
            problem = _apply(rule, value)
            if problem is not None:
                errors.append(FieldError(field=path, message=problem, kind="constraint"))

        if ref.name in ("list", "set") and isinstance(value, (list, set, tuple)):
            for index, item in enumerate(value):
                if item is not None:
                    self._walk(ref.args[0], item, f"{path}.{index}", [], errors)
        elif ref.name == "map" and isinstance(value, Mapping):
            for key, item in value.items():
                if item is not None:
                    self._walk(ref.args[1], item, f"{path}.{key}", [], errors)
        elif definition is not None and definition.fields and isinstance(value, Mapping):
            for f in definition.fields:
                item = value.get(f.name)
                if item is not None:
                    self._walk(f.type, item, f"{path}.{f.name}", validate_rules(f.doc), errors)


def _apply(rule: ValidateRule, value: Any) -> str | None:
    """Return a problem description, or None when *value* satisfies *rule*."""
    if rule.kind == "regex":
        if isinstance(value, str) and rule.pattern is not None and not rule.pattern.search(value):
            return rule.describe()
        return None
    if rule.kind == "length":
        if not isinstance(value, (str, bytes, list, set, tuple, dict)):
            return None
        measured: float = len(value)
    else:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return None
        measured = value
    if rule.minimum is not None and measured < rule.minimum:
        return rule.describe()
    if rule.maximum is not None and measured > rule.maximum:
        return rule.describe()
    return None
