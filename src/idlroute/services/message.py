"""MessageAdapter: raw request parameters in, validated call message out.

One adapter is built per method at bind time and shared by every call to
that method.  ``compose_call`` is lax (request strings are coerced to the
declared types) and ``compose_reply`` is strict (handler output must
already match the return type).
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError

from idlroute.domain.idl import Document, MethodDefinition, TypeRef
from idlroute.errors import InputValidationError, ReplyValidationError
from idlroute.services.schema import SchemaBuilder, dump, field_errors


class CallMessage(Mapping[str, Any]):
    """Validated arguments of one call, keyed by argument name.

    Read-only.  Structs are plain dicts keyed by IDL field name and enums
    are member names.
    """

    __slots__ = ("_values", "method")

    def __init__(self, method: str, values: Mapping[str, Any]) -> None:
        self.method = method
        self._values = dict(values)

    def __getitem__(self, key: str) -> Any:
        return self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def to_dict(self) -> dict[str, Any]:
        return dict(self._values)

    def __repr__(self) -> str:
        return f"CallMessage({self.method!r}, {self._values!r})"


@dataclass(frozen=True)
class Reply:
    """A validated handler result."""

    method: str
    value: Any


class MessageAdapter:
    """Composes call messages and replies for one method."""

    def __init__(
        self,
        method: MethodDefinition,
        document: Document,
        *,
        lax: SchemaBuilder | None = None,
        strict: SchemaBuilder | None = None,
    ) -> None:
        self.method = method
        self.document = document
        lax = lax or SchemaBuilder(document, strict=False)
        strict = strict or SchemaBuilder(document, strict=True)
        self._arguments = lax.fields_model(f"{method.name}_args", method.arguments)
        self._reply = strict.adapter(method.returns if not method.oneway else TypeRef("void"))
        self._names = tuple(a.name for a in method.arguments)

    def compose_call(self, raw_params: Mapping[str, Any]) -> CallMessage:
        """Coerce *raw_params* into a :class:`CallMessage`.

        Parameters that are not arguments of the method are ignored.

        Raises:
            InputValidationError: With one entry per offending field.
        """
        supplied = {name: raw_params[name] for name in self._names if name in raw_params}
        try:
            model = self._arguments.model_validate(supplied)
        except ValidationError as exc:
            raise InputValidationError(self.method.name, field_errors(exc)) from None
        return CallMessage(self.method.name, dump(model))

    def compose_reply(self, value: Any) -> Reply:
        """Validate a handler result against the declared return type.

        Raises:
            ReplyValidationError: The result does not match the return type.
        """
        try:
            validated = self._reply.validate_python(value)
        except ValidationError as exc:
            raise ReplyValidationError(self.method.name, field_errors(exc)) from None
        return Reply(self.method.name, self._reply.dump_python(validated, by_alias=True))
