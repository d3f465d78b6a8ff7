"""IDL types as pydantic annotations.

:class:`SchemaBuilder` turns a :class:`~idlroute.domain.idl.TypeRef` into
an annotation pydantic can validate against.  Two flavours exist:

- **lax** (call messages): raw request strings are coerced: ``"42"`` to
  an ``i32``, ``"true"`` to a ``bool``, a JSON object string to a
  struct, repeated query values to a list.
- **strict** (replies): handler output must already have the declared
  shape; no string-to-number coercion, no extra struct keys.

Struct models use ``f_<n>`` attribute names with the IDL field name as
alias, so IDL names never collide with ``BaseModel`` attributes.
Everything built here is immutable once constructed and safe to share
across concurrent calls.
"""

from __future__ import annotations

import dataclasses
import json
from enum import Enum
from typing import Annotated, Any, Literal

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    PlainSerializer,
    Strict,
    StrictBool,
    StrictStr,
    TypeAdapter,
    ValidationError,
    create_model,
    model_validator,
)

from idlroute.domain.idl import Document, Field as IdlField, TypeDefinition, TypeRef
from idlroute.domain.types import INTEGER_BOUNDS, DefinitionKind
from idlroute.errors import FieldError

# ---------------------------------------------------------------------------
# Model bases
# ---------------------------------------------------------------------------


class StructModel(BaseModel):
    """Base for generated struct/exception models."""

    model_config = ConfigDict(extra="forbid", frozen=True)


class UnionModel(StructModel):
    """Base for generated union models: exactly one field may be set."""

    @model_validator(mode="after")
    def _exactly_one_field(self) -> UnionModel:
        populated = [n for n in self.model_fields_set if getattr(self, n) is not None]
        if len(populated) != 1:
            raise ValueError(f"union must have exactly one field set, got {len(populated)}")
        return self


# ---------------------------------------------------------------------------
# Before-validators for raw request input
# ---------------------------------------------------------------------------


def _single_value(value: Any) -> Any:
    if isinstance(value, (list, tuple)):
        if len(value) == 1:
            return value[0]
        raise ValueError(f"expected a single value, got {len(value)}")
    return value


def _as_sequence(value: Any) -> Any:
    if isinstance(value, str):
        text = value.strip()
        if text.startswith("["):
            try:
                return json.loads(text)
            except json.JSONDecodeError as exc:
                raise ValueError(f"invalid JSON array: {exc.msg}") from exc
        return [value]
    return value


def _as_mapping(value: Any) -> Any:
    if isinstance(value, (list, tuple)) and len(value) == 1:
        value = value[0]
    if isinstance(value, str):
        try:
            return json.loads(value)
        except json.JSONDecodeError as exc:
            raise ValueError(f"invalid JSON object: {exc.msg}") from exc
    return value


def _as_struct_input(value: Any) -> Any:
    if isinstance(value, StructModel):
        return value.model_dump(by_alias=True)
    if isinstance(value, BaseModel):
        return value.model_dump()
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    return value


_STRUCT_KINDS = (DefinitionKind.STRUCT, DefinitionKind.UNION, DefinitionKind.EXCEPTION)


def _key_text(value: BaseModel) -> str:
    data = value.model_dump(mode="json", by_alias=True)
    return json.dumps(data, separators=(",", ":"), sort_keys=True)


def _enum_normalizer(definition: TypeDefinition) -> Any:
    by_value = {v.value: v.name for v in definition.values}

    def normalize(value: Any) -> Any:
        if isinstance(value, Enum):
            value = value.name
        if isinstance(value, bool):
            return value
        if isinstance(value, int):
            return by_value.get(value, value)
        if isinstance(value, str) and value.lstrip("-").isdigit():
            return by_value.get(int(value), value)
        return value

    return normalize


# ---------------------------------------------------------------------------
# Builder
# ---------------------------------------------------------------------------


class SchemaBuilder:
    """Builds and caches annotations for one audited document."""

    def __init__(self, document: Document, *, strict: bool) -> None:
        self.document = document
        self.strict = strict
        self._named: dict[str, Any] = {}
        self._adapters: dict[str, TypeAdapter[Any]] = {}

    def annotation(self, ref: TypeRef) -> Any:
        """Return the pydantic annotation for *ref*."""
        if ref.is_base:
            return self._base(ref.name)
        if ref.is_container:
            return self._container(ref)
        return self._named_type(ref.name)

    def adapter(self, ref: TypeRef) -> TypeAdapter[Any]:
        key = str(ref)
        adapter = self._adapters.get(key)
        if adapter is None:
            adapter = TypeAdapter(self.annotation(ref))
            self._adapters[key] = adapter
        return adapter

    def fields_model(self, name: str, fields: tuple[IdlField, ...]) -> type[StructModel]:
        """Model validating a whole field list (struct body or method arguments)."""
        return self._model(name, fields, StructModel)

    # ------------------------------------------------------------------

    def _base(self, name: str) -> Any:
        if name == "void":
            return None
        if name in INTEGER_BOUNDS:
            low, high = INTEGER_BOUNDS[name]
            if self.strict:
                return Annotated[int, Strict(), Field(ge=low, le=high)]
            return Annotated[int, Field(ge=low, le=high), BeforeValidator(_single_value)]
        if self.strict:
            scalar: dict[str, Any] = {
                "bool": StrictBool,
                "double": Annotated[float, Strict()],
                "string": StrictStr,
                "binary": bytes | StrictStr,
            }
            return scalar[name]
        lax: dict[str, Any] = {"bool": bool, "double": float, "string": str, "binary": bytes}
        return Annotated[lax[name], BeforeValidator(_single_value)]

    def _container(self, ref: TypeRef) -> Any:
        if ref.name == "map":
            key_ref, value_ref = ref.args
            key, value = self.annotation(key_ref), self.annotation(value_ref)
            if self._is_struct(key_ref):
                # Dumped as JSON text, which the lax struct hook reads back.
                key = Annotated[key, PlainSerializer(_key_text, return_type=str)]
            container: Any = dict[key, value]  # type: ignore[valid-type]
            if self.strict:
                return container
            return Annotated[container, BeforeValidator(_as_mapping)]
        element = self.annotation(ref.args[0])
        if ref.name == "list":
            container = list[element]  # type: ignore[valid-type]
        else:
            container = set[element]  # type: ignore[valid-type]
            if self._is_struct(ref.args[0]):
                # Dumped struct elements are dicts, so the set is dumped as a list.
                container = Annotated[
                    container,
                    PlainSerializer(list, return_type=list[element]),  # type: ignore[valid-type]
                ]
        if self.strict:
            return container
        return Annotated[container, BeforeValidator(_as_sequence)]

    def _is_struct(self, ref: TypeRef) -> bool:
        """True if *ref* resolves, through typedefs, to a struct, union or exception."""
        seen: set[str] = set()
        while ref.is_named and ref.name not in seen:
            seen.add(ref.name)
            definition = self.document.type(ref.name)
            if definition is None:
                return False
            if definition.kind != DefinitionKind.TYPEDEF or definition.target is None:
                return definition.kind in _STRUCT_KINDS
            ref = definition.target
        return False

    def _named_type(self, name: str) -> Any:
        if name in self._named:
            return self._named[name]
        definition = self.document.type(name)
        if definition is None:
            raise KeyError(f"Unknown type '{name}'")

        annotation: Any
        if definition.kind == DefinitionKind.TYPEDEF:
            if definition.target is None:
                raise KeyError(f"Typedef '{name}' has no target type")
            annotation = self.annotation(definition.target)
        elif definition.kind == DefinitionKind.ENUM:
            names = tuple(v.name for v in definition.values)
            annotation = Annotated[
                Literal[names],  # type: ignore[valid-type]
                BeforeValidator(_enum_normalizer(definition)),
            ]
            if not self.strict:
                annotation = Annotated[annotation, BeforeValidator(_single_value)]
        else:
            base = UnionModel if definition.kind == DefinitionKind.UNION else StructModel
            model = self._model(name, definition.fields, base)
            hook = _as_struct_input if self.strict else _as_mapping
            annotation = Annotated[model, BeforeValidator(hook)]
        self._named[name] = annotation
        return annotation

    def _model(
        self,
        name: str,
        fields: tuple[IdlField, ...],
        base: type[StructModel],
    ) -> type[StructModel]:
        definitions: dict[str, Any] = {}
        for index, f in enumerate(fields):
            annotation = self.annotation(f.type)
            if f.has_default:
                spec = Field(default=f.default, alias=f.name)
            elif f.required and base is not UnionModel:
                spec = Field(alias=f.name)
            else:
                annotation = annotation | None
                spec = Field(default=None, alias=f.name)
            definitions[f"f_{index}"] = (annotation, spec)
        return create_model(name, __base__=base, **definitions)


def dump(model: BaseModel) -> dict[str, Any]:
    """Plain-python view of a validated model, keyed by IDL names."""
    return model.model_dump(by_alias=True)


def field_errors(exc: ValidationError) -> list[FieldError]:
    """Convert a pydantic ValidationError into :class:`FieldError` entries."""
    errors: list[FieldError] = []
    for err in exc.errors(include_url=False):
        loc = [str(p) for p in err["loc"] if not _is_internal_loc(p)]
        path = ".".join(loc) or "<value>"
        kind = {"missing": "missing", "extra_forbidden": "unexpected"}.get(
            err["type"], "type_mismatch"
        )
        message = "missing" if kind == "missing" else err["msg"]
        errors.append(FieldError(field=path, message=message, kind=kind))
    return errors


def _is_internal_loc(part: Any) -> bool:
    # Annotated/union branches show up as e.g. "function-before[...]" or "literal[...]".
    return isinstance(part, str) and ("[" in part or part in ("StructModel", "UnionModel"))
