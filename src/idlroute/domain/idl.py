"""IDL document model.

Plain frozen dataclasses produced by :mod:`idlroute.domain.parser`.  The
auditor returns a copy of the document with each method's ``rest``
binding filled in; nothing mutates a document after that.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any

from idlroute.domain.docs import EMPTY_DOC, Doc, RestBinding
from idlroute.domain.types import BASE_TYPE_NAMES, CONTAINER_TYPE_NAMES, DefinitionKind


@dataclass(frozen=True)
class Location:
    """Line/column of a definition in the IDL source."""

    line: int = 0
    column: int = 0

    def __str__(self) -> str:
        return f"{self.line}:{self.column}"


@dataclass(frozen=True)
class TypeRef:
    """Reference to a base, container or named type.

    ``args`` holds the element types of a container: one for ``list`` and
    ``set``, key and value for ``map``.
    """

    name: str
    args: tuple[TypeRef, ...] = ()
    location: Location = field(default=Location(), compare=False)

    @property
    def is_base(self) -> bool:
        return self.name in BASE_TYPE_NAMES

    @property
    def is_container(self) -> bool:
        return self.name in CONTAINER_TYPE_NAMES

    @property
    def is_named(self) -> bool:
        return not self.is_base and not self.is_container

    @property
    def is_void(self) -> bool:
        return self.name == "void"

    def named_refs(self) -> list[TypeRef]:
        """Every named type referenced by this type, containers unrolled."""
        if self.is_named:
            return [self]
        refs: list[TypeRef] = []
        for arg in self.args:
            refs.extend(arg.named_refs())
        return refs

    def __str__(self) -> str:
        if self.args:
            return f"{self.name}<{', '.join(str(a) for a in self.args)}>"
        return self.name


@dataclass(frozen=True)
class Field:
    """A struct field or method argument."""

    name: str
    type: TypeRef
    id: int | None = None
    requiredness: str = "default"
    default: Any = None
    has_default: bool = False
    doc: Doc = EMPTY_DOC
    location: Location = Location()

    @property
    def required(self) -> bool:
        """Required unless declared ``optional`` or given a default value."""
        if self.requiredness == "optional":
            return False
        return not self.has_default


@dataclass(frozen=True)
class EnumValue:
    name: str
    value: int
    doc: Doc = EMPTY_DOC


@dataclass(frozen=True)
class TypeDefinition:
    """A named type: typedef, enum, struct, union or exception."""

    kind: DefinitionKind
    name: str
    fields: tuple[Field, ...] = ()
    values: tuple[EnumValue, ...] = ()
    target: TypeRef | None = None
    doc: Doc = EMPTY_DOC
    location: Location = Location()

    def field(self, name: str) -> Field | None:
        for f in self.fields:
            if f.name == name:
                return f
        return None

    def references(self) -> list[TypeRef]:
        if self.kind == DefinitionKind.TYPEDEF and self.target is not None:
            return self.target.named_refs()
        refs: list[TypeRef] = []
        for f in self.fields:
            refs.extend(f.type.named_refs())
        return refs


@dataclass(frozen=True)
class Constant:
    name: str
    type: TypeRef
    value: Any
    doc: Doc = EMPTY_DOC
    location: Location = Location()


@dataclass(frozen=True)
class MethodDefinition:
    """One service method and, once audited, its REST binding."""

    name: str
    returns: TypeRef
    arguments: tuple[Field, ...] = ()
    throws: tuple[Field, ...] = ()
    oneway: bool = False
    doc: Doc = EMPTY_DOC
    rest: RestBinding | None = None
    location: Location = Location()

    def argument(self, name: str) -> Field | None:
        for arg in self.arguments:
            if arg.name == name:
                return arg
        return None

    def references(self) -> list[TypeRef]:
        refs = self.returns.named_refs()
        for f in (*self.arguments, *self.throws):
            refs.extend(f.type.named_refs())
        return refs

    def __str__(self) -> str:
        args = ", ".join(f"{a.type} {a.name}" for a in self.arguments)
        return f"{self.returns} {self.name}({args})"


@dataclass(frozen=True)
class ServiceDefinition:
    """A service: ordered methods plus optional ``extends`` base."""

    name: str
    methods: tuple[MethodDefinition, ...] = ()
    extends: str | None = None
    doc: Doc = EMPTY_DOC
    location: Location = Location()

    def method(self, name: str) -> MethodDefinition | None:
        for m in self.methods:
            if m.name == name:
                return m
        return None

    @property
    def method_names(self) -> list[str]:
        return [m.name for m in self.methods]

    def with_methods(self, methods: tuple[MethodDefinition, ...]) -> ServiceDefinition:
        return replace(self, methods=methods)


@dataclass(frozen=True)
class Document:
    """A parsed IDL document.

    ``order`` lists every top-level definition name (types, constants and
    services) in declaration order; the auditor uses it for the
    defined-before-use check.
    """

    source: str = "<string>"
    namespaces: dict[str, str] = field(default_factory=dict)
    includes: tuple[str, ...] = ()
    constants: tuple[Constant, ...] = ()
    types: tuple[TypeDefinition, ...] = ()
    services: tuple[ServiceDefinition, ...] = ()
    order: tuple[str, ...] = ()

    def type(self, name: str) -> TypeDefinition | None:
        for t in self.types:
            if t.name == name:
                return t
        return None

    def service(self, name: str) -> ServiceDefinition | None:
        for s in self.services:
            if s.name == name:
                return s
        return None

    @property
    def service_names(self) -> list[str]:
        return [s.name for s in self.services]

    def resolve(self, ref: TypeRef) -> TypeRef:
        """Follow typedef chains until a non-typedef type is reached."""
        seen: set[str] = set()
        while ref.is_named:
            definition = self.type(ref.name)
            if (
                definition is None
                or definition.kind != DefinitionKind.TYPEDEF
                or definition.target is None
                or ref.name in seen
            ):
                return ref
            seen.add(ref.name)
            ref = definition.target
        return ref
