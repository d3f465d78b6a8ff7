"""IDL type classification and REST enums."""

from __future__ import annotations

from enum import StrEnum


class BaseType(StrEnum):
    """Thrift base types."""

    BOOL = "bool"
    BYTE = "byte"
    I8 = "i8"
    I16 = "i16"
    I32 = "i32"
    I64 = "i64"
    DOUBLE = "double"
    STRING = "string"
    BINARY = "binary"
    VOID = "void"


class ContainerType(StrEnum):
    """Thrift container types."""

    LIST = "list"
    SET = "set"
    MAP = "map"


class DefinitionKind(StrEnum):
    """Kinds of named type definitions."""

    TYPEDEF = "typedef"
    ENUM = "enum"
    STRUCT = "struct"
    UNION = "union"
    EXCEPTION = "exception"


class HttpVerb(StrEnum):
    """HTTP verbs accepted in a ``@rest`` directive."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"
    HEAD = "HEAD"
    OPTIONS = "OPTIONS"


# Inclusive bounds for the integer widths.
INTEGER_BOUNDS: dict[str, tuple[int, int]] = {
    "byte": (-(2**7), 2**7 - 1),
    "i8": (-(2**7), 2**7 - 1),
    "i16": (-(2**15), 2**15 - 1),
    "i32": (-(2**31), 2**31 - 1),
    "i64": (-(2**63), 2**63 - 1),
}

BASE_TYPE_NAMES: frozenset[str] = frozenset(t.value for t in BaseType)
CONTAINER_TYPE_NAMES: frozenset[str] = frozenset(t.value for t in ContainerType)
