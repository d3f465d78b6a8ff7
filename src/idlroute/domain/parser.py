"""Recursive descent parser for the Thrift IDL subset.

Produces a :class:`~idlroute.domain.idl.Document`.  The parser is purely
syntactic: it does not check that referenced types exist or appear in
order; that is the auditor's job, so that every semantic problem can be
reported in one pass.
"""

from __future__ import annotations

from typing import Any

from idlroute.domain.docs import parse_doc
from idlroute.domain.idl import (
    Constant,
    Document,
    EnumValue,
    Field,
    Location,
    MethodDefinition,
    ServiceDefinition,
    TypeDefinition,
    TypeRef,
)
from idlroute.domain.lexer import LexError, Token, TokenType, tokenize
from idlroute.domain.types import DefinitionKind
from idlroute.errors import IdlParseError

_STRUCT_KINDS: dict[str, DefinitionKind] = {
    "struct": DefinitionKind.STRUCT,
    "union": DefinitionKind.UNION,
    "exception": DefinitionKind.EXCEPTION,
}


def parse_idl(text: str, *, source: str = "<string>") -> Document:
    """Parse Thrift IDL *text* into a :class:`Document`.

    Raises:
        IdlParseError: On any lexical or syntactic error.
    """
    try:
        tokens = tokenize(text)
    except LexError as exc:
        raise IdlParseError(str(exc), source=source, line=exc.line, column=exc.column) from exc
    return _Parser(tokens, source).parse_document()


class _Parser:
    def __init__(self, tokens: list[Token], source: str) -> None:
        self.tokens = tokens
        self.source = source
        self.pos = 0

    # ------------------------------------------------------------------
    # Token helpers
    # ------------------------------------------------------------------

    @property
    def current(self) -> Token:
        return self.tokens[self.pos]

    def advance(self) -> Token:
        token = self.current
        if token.type != TokenType.EOF:
            self.pos += 1
        return token

    def error(self, message: str, token: Token | None = None) -> IdlParseError:
        token = token or self.current
        return IdlParseError(message, source=self.source, line=token.line, column=token.column)

    def expect_symbol(self, symbol: str) -> Token:
        token = self.current
        if not token.is_symbol(symbol):
            raise self.error(f"Expected '{symbol}', got {_describe(token)}")
        return self.advance()

    def expect_ident(self, what: str = "identifier") -> Token:
        token = self.current
        if token.type != TokenType.IDENT:
            raise self.error(f"Expected {what}, got {_describe(token)}")
        return self.advance()

    def accept_symbol(self, symbol: str) -> bool:
        if self.current.is_symbol(symbol):
            self.advance()
            return True
        return False

    def skip_separator(self) -> None:
        if self.current.is_symbol(",") or self.current.is_symbol(";"):
            self.advance()

    def skip_annotations(self) -> None:
        """Skip a parenthesized ``(key = "value", ...)`` annotation list."""
        if not self.current.is_symbol("("):
            return
        depth = 0
        while True:
            token = self.advance()
            if token.type == TokenType.EOF:
                raise self.error("Unterminated annotation list", token)
            if token.is_symbol("("):
                depth += 1
            elif token.is_symbol(")"):
                depth -= 1
                if depth == 0:
                    return

    @staticmethod
    def location(token: Token) -> Location:
        return Location(token.line, token.column)

    # ------------------------------------------------------------------
    # Document
    # ------------------------------------------------------------------

    def parse_document(self) -> Document:
        namespaces: dict[str, str] = {}
        includes: list[str] = []
        constants: list[Constant] = []
        types: list[TypeDefinition] = []
        services: list[ServiceDefinition] = []
        order: list[str] = []

        while self.current.type != TokenType.EOF:
            token = self.current
            if token.type != TokenType.IDENT:
                raise self.error(f"Expected a definition, got {_describe(token)}")
            word = token.value
            if word == "namespace":
                self.advance()
                scope = self.current
                if scope.is_symbol("*"):
                    self.advance()
                    scope_name = "*"
                else:
                    scope_name = self.expect_ident("namespace scope").value
                namespaces[scope_name] = self.expect_ident("namespace").value
            elif word in ("include", "cpp_include"):
                self.advance()
                path = self.current
                if path.type != TokenType.STRING:
                    raise self.error(f"Expected include path string, got {_describe(path)}")
                self.advance()
                if word == "include":
                    includes.append(path.value)
            elif word == "const":
                constant = self.parse_const()
                constants.append(constant)
                order.append(constant.name)
            elif word == "typedef":
                definition = self.parse_typedef()
                types.append(definition)
                order.append(definition.name)
            elif word == "enum":
                definition = self.parse_enum()
                types.append(definition)
                order.append(definition.name)
            elif word in _STRUCT_KINDS:
                definition = self.parse_struct()
                types.append(definition)
                order.append(definition.name)
            elif word == "service":
                service = self.parse_service()
                services.append(service)
                order.append(service.name)
            else:
                raise self.error(f"Unknown definition keyword '{word}'")
            self.skip_separator()

        return Document(
            source=self.source,
            namespaces=namespaces,
            includes=tuple(includes),
            constants=tuple(constants),
            types=tuple(types),
            services=tuple(services),
            order=tuple(order),
        )

    # ------------------------------------------------------------------
    # Types
    # ------------------------------------------------------------------

    def parse_type(self) -> TypeRef:
        token = self.expect_ident("type")
        name = token.value
        loc = self.location(token)
        if name in ("list", "set"):
            self.expect_symbol("<")
            element = self.parse_type()
            self.expect_symbol(">")
            ref = TypeRef(name, (element,), loc)
        elif name == "map":
            self.expect_symbol("<")
            key = self.parse_type()
            self.expect_symbol(",")
            value = self.parse_type()
            self.expect_symbol(">")
            ref = TypeRef(name, (key, value), loc)
        else:
            ref = TypeRef(name, (), loc)
        self.skip_annotations()
        return ref

    # ------------------------------------------------------------------
    # Definitions
    # ------------------------------------------------------------------

    def parse_const(self) -> Constant:
        start = self.advance()
        type_ref = self.parse_type()
        name = self.expect_ident("constant name").value
        self.expect_symbol("=")
        value = self.parse_literal()
        return Constant(name, type_ref, value, parse_doc(start.doc), self.location(start))

    def parse_typedef(self) -> TypeDefinition:
        start = self.advance()
        target = self.parse_type()
        name = self.expect_ident("typedef name").value
        self.skip_annotations()
        return TypeDefinition(
            kind=DefinitionKind.TYPEDEF,
            name=name,
            target=target,
            doc=parse_doc(start.doc),
            location=self.location(start),
        )

    def parse_enum(self) -> TypeDefinition:
        start = self.advance()
        name = self.expect_ident("enum name").value
        self.expect_symbol("{")
        values: list[EnumValue] = []
        next_value = 0
        while not self.current.is_symbol("}"):
            token = self.expect_ident("enum value")
            value = next_value
            if self.accept_symbol("="):
                literal = self.current
                if literal.type != TokenType.INT:
                    raise self.error(f"Expected integer enum value, got {_describe(literal)}")
                self.advance()
                value = _to_int(literal.value)
            values.append(EnumValue(token.value, value, parse_doc(token.doc)))
            next_value = value + 1
            self.skip_annotations()
            self.skip_separator()
        self.expect_symbol("}")
        self.skip_annotations()
        return TypeDefinition(
            kind=DefinitionKind.ENUM,
            name=name,
            values=tuple(values),
            doc=parse_doc(start.doc),
            location=self.location(start),
        )

    def parse_struct(self) -> TypeDefinition:
        start = self.advance()
        name = self.expect_ident(f"{start.value} name").value
        fields = self.parse_field_block("{", "}")
        self.skip_annotations()
        return TypeDefinition(
            kind=_STRUCT_KINDS[start.value],
            name=name,
            fields=tuple(fields),
            doc=parse_doc(start.doc),
            location=self.location(start),
        )

    def parse_field_block(self, opener: str, closer: str) -> list[Field]:
        self.expect_symbol(opener)
        fields: list[Field] = []
        while not self.current.is_symbol(closer):
            fields.append(self.parse_field())
        self.expect_symbol(closer)
        return fields

    def parse_field(self) -> Field:
        start = self.current
        field_id: int | None = None
        if start.type == TokenType.INT:
            self.advance()
            self.expect_symbol(":")
            field_id = _to_int(start.value)
        requiredness = "default"
        if self.current.is_keyword("required") or self.current.is_keyword("optional"):
            requiredness = self.advance().value
        type_ref = self.parse_type()
        name = self.expect_ident("field name").value
        default: Any = None
        has_default = False
        if self.accept_symbol("="):
            default = self.parse_literal()
            has_default = True
        self.skip_annotations()
        self.skip_separator()
        return Field(
            name=name,
            type=type_ref,
            id=field_id,
            requiredness=requiredness,
            default=default,
            has_default=has_default,
            doc=parse_doc(start.doc),
            location=self.location(start),
        )

    def parse_service(self) -> ServiceDefinition:
        start = self.advance()
        name = self.expect_ident("service name").value
        extends: str | None = None
        if self.current.is_keyword("extends"):
            self.advance()
            extends = self.expect_ident("base service").value
        self.expect_symbol("{")
        methods: list[MethodDefinition] = []
        while not self.current.is_symbol("}"):
            methods.append(self.parse_method())
        self.expect_symbol("}")
        self.skip_annotations()
        return ServiceDefinition(
            name=name,
            methods=tuple(methods),
            extends=extends,
            doc=parse_doc(start.doc),
            location=self.location(start),
        )

    def parse_method(self) -> MethodDefinition:
        start = self.current
        oneway = False
        if start.is_keyword("oneway"):
            self.advance()
            oneway = True
        returns = self.parse_type()
        name = self.expect_ident("method name").value
        arguments = self.parse_field_block("(", ")")
        throws: list[Field] = []
        if self.current.is_keyword("throws"):
            self.advance()
            throws = self.parse_field_block("(", ")")
        self.skip_annotations()
        self.skip_separator()
        return MethodDefinition(
            name=name,
            returns=returns,
            arguments=tuple(arguments),
            throws=tuple(throws),
            oneway=oneway,
            doc=parse_doc(start.doc),
            location=self.location(start),
        )

    # ------------------------------------------------------------------
    # Literals
    # ------------------------------------------------------------------

    def parse_literal(self) -> Any:
        token = self.current
        if token.type == TokenType.INT:
            self.advance()
            return _to_int(token.value)
        if token.type == TokenType.DOUBLE:
            self.advance()
            return float(token.value)
        if token.type == TokenType.STRING:
            self.advance()
            return token.value
        if token.type == TokenType.IDENT:
            self.advance()
            if token.value == "true":
                return True
            if token.value == "false":
                return False
            return token.value
        if token.is_symbol("["):
            self.advance()
            items: list[Any] = []
            while not self.current.is_symbol("]"):
                items.append(self.parse_literal())
                self.skip_separator()
            self.expect_symbol("]")
            return items
        if token.is_symbol("{"):
            self.advance()
            mapping: dict[Any, Any] = {}
            while not self.current.is_symbol("}"):
                key = self.parse_literal()
                self.expect_symbol(":")
                mapping[key] = self.parse_literal()
                self.skip_separator()
            self.expect_symbol("}")
            return mapping
        raise self.error(f"Expected a literal value, got {_describe(token)}")


def _describe(token: Token) -> str:
    if token.type == TokenType.EOF:
        return "end of input"
    return f"{token.type} '{token.value}'"


def _to_int(text: str) -> int:
    if "x" in text.lower():
        return int(text, 16)
    return int(text, 10)
