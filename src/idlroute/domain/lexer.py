"""Tokenizer for Thrift IDL text.

Block comments are not emitted as tokens; instead the last block comment
seen before a token is attached to it as ``doc``.  Line comments (``//``
and ``#``) are dropped and do not break the attachment.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import StrEnum


class TokenType(StrEnum):
    IDENT = "identifier"
    INT = "integer"
    DOUBLE = "double"
    STRING = "string"
    SYMBOL = "symbol"
    EOF = "end of input"


@dataclass(frozen=True)
class Token:
    type: TokenType
    value: str
    line: int
    column: int
    doc: str | None = None

    def is_symbol(self, symbol: str) -> bool:
        return self.type == TokenType.SYMBOL and self.value == symbol

    def is_keyword(self, word: str) -> bool:
        return self.type == TokenType.IDENT and self.value == word


class LexError(Exception):
    """Raised on characters that cannot start a token."""

    def __init__(self, message: str, line: int, column: int) -> None:
        super().__init__(message)
        self.line = line
        self.column = column


_SPEC: list[tuple[str, str]] = [
    ("BLOCK", r"/\*.*?\*/"),
    ("LINE", r"(?://|\#)[^\n]*"),
    ("WS", r"[ \t\r\n]+"),
    ("DOUBLE", r"[+-]?(?:\d+\.\d*|\.\d+)(?:[eE][+-]?\d+)?|[+-]?\d+[eE][+-]?\d+"),
    ("INT", r"[+-]?(?:0x[0-9A-Fa-f]+|\d+)"),
    ("STRING", r"\"(?:[^\"\\]|\\.)*\"|'(?:[^'\\]|\\.)*'"),
    ("IDENT", r"[A-Za-z_][A-Za-z0-9_.]*"),
    ("SYMBOL", r"[{}()<>\[\],;:=*]"),
]
_MASTER = re.compile("|".join(f"(?P<{name}>{pattern})" for name, pattern in _SPEC), re.DOTALL)


def tokenize(text: str) -> list[Token]:
    """Split *text* into tokens, ending with a single EOF token."""
    tokens: list[Token] = []
    pending_doc: str | None = None
    line = 1
    line_start = 0
    pos = 0
    length = len(text)
    while pos < length:
        match = _MASTER.match(text, pos)
        column = pos - line_start + 1
        if match is None:
            raise LexError(f"Unexpected character {text[pos]!r}", line, column)
        kind = match.lastgroup
        value = match.group()
        if kind == "BLOCK":
            pending_doc = value
        elif kind in ("LINE", "WS"):
            pass
        else:
            if kind == "STRING":
                value = _unquote(value)
            tokens.append(Token(TokenType[kind], value, line, column, pending_doc))
            pending_doc = None
        newlines = match.group().count("\n")
        if newlines:
            line += newlines
            line_start = match.start() + match.group().rfind("\n") + 1
        pos = match.end()
    tokens.append(Token(TokenType.EOF, "", line, pos - line_start + 1, pending_doc))
    return tokens


_ESCAPES = {"n": "\n", "t": "\t", "r": "\r"}


def _unquote(value: str) -> str:
    return re.sub(r"\\(.)", lambda m: _ESCAPES.get(m.group(1), m.group(1)), value[1:-1])
