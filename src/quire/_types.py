"""Token types shared by the Quire lexer and parser."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class TokenType(Enum):
    """Kinds of tokens produced by the lexer."""

    # Template structure
    DATA = "data"
    VARIABLE_BEGIN = "variable_begin"
    VARIABLE_END = "variable_end"
    BLOCK_BEGIN = "block_begin"
    BLOCK_END = "block_end"

    # Expression tokens (inside {{ }} and {% %})
    NAME = "name"
    STRING = "string"
    INTEGER = "integer"
    FLOAT = "float"
    DOT = "dot"
    DOTDOT = "dotdot"
    COMMA = "comma"
    COLON = "colon"
    PIPE = "pipe"
    ASSIGN = "assign"
    LPAREN = "lparen"
    RPAREN = "rparen"
    LBRACKET = "lbracket"
    RBRACKET = "rbracket"
    EQ = "eq"
    NE = "ne"
    LT = "lt"
    GT = "gt"
    LE = "le"
    GE = "ge"

    EOF = "eof"


@dataclass(frozen=True, slots=True)
class Token:
    """A single lexed token with its source position.

    Attributes:
        type: Kind of token
        value: Raw token text (unquoted for strings)
        lineno: 1-based line number
        col_offset: 0-based column
    """

    type: TokenType
    value: str
    lineno: int
    col_offset: int

    def __repr__(self) -> str:
        return f"Token({self.type.name}, {self.value!r}, {self.lineno}:{self.col_offset})"
