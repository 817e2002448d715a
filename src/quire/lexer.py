"""Lexer for Quire's Liquid-style template language.

Splits template source into a flat token stream:

- Text outside delimiters becomes ``DATA`` tokens
- ``{{ ... }}`` becomes ``VARIABLE_BEGIN``, expression tokens, ``VARIABLE_END``
- ``{% ... %}`` becomes ``BLOCK_BEGIN``, expression tokens, ``BLOCK_END``

Whitespace control:
A ``-`` next to a delimiter (``{{-``, ``-}}``, ``{%-``, ``-%}``) strips
whitespace from the neighbouring text, including newlines.

Special tags handled here rather than in the parser:
- ``{% raw %}...{% endraw %}``: body is emitted as a single DATA token
- ``{% comment %}...{% endcomment %}`` and ``{% # note %}``: dropped
- ``{% include path/to/file.html %}``: the bare path becomes a STRING token

Example:
    >>> [t.type.name for t in tokenize("Hi {{ name }}")]
    ['DATA', 'VARIABLE_BEGIN', 'NAME', 'VARIABLE_END', 'EOF']

"""

from __future__ import annotations

import re
from bisect import bisect_right

from quire._types import Token, TokenType
from quire.environment.exceptions import ErrorCode, TemplateSyntaxError


class LexerError(TemplateSyntaxError):
    """Tokenization failure (unclosed delimiter, stray character)."""


_OPEN_RE = re.compile(r"\{\{-?|\{%-?")

_RAW_OPEN_RE = re.compile(r"\{%(-?)\s*raw\s*(-?)%\}")
_RAW_CLOSE_RE = re.compile(r"\{%(-?)\s*endraw\s*(-?)%\}")
_COMMENT_OPEN_RE = re.compile(r"\{%(-?)\s*comment\s*(-?)%\}")
_COMMENT_CLOSE_RE = re.compile(r"\{%(-?)\s*endcomment\s*(-?)%\}")
_INLINE_COMMENT_RE = re.compile(r"\{%(-?)\s*#.*?(-?)%\}", re.DOTALL)
_INCLUDE_PATH_RE = re.compile(r"\s*(include)\s+([\w./-]+)")

_EXPR_TOKEN_RE = re.compile(
    r"""
    (?P<ws>\s+)
    |(?P<float>-?\d+\.\d+)
    |(?P<integer>-?\d+)
    |(?P<string>"[^"]*"|'[^']*')
    |(?P<name>[A-Za-z_](?:\w|-(?![}%]))*\??)
    |(?P<op>\.\.|==|!=|<>|<=|>=|[.,:|=()\[\]<>])
    """,
    re.VERBOSE,
)

_OPERATORS: dict[str, TokenType] = {
    ".": TokenType.DOT,
    "..": TokenType.DOTDOT,
    ",": TokenType.COMMA,
    ":": TokenType.COLON,
    "|": TokenType.PIPE,
    "=": TokenType.ASSIGN,
    "(": TokenType.LPAREN,
    ")": TokenType.RPAREN,
    "[": TokenType.LBRACKET,
    "]": TokenType.RBRACKET,
    "==": TokenType.EQ,
    "!=": TokenType.NE,
    "<>": TokenType.NE,
    "<": TokenType.LT,
    ">": TokenType.GT,
    "<=": TokenType.LE,
    ">=": TokenType.GE,
}


class Lexer:
    """Single-use tokenizer for one template source.

    Attributes:
        source: Template source text
        name: Template name used in error messages
    """

    __slots__ = ("_line_starts", "_pos", "_strip_next", "_tokens", "name", "source")

    def __init__(self, source: str, name: str | None = None):
        self.source = source
        self.name = name
        self._pos = 0
        self._tokens: list[Token] = []
        self._strip_next = False
        self._line_starts = [0] + [m.end() for m in re.finditer("\n", source)]

    def tokenize(self) -> list[Token]:
        """Tokenize the whole source, ending with an EOF token."""
        source = self.source
        while self._pos < len(source):
            match = _OPEN_RE.search(source, self._pos)
            if match is None:
                self._emit_data(source[self._pos :], self._pos)
                self._pos = len(source)
                break

            start = match.start()
            text = source[self._pos : start]
            if match.group().endswith("-"):
                text = text.rstrip()
            self._emit_data(text, self._pos)
            self._pos = start

            if match.group().startswith("{{"):
                self._lex_tag(
                    TokenType.VARIABLE_BEGIN, TokenType.VARIABLE_END, "}}", match.end()
                )
            elif not self._lex_special_block():
                self._lex_tag(TokenType.BLOCK_BEGIN, TokenType.BLOCK_END, "%}", match.end())

        self._tokens.append(Token(TokenType.EOF, "", *self._position(len(source))))
        return self._tokens

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _position(self, offset: int) -> tuple[int, int]:
        index = bisect_right(self._line_starts, offset) - 1
        return index + 1, offset - self._line_starts[index]

    def _error(self, message: str, offset: int, code: ErrorCode | None = None) -> LexerError:
        lineno, col = self._position(offset)
        return LexerError(
            message,
            lineno=lineno,
            name=self.name,
            source=self.source,
            col_offset=col,
            code=code,
        )

    def _emit_data(self, text: str, offset: int) -> None:
        if self._strip_next:
            text = text.lstrip()
            self._strip_next = False
        if text:
            self._tokens.append(Token(TokenType.DATA, text, *self._position(offset)))

    def _lex_special_block(self) -> bool:
        """Handle raw, comment and inline-comment tags at the current position."""
        source = self.source
        pos = self._pos

        raw = _RAW_OPEN_RE.match(source, pos)
        if raw:
            close = _RAW_CLOSE_RE.search(source, raw.end())
            if close is None:
                raise self._error("Unclosed 'raw' block", pos, ErrorCode.UNCLOSED_BLOCK)
            self._strip_next = False
            body = source[raw.end() : close.start()]
            if raw.group(2):
                body = body.lstrip()
            if close.group(1):
                body = body.rstrip()
            if body:
                self._tokens.append(Token(TokenType.DATA, body, *self._position(raw.end())))
            self._pos = close.end()
            self._strip_next = bool(close.group(2))
            return True

        comment = _COMMENT_OPEN_RE.match(source, pos)
        if comment:
            close = _COMMENT_CLOSE_RE.search(source, comment.end())
            if close is None:
                raise self._error("Unclosed 'comment' block", pos, ErrorCode.UNCLOSED_COMMENT)
            self._pos = close.end()
            self._strip_next = bool(close.group(2))
            return True

        inline = _INLINE_COMMENT_RE.match(source, pos)
        if inline:
            self._pos = inline.end()
            self._strip_next = bool(inline.group(2))
            return True

        return False

    def _lex_tag(
        self,
        begin: TokenType,
        end: TokenType,
        closer: str,
        body_start: int,
    ) -> None:
        source = self.source
        open_offset = self._pos
        self._tokens.append(
            Token(begin, source[open_offset:body_start], *self._position(open_offset))
        )
        pos = body_start

        if begin is TokenType.BLOCK_BEGIN:
            include = _INCLUDE_PATH_RE.match(source, pos)
            if include:
                self._tokens.append(
                    Token(TokenType.NAME, "include", *self._position(include.start(1)))
                )
                self._tokens.append(
                    Token(TokenType.STRING, include.group(2), *self._position(include.start(2)))
                )
                pos = include.end()

        while True:
            if pos >= len(source):
                code = (
                    ErrorCode.UNCLOSED_VARIABLE
                    if begin is TokenType.VARIABLE_BEGIN
                    else ErrorCode.UNCLOSED_TAG
                )
                raise self._error(f"Unclosed tag, expected '{closer}'", open_offset, code)

            if source.startswith("-" + closer, pos):
                self._tokens.append(Token(end, "-" + closer, *self._position(pos)))
                self._pos = pos + len(closer) + 1
                self._strip_next = True
                return
            if source.startswith(closer, pos):
                self._tokens.append(Token(end, closer, *self._position(pos)))
                self._pos = pos + len(closer)
                return

            match = _EXPR_TOKEN_RE.match(source, pos)
            if match is None:
                raise self._error(f"Unexpected character {source[pos]!r}", pos)

            kind = match.lastgroup
            text = match.group()
            if kind == "ws":
                pass
            elif kind == "string":
                self._tokens.append(Token(TokenType.STRING, text[1:-1], *self._position(pos)))
            elif kind == "integer":
                self._tokens.append(Token(TokenType.INTEGER, text, *self._position(pos)))
            elif kind == "float":
                self._tokens.append(Token(TokenType.FLOAT, text, *self._position(pos)))
            elif kind == "name":
                self._tokens.append(Token(TokenType.NAME, text, *self._position(pos)))
            else:
                self._tokens.append(Token(_OPERATORS[text], text, *self._position(pos)))
            pos = match.end()


def tokenize(source: str, name: str | None = None) -> list[Token]:
    """Tokenize template source.

    Raises:
        LexerError: On unclosed delimiters or unexpected characters
    """
    return Lexer(source, name).tokenize()
