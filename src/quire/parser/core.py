"""Token navigation and body parsing for the Quire parser."""

from __future__ import annotations

from collections.abc import Collection

from quire._types import Token, TokenType
from quire.environment.exceptions import ErrorCode, TemplateSyntaxError
from quire.nodes import Data, Node, Output, Template
from quire.parser.expressions import ExpressionParsingMixin
from quire.parser.tags import TagParsingMixin


class Parser(TagParsingMixin, ExpressionParsingMixin):
    """Recursive-descent parser turning a token stream into a Template node.

    The parser is single-use: construct it with the tokens of one template
    and call ``parse()`` once.

    Example:
        >>> from quire.lexer import tokenize
        >>> Parser(tokenize("Hi {{ name }}")).parse().body[1]
        Output(lineno=1, col_offset=3, expr=Name(lineno=1, col_offset=6, name='name'))

    """

    def __init__(
        self,
        tokens: list[Token],
        name: str | None = None,
        filename: str | None = None,
        source: str | None = None,
    ):
        self._tokens = tokens
        self._pos = 0
        self._name = name
        self._filename = filename
        self._source = source
        self._block_stack: list[tuple[str, Token]] = []

    def parse(self) -> Template:
        """Parse the full token stream."""
        body = self._parse_body(())
        return Template(lineno=1, col_offset=0, body=tuple(body))

    # ------------------------------------------------------------------
    # Token navigation
    # ------------------------------------------------------------------

    @property
    def _current(self) -> Token:
        return self._tokens[self._pos]

    def _peek(self, offset: int = 1) -> Token:
        index = min(self._pos + offset, len(self._tokens) - 1)
        return self._tokens[index]

    def _advance(self) -> Token:
        token = self._tokens[self._pos]
        if token.type is not TokenType.EOF:
            self._pos += 1
        return token

    def _match(self, token_type: TokenType, value: str | None = None) -> bool:
        token = self._current
        return token.type is token_type and (value is None or token.value == value)

    def _expect(self, token_type: TokenType, value: str | None = None) -> Token:
        if not self._match(token_type, value):
            expected = repr(value) if value else token_type.value
            found = self._current.value or self._current.type.value
            raise self._error(f"Expected {expected}, got {found!r}")
        return self._advance()

    def _error(
        self,
        message: str,
        token: Token | None = None,
        suggestion: str | None = None,
        code: ErrorCode = ErrorCode.UNEXPECTED_TOKEN,
    ) -> TemplateSyntaxError:
        token = token or self._current
        return TemplateSyntaxError(
            message,
            lineno=token.lineno,
            name=self._name,
            filename=self._filename,
            source=self._source,
            col_offset=token.col_offset,
            suggestion=suggestion,
            code=code,
        )

    # ------------------------------------------------------------------
    # Bodies
    # ------------------------------------------------------------------

    def _parse_body(self, end_tags: Collection[str]) -> list[Node]:
        """Parse nodes until EOF or a block tag named in ``end_tags``.

        The terminating ``{%`` is left unconsumed so the caller can inspect
        which end tag was reached.
        """
        nodes: list[Node] = []
        while True:
            token = self._current
            if token.type is TokenType.EOF:
                if end_tags:
                    opening_name, opening = self._block_stack[-1]
                    raise self._error(
                        f"Unclosed '{opening_name}' block",
                        token=opening,
                        suggestion=f"Add {{% end{opening_name} %}}",
                        code=ErrorCode.UNCLOSED_BLOCK,
                    )
                return nodes

            if token.type is TokenType.DATA:
                self._advance()
                nodes.append(
                    Data(lineno=token.lineno, col_offset=token.col_offset, value=token.value)
                )
            elif token.type is TokenType.VARIABLE_BEGIN:
                self._advance()
                expr = self._parse_filtered_expression()
                self._expect(TokenType.VARIABLE_END)
                nodes.append(Output(lineno=token.lineno, col_offset=token.col_offset, expr=expr))
            elif token.type is TokenType.BLOCK_BEGIN:
                keyword = self._peek()
                if keyword.type is TokenType.NAME and keyword.value in end_tags:
                    return nodes
                self._advance()
                nodes.append(self._parse_tag())
            else:
                raise self._error(f"Unexpected token {token.value!r}")

    def _consume_end_tag(self, name: str) -> None:
        """Consume ``{% name %}`` and pop the matching block."""
        self._expect(TokenType.BLOCK_BEGIN)
        self._expect(TokenType.NAME, name)
        self._expect(TokenType.BLOCK_END)
        self._block_stack.pop()
