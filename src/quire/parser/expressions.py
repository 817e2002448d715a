"""Expression parsing for the Quire parser.

Grammar (Liquid subset)::

    condition  := comparison (("and" | "or") condition)?
    comparison := primary (op primary)?
    filtered   := primary ("|" NAME (":" arg ("," arg)*)?)*
    primary    := literal | range | NAME ("." NAME | "[" filtered "]")*
    range      := "(" primary ".." primary ")"

``and``/``or`` have equal precedence and group to the right, so
``a or b and c`` reads as ``a or (b and c)``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from quire._types import TokenType
from quire.environment.exceptions import ErrorCode
from quire.nodes import (
    BoolOp,
    Compare,
    Const,
    Empty,
    Expr,
    Filter,
    Getattr,
    Getitem,
    Name,
    Range,
)

if TYPE_CHECKING:
    from quire._types import Token
    from quire.environment.exceptions import TemplateSyntaxError

_COMPARE_OPS: dict[TokenType, str] = {
    TokenType.EQ: "==",
    TokenType.NE: "!=",
    TokenType.LT: "<",
    TokenType.GT: ">",
    TokenType.LE: "<=",
    TokenType.GE: ">=",
}

_KEYWORD_CONSTANTS: dict[str, bool | None] = {
    "true": True,
    "false": False,
    "nil": None,
    "null": None,
}


class ExpressionParsingMixin:
    """Mixin for parsing Liquid expressions.

    Required Host Attributes:
        - _current: property
        - _peek: method
        - _advance: method
        - _match: method
        - _expect: method
        - _error: method
    """

    if TYPE_CHECKING:
        _current: Token

        def _peek(self, offset: int = 1) -> Token: ...
        def _advance(self) -> Token: ...
        def _match(self, token_type: TokenType, value: str | None = None) -> bool: ...
        def _expect(self, token_type: TokenType, value: str | None = None) -> Token: ...
        def _error(
            self,
            message: str,
            token: Token | None = None,
            suggestion: str | None = None,
            code: ErrorCode = ...,
        ) -> TemplateSyntaxError: ...

    def _parse_condition(self) -> Expr:
        left = self._parse_comparison()
        token = self._current
        if token.type is TokenType.NAME and token.value in ("and", "or"):
            self._advance()
            right = self._parse_condition()
            return BoolOp(
                lineno=token.lineno,
                col_offset=token.col_offset,
                op=token.value,  # type: ignore[arg-type]
                left=left,
                right=right,
            )
        return left

    def _parse_comparison(self) -> Expr:
        left = self._parse_primary()
        token = self._current
        if token.type in _COMPARE_OPS:
            op = _COMPARE_OPS[token.type]
        elif token.type is TokenType.NAME and token.value == "contains":
            op = "contains"
        else:
            return left
        self._advance()
        right = self._parse_primary()
        return Compare(
            lineno=token.lineno, col_offset=token.col_offset, left=left, op=op, right=right
        )

    def _parse_filtered_expression(self) -> Expr:
        return self._parse_filters(self._parse_primary())

    def _parse_filters(self, expr: Expr) -> Expr:
        while self._match(TokenType.PIPE):
            self._advance()
            if not self._match(TokenType.NAME):
                raise self._error(
                    "Expected filter name after '|'", code=ErrorCode.INVALID_EXPRESSION
                )
            name_token = self._advance()
            args: list[Expr] = []
            kwargs: dict[str, Expr] = {}
            if self._match(TokenType.COLON):
                self._advance()
                while True:
                    if self._match(TokenType.NAME) and self._peek().type is TokenType.COLON:
                        key = self._advance().value
                        self._advance()
                        kwargs[key] = self._parse_primary()
                    else:
                        args.append(self._parse_primary())
                    if not self._match(TokenType.COMMA):
                        break
                    self._advance()
            expr = Filter(
                lineno=name_token.lineno,
                col_offset=name_token.col_offset,
                value=expr,
                name=name_token.value,
                args=tuple(args),
                kwargs=kwargs,
            )
        return expr

    def _parse_primary(self) -> Expr:
        token = self._current

        if token.type is TokenType.STRING:
            self._advance()
            return Const(lineno=token.lineno, col_offset=token.col_offset, value=token.value)

        if token.type is TokenType.INTEGER:
            self._advance()
            return Const(lineno=token.lineno, col_offset=token.col_offset, value=int(token.value))

        if token.type is TokenType.FLOAT:
            self._advance()
            return Const(lineno=token.lineno, col_offset=token.col_offset, value=float(token.value))

        if token.type is TokenType.LPAREN:
            self._advance()
            start = self._parse_primary()
            self._expect(TokenType.DOTDOT)
            end = self._parse_primary()
            self._expect(TokenType.RPAREN)
            return Range(lineno=token.lineno, col_offset=token.col_offset, start=start, end=end)

        if token.type is TokenType.NAME:
            self._advance()
            if token.value in _KEYWORD_CONSTANTS:
                return Const(
                    lineno=token.lineno,
                    col_offset=token.col_offset,
                    value=_KEYWORD_CONSTANTS[token.value],
                )
            if token.value in ("empty", "blank"):
                return Empty(lineno=token.lineno, col_offset=token.col_offset)
            return self._parse_postfix(
                Name(lineno=token.lineno, col_offset=token.col_offset, name=token.value)
            )

        found = token.value or token.type.value
        raise self._error(
            f"Expected an expression, got {found!r}", code=ErrorCode.INVALID_EXPRESSION
        )

    def _parse_postfix(self, expr: Expr) -> Expr:
        while True:
            token = self._current
            if token.type is TokenType.DOT:
                self._advance()
                if not self._match(TokenType.NAME):
                    raise self._error(
                        "Expected attribute name after '.'", code=ErrorCode.INVALID_EXPRESSION
                    )
                attr = self._advance().value
                expr = Getattr(
                    lineno=token.lineno, col_offset=token.col_offset, obj=expr, attr=attr
                )
            elif token.type is TokenType.LBRACKET:
                self._advance()
                key = self._parse_filtered_expression()
                self._expect(TokenType.RBRACKET)
                expr = Getitem(lineno=token.lineno, col_offset=token.col_offset, obj=expr, key=key)
            else:
                return expr
