"""Block tag parsing for the Quire parser.

Provides a mixin handling every ``{% tag %}`` the language supports:
if/unless, case, for, break/continue, assign, capture and include.
"""

from __future__ import annotations

from collections.abc import Callable, Collection
from typing import TYPE_CHECKING

from quire._types import TokenType
from quire.environment.exceptions import ErrorCode
from quire.nodes import (
    Assign,
    Break,
    Capture,
    Case,
    Continue,
    Expr,
    For,
    If,
    Include,
    Node,
)

if TYPE_CHECKING:
    from quire._types import Token
    from quire.environment.exceptions import TemplateSyntaxError

# Tags that are only valid inside an enclosing block
_INTERMEDIATE_TAGS = frozenset(
    {
        "elsif",
        "else",
        "when",
        "endif",
        "endunless",
        "endcase",
        "endfor",
        "endcapture",
    }
)


class TagParsingMixin:
    """Mixin for parsing block tags.

    Required Host Attributes:
        - _block_stack: list of (tag name, opening token)
        - _parse_body: method
        - _consume_end_tag: method
        - _parse_condition: method
        - _parse_primary: method
        - _parse_filtered_expression: method
        - _current, _peek, _advance, _match, _expect, _error
    """

    if TYPE_CHECKING:
        _block_stack: list[tuple[str, Token]]
        _current: Token

        def _parse_body(self, end_tags: Collection[str]) -> list[Node]: ...
        def _consume_end_tag(self, name: str) -> None: ...
        def _parse_condition(self) -> Expr: ...
        def _parse_primary(self) -> Expr: ...
        def _parse_filtered_expression(self) -> Expr: ...
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

    def _tag_handlers(self) -> dict[str, Callable[[], Node]]:
        return {
            "if": self._parse_if,
            "unless": self._parse_unless,
            "case": self._parse_case,
            "for": self._parse_for,
            "break": self._parse_break,
            "continue": self._parse_continue,
            "assign": self._parse_assign,
            "capture": self._parse_capture,
            "include": self._parse_include,
        }

    def _parse_tag(self) -> Node:
        """Dispatch on the tag keyword following an already-consumed ``{%``."""
        token = self._current
        if token.type is not TokenType.NAME:
            raise self._error("Expected a tag name", code=ErrorCode.UNKNOWN_TAG)

        handler = self._tag_handlers().get(token.value)
        if handler is not None:
            return handler()

        if token.value in _INTERMEDIATE_TAGS:
            raise self._error(
                f"Unexpected '{token.value}' outside of a matching block",
                code=ErrorCode.UNEXPECTED_TOKEN,
            )

        from difflib import get_close_matches

        matches = get_close_matches(token.value, self._tag_handlers().keys(), n=1)
        raise self._error(
            f"Unknown tag '{token.value}'",
            suggestion=f"Did you mean '{matches[0]}'?" if matches else None,
            code=ErrorCode.UNKNOWN_TAG,
        )

    # ------------------------------------------------------------------
    # Conditionals
    # ------------------------------------------------------------------

    def _parse_if(self) -> If:
        """Parse {% if %}...{% elsif %}...{% else %}...{% endif %}."""
        return self._parse_conditional("if", negated=False)

    def _parse_unless(self) -> If:
        """Parse {% unless %}...{% else %}...{% endunless %}."""
        return self._parse_conditional("unless", negated=True)

    def _parse_conditional(self, tag: str, negated: bool) -> If:
        start = self._advance()
        self._block_stack.append((tag, start))
        end_tag = f"end{tag}"
        branch_tags = ("elsif", "else", end_tag)

        test = self._parse_condition()
        self._expect(TokenType.BLOCK_END)
        body = self._parse_body(branch_tags)

        elif_: list[tuple[Expr, tuple[Node, ...]]] = []
        else_: list[Node] = []
        while True:
            self._expect(TokenType.BLOCK_BEGIN)
            keyword = self._advance()
            if keyword.value == "elsif":
                cond = self._parse_condition()
                self._expect(TokenType.BLOCK_END)
                elif_.append((cond, tuple(self._parse_body(branch_tags))))
            elif keyword.value == "else":
                self._expect(TokenType.BLOCK_END)
                else_ = self._parse_body((end_tag,))
                self._consume_end_tag(end_tag)
                break
            else:
                self._expect(TokenType.BLOCK_END)
                self._block_stack.pop()
                break

        return If(
            lineno=start.lineno,
            col_offset=start.col_offset,
            test=test,
            body=tuple(body),
            elif_=tuple(elif_),
            else_=tuple(else_),
            negated=negated,
        )

    def _parse_case(self) -> Case:
        """Parse {% case x %}{% when a, b %}...{% else %}...{% endcase %}."""
        start = self._advance()
        self._block_stack.append(("case", start))
        subject = self._parse_primary()
        self._expect(TokenType.BLOCK_END)

        branch_tags = ("when", "else", "endcase")
        # Text between {% case %} and the first {% when %} is discarded
        self._parse_body(branch_tags)

        whens: list[tuple[tuple[Expr, ...], tuple[Node, ...]]] = []
        else_: list[Node] = []
        while True:
            self._expect(TokenType.BLOCK_BEGIN)
            keyword = self._advance()
            if keyword.value == "when":
                values = [self._parse_primary()]
                while self._match(TokenType.COMMA) or self._match(TokenType.NAME, "or"):
                    self._advance()
                    values.append(self._parse_primary())
                self._expect(TokenType.BLOCK_END)
                whens.append((tuple(values), tuple(self._parse_body(branch_tags))))
            elif keyword.value == "else":
                self._expect(TokenType.BLOCK_END)
                else_ = self._parse_body(("endcase",))
                self._consume_end_tag("endcase")
                break
            else:
                self._expect(TokenType.BLOCK_END)
                self._block_stack.pop()
                break

        return Case(
            lineno=start.lineno,
            col_offset=start.col_offset,
            subject=subject,
            whens=tuple(whens),
            else_=tuple(else_),
        )

    # ------------------------------------------------------------------
    # Loops
    # ------------------------------------------------------------------

    def _parse_for(self) -> For:
        """Parse {% for x in items [limit:n] [offset:n] [reversed] %}...{% endfor %}."""
        start = self._advance()
        self._block_stack.append(("for", start))

        if not self._match(TokenType.NAME):
            raise self._error("Expected loop variable name after 'for'")
        target = self._advance().value
        if not self._match(TokenType.NAME, "in"):
            raise self._error(
                "Expected 'in' after loop variable",
                suggestion="Use {% for item in collection %}",
            )
        self._advance()
        iterable = self._parse_primary()

        limit: Expr | None = None
        offset: Expr | None = None
        reverse = False
        while self._match(TokenType.NAME):
            modifier = self._advance()
            if modifier.value == "reversed":
                reverse = True
            elif modifier.value in ("limit", "offset"):
                self._expect(TokenType.COLON)
                value = self._parse_primary()
                if modifier.value == "limit":
                    limit = value
                else:
                    offset = value
            else:
                raise self._error(
                    f"Unknown for-loop modifier '{modifier.value}'",
                    token=modifier,
                    suggestion="Supported modifiers: limit, offset, reversed",
                )
        self._expect(TokenType.BLOCK_END)

        body = self._parse_body(("else", "endfor"))
        empty: list[Node] = []
        self._expect(TokenType.BLOCK_BEGIN)
        keyword = self._advance()
        self._expect(TokenType.BLOCK_END)
        if keyword.value == "else":
            empty = self._parse_body(("endfor",))
            self._consume_end_tag("endfor")
        else:
            self._block_stack.pop()

        return For(
            lineno=start.lineno,
            col_offset=start.col_offset,
            target=target,
            iter=iterable,
            body=tuple(body),
            empty=tuple(empty),
            limit=limit,
            offset=offset,
            reversed=reverse,
        )

    def _parse_break(self) -> Break:
        start = self._advance()
        self._expect(TokenType.BLOCK_END)
        return Break(lineno=start.lineno, col_offset=start.col_offset)

    def _parse_continue(self) -> Continue:
        start = self._advance()
        self._expect(TokenType.BLOCK_END)
        return Continue(lineno=start.lineno, col_offset=start.col_offset)

    # ------------------------------------------------------------------
    # Variables
    # ------------------------------------------------------------------

    def _parse_assign(self) -> Assign:
        """Parse {% assign name = expr | filter %}."""
        start = self._advance()
        if not self._match(TokenType.NAME):
            raise self._error("Expected variable name after 'assign'")
        name = self._advance().value
        self._expect(TokenType.ASSIGN)
        value = self._parse_filtered_expression()
        self._expect(TokenType.BLOCK_END)
        return Assign(lineno=start.lineno, col_offset=start.col_offset, name=name, value=value)

    def _parse_capture(self) -> Capture:
        """Parse {% capture name %}...{% endcapture %}."""
        start = self._advance()
        self._block_stack.append(("capture", start))
        if not (self._match(TokenType.NAME) or self._match(TokenType.STRING)):
            raise self._error("Expected variable name after 'capture'")
        name = self._advance().value
        self._expect(TokenType.BLOCK_END)
        body = self._parse_body(("endcapture",))
        self._consume_end_tag("endcapture")
        return Capture(
            lineno=start.lineno, col_offset=start.col_offset, name=name, body=tuple(body)
        )

    # ------------------------------------------------------------------
    # Structure
    # ------------------------------------------------------------------

    def _parse_include(self) -> Include:
        """Parse {% include file.html key=value key2="text" %}.

        Bare file names are turned into STRING tokens by the lexer, so the
        template expression is usually a constant.
        """
        start = self._advance()
        template = self._parse_primary()

        params: dict[str, Expr] = {}
        while self._match(TokenType.NAME):
            key = self._advance()
            if not (self._match(TokenType.ASSIGN) or self._match(TokenType.COLON)):
                raise self._error(
                    f"Expected '=' after include parameter '{key.value}'",
                    suggestion='Use {% include file.html name="value" %}',
                )
            self._advance()
            params[key.value] = self._parse_primary()
            if self._match(TokenType.COMMA):
                self._advance()
        self._expect(TokenType.BLOCK_END)

        return Include(
            lineno=start.lineno,
            col_offset=start.col_offset,
            template=template,
            params=params,
        )
