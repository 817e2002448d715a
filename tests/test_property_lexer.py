"""Property-based tests for the Quire lexer.

Uses hypothesis to verify structural invariants that must hold for
*all* inputs, not just hand-picked examples:

- Plain text round-trips through tokenization unchanged
- Variable expressions produce balanced delimiter tokens
- Arbitrary input never causes an unhandled crash
- Comments never reach the token stream
"""

from __future__ import annotations

from hypothesis import given, settings

from quire._types import TokenType
from quire.environment.exceptions import TemplateSyntaxError
from quire.lexer import LexerError, tokenize

from .strategies import (
    arbitrary_template_source,
    liquid_variable,
    plain_text,
    template_fragment,
)


class TestLexerProperties:
    """Property-based lexer invariants."""

    @given(source=plain_text)
    @settings(max_examples=200)
    def test_plain_text_roundtrip(self, source: str) -> None:
        """Text without delimiters produces a single DATA token with the original content."""
        tokens = tokenize(source)
        assert [t.type for t in tokens] == [TokenType.DATA, TokenType.EOF]
        assert tokens[0].value == source

    @given(source=liquid_variable)
    @settings(max_examples=200)
    def test_variable_has_balanced_delimiters(self, source: str) -> None:
        """A {{ var }} expression produces VARIABLE_BEGIN, NAME and VARIABLE_END."""
        types = [t.type for t in tokenize(source)]
        assert types == [
            TokenType.VARIABLE_BEGIN,
            TokenType.NAME,
            TokenType.VARIABLE_END,
            TokenType.EOF,
        ]

    @given(source=arbitrary_template_source)
    @settings(max_examples=300)
    def test_no_unhandled_crash(self, source: str) -> None:
        """The lexer raises only syntax errors, never TypeError/IndexError etc."""
        try:
            tokenize(source)
        except (TemplateSyntaxError, LexerError):
            pass

    @given(source=template_fragment)
    @settings(max_examples=200)
    def test_fragment_delimiter_balance(self, source: str) -> None:
        """Well-formed fragments produce balanced BEGIN/END pairs and no comment text."""
        tokens = tokenize(source)
        types = [t.type for t in tokens]
        assert types.count(TokenType.VARIABLE_BEGIN) == types.count(TokenType.VARIABLE_END)
        assert TokenType.BLOCK_BEGIN not in types
        assert tokens[-1].type == TokenType.EOF

    @given(source=plain_text)
    @settings(max_examples=100)
    def test_plain_text_renders_unchanged(self, source: str) -> None:
        """Rendering delimiter-free text returns it verbatim."""
        from quire import Environment

        assert Environment().from_string(source).render() == source


class TestLexerExamples:
    """Hand-picked tokenization cases."""

    def test_line_numbers(self):
        tokens = tokenize("a\nb\n{{ x }}")
        begin = next(t for t in tokens if t.type is TokenType.VARIABLE_BEGIN)
        assert begin.lineno == 3
        assert begin.col_offset == 0

    def test_whitespace_control_strips_both_sides(self):
        tokens = tokenize("a  \n {{- x -}} \n b")
        data = [t.value for t in tokens if t.type is TokenType.DATA]
        assert data == ["a", "b"]

    def test_raw_body_is_data(self):
        tokens = tokenize("{% raw %}{{ not_a_var }}{% endraw %}")
        assert tokens[0].type is TokenType.DATA
        assert tokens[0].value == "{{ not_a_var }}"

    def test_comment_is_dropped(self):
        tokens = tokenize("a{% comment %}{{ hidden }}{% endcomment %}b")
        assert [t.value for t in tokens if t.type is TokenType.DATA] == ["a", "b"]

    def test_include_path_becomes_string(self):
        tokens = tokenize("{% include widgets/skills.html level=3 %}")
        assert tokens[1].type is TokenType.NAME
        assert tokens[2].type is TokenType.STRING
        assert tokens[2].value == "widgets/skills.html"

    def test_hyphenated_name(self):
        tokens = tokenize("{{ page.header-image }}")
        names = [t.value for t in tokens if t.type is TokenType.NAME]
        assert names == ["page", "header-image"]

    def test_dash_before_closer_is_not_part_of_name(self):
        tokens = tokenize("{{ x-}}")
        assert [t.value for t in tokens if t.type is TokenType.NAME] == ["x"]

    def test_range_tokens(self):
        types = [t.type for t in tokenize("{{ (1..3) }}")]
        assert TokenType.DOTDOT in types

    def test_unclosed_variable(self):
        try:
            tokenize("Hello {{ name")
        except LexerError as exc:
            assert exc.code.value == "Q-LEX-003"
            assert exc.lineno == 1
        else:
            raise AssertionError("Expected LexerError")

    def test_unclosed_comment(self):
        try:
            tokenize("{% comment %} never closed")
        except LexerError as exc:
            assert exc.code.value == "Q-LEX-002"
        else:
            raise AssertionError("Expected LexerError")

    def test_unexpected_character(self):
        try:
            tokenize("{{ a @ b }}")
        except LexerError as exc:
            assert "'@'" in str(exc)
        else:
            raise AssertionError("Expected LexerError")
