"""Exceptions raised while loading, parsing and rendering templates.

QuireError
└── TemplateError
    ├── TemplateNotFoundError     # include missing from every loader
    ├── TemplateSyntaxError       # malformed source (lexer and parser)
    ├── TemplateRuntimeError      # failure while rendering
    │   └── UndefinedFilterError  # filter name not registered
    └── UndefinedError            # undefined variable, strict_variables only

Site-level errors (front matter, layouts, data tables) live in
``quire.site.errors`` and share the ``ErrorCode`` enum defined here.

``format_compact()`` output leads with the error code, then the location,
a numbered source window and a hint:

    ```
    Q-RUN-002: Unknown filter 'upcse'
      Location: _layouts/page.html:5
         |
    >  5 | <h1>{{ page.title | upcse }}</h1>
         |
      Hint: Did you mean 'upcase'?
    ```

"""

from __future__ import annotations

from dataclasses import dataclass
from difflib import get_close_matches
from enum import Enum
from typing import Any

from quire.environment import terminal


class ErrorCode(Enum):
    """Searchable error codes.

    Format: Q-{CATEGORY}-{NUMBER}
    Categories: LEX (lexer), PAR (parser), RUN (runtime),
    TPL (template loading), SITE (content and build)
    """

    # Lexer errors (Q-LEX-xxx)
    UNCLOSED_TAG = "Q-LEX-001"
    UNCLOSED_COMMENT = "Q-LEX-002"
    UNCLOSED_VARIABLE = "Q-LEX-003"

    # Parser errors (Q-PAR-xxx)
    UNEXPECTED_TOKEN = "Q-PAR-001"
    UNCLOSED_BLOCK = "Q-PAR-002"
    INVALID_EXPRESSION = "Q-PAR-003"
    UNKNOWN_TAG = "Q-PAR-004"

    # Runtime errors (Q-RUN-xxx)
    FILTER_ERROR = "Q-RUN-001"
    UNDEFINED_FILTER = "Q-RUN-002"
    UNDEFINED_VARIABLE = "Q-RUN-003"
    INCLUDE_DEPTH = "Q-RUN-006"
    RUNTIME_ERROR = "Q-RUN-007"

    # Template loading errors (Q-TPL-xxx)
    TEMPLATE_NOT_FOUND = "Q-TPL-001"
    SYNTAX_ERROR = "Q-TPL-002"

    # Site errors (Q-SITE-xxx)
    FRONT_MATTER = "Q-SITE-001"
    MISSING_LAYOUT = "Q-SITE-002"
    MISSING_DATA = "Q-SITE-003"
    DUPLICATE_ROUTE = "Q-SITE-004"
    CONFIG_ERROR = "Q-SITE-005"

    @property
    def category(self) -> str:
        """Error category: lexer, parser, runtime, template or site."""
        return _CATEGORIES.get(self.value.split("-")[1], "unknown")


_CATEGORIES = {
    "LEX": "lexer",
    "PAR": "parser",
    "RUN": "runtime",
    "TPL": "template",
    "SITE": "site",
}


def format_template_stack(stack: list[tuple[str, int]] | None) -> str:
    """Format the include chain, outermost first.

    Example:
        >>> print(format_template_stack([("_layouts/about.html", 12)]))
        Template stack:
          • _layouts/about.html:12
    """
    if not stack:
        return ""
    entries = (f"  • {terminal.location(f'{name}:{line}')}" for name, line in stack)
    return "\n".join((terminal.dim_text("Template stack:"), *entries))


_GUTTER = "     |"


@dataclass(frozen=True, slots=True)
class SourceSnippet:
    """A window of numbered source lines around a failing line.

    ``column`` (0-based) draws a caret under the offending character.
    """

    lines: tuple[tuple[int, str], ...]
    error_line: int
    column: int | None = None

    def format(self) -> str:
        gutter = terminal.dim_text(_GUTTER)
        rendered = [gutter]
        for lineno, content in self.lines:
            rendered.append(
                terminal.format_source_line(lineno, content, is_error=lineno == self.error_line)
            )
            if lineno == self.error_line and self.column is not None:
                rendered.append(f"{gutter} {terminal.error_line(' ' * self.column + '^')}")
        rendered.append(gutter)
        return "\n".join(rendered)


def build_source_snippet(
    source: str,
    error_line: int,
    *,
    context_lines: int = 2,
    column: int | None = None,
) -> SourceSnippet:
    """Cut ``context_lines`` either side of ``error_line`` out of ``source``."""
    numbered = list(enumerate(source.splitlines(), start=1))
    window = numbered[max(0, error_line - 1 - context_lines) : error_line + context_lines]
    return SourceSnippet(lines=tuple(window), error_line=error_line, column=column)


def _report(
    headline: str,
    location: str | None = None,
    *,
    snippet: SourceSnippet | None = None,
    stack: list[tuple[str, int]] | None = None,
    expression: str | None = None,
    suggestion: str | None = None,
) -> str:
    """Assemble the multi-line report shared by every template error."""
    parts = [headline]
    if location:
        parts.append(f"  Location: {terminal.location(location)}")
    if snippet is not None:
        parts.append(snippet.format())
    if stack:
        parts.extend(("", format_template_stack(stack)))
    if expression:
        parts.append(f"  Expression: {expression}")
    if suggestion:
        parts.append(f"  {terminal.hint('Hint:')} {suggestion}")
    return "\n".join(parts)


class QuireError(Exception):
    """Base exception for every error Quire reports to the user.

    Template errors and site errors both derive from it, so a build can
    catch one type and print any failure with ``format_compact()``.

    Attributes:
        code: Optional ErrorCode for searchable error identification.
    """

    code: ErrorCode | None = None

    def _headline(self, message: str) -> str:
        return terminal.format_error_header(self.code.value if self.code else None, message)

    def format_compact(self) -> str:
        """Format error as a human-readable summary without traceback noise."""
        text = str(self)
        if self.code and self.code.value in text:
            return text
        return self._headline(text)


class TemplateError(QuireError):
    """Base exception for all Quire template errors."""


class TemplateNotFoundError(TemplateError):
    """No loader could supply an include.

    Example:
            >>> env.get_template("missing.html")
        TemplateNotFoundError: Template 'missing.html' not found in: _includes
    """

    code: ErrorCode | None = ErrorCode.TEMPLATE_NOT_FOUND


class TemplateSyntaxError(TemplateError):
    """Malformed template source, reported with a caret under the column."""

    code: ErrorCode | None = ErrorCode.SYNTAX_ERROR

    def __init__(
        self,
        message: str,
        lineno: int | None = None,
        name: str | None = None,
        filename: str | None = None,
        source: str | None = None,
        col_offset: int | None = None,
        suggestion: str | None = None,
        code: ErrorCode | None = None,
    ):
        self.message = message
        self.lineno = lineno
        self.name = name
        self.filename = filename
        self.source = source
        self.col_offset = col_offset
        self.suggestion = suggestion
        if code is not None:
            self.code = code
        super().__init__(self._describe(f"Syntax Error: {message}"))

    @property
    def location(self) -> str:
        parts = [self.filename or self.name or "<template>"]
        if self.lineno:
            parts.append(str(self.lineno))
            if self.col_offset is not None:
                parts.append(str(self.col_offset))
        return ":".join(parts)

    @property
    def source_snippet(self) -> SourceSnippet | None:
        if not self.source or not self.lineno:
            return None
        if self.lineno > self.source.count("\n") + 1:
            return None
        return build_source_snippet(
            self.source, self.lineno, context_lines=0, column=self.col_offset
        )

    def _describe(self, headline: str) -> str:
        return _report(
            headline, self.location, snippet=self.source_snippet, suggestion=self.suggestion
        )

    def format_compact(self) -> str:
        return self._describe(self._headline(self.message))


class TemplateRuntimeError(TemplateError):
    """A template failed while rendering.

    Carries the template location, the include chain that led there and,
    where known, the expression being evaluated:

            ```
            Q-RUN-006: Maximum include depth exceeded (50) when including 'nav.html'
              Location: nav.html:3
              Hint: Check for circular includes: A → B → A
            ```
    """

    code: ErrorCode | None = ErrorCode.RUNTIME_ERROR

    def __init__(
        self,
        message: str,
        *,
        expression: str | None = None,
        template_name: str | None = None,
        lineno: int | None = None,
        suggestion: str | None = None,
        source_snippet: SourceSnippet | None = None,
        template_stack: list[tuple[str, int]] | None = None,
        code: ErrorCode | None = None,
    ):
        self.message = message
        self.expression = expression
        self.template_name = template_name
        self.lineno = lineno
        self.suggestion = suggestion
        self.source_snippet = source_snippet
        self.template_stack = template_stack or []
        if code is not None:
            self.code = code
        located = self.template_name is not None or bool(self.lineno)
        super().__init__(
            self._describe(f"Runtime Error: {message}", self.location if located else None)
        )

    @property
    def location(self) -> str:
        name = self.template_name or "<template>"
        return f"{name}:{self.lineno}" if self.lineno else name

    def _describe(self, headline: str, location: str | None) -> str:
        return _report(
            headline,
            location,
            snippet=self.source_snippet,
            stack=self.template_stack,
            expression=self.expression,
            suggestion=self.suggestion,
        )

    def format_compact(self) -> str:
        return self._describe(self._headline(self.message), self.location)


class UndefinedFilterError(TemplateRuntimeError):
    """A template applied a filter that is not registered.

    Unknown filters are always errors, unlike undefined variables which
    render as empty strings unless ``strict_variables`` is on.
    """

    code: ErrorCode | None = ErrorCode.UNDEFINED_FILTER

    def __init__(self, filter_name: str, available: frozenset[str] = frozenset(), **kwargs: Any):
        self.filter_name = filter_name
        matches = get_close_matches(filter_name, available, n=1, cutoff=0.6)
        suggestion = f"Did you mean '{matches[0]}'?" if matches else None
        super().__init__(f"Unknown filter '{filter_name}'", suggestion=suggestion, **kwargs)


class UndefinedError(TemplateError):
    """An undefined variable was looked up with ``strict_variables`` on.

    Liquid renders undefined variables as empty strings by default. Sites
    that set ``strict_variables: true`` in ``_config.yml`` get this error
    instead, with a "Did you mean?" suggestion when a close match exists.
    """

    code: ErrorCode | None = ErrorCode.UNDEFINED_VARIABLE

    def __init__(
        self,
        name: str,
        template: str | None = None,
        lineno: int | None = None,
        available_names: frozenset[str] | None = None,
        source_snippet: SourceSnippet | None = None,
    ):
        self.name = name
        self.template = template or "<template>"
        self.lineno = lineno
        self.source_snippet = source_snippet
        self.message = f"Undefined variable '{name}' in {self.location}"
        matches = get_close_matches(name, available_names or (), n=1, cutoff=0.6)
        if matches:
            self.message += f". Did you mean '{terminal.suggestion(matches[0])}'?"
        super().__init__(self._describe(self.message))

    @property
    def location(self) -> str:
        return f"{self.template}:{self.lineno}" if self.lineno else self.template

    def _describe(self, headline: str) -> str:
        return _report(
            headline,
            snippet=self.source_snippet,
            suggestion=f"Use {{{{ {self.name} | default: '' }}}} for optional variables",
        )

    def format_compact(self) -> str:
        return self._describe(self._headline(self.message))
