"""Per-render state kept out of template variables.

Which template is rendering, the current source line, the include depth
and the include chain live in a ContextVar, not in the variables a
template sees. A page can therefore use any name (``template``,
``line``...) in its front matter without colliding with engine state.

The site layer also records which content document is being composed
(``document``), so errors raised deep inside an include can name the page
that triggered them.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field, replace

DEFAULT_MAX_INCLUDE_DEPTH = 50


@dataclass
class RenderContext:
    """Where rendering currently is.

    Attributes:
        template_name: Template being rendered, for error locations
        filename: Its file path, when file-backed
        source: Its source text, for error snippets
        line: Line of the node being rendered
        include_depth: How many includes deep this render is
        max_include_depth: Depth at which an include is refused
        template_stack: ``(template, line)`` of every include site above this one
        document: Content document being composed, if any
    """

    template_name: str | None = None
    filename: str | None = None
    source: str | None = None
    line: int = 0
    include_depth: int = 0
    max_include_depth: int = DEFAULT_MAX_INCLUDE_DEPTH
    template_stack: list[tuple[str, int]] = field(default_factory=list)
    document: str | None = None

    def check_include_depth(self, template_name: str) -> None:
        """Refuse an include that would go past ``max_include_depth``.

        Raises:
            TemplateRuntimeError: Q-RUN-006, usually a template including itself
        """
        if self.include_depth < self.max_include_depth:
            return
        from quire.environment.exceptions import ErrorCode, TemplateRuntimeError

        raise TemplateRuntimeError(
            f"Maximum include depth exceeded ({self.max_include_depth}) "
            f"when including '{template_name}'",
            template_name=self.template_name,
            lineno=self.line or None,
            template_stack=self.template_stack,
            suggestion="Check for circular includes: A → B → A",
            code=ErrorCode.INCLUDE_DEPTH,
        )

    def child_context(self, template_name: str, filename: str | None, source: str) -> RenderContext:
        """Context for an included template, one level deeper.

        The include site is pushed onto ``template_stack``.
        """
        stack = list(self.template_stack)
        if self.template_name and self.line > 0:
            stack.append((self.template_name, self.line))
        return replace(
            self,
            template_name=template_name,
            filename=filename,
            source=source,
            line=0,
            include_depth=self.include_depth + 1,
            template_stack=stack,
        )

    def nested(
        self, template_name: str | None, filename: str | None, source: str | None
    ) -> RenderContext:
        """Context for a template rendered from inside another render (a layout).

        Depth, include chain and document carry over; locations switch to
        the nested template.
        """
        return replace(
            self,
            template_name=template_name,
            filename=filename,
            source=source,
            line=0,
            template_stack=list(self.template_stack),
        )


_current: ContextVar[RenderContext | None] = ContextVar("quire_render_context", default=None)


def get_render_context() -> RenderContext | None:
    """The active RenderContext, or None outside a render."""
    return _current.get()


@contextmanager
def use_render_context(ctx: RenderContext) -> Iterator[RenderContext]:
    """Make ``ctx`` current for the duration of the block."""
    token = _current.set(ctx)
    try:
        yield ctx
    finally:
        _current.reset(token)


@contextmanager
def render_context(
    template_name: str | None = None,
    filename: str | None = None,
    source: str | None = None,
    *,
    document: str | None = None,
    max_include_depth: int = DEFAULT_MAX_INCLUDE_DEPTH,
) -> Iterator[RenderContext]:
    """Start a fresh RenderContext for the duration of the block.

    Example:
        with render_context("about.md", document="about.md"):
            html = template.render(page=page, site=site)
    """
    ctx = RenderContext(
        template_name=template_name,
        filename=filename,
        source=source,
        document=document,
        max_include_depth=max_include_depth,
    )
    with use_render_context(ctx):
        yield ctx
