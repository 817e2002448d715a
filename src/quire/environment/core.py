"""Quire Environment: central configuration and template management.

The Environment owns the loader, the filter table and global variables,
and caches parsed templates. Templates keep a weak reference back to it.

Example:
    >>> from quire import Environment, DictLoader
    >>> env = Environment(loader=DictLoader({"hello.html": "Hi {{ include.who }}"}))
    >>> env.from_string("{% include hello.html who='there' %}").render()
    'Hi there'

"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any

from quire.environment.exceptions import TemplateNotFoundError
from quire.environment.filters import DEFAULT_FILTERS
from quire.environment.loaders import Loader
from quire.environment.registry import FilterRegistry
from quire.lexer import tokenize
from quire.nodes import Template as TemplateNode
from quire.parser import Parser
from quire.render_context import DEFAULT_MAX_INCLUDE_DEPTH, get_render_context
from quire.template import Template

logger = logging.getLogger(__name__)


class Environment:
    """Configuration shared by every template it creates.

    Attributes:
        loader: Where ``include`` and ``get_template`` find sources
        globals: Variables visible to every render (overridden by render args)
        strict_variables: Raise UndefinedError instead of rendering nothing
        max_include_depth: Nested include limit, catches circular includes

    """

    def __init__(
        self,
        loader: Loader | None = None,
        *,
        strict_variables: bool = False,
        max_include_depth: int = DEFAULT_MAX_INCLUDE_DEPTH,
        globals: Mapping[str, Any] | None = None,
        filters: Mapping[str, Callable[..., Any]] | None = None,
    ):
        self.loader = loader
        self.strict_variables = strict_variables
        self.max_include_depth = max_include_depth
        self.globals: dict[str, Any] = dict(globals or {})
        self._filters: dict[str, Callable[..., Any]] = dict(DEFAULT_FILTERS)
        if filters:
            self._filters.update(filters)
        self._cache: dict[str, Template] = {}

    @property
    def filters(self) -> FilterRegistry:
        """Dict-like view of the filter table."""
        return FilterRegistry(self)

    def add_filter(self, name: str, func: Callable[..., Any]) -> None:
        self.filters[name] = func

    def parse(
        self, source: str, name: str | None = None, filename: str | None = None
    ) -> TemplateNode:
        """Tokenize and parse source into an AST.

        Raises:
            TemplateSyntaxError: On malformed template source
        """
        tokens = tokenize(source, name)
        return Parser(tokens, name, filename, source).parse()

    def from_string(
        self, source: str, name: str | None = None, filename: str | None = None
    ) -> Template:
        """Compile a template from a string. The result is not cached."""
        ast = self.parse(source, name, filename)
        return Template(self, ast, name, filename, source)

    def get_template(self, name: str) -> Template:
        """Load a template through the loader, caching the parsed result.

        Raises:
            TemplateNotFoundError: If no loader is configured or none has it
            TemplateSyntaxError: If the template fails to parse
        """
        cached = self._cache.get(name)
        if cached is not None:
            return cached

        if self.loader is None:
            raise TemplateNotFoundError(f"Template '{name}' not found: no loader configured")

        source, filename = self.loader.get_source(name)
        template = self.from_string(source, name=name, filename=filename)
        self._cache[name] = template
        logger.debug("Loaded template %s from %s", name, filename or "(memory)")
        return template

    def get_include(self, name: str) -> Template:
        """Resolve the target of an ``include`` tag.

        The not-found message names the including template and line.
        """
        try:
            return self.get_template(name)
        except TemplateNotFoundError as exc:
            ctx = get_render_context()
            if ctx is None or ctx.template_name is None:
                raise
            raise TemplateNotFoundError(
                f"{exc} (included from {ctx.template_name}:{ctx.line})"
            ) from exc

    def list_templates(self) -> list[str]:
        return self.loader.list_templates() if self.loader is not None else []

    def clear_cache(self) -> None:
        self._cache.clear()

    def __repr__(self) -> str:
        return f"<Environment loader={self.loader!r} filters={len(self._filters)}>"
