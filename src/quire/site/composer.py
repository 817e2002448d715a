"""Page composition: a content document rendered through its layout chain.

Composition is a pure function of the document, the layouts, and the
``site`` variables. It writes nothing and keeps no state between calls,
so composing the same inputs twice yields byte-identical HTML.

Stages:
    1. The body is rendered as a template (``page``, ``site``, ``layout``)
    2. Markdown documents are converted to HTML
    3. Each layout in the chain renders with ``content`` bound to the
       previous stage's output, innermost first

"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from difflib import get_close_matches
from pathlib import Path
from typing import Any

from quire.environment import Environment
from quire.markdown import render_markdown
from quire.render_context import render_context
from quire.site.document import NO_LAYOUT, ContentDocument
from quire.site.errors import LayoutCycleError, MissingLayoutError
from quire.site.layouts import Layout, LayoutSet

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RenderedPage:
    """Final HTML for one document.

    Attributes:
        document: The source document
        url: Route the page is served at
        output_path: File path relative to the destination directory
        html: Rendered output
    """

    document: ContentDocument
    url: str
    output_path: Path
    html: str


class PageComposer:
    """Renders documents through their layouts.

    Example:
            >>> env = Environment()
            >>> layouts = LayoutSet.from_sources(
            ...     env, {"page": "<h1>{{ page.title }}</h1>{{ content }}"}
            ... )
            >>> doc = ContentDocument("about.md", {"title": "About", "layout": "page"}, "Hi")
            >>> PageComposer(env, layouts).compose(doc).html
            '<h1>About</h1><p>Hi</p>'

    """

    def __init__(
        self,
        env: Environment,
        layouts: LayoutSet,
        site: Mapping[str, Any] | None = None,
    ):
        self.env = env
        self.layouts = layouts
        self.site = site if site is not None else {}

    def resolve_layouts(self, document: ContentDocument) -> list[Layout]:
        """The layout chain for ``document``, innermost first.

        ``layout: none`` yields an empty chain.

        Raises:
            MissingLayoutError: No layout declared, or a named layout is unknown
            LayoutCycleError: Layouts name each other in a loop
        """
        name = document.layout
        if name is None:
            raise MissingLayoutError(
                "Document declares no layout",
                path=document.path,
                suggestion=f"Add 'layout: <name>' to the front matter ({self._available()}), "
                f"or 'layout: {NO_LAYOUT}' to render the body alone",
            )

        chain: list[Layout] = []
        seen: list[str] = []
        referrer = document.path
        while name is not None and name != NO_LAYOUT:
            if name in seen:
                raise LayoutCycleError([*seen, name], path=document.path)
            layout = self.layouts.get(name)
            if layout is None:
                message = f"Layout '{name}' not found"
                if referrer != document.path:
                    message += f" (referenced by {referrer})"
                raise MissingLayoutError(
                    message,
                    path=document.path,
                    layout=name,
                    suggestion=self._suggest(name),
                )
            seen.append(name)
            chain.append(layout)
            referrer = layout.path
            name = layout.parent
        return chain

    def compose(self, document: ContentDocument) -> RenderedPage:
        """Render ``document`` to HTML.

        Raises:
            MissingLayoutError: See :meth:`resolve_layouts`
            MissingIncludeDataError: A template looked up an unknown data table
            TemplateError: A body, layout or include failed to parse or render
        """
        chain = self.resolve_layouts(document)

        with render_context(
            document.path,
            document.path,
            document.body,
            document=document.path,
            max_include_depth=self.env.max_include_depth,
        ):
            body = self.env.from_string(document.body, name=document.path, filename=document.path)
            content = body.render(
                page=document.to_liquid(),
                site=self.site,
                layout=chain[0].front_matter if chain else {},
            )
            if document.is_markdown:
                content = render_markdown(content)

            page = document.to_liquid(content=content)
            for layout in chain:
                content = layout.template.render(
                    page=page,
                    site=self.site,
                    layout=layout.front_matter,
                    content=content,
                )

        logger.debug(
            "Composed %s through %s",
            document.path,
            " → ".join(layout.name for layout in chain) or "no layout",
        )
        return RenderedPage(
            document=document,
            url=document.url,
            output_path=document.output_path(""),
            html=content,
        )

    def _available(self) -> str:
        names = self.layouts.names()
        return f"available: {', '.join(names)}" if names else "no layouts found in _layouts/"

    def _suggest(self, name: str) -> str:
        matches = get_close_matches(name, self.layouts.names(), n=1, cutoff=0.6)
        if matches:
            return f"Did you mean '{matches[0]}'?"
        return f"Create _layouts/{name}.html ({self._available()})"
