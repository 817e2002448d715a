"""Layouts: named wrapper templates in ``_layouts/``.

A layout is an ordinary template that may carry its own front matter.
Its ``layout`` key names the layout that wraps it in turn, so a ``post``
layout can sit inside ``default``.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

from quire.site.frontmatter import parse_front_matter, read_source

if TYPE_CHECKING:
    from quire.environment import Environment
    from quire.template import Template

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Layout:
    """One parsed layout.

    Attributes:
        name: File stem (``page`` for ``_layouts/page.html``)
        path: Source-relative path, used in error messages
        front_matter: Layout's own front matter, exposed as ``layout``
        template: Compiled body
    """

    name: str
    path: str
    template: Template
    front_matter: dict[str, Any] = field(default_factory=dict)

    @property
    def parent(self) -> str | None:
        parent = self.front_matter.get("layout")
        return None if parent is None else str(parent)


class LayoutSet:
    """The layouts available to a build, keyed by name.

    Example:
            >>> layouts = LayoutSet.from_sources(env, {"page": "<main>{{ content }}</main>"})
            >>> "page" in layouts
            True

    """

    def __init__(self, layouts: dict[str, Layout] | None = None):
        self._layouts = dict(layouts or {})

    @classmethod
    def load(cls, env: Environment, directory: str | Path, *, root: str | Path) -> LayoutSet:
        """Parse every file in ``directory``. A missing directory yields no layouts.

        Raises:
            ParseError: A layout's front matter is malformed
            TemplateSyntaxError: A layout body fails to parse
        """
        directory = Path(directory)
        layouts: dict[str, Layout] = {}
        if directory.is_dir():
            for path in sorted(directory.iterdir()):
                if not path.is_file() or path.name.startswith("."):
                    continue
                rel = path.relative_to(root).as_posix()
                if path.stem in layouts:
                    logger.warning("Layout %s shadows %s", rel, layouts[path.stem].path)
                    continue
                layouts[path.stem] = _compile(env, path.stem, rel, read_source(path, rel))
        logger.debug("Loaded %d layouts from %s", len(layouts), directory)
        return cls(layouts)

    @classmethod
    def from_sources(cls, env: Environment, sources: dict[str, str]) -> LayoutSet:
        """Build a set from in-memory sources keyed by layout name."""
        return cls(
            {
                name: _compile(env, name, f"_layouts/{name}.html", source)
                for name, source in sources.items()
            }
        )

    def get(self, name: str) -> Layout | None:
        return self._layouts.get(name)

    def names(self) -> list[str]:
        return sorted(self._layouts)

    def __contains__(self, name: object) -> bool:
        return name in self._layouts

    def __iter__(self) -> Iterator[Layout]:
        return iter(self._layouts.values())

    def __len__(self) -> int:
        return len(self._layouts)


def _compile(env: Environment, name: str, path: str, text: str) -> Layout:
    result = parse_front_matter(text, path)
    template = env.from_string(result.body, name=path, filename=path)
    return Layout(name=name, path=path, template=template, front_matter=result.metadata)
