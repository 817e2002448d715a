"""Content documents: one source file with front matter, and its route."""

from __future__ import annotations

import datetime as _dt
import re
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Any

from quire.site.errors import ParseError

DEFAULT_MARKDOWN_EXT = (".md", ".markdown")
NO_LAYOUT = "none"

_POST_NAME_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})-(.+)$")
_HTML_EXT = (".html", ".htm")


def _to_datetime(value: Any, path: str) -> _dt.datetime | None:
    if value is None:
        return None
    if isinstance(value, _dt.datetime):
        return value
    if isinstance(value, _dt.date):
        return _dt.datetime(value.year, value.month, value.day)
    try:
        return _dt.datetime.fromisoformat(str(value).strip())
    except ValueError:
        raise ParseError(
            f"Invalid date {value!r}",
            path=path,
            suggestion="Use YYYY-MM-DD or YYYY-MM-DD HH:MM:SS",
        ) from None


@dataclass(frozen=True)
class ContentDocument:
    """A content file split into front matter and body.

    Attributes:
        path: Source-relative POSIX path (``about.md``, ``_posts/2024-01-02-hi.md``)
        front_matter: Every key the YAML block held, unknown keys included
        body: Raw text after the front matter block
        body_lineno: Line of the source file the body starts on
        markdown_ext: Extensions treated as Markdown
        posts_dir: Directory holding dated posts

    Example:
            >>> doc = ContentDocument("about.md", {"title": "About", "permalink": "/about/"}, "Hi")
            >>> doc.url
            '/about/'

    """

    path: str
    front_matter: dict[str, Any] = field(default_factory=dict)
    body: str = ""
    body_lineno: int = 1
    markdown_ext: tuple[str, ...] = DEFAULT_MARKDOWN_EXT
    posts_dir: str = "_posts"

    def __post_init__(self) -> None:
        weight = self.front_matter.get("weight")
        if weight is not None and (isinstance(weight, bool) or not isinstance(weight, int)):
            raise ParseError(
                f"'weight' must be an integer, got {weight!r}",
                path=self.path,
                suggestion="Use a whole number such as 'weight: 10'",
            )
        tags = self.front_matter.get("tags")
        if tags is not None and not isinstance(tags, (str, list)):
            raise ParseError(
                f"'tags' must be a list or a space-separated string, got {type(tags).__name__}",
                path=self.path,
            )
        self.date  # noqa: B018 - raises ParseError for a bad front matter or file-name date
        if ".." in PurePosixPath(self.url).parts:
            raise ParseError(
                f"Route '{self.url}' climbs out of the site with '..'",
                path=self.path,
                suggestion="Use a permalink inside the site, such as '/about/'",
            )

    # ------------------------------------------------------------------
    # Front matter fields
    # ------------------------------------------------------------------

    @property
    def title(self) -> str | None:
        title = self.front_matter.get("title")
        if title is not None:
            return str(title)
        if self.is_post:
            return self.slug.replace("-", " ").capitalize()
        return None

    @property
    def tags(self) -> tuple[str, ...]:
        tags = self.front_matter.get("tags")
        if not tags:
            return ()
        if isinstance(tags, str):
            return tuple(tags.split())
        return tuple(str(tag) for tag in tags if tag is not None)

    @property
    def style(self) -> str | None:
        return self.front_matter.get("style")

    @property
    def color(self) -> str | None:
        return self.front_matter.get("color")

    @property
    def description(self) -> str | None:
        return self.front_matter.get("description")

    @property
    def layout(self) -> str | None:
        layout = self.front_matter.get("layout")
        return None if layout is None else str(layout)

    @property
    def permalink(self) -> str | None:
        permalink = self.front_matter.get("permalink")
        return None if permalink is None else str(permalink)

    @property
    def weight(self) -> int | None:
        return self.front_matter.get("weight")

    # ------------------------------------------------------------------
    # Derived
    # ------------------------------------------------------------------

    @property
    def _pure(self) -> PurePosixPath:
        return PurePosixPath(self.path)

    @property
    def is_markdown(self) -> bool:
        return self._pure.suffix.lower() in self.markdown_ext

    @property
    def is_post(self) -> bool:
        return self._pure.parts[0] == self.posts_dir and len(self._pure.parts) > 1

    @property
    def _post_match(self) -> re.Match[str] | None:
        return _POST_NAME_RE.match(self._pure.stem) if self.is_post else None

    @property
    def slug(self) -> str:
        match = self._post_match
        return match.group(4) if match else self._pure.stem

    @property
    def date(self) -> _dt.datetime | None:
        """Front matter ``date``, else the date in a post's file name."""
        value = _to_datetime(self.front_matter.get("date"), self.path)
        if value is not None:
            return value
        match = self._post_match
        if match:
            year, month, day = (int(part) for part in match.group(1, 2, 3))
            try:
                return _dt.datetime(year, month, day)
            except ValueError:
                raise ParseError(
                    f"Invalid date in file name '{self._pure.name}'", path=self.path
                ) from None
        return None

    @property
    def output_ext(self) -> str:
        suffix = self._pure.suffix.lower()
        if self.is_markdown or suffix in _HTML_EXT:
            return ".html"
        return suffix

    @property
    def url(self) -> str:
        """The route this document is served at.

        ``permalink`` wins. Posts route to ``/YYYY/MM/DD/slug.html``,
        ``index`` pages to their directory, everything else to
        ``/<dir>/<stem><ext>``.
        """
        if self.permalink:
            return self.permalink if self.permalink.startswith("/") else "/" + self.permalink

        if self.is_post:
            date = self.date
            if date is not None:
                return f"/{date:%Y/%m/%d}/{self.slug}.html"
            return f"/{self.slug}.html"

        parent = self._pure.parent.as_posix()
        prefix = "/" if parent == "." else f"/{parent}/"
        if self._pure.stem == "index" and self.output_ext == ".html":
            return prefix
        return f"{prefix}{self._pure.stem}{self.output_ext}"

    def output_path(self, destination: str | Path) -> Path:
        """Where the rendered file is written under ``destination``."""
        route = self.url.lstrip("/")
        if not route or route.endswith("/"):
            route += "index.html"
        elif not PurePosixPath(route).suffix:
            route += "/index.html"
        return Path(destination).joinpath(*PurePosixPath(route).parts)

    @property
    def excerpt(self) -> str:
        """First paragraph of the body."""
        return self.body.strip().split("\n\n", 1)[0]

    def to_liquid(self, content: str | None = None) -> dict[str, Any]:
        """The ``page`` variable templates see."""
        page = dict(self.front_matter)
        page.update(
            {
                "title": self.title,
                "tags": list(self.tags),
                "url": self.url,
                "path": self.path,
                "slug": self.slug,
                "date": self.date,
                "excerpt": self.excerpt,
                "content": self.body if content is None else content,
            }
        )
        return page

    def __repr__(self) -> str:
        return f"<ContentDocument {self.path} → {self.url}>"
