"""Site build orchestration: discover, compose, write.

A build is one pass over the source tree:

    1. Read configuration, layouts and data tables
    2. Split files into content documents (front matter) and static files
    3. Check that no two documents share a route
    4. Compose each document and write it under the destination
    5. Copy static files verbatim

A failing document does not stop the build: its error is recorded in the
:class:`BuildReport` and the remaining documents still build. With
``fail_fast`` the first failure is raised instead.
"""

from __future__ import annotations

import datetime as _dt
import fnmatch
import logging
import os
import shutil
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Any

from quire.environment import Environment, FileSystemLoader, QuireError
from quire.site.composer import PageComposer, RenderedPage
from quire.site.config import SiteConfig
from quire.site.data import DataTables
from quire.site.document import ContentDocument
from quire.site.errors import DuplicateRouteError
from quire.site.frontmatter import parse_front_matter, read_source
from quire.site.layouts import LayoutSet

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BuildFailure:
    """One document that failed to build."""

    path: str
    error: QuireError

    def format_compact(self) -> str:
        return f"{self.path}\n{self.error.format_compact()}"


@dataclass
class BuildReport:
    """Outcome of a build.

    Attributes:
        pages: Pages written, in build order
        static_files: Source-relative paths copied verbatim
        failures: Documents that failed, with their errors
    """

    pages: list[RenderedPage] = field(default_factory=list)
    static_files: list[str] = field(default_factory=list)
    failures: list[BuildFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures

    def summary(self) -> str:
        text = f"{len(self.pages)} pages, {len(self.static_files)} static files"
        if self.failures:
            text += f", {len(self.failures)} failed"
        return text


class SiteBuilder:
    """Builds a site from ``config.source`` into ``config.destination``.

    Example:
            >>> report = SiteBuilder(load_config("my-site")).build()
            >>> report.ok, report.summary()
            (True, '4 pages, 2 static files')

    """

    def __init__(self, config: SiteConfig, *, fail_fast: bool | None = None):
        self.config = config
        self.fail_fast = config.fail_fast if fail_fast is None else fail_fast
        self.env = Environment(
            loader=FileSystemLoader(config.includes_path),
            strict_variables=config.strict_variables,
        )

    # ------------------------------------------------------------------
    # Discovery
    # ------------------------------------------------------------------

    def discover(self) -> tuple[list[str], list[str]]:
        """Walk the source tree.

        Returns:
            ``(candidates, static_files)``: source-relative POSIX paths of
            files that open with ``---`` and of everything else
        """
        source = self.config.source
        destination = self.config.destination_path.resolve()
        posts_dir = self.config.posts_dir
        candidates: list[str] = []
        static: list[str] = []

        for dirpath, dirnames, filenames in os.walk(source):
            current = Path(dirpath)
            rel_dir = current.relative_to(source)
            kept = []
            for name in sorted(dirnames):
                rel = (rel_dir / name).as_posix()
                if (current / name).resolve() == destination:
                    continue
                if name.startswith((".", "_")) and rel != posts_dir:
                    continue
                if self._excluded(rel):
                    continue
                kept.append(name)
            dirnames[:] = kept

            for name in sorted(filenames):
                rel = (rel_dir / name).as_posix()
                if name.startswith((".", "_")) or self._excluded(rel):
                    continue
                if _opens_with_delimiter(current / name):
                    candidates.append(rel)
                else:
                    static.append(rel)

        return candidates, static

    def _excluded(self, rel: str) -> bool:
        return any(
            fnmatch.fnmatch(rel, pattern) or fnmatch.fnmatch(PurePosixPath(rel).name, pattern)
            for pattern in self.config.exclude
        )

    def read_document(self, rel: str) -> ContentDocument | None:
        """Parse one candidate. None when it turns out to have no front matter.

        Raises:
            ParseError: Unreadable file, malformed front matter or field values
        """
        text = read_source(self.config.source / rel, rel)
        result = parse_front_matter(text, rel)
        if not result.has_front_matter:
            return None
        return ContentDocument(
            path=rel,
            front_matter=result.metadata,
            body=result.body,
            body_lineno=result.body_lineno,
            markdown_ext=self.config.markdown_ext,
            posts_dir=self.config.posts_dir,
        )

    # ------------------------------------------------------------------
    # Build
    # ------------------------------------------------------------------

    def build(self) -> BuildReport:
        """Run the build.

        Raises:
            QuireError: With ``fail_fast``, the first document failure; always,
                a malformed layout or data file (they affect every page)
        """
        config = self.config
        report = BuildReport()
        logger.info("Building %s → %s", config.source, config.destination_path)

        layouts = LayoutSet.load(self.env, config.layouts_path, root=config.source)
        data = DataTables.load(config.data_path, root=config.source)

        candidates, static = self.discover()
        documents: list[ContentDocument] = []
        for rel in candidates:
            try:
                document = self.read_document(rel)
            except QuireError as exc:
                self._fail(report, rel, exc)
                continue
            if document is None:
                static.append(rel)
            else:
                documents.append(document)

        documents, static = self._check_routes(documents, static, report)
        composer = PageComposer(self.env, layouts, self.site_variables(documents, data))

        destination = config.destination_path
        for document in documents:
            try:
                page = composer.compose(document)
            except QuireError as exc:
                self._fail(report, document.path, exc)
                continue
            target = destination / page.output_path
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(page.html, "utf-8")
            report.pages.append(page)
            logger.debug("Wrote %s", target)

        for rel in static:
            target = destination / rel
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(config.source / rel, target)
            report.static_files.append(rel)

        if report.ok:
            logger.info("Built %s", report.summary())
        else:
            logger.error("Build finished with errors: %s", report.summary())
        return report

    def _fail(self, report: BuildReport, path: str, exc: QuireError) -> None:
        if self.fail_fast:
            raise exc
        logger.debug("Failed %s: %s", path, exc)
        report.failures.append(BuildFailure(path, exc))

    def _check_routes(
        self, documents: list[ContentDocument], static: list[str], report: BuildReport
    ) -> tuple[list[ContentDocument], list[str]]:
        """Drop documents and static files whose output path is already taken.

        Documents claim paths first, in path order; a static file never
        overwrites a rendered page.
        """
        claimed: dict[str, str] = {}
        unique: list[ContentDocument] = []
        for document in sorted(documents, key=lambda doc: doc.path):
            try:
                target = document.output_path(".").as_posix()
            except QuireError as exc:
                self._fail(report, document.path, exc)
                continue
            if target in claimed:
                error = DuplicateRouteError(f"/{target}", [claimed[target], document.path])
                self._fail(report, document.path, error)
                continue
            claimed[target] = document.path
            unique.append(document)

        copied: list[str] = []
        for rel in sorted(static):
            if rel in claimed:
                self._fail(report, rel, DuplicateRouteError(f"/{rel}", [claimed[rel], rel]))
                continue
            copied.append(rel)
        return unique, copied

    def site_variables(self, documents: list[ContentDocument], data: DataTables) -> dict[str, Any]:
        """The ``site`` variable every template sees."""
        pages = sorted(
            (doc for doc in documents if not doc.is_post),
            key=lambda doc: (doc.weight is None, doc.weight or 0, doc.path),
        )
        posts = sorted(
            (doc for doc in documents if doc.is_post),
            key=lambda doc: (_sort_date(doc.date), doc.path),
            reverse=True,
        )
        post_vars = [doc.to_liquid() for doc in posts]

        tags: dict[str, list[dict[str, Any]]] = {}
        for post in post_vars:
            for tag in post["tags"]:
                tags.setdefault(tag, []).append(post)

        site = self.config.to_liquid()
        site.update(
            {
                "pages": [doc.to_liquid() for doc in pages],
                "posts": post_vars,
                "tags": dict(sorted(tags.items())),
                "data": data,
                "time": self.config.time or _dt.datetime.now(),
            }
        )
        return site


def _sort_date(value: _dt.datetime | None) -> _dt.datetime:
    if value is None:
        return _dt.datetime.min
    return value.replace(tzinfo=None)


def _opens_with_delimiter(path: Path) -> bool:
    with path.open("rb") as fh:
        return fh.read(3) == b"---"
