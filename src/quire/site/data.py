"""External data tables (``_data/``) exposed to templates as ``site.data``."""

from __future__ import annotations

import csv
import json
import logging
from collections.abc import Iterator, Mapping
from pathlib import Path
from typing import Any

import yaml

from quire.render_context import get_render_context
from quire.site.errors import MissingIncludeDataError, ParseError
from quire.site.frontmatter import read_source
from quire.template import Drop

logger = logging.getLogger(__name__)

DATA_EXTENSIONS = (".yml", ".yaml", ".json", ".csv")


def _load_file(path: Path, display: str) -> Any:
    text = read_source(path, display)
    suffix = path.suffix.lower()
    try:
        if suffix in (".yml", ".yaml"):
            return yaml.safe_load(text)
        if suffix == ".json":
            return json.loads(text)
    except (yaml.YAMLError, json.JSONDecodeError) as exc:
        raise ParseError(f"Invalid data file: {exc}", path=display) from exc
    return list(csv.DictReader(text.splitlines()))


class DataTables(Mapping[str, Any], Drop):
    """Read-only tables of rows, keyed by file name.

    ``_data/skills.yml`` becomes ``site.data.skills``; nested directories
    become nested tables (``_data/team/members.yml`` →
    ``site.data.team.members``). Rows are passed through untouched.

    Looking up a table that does not exist from a template raises
    MissingIncludeDataError naming the template line and the document
    being composed, rather than rendering an empty loop.

    Example:
            >>> data = DataTables({"skills": [{"name": "Python", "level": 5}]})
            >>> data["skills"][0]["name"]
            'Python'

    """

    def __init__(self, tables: Mapping[str, Any] | None = None, *, prefix: str = ""):
        self._tables: dict[str, Any] = {}
        self._prefix = prefix
        for name, value in (tables or {}).items():
            if isinstance(value, Mapping) and not isinstance(value, DataTables):
                value = DataTables(value, prefix=f"{prefix}{name}.")
            self._tables[name] = value

    @classmethod
    def load(cls, directory: str | Path, *, root: str | Path | None = None) -> DataTables:
        """Load every data file under ``directory``.

        A missing directory yields no tables.

        Raises:
            ParseError: A data file is malformed
        """
        directory = Path(directory)
        root = Path(root) if root is not None else directory.parent
        return cls(_load_tree(directory, root))

    # Mapping

    def __getitem__(self, name: str) -> Any:
        if name not in self._tables:
            raise MissingIncludeDataError(self._prefix + name, available=self.names())
        return self._tables[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._tables)

    def __len__(self) -> int:
        return len(self._tables)

    def __contains__(self, name: object) -> bool:
        return name in self._tables

    def get(self, name: str, default: Any = None) -> Any:
        return self._tables.get(name, default)

    def names(self) -> list[str]:
        return sorted(self._tables)

    # Drop

    def liquid_get(self, name: str) -> Any:
        if name in self._tables:
            return self._tables[name]
        if name == "size":
            return len(self._tables)
        ctx = get_render_context()
        template = ctx.template_name if ctx is not None else None
        document = ctx.document if ctx is not None else None
        raise MissingIncludeDataError(
            self._prefix + name,
            available=self.names(),
            path=document or template,
            lineno=ctx.line if ctx is not None and document is None else None,
            template=template,
            template_lineno=ctx.line if ctx is not None else None,
        )

    def __repr__(self) -> str:
        return f"<DataTables {self.names()}>"


def _load_tree(directory: Path, root: Path) -> dict[str, Any]:
    tables: dict[str, Any] = {}
    if not directory.is_dir():
        return tables
    for path in sorted(directory.iterdir()):
        if path.name.startswith((".", "_")):
            continue
        if path.is_dir():
            tables[path.name] = _load_tree(path, root)
        elif path.suffix.lower() in DATA_EXTENSIONS:
            display = path.relative_to(root).as_posix()
            tables[path.stem] = _load_file(path, display)
            logger.debug("Loaded data table %s", display)
    return tables
