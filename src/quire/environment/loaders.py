"""Where ``{% include %}`` finds its templates.

A loader is anything with ``get_source(name) -> (source, filename)`` and
``list_templates()``. Quire ships three:

- `FileSystemLoader`: one or more directories (``_includes/``, a theme's includes)
- `DictLoader`: an in-memory mapping, for tests and embedded partials
- `ChoiceLoader`: several loaders, first hit wins (site overrides theme)

A custom loader only needs the two methods:
    ```python
    class ZipLoader:
        def get_source(self, name: str) -> tuple[str, str | None]:
            try:
                return self.archive.read(name).decode(), f"zip://{name}"
            except KeyError:
                raise TemplateNotFoundError(f"Template '{name}' not found") from None

        def list_templates(self) -> list[str]:
            return sorted(self.archive.namelist())
    ```

"""

from __future__ import annotations

from difflib import get_close_matches
from pathlib import Path, PurePosixPath
from typing import Protocol

from quire.environment.exceptions import TemplateNotFoundError


class Loader(Protocol):
    """Protocol every template loader satisfies."""

    def get_source(self, name: str) -> tuple[str, str | None]: ...

    def list_templates(self) -> list[str]: ...


def _not_found(name: str, known: list[str], where: str = "") -> TemplateNotFoundError:
    """Build the not-found error, pointing at the closest known name."""
    message = f"Template '{name}' not found{where}"
    close = get_close_matches(name, known, n=1, cutoff=0.6)
    if close:
        message += f". Did you mean '{close[0]}'?"
    elif known:
        shown = ", ".join(known[:10])
        more = f" ... ({len(known)} total)" if len(known) > 10 else ""
        message += f". Available: {shown}{more}"
    return TemplateNotFoundError(message)


def _check_name(name: str) -> None:
    pure = PurePosixPath(name)
    if not pure.parts or pure.is_absolute() or ".." in pure.parts:
        raise TemplateNotFoundError(
            f"Invalid template name '{name}': must be a relative path inside the search directory"
        )


class FileSystemLoader:
    """Read includes from directories, searched in the order given.

    Names may point into subdirectories (``widgets/skills.html``) but may
    not climb out of a search directory.

    Example:
            >>> loader = FileSystemLoader(["_includes", "theme/_includes"])
            >>> source, filename = loader.get_source("skills.html")
            >>> filename
            '_includes/skills.html'

    """

    __slots__ = ("_encoding", "_search_path")

    def __init__(self, search_path: str | Path | list[str | Path], encoding: str = "utf-8"):
        if isinstance(search_path, (str, Path)):
            search_path = [search_path]
        self._search_path = [Path(entry) for entry in search_path]
        self._encoding = encoding

    def get_source(self, name: str) -> tuple[str, str]:
        _check_name(name)
        for directory in self._search_path:
            candidate = directory / name
            if candidate.is_file():
                return candidate.read_text(self._encoding), str(candidate)
        searched = ", ".join(str(directory) for directory in self._search_path)
        raise _not_found(name, self.list_templates(), f" in: {searched}")

    def list_templates(self) -> list[str]:
        """Every non-hidden file under the search path, relative to its directory."""
        found = {
            entry.relative_to(directory).as_posix()
            for directory in self._search_path
            if directory.is_dir()
            for entry in directory.rglob("*")
            if entry.is_file() and not entry.name.startswith(".")
        }
        return sorted(found)

    def __repr__(self) -> str:
        return f"<FileSystemLoader {[str(d) for d in self._search_path]}>"


class DictLoader:
    """Serve templates from a ``{name: source}`` mapping.

    The filename is always None: nothing is file-backed.

    Example:
            >>> env = Environment(loader=DictLoader({"hi.html": "Hi {{ include.who }}"}))
            >>> env.from_string("{% include hi.html who='Ada' %}").render()
            'Hi Ada'

    """

    __slots__ = ("_sources",)

    def __init__(self, sources: dict[str, str]):
        self._sources = sources

    def get_source(self, name: str) -> tuple[str, None]:
        try:
            return self._sources[name], None
        except KeyError:
            raise _not_found(name, self.list_templates()) from None

    def list_templates(self) -> list[str]:
        return sorted(self._sources)


class ChoiceLoader:
    """Ask each loader in turn; the first that has the template wins.

    Lets a site's own ``_includes`` override the partials a theme ships:

            >>> site = DictLoader({"footer.html": "<footer>Mine</footer>"})
            >>> theme = DictLoader({"footer.html": "<footer>Theme</footer>"})
            >>> env = Environment(loader=ChoiceLoader([site, theme]))
            >>> env.get_template("footer.html").render()
            '<footer>Mine</footer>'

    """

    __slots__ = ("_loaders",)

    def __init__(self, loaders: list[Loader]):
        self._loaders = loaders

    def get_source(self, name: str) -> tuple[str, str | None]:
        for loader in self._loaders:
            try:
                return loader.get_source(name)
            except TemplateNotFoundError:
                continue
        raise _not_found(name, self.list_templates(), f" in any of {len(self._loaders)} loaders")

    def list_templates(self) -> list[str]:
        return sorted({name for loader in self._loaders for name in loader.list_templates()})
