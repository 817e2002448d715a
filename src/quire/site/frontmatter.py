"""YAML front matter: the ``---`` delimited block at the top of a content file."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from quire.site.errors import ParseError

_OPEN_RE = re.compile(r"\A---[ \t]*\r?\n")
_CLOSE_RE = re.compile(r"^(?:---|\.\.\.)[ \t]*(?:\r?\n|\Z)", re.MULTILINE)


@dataclass(frozen=True)
class FrontMatterResult:
    """Parsed front matter metadata and the document body that follows it."""

    metadata: dict[str, Any] = field(default_factory=dict)
    body: str = ""
    has_front_matter: bool = False
    body_lineno: int = 1


def read_source(path: Path, display: str) -> str:
    """Read a site file as UTF-8.

    Raises:
        ParseError: The file cannot be read or is not valid UTF-8
    """
    try:
        return path.read_text("utf-8")
    except UnicodeDecodeError as exc:
        raise ParseError(
            f"File is not valid UTF-8 (byte {exc.start})",
            path=display,
            suggestion="Save the file with UTF-8 encoding",
        ) from exc
    except OSError as exc:
        raise ParseError(f"Cannot read file: {exc.strerror or exc}", path=display) from exc


def has_front_matter(text: str) -> bool:
    """True when the text opens with a ``---`` line."""
    return _OPEN_RE.match(text) is not None


def split_front_matter(text: str, path: str | None = None) -> tuple[str | None, str]:
    """Split ``text`` into ``(raw_yaml, body)``.

    ``raw_yaml`` is None when the text does not open with ``---``. The
    body is returned exactly as written.

    Raises:
        ParseError: The opening ``---`` is never closed
    """
    opening = _OPEN_RE.match(text)
    if opening is None:
        return None, text
    closing = _CLOSE_RE.search(text, opening.end())
    if closing is None:
        raise ParseError(
            "Front matter opened with '---' is never closed",
            path=path,
            lineno=1,
            suggestion="Add a '---' line after the last front matter key",
        )
    return text[opening.end() : closing.start()], text[closing.end() :]


def parse_front_matter(text: str, path: str | None = None) -> FrontMatterResult:
    """Parse a content file's front matter with ``yaml.safe_load``.

    An empty block yields ``{}``; a file without a block yields an empty
    result with ``has_front_matter=False``.

    Raises:
        ParseError: Unclosed block, malformed YAML, or YAML that is not a mapping
    """
    raw, body = split_front_matter(text, path)
    if raw is None:
        return FrontMatterResult(metadata={}, body=body)

    try:
        metadata = yaml.safe_load(raw)
    except yaml.YAMLError as exc:
        mark = getattr(exc, "problem_mark", None)
        problem = getattr(exc, "problem", None) or str(exc)
        raise ParseError(
            f"Invalid YAML in front matter: {problem}",
            path=path,
            # +2: the opening delimiter line, and marks are 0-based
            lineno=mark.line + 2 if mark is not None else None,
        ) from exc

    if metadata is None:
        metadata = {}
    if not isinstance(metadata, dict):
        raise ParseError(
            f"Front matter must be a mapping of keys to values, got {type(metadata).__name__}",
            path=path,
            lineno=2,
        )

    body_lineno = text.count("\n", 0, len(text) - len(body)) + 1
    return FrontMatterResult(
        metadata={str(key): value for key, value in metadata.items()},
        body=body,
        has_front_matter=True,
        body_lineno=body_lineno,
    )
