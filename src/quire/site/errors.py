"""Site build errors.

Every error here names the content document (or layout, or config file)
that caused it, so a failed build points straight at the file to fix.
They share the ErrorCode enum and ``format_compact()`` with template
errors.
"""

from __future__ import annotations

from difflib import get_close_matches

from quire.environment import terminal
from quire.environment.exceptions import ErrorCode, QuireError


class SiteError(QuireError):
    """Base class for content and build errors.

    Attributes:
        message: Error description
        path: Source-relative path of the offending file
        lineno: 1-based line in that file, when known
        suggestion: Actionable fix hint
    """

    def __init__(
        self,
        message: str,
        *,
        path: str | None = None,
        lineno: int | None = None,
        suggestion: str | None = None,
    ):
        self.message = message
        self.path = path
        self.lineno = lineno
        self.suggestion = suggestion
        super().__init__(self._format_message())

    @property
    def location(self) -> str | None:
        if self.path is None:
            return None
        return f"{self.path}:{self.lineno}" if self.lineno else self.path

    def _format_message(self) -> str:
        if self.location:
            return f"{self.location}: {self.message}"
        return self.message

    def format_compact(self) -> str:
        parts = [self._headline(self.message)]
        if self.location:
            parts.append(f"  Location: {terminal.location(self.location)}")
        if self.suggestion:
            parts.append(f"  {terminal.hint('Hint:')} {self.suggestion}")
        return "\n".join(parts)


class ParseError(SiteError):
    """Malformed front matter or configuration file."""

    code: ErrorCode | None = ErrorCode.FRONT_MATTER


class ConfigError(ParseError):
    """``_config.yml`` could not be read or holds an invalid value."""

    code: ErrorCode | None = ErrorCode.CONFIG_ERROR


class MissingLayoutError(SiteError):
    """A document declares no layout, or names one that does not exist.

    Example:
            >>> raise MissingLayoutError("Layout 'post' not found", path="about.md", layout="post")
        MissingLayoutError: about.md: Layout 'post' not found
    """

    code: ErrorCode | None = ErrorCode.MISSING_LAYOUT

    def __init__(self, message: str, *, layout: str | None = None, **kwargs):
        self.layout = layout
        super().__init__(message, **kwargs)


class LayoutCycleError(MissingLayoutError):
    """Layouts name each other in a loop, so the chain never ends."""

    def __init__(self, chain: list[str], **kwargs):
        self.chain = chain
        super().__init__(
            f"Layout cycle: {' → '.join(chain)}",
            layout=chain[-1],
            suggestion="Remove the 'layout' key from one of these layouts",
            **kwargs,
        )


class MissingIncludeDataError(SiteError):
    """An include or layout looked up a data table that does not exist.

    Attributes:
        table: Dotted name of the missing table
        template: Template that performed the lookup, when raised while rendering
    """

    code: ErrorCode | None = ErrorCode.MISSING_DATA

    def __init__(
        self,
        table: str,
        *,
        available: list[str] | None = None,
        template: str | None = None,
        template_lineno: int | None = None,
        **kwargs,
    ):
        self.table = table
        self.template = template
        self.template_lineno = template_lineno
        available = available or []
        if "suggestion" not in kwargs:
            matches = get_close_matches(table, available, n=1, cutoff=0.6)
            if matches:
                kwargs["suggestion"] = f"Did you mean '{matches[0]}'?"
            elif available:
                kwargs["suggestion"] = f"Available tables: {', '.join(available)}"
            else:
                kwargs["suggestion"] = f"Add _data/{table.replace('.', '/')}.yml"
        message = f"Data table '{table}' not found"
        if template and template != kwargs.get("path"):
            where = f"{template}:{template_lineno}" if template_lineno else template
            message += f" (looked up in {where})"
        super().__init__(message, **kwargs)


class DuplicateRouteError(SiteError):
    """Two files would be written to the same output path."""

    code: ErrorCode | None = ErrorCode.DUPLICATE_ROUTE

    def __init__(self, url: str, paths: list[str]):
        self.url = url
        self.paths = paths
        super().__init__(
            f"Route '{url}' is produced by {len(paths)} files: {', '.join(paths)}",
            path=paths[-1],
            suggestion="Give each document a distinct permalink",
        )
