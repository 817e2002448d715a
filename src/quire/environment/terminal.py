"""ANSI styling for build diagnostics.

Styling is on when stdout is a TTY. ``FORCE_COLOR`` turns it on and
``NO_COLOR`` turns it off (https://no-color.org/); ``FORCE_COLOR`` wins
when both are set. The decision is made once, at import.
"""

from __future__ import annotations

import os
import re
import sys

# SGR parameters
_SGR = {
    "bold": 1,
    "dim": 2,
    "red": 31,
    "green": 32,
    "yellow": 33,
    "cyan": 36,
    "bright_red": 91,
    "bright_green": 92,
}

_RESET = "\033[0m"
_ANSI_RE = re.compile(r"\x1B\[[0-?]*[ -/]*[@-~]")


def _should_use_colors() -> bool:
    if os.environ.get("FORCE_COLOR"):
        return True
    return not os.environ.get("NO_COLOR") and sys.stdout.isatty()


_USE_COLORS = _should_use_colors()


def supports_color() -> bool:
    return _USE_COLORS


def colorize(text: str, *styles: str) -> str:
    """Wrap ``text`` in one SGR sequence combining ``styles``.

    Unknown style names are ignored. Returns ``text`` untouched when
    styling is off.

    Example:
        >>> colorize("failed", "bright_red", "bold")  # on a TTY
        '\\033[91;1mfailed\\033[0m'
    """
    params = [str(_SGR[style]) for style in styles if style in _SGR]
    if not _USE_COLORS or not params:
        return text
    return f"\033[{';'.join(params)}m{text}{_RESET}"


def strip_colors(text: str) -> str:
    return _ANSI_RE.sub("", text)


# Roles used across error messages


def error_code(text: str) -> str:
    return colorize(text, "bright_red", "bold")


def location(text: str) -> str:
    return colorize(text, "cyan")


def line_number(text: str) -> str:
    return colorize(text, "yellow")


def error_line(text: str) -> str:
    return colorize(text, "bright_red")


def hint(text: str) -> str:
    return colorize(text, "green")


def suggestion(text: str) -> str:
    return colorize(text, "bright_green", "bold")


def dim_text(text: str) -> str:
    return colorize(text, "dim")


def success(text: str) -> str:
    return colorize(text, "green", "bold")


def format_error_header(code: str | None, message: str) -> str:
    """``Q-XXX-000: message``, or just the message when there is no code."""
    return f"{error_code(code)}: {message}" if code else message


def format_source_line(lineno: int, content: str, is_error: bool = False) -> str:
    """One numbered source line; the failing line is marked ``>``."""
    gutter = line_number(f"{'>' if is_error else ' '}{lineno:>3}")
    return f"{gutter} | {error_line(content) if is_error else dim_text(content)}"
