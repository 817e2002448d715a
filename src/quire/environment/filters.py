"""Built-in filters.

Jekyll-compatible subset of the Liquid standard filters plus Jekyll's
site filters (``relative_url``, ``markdownify``, ``slugify``...).

Filters are plain callables ``f(value, *args, **kwargs)``. A filter that
needs the render variables (for ``site.baseurl``, say) is decorated with
``@pass_context`` and receives the merged variable mapping first:

    >>> @pass_context
    ... def site_title(context, value):
    ...     return f"{value} | {context['site']['title']}"

"""

from __future__ import annotations

import datetime as _dt
import html
import json
import re
import unicodedata
from collections.abc import Callable, Mapping, Sequence
from typing import Any
from urllib.parse import quote_plus

from quire.template.helpers import UNDEFINED, is_empty, resolve_attr, to_int, to_str

_TAG_RE = re.compile(r"<[^>]*>")
_SLUG_RE = re.compile(r"[^\w]+")


def pass_context(func: Callable) -> Callable:
    """Mark a filter as wanting the render variables as its first argument."""
    func.pass_context = True  # type: ignore[attr-defined]
    return func


def _prop(item: Any, name: str) -> Any:
    value = resolve_attr(item, name)
    return None if value is UNDEFINED else value


def _as_list(value: Any) -> list[Any]:
    if value is None:
        return []
    if isinstance(value, Mapping) or isinstance(value, str):
        return [value]
    if isinstance(value, (Sequence, range)):
        return list(value)
    return [value]


def _number(value: Any) -> int | float:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value
    text = to_str(value).strip()
    try:
        return int(text)
    except ValueError:
        try:
            return float(text)
        except ValueError:
            return 0


def _to_datetime(value: Any) -> _dt.datetime | _dt.date | None:
    if value is None or value == "":
        return None
    if isinstance(value, (_dt.datetime, _dt.date)):
        return value
    if isinstance(value, (int, float)):
        return _dt.datetime.fromtimestamp(value, tz=_dt.timezone.utc)
    text = str(value).strip()
    if text in ("now", "today"):
        return _dt.datetime.now()
    try:
        return _dt.datetime.fromisoformat(text)
    except ValueError:
        pass
    for fmt in ("%Y-%m-%d %H:%M:%S %z", "%Y-%m-%d %H:%M:%S", "%Y-%m-%d"):
        try:
            return _dt.datetime.strptime(text, fmt)
        except ValueError:
            continue
    raise ValueError(f"Invalid date '{text}'")


# ---------------------------------------------------------------------------
# Strings
# ---------------------------------------------------------------------------


def escape(value: Any) -> str:
    return html.escape(to_str(value), quote=True)


def escape_once(value: Any) -> str:
    return html.escape(html.unescape(to_str(value)), quote=True)


def url_encode(value: Any) -> str:
    return quote_plus(to_str(value))


def upcase(value: Any) -> str:
    return to_str(value).upper()


def downcase(value: Any) -> str:
    return to_str(value).lower()


def capitalize(value: Any) -> str:
    text = to_str(value)
    return text[:1].upper() + text[1:]


def strip(value: Any) -> str:
    return to_str(value).strip()


def lstrip(value: Any) -> str:
    return to_str(value).lstrip()


def rstrip(value: Any) -> str:
    return to_str(value).rstrip()


def strip_html(value: Any) -> str:
    return _TAG_RE.sub("", to_str(value))


def strip_newlines(value: Any) -> str:
    return to_str(value).replace("\r", "").replace("\n", "")


def newline_to_br(value: Any) -> str:
    return to_str(value).replace("\n", "<br />\n")


def append(value: Any, suffix: Any) -> str:
    return to_str(value) + to_str(suffix)


def prepend(value: Any, prefix: Any) -> str:
    return to_str(prefix) + to_str(value)


def replace(value: Any, old: Any, new: Any = "") -> str:
    return to_str(value).replace(to_str(old), to_str(new))


def replace_first(value: Any, old: Any, new: Any = "") -> str:
    return to_str(value).replace(to_str(old), to_str(new), 1)


def remove(value: Any, old: Any) -> str:
    return to_str(value).replace(to_str(old), "")


def remove_first(value: Any, old: Any) -> str:
    return to_str(value).replace(to_str(old), "", 1)


def truncate(value: Any, length: Any = 50, ellipsis: Any = "...") -> str:
    """Shorten to ``length`` characters, ellipsis included."""
    text = to_str(value)
    limit = to_int(length)
    marker = to_str(ellipsis)
    if len(text) <= limit:
        return text
    return text[: max(limit - len(marker), 0)] + marker


def truncatewords(value: Any, words: Any = 15, ellipsis: Any = "...") -> str:
    parts = to_str(value).split()
    limit = max(to_int(words), 1)
    if len(parts) <= limit:
        return " ".join(parts)
    return " ".join(parts[:limit]) + to_str(ellipsis)


def split(value: Any, separator: Any = " ") -> list[str]:
    text = to_str(value)
    sep = to_str(separator)
    if not text:
        return []
    if sep == " ":
        return text.split()
    if sep == "":
        return list(text)
    return text.split(sep)


def slugify(value: Any, mode: Any = "default") -> str:
    """Lowercase, hyphen-separated slug (``"Hello, World!"`` → ``hello-world``).

    Mode ``none`` returns the input unchanged; ``raw`` only replaces
    whitespace.
    """
    text = to_str(value)
    mode = to_str(mode) or "default"
    if mode == "none":
        return text
    if mode == "raw":
        return re.sub(r"\s+", "-", text.strip()).lower()
    text = unicodedata.normalize("NFKD", text).encode("ascii", "ignore").decode("ascii")
    return _SLUG_RE.sub("-", text.lower()).strip("-_").replace("_", "-")


def number_of_words(value: Any) -> int:
    return len(to_str(value).split())


def jsonify(value: Any) -> str:
    return json.dumps(value, default=str, ensure_ascii=False)


def xml_escape(value: Any) -> str:
    return html.escape(to_str(value), quote=True)


# ---------------------------------------------------------------------------
# Arrays
# ---------------------------------------------------------------------------


def size(value: Any) -> int:
    if value is None:
        return 0
    try:
        return len(value)
    except TypeError:
        return 0


def first(value: Any) -> Any:
    items = _as_list(value) if not isinstance(value, str) else list(value)
    return items[0] if items else None


def last(value: Any) -> Any:
    items = _as_list(value) if not isinstance(value, str) else list(value)
    return items[-1] if items else None


def join(value: Any, separator: Any = " ") -> str:
    return to_str(separator).join(to_str(item) for item in _as_list(value))


def reverse(value: Any) -> list[Any]:
    return list(reversed(_as_list(value)))


def sort(value: Any, prop: Any = None, nils: Any = "last") -> list[Any]:
    """Sort an array, optionally by a property. Items missing it go last."""
    items = _as_list(value)
    nils_first = to_str(nils) == "first"

    def key(item: Any) -> tuple[int, Any]:
        target = _prop(item, to_str(prop)) if prop is not None else item
        if target is None:
            return (0 if nils_first else 2, 0)
        return (1, target)

    return sorted(items, key=key)


def uniq(value: Any) -> list[Any]:
    seen: list[Any] = []
    for item in _as_list(value):
        if item not in seen:
            seen.append(item)
    return seen


def compact(value: Any) -> list[Any]:
    return [item for item in _as_list(value) if item is not None]


def concat(value: Any, other: Any) -> list[Any]:
    return _as_list(value) + _as_list(other)


def map_(value: Any, prop: Any) -> list[Any]:
    return [_prop(item, to_str(prop)) for item in _as_list(value)]


def where(value: Any, prop: Any, target: Any = None) -> list[Any]:
    """Select items whose ``prop`` equals ``target`` (or contains it, for arrays).

    Without a target, items with a truthy ``prop`` are kept.
    """
    name = to_str(prop)
    result = []
    for item in _as_list(value):
        actual = _prop(item, name)
        if target is None:
            if actual not in (None, False):
                result.append(item)
        elif isinstance(actual, (list, tuple)):
            if to_str(target) in (to_str(entry) for entry in actual):
                result.append(item)
        elif to_str(actual) == to_str(target):
            result.append(item)
    return result


def group_by(value: Any, prop: Any) -> list[dict[str, Any]]:
    """Group items by a property: ``[{name, items, size}, ...]`` in first-seen order."""
    groups: dict[str, list[Any]] = {}
    for item in _as_list(value):
        groups.setdefault(to_str(_prop(item, to_str(prop))), []).append(item)
    return [{"name": name, "items": items, "size": len(items)} for name, items in groups.items()]


def array_to_sentence_string(value: Any, connector: Any = "and") -> str:
    items = [to_str(item) for item in _as_list(value)]
    word = to_str(connector)
    if not items:
        return ""
    if len(items) == 1:
        return items[0]
    if len(items) == 2:
        return f"{items[0]} {word} {items[1]}"
    return f"{', '.join(items[:-1])}, {word} {items[-1]}"


def default(value: Any, fallback: Any = "", allow_false: Any = False) -> Any:
    """Return ``fallback`` when value is nil, false or empty."""
    if value is None or is_empty(value):
        return fallback
    if value is False and not allow_false:
        return fallback
    return value


# ---------------------------------------------------------------------------
# Math
# ---------------------------------------------------------------------------


def plus(value: Any, other: Any) -> int | float:
    return _number(value) + _number(other)


def minus(value: Any, other: Any) -> int | float:
    return _number(value) - _number(other)


def times(value: Any, other: Any) -> int | float:
    return _number(value) * _number(other)


def divided_by(value: Any, other: Any) -> int | float:
    left, right = _number(value), _number(other)
    if isinstance(left, int) and isinstance(right, int):
        return left // right
    return left / right


def modulo(value: Any, other: Any) -> int | float:
    return _number(value) % _number(other)


# ---------------------------------------------------------------------------
# Dates
# ---------------------------------------------------------------------------


def date(value: Any, fmt: Any = "%Y-%m-%d") -> str:
    """Format a date with strftime; unparseable input is returned unchanged."""
    parsed = _to_datetime(value)
    if parsed is None:
        return to_str(value)
    return parsed.strftime(to_str(fmt))


def date_to_xmlschema(value: Any) -> str:
    parsed = _to_datetime(value)
    return parsed.isoformat() if parsed is not None else ""


def date_to_string(value: Any) -> str:
    parsed = _to_datetime(value)
    return parsed.strftime("%d %b %Y") if parsed is not None else ""


def date_to_long_string(value: Any) -> str:
    parsed = _to_datetime(value)
    return parsed.strftime("%d %B %Y") if parsed is not None else ""


# ---------------------------------------------------------------------------
# Site filters
# ---------------------------------------------------------------------------


def _site(context: Mapping[str, Any]) -> Mapping[str, Any]:
    site = context.get("site")
    return site if isinstance(site, Mapping) else {}


@pass_context
def relative_url(context: Mapping[str, Any], value: Any) -> str:
    """Prefix a site-relative path with ``site.baseurl``."""
    path = to_str(value)
    baseurl = to_str(_site(context).get("baseurl")).rstrip("/")
    if re.match(r"^[a-z][a-z0-9+.-]*://", path):
        return path
    if path and not path.startswith("/"):
        path = "/" + path
    return f"{baseurl}{path}" or "/"


@pass_context
def absolute_url(context: Mapping[str, Any], value: Any) -> str:
    """Prefix a site-relative path with ``site.url`` and ``site.baseurl``."""
    path = to_str(value)
    if re.match(r"^[a-z][a-z0-9+.-]*://", path):
        return path
    url = to_str(_site(context).get("url")).rstrip("/")
    return url + relative_url(context, path)


def markdownify(value: Any) -> str:
    from quire.markdown import render_markdown

    return render_markdown(to_str(value))


DEFAULT_FILTERS: dict[str, Callable[..., Any]] = {
    # Strings
    "escape": escape,
    "escape_once": escape_once,
    "url_encode": url_encode,
    "cgi_escape": url_encode,
    "xml_escape": xml_escape,
    "upcase": upcase,
    "downcase": downcase,
    "capitalize": capitalize,
    "strip": strip,
    "lstrip": lstrip,
    "rstrip": rstrip,
    "strip_html": strip_html,
    "strip_newlines": strip_newlines,
    "newline_to_br": newline_to_br,
    "append": append,
    "prepend": prepend,
    "replace": replace,
    "replace_first": replace_first,
    "remove": remove,
    "remove_first": remove_first,
    "truncate": truncate,
    "truncatewords": truncatewords,
    "split": split,
    "slugify": slugify,
    "number_of_words": number_of_words,
    "jsonify": jsonify,
    # Arrays
    "size": size,
    "first": first,
    "last": last,
    "join": join,
    "reverse": reverse,
    "sort": sort,
    "uniq": uniq,
    "compact": compact,
    "concat": concat,
    "map": map_,
    "where": where,
    "group_by": group_by,
    "array_to_sentence_string": array_to_sentence_string,
    "default": default,
    # Math
    "plus": plus,
    "minus": minus,
    "times": times,
    "divided_by": divided_by,
    "modulo": modulo,
    # Dates
    "date": date,
    "date_to_xmlschema": date_to_xmlschema,
    "date_to_string": date_to_string,
    "date_to_long_string": date_to_long_string,
    # Site
    "relative_url": relative_url,
    "absolute_url": absolute_url,
    "markdownify": markdownify,
}
