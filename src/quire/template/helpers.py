"""Pure runtime helpers used while rendering templates.

These implement Liquid's value semantics: attribute lookup on mappings,
sequences and drops, stringification, truthiness and comparisons. None of
them touch Environment state.
"""

from __future__ import annotations

import datetime as _dt
from collections.abc import Mapping, Sequence
from typing import Any


class _Undefined:
    """Sentinel for a lookup that found nothing."""

    __slots__ = ()

    def __repr__(self) -> str:
        return "UNDEFINED"

    def __bool__(self) -> bool:
        return False


UNDEFINED: Any = _Undefined()


class Drop:
    """Base class for objects exposing a fixed set of attributes to templates.

    Only names listed in ``liquid_attributes`` are visible, so templates
    cannot reach arbitrary Python attributes.
    """

    liquid_attributes: frozenset[str] = frozenset()

    def liquid_get(self, name: str) -> Any:
        if name in self.liquid_attributes:
            return getattr(self, name)
        return UNDEFINED


def resolve_attr(obj: Any, name: str) -> Any:
    """Look up ``obj.name`` with Liquid semantics.

    Mappings are indexed by key. Sequences and strings expose ``size``,
    ``first`` and ``last``. Drops expose their declared attributes.
    Anything else resolves to UNDEFINED.
    """
    if obj is None or obj is UNDEFINED:
        return UNDEFINED

    if isinstance(obj, Drop):
        return obj.liquid_get(name)

    if isinstance(obj, Mapping):
        if name in obj:
            return obj[name]
        if name == "size":
            return len(obj)
        return UNDEFINED

    if isinstance(obj, (str, Sequence)):
        if name == "size":
            return len(obj)
        if isinstance(obj, str):
            return UNDEFINED
        if name == "first":
            return obj[0] if obj else None
        if name == "last":
            return obj[-1] if obj else None
        return UNDEFINED

    return UNDEFINED


def resolve_item(obj: Any, key: Any) -> Any:
    """Look up ``obj[key]``; missing keys and bad indexes resolve to UNDEFINED."""
    if obj is None or obj is UNDEFINED:
        return UNDEFINED

    if isinstance(obj, Drop) and isinstance(key, str):
        return obj.liquid_get(key)

    if isinstance(obj, Mapping):
        return obj[key] if key in obj else UNDEFINED

    if isinstance(obj, Sequence) and not isinstance(obj, str):
        if isinstance(key, bool) or not isinstance(key, int):
            return resolve_attr(obj, str(key))
        try:
            return obj[key]
        except IndexError:
            return UNDEFINED

    if isinstance(key, str):
        return resolve_attr(obj, key)
    return UNDEFINED


def is_truthy(value: Any) -> bool:
    """Liquid truthiness: only nil and false are falsy."""
    return not (value is None or value is False or value is UNDEFINED)


def is_empty(value: Any) -> bool:
    """True for empty strings, sequences and mappings (the ``empty`` keyword)."""
    if value is None or value is UNDEFINED:
        return False
    if isinstance(value, (str, Sequence, Mapping)):
        return len(value) == 0
    return False


def to_str(value: Any) -> str:
    """Stringify a value for output.

    nil renders as an empty string, booleans as ``true``/``false`` and
    sequences as the concatenation of their items.
    """
    if value is None or value is UNDEFINED:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return "".join(to_str(item) for item in value)
    if isinstance(value, _dt.datetime):
        return value.strftime("%Y-%m-%d %H:%M:%S %z").strip()
    return str(value)


def to_iterable(value: Any) -> list[Any]:
    """Materialize a for-loop source.

    Mappings iterate as ``[key, value]`` pairs; a lone string or number
    iterates once; nil iterates zero times.
    """
    if value is None or value is UNDEFINED:
        return []
    if isinstance(value, Mapping):
        return [[key, item] for key, item in value.items()]
    if isinstance(value, (str, bytes)):
        return [value]
    if isinstance(value, (Sequence, range)):
        return list(value)
    try:
        return list(value)
    except TypeError:
        return [value]


def to_int(value: Any) -> int:
    """Coerce a loop bound or filter argument to int (strings are parsed)."""
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        return int(value)
    try:
        return int(str(value).strip())
    except ValueError:
        raise TypeError(f"Expected an integer, got {value!r}") from None


def compare(left: Any, op: str, right: Any) -> bool:
    """Evaluate a Liquid comparison.

    Raises:
        TypeError: When ordering values of incompatible types
    """
    if left is UNDEFINED:
        left = None
    if right is UNDEFINED:
        right = None

    if op == "==":
        return _equals(left, right)
    if op == "!=":
        return not _equals(left, right)
    if op == "contains":
        if left is None or right is None:
            return False
        if isinstance(left, str):
            return to_str(right) in left
        if isinstance(left, (Mapping, Sequence)):
            return right in left
        return False

    if left is None or right is None:
        return False
    try:
        if op == "<":
            return left < right
        if op == ">":
            return left > right
        if op == "<=":
            return left <= right
        if op == ">=":
            return left >= right
    except TypeError:
        raise TypeError(
            f"Cannot compare {type(left).__name__} with {type(right).__name__} using '{op}'"
        ) from None
    raise ValueError(f"Unknown comparison operator '{op}'")


class EmptyValue:
    """Runtime value of the ``empty`` keyword."""

    __slots__ = ()

    def __repr__(self) -> str:
        return "empty"


EMPTY = EmptyValue()


def _equals(left: Any, right: Any) -> bool:
    if isinstance(right, EmptyValue):
        return is_empty(left)
    if isinstance(left, EmptyValue):
        return is_empty(right)
    # true == 1 is false in Liquid
    if isinstance(left, bool) != isinstance(right, bool):
        return False
    return left == right
