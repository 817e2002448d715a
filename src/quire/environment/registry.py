"""Copy-on-write view of an environment's filter table."""

from __future__ import annotations

from collections.abc import Callable, Iterator, MutableMapping
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from quire.environment.core import Environment

FilterFunc = Callable[..., Any]


class FilterRegistry(MutableMapping[str, FilterFunc]):
    """Mapping of filter name to function, backed by ``env._filters``.

    Writes swap in a new dict instead of editing the current one, so a
    render that already looked up the table keeps a consistent view.

    Example:
        >>> env.filters["shout"] = lambda value: f"{value}!"
        >>> env.from_string("{{ 'hi' | shout }}").render()
        'hi!'
    """

    __slots__ = ("_env",)

    def __init__(self, env: Environment):
        self._env = env

    def __getitem__(self, name: str) -> FilterFunc:
        return self._env._filters[name]

    def __setitem__(self, name: str, func: FilterFunc) -> None:
        self._env._filters = {**self._env._filters, name: func}

    def __delitem__(self, name: str) -> None:
        table = dict(self._env._filters)
        del table[name]
        self._env._filters = table

    def __iter__(self) -> Iterator[str]:
        return iter(self._env._filters)

    def __len__(self) -> int:
        return len(self._env._filters)

    def __repr__(self) -> str:
        return f"<FilterRegistry {len(self)} filters>"
