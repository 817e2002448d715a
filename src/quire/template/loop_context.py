"""The ``forloop`` variable inside ``{% for %}`` blocks."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from typing import Any

from quire.template.helpers import UNDEFINED, Drop


class LoopContext(Drop):
    """Position of the current iteration, exposed to templates as ``forloop``.

    ``index``/``rindex`` count from 1, ``index0``/``rindex0`` from 0.
    ``parentloop`` is the enclosing loop's ``forloop`` (nil at the top level).

    Example:
            ```liquid
            {% for skill in site.data.skills %}
              {{ skill.name }}{% unless forloop.last %}, {% endunless %}
            {% endfor %}
            ```

    """

    __slots__ = ("_items", "index0", "parentloop")

    def __init__(self, items: list[Any], parentloop: LoopContext | None = None) -> None:
        self._items = items
        self.index0 = 0
        self.parentloop = parentloop

    @property
    def length(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Any]:
        for self.index0, item in enumerate(self._items):
            yield item

    def liquid_get(self, name: str) -> Any:
        field = _FIELDS.get(name)
        return UNDEFINED if field is None else field(self)

    def __repr__(self) -> str:
        return f"<LoopContext {self.index0 + 1}/{self.length}>"


_FIELDS: dict[str, Callable[[LoopContext], Any]] = {
    "index": lambda loop: loop.index0 + 1,
    "index0": lambda loop: loop.index0,
    "rindex": lambda loop: loop.length - loop.index0,
    "rindex0": lambda loop: loop.length - loop.index0 - 1,
    "first": lambda loop: loop.index0 == 0,
    "last": lambda loop: loop.index0 == loop.length - 1,
    "length": lambda loop: loop.length,
    "parentloop": lambda loop: loop.parentloop,
}
