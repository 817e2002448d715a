"""Control flow nodes for the Quire template AST."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from quire.nodes.base import Node
from quire.nodes.expressions import Expr


@dataclass(frozen=True, slots=True)
class If(Node):
    """Conditional: {% if cond %}...{% elsif cond %}...{% else %}...{% endif %}

    ``{% unless %}`` parses to an If with ``negated=True``.
    """

    test: Expr
    body: Sequence[Node]
    elif_: Sequence[tuple[Expr, Sequence[Node]]] = ()
    else_: Sequence[Node] = ()
    negated: bool = False


@dataclass(frozen=True, slots=True)
class Case(Node):
    """Switch: {% case x %}{% when 'a', 'b' %}...{% else %}...{% endcase %}"""

    subject: Expr
    whens: Sequence[tuple[Sequence[Expr], Sequence[Node]]]
    else_: Sequence[Node] = ()


@dataclass(frozen=True, slots=True)
class For(Node):
    """For loop: {% for x in items limit:3 offset:1 reversed %}...{% else %}...{% endfor %}"""

    target: str
    iter: Expr
    body: Sequence[Node]
    empty: Sequence[Node] = ()
    limit: Expr | None = None
    offset: Expr | None = None
    reversed: bool = False


@dataclass(frozen=True, slots=True)
class Break(Node):
    """Break out of loop: {% break %}"""


@dataclass(frozen=True, slots=True)
class Continue(Node):
    """Skip to next iteration: {% continue %}"""
