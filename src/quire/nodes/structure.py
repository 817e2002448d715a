"""Template structure nodes for the Quire template AST."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from quire.nodes.base import Node
from quire.nodes.expressions import Expr


@dataclass(frozen=True, slots=True)
class Include(Node):
    """Include a partial: {% include skills.html title="Skills" %}

    Parameters are visible inside the partial as ``include.<name>``.
    """

    template: Expr
    params: dict[str, Expr] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class Template(Node):
    """Root node representing a complete template."""

    body: Sequence[Node]
