"""Variable nodes for the Quire template AST."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from quire.nodes.base import Node
from quire.nodes.expressions import Expr


@dataclass(frozen=True, slots=True)
class Assign(Node):
    """Template-scoped variable: {% assign x = expr | filter %}"""

    name: str
    value: Expr


@dataclass(frozen=True, slots=True)
class Capture(Node):
    """Capture block content: {% capture x %}...{% endcapture %}"""

    name: str
    body: Sequence[Node]
