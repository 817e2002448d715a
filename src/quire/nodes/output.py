"""Output nodes for the Quire template AST."""

from __future__ import annotations

from dataclasses import dataclass

from quire.nodes.base import Node
from quire.nodes.expressions import Expr


@dataclass(frozen=True, slots=True)
class Output(Node):
    """Output expression: {{ expr }}"""

    expr: Expr


@dataclass(frozen=True, slots=True)
class Data(Node):
    """Raw text between template constructs, including {% raw %} bodies."""

    value: str
