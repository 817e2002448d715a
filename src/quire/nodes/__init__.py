"""Quire template AST.

Nodes are frozen dataclasses produced by the parser and walked by
``quire.template.core.Template`` at render time.
"""

from quire.nodes.base import Node
from quire.nodes.control_flow import Break, Case, Continue, For, If
from quire.nodes.expressions import (
    BoolOp,
    Compare,
    Const,
    Empty,
    Expr,
    Filter,
    Getattr,
    Getitem,
    Name,
    Range,
)
from quire.nodes.output import Data, Output
from quire.nodes.structure import Include, Template
from quire.nodes.variables import Assign, Capture

__all__ = [
    "Assign",
    "BoolOp",
    "Break",
    "Capture",
    "Case",
    "Compare",
    "Const",
    "Continue",
    "Data",
    "Empty",
    "Expr",
    "Filter",
    "For",
    "Getattr",
    "Getitem",
    "If",
    "Include",
    "Name",
    "Node",
    "Output",
    "Range",
    "Template",
]
