"""Expression nodes for the Quire template AST."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Literal

from quire.nodes.base import Node


@dataclass(frozen=True, slots=True)
class Expr(Node):
    """Base class for expressions."""


@dataclass(frozen=True, slots=True)
class Const(Expr):
    """Constant value: string, number, true/false, nil."""

    value: str | int | float | bool | None


@dataclass(frozen=True, slots=True)
class Empty(Expr):
    """The ``empty`` keyword: {% if page.tags == empty %}"""


@dataclass(frozen=True, slots=True)
class Name(Expr):
    """Variable reference: {{ page }}"""

    name: str


@dataclass(frozen=True, slots=True)
class Getattr(Expr):
    """Attribute access: page.title"""

    obj: Expr
    attr: str


@dataclass(frozen=True, slots=True)
class Getitem(Expr):
    """Subscript access: site.data[page.table]"""

    obj: Expr
    key: Expr


@dataclass(frozen=True, slots=True)
class Range(Expr):
    """Inclusive range literal: (1..5)"""

    start: Expr
    end: Expr


@dataclass(frozen=True, slots=True)
class Filter(Expr):
    """Filter application: expr | name: arg, key: value"""

    value: Expr
    name: str
    args: Sequence[Expr] = ()
    kwargs: dict[str, Expr] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class Compare(Expr):
    """Comparison: left op right (op is ==, !=, <, >, <=, >= or contains)"""

    left: Expr
    op: str
    right: Expr


@dataclass(frozen=True, slots=True)
class BoolOp(Expr):
    """Boolean operation, evaluated right to left as in Liquid."""

    op: Literal["and", "or"]
    left: Expr
    right: Expr
