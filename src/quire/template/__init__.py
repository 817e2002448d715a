"""Quire template runtime: the Template class and its render helpers."""

from quire.template.core import Template
from quire.template.helpers import UNDEFINED, Drop
from quire.template.loop_context import LoopContext

__all__ = ["UNDEFINED", "Drop", "LoopContext", "Template"]
