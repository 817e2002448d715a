"""Parser for Quire templates: token stream in, immutable AST out."""

from quire.parser.core import Parser

__all__ = ["Parser"]
