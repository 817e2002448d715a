"""Quire: a static site builder with a Liquid-style template engine.

Content documents (Markdown or HTML with YAML front matter) are rendered
through named layouts, shared includes and external data tables into a
directory of HTML files.

Quickstart:
    >>> from quire import Environment
    >>> env = Environment()
    >>> env.from_string("Hello, {{ name | upcase }}!").render(name="World")
    'Hello, WORLD!'

Building a site:
    >>> from quire.site import SiteBuilder, load_config
    >>> report = SiteBuilder(load_config("my-site")).build()
    >>> report.ok
    True

Architecture:
Template Source → Lexer → Parser → Quire AST → Template.render()

Site pipeline:
source dir → front matter → ContentDocument → PageComposer → RenderedPage → file

"""

# The environment package is imported first: the lexer, parser and
# template runtime all import its exceptions module.
from quire.environment import (
    ChoiceLoader,
    DictLoader,
    Environment,
    ErrorCode,
    FileSystemLoader,
    QuireError,
    SourceSnippet,
    TemplateError,
    TemplateNotFoundError,
    TemplateRuntimeError,
    TemplateSyntaxError,
    UndefinedError,
    UndefinedFilterError,
    build_source_snippet,
    pass_context,
)
from quire._types import Token, TokenType  # noqa: I001
from quire.render_context import RenderContext, get_render_context, render_context
from quire.template import Drop, LoopContext, Template

__version__ = "0.1.0"

__all__ = [
    "ChoiceLoader",
    "DictLoader",
    "Drop",
    "Environment",
    "ErrorCode",
    "FileSystemLoader",
    "LoopContext",
    "QuireError",
    "RenderContext",
    "SourceSnippet",
    "Template",
    "TemplateError",
    "TemplateNotFoundError",
    "TemplateRuntimeError",
    "TemplateSyntaxError",
    "Token",
    "TokenType",
    "UndefinedError",
    "UndefinedFilterError",
    "__version__",
    "build_source_snippet",
    "get_render_context",
    "pass_context",
    "render_context",
]
