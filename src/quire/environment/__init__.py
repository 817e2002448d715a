"""Template environment: loaders, filters, exceptions and the Environment."""

from quire.environment.exceptions import (
    ErrorCode,
    QuireError,
    SourceSnippet,
    TemplateError,
    TemplateNotFoundError,
    TemplateRuntimeError,
    TemplateSyntaxError,
    UndefinedError,
    UndefinedFilterError,
    build_source_snippet,
)
from quire.environment.loaders import ChoiceLoader, DictLoader, FileSystemLoader, Loader
from quire.environment.core import Environment  # noqa: I001
from quire.environment.filters import DEFAULT_FILTERS, pass_context

__all__ = [
    "DEFAULT_FILTERS",
    "ChoiceLoader",
    "DictLoader",
    "Environment",
    "ErrorCode",
    "FileSystemLoader",
    "Loader",
    "QuireError",
    "SourceSnippet",
    "TemplateError",
    "TemplateNotFoundError",
    "TemplateRuntimeError",
    "TemplateSyntaxError",
    "UndefinedError",
    "UndefinedFilterError",
    "build_source_snippet",
    "pass_context",
]
