"""Markdown to HTML conversion (Python-Markdown with the ``extra`` extensions)."""

from __future__ import annotations

import markdown

MARKDOWN_EXTENSIONS = ("extra", "sane_lists")


def render_markdown(text: str) -> str:
    """Convert Markdown text to an HTML fragment.

    A fresh converter per call keeps footnote and abbreviation state from
    leaking between documents.
    """
    return markdown.markdown(text, extensions=list(MARKDOWN_EXTENSIONS), output_format="html")
