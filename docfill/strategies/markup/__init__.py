"""Markup detection, rendering and rewriting helpers."""

from docfill.strategies.markup.markdown import MarkdownRenderer, looks_structured, read_markdown
from docfill.strategies.markup.styles import add_html_styles, wrap_html_document

__all__ = [
    "MarkdownRenderer",
    "looks_structured",
    "read_markdown",
    "add_html_styles",
    "wrap_html_document",
]
