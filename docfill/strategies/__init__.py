"""Concrete strategy implementations."""

from docfill.strategies.converters import HtmlBlockConverter
from docfill.strategies.markup import MarkdownRenderer
from docfill.strategies.renderers import DocxtplRenderer
from docfill.strategies.template_engine.builder import DocumentBuilder

__all__ = [
    "HtmlBlockConverter",
    "MarkdownRenderer",
    "DocxtplRenderer",
    "DocumentBuilder",
]
