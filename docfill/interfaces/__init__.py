"""Abstract base classes and errors for document building collaborators."""

from docfill.interfaces.converter import BaseMarkupConverter
from docfill.interfaces.errors import (
    ArgumentError,
    ConversionError,
    DocfillError,
    TemplateRenderError,
    TemplateSyntaxError,
)
from docfill.interfaces.renderer import BaseScalarRenderer, TemplateSource

__all__ = [
    "BaseMarkupConverter",
    "BaseScalarRenderer",
    "TemplateSource",
    "DocfillError",
    "ArgumentError",
    "ConversionError",
    "TemplateRenderError",
    "TemplateSyntaxError",
]
