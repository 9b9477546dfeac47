"""Scalar renderer strategies."""

from docfill.strategies.renderers.docx_template import DocxtplRenderer

__all__ = ["DocxtplRenderer"]
