"""Markup converter strategies."""

from docfill.strategies.converters.html import HtmlBlockConverter, StyleSheet

__all__ = ["HtmlBlockConverter", "StyleSheet"]
