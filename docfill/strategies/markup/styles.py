"""HTML document helpers.

Pure string rewrites of markup: wrapping a fragment into a full HTML
document and merging a style sheet into its ``<style>`` section.
"""

import logging

from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)

_PARSER = "html.parser"
_HEAD_TAGS = frozenset({"style", "title", "meta", "link", "base"})


def _ensure_document(soup: BeautifulSoup) -> BeautifulSoup:
    """Make sure ``soup`` has ``<html>``, ``<head>`` and ``<body>`` elements."""
    html = soup.find("html")
    if html is None:
        top_level = list(soup.contents)
        head = soup.find("head", recursive=False) or soup.new_tag("head")
        body = soup.find("body", recursive=False) or soup.new_tag("body")
        for node in top_level:
            if node is head or node is body:
                continue
            if getattr(node, "name", None) in _HEAD_TAGS:
                head.append(node.extract())
            else:
                body.append(node.extract())
        html = soup.new_tag("html")
        html.append(head.extract() if head.parent is not None else head)
        html.append(body.extract() if body.parent is not None else body)
        soup.append(html)
        return soup

    if soup.find("head") is None:
        html.insert(0, soup.new_tag("head"))
    if soup.find("body") is None:
        body = soup.new_tag("body")
        for node in list(html.contents):
            if getattr(node, "name", None) != "head":
                body.append(node.extract())
        html.append(body)
    return soup


def wrap_html_document(markup: str) -> str:
    """Wrap an HTML fragment into an ``<html><head></head><body>`` document.

    Markup that already has an ``<html>`` root only gains the missing
    ``<head>``/``<body>`` elements.
    """
    soup = BeautifulSoup(markup or "", _PARSER)
    return str(_ensure_document(soup))


def add_html_styles(markup: str, css: str | None) -> str:
    """Merge a style sheet into the markup's style section.

    The CSS is appended to the first existing ``<style>`` element, or a new
    ``<style>`` element is created inside ``<head>``.

    Args:
        markup: HTML document or fragment.
        css: Style sheet text. Blank values leave the markup untouched.

    Returns:
        The rewritten markup.
    """
    if not css or not css.strip():
        return markup

    soup = _ensure_document(BeautifulSoup(markup or "", _PARSER))
    style = soup.find("style")
    if style is not None:
        existing = style.string or style.get_text()
        style.string = f"{existing}\n{css}"
    else:
        style = soup.new_tag("style")
        style.string = css
        soup.find("head").append(style)
    return str(soup)
