"""Markdown detection and rendering.

Decides whether a text blob is genuinely structured Markdown rather than
plain prose, and renders Markdown into HTML that the block converter
understands.
"""

import logging
from collections.abc import Iterator
from os import PathLike
from pathlib import Path
from typing import TextIO

from markdown_it import MarkdownIt
from markdown_it.tree import SyntaxTreeNode

from docfill.strategies.markup.styles import wrap_html_document

logger = logging.getLogger(__name__)

# Node kinds whose presence alone marks the text as structured
_STRUCTURE_KINDS = frozenset(
    {
        "heading",
        "bullet_list",
        "ordered_list",
        "list_item",
        "link",
        "image",
        "strong",
        "em",
        "fence",
        "code_block",
        "table",
        "blockquote",
        "hr",
    }
)

# Inline kinds that make an enclosing paragraph structured
_PARAGRAPH_INLINE_KINDS = frozenset({"link", "image", "strong", "em", "code_inline"})


def _parser(html: bool = True) -> MarkdownIt:
    return MarkdownIt("commonmark", {"html": html}).enable("table")


def _paragraph_is_structured(node: SyntaxTreeNode) -> bool:
    for child in node.children:
        # markdown-it keeps a paragraph's inline content under one "inline" node
        inline_children = child.children if child.type == "inline" else [child]
        if any(c.type in _PARAGRAPH_INLINE_KINDS for c in inline_children):
            return True
    return False


_STRUCTURE_CHECKS = {
    "paragraph": _paragraph_is_structured,
}


def _is_structure_bearing(node: SyntaxTreeNode) -> bool:
    if node.type in _STRUCTURE_KINDS:
        return True
    check = _STRUCTURE_CHECKS.get(node.type)
    return check(node) if check is not None else False


def _walk(node: SyntaxTreeNode) -> Iterator[SyntaxTreeNode]:
    """Yield nodes depth-first, pre-order."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.children))


def looks_structured(text: str | None) -> bool:
    """Check whether text contains Markdown structure.

    Headings, lists, links, images, emphasis, code, tables, block quotes and
    thematic breaks count as structure. Paragraphs count only when they hold
    inline formatting. Plain prose never does.

    Args:
        text: Text to inspect.

    Returns:
        True on the first structure-bearing node found.
    """
    if not text or not text.strip():
        return False

    root = SyntaxTreeNode(_parser().parse(text))
    return any(_is_structure_bearing(node) for node in _walk(root))


class MarkdownRenderer:
    """Renders Markdown into HTML for the block converter.

    Tables are enabled; raw HTML inside the Markdown is passed through.
    """

    def __init__(self, allow_html: bool = True) -> None:
        """Initialize the renderer.

        Args:
            allow_html: Pass raw HTML found in the Markdown through unchanged.
        """
        self._md = _parser(html=allow_html)

    def is_markdown(self, text: str | None) -> bool:
        return looks_structured(text)

    def to_html(self, text: str) -> str:
        """Render Markdown into an HTML fragment."""
        return self._md.render(text or "")

    def to_html_document(self, text: str) -> str:
        """Render Markdown into a complete HTML document."""
        return wrap_html_document(self.to_html(text))

    def to_html_if_markdown(self, text: str, document: bool = False) -> str:
        """Render text only when it looks like Markdown.

        Args:
            text: Candidate Markdown.
            document: Wrap the rendered fragment into a full HTML document.

        Returns:
            Rendered HTML, or the input unchanged when it is plain prose.
        """
        if not self.is_markdown(text):
            return text
        logger.debug(f"Rendering {len(text)} characters of Markdown")
        return self.to_html_document(text) if document else self.to_html(text)


def read_markdown(source: str | PathLike | TextIO, encoding: str = "utf-8") -> str:
    """Read Markdown source text from a path or a text stream.

    Args:
        source: File path or readable text stream.
        encoding: Encoding used for paths.

    Returns:
        The text, or "" when the path doesn't exist.
    """
    if hasattr(source, "read"):
        return source.read()

    path = Path(source)
    if not path.is_file():
        logger.warning(f"Markdown file not found: {path}")
        return ""
    return path.read_text(encoding=encoding)
