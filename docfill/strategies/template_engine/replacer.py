"""Block-level content replacer.

Walks the top-level blocks of a document body, finds blocks whose whole text
is a placeholder bound to rich markup, and splices the converted markup in
their place. Every other block keeps its position and identity.
"""

import logging
from collections.abc import Callable, Mapping, Sequence
from typing import Any

from docx.oxml.ns import qn

from docfill.interfaces.converter import BaseMarkupConverter
from docfill.interfaces.errors import ConversionError
from docfill.strategies.markup.styles import add_html_styles
from docfill.strategies.template_engine.classifier import is_rich_markup
from docfill.strategies.template_engine.matcher import find_placeholder_key
from docfill.strategies.template_engine.models import BuildOptions

logger = logging.getLogger(__name__)

_SECT_PR = qn("w:sectPr")
_TEXT = qn("w:t")


# =============================================================================
# Block text extraction
# =============================================================================


def _descendant_text(block: Any) -> str:
    return "".join(t.text or "" for t in block.iter(_TEXT))


_TEXT_EXTRACTORS: dict[str, Callable[[Any], str]] = {
    qn("w:p"): _descendant_text,
    qn("w:tbl"): _descendant_text,
    qn("w:sdt"): _descendant_text,
}


def extract_block_text(block: Any) -> str:
    """Return the visible text of a body block.

    Paragraphs, tables and content controls yield the concatenation of their
    ``w:t`` descendants; any other block kind yields "".
    """
    extractor = _TEXT_EXTRACTORS.get(block.tag)
    return extractor(block) if extractor is not None else ""


# =============================================================================
# Document body access
# =============================================================================


def body_blocks(document: Any) -> list[Any]:
    """Return the top-level body blocks in order, without the section properties."""
    return [child for child in document.element.body if child.tag != _SECT_PR]


def replace_body_blocks(document: Any, blocks: Sequence[Any]) -> None:
    """Replace the body content with ``blocks``, keeping ``w:sectPr`` last."""
    body = document.element.body
    sect_pr = body.find(_SECT_PR)
    for child in list(body):
        body.remove(child)
    for block in blocks:
        body.append(block)
    if sect_pr is not None:
        body.append(sect_pr)


def append_body_blocks(document: Any, blocks: Sequence[Any]) -> None:
    """Append ``blocks`` to the body, before ``w:sectPr``."""
    body = document.element.body
    sect_pr = body.find(_SECT_PR)
    for block in blocks:
        if sect_pr is not None:
            sect_pr.addprevious(block)
        else:
            body.append(block)


class BlockReplacer:
    """Expands rich-markup placeholders into native document blocks.

    A block is replaced only when its whole trimmed text is a single
    placeholder whose bound value is rich markup. Scalar-valued placeholders
    are left for the scalar engine.

    Example:
        ```python
        replacer = BlockReplacer(HtmlBlockConverter(document, options), options)
        replaced = replacer.apply(document, {"bio": "<p>Engineer</p>"})
        ```
    """

    def __init__(self, converter: BaseMarkupConverter, options: BuildOptions | None = None) -> None:
        """Initialize the replacer.

        Args:
            converter: Converter bound to the document being rewritten.
            options: Build options (delimiters, global CSS, content hook).
        """
        self._converter = converter
        self._options = options or BuildOptions()
        self._spec = self._options.placeholder

    def prepare_markup(self, markup: str, key: str | None = None) -> str:
        """Merge the global style sheet into markup, then run the content hook.

        Args:
            markup: Rich markup value.
            key: Binding key the markup belongs to; None for standalone fragments.

        Returns:
            Markup ready for conversion.
        """
        prepared = add_html_styles(markup, self._options.global_css)
        if self._options.content_processor is not None:
            prepared = self._options.content_processor(prepared, key)
        return prepared

    def convert(self, markup: str, key: str | None = None) -> list[Any]:
        """Prepare and convert one rich value into blocks.

        Raises:
            ConversionError: If the converter fails; ``key`` is attached.
        """
        prepared = self.prepare_markup(markup, key)
        try:
            return self._converter.convert(prepared, self._options.static_resource_base_uri)
        except ConversionError as e:
            raise ConversionError(f"Failed to convert value of '{key}': {e}", key=key) from e
        except Exception as e:
            logger.error(f"Converter failed for '{key}': {e}", exc_info=True)
            raise ConversionError(f"Failed to convert value of '{key}': {e}", key=key) from e

    def replace(self, blocks: Sequence[Any], bindings: Mapping[str, Any]) -> list[Any]:
        """Produce the new block sequence.

        Args:
            blocks: Current top-level blocks, in order.
            bindings: Placeholder key to value mapping.

        Returns:
            A new list: unmatched blocks in their original order, each matched
            rich block replaced by its converted blocks at the same position.
        """
        result: list[Any] = []
        for block in blocks:
            key = find_placeholder_key(extract_block_text(block), bindings.keys(), self._spec)
            if key is None or not is_rich_markup(bindings[key]):
                result.append(block)
                continue

            converted = self.convert(bindings[key], key)
            logger.debug(f"Replaced placeholder '{key}' with {len(converted)} blocks")
            result.extend(converted)
        return result

    def apply(self, document: Any, bindings: Mapping[str, Any]) -> int:
        """Rewrite the body of ``document`` in place.

        Args:
            document: python-docx Document.
            bindings: Placeholder key to value mapping.

        Returns:
            Number of placeholder blocks that were replaced.
        """
        blocks = body_blocks(document)
        new_blocks = self.replace(blocks, bindings)

        kept = {id(block) for block in new_blocks}
        replaced = sum(1 for block in blocks if id(block) not in kept)

        replace_body_blocks(document, new_blocks)
        logger.info(f"Replaced {replaced} rich placeholders across {len(blocks)} blocks")
        return replaced
