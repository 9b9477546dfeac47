"""HTML to Word block converter.

Turns an HTML fragment into native ``w:p``/``w:tbl`` elements bound to a
python-docx document, so they can be spliced into its body. Only the common
subset of HTML and CSS that maps cleanly onto Word is supported: headings,
paragraphs, lists, block quotes, preformatted text, rules, tables, links,
images and run-level formatting.
"""

import base64
import binascii
import io
import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any
from urllib.parse import unquote, urljoin, urlparse
from urllib.request import url2pathname

from bs4 import BeautifulSoup
from bs4.element import Comment, Declaration, Doctype, NavigableString, ProcessingInstruction, Tag
from docx.enum.style import WD_STYLE_TYPE
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.opc.constants import RELATIONSHIP_TYPE
from docx.oxml import OxmlElement
from docx.oxml.ns import qn
from docx.oxml.table import CT_Tbl
from docx.shared import Cm, Inches, Length, Mm, Pt, RGBColor
from docx.table import Table
from docx.text.paragraph import Paragraph

from docfill.core.fonts import StyleRegistry, get_style_registry
from docfill.interfaces.converter import BaseMarkupConverter
from docfill.interfaces.errors import ConversionError
from docfill.strategies.template_engine.models import BuildOptions, FormattingOption

logger = logging.getLogger(__name__)

MONOSPACE_FONT = "Courier New"
HYPERLINK_COLOR = "0563C1"

_CONTAINER_TAGS = frozenset(
    {"html", "body", "div", "section", "article", "main", "header", "footer",
     "nav", "aside", "figure", "figcaption", "center", "address", "details", "summary"}
)
_SKIPPED_TAGS = frozenset({"head", "style", "script", "title", "meta", "link", "template", "noscript"})
_HEADING_TAGS = {f"h{level}": level for level in range(1, 7)}
_GENERIC_FONTS = frozenset(
    {"serif", "sans-serif", "monospace", "cursive", "fantasy", "system-ui", "inherit", "initial"}
)
_HEADING_FALLBACK_SIZES = {1: 20, 2: 16, 3: 14, 4: 12, 5: 11, 6: 10}
_ALIGNMENTS = {
    "left": WD_ALIGN_PARAGRAPH.LEFT,
    "start": WD_ALIGN_PARAGRAPH.LEFT,
    "center": WD_ALIGN_PARAGRAPH.CENTER,
    "right": WD_ALIGN_PARAGRAPH.RIGHT,
    "end": WD_ALIGN_PARAGRAPH.RIGHT,
    "justify": WD_ALIGN_PARAGRAPH.JUSTIFY,
}
_NAMED_COLORS = {
    "black": "000000", "white": "FFFFFF", "red": "FF0000", "green": "008000",
    "blue": "0000FF", "yellow": "FFFF00", "gray": "808080", "grey": "808080",
    "orange": "FFA500", "purple": "800080", "silver": "C0C0C0", "navy": "000080",
}

_CSS_COMMENT = re.compile(r"/\*.*?\*/", re.DOTALL)
_CSS_RULE = re.compile(r"([^{}]+)\{([^{}]*)\}")
_SIMPLE_SELECTOR = re.compile(r"^(?P<tag>[a-z][a-z0-9]*|\*)?(?P<id>#[\w-]+)?(?P<classes>(?:\.[\w-]+)*)$")
_LENGTH = re.compile(r"^(-?\d+(?:\.\d+)?)\s*(pt|px|em|rem|cm|mm|in|%)?$")
_RGB = re.compile(r"^rgba?\(\s*(\d{1,3})\s*,\s*(\d{1,3})\s*,\s*(\d{1,3})")
_WHITESPACE = re.compile(r"\s+")

_TAG_FORMATS: dict[str, dict[str, Any]] = {
    "strong": {"bold": True},
    "b": {"bold": True},
    "em": {"italic": True},
    "i": {"italic": True},
    "cite": {"italic": True},
    "var": {"italic": True},
    "dfn": {"italic": True},
    "u": {"underline": True},
    "ins": {"underline": True},
    "s": {"strike": True},
    "strike": {"strike": True},
    "del": {"strike": True},
    "code": {"code": True},
    "kbd": {"code": True},
    "samp": {"code": True},
    "tt": {"code": True},
    "sup": {"superscript": True},
    "sub": {"subscript": True},
}


# =============================================================================
# CSS helpers
# =============================================================================


def parse_declarations(text: str | None) -> dict[str, str]:
    """Parse ``prop: value; ...`` into a dict with lowercase property names."""
    declarations: dict[str, str] = {}
    for item in (text or "").split(";"):
        prop, sep, value = item.partition(":")
        if not sep:
            continue
        value = value.replace("!important", "").strip()
        if prop.strip() and value:
            declarations[prop.strip().lower()] = value
    return declarations


def parse_length(value: str | None) -> Length | None:
    """Convert a CSS length into a python-docx Length. Percentages yield None."""
    if not value:
        return None
    match = _LENGTH.match(value.strip().lower())
    if match is None:
        return None
    number = float(match.group(1))
    unit = match.group(2) or "px"
    match unit:
        case "pt":
            return Pt(number)
        case "px":
            return Pt(number * 0.75)
        case "em" | "rem":
            return Pt(number * 12)
        case "cm":
            return Cm(number)
        case "mm":
            return Mm(number)
        case "in":
            return Inches(number)
    return None


def parse_color(value: str | None) -> str | None:
    """Convert a CSS color into an ``RRGGBB`` hex string."""
    if not value:
        return None
    value = value.strip().lower()
    if value.startswith("#"):
        digits = value[1:]
        if len(digits) == 3:
            digits = "".join(c * 2 for c in digits)
        if len(digits) == 6 and all(c in "0123456789abcdef" for c in digits):
            return digits.upper()
        return None
    match = _RGB.match(value)
    if match:
        return "".join(f"{min(int(part), 255):02X}" for part in match.groups())
    return _NAMED_COLORS.get(value)


class StyleSheet:
    """The simple-selector subset of the ``<style>`` rules of a document.

    Supported selectors: ``tag``, ``.class``, ``#id``, ``tag.class`` and
    descendant chains of those, in comma-separated lists. Other selectors
    are ignored.
    """

    def __init__(self, rules: list[tuple[list[re.Match[str]], dict[str, str]]]) -> None:
        self._rules = rules

    @classmethod
    def parse(cls, css_texts: Iterable[str]) -> "StyleSheet":
        rules = []
        for css in css_texts:
            css = _CSS_COMMENT.sub("", css or "")
            for rule in _CSS_RULE.finditer(css):
                declarations = parse_declarations(rule.group(2))
                if not declarations:
                    continue
                for selector in rule.group(1).split(","):
                    parts = selector.strip().lower().split()
                    compound = [_SIMPLE_SELECTOR.match(part) for part in parts]
                    if compound and all(compound):
                        rules.append((compound, declarations))
        return cls(rules)

    @staticmethod
    def _matches_simple(element: Tag, simple: re.Match[str]) -> bool:
        tag = simple.group("tag")
        if tag and tag != "*" and element.name != tag:
            return False
        element_id = simple.group("id")
        if element_id and element.get("id") != element_id[1:]:
            return False
        classes = [c for c in simple.group("classes").split(".") if c]
        element_classes = {c.lower() for c in element.get("class", [])}
        return all(c in element_classes for c in classes)

    def _matches(self, element: Tag, compound: list[re.Match[str]]) -> bool:
        if not self._matches_simple(element, compound[-1]):
            return False
        remaining = compound[:-1]
        ancestor = element.parent
        while remaining and ancestor is not None:
            if isinstance(ancestor, Tag) and self._matches_simple(ancestor, remaining[-1]):
                remaining = remaining[:-1]
            ancestor = ancestor.parent
        return not remaining

    def declarations_for(self, element: Tag) -> dict[str, str]:
        """Return the merged declarations of every matching rule, in source order."""
        merged: dict[str, str] = {}
        for compound, declarations in self._rules:
            if self._matches(element, compound):
                merged.update(declarations)
        return merged


# =============================================================================
# Conversion state
# =============================================================================


@dataclass(frozen=True)
class _RunState:
    """Formatting inherited by the runs of an inline subtree."""

    bold: bool | None = None
    italic: bool | None = None
    underline: bool | None = None
    strike: bool | None = None
    code: bool = False
    superscript: bool = False
    subscript: bool = False
    font_name: str | None = None
    font_size: Length | None = None
    color: str | None = None
    char_style: str | None = None


@dataclass(frozen=True)
class _BlockContext:
    """Where in the block structure the walker currently is."""

    list_kind: str | None = None
    list_level: int = 0
    quote: bool = False
    align: str | None = None
    run_state: _RunState = _RunState()


class HtmlBlockConverter(BaseMarkupConverter):
    """Converts HTML into python-docx block elements.

    The converter is bound to the document that receives the blocks:
    styles, hyperlink relationships and image parts resolve against it.

    Example:
        ```python
        converter = HtmlBlockConverter(document, BuildOptions())
        blocks = converter.convert("<h2>Title</h2><p>Body</p>")
        ```
    """

    def __init__(
        self,
        document: Any,
        options: BuildOptions | None = None,
        registry: StyleRegistry | None = None,
    ) -> None:
        """Initialize the converter.

        Args:
            document: The python-docx Document the blocks are built for.
            options: Build options (formatting modes, font mapping).
            registry: Font registry. If None, uses the process-wide registry.
        """
        self._document = document
        self._options = options or BuildOptions()
        self._registry = registry or get_style_registry()
        self._paragraph_formatting = self._options.formatting_for("paragraph")
        self._run_formatting = self._options.formatting_for("run")
        self._table_formatting = self._options.formatting_for("table")
        self._styles: dict[WD_STYLE_TYPE, dict[str, Any]] | None = None
        self._sheet = StyleSheet([])
        self._base_uri: str | None = None

    @property
    def media_types(self) -> set[str]:
        """Return supported markup media types."""
        return {"text/html", "application/xhtml+xml"}

    def convert(self, markup: str, base_uri: str | None = None) -> list[Any]:
        """Convert HTML into an ordered list of ``w:p``/``w:tbl`` elements.

        Args:
            markup: HTML document or fragment.
            base_uri: Base URI for relative image references.

        Returns:
            The converted blocks; not yet attached to the document body.

        Raises:
            ConversionError: If the markup cannot be converted.
        """
        try:
            soup = BeautifulSoup(markup or "", "html.parser")
            self._sheet = StyleSheet.parse(style.get_text() for style in soup.find_all("style"))
            self._base_uri = base_uri
            root = soup.find("body") or soup
            blocks: list[Any] = []
            self._convert_children(root, blocks, _BlockContext())
        except ConversionError:
            raise
        except Exception as e:
            logger.error(f"HTML conversion failed: {e}", exc_info=True)
            raise ConversionError(f"HTML conversion failed: {e}") from e

        logger.debug(f"Converted {len(markup or '')} characters of HTML into {len(blocks)} blocks")
        return blocks

    # =========================================================================
    # Styles
    # =========================================================================

    def _find_style(self, name: str | None, style_type: WD_STYLE_TYPE) -> Any | None:
        if not name:
            return None
        if self._styles is None:
            self._styles = {}
            for style in self._document.styles:
                by_name = self._styles.setdefault(style.type, {})
                if style.name:
                    by_name.setdefault(style.name.lower(), style)
                if style.style_id:
                    by_name.setdefault(style.style_id.lower(), style)
        return self._styles.get(style_type, {}).get(name.lower())

    def _class_style(self, element: Tag, style_type: WD_STYLE_TYPE) -> Any | None:
        for class_name in element.get("class", []):
            style = self._find_style(class_name, style_type)
            if style is not None:
                return style
        return None

    def _css(self, element: Tag) -> dict[str, str]:
        declarations = self._sheet.declarations_for(element)
        declarations.update(parse_declarations(element.get("style")))
        return declarations

    # =========================================================================
    # Block walking
    # =========================================================================

    def _convert_children(self, element: Tag, blocks: list[Any], ctx: _BlockContext) -> None:
        pending: Paragraph | None = None
        for child in element.children:
            if isinstance(child, Tag):
                name = child.name
                if name in _SKIPPED_TAGS:
                    continue
                if self._is_block(name):
                    pending = None
                    self._convert_block(child, blocks, ctx)
                    continue
                if pending is None:
                    pending = self._new_paragraph(blocks, ctx)
                self._add_inline(pending, child, ctx.run_state)
            elif self._is_text(child):
                if pending is None:
                    if not child.strip():
                        continue
                    pending = self._new_paragraph(blocks, ctx)
                self._add_text(pending, str(child), ctx.run_state)

    def _is_block(self, name: str) -> bool:
        return (
            name in _CONTAINER_TAGS
            or name in _HEADING_TAGS
            or name in ("p", "ul", "ol", "li", "table", "blockquote", "pre", "hr", "dl", "dt", "dd")
        )

    @staticmethod
    def _is_text(node: Any) -> bool:
        return isinstance(node, NavigableString) and not isinstance(
            node, (Comment, Declaration, Doctype, ProcessingInstruction)
        )

    def _convert_block(self, element: Tag, blocks: list[Any], ctx: _BlockContext) -> None:
        name = element.name
        ctx = self._with_block_css(element, ctx)
        if name in _HEADING_TAGS:
            self._convert_heading(element, blocks, ctx, _HEADING_TAGS[name])
        elif name in ("p", "dt", "dd"):
            paragraph = self._new_paragraph(blocks, ctx, element)
            self._add_inline_children(paragraph, element, self._element_run_state(element, ctx.run_state))
        elif name in ("ul", "ol", "dl"):
            self._convert_list(element, blocks, ctx, "number" if name == "ol" else "bullet")
        elif name == "li":
            item_ctx = replace(ctx, list_kind=ctx.list_kind or "bullet", list_level=max(ctx.list_level, 1))
            self._convert_list_item(element, blocks, item_ctx)
        elif name == "blockquote":
            self._convert_children(element, blocks, replace(ctx, quote=True))
        elif name == "pre":
            self._convert_pre(element, blocks, ctx)
        elif name == "hr":
            self._convert_rule(blocks)
        elif name == "table":
            blocks.append(self._convert_table(element, ctx))
        else:
            state = self._element_run_state(element, ctx.run_state)
            self._convert_children(element, blocks, replace(ctx, run_state=state))

    def _with_block_css(self, element: Tag, ctx: _BlockContext) -> _BlockContext:
        if not self._paragraph_formatting.uses_other:
            return ctx
        align = self._css(element).get("text-align") or element.get("align")
        return replace(ctx, align=align) if align else ctx

    def _new_paragraph(
        self,
        blocks: list[Any],
        ctx: _BlockContext,
        element: Tag | None = None,
        default_style: str | None = None,
    ) -> Paragraph:
        paragraph = Paragraph(OxmlElement("w:p"), self._document._body)
        blocks.append(paragraph._p)

        style = None
        if element is not None and self._paragraph_formatting.uses_class:
            style = self._class_style(element, WD_STYLE_TYPE.PARAGRAPH)
        if style is None:
            style = self._find_style(default_style or ("Quote" if ctx.quote else None), WD_STYLE_TYPE.PARAGRAPH)
        if style is not None:
            paragraph.style = style
        elif ctx.quote and default_style is None:
            paragraph.paragraph_format.left_indent = Inches(0.5)

        if self._paragraph_formatting.uses_other:
            css = self._css(element) if element is not None else {}
            align = css.get("text-align") or ctx.align
            if align and align.strip().lower() in _ALIGNMENTS:
                paragraph.alignment = _ALIGNMENTS[align.strip().lower()]
            indent = parse_length(css.get("text-indent"))
            if indent is not None:
                paragraph.paragraph_format.first_line_indent = indent
            margin = parse_length(css.get("margin-left"))
            if margin is not None:
                paragraph.paragraph_format.left_indent = margin
        return paragraph

    def _convert_heading(self, element: Tag, blocks: list[Any], ctx: _BlockContext, level: int) -> None:
        style_name = f"Heading {level}"
        state = self._element_run_state(element, ctx.run_state)
        if self._find_style(style_name, WD_STYLE_TYPE.PARAGRAPH) is None:
            state = replace(state, bold=True, font_size=state.font_size or Pt(_HEADING_FALLBACK_SIZES[level]))
        paragraph = self._new_paragraph(blocks, ctx, element, default_style=style_name)
        self._add_inline_children(paragraph, element, state)

    def _convert_list(self, element: Tag, blocks: list[Any], ctx: _BlockContext, kind: str) -> None:
        nested = replace(ctx, list_kind=kind, list_level=ctx.list_level + 1)
        index = 0
        for child in element.children:
            if isinstance(child, Tag) and child.name in ("li", "dt", "dd"):
                index += 1
                self._convert_list_item(child, blocks, nested, index)
            elif isinstance(child, Tag) and child.name not in _SKIPPED_TAGS:
                self._convert_block(child, blocks, nested)

    def _list_paragraph(self, blocks: list[Any], ctx: _BlockContext, element: Tag, index: int) -> Paragraph:
        base = "List Number" if ctx.list_kind == "number" else "List Bullet"
        level = min(ctx.list_level, 3)
        style_name = base if level <= 1 else f"{base} {level}"
        if self._find_style(style_name, WD_STYLE_TYPE.PARAGRAPH) is None:
            style_name = base
        if self._find_style(style_name, WD_STYLE_TYPE.PARAGRAPH) is not None:
            return self._new_paragraph(blocks, ctx, element, default_style=style_name)

        # No list styles in the target document: indent and write the marker
        paragraph = self._new_paragraph(blocks, ctx, element)
        paragraph.paragraph_format.left_indent = Inches(0.25 * level)
        marker = f"{index}. " if ctx.list_kind == "number" else "• "
        paragraph.add_run(marker)
        return paragraph

    def _convert_list_item(self, element: Tag, blocks: list[Any], ctx: _BlockContext, index: int = 1) -> None:
        state = self._element_run_state(element, ctx.run_state)
        item: Paragraph | None = None
        continuation: Paragraph | None = None
        for child in element.children:
            if isinstance(child, Tag) and child.name in _SKIPPED_TAGS:
                continue
            if isinstance(child, Tag) and self._is_block(child.name):
                if child.name == "p" and item is None:
                    item = self._list_paragraph(blocks, ctx, element, index)
                    self._add_inline_children(item, child, self._element_run_state(child, state))
                    continue
                if item is None:
                    item = self._list_paragraph(blocks, ctx, element, index)
                continuation = None
                self._convert_block(child, blocks, replace(ctx, run_state=state))
                continue
            if not isinstance(child, Tag) and not (self._is_text(child) and child.strip()):
                continue
            if item is None:
                item = self._list_paragraph(blocks, ctx, element, index)
                target = item
            elif len(blocks) and blocks[-1] is item._p:
                target = item
            else:
                if continuation is None:
                    continuation = self._new_paragraph(blocks, ctx)
                    continuation.paragraph_format.left_indent = Inches(0.25 * max(ctx.list_level, 1))
                target = continuation
            if isinstance(child, Tag):
                self._add_inline(target, child, state)
            else:
                self._add_text(target, str(child), state)
        if item is None:
            self._list_paragraph(blocks, ctx, element, index)

    def _convert_pre(self, element: Tag, blocks: list[Any], ctx: _BlockContext) -> None:
        state = replace(self._element_run_state(element, ctx.run_state), code=True)
        lines = element.get_text().strip("\n").split("\n") or [""]
        for line in lines:
            paragraph = self._new_paragraph(blocks, ctx, element)
            if line:
                self._add_run(paragraph, line.replace("\t", "    "), state)

    def _convert_rule(self, blocks: list[Any]) -> None:
        paragraph = Paragraph(OxmlElement("w:p"), self._document._body)
        p_pr = paragraph._p.get_or_add_pPr()
        borders = OxmlElement("w:pBdr")
        bottom = OxmlElement("w:bottom")
        bottom.set(qn("w:val"), "single")
        bottom.set(qn("w:sz"), "6")
        bottom.set(qn("w:space"), "1")
        bottom.set(qn("w:color"), "auto")
        borders.append(bottom)
        p_pr.append(borders)
        blocks.append(paragraph._p)

    # =========================================================================
    # Tables
    # =========================================================================

    def _convert_table(self, element: Tag, ctx: _BlockContext) -> Any:
        rows = [tr for tr in element.find_all("tr") if tr.find_parent("table") is element]
        grid = [[cell for cell in tr.find_all(["td", "th"], recursive=False)] for tr in rows]
        spans = [[self._colspan(cell) for cell in row] for row in grid]
        n_rows = max(len(grid), 1)
        n_cols = max([sum(row) for row in spans] + [1])

        table = Table(CT_Tbl.new_tbl(n_rows, n_cols, self._document._block_width), self._document._body)
        self._style_table(table, element)

        for r, row in enumerate(grid):
            c = 0
            for cell_element, span in zip(row, spans[r]):
                cell = table.cell(r, c)
                if span > 1:
                    cell = cell.merge(table.cell(r, min(c + span - 1, n_cols - 1)))
                self._fill_cell(cell, cell_element, ctx)
                c += span
        return table._tbl

    @staticmethod
    def _colspan(cell: Tag) -> int:
        try:
            return max(int(cell.get("colspan", 1)), 1)
        except (TypeError, ValueError):
            return 1

    def _style_table(self, table: Table, element: Tag) -> None:
        fmt = self._table_formatting
        style = self._class_style(element, WD_STYLE_TYPE.TABLE) if fmt.uses_class else None
        if style is None and fmt.uses_other and self._is_bordered(element):
            style = self._find_style("Table Grid", WD_STYLE_TYPE.TABLE)
            if style is None:
                self._set_table_borders(table)
        if style is not None:
            table.style = style

    def _is_bordered(self, element: Tag) -> bool:
        if element.get("border") not in (None, "", "0"):
            return True
        candidates = [element] + element.find_all(["td", "th"], limit=2)
        for candidate in candidates:
            for prop, value in self._css(candidate).items():
                if prop.startswith("border") and prop not in ("border-collapse", "border-spacing"):
                    if value.strip().lower() not in ("none", "0", "hidden"):
                        return True
        return False

    @staticmethod
    def _set_table_borders(table: Table) -> None:
        tbl_pr = table._tbl.tblPr
        borders = OxmlElement("w:tblBorders")
        for edge in ("top", "left", "bottom", "right", "insideH", "insideV"):
            border = OxmlElement(f"w:{edge}")
            border.set(qn("w:val"), "single")
            border.set(qn("w:sz"), "4")
            border.set(qn("w:space"), "0")
            border.set(qn("w:color"), "auto")
            borders.append(border)
        tbl_pr.append(borders)

    def _fill_cell(self, cell: Any, element: Tag, ctx: _BlockContext) -> None:
        state = self._element_run_state(element, ctx.run_state)
        if element.name == "th" and self._run_formatting.uses_other:
            state = replace(state, bold=True)
        cell_ctx = _BlockContext(run_state=state)
        if self._table_formatting.uses_other:
            css = self._css(element)
            cell_ctx = replace(cell_ctx, align=css.get("text-align") or element.get("align"))
            fill = parse_color(css.get("background-color") or css.get("background"))
            if fill:
                shading = OxmlElement("w:shd")
                shading.set(qn("w:val"), "clear")
                shading.set(qn("w:color"), "auto")
                shading.set(qn("w:fill"), fill)
                cell._tc.get_or_add_tcPr().append(shading)

        blocks: list[Any] = []
        self._convert_children(element, blocks, cell_ctx)
        if not blocks:
            return
        tc = cell._tc
        for paragraph in tc.findall(qn("w:p")):
            tc.remove(paragraph)
        for block in blocks:
            tc.append(block)
        if blocks[-1].tag != qn("w:p"):
            tc.append(OxmlElement("w:p"))

    # =========================================================================
    # Inline content
    # =========================================================================

    def _element_run_state(self, element: Tag, state: _RunState) -> _RunState:
        fmt = self._run_formatting
        if fmt.uses_class:
            style = self._class_style(element, WD_STYLE_TYPE.CHARACTER)
            if style is not None:
                state = replace(state, char_style=style.name)
        if not fmt.uses_other:
            return state

        changes: dict[str, Any] = dict(_TAG_FORMATS.get(element.name, {}))
        css = self._css(element)
        weight = css.get("font-weight", "").lower()
        if weight in ("bold", "bolder") or (weight.isdigit() and int(weight) >= 600):
            changes["bold"] = True
        elif weight in ("normal", "lighter") or (weight.isdigit() and int(weight) < 600):
            changes["bold"] = False
        font_style = css.get("font-style", "").lower()
        if font_style in ("italic", "oblique"):
            changes["italic"] = True
        elif font_style == "normal":
            changes["italic"] = False
        decoration = css.get("text-decoration", css.get("text-decoration-line", "")).lower()
        if "underline" in decoration:
            changes["underline"] = True
        if "line-through" in decoration:
            changes["strike"] = True
        if decoration.strip() == "none":
            changes["underline"] = False
            changes["strike"] = False
        color = parse_color(css.get("color"))
        if color:
            changes["color"] = color
        size = parse_length(css.get("font-size"))
        if size is not None:
            changes["font_size"] = size
        font_name = self._resolve_font(css.get("font-family"))
        if font_name:
            changes["font_name"] = font_name
        return replace(state, **changes) if changes else state

    def _resolve_font(self, families: str | None) -> str | None:
        """Pick the document font for a CSS ``font-family`` list.

        The first family with a per-build or registered mapping wins; otherwise
        the first non-generic family is used as is.
        """
        if not families:
            return None
        names = [name.strip().strip("'\"").strip() for name in families.split(",")]
        names = [name for name in names if name]
        for name in names:
            mapped = self._options.font_mapping.get(name.lower()) or self._registry.resolve_font(name)
            if mapped:
                return mapped
        for name in names:
            if name.lower() not in _GENERIC_FONTS:
                return name
        return None

    def _add_inline_children(self, paragraph: Paragraph, element: Tag, state: _RunState) -> None:
        for child in element.children:
            if isinstance(child, Tag):
                if child.name not in _SKIPPED_TAGS:
                    self._add_inline(paragraph, child, state)
            elif self._is_text(child):
                self._add_text(paragraph, str(child), state)

    def _add_inline(self, paragraph: Paragraph, element: Tag, state: _RunState) -> None:
        name = element.name
        if name == "br":
            paragraph.add_run().add_break()
            return
        if name == "img":
            self._add_image(paragraph, element, state)
            return
        state = self._element_run_state(element, state)
        if name == "a" and element.get("href"):
            self._add_hyperlink(paragraph, element, state)
            return
        self._add_inline_children(paragraph, element, state)

    def _add_text(self, paragraph: Paragraph, text: str, state: _RunState) -> None:
        text = _WHITESPACE.sub(" ", text)
        if not paragraph.text:
            text = text.lstrip()
        if text:
            self._add_run(paragraph, text, state)

    def _add_run(self, paragraph: Paragraph, text: str, state: _RunState) -> Any:
        run = paragraph.add_run(text)
        self._apply_run_state(run, state)
        return run

    def _apply_run_state(self, run: Any, state: _RunState) -> None:
        if state.char_style:
            style = self._find_style(state.char_style, WD_STYLE_TYPE.CHARACTER)
            if style is not None:
                run.style = style
        font = run.font
        if state.bold is not None:
            font.bold = state.bold
        if state.italic is not None:
            font.italic = state.italic
        if state.underline is not None:
            font.underline = state.underline
        if state.strike is not None:
            font.strike = state.strike
        if state.superscript:
            font.superscript = True
        elif state.subscript:
            font.subscript = True
        font_name = state.font_name or (MONOSPACE_FONT if state.code else None)
        if font_name:
            font.name = font_name
            r_fonts = run._element.rPr.rFonts
            r_fonts.set(qn("w:eastAsia"), font_name)
            r_fonts.set(qn("w:cs"), font_name)
        if state.font_size is not None:
            font.size = state.font_size
        if state.color:
            font.color.rgb = RGBColor.from_string(state.color)

    def _add_hyperlink(self, paragraph: Paragraph, element: Tag, state: _RunState) -> None:
        href = element["href"].strip()
        hyperlink = OxmlElement("w:hyperlink")
        if href.startswith("#"):
            hyperlink.set(qn("w:anchor"), href[1:])
        else:
            rel_id = paragraph.part.relate_to(href, RELATIONSHIP_TYPE.HYPERLINK, is_external=True)
            hyperlink.set(qn("r:id"), rel_id)
        paragraph._p.append(hyperlink)

        if self._run_formatting.uses_other and state.color is None:
            state = replace(state, color=HYPERLINK_COLOR, underline=True if state.underline is None else state.underline)
        self._add_inline_children(paragraph, element, state)

        # Runs added after the hyperlink element belong inside it
        for sibling in list(hyperlink.itersiblings()):
            if sibling.tag == qn("w:r"):
                hyperlink.append(sibling)

    def _add_image(self, paragraph: Paragraph, element: Tag, state: _RunState) -> None:
        src = (element.get("src") or "").strip()
        alt = element.get("alt") or ""
        source = self._resolve_image(src)
        if source is not None:
            width = parse_length(element.get("width"))
            height = parse_length(element.get("height"))
            try:
                paragraph.add_run().add_picture(source, width=width, height=height)
                return
            except Exception as e:
                logger.warning(f"Could not embed image {src[:80]!r}: {e}")
        if alt:
            self._add_run(paragraph, alt, state)

    def _resolve_image(self, src: str) -> Any | None:
        """Locate image bytes for ``src``: data URIs and local files only."""
        if not src:
            return None
        if src.startswith("data:"):
            header, _, payload = src.partition(",")
            if ";base64" not in header:
                return None
            try:
                data = base64.b64decode("".join(unquote(payload).split()), validate=True)
            except binascii.Error as e:
                logger.warning(f"Malformed data URI image: {e}")
                return None
            return io.BytesIO(data)

        location = src
        if self._base_uri:
            base = self._base_uri if self._base_uri.endswith("/") else self._base_uri + "/"
            location = urljoin(base, src)
        parsed = urlparse(location)
        if parsed.scheme == "file":
            path = Path(url2pathname(unquote(parsed.path)))
        elif not parsed.scheme or len(parsed.scheme) == 1:
            # Drive letters parse as one-letter schemes
            path = Path(location)
        else:
            logger.debug(f"Skipping non-local image: {location}")
            return None
        return str(path) if path.is_file() else None
