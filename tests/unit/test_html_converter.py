"""Unit tests for the HTML block converter."""

import base64

import pytest
from docx import Document
from docx.oxml.ns import qn
from docx.shared import Pt, RGBColor
from docx.table import Table
from docx.text.paragraph import Paragraph

from docfill.interfaces.errors import ConversionError
from docfill.strategies.converters.html import (
    HtmlBlockConverter,
    StyleSheet,
    parse_color,
    parse_declarations,
    parse_length,
)
from docfill.strategies.template_engine.models import BuildOptions, FormattingOption
from docfill.strategies.template_engine.replacer import extract_block_text

# 1x1 transparent PNG
PNG_BYTES = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg=="
)


# =============================================================================
# CSS Helper Tests
# =============================================================================


class TestCssHelpers:
    """Test suite for CSS parsing helpers."""

    def test_parse_declarations(self):
        """Test parsing a declaration block."""
        assert parse_declarations("Color: red; font-size:12pt !important;bad") == {
            "color": "red",
            "font-size": "12pt",
        }
        assert parse_declarations(None) == {}

    @pytest.mark.parametrize(
        "value,expected",
        [("12pt", Pt(12)), ("16px", Pt(12)), ("2em", Pt(24)), ("10", Pt(7.5))],
    )
    def test_parse_length(self, value, expected):
        """Test converting CSS lengths."""
        assert parse_length(value) == expected

    def test_parse_length_unsupported(self):
        """Test that percentages and garbage yield None."""
        assert parse_length("50%") is None
        assert parse_length("auto") is None
        assert parse_length(None) is None

    @pytest.mark.parametrize(
        "value,expected",
        [("#ff0000", "FF0000"), ("#0f0", "00FF00"), ("rgb(0, 0, 255)", "0000FF"), ("Red", "FF0000")],
    )
    def test_parse_color(self, value, expected):
        """Test converting CSS colors."""
        assert parse_color(value) == expected

    def test_parse_color_unsupported(self):
        """Test that unknown colors yield None."""
        assert parse_color("transparent") is None
        assert parse_color("#12") is None


class TestStyleSheet:
    """Test suite for StyleSheet selector matching."""

    def test_selectors(self):
        """Test tag, class, descendant and comma selectors."""
        from bs4 import BeautifulSoup

        soup = BeautifulSoup(
            '<table><tr><td class="x">a</td></tr></table><p class="x">b</p>', "html.parser"
        )
        sheet = StyleSheet.parse(["table td{border:1px solid #ddd} .x{color:red} p, h1{font-size:9pt}"])

        td = soup.find("td")
        p = soup.find("p")
        assert sheet.declarations_for(td) == {"border": "1px solid #ddd", "color": "red"}
        assert sheet.declarations_for(p) == {"color": "red", "font-size": "9pt"}

    def test_unsupported_selectors_ignored(self):
        """Test that pseudo-classes and child combinators are skipped."""
        from bs4 import BeautifulSoup

        soup = BeautifulSoup("<p>x</p>", "html.parser")
        sheet = StyleSheet.parse(["p:hover{color:red} div > p{color:blue}"])
        assert sheet.declarations_for(soup.p) == {}


# =============================================================================
# HtmlBlockConverter Tests
# =============================================================================


class TestHtmlBlockConverter:
    """Test suite for HtmlBlockConverter."""

    @pytest.fixture
    def document(self):
        """Create a blank document."""
        return Document()

    @pytest.fixture
    def converter(self, document, registry):
        """Create a converter with default options."""
        return HtmlBlockConverter(document, BuildOptions(), registry)

    @staticmethod
    def paragraph(document, block):
        return Paragraph(block, document._body)

    # =========================================================================
    # Block Tests
    # =========================================================================

    def test_media_types(self, converter):
        """Test the declared media types."""
        assert "text/html" in converter.media_types

    def test_paragraphs(self, converter):
        """Test that each paragraph becomes one block in order."""
        blocks = converter.convert("<p>One</p>\n<p>Two</p>")

        assert [b.tag for b in blocks] == [qn("w:p"), qn("w:p")]
        assert [extract_block_text(b) for b in blocks] == ["One", "Two"]

    def test_full_document(self, converter):
        """Test that head content is skipped and body content converted."""
        blocks = converter.convert(
            "<html><head><title>T</title><style>p{color:red}</style></head>"
            "<body><p>Body</p></body></html>"
        )
        assert [extract_block_text(b) for b in blocks] == ["Body"]

    def test_headings(self, document, converter):
        """Test that headings map onto heading styles."""
        blocks = converter.convert("<h1>Title</h1><h3>Sub</h3>")

        assert self.paragraph(document, blocks[0]).style.name == "Heading 1"
        assert self.paragraph(document, blocks[1]).style.name == "Heading 3"
        assert extract_block_text(blocks[1]) == "Sub"

    def test_stray_inline_content_wrapped(self, converter):
        """Test that top-level text and inline tags share one paragraph."""
        blocks = converter.convert("Hello <b>world</b><p>Next</p>")

        assert [extract_block_text(b) for b in blocks] == ["Hello world", "Next"]

    def test_empty_markup(self, converter):
        """Test that empty markup yields no blocks."""
        assert converter.convert("") == []
        assert converter.convert("   \n ") == []

    def test_bullet_list(self, document, converter):
        """Test that list items use list styles."""
        blocks = converter.convert("<ul>\n<li>a</li>\n<li>b</li>\n</ul>")

        assert [extract_block_text(b) for b in blocks] == ["a", "b"]
        assert {self.paragraph(document, b).style.name for b in blocks} == {"List Bullet"}

    def test_nested_numbered_list(self, document, converter):
        """Test nested lists use level-specific styles."""
        blocks = converter.convert("<ol><li>a<ol><li>b</li></ol></li></ol>")

        styles = [self.paragraph(document, b).style.name for b in blocks]
        assert [extract_block_text(b) for b in blocks] == ["a", "b"]
        assert styles == ["List Number", "List Number 2"]

    def test_loose_list_items(self, converter):
        """Test list items wrapping their text in paragraphs."""
        blocks = converter.convert("<ul><li><p>a</p></li><li><p>b</p></li></ul>")
        assert [extract_block_text(b) for b in blocks] == ["a", "b"]

    def test_blockquote(self, document, converter):
        """Test that quoted paragraphs use the quote style."""
        blocks = converter.convert("<blockquote><p>Said</p></blockquote>")
        assert self.paragraph(document, blocks[0]).style.name == "Quote"

    def test_preformatted(self, document, converter):
        """Test that preformatted text becomes one monospace paragraph per line."""
        blocks = converter.convert("<pre>line 1\nline 2</pre>")

        assert [extract_block_text(b) for b in blocks] == ["line 1", "line 2"]
        run = self.paragraph(document, blocks[0]).runs[0]
        assert run.font.name == "Courier New"

    def test_horizontal_rule(self, converter):
        """Test that hr becomes a bordered empty paragraph."""
        blocks = converter.convert("<hr/>")

        assert len(blocks) == 1
        assert blocks[0].find(f".//{qn('w:pBdr')}") is not None

    # =========================================================================
    # Table Tests
    # =========================================================================

    def test_table(self, document, converter):
        """Test converting a table with a header row."""
        blocks = converter.convert(
            "<table><thead><tr><th>Name</th><th>Role</th></tr></thead>"
            "<tbody><tr><td>Jan</td><td>Engineer</td></tr></tbody></table>"
        )

        assert len(blocks) == 1
        assert blocks[0].tag == qn("w:tbl")
        table = Table(blocks[0], document._body)
        assert len(table.rows) == 2
        assert len(table.columns) == 2
        assert table.cell(1, 1).text == "Engineer"
        assert table.cell(0, 0).paragraphs[0].runs[0].bold is True

    def test_table_colspan(self, document, converter):
        """Test that colspan merges cells."""
        blocks = converter.convert(
            '<table><tr><td colspan="2">Wide</td></tr><tr><td>a</td><td>b</td></tr></table>'
        )

        table = Table(blocks[0], document._body)
        assert len(table.columns) == 2
        assert table.cell(0, 0).text == "Wide"
        assert table.cell(0, 1).text == "Wide"

    def test_table_border_and_shading(self, document, converter):
        """Test that CSS borders apply a grid and background colors shade cells."""
        blocks = converter.convert(
            "<style>td{border:1px solid #ddd} th{background-color:#f7f7f7}</style>"
            "<table><tr><th>H</th></tr><tr><td>x</td></tr></table>"
        )

        table = Table(blocks[0], document._body)
        assert table.style.name == "Table Grid"
        shading = table.cell(0, 0)._tc.find(f".//{qn('w:shd')}")
        assert shading is not None
        assert shading.get(qn("w:fill")) == "F7F7F7"

    def test_table_cell_blocks(self, document, converter):
        """Test that block content inside cells is converted."""
        blocks = converter.convert("<table><tr><td><p>a</p><p>b</p></td></tr></table>")

        cell = Table(blocks[0], document._body).cell(0, 0)
        assert [p.text for p in cell.paragraphs] == ["a", "b"]

    # =========================================================================
    # Inline Tests
    # =========================================================================

    def test_run_formatting(self, document, converter):
        """Test tag-based run formatting."""
        blocks = converter.convert("<p><strong>B</strong> <em>I</em> <u>U</u> <s>S</s> x<sup>2</sup></p>")

        runs = {run.text: run for run in self.paragraph(document, blocks[0]).runs}
        assert runs["B"].bold is True
        assert runs["I"].italic is True
        assert runs["U"].underline is True
        assert runs["S"].font.strike is True
        assert runs["2"].font.superscript is True

    def test_span_css(self, document, registry):
        """Test CSS color, size and mapped font family on spans."""
        registry.register_mapping("brand", "Arial")
        converter = HtmlBlockConverter(document, BuildOptions(), registry)

        blocks = converter.convert(
            "<p><span style=\"color:#ff0000;font-size:14pt;font-family:'brand', serif;"
            'font-weight:bold">x</span></p>'
        )

        run = self.paragraph(document, blocks[0]).runs[0]
        assert run.font.color.rgb == RGBColor(0xFF, 0x00, 0x00)
        assert run.font.size == Pt(14)
        assert run.font.name == "Arial"
        assert run.bold is True

    def test_per_build_font_mapping_wins(self, document, registry):
        """Test that build options take precedence over the registry."""
        registry.register_mapping("brand", "Arial")
        options = BuildOptions(font_mapping={"Brand": "Calibri"})
        converter = HtmlBlockConverter(document, options, registry)

        blocks = converter.convert('<p><span style="font-family:brand">x</span></p>')
        assert self.paragraph(document, blocks[0]).runs[0].font.name == "Calibri"

    def test_paragraph_alignment(self, document, converter):
        """Test text-align on paragraphs."""
        from docx.enum.text import WD_ALIGN_PARAGRAPH

        blocks = converter.convert('<p style="text-align:center">x</p>')
        assert self.paragraph(document, blocks[0]).alignment == WD_ALIGN_PARAGRAPH.CENTER

    def test_line_break(self, converter):
        """Test that br becomes a break inside the paragraph."""
        blocks = converter.convert("<p>a<br/>b</p>")

        assert len(blocks) == 1
        assert blocks[0].find(f".//{qn('w:br')}") is not None

    def test_hyperlink(self, document, converter):
        """Test that links become external hyperlinks."""
        blocks = converter.convert('<p>See <a href="https://example.com">site</a>.</p>')

        hyperlink = blocks[0].find(qn("w:hyperlink"))
        assert hyperlink is not None
        assert "".join(t.text for t in hyperlink.iter(qn("w:t"))) == "site"
        rel_id = hyperlink.get(qn("r:id"))
        assert document.part.rels[rel_id].target_ref == "https://example.com"
        assert extract_block_text(blocks[0]) == "See site."

    def test_anchor_link(self, converter):
        """Test that fragment links use anchors instead of relationships."""
        blocks = converter.convert('<p><a href="#top">up</a></p>')

        hyperlink = blocks[0].find(qn("w:hyperlink"))
        assert hyperlink.get(qn("w:anchor")) == "top"

    def test_data_uri_image(self, converter):
        """Test embedding a data URI image."""
        encoded = base64.b64encode(PNG_BYTES).decode()
        blocks = converter.convert(f'<p><img src="data:image/png;base64,{encoded}" alt="dot"/></p>')

        assert blocks[0].find(f".//{qn('w:drawing')}") is not None

    @pytest.mark.parametrize("payload", ["abc", "not base64!"])
    def test_malformed_data_uri_falls_back_to_alt(self, converter, payload):
        """Test that an undecodable data URI image becomes its alt text."""
        blocks = converter.convert(f'<p><img src="data:image/png;base64,{payload}" alt="logo"/></p>')

        assert blocks[0].find(f".//{qn('w:drawing')}") is None
        assert extract_block_text(blocks[0]) == "logo"

    def test_relative_image_resolved_against_base_uri(self, converter, tmp_path):
        """Test that relative image paths resolve against the base URI."""
        (tmp_path / "dot.png").write_bytes(PNG_BYTES)

        blocks = converter.convert('<p><img src="dot.png"/></p>', base_uri=tmp_path.as_uri())
        assert blocks[0].find(f".//{qn('w:drawing')}") is not None

    def test_missing_image_falls_back_to_alt(self, converter, tmp_path):
        """Test that unresolvable images are replaced by their alt text."""
        blocks = converter.convert('<p><img src="missing.png" alt="Logo"/></p>', base_uri=tmp_path.as_uri())

        assert blocks[0].find(f".//{qn('w:drawing')}") is None
        assert extract_block_text(blocks[0]) == "Logo"

    # =========================================================================
    # Formatting Option Tests
    # =========================================================================

    def test_class_maps_to_paragraph_style(self, document, converter):
        """Test that a class naming a document style applies it."""
        blocks = converter.convert('<p class="Quote">x</p>')
        assert self.paragraph(document, blocks[0]).style.name == "Quote"

    def test_ignore_class(self, document, registry):
        """Test that IGNORE_CLASS leaves classes unmapped."""
        options = BuildOptions(paragraph_formatting=FormattingOption.IGNORE_CLASS)
        converter = HtmlBlockConverter(document, options, registry)

        blocks = converter.convert('<p class="Quote">x</p>')
        assert self.paragraph(document, blocks[0]).style.name == "Normal"

    def test_class_to_style_only_ignores_tags(self, document, registry):
        """Test that CLASS_TO_STYLE_ONLY skips tag and CSS formatting."""
        options = BuildOptions(run_formatting=FormattingOption.CLASS_TO_STYLE_ONLY)
        converter = HtmlBlockConverter(document, options, registry)

        blocks = converter.convert('<p><strong style="color:red">B</strong></p>')
        run = self.paragraph(document, blocks[0]).runs[0]
        assert run.bold is None
        assert run.font.color.rgb is None

    # =========================================================================
    # Error Tests
    # =========================================================================

    def test_failure_wrapped_in_conversion_error(self, converter, monkeypatch):
        """Test that unexpected failures surface as ConversionError."""

        def boom(*args, **kwargs):
            raise ValueError("bad tree")

        monkeypatch.setattr(converter, "_convert_children", boom)
        with pytest.raises(ConversionError, match="bad tree") as exc_info:
            converter.convert("<p>x</p>")
        assert isinstance(exc_info.value.__cause__, ValueError)
