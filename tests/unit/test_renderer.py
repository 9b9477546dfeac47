"""Unit tests for the docxtpl scalar renderer."""

import io

import pytest

from docfill.interfaces.errors import ArgumentError, TemplateRenderError, TemplateSyntaxError
from docfill.strategies.renderers import DocxtplRenderer
from docx_helpers import make_docx, paragraph_texts


class TestDocxtplRenderer:
    """Test suite for DocxtplRenderer."""

    @pytest.fixture
    def renderer(self):
        """Create a renderer with default delimiters."""
        return DocxtplRenderer()

    def test_render_path(self, renderer, tmp_path):
        """Test rendering a template from a path."""
        path = tmp_path / "letter.docx"
        path.write_bytes(make_docx(["Hello {{ name }}", "Bye"]))

        result = renderer.render(path, {"name": "Jan"})

        assert paragraph_texts(result) == ["Hello Jan", "Bye"]

    def test_render_stream(self, renderer):
        """Test rendering a template from a binary stream."""
        result = renderer.render(io.BytesIO(make_docx(["{{name}}"])), {"name": "Jan"})
        assert paragraph_texts(result) == ["Jan"]

    def test_values_are_escaped(self, renderer):
        """Test that XML special characters in values survive as text."""
        result = renderer.render(io.BytesIO(make_docx(["{{ v }}"])), {"v": "A & B < C"})
        assert paragraph_texts(result) == ["A & B < C"]

    def test_unbound_placeholder_kept(self, renderer):
        """Test that placeholders without a binding are written back unchanged."""
        result = renderer.render(io.BytesIO(make_docx(["x{{missing}}y", "{{ name }}"])), {"name": "Jan"})
        assert paragraph_texts(result) == ["x{{missing}}y", "Jan"]

    def test_unbound_placeholder_custom_delimiters(self):
        """Test that unbound placeholders keep custom delimiters."""
        result = DocxtplRenderer("${", "}").render(io.BytesIO(make_docx(["Keep ${name}"])), {})
        assert paragraph_texts(result) == ["Keep ${name}"]

    def test_custom_delimiters(self):
        """Test rendering with custom placeholder delimiters."""
        renderer = DocxtplRenderer("${", "}")
        result = renderer.render(io.BytesIO(make_docx(["Hello ${name}", "{{ name }}"])), {"name": "Jan"})

        assert renderer.delimiters == ("${", "}")
        assert paragraph_texts(result) == ["Hello Jan", "{{ name }}"]

    def test_blank_delimiter_rejected(self):
        """Test that blank delimiters raise ArgumentError."""
        with pytest.raises(ArgumentError):
            DocxtplRenderer("", "}}")

    def test_missing_template(self, renderer, tmp_path):
        """Test that a missing template path raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            renderer.render(tmp_path / "missing.docx", {})

    def test_syntax_error(self, renderer):
        """Test that broken template syntax raises TemplateSyntaxError."""
        with pytest.raises(TemplateSyntaxError) as exc_info:
            renderer.render(io.BytesIO(make_docx(["{% endfor %}"])), {})
        assert exc_info.value.lineno is not None

    def test_invalid_document(self, renderer):
        """Test that a non-docx source raises TemplateRenderError."""
        with pytest.raises(TemplateRenderError):
            renderer.render(io.BytesIO(b"not a docx"), {})
