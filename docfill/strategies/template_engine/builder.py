"""Document builder.

Orchestrates a build: classifies the binding set, expands rich markup
placeholders on the live document tree, renders scalar placeholders with the
scalar engine and writes the result to a path or a stream. Mixed binding
sets join both passes through a staging file.
"""

import io
import logging
import tempfile
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from os import PathLike
from pathlib import Path
from typing import Any, BinaryIO

from docx import Document

from docfill.core.fonts import StyleRegistry, get_style_registry
from docfill.interfaces.errors import ArgumentError, DocfillError
from docfill.interfaces.renderer import BaseScalarRenderer
from docfill.strategies.converters.html import HtmlBlockConverter
from docfill.strategies.markup.markdown import MarkdownRenderer
from docfill.strategies.renderers.docx_template import DocxtplRenderer
from docfill.strategies.template_engine.classifier import classify_bindings, is_rich_markup
from docfill.strategies.template_engine.models import BuildOptions, DataShape
from docfill.strategies.template_engine.replacer import BlockReplacer, append_body_blocks
from docfill.strategies.template_engine.staging import staging_file

logger = logging.getLogger(__name__)

Sink = str | PathLike | BinaryIO
TemplateInput = str | PathLike | bytes | BinaryIO


class DocumentBuilder:
    """Builds Word documents from a template and a binding set.

    A builder holds the template bytes and immutable options only. Every
    build loads a fresh document tree, so one builder can serve many builds.

    Example:
        ```python
        builder = DocumentBuilder.from_template("letter.docx")
        builder.build({"name": "Jan", "bio": "<p>Engineer</p>"}, "out.docx")
        ```
    """

    def __init__(
        self,
        template: bytes | None = None,
        options: BuildOptions | None = None,
        renderer: BaseScalarRenderer | None = None,
        registry: StyleRegistry | None = None,
        staging_dir: str | Path | None = None,
        staging_prefix: str = "temp-",
    ) -> None:
        """Initialize the builder.

        Args:
            template: Template document bytes. None builds on a blank document.
            options: Build options. Defaults to ``BuildOptions()``.
            renderer: Scalar engine. Defaults to docxtpl with the option delimiters.
            registry: Font registry for conversions. Defaults to the process-wide one.
            staging_dir: Directory for staging files of mixed builds.
            staging_prefix: File name prefix of staging files.

        Raises:
            ArgumentError: If the renderer uses other delimiters than the options.
        """
        self._template = template
        self._options = options or BuildOptions()
        self._renderer = renderer or DocxtplRenderer(
            self._options.placeholder_prefix, self._options.placeholder_suffix
        )
        spec = self._options.placeholder
        if self._renderer.delimiters != (spec.prefix, spec.suffix):
            raise ArgumentError(
                f"renderer delimiters {self._renderer.delimiters} differ from "
                f"placeholder delimiters {(spec.prefix, spec.suffix)}"
            )
        self._registry = registry or get_style_registry()
        self._staging_dir = Path(staging_dir) if staging_dir else Path(tempfile.gettempdir())
        self._staging_prefix = staging_prefix
        self._markdown = MarkdownRenderer()

    # =========================================================================
    # Construction
    # =========================================================================

    @classmethod
    def blank(cls, options: BuildOptions | None = None, **kwargs: Any) -> "DocumentBuilder":
        """Create a builder over a new, empty document."""
        return cls(None, options, **kwargs)

    @classmethod
    def from_template(
        cls,
        source: TemplateInput | None,
        options: BuildOptions | None = None,
        **kwargs: Any,
    ) -> "DocumentBuilder":
        """Create a builder over a template document.

        Args:
            source: Template path, bytes, or readable binary stream.
            options: Build options.
            **kwargs: Forwarded to the constructor.

        Returns:
            A new DocumentBuilder.

        Raises:
            ArgumentError: If the source is None or not binary.
            FileNotFoundError: If the template path doesn't exist.
        """
        if source is None:
            raise ArgumentError("template source required")

        if isinstance(source, (bytes, bytearray)):
            data = bytes(source)
        elif isinstance(source, (str, PathLike)):
            path = Path(source)
            if not path.is_file():
                raise FileNotFoundError(f"Template file not found: {path}")
            data = path.read_bytes()
        elif hasattr(source, "read"):
            data = source.read()
            if not isinstance(data, (bytes, bytearray)):
                raise ArgumentError("template stream must be opened in binary mode")
            data = bytes(data)
        else:
            raise ArgumentError(f"unsupported template source: {type(source).__name__}")

        logger.debug(f"Loaded template ({len(data)} bytes)")
        return cls(data, options, **kwargs)

    @property
    def options(self) -> BuildOptions:
        return self._options

    @property
    def has_template(self) -> bool:
        return self._template is not None

    # =========================================================================
    # Internals
    # =========================================================================

    def _load_document(self) -> Any:
        if self._template is None:
            return Document()
        return Document(io.BytesIO(self._template))

    def _replacer(self, document: Any) -> BlockReplacer:
        converter = HtmlBlockConverter(document, self._options, self._registry)
        return BlockReplacer(converter, self._options)

    @staticmethod
    def _serialize(document: Any) -> bytes:
        buffer = io.BytesIO()
        document.save(buffer)
        return buffer.getvalue()

    def _template_bytes(self) -> bytes:
        if self._template is not None:
            return self._template
        return self._serialize(Document())

    def _prepare_bindings(self, bindings: Mapping[str, Any]) -> dict[str, Any]:
        """Copy bindings, rendering Markdown-looking scalars when enabled."""
        prepared = dict(bindings)
        if not self._options.render_markdown:
            return prepared
        for key, value in prepared.items():
            if isinstance(value, str) and not is_rich_markup(value) and self._markdown.is_markdown(value):
                prepared[key] = self._markdown.to_html(value)
                logger.debug(f"Rendered Markdown value of '{key}' to HTML")
        return prepared

    @contextmanager
    def _closing(self, sink: Sink) -> Iterator[Sink]:
        if sink is None:
            raise ArgumentError("output sink required")
        try:
            yield sink
        finally:
            if self._options.auto_close_stream and hasattr(sink, "close") and not isinstance(sink, (str, PathLike)):
                sink.close()

    @staticmethod
    def _write(data: bytes, sink: Sink) -> None:
        if isinstance(sink, (str, PathLike)):
            Path(sink).write_bytes(data)
        else:
            sink.write(data)
            sink.flush()
        logger.debug(f"Wrote {len(data)} bytes")

    def _run(self, operation: str, produce: Any, sink: Sink) -> None:
        """Produce the output in memory, then write it; wraps unexpected errors."""
        with self._closing(sink):
            try:
                data = produce()
                self._write(data, sink)
            except (DocfillError, OSError) as e:
                logger.error(f"{operation} failed: {e}", exc_info=True)
                raise
            except Exception as e:
                logger.error(f"{operation} failed: {e}", exc_info=True)
                raise DocfillError(f"{operation} failed: {e}") from e

    # =========================================================================
    # Passes
    # =========================================================================

    def _scalar_pass(self, bindings: Mapping[str, Any]) -> bytes:
        return self._renderer.render(io.BytesIO(self._template_bytes()), bindings)

    def _rich_pass(self, bindings: Mapping[str, Any]) -> bytes:
        document = self._load_document()
        self._replacer(document).apply(document, bindings)
        return self._serialize(document)

    def _mixed_pass(self, bindings: Mapping[str, Any]) -> bytes:
        document = self._load_document()
        self._replacer(document).apply(document, bindings)
        with staging_file(self._staging_dir, self._staging_prefix) as path:
            document.save(str(path))
            return self._renderer.render(path, bindings)

    # =========================================================================
    # Operations
    # =========================================================================

    def build(
        self,
        bindings: Mapping[str, Any],
        sink: Sink,
        shape: DataShape | None = None,
    ) -> DataShape:
        """Produce the final document.

        Args:
            bindings: Placeholder key to value mapping. When several keys match
                the same block, the first in iteration order wins.
            sink: Output file path or writable binary stream.
            shape: Force a pass sequence instead of classifying the bindings.

        Returns:
            The DataShape that drove the build.

        Raises:
            ArgumentError: If the sink is None.
            ConversionError: If a rich value cannot be converted.
            TemplateSyntaxError: If the scalar engine cannot parse a placeholder.
            TemplateRenderError: If the scalar engine fails.
            OSError: If reading or writing files fails.
        """
        if bindings is None:
            raise ArgumentError("bindings required")
        prepared = self._prepare_bindings(bindings)
        shape = shape or classify_bindings(prepared)
        logger.info(f"Building document: {len(prepared)} bindings, shape={shape.value}")

        passes = {
            DataShape.SCALAR_ONLY: self._scalar_pass,
            DataShape.RICH_ONLY: self._rich_pass,
            DataShape.MIXED: self._mixed_pass,
        }
        self._run("Document build", lambda: passes[shape](prepared), sink)
        return shape

    def render_scalars(self, bindings: Mapping[str, Any], sink: Sink) -> None:
        """Run the scalar pass only.

        Raises:
            ArgumentError: If the builder has no template.
        """
        if self._template is None:
            raise ArgumentError("render_scalars requires a template")
        prepared = dict(bindings or {})
        self._run("Scalar rendering", lambda: self._scalar_pass(prepared), sink)

    def build_fragment(self, markup: str, key: str | None = None) -> list[Any]:
        """Convert a markup fragment into blocks without touching the document body.

        The blocks are bound to a freshly loaded document and are meant for
        callers that assemble bodies themselves.

        Args:
            markup: HTML fragment.
            key: Binding key passed to the content processor.

        Returns:
            Converted ``w:p``/``w:tbl`` elements.
        """
        document = self._load_document()
        return self._replacer(document).convert(markup or "", key)

    def build_from_markup(self, markup: str, sink: Sink) -> None:
        """Append a converted markup fragment to the document and write it.

        Args:
            markup: HTML fragment or document.
            sink: Output file path or writable binary stream.
        """

        def produce() -> bytes:
            document = self._load_document()
            blocks = self._replacer(document).convert(markup or "")
            append_body_blocks(document, blocks)
            logger.info(f"Appended {len(blocks)} converted blocks")
            return self._serialize(document)

        self._run("Markup build", produce, sink)
