"""Scalar placeholder rendering with docxtpl.

Renders ``{{ key }}``-style placeholders of a serialized Word template using
docxtpl on top of a Jinja2 environment configured with the build's
placeholder delimiters.
"""

import io
import logging
from collections.abc import Mapping
from os import PathLike
from pathlib import Path
from typing import Any

import jinja2
from docxtpl import DocxTemplate

from docfill.interfaces.errors import TemplateRenderError, TemplateSyntaxError
from docfill.interfaces.renderer import BaseScalarRenderer, TemplateSource
from docfill.strategies.template_engine.models import DEFAULT_PREFIX, DEFAULT_SUFFIX, PlaceholderSpec

logger = logging.getLogger(__name__)


def _keep_unbound(spec: PlaceholderSpec) -> type[jinja2.Undefined]:
    """Build an Undefined type that renders a missing name as its placeholder."""

    class KeepUnbound(jinja2.Undefined):
        __slots__ = ()

        def __str__(self) -> str:
            if self._undefined_name is None:
                return ""
            return spec.wrap(self._undefined_name)

    return KeepUnbound


class DocxtplRenderer(BaseScalarRenderer):
    """Renders scalar placeholders of a Word template.

    Values are XML-escaped, so markup characters in scalar values end up as
    literal text. Placeholders without a binding are written back unchanged,
    so a later pass or a later build can still fill them.

    Example:
        ```python
        renderer = DocxtplRenderer("${", "}")
        data = renderer.render("letter.docx", {"name": "Jan"})
        ```
    """

    def __init__(self, prefix: str = DEFAULT_PREFIX, suffix: str = DEFAULT_SUFFIX) -> None:
        """Initialize the renderer.

        Args:
            prefix: Opening placeholder delimiter.
            suffix: Closing placeholder delimiter.

        Raises:
            ArgumentError: If a delimiter is blank.
        """
        self._spec = PlaceholderSpec(prefix, suffix)

    @property
    def delimiters(self) -> tuple[str, str]:
        return self._spec.prefix, self._spec.suffix

    def _environment(self) -> jinja2.Environment:
        return jinja2.Environment(
            variable_start_string=self._spec.prefix,
            variable_end_string=self._spec.suffix,
            autoescape=True,
            undefined=_keep_unbound(self._spec),
        )

    def render(self, template_source: TemplateSource, bindings: Mapping[str, Any]) -> bytes:
        """Render scalar placeholders of a template.

        Args:
            template_source: Path to, or binary stream of, the template document.
            bindings: Placeholder key to value mapping.

        Returns:
            The rendered document as bytes.

        Raises:
            FileNotFoundError: If the template path doesn't exist.
            TemplateSyntaxError: If the placeholder syntax cannot be parsed.
            TemplateRenderError: If rendering fails for any other reason.
        """
        if isinstance(template_source, (str, PathLike)):
            path = Path(template_source)
            if not path.is_file():
                raise FileNotFoundError(f"Template file not found: {path}")
            template_source = str(path)

        logger.debug(f"Rendering {len(bindings)} scalar bindings")

        try:
            template = DocxTemplate(template_source)
            template.render(dict(bindings), self._environment(), autoescape=True)
            output = io.BytesIO()
            template.save(output)
        except jinja2.TemplateSyntaxError as e:
            logger.error(f"Template syntax error at line {e.lineno}: {e.message}")
            raise TemplateSyntaxError(f"Template syntax error: {e.message}", lineno=e.lineno) from e
        except jinja2.TemplateError as e:
            logger.error(f"Template rendering failed: {e}", exc_info=True)
            raise TemplateRenderError(f"Template rendering failed: {e}") from e
        except Exception as e:
            logger.error(f"Template rendering failed: {e}", exc_info=True)
            raise TemplateRenderError(f"Template rendering failed: {e}") from e

        return output.getvalue()
