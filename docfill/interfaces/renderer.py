"""Scalar template rendering interface.

The scalar engine only accepts a serialized template source (a path or a
binary stream); it never sees the live document tree.
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from os import PathLike
from typing import Any, BinaryIO

TemplateSource = str | PathLike | BinaryIO


class BaseScalarRenderer(ABC):
    """Abstract base class for scalar placeholder rendering strategies."""

    @abstractmethod
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
        ...

    @property
    @abstractmethod
    def delimiters(self) -> tuple[str, str]:
        """Return the (prefix, suffix) placeholder delimiters in use."""
        ...
