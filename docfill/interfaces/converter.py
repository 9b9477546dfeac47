"""Markup conversion interface.

Defines the abstract base class for strategies that turn a rich markup
fragment into an ordered list of native document blocks.
"""

from abc import ABC, abstractmethod
from typing import Any


class BaseMarkupConverter(ABC):
    """Abstract base class for markup-to-blocks conversion strategies.

    A converter is bound to the document that will receive the blocks, so
    that relationships (hyperlinks, images) and styles resolve against it.

    Example:
        ```python
        class HtmlBlockConverter(BaseMarkupConverter):
            def convert(self, markup: str, base_uri: str | None = None) -> list[Any]:
                # Build w:p / w:tbl elements
                pass
        ```
    """

    @abstractmethod
    def convert(self, markup: str, base_uri: str | None = None) -> list[Any]:
        """Convert a markup fragment into document blocks.

        Args:
            markup: The markup text (HTML) to convert.
            base_uri: Base URI used to resolve relative resource references.

        Returns:
            Ordered list of block elements, possibly empty.

        Raises:
            ConversionError: If the markup cannot be converted.
        """
        ...

    @property
    @abstractmethod
    def media_types(self) -> set[str]:
        """Return the markup media types this converter accepts."""
        ...
