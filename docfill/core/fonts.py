"""Process-wide font registry.

Maps CSS ``font-family`` names found in markup to the font names written
into documents, and records physical font files by alias. The registry is
read by every conversion, so all access goes through a single lock.
"""

import logging
import threading
from os import PathLike
from pathlib import Path
from urllib.parse import urlparse

from docfill.interfaces.errors import ArgumentError

logger = logging.getLogger(__name__)


def _require(value: object, name: str) -> str:
    if value is None or not str(value).strip():
        raise ArgumentError(f"{name} required")
    return str(value).strip()


class StyleRegistry:
    """Thread-safe registry of font mappings and physical fonts.

    Example:
        ```python
        registry = get_style_registry()
        registry.register_mapping("my-font", "Microsoft YaHei")
        registry.resolve_font("my-font")  # "Microsoft YaHei"
        ```
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._font_mapping: dict[str, str] = {}
        self._physical_fonts: dict[str, str] = {}

    def register_mapping(self, source_font: str, target_font: str) -> None:
        """Register a CSS font-family to document font name mapping.

        Lookups are case-insensitive on the CSS name. Registering the same
        pair twice is a no-op.

        Args:
            source_font: Font family name as used in CSS.
            target_font: Font name to write into the document.

        Raises:
            ArgumentError: If either name is blank.
        """
        source = _require(source_font, "source_font")
        target = _require(target_font, "target_font")
        with self._lock:
            self._font_mapping[source.lower()] = target
        logger.debug(f"Registered font mapping: {source} -> {target}")

    def register_physical_font(self, alias: str, font: str | PathLike) -> None:
        """Register a font file under an alias.

        Args:
            alias: Name the font is referred to by.
            font: Path to the font file, or a ``file:`` URI.

        Raises:
            ArgumentError: If the alias or font location is blank.
        """
        name = _require(alias, "alias")
        location = _require(font, "font")
        parsed = urlparse(location)
        if parsed.scheme == "file":
            location = parsed.path
        with self._lock:
            self._physical_fonts[name] = str(Path(location))
        logger.debug(f"Registered physical font: {name} -> {location}")

    def register_physical_font_mapping(
        self,
        css_family: str,
        font: str | PathLike,
        doc_font_name: str | None = None,
    ) -> None:
        """Register a physical font and map a CSS family onto it in one step."""
        target = doc_font_name or css_family
        with self._lock:
            self.register_physical_font(target, font)
            self.register_mapping(css_family, target)

    def resolve_font(self, css_family: str | None) -> str | None:
        """Return the document font name for a CSS family, if registered.

        A family that was only registered as a physical font alias resolves
        to itself.
        """
        if not css_family or not css_family.strip():
            return None
        family = css_family.strip()
        with self._lock:
            mapped = self._font_mapping.get(family.lower())
            if mapped is not None:
                return mapped
            if family in self._physical_fonts:
                return family
        return None

    def physical_font(self, alias: str) -> str | None:
        """Return the registered font file path for an alias."""
        with self._lock:
            return self._physical_fonts.get(alias)

    def clear(self) -> None:
        """Forget every mapping and physical font."""
        with self._lock:
            self._font_mapping.clear()
            self._physical_fonts.clear()


# Global registry instance
_registry: StyleRegistry | None = None
_registry_lock = threading.Lock()


def get_style_registry() -> StyleRegistry:
    """Get or create the process-wide StyleRegistry instance.

    Returns:
        The singleton StyleRegistry instance.
    """
    global _registry
    with _registry_lock:
        if _registry is None:
            _registry = StyleRegistry()
    return _registry
