"""Component Factory for strategy instantiation.

The Factory Pattern lets the application wire scalar renderers, Markdown renderers
and builders from configuration instead of constructing them inline.
"""

import logging
from typing import Any

from docfill.core.config import Settings, get_settings
from docfill.core.fonts import StyleRegistry, get_style_registry
from docfill.interfaces.renderer import BaseScalarRenderer
from docfill.strategies.markup import MarkdownRenderer
from docfill.strategies.renderers import DocxtplRenderer
from docfill.strategies.template_engine.builder import DocumentBuilder, TemplateInput
from docfill.strategies.template_engine.models import BuildOptions

logger = logging.getLogger(__name__)


class ComponentFactory:
    """Factory for creating component instances based on configuration.

    Example:
        ```python
        factory = ComponentFactory(get_settings())

        builder = factory.get_builder("letter.docx", render_markdown=True)
        builder.build({"name": "Jan"}, "letter-out.docx")
        ```
    """

    def __init__(self, settings: Settings | None = None) -> None:
        """Initialize the factory with optional settings.

        Args:
            settings: Application settings. If None, uses global settings.
        """
        self._settings = settings or get_settings()
        self._renderer_cache: BaseScalarRenderer | None = None
        self._markdown_cache: MarkdownRenderer | None = None

    @property
    def settings(self) -> Settings:
        return self._settings

    def build_options(self, **overrides: Any) -> BuildOptions:
        """Create BuildOptions seeded from settings.

        Args:
            **overrides: BuildOptions fields that take precedence over settings.

        Returns:
            A new BuildOptions instance.
        """
        return BuildOptions.from_settings(self._settings, **overrides)

    def get_scalar_renderer(
        self,
        prefix: str | None = None,
        suffix: str | None = None,
    ) -> BaseScalarRenderer:
        """Get a scalar renderer for the given delimiters.

        The renderer for the configured delimiters is cached; other delimiter
        pairs get a fresh instance.

        Args:
            prefix: Opening delimiter. If None, uses settings.
            suffix: Closing delimiter. If None, uses settings.

        Returns:
            A BaseScalarRenderer implementation instance.
        """
        prefix = prefix or self._settings.placeholder_prefix
        suffix = suffix or self._settings.placeholder_suffix
        default = (self._settings.placeholder_prefix, self._settings.placeholder_suffix)

        if (prefix, suffix) != default:
            logger.info(f"Instantiating scalar renderer for {prefix!r}/{suffix!r}")
            return DocxtplRenderer(prefix, suffix)

        if self._renderer_cache is None:
            logger.info("Instantiating scalar renderer")
            self._renderer_cache = DocxtplRenderer(prefix, suffix)
        return self._renderer_cache

    def get_markdown_renderer(self) -> MarkdownRenderer:
        """Get the Markdown renderer instance."""
        if self._markdown_cache is None:
            logger.info("Instantiating Markdown renderer")
            self._markdown_cache = MarkdownRenderer()
        return self._markdown_cache

    def get_style_registry(self) -> StyleRegistry:
        """Get the process-wide font registry."""
        return get_style_registry()

    def get_builder(
        self,
        template: TemplateInput | None = None,
        options: BuildOptions | None = None,
        **overrides: Any,
    ) -> DocumentBuilder:
        """Get a document builder.

        Args:
            template: Template path, bytes or binary stream. None builds on a
                blank document.
            options: Build options. If None, derived from settings and overrides.
            **overrides: BuildOptions fields, used when ``options`` is None.

        Returns:
            A new DocumentBuilder.
        """
        options = options or self.build_options(**overrides)
        kwargs: dict[str, Any] = {
            "renderer": self.get_scalar_renderer(options.placeholder_prefix, options.placeholder_suffix),
            "registry": self.get_style_registry(),
            "staging_dir": self._settings.staging_dir,
            "staging_prefix": self._settings.staging_file_prefix,
        }
        if template is None:
            return DocumentBuilder.blank(options, **kwargs)
        return DocumentBuilder.from_template(template, options, **kwargs)

    def clear_cache(self) -> None:
        """Clear all cached component instances.

        This forces new instances to be created on next access.
        Useful for testing or when settings change.
        """
        self._renderer_cache = None
        self._markdown_cache = None
        logger.debug("Component factory cache cleared")

