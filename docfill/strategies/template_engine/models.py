"""Template engine domain models.

Value types shared by the matcher, the classifiers, the replacer and the
builder. These models live here to avoid circular imports with the API layer.
"""

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import TYPE_CHECKING

from docfill.core.config import DEFAULT_GLOBAL_CSS
from docfill.interfaces.errors import ArgumentError

if TYPE_CHECKING:
    from docfill.core.config import Settings

DEFAULT_PREFIX = "{{"
DEFAULT_SUFFIX = "}}"

ContentProcessor = Callable[[str, str | None], str]


class ValueKind(str, Enum):
    """How a bound value is substituted."""

    SCALAR = "scalar"
    RICH_MARKUP = "rich_markup"


class DataShape(str, Enum):
    """Classification of a whole binding set; drives pass sequencing."""

    SCALAR_ONLY = "scalar_only"
    RICH_ONLY = "rich_only"
    MIXED = "mixed"


class FormattingOption(str, Enum):
    """How markup classes, tags and inline CSS turn into document formatting.

    CLASS_TO_STYLE_ONLY: only ``class`` attributes count, mapped to document styles.
    CLASS_PLUS_OTHER: class styles first, then tags and inline CSS on top.
    IGNORE_CLASS: tags and inline CSS only.
    """

    CLASS_TO_STYLE_ONLY = "class_to_style_only"
    CLASS_PLUS_OTHER = "class_plus_other"
    IGNORE_CLASS = "ignore_class"

    @property
    def uses_class(self) -> bool:
        return self is not FormattingOption.IGNORE_CLASS

    @property
    def uses_other(self) -> bool:
        return self is not FormattingOption.CLASS_TO_STYLE_ONLY


@dataclass(frozen=True)
class PlaceholderSpec:
    """Placeholder delimiters, e.g. ``{{`` and ``}}``."""

    prefix: str = DEFAULT_PREFIX
    suffix: str = DEFAULT_SUFFIX

    def __post_init__(self) -> None:
        if not self.prefix or not self.prefix.strip():
            raise ArgumentError("placeholder prefix must not be blank")
        if not self.suffix or not self.suffix.strip():
            raise ArgumentError("placeholder suffix must not be blank")

    def wrap(self, key: str) -> str:
        """Return the placeholder text for a key."""
        return f"{self.prefix}{key}{self.suffix}"


@dataclass(frozen=True)
class BuildOptions:
    """Immutable per-build configuration.

    Attributes:
        placeholder_prefix: Opening placeholder delimiter.
        placeholder_suffix: Closing placeholder delimiter.
        global_css: Style sheet merged into every rich value before conversion.
            Defaults to the table style sheet; None disables injection.
        content_processor: Hook ``(markup, key) -> markup`` run after style injection.
        auto_close_stream: Close stream sinks once the build finishes.
        static_resource_base_uri: Base URI for relative image references.
        paragraph_formatting: Override for paragraph formatting.
        run_formatting: Override for run formatting.
        table_formatting: Override for table formatting.
        use_html_default_style: Default formatting when no override is set.
        font_mapping: Per-build CSS font-family to document font name mapping.
        render_markdown: Render Markdown-looking scalar values to HTML first.
    """

    placeholder_prefix: str = DEFAULT_PREFIX
    placeholder_suffix: str = DEFAULT_SUFFIX
    global_css: str | None = DEFAULT_GLOBAL_CSS
    content_processor: ContentProcessor | None = None
    auto_close_stream: bool = True
    static_resource_base_uri: str | None = None
    paragraph_formatting: FormattingOption | None = None
    run_formatting: FormattingOption | None = None
    table_formatting: FormattingOption | None = None
    use_html_default_style: bool = True
    font_mapping: Mapping[str, str] = field(default_factory=dict)
    render_markdown: bool = False

    def __post_init__(self) -> None:
        # Validates the delimiters
        PlaceholderSpec(self.placeholder_prefix, self.placeholder_suffix)
        for family, font in self.font_mapping.items():
            if not family or not family.strip() or not font or not font.strip():
                raise ArgumentError("font mapping names must not be blank")
        object.__setattr__(
            self,
            "font_mapping",
            MappingProxyType({k.strip().lower(): v for k, v in self.font_mapping.items()}),
        )

    @classmethod
    def from_settings(cls, settings: "Settings", **overrides: object) -> "BuildOptions":
        """Create options seeded from application settings.

        Args:
            settings: Application settings.
            **overrides: Field values that take precedence over settings.

        Returns:
            A new BuildOptions instance.
        """
        values: dict[str, object] = {
            "placeholder_prefix": settings.placeholder_prefix,
            "placeholder_suffix": settings.placeholder_suffix,
            "global_css": settings.global_css,
            "auto_close_stream": settings.auto_close_stream,
            "static_resource_base_uri": settings.static_resource_base_uri,
            "use_html_default_style": settings.use_html_default_style,
        }
        values.update(overrides)
        return cls(**values)  # type: ignore[arg-type]

    @property
    def placeholder(self) -> PlaceholderSpec:
        return PlaceholderSpec(self.placeholder_prefix, self.placeholder_suffix)

    def formatting_for(self, kind: str) -> FormattingOption:
        """Resolve the effective formatting option for a block kind.

        Args:
            kind: One of ``"paragraph"``, ``"run"`` or ``"table"``.

        Returns:
            The override when one is set, else the default derived from
            ``use_html_default_style``.
        """
        override = {
            "paragraph": self.paragraph_formatting,
            "run": self.run_formatting,
            "table": self.table_formatting,
        }[kind]
        if override is not None:
            return override
        if any((self.paragraph_formatting, self.run_formatting, self.table_formatting)):
            return FormattingOption.CLASS_PLUS_OTHER
        if self.use_html_default_style:
            return FormattingOption.CLASS_PLUS_OTHER
        return FormattingOption.CLASS_TO_STYLE_ONLY
