"""docfill: Word document generation from templates, HTML and Markdown."""

__version__ = "0.1.0"

from docfill.interfaces.errors import (  # noqa: E402
    ArgumentError,
    ConversionError,
    DocfillError,
    TemplateRenderError,
    TemplateSyntaxError,
)
from docfill.strategies.template_engine.builder import DocumentBuilder  # noqa: E402
from docfill.strategies.template_engine.models import BuildOptions, DataShape, FormattingOption  # noqa: E402

__all__ = [
    "__version__",
    "DocumentBuilder",
    "BuildOptions",
    "DataShape",
    "FormattingOption",
    "DocfillError",
    "ArgumentError",
    "ConversionError",
    "TemplateRenderError",
    "TemplateSyntaxError",
]
