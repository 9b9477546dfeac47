"""Template engine strategies.

Implements placeholder matching, value classification, staging files and
block-level replacement of rich markup placeholders. The builder lives in
``docfill.strategies.template_engine.builder``.
"""

from docfill.strategies.template_engine.classifier import (
    classify_bindings,
    classify_value,
    is_rich_markup,
)
from docfill.strategies.template_engine.matcher import find_placeholder_key, matches_placeholder
from docfill.strategies.template_engine.models import (
    BuildOptions,
    DataShape,
    FormattingOption,
    PlaceholderSpec,
    ValueKind,
)
from docfill.strategies.template_engine.replacer import BlockReplacer, extract_block_text
from docfill.strategies.template_engine.staging import generate_staging_name, staging_file

__all__ = [
    "BlockReplacer",
    "BuildOptions",
    "DataShape",
    "FormattingOption",
    "PlaceholderSpec",
    "ValueKind",
    "classify_bindings",
    "classify_value",
    "extract_block_text",
    "find_placeholder_key",
    "generate_staging_name",
    "is_rich_markup",
    "matches_placeholder",
    "staging_file",
]
