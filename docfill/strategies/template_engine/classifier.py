"""Value and binding-set classification.

Decides whether a bound value is substituted as scalar text or expanded as
rich markup, and what shape a whole binding set has.
"""

import re
from collections.abc import Mapping
from typing import Any

from docfill.strategies.template_engine.models import DataShape, ValueKind

# Any tag-like substring, newlines allowed inside
_TAG_PATTERN = re.compile(r"<\s*[^>]+\s*/?\s*>", re.DOTALL)
_ROOT_TAG_PATTERN = re.compile(
    r"(<html>|<body>|<head>|<p>|<div>|<h\d+>)", re.DOTALL | re.IGNORECASE
)


def classify_value(value: Any) -> ValueKind:
    """Classify a bound value.

    Non-strings and blank strings are scalar. A string is rich markup when
    it contains a tag-like ``<...>`` substring or a known root/block tag.

    Args:
        value: Any bound value.

    Returns:
        ValueKind.RICH_MARKUP or ValueKind.SCALAR. Never raises.
    """
    if not isinstance(value, str):
        return ValueKind.SCALAR

    text = value.strip()
    if not text:
        return ValueKind.SCALAR

    if _TAG_PATTERN.search(text) or _ROOT_TAG_PATTERN.search(text):
        return ValueKind.RICH_MARKUP
    return ValueKind.SCALAR


def is_rich_markup(value: Any) -> bool:
    return classify_value(value) is ValueKind.RICH_MARKUP


def classify_bindings(bindings: Mapping[str, Any]) -> DataShape:
    """Classify a binding set as scalar-only, rich-only or mixed.

    An empty binding set is scalar-only: the scalar engine renders the
    template with nothing to substitute.
    """
    has_rich = False
    has_scalar = False
    for value in bindings.values():
        if is_rich_markup(value):
            has_rich = True
        else:
            has_scalar = True
        if has_rich and has_scalar:
            return DataShape.MIXED

    if has_rich:
        return DataShape.RICH_ONLY
    return DataShape.SCALAR_ONLY
