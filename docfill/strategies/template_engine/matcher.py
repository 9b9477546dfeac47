"""Placeholder matching.

A template fragment represents a key only when the whole trimmed fragment
is one placeholder: ``prefix``, optional whitespace, the key, optional
whitespace, ``suffix``. Substring occurrences never match.
"""

import logging
import re
from collections.abc import Iterable
from functools import lru_cache

from docfill.strategies.template_engine.models import (
    DEFAULT_PREFIX,
    DEFAULT_SUFFIX,
    PlaceholderSpec,
)

logger = logging.getLogger(__name__)


@lru_cache(maxsize=64)
def _placeholder_pattern(prefix: str, suffix: str) -> re.Pattern[str]:
    return re.compile(rf"{re.escape(prefix)}\s*(.+?)\s*{re.escape(suffix)}")


def _blank(value: object) -> bool:
    return not isinstance(value, str) or not value.strip()


def matches_placeholder(
    fragment: str | None,
    key: str | None,
    prefix: str | None = DEFAULT_PREFIX,
    suffix: str | None = DEFAULT_SUFFIX,
) -> bool:
    """Check whether a fragment is exactly one placeholder wrapping ``key``.

    Args:
        fragment: Text extracted from a template block.
        key: Binding key to look for.
        prefix: Opening delimiter, matched literally.
        suffix: Closing delimiter, matched literally.

    Returns:
        True if the trimmed fragment is ``prefix ws key ws suffix`` and the
        captured key equals ``key.strip()`` exactly. Never raises.
    """
    if not isinstance(fragment, str) or not fragment or _blank(key) or _blank(prefix) or _blank(suffix):
        return False

    try:
        pattern = _placeholder_pattern(prefix, suffix)
    except re.error as e:
        logger.warning(f"Invalid placeholder pattern for {prefix!r}/{suffix!r}: {e}")
        return False

    match = pattern.fullmatch(fragment.strip())
    if match is None:
        return False
    return match.group(1) == key.strip()


def find_placeholder_key(
    fragment: str | None,
    keys: Iterable[str],
    spec: PlaceholderSpec | None = None,
) -> str | None:
    """Return the first key, in iteration order, whose placeholder is the fragment.

    Args:
        fragment: Text extracted from a template block.
        keys: Candidate keys. Dicts iterate in insertion order.
        spec: Placeholder delimiters. Defaults to ``{{``/``}}``.

    Returns:
        The first matching key, or None.
    """
    spec = spec or PlaceholderSpec()
    if not fragment:
        return None
    for key in keys:
        if matches_placeholder(fragment, key, spec.prefix, spec.suffix):
            return key
    return None
