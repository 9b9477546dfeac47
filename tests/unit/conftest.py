"""Shared fixtures for unit tests."""

import pytest

from docfill.core.fonts import StyleRegistry
from docx_helpers import make_docx


@pytest.fixture
def docx_factory():
    """Build template bytes from a list of paragraph texts."""
    return make_docx


@pytest.fixture
def registry():
    """Create an isolated font registry."""
    return StyleRegistry()
