"""Unit tests for staging file handling."""

import logging
import re
from pathlib import Path

import pytest

from docfill.strategies.template_engine import staging
from docfill.strategies.template_engine.staging import (
    create_staging_file,
    delete_staging_file,
    generate_staging_name,
    staging_file,
)


class TestGenerateStagingName:
    """Test suite for staging name generation."""

    def test_default_format(self):
        """Test prefix, 17-digit timestamp, 3-digit random part and suffix."""
        assert re.fullmatch(r"temp-\d{17}\d{3}\.docx", generate_staging_name())

    def test_suffix_without_dot(self):
        """Test that a dot is inserted before a bare extension."""
        assert generate_staging_name("x-", "docx").endswith(".docx")

    def test_no_prefix_or_suffix(self):
        """Test that None omits prefix and suffix."""
        assert re.fullmatch(r"\d{20}", generate_staging_name(None, None))


class TestStagingFile:
    """Test suite for staging file lifecycle."""

    def test_create_is_exclusive(self, tmp_path, monkeypatch):
        """Test that an existing name is never reused."""
        monkeypatch.setattr(staging, "generate_staging_name", lambda prefix, suffix: "fixed.docx")

        first = create_staging_file(tmp_path)
        assert first.exists()
        with pytest.raises(FileExistsError):
            create_staging_file(tmp_path)

    def test_create_makes_directory(self, tmp_path):
        """Test that a missing staging directory is created."""
        path = create_staging_file(tmp_path / "nested" / "dir")
        assert path.parent.is_dir()

    def test_context_deletes_on_success(self, tmp_path):
        """Test deletion after a normal exit."""
        with staging_file(tmp_path) as path:
            path.write_bytes(b"data")
        assert not path.exists()

    def test_context_deletes_on_error(self, tmp_path):
        """Test deletion when the body raises."""
        with pytest.raises(RuntimeError):
            with staging_file(tmp_path) as path:
                raise RuntimeError("boom")
        assert not path.exists()
        assert list(tmp_path.iterdir()) == []

    def test_delete_failure_is_logged(self, tmp_path, monkeypatch, caplog):
        """Test that deletion errors are swallowed and logged."""
        path = create_staging_file(tmp_path)

        def fail(self, missing_ok=False):
            raise PermissionError("locked")

        monkeypatch.setattr(Path, "unlink", fail)
        with caplog.at_level(logging.WARNING):
            delete_staging_file(path)

        assert "Failed to delete staging file" in caplog.text
