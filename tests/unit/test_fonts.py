"""Unit tests for the font registry."""

from concurrent.futures import ThreadPoolExecutor

import pytest

from docfill.core.fonts import StyleRegistry, get_style_registry
from docfill.interfaces.errors import ArgumentError


class TestStyleRegistry:
    """Test suite for StyleRegistry."""

    def test_register_and_resolve_mapping(self, registry):
        """Test a case-insensitive font mapping lookup."""
        registry.register_mapping("My Font", "Microsoft YaHei")

        assert registry.resolve_font("my font") == "Microsoft YaHei"
        assert registry.resolve_font("MY FONT") == "Microsoft YaHei"
        assert registry.resolve_font("Other") is None
        assert registry.resolve_font(None) is None

    def test_register_is_idempotent(self, registry):
        """Test that registering the same pair twice changes nothing."""
        registry.register_mapping("a", "B")
        registry.register_mapping("a", "B")
        assert registry.resolve_font("a") == "B"

    @pytest.mark.parametrize("source,target", [(None, "B"), ("", "B"), ("a", None), ("a", "  ")])
    def test_blank_mapping_rejected(self, registry, source, target):
        """Test that blank names raise ArgumentError."""
        with pytest.raises(ArgumentError):
            registry.register_mapping(source, target)

    def test_register_physical_font_path(self, registry, tmp_path):
        """Test registering a font file by path."""
        font = tmp_path / "font.ttf"
        registry.register_physical_font("Custom", font)

        assert registry.physical_font("Custom") == str(font)
        assert registry.resolve_font("Custom") == "Custom"

    def test_register_physical_font_uri(self, registry):
        """Test that file: URIs are reduced to paths."""
        registry.register_physical_font("Custom", "file:///opt/fonts/custom.ttf")
        assert registry.physical_font("Custom").replace("\\", "/").endswith("/opt/fonts/custom.ttf")

    @pytest.mark.parametrize("alias,font", [(None, "f.ttf"), (" ", "f.ttf"), ("Custom", "")])
    def test_blank_physical_font_rejected(self, registry, alias, font):
        """Test that blank aliases or locations raise ArgumentError."""
        with pytest.raises(ArgumentError):
            registry.register_physical_font(alias, font)

    def test_physical_font_mapping(self, registry):
        """Test registering a font file and mapping a CSS family onto it."""
        registry.register_physical_font_mapping("brand", "/fonts/brand.ttf", "Brand Sans")

        assert registry.resolve_font("brand") == "Brand Sans"
        assert registry.physical_font("Brand Sans") is not None

    def test_clear(self, registry):
        """Test forgetting all registrations."""
        registry.register_mapping("a", "B")
        registry.clear()
        assert registry.resolve_font("a") is None

    def test_concurrent_registration(self, registry):
        """Test that concurrent registrations are all kept."""

        def register(i):
            registry.register_mapping(f"font-{i}", f"Font {i}")
            return registry.resolve_font(f"font-{i}")

        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(register, range(200)))

        assert results == [f"Font {i}" for i in range(200)]

    def test_global_registry_is_singleton(self):
        """Test that the process-wide registry is shared."""
        assert get_style_registry() is get_style_registry()
        assert isinstance(get_style_registry(), StyleRegistry)
