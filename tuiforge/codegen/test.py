"""Unit tests for the code target registry and color parsing."""

import pytest

from tuiforge.codegen import (
    CodeTarget,
    GenerationResult,
    generate,
    generate_manifest,
    generate_with_warnings,
    get_target,
    is_hex_color,
    list_targets,
    parse_hex_color,
)
from tuiforge.schema import DesignTree


class TestParseHexColor:
    """Tests for hex color conversion."""

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "value,expected",
        [
            ("#ffffff", (255, 255, 255)),
            ("#000000", (0, 0, 0)),
            ("#e8e8e8", (232, 232, 232)),
            ("#0af", (0, 170, 255)),
            ("#F0a", (255, 0, 170)),
            ("12ab34", (18, 171, 52)),
        ],
    )
    def test_valid(self, value, expected):
        """Three and six digit colors convert to channels."""
        assert parse_hex_color(value) == expected

    @pytest.mark.unit
    @pytest.mark.parametrize("value", ["", "#", "#12", "#12345", "#gggggg", "red"])
    def test_invalid(self, value):
        """Malformed colors raise ValueError."""
        with pytest.raises(ValueError):
            parse_hex_color(value)
        assert not is_hex_color(value)


class TestRegistry:
    """Tests for target lookup."""

    @pytest.mark.unit
    def test_ratatui_registered(self):
        """The ratatui target is available."""
        assert "ratatui" in list_targets()
        target = get_target("ratatui")
        assert isinstance(target, CodeTarget)
        assert target.file_extension == ".rs"
        assert target.manifest_filename == "Cargo.toml"

    @pytest.mark.unit
    def test_default_from_config(self, monkeypatch):
        """Without a name the configured target is used."""
        monkeypatch.delenv("TUIFORGE_CODEGEN_TARGET", raising=False)
        assert get_target().name == "ratatui"

    @pytest.mark.unit
    def test_unknown_target(self):
        """Unknown names raise KeyError listing what is available."""
        with pytest.raises(KeyError, match="ratatui"):
            get_target("curses")


class TestGenerate:
    """Tests for the module-level entry points."""

    @pytest.mark.unit
    def test_generate_matches_result(self, sample_tree):
        """generate returns the code of generate_with_warnings."""
        result = generate_with_warnings(sample_tree, "ratatui")
        assert isinstance(result, GenerationResult)
        assert result.target == "ratatui"
        assert not result.has_warnings
        assert generate(sample_tree, "ratatui") == result.code

    @pytest.mark.unit
    def test_deterministic(self, sample_tree):
        """Two calls on the same tree produce identical text."""
        assert generate(sample_tree) == generate(sample_tree)

    @pytest.mark.unit
    def test_tree_not_mutated(self, sample_tree):
        """Generation leaves the snapshot untouched."""
        before = sample_tree.to_json()
        generate(sample_tree)
        assert sample_tree.to_json() == before

    @pytest.mark.unit
    def test_manifest(self):
        """Manifest generation delegates to the target."""
        assert 'name = "demo"' in generate_manifest("Demo")

    @pytest.mark.unit
    def test_empty_tree(self):
        """An empty root still yields a complete program."""
        code = generate(DesignTree.empty())
        assert "// Empty layout" in code
        assert code.rstrip().endswith("}")
