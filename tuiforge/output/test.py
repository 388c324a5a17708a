"""Tests for output module."""

import pytest

from tuiforge.output import (
    DesignOutput,
    OutputGenerator,
    format_constraint,
    format_design_tree,
)
from tuiforge.schema import Constraint, DesignTree, LayoutNode, WidgetNode


class TestFormatDesignTree:
    """Tests for format_design_tree function."""

    @pytest.mark.unit
    def test_empty_tree(self):
        """An empty root shows only the layout line."""
        tree = DesignTree(root_id="root", nodes={"root": LayoutNode(id="root")})
        assert format_design_tree(tree) == "root [Layout, vertical]"

    @pytest.mark.unit
    def test_nested_tree(self, sample_tree):
        """Nested layouts are drawn with box connectors and constraints."""
        expected = "\n".join(
            [
                "root [Layout, horizontal]",
                "├── Menu [List, 30%]",
                "└── main [Layout, vertical, 70%]",
                "    ├── Dashboard [Paragraph, len 3]",
                "    └── body [Table, min 5]",
            ]
        )
        assert format_design_tree(sample_tree) == expected

    @pytest.mark.unit
    def test_input_uses_label(self):
        """Inputs are labelled by their label field."""
        tree = DesignTree(
            root_id="root",
            nodes={
                "root": LayoutNode(
                    id="root", children=["i"], constraints=[Constraint.percentage(100)]
                ),
                "i": WidgetNode(id="i", widget_type="Input", data={"label": "Name"}),
            },
        )
        assert "└── Name [Input, 100%]" in format_design_tree(tree)

    @pytest.mark.unit
    def test_missing_and_cyclic_children(self):
        """Broken references are marked instead of raising."""
        tree = DesignTree(
            root_id="root",
            nodes={
                "root": LayoutNode(
                    id="root",
                    children=["ghost", "root"],
                    constraints=[Constraint.percentage(50), Constraint.percentage(50)],
                )
            },
        )
        result = format_design_tree(tree)
        assert "├── ghost <missing>" in result
        assert "└── root <cycle>" in result

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "constraint,expected",
        [
            (Constraint.percentage(80), "80%"),
            (Constraint.length(3), "len 3"),
            (Constraint.minimum(5), "min 5"),
            (Constraint.maximum(9), "max 9"),
        ],
    )
    def test_format_constraint(self, constraint, expected):
        """Each constraint kind has a short label."""
        assert format_constraint(constraint) == expected


class TestOutputGenerator:
    """Tests for OutputGenerator class."""

    @pytest.mark.unit
    def test_generate_ratatui(self, sample_tree):
        """Output bundles the text tree and generated code."""
        output = OutputGenerator(default_target="ratatui").generate(sample_tree)
        assert isinstance(output, DesignOutput)
        assert output.target == "ratatui"
        assert output.text_tree.startswith("root [Layout, horizontal]")
        assert "fn ui(f: &mut Frame)" in output.code
        assert output.manifest is None
        assert output.warnings == []
        assert output.tree is sample_tree

    @pytest.mark.unit
    def test_generate_with_manifest(self, sample_tree):
        """A project name adds the build manifest."""
        output = OutputGenerator().generate(sample_tree, project_name="Dash")
        assert 'name = "dash"' in output.manifest

    @pytest.mark.unit
    def test_unknown_target(self, sample_tree):
        """Unknown targets raise KeyError."""
        with pytest.raises(KeyError):
            OutputGenerator().generate(sample_tree, target="ncurses")
