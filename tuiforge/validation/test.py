"""Unit tests for validation module."""

import pytest

from tuiforge.schema import Constraint, DesignTree, LayoutNode, WidgetNode
from tuiforge.validation import ValidationError, is_valid, validate_tree


def make_tree(*nodes, root_id="root"):
    return DesignTree(root_id=root_id, nodes={n.id: n for n in nodes})


def widget(node_id):
    return WidgetNode(id=node_id, widget_type="Paragraph")


def single(node_id, child_id):
    """Layout with one child filling it."""
    return LayoutNode(
        id=node_id, children=[child_id], constraints=[Constraint.percentage(100)]
    )


def error_types(tree):
    return sorted(e.error_type for e in validate_tree(tree))


class TestValidateTree:
    """Tests for validate_tree function."""

    @pytest.mark.unit
    def test_valid_tree(self):
        """Well-formed tree passes validation."""
        tree = make_tree(
            LayoutNode(
                id="root",
                children=["a", "b"],
                constraints=[Constraint.percentage(80), Constraint.percentage(20)],
            ),
            widget("a"),
            widget("b"),
        )
        assert validate_tree(tree) == []
        assert is_valid(tree)

    @pytest.mark.unit
    def test_empty_root_valid(self):
        """A lone empty root is valid."""
        assert is_valid(DesignTree.empty())

    @pytest.mark.unit
    def test_missing_root(self):
        """A root id outside the node map is reported alone."""
        errors = validate_tree(make_tree(widget("a"), root_id="root"))
        assert len(errors) == 1
        assert isinstance(errors[0], ValidationError)
        assert errors[0].error_type == "missing_root"

    @pytest.mark.unit
    def test_root_not_layout(self):
        """The root must be a layout."""
        assert error_types(make_tree(widget("root"))) == ["root_not_layout"]

    @pytest.mark.unit
    def test_id_mismatch(self):
        """Map keys must equal node ids."""
        tree = DesignTree(
            root_id="root", nodes={"root": LayoutNode(id="root"), "x": widget("y")}
        )
        assert "id_mismatch" in error_types(tree)

    @pytest.mark.unit
    def test_missing_child(self):
        """Dangling child references are reported."""
        tree = make_tree(
            single("root", "ghost")
        )
        assert error_types(tree) == ["missing_child"]

    @pytest.mark.unit
    def test_multiple_parents(self):
        """A node shared by two layouts is a DAG, not a tree."""
        tree = make_tree(
            LayoutNode(
                id="root",
                children=["l", "w"],
                constraints=[Constraint.percentage(50), Constraint.percentage(50)],
            ),
            single("l", "w"),
            widget("w"),
        )
        errors = validate_tree(tree)
        assert [e.error_type for e in errors] == ["multiple_parents"]
        assert errors[0].node_id == "w"

    @pytest.mark.unit
    def test_cycle(self):
        """A layout containing its ancestor is a cycle."""
        tree = make_tree(
            single("root", "a"),
            single("a", "b"),
            single("b", "a"),
        )
        types = error_types(tree)
        assert "cycle" in types
        assert "multiple_parents" in types

    @pytest.mark.unit
    def test_root_as_child(self):
        """The root cannot be anyone's child."""
        tree = make_tree(
            single("root", "a"),
            single("a", "root"),
        )
        assert "root_has_parent" in error_types(tree)

    @pytest.mark.unit
    def test_orphan(self):
        """Unreachable nodes are reported."""
        tree = make_tree(LayoutNode(id="root"), widget("stray"))
        errors = validate_tree(tree)
        assert [(e.node_id, e.error_type) for e in errors] == [("stray", "orphan")]

    @pytest.mark.unit
    def test_constraint_mismatch(self):
        """Children and constraints must be parallel."""
        tree = make_tree(
            LayoutNode(id="root", children=["a"], constraints=[]),
            widget("a"),
        )
        assert error_types(tree) == ["constraint_mismatch"]

    @pytest.mark.unit
    def test_percentage_sum(self):
        """All-Percentage siblings must total 100."""
        tree = make_tree(
            LayoutNode(
                id="root",
                children=["a", "b"],
                constraints=[Constraint.percentage(60), Constraint.percentage(30)],
            ),
            widget("a"),
            widget("b"),
        )
        assert error_types(tree) == ["percentage_sum"]

    @pytest.mark.unit
    def test_mixed_constraints_skip_sum(self):
        """Mixed constraint kinds are not held to the 100 total."""
        tree = make_tree(
            LayoutNode(
                id="root",
                children=["a", "b"],
                constraints=[Constraint.length(3), Constraint.percentage(30)],
            ),
            widget("a"),
            widget("b"),
        )
        assert is_valid(tree)
