"""Integration tests for the design editing workflow.

Tests the full design lifecycle:
1. Build a layout through the command queue -> constraints stay balanced
2. Save the design as a project -> snapshot persisted
3. Reopen the project in a fresh store -> same tree, same generated code
4. Keep editing the reopened design -> edits apply to the loaded snapshot
"""

import pytest

from tuiforge.codegen import generate
from tuiforge.layout import percentage_total
from tuiforge.projects import ProjectManager
from tuiforge.schema import Constraint, layout_template, widget_template
from tuiforge.tree import (
    AddNode,
    CommandQueue,
    MoveNode,
    ResizeConstraint,
    TreeStore,
    UpdateConstraint,
)
from tuiforge.validation import validate_tree


@pytest.fixture
def project_manager(tmp_db_path):
    """ProjectManager on a throwaway database."""
    manager = ProjectManager(db_path=tmp_db_path)
    yield manager
    manager.close()


@pytest.fixture
def dashboard(store):
    """Dashboard built through the command queue.

    Layout: header paragraph over a horizontal body holding a menu list and
    a content paragraph.
    """
    queue = CommandQueue(store)
    try:
        header = queue.execute(
            AddNode("root", widget_template("Paragraph", title="Header"))
        )
        body = queue.execute(AddNode("root", layout_template("Horizontal")))
        menu = queue.execute(AddNode(body.node_id, widget_template("List")))
        content = queue.execute(
            AddNode(body.node_id, widget_template("Paragraph", title="Content"))
        )
        for result in (header, body, menu, content):
            assert result.applied
        queue.execute(ResizeConstraint("root", 0, -60))
        queue.execute(UpdateConstraint("root", 0, Constraint.length(3)))
    finally:
        queue.close()
    return store


@pytest.mark.integration
class TestDesignWorkflow:
    """End-to-end tests for editing, saving and reopening a design."""

    def test_built_tree_is_valid(self, dashboard):
        """Every edit leaves the snapshot structurally valid."""
        tree = dashboard.snapshot()
        assert validate_tree(tree) == []

        root = tree.root
        assert root.children == ["w1", "w2"]
        assert root.constraints == [Constraint.length(3), Constraint.percentage(80)]
        assert tree.nodes["w2"].constraints == [
            Constraint.percentage(80),
            Constraint.percentage(20),
        ]

    def test_generated_code_reflects_edits(self, dashboard):
        """Generated source carries the edited constraints and titles."""
        code = generate(dashboard.snapshot())
        assert "Constraint::Length(3)" in code
        assert "Constraint::Percentage(80)" in code
        assert '.title("Header")' in code
        assert '.title("Content")' in code

    def test_save_and_reopen(self, dashboard, project_manager):
        """A reopened project produces the same tree and code."""
        tree = dashboard.snapshot()
        project = project_manager.save_tree("alice", "Dashboard", tree)

        reopened = project_manager.open_tree(project.id)
        assert reopened.to_dict() == tree.to_dict()
        assert generate(reopened) == generate(tree)
        assert [p.id for p in project_manager.list_projects("alice")] == [project.id]

    def test_edit_after_reopen(self, dashboard, project_manager):
        """Edits on a reopened design are saved back to the same project."""
        project = project_manager.save_tree("alice", "Dashboard", dashboard.snapshot())

        store = TreeStore(project_manager.open_tree(project.id))
        queue = CommandQueue(store)
        try:
            moved = queue.execute(MoveNode("w4", "root", 0))
        finally:
            queue.close()
        assert moved.applied

        root = store.snapshot().root
        assert root.children == ["w4", "w1", "w2"]
        assert store.snapshot().nodes["w2"].constraints == [Constraint.percentage(100)]

        saved = project_manager.save_tree(
            "alice", "Dashboard v2", store.snapshot(), project_id=project.id
        )
        assert saved.id == project.id
        assert saved.title == "Dashboard v2"
        assert project_manager.open_tree(project.id).root.children == [
            "w4",
            "w1",
            "w2",
        ]
        assert project_manager.get_stats("alice") == {"project_count": 1}

    def test_many_edits_keep_shares_balanced(self, store):
        """A long run of adds, resizes and deletes keeps totals at 100."""
        ids = []
        for i in range(8):
            result = store.add("root", widget_template("Block", title=f"b{i}"))
            ids.append(result.node_id)
            store.resize_constraint("root", 0, 7)
        for node_id in ids[::3]:
            assert store.delete(node_id).applied

        root = store.snapshot().root
        assert len(root.children) == len(root.constraints)
        assert percentage_total(root.constraints) == 100
        assert validate_tree(store.snapshot()) == []
