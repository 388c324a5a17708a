"""Unit tests for the tree store and command queue."""

import random
import threading
import time
from concurrent.futures import Future

import pytest

from tuiforge.layout import LayoutPolicy
from tuiforge.schema import (
    Constraint,
    DesignTree,
    Direction,
    LayoutNode,
    ListData,
    WidgetNode,
    layout_template,
    widget_template,
)
from tuiforge.validation import validate_tree

from .commands import (
    AddNode,
    CommandQueue,
    DeleteNode,
    MoveNode,
    ResizeConstraint,
    SelectNode,
    UpdateConstraint,
    UpdateNodeProps,
)
from .lib import DiagnosticCode, MutationResult, TreeStore


def shares(store, layout_id):
    return [c.value for c in store.get_node(layout_id).constraints]


def add_widget(store, parent_id, widget_type="Paragraph", **data):
    result = store.add(parent_id, widget_template(widget_type, **data))
    assert result.applied
    return result.node_id


def add_layout(store, parent_id, direction="Horizontal"):
    result = store.add(parent_id, layout_template(direction))
    assert result.applied
    return result.node_id


# =============================================================================
# Add / delete / resize scenarios
# =============================================================================


class TestAdd:
    """Tests for TreeStore.add."""

    @pytest.mark.unit
    def test_first_child_takes_full_share(self, store):
        """Adding to an empty root yields Percentage(100)."""
        result = store.add("root", widget_template("Paragraph"))
        assert result == MutationResult(applied=True, node_id="w1")
        root = store.get_node("root")
        assert root.children == ["w1"]
        assert root.constraints == [Constraint.percentage(100)]

    @pytest.mark.unit
    def test_second_child_shrinks_first(self, store):
        """A second sibling reserves 20% and the first shrinks to 80%."""
        add_widget(store, "root")
        add_widget(store, "root", "List")
        assert store.get_node("root").children == ["w1", "w2"]
        assert shares(store, "root") == [80, 20]

    @pytest.mark.unit
    def test_marks_dirty(self, store):
        """Applied mutations dirty the tree."""
        assert not store.is_dirty
        add_widget(store, "root")
        assert store.is_dirty
        store.mark_clean()
        assert not store.is_dirty

    @pytest.mark.unit
    def test_widget_defaults_applied(self, store):
        """Widget templates carry registry defaults into the node."""
        node_id = add_widget(store, "root", "List")
        node = store.get_node(node_id)
        assert isinstance(node.data, ListData)
        assert node.data.items == ["Item 1", "Item 2", "Item 3"]

    @pytest.mark.unit
    def test_dict_template(self, store):
        """Templates may be given as plain dicts."""
        result = store.add("root", {"type": "Layout", "direction": "Horizontal"})
        assert result.applied
        assert store.get_node(result.node_id).direction == Direction.HORIZONTAL

    @pytest.mark.unit
    def test_missing_parent_rejected(self, store):
        """Unknown parents are rejected without changes."""
        before = store.snapshot()
        result = store.add("ghost", widget_template("Block"))
        assert not result.applied
        assert result.diagnostic.code == DiagnosticCode.NOT_FOUND
        assert store.snapshot() == before
        assert not store.is_dirty

    @pytest.mark.unit
    def test_widget_parent_rejected(self, store):
        """Widgets cannot hold children."""
        widget_id = add_widget(store, "root")
        result = store.add(widget_id, widget_template("Block"))
        assert result.diagnostic.code == DiagnosticCode.NOT_LAYOUT

    @pytest.mark.unit
    def test_invalid_template_rejected(self, store):
        """A malformed template is rejected."""
        result = store.add("root", {"type": "Widget", "widgetType": "Chart"})
        assert result.diagnostic.code == DiagnosticCode.INVALID_VALUE
        assert store.get_node("root").children == []

    @pytest.mark.unit
    def test_full_layout_rejected(self, sequential_ids):
        """Adding past the floor capacity is rejected with pane_floor."""
        store = TreeStore(policy=LayoutPolicy(min_share=25), id_factory=sequential_ids)
        for _ in range(4):
            add_widget(store, store.root_id)
        result = store.add(store.root_id, widget_template("Block"))
        assert result.diagnostic.code == DiagnosticCode.PANE_FLOOR
        assert len(store.get_node(store.root_id).children) == 4


class TestDelete:
    """Tests for TreeStore.delete."""

    @pytest.mark.unit
    def test_survivor_absorbs_share(self, store):
        """Deleting one of two siblings leaves the other at 100%."""
        add_widget(store, "root")
        add_widget(store, "root", "List")
        assert store.delete("w1").applied
        root = store.get_node("root")
        assert root.children == ["w2"]
        assert root.constraints == [Constraint.percentage(100)]
        assert "w1" not in store

    @pytest.mark.unit
    def test_subtree_removed(self, store):
        """Descendants are removed with their ancestor."""
        column = add_layout(store, "root", "Vertical")
        inner = add_widget(store, column)
        nested = add_layout(store, column)
        deep = add_widget(store, nested)
        store.delete(column)
        for node_id in (column, inner, nested, deep):
            assert node_id not in store
        assert len(store) == 1

    @pytest.mark.unit
    def test_root_protected(self, store):
        """The root cannot be deleted."""
        add_widget(store, "root")
        before = store.snapshot()
        result = store.delete("root")
        assert result.diagnostic.code == DiagnosticCode.ROOT_PROTECTED
        assert store.snapshot() == before

    @pytest.mark.unit
    def test_missing_node(self, store):
        """Unknown ids are a rejected no-op."""
        assert store.delete("ghost").diagnostic.code == DiagnosticCode.NOT_FOUND

    @pytest.mark.unit
    def test_clears_selection(self, store):
        """Deleting the selected node (or its ancestor) clears the selection."""
        column = add_layout(store, "root")
        child = add_widget(store, column)
        store.select(child)
        store.delete(column)
        assert store.selected_id is None

    @pytest.mark.unit
    def test_three_way_redistribution(self, store):
        """Removed share is spread proportionally, last sibling takes remainder."""
        for _ in range(3):
            add_widget(store, "root")
        assert shares(store, "root") == [64, 16, 20]
        store.delete("w2")
        assert shares(store, "root") == [76, 24]

    @pytest.mark.unit
    def test_removing_absolute_sibling_rebalances(self, store):
        """A lone Percentage left behind by a Length sibling grows back to 100."""
        add_widget(store, "root")
        add_widget(store, "root", "List")
        assert store.update_constraint("root", 1, Constraint.length(10)).applied
        assert store.get_node("root").constraints == [
            Constraint.percentage(80),
            Constraint.length(10),
        ]

        assert store.delete("w2").applied
        assert store.get_node("root").constraints == [Constraint.percentage(100)]
        assert validate_tree(store.snapshot()) == []
        assert len(TreeStore(store.snapshot())) == 2


class TestResize:
    """Tests for TreeStore.resize_constraint."""

    @pytest.fixture
    def pair(self, store):
        add_widget(store, "root")
        add_widget(store, "root")
        return store

    @pytest.mark.unit
    def test_transfer_and_clamp(self, pair):
        """+10 moves share; +999 clamps at the floor."""
        assert pair.resize_constraint("root", 0, 10).applied
        assert shares(pair, "root") == [90, 10]
        assert pair.resize_constraint("root", 0, 999).applied
        assert shares(pair, "root") == [95, 5]

    @pytest.mark.unit
    def test_zero_delta_noop(self, pair):
        """A delta rounding to zero is a silent no-op."""
        pair.mark_clean()
        result = pair.resize_constraint("root", 0, 0.3)
        assert result == MutationResult(applied=False, node_id="root")
        assert not pair.is_dirty

    @pytest.mark.unit
    def test_clamped_noop(self, pair):
        """A resize already at the floor changes nothing."""
        pair.resize_constraint("root", 0, 999)
        result = pair.resize_constraint("root", 0, 5)
        assert not result.applied
        assert result.diagnostic is None

    @pytest.mark.unit
    def test_last_index_rejected(self, pair):
        """The last index has no right neighbour."""
        result = pair.resize_constraint("root", 1, 5)
        assert result.diagnostic.code == DiagnosticCode.INDEX_OUT_OF_RANGE

    @pytest.mark.unit
    def test_non_percentage_rejected(self, pair):
        """Absolute constraints cannot be resized."""
        pair.update_constraint("root", 1, Constraint.length(3))
        result = pair.resize_constraint("root", 0, 5)
        assert result.diagnostic.code == DiagnosticCode.NOT_PERCENTAGE

    @pytest.mark.unit
    def test_non_finite_delta_rejected(self, pair):
        """Infinite deltas are invalid values."""
        result = pair.resize_constraint("root", 0, float("inf"))
        assert result.diagnostic.code == DiagnosticCode.INVALID_VALUE


# =============================================================================
# Move
# =============================================================================


class TestMove:
    """Tests for TreeStore.move."""

    @pytest.mark.unit
    def test_move_between_layouts(self, store):
        """The moved node keeps its share (capped) in the new parent."""
        add_widget(store, "root")  # w1
        column = add_layout(store, "root")  # w2
        add_widget(store, column)  # w3
        assert shares(store, "root") == [80, 20]

        result = store.move("w1", column, 0)
        assert result.applied
        assert store.get_node("root").children == [column]
        assert shares(store, "root") == [100]
        assert store.get_node(column).children == ["w1", "w3"]
        assert shares(store, column) == [50, 50]
        assert store.get_parent("w1") == column

    @pytest.mark.unit
    def test_move_within_parent(self, store):
        """Reordering among siblings keeps the total at 100."""
        for _ in range(3):
            add_widget(store, "root")
        assert store.move("w3", "root", 0).applied
        root = store.get_node("root")
        assert root.children == ["w3", "w1", "w2"]
        assert sum(c.value for c in root.constraints) == 100

    @pytest.mark.unit
    def test_moving_absolute_sibling_out_rebalances(self, store):
        """The layout a Length child leaves is brought back to 100."""
        column = add_layout(store, "root", "Vertical")  # w1
        add_widget(store, column)  # w2
        add_widget(store, column, "List")  # w3
        assert store.update_constraint(column, 1, Constraint.length(10)).applied

        assert store.move("w3", "root", 0).applied
        assert store.get_node(column).constraints == [Constraint.percentage(100)]
        assert store.get_node("root").children == ["w3", column]
        assert validate_tree(store.snapshot()) == []

    @pytest.mark.unit
    def test_append_when_index_omitted(self, store):
        """A missing index appends."""
        add_widget(store, "root")
        column = add_layout(store, "root")
        add_widget(store, column)
        store.move("w1", column)
        assert store.get_node(column).children[-1] == "w1"

    @pytest.mark.unit
    def test_move_into_empty_layout(self, store):
        """The only child of a layout gets 100%."""
        add_widget(store, "root")
        column = add_layout(store, "root")
        store.move("w1", column, 0)
        assert shares(store, column) == [100]

    @pytest.mark.unit
    def test_cycle_rejected(self, store):
        """Moving a layout into its own descendant changes nothing."""
        outer = add_layout(store, "root")
        inner = add_layout(store, outer)
        before = store.snapshot()
        for target in (outer, inner):
            result = store.move(outer, target, 0)
            assert result.diagnostic.code == DiagnosticCode.CYCLE
        assert store.snapshot() == before

    @pytest.mark.unit
    def test_root_rejected(self, store):
        """The root cannot be moved."""
        column = add_layout(store, "root")
        before = store.snapshot()
        result = store.move("root", column, 0)
        assert result.diagnostic.code == DiagnosticCode.ROOT_PROTECTED
        assert store.snapshot() == before

    @pytest.mark.unit
    def test_widget_target_rejected(self, store):
        """Targets must be layouts."""
        add_widget(store, "root")
        add_widget(store, "root")
        result = store.move("w1", "w2", 0)
        assert result.diagnostic.code == DiagnosticCode.NOT_LAYOUT

    @pytest.mark.unit
    def test_index_out_of_range(self, store):
        """Indices beyond the detached sibling count are rejected."""
        add_widget(store, "root")
        add_widget(store, "root")
        before = store.snapshot()
        result = store.move("w1", "root", 2)
        assert result.diagnostic.code == DiagnosticCode.INDEX_OUT_OF_RANGE
        assert store.snapshot() == before


# =============================================================================
# Property and constraint updates
# =============================================================================


class TestUpdateNodeProps:
    """Tests for TreeStore.update_node_props."""

    @pytest.mark.unit
    def test_widget_merge(self, store):
        """Widget data merges camelCase and snake_case keys."""
        node_id = add_widget(store, "root", title="Old")
        result = store.update_node_props(
            node_id, {"title": "New", "borderStyle": "Double", "text_color": "#fff"}
        )
        assert result.applied
        data = store.get_node(node_id).data
        assert (data.title, data.border_style.value, data.text_color) == (
            "New",
            "Double",
            "#fff",
        )

    @pytest.mark.unit
    def test_layout_direction(self, store):
        """Layouts accept a new direction."""
        store.update_node_props("root", {"direction": "Horizontal"})
        assert store.get_node("root").direction == Direction.HORIZONTAL

    @pytest.mark.unit
    def test_unknown_field_rejected(self, store):
        """Fields outside the variant reject the whole update."""
        node_id = add_widget(store, "root", "Block", title="Keep")
        result = store.update_node_props(node_id, {"title": "Drop", "items": ["x"]})
        assert result.diagnostic.code == DiagnosticCode.UNKNOWN_FIELD
        assert store.get_node(node_id).data.title == "Keep"

    @pytest.mark.unit
    def test_invalid_value_rejected(self, store):
        """Values failing the data model are rejected."""
        node_id = add_widget(store, "root")
        result = store.update_node_props(node_id, {"borderStyle": "Dotted"})
        assert result.diagnostic.code == DiagnosticCode.INVALID_VALUE

    @pytest.mark.unit
    def test_layout_unknown_field(self, store):
        """Layouts only accept direction."""
        result = store.update_node_props("root", {"children": []})
        assert result.diagnostic.code == DiagnosticCode.UNKNOWN_FIELD


class TestUpdateConstraint:
    """Tests for TreeStore.update_constraint."""

    @pytest.mark.unit
    def test_value_rounded(self, store):
        """Values are rounded before storage."""
        add_widget(store, "root")
        add_widget(store, "root")
        store.update_constraint("root", 1, {"type": "Length", "value": 2.5})
        assert store.get_node("root").constraints[1] == Constraint.length(3)

    @pytest.mark.unit
    def test_percentage_siblings_rebalanced(self, store):
        """All-Percentage siblings still total 100 after an edit."""
        for _ in range(3):
            add_widget(store, "root")
        store.update_constraint("root", 0, Constraint.percentage(50))
        values = shares(store, "root")
        assert values[0] == 50
        assert sum(values) == 100

    @pytest.mark.unit
    def test_index_rejected(self, store):
        """Out-of-range indices are rejected."""
        result = store.update_constraint("root", 0, Constraint.percentage(10))
        assert result.diagnostic.code == DiagnosticCode.INDEX_OUT_OF_RANGE

    @pytest.mark.unit
    def test_invalid_value(self, store):
        """Percentages above 100 are rejected."""
        add_widget(store, "root")
        too_big = {"type": "Percentage", "value": 140}
        result = store.update_constraint("root", 0, too_big)
        assert result.diagnostic.code == DiagnosticCode.INVALID_VALUE


# =============================================================================
# Lifecycle and queries
# =============================================================================


class TestLifecycle:
    """Tests for snapshots, selection and reset."""

    @pytest.mark.unit
    def test_load_snapshot(self, store, sample_tree):
        """Loading replaces the tree and clears selection and dirty flag."""
        add_widget(store, "root")
        store.select("w1")
        result = store.load_snapshot(sample_tree.to_dict())
        assert result.applied
        assert store.snapshot() == sample_tree
        assert store.selected_id is None
        assert not store.is_dirty

    @pytest.mark.unit
    def test_invalid_snapshot_rejected(self, store):
        """A snapshot violating invariants keeps the current tree."""
        add_widget(store, "root")
        before = store.snapshot()
        bad = DesignTree(
            root_id="r",
            nodes={"r": LayoutNode(id="r", children=["x"], constraints=[])},
        )
        result = store.load_snapshot(bad)
        assert result.diagnostic.code == DiagnosticCode.INVALID_SNAPSHOT
        assert store.snapshot() == before

    @pytest.mark.unit
    def test_schema_errors_rejected(self, store):
        """Snapshots that do not parse are rejected."""
        result = store.load_snapshot({"rootId": "r", "nodes": {"r": {"type": "Nope"}}})
        assert result.diagnostic.code == DiagnosticCode.INVALID_SNAPSHOT

    @pytest.mark.unit
    def test_constructor_rejects_invalid_tree(self):
        """Building a store from an invalid tree raises ValueError."""
        with pytest.raises(ValueError):
            TreeStore(DesignTree(root_id="missing", nodes={}))

    @pytest.mark.unit
    def test_snapshot_is_a_copy(self, store):
        """Mutating a snapshot does not affect the store."""
        snap = store.snapshot()
        snap.nodes["root"].children.append("x")
        assert store.get_node("root").children == []

    @pytest.mark.unit
    def test_select(self, store):
        """Selection accepts known ids and None."""
        node_id = add_widget(store, "root")
        assert store.select(node_id).applied
        assert store.selected_id == node_id
        assert store.select("ghost").diagnostic.code == DiagnosticCode.NOT_FOUND
        assert store.selected_id == node_id
        store.select(None)
        assert store.selected_id is None

    @pytest.mark.unit
    def test_target_parent(self, store):
        """New nodes go into the selected layout or the selected widget's parent."""
        column = add_layout(store, "root")
        widget = add_widget(store, column)
        assert store.target_parent_id() == "root"
        store.select(column)
        assert store.target_parent_id() == column
        store.select(widget)
        assert store.target_parent_id() == column

    @pytest.mark.unit
    def test_reset(self, store):
        """Reset leaves a single empty root."""
        add_widget(store, "root")
        store.reset("Horizontal")
        assert len(store) == 1
        assert store.get_node(store.root_id).direction == Direction.HORIZONTAL
        assert not store.is_dirty

    @pytest.mark.unit
    def test_descendants_preorder(self, store, sample_tree):
        """Descendants are listed in pre-order."""
        store.load_snapshot(sample_tree)
        assert store.descendants("root") == ["sidebar", "main", "header", "body"]
        assert store.get_parent("header") == "main"
        assert store.get_parent("root") is None


class TestInvariants:
    """Random operation sequences keep every invariant."""

    @pytest.mark.unit
    @pytest.mark.parametrize("seed", [1, 7, 42, 2024])
    def test_random_sequences(self, store, seed):
        """After each operation the tree validates and no share is under 5."""
        rng = random.Random(seed)
        for _ in range(200):
            snapshot = store.snapshot()
            ids = list(snapshot.nodes)
            layouts = [n for n in ids if isinstance(snapshot.nodes[n], LayoutNode)]
            op = rng.choice(
                ["add", "add", "layout", "delete", "move", "resize", "constraint"]
            )
            if op == "add":
                store.add(rng.choice(layouts), widget_template("Block"))
            elif op == "layout":
                store.add(rng.choice(layouts), layout_template())
            elif op == "delete":
                store.delete(rng.choice(ids))
            elif op == "move":
                target = rng.choice(layouts)
                size = len(snapshot.nodes[target].children)
                store.move(rng.choice(ids), target, rng.randint(0, size))
            elif op == "constraint":
                parent = rng.choice(layouts)
                size = len(snapshot.nodes[parent].children)
                if size:
                    kind = rng.choice(["Percentage", "Length", "Min", "Max"])
                    if kind == "Percentage":
                        value = rng.randint(5, 100)
                    else:
                        value = rng.randint(0, 20)
                    store.update_constraint(
                        parent, rng.randrange(size), {"type": kind, "value": value}
                    )
            else:
                parent = rng.choice(layouts)
                size = len(snapshot.nodes[parent].children)
                index = rng.randint(0, max(size - 2, 0))
                store.resize_constraint(parent, index, rng.randint(-60, 60))

            tree = store.snapshot()
            assert validate_tree(tree) == []
            for node in tree.nodes.values():
                if isinstance(node, LayoutNode):
                    assert all(
                        c.value >= 5 for c in node.constraints if c.is_percentage
                    )

    @pytest.mark.unit
    def test_rejected_operations_leave_tree_unchanged(self, store):
        """Every rejection is byte-for-byte a no-op."""
        column = add_layout(store, "root")
        add_widget(store, column)
        before = store.snapshot().to_json()
        store.move(column, column, 0)
        store.delete("root")
        store.move("root", column, 0)
        store.add("ghost", widget_template("Block"))
        store.resize_constraint(column, 0, 10)
        assert store.snapshot().to_json() == before


# =============================================================================
# Command queue
# =============================================================================


class TestCommandQueue:
    """Tests for the single-writer command queue."""

    @pytest.mark.unit
    def test_commands_apply_in_order(self, store):
        """Commands are applied FIFO on the writer thread."""
        with CommandQueue(store) as commands:
            futures = [
                commands.submit(AddNode("root", widget_template("Paragraph"))),
                commands.submit(AddNode("root", widget_template("List"))),
                commands.submit(ResizeConstraint("root", 0, 10)),
                commands.submit(UpdateNodeProps("w1", {"title": "Hi"})),
                commands.submit(UpdateConstraint("root", 1, Constraint.length(4))),
                commands.submit(SelectNode("w2")),
            ]
            results = [f.result(timeout=5) for f in futures]
            tree = commands.snapshot().result(timeout=5)
        assert all(r.applied for r in results)
        assert tree.nodes["root"].children == ["w1", "w2"]
        assert tree.nodes["root"].constraints == [
            Constraint.percentage(90),
            Constraint.length(4),
        ]
        assert tree.nodes["w1"].data.title == "Hi"

    @pytest.mark.unit
    def test_move_and_delete_commands(self, store):
        """Move and delete commands report rejections through the future."""
        with CommandQueue(store) as commands:
            column = commands.execute(AddNode("root", layout_template())).node_id
            widget = commands.execute(AddNode("root", widget_template("Block"))).node_id
            assert commands.execute(MoveNode(widget, column, 0)).applied
            rejected = commands.execute(DeleteNode("root"))
        assert rejected.diagnostic.code == DiagnosticCode.ROOT_PROTECTED

    @pytest.mark.unit
    def test_concurrent_submitters(self, store):
        """Submissions from many threads are serialized without loss."""
        with CommandQueue(store) as commands:
            futures = []
            lock = threading.Lock()

            def worker():
                for _ in range(5):
                    future = commands.submit(AddNode("root", widget_template("Block")))
                    with lock:
                        futures.append(future)

            threads = [threading.Thread(target=worker) for _ in range(4)]
            for t in threads:
                t.start()
            for t in threads:
                t.join()
            results = [f.result(timeout=5) for f in futures]
            tree = commands.snapshot().result(timeout=5)
        assert all(r.applied for r in results)
        assert len(tree.nodes["root"].children) == 20
        assert validate_tree(tree) == []

    @pytest.mark.unit
    def test_errors_delivered_through_future(self, store):
        """Exceptions in queued calls surface on result()."""
        with CommandQueue(store) as commands:
            future = commands.call(lambda s: 1 / 0)
            with pytest.raises(ZeroDivisionError):
                future.result(timeout=5)

    @pytest.mark.unit
    def test_closed_queue_refuses_work(self, store):
        """Submitting after close raises RuntimeError."""
        commands = CommandQueue(store)
        commands.close()
        assert commands.closed
        with pytest.raises(RuntimeError):
            commands.submit(SelectNode(None))

    @pytest.mark.unit
    def test_store_typed_nodes(self, store):
        """Nodes handed out by the queue are model instances."""
        with CommandQueue(store) as commands:
            added = commands.execute(AddNode("root", widget_template("Input")))
            node_id = added.node_id
            node = commands.call(lambda s: s.get_node(node_id)).result(timeout=5)
        assert isinstance(node, WidgetNode)

    @pytest.mark.unit
    def test_close_racing_submitters_resolves_every_future(self, store):
        """Work accepted while another thread closes the queue never hangs."""
        commands = CommandQueue(store)
        futures = []
        refused = []
        lock = threading.Lock()
        start = threading.Barrier(5)

        def worker():
            start.wait()
            for _ in range(50):
                try:
                    future = commands.call(lambda s: len(s))
                except RuntimeError:
                    with lock:
                        refused.append(True)
                    return
                with lock:
                    futures.append(future)

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for t in threads:
            t.start()
        start.wait()
        commands.close()
        for t in threads:
            t.join()

        assert all(f.done() for f in futures)
        assert all(f.result() == 1 for f in futures if not f.cancelled())

    @pytest.mark.unit
    def test_work_behind_stop_marker_cancelled(self, store):
        """Anything left in the queue when the writer stops is cancelled."""
        commands = CommandQueue(store)
        gate = threading.Event()
        blocker = commands.call(lambda s: gate.wait(5))

        closer = threading.Thread(target=commands.close)
        closer.start()
        for _ in range(500):
            if blocker.running() and commands._queue.qsize() == 1:
                break
            time.sleep(0.01)
        assert commands.closed

        stray: Future = Future()
        commands._queue.put((lambda s: len(s), stray))
        gate.set()
        closer.join(timeout=5)

        assert blocker.result(timeout=5) is True
        assert stray.cancelled()
