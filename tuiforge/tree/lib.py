"""Tree Store for tui-forge designs.

The store owns the node map and root pointer of one design and exposes the
atomic mutation operations. Every operation either applies completely or is
rejected without touching state; rejections never raise, they return a
``MutationResult`` carrying a ``TreeDiagnostic``.

The store is synchronous and single-threaded. Callers on other threads go
through ``tuiforge.tree.commands.CommandQueue``.

Example:
    >>> from tuiforge.schema import widget_template
    >>> store = TreeStore()
    >>> result = store.add(store.root_id, widget_template("Paragraph"))
    >>> result.applied
    True
"""

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Mapping

from pydantic import TypeAdapter, ValidationError

from tuiforge.layout import (
    LayoutError,
    LayoutPolicy,
    append_share,
    expand_after_removal,
    get_layout_policy,
    insert_share,
    pin_share,
    resize_pair,
)
from tuiforge.schema import (
    Constraint,
    DesignTree,
    Direction,
    LayoutNode,
    LayoutTemplate,
    NodeTemplate,
    WidgetNode,
    WidgetTemplate,
    get_widget_meta,
    new_node_id,
)
from tuiforge.validation import validate_tree

logger = logging.getLogger(__name__)

_TEMPLATE_ADAPTER: TypeAdapter = TypeAdapter(NodeTemplate)

TreeNode = LayoutNode | WidgetNode


class DiagnosticCode(str, Enum):
    """Reasons a mutation was rejected."""

    ROOT_PROTECTED = "root_protected"
    CYCLE = "cycle"
    NOT_LAYOUT = "not_layout"
    NOT_FOUND = "not_found"
    INDEX_OUT_OF_RANGE = "index_out_of_range"
    NOT_PERCENTAGE = "not_percentage"
    INVALID_VALUE = "invalid_value"
    UNKNOWN_FIELD = "unknown_field"
    PANE_FLOOR = "pane_floor"
    INVALID_SNAPSHOT = "invalid_snapshot"


@dataclass(frozen=True)
class TreeDiagnostic:
    """Caller-visible explanation of a rejected mutation.

    Attributes:
        code: Machine-readable rejection reason.
        message: Human-readable description.
        node_id: Node the request referred to, if any.
    """

    code: DiagnosticCode
    message: str
    node_id: str | None = None

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.message}"


@dataclass(frozen=True)
class MutationResult:
    """Outcome of a Tree Store operation.

    Attributes:
        applied: Whether the tree changed.
        node_id: The node created or affected (new id for ``add``).
        diagnostic: Why the request was rejected; None when applied or when
            the request was a valid no-op (such as a zero resize).
    """

    applied: bool
    node_id: str | None = None
    diagnostic: TreeDiagnostic | None = None

    def __bool__(self) -> bool:
        return self.applied

    def to_dict(self) -> dict[str, Any]:
        """Serialize for tool responses."""
        result: dict[str, Any] = {"applied": self.applied, "node_id": self.node_id}
        if self.diagnostic is not None:
            result["diagnostic"] = {
                "code": self.diagnostic.code.value,
                "message": self.diagnostic.message,
                "node_id": self.diagnostic.node_id,
            }
        return result


class _Rejected(Exception):
    """Internal signal carrying a diagnostic out of a mutation."""

    def __init__(self, code: DiagnosticCode, message: str, node_id: str | None):
        super().__init__(message)
        self.diagnostic = TreeDiagnostic(code=code, message=message, node_id=node_id)


class TreeStore:
    """Owner of one design tree.

    Nodes live in a flat id-to-node map; ownership is expressed only through
    layout ``children`` lists, so moves re-link ids rather than copy
    subtrees. Nodes handed out by ``get_node`` and ``snapshot`` are copies.

    Args:
        tree: Initial snapshot. If None, starts with an empty vertical root.
        policy: Share policy. If None, read from configuration.
        id_factory: Identity generator for new nodes.

    Raises:
        ValueError: If ``tree`` violates a structural invariant.
    """

    def __init__(
        self,
        tree: DesignTree | None = None,
        policy: LayoutPolicy | None = None,
        id_factory: Callable[[], str] = new_node_id,
    ):
        self._policy = policy or get_layout_policy()
        self._new_id = id_factory
        self._selected_id: str | None = None
        self._dirty = False

        if tree is None:
            tree = DesignTree.empty()
        else:
            errors = validate_tree(tree)
            if errors:
                raise ValueError(f"Invalid design tree: {errors[0].message}")
        self._install(tree)

    def _install(self, tree: DesignTree) -> None:
        self._root_id = tree.root_id
        self._nodes: dict[str, TreeNode] = {
            node_id: node.model_copy(deep=True) for node_id, node in tree.nodes.items()
        }

    # =========================================================================
    # State
    # =========================================================================

    @property
    def root_id(self) -> str:
        """Identifier of the root layout."""
        return self._root_id

    @property
    def policy(self) -> LayoutPolicy:
        """Share policy used for redistribution."""
        return self._policy

    @property
    def selected_id(self) -> str | None:
        """Currently selected node, if any."""
        return self._selected_id

    @property
    def is_dirty(self) -> bool:
        """Whether the tree changed since it was loaded or marked clean."""
        return self._dirty

    def mark_clean(self) -> None:
        """Clear the dirty flag (after a successful save)."""
        self._dirty = False

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    # =========================================================================
    # Queries
    # =========================================================================

    def get_node(self, node_id: str) -> TreeNode | None:
        """Get a copy of a node, or None if it does not exist."""
        node = self._nodes.get(node_id)
        return node.model_copy(deep=True) if node is not None else None

    def get_parent(self, node_id: str) -> str | None:
        """Get the id of the layout holding ``node_id`` (None for the root)."""
        for candidate in self._nodes.values():
            if isinstance(candidate, LayoutNode) and node_id in candidate.children:
                return candidate.id
        return None

    def descendants(self, node_id: str) -> list[str]:
        """All ids below ``node_id`` in pre-order, excluding the node itself."""
        result: list[str] = []
        node = self._nodes.get(node_id)
        if not isinstance(node, LayoutNode):
            return result
        for child_id in node.children:
            if child_id in self._nodes:
                result.append(child_id)
                result.extend(self.descendants(child_id))
        return result

    def snapshot(self) -> DesignTree:
        """Deep copy of the current tree in the persisted snapshot shape."""
        return DesignTree(
            root_id=self._root_id,
            nodes={k: v.model_copy(deep=True) for k, v in self._nodes.items()},
        )

    def target_parent_id(self) -> str:
        """Layout that new nodes go into by default.

        The selected layout, else the selected widget's parent, else the root.
        """
        selected = self._nodes.get(self._selected_id) if self._selected_id else None
        if isinstance(selected, LayoutNode):
            return selected.id
        if selected is not None:
            return self.get_parent(selected.id) or self._root_id
        return self._root_id

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def load_snapshot(self, tree: DesignTree | Mapping[str, Any]) -> MutationResult:
        """Replace the whole tree with a persisted snapshot.

        Clears the selection and the dirty flag. Snapshots that fail
        validation are rejected and the current tree is kept.

        Args:
            tree: Snapshot model or its camelCase dict form.

        Returns:
            MutationResult with the new root id.
        """
        try:
            if not isinstance(tree, DesignTree):
                try:
                    tree = DesignTree.model_validate(tree)
                except ValidationError as e:
                    raise _Rejected(
                        DiagnosticCode.INVALID_SNAPSHOT,
                        f"Snapshot does not match the schema: {e.error_count()} errors",
                        None,
                    ) from e
            errors = validate_tree(tree)
            if errors:
                raise _Rejected(
                    DiagnosticCode.INVALID_SNAPSHOT,
                    "; ".join(e.message for e in errors),
                    errors[0].node_id,
                )
        except _Rejected as rejection:
            return self._reject(rejection)

        self._install(tree)
        self._selected_id = None
        self._dirty = False
        logger.info(f"Loaded design with {len(self._nodes)} nodes")
        return MutationResult(applied=True, node_id=self._root_id)

    def reset(self, direction: Direction | str = Direction.VERTICAL) -> MutationResult:
        """Start over with an empty root layout."""
        self._install(DesignTree.empty(direction))
        self._selected_id = None
        self._dirty = False
        logger.debug(f"Reset design to empty {Direction(direction).value} root")
        return MutationResult(applied=True, node_id=self._root_id)

    def select(self, node_id: str | None) -> MutationResult:
        """Select a node (None clears the selection). Does not dirty the tree."""
        if node_id is not None and node_id not in self._nodes:
            return self._reject(
                _Rejected(DiagnosticCode.NOT_FOUND, f"No node '{node_id}'", node_id)
            )
        self._selected_id = node_id
        return MutationResult(applied=True, node_id=node_id)

    # =========================================================================
    # Mutations
    # =========================================================================

    def add(
        self,
        parent_id: str,
        template: NodeTemplate | Mapping[str, Any],
    ) -> MutationResult:
        """Create a node from a template and append it to a layout.

        The first child of a layout gets ``Percentage(100)``; later children
        reserve ``policy.new_share`` and shrink their Percentage siblings.

        Args:
            parent_id: Layout to append to.
            template: Layout or widget template (model or dict).

        Returns:
            MutationResult whose ``node_id`` is the new node's id.
        """
        try:
            parent = self._require_layout(parent_id)
            node = self._build(template)
            constraints = self._layout_call(parent_id, append_share, parent.constraints)
        except _Rejected as rejection:
            return self._reject(rejection)

        self._nodes[node.id] = node
        self._nodes[parent_id] = parent.model_copy(
            update={"children": [*parent.children, node.id], "constraints": constraints}
        )
        return self._applied(node.id, f"Added {_describe(node)} to '{parent_id}'")

    def delete(self, node_id: str) -> MutationResult:
        """Remove a node and its whole subtree.

        A freed Percentage share goes back to the surviving siblings.

        Args:
            node_id: Node to remove (never the root).

        Returns:
            MutationResult for the removed node.
        """
        try:
            if node_id == self._root_id:
                raise _Rejected(
                    DiagnosticCode.ROOT_PROTECTED, "The root cannot be deleted", node_id
                )
            self._require_node(node_id)
            parent_update = self._detach(node_id)
        except _Rejected as rejection:
            return self._reject(rejection)

        removed = [node_id, *self.descendants(node_id)]
        for removed_id in removed:
            del self._nodes[removed_id]
        if parent_update is not None:
            self._nodes[parent_update.id] = parent_update
        if self._selected_id in removed:
            self._selected_id = None
        return self._applied(node_id, f"Deleted '{node_id}' ({len(removed)} nodes)")

    def move(
        self, node_id: str, new_parent_id: str, index: int | None = None
    ) -> MutationResult:
        """Relocate a node (with its subtree) into a layout at ``index``.

        The old parent redistributes as for ``delete``. The node keeps
        ``min(old_share, policy.max_moved_share)`` in its new parent.

        Args:
            node_id: Node to move (never the root).
            new_parent_id: Destination layout; not the node or a descendant.
            index: Position among the destination's children after the node
                has been detached. None appends.

        Returns:
            MutationResult for the moved node.
        """
        try:
            if node_id == self._root_id:
                raise _Rejected(
                    DiagnosticCode.ROOT_PROTECTED, "The root cannot be moved", node_id
                )
            self._require_node(node_id)
            target = self._require_layout(new_parent_id)
            if new_parent_id == node_id or new_parent_id in self.descendants(node_id):
                raise _Rejected(
                    DiagnosticCode.CYCLE,
                    f"Cannot move '{node_id}' into itself or its descendant "
                    f"'{new_parent_id}'",
                    node_id,
                )

            old_parent_id = self.get_parent(node_id)
            moved_constraint = self._constraint_of(node_id, old_parent_id)
            old_update = self._detach(node_id)
            base = old_update if old_parent_id == new_parent_id else target

            position = len(base.children) if index is None else index
            if not 0 <= position <= len(base.children):
                raise _Rejected(
                    DiagnosticCode.INDEX_OUT_OF_RANGE,
                    f"Index {position} outside 0..{len(base.children)} "
                    f"for '{new_parent_id}'",
                    new_parent_id,
                )
            constraints = self._layout_call(
                new_parent_id,
                insert_share,
                base.constraints,
                position,
                moved_constraint,
            )
        except _Rejected as rejection:
            return self._reject(rejection)

        children = list(base.children)
        children.insert(position, node_id)
        if old_update is not None and old_parent_id != new_parent_id:
            self._nodes[old_update.id] = old_update
        self._nodes[new_parent_id] = base.model_copy(
            update={"children": children, "constraints": constraints}
        )
        return self._applied(
            node_id, f"Moved '{node_id}' to '{new_parent_id}' at {position}"
        )

    def update_node_props(
        self, node_id: str, props: Mapping[str, Any]
    ) -> MutationResult:
        """Merge properties into a node.

        Widgets merge into ``data`` (camelCase or snake_case keys); layouts
        accept ``direction``. Fields that do not belong to the node reject
        the whole update.

        Args:
            node_id: Node to update.
            props: Fields to merge.

        Returns:
            MutationResult for the node.
        """
        try:
            node = self._require_node(node_id)
            if isinstance(node, LayoutNode):
                updated = self._update_layout(node, props)
            else:
                updated = self._update_widget(node, props)
        except _Rejected as rejection:
            return self._reject(rejection)

        self._nodes[node_id] = updated
        return self._applied(node_id, f"Updated {sorted(props)} on '{node_id}'")

    def update_constraint(
        self,
        parent_id: str,
        index: int,
        constraint: Constraint | Mapping[str, Any],
    ) -> MutationResult:
        """Replace the constraint at one sibling index.

        The value is rounded before storage. When every sibling is a
        Percentage, the others are rescaled so the total stays 100.

        Args:
            parent_id: Layout owning the constraint.
            index: Sibling index.
            constraint: New constraint (model or ``{"type", "value"}`` dict).

        Returns:
            MutationResult for the parent layout.
        """
        try:
            parent = self._require_layout(parent_id)
            self._require_index(parent, index, len(parent.constraints))
            try:
                new_constraint = (
                    constraint
                    if isinstance(constraint, Constraint)
                    else Constraint.model_validate(constraint)
                )
            except ValidationError as e:
                raise _Rejected(
                    DiagnosticCode.INVALID_VALUE,
                    f"Invalid constraint: {e.errors()[0]['msg']}",
                    parent_id,
                ) from e
            edited = list(parent.constraints)
            edited[index] = new_constraint
            constraints = self._layout_call(parent_id, pin_share, edited, index)
        except _Rejected as rejection:
            return self._reject(rejection)

        self._nodes[parent_id] = parent.model_copy(update={"constraints": constraints})
        return self._applied(
            parent_id,
            f"Set constraint {index} of '{parent_id}' to "
            f"{new_constraint.type.value}({new_constraint.value})",
        )

    def resize_constraint(
        self, parent_id: str, index: int, delta: float
    ) -> MutationResult:
        """Transfer ``delta`` percent from sibling ``index + 1`` to ``index``.

        Both constraints must be Percentage. The pair keeps its combined total
        and neither side drops below ``policy.min_share``. A delta that rounds
        to zero is a no-op.

        Args:
            parent_id: Layout owning the pair.
            index: Index of the first constraint of the pair.
            delta: Percent to transfer (negative shrinks the first).

        Returns:
            MutationResult for the parent layout.
        """
        try:
            parent = self._require_layout(parent_id)
            self._require_index(parent, index, len(parent.constraints) - 1)
            if isinstance(delta, bool) or not isinstance(delta, (int, float)):
                raise _Rejected(
                    DiagnosticCode.INVALID_VALUE,
                    f"Delta {delta!r} is not a number",
                    parent_id,
                )
            if not math.isfinite(delta):
                raise _Rejected(
                    DiagnosticCode.INVALID_VALUE,
                    f"Delta {delta} is not finite",
                    parent_id,
                )
            first, second = parent.constraints[index], parent.constraints[index + 1]
            if not (first.is_percentage and second.is_percentage):
                raise _Rejected(
                    DiagnosticCode.NOT_PERCENTAGE,
                    f"Constraints {index} and {index + 1} of '{parent_id}' "
                    "must both be Percentage",
                    parent_id,
                )
            new_first, new_second = self._layout_call(
                parent_id, resize_pair, first, second, delta
            )
        except _Rejected as rejection:
            return self._reject(rejection)

        if (new_first, new_second) == (first, second):
            return MutationResult(applied=False, node_id=parent_id)

        constraints = list(parent.constraints)
        constraints[index], constraints[index + 1] = new_first, new_second
        self._nodes[parent_id] = parent.model_copy(update={"constraints": constraints})
        return self._applied(
            parent_id,
            f"Resized '{parent_id}' [{index}]={new_first.value} "
            f"[{index + 1}]={new_second.value}",
        )

    # =========================================================================
    # Internals
    # =========================================================================

    def _reject(self, rejection: _Rejected) -> MutationResult:
        diagnostic = rejection.diagnostic
        logger.warning(f"Rejected tree mutation: {diagnostic}")
        return MutationResult(
            applied=False, node_id=diagnostic.node_id, diagnostic=diagnostic
        )

    def _applied(self, node_id: str, message: str) -> MutationResult:
        self._dirty = True
        logger.debug(message)
        return MutationResult(applied=True, node_id=node_id)

    def _require_node(self, node_id: str) -> TreeNode:
        node = self._nodes.get(node_id)
        if node is None:
            raise _Rejected(DiagnosticCode.NOT_FOUND, f"No node '{node_id}'", node_id)
        return node

    def _require_layout(self, node_id: str) -> LayoutNode:
        node = self._require_node(node_id)
        if not isinstance(node, LayoutNode):
            raise _Rejected(
                DiagnosticCode.NOT_LAYOUT, f"Node '{node_id}' is not a layout", node_id
            )
        return node

    def _require_index(self, layout: LayoutNode, index: int, size: int) -> None:
        valid = isinstance(index, int) and not isinstance(index, bool)
        if not valid or not 0 <= index < size:
            raise _Rejected(
                DiagnosticCode.INDEX_OUT_OF_RANGE,
                f"Index {index!r} out of range for '{layout.id}'",
                layout.id,
            )

    def _layout_call(self, node_id: str, fn: Callable[..., Any], *args: Any) -> Any:
        try:
            return fn(*args, policy=self._policy)
        except LayoutError as e:
            raise _Rejected(DiagnosticCode.PANE_FLOOR, str(e), node_id) from e

    def _build(self, template: NodeTemplate | Mapping[str, Any]) -> TreeNode:
        try:
            if not isinstance(template, (LayoutTemplate, WidgetTemplate)):
                template = _TEMPLATE_ADAPTER.validate_python(template)
            node_id = self._new_id()
            if node_id in self._nodes:
                raise ValueError(f"Identity generator reused '{node_id}'")
            return template.build(node_id)
        except ValueError as e:
            raise _Rejected(
                DiagnosticCode.INVALID_VALUE, f"Invalid node template: {e}", None
            ) from e

    def _constraint_of(self, node_id: str, parent_id: str | None) -> Constraint | None:
        if parent_id is None:
            return None
        parent = self._nodes[parent_id]
        index = parent.children.index(node_id)
        return parent.constraints[index] if index < len(parent.constraints) else None

    def _detach(self, node_id: str) -> LayoutNode | None:
        """Parent of ``node_id`` with the node removed and shares settled."""
        parent_id = self.get_parent(node_id)
        if parent_id is None:
            return None
        parent = self._nodes[parent_id]
        index = parent.children.index(node_id)
        children = parent.children[:index] + parent.children[index + 1 :]
        constraints = list(parent.constraints)
        if index < len(constraints):
            removed = constraints.pop(index)
            constraints = self._layout_call(
                parent_id, expand_after_removal, constraints, removed
            )
        return parent.model_copy(
            update={"children": children, "constraints": constraints}
        )

    def _update_layout(self, node: LayoutNode, props: Mapping[str, Any]) -> LayoutNode:
        unknown = sorted(set(props) - {"direction"})
        if unknown:
            raise _Rejected(
                DiagnosticCode.UNKNOWN_FIELD,
                f"Layout '{node.id}' has no field(s) {', '.join(unknown)}",
                node.id,
            )
        if "direction" not in props:
            return node
        try:
            direction = Direction(props["direction"])
        except ValueError as e:
            raise _Rejected(
                DiagnosticCode.INVALID_VALUE,
                f"Unknown direction {props['direction']!r}",
                node.id,
            ) from e
        return node.model_copy(update={"direction": direction})

    def _update_widget(self, node: WidgetNode, props: Mapping[str, Any]) -> WidgetNode:
        meta = get_widget_meta(node.widget_type)
        resolved: dict[str, Any] = {}
        for key, value in props.items():
            name = meta.resolve_field(key)
            if name is None:
                raise _Rejected(
                    DiagnosticCode.UNKNOWN_FIELD,
                    f"{node.widget_type.value} widget has no field '{key}'",
                    node.id,
                )
            resolved[name] = value
        try:
            merged = {**node.data.model_dump(), **resolved}
            data = meta.data_model.model_validate(merged)
        except ValidationError as e:
            raise _Rejected(
                DiagnosticCode.INVALID_VALUE,
                f"Invalid widget data: {e.errors()[0]['msg']}",
                node.id,
            ) from e
        return node.model_copy(update={"data": data})


def _describe(node: TreeNode) -> str:
    if isinstance(node, LayoutNode):
        return f"{node.direction.value} layout '{node.id}'"
    return f"{node.widget_type.value} widget '{node.id}'"
