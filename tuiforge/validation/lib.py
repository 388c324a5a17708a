"""Design tree validation and static analysis.

This module checks DesignTree snapshots against the structural invariants
the tree store maintains, so that bulk-loaded designs can be rejected
before they reach the store or a code generator.
"""

from dataclasses import dataclass

from tuiforge.layout import FULL_SHARE, all_percentage, percentage_total
from tuiforge.schema import DesignTree, LayoutNode


@dataclass
class ValidationError:
    """Represents a validation error in a design tree.

    Attributes:
        node_id: ID of the node with the error.
        message: Human-readable error description.
        error_type: Category of the error.
    """

    node_id: str
    message: str
    error_type: str


def validate_tree(tree: DesignTree) -> list[ValidationError]:
    """Validate a DesignTree snapshot for structural issues.

    Performs the following checks:
        - Root resolves to a Layout node
        - Node map keys match node IDs
        - Every child reference resolves and has exactly one parent
        - Cycle detection (no node is its own descendant)
        - Every node is reachable from the root
        - Children and constraints have equal length
        - All-Percentage sibling sets total exactly 100

    Args:
        tree: The snapshot to validate.

    Returns:
        list[ValidationError]: List of validation errors (empty if valid).

    Example:
        >>> errors = validate_tree(tree)
        >>> if errors:
        ...     for e in errors:
        ...         print(f"{e.node_id}: {e.message}")
    """
    errors: list[ValidationError] = []

    root = tree.nodes.get(tree.root_id)
    if root is None:
        return [
            ValidationError(
                node_id=tree.root_id,
                message=f"Root '{tree.root_id}' is not in the node map",
                error_type="missing_root",
            )
        ]
    if not isinstance(root, LayoutNode):
        errors.append(
            ValidationError(
                node_id=tree.root_id,
                message=f"Root '{tree.root_id}' is a {root.type} node, not a Layout",
                error_type="root_not_layout",
            )
        )

    for key, node in tree.nodes.items():
        if key != node.id:
            errors.append(
                ValidationError(
                    node_id=key,
                    message=f"Node stored under '{key}' has id '{node.id}'",
                    error_type="id_mismatch",
                )
            )

    errors.extend(_check_references(tree))
    errors.extend(_detect_cycles(tree))
    errors.extend(_find_orphans(tree))
    errors.extend(_check_constraints(tree))
    return errors


def is_valid(tree: DesignTree) -> bool:
    """Check if a design tree is valid.

    Convenience function that returns True if no validation errors exist.

    Args:
        tree: The snapshot to validate.

    Returns:
        bool: True if the tree is valid, False otherwise.

    Example:
        >>> if is_valid(tree):
        ...     code = generate(tree)
    """
    return not validate_tree(tree)


def _layouts(tree: DesignTree) -> list[LayoutNode]:
    return [n for n in tree.nodes.values() if isinstance(n, LayoutNode)]


def _check_references(tree: DesignTree) -> list[ValidationError]:
    """Check that child references resolve and form a tree, not a DAG.

    Args:
        tree: The snapshot to check.

    Returns:
        list[ValidationError]: Reference errors found.
    """
    errors: list[ValidationError] = []
    parents: dict[str, list[str]] = {}

    for layout in _layouts(tree):
        for child_id in layout.children:
            parents.setdefault(child_id, []).append(layout.id)
            if child_id not in tree.nodes:
                errors.append(
                    ValidationError(
                        node_id=layout.id,
                        message=f"Child '{child_id}' of '{layout.id}' does not exist",
                        error_type="missing_child",
                    )
                )

    for child_id, owners in parents.items():
        if child_id == tree.root_id:
            errors.append(
                ValidationError(
                    node_id=child_id,
                    message=f"Root is listed as a child of {', '.join(owners)}",
                    error_type="root_has_parent",
                )
            )
        elif len(owners) > 1:
            errors.append(
                ValidationError(
                    node_id=child_id,
                    message=f"Node '{child_id}' is referenced {len(owners)} times",
                    error_type="multiple_parents",
                )
            )

    return errors


def _detect_cycles(tree: DesignTree) -> list[ValidationError]:
    """Detect nodes that are their own descendant.

    Args:
        tree: The snapshot to check.

    Returns:
        list[ValidationError]: Cycle errors found.
    """
    errors: list[ValidationError] = []
    done: set[str] = set()

    def _check(node_id: str, path: set[str]) -> None:
        if node_id in path:
            errors.append(
                ValidationError(
                    node_id=node_id,
                    message=f"Cycle detected: node '{node_id}' is its own ancestor",
                    error_type="cycle",
                )
            )
            return
        node = tree.nodes.get(node_id)
        if node_id in done or not isinstance(node, LayoutNode):
            return
        path.add(node_id)
        for child_id in node.children:
            _check(child_id, path)
        path.remove(node_id)
        done.add(node_id)

    for node_id in tree.nodes:
        _check(node_id, set())
    return errors


def _find_orphans(tree: DesignTree) -> list[ValidationError]:
    """Find nodes that cannot be reached from the root."""
    reachable: set[str] = set()
    stack = [tree.root_id]
    while stack:
        node_id = stack.pop()
        if node_id in reachable:
            continue
        reachable.add(node_id)
        node = tree.nodes.get(node_id)
        if isinstance(node, LayoutNode):
            stack.extend(node.children)

    return [
        ValidationError(
            node_id=node_id,
            message=f"Node '{node_id}' is not reachable from the root",
            error_type="orphan",
        )
        for node_id in tree.nodes
        if node_id not in reachable
    ]


def _check_constraints(tree: DesignTree) -> list[ValidationError]:
    """Check constraint list length and Percentage totals per layout."""
    errors: list[ValidationError] = []
    for layout in _layouts(tree):
        if len(layout.children) != len(layout.constraints):
            errors.append(
                ValidationError(
                    node_id=layout.id,
                    message=(
                        f"{len(layout.children)} children but "
                        f"{len(layout.constraints)} constraints"
                    ),
                    error_type="constraint_mismatch",
                )
            )
        elif all_percentage(layout.constraints):
            total = percentage_total(layout.constraints)
            if total != FULL_SHARE:
                errors.append(
                    ValidationError(
                        node_id=layout.id,
                        message=f"Percentage constraints total {total}, expected 100",
                        error_type="percentage_sum",
                    )
                )
    return errors
