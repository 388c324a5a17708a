"""Output formatting for design visualization.

Generates human-readable text representations of design trees for
user feedback and review, alongside the generated source code.
"""

from dataclasses import dataclass, field

from tuiforge.codegen import GenerationWarning, get_target
from tuiforge.schema import (
    Constraint,
    ConstraintType,
    DesignTree,
    LayoutNode,
)


@dataclass
class DesignOutput:
    """Complete output for user feedback.

    Attributes:
        text_tree: Human-readable tree representation.
        code: Generated source code.
        tree: Snapshot the output was produced from.
        target: Code target used.
        manifest: Build manifest text (optional).
        warnings: Problems worked around during generation.
    """

    text_tree: str
    code: str
    tree: DesignTree
    target: str
    manifest: str | None = None
    warnings: list[GenerationWarning] = field(default_factory=list)


def format_constraint(constraint: Constraint) -> str:
    """Short label for a constraint, e.g. ``80%`` or ``len 3``."""
    match constraint.type:
        case ConstraintType.PERCENTAGE:
            return f"{constraint.value}%"
        case ConstraintType.LENGTH:
            return f"len {constraint.value}"
        case ConstraintType.MIN:
            return f"min {constraint.value}"
        case ConstraintType.MAX:
            return f"max {constraint.value}"


def format_design_tree(tree: DesignTree) -> str:
    """Format a DesignTree as a human-readable tree.

    Example output:
        root [Layout, horizontal]
        ├── Menu [List, 30%]
        └── main [Layout, vertical, 70%]
            ├── Dashboard [Paragraph, len 3]
            └── body [Table, min 5]

    Widgets are labelled by their title (or label for inputs) and fall back
    to the node id. Dangling child ids are listed as ``<missing>``.

    Args:
        tree: Snapshot to format.

    Returns:
        Formatted tree string.
    """
    lines: list[str] = []
    _format_node(tree, tree.root_id, None, lines, "", is_last=True, is_root=True)
    return "\n".join(lines)


def _format_node(
    tree: DesignTree,
    node_id: str,
    constraint: Constraint | None,
    lines: list[str],
    prefix: str,
    is_last: bool,
    is_root: bool = False,
    seen: frozenset[str] = frozenset(),
) -> None:
    """Recursively format a node and its children."""
    if is_root:
        connector = ""
        child_prefix = ""
    else:
        connector = "└── " if is_last else "├── "
        child_prefix = prefix + ("    " if is_last else "│   ")

    node = tree.get(node_id)
    if node is None:
        lines.append(f"{prefix}{connector}{node_id} <missing>")
        return
    if node_id in seen:
        lines.append(f"{prefix}{connector}{node_id} <cycle>")
        return

    if isinstance(node, LayoutNode):
        label = node.id
        attrs = ["Layout", node.direction.value.lower()]
    else:
        data = node.data
        label = getattr(data, "title", None) or getattr(data, "label", None)
        label = label or node.id
        attrs = [node.widget_type.value]
    if constraint is not None:
        attrs.append(format_constraint(constraint))

    lines.append(f"{prefix}{connector}{label} [{', '.join(attrs)}]")

    if isinstance(node, LayoutNode):
        for i, child_id in enumerate(node.children):
            child_constraint = None
            if i < len(node.constraints):
                child_constraint = node.constraints[i]
            _format_node(
                tree,
                child_id,
                child_constraint,
                lines,
                child_prefix,
                is_last=i == len(node.children) - 1,
                seen=seen | {node_id},
            )


class OutputGenerator:
    """Generates complete output for user feedback.

    Produces both a human-readable tree and generated source code
    from a design snapshot.
    """

    def __init__(self, default_target: str | None = None):
        """Initialize generator.

        Args:
            default_target: Default code target. If None, uses the
                TUIFORGE_CODEGEN_TARGET setting.
        """
        self._default_target = default_target

    def generate(
        self,
        tree: DesignTree,
        target: str | None = None,
        project_name: str | None = None,
    ) -> DesignOutput:
        """Generate output from a DesignTree.

        Args:
            tree: Design to visualize.
            target: Code target override.
            project_name: When given, a build manifest is produced too.

        Returns:
            DesignOutput with text tree and source code.
        """
        code_target = get_target(target or self._default_target)
        result = code_target.generate_with_warnings(tree)
        manifest = None
        if project_name is not None:
            manifest = code_target.generate_manifest(project_name)

        return DesignOutput(
            text_tree=format_design_tree(tree),
            code=result.code,
            tree=tree,
            target=code_target.name,
            manifest=manifest,
            warnings=result.warnings,
        )


__all__ = [
    "format_constraint",
    "format_design_tree",
    "DesignOutput",
    "OutputGenerator",
]
