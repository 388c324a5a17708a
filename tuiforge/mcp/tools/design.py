"""Design editing tools for MCP server.

Every mutation goes through the design's CommandQueue. Rejected requests
are returned with their diagnostic rather than raised, so the client can
explain why nothing changed; unknown designs and malformed arguments raise.
"""

import logging
from typing import Any

from tuiforge.codegen import get_target
from tuiforge.output import format_design_tree
from tuiforge.schema import layout_template, widget_template
from tuiforge.tree import (
    AddNode,
    DeleteNode,
    MoveNode,
    MutationResult,
    ResizeConstraint,
    UpdateConstraint,
    UpdateNodeProps,
)
from tuiforge.validation import validate_tree

from ..workspace import OpenDesign, get_workspace

logger = logging.getLogger(__name__)

LAYOUT_KIND = "Layout"


def _design(design_id: str) -> OpenDesign:
    return get_workspace().get(design_id)


def _respond(design: OpenDesign, result: MutationResult) -> dict[str, Any]:
    """Mutation outcome plus the current text tree."""
    response = result.to_dict()
    response["design_id"] = design.id
    response["tree"] = format_design_tree(design.queue.snapshot().result())
    return response


def new_design(direction: str = "Vertical", title: str | None = None) -> dict[str, Any]:
    """Open a new, empty design.

    Args:
        direction: Split axis of the root layout ("Vertical" or "Horizontal").
        title: Title used when the design is saved.

    Returns:
        Dictionary with design_id, root_id and the text tree.
    """
    design = get_workspace().create(direction=direction, title=title)
    tree = design.queue.snapshot().result()
    return {
        "design_id": design.id,
        "root_id": tree.root_id,
        "tree": format_design_tree(tree),
    }


def add_node(
    design_id: str,
    kind: str,
    parent_id: str | None = None,
    props: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Append a layout or widget to a layout.

    Args:
        design_id: Open design to edit.
        kind: "Layout" or a widget type (Paragraph, List, Table, Block, Input).
        parent_id: Target layout. Defaults to the selected layout or the root.
        props: For layouts, ``direction``; for widgets, data fields that
            override the widget defaults.

    Returns:
        Mutation result with the new node id.

    Raises:
        KeyError: If the design is not open.
        ValueError: If the kind is unknown.
    """
    design = _design(design_id)
    props = dict(props or {})
    if kind == LAYOUT_KIND:
        template = layout_template(props.get("direction", "Vertical"))
    else:
        template = widget_template(kind, **props)

    if parent_id is None:
        parent_id = design.queue.call(lambda store: store.target_parent_id()).result()
    return _respond(design, design.queue.execute(AddNode(parent_id, template)))


def delete_node(design_id: str, node_id: str) -> dict[str, Any]:
    """Remove a node and its subtree."""
    design = _design(design_id)
    return _respond(design, design.queue.execute(DeleteNode(node_id)))


def move_node(
    design_id: str,
    node_id: str,
    new_parent_id: str,
    index: int | None = None,
) -> dict[str, Any]:
    """Move a node under another layout (appends when index is None)."""
    design = _design(design_id)
    command = MoveNode(node_id, new_parent_id, index)
    return _respond(design, design.queue.execute(command))


def update_node_props(
    design_id: str, node_id: str, props: dict[str, Any]
) -> dict[str, Any]:
    """Merge properties into a node (widget data fields or layout direction)."""
    design = _design(design_id)
    return _respond(design, design.queue.execute(UpdateNodeProps(node_id, props)))


def update_constraint(
    design_id: str,
    parent_id: str,
    index: int,
    constraint_type: str,
    value: float,
) -> dict[str, Any]:
    """Replace one sibling constraint (Percentage, Length, Min or Max)."""
    design = _design(design_id)
    constraint = {"type": constraint_type, "value": value}
    command = UpdateConstraint(parent_id, index, constraint)
    return _respond(design, design.queue.execute(command))


def resize_constraint(
    design_id: str, parent_id: str, index: int, delta: float
) -> dict[str, Any]:
    """Move ``delta`` percent from sibling ``index + 1`` to ``index``."""
    design = _design(design_id)
    command = ResizeConstraint(parent_id, index, delta)
    return _respond(design, design.queue.execute(command))


def show_design(design_id: str) -> dict[str, Any]:
    """Current snapshot, text tree and structural check of a design."""
    design = _design(design_id)
    tree = design.queue.snapshot().result()
    errors = validate_tree(tree)
    return {
        **design.to_dict(),
        "tree": format_design_tree(tree),
        "design": tree.to_dict(),
        "valid": not errors,
        "errors": [
            {"node_id": e.node_id, "message": e.message, "type": e.error_type}
            for e in errors
        ],
    }


def generate_code(
    design_id: str,
    target: str | None = None,
    project_name: str | None = None,
) -> dict[str, Any]:
    """Generate source code (and optionally a build manifest) for a design.

    Args:
        design_id: Open design to generate from.
        target: Code target name. Defaults to the configured target.
        project_name: Package name for the manifest. Defaults to the
            design title; no manifest is produced when both are missing.

    Returns:
        Dictionary with code, filename, manifest and warnings.
    """
    design = _design(design_id)
    code_target = get_target(target)
    tree = design.queue.snapshot().result()
    result = code_target.generate_with_warnings(tree)

    name = project_name or design.title
    manifest = code_target.generate_manifest(name) if name else None
    logger.debug(
        f"Generated {len(result.code)} chars for {design_id} "
        f"with {len(result.warnings)} warnings"
    )
    return {
        "design_id": design_id,
        "target": code_target.name,
        "filename": f"main{code_target.file_extension}",
        "code": result.code,
        "manifest_filename": code_target.manifest_filename if manifest else None,
        "manifest": manifest,
        "warnings": [
            {"issue": w.issue.value, "node_id": w.node_id, "message": w.message}
            for w in result.warnings
        ],
    }


def close_design(design_id: str) -> dict[str, Any]:
    """Stop editing a design."""
    return {"design_id": design_id, "closed": get_workspace().close(design_id)}
