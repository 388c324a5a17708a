"""Schema module - authoritative source for design-tree definitions.

This module provides:
- Layout, widget, border and constraint enums
- Node models (layout/widget tagged union) and node templates
- Widget registry with per-type data models and defaults
- The `DesignTree` snapshot model and JSON Schema export

Example usage:
    >>> from tuiforge.schema import DesignTree, widget_template
    >>> tree = DesignTree.empty()
    >>> template = widget_template("Paragraph", title="Hello")
"""

from .lib import (
    WIDGET_REGISTRY,
    BlockData,
    BorderStyle,
    Constraint,
    ConstraintType,
    DesignTree,
    Direction,
    InputData,
    LayoutNode,
    LayoutTemplate,
    ListData,
    Node,
    NodeKind,
    NodeTemplate,
    ParagraphData,
    TableData,
    WidgetData,
    WidgetMeta,
    WidgetNode,
    WidgetStyle,
    WidgetTemplate,
    WidgetType,
    build_widget_data,
    export_json_schema,
    get_widget_meta,
    layout_template,
    new_node_id,
    round_share,
    widget_template,
)

__all__ = [
    # Enums
    "NodeKind",
    "Direction",
    "WidgetType",
    "BorderStyle",
    "ConstraintType",
    # Helpers
    "round_share",
    "new_node_id",
    # Constraints
    "Constraint",
    # Widget data
    "WidgetStyle",
    "ParagraphData",
    "ListData",
    "TableData",
    "BlockData",
    "InputData",
    "WidgetData",
    "WidgetMeta",
    "WIDGET_REGISTRY",
    "get_widget_meta",
    "build_widget_data",
    # Nodes
    "LayoutNode",
    "WidgetNode",
    "Node",
    # Templates
    "LayoutTemplate",
    "WidgetTemplate",
    "NodeTemplate",
    "layout_template",
    "widget_template",
    # Snapshot
    "DesignTree",
    "export_json_schema",
]
