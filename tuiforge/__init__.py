"""tui-forge: Design-tree editor and ratatui code generator."""

from tuiforge.codegen import generate, generate_manifest, list_targets
from tuiforge.layout import LayoutError, LayoutPolicy, get_layout_policy
from tuiforge.output import OutputGenerator, format_design_tree
from tuiforge.schema import (
    Constraint,
    DesignTree,
    Direction,
    WidgetType,
    export_json_schema,
    layout_template,
    widget_template,
)
from tuiforge.tree import CommandQueue, MutationResult, TreeStore
from tuiforge.validation import ValidationError, is_valid, validate_tree

__all__ = [
    # Schema
    "DesignTree",
    "Constraint",
    "Direction",
    "WidgetType",
    "layout_template",
    "widget_template",
    "export_json_schema",
    # Layout
    "LayoutPolicy",
    "LayoutError",
    "get_layout_policy",
    # Tree
    "TreeStore",
    "MutationResult",
    "CommandQueue",
    # Validation
    "validate_tree",
    "is_valid",
    "ValidationError",
    # Codegen
    "generate",
    "generate_manifest",
    "list_targets",
    "OutputGenerator",
    "format_design_tree",
]
