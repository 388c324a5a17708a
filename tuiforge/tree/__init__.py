"""Tree module - the design-tree store and its command queue.

This module provides:
- `TreeStore`: atomic add/delete/move/update/resize operations
- `MutationResult` / `TreeDiagnostic`: operation outcomes
- `CommandQueue` and command dataclasses for single-writer access

Example usage:
    >>> from tuiforge.tree import TreeStore
    >>> from tuiforge.schema import widget_template
    >>> store = TreeStore()
    >>> store.add(store.root_id, widget_template("Paragraph", title="Hello"))
"""

from .commands import (
    AddNode,
    Command,
    CommandQueue,
    DeleteNode,
    MoveNode,
    ResizeConstraint,
    SelectNode,
    UpdateConstraint,
    UpdateNodeProps,
)
from .lib import (
    DiagnosticCode,
    MutationResult,
    TreeDiagnostic,
    TreeNode,
    TreeStore,
)

__all__ = [
    # Store
    "TreeStore",
    "TreeNode",
    "MutationResult",
    "TreeDiagnostic",
    "DiagnosticCode",
    # Commands
    "Command",
    "CommandQueue",
    "AddNode",
    "DeleteNode",
    "MoveNode",
    "UpdateNodeProps",
    "UpdateConstraint",
    "ResizeConstraint",
    "SelectNode",
]
