"""MCP tools for tui-forge.

Plain functions wrapped by the server; they can be called directly.

Tools:
    - design: open, edit, inspect and generate code for designs
    - projects: save, open, list and delete saved projects
"""

from .design import (
    add_node,
    close_design,
    delete_node,
    generate_code,
    move_node,
    new_design,
    resize_constraint,
    show_design,
    update_constraint,
    update_node_props,
)
from .projects import delete_project, list_projects, open_project, save_project

__all__ = [
    "new_design",
    "add_node",
    "delete_node",
    "move_node",
    "update_node_props",
    "update_constraint",
    "resize_constraint",
    "show_design",
    "generate_code",
    "close_design",
    "save_project",
    "open_project",
    "list_projects",
    "delete_project",
]
