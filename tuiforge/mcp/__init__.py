"""MCP (Model Context Protocol) server for tui-forge.

This module provides the MCP server implementation that exposes design
editing and ratatui code generation to LLM clients like Claude Desktop.

Example:
    # Start server in STDIO mode (for Claude Desktop)
    >>> from tuiforge.mcp import run_server
    >>> run_server()

    # Start server in HTTP mode
    >>> from tuiforge.mcp import run_server, TransportType
    >>> run_server(transport=TransportType.HTTP, port=18080)

Available Tools:
    - new_design / open_project: Start editing a design
    - add_node, delete_node, move_node: Change the tree structure
    - update_node_props, update_constraint, resize_constraint: Edit nodes
    - show_design: Text tree and validation status
    - generate_code: ratatui main.rs and Cargo.toml
    - save_project, list_projects, delete_project: Persistence
    - status: Server status
"""

from .lib import (
    ServerConfig,
    TransportType,
    get_server_capabilities,
    get_server_version,
)
from .server import create_server, mcp, run_server
from .workspace import DesignWorkspace, OpenDesign, close_workspace, get_workspace

__all__ = [
    # Server instance
    "mcp",
    "create_server",
    "run_server",
    # Configuration
    "ServerConfig",
    "TransportType",
    # Workspace
    "DesignWorkspace",
    "OpenDesign",
    "get_workspace",
    "close_workspace",
    # Utilities
    "get_server_version",
    "get_server_capabilities",
]
