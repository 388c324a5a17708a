"""FastMCP server instance for tui-forge.

This module provides the MCP server that exposes design editing tools to
LLM clients. The workflow:

    1. new_design / open_project: get a design_id
    2. add_node, move_node, resize_constraint, ...: edit the tree
    3. show_design: review the text tree
    4. generate_code: ratatui main.rs + Cargo.toml
    5. save_project: persist the design

Usage:
    # STDIO mode (for Claude Desktop)
    python -m tuiforge.mcp.server

    # HTTP mode
    python -m tuiforge.mcp.server --transport http --port 18080

    # Via CLI
    python . mcp run
    python . mcp serve --port 18080
"""

import argparse
import json
import logging
import sys
from functools import lru_cache
from typing import Any

from fastmcp import FastMCP

from tuiforge.config import EnvVar, get_environment
from tuiforge.core.log import setup_logging

from .lib import (
    SERVER_NAME,
    ServerConfig,
    TransportType,
    get_server_capabilities,
    get_server_version,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Server Instructions (LLM Guidance)
# =============================================================================

SERVER_INSTRUCTIONS = """\
## tui-forge MCP Server

Builds terminal UI layouts as a tree of split layouts and widgets, then
generates a ratatui program from it.

### Quick Start
1. `new_design()` → design_id and root_id
2. `add_node(design_id, "Paragraph", props={"title": "Hello"})`
3. `show_design(design_id)` → review the tree
4. `generate_code(design_id, project_name="my_app")` → main.rs + Cargo.toml

### Sizing
Children of a layout are sized by parallel constraints. Percentage shares
of siblings always add up to 100; adding a child reserves 20%, deleting one
hands its share back, and no pane shrinks below 5%.
- `resize_constraint(design_id, parent_id, index, delta)` moves share
  between siblings `index` and `index + 1`
- `update_constraint(...)` sets Percentage, Length, Min or Max directly

### Rejections
Mutations that would break the tree are not applied. The response has
`applied: false` and a `diagnostic` with a code such as `root_protected`,
`cycle`, `pane_floor` or `not_percentage`.

### Projects
`save_project`, `open_project`, `list_projects`, `delete_project`.
"""

# =============================================================================
# Server Instance
# =============================================================================

mcp = FastMCP(
    name=SERVER_NAME,
    instructions=SERVER_INSTRUCTIONS,
)


# =============================================================================
# Design Tools
# =============================================================================


@mcp.tool
def new_design(direction: str = "Vertical", title: str | None = None) -> dict[str, Any]:
    """Open a new, empty design.

    Args:
        direction: Root split axis, "Vertical" or "Horizontal".
        title: Title used when saving and for the Cargo package name.

    Returns:
        Dictionary with design_id, root_id and the text tree.
    """
    from .tools.design import new_design as _new_design

    return _new_design(direction=direction, title=title)


@mcp.tool
def add_node(
    design_id: str,
    kind: str,
    parent_id: str | None = None,
    props: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Append a layout or widget to a layout.

    Args:
        design_id: Design to edit.
        kind: "Layout", "Paragraph", "List", "Table", "Block" or "Input".
        parent_id: Target layout id. Default: selected layout or root.
        props: Layout: {"direction": "Horizontal"}. Widgets: data fields
            such as title, content, items, headers, rows, label,
            placeholder, borderStyle, borderColor, textColor,
            backgroundColor.

    Returns:
        Mutation result with node_id of the new node and the text tree.
    """
    from .tools.design import add_node as _add_node

    return _add_node(design_id, kind, parent_id=parent_id, props=props)


@mcp.tool
def delete_node(design_id: str, node_id: str) -> dict[str, Any]:
    """Delete a node and everything under it. The root cannot be deleted."""
    from .tools.design import delete_node as _delete_node

    return _delete_node(design_id, node_id)


@mcp.tool
def move_node(
    design_id: str,
    node_id: str,
    new_parent_id: str,
    index: int | None = None,
) -> dict[str, Any]:
    """Move a node into another layout (or reorder within its layout).

    Args:
        design_id: Design to edit.
        node_id: Node to move.
        new_parent_id: Destination layout.
        index: Position among the destination's children. Default: append.
    """
    from .tools.design import move_node as _move_node

    return _move_node(design_id, node_id, new_parent_id, index=index)


@mcp.tool
def update_node_props(
    design_id: str, node_id: str, props: dict[str, Any]
) -> dict[str, Any]:
    """Change widget data fields, or a layout's direction."""
    from .tools.design import update_node_props as _update_node_props

    return _update_node_props(design_id, node_id, props)


@mcp.tool
def update_constraint(
    design_id: str,
    parent_id: str,
    index: int,
    constraint_type: str,
    value: float,
) -> dict[str, Any]:
    """Set the sizing rule of one child.

    Args:
        design_id: Design to edit.
        parent_id: Layout owning the child.
        index: Child position.
        constraint_type: "Percentage", "Length", "Min" or "Max".
        value: Percent (0-100) or cell count; rounded to an integer.
    """
    from .tools.design import update_constraint as _update_constraint

    return _update_constraint(design_id, parent_id, index, constraint_type, value)


@mcp.tool
def resize_constraint(
    design_id: str, parent_id: str, index: int, delta: float
) -> dict[str, Any]:
    """Grow child ``index`` by ``delta`` percent at the expense of ``index + 1``.

    Both children must have Percentage constraints. Negative deltas shrink
    child ``index``.
    """
    from .tools.design import resize_constraint as _resize_constraint

    return _resize_constraint(design_id, parent_id, index, delta)


@mcp.tool
def show_design(design_id: str) -> dict[str, Any]:
    """Show the text tree, JSON snapshot and validation status of a design."""
    from .tools.design import show_design as _show_design

    return _show_design(design_id)


@mcp.tool
def generate_code(
    design_id: str,
    target: str | None = None,
    project_name: str | None = None,
) -> dict[str, Any]:
    """Generate a ratatui program for a design.

    Args:
        design_id: Design to generate from.
        target: Code target. Default: "ratatui".
        project_name: Cargo package name (sanitized). Default: design title.

    Returns:
        Dictionary with code, filename, manifest and warnings.
    """
    from .tools.design import generate_code as _generate_code

    return _generate_code(design_id, target=target, project_name=project_name)


# =============================================================================
# Project Tools
# =============================================================================


@mcp.tool
def save_project(
    design_id: str,
    title: str | None = None,
    user_id: str = "local",
) -> dict[str, Any]:
    """Save a design. Later saves of the same design update the project."""
    from .tools.projects import save_project as _save_project

    return _save_project(design_id, title=title, user_id=user_id)


@mcp.tool
def open_project(project_id: str) -> dict[str, Any]:
    """Open a saved project for editing; returns a new design_id."""
    from .tools.projects import open_project as _open_project

    return _open_project(project_id)


@mcp.tool
def list_projects(
    user_id: str = "local",
    limit: int = 20,
    start_after: str | None = None,
) -> dict[str, Any]:
    """List saved projects, newest first.

    Pass ``next_start_after`` from a response as ``start_after`` to page.
    """
    from .tools.projects import list_projects as _list_projects

    return _list_projects(user_id=user_id, limit=limit, start_after=start_after)


@mcp.tool
def delete_project(project_id: str) -> dict[str, Any]:
    """Delete a saved project."""
    from .tools.projects import delete_project as _delete_project

    return _delete_project(project_id)


# =============================================================================
# Status
# =============================================================================


@mcp.tool
def status() -> dict[str, Any]:
    """Check server status.

    Returns:
        Dictionary with version, capabilities, open designs, available
        code targets and the resolved server settings (share policy,
        database, default target).
    """
    from tuiforge.codegen import list_targets

    from .workspace import get_workspace

    return {
        "status": "healthy",
        "version": get_server_version(),
        "capabilities": get_server_capabilities(),
        "open_designs": [d.to_dict() for d in get_workspace().list_designs()],
        "targets": list_targets(),
        **ServerConfig.from_env().describe(),
    }


# =============================================================================
# Resources
# =============================================================================


@lru_cache(maxsize=1)
def _cached_design_schema() -> str:
    from tuiforge.schema import export_json_schema

    return json.dumps(export_json_schema(), indent=2)


@mcp.resource("schema://design")
def get_design_schema() -> str:
    """JSON schema of the design snapshot format."""
    return _cached_design_schema()


# =============================================================================
# Server Factory & Runner
# =============================================================================


def create_server() -> FastMCP:
    """Create and configure the MCP server instance.

    Returns:
        Configured FastMCP server instance.
    """
    return mcp


def run_server(
    transport: TransportType = TransportType.STDIO,
    host: str | None = None,
    port: int | None = None,
) -> None:
    """Run the MCP server with specified transport.

    Open designs are closed when the server stops.

    Args:
        transport: Transport type (stdio, http, sse).
        host: Bind address for HTTP/SSE (default: MCP_HOST).
        port: Port for HTTP/SSE (default: MCP_PORT).
    """
    from .workspace import close_workspace

    config = ServerConfig.from_env(transport=transport, host=host, port=port)
    logger.info(f"Starting {SERVER_NAME} server v{get_server_version()}")
    logger.info(f"Project database: {config.db_path}")

    try:
        if config.transport == TransportType.STDIO:
            logger.info("Running in STDIO mode")
            mcp.run()
        elif config.transport == TransportType.HTTP:
            logger.info(f"Running in HTTP mode at {config.url}")
            mcp.run(
                transport="http",
                host=config.host,
                port=config.port,
                path=config.path,
            )
        elif config.transport == TransportType.SSE:
            logger.info(f"Running in SSE mode at {config.url}")
            mcp.run(transport="sse", host=config.host, port=config.port)
        else:
            raise ValueError(f"Unknown transport: {config.transport}")
    finally:
        close_workspace()


# =============================================================================
# CLI Entry Point
# =============================================================================


def main(argv: list[str] | None = None) -> int:
    """CLI entry point for MCP server.

    Args:
        argv: Command line arguments (uses sys.argv if None).

    Returns:
        Exit code (0 for success).
    """
    parser = argparse.ArgumentParser(
        prog="tui-forge",
        description="MCP server for designing terminal UI layouts",
    )
    parser.add_argument(
        "--transport",
        "-t",
        type=str,
        choices=["stdio", "http", "sse"],
        default="stdio",
        help="Transport type (default: stdio)",
    )
    parser.add_argument(
        "--host",
        type=str,
        default=None,
        help="Bind address for HTTP/SSE (default: MCP_HOST or 0.0.0.0)",
    )
    parser.add_argument(
        "--port",
        "-p",
        type=int,
        default=None,
        help="Port for HTTP/SSE (default: MCP_PORT or 18080)",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging",
    )

    args = parser.parse_args(argv)

    setup_logging(
        "DEBUG" if args.verbose else get_environment(EnvVar.LOG_LEVEL),
        stream=sys.stderr,
    )

    try:
        run_server(
            transport=TransportType(args.transport),
            host=args.host,
            port=args.port,
        )
        return 0
    except KeyboardInterrupt:
        logger.info("Server stopped by user")
        return 0
    except Exception as e:
        logger.error(f"Server error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
