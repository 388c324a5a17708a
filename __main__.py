"""CLI entry point for tui-forge.

This module acts as the central entry point for the project's CLI tools.
It delegates commands to the appropriate submodules or runs specific tasks.

Design files are plain snapshot JSON (``{"rootId": ..., "nodes": {...}}``);
every ``design`` command loads the file, applies one operation through a
TreeStore and writes the file back only if the operation was applied.
"""

import argparse
import json
import subprocess
import sys
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from tuiforge.config import EnvVar, get_environment
from tuiforge.core import get_logger, setup_logging

# Load environment variables from .env file
load_dotenv()

logger = get_logger("cli")


# =============================================================================
# Helpers
# =============================================================================


def _load_store(path: Path):
    """Load a design file into a TreeStore."""
    from tuiforge.schema import DesignTree
    from tuiforge.tree import TreeStore

    tree = DesignTree.model_validate_json(path.read_text(encoding="utf-8"))
    return TreeStore(tree)


def _save_store(store, path: Path) -> None:
    path.write_text(store.snapshot().to_json() + "\n", encoding="utf-8")


def _parse_value(raw: str) -> Any:
    """JSON value if the text parses as one, else the text itself."""
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw


def _parse_assignments(items: list[str]) -> dict[str, Any]:
    """Turn ``key=value`` arguments into a dict.

    Raises:
        ValueError: If an item has no ``=``.
    """
    props: dict[str, Any] = {}
    for item in items:
        key, sep, raw = item.partition("=")
        if not sep or not key:
            raise ValueError(f"Expected key=value, got '{item}'")
        props[key] = _parse_value(raw)
    return props


def _finish(store, path: Path, result, success: str) -> int:
    """Persist an applied mutation or report why it was rejected."""
    if result.diagnostic is not None:
        logger.error(str(result.diagnostic))
        return 1
    if result.applied:
        _save_store(store, path)
        logger.info(success)
    else:
        logger.info("Nothing to change")
    return 0


# =============================================================================
# Design Commands
# =============================================================================


def cmd_design_init(args: argparse.Namespace) -> int:
    """Create a new design file with an empty root layout."""
    from tuiforge.schema import DesignTree

    if args.file.exists() and not args.force:
        logger.error(f"{args.file} already exists (use --force to overwrite)")
        return 1
    tree = DesignTree.empty(args.direction)
    args.file.write_text(tree.to_json() + "\n", encoding="utf-8")
    logger.info(f"Created {args.file} with root {tree.root_id}")
    print(tree.root_id)
    return 0


def cmd_design_add(args: argparse.Namespace) -> int:
    """Append a layout or widget to a layout."""
    from tuiforge.schema import layout_template, widget_template

    store = _load_store(args.file)
    if args.kind == "Layout":
        template = layout_template(args.direction)
    else:
        props = _parse_assignments(args.set)
        if args.title is not None:
            props["title"] = args.title
        template = widget_template(args.kind, **props)

    result = store.add(args.parent, template)
    status = _finish(store, args.file, result, f"Added {result.node_id}")
    if status == 0:
        print(result.node_id)
    return status


def cmd_design_delete(args: argparse.Namespace) -> int:
    """Delete a node and its subtree."""
    store = _load_store(args.file)
    result = store.delete(args.node)
    return _finish(store, args.file, result, f"Deleted {args.node}")


def cmd_design_move(args: argparse.Namespace) -> int:
    """Move a node into a layout."""
    store = _load_store(args.file)
    result = store.move(args.node, args.parent, args.index)
    return _finish(store, args.file, result, f"Moved {args.node} to {args.parent}")


def cmd_design_resize(args: argparse.Namespace) -> int:
    """Shift percentage between two neighbouring siblings."""
    store = _load_store(args.file)
    result = store.resize_constraint(args.parent, args.index, args.delta)
    return _finish(store, args.file, result, f"Resized {args.parent}[{args.index}]")


def cmd_design_set(args: argparse.Namespace) -> int:
    """Update node properties from key=value pairs."""
    store = _load_store(args.file)
    result = store.update_node_props(args.node, _parse_assignments(args.props))
    return _finish(store, args.file, result, f"Updated {args.node}")


def cmd_design_constraint(args: argparse.Namespace) -> int:
    """Replace one sibling constraint."""
    store = _load_store(args.file)
    constraint = {"type": args.type, "value": args.value}
    result = store.update_constraint(args.parent, args.index, constraint)
    return _finish(store, args.file, result, f"Set {args.parent}[{args.index}]")


def cmd_design_show(args: argparse.Namespace) -> int:
    """Print a design as a text tree (or JSON)."""
    from tuiforge.output import format_design_tree
    from tuiforge.validation import validate_tree

    store = _load_store(args.file)
    tree = store.snapshot()
    if args.json:
        print(tree.to_json())
    else:
        print(format_design_tree(tree))
    for error in validate_tree(tree):
        logger.warning(f"[{error.error_type}] {error.message}")
    return 0


def cmd_design_generate(args: argparse.Namespace) -> int:
    """Generate source code (and optionally Cargo.toml) for a design."""
    from tuiforge.output import OutputGenerator

    store = _load_store(args.file)
    output = OutputGenerator(default_target=args.target).generate(
        store.snapshot(), project_name=args.cargo
    )
    for warning in output.warnings:
        logger.warning(f"[{warning.issue.value}] {warning.message}")

    if args.output:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        args.output.write_text(output.code, encoding="utf-8")
        logger.info(f"Code saved to {args.output}")
        if output.manifest is not None:
            from tuiforge.codegen import get_target

            manifest_name = get_target(output.target).manifest_filename
            manifest_path = args.output.parent / manifest_name
            manifest_path.write_text(output.manifest, encoding="utf-8")
            logger.info(f"Manifest saved to {manifest_path}")
    else:
        print(output.code, end="")
        if output.manifest is not None:
            print(output.manifest, end="")
    return 0


def handle_design_command(argv: list[str]) -> int:
    """Handle design file editing commands."""
    from tuiforge.schema import ConstraintType, Direction, WidgetType

    kinds = ["Layout", *[w.value for w in WidgetType]]
    directions = [d.value for d in Direction]

    parser = argparse.ArgumentParser(
        prog="python . design",
        description="Edit design files and generate code",
    )
    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    init_parser = subparsers.add_parser("init", help="Create a new design file")
    init_parser.add_argument("file", type=Path, help="Design file to create")
    init_parser.add_argument(
        "--direction",
        "-d",
        choices=directions,
        default="Vertical",
        help="Root split axis (default: Vertical)",
    )
    init_parser.add_argument(
        "--force", action="store_true", help="Overwrite an existing file"
    )
    init_parser.set_defaults(func=cmd_design_init)

    add_parser = subparsers.add_parser("add", help="Add a layout or widget")
    add_parser.add_argument("file", type=Path, help="Design file")
    add_parser.add_argument("parent", help="Parent layout id")
    add_parser.add_argument("kind", choices=kinds, help="Node kind")
    add_parser.add_argument("--title", "-t", default=None, help="Widget title")
    add_parser.add_argument(
        "--direction",
        "-d",
        choices=directions,
        default="Vertical",
        help="Split axis for a new layout (default: Vertical)",
    )
    add_parser.add_argument(
        "--set",
        "-s",
        nargs="*",
        default=[],
        metavar="KEY=VALUE",
        help="Widget data fields (values may be JSON)",
    )
    add_parser.set_defaults(func=cmd_design_add)

    delete_parser = subparsers.add_parser("delete", help="Delete a node")
    delete_parser.add_argument("file", type=Path, help="Design file")
    delete_parser.add_argument("node", help="Node id")
    delete_parser.set_defaults(func=cmd_design_delete)

    move_parser = subparsers.add_parser("move", help="Move a node")
    move_parser.add_argument("file", type=Path, help="Design file")
    move_parser.add_argument("node", help="Node id")
    move_parser.add_argument("parent", help="Destination layout id")
    move_parser.add_argument(
        "index", type=int, nargs="?", default=None, help="Position (default: end)"
    )
    move_parser.set_defaults(func=cmd_design_move)

    resize_parser = subparsers.add_parser(
        "resize", help="Shift percentage between siblings INDEX and INDEX+1"
    )
    resize_parser.add_argument("file", type=Path, help="Design file")
    resize_parser.add_argument("parent", help="Layout id")
    resize_parser.add_argument("index", type=int, help="First sibling index")
    resize_parser.add_argument("delta", type=float, help="Percent to move")
    resize_parser.set_defaults(func=cmd_design_resize)

    set_parser = subparsers.add_parser("set", help="Update node properties")
    set_parser.add_argument("file", type=Path, help="Design file")
    set_parser.add_argument("node", help="Node id")
    set_parser.add_argument(
        "props", nargs="+", metavar="KEY=VALUE", help="Properties to set"
    )
    set_parser.set_defaults(func=cmd_design_set)

    constraint_parser = subparsers.add_parser(
        "constraint", help="Replace a sibling constraint"
    )
    constraint_parser.add_argument("file", type=Path, help="Design file")
    constraint_parser.add_argument("parent", help="Layout id")
    constraint_parser.add_argument("index", type=int, help="Sibling index")
    constraint_parser.add_argument(
        "type", choices=[c.value for c in ConstraintType], help="Constraint type"
    )
    constraint_parser.add_argument("value", type=float, help="Constraint value")
    constraint_parser.set_defaults(func=cmd_design_constraint)

    show_parser = subparsers.add_parser("show", help="Print the design tree")
    show_parser.add_argument("file", type=Path, help="Design file")
    show_parser.add_argument("--json", action="store_true", help="Print JSON")
    show_parser.set_defaults(func=cmd_design_show)

    generate_parser = subparsers.add_parser("generate", help="Generate code")
    generate_parser.add_argument("file", type=Path, help="Design file")
    generate_parser.add_argument(
        "--output",
        "-o",
        type=Path,
        default=None,
        help="Output file path (prints to stdout if not specified)",
    )
    generate_parser.add_argument(
        "--cargo",
        metavar="NAME",
        default=None,
        help="Also write Cargo.toml for package NAME",
    )
    generate_parser.add_argument(
        "--target",
        default=None,
        help="Code target (default: TUIFORGE_CODEGEN_TARGET or ratatui)",
    )
    generate_parser.set_defaults(func=cmd_design_generate)

    if not argv:
        parser.print_help()
        return 1

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    try:
        return args.func(args)
    except FileNotFoundError as e:
        logger.error(f"Design file not found: {e.filename}")
        return 1
    except ValueError as e:
        logger.error(str(e))
        return 1


# =============================================================================
# Project Commands
# =============================================================================


def _project_manager(args: argparse.Namespace):
    from tuiforge.projects import ProjectManager

    return ProjectManager(db_path=args.db)


def cmd_project_list(args: argparse.Namespace) -> int:
    """List saved projects."""
    from datetime import datetime

    manager = _project_manager(args)
    try:
        start_after = (
            datetime.fromisoformat(args.start_after) if args.start_after else None
        )
        projects = manager.list_projects(
            args.user, limit=args.limit, start_after=start_after
        )
    finally:
        manager.close()

    if not projects:
        print("No projects")
        return 0
    for project in projects:
        visibility = "public" if project.is_public else "private"
        print(
            f"{project.id}  {project.updated_at.isoformat()}  "
            f"{visibility:<7}  {project.title}"
        )
    return 0


def cmd_project_save(args: argparse.Namespace) -> int:
    """Save a design file as a project."""
    store = _load_store(args.file)
    manager = _project_manager(args)
    try:
        project = manager.save_tree(
            args.user, args.title, store.snapshot(), project_id=args.project
        )
    finally:
        manager.close()
    logger.info(f"Saved '{project.title}'")
    print(project.id)
    return 0


def cmd_project_open(args: argparse.Namespace) -> int:
    """Write a saved project to a design file."""
    manager = _project_manager(args)
    try:
        tree = manager.open_tree(args.project)
    finally:
        manager.close()
    args.file.write_text(tree.to_json() + "\n", encoding="utf-8")
    logger.info(f"Wrote project {args.project} to {args.file}")
    return 0


def cmd_project_delete(args: argparse.Namespace) -> int:
    """Delete a saved project."""
    manager = _project_manager(args)
    try:
        deleted = manager.delete_project(args.project)
    finally:
        manager.close()
    if not deleted:
        logger.error(f"Project not found: {args.project}")
        return 1
    logger.info(f"Deleted project {args.project}")
    return 0


def handle_project_command(argv: list[str]) -> int:
    """Handle saved project commands."""
    parser = argparse.ArgumentParser(
        prog="python . project",
        description="Manage saved design projects",
    )
    parser.add_argument(
        "--db",
        type=Path,
        default=None,
        help="Project database (default: TUIFORGE_DB_PATH)",
    )
    parser.add_argument(
        "--user", "-u", default="local", help="Project owner (default: local)"
    )
    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    list_parser = subparsers.add_parser("list", help="List projects")
    list_parser.add_argument(
        "--limit", "-n", type=int, default=20, help="Page size (default: 20)"
    )
    list_parser.add_argument(
        "--start-after",
        default=None,
        help="updated_at of the last project of the previous page",
    )
    list_parser.set_defaults(func=cmd_project_list)

    save_parser = subparsers.add_parser("save", help="Save a design file")
    save_parser.add_argument("file", type=Path, help="Design file")
    save_parser.add_argument("title", help="Project title (1-100 characters)")
    save_parser.add_argument(
        "--project", "-p", default=None, help="Existing project to overwrite"
    )
    save_parser.set_defaults(func=cmd_project_save)

    open_parser = subparsers.add_parser("open", help="Write a project to a file")
    open_parser.add_argument("project", help="Project id")
    open_parser.add_argument("file", type=Path, help="Design file to write")
    open_parser.set_defaults(func=cmd_project_open)

    delete_parser = subparsers.add_parser("delete", help="Delete a project")
    delete_parser.add_argument("project", help="Project id")
    delete_parser.set_defaults(func=cmd_project_delete)

    if not argv:
        parser.print_help()
        return 1

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    try:
        return args.func(args)
    except FileNotFoundError as e:
        logger.error(f"Design file not found: {e.filename}")
        return 1
    except (KeyError, ValueError) as e:
        logger.error(str(e))
        return 1


# =============================================================================
# Dev Commands
# =============================================================================


def cmd_test(extra_args: list[str]) -> int:
    """Run pytest with provided arguments and test tier options.

    Usage:
        python . dev test                # Run all tests
        python . dev test --unit         # Run only unit tests
        python . dev test --integration  # Run integration tests
        python . dev test --all          # Run all tests explicitly
        python . dev test -k "resize"    # Run tests matching pattern

    Test Tiers:
        unit        - Fast tests with no I/O beyond temporary files
        integration - End-to-end workflows through files and the database
    """
    tier_markers = {
        "--unit": ["-m", "unit"],
        "--integration": ["-m", "integration"],
        "--all": [],
    }

    pytest_args: list[str] = []
    remaining_args: list[str] = []

    for arg in extra_args:
        if arg in tier_markers:
            pytest_args.extend(tier_markers[arg])
        else:
            remaining_args.append(arg)

    cmd = [sys.executable, "-m", "pytest", *pytest_args, *remaining_args]
    logger.info(f"Running: {' '.join(cmd)}")

    try:
        return subprocess.call(cmd)
    except KeyboardInterrupt:
        return 130


def handle_dev_command(argv: list[str]) -> int:
    """Handle development workflow commands.

    Usage:
        python . dev test [args]       # Run pytest
    """
    if not argv:
        print("Development workflow commands")
        print("\nUsage: python . dev {command} [args]")
        print("\nCommands:")
        print("  test       Run pytest with tier options")
        print("\nExamples:")
        print("  python . dev test --unit           # Fast unit tests")
        print("  python . dev test --integration    # Integration tests")
        return 1

    subcommand = argv[0]
    subargs = argv[1:]

    dev_commands = {
        "test": lambda: cmd_test(subargs),
    }

    if subcommand in dev_commands:
        return dev_commands[subcommand]()

    logger.error(f"Unknown dev command: {subcommand}")
    return handle_dev_command([])


# =============================================================================
# MCP Server Command
# =============================================================================


def handle_mcp_command(argv: list[str]) -> int:
    """Handle MCP server commands.

    Usage:
        python . mcp run              # Start in STDIO mode (for Claude Desktop)
        python . mcp serve            # Start in HTTP mode
        python . mcp serve --port 8080
        python . mcp info             # Show server info
    """
    if not argv:
        print("MCP Server Commands")
        print("\nUsage: python . mcp {command} [options]")
        print("\nCommands:")
        print("  run                 Start server in STDIO mode (for Claude Desktop)")
        print("  serve               Start server in HTTP mode")
        print("  info                Show server information")
        print("\nOptions for 'serve':")
        print("  --host HOST         Bind address (default: MCP_HOST or 0.0.0.0)")
        print("  --port PORT         Port number (default: MCP_PORT or 18080)")
        print("  --transport TYPE    Transport: http or sse (default: http)")
        print("\nClaude Desktop Configuration:")
        print("  Add to claude_desktop_config.json:")
        print("  {")
        print('    "mcpServers": {')
        print('      "tui-forge": {')
        print('        "command": "python",')
        print('        "args": [".", "mcp", "run"],')
        print('        "cwd": "/path/to/tui-forge"')
        print("      }")
        print("    }")
        print("  }")
        return 1

    subcommand = argv[0]
    subargs = argv[1:]

    if subcommand == "run":
        from tuiforge.mcp import TransportType, run_server

        logger.info("Starting MCP server in STDIO mode...")
        run_server(transport=TransportType.STDIO)
        return 0

    elif subcommand == "serve":
        from tuiforge.mcp import ServerConfig, TransportType, run_server

        parser = argparse.ArgumentParser(prog="python . mcp serve")
        parser.add_argument("--host", default=None)
        parser.add_argument("--port", type=int, default=None)
        parser.add_argument(
            "--transport", choices=["http", "sse"], default="http"
        )
        args = parser.parse_args(subargs)

        config = ServerConfig.from_env(
            transport=TransportType(args.transport), host=args.host, port=args.port
        )
        logger.info(f"Starting MCP server in {config.transport.value} mode...")
        logger.info(f"Listening on {config.url}")
        run_server(transport=config.transport, host=config.host, port=config.port)
        return 0

    elif subcommand == "info":
        from tuiforge.mcp import (
            ServerConfig,
            get_server_capabilities,
            get_server_version,
        )

        settings = ServerConfig.from_env().describe()
        print("tui-forge MCP Server")
        print("=" * 40)
        print(f"Version: {get_server_version()}")
        print(f"Database: {settings['database']}")
        print(f"Code target: {settings['codegen_target']}")
        policy = settings["policy"]
        print(
            f"Share policy: new {policy['new_share']}%, "
            f"moved <= {policy['max_moved_share']}%, "
            f"min {policy['min_share']}%"
        )
        print("\nCapabilities:")
        for cap, enabled in get_server_capabilities().items():
            status = "enabled" if enabled else "disabled"
            print(f"  {cap}: {status}")
        print("\nTools:")
        print("  - new_design, open_project")
        print("  - add_node, delete_node, move_node")
        print("  - update_node_props, update_constraint, resize_constraint")
        print("  - show_design, generate_code")
        print("  - save_project, list_projects, delete_project")
        print("  - status")
        return 0

    else:
        logger.error(f"Unknown mcp command: {subcommand}")
        return handle_mcp_command([])


def show_help() -> None:
    """Display CLI help message."""
    print("Usage: python . {command} [args]")
    print("\n=== Designs ===")
    print("  design     Edit design files and generate ratatui code")
    print("  project    Save, open and list projects")
    print("\n=== MCP Server ===")
    print("  mcp        Run MCP server (STDIO or HTTP mode)")
    print("\n=== Development ===")
    print("  dev        Development workflows (test)")
    print("\nGetting Started:")
    print("  python . design init app.json                 # Prints the root id")
    print("  python . design add app.json ROOT Paragraph -t Hello")
    print("  python . design resize app.json ROOT 0 -10")
    print("  python . design show app.json")
    print("  python . design generate app.json -o app/src/main.rs --cargo app")
    print("\nProjects:")
    print("  python . project save app.json 'My App'")
    print("  python . project list")
    print("\nMCP Server:")
    print("  python . mcp run                    # Start STDIO server (Claude Desktop)")
    print("  python . mcp serve                  # Start HTTP server on port 18080")
    print("\nFor command details: python . {command} -h")


def main() -> int:
    """Main entry point for the CLI."""
    if len(sys.argv) < 2:
        show_help()
        return 1

    command = sys.argv[1]
    rest_args = sys.argv[2:]

    if command in ("-h", "--help"):
        show_help()
        return 0

    commands = {
        "design": lambda: handle_design_command(rest_args),
        "project": lambda: handle_project_command(rest_args),
        "mcp": lambda: handle_mcp_command(rest_args),
    }

    # Development commands (nested under 'dev')
    if command == "dev":
        return handle_dev_command(rest_args)

    if command in commands:
        setup_logging(get_environment(EnvVar.LOG_LEVEL))
        return commands[command]()

    logger.error(f"Unknown command: {command}")
    show_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
