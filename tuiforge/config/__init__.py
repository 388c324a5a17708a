"""Centralized configuration management for tui-forge.

Provides unified access to all configuration via the `get_environment()` function.

Example:
    >>> from tuiforge.config import EnvVar, get_environment
    >>>
    >>> # Get any environment variable with automatic type conversion
    >>> share = get_environment(EnvVar.NEW_SHARE)  # Returns int: 20
    >>>
    >>> # Override at runtime
    >>> share = get_environment(EnvVar.NEW_SHARE, override=30)
    >>>
    >>> # List available variables by category
    >>> for var in list_environment_variables("layout"):
    ...     info = get_environment_info(var)
    ...     print(f"{info.name}: {info.description}")

Environment Variable Categories:
    layout: Share policy for adding, moving and resizing panes
    storage: Project database location
    codegen: Generation target and crate versions
    service: MCP server host and port
    logging: Log verbosity
"""

from .lib import (
    EnvConfig,
    EnvVar,
    get_crate_versions,
    get_data_dir,
    get_db_path,
    get_environment,
    get_environment_info,
    list_environment_variables,
)

__all__ = [
    # Core types
    "EnvConfig",
    "EnvVar",
    # Main interface
    "get_environment",
    "get_environment_info",
    # Convenience functions
    "get_data_dir",
    "get_db_path",
    "get_crate_versions",
    # Introspection
    "list_environment_variables",
]
