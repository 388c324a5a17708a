"""Centralized environment configuration management for tui-forge.

Provides a unified interface for all environment variables with:
- Single `get_environment()` function for all configuration
- Type-safe enum with metadata (default, type, description)
- Consistent resolution: override > environment > default

Example:
    >>> from tuiforge.config import EnvVar, get_environment
    >>>
    >>> # Get values with automatic type conversion
    >>> share = get_environment(EnvVar.NEW_SHARE)  # Returns int
    >>> db_path = get_environment(EnvVar.DB_PATH)  # Returns Path | None
    >>>
    >>> # Override at runtime
    >>> share = get_environment(EnvVar.NEW_SHARE, override=25)
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, overload

# =============================================================================
# Environment Variable Configuration
# =============================================================================


@dataclass(frozen=True)
class EnvConfig:
    """Metadata for an environment variable.

    Attributes:
        name: Environment variable name (e.g., "TUIFORGE_NEW_SHARE").
        default: Default value if not set in environment.
        var_type: Python type for value conversion (str, int, bool, Path).
        description: Human-readable description.
        category: Grouping category for documentation.
    """

    name: str
    default: Any
    var_type: type
    description: str = ""
    category: str = "general"


class EnvVar(Enum):
    """All environment variables used by tui-forge.

    Each member contains an EnvConfig with name, default, type, and description.
    Use with `get_environment()` for type-safe access.

    Categories:
        - layout: Share policy for the design-tree redistribution
        - storage: Project database location
        - codegen: Code generation target and crate versions
        - service: MCP server bind address and port
        - logging: Log verbosity
    """

    # -------------------------------------------------------------------------
    # Layout Policy
    # -------------------------------------------------------------------------
    NEW_SHARE = EnvConfig(
        name="TUIFORGE_NEW_SHARE",
        default=20,
        var_type=int,
        description="Percentage reserved for a node added to a non-empty layout",
        category="layout",
    )
    MAX_MOVED_SHARE = EnvConfig(
        name="TUIFORGE_MAX_MOVED_SHARE",
        default=50,
        var_type=int,
        description="Upper bound on the share a relocated node keeps",
        category="layout",
    )
    MIN_SHARE = EnvConfig(
        name="TUIFORGE_MIN_SHARE",
        default=5,
        var_type=int,
        description="Smallest percentage a pane may shrink to",
        category="layout",
    )

    # -------------------------------------------------------------------------
    # Storage
    # -------------------------------------------------------------------------
    DATA_DIR = EnvConfig(
        name="TUIFORGE_DATA_DIR",
        default=None,  # Computed from repo root
        var_type=Path,
        description="Directory for the project database and exports",
        category="storage",
    )
    DB_PATH = EnvConfig(
        name="TUIFORGE_DB_PATH",
        default=None,  # Computed from DATA_DIR
        var_type=Path,
        description="SQLite database file for saved projects",
        category="storage",
    )

    # -------------------------------------------------------------------------
    # Code Generation
    # -------------------------------------------------------------------------
    CODEGEN_TARGET = EnvConfig(
        name="TUIFORGE_CODEGEN_TARGET",
        default="ratatui",
        var_type=str,
        description="Default code generation target",
        category="codegen",
    )
    RATATUI_VERSION = EnvConfig(
        name="RATATUI_VERSION",
        default="0.29",
        var_type=str,
        description="ratatui version written to generated Cargo.toml",
        category="codegen",
    )
    CROSSTERM_VERSION = EnvConfig(
        name="CROSSTERM_VERSION",
        default="0.28",
        var_type=str,
        description="crossterm version written to generated Cargo.toml",
        category="codegen",
    )

    # -------------------------------------------------------------------------
    # Service Configuration
    # -------------------------------------------------------------------------
    MCP_HOST = EnvConfig(
        name="MCP_HOST",
        default="0.0.0.0",
        var_type=str,
        description="MCP server bind address",
        category="service",
    )
    MCP_PORT = EnvConfig(
        name="MCP_PORT",
        default=18080,
        var_type=int,
        description="MCP server port (avoids 8080)",
        category="service",
    )

    # -------------------------------------------------------------------------
    # Logging
    # -------------------------------------------------------------------------
    LOG_LEVEL = EnvConfig(
        name="TUIFORGE_LOG_LEVEL",
        default="INFO",
        var_type=str,
        description="Root log level (DEBUG, INFO, WARNING, ERROR)",
        category="logging",
    )


# =============================================================================
# Repository Root Detection
# =============================================================================

_ROOT_MARKERS = (".gitignore", "pyproject.toml")


def _find_repo_root(start_path: Path | None = None) -> Path:
    """Find repository root by searching for a root marker file.

    Args:
        start_path: Directory to start search from. Defaults to cwd.

    Returns:
        Path to repository root directory.

    Raises:
        RuntimeError: If no marker file is found.
    """
    current = (start_path or Path.cwd()).resolve()

    while True:
        if any((current / marker).exists() for marker in _ROOT_MARKERS):
            return current

        parent = current.parent
        if parent == current:
            raise RuntimeError(
                f"Could not find repository root. No {' or '.join(_ROOT_MARKERS)} "
                f"found starting from: {start_path or Path.cwd()}"
            )
        current = parent


# =============================================================================
# Type Conversion Helpers
# =============================================================================


def _parse_bool(value: str) -> bool | None:
    """Parse string to boolean.

    Recognizes: true/false, 1/0, yes/no (case-insensitive).
    Returns None for unrecognized values.
    """
    normalized = value.lower().strip()
    if normalized in ("true", "1", "yes"):
        return True
    if normalized in ("false", "0", "no"):
        return False
    return None


def _convert_value(value: str | None, var_type: type, default: Any) -> Any:
    """Convert string value to target type.

    Args:
        value: Raw string value from environment (or None).
        var_type: Target Python type.
        default: Default value if conversion fails or value is None.

    Returns:
        Converted value or default.
    """
    if value is None:
        return default

    if var_type is str:
        return value

    if var_type is int:
        try:
            return int(value)
        except ValueError:
            return default

    if var_type is bool:
        result = _parse_bool(value)
        return result if result is not None else default

    if var_type is Path:
        return Path(value)

    # Unknown type, return as-is
    return value


# =============================================================================
# Main Interface
# =============================================================================


@overload
def get_environment(env_var: EnvVar, override: int) -> int: ...
@overload
def get_environment(env_var: EnvVar, override: str) -> str: ...
@overload
def get_environment(env_var: EnvVar, override: bool) -> bool: ...
@overload
def get_environment(env_var: EnvVar, override: Path) -> Path: ...
@overload
def get_environment(env_var: EnvVar, override: None = None) -> Any: ...


def get_environment(env_var: EnvVar, override: Any = None) -> Any:
    """Get environment variable value with type conversion.

    Resolution priority:
        1. Explicit override parameter (highest)
        2. Environment variable value
        3. Default from EnvConfig (lowest)

    Args:
        env_var: Environment variable enum member.
        override: Optional override value (bypasses env lookup).

    Returns:
        Value converted to the appropriate type (str, int, bool, or Path).

    Example:
        >>> get_environment(EnvVar.MIN_SHARE)
        5
        >>> get_environment(EnvVar.MIN_SHARE, override=10)
        10
    """
    config: EnvConfig = env_var.value

    if override is not None:
        return override

    raw_value = os.environ.get(config.name)
    return _convert_value(raw_value, config.var_type, config.default)


def get_environment_info(env_var: EnvVar) -> EnvConfig:
    """Get metadata for an environment variable.

    Args:
        env_var: Environment variable enum member.

    Returns:
        EnvConfig with name, default, type, and description.
    """
    return env_var.value


# =============================================================================
# Convenience Functions
# =============================================================================


def get_data_dir(override: Path | str | None = None) -> Path:
    """Get the tui-forge data directory.

    Resolution: override > TUIFORGE_DATA_DIR > {repo_root}/.tuiforge
    """
    if override is not None:
        return Path(override)

    env_path = get_environment(EnvVar.DATA_DIR)
    if env_path:
        return env_path

    return _find_repo_root() / ".tuiforge"


def get_db_path(override: Path | str | None = None) -> Path:
    """Get the project database path.

    Resolution: override > TUIFORGE_DB_PATH > {data_dir}/projects.db
    """
    if override is not None:
        return Path(override)

    env_path = get_environment(EnvVar.DB_PATH)
    if env_path:
        return env_path

    return get_data_dir() / "projects.db"


def get_crate_versions() -> dict[str, str]:
    """Get the crate versions written into generated manifests.

    Returns:
        Dict mapping crate name to version requirement.
    """
    return {
        "crossterm": get_environment(EnvVar.CROSSTERM_VERSION),
        "ratatui": get_environment(EnvVar.RATATUI_VERSION),
    }


def list_environment_variables(category: str | None = None) -> list[EnvVar]:
    """List all environment variables, optionally filtered by category.

    Args:
        category: Filter by category (layout, storage, codegen, service,
                 logging). None returns all variables.

    Returns:
        List of EnvVar enum members.
    """
    if category is None:
        return list(EnvVar)

    return [var for var in EnvVar if var.value.category == category]


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
