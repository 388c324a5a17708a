"""ratatui + crossterm code target."""

from tuiforge.codegen.ratatui.lib import (
    RatatuiTarget,
    constraint_expr,
    escape_string,
    sanitize_package_name,
)

__all__ = [
    "RatatuiTarget",
    "constraint_expr",
    "escape_string",
    "sanitize_package_name",
]
