"""Code generation targets and registry."""

from tuiforge.codegen.colors import is_hex_color, parse_hex_color
from tuiforge.codegen.lib import (
    CodeTarget,
    GenerationIssue,
    GenerationResult,
    GenerationWarning,
    generate,
    generate_manifest,
    generate_with_warnings,
    get_target,
    list_targets,
    register_target,
)

__all__ = [
    "CodeTarget",
    "GenerationIssue",
    "GenerationResult",
    "GenerationWarning",
    "generate",
    "generate_manifest",
    "generate_with_warnings",
    "get_target",
    "list_targets",
    "register_target",
    "parse_hex_color",
    "is_hex_color",
]
