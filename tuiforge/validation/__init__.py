"""Design tree validation utilities."""

from tuiforge.validation.lib import ValidationError, is_valid, validate_tree

__all__ = [
    "ValidationError",
    "validate_tree",
    "is_valid",
]
