"""Output generation module for design visualization.

Provides a human-readable text representation of design trees
and utilities for formatting feedback displays.
"""

from tuiforge.output.lib import (
    DesignOutput,
    OutputGenerator,
    format_constraint,
    format_design_tree,
)

__all__ = [
    "format_constraint",
    "format_design_tree",
    "DesignOutput",
    "OutputGenerator",
]
