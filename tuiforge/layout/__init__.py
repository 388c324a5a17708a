"""Layout module - share redistribution among sibling panes.

Pure functions used by the tree store whenever a layout's sibling set
changes size or a pair of panes is resized.

Example usage:
    >>> from tuiforge.layout import append_share, get_layout_policy
    >>> policy = get_layout_policy()
    >>> shares = append_share([], policy)
"""

from .lib import (
    DEFAULT_POLICY,
    FULL_SHARE,
    LayoutError,
    LayoutPolicy,
    all_percentage,
    append_share,
    expand_after_removal,
    get_layout_policy,
    insert_share,
    normalize_shares,
    pin_share,
    percentage_indices,
    percentage_total,
    resize_pair,
)

__all__ = [
    "DEFAULT_POLICY",
    "FULL_SHARE",
    "LayoutError",
    "LayoutPolicy",
    "get_layout_policy",
    "percentage_indices",
    "percentage_total",
    "all_percentage",
    "normalize_shares",
    "append_share",
    "expand_after_removal",
    "insert_share",
    "pin_share",
    "resize_pair",
]
