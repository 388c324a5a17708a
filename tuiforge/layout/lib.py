"""Proportional-share redistribution for sibling constraints.

Every function here is pure: it takes a parent's constraint list and returns
a new list. Only ``Percentage`` entries take part in redistribution; absolute
constraints (Length/Min/Max) keep their position and value.

After any call the Percentage entries of the returned list sum to exactly 100
and none sits below ``policy.min_share`` unless it was already below it on
input. When the floor makes that impossible a ``LayoutError`` is raised.

Example:
    >>> from tuiforge.schema import Constraint
    >>> shares = append_share([Constraint.percentage(100)])
    >>> [c.value for c in shares]
    [80, 20]
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

from tuiforge.config import EnvVar, get_environment
from tuiforge.schema import Constraint, round_share

logger = logging.getLogger(__name__)

FULL_SHARE = 100


class LayoutError(ValueError):
    """Raised when a redistribution cannot honour the minimum pane share."""


@dataclass(frozen=True)
class LayoutPolicy:
    """Policy constants for share redistribution.

    Attributes:
        new_share: Percentage reserved for a node added to a non-empty layout.
        max_moved_share: Cap on the share a relocated node keeps.
        min_share: Smallest percentage a pane may shrink to.
    """

    new_share: int = 20
    max_moved_share: int = 50
    min_share: int = 5

    def __post_init__(self) -> None:
        for name in ("new_share", "max_moved_share", "min_share"):
            value = getattr(self, name)
            if not 0 <= value <= FULL_SHARE:
                raise ValueError(f"{name} must be within 0-100, got {value}")

    def capacity(self) -> int:
        """Maximum number of Percentage siblings that can all hold min_share."""
        if self.min_share == 0:
            return FULL_SHARE
        return FULL_SHARE // self.min_share

    def fits(self, percentage_count: int) -> bool:
        """Whether ``percentage_count`` siblings can all hold min_share."""
        return percentage_count * self.min_share <= FULL_SHARE


DEFAULT_POLICY = LayoutPolicy()


def get_layout_policy(
    new_share: int | None = None,
    max_moved_share: int | None = None,
    min_share: int | None = None,
) -> LayoutPolicy:
    """Build the layout policy from configuration.

    Resolution order: explicit argument > environment > default.

    Returns:
        LayoutPolicy with resolved constants.
    """
    return LayoutPolicy(
        new_share=get_environment(EnvVar.NEW_SHARE, override=new_share),
        max_moved_share=get_environment(
            EnvVar.MAX_MOVED_SHARE, override=max_moved_share
        ),
        min_share=get_environment(EnvVar.MIN_SHARE, override=min_share),
    )


# =============================================================================
# Helpers
# =============================================================================


def percentage_indices(constraints: Sequence[Constraint]) -> list[int]:
    """Positions of the Percentage entries, in order."""
    return [i for i, c in enumerate(constraints) if c.is_percentage]


def percentage_total(constraints: Sequence[Constraint]) -> int:
    """Sum of the Percentage values."""
    return sum(c.value for c in constraints if c.is_percentage)


def all_percentage(constraints: Sequence[Constraint]) -> bool:
    """Whether every constraint is a Percentage (and there is at least one)."""
    return bool(constraints) and all(c.is_percentage for c in constraints)


def _shrink(
    constraints: Sequence[Constraint], reserved: int, min_share: int
) -> list[Constraint]:
    factor = (FULL_SHARE - reserved) / FULL_SHARE
    return [
        c.with_value(max(min_share, round_share(c.value * factor)))
        if c.is_percentage
        else c
        for c in constraints
    ]


def normalize_shares(
    constraints: Sequence[Constraint],
    min_share: int = DEFAULT_POLICY.min_share,
    total: int = FULL_SHARE,
) -> list[Constraint]:
    """Bring the Percentage entries to an exact total (100 by default).

    The last Percentage entry absorbs the difference. If that would push it
    below ``min_share`` it is held at the floor and the excess is taken from
    the largest entries above the floor (the later entry wins a tie).

    Args:
        constraints: Sibling constraints.
        min_share: Floor for the adjusted entries.
        total: Required sum of the Percentage entries.

    Returns:
        New constraint list.

    Raises:
        LayoutError: If the entries cannot reach the total without breaking
            the floor.
    """
    indices = percentage_indices(constraints)
    if not indices:
        return list(constraints)

    values = {i: constraints[i].value for i in indices}
    last = indices[-1]
    values[last] = max(min_share, total - sum(values[i] for i in indices[:-1]))

    excess = sum(values.values()) - total
    while excess > 0:
        donor = max(reversed(indices), key=lambda i: values[i])
        room = values[donor] - min_share
        if room <= 0:
            raise LayoutError(
                f"{len(indices)} panes cannot each keep {min_share}% within {total}%"
            )
        taken = min(room, excess)
        values[donor] -= taken
        excess -= taken

    return [
        constraints[i].with_value(values[i]) if i in values else constraints[i]
        for i in range(len(constraints))
    ]


# =============================================================================
# Redistribution operations
# =============================================================================


def append_share(
    constraints: Sequence[Constraint], policy: LayoutPolicy = DEFAULT_POLICY
) -> list[Constraint]:
    """Constraints after appending a new sibling.

    The first child of a layout takes the whole area. Otherwise
    ``policy.new_share`` is reserved: existing Percentage entries are shrunk
    proportionally (floored at ``min_share``) and the new sibling takes what
    is left.

    Args:
        constraints: Current sibling constraints.
        policy: Share policy.

    Returns:
        Constraint list with the new sibling's constraint appended.

    Raises:
        LayoutError: If the Percentage siblings would not fit above the floor.
    """
    if not constraints:
        return [Constraint.percentage(FULL_SHARE)]

    if not policy.fits(len(percentage_indices(constraints)) + 1):
        raise LayoutError(
            f"Cannot add a pane: at most {policy.capacity()} panes fit at "
            f"{policy.min_share}% each"
        )

    shrunk = _shrink(constraints, policy.new_share, policy.min_share)
    remainder = max(policy.min_share, FULL_SHARE - percentage_total(shrunk))
    logger.debug(f"Reserved {remainder}% for new sibling #{len(shrunk)}")
    return normalize_shares(
        shrunk + [Constraint.percentage(remainder)], policy.min_share
    )


def _rescale(
    constraints: Sequence[Constraint], min_share: int, target: int = FULL_SHARE
) -> list[Constraint]:
    """Scale Percentage entries proportionally so they total ``target``.

    Each entry becomes ``round(v * target / current_total)`` floored at
    ``min_share``; the last Percentage entry takes ``target`` minus the
    values assigned before it.
    """
    indices = percentage_indices(constraints)
    current = percentage_total(constraints)
    result = list(constraints)
    assigned = 0
    for position, i in enumerate(indices):
        if position == len(indices) - 1:
            value = target - assigned
        elif current > 0:
            value = max(min_share, round_share(constraints[i].value * target / current))
        else:
            value = max(min_share, target // len(indices))
        result[i] = constraints[i].with_value(max(0, value))
        assigned += result[i].value
    return normalize_shares(result, min_share, total=target)


def expand_after_removal(
    remaining: Sequence[Constraint],
    removed: Constraint,
    policy: LayoutPolicy = DEFAULT_POLICY,
) -> list[Constraint]:
    """Constraints after a sibling has been removed.

    A freed Percentage share is handed back to the surviving Percentage
    siblings in proportion to their current values; the last one absorbs
    the rounding remainder. Removing an absolute constraint frees nothing,
    unless the survivors are then all Percentage and no longer total 100
    (``[P(80), Length(10)]`` minus the Length), in which case they are
    rescaled the same way.

    Args:
        remaining: Sibling constraints with the removed entry already dropped.
        removed: The constraint that was removed.
        policy: Share policy.

    Returns:
        Rescaled constraint list.
    """
    if not percentage_indices(remaining):
        return list(remaining)
    if not removed.is_percentage and not (
        all_percentage(remaining) and percentage_total(remaining) != FULL_SHARE
    ):
        return list(remaining)
    return _rescale(remaining, policy.min_share)


def pin_share(
    constraints: Sequence[Constraint],
    index: int,
    policy: LayoutPolicy = DEFAULT_POLICY,
) -> list[Constraint]:
    """Rebalance all-Percentage siblings around an edited entry.

    The entry at ``index`` keeps its value (lowered only as far as needed to
    leave ``min_share`` for every other sibling) and the other siblings are
    rescaled to fill the rest. A sole child always fills the parent. Lists
    containing absolute constraints are returned unchanged.

    Args:
        constraints: Sibling constraints after the edit.
        index: Position of the edited entry.
        policy: Share policy.

    Returns:
        Rebalanced constraint list.

    Raises:
        LayoutError: If the other siblings cannot all hold the floor.
    """
    if not all_percentage(constraints):
        return list(constraints)
    if len(constraints) == 1:
        return [constraints[0].with_value(FULL_SHARE)]

    others = [c for i, c in enumerate(constraints) if i != index]
    room = FULL_SHARE - len(others) * policy.min_share
    if room < 0:
        raise LayoutError(
            f"{len(others)} siblings cannot each keep {policy.min_share}%"
        )
    pinned = constraints[index].with_value(min(constraints[index].value, room))
    rest = _rescale(others, policy.min_share, target=FULL_SHARE - pinned.value)
    return rest[:index] + [pinned] + rest[index:]


def insert_share(
    constraints: Sequence[Constraint],
    index: int,
    moved: Constraint | None = None,
    policy: LayoutPolicy = DEFAULT_POLICY,
) -> list[Constraint]:
    """Constraints after a relocated node is inserted at ``index``.

    The relocated node keeps ``min(old_share, policy.max_moved_share)``, where
    ``old_share`` is its previous Percentage value (``policy.new_share`` if it
    had an absolute constraint). Existing Percentage siblings are shrunk to
    make room and the list is normalized so the last entry takes the rounding
    remainder.

    Args:
        constraints: Current constraints of the destination layout.
        index: Insertion position, ``0..len(constraints)``.
        moved: The relocated node's constraint at its previous parent.
        policy: Share policy.

    Returns:
        Constraint list including the relocated node's entry.

    Raises:
        IndexError: If ``index`` is out of range.
        LayoutError: If the Percentage siblings would not fit above the floor.
    """
    if not 0 <= index <= len(constraints):
        raise IndexError(f"Insert position {index} outside 0..{len(constraints)}")
    if not constraints:
        return [Constraint.percentage(FULL_SHARE)]

    if not policy.fits(len(percentage_indices(constraints)) + 1):
        raise LayoutError(
            f"Cannot move a pane here: at most {policy.capacity()} panes fit at "
            f"{policy.min_share}% each"
        )

    if moved is not None and moved.is_percentage:
        old_share = moved.value
    else:
        old_share = policy.new_share
    reserved = min(old_share, policy.max_moved_share)

    shrunk = _shrink(constraints, reserved, policy.min_share)
    shrunk.insert(index, Constraint.percentage(max(policy.min_share, reserved)))
    return normalize_shares(shrunk, policy.min_share)


def resize_pair(
    first: Constraint,
    second: Constraint,
    delta: float,
    policy: LayoutPolicy = DEFAULT_POLICY,
) -> tuple[Constraint, Constraint]:
    """Move ``delta`` percent from ``second`` to ``first``.

    The pair's combined total is preserved and neither side drops below
    ``policy.min_share``. A delta that rounds to zero returns the inputs.

    Args:
        first: Percentage constraint at ``index``.
        second: Percentage constraint at ``index + 1``.
        delta: Percent to move (negative shrinks ``first``).
        policy: Share policy.

    Returns:
        The adjusted pair.

    Raises:
        ValueError: If either constraint is not a Percentage.
        LayoutError: If the pair is too small to keep both sides at the floor.
    """
    if not (first.is_percentage and second.is_percentage):
        raise ValueError("Only a pair of Percentage constraints can be resized")

    step = round_share(delta)
    if step == 0:
        return first, second

    total = first.value + second.value
    low, high = policy.min_share, total - policy.min_share
    if high < low:
        raise LayoutError(
            f"Pair totals {total}%, too small to keep {policy.min_share}% on each side"
        )
    new_first = min(max(first.value + step, low), high)
    return first.with_value(new_first), second.with_value(total - new_first)
