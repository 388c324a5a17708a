"""Unit tests for share redistribution."""

import pytest

from tuiforge.schema import Constraint

from .lib import (
    LayoutError,
    LayoutPolicy,
    append_share,
    expand_after_removal,
    get_layout_policy,
    insert_share,
    normalize_shares,
    pin_share,
    resize_pair,
)

P = Constraint.percentage


def values(constraints):
    return [c.value for c in constraints]


class TestLayoutPolicy:
    """Tests for policy constants."""

    @pytest.mark.unit
    def test_defaults(self):
        """Default policy matches the documented constants."""
        policy = LayoutPolicy()
        assert policy.new_share == 20
        assert policy.max_moved_share == 50
        assert policy.min_share == 5
        assert policy.capacity() == 20

    @pytest.mark.unit
    def test_out_of_range_rejected(self):
        """Shares outside 0-100 are rejected."""
        with pytest.raises(ValueError):
            LayoutPolicy(new_share=120)

    @pytest.mark.unit
    def test_from_environment(self, monkeypatch):
        """Environment variables feed the policy."""
        monkeypatch.setenv("TUIFORGE_NEW_SHARE", "25")
        monkeypatch.setenv("TUIFORGE_MIN_SHARE", "10")
        policy = get_layout_policy(max_moved_share=40)
        assert policy == LayoutPolicy(new_share=25, max_moved_share=40, min_share=10)


class TestNormalizeShares:
    """Tests for the sum-to-100 settle step."""

    @pytest.mark.unit
    def test_last_entry_absorbs_remainder(self):
        """The last Percentage takes the difference."""
        assert values(normalize_shares([P(30), P(30), P(30)])) == [30, 30, 40]

    @pytest.mark.unit
    def test_floor_takes_from_largest(self):
        """When the last entry hits the floor, the largest entry gives way."""
        result = normalize_shares([P(60), P(40), P(10)], min_share=5)
        assert values(result) == [55, 40, 5]

    @pytest.mark.unit
    def test_absolute_entries_untouched(self):
        """Length constraints keep their value and position."""
        result = normalize_shares([P(50), Constraint.length(3), P(20)])
        assert result[1] == Constraint.length(3)
        assert values(result) == [50, 3, 50]

    @pytest.mark.unit
    def test_impossible_floor(self):
        """Too many panes for the floor raises LayoutError."""
        with pytest.raises(LayoutError):
            normalize_shares([P(5)] * 21, min_share=5)


class TestAppendShare:
    """Tests for adding a sibling."""

    @pytest.mark.unit
    def test_first_child_takes_everything(self):
        """An empty layout's first child gets 100%."""
        assert values(append_share([])) == [100]

    @pytest.mark.unit
    def test_second_child(self):
        """Existing share shrinks by 20% and the new sibling takes the rest."""
        assert values(append_share([P(100)])) == [80, 20]

    @pytest.mark.unit
    def test_third_child(self):
        """Shares shrink proportionally and still total 100."""
        result = values(append_share([P(80), P(20)]))
        assert result == [64, 16, 20]
        assert sum(result) == 100

    @pytest.mark.unit
    def test_floor_respected(self):
        """Shrinking never goes below the minimum share."""
        result = values(append_share([P(90), P(5), P(5)]))
        assert min(result) >= 5
        assert sum(result) == 100

    @pytest.mark.unit
    def test_full_layout_rejected(self):
        """A layout already holding capacity panes cannot take another."""
        with pytest.raises(LayoutError):
            append_share([P(5)] * 20)

    @pytest.mark.unit
    def test_absolute_siblings_kept(self):
        """Absolute constraints are not shrunk."""
        result = append_share([Constraint.length(3), P(100)])
        assert result[0] == Constraint.length(3)
        assert values(result) == [3, 80, 20]


class TestExpandAfterRemoval:
    """Tests for handing back a removed sibling's share."""

    @pytest.mark.unit
    def test_sole_survivor_gets_everything(self):
        """The last remaining pane takes 100%."""
        assert values(expand_after_removal([P(20)], P(80))) == [100]

    @pytest.mark.unit
    def test_proportional_rescale(self):
        """Survivors scale by 100 / remaining_sum."""
        result = values(expand_after_removal([P(64), P(16)], P(20)))
        assert result == [80, 20]

    @pytest.mark.unit
    def test_rounding_remainder_on_last(self):
        """The last survivor absorbs rounding drift."""
        result = values(expand_after_removal([P(33), P(33), P(33)], P(1)))
        assert result == [33, 33, 34]

    @pytest.mark.unit
    def test_absolute_removal_frees_nothing(self):
        """Removing a Length constraint leaves percentages alone."""
        result = expand_after_removal([P(70), P(30)], Constraint.length(4))
        assert values(result) == [70, 30]

    @pytest.mark.unit
    def test_absolute_removal_restores_total(self):
        """Survivors left all-Percentage below 100 are scaled back up."""
        result = expand_after_removal([P(80)], Constraint.length(10))
        assert values(result) == [100]
        result = expand_after_removal([P(60), P(20)], Constraint.minimum(3))
        assert values(result) == [75, 25]

    @pytest.mark.unit
    def test_absolute_removal_mixed_survivors_untouched(self):
        """Survivors that still hold an absolute constraint are left alone."""
        survivors = [P(60), Constraint.length(3)]
        assert expand_after_removal(survivors, Constraint.length(4)) == survivors

    @pytest.mark.unit
    def test_zero_total(self):
        """Zero-valued survivors share the space evenly."""
        result = values(expand_after_removal([P(0), P(0)], P(100)))
        assert result == [50, 50]


class TestInsertShare:
    """Tests for inserting a relocated sibling."""

    @pytest.mark.unit
    def test_into_empty_layout(self):
        """A move into an empty layout takes 100%."""
        assert values(insert_share([], 0, P(30))) == [100]

    @pytest.mark.unit
    def test_keeps_old_share(self):
        """A small share is kept as-is."""
        result = values(insert_share([P(100)], 0, P(30)))
        assert result == [30, 70]

    @pytest.mark.unit
    def test_share_capped(self):
        """A large share is capped at max_moved_share."""
        result = values(insert_share([P(60), P(40)], 1, P(90)))
        assert result[1] == 50
        assert sum(result) == 100

    @pytest.mark.unit
    def test_absolute_moved_uses_new_share(self):
        """A node moved from an absolute slot reserves new_share."""
        result = values(insert_share([P(100)], 1, Constraint.length(3)))
        assert result == [80, 20]

    @pytest.mark.unit
    def test_index_out_of_range(self):
        """Insert positions past the end raise IndexError."""
        with pytest.raises(IndexError):
            insert_share([P(100)], 2, P(20))


class TestResizePair:
    """Tests for transferring share between neighbours."""

    @pytest.mark.unit
    def test_transfer(self):
        """Delta moves from the second to the first."""
        a, b = resize_pair(P(80), P(20), 10)
        assert (a.value, b.value) == (90, 10)

    @pytest.mark.unit
    def test_clamped(self):
        """Huge deltas clamp at the floor."""
        a, b = resize_pair(P(90), P(10), 999)
        assert (a.value, b.value) == (95, 5)
        a, b = resize_pair(P(90), P(10), -999)
        assert (a.value, b.value) == (5, 95)

    @pytest.mark.unit
    def test_rounds_delta(self):
        """Fractional deltas are rounded half up."""
        a, b = resize_pair(P(50), P(50), 2.5)
        assert (a.value, b.value) == (53, 47)

    @pytest.mark.unit
    def test_zero_delta_is_noop(self):
        """A delta that rounds to zero returns the inputs."""
        a, b = P(50), P(50)
        assert resize_pair(a, b, 0.4) == (a, b)

    @pytest.mark.unit
    def test_non_percentage_rejected(self):
        """Absolute constraints cannot be resized as a pair."""
        with pytest.raises(ValueError):
            resize_pair(P(50), Constraint.length(3), 5)

    @pytest.mark.unit
    def test_pair_too_small(self):
        """A pair totalling under twice the floor cannot be resized."""
        with pytest.raises(LayoutError):
            resize_pair(P(3), P(4), 1)


class TestPinShare:
    """Tests for rebalancing around an edited constraint."""

    @pytest.mark.unit
    def test_others_fill_the_rest(self):
        """Other siblings rescale to the remaining share."""
        result = values(pin_share([P(90), P(20)], 0))
        assert result == [90, 10]

    @pytest.mark.unit
    def test_proportions_kept(self):
        """Other siblings keep their relative sizes."""
        result = values(pin_share([P(60), P(40), P(20)], 2))
        assert result == [48, 32, 20]

    @pytest.mark.unit
    def test_pinned_value_lowered_for_floor(self):
        """The edited entry leaves the floor for each sibling."""
        result = values(pin_share([P(100), P(30), P(30)], 0))
        assert result == [90, 5, 5]

    @pytest.mark.unit
    def test_sole_child_fills_parent(self):
        """A single Percentage child is always 100."""
        assert values(pin_share([P(40)], 0)) == [100]

    @pytest.mark.unit
    def test_mixed_list_unchanged(self):
        """Lists with absolute constraints are left as edited."""
        edited = [P(40), Constraint.length(3)]
        assert pin_share(edited, 0) == edited
