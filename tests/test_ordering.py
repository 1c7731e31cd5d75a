"""Tests for the fractional order index."""

from sprintboard.workflow.models import Issue
from sprintboard.workflow.ordering import (
    GAP,
    compute_order,
    move_in_list,
    neighbors_at,
    order_after_last,
    renormalize,
)


def _issue(issue_id: str, order: float) -> Issue:
    return Issue(id=issue_id, project_id="p-1", title=issue_id, order=order)


class TestComputeOrder:
    def test_empty_list(self):
        assert compute_order(None, None) == 0

    def test_before_first(self):
        assert compute_order(None, 100) == 100 - GAP

    def test_after_last(self):
        assert compute_order(100, None) == 100 + GAP

    def test_midpoint(self):
        assert compute_order(100, 300) == 200

    def test_midpoint_of_adjacent_midpoints_stays_between(self):
        low, high = 0, 1
        for _ in range(30):
            mid = compute_order(low, high)
            assert low < mid < high
            high = mid

    def test_custom_gap(self):
        assert compute_order(None, 0, gap=10) == -10
        assert compute_order(5, None, gap=10) == 15


class TestMoveInList:
    def test_move_down(self):
        assert move_in_list(["a", "b", "c", "d"], 0, 2) == ["b", "c", "a", "d"]

    def test_move_up(self):
        assert move_in_list(["a", "b", "c", "d"], 3, 1) == ["a", "d", "b", "c"]

    def test_same_index_is_copy(self):
        items = ["a", "b"]
        result = move_in_list(items, 1, 1)
        assert result == items
        assert result is not items

    def test_out_of_range_target_is_clamped(self):
        assert move_in_list(["a", "b", "c"], 0, 99) == ["b", "c", "a"]
        assert move_in_list(["a", "b", "c"], 2, -5) == ["c", "a", "b"]

    def test_empty(self):
        assert move_in_list([], 0, 3) == []


class TestNeighborsAt:
    def test_empty_destination(self):
        assert neighbors_at([], 0) == (None, None)

    def test_head(self):
        items = [_issue("a", 0), _issue("b", 1000)]
        assert neighbors_at(items, 0) == (None, 0)

    def test_tail(self):
        items = [_issue("a", 0), _issue("b", 1000)]
        assert neighbors_at(items, 2) == (1000, None)

    def test_between(self):
        items = [_issue("a", 0), _issue("b", 1000), _issue("c", 2000)]
        assert neighbors_at(items, 2) == (1000, 2000)

    def test_index_past_end_clamps(self):
        items = [_issue("a", 0)]
        assert neighbors_at(items, 10) == (0, None)


class TestRenormalize:
    def test_only_changed_items_returned(self):
        items = [_issue("a", 0), _issue("b", 1500), _issue("c", 2000)]
        assert renormalize(items) == [("b", 1000)]

    def test_already_normal(self):
        items = [_issue("a", 0), _issue("b", 1000)]
        assert renormalize(items) == []

    def test_reordered_list(self):
        items = [_issue("c", 2000), _issue("a", 0), _issue("b", 1000)]
        assert renormalize(items) == [("c", 0), ("a", 1000), ("b", 2000)]


class TestOrderAfterLast:
    def test_empty(self):
        assert order_after_last([]) == 0

    def test_uses_highest_order(self):
        items = [_issue("a", 3000), _issue("b", 500)]
        assert order_after_last(items) == 4000
