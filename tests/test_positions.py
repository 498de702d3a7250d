"""Unit tests for sparse order values."""

import pytest

from taskly.board.positions import (
    GAP,
    append_order,
    has_room,
    insert_between,
    needs_renumber,
    renumber,
)


class TestAppendOrder:
    def test_empty_list_starts_at_gap(self):
        assert append_order([]) == GAP == 100

    def test_goes_after_largest(self):
        assert append_order([300, 100, 200]) == 400

    def test_accepts_generator(self):
        assert append_order(o for o in (100.0, 150.0)) == 250.0

    def test_negative_orders(self):
        assert append_order([-50.0]) == 50.0


class TestInsertBetween:
    def test_midpoint(self):
        assert insert_between(100, 200) == 150

    def test_true_midpoint_not_floored(self):
        assert insert_between(100, 101) == 100.5

    def test_before_first(self):
        assert insert_between(None, 100) == 0

    def test_after_last(self):
        assert insert_between(300, None) == 400

    def test_empty_list(self):
        assert insert_between(None, None) == GAP

    def test_result_strictly_between(self):
        prev, nxt = 1.0, 1.0 + 1e-6
        assert prev < insert_between(prev, nxt) < nxt

    @pytest.mark.parametrize("prev,nxt", [(200, 100), (100, 100)])
    def test_rejects_unordered_neighbours(self, prev, nxt):
        with pytest.raises(ValueError, match="must be below"):
            insert_between(prev, nxt)


class TestPrecision:
    def test_has_room_for_normal_gap(self):
        assert has_room(100, 200)

    def test_has_room_at_list_ends(self):
        assert has_room(None, 5)
        assert has_room(5, None)

    def test_no_room_below_threshold(self):
        assert not has_room(1.0, 1.0 + 1e-12)

    def test_repeated_halving_runs_out(self):
        prev, nxt = 100.0, 200.0
        inserts = 0
        while has_room(prev, nxt):
            nxt = insert_between(prev, nxt)
            inserts += 1
        assert 30 < inserts < 60

    def test_needs_renumber(self):
        assert needs_renumber([100, 100 + 1e-12, 300])
        assert not needs_renumber([300, 100, 200])
        assert not needs_renumber([])


class TestRenumber:
    def test_evenly_spaced(self):
        assert renumber(3) == [100, 200, 300]

    def test_empty(self):
        assert renumber(0) == []
