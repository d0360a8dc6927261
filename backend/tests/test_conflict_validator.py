from __future__ import annotations

from conftest import placement
from core.config import Settings
from solver.conflict_validator import check_block_boundaries, check_consecutive, check_double_booking, validate
from solver.types import ConflictKind, Day


def test_clean_placements_have_no_conflicts(config):
    rows = [placement(period=1), placement(period=2), placement(period=4)]
    assert validate(rows, config=config) == []


def test_educator_double_booking_is_reported():
    rows = [placement("T1", "C1", period=3), placement("T1", "C2", period=3, block_id="L00001")]
    conflicts = check_double_booking(rows)
    assert len(conflicts) == 1
    c = conflicts[0]
    assert c.kind == ConflictKind.DOUBLE_BOOKING
    assert (c.educator_id, c.day, c.period) == ("T1", Day.MONDAY, 3)
    assert c.details["scope"] == "educator"
    assert [e["class_id"] for e in c.details["entries"]] == ["C1", "C2"]
    assert c.line() == "DOUBLE_BOOKING: Educator T1 has 2 lessons on Monday P3"


def test_class_overlap_is_reported():
    rows = [placement("T1", "C1", period=1), placement("T2", "C1", period=1, block_id="L00001")]
    conflicts = check_double_booking(rows)
    assert [(c.class_id, c.details["scope"]) for c in conflicts] == [("C1", "class")]


def test_two_in_a_row_is_allowed_three_is_not():
    assert check_consecutive([placement(period=1), placement(period=2)], max_consecutive=2) == []

    rows = [placement(period=p, block_id=f"L{p:05d}") for p in (4, 5, 6)]
    conflicts = check_consecutive(rows, max_consecutive=2)
    assert len(conflicts) == 1
    assert conflicts[0].kind == ConflictKind.TOO_MANY_CONSECUTIVE
    assert conflicts[0].details == {"run_start": 4, "run_length": 3, "max_consecutive": 2}


def test_runs_are_counted_per_day():
    rows = [placement(period=10), placement(day=Day.TUESDAY, period=1), placement(day=Day.TUESDAY, period=2)]
    assert check_consecutive(rows, max_consecutive=2) == []


def test_contiguous_block_passes():
    rows = [
        placement(period=4, block_id="L00007", block_size=2, block_offset=0),
        placement(period=5, block_id="L00007", block_size=2, block_offset=1),
    ]
    assert check_block_boundaries(rows, last_period=10) == []


def test_block_past_last_period_and_across_days_is_reported():
    rows = [
        placement(period=10, block_id="L00007", block_size=2, block_offset=0),
        placement(day=Day.TUESDAY, period=1, block_id="L00007", block_size=2, block_offset=1),
    ]
    conflicts = check_block_boundaries(rows, last_period=10)
    assert len(conflicts) == 1
    c = conflicts[0]
    assert c.kind == ConflictKind.BLOCK_BOUNDARY_EXCEEDED
    assert c.details["expected_periods"] == [10, 11]
    assert c.details["actual_periods"] == [10]
    assert c.details["other_days"] == ["TUESDAY"]
    assert "past P10" in c.message


def test_block_with_a_gap_is_reported():
    rows = [
        placement(period=1, block_id="L00003", block_size=2, block_offset=0),
        placement(period=3, block_id="L00003", block_size=2, block_offset=1),
    ]
    conflicts = check_block_boundaries(rows, last_period=10)
    assert conflicts[0].details["actual_periods"] == [1, 3]


def test_validate_groups_conflicts_by_kind():
    cfg = Settings(_env_file=None)
    rows = [
        placement("T1", "C1", period=1),
        placement("T1", "C2", period=1, block_id="L00001"),
        placement("T1", "C1", period=2, block_id="L00002"),
        placement("T1", "C1", period=3, block_id="L00003"),
    ]
    kinds = [c.kind for c in validate(rows, config=cfg)]
    assert kinds == [ConflictKind.DOUBLE_BOOKING, ConflictKind.TOO_MANY_CONSECUTIVE]
