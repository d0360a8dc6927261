from __future__ import annotations

from conftest import teacher_row, trainer_row
from solver.errors import IncompleteAssignmentError
from solver.lesson_expander import expand_lessons
from solver.placement_engine import schedule
from solver.result_reporter import GenerationResult, build_stats, summarize


def test_full_placement_is_a_success(catalog, config):
    reqs = expand_lessons([teacher_row(periods=3)])
    placements, conflicts = schedule(reqs, catalog, config=config)

    result = summarize(placements, conflicts, requirements=reqs)

    assert result.success is True
    assert result.status == "SUCCESS"
    assert result.conflict_lines() == []
    assert result.stats["placed_lessons"] == 3
    assert result.stats["required_lessons"] == 3
    assert result.reason_summary == "All 3 lessons placed without conflicts."


def test_partial_placement_is_not_a_success(monday_catalog, config):
    reqs = expand_lessons([teacher_row(periods=8)])
    placements, conflicts = schedule(reqs, monday_catalog, config=config)

    result = summarize(placements, conflicts, requirements=reqs)

    assert result.success is False
    assert result.status == "PARTIAL"
    assert len(result.unschedulable) == 1
    assert result.conflict_lines()[0].startswith("UNSCHEDULABLE: Could not schedule MATH lesson")
    assert result.reason_summary == "1 conflict(s), 1 lesson(s) could not be scheduled."


def test_missing_requirement_without_conflict_is_not_a_success(catalog, config):
    reqs = expand_lessons([teacher_row(periods=2)])
    placements, _ = schedule(reqs[:1], catalog, config=config)
    assert summarize(placements, [], requirements=reqs).success is False


def test_stats_count_kinds_levels_and_educators(catalog, config):
    reqs = expand_lessons(
        [teacher_row(teacher="T1", periods=3, level="P5"), teacher_row(teacher="T2", klass="C2", periods=1, level="S1")],
        [trainer_row(trainer="TR1", klass="C3", hours=2, level="L4")],
    )
    placements, conflicts = schedule(reqs, catalog, config=config)

    stats = build_stats(placements, conflicts, reqs)

    assert stats["by_kind"] == {"PRIMARY": 3, "SECONDARY": 1, "TSS": 4}
    assert stats["by_educator"] == {"T1": 3, "T2": 1, "TR1": 4}
    assert stats["by_level"] == {"L4": 2, "P5": 3, "S1": 1}
    assert stats["placed_periods"] == 8
    assert stats["placed_lessons"] == 6
    assert stats["required_periods"] == 8
    assert stats["max_periods_per_educator"] == 4
    assert stats["average_periods_per_educator"] == 2.67
    assert stats["conflicts_by_kind"] == {}


def test_failed_result_carries_error_payload():
    exc = IncompleteAssignmentError(
        "1 assignment(s) are incomplete",
        issues=[{"type": "MISSING_RELATION", "explanation": "Teacher assignment #0 has no subject."}],
    )
    result = GenerationResult.failed(exc)

    assert result.status == "FAILED_VALIDATION"
    assert result.success is False
    assert result.conflict_lines() == [
        "INCOMPLETE_ASSIGNMENT: 1 assignment(s) are incomplete",
        "  - Teacher assignment #0 has no subject.",
    ]
    response = result.to_response()
    assert response.error.code == "INCOMPLETE_ASSIGNMENT"
    assert response.placements == []


def test_response_serializes_placements(catalog, config):
    reqs = expand_lessons([], [trainer_row(hours=1)])
    placements, conflicts = schedule(reqs, catalog, config=config)

    payload = summarize(placements, conflicts, requirements=reqs).to_response().model_dump(mode="json")

    assert payload["success"] is True
    assert payload["status"] == "SUCCESS"
    first, second = payload["placements"]
    assert first["day"] == "MONDAY"
    assert (first["period"], first["start_time"], first["end_time"]) == (1, "08:00", "08:40")
    assert first["session"] == "MORNING"
    assert first["target_kind"] == "MODULE"
    assert (first["block_offset"], second["block_offset"]) == (0, 1)
    assert first["block_id"] == second["block_id"]
