from __future__ import annotations

from conftest import requirement, teacher_row, trainer_row
from core.config import Settings
from solver.capacity_analyzer import DiagnosticType, analyze_capacity, summarize_diagnostics
from solver.lesson_expander import expand_lessons
from solver.types import PriorityTier


def _types(diagnostics):
    return [d["type"] for d in diagnostics]


def test_feasible_load_has_no_diagnostics(catalog, config):
    reqs = expand_lessons([teacher_row(periods=5)], [trainer_row(hours=4)])
    assert analyze_capacity(reqs, catalog, config=config) == []


def test_educator_over_weekly_capacity(catalog, config):
    reqs = expand_lessons([teacher_row(klass="C1", periods=20), teacher_row(klass="C2", periods=20)])
    diagnostics = analyze_capacity(reqs, catalog, config=config)
    assert _types(diagnostics) == [DiagnosticType.EDUCATOR_SLOT_DEFICIT.value]
    assert diagnostics[0]["required_periods"] == 40
    assert diagnostics[0]["available_periods"] == 35
    assert "explanation" in diagnostics[0]


def test_class_over_catalog_size(catalog, config):
    reqs = expand_lessons([teacher_row(teacher="T1", periods=30), teacher_row(teacher="T2", subject="ENG", periods=30)])
    diagnostics = analyze_capacity(reqs, catalog, config=config)
    assert _types(diagnostics) == [DiagnosticType.CLASS_SLOT_DEFICIT.value]
    assert diagnostics[0]["class_id"] == "C1"
    assert diagnostics[0]["available_periods"] == 50


def test_morning_block_deficit(monday_catalog, config):
    reqs = expand_lessons([], [trainer_row(hours=3, block_size=2)])
    diagnostics = analyze_capacity(reqs, monday_catalog, config=config)
    assert _types(diagnostics) == [DiagnosticType.MORNING_BLOCK_DEFICIT.value]
    assert diagnostics[0]["required_blocks"] == 3
    assert diagnostics[0]["available_blocks"] == 2


def test_morning_block_check_is_skipped_with_fallback(monday_catalog):
    cfg = Settings(_env_file=None, morning_fallback=True)
    reqs = expand_lessons([], [trainer_row(hours=3, block_size=2)])
    assert analyze_capacity(reqs, monday_catalog, config=cfg) == []


def test_block_longer_than_consecutive_limit(catalog, config):
    reqs = [requirement(block_size=3, tier=PriorityTier.GENERAL, sequence=i) for i in range(2)]
    diagnostics = analyze_capacity(reqs, catalog, config=config)
    assert _types(diagnostics) == [DiagnosticType.BLOCK_EXCEEDS_CONSECUTIVE_LIMIT.value]
    assert diagnostics[0]["block_size"] == 3


def test_summarize_diagnostics():
    assert summarize_diagnostics([]) == "No capacity problems detected before placement."
    assert summarize_diagnostics([{}]).startswith("1 capacity problem")
    assert summarize_diagnostics([{}, {}]).startswith("2 capacity problems")
