from __future__ import annotations

from collections import defaultdict
from enum import Enum
from typing import Any, Iterable

from core.config import Settings, settings
from solver.occupancy import iter_runs
from solver.types import Day, LessonRequirement, PreferredTime, Session, TimeSlot


class DiagnosticType(str, Enum):
    CLASS_SLOT_DEFICIT = "CLASS_SLOT_DEFICIT"
    EDUCATOR_SLOT_DEFICIT = "EDUCATOR_SLOT_DEFICIT"
    MORNING_BLOCK_DEFICIT = "MORNING_BLOCK_DEFICIT"
    BLOCK_EXCEEDS_CONSECUTIVE_LIMIT = "BLOCK_EXCEEDS_CONSECUTIVE_LIMIT"


def summarize_diagnostics(diagnostics: list[dict[str, Any]]) -> str:
    n = len(diagnostics)
    if n <= 0:
        return "No capacity problems detected before placement."
    if n == 1:
        return "1 capacity problem detected; some lessons are likely to stay unscheduled."
    return f"{n} capacity problems detected; some lessons are likely to stay unscheduled."


def _diag(*, dtype: DiagnosticType, explanation: str, **payload: Any) -> dict[str, Any]:
    return {"type": dtype.value, **payload, "explanation": explanation}


def _runs_by_day(catalog: list[TimeSlot], session: Session | None = None) -> dict[Day, list[int]]:
    periods_by_day: dict[Day, set[int]] = defaultdict(set)
    for slot in catalog:
        if session is None or slot.session == session:
            periods_by_day[slot.day].add(slot.period)
    return {day: [length for _start, length in iter_runs(periods)] for day, periods in periods_by_day.items()}


def _max_periods_under_limit(run_length: int, max_consecutive: int) -> int:
    # Every (max_consecutive + 1)-th period of a sequential run has to stay free.
    return run_length - run_length // (max_consecutive + 1)


def _blocks_per_run(run_length: int, block_size: int, gap: int) -> int:
    if block_size > run_length:
        return 0
    return (run_length + gap) // (block_size + gap)


def analyze_capacity(
    requirements: Iterable[LessonRequirement],
    catalog: Iterable[TimeSlot],
    *,
    config: Settings | None = None,
) -> list[dict[str, Any]]:
    """Pre-placement capacity checks (no placement is attempted).

    Best effort: detects demand that cannot possibly fit the catalog under the
    placement rules, so the report can explain UNSCHEDULABLE lessons up front.
    Each diagnostic is a dict with ``type``, ``explanation`` and context keys.
    """

    cfg = config or settings
    reqs = list(requirements)
    slots = list(catalog)
    max_consecutive = cfg.max_consecutive_periods
    diagnostics: list[dict[str, Any]] = []

    class_demand: dict[str, int] = defaultdict(int)
    educator_demand: dict[str, int] = defaultdict(int)
    morning_blocks: dict[tuple[str, int], int] = defaultdict(int)
    names: dict[str, str] = {}
    oversized: dict[tuple[str, str], LessonRequirement] = {}

    for r in reqs:
        class_demand[r.class_id] += r.block_size
        educator_demand[r.educator_id] += r.block_size
        if r.educator_name:
            names[r.educator_id] = r.educator_name
        if r.class_name:
            names[r.class_id] = r.class_name
        if r.block_size > max_consecutive:
            oversized.setdefault((r.educator_id, r.target.id), r)
        elif r.block_size > 1 and r.preferred_time == PreferredTime.MORNING:
            morning_blocks[(r.educator_id, r.block_size)] += 1

    total_slots = len(slots)
    for class_id in sorted(class_demand):
        demand = class_demand[class_id]
        if demand > total_slots:
            diagnostics.append(
                _diag(
                    dtype=DiagnosticType.CLASS_SLOT_DEFICIT,
                    class_id=class_id,
                    required_periods=demand,
                    available_periods=total_slots,
                    explanation=(
                        f"Class {names.get(class_id, class_id)} needs {demand} periods but the week only has "
                        f"{total_slots} teaching slots."
                    ),
                )
            )

    all_runs = _runs_by_day(slots)
    educator_capacity = sum(
        _max_periods_under_limit(length, max_consecutive) for runs in all_runs.values() for length in runs
    )
    for educator_id in sorted(educator_demand):
        demand = educator_demand[educator_id]
        if demand > educator_capacity:
            diagnostics.append(
                _diag(
                    dtype=DiagnosticType.EDUCATOR_SLOT_DEFICIT,
                    educator_id=educator_id,
                    required_periods=demand,
                    available_periods=educator_capacity,
                    explanation=(
                        f"{names.get(educator_id, educator_id)} needs {demand} periods but at most "
                        f"{educator_capacity} fit in a week without exceeding {max_consecutive} consecutive periods."
                    ),
                )
            )

    for (educator_id, target_id), r in sorted(oversized.items()):
        diagnostics.append(
            _diag(
                dtype=DiagnosticType.BLOCK_EXCEEDS_CONSECUTIVE_LIMIT,
                educator_id=educator_id,
                target_id=target_id,
                block_size=r.block_size,
                max_consecutive=max_consecutive,
                explanation=(
                    f"{r.target_name or target_id} needs {r.block_size}-period blocks but "
                    f"{names.get(educator_id, educator_id)} may teach at most {max_consecutive} periods in a row."
                ),
            )
        )

    if not cfg.morning_fallback:
        morning_runs = _runs_by_day(slots, Session.MORNING)
        for (educator_id, block_size), demand in sorted(morning_blocks.items()):
            capacity = sum(
                _blocks_per_run(length, block_size, gap=1) for runs in morning_runs.values() for length in runs
            )
            if demand > capacity:
                diagnostics.append(
                    _diag(
                        dtype=DiagnosticType.MORNING_BLOCK_DEFICIT,
                        educator_id=educator_id,
                        block_size=block_size,
                        required_blocks=demand,
                        available_blocks=capacity,
                        explanation=(
                            f"{names.get(educator_id, educator_id)} needs {demand} morning blocks of {block_size} "
                            f"periods but only {capacity} fit in the week's morning sessions."
                        ),
                    )
                )

    return diagnostics
