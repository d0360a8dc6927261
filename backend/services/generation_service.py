from __future__ import annotations

import logging
from typing import Any

from core.config import Settings, settings
from schemas.assignment import TeacherAssignment, TrainerAssignment
from schemas.generation import ExistingPlacementIn, GenerationRequest
from solver.capacity_analyzer import analyze_capacity
from solver.conflict_validator import validate
from solver.errors import SchedulingError
from solver.lesson_expander import expand_lessons
from solver.occupancy import Occupancy
from solver.placement_engine import GreedyPlacementEngine
from solver.result_reporter import GenerationResult, summarize
from solver.slot_catalog import build_catalog, index_catalog
from solver.types import LessonTarget, Placement, TimeSlot


logger = logging.getLogger(__name__)


def filter_assignments_for_scope(
    teacher_assignments: list[TeacherAssignment],
    trainer_assignments: list[TrainerAssignment],
    *,
    scope: str,
    class_id: str | None = None,
    educator_id: str | None = None,
) -> tuple[list[TeacherAssignment], list[TrainerAssignment]]:
    """Keep the assignments a scoped run regenerates.

    Rows missing the relation used for filtering are kept so the expander reports them.
    """

    scope = scope.upper()
    if scope == "SCHOOL":
        return list(teacher_assignments), list(trainer_assignments)

    if scope == "CLASS":
        teachers = [a for a in teacher_assignments if a.class_ref is None or a.class_ref.id == class_id]
        trainers = [a for a in trainer_assignments if a.class_ref is None or a.class_ref.id == class_id]
        return teachers, trainers

    if scope == "EDUCATOR":
        teachers = [a for a in teacher_assignments if a.teacher is None or a.teacher.id == educator_id]
        trainers = [a for a in trainer_assignments if a.trainer is None or a.trainer.id == educator_id]
        return teachers, trainers

    raise ValueError(f"Unknown scope {scope!r}")


def _outside_scope(row: ExistingPlacementIn, *, scope: str, class_id: str | None, educator_id: str | None) -> bool:
    if scope == "CLASS":
        return row.class_id != class_id
    if scope == "EDUCATOR":
        return row.educator_id != educator_id
    # A whole-school run replaces every persisted row.
    return False


def _persisted_block_id(row: ExistingPlacementIn) -> str:
    # Rows of one block share educator, class, target, day and origin period.
    origin = row.period - row.block_offset
    return f"X:{row.educator_id}:{row.class_id}:{row.target_id}:{row.day.value}:{origin}"


def load_existing_placements(
    rows: list[ExistingPlacementIn],
    catalog: list[TimeSlot],
    *,
    scope: str,
    class_id: str | None = None,
    educator_id: str | None = None,
) -> tuple[list[Placement], list[str]]:
    """Convert persisted rows that survive this run into Placements that seed occupancy."""

    slots_by_day = index_catalog(catalog)
    kept: list[Placement] = []
    warnings: list[str] = []
    for row in rows:
        if not _outside_scope(row, scope=scope, class_id=class_id, educator_id=educator_id):
            continue
        slot = slots_by_day.get(row.day, {}).get(row.period)
        if slot is None:
            warnings.append(
                f"Existing placement for {row.educator_id} in {row.class_id} on {row.day.label} P{row.period} "
                "is outside the slot catalog and was ignored."
            )
            continue
        kept.append(
            Placement(
                educator_id=row.educator_id,
                class_id=row.class_id,
                target=LessonTarget(kind=row.target_kind, id=row.target_id),
                slot=slot,
                lesson_kind=row.lesson_kind,
                block_id=row.block_id or _persisted_block_id(row),
                block_size=row.block_size,
                block_offset=row.block_offset,
            )
        )
    return kept, warnings


def generate_timetable(
    request: GenerationRequest | dict[str, Any],
    *,
    config: Settings | None = None,
) -> GenerationResult:
    """Run one generation: catalog → expand → diagnose → place → validate → summarize.

    Fatal input problems (ConfigurationError, IncompleteAssignmentError) come back as a
    failed result carrying the error payload; nothing is placed in that case.
    """

    cfg = config or settings
    if not isinstance(request, GenerationRequest):
        request = GenerationRequest.model_validate(request)

    scope_label = request.scope
    if request.scope == "CLASS":
        scope_label = f"CLASS {request.class_id}"
    elif request.scope == "EDUCATOR":
        scope_label = f"EDUCATOR {request.educator_id}"
    logger.info("Timetable generation started school=%s scope=%s", request.school.school_id, scope_label)

    try:
        catalog = build_catalog(request.school, config=cfg)
        teacher_rows, trainer_rows = filter_assignments_for_scope(
            request.teacher_assignments,
            request.trainer_assignments,
            scope=request.scope,
            class_id=request.class_id,
            educator_id=request.educator_id,
        )
        requirements = expand_lessons(teacher_rows, trainer_rows)
    except SchedulingError as exc:
        logger.warning("Timetable generation aborted (%s): %s", exc.code, exc.message)
        return GenerationResult.failed(exc)

    diagnostics = analyze_capacity(requirements, catalog, config=cfg)
    for d in diagnostics:
        logger.info("Capacity diagnostic %s: %s", d["type"], d["explanation"])

    kept, warnings = load_existing_placements(
        request.existing_placements,
        catalog,
        scope=request.scope,
        class_id=request.class_id,
        educator_id=request.educator_id,
    )
    for w in warnings:
        logger.warning(w)

    engine = GreedyPlacementEngine(
        catalog,
        occupancy=Occupancy.from_placements(kept),
        availability=request.availability,
        config=cfg,
    )
    placements, unschedulable = engine.run(requirements)

    # Integrity pass over the timetable as it will look once persisted.
    violations = validate(kept + placements, config=cfg)
    if violations:
        logger.error("Integrity check found %d violation(s) after placement", len(violations))

    result = summarize(
        placements,
        unschedulable + violations,
        requirements=requirements,
        diagnostics=diagnostics,
        warnings=warnings,
    )
    logger.info(
        "Timetable generation finished status=%s placed=%d/%d conflicts=%d",
        result.status,
        result.stats.get("placed_lessons", 0),
        result.stats.get("required_lessons", 0),
        len(result.conflicts),
    )
    return result
