from __future__ import annotations

import logging
from typing import Any, Iterable

from schemas.assignment import TeacherAssignment, TrainerAssignment
from solver.errors import IncompleteAssignmentError
from solver.types import (
    MODULE_CATEGORY_RANK,
    LessonKind,
    LessonRequirement,
    LessonTarget,
    PreferredTime,
    PriorityTier,
    TargetKind,
)


logger = logging.getLogger(__name__)

UNKNOWN_LEVEL = "Unknown"
MIN_MODULE_BLOCK_SIZE = 2


def resolve_level(*candidates: str | None) -> str:
    """First non-blank level wins (class level before subject/module level)."""

    for level in candidates:
        if level is not None and str(level).strip():
            return str(level).strip()
    return UNKNOWN_LEVEL


def lesson_kind_for_level(level: str) -> LessonKind:
    return LessonKind.SECONDARY if level.startswith("S") else LessonKind.PRIMARY


def _missing(**relations: Any) -> list[str]:
    return [name for name, value in relations.items() if value is None]


def _coerce(rows: Iterable[Any], model):
    out = []
    for row in rows or []:
        out.append(row if isinstance(row, model) else model.model_validate(row))
    return out


def expand_lessons(
    teacher_assignments: Iterable[TeacherAssignment | dict[str, Any]],
    trainer_assignments: Iterable[TrainerAssignment | dict[str, Any]] = (),
) -> list[LessonRequirement]:
    """Expand assignment rows into one LessonRequirement per required period.

    Subjects yield ``periods_per_week`` single-period lessons; modules yield
    ``total_hours`` lessons that each need a ``block_size`` run of periods in the
    morning. The result is ordered for greedy placement: module categories before
    subjects, higher priority first, input order for ties.

    Raises IncompleteAssignmentError listing every broken row, or when nothing
    expands at all.
    """

    teacher_rows: list[TeacherAssignment] = _coerce(teacher_assignments, TeacherAssignment)
    trainer_rows: list[TrainerAssignment] = _coerce(trainer_assignments, TrainerAssignment)

    issues: list[dict[str, Any]] = []
    requirements: list[LessonRequirement] = []
    sequence = 0

    for idx, a in enumerate(teacher_rows):
        missing = _missing(teacher=a.teacher, **{"class": a.class_ref}, subject=a.subject)
        if missing:
            issues.append(
                {
                    "type": "MISSING_RELATION",
                    "source": "teacher_assignment",
                    "index": idx,
                    "missing": missing,
                    "explanation": f"Teacher assignment #{idx} has no {', '.join(missing)}.",
                }
            )
            continue

        level = resolve_level(a.class_ref.level, a.subject.level)
        kind = lesson_kind_for_level(level)
        total = int(a.subject.periods_per_week)
        target = LessonTarget(kind=TargetKind.SUBJECT, id=a.subject.id)
        for lesson_index in range(1, total + 1):
            requirements.append(
                LessonRequirement(
                    educator_id=a.teacher.id,
                    class_id=a.class_ref.id,
                    target=target,
                    lesson_index=lesson_index,
                    total_lessons=total,
                    lesson_kind=kind,
                    priority=total,
                    tier=PriorityTier.SUBJECT,
                    block_size=1,
                    preferred_time=PreferredTime.ANY,
                    level=level,
                    sequence=sequence,
                    educator_name=a.teacher.name,
                    class_name=a.class_ref.name,
                    target_name=a.subject.name,
                )
            )
            sequence += 1

    for idx, a in enumerate(trainer_rows):
        missing = _missing(trainer=a.trainer, **{"class": a.class_ref}, module=a.module)
        if missing:
            issues.append(
                {
                    "type": "MISSING_RELATION",
                    "source": "trainer_assignment",
                    "index": idx,
                    "missing": missing,
                    "explanation": f"Trainer assignment #{idx} has no {', '.join(missing)}.",
                }
            )
            continue

        module = a.module
        if module.block_size < MIN_MODULE_BLOCK_SIZE:
            issues.append(
                {
                    "type": "INVALID_BLOCK_SIZE",
                    "source": "trainer_assignment",
                    "index": idx,
                    "module_id": module.id,
                    "block_size": module.block_size,
                    "explanation": (
                        f"Module {module.name or module.id} ({module.category.value}) has block size "
                        f"{module.block_size}; TSS modules need at least {MIN_MODULE_BLOCK_SIZE} consecutive periods."
                    ),
                }
            )
            continue

        level = resolve_level(a.class_ref.level, module.level)
        total = int(module.total_hours)
        target = LessonTarget(kind=TargetKind.MODULE, id=module.id)
        for lesson_index in range(1, total + 1):
            requirements.append(
                LessonRequirement(
                    educator_id=a.trainer.id,
                    class_id=a.class_ref.id,
                    target=target,
                    lesson_index=lesson_index,
                    total_lessons=total,
                    lesson_kind=LessonKind.TSS,
                    priority=MODULE_CATEGORY_RANK[module.category],
                    tier=PriorityTier.for_category(module.category),
                    block_size=int(module.block_size),
                    preferred_time=PreferredTime.MORNING,
                    level=level,
                    sequence=sequence,
                    module_category=module.category,
                    educator_name=a.trainer.name,
                    class_name=a.class_ref.name,
                    target_name=module.name,
                )
            )
            sequence += 1

    if issues:
        logger.warning("Lesson expansion rejected: %d broken assignment(s)", len(issues))
        raise IncompleteAssignmentError(
            f"{len(issues)} assignment(s) are incomplete; repair them before generating a timetable.",
            issues=issues,
        )

    if not requirements:
        raise IncompleteAssignmentError(
            "No lessons found. Create teacher-class or trainer-class assignments first.",
            issues=[{"type": "NO_LESSONS", "explanation": "Assignments expand to zero lessons."}],
        )

    ordered = sorted(requirements, key=lambda r: r.sort_key)
    logger.info(
        "Expanded %d teacher + %d trainer assignments into %d lessons",
        len(teacher_rows),
        len(trainer_rows),
        len(ordered),
    )
    return ordered
