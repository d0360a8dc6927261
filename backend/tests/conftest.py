from __future__ import annotations

from datetime import time

import pytest

from core.config import Settings
from solver.slot_catalog import build_catalog, standard_school_config
from solver.types import (
    Day,
    LessonKind,
    LessonRequirement,
    LessonTarget,
    Placement,
    PreferredTime,
    PriorityTier,
    Session,
    TargetKind,
    TimeSlot,
)


@pytest.fixture
def config() -> Settings:
    return Settings(_env_file=None, environment="development")


@pytest.fixture
def catalog(config):
    return build_catalog(standard_school_config(school_id="school-1"), config=config)


@pytest.fixture
def monday_catalog(config):
    return build_catalog(standard_school_config(days=["MONDAY"]), config=config)


def teacher_row(teacher="T1", klass="C1", subject="MATH", periods=3, level="S2", **names):
    return {
        "teacher": {"id": teacher, "name": names.get("teacher_name")},
        "class": {"id": klass, "name": names.get("class_name"), "level": level},
        "subject": {"id": subject, "name": names.get("subject_name"), "periods_per_week": periods},
    }


def trainer_row(trainer="TR1", klass="C1", module="MOD1", hours=4, category="SPECIFIC", block_size=2, level="L3"):
    return {
        "trainer": {"id": trainer},
        "class": {"id": klass, "level": level},
        "module": {"id": module, "total_hours": hours, "category": category, "block_size": block_size},
    }


def requirement(
    educator="T1",
    klass="C1",
    *,
    sequence=0,
    block_size=1,
    preferred=PreferredTime.ANY,
    tier=PriorityTier.SUBJECT,
    priority=1,
    target_kind=TargetKind.SUBJECT,
    target_id="MATH",
) -> LessonRequirement:
    return LessonRequirement(
        educator_id=educator,
        class_id=klass,
        target=LessonTarget(kind=target_kind, id=target_id),
        lesson_index=1,
        total_lessons=1,
        lesson_kind=LessonKind.TSS if target_kind == TargetKind.MODULE else LessonKind.SECONDARY,
        priority=priority,
        tier=tier,
        block_size=block_size,
        preferred_time=preferred,
        level="S2",
        sequence=sequence,
    )


def slot(day=Day.MONDAY, period=1) -> TimeSlot:
    session = Session.MORNING if period <= 5 else Session.AFTERNOON
    return TimeSlot(day=day, period=period, start_time=time(8, 0), end_time=time(8, 40), session=session)


def placement(
    educator="T1",
    klass="C1",
    day=Day.MONDAY,
    period=1,
    *,
    block_id="L00000",
    block_size=1,
    block_offset=0,
) -> Placement:
    return Placement(
        educator_id=educator,
        class_id=klass,
        target=LessonTarget(kind=TargetKind.SUBJECT, id="MATH"),
        slot=slot(day, period),
        lesson_kind=LessonKind.SECONDARY,
        block_id=block_id,
        block_size=block_size,
        block_offset=block_offset,
    )
