from __future__ import annotations

from dataclasses import dataclass
from datetime import time
from enum import Enum, IntEnum
from typing import Any


class Day(str, Enum):
    MONDAY = "MONDAY"
    TUESDAY = "TUESDAY"
    WEDNESDAY = "WEDNESDAY"
    THURSDAY = "THURSDAY"
    FRIDAY = "FRIDAY"
    SATURDAY = "SATURDAY"
    SUNDAY = "SUNDAY"

    @property
    def index(self) -> int:
        return _DAY_ORDER.index(self)

    @property
    def label(self) -> str:
        return self.value.capitalize()


_DAY_ORDER = list(Day)


class Session(str, Enum):
    MORNING = "MORNING"
    AFTERNOON = "AFTERNOON"


class LessonKind(str, Enum):
    PRIMARY = "PRIMARY"
    SECONDARY = "SECONDARY"
    TSS = "TSS"


class ModuleCategory(str, Enum):
    SPECIFIC = "SPECIFIC"
    GENERAL = "GENERAL"
    COMPLEMENTARY = "COMPLEMENTARY"


class PreferredTime(str, Enum):
    ANY = "ANY"
    MORNING = "MORNING"


class TargetKind(str, Enum):
    SUBJECT = "SUBJECT"
    MODULE = "MODULE"


class ConflictKind(str, Enum):
    DOUBLE_BOOKING = "DOUBLE_BOOKING"
    TOO_MANY_CONSECUTIVE = "TOO_MANY_CONSECUTIVE"
    BLOCK_BOUNDARY_EXCEEDED = "BLOCK_BOUNDARY_EXCEEDED"
    UNSCHEDULABLE = "UNSCHEDULABLE"


class PriorityTier(IntEnum):
    """Scheduling order: higher tiers claim slots first."""

    SUBJECT = 0
    COMPLEMENTARY = 1
    GENERAL = 2
    SPECIFIC = 3

    @classmethod
    def for_category(cls, category: ModuleCategory) -> "PriorityTier":
        return cls[category.value]


# Numeric module priority carried on each TSS requirement.
MODULE_CATEGORY_RANK: dict[ModuleCategory, int] = {
    ModuleCategory.SPECIFIC: 3,
    ModuleCategory.GENERAL: 2,
    ModuleCategory.COMPLEMENTARY: 1,
}


SlotKey = tuple[Day, int]


@dataclass(frozen=True)
class TimeSlot:
    day: Day
    period: int
    start_time: time
    end_time: time
    session: Session
    is_break: bool = False

    @property
    def key(self) -> SlotKey:
        return (self.day, self.period)

    @property
    def sort_key(self) -> tuple[int, int]:
        return (self.day.index, self.period)

    def describe(self) -> str:
        return f"{self.day.label} P{self.period}"


@dataclass(frozen=True)
class LessonTarget:
    kind: TargetKind
    id: str


@dataclass(frozen=True)
class LessonRequirement:
    educator_id: str
    class_id: str
    target: LessonTarget
    lesson_index: int
    total_lessons: int
    lesson_kind: LessonKind
    priority: int
    tier: PriorityTier
    block_size: int
    preferred_time: PreferredTime
    level: str
    sequence: int
    module_category: ModuleCategory | None = None
    educator_name: str | None = None
    class_name: str | None = None
    target_name: str | None = None

    @property
    def sort_key(self) -> tuple[int, int, int]:
        return (-int(self.tier), -int(self.priority), int(self.sequence))

    @property
    def block_id(self) -> str:
        return f"L{self.sequence:05d}"

    def describe(self) -> str:
        name = self.target_name or self.target.id
        return f"{name} ({self.lesson_index}/{self.total_lessons})"


@dataclass(frozen=True)
class Placement:
    educator_id: str
    class_id: str
    target: LessonTarget
    slot: TimeSlot
    lesson_kind: LessonKind
    block_id: str
    block_size: int = 1
    block_offset: int = 0

    @property
    def day(self) -> Day:
        return self.slot.day

    @property
    def period(self) -> int:
        return self.slot.period

    @property
    def key(self) -> SlotKey:
        return self.slot.key

    @property
    def is_block_origin(self) -> bool:
        return self.block_offset == 0


@dataclass(frozen=True)
class ConflictRecord:
    kind: ConflictKind
    message: str
    educator_id: str | None = None
    class_id: str | None = None
    day: Day | None = None
    period: int | None = None
    details: dict[str, Any] | None = None

    def line(self) -> str:
        return f"{self.kind.value}: {self.message}"
