from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator, model_validator

from schemas.assignment import EducatorAvailability, TeacherAssignment, TrainerAssignment
from schemas.school import SchoolConfig
from solver.types import Day, LessonKind, TargetKind


class ExistingPlacementIn(BaseModel):
    """A timetable row persisted by an earlier run (kept when regenerating a narrower scope)."""

    educator_id: str = Field(min_length=1)
    class_id: str = Field(min_length=1)
    target_kind: TargetKind
    target_id: str = Field(min_length=1)
    day: Day
    period: int = Field(ge=1)
    # Derived as TSS for module rows; subject rows must state PRIMARY or SECONDARY.
    lesson_kind: LessonKind | None = None
    block_id: str | None = None
    block_size: int = Field(default=1, ge=1)
    block_offset: int = Field(default=0, ge=0)

    @field_validator("day", mode="before")
    @classmethod
    def _normalize_day(cls, v):
        if isinstance(v, str):
            return v.strip().upper()
        return v

    @model_validator(mode="after")
    def _resolve_lesson_kind(self) -> "ExistingPlacementIn":
        if self.lesson_kind is None:
            if self.target_kind != TargetKind.MODULE:
                raise ValueError("lesson_kind is required for SUBJECT placements")
            self.lesson_kind = LessonKind.TSS
        if self.block_offset >= self.block_size:
            raise ValueError("block_offset must be below block_size")
        return self


class GenerationRequest(BaseModel):
    """Whole-school, single-class or single-educator generation.

    Scoped runs keep the other classes'/educators' ``existing_placements`` as occupied.
    """

    school: SchoolConfig
    teacher_assignments: list[TeacherAssignment] = Field(default_factory=list)
    trainer_assignments: list[TrainerAssignment] = Field(default_factory=list)
    existing_placements: list[ExistingPlacementIn] = Field(default_factory=list)
    availability: list[EducatorAvailability] = Field(default_factory=list)
    scope: Literal["SCHOOL", "CLASS", "EDUCATOR"] = "SCHOOL"
    class_id: str | None = None
    educator_id: str | None = None

    @field_validator("scope", mode="before")
    @classmethod
    def _normalize_scope(cls, v):
        if isinstance(v, str):
            return v.strip().upper()
        return v

    @model_validator(mode="after")
    def _check_scope_target(self) -> "GenerationRequest":
        if self.scope == "CLASS" and not self.class_id:
            raise ValueError("scope=CLASS requires class_id")
        if self.scope == "EDUCATOR" and not self.educator_id:
            raise ValueError("scope=EDUCATOR requires educator_id")
        return self


class ConflictOut(BaseModel):
    severity: Literal["INFO", "WARN", "ERROR"] = "ERROR"
    conflict_type: str
    message: str
    educator_id: str | None = None
    class_id: str | None = None
    day: str | None = None
    period: int | None = None
    details: dict[str, Any] = Field(default_factory=dict)


class PlacementOut(BaseModel):
    educator_id: str
    class_id: str
    target_kind: str
    target_id: str
    lesson_kind: str

    day: str
    period: int
    start_time: str
    end_time: str
    session: str

    block_id: str
    block_size: int = 1
    block_offset: int = 0


class GenerationError(BaseModel):
    code: str
    message: str
    issues: list[dict[str, Any]] = Field(default_factory=list)


class GenerationResponse(BaseModel):
    success: bool
    status: Literal["SUCCESS", "PARTIAL", "FAILED_VALIDATION"]
    placements: list[PlacementOut] = Field(default_factory=list)
    conflicts: list[ConflictOut] = Field(default_factory=list)
    stats: dict[str, Any] = Field(default_factory=dict)

    reason_summary: str | None = None
    diagnostics: list[dict[str, Any]] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    error: GenerationError | None = None
