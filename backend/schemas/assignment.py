from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

from solver.types import Day, ModuleCategory


class EducatorRef(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str = Field(min_length=1)
    name: str | None = None


class ClassRef(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str = Field(min_length=1)
    name: str | None = None
    level: str | None = None


class SubjectRef(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str = Field(min_length=1)
    name: str | None = None
    periods_per_week: int = Field(ge=0)
    level: str | None = None


class ModuleRef(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str = Field(min_length=1)
    name: str | None = None
    total_hours: int = Field(ge=0)
    category: ModuleCategory
    # Required on purpose: the expander rejects anything below 2.
    block_size: int = Field(ge=1)
    level: str | None = None

    @field_validator("category", mode="before")
    @classmethod
    def _normalize_category(cls, v):
        if isinstance(v, str):
            return v.strip().upper()
        return v


class TeacherAssignment(BaseModel):
    """One teacher-class-subject row. Relations stay optional so gaps reach the expander."""

    model_config = ConfigDict(populate_by_name=True, from_attributes=True)

    teacher: EducatorRef | None = None
    class_ref: ClassRef | None = Field(default=None, alias="class")
    subject: SubjectRef | None = None


class TrainerAssignment(BaseModel):
    """One trainer-class-module row."""

    model_config = ConfigDict(populate_by_name=True, from_attributes=True)

    trainer: EducatorRef | None = None
    class_ref: ClassRef | None = Field(default=None, alias="class")
    module: ModuleRef | None = None


class EducatorAvailability(BaseModel):
    educator_id: str = Field(min_length=1)
    unavailable_days: list[Day] = Field(default_factory=list)
    unavailable_periods: list[int] = Field(default_factory=list)

    @field_validator("unavailable_days", mode="before")
    @classmethod
    def _normalize_days(cls, v):
        if isinstance(v, list):
            return [d.strip().upper() if isinstance(d, str) else d for d in v]
        return v
