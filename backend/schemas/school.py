from __future__ import annotations

from datetime import time

from pydantic import BaseModel, Field, field_validator

from solver.types import Day, Session


class PeriodDefinition(BaseModel):
    # 0 is reserved for assembly/breaks.
    period: int = Field(ge=0)
    start_time: time
    end_time: time
    is_break: bool = False
    session: Session | None = None
    name: str | None = None

    @field_validator("session", mode="before")
    @classmethod
    def _normalize_session(cls, v):
        if isinstance(v, str):
            v = v.strip().upper()
            # Assembly/break rows carry their own session labels; they never reach the catalog.
            if v not in {s.value for s in Session}:
                return None
        return v


class DayConfig(BaseModel):
    day: Day
    periods: list[PeriodDefinition] = Field(default_factory=list)

    @field_validator("day", mode="before")
    @classmethod
    def _normalize_day(cls, v):
        # Stored day names are not reliably upper-cased.
        if isinstance(v, str):
            return v.strip().upper()
        return v


class SchoolConfig(BaseModel):
    school_id: str | None = None
    days: list[DayConfig] = Field(default_factory=list)
