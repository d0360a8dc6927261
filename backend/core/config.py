from __future__ import annotations

from datetime import time
from pathlib import Path

from pydantic import Field, field_validator, model_validator
from pydantic.aliases import AliasChoices
from pydantic_settings import BaseSettings, SettingsConfigDict


BACKEND_DIR = Path(__file__).resolve().parents[1]

WEEKDAYS = ("MONDAY", "TUESDAY", "WEDNESDAY", "THURSDAY", "FRIDAY", "SATURDAY", "SUNDAY")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=BACKEND_DIR / ".env", env_file_encoding="utf-8", extra="ignore")

    # Runtime
    environment: str = Field(default="development", validation_alias=AliasChoices("environment", "ENVIRONMENT"))
    log_level: str | None = Field(default=None, validation_alias=AliasChoices("log_level", "LOG_LEVEL"))

    # Slot catalog
    # JSON list in the environment, e.g. TEACHING_DAYS='["MONDAY","TUESDAY"]'
    teaching_days: list[str] = Field(
        default_factory=lambda: list(WEEKDAYS[:5]),
        validation_alias=AliasChoices("teaching_days", "TEACHING_DAYS"),
    )
    first_teaching_period: int = Field(
        default=1,
        ge=1,
        validation_alias=AliasChoices("first_teaching_period", "FIRST_TEACHING_PERIOD"),
    )
    last_teaching_period: int = Field(
        default=10,
        ge=1,
        validation_alias=AliasChoices("last_teaching_period", "LAST_TEACHING_PERIOD"),
    )
    morning_last_period: int = Field(
        default=5,
        validation_alias=AliasChoices("morning_last_period", "MORNING_LAST_PERIOD"),
    )
    core_day_start: time = Field(
        default=time(8, 0),
        validation_alias=AliasChoices("core_day_start", "CORE_DAY_START"),
    )
    core_day_end: time = Field(
        default=time(16, 50),
        validation_alias=AliasChoices("core_day_end", "CORE_DAY_END"),
    )
    min_periods_per_day: int = Field(
        default=1,
        ge=1,
        validation_alias=AliasChoices("min_periods_per_day", "MIN_PERIODS_PER_DAY"),
    )

    # Placement rules
    max_consecutive_periods: int = Field(
        default=2,
        validation_alias=AliasChoices("max_consecutive_periods", "MAX_CONSECUTIVE_PERIODS"),
    )
    # Second scan over afternoon slots when a MORNING lesson finds no morning fit.
    morning_fallback: bool = Field(
        default=False,
        validation_alias=AliasChoices("morning_fallback", "MORNING_FALLBACK"),
    )
    # Periods one educator may teach a single class per day. None disables the cap.
    max_daily_periods_per_class: int | None = Field(
        default=None,
        validation_alias=AliasChoices("max_daily_periods_per_class", "MAX_DAILY_PERIODS_PER_CLASS"),
    )

    @field_validator("environment")
    @classmethod
    def _normalize_environment(cls, v: str) -> str:
        return (v or "development").strip().lower()

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, v: str | None) -> str | None:
        if v is None:
            return None
        v = v.strip().upper()
        return v or None

    @field_validator("teaching_days")
    @classmethod
    def _normalize_teaching_days(cls, v: list[str]) -> list[str]:
        days: list[str] = []
        for raw in v:
            name = str(raw).strip().upper()
            if name not in WEEKDAYS:
                raise ValueError(f"TEACHING_DAYS contains unknown day {raw!r}")
            if name not in days:
                days.append(name)
        if not days:
            raise ValueError("TEACHING_DAYS must name at least one day")
        return sorted(days, key=WEEKDAYS.index)

    @field_validator("max_consecutive_periods")
    @classmethod
    def _check_max_consecutive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("MAX_CONSECUTIVE_PERIODS must be at least 1")
        return v

    @field_validator("max_daily_periods_per_class")
    @classmethod
    def _check_daily_cap(cls, v: int | None) -> int | None:
        if v is not None and v < 1:
            raise ValueError("MAX_DAILY_PERIODS_PER_CLASS must be at least 1 when set")
        return v

    @model_validator(mode="after")
    def _check_period_window(self) -> "Settings":
        if self.last_teaching_period < self.first_teaching_period:
            raise ValueError("LAST_TEACHING_PERIOD must not be below FIRST_TEACHING_PERIOD")
        if not self.first_teaching_period <= self.morning_last_period <= self.last_teaching_period:
            raise ValueError("MORNING_LAST_PERIOD must fall inside the teaching period range")
        if self.core_day_end <= self.core_day_start:
            raise ValueError("CORE_DAY_END must be after CORE_DAY_START")
        return self

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


settings = Settings()
