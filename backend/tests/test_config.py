from __future__ import annotations

from datetime import time

import pytest
from pydantic import ValidationError

from core.config import Settings


def test_defaults():
    cfg = Settings(_env_file=None)
    assert cfg.teaching_days == ["MONDAY", "TUESDAY", "WEDNESDAY", "THURSDAY", "FRIDAY"]
    assert (cfg.first_teaching_period, cfg.last_teaching_period, cfg.morning_last_period) == (1, 10, 5)
    assert (cfg.core_day_start, cfg.core_day_end) == (time(8, 0), time(16, 50))
    assert cfg.max_consecutive_periods == 2
    assert cfg.morning_fallback is False
    assert cfg.max_daily_periods_per_class is None


def test_values_are_read_from_environment(monkeypatch):
    monkeypatch.setenv("MAX_CONSECUTIVE_PERIODS", "3")
    monkeypatch.setenv("MORNING_FALLBACK", "true")
    monkeypatch.setenv("ENVIRONMENT", " Production ")
    cfg = Settings(_env_file=None)
    assert cfg.max_consecutive_periods == 3
    assert cfg.morning_fallback is True
    assert cfg.is_production


def test_teaching_days_are_normalized():
    cfg = Settings(_env_file=None, teaching_days=["friday", "Monday", "MONDAY"])
    assert cfg.teaching_days == ["MONDAY", "FRIDAY"]


@pytest.mark.parametrize(
    "overrides",
    [
        {"teaching_days": ["FUNDAY"]},
        {"first_teaching_period": 5, "last_teaching_period": 4, "morning_last_period": 4},
        {"morning_last_period": 11},
        {"core_day_start": "17:00", "core_day_end": "08:00"},
        {"max_consecutive_periods": 0},
        {"max_daily_periods_per_class": 0},
    ],
)
def test_invalid_settings_are_rejected(overrides):
    with pytest.raises(ValidationError):
        Settings(_env_file=None, **overrides)


def test_log_level_is_upper_cased():
    assert Settings(_env_file=None, log_level=" debug ").log_level == "DEBUG"
    assert Settings(_env_file=None, log_level="").log_level is None
