from __future__ import annotations

import logging
from collections import defaultdict
from datetime import time
from typing import Any, Iterable

from core.config import Settings, settings
from schemas.school import DayConfig, PeriodDefinition, SchoolConfig
from solver.errors import ConfigurationError
from solver.types import Day, Session, TimeSlot


logger = logging.getLogger(__name__)


# Default bell schedule: 40-minute periods P1-P10 inside 08:00-16:50.
# (period, name, start, end, session, is_break)
_STANDARD_BELL: list[tuple[int, str, time, time, str, bool]] = [
    (0, "School Assembly", time(7, 45), time(8, 0), "ASSEMBLY", True),
    (1, "Period 1", time(8, 0), time(8, 40), "MORNING", False),
    (2, "Period 2", time(8, 40), time(9, 20), "MORNING", False),
    (3, "Period 3", time(9, 20), time(10, 0), "MORNING", False),
    (0, "Morning Break", time(10, 0), time(10, 20), "BREAK", True),
    (4, "Period 4", time(10, 20), time(11, 0), "MORNING", False),
    (5, "Period 5", time(11, 0), time(11, 40), "MORNING", False),
    (0, "Lunch Break", time(11, 40), time(13, 10), "BREAK", True),
    (6, "Period 6", time(13, 10), time(13, 50), "AFTERNOON", False),
    (7, "Period 7", time(13, 50), time(14, 30), "AFTERNOON", False),
    (8, "Period 8", time(14, 30), time(15, 10), "AFTERNOON", False),
    (0, "Afternoon Break", time(15, 10), time(15, 30), "BREAK", True),
    (9, "Period 9", time(15, 30), time(16, 10), "AFTERNOON", False),
    (10, "Period 10", time(16, 10), time(16, 50), "AFTERNOON", False),
]


def standard_school_config(
    *,
    school_id: str | None = None,
    days: Iterable[Day | str] | None = None,
) -> SchoolConfig:
    """Monday-Friday configuration using the default bell schedule (assembly + 3 breaks)."""

    day_list = [Day(str(d).upper()) if not isinstance(d, Day) else d for d in (days or list(Day)[:5])]
    day_configs: list[DayConfig] = []
    for day in day_list:
        periods = [
            PeriodDefinition(
                period=period,
                name=name,
                start_time=start,
                end_time=end,
                session=session,
                is_break=is_break,
            )
            for period, name, start, end, session, is_break in _STANDARD_BELL
        ]
        day_configs.append(DayConfig(day=day, periods=periods))
    return SchoolConfig(school_id=school_id, days=day_configs)


def _session_for(period: PeriodDefinition, cfg: Settings) -> Session:
    if period.session is not None:
        return period.session
    return Session.MORNING if period.period <= cfg.morning_last_period else Session.AFTERNOON


def build_catalog(school_config: SchoolConfig | dict[str, Any], *, config: Settings | None = None) -> list[TimeSlot]:
    """Turn a school's day/period configuration into the ordered list of assignable slots.

    Only non-break periods numbered within the teaching range that sit inside the core
    day window are kept. Result is sorted by (day, period).

    Raises ConfigurationError when the configuration cannot support a run: no teaching
    day, a teaching day below ``min_periods_per_day``, a duplicated (day, period) or a
    period whose end is not after its start.
    """

    cfg = config or settings
    if not isinstance(school_config, SchoolConfig):
        school_config = SchoolConfig.model_validate(school_config)

    teaching_days = {Day(d) for d in cfg.teaching_days}
    issues: list[dict[str, Any]] = []
    usable_by_day: dict[Day, int] = {}
    seen: set[tuple[Day, int]] = set()
    catalog: list[TimeSlot] = []

    for day_cfg in school_config.days:
        day = day_cfg.day
        if day not in teaching_days:
            logger.debug("Dropping non-teaching day %s (%d period rows)", day.value, len(day_cfg.periods))
            continue
        usable_by_day.setdefault(day, 0)

        for p in day_cfg.periods:
            if p.end_time <= p.start_time:
                issues.append(
                    {
                        "type": "INVALID_PERIOD_TIMES",
                        "day": day.value,
                        "period": p.period,
                        "explanation": f"{day.label} P{p.period} ends at {p.end_time} which is not after {p.start_time}.",
                    }
                )
                continue
            if p.is_break or p.period == 0:
                continue
            if not cfg.first_teaching_period <= p.period <= cfg.last_teaching_period:
                logger.debug("Dropping %s P%d: outside P%d-P%d", day.value, p.period, cfg.first_teaching_period, cfg.last_teaching_period)
                continue
            if p.start_time < cfg.core_day_start or p.end_time > cfg.core_day_end:
                logger.debug(
                    "Dropping %s P%d: %s-%s outside core window %s-%s",
                    day.value,
                    p.period,
                    p.start_time,
                    p.end_time,
                    cfg.core_day_start,
                    cfg.core_day_end,
                )
                continue

            key = (day, p.period)
            if key in seen:
                issues.append(
                    {
                        "type": "DUPLICATE_SLOT",
                        "day": day.value,
                        "period": p.period,
                        "explanation": f"{day.label} P{p.period} is defined more than once.",
                    }
                )
                continue
            seen.add(key)
            usable_by_day[day] += 1
            catalog.append(
                TimeSlot(
                    day=day,
                    period=p.period,
                    start_time=p.start_time,
                    end_time=p.end_time,
                    session=_session_for(p, cfg),
                )
            )

    if not usable_by_day:
        issues.append(
            {
                "type": "NO_TEACHING_DAYS",
                "explanation": "No teaching day is configured. Add period definitions for Monday-Friday.",
            }
        )
    for day, count in sorted(usable_by_day.items(), key=lambda kv: kv[0].index):
        if count < cfg.min_periods_per_day:
            issues.append(
                {
                    "type": "INSUFFICIENT_PERIODS",
                    "day": day.value,
                    "usable_periods": count,
                    "required_periods": cfg.min_periods_per_day,
                    "explanation": (
                        f"{day.label} has {count} usable teaching periods; "
                        f"at least {cfg.min_periods_per_day} are required."
                    ),
                }
            )

    if issues:
        raise ConfigurationError(
            f"School configuration is not schedulable ({len(issues)} problem(s)).",
            issues=issues,
        )

    catalog.sort(key=lambda s: s.sort_key)
    logger.info("Built slot catalog: %d slots across %d days", len(catalog), len(usable_by_day))
    return catalog


def index_catalog(catalog: Iterable[TimeSlot]) -> dict[Day, dict[int, TimeSlot]]:
    """day -> period -> slot lookup."""

    by_day: dict[Day, dict[int, TimeSlot]] = defaultdict(dict)
    for slot in catalog:
        by_day[slot.day][slot.period] = slot
    return dict(by_day)
