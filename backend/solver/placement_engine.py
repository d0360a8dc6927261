from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping

from core.config import Settings, settings
from schemas.assignment import EducatorAvailability
from solver.occupancy import Occupancy, run_length_with
from solver.slot_catalog import index_catalog
from solver.types import (
    ConflictKind,
    ConflictRecord,
    Day,
    LessonRequirement,
    Placement,
    PreferredTime,
    Session,
    TimeSlot,
)


logger = logging.getLogger(__name__)


# Candidate rejection reasons, tallied into UNSCHEDULABLE details.
REJECT_BOUNDARY = "block_crosses_last_period"
REJECT_MISSING_PERIOD = "period_not_in_catalog"
REJECT_SESSION = "outside_preferred_session"
REJECT_UNAVAILABLE = "educator_unavailable"
REJECT_EDUCATOR_BUSY = "educator_busy"
REJECT_CLASS_BUSY = "class_busy"
REJECT_CONSECUTIVE = "consecutive_limit"
REJECT_DAILY_CAP = "daily_class_cap"


@dataclass(frozen=True)
class Unavailability:
    days: frozenset[Day] = field(default_factory=frozenset)
    periods: frozenset[int] = field(default_factory=frozenset)


def _normalize_availability(
    availability: Mapping[str, Unavailability] | Iterable[EducatorAvailability | dict[str, Any]] | None,
) -> dict[str, Unavailability]:
    if not availability:
        return {}
    if isinstance(availability, Mapping):
        return dict(availability)
    out: dict[str, Unavailability] = {}
    for row in availability:
        if not isinstance(row, EducatorAvailability):
            row = EducatorAvailability.model_validate(row)
        prev = out.get(row.educator_id, Unavailability())
        out[row.educator_id] = Unavailability(
            days=prev.days | frozenset(row.unavailable_days),
            periods=prev.periods | frozenset(int(p) for p in row.unavailable_periods),
        )
    return out


class GreedyPlacementEngine:
    """First-fit placement of lesson requirements into a slot catalog.

    Requirements are taken in the order given (the expander's priority order). Each
    one claims the first (day, period) run, scanning the catalog ascending, where the
    educator and class are both free and the educator's consecutive-period limit still
    holds. No backtracking: a requirement that fits nowhere becomes an UNSCHEDULABLE
    conflict and the run moves on.

    All mutable state lives on the instance, so one engine serves exactly one run.
    """

    def __init__(
        self,
        catalog: Iterable[TimeSlot],
        *,
        occupancy: Occupancy | None = None,
        availability: Mapping[str, Unavailability] | Iterable[EducatorAvailability | dict[str, Any]] | None = None,
        config: Settings | None = None,
    ):
        cfg = config or settings
        self.catalog: list[TimeSlot] = sorted(catalog, key=lambda s: s.sort_key)
        self.slots_by_day = index_catalog(self.catalog)
        self.days: list[Day] = sorted(self.slots_by_day, key=lambda d: d.index)
        self.occupancy = occupancy.copy() if occupancy is not None else Occupancy()
        self.availability = _normalize_availability(availability)

        self.last_period = cfg.last_teaching_period
        self.max_consecutive = cfg.max_consecutive_periods
        self.morning_fallback = cfg.morning_fallback
        self.daily_cap = cfg.max_daily_periods_per_class

        self.placements: list[Placement] = []
        self.conflicts: list[ConflictRecord] = []

    def run(self, requirements: Iterable[LessonRequirement]) -> tuple[list[Placement], list[ConflictRecord]]:
        reqs = list(requirements)
        logger.info("Placing %d lessons into %d slots", len(reqs), len(self.catalog))
        for req in reqs:
            self.place(req)
        logger.info(
            "Placement finished: %d periods placed, %d lessons unschedulable",
            len(self.placements),
            len(self.conflicts),
        )
        return list(self.placements), list(self.conflicts)

    def place(self, req: LessonRequirement) -> list[Placement] | None:
        rejections: Counter[str] = Counter()

        passes: list[set[Session] | None] = [None]
        if req.preferred_time == PreferredTime.MORNING:
            passes = [{Session.MORNING}]
            if self.morning_fallback:
                passes.append(None)

        for sessions in passes:
            found = self._first_fit(req, sessions, rejections)
            if found is None:
                continue
            day, periods = found
            committed = self._commit(req, day, periods)
            logger.debug(
                "Placed %s for %s in %s at %s P%d-P%d",
                req.describe(),
                req.educator_id,
                req.class_id,
                day.value,
                periods[0],
                periods[-1],
            )
            return committed

        self.conflicts.append(self._unschedulable(req, rejections))
        return None

    def _first_fit(
        self,
        req: LessonRequirement,
        sessions: set[Session] | None,
        rejections: Counter[str],
    ) -> tuple[Day, list[int]] | None:
        for day in self.days:
            for start in sorted(self.slots_by_day[day]):
                periods = list(range(start, start + req.block_size))
                reason = self._reject_reason(req, day, periods, sessions)
                if reason is None:
                    return day, periods
                rejections[reason] += 1
        return None

    def _reject_reason(
        self,
        req: LessonRequirement,
        day: Day,
        periods: list[int],
        sessions: set[Session] | None,
    ) -> str | None:
        if periods[-1] > self.last_period:
            return REJECT_BOUNDARY

        day_slots = self.slots_by_day[day]
        for period in periods:
            slot = day_slots.get(period)
            if slot is None:
                return REJECT_MISSING_PERIOD
            if sessions is not None and slot.session not in sessions:
                return REJECT_SESSION

        blocked = self.availability.get(req.educator_id)
        if blocked is not None:
            if day in blocked.days or any(p in blocked.periods for p in periods):
                return REJECT_UNAVAILABLE

        occ = self.occupancy
        for period in periods:
            if not occ.is_educator_free(req.educator_id, (day, period)):
                return REJECT_EDUCATOR_BUSY
            if not occ.is_class_free(req.class_id, (day, period)):
                return REJECT_CLASS_BUSY

        if run_length_with(occ.educator_periods(req.educator_id, day), periods) > self.max_consecutive:
            return REJECT_CONSECUTIVE

        if self.daily_cap is not None:
            if occ.periods_for_pair(req.educator_id, req.class_id, day) + len(periods) > self.daily_cap:
                return REJECT_DAILY_CAP

        return None

    def _commit(self, req: LessonRequirement, day: Day, periods: list[int]) -> list[Placement]:
        day_slots = self.slots_by_day[day]
        group = [
            Placement(
                educator_id=req.educator_id,
                class_id=req.class_id,
                target=req.target,
                slot=day_slots[period],
                lesson_kind=req.lesson_kind,
                block_id=req.block_id,
                block_size=req.block_size,
                block_offset=offset,
            )
            for offset, period in enumerate(periods)
        ]
        self.occupancy.occupy(req.educator_id, req.class_id, [(day, p) for p in periods])
        self.placements.extend(group)
        return group

    def _unschedulable(self, req: LessonRequirement, rejections: Counter[str]) -> ConflictRecord:
        subject = req.target_name or req.target.id
        educator = req.educator_name or req.educator_id
        klass = req.class_name or req.class_id
        if req.block_size > 1:
            need = f"{req.block_size} consecutive periods"
        else:
            need = "1 period"
        if req.preferred_time == PreferredTime.MORNING and not self.morning_fallback:
            need += " in the morning"

        logger.warning(
            "Unschedulable: %s for %s in %s (%s); rejections=%s",
            req.describe(),
            educator,
            klass,
            need,
            dict(rejections),
        )
        return ConflictRecord(
            kind=ConflictKind.UNSCHEDULABLE,
            message=(
                f"Could not schedule {subject} lesson {req.lesson_index}/{req.total_lessons} "
                f"({need}) for {educator} in {klass}"
            ),
            educator_id=req.educator_id,
            class_id=req.class_id,
            details={
                "block_id": req.block_id,
                "target_kind": req.target.kind.value,
                "target_id": req.target.id,
                "lesson_index": req.lesson_index,
                "total_lessons": req.total_lessons,
                "lesson_kind": req.lesson_kind.value,
                "block_size": req.block_size,
                "preferred_time": req.preferred_time.value,
                "module_category": req.module_category.value if req.module_category else None,
                "rejections": dict(sorted(rejections.items())),
            },
        )


def schedule(
    requirements: Iterable[LessonRequirement],
    catalog: Iterable[TimeSlot],
    *,
    occupancy: Occupancy | None = None,
    availability: Mapping[str, Unavailability] | Iterable[EducatorAvailability | dict[str, Any]] | None = None,
    config: Settings | None = None,
) -> tuple[list[Placement], list[ConflictRecord]]:
    """Place ``requirements`` (already in priority order) into ``catalog``.

    ``occupancy`` seeds slots already taken outside this run; it is copied, not mutated.
    Returns (placements, UNSCHEDULABLE conflicts).
    """

    engine = GreedyPlacementEngine(catalog, occupancy=occupancy, availability=availability, config=config)
    return engine.run(requirements)
