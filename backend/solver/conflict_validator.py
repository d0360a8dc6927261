from __future__ import annotations

from collections import defaultdict
from typing import Iterable

from core.config import Settings, settings
from solver.occupancy import iter_runs
from solver.types import ConflictKind, ConflictRecord, Day, Placement


def _entry(p: Placement) -> dict[str, object]:
    return {
        "educator_id": p.educator_id,
        "class_id": p.class_id,
        "target_kind": p.target.kind.value,
        "target_id": p.target.id,
        "block_id": p.block_id,
    }


def _slot_order(key: tuple[str, Day, int]) -> tuple[str, int, int]:
    owner, day, period = key
    return (owner, day.index, period)


def check_double_booking(placements: list[Placement]) -> list[ConflictRecord]:
    conflicts: list[ConflictRecord] = []

    by_educator: dict[tuple[str, Day, int], list[Placement]] = defaultdict(list)
    by_class: dict[tuple[str, Day, int], list[Placement]] = defaultdict(list)
    for p in placements:
        by_educator[(p.educator_id, p.day, p.period)].append(p)
        by_class[(p.class_id, p.day, p.period)].append(p)

    for key in sorted(by_educator, key=_slot_order):
        group = by_educator[key]
        if len(group) < 2:
            continue
        educator_id, day, period = key
        conflicts.append(
            ConflictRecord(
                kind=ConflictKind.DOUBLE_BOOKING,
                message=f"Educator {educator_id} has {len(group)} lessons on {day.label} P{period}",
                educator_id=educator_id,
                day=day,
                period=period,
                details={"scope": "educator", "entries": [_entry(p) for p in group]},
            )
        )

    for key in sorted(by_class, key=_slot_order):
        group = by_class[key]
        if len(group) < 2:
            continue
        class_id, day, period = key
        conflicts.append(
            ConflictRecord(
                kind=ConflictKind.DOUBLE_BOOKING,
                message=f"Class {class_id} has {len(group)} lessons on {day.label} P{period}",
                class_id=class_id,
                day=day,
                period=period,
                details={"scope": "class", "entries": [_entry(p) for p in group]},
            )
        )

    return conflicts


def check_consecutive(placements: list[Placement], *, max_consecutive: int) -> list[ConflictRecord]:
    periods_by_educator_day: dict[tuple[str, Day], set[int]] = defaultdict(set)
    for p in placements:
        periods_by_educator_day[(p.educator_id, p.day)].add(p.period)

    conflicts: list[ConflictRecord] = []
    for educator_id, day in sorted(periods_by_educator_day, key=lambda k: (k[0], k[1].index)):
        for start, length in iter_runs(periods_by_educator_day[(educator_id, day)]):
            if length <= max_consecutive:
                continue
            conflicts.append(
                ConflictRecord(
                    kind=ConflictKind.TOO_MANY_CONSECUTIVE,
                    message=(
                        f"Educator {educator_id} teaches {length} consecutive periods on {day.label} "
                        f"(P{start}-P{start + length - 1}); max is {max_consecutive}"
                    ),
                    educator_id=educator_id,
                    day=day,
                    period=start,
                    details={"run_start": start, "run_length": length, "max_consecutive": max_consecutive},
                )
            )
    return conflicts


def check_block_boundaries(placements: list[Placement], *, last_period: int) -> list[ConflictRecord]:
    members: dict[tuple[str, str, str], list[Placement]] = defaultdict(list)
    for p in placements:
        if p.block_size > 1:
            members[(p.educator_id, p.class_id, p.block_id)].append(p)

    conflicts: list[ConflictRecord] = []
    for key in sorted(members):
        group = members[key]
        origins = [p for p in group if p.is_block_origin]
        for origin in origins:
            expected = list(range(origin.period, origin.period + origin.block_size))
            actual = sorted(p.period for p in group if p.day == origin.day)
            off_day = sorted({p.day.value for p in group if p.day != origin.day})

            problems: list[str] = []
            if expected[-1] > last_period:
                problems.append(f"ends at P{expected[-1]}, past P{last_period}")
            if off_day:
                problems.append(f"spills onto {', '.join(off_day)}")
            if actual != expected:
                problems.append(f"covers P{actual} instead of P{expected}")
            if not problems:
                continue

            conflicts.append(
                ConflictRecord(
                    kind=ConflictKind.BLOCK_BOUNDARY_EXCEEDED,
                    message=(
                        f"Block {origin.block_id} of {origin.target.id} for {origin.educator_id} in "
                        f"{origin.class_id} starting {origin.day.label} P{origin.period}: {'; '.join(problems)}"
                    ),
                    educator_id=origin.educator_id,
                    class_id=origin.class_id,
                    day=origin.day,
                    period=origin.period,
                    details={
                        "block_id": origin.block_id,
                        "block_size": origin.block_size,
                        "expected_periods": expected,
                        "actual_periods": actual,
                        "other_days": off_day,
                    },
                )
            )
    return conflicts


def validate(placements: Iterable[Placement], *, config: Settings | None = None) -> list[ConflictRecord]:
    """Integrity pass over committed placements.

    Pure: reads the placements only, so it also serves to re-check persisted
    timetables after manual edits. Conflicts come back grouped by kind
    (double booking, consecutive runs, block boundaries) in a stable order.
    """

    cfg = config or settings
    rows = list(placements)
    conflicts: list[ConflictRecord] = []
    conflicts.extend(check_double_booking(rows))
    conflicts.extend(check_consecutive(rows, max_consecutive=cfg.max_consecutive_periods))
    conflicts.extend(check_block_boundaries(rows, last_period=cfg.last_teaching_period))
    return conflicts
