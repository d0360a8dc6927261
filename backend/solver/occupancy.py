from __future__ import annotations

from collections import defaultdict
from typing import Iterable, Iterator

from solver.types import Day, Placement, SlotKey


def iter_runs(periods: Iterable[int]) -> Iterator[tuple[int, int]]:
    """Yield (first_period, length) for each run of strictly sequential period numbers."""

    ordered = sorted(set(periods))
    if not ordered:
        return
    start = prev = ordered[0]
    for p in ordered[1:]:
        if p == prev + 1:
            prev = p
            continue
        yield start, prev - start + 1
        start = prev = p
    yield start, prev - start + 1


def run_length_with(occupied: Iterable[int], new_periods: Iterable[int]) -> int:
    """Length of the sequential run that would contain ``new_periods`` once added to ``occupied``.

    ``new_periods`` must itself be contiguous (a single period or one block).
    """

    new = sorted(set(new_periods))
    if not new:
        return 0
    merged = set(occupied) | set(new)
    lo, hi = new[0], new[-1]
    while lo - 1 in merged:
        lo -= 1
    while hi + 1 in merged:
        hi += 1
    return hi - lo + 1


class Occupancy:
    """Slots already taken during one generation run, per educator and per class."""

    def __init__(self) -> None:
        self.educator_slots: dict[str, set[SlotKey]] = defaultdict(set)
        self.class_slots: dict[str, set[SlotKey]] = defaultdict(set)
        # (educator_id, class_id, day) -> periods taught that day
        self._pair_day_counts: dict[tuple[str, str, Day], int] = defaultdict(int)

    @classmethod
    def from_placements(cls, placements: Iterable[Placement]) -> "Occupancy":
        occ = cls()
        for p in placements:
            occ.occupy(p.educator_id, p.class_id, [p.key])
        return occ

    def copy(self) -> "Occupancy":
        clone = Occupancy()
        for educator_id, keys in self.educator_slots.items():
            clone.educator_slots[educator_id] = set(keys)
        for class_id, keys in self.class_slots.items():
            clone.class_slots[class_id] = set(keys)
        clone._pair_day_counts.update(self._pair_day_counts)
        return clone

    def is_educator_free(self, educator_id: str, key: SlotKey) -> bool:
        return key not in self.educator_slots.get(educator_id, ())

    def is_class_free(self, class_id: str, key: SlotKey) -> bool:
        return key not in self.class_slots.get(class_id, ())

    def educator_periods(self, educator_id: str, day: Day) -> set[int]:
        return {period for d, period in self.educator_slots.get(educator_id, ()) if d == day}

    def periods_for_pair(self, educator_id: str, class_id: str, day: Day) -> int:
        return self._pair_day_counts.get((educator_id, class_id, day), 0)

    def occupy(self, educator_id: str, class_id: str, keys: Iterable[SlotKey]) -> None:
        for key in keys:
            self.educator_slots[educator_id].add(key)
            self.class_slots[class_id].add(key)
            self._pair_day_counts[(educator_id, class_id, key[0])] += 1

    def educator_load(self, educator_id: str) -> int:
        return len(self.educator_slots.get(educator_id, ()))
