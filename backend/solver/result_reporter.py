from __future__ import annotations

from collections import Counter
from typing import Any, Iterable

from schemas.generation import ConflictOut, GenerationError, GenerationResponse, PlacementOut
from solver.capacity_analyzer import summarize_diagnostics
from solver.errors import SchedulingError
from solver.types import ConflictKind, ConflictRecord, LessonKind, LessonRequirement, Placement


class GenerationResult:
    def __init__(
        self,
        *,
        success: bool,
        placements: list[Placement],
        conflicts: list[ConflictRecord],
        stats: dict[str, Any] | None = None,
        diagnostics: list[dict[str, Any]] | None = None,
        reason_summary: str | None = None,
        warnings: list[str] | None = None,
        error: dict[str, Any] | None = None,
    ):
        self.success = success
        self.placements = placements
        self.conflicts = conflicts
        self.stats = stats or {}
        self.diagnostics = diagnostics or []
        self.reason_summary = reason_summary
        self.warnings = warnings or []
        self.error = error

    @classmethod
    def failed(cls, exc: SchedulingError) -> "GenerationResult":
        """Result for a run aborted before placement (bad configuration or assignments)."""

        return cls(
            success=False,
            placements=[],
            conflicts=[],
            reason_summary=exc.message,
            error=exc.to_payload(),
        )

    @property
    def status(self) -> str:
        if self.error is not None:
            return "FAILED_VALIDATION"
        return "SUCCESS" if self.success else "PARTIAL"

    @property
    def unschedulable(self) -> list[ConflictRecord]:
        return [c for c in self.conflicts if c.kind == ConflictKind.UNSCHEDULABLE]

    def conflict_lines(self) -> list[str]:
        lines = [c.line() for c in self.conflicts]
        if self.error is not None:
            lines.insert(0, f"{self.error['code']}: {self.error['message']}")
            lines.extend(f"  - {issue.get('explanation', issue)}" for issue in self.error.get("issues", []))
        return lines

    def to_response(self) -> GenerationResponse:
        return GenerationResponse(
            success=self.success,
            status=self.status,
            placements=[_placement_out(p) for p in self.placements],
            conflicts=[_conflict_out(c) for c in self.conflicts],
            stats=self.stats,
            reason_summary=self.reason_summary,
            diagnostics=self.diagnostics,
            warnings=self.warnings,
            error=GenerationError(**self.error) if self.error is not None else None,
        )


def _placement_out(p: Placement) -> PlacementOut:
    return PlacementOut(
        educator_id=p.educator_id,
        class_id=p.class_id,
        target_kind=p.target.kind.value,
        target_id=p.target.id,
        lesson_kind=p.lesson_kind.value,
        day=p.day.value,
        period=p.period,
        start_time=p.slot.start_time.strftime("%H:%M"),
        end_time=p.slot.end_time.strftime("%H:%M"),
        session=p.slot.session.value,
        block_id=p.block_id,
        block_size=p.block_size,
        block_offset=p.block_offset,
    )


def _conflict_out(c: ConflictRecord) -> ConflictOut:
    return ConflictOut(
        conflict_type=c.kind.value,
        message=c.message,
        educator_id=c.educator_id,
        class_id=c.class_id,
        day=c.day.value if c.day is not None else None,
        period=c.period,
        details=dict(c.details or {}),
    )


def build_stats(
    placements: list[Placement],
    conflicts: list[ConflictRecord],
    requirements: list[LessonRequirement] | None = None,
) -> dict[str, Any]:
    by_kind = {kind.value: 0 for kind in LessonKind}
    by_educator: Counter[str] = Counter()
    for p in placements:
        by_kind[p.lesson_kind.value] += 1
        by_educator[p.educator_id] += 1

    per_educator = list(by_educator.values())
    stats: dict[str, Any] = {
        "placed_periods": len(placements),
        "placed_lessons": len({(p.educator_id, p.class_id, p.block_id) for p in placements}),
        "unscheduled_lessons": sum(1 for c in conflicts if c.kind == ConflictKind.UNSCHEDULABLE),
        "by_kind": by_kind,
        "by_educator": dict(sorted(by_educator.items())),
        "average_periods_per_educator": round(sum(per_educator) / len(per_educator), 2) if per_educator else 0,
        "max_periods_per_educator": max(per_educator) if per_educator else 0,
        "conflicts_by_kind": dict(sorted(Counter(c.kind.value for c in conflicts).items())),
    }

    if requirements is not None:
        by_level: Counter[str] = Counter(r.level for r in requirements)
        stats["required_lessons"] = len(requirements)
        stats["required_periods"] = sum(r.block_size for r in requirements)
        stats["by_level"] = dict(sorted(by_level.items()))

    return stats


def summarize(
    placements: Iterable[Placement],
    conflicts: Iterable[ConflictRecord],
    *,
    requirements: Iterable[LessonRequirement] | None = None,
    diagnostics: list[dict[str, Any]] | None = None,
    warnings: list[str] | None = None,
) -> GenerationResult:
    """Fold a run's output into a GenerationResult.

    ``success`` holds only when there are no conflicts of any kind and, if the
    requirements are supplied, every one of them produced a placement.
    """

    placed = list(placements)
    found = list(conflicts)
    reqs = list(requirements) if requirements is not None else None

    success = not found
    if reqs is not None:
        placed_blocks = {(p.educator_id, p.class_id, p.block_id) for p in placed}
        missing = [r for r in reqs if (r.educator_id, r.class_id, r.block_id) not in placed_blocks]
        success = success and not missing

    if success:
        reason = f"All {len({p.block_id for p in placed})} lessons placed without conflicts."
    elif diagnostics:
        reason = summarize_diagnostics(diagnostics)
    else:
        unscheduled = sum(1 for c in found if c.kind == ConflictKind.UNSCHEDULABLE)
        reason = f"{len(found)} conflict(s), {unscheduled} lesson(s) could not be scheduled."

    return GenerationResult(
        success=success,
        placements=placed,
        conflicts=found,
        stats=build_stats(placed, found, reqs),
        diagnostics=list(diagnostics or []),
        reason_summary=reason,
        warnings=list(warnings or []),
    )
