"""Slot packing: column positions of the placements inside one slot.

Packing is a pure data transform and never fails. Persisting the resulting
positions is the caller's job.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from pydantic import BaseModel, Field

from shift_board.models.engine_config import EngineConfig
from shift_board.models.schedule import TaskPlacement


class DropPlan(BaseModel):
    """Outcome of dropping a placement onto a column of a slot."""

    can_drop: bool
    placements: list[TaskPlacement] = Field(default_factory=list)
    reason: str = ""


def left_pack(placements: Iterable[TaskPlacement]) -> list[TaskPlacement]:
    """Remove gaps, keeping each placement's hours and relative order.

    Placements are ordered by ``(column_start, assignment_id)`` and laid out
    from column 0, each starting where the previous one ends.
    """
    ordered = sorted(placements, key=lambda p: (p.column_start, p.assignment_id))
    return _lay_out(ordered)


def remove_placement(
    placements: Sequence[TaskPlacement], assignment_id: int
) -> list[TaskPlacement]:
    """Placements left after deleting ``assignment_id``, left-packed."""
    remaining = [p for p in placements if p.assignment_id != assignment_id]
    if not remaining:
        return []
    return left_pack(remaining)


def pack_source_after_move(
    source: Sequence[TaskPlacement], moved_id: int
) -> list[TaskPlacement]:
    """Repack the slot a placement was moved out of."""
    return remove_placement(source, moved_id)


def place_at_destination(
    destination: Sequence[TaskPlacement],
    placement: TaskPlacement,
    column_start: int,
    hours: float,
) -> list[TaskPlacement]:
    """Put ``placement`` into a slot at an explicit position.

    The drop position is authoritative: the destination is not repacked.
    """
    moved = placement.model_copy(update={"column_start": column_start, "hours": hours})
    kept = [p for p in destination if p.assignment_id != placement.assignment_id]
    return kept + [moved]


def changed_positions(
    before: Sequence[TaskPlacement], after: Sequence[TaskPlacement]
) -> list[TaskPlacement]:
    """Placements of ``after`` whose column or hours differ from ``before``."""
    previous = {p.assignment_id: (p.column_start, p.hours) for p in before}
    return [
        p for p in after if previous.get(p.assignment_id) != (p.column_start, p.hours)
    ]


def rearrange_for_drop(
    existing: Sequence[TaskPlacement],
    dropped: TaskPlacement,
    target_column: int,
    config: EngineConfig | None = None,
) -> DropPlan:
    """Insert ``dropped`` at ``target_column`` and lay the slot out again.

    Other placements keep their order. When the hours no longer fit the slot,
    the largest placements are shrunk first, never below ``min_task_hours``.
    """
    cfg = config or EngineConfig()
    if len(existing) > cfg.max_tasks_per_slot - 1:
        return DropPlan(
            can_drop=False,
            reason=f"Slot is full ({cfg.max_tasks_per_slot} tasks maximum)",
        )

    others = sorted(
        (p for p in existing if p.assignment_id != dropped.assignment_id),
        key=lambda p: (p.column_start, p.assignment_id),
    )
    if len(others) + 1 > cfg.max_tasks_per_slot:
        return DropPlan(
            can_drop=False,
            reason=f"Cannot fit {len(others) + 1} tasks in {cfg.slot_columns} columns",
        )

    insert_at = 0
    if target_column > 0:
        for i, p in enumerate(others):
            if target_column > p.column_start:
                insert_at = i + 1
            else:
                break

    ordered = others[:insert_at] + [dropped] + others[insert_at:]
    hours = _compress(ordered, cfg.slot_capacity_hours, cfg.min_task_hours)
    resized = [p.model_copy(update={"hours": hours[p.assignment_id]}) for p in ordered]
    return DropPlan(can_drop=True, placements=_lay_out(resized))


def _compress(
    ordered: Sequence[TaskPlacement], capacity: float, floor: float
) -> dict[int, float]:
    hours = {p.assignment_id: p.hours for p in ordered}
    excess = sum(hours.values()) - capacity
    if excess <= 0:
        return hours

    for p in sorted(ordered, key=lambda p: -p.hours):
        if excess <= 0:
            break
        current = hours[p.assignment_id]
        if current > floor:
            cut = min(current - floor, excess)
            hours[p.assignment_id] = current - cut
            excess -= cut
    return hours


def _lay_out(ordered: Iterable[TaskPlacement]) -> list[TaskPlacement]:
    offset = 0
    packed: list[TaskPlacement] = []
    for p in ordered:
        packed.append(p if p.column_start == offset else p.model_copy(update={"column_start": offset}))
        offset += p.width
    return packed
