"""Slot hours arithmetic."""

from __future__ import annotations

from pydantic import BaseModel

from shift_board.models.schedule import TimeSlot


class SlotHoursSummary(BaseModel):
    total_tasks: int
    total_hours: float
    capacity_hours: float
    available_hours: float
    is_overbooked: bool


def equal_share_hours(task_count: int, capacity: float = 4.0) -> float:
    """Capacity split equally between ``task_count`` tasks, to 2 decimals."""
    if task_count <= 0:
        return 0.0
    return round(capacity / task_count, 2)


def format_hours(hours: float) -> str:
    """``4`` -> ``"4h"``, ``2.5`` -> ``"2.5h"``, ``4/3`` -> ``"1.33h"``."""
    if hours == int(hours):
        return f"{int(hours)}h"
    return f"{round(hours, 2):g}h"


def slot_hours_summary(slot: TimeSlot) -> SlotHoursSummary:
    return SlotHoursSummary(
        total_tasks=len(slot.placements),
        total_hours=round(slot.total_hours, 2),
        capacity_hours=slot.capacity_hours,
        available_hours=round(slot.available_capacity, 2),
        is_overbooked=slot.is_overbooked,
    )
