"""Conflict detection ahead of a leave or holiday write."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date

from shift_board.models.calendar import SlotKind
from shift_board.models.conflict import ConflictRecord, ConflictReport
from shift_board.models.leave import HolidayRecord, LeaveDuration
from shift_board.models.schedule import CalendarGrid


def implicated_slots(duration: LeaveDuration, slot: SlotKind | None = None) -> tuple[SlotKind, ...]:
    """Slots touched by a leave of ``duration``.

    Raises:
        ValueError: If a half-day duration is given without a slot.
    """
    if duration == LeaveDuration.FULL_DAY:
        return (SlotKind.MORNING, SlotKind.AFTERNOON)
    if slot is None:
        raise ValueError("Half-day conflict detection requires a slot")
    return (slot,)


def detect_conflicts(
    grid: CalendarGrid,
    dates: Iterable[date],
    employee_ids: Iterable[int],
    duration: LeaveDuration = LeaveDuration.FULL_DAY,
    slot: SlotKind | None = None,
) -> ConflictReport:
    """Collect the placements a leave write over these cells would destroy.

    Pairs without a cell on the grid contribute nothing.
    """
    kinds = implicated_slots(duration, slot)
    wanted_dates = list(dict.fromkeys(dates))
    wanted_ids = set(employee_ids)
    conflicts: list[ConflictRecord] = []

    for row in grid.employees:
        if row.employee_id not in wanted_ids:
            continue
        for d in wanted_dates:
            cell = row.day(d)
            if cell is None:
                continue
            for kind in kinds:
                for placement in cell.slot(kind).placements:
                    conflicts.append(
                        ConflictRecord(
                            employee_id=row.employee_id,
                            employee_name=row.employee.name,
                            date=d,
                            slot_kind=kind,
                            task_title=placement.title,
                            assignment_id=placement.assignment_id,
                        )
                    )
    return ConflictReport(conflicts=conflicts)


def detect_holiday_conflicts(grid: CalendarGrid, holiday: HolidayRecord) -> ConflictReport:
    """Every placement of every employee on the holiday's date."""
    return detect_conflicts(
        grid,
        [holiday.date],
        [row.employee_id for row in grid.employees],
        LeaveDuration.FULL_DAY,
    )
