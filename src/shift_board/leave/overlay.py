"""Leave/holiday overlay onto an assignment grid.

Precedence per cell: holiday > full-day leave > half-day leave > plain cell.
Holidays and full-day leave hide every placement of the cell. Half-day leave
only adds a marker to its slot unless the destructive variant is requested.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date

from pydantic import BaseModel, Field

from shift_board.models.calendar import SlotKind
from shift_board.models.employee import Employee
from shift_board.models.leave import HolidayRecord, LeaveRecord
from shift_board.models.schedule import CalendarGrid, DayAssignment


class BlockedEmployee(BaseModel):
    """Individual leave present on one date for one employee."""

    employee_id: int
    employee_name: str
    leaves: list[LeaveRecord] = Field(default_factory=list)


class _OverlayIndex:
    """Records indexed by key. A later record for the same key replaces an earlier one."""

    def __init__(self, leaves: Iterable[LeaveRecord], holidays: Iterable[HolidayRecord]) -> None:
        self.holidays: dict[date, HolidayRecord] = {h.date: h for h in holidays}
        self.full_day: dict[tuple[int, date], LeaveRecord] = {}
        self.half_day: dict[tuple[int, date, SlotKind], LeaveRecord] = {}
        for record in leaves:
            if record.is_full_day:
                self.full_day[(record.employee_id, record.date)] = record
            else:
                self.half_day[(record.employee_id, record.date, record.slot)] = record

    def __bool__(self) -> bool:
        return bool(self.holidays or self.full_day or self.half_day)


def apply_overlay(
    grid: CalendarGrid,
    leaves: Iterable[LeaveRecord] = (),
    holidays: Iterable[HolidayRecord] = (),
    destructive: bool = False,
) -> CalendarGrid:
    """Merge leave and holiday records onto ``grid``.

    Args:
        grid: Base assignment grid. Not modified.
        leaves: Individual leave records.
        holidays: Holiday records, applied to every employee.
        destructive: Also drop the placements of half-day leave slots.

    Returns:
        A new grid.
    """
    index = _OverlayIndex(leaves, holidays)
    if not index:
        return grid

    def _merge(employee: Employee, cell: DayAssignment) -> DayAssignment:
        return _overlay_cell(cell, index, destructive)

    return grid.map_cells(_merge)


def blocked_employees(grid: CalendarGrid, d: date) -> list[BlockedEmployee]:
    """Employees with individual leave on ``d``. Holiday cells are skipped."""
    result: list[BlockedEmployee] = []
    for row in grid.employees:
        cell = row.day(d)
        if cell is None or cell.is_holiday:
            continue
        found: list[LeaveRecord] = []
        if cell.leave is not None:
            found.append(cell.leave)
        found.extend(s.leave for s in cell.slots if s.leave is not None)
        if found:
            result.append(
                BlockedEmployee(
                    employee_id=row.employee_id,
                    employee_name=row.employee.name,
                    leaves=found,
                )
            )
    return result


def _overlay_cell(cell: DayAssignment, index: _OverlayIndex, destructive: bool) -> DayAssignment:
    holiday = index.holidays.get(cell.date)
    if holiday is not None:
        return cell.model_copy(
            update={
                "is_holiday": True,
                "holiday_name": holiday.name,
                "leave": None,
                "morning_slot": cell.morning_slot.cleared(),
                "afternoon_slot": cell.afternoon_slot.cleared(),
            }
        )

    full = index.full_day.get((cell.employee_id, cell.date))
    if full is not None:
        return cell.model_copy(
            update={
                "leave": full,
                "morning_slot": cell.morning_slot.cleared(),
                "afternoon_slot": cell.afternoon_slot.cleared(),
            }
        )

    for kind in SlotKind:
        half = index.half_day.get((cell.employee_id, cell.date, kind))
        if half is None:
            continue
        slot = cell.slot(kind)
        update: dict[str, object] = {"leave": half}
        if destructive:
            update["placements"] = []
        cell = cell.with_slot(kind, slot.model_copy(update=update))
    return cell
