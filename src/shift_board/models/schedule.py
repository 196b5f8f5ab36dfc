"""Schedule-related data models."""

from __future__ import annotations

import math
from collections.abc import Callable, Iterable, Iterator
from datetime import date
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from shift_board.models.calendar import SlotKind, ViewSpan
from shift_board.models.employee import Employee
from shift_board.models.leave import LeaveRecord


class TaskStatus(str, Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    DONE = "done"
    ON_HOLD = "on_hold"
    BLOCKED = "blocked"


class TaskPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class TaskPlacement(BaseModel):
    """A task assigned into a slot.

    ``assignment_id`` is the identity of the placement and survives moves.
    Descriptive fields are carried as opaque payload.
    """

    model_config = ConfigDict(frozen=True)

    assignment_id: int
    task_id: int
    column_start: int = Field(default=0, ge=0, description="Start column in the slot grid")
    hours: float = Field(default=1.0, gt=0.0)
    title: str = ""
    project: str = ""
    priority: TaskPriority = TaskPriority.MEDIUM
    status: TaskStatus = TaskStatus.NOT_STARTED
    notes: str | None = None

    @property
    def width(self) -> int:
        """Number of grid columns the placement occupies."""
        return max(1, math.ceil(self.hours))

    @property
    def column_end(self) -> int:
        return self.column_start + self.width


class TimeSlot(BaseModel):
    """One half-day slot: ordered placements and an optional half-day leave marker."""

    slot_kind: SlotKind
    placements: list[TaskPlacement] = Field(default_factory=list)
    capacity_hours: float = Field(default=4.0, gt=0.0)
    leave: LeaveRecord | None = None

    @property
    def total_hours(self) -> float:
        return sum(p.hours for p in self.placements)

    @property
    def is_overbooked(self) -> bool:
        return self.total_hours > self.capacity_hours

    @property
    def available_capacity(self) -> float:
        return max(0.0, self.capacity_hours - self.total_hours)

    @property
    def is_empty(self) -> bool:
        return not self.placements

    def with_placements(self, placements: Iterable[TaskPlacement]) -> TimeSlot:
        return self.model_copy(update={"placements": list(placements)})

    def cleared(self) -> TimeSlot:
        """Slot with no placements and no leave marker."""
        return self.model_copy(update={"placements": [], "leave": None})


class DayAssignment(BaseModel):
    """Cell of the board, keyed by (employee_id, date).

    A day-level leave or holiday implies both slots hold no placements and no
    slot-level leave.
    """

    employee_id: int
    date: date
    is_holiday: bool = False
    holiday_name: str | None = None
    leave: LeaveRecord | None = None
    morning_slot: TimeSlot = Field(default_factory=lambda: TimeSlot(slot_kind=SlotKind.MORNING))
    afternoon_slot: TimeSlot = Field(
        default_factory=lambda: TimeSlot(slot_kind=SlotKind.AFTERNOON)
    )

    @property
    def slots(self) -> tuple[TimeSlot, TimeSlot]:
        return (self.morning_slot, self.afternoon_slot)

    @property
    def total_assignments(self) -> int:
        return len(self.morning_slot.placements) + len(self.afternoon_slot.placements)

    @property
    def has_conflicts(self) -> bool:
        return any(s.is_overbooked for s in self.slots)

    @property
    def is_blocked(self) -> bool:
        """True when the whole day is unavailable."""
        return self.is_holiday or self.leave is not None

    def slot(self, kind: SlotKind) -> TimeSlot:
        return self.morning_slot if kind is SlotKind.MORNING else self.afternoon_slot

    def with_slot(self, kind: SlotKind, slot: TimeSlot) -> DayAssignment:
        field = "morning_slot" if kind is SlotKind.MORNING else "afternoon_slot"
        return self.model_copy(update={field: slot})

    def slot_blocked(self, kind: SlotKind) -> bool:
        return self.is_blocked or self.slot(kind).leave is not None


class EmployeeSchedule(BaseModel):
    """One row of the board."""

    employee: Employee
    day_assignments: list[DayAssignment] = Field(default_factory=list)

    @property
    def employee_id(self) -> int:
        return self.employee.employee_id

    def day(self, d: date) -> DayAssignment | None:
        for cell in self.day_assignments:
            if cell.date == d:
                return cell
        return None


# Location of a placement inside a grid: (employee_id, date, slot)
SlotLocation = tuple[int, date, SlotKind]


class CalendarGrid(BaseModel):
    """Assignment grid for the visible window.

    Grids are never edited in place; every helper returns a new grid.
    """

    start_date: date
    end_date: date
    view_span: ViewSpan = ViewSpan.WEEK
    dates: list[date] = Field(default_factory=list)
    employees: list[EmployeeSchedule] = Field(default_factory=list)

    def employee(self, employee_id: int) -> EmployeeSchedule:
        for row in self.employees:
            if row.employee_id == employee_id:
                return row
        raise KeyError(f"Employee {employee_id} is not on the grid")

    def cell(self, employee_id: int, d: date) -> DayAssignment:
        cell = self.employee(employee_id).day(d)
        if cell is None:
            raise KeyError(f"No cell for employee {employee_id} on {d.isoformat()}")
        return cell

    def cells(self) -> Iterator[tuple[Employee, DayAssignment]]:
        for row in self.employees:
            for cell in row.day_assignments:
                yield row.employee, cell

    def locate(self, assignment_id: int) -> tuple[SlotLocation, TaskPlacement]:
        """Find where a placement currently sits."""
        for row in self.employees:
            for cell in row.day_assignments:
                for slot in cell.slots:
                    for placement in slot.placements:
                        if placement.assignment_id == assignment_id:
                            return (row.employee_id, cell.date, slot.slot_kind), placement
        raise KeyError(f"Assignment {assignment_id} is not on the grid")

    def assignment_ids(self) -> set[int]:
        return {
            p.assignment_id
            for _, cell in self.cells()
            for slot in cell.slots
            for p in slot.placements
        }

    def map_cells(
        self, fn: Callable[[Employee, DayAssignment], DayAssignment]
    ) -> CalendarGrid:
        """New grid with every cell replaced by ``fn(employee, cell)``."""
        rows = [
            row.model_copy(
                update={"day_assignments": [fn(row.employee, c) for c in row.day_assignments]}
            )
            for row in self.employees
        ]
        return self.model_copy(update={"employees": rows})

    def replace_slot(
        self, employee_id: int, d: date, kind: SlotKind, placements: Iterable[TaskPlacement]
    ) -> CalendarGrid:
        self.cell(employee_id, d)
        new_placements = list(placements)

        def _replace(employee: Employee, cell: DayAssignment) -> DayAssignment:
            if employee.employee_id != employee_id or cell.date != d:
                return cell
            return cell.with_slot(kind, cell.slot(kind).with_placements(new_placements))

        return self.map_cells(_replace)

    def with_placements_updated(self, updated: Iterable[TaskPlacement]) -> CalendarGrid:
        """Swap placements by assignment id, leaving them where they are."""
        by_id = {p.assignment_id: p for p in updated}
        if not by_id:
            return self

        def _swap(employee: Employee, cell: DayAssignment) -> DayAssignment:
            for kind in SlotKind:
                slot = cell.slot(kind)
                if any(p.assignment_id in by_id for p in slot.placements):
                    cell = cell.with_slot(
                        kind,
                        slot.with_placements(by_id.get(p.assignment_id, p) for p in slot.placements),
                    )
            return cell

        return self.map_cells(_swap)

    def without_assignments(self, assignment_ids: Iterable[int]) -> CalendarGrid:
        drop = set(assignment_ids)
        if not drop:
            return self

        def _strip(employee: Employee, cell: DayAssignment) -> DayAssignment:
            for kind in SlotKind:
                slot = cell.slot(kind)
                kept = [p for p in slot.placements if p.assignment_id not in drop]
                if len(kept) != len(slot.placements):
                    cell = cell.with_slot(kind, slot.with_placements(kept))
            return cell

        return self.map_cells(_strip)
