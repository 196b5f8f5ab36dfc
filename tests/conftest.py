"""Common test fixtures."""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from datetime import date

import pytest

from shift_board.models.board import BoardState
from shift_board.models.calendar import CalendarWindow, SlotKind, ViewSpan
from shift_board.models.employee import Employee
from shift_board.models.engine_config import EngineConfig
from shift_board.models.leave import HolidayRecord, LeaveRecord
from shift_board.models.schedule import (
    CalendarGrid,
    DayAssignment,
    EmployeeSchedule,
    TaskPlacement,
)
from shift_board.services.schedule_service import AssignmentPatch, BulkPatch
from shift_board.window.business_days import business_days_in_range

MON = date(2024, 6, 10)
TUE = date(2024, 6, 11)
WED = date(2024, 6, 12)
FRI = date(2024, 6, 14)

CellKey = tuple[int, date, SlotKind]


def build_grid(
    employees: Sequence[Employee],
    dates: Sequence[date],
    placements: Mapping[CellKey, Sequence[TaskPlacement]] | None = None,
    view_span: ViewSpan = ViewSpan.BI_WEEK,
) -> CalendarGrid:
    placements = placements or {}
    rows = []
    for emp in employees:
        cells = []
        for d in dates:
            cell = DayAssignment(employee_id=emp.employee_id, date=d)
            for kind in SlotKind:
                found = placements.get((emp.employee_id, d, kind))
                if found:
                    cell = cell.with_slot(kind, cell.slot(kind).with_placements(found))
            cells.append(cell)
        rows.append(EmployeeSchedule(employee=emp, day_assignments=cells))
    return CalendarGrid(
        start_date=dates[0],
        end_date=dates[-1],
        view_span=view_span,
        dates=list(dates),
        employees=rows,
    )


def task(assignment_id: int, column_start: int = 0, hours: float = 1.0, title: str = "") -> TaskPlacement:
    return TaskPlacement(
        assignment_id=assignment_id,
        task_id=assignment_id * 10,
        column_start=column_start,
        hours=hours,
        title=title or f"Task {assignment_id}",
    )


@pytest.fixture
def employees() -> list[Employee]:
    names = ["Alice", "Bob", "Carol", "Dave", "Erin"]
    return [
        Employee(employee_id=i, name=name, team="Ops", team_id=1)
        for i, name in zip(range(3, 8), names)
    ]


@pytest.fixture
def dates() -> list[date]:
    """Two business weeks, 2024-06-10 .. 2024-06-21."""
    return business_days_in_range(MON, date(2024, 6, 21))


@pytest.fixture
def base_grid(employees, dates) -> CalendarGrid:
    """Small two-week grid.

    - every employee has one Morning task on Wednesday 2024-06-12 (id 100 + employee id);
    - employee 7 also has an Afternoon task that Wednesday (id 200);
    - employee 3 has three 2h tasks on Tuesday Morning (ids 1, 2, 3), overbooked;
    - employee 4 has two 1h tasks on Monday Afternoon (ids 10, 11).
    """
    placements: dict[CellKey, list[TaskPlacement]] = {
        (e.employee_id, WED, SlotKind.MORNING): [task(100 + e.employee_id, 0, 2.0)]
        for e in employees
    }
    placements[(7, WED, SlotKind.AFTERNOON)] = [task(200, 0, 2.0, "Afternoon review")]
    placements[(3, TUE, SlotKind.MORNING)] = [task(1, 0, 2.0), task(2, 2, 2.0), task(3, 4, 2.0)]
    placements[(4, MON, SlotKind.AFTERNOON)] = [task(10, 0, 1.0), task(11, 1, 1.0)]
    return build_grid(employees, dates, placements)


@pytest.fixture
def board_state(base_grid) -> BoardState:
    return BoardState(
        window=CalendarWindow(start_date=MON, view_span=ViewSpan.BI_WEEK),
        base_grid=base_grid,
    )


@pytest.fixture
def fast_config() -> EngineConfig:
    return EngineConfig(repack_settle_delay=0)


class FakeScheduleService:
    """Recording stand-in for the persistence collaborator.

    Failures are injected per call by id: ``failing_deletes``,
    ``failing_updates``, ``failing_creates`` (by employee id) and
    ``fail_leave_writes``.
    """

    def __init__(self, grid: CalendarGrid | None = None) -> None:
        self.grid = grid
        self.calls: list[tuple[str, tuple]] = []
        self.failing_deletes: set[int] = set()
        self.failing_updates: set[int] = set()
        self.failing_creates: set[int] = set()
        self.fail_leave_writes = False
        self.leave_records: list[LeaveRecord] = []
        self.holidays: list[HolidayRecord] = []
        self._next_id = 1000

    def names(self) -> list[str]:
        return [name for name, _ in self.calls]

    def args_of(self, name: str) -> list[tuple]:
        return [args for n, args in self.calls if n == name]

    async def create_assignment(self, task_id, employee_id, assigned_date, slot, notes=None):
        self.calls.append(("create_assignment", (task_id, employee_id, assigned_date, slot, notes)))
        if employee_id in self.failing_creates:
            raise ConnectionError(f"create failed for employee {employee_id}")
        self._next_id += 1
        return TaskPlacement(
            assignment_id=self._next_id, task_id=task_id, hours=1.0, title=f"Task {task_id}", notes=notes
        )

    async def update_assignment(self, assignment_id: int, patch: AssignmentPatch):
        self.calls.append(("update_assignment", (assignment_id, patch)))
        if assignment_id in self.failing_updates:
            raise ConnectionError(f"update failed for {assignment_id}")
        return TaskPlacement(
            assignment_id=assignment_id,
            task_id=assignment_id * 10,
            column_start=patch.column_start or 0,
            hours=patch.hours or 1.0,
        )

    async def delete_assignment(self, assignment_id: int) -> None:
        self.calls.append(("delete_assignment", (assignment_id,)))
        if assignment_id in self.failing_deletes:
            raise ConnectionError(f"delete failed for {assignment_id}")

    async def bulk_update_assignments(self, assignment_ids, patch: BulkPatch):
        self.calls.append(("bulk_update_assignments", (list(assignment_ids), patch)))
        _, found = zip(*(self.grid.locate(i) for i in assignment_ids))
        update = patch.model_dump(exclude_none=True)
        return [p.model_copy(update=update) for p in found]

    async def create_leave_record(self, record: LeaveRecord) -> None:
        self.calls.append(("create_leave_record", (record,)))
        if self.fail_leave_writes:
            raise ConnectionError("leave write failed")
        self.leave_records.append(record)

    async def create_holiday(self, record: HolidayRecord) -> None:
        self.calls.append(("create_holiday", (record,)))
        if self.fail_leave_writes:
            raise ConnectionError("holiday write failed")
        self.holidays.append(record)

    async def delete_leave_records_for_date(self, day, employee_id=None) -> int:
        self.calls.append(("delete_leave_records_for_date", (day, employee_id)))
        before = len(self.leave_records) + len(self.holidays)
        self.leave_records = [
            r
            for r in self.leave_records
            if not (r.date == day and (employee_id is None or r.employee_id == employee_id))
        ]
        if employee_id is None:
            self.holidays = [h for h in self.holidays if h.date != day]
        return before - len(self.leave_records) - len(self.holidays)

    async def get_calendar_grid(self, start_date, view_span, team_id=None) -> CalendarGrid:
        self.calls.append(("get_calendar_grid", (start_date, view_span, team_id)))
        return self.grid


@pytest.fixture
def service(base_grid) -> FakeScheduleService:
    return FakeScheduleService(base_grid)


@pytest.fixture
def grid_factory() -> Callable[..., CalendarGrid]:
    return build_grid
