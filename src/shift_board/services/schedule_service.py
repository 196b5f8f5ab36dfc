"""Schedule/leave persistence collaborator.

The engine only computes states; the host provides an implementation of
``ScheduleService`` (typically a REST client) and the agents await it.
"""

from __future__ import annotations

from datetime import date
from typing import Protocol, runtime_checkable

from pydantic import BaseModel

from shift_board.models.calendar import SlotKind, ViewSpan
from shift_board.models.leave import HolidayRecord, LeaveRecord
from shift_board.models.schedule import CalendarGrid, TaskPlacement, TaskPriority, TaskStatus


class AssignmentPatch(BaseModel):
    """Partial update of one assignment. Unset fields are left unchanged."""

    employee_id: int | None = None
    assigned_date: date | None = None
    slot: SlotKind | None = None
    column_start: int | None = None
    hours: float | None = None

    def as_payload(self) -> dict[str, object]:
        return self.model_dump(mode="json", exclude_none=True)


class BulkPatch(BaseModel):
    """Fields applied to every assignment of a bulk edit."""

    task_id: int | None = None
    priority: TaskPriority | None = None
    status: TaskStatus | None = None
    notes: str | None = None


@runtime_checkable
class ScheduleService(Protocol):
    async def create_assignment(
        self,
        task_id: int,
        employee_id: int,
        assigned_date: date,
        slot: SlotKind,
        notes: str | None = None,
    ) -> TaskPlacement: ...

    async def update_assignment(self, assignment_id: int, patch: AssignmentPatch) -> TaskPlacement: ...

    async def delete_assignment(self, assignment_id: int) -> None: ...

    async def bulk_update_assignments(
        self, assignment_ids: list[int], patch: BulkPatch
    ) -> list[TaskPlacement]: ...

    async def create_leave_record(self, record: LeaveRecord) -> None: ...

    async def create_holiday(self, record: HolidayRecord) -> None: ...

    async def delete_leave_records_for_date(
        self, day: date, employee_id: int | None = None
    ) -> int: ...

    async def get_calendar_grid(
        self, start_date: date, view_span: ViewSpan, team_id: int | None = None
    ) -> CalendarGrid: ...
