"""LeaveWriterAgent - conflict-aware leave and holiday writes."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from datetime import date
from typing import Any

from pydantic import BaseModel, Field

from shift_board.agents.base import BaseAgent
from shift_board.leave.conflicts import detect_conflicts, detect_holiday_conflicts
from shift_board.models.board import BoardState
from shift_board.models.calendar import SlotKind
from shift_board.models.conflict import ConflictReport
from shift_board.models.leave import HolidayRecord, LeaveDuration, LeaveRecord, LeaveType
from shift_board.services.schedule_service import ScheduleService

logger = logging.getLogger(__name__)


class LeaveWriteResult(BaseModel):
    """Outcome of a leave or holiday write."""

    state: BoardState
    report: ConflictReport
    deleted_ids: list[int] = Field(default_factory=list)
    failed_ids: list[int] = Field(default_factory=list)

    @property
    def deleted_count(self) -> int:
        return len(self.deleted_ids)


class ClearBlockingResult(BaseModel):
    state: BoardState
    removed_count: int = 0


class LeaveWriterAgent(BaseAgent):
    """Writes leave and holidays in two phases.

    Phase 1 deletes every conflicting assignment, one by one; a failed
    deletion is logged and the rest continue. Phase 2 writes the records and
    drops the deleted placements from the local grid; placements whose
    deletion failed are hidden until the blocking is cleared. A failed
    record write propagates and no new state is produced.
    """

    def __init__(self, service: ScheduleService) -> None:
        self._service = service

    @property
    def name(self) -> str:
        return "leave_writer"

    def preview_leave(
        self,
        state: BoardState,
        employee_ids: Iterable[int],
        dates: Iterable[date],
        duration: LeaveDuration = LeaveDuration.FULL_DAY,
        slot: SlotKind | None = None,
    ) -> ConflictReport:
        """Conflicts a leave write would resolve by deletion."""
        return detect_conflicts(state.base_grid, dates, employee_ids, duration, slot)

    def preview_holiday(self, state: BoardState, holiday: HolidayRecord) -> ConflictReport:
        return detect_holiday_conflicts(state.base_grid, holiday)

    async def set_leave(
        self,
        state: BoardState,
        employee_ids: Sequence[int],
        dates: Sequence[date],
        leave_type: LeaveType = LeaveType.ANNUAL_LEAVE,
        duration: LeaveDuration = LeaveDuration.FULL_DAY,
        slot: SlotKind | None = None,
    ) -> LeaveWriteResult:
        """Write one leave record per (employee, date) pair."""
        if duration == LeaveDuration.FULL_DAY:
            slot = None
        records = [
            LeaveRecord(
                employee_id=employee_id,
                date=d,
                leave_type=leave_type,
                duration=duration,
                slot=slot,
            )
            for employee_id in dict.fromkeys(employee_ids)
            for d in dict.fromkeys(dates)
        ]
        report = self.preview_leave(state, employee_ids, dates, duration, slot)
        logger.debug("Leave write over %d cells has %d conflicts", len(records), report.count)

        deleted, failed = await self._delete_conflicts(report)
        for record in records:
            await self._service.create_leave_record(record)

        base = state.base_grid.without_assignments(deleted)
        hidden = state.hidden_ids | frozenset(failed)
        leaves = list(state.leaves)
        for record in records:
            leaves = _upsert_leave(leaves, record)

        logger.info(
            "Wrote %d %s records (%d tasks deleted, %d deletions failed)",
            len(records), duration.value, len(deleted), len(failed),
        )
        return LeaveWriteResult(
            state=state.model_copy(
                update={"base_grid": base, "leaves": leaves, "hidden_ids": hidden}
            ),
            report=report,
            deleted_ids=deleted,
            failed_ids=failed,
        )

    async def set_holiday(self, state: BoardState, holiday: HolidayRecord) -> LeaveWriteResult:
        """Write a holiday for every employee of the date."""
        report = self.preview_holiday(state, holiday)
        logger.debug("Holiday on %s has %d conflicts", holiday.date.isoformat(), report.count)

        deleted, failed = await self._delete_conflicts(report)
        await self._service.create_holiday(holiday)

        base = state.base_grid.without_assignments(deleted)
        hidden = state.hidden_ids | frozenset(failed)
        holidays = [h for h in state.holidays if h.date != holiday.date] + [holiday]

        logger.info(
            "Wrote holiday '%s' on %s (%d tasks deleted, %d deletions failed)",
            holiday.name, holiday.date.isoformat(), len(deleted), len(failed),
        )
        return LeaveWriteResult(
            state=state.model_copy(
                update={"base_grid": base, "holidays": holidays, "hidden_ids": hidden}
            ),
            report=report,
            deleted_ids=deleted,
            failed_ids=failed,
        )

    async def clear_blocking(
        self, state: BoardState, day: date, employee_id: int | None = None
    ) -> ClearBlockingResult:
        """Remove the date's leave (and holiday, when no employee is named).

        Placements that were never deleted reappear through the overlay,
        including those whose deletion failed during the leave write.
        """
        removed = await self._service.delete_leave_records_for_date(day, employee_id)

        leaves = [
            r
            for r in state.leaves
            if not (r.date == day and (employee_id is None or r.employee_id == employee_id))
        ]
        holidays = state.holidays
        if employee_id is None:
            holidays = [h for h in state.holidays if h.date != day]
        shown = {
            assignment_id
            for assignment_id in state.hidden_ids
            if _sits_on(state, assignment_id, day, employee_id)
        }

        logger.info(
            "Cleared blocking on %s for %s (%d records)",
            day.isoformat(),
            "all employees" if employee_id is None else f"employee {employee_id}",
            removed,
        )
        return ClearBlockingResult(
            state=state.model_copy(
                update={
                    "leaves": leaves,
                    "holidays": holidays,
                    "hidden_ids": state.hidden_ids - shown,
                }
            ),
            removed_count=removed,
        )

    async def _delete_conflicts(self, report: ConflictReport) -> tuple[list[int], list[int]]:
        deleted: list[int] = []
        failed: list[int] = []
        for assignment_id in report.assignment_ids:
            try:
                await self._service.delete_assignment(assignment_id)
            except Exception:
                logger.warning("Failed to delete conflicting assignment %s", assignment_id, exc_info=True)
                failed.append(assignment_id)
            else:
                deleted.append(assignment_id)
        return deleted, failed

    async def _handle_set_leave(self, payload: dict[str, Any]) -> LeaveWriteResult:
        slot = payload.get("slot")
        return await self.set_leave(
            state=payload["state"],
            employee_ids=payload["employee_ids"],
            dates=payload["dates"],
            leave_type=LeaveType(payload.get("leave_type", LeaveType.ANNUAL_LEAVE)),
            duration=LeaveDuration(payload.get("duration", LeaveDuration.FULL_DAY)),
            slot=SlotKind(slot) if slot is not None else None,
        )

    async def _handle_set_holiday(self, payload: dict[str, Any]) -> LeaveWriteResult:
        holiday = payload["holiday"]
        if not isinstance(holiday, HolidayRecord):
            holiday = HolidayRecord.model_validate(holiday)
        return await self.set_holiday(payload["state"], holiday)

    async def _handle_clear_blocking(self, payload: dict[str, Any]) -> ClearBlockingResult:
        return await self.clear_blocking(payload["state"], payload["day"], payload.get("employee_id"))

    def _handle_preview_leave(self, payload: dict[str, Any]) -> ConflictReport:
        slot = payload.get("slot")
        return self.preview_leave(
            payload["state"],
            payload["employee_ids"],
            payload["dates"],
            LeaveDuration(payload.get("duration", LeaveDuration.FULL_DAY)),
            SlotKind(slot) if slot is not None else None,
        )


def _upsert_leave(leaves: list[LeaveRecord], record: LeaveRecord) -> list[LeaveRecord]:
    """Replace the record of the same key.

    A full-day record also replaces the day's half-days, and a half-day
    record replaces a full-day record of the same day.
    """
    same_day = [
        r for r in leaves if r.employee_id == record.employee_id and r.date == record.date
    ]
    if record.is_full_day:
        dropped = same_day
    else:
        dropped = [r for r in same_day if r.is_full_day or r.key == record.key]
    kept = [r for r in leaves if r not in dropped]
    return kept + [record]


def _sits_on(state: BoardState, assignment_id: int, day: date, employee_id: int | None) -> bool:
    """Whether a hidden placement lies in the cleared cells; stale ids count as cleared."""
    try:
        (owner, on, _), _ = state.base_grid.locate(assignment_id)
    except KeyError:
        return True
    return on == day and (employee_id is None or owner == employee_id)
