"""BoardConductorAgent - owns the board state and routes UI events."""

from __future__ import annotations

import logging
from collections.abc import Hashable, Sequence
from datetime import date, datetime
from typing import Any

from shift_board.agents.base import BaseAgent
from shift_board.agents.leave_writer import ClearBlockingResult, LeaveWriteResult, LeaveWriterAgent
from shift_board.agents.slot_mover import MoveResult, PasteResult, SlotMoverAgent
from shift_board.leave.sources import InMemoryLeaveSource, LeaveRecordSource
from shift_board.models.board import BoardState
from shift_board.models.calendar import CalendarWindow, SlotKind, ViewSpan
from shift_board.models.engine_config import EngineConfig
from shift_board.models.leave import HolidayRecord, LeaveDuration, LeaveType
from shift_board.models.selection import SelectionKind, SelectionSnapshot, SlotKey
from shift_board.selection import tracker
from shift_board.services.schedule_service import BulkPatch, ScheduleService
from shift_board.window import navigator

logger = logging.getLogger(__name__)


class BoardConductorAgent(BaseAgent):
    """Holds the single authoritative ``BoardState``.

    Every operation computes a new state and installs it as a whole; nothing
    is edited in place. When a persistence call fails the current state is
    kept and the error propagates to the caller.
    """

    def __init__(
        self,
        service: ScheduleService,
        leave_source: LeaveRecordSource | None = None,
        config: EngineConfig | None = None,
        state: BoardState | None = None,
    ) -> None:
        self.config = config or EngineConfig()
        self._service = service
        self._leave_source = leave_source if leave_source is not None else InMemoryLeaveSource()
        self._slot_mover = SlotMoverAgent(service, self.config)
        self._leave_writer = LeaveWriterAgent(service)
        self._state = state

    @property
    def name(self) -> str:
        return "board_conductor"

    @property
    def state(self) -> BoardState:
        if self._state is None:
            raise ValueError("Board has not been loaded")
        return self._state

    def install(self, state: BoardState) -> BoardState:
        self._state = state
        return state

    # -- loading ---------------------------------------------------------

    async def load(
        self,
        today: date | datetime,
        view_span: ViewSpan | None = None,
        team_id: int | None = None,
    ) -> BoardState:
        """Build the initial window around ``today`` and fetch its grid."""
        window = navigator.create_window(today, view_span or self.config.default_view_span)
        return await self._fetch(window, team_id)

    async def refresh(self, team_id: int | None = None) -> BoardState:
        """Refetch the grid and leave records of the current window."""
        return await self._fetch(self.state.window, team_id)

    async def _fetch(self, window: CalendarWindow, team_id: int | None) -> BoardState:
        grid = await self._service.get_calendar_grid(window.start_date, window.view_span, team_id)
        leaves = self._leave_source.leaves_between(grid.start_date, grid.end_date)
        holidays = self._leave_source.holidays_between(grid.start_date, grid.end_date)
        logger.debug(
            "Fetched grid %s..%s: %d employees, %d leave records, %d holidays",
            grid.start_date.isoformat(), grid.end_date.isoformat(),
            len(grid.employees), len(leaves), len(holidays),
        )
        state = BoardState(window=window, base_grid=grid, leaves=leaves, holidays=holidays)
        if self._state is not None:
            state = state.model_copy(update={"selection": self._state.selection})
        return self.install(state)

    # -- navigation --------------------------------------------------------

    def navigate(self, target: date | datetime) -> BoardState:
        """Move the window towards ``target``. The grid is refetched by ``refresh``."""
        return self._set_window(navigator.navigate(self.state.window, target))

    def step(self, forward: bool = True) -> BoardState:
        step = navigator.step_forward if forward else navigator.step_backward
        return self._set_window(step(self.state.window))

    def change_view_span(self, view_span: ViewSpan) -> BoardState:
        return self._set_window(navigator.change_view_span(self.state.window, view_span))

    def _set_window(self, window: CalendarWindow) -> BoardState:
        return self.install(self.state.model_copy(update={"window": window}))

    # -- selection ---------------------------------------------------------

    def select_slot(self, key: SlotKey, multi: bool = False) -> BoardState:
        selection = tracker.toggle_slot(self.state.selection, key, multi)
        selection = tracker.clear(selection, SelectionKind.TASKS)
        return self.install(self.state.model_copy(update={"selection": selection}))

    def select_task(self, assignment_id: int, multi: bool = False) -> BoardState:
        selection = tracker.toggle_task(self.state.selection, assignment_id, multi)
        selection = tracker.clear(selection, SelectionKind.SLOTS)
        return self.install(self.state.model_copy(update={"selection": selection}))

    def select_day(self, day: date, multi: bool = False) -> BoardState:
        selection = tracker.toggle_day(self.state.selection, day, multi)
        selection = tracker.clear(selection, SelectionKind.TASKS, SelectionKind.SLOTS)
        return self.install(self.state.model_copy(update={"selection": selection}))

    def clear_selection(self) -> BoardState:
        return self.install(
            self.state.model_copy(update={"selection": tracker.clear(self.state.selection)})
        )

    def capture(self, kind: SelectionKind, trigger: Hashable) -> SelectionSnapshot:
        """Snapshot the selection an async flow (bulk edit, paste) will act on."""
        return tracker.capture(self.state.selection, kind, trigger)

    # -- placements --------------------------------------------------------

    async def move_task(
        self,
        assignment_id: int,
        employee_id: int,
        day: date,
        slot: SlotKind,
        column_start: int = 0,
        hours: float | None = None,
    ) -> MoveResult:
        result = await self._slot_mover.move_task(
            self.state, assignment_id, employee_id, day, slot, column_start, hours
        )
        self.install(result.state)
        return result

    async def drop_task(
        self, assignment_id: int, employee_id: int, day: date, slot: SlotKind, target_column: int
    ) -> MoveResult:
        result = await self._slot_mover.drop_task_at_column(
            self.state, assignment_id, employee_id, day, slot, target_column
        )
        self.install(result.state)
        return result

    async def delete_task(self, assignment_id: int) -> MoveResult:
        result = await self._slot_mover.delete_task(self.state, assignment_id)
        self.install(result.state)
        return result

    async def bulk_update(self, snapshot: SelectionSnapshot, patch: BulkPatch) -> BoardState:
        return self.install(await self._slot_mover.bulk_update(self.state, snapshot, patch))

    async def paste_task(
        self, snapshot: SelectionSnapshot, task_id: int, notes: str | None = None
    ) -> PasteResult:
        result = await self._slot_mover.paste_task(self.state, snapshot, task_id, notes)
        self.install(result.state)
        return result

    # -- leave -------------------------------------------------------------

    async def set_leave(
        self,
        employee_ids: Sequence[int],
        dates: Sequence[date],
        leave_type: LeaveType = LeaveType.ANNUAL_LEAVE,
        duration: LeaveDuration = LeaveDuration.FULL_DAY,
        slot: SlotKind | None = None,
    ) -> LeaveWriteResult:
        result = await self._leave_writer.set_leave(
            self.state, employee_ids, dates, leave_type, duration, slot
        )
        previous = set(self.state.leaves)
        for record in result.state.leaves:
            if record not in previous:
                self._leave_source.put_leave(record)
        self.install(result.state)
        return result

    async def set_holiday(self, holiday: HolidayRecord) -> LeaveWriteResult:
        result = await self._leave_writer.set_holiday(self.state, holiday)
        self._leave_source.put_holiday(holiday)
        self.install(result.state)
        return result

    async def clear_blocking(self, day: date, employee_id: int | None = None) -> ClearBlockingResult:
        result = await self._leave_writer.clear_blocking(self.state, day, employee_id)
        self._leave_source.remove_for_date(day, employee_id)
        self.install(result.state)
        return result

    # -- action dispatch ---------------------------------------------------

    def _handle_navigate(self, payload: dict[str, Any]) -> BoardState:
        return self.navigate(payload["target"])

    def _handle_change_view_span(self, payload: dict[str, Any]) -> BoardState:
        return self.change_view_span(ViewSpan(payload["view_span"]))

    def _handle_select_slot(self, payload: dict[str, Any]) -> BoardState:
        key = payload["key"]
        if not isinstance(key, SlotKey):
            key = SlotKey.model_validate(key)
        return self.select_slot(key, payload.get("multi", False))

    def _handle_select_task(self, payload: dict[str, Any]) -> BoardState:
        return self.select_task(payload["assignment_id"], payload.get("multi", False))

    def _handle_select_day(self, payload: dict[str, Any]) -> BoardState:
        return self.select_day(payload["day"], payload.get("multi", False))

    async def _handle_refresh(self, payload: dict[str, Any]) -> BoardState:
        return await self.refresh(payload.get("team_id"))

    async def _handle_move_task(self, payload: dict[str, Any]) -> MoveResult:
        return await self.move_task(
            assignment_id=payload["assignment_id"],
            employee_id=payload["employee_id"],
            day=payload["day"],
            slot=SlotKind(payload["slot"]),
            column_start=payload.get("column_start", 0),
            hours=payload.get("hours"),
        )

    async def _handle_delete_task(self, payload: dict[str, Any]) -> MoveResult:
        return await self.delete_task(payload["assignment_id"])

    async def _handle_set_leave(self, payload: dict[str, Any]) -> LeaveWriteResult:
        slot = payload.get("slot")
        return await self.set_leave(
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
        return await self.set_holiday(holiday)

    async def _handle_clear_blocking(self, payload: dict[str, Any]) -> ClearBlockingResult:
        return await self.clear_blocking(payload["day"], payload.get("employee_id"))
