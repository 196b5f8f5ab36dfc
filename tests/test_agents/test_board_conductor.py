"""Tests for BoardConductorAgent."""

from __future__ import annotations

from datetime import date

import pytest
from conftest import MON, TUE, WED

from shift_board.agents.conductor import BoardConductorAgent
from shift_board.leave.sources import InMemoryLeaveSource, LocalOverlayStore
from shift_board.models.calendar import SlotKind, ViewSpan
from shift_board.models.leave import HolidayRecord, LeaveDuration, LeaveRecord
from shift_board.models.selection import SelectionKind, SlotKey

SLOT = SlotKey(date=MON, slot_kind=SlotKind.MORNING, employee_id=3)


@pytest.fixture
def conductor(service, fast_config, board_state) -> BoardConductorAgent:
    return BoardConductorAgent(service, config=fast_config, state=board_state)


class TestLoading:
    @pytest.mark.asyncio
    async def test_load_fetches_window_and_leave(self, service, fast_config):
        source = InMemoryLeaveSource(leaves=[LeaveRecord(employee_id=4, date=MON)])
        conductor = BoardConductorAgent(service, leave_source=source, config=fast_config)

        state = await conductor.load(WED, ViewSpan.BI_WEEK)

        assert service.args_of("get_calendar_grid") == [(date(2024, 6, 3), ViewSpan.BI_WEEK, None)]
        assert state.window.start_date == date(2024, 6, 3)
        assert state.leaves == [LeaveRecord(employee_id=4, date=MON)]
        assert state.grid.cell(4, MON).is_blocked
        assert conductor.state is state

    def test_state_before_load(self, service):
        with pytest.raises(ValueError, match="not been loaded"):
            BoardConductorAgent(service).state

    @pytest.mark.asyncio
    async def test_refresh_keeps_selection(self, conductor):
        conductor.select_task(10)
        state = await conductor.refresh(team_id=1)
        assert state.selection.selected_tasks == {10}


class TestNavigation:
    @pytest.mark.asyncio
    async def test_navigate_pages_one_day(self, service, fast_config):
        conductor = BoardConductorAgent(service, config=fast_config)
        await conductor.load(MON, ViewSpan.WEEK)
        before = conductor.state

        state = conductor.navigate(date(2024, 6, 20))

        assert state.window.start_date == TUE
        assert before.window.start_date == MON
        assert state.base_grid is before.base_grid

    def test_navigate_month_view(self, conductor):
        conductor.change_view_span(ViewSpan.MONTH)
        assert conductor.navigate(date(2024, 7, 15)).window.start_date == date(2024, 7, 1)

    def test_step(self, conductor):
        assert conductor.step(forward=False).window.start_date == date(2024, 6, 7)


class TestSelection:
    def test_task_clears_slots(self, conductor):
        conductor.select_slot(SLOT)
        state = conductor.select_task(10)
        assert state.selection.selected_slots == frozenset()
        assert state.selection.selected_tasks == {10}

    def test_slot_clears_tasks(self, conductor):
        conductor.select_task(10)
        state = conductor.select_slot(SLOT)
        assert state.selection.selected_tasks == frozenset()

    def test_day_clears_tasks_and_slots(self, conductor):
        conductor.select_slot(SLOT)
        conductor.select_task(10)
        state = conductor.select_day(MON)
        assert state.selection.selected_days == {MON}
        assert state.selection.selected_slots == frozenset()
        assert state.selection.selected_tasks == frozenset()

    def test_day_selection_survives_slot_selection(self, conductor):
        conductor.select_day(MON)
        assert conductor.select_slot(SLOT).selection.selected_days == {MON}

    def test_capture_is_insulated_from_later_clicks(self, conductor):
        conductor.select_task(10)
        conductor.select_task(11, multi=True)
        snapshot = conductor.capture(SelectionKind.TASKS, 10)
        conductor.select_task(1)
        assert snapshot.items == {10, 11}

    def test_dispatch_select_slot(self, conductor):
        state = conductor.process(
            "select_slot",
            {"key": {"date": "2024-06-10", "slot_kind": "morning", "employee_id": 3}},
        )
        assert state.selection.selected_slots == {SLOT}

    def test_clear_selection(self, conductor):
        conductor.select_task(10)
        assert conductor.clear_selection().selection.is_empty


class TestMutations:
    @pytest.mark.asyncio
    async def test_move_installs_new_state(self, conductor):
        before = conductor.state
        result = await conductor.move_task(1, 4, MON, SlotKind.MORNING, column_start=0)
        assert conductor.state is result.state
        assert conductor.state is not before
        assert conductor.state.base_grid.locate(1)[0] == (4, MON, SlotKind.MORNING)
        assert before.base_grid.locate(1)[0] == (3, TUE, SlotKind.MORNING)

    @pytest.mark.asyncio
    async def test_failed_delete_keeps_state(self, conductor, service):
        before = conductor.state
        service.failing_deletes = {10}
        with pytest.raises(ConnectionError):
            await conductor.delete_task(10)
        assert conductor.state is before

    @pytest.mark.asyncio
    async def test_drop_and_paste(self, conductor):
        await conductor.drop_task(11, 5, MON, SlotKind.MORNING, 0)
        conductor.select_slot(SlotKey(date=TUE, slot_kind=SlotKind.AFTERNOON, employee_id=6))
        snapshot = conductor.capture(
            SelectionKind.SLOTS, SlotKey(date=TUE, slot_kind=SlotKind.AFTERNOON, employee_id=6)
        )
        result = await conductor.paste_task(snapshot, task_id=42)
        grid = conductor.state.base_grid
        assert grid.locate(11)[0] == (5, MON, SlotKind.MORNING)
        assert grid.locate(result.created[0].assignment_id)[0] == (6, TUE, SlotKind.AFTERNOON)

    @pytest.mark.asyncio
    async def test_leave_is_mirrored_to_source(self, service, fast_config, board_state, tmp_path):
        store = LocalOverlayStore(tmp_path / "overlay.json")
        conductor = BoardConductorAgent(service, leave_source=store, config=fast_config, state=board_state)

        await conductor.set_leave([7], [WED], duration=LeaveDuration.HALF_DAY, slot=SlotKind.MORNING)
        await conductor.set_holiday(HolidayRecord(date=TUE, name="Founders Day"))

        assert store.leaves_between(MON, WED) == conductor.state.leaves
        assert store.holidays_between(MON, WED) == [HolidayRecord(date=TUE, name="Founders Day")]
        assert conductor.state.grid.cell(3, TUE).is_holiday

        await conductor.clear_blocking(TUE)
        assert store.holidays_between(MON, WED) == []
        assert conductor.state.holidays == []

    @pytest.mark.asyncio
    async def test_aprocess_routes_leave_write(self, conductor):
        result = await conductor.aprocess("set_holiday", {"holiday": {"date": "2024-06-12"}})
        assert result.report.count == 6
        assert conductor.state.holiday_on(WED) is not None
