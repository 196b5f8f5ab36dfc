"""Tests for the leave/holiday overlay."""

from __future__ import annotations

from conftest import MON, TUE, WED

from shift_board.leave.overlay import apply_overlay, blocked_employees
from shift_board.models.calendar import SlotKind
from shift_board.models.leave import HolidayRecord, LeaveDuration, LeaveRecord, LeaveType


def full_day(employee_id, d, leave_type=LeaveType.ANNUAL_LEAVE):
    return LeaveRecord(employee_id=employee_id, date=d, leave_type=leave_type)


def half_day(employee_id, d, slot):
    return LeaveRecord(
        employee_id=employee_id, date=d, duration=LeaveDuration.HALF_DAY, slot=slot
    )


class TestApplyOverlay:
    def test_no_records_passes_grid_through(self, base_grid):
        assert apply_overlay(base_grid) is base_grid

    def test_holiday_clears_every_cell_of_the_date(self, base_grid):
        grid = apply_overlay(base_grid, holidays=[HolidayRecord(date=WED, name="Founders Day")])
        for row in grid.employees:
            cell = row.day(WED)
            assert cell.is_holiday
            assert cell.holiday_name == "Founders Day"
            assert cell.leave is None
            assert all(s.is_empty and s.leave is None for s in cell.slots)

    def test_holiday_beats_leave(self, base_grid):
        grid = apply_overlay(
            base_grid,
            leaves=[full_day(3, WED), half_day(4, WED, SlotKind.MORNING)],
            holidays=[HolidayRecord(date=WED)],
        )
        for employee_id in (3, 4):
            cell = grid.cell(employee_id, WED)
            assert cell.is_holiday
            assert cell.leave is None
            assert cell.morning_slot.leave is None

    def test_full_day_leave_clears_both_slots(self, base_grid):
        grid = apply_overlay(base_grid, leaves=[full_day(3, TUE, LeaveType.SICK_DAY)])
        cell = grid.cell(3, TUE)
        assert cell.leave.leave_type is LeaveType.SICK_DAY
        assert cell.total_assignments == 0
        assert cell.is_blocked

    def test_full_day_beats_half_day(self, base_grid):
        grid = apply_overlay(
            base_grid, leaves=[half_day(7, WED, SlotKind.MORNING), full_day(7, WED)]
        )
        cell = grid.cell(7, WED)
        assert cell.leave is not None
        assert cell.morning_slot.leave is None

    def test_half_day_merge_keeps_tasks(self, base_grid):
        grid = apply_overlay(base_grid, leaves=[half_day(7, WED, SlotKind.MORNING)])
        cell = grid.cell(7, WED)
        assert cell.morning_slot.leave is not None
        assert [p.assignment_id for p in cell.morning_slot.placements] == [107]
        assert cell.afternoon_slot.leave is None
        assert [p.assignment_id for p in cell.afternoon_slot.placements] == [200]
        assert cell.slot_blocked(SlotKind.MORNING)
        assert not cell.slot_blocked(SlotKind.AFTERNOON)

    def test_destructive_half_day_clears_its_slot_only(self, base_grid):
        grid = apply_overlay(
            base_grid, leaves=[half_day(7, WED, SlotKind.MORNING)], destructive=True
        )
        cell = grid.cell(7, WED)
        assert cell.morning_slot.is_empty
        assert [p.assignment_id for p in cell.afternoon_slot.placements] == [200]

    def test_other_cells_unchanged(self, base_grid):
        grid = apply_overlay(base_grid, leaves=[full_day(3, TUE)])
        assert grid.cell(4, MON) == base_grid.cell(4, MON)
        assert grid.cell(3, WED) == base_grid.cell(3, WED)

    def test_base_grid_is_not_modified(self, base_grid):
        before = base_grid.model_copy(deep=True)
        apply_overlay(base_grid, leaves=[full_day(3, TUE)], holidays=[HolidayRecord(date=WED)])
        assert base_grid == before


class TestBlockedEmployees:
    def test_lists_individual_leave(self, base_grid):
        grid = apply_overlay(
            base_grid,
            leaves=[full_day(3, TUE), half_day(5, TUE, SlotKind.AFTERNOON)],
        )
        blocked = blocked_employees(grid, TUE)
        assert [b.employee_id for b in blocked] == [3, 5]
        assert blocked[0].employee_name == "Alice"
        assert blocked[1].leaves[0].slot is SlotKind.AFTERNOON

    def test_holiday_cells_are_skipped(self, base_grid):
        grid = apply_overlay(base_grid, leaves=[full_day(3, WED)], holidays=[HolidayRecord(date=WED)])
        assert blocked_employees(grid, WED) == []


class TestBoardGrid:
    def test_grid_is_overlay_of_base(self, board_state):
        state = board_state.model_copy(update={"leaves": [full_day(4, MON)]})
        assert state.grid.cell(4, MON).leave is not None
        assert state.base_grid.cell(4, MON).total_assignments == 2
