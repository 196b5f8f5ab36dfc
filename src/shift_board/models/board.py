"""Authoritative board state."""

from __future__ import annotations

from datetime import date

from pydantic import BaseModel, Field

from shift_board.leave.overlay import apply_overlay
from shift_board.models.calendar import CalendarWindow
from shift_board.models.leave import HolidayRecord, LeaveRecord
from shift_board.models.schedule import CalendarGrid
from shift_board.models.selection import SelectionState


class BoardState(BaseModel):
    """Everything the board renders from.

    ``base_grid`` holds the assignments as fetched or patched; leave and
    holiday records are kept beside it and merged on demand by the overlay.
    ``hidden_ids`` are placements still on the server whose deletion failed
    during a leave write; they stay in ``base_grid`` but are not rendered
    until the blocking that hid them is cleared.
    Transitions build a new ``BoardState`` instead of editing this one.
    """

    window: CalendarWindow
    base_grid: CalendarGrid
    leaves: list[LeaveRecord] = Field(default_factory=list)
    holidays: list[HolidayRecord] = Field(default_factory=list)
    selection: SelectionState = Field(default_factory=SelectionState)
    hidden_ids: frozenset[int] = frozenset()

    @property
    def grid(self) -> CalendarGrid:
        """The grid actually presented: base grid with the leave overlay applied."""
        return apply_overlay(
            self.base_grid.without_assignments(self.hidden_ids), self.leaves, self.holidays
        )

    def holiday_on(self, d: date) -> HolidayRecord | None:
        for holiday in self.holidays:
            if holiday.date == d:
                return holiday
        return None

    def leaves_on(self, d: date, employee_id: int | None = None) -> list[LeaveRecord]:
        return [
            r
            for r in self.leaves
            if r.date == d and (employee_id is None or r.employee_id == employee_id)
        ]
