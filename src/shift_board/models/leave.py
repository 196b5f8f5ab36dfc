"""Leave and holiday data models."""

from __future__ import annotations

from datetime import date
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator

from shift_board.models.calendar import SlotKind

# Employee id used by the local overlay store for holiday records
HOLIDAY_EMPLOYEE_ID = -1


class LeaveType(str, Enum):
    """Kind of individual absence."""

    ANNUAL_LEAVE = "annual_leave"
    SICK_DAY = "sick_day"
    OTHER_LEAVE = "other_leave"


class LeaveDuration(str, Enum):
    """Full-day leave blocks both slots, half-day leave blocks one."""

    FULL_DAY = "full_day"
    HALF_DAY = "half_day"


class LeaveRecord(BaseModel):
    """Leave of one employee on one date.

    ``slot`` is required for half-day leave and forbidden for full-day leave.
    """

    model_config = ConfigDict(frozen=True)

    employee_id: int
    date: date
    leave_type: LeaveType = LeaveType.ANNUAL_LEAVE
    duration: LeaveDuration = LeaveDuration.FULL_DAY
    slot: SlotKind | None = None

    @model_validator(mode="after")
    def _check_slot(self) -> LeaveRecord:
        if self.duration == LeaveDuration.HALF_DAY and self.slot is None:
            raise ValueError("Half-day leave requires a slot")
        if self.duration == LeaveDuration.FULL_DAY and self.slot is not None:
            raise ValueError("Full-day leave must not name a slot")
        return self

    @property
    def is_full_day(self) -> bool:
        return self.duration == LeaveDuration.FULL_DAY

    @property
    def key(self) -> tuple[int, date, SlotKind | None]:
        """Uniqueness key: (employee, date) for full-day, plus slot for half-day."""
        return (self.employee_id, self.date, self.slot)

    def blocks(self, slot: SlotKind) -> bool:
        """True if this leave covers ``slot``."""
        return self.is_full_day or self.slot == slot


class HolidayRecord(BaseModel):
    """Public holiday. Applies to every employee and dominates any leave."""

    model_config = ConfigDict(frozen=True)

    date: date
    name: str = "Holiday"


class OverlayRecord(BaseModel):
    """Record shape of the legacy local overlay store.

    One record per ``(employeeId, date)``; holidays use employee id -1.
    """

    model_config = ConfigDict(populate_by_name=True)

    employee_id: int = Field(alias="employeeId")
    date: date
    leave_type: LeaveType | None = Field(default=None, alias="leaveType")
    duration: LeaveDuration | None = None
    slot: SlotKind | None = None
    is_holiday: bool = Field(default=False, alias="isHoliday")
    holiday_name: str | None = Field(default=None, alias="holidayName")

    @property
    def key(self) -> tuple[int, date]:
        return (self.employee_id, self.date)

    @classmethod
    def from_leave(cls, record: LeaveRecord) -> OverlayRecord:
        return cls(
            employee_id=record.employee_id,
            date=record.date,
            leave_type=record.leave_type,
            duration=record.duration,
            slot=record.slot,
        )

    @classmethod
    def from_holiday(cls, record: HolidayRecord) -> OverlayRecord:
        return cls(
            employee_id=HOLIDAY_EMPLOYEE_ID,
            date=record.date,
            is_holiday=True,
            holiday_name=record.name,
        )

    def to_holiday(self) -> HolidayRecord | None:
        if not self.is_holiday:
            return None
        return HolidayRecord(date=self.date, name=self.holiday_name or "Holiday")

    def to_leave(self) -> LeaveRecord | None:
        if self.is_holiday or self.leave_type is None:
            return None
        duration = self.duration or LeaveDuration.FULL_DAY
        return LeaveRecord(
            employee_id=self.employee_id,
            date=self.date,
            leave_type=self.leave_type,
            duration=duration,
            slot=self.slot if duration == LeaveDuration.HALF_DAY else None,
        )
