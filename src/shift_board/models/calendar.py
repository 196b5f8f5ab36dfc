"""Calendar window models."""

from __future__ import annotations

from datetime import date
from enum import Enum, IntEnum

from pydantic import BaseModel, Field


class ViewSpan(IntEnum):
    """Visible span of the board, in business days (Month is variable)."""

    DAY = 1
    WEEK = 5
    BI_WEEK = 10
    MONTH = 23

    @property
    def is_paged(self) -> bool:
        """True for spans that shift one business day per navigation."""
        return self in (ViewSpan.WEEK, ViewSpan.BI_WEEK)


class SlotKind(str, Enum):
    """Half-day slot of a working day."""

    MORNING = "morning"
    AFTERNOON = "afternoon"

    @property
    def label(self) -> str:
        return "Morning" if self is SlotKind.MORNING else "Afternoon"

    @property
    def opposite(self) -> SlotKind:
        return SlotKind.AFTERNOON if self is SlotKind.MORNING else SlotKind.MORNING


class CalendarWindow(BaseModel):
    """Currently visible window of the board.

    For Week and BiWeek spans ``start_date`` is always a business day.
    Month windows start on the first calendar day of the month.
    """

    start_date: date
    view_span: ViewSpan = ViewSpan.WEEK
    last_navigated_date: date | None = Field(
        default=None, description="Target of the most recent navigation request"
    )
