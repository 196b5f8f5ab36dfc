"""Business-day arithmetic over local calendar dates.

All functions are pure and total. ``datetime`` inputs are truncated to their
calendar date; weekends are Saturday and Sunday.
"""

from __future__ import annotations

import calendar
from datetime import date, datetime, timedelta

from shift_board.models.calendar import ViewSpan

_SATURDAY = 5
_SUNDAY = 6


def to_date(value: date | datetime) -> date:
    """Normalize to a calendar date (drops any time of day)."""
    if isinstance(value, datetime):
        return value.date()
    return value


def is_weekend(d: date | datetime) -> bool:
    return to_date(d).weekday() >= _SATURDAY


def is_business_day(d: date | datetime) -> bool:
    return not is_weekend(d)


def next_business_day(d: date | datetime) -> date:
    """Advance one day, then skip Saturday/Sunday."""
    current = to_date(d) + timedelta(days=1)
    while is_weekend(current):
        current += timedelta(days=1)
    return current


def previous_business_day(d: date | datetime) -> date:
    """Retreat one day, then skip Saturday/Sunday."""
    current = to_date(d) - timedelta(days=1)
    while is_weekend(current):
        current -= timedelta(days=1)
    return current


def monday_of_week(d: date | datetime) -> date:
    """Monday of ``d``'s week; weekends resolve to the following Monday."""
    d = to_date(d)
    weekday = d.weekday()
    if weekday == _SATURDAY:
        return d + timedelta(days=2)
    if weekday == _SUNDAY:
        return d + timedelta(days=1)
    return d - timedelta(days=weekday)


def add_business_days(d: date | datetime, count: int) -> date:
    """Move ``count`` business days forward (or backward when negative)."""
    current = to_date(d)
    step = next_business_day if count > 0 else previous_business_day
    for _ in range(abs(count)):
        current = step(current)
    return current


def business_days_in_range(start: date | datetime, end: date | datetime) -> list[date]:
    """Business days in ``[start, end]``, in order."""
    current, end = to_date(start), to_date(end)
    days: list[date] = []
    while current <= end:
        if is_business_day(current):
            days.append(current)
        current += timedelta(days=1)
    return days


def effective_today(today: date | datetime) -> date:
    """A weekend "today" is treated as the next Monday."""
    today = to_date(today)
    return next_business_day(today) if is_weekend(today) else today


def first_of_month(d: date | datetime) -> date:
    return to_date(d).replace(day=1)


def last_of_month(d: date | datetime) -> date:
    d = to_date(d)
    return d.replace(day=calendar.monthrange(d.year, d.month)[1])


def view_start_date(d: date | datetime, span: ViewSpan) -> date:
    """Anchor date of a freshly opened view containing ``d``.

    Bi-weekly views start on the Monday of an odd ISO week.
    """
    d = to_date(d)
    if span is ViewSpan.DAY:
        return d
    if span is ViewSpan.MONTH:
        return first_of_month(d)
    monday = monday_of_week(d)
    if span is ViewSpan.BI_WEEK and monday.isocalendar()[1] % 2 == 0:
        return monday - timedelta(days=7)
    return monday


def view_end_date(start: date | datetime, span: ViewSpan) -> date:
    """Last date shown by a view that starts at ``start``."""
    start = to_date(start)
    if span is ViewSpan.DAY:
        return start
    if span is ViewSpan.MONTH:
        return last_of_month(start)
    return add_business_days(start, int(span) - 1)
