"""Window navigation.

Every function takes a ``CalendarWindow`` and returns a new one. Week and
BiWeek windows page one business day per navigation request, so a weekend
is never revealed and the window never jumps straight to a clicked date.
"""

from __future__ import annotations

from datetime import date, datetime

from shift_board.models.calendar import CalendarWindow, ViewSpan
from shift_board.window.business_days import (
    add_business_days,
    business_days_in_range,
    first_of_month,
    last_of_month,
    next_business_day,
    previous_business_day,
    to_date,
    view_start_date,
)


def create_window(today: date | datetime, span: ViewSpan = ViewSpan.WEEK) -> CalendarWindow:
    """Window shown on mount."""
    return CalendarWindow(start_date=view_start_date(today, span), view_span=span)


def window_end(window: CalendarWindow) -> date:
    """Last business day of a Week or BiWeek window."""
    _require_paged(window, "window_end")
    return add_business_days(window.start_date, int(window.view_span) - 1)


def visible_dates(window: CalendarWindow) -> list[date]:
    span = window.view_span
    if span is ViewSpan.DAY:
        return [window.start_date]
    if span is ViewSpan.MONTH:
        return business_days_in_range(
            first_of_month(window.start_date), last_of_month(window.start_date)
        )
    return business_days_in_range(window.start_date, window_end(window))


def navigate_to(window: CalendarWindow, target: date | datetime) -> CalendarWindow:
    """Shift a Week/BiWeek window by exactly one business day towards ``target``.

    Direction: a target earlier than the last navigated date pages backward,
    anything else forward. A target outside the window overrides that: before
    the start pages backward, after the end pages forward. The target is
    always recorded as the last navigated date.

    Raises:
        ValueError: If the window is not a Week or BiWeek window.
    """
    _require_paged(window, "navigate_to")
    target = to_date(target)
    start = window.start_date
    end = window_end(window)
    last = window.last_navigated_date
    backward = last is not None and target < last

    if target < start:
        new_start = previous_business_day(start)
    elif target > end:
        new_start = next_business_day(start)
    elif backward:
        new_start = previous_business_day(start)
    else:
        new_start = next_business_day(start)

    return window.model_copy(update={"start_date": new_start, "last_navigated_date": target})


def navigate(window: CalendarWindow, target: date | datetime) -> CalendarWindow:
    """Navigate any kind of window.

    Day windows jump to the target; Month windows snap to the target's month.
    """
    target = to_date(target)
    if window.view_span is ViewSpan.DAY:
        return window.model_copy(update={"start_date": target, "last_navigated_date": target})
    if window.view_span is ViewSpan.MONTH:
        return window.model_copy(
            update={"start_date": first_of_month(target), "last_navigated_date": target}
        )
    return navigate_to(window, target)


def step_forward(window: CalendarWindow) -> CalendarWindow:
    return _step(window, forward=True)


def step_backward(window: CalendarWindow) -> CalendarWindow:
    return _step(window, forward=False)


def change_view_span(window: CalendarWindow, span: ViewSpan) -> CalendarWindow:
    """Switch span, re-anchoring the start for the new view."""
    if span is window.view_span:
        return window
    return window.model_copy(
        update={"view_span": span, "start_date": view_start_date(window.start_date, span)}
    )


def _step(window: CalendarWindow, forward: bool) -> CalendarWindow:
    start = window.start_date
    if window.view_span is ViewSpan.MONTH:
        month_index = start.year * 12 + start.month - 1 + (1 if forward else -1)
        new_start = date(month_index // 12, month_index % 12 + 1, 1)
    elif forward:
        new_start = next_business_day(start)
    else:
        new_start = previous_business_day(start)
    return window.model_copy(update={"start_date": new_start})


def _require_paged(window: CalendarWindow, operation: str) -> None:
    if not window.view_span.is_paged:
        raise ValueError(
            f"{operation} requires a Week or BiWeek window, got {window.view_span.name}"
        )
