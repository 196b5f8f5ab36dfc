"""Utilization tables over a calendar grid."""

from __future__ import annotations

import numpy as np
import pandas as pd
from numpy.typing import NDArray

from shift_board.models.schedule import CalendarGrid

FRAME_COLUMNS = [
    "employee_id",
    "employee_name",
    "team",
    "date",
    "slot",
    "task_count",
    "hours",
    "capacity_hours",
    "is_overbooked",
    "is_blocked",
    "is_holiday",
]


def grid_to_frame(grid: CalendarGrid) -> pd.DataFrame:
    """One row per (employee, date, slot).

    Pass the rendered grid (``BoardState.grid``) so blocked slots carry the
    leave and holiday flags.
    """
    rows = []
    for employee, cell in grid.cells():
        for slot in cell.slots:
            rows.append(
                {
                    "employee_id": employee.employee_id,
                    "employee_name": employee.name,
                    "team": employee.team,
                    "date": cell.date,
                    "slot": slot.slot_kind.value,
                    "task_count": len(slot.placements),
                    "hours": slot.total_hours,
                    "capacity_hours": slot.capacity_hours,
                    "is_overbooked": slot.is_overbooked,
                    "is_blocked": cell.slot_blocked(slot.slot_kind),
                    "is_holiday": cell.is_holiday,
                }
            )
    return pd.DataFrame(rows, columns=FRAME_COLUMNS)


def utilization_summary(grid: CalendarGrid) -> pd.DataFrame:
    """Per-employee totals, indexed by employee id.

    ``utilization`` is booked hours over the capacity of unblocked slots
    (0 when every slot is blocked).
    """
    df = grid_to_frame(grid)
    if df.empty:
        return pd.DataFrame(
            columns=[
                "employee_name", "hours", "tasks", "overbooked_slots",
                "blocked_slots", "available_hours", "utilization",
            ]
        )

    df["available_hours"] = np.where(df["is_blocked"], 0.0, df["capacity_hours"])
    summary = df.groupby("employee_id", sort=True).agg(
        employee_name=("employee_name", "first"),
        hours=("hours", "sum"),
        tasks=("task_count", "sum"),
        overbooked_slots=("is_overbooked", "sum"),
        blocked_slots=("is_blocked", "sum"),
        available_hours=("available_hours", "sum"),
    )
    available = summary["available_hours"].to_numpy(dtype=float)
    hours = summary["hours"].to_numpy(dtype=float)
    summary["utilization"] = np.divide(
        hours, available, out=np.zeros_like(hours), where=available > 0
    ).round(3)
    return summary


def overbooked_slots(grid: CalendarGrid) -> pd.DataFrame:
    df = grid_to_frame(grid)
    return df[df["is_overbooked"].astype(bool)].reset_index(drop=True)


def hours_matrix(grid: CalendarGrid) -> NDArray[np.float64]:
    """Booked hours per employee (rows, grid order) and date (columns, ``grid.dates`` order)."""
    matrix = np.zeros((len(grid.employees), len(grid.dates)), dtype=np.float64)
    column = {d: i for i, d in enumerate(grid.dates)}
    for row_idx, row in enumerate(grid.employees):
        for cell in row.day_assignments:
            col_idx = column.get(cell.date)
            if col_idx is not None:
                matrix[row_idx, col_idx] = sum(s.total_hours for s in cell.slots)
    return matrix
