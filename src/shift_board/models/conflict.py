"""Conflict report models."""

from __future__ import annotations

from datetime import date

from pydantic import BaseModel, ConfigDict, Field

from shift_board.models.calendar import SlotKind


class ConflictRecord(BaseModel):
    """An existing placement that a leave or holiday write would destroy."""

    model_config = ConfigDict(frozen=True)

    employee_id: int
    employee_name: str
    date: date
    slot_kind: SlotKind
    task_title: str
    assignment_id: int

    @property
    def slot_label(self) -> str:
        return self.slot_kind.label

    def describe(self) -> str:
        return f"{self.employee_name} ({self.slot_label}): {self.task_title}"


class ConflictReport(BaseModel):
    """All conflicts found for a set of target cells."""

    conflicts: list[ConflictRecord] = Field(default_factory=list)

    @property
    def has_conflicts(self) -> bool:
        return bool(self.conflicts)

    @property
    def count(self) -> int:
        return len(self.conflicts)

    @property
    def assignment_ids(self) -> list[int]:
        """Ids to delete, in report order, without duplicates."""
        seen: dict[int, None] = {}
        for c in self.conflicts:
            seen.setdefault(c.assignment_id, None)
        return list(seen)

    def by_employee(self) -> dict[str, list[ConflictRecord]]:
        grouped: dict[str, list[ConflictRecord]] = {}
        for c in self.conflicts:
            grouped.setdefault(c.employee_name, []).append(c)
        return grouped
