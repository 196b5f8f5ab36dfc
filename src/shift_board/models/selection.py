"""Selection models."""

from __future__ import annotations

from datetime import date
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from shift_board.models.calendar import SlotKind


class SlotKey(BaseModel):
    """Identifies one slot on the board."""

    model_config = ConfigDict(frozen=True)

    date: date
    slot_kind: SlotKind
    employee_id: int


class SelectionKind(str, Enum):
    SLOTS = "slots"
    TASKS = "tasks"
    DAYS = "days"


class SelectionState(BaseModel):
    """Three independent selection sets.

    Cross-set exclusivity is a convention of the caller and is not enforced here.
    """

    model_config = ConfigDict(frozen=True)

    selected_slots: frozenset[SlotKey] = Field(default_factory=frozenset)
    selected_tasks: frozenset[int] = Field(default_factory=frozenset)
    selected_days: frozenset[date] = Field(default_factory=frozenset)

    @property
    def is_empty(self) -> bool:
        return not (self.selected_slots or self.selected_tasks or self.selected_days)

    def items(self, kind: SelectionKind) -> frozenset[Any]:
        if kind is SelectionKind.SLOTS:
            return self.selected_slots
        if kind is SelectionKind.TASKS:
            return self.selected_tasks
        return self.selected_days


class SelectionSnapshot(BaseModel):
    """Selection captured when an async action starts.

    The flow reads this value instead of the live selection.
    """

    model_config = ConfigDict(frozen=True)

    kind: SelectionKind
    items: frozenset[Any] = Field(default_factory=frozenset)
    trigger: Any = None

    def __len__(self) -> int:
        return len(self.items)

    def __contains__(self, item: object) -> bool:
        return item in self.items
