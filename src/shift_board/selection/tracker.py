"""Selection toggling and captured snapshots.

The three sets (slots, tasks, days) follow the same rule shape:

- plain click: clear the set if the item is its only member, otherwise
  replace the set with ``{item}``;
- modifier click: add the item if absent, remove it if present.

Clearing the other sets when one is selected is left to the caller.
"""

from __future__ import annotations

from collections.abc import Hashable
from datetime import date
from typing import TypeVar

from shift_board.models.selection import (
    SelectionKind,
    SelectionSnapshot,
    SelectionState,
    SlotKey,
)

T = TypeVar("T", bound=Hashable)


def toggle(current: frozenset[T], item: T, multi: bool = False) -> frozenset[T]:
    """Apply one click to a selection set."""
    if multi:
        return current - {item} if item in current else current | {item}
    if current == {item}:
        return frozenset()
    return frozenset({item})


def toggle_slot(state: SelectionState, key: SlotKey, multi: bool = False) -> SelectionState:
    return state.model_copy(update={"selected_slots": toggle(state.selected_slots, key, multi)})


def toggle_task(state: SelectionState, assignment_id: int, multi: bool = False) -> SelectionState:
    return state.model_copy(
        update={"selected_tasks": toggle(state.selected_tasks, assignment_id, multi)}
    )


def toggle_day(state: SelectionState, day: date, multi: bool = False) -> SelectionState:
    return state.model_copy(update={"selected_days": toggle(state.selected_days, day, multi)})


def clear(state: SelectionState, *kinds: SelectionKind) -> SelectionState:
    """Empty the named sets (all of them when none are named)."""
    kinds = kinds or tuple(SelectionKind)
    update = {}
    if SelectionKind.SLOTS in kinds:
        update["selected_slots"] = frozenset()
    if SelectionKind.TASKS in kinds:
        update["selected_tasks"] = frozenset()
    if SelectionKind.DAYS in kinds:
        update["selected_days"] = frozenset()
    return state.model_copy(update=update)


def capture(state: SelectionState, kind: SelectionKind, trigger: Hashable) -> SelectionSnapshot:
    """Snapshot the set an async action will work on.

    The whole selection is captured when ``trigger`` belongs to it, otherwise
    just ``{trigger}``.
    """
    current = state.items(kind)
    items = current if trigger in current else frozenset({trigger})
    return SelectionSnapshot(kind=kind, items=items, trigger=trigger)
