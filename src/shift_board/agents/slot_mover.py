"""SlotMoverAgent - persists placement moves and keeps slots packed."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from datetime import date
from typing import Any

from pydantic import BaseModel, Field

from shift_board.agents.base import BaseAgent
from shift_board.layout.packing import (
    changed_positions,
    left_pack,
    pack_source_after_move,
    place_at_destination,
    rearrange_for_drop,
    remove_placement,
)
from shift_board.models.board import BoardState
from shift_board.models.calendar import SlotKind
from shift_board.models.engine_config import EngineConfig
from shift_board.models.schedule import CalendarGrid, TaskPlacement
from shift_board.models.selection import SelectionKind, SelectionSnapshot, SlotKey
from shift_board.services.schedule_service import AssignmentPatch, BulkPatch, ScheduleService

logger = logging.getLogger(__name__)


class MoveResult(BaseModel):
    """Outcome of a move, delete or drop."""

    state: BoardState
    accepted: bool = True
    reason: str = ""
    placement: TaskPlacement | None = None
    repacked: list[TaskPlacement] = Field(default_factory=list)
    failed_ids: list[int] = Field(default_factory=list)


class PasteResult(BaseModel):
    state: BoardState
    created: list[TaskPlacement] = Field(default_factory=list)
    failed_slots: list[SlotKey] = Field(default_factory=list)
    blocked_slots: list[SlotKey] = Field(default_factory=list)
    failed_ids: list[int] = Field(default_factory=list)


class SlotMoverAgent(BaseAgent):
    """Applies placement mutations: server first, local state after.

    A single-target write that fails propagates and leaves the state as it
    was. Follow-up position updates of repacked placements are best-effort.
    """

    def __init__(self, service: ScheduleService, config: EngineConfig | None = None) -> None:
        self._service = service
        self.config = config or EngineConfig()

    @property
    def name(self) -> str:
        return "slot_mover"

    async def move_task(
        self,
        state: BoardState,
        assignment_id: int,
        employee_id: int,
        day: date,
        slot: SlotKind,
        column_start: int = 0,
        hours: float | None = None,
    ) -> MoveResult:
        """Move a placement to an explicit position of another (or the same) slot.

        The destination keeps the given position; only the vacated slot is
        repacked, after the destination write has been confirmed.
        """
        grid = state.base_grid
        source, placement = grid.locate(assignment_id)
        self._check_target(state, employee_id, day, slot)
        hours = placement.hours if hours is None else hours

        await self._service.update_assignment(
            assignment_id,
            AssignmentPatch(
                employee_id=employee_id,
                assigned_date=day,
                slot=slot,
                column_start=column_start,
                hours=hours,
            ),
        )

        destination = grid.cell(employee_id, day).slot(slot).placements
        grid = grid.replace_slot(
            employee_id, day, slot, place_at_destination(destination, placement, column_start, hours)
        )
        moved = placement.model_copy(update={"column_start": column_start, "hours": hours})
        if source == (employee_id, day, slot):
            return MoveResult(state=state.model_copy(update={"base_grid": grid}), placement=moved)

        grid, repacked, failed = await self._repack_source(grid, source, assignment_id)
        return MoveResult(
            state=state.model_copy(update={"base_grid": grid}),
            placement=moved,
            repacked=repacked,
            failed_ids=failed,
        )

    async def drop_task_at_column(
        self,
        state: BoardState,
        assignment_id: int,
        employee_id: int,
        day: date,
        slot: SlotKind,
        target_column: int,
    ) -> MoveResult:
        """Drop a placement onto a column, rearranging the destination slot."""
        grid = state.base_grid
        source, placement = grid.locate(assignment_id)
        self._check_target(state, employee_id, day, slot)

        destination = grid.cell(employee_id, day).slot(slot).placements
        plan = rearrange_for_drop(destination, placement, target_column, self.config)
        if not plan.can_drop:
            return MoveResult(state=state, accepted=False, reason=plan.reason)

        dropped = next(p for p in plan.placements if p.assignment_id == assignment_id)
        await self._service.update_assignment(
            assignment_id,
            AssignmentPatch(
                employee_id=employee_id,
                assigned_date=day,
                slot=slot,
                column_start=dropped.column_start,
                hours=dropped.hours,
            ),
        )

        grid = grid.replace_slot(employee_id, day, slot, plan.placements)
        neighbours = [p for p in changed_positions(destination, plan.placements) if p.assignment_id != assignment_id]
        failed = await self._persist_positions(neighbours)
        repacked = list(neighbours)

        if source != (employee_id, day, slot):
            grid, source_repacked, source_failed = await self._repack_source(grid, source, assignment_id)
            repacked.extend(source_repacked)
            failed.extend(source_failed)

        return MoveResult(
            state=state.model_copy(update={"base_grid": grid}),
            placement=dropped,
            repacked=repacked,
            failed_ids=failed,
        )

    async def delete_task(self, state: BoardState, assignment_id: int) -> MoveResult:
        """Delete a placement and left-pack what remains of its slot."""
        grid = state.base_grid
        (employee_id, day, slot), placement = grid.locate(assignment_id)

        await self._service.delete_assignment(assignment_id)

        before = grid.cell(employee_id, day).slot(slot).placements
        remaining = remove_placement(before, assignment_id)
        grid = grid.replace_slot(employee_id, day, slot, remaining)
        changed = changed_positions(before, remaining)
        failed = await self._persist_positions(changed)

        selection = state.selection
        if assignment_id in selection.selected_tasks:
            selection = selection.model_copy(
                update={"selected_tasks": selection.selected_tasks - {assignment_id}}
            )
        return MoveResult(
            state=state.model_copy(update={"base_grid": grid, "selection": selection}),
            placement=placement,
            repacked=changed,
            failed_ids=failed,
        )

    async def bulk_update(
        self, state: BoardState, snapshot: SelectionSnapshot, patch: BulkPatch
    ) -> BoardState:
        """Patch every task of a captured task selection."""
        if snapshot.kind is not SelectionKind.TASKS:
            raise ValueError(f"Bulk update needs a task snapshot, got {snapshot.kind.value}")
        ids = sorted(snapshot.items)
        if not ids:
            return state
        updated = await self._service.bulk_update_assignments(ids, patch)
        return state.model_copy(update={"base_grid": state.base_grid.with_placements_updated(updated)})

    async def paste_task(
        self,
        state: BoardState,
        snapshot: SelectionSnapshot,
        task_id: int,
        notes: str | None = None,
    ) -> PasteResult:
        """Create one assignment of ``task_id`` in every slot of a captured slot selection.

        Slots blocked by leave or a holiday are skipped. Each new placement is
        appended after the slot's packed placements and every changed
        position is persisted; failed creations and position updates are
        tolerated and reported.
        """
        if snapshot.kind is not SelectionKind.SLOTS:
            raise ValueError(f"Paste needs a slot snapshot, got {snapshot.kind.value}")

        rendered = state.grid
        grid = state.base_grid
        created: list[TaskPlacement] = []
        failed: list[SlotKey] = []
        blocked: list[SlotKey] = []
        failed_ids: list[int] = []
        for key in sorted(snapshot.items, key=lambda k: (k.date, k.employee_id, k.slot_kind.value)):
            if rendered.cell(key.employee_id, key.date).slot_blocked(key.slot_kind):
                logger.debug(
                    "Skipping paste into blocked %s %s of employee %s",
                    key.date.isoformat(), key.slot_kind.label, key.employee_id,
                )
                blocked.append(key)
                continue
            try:
                placement = await self._service.create_assignment(
                    task_id, key.employee_id, key.date, key.slot_kind, notes
                )
            except Exception:
                logger.warning(
                    "Paste of task %s into %s %s of employee %s failed",
                    task_id, key.date.isoformat(), key.slot_kind.label, key.employee_id,
                    exc_info=True,
                )
                failed.append(key)
                continue
            existing = grid.cell(key.employee_id, key.date).slot(key.slot_kind).placements
            appended = _append(existing, placement)
            failed_ids += await self._persist_positions(
                changed_positions([*existing, placement], appended)
            )
            grid = grid.replace_slot(key.employee_id, key.date, key.slot_kind, appended)
            created.append(appended[-1])

        return PasteResult(
            state=state.model_copy(update={"base_grid": grid}),
            created=created,
            failed_slots=failed,
            blocked_slots=blocked,
            failed_ids=failed_ids,
        )

    def _check_target(self, state: BoardState, employee_id: int, day: date, slot: SlotKind) -> None:
        cell = state.grid.cell(employee_id, day)
        if cell.slot_blocked(slot):
            raise ValueError(
                f"{slot.label} of {day.isoformat()} is blocked for employee {employee_id}"
            )

    async def _repack_source(
        self, grid: CalendarGrid, source: tuple[int, date, SlotKind], moved_id: int
    ) -> tuple[CalendarGrid, list[TaskPlacement], list[int]]:
        if self.config.repack_settle_delay > 0:
            await asyncio.sleep(self.config.repack_settle_delay)
        employee_id, day, slot = source
        before = grid.cell(employee_id, day).slot(slot).placements
        repacked = pack_source_after_move(before, moved_id)
        logger.debug(
            "Repacking %s %s of employee %s: %d placements left",
            day.isoformat(), slot.label, employee_id, len(repacked),
        )
        grid = grid.replace_slot(employee_id, day, slot, repacked)
        changed = changed_positions(before, repacked)
        failed = await self._persist_positions(changed)
        return grid, changed, failed

    async def _persist_positions(self, placements: Sequence[TaskPlacement]) -> list[int]:
        failed: list[int] = []
        for p in placements:
            try:
                await self._service.update_assignment(
                    p.assignment_id,
                    AssignmentPatch(column_start=p.column_start, hours=p.hours),
                )
            except Exception:
                logger.warning(
                    "Could not persist position of assignment %s", p.assignment_id, exc_info=True
                )
                failed.append(p.assignment_id)
        return failed

    async def _handle_move_task(self, payload: dict[str, Any]) -> MoveResult:
        return await self.move_task(
            state=payload["state"],
            assignment_id=payload["assignment_id"],
            employee_id=payload["employee_id"],
            day=payload["day"],
            slot=SlotKind(payload["slot"]),
            column_start=payload.get("column_start", 0),
            hours=payload.get("hours"),
        )

    async def _handle_drop_task(self, payload: dict[str, Any]) -> MoveResult:
        return await self.drop_task_at_column(
            state=payload["state"],
            assignment_id=payload["assignment_id"],
            employee_id=payload["employee_id"],
            day=payload["day"],
            slot=SlotKind(payload["slot"]),
            target_column=payload["target_column"],
        )

    async def _handle_delete_task(self, payload: dict[str, Any]) -> MoveResult:
        return await self.delete_task(payload["state"], payload["assignment_id"])


def _append(existing: Sequence[TaskPlacement], placement: TaskPlacement) -> list[TaskPlacement]:
    packed = left_pack(existing)
    start = packed[-1].column_end if packed else 0
    return packed + [placement.model_copy(update={"column_start": start})]
