"""Scheduling engine configuration."""

from __future__ import annotations

from pydantic import BaseModel, Field

from shift_board.models.calendar import ViewSpan


class EngineConfig(BaseModel):
    """Configuration for slot layout and the async write flows."""

    slot_capacity_hours: float = Field(default=4.0, gt=0.0)
    slot_columns: int = Field(default=4, ge=1)
    max_tasks_per_slot: int = Field(default=4, ge=1)
    min_task_hours: float = Field(
        default=1.0, gt=0.0, description="Floor applied when compressing placements on drop"
    )
    repack_settle_delay: float = Field(
        default=0.1,
        ge=0.0,
        description="Seconds to wait after a confirmed cross-slot move before repacking the source slot",
    )
    default_view_span: ViewSpan = ViewSpan.WEEK
