"""Employee data models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class Employee(BaseModel):
    """Reference data for one board row. Supplied by the host, never edited here."""

    model_config = ConfigDict(frozen=True)

    employee_id: int
    name: str
    team: str = ""
    team_id: int | None = Field(default=None, description="Owning team, used for team-filtered grids")
