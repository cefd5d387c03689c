"""Plan models: generated itineraries and their feedback."""

from __future__ import annotations

from datetime import date, datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class PlanListItem(BaseModel):
    """Plan entry in a note's plan history."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    note_id: UUID
    content: str
    prompt_version: str
    feedback: Literal[1, -1] | None = None
    created_at: datetime


class PlanNoteSummary(BaseModel):
    """Subset of the parent note shown next to a plan."""

    model_config = ConfigDict(from_attributes=True)

    destination: str
    start_date: date
    end_date: date


class PlanDTO(PlanListItem):
    """Full plan details including the parent note summary."""

    note: PlanNoteSummary


class PlansListResponse(BaseModel):
    """All plans of a note, newest first."""

    plans: list[PlanListItem]
    total: int


class AcceptPlanCommand(BaseModel):
    """Save an accepted plan preview."""

    content: str = Field(min_length=1)


class FeedbackCommand(BaseModel):
    """Thumbs up (1) or thumbs down (-1)."""

    feedback: Literal[1, -1]


class FeedbackResponse(BaseModel):
    """Acknowledgement of stored feedback."""

    id: UUID
    feedback: Literal[1, -1]
    message: str


class GeneratePlanResponse(BaseModel):
    """Result of POST /notes/{note_id}/generate-plan."""

    id: UUID
    note_id: UUID
    content: str
    prompt_version: str
    created_at: datetime
    remaining_generations: int = Field(
        description="Generations left in the current quota window"
    )
    generation_limit_reset_at: datetime
