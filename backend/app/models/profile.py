"""Profile models: travel preferences and generation quota."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from .common import TravelStyle


class UpdateProfileCommand(BaseModel):
    """Upsert payload for the current user's profile."""

    travel_style: TravelStyle
    interests: list[str] = Field(default_factory=list, max_length=20)
    other_interests: str | None = Field(default=None, max_length=500)
    daily_budget: float | None = Field(default=None, gt=0)
    typical_trip_duration: int | None = Field(default=None, ge=1, le=365)


class ProfileDTO(BaseModel):
    """Profile as returned by the API."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    travel_style: TravelStyle | None = None
    interests: list[str] = Field(default_factory=list)
    other_interests: str | None = None
    daily_budget: float | None = None
    typical_trip_duration: int | None = None
    generation_count: int
    generation_limit_reset_at: datetime
    created_at: datetime
    updated_at: datetime
    is_complete: bool = Field(
        description="Whether the profile has everything plan generation needs"
    )
