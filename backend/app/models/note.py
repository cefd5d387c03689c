"""Note models: trip intents recorded by a user."""

from __future__ import annotations

from datetime import date, datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .common import Pagination

MAX_TRIP_DAYS = 14

SortField = Literal["created_at", "start_date", "destination"]
SortDirection = Literal["asc", "desc"]


class NoteCommand(BaseModel):
    """Payload for creating or updating a note."""

    destination: str = Field(min_length=1, max_length=255)
    start_date: date = Field(description="First day of the trip")
    end_date: date = Field(description="Last day of the trip (inclusive)")
    total_budget: float | None = Field(
        default=None, gt=0, description="Total trip budget"
    )
    additional_notes: str | None = Field(default=None, max_length=10_000)

    @model_validator(mode="after")
    def validate_dates(self) -> "NoteCommand":
        """End must not precede start and the trip is capped at 14 days."""
        if self.end_date < self.start_date:
            raise ValueError("End date must be after or equal to start date")
        if (self.end_date - self.start_date).days > MAX_TRIP_DAYS:
            raise ValueError(f"Trip duration cannot exceed {MAX_TRIP_DAYS} days")
        return self


class NoteDTO(BaseModel):
    """Note as returned by the API (owner is never exposed)."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    destination: str
    start_date: date
    end_date: date
    total_budget: float | None = None
    additional_notes: str | None = None
    created_at: datetime
    updated_at: datetime


class NoteListItem(NoteDTO):
    """Note list entry with the number of plans generated for it."""

    plan_count: int = 0


class NotesListResponse(BaseModel):
    """Paginated note list."""

    notes: list[NoteListItem]
    pagination: Pagination


class SortParams(BaseModel):
    """Parsed `field:direction` sort expression."""

    field: SortField = "created_at"
    direction: SortDirection = "desc"

    @classmethod
    def parse(cls, raw: str | None) -> "SortParams":
        """Parse a sort query value such as ``start_date:asc``.

        Raises:
            ValueError: If the field or direction is not supported.
        """
        if not raw:
            return cls()
        field, _, direction = raw.partition(":")
        return cls.model_validate({"field": field, "direction": direction or "desc"})
