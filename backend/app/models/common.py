"""Common data types and enums used across the application."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class TravelStyle(str, Enum):
    """Travel style categories a profile can choose from."""

    budget = "budget"
    backpacking = "backpacking"
    comfort = "comfort"
    luxury = "luxury"
    adventure = "adventure"
    cultural = "cultural"
    relaxation = "relaxation"
    family = "family"
    solo = "solo"


class GenerationStatus(str, Enum):
    """Lifecycle of a single plan generation attempt.

    Transitions only move forward: pending -> processing -> completed | failed.
    """

    pending = "pending"
    processing = "processing"
    completed = "completed"
    failed = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (GenerationStatus.completed, GenerationStatus.failed)


class Pagination(BaseModel):
    """Offset pagination metadata."""

    total: int = Field(description="Total number of matching rows")
    limit: int = Field(description="Page size used for the query")
    offset: int = Field(description="Offset used for the query")
