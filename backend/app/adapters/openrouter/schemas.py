"""Structured itinerary schema for schema-constrained completions."""

from pydantic import BaseModel, ConfigDict, Field


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="forbid")


class ItineraryDay(_CamelModel):
    """One day of a structured itinerary."""

    title: str = Field(min_length=1)
    morning: str = Field(min_length=1)
    afternoon: str = Field(min_length=1)
    evening: str = Field(min_length=1)
    notes: str | None = None


class PlanBudget(_CamelModel):
    """Budget summary of a structured itinerary."""

    daily: float = Field(ge=0)
    currency: str = Field(min_length=1)
    total_estimate: float | None = Field(default=None, ge=0, alias="totalEstimate")


class StructuredTravelPlan(_CamelModel):
    """Itinerary returned by a structured completion."""

    summary: str = Field(min_length=1)
    destination_highlights: list[str] | None = Field(
        default=None, min_length=1, max_length=10, alias="destinationHighlights"
    )
    days: list[ItineraryDay] = Field(min_length=1)
    budget: PlanBudget
    tips: list[str] | None = Field(default=None, max_length=12)
    additional_recommendations: list[str] | None = Field(
        default=None, alias="additionalRecommendations"
    )
