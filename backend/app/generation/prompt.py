"""Prompt construction for travel plan generation.

Sanitization here is a soft defense: it strips characters commonly used to
smuggle template or markup syntax into the prompt, it is not a security
boundary.
"""

import math
import re
from datetime import date
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

if TYPE_CHECKING:  # pragma: no cover
    from backend.app.db.models import Note, Profile

PROMPT_VERSION = "v1"
MAX_PROMPT_LENGTH = 8000

_BRACKETS_RE = re.compile(r"[<>{}]")
_EXCESS_NEWLINES_RE = re.compile(r"\n{3,}")

_TEMPLATE = """You are a professional travel planner. Create a detailed, personalized travel itinerary based on the following information:

**Destination:** {destination}
**Travel Dates:** {start} to {end} ({duration} days)
**Travel Style:** {travel_style}
**Interests:** {interests}
{budget_line}
{notes_line}

Please create a comprehensive day-by-day itinerary that includes:
1. Daily activities aligned with the traveler's interests and style
2. Recommended places to visit with brief descriptions
3. Suggested dining options that fit the budget
4. Practical tips and local insights
5. Estimated costs breakdown if budget is specified
6. Transportation recommendations between locations

Format the itinerary in markdown with clear section headers. Make it engaging, practical, and personalized to the traveler's preferences."""


class PromptTooLongError(ValueError):
    """Rendered prompt exceeds MAX_PROMPT_LENGTH. Not retryable."""

    def __init__(self, length: int, limit: int = MAX_PROMPT_LENGTH):
        self.length = length
        self.limit = limit
        super().__init__(
            f"Prompt exceeds maximum length of {limit} characters ({length} characters)"
        )


class PromptData(BaseModel):
    """Trip and traveler data rendered into the prompt."""

    destination: str = Field(min_length=1)
    start_date: date
    end_date: date
    total_budget: float | None = None
    daily_budget: float | None = None
    travel_style: str = Field(min_length=1)
    interests: list[str] = Field(default_factory=list)
    other_interests: str | None = None
    additional_notes: str | None = None


def sanitize_input(value: str) -> str:
    """Strip angle/curly brackets and collapse runs of 3+ newlines."""
    value = _BRACKETS_RE.sub("", value)
    value = _EXCESS_NEWLINES_RE.sub("\n\n", value)
    return value.strip()


def trip_duration_days(start: date, end: date) -> int:
    """Trip length counting both the start and end day."""
    return abs((end - start).days) + 1


def format_date(value: date) -> str:
    """Render a date like ``June 1, 2025``."""
    return f"{value:%B} {value.day}, {value.year}"


def _format_money(amount: float) -> str:
    if float(amount).is_integer():
        return str(int(amount))
    return f"{amount:.2f}".rstrip("0").rstrip(".")


def _budget_text(total: float | None, daily: float | None) -> str:
    if total:
        text = f"Total budget: ${_format_money(total)}"
        if daily:
            text += f" (approximately ${_format_money(daily)} per day)"
        return text
    if daily:
        return f"Daily budget: ${_format_money(daily)}"
    return ""


def build_prompt(data: PromptData) -> str:
    """Render the generation prompt.

    Output depends only on ``data``: identical input yields identical text.

    Args:
        data: Trip and traveler data.

    Returns:
        The rendered prompt.

    Raises:
        PromptTooLongError: If the prompt exceeds MAX_PROMPT_LENGTH characters.
    """
    interests = list(data.interests)
    if data.other_interests:
        interests.append(sanitize_input(data.other_interests))
    interests_text = ", ".join(interests) if interests else "general tourism"

    budget_text = _budget_text(data.total_budget, data.daily_budget)
    notes_text = sanitize_input(data.additional_notes) if data.additional_notes else ""

    prompt = _TEMPLATE.format(
        destination=sanitize_input(data.destination),
        start=format_date(data.start_date),
        end=format_date(data.end_date),
        duration=trip_duration_days(data.start_date, data.end_date),
        travel_style=sanitize_input(data.travel_style),
        interests=interests_text,
        budget_line=f"**Budget:** {budget_text}" if budget_text else "",
        notes_line=f"**Additional Notes:** {notes_text}" if notes_text else "",
    )

    if len(prompt) > MAX_PROMPT_LENGTH:
        raise PromptTooLongError(len(prompt))
    return prompt


def build_prompt_for(note: "Note", profile: "Profile") -> str:
    """Build the prompt for a note and its owner's profile.

    The daily budget comes from the profile, or is derived from the note's
    total budget spread over the trip when the profile has none.

    Raises:
        ValueError: If required prompt fields are missing.
        PromptTooLongError: If the rendered prompt is too long.
    """
    daily_budget = profile.daily_budget
    if not daily_budget and note.total_budget:
        days = trip_duration_days(note.start_date, note.end_date)
        daily_budget = math.floor(note.total_budget / days)

    if profile.travel_style is None:
        raise ValueError("Invalid prompt data: missing required fields")

    data = PromptData(
        destination=note.destination,
        start_date=note.start_date,
        end_date=note.end_date,
        total_budget=note.total_budget,
        daily_budget=daily_budget,
        travel_style=getattr(profile.travel_style, "value", profile.travel_style),
        interests=profile.interests or [],
        other_interests=profile.other_interests,
        additional_notes=note.additional_notes,
    )
    return build_prompt(data)
