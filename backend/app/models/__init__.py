"""Convenient imports for all API model types."""

# Common types and enums
from .common import GenerationStatus, Pagination, TravelStyle

# Note models
from .note import NoteCommand, NoteDTO, NoteListItem, NotesListResponse, SortParams

# Plan models
from .plan import (
    AcceptPlanCommand,
    FeedbackCommand,
    FeedbackResponse,
    GeneratePlanResponse,
    PlanDTO,
    PlanListItem,
    PlanNoteSummary,
    PlansListResponse,
)

# Profile models
from .profile import ProfileDTO, UpdateProfileCommand

__all__ = [
    "AcceptPlanCommand",
    "FeedbackCommand",
    "FeedbackResponse",
    "GeneratePlanResponse",
    "GenerationStatus",
    "NoteCommand",
    "NoteDTO",
    "NoteListItem",
    "NotesListResponse",
    "Pagination",
    "PlanDTO",
    "PlanListItem",
    "PlanNoteSummary",
    "PlansListResponse",
    "ProfileDTO",
    "SortParams",
    "TravelStyle",
    "UpdateProfileCommand",
]
