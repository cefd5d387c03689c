"""Business errors raised by plan generation and the CRUD endpoints around it.

Each error carries the HTTP status it maps to; ``backend.app.api.errors``
turns them into JSON responses.
"""

from datetime import datetime
from typing import Literal

ResourceType = Literal["note", "plan", "profile", "user"]


class PlanGenerationError(Exception):
    """Base class for typed business errors."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(PlanGenerationError):
    """Referenced note, plan or profile does not exist."""

    status_code = 404

    def __init__(self, resource_type: ResourceType, resource_id: object):
        self.resource_type = resource_type
        self.resource_id = str(resource_id)
        super().__init__(
            f"{resource_type.capitalize()} with ID {self.resource_id} not found"
        )


class ForbiddenError(PlanGenerationError):
    """Caller does not own the resource."""

    status_code = 403

    def __init__(self, message: str = "You do not have permission to access this resource"):
        super().__init__(message)


class UnauthorizedError(PlanGenerationError):
    """No caller identity could be resolved."""

    status_code = 401

    def __init__(self, message: str = "You must be authenticated to perform this action"):
        super().__init__(message)


class IncompleteProfileError(PlanGenerationError):
    """Profile lacks fields required for generation."""

    status_code = 400

    def __init__(self, missing_fields: list[str]):
        self.missing_fields = list(missing_fields)
        super().__init__(
            "User profile is incomplete. Missing required fields: "
            f"{', '.join(self.missing_fields)}. "
            "Please complete your profile before generating a travel plan."
        )


class GenerationLimitError(PlanGenerationError):
    """Monthly generation quota is exhausted."""

    status_code = 429

    def __init__(self, limit: int, reset_at: datetime | None = None):
        self.limit = limit
        self.reset_at = reset_at
        reset_info = (
            f" Try again after {reset_at.isoformat()}."
            if reset_at
            else " Please try again later."
        )
        super().__init__(
            f"You have reached your plan generation limit of {limit} plans.{reset_info}"
        )


class AIGenerationError(PlanGenerationError):
    """Generation failed after eligibility checks passed."""

    status_code = 500

    def __init__(
        self,
        message: str = "Failed to generate travel plan",
        original_error: BaseException | None = None,
    ):
        self.original_error = original_error
        super().__init__(message)


class ValidationError(PlanGenerationError):
    """Field-level input validation failure."""

    status_code = 400

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"Validation error for field '{field}': {reason}")


# Errors re-raised unchanged by the orchestrator; everything else is wrapped
PASSTHROUGH_ERRORS: tuple[type[PlanGenerationError], ...] = (
    NotFoundError,
    ForbiddenError,
    IncompleteProfileError,
    GenerationLimitError,
)
