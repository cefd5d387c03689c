"""Plan generation: prompt building, quota bookkeeping and orchestration."""

from backend.app.generation.errors import (
    AIGenerationError,
    ForbiddenError,
    GenerationLimitError,
    IncompleteProfileError,
    NotFoundError,
    PlanGenerationError,
    UnauthorizedError,
    ValidationError,
)
from backend.app.generation.prompt import (
    MAX_PROMPT_LENGTH,
    PROMPT_VERSION,
    PromptData,
    PromptTooLongError,
    build_prompt,
)
from backend.app.generation.service import PlanGenerationService

__all__ = [
    "AIGenerationError",
    "ForbiddenError",
    "GenerationLimitError",
    "IncompleteProfileError",
    "NotFoundError",
    "PlanGenerationError",
    "UnauthorizedError",
    "ValidationError",
    "MAX_PROMPT_LENGTH",
    "PROMPT_VERSION",
    "PromptData",
    "PromptTooLongError",
    "build_prompt",
    "PlanGenerationService",
]
