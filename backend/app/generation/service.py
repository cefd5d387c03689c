"""Plan generation orchestrator.

One call drives one generation attempt for one note:

    load note -> verify owner -> load profile -> verify completeness
    -> verify quota -> log pending -> log processing -> build prompt
    -> call provider -> persist plan -> log completed -> increment quota

Rejections before the log row is created leave no trace. Any failure after
it marks the log ``failed`` before the error propagates, unless the log has
already reached a terminal status.
"""

import logging
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Protocol
from uuid import UUID

from backend.app.adapters.openrouter.types import AIResponse
from backend.app.db.store import Store
from backend.app.generation.errors import (
    PASSTHROUGH_ERRORS,
    AIGenerationError,
    ForbiddenError,
    GenerationLimitError,
    IncompleteProfileError,
    NotFoundError,
)
from backend.app.generation.prompt import PROMPT_VERSION, build_prompt_for
from backend.app.generation.quota import (
    GENERATION_LIMIT,
    GENERATION_WINDOW,
    ensure_quota_available,
    increment_generation_count,
    remaining_generations,
)
from backend.app.models.common import GenerationStatus
from backend.app.models.plan import GeneratePlanResponse

logger = logging.getLogger(__name__)

AI_FAILURE_MESSAGE = "Failed to generate travel plan. Please try again."


class PlanProvider(Protocol):
    """Anything that turns a prompt into plan text."""

    async def generate_plan(self, prompt: str) -> AIResponse: ...


def _utcnow() -> datetime:
    return datetime.now(UTC)


class PlanGenerationService:
    """Generates travel plans for notes while enforcing the usage quota."""

    def __init__(
        self,
        store: Store,
        provider: PlanProvider,
        *,
        limit: int = GENERATION_LIMIT,
        window: timedelta = GENERATION_WINDOW,
        clock: Callable[[], datetime] = _utcnow,
    ):
        """Initialize the service.

        Args:
            store: Persistence for notes, profiles, plans and generation logs.
            provider: Plan text provider (normally an OpenRouterClient).
            limit: Generations allowed per quota window.
            window: Length of the quota window.
            clock: Returns the current aware UTC time.
        """
        self.store = store
        self.provider = provider
        self.limit = limit
        self.window = window
        self.clock = clock

    async def generate_plan(
        self, note_id: UUID, current_user_id: UUID
    ) -> GeneratePlanResponse:
        """Generate and store a plan for a note owned by the caller.

        Args:
            note_id: Note to plan for.
            current_user_id: Identity resolved by the HTTP boundary.

        Returns:
            The stored plan plus remaining quota and reset timestamp.

        Raises:
            NotFoundError: Note or profile does not exist.
            ForbiddenError: Caller does not own the note.
            IncompleteProfileError: Profile misses required fields.
            GenerationLimitError: Quota window exhausted.
            AIGenerationError: Anything failing after the log row was created.
        """
        logger.info(
            f"Starting plan generation for note {note_id}",
            extra={"note_id": str(note_id), "user_id": str(current_user_id)},
        )

        note = self.store.get_note(note_id)
        if note is None:
            logger.warning(f"Plan generation rejected: note {note_id} not found")
            raise NotFoundError("note", note_id)

        if note.user_id != current_user_id:
            logger.warning(
                f"Plan generation rejected: user {current_user_id} does not own note {note_id}"
            )
            raise ForbiddenError("You do not have permission to access this note")

        profile = self.store.get_profile(note.user_id)
        if profile is None:
            logger.warning(f"Plan generation rejected: no profile for user {note.user_id}")
            raise NotFoundError("profile", note.user_id)

        missing = profile.missing_generation_fields()
        if missing:
            logger.warning(
                f"Plan generation rejected: incomplete profile {profile.id}",
                extra={"missing_fields": missing},
            )
            raise IncompleteProfileError(missing)

        try:
            ensure_quota_available(
                self.store, profile, self.clock(), limit=self.limit, window=self.window
            )
        except GenerationLimitError:
            logger.warning(
                f"Plan generation rejected: quota exhausted for user {note.user_id}",
                extra={"limit": self.limit},
            )
            raise

        log_id = self.store.insert_generation_log(
            note.user_id, note.id, GenerationStatus.pending
        )
        log_status = GenerationStatus.pending
        try:
            self.store.update_generation_log(log_id, status=GenerationStatus.processing)

            prompt = build_prompt_for(note, profile)
            ai_response = await self.provider.generate_plan(prompt)

            plan = self.store.insert_plan(
                note.id, ai_response.content, prompt, PROMPT_VERSION
            )
            self.store.update_generation_log(
                log_id,
                status=GenerationStatus.completed,
                plan_id=plan.id,
                prompt_tokens=ai_response.prompt_tokens,
                completion_tokens=ai_response.completion_tokens,
            )
            log_status = GenerationStatus.completed

            updated_profile = increment_generation_count(self.store, note.user_id)
        except Exception as e:
            logger.exception(
                f"Plan generation failed for note {note_id}",
                extra={"log_id": str(log_id), "note_id": str(note_id)},
            )
            if log_status.is_terminal:
                # Terminal logs are never rewritten
                logger.error(
                    f"Generation log {log_id} already {log_status.value}; leaving it unchanged",
                    extra={"log_id": str(log_id)},
                )
            else:
                self._mark_failed(log_id, e)
            if isinstance(e, PASSTHROUGH_ERRORS):
                raise
            raise AIGenerationError(AI_FAILURE_MESSAGE, e) from e

        logger.info(
            f"Plan {plan.id} generated for note {note_id}",
            extra={
                "plan_id": str(plan.id),
                "log_id": str(log_id),
                "prompt_tokens": ai_response.prompt_tokens,
                "completion_tokens": ai_response.completion_tokens,
            },
        )

        return GeneratePlanResponse(
            id=plan.id,
            note_id=plan.note_id,
            content=plan.content,
            prompt_version=plan.prompt_version,
            created_at=plan.created_at,
            remaining_generations=remaining_generations(updated_profile, self.limit),
            generation_limit_reset_at=updated_profile.generation_limit_reset_at,
        )

    def _mark_failed(self, log_id: UUID, error: Exception) -> None:
        """Move the log to ``failed``; the original error still propagates."""
        try:
            self.store.update_generation_log(
                log_id,
                status=GenerationStatus.failed,
                error_code=type(error).__name__,
                error_message=str(error) or "Unknown error occurred",
            )
        except Exception:
            logger.error(
                f"Could not mark generation log {log_id} as failed",
                exc_info=True,
                extra={"log_id": str(log_id)},
            )
