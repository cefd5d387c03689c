"""SQLAlchemy-backed store used by the plan generation pipeline.

Every write commits on its own. The pipeline does not wrap its steps in one
transaction, so a failure half-way leaves the earlier rows (for example the
generation log) committed and inspectable.
"""

from datetime import datetime
from typing import Protocol
from uuid import UUID

from sqlalchemy import update
from sqlalchemy.orm import Session

from backend.app.db.models import GenerationLog, Note, Plan, Profile
from backend.app.models.common import GenerationStatus


class Store(Protocol):
    """Storage operations the generation pipeline depends on."""

    def get_note(self, note_id: UUID) -> Note | None: ...

    def get_profile(self, user_id: UUID) -> Profile | None: ...

    def update_profile(
        self,
        user_id: UUID,
        *,
        generation_count: int | None = None,
        generation_limit_reset_at: datetime | None = None,
    ) -> None: ...

    def insert_generation_log(
        self, user_id: UUID, note_id: UUID, status: GenerationStatus
    ) -> UUID: ...

    def update_generation_log(
        self,
        log_id: UUID,
        *,
        status: GenerationStatus | None = None,
        plan_id: UUID | None = None,
        prompt_tokens: int | None = None,
        completion_tokens: int | None = None,
        error_code: str | None = None,
        error_message: str | None = None,
    ) -> None: ...

    def insert_plan(
        self,
        note_id: UUID,
        content: str,
        prompt_text: str | None,
        prompt_version: str,
    ) -> Plan: ...


class SqlStore:
    """Store implementation over a request-scoped SQLAlchemy session."""

    def __init__(self, session: Session) -> None:
        """Initialize the store.

        Args:
            session: Database session; the store commits it after each write.
        """
        self.session = session

    def _commit(self) -> None:
        try:
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

    def get_note(self, note_id: UUID) -> Note | None:
        return self.session.get(Note, note_id)

    def get_profile(self, user_id: UUID) -> Profile | None:
        # populate_existing: quota decisions must see the latest committed counter
        return self.session.get(Profile, user_id, populate_existing=True)

    def update_profile(
        self,
        user_id: UUID,
        *,
        generation_count: int | None = None,
        generation_limit_reset_at: datetime | None = None,
    ) -> None:
        values: dict[str, object] = {}
        if generation_count is not None:
            values["generation_count"] = generation_count
        if generation_limit_reset_at is not None:
            values["generation_limit_reset_at"] = generation_limit_reset_at
        if not values:
            return

        self.session.execute(
            update(Profile).where(Profile.id == user_id).values(**values)
        )
        self._commit()

    def insert_generation_log(
        self, user_id: UUID, note_id: UUID, status: GenerationStatus
    ) -> UUID:
        log = GenerationLog(user_id=user_id, note_id=note_id, status=status)
        self.session.add(log)
        self._commit()
        return log.id

    def update_generation_log(
        self,
        log_id: UUID,
        *,
        status: GenerationStatus | None = None,
        plan_id: UUID | None = None,
        prompt_tokens: int | None = None,
        completion_tokens: int | None = None,
        error_code: str | None = None,
        error_message: str | None = None,
    ) -> None:
        fields = {
            "status": status,
            "plan_id": plan_id,
            "prompt_tokens": prompt_tokens,
            "completion_tokens": completion_tokens,
            "error_code": error_code,
            "error_message": error_message,
        }
        values = {key: value for key, value in fields.items() if value is not None}
        if not values:
            return

        self.session.execute(
            update(GenerationLog).where(GenerationLog.id == log_id).values(**values)
        )
        self._commit()

    def insert_plan(
        self,
        note_id: UUID,
        content: str,
        prompt_text: str | None,
        prompt_version: str,
    ) -> Plan:
        plan = Plan(
            note_id=note_id,
            content=content,
            prompt_text=prompt_text,
            prompt_version=prompt_version,
        )
        self.session.add(plan)
        self._commit()
        return plan
