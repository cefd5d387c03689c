"""Plan ORM model."""

from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from sqlalchemy import CheckConstraint, ForeignKey, Index, SmallInteger, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from backend.app.db.base import Base
from backend.app.db.mixins import TimestampMixin

if TYPE_CHECKING:
    from .note import Note


class Plan(TimestampMixin, Base):
    """Plan table - accepted AI-generated itineraries for a note."""

    __tablename__ = "plans"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    note_id: Mapped[UUID] = mapped_column(
        ForeignKey("notes.id", ondelete="CASCADE"), nullable=False
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)  # markdown itinerary
    prompt_text: Mapped[str | None] = mapped_column(
        Text, nullable=True
    )  # None for plans saved from an accepted preview
    prompt_version: Mapped[str] = mapped_column(Text, nullable=False)
    feedback: Mapped[int | None] = mapped_column(SmallInteger, nullable=True)

    # Relationships
    note: Mapped["Note"] = relationship("Note", back_populates="plans")

    # Constraints
    __table_args__ = (
        CheckConstraint("feedback IN (1, -1)", name="ck_plans_feedback"),
        Index("idx_plans_note_created", "note_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Plan(id={self.id}, note_id={self.note_id}, prompt_version={self.prompt_version!r})>"
