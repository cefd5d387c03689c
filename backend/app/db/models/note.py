"""Note ORM model."""

from datetime import date
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from sqlalchemy import Date, Float, Index, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from backend.app.db.base import Base
from backend.app.db.mixins import TimestampMixin

if TYPE_CHECKING:
    from .plan import Plan


class Note(TimestampMixin, Base):
    """Note table - a user's trip intent."""

    __tablename__ = "notes"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    user_id: Mapped[UUID] = mapped_column(nullable=False)
    destination: Mapped[str] = mapped_column(Text, nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    total_budget: Mapped[float | None] = mapped_column(Float, nullable=True)
    additional_notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Relationships
    plans: Mapped[list["Plan"]] = relationship(
        "Plan",
        back_populates="note",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    # Constraints
    __table_args__ = (Index("idx_notes_user_created", "user_id", "created_at"),)

    def __repr__(self) -> str:
        return f"<Note(id={self.id}, user_id={self.user_id}, destination={self.destination!r})>"
