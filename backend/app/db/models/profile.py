"""Profile ORM model."""

from datetime import datetime
from uuid import UUID

from sqlalchemy import JSON, Enum, Float, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from backend.app.db.base import Base
from backend.app.db.mixins import TimestampMixin
from backend.app.db.types import UTCDateTime
from backend.app.models.common import TravelStyle


class Profile(TimestampMixin, Base):
    """Profile table - one row per user, keyed by the user id."""

    __tablename__ = "profiles"

    id: Mapped[UUID] = mapped_column(primary_key=True)
    travel_style: Mapped[TravelStyle | None] = mapped_column(
        Enum(TravelStyle, name="travel_style_enum", native_enum=False),
        nullable=True,
    )
    interests: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    other_interests: Mapped[str | None] = mapped_column(Text, nullable=True)
    daily_budget: Mapped[float | None] = mapped_column(Float, nullable=True)
    typical_trip_duration: Mapped[int | None] = mapped_column(Integer, nullable=True)
    generation_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    generation_limit_reset_at: Mapped[datetime] = mapped_column(
        UTCDateTime(), nullable=False
    )

    def missing_generation_fields(self) -> list[str]:
        """Names of the fields plan generation still needs, in a stable order.

        Each field is checked on its own so callers can point the user at
        exactly what is missing.
        """
        missing: list[str] = []
        if not self.travel_style:
            missing.append("travel_style")
        if not self.daily_budget:
            missing.append("daily_budget")
        if not self.interests and not self.other_interests:
            missing.append("interests")
        return missing

    @property
    def is_complete(self) -> bool:
        return not self.missing_generation_fields()

    def __repr__(self) -> str:
        return (
            f"<Profile(id={self.id}, travel_style={self.travel_style!r}, "
            f"generation_count={self.generation_count})>"
        )
