"""Event type model: a bookable meeting template."""

from sqlalchemy import CheckConstraint, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from bookly.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin

DEFAULT_COLOR = "#0069FF"


class EventType(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "event_types"
    __table_args__ = (CheckConstraint("duration_minutes > 0", name="positive_duration"),)

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    duration_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=30)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    color: Mapped[str] = mapped_column(String(7), nullable=False, default=DEFAULT_COLOR)

    # Deletes cascade in the database (ON DELETE CASCADE); passive_deletes avoids
    # loading children just to remove them.
    availability_rules: Mapped[list["AvailabilityRule"]] = relationship(
        "AvailabilityRule",
        back_populates="event_type",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    overrides: Mapped[list["AvailabilityOverride"]] = relationship(
        "AvailabilityOverride",
        back_populates="event_type",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    meetings: Mapped[list["Meeting"]] = relationship(
        "Meeting",
        back_populates="event_type",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<EventType {self.slug} duration={self.duration_minutes}>"
