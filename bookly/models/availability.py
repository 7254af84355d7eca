"""Recurring weekly availability rules and per-date overrides."""

import uuid
from datetime import date, time

from sqlalchemy import Boolean, CheckConstraint, Date, ForeignKey, SmallInteger, String, Time, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from bookly.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class AvailabilityRule(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "availability_rules"
    __table_args__ = (
        UniqueConstraint(
            "event_type_id",
            "day_of_week",
            "start_time",
            "end_time",
            name="uq_availability_rules_slot",
        ),
        CheckConstraint("day_of_week BETWEEN 0 AND 6", name="valid_day_of_week"),
        CheckConstraint("start_time < end_time", name="chronological_range"),
    )

    event_type_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("event_types.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    day_of_week: Mapped[int] = mapped_column(SmallInteger, nullable=False, index=True)  # 0=Sunday
    start_time: Mapped[time] = mapped_column(Time, nullable=False)
    end_time: Mapped[time] = mapped_column(Time, nullable=False)
    timezone: Mapped[str] = mapped_column(String(64), nullable=False, default="UTC")

    event_type: Mapped["EventType"] = relationship("EventType", back_populates="availability_rules")

    def __repr__(self) -> str:
        return f"<AvailabilityRule day={self.day_of_week} {self.start_time}-{self.end_time} {self.timezone}>"


class AvailabilityOverride(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "availability_overrides"
    __table_args__ = (
        UniqueConstraint("event_type_id", "override_date", name="uq_availability_overrides_date"),
        CheckConstraint(
            "start_time IS NULL OR end_time IS NULL OR start_time < end_time",
            name="chronological_range",
        ),
    )

    event_type_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("event_types.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    override_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    is_available: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    # When set (and is_available), these replace the weekly rules for the date.
    start_time: Mapped[time | None] = mapped_column(Time, nullable=True)
    end_time: Mapped[time | None] = mapped_column(Time, nullable=True)

    event_type: Mapped["EventType"] = relationship("EventType", back_populates="overrides")

    @property
    def has_custom_range(self) -> bool:
        return self.start_time is not None and self.end_time is not None

    def __repr__(self) -> str:
        return f"<AvailabilityOverride {self.override_date} available={self.is_available}>"
