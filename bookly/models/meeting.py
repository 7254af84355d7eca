"""Meeting model: a booked interval against an event type."""

import enum
import uuid
from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, Enum, ForeignKey, String, literal_column, text
from sqlalchemy.dialects.postgresql import UUID, ExcludeConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from bookly.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin

NO_OVERLAP_CONSTRAINT = "meetings_no_overlap_per_event_type"


class MeetingStatus(str, enum.Enum):
    SCHEDULED = "scheduled"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class Meeting(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "meetings"
    __table_args__ = (
        CheckConstraint("start_time < end_time", name="chronological_range"),
        # Two scheduled meetings of the same event type may never share any
        # part of their [start, end) range. Requires the btree_gist extension.
        ExcludeConstraint(
            ("event_type_id", "="),
            (literal_column("tstzrange(start_time, end_time, '[)')"), "&&"),
            name=NO_OVERLAP_CONSTRAINT,
            using="gist",
            where=text("status = 'scheduled'"),
        ),
    )

    event_type_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("event_types.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    invitee_name: Mapped[str] = mapped_column(String(255), nullable=False)
    invitee_email: Mapped[str] = mapped_column(String(320), nullable=False, index=True)
    # Absolute instants, stored in UTC.
    start_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    end_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    # Viewer timezone at booking time; display only.
    timezone: Mapped[str] = mapped_column(String(64), nullable=False)
    status: Mapped[MeetingStatus] = mapped_column(
        Enum(
            MeetingStatus,
            name="meeting_status",
            values_callable=lambda statuses: [s.value for s in statuses],
        ),
        default=MeetingStatus.SCHEDULED,
        nullable=False,
        index=True,
    )

    event_type: Mapped["EventType"] = relationship("EventType", back_populates="meetings")

    def __repr__(self) -> str:
        return f"<Meeting {self.id} {self.start_time} status={self.status}>"
