"""Booking transaction: validate a requested slot and insert the meeting atomically."""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from bookly.exceptions import ConflictError, InputValidationError, NotFoundError, StorageError
from bookly.models.event_type import EventType
from bookly.models.meeting import NO_OVERLAP_CONSTRAINT, Meeting, MeetingStatus
from bookly.services import timezones
from bookly.services.audit_service import write_audit_log

logger = logging.getLogger(__name__)

SLOT_TAKEN_MESSAGE = "This time slot is already booked"


@dataclass(frozen=True)
class BookingConfirmation:
    meeting: Meeting
    event_type: EventType


class BookingService:
    """Creates meetings without ever letting two scheduled ones overlap.

    The event type row is locked (``SELECT ... FOR UPDATE``) before the overlap
    check, so concurrent bookings for the same event type run one after the
    other and the second sees the first's insert. The exclusion constraint on
    ``meetings`` backs this up at the storage layer.
    """

    async def book(
        self,
        db: AsyncSession,
        event_slug: str,
        invitee_name: str,
        invitee_email: str,
        start_time: datetime,
        tz_name: str,
    ) -> BookingConfirmation:
        invitee_name = (invitee_name or "").strip()
        invitee_email = (invitee_email or "").strip()
        if start_time is None or not all((event_slug, invitee_name, invitee_email, tz_name)):
            raise InputValidationError(
                "eventSlug, inviteeName, inviteeEmail, startTime, and timezone are required"
            )

        start_utc = timezones.localize(start_time, tz_name).astimezone(timezone.utc)

        try:
            result = await db.execute(
                select(EventType).where(EventType.slug == event_slug).with_for_update()
            )
            event_type = result.scalar_one_or_none()
            if event_type is None:
                raise NotFoundError("Event type not found", details={"slug": event_slug})

            end_utc = start_utc + timedelta(minutes=event_type.duration_minutes)

            result = await db.execute(
                select(Meeting.id)
                .where(
                    Meeting.event_type_id == event_type.id,
                    Meeting.status == MeetingStatus.SCHEDULED,
                    Meeting.start_time < end_utc,
                    Meeting.end_time > start_utc,
                )
                .limit(1)
            )
            if result.scalar_one_or_none() is not None:
                raise ConflictError(
                    SLOT_TAKEN_MESSAGE,
                    details={"start_time": start_utc.isoformat(), "end_time": end_utc.isoformat()},
                )

            meeting = Meeting(
                event_type_id=event_type.id,
                invitee_name=invitee_name,
                invitee_email=invitee_email,
                start_time=start_utc,
                end_time=end_utc,
                timezone=tz_name,
                status=MeetingStatus.SCHEDULED,
            )
            db.add(meeting)
            await db.flush()

            await write_audit_log(
                db=db,
                action="meeting.booked",
                entity_type="meeting",
                entity_id=str(meeting.id),
                metadata={
                    "event_type_id": str(event_type.id),
                    "start_time": start_utc.isoformat(),
                    "end_time": end_utc.isoformat(),
                },
            )
            await db.commit()
        except IntegrityError as e:
            await db.rollback()
            if NO_OVERLAP_CONSTRAINT in str(e.orig):
                raise ConflictError(SLOT_TAKEN_MESSAGE) from e
            raise StorageError("Failed to create booking") from e
        except SQLAlchemyError as e:
            await db.rollback()
            raise StorageError("Failed to create booking") from e

        logger.info(
            "Meeting %s booked for event type %s at %s",
            meeting.id,
            event_type.slug,
            start_utc.isoformat(),
        )
        return BookingConfirmation(meeting=meeting, event_type=event_type)
