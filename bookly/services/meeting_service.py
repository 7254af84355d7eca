"""Meeting queries and cancellation."""

import logging
import uuid
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from bookly.exceptions import ConflictError, NotFoundError, StorageError
from bookly.models.meeting import Meeting, MeetingStatus
from bookly.services import timezones
from bookly.services.audit_service import write_audit_log
from bookly.services.storage import storage_errors

logger = logging.getLogger(__name__)


async def list_meetings(
    db: AsyncSession,
    status: MeetingStatus | None = None,
    upcoming: bool | None = None,
    now: datetime | None = None,
) -> list[Meeting]:
    """List meetings with their event type, latest start first.

    ``upcoming=True`` keeps scheduled meetings that have not started yet;
    ``upcoming=False`` keeps meetings that started at or before ``now``.
    """
    now = now or timezones.utcnow()
    query = select(Meeting).options(joinedload(Meeting.event_type, innerjoin=True))

    if status is not None:
        query = query.where(Meeting.status == status)
    if upcoming is True:
        query = query.where(Meeting.start_time > now, Meeting.status == MeetingStatus.SCHEDULED)
    elif upcoming is False:
        query = query.where(Meeting.start_time <= now)

    with storage_errors("Failed to load meetings"):
        result = await db.execute(query.order_by(Meeting.start_time.desc()))
        return list(result.scalars().all())


async def _fetch_meeting(db: AsyncSession, meeting_id: uuid.UUID, *, for_update: bool = False) -> Meeting:
    query = select(Meeting).options(joinedload(Meeting.event_type, innerjoin=True)).where(Meeting.id == meeting_id)
    if for_update:
        query = query.with_for_update(of=Meeting)
    result = await db.execute(query)
    meeting = result.scalar_one_or_none()
    if meeting is None:
        raise NotFoundError("Meeting not found", details={"id": str(meeting_id)})
    return meeting


async def get_meeting(db: AsyncSession, meeting_id: uuid.UUID) -> Meeting:
    with storage_errors("Failed to load meeting"):
        return await _fetch_meeting(db, meeting_id)


async def cancel_meeting(db: AsyncSession, meeting_id: uuid.UUID) -> Meeting:
    """Move a scheduled meeting to cancelled.

    The transition is one-way: cancelling twice, or cancelling a completed
    meeting, is rejected with ConflictError.
    """
    try:
        meeting = await _fetch_meeting(db, meeting_id, for_update=True)

        if meeting.status == MeetingStatus.CANCELLED:
            raise ConflictError("Meeting is already cancelled", details={"id": str(meeting_id)})
        if meeting.status != MeetingStatus.SCHEDULED:
            raise ConflictError(
                "Only scheduled meetings can be cancelled",
                details={"id": str(meeting_id), "status": meeting.status.value},
            )

        meeting.status = MeetingStatus.CANCELLED
        await db.flush()

        await write_audit_log(
            db=db,
            action="meeting.cancelled",
            entity_type="meeting",
            entity_id=str(meeting.id),
            metadata={"event_type_id": str(meeting.event_type_id)},
        )
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        raise StorageError("Failed to cancel meeting") from e

    logger.info("Meeting %s cancelled", meeting_id)
    return meeting
