"""Meeting routes: listing and cancellation."""

import uuid

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from bookly.dependencies import get_db
from bookly.metrics import meetings_cancelled_total
from bookly.models.meeting import MeetingStatus
from bookly.schemas.meeting import MeetingResponse
from bookly.services import meeting_service

router = APIRouter(prefix="/meetings", tags=["meetings"])


@router.get("", response_model=list[MeetingResponse])
async def list_meetings(
    db: AsyncSession = Depends(get_db),
    status_filter: str | None = Query(None, alias="status"),
    upcoming: bool | None = Query(None),
):
    """List meetings, optionally filtered by status or by upcoming/past."""
    meeting_status = None
    if status_filter:
        try:
            meeting_status = MeetingStatus(status_filter)
        except ValueError:
            raise HTTPException(status_code=400, detail="Invalid status filter")

    meetings = await meeting_service.list_meetings(db, status=meeting_status, upcoming=upcoming)
    return [MeetingResponse.build(m, m.event_type) for m in meetings]


@router.get("/{meeting_id}", response_model=MeetingResponse)
async def get_meeting(meeting_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    meeting = await meeting_service.get_meeting(db, meeting_id)
    return MeetingResponse.build(meeting, meeting.event_type)


@router.patch("/{meeting_id}/cancel", response_model=MeetingResponse)
async def cancel_meeting(meeting_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    """Cancel a scheduled meeting; cancelling twice is rejected with 409."""
    meeting = await meeting_service.cancel_meeting(db, meeting_id)
    meetings_cancelled_total.inc()
    return MeetingResponse.build(meeting, meeting.event_type)
