"""Meeting schemas."""

from pydantic import BaseModel

from bookly.models.event_type import EventType
from bookly.models.meeting import Meeting
from bookly.services.timezones import format_civil, from_utc


class MeetingResponse(BaseModel):
    id: str
    event_type_id: str
    event_type_name: str
    event_type_slug: str
    invitee_name: str
    invitee_email: str
    start_time: str  # UTC, ISO 8601
    end_time: str
    timezone: str
    # Civil start/end in the meeting's recorded timezone.
    local_start: str
    local_end: str
    status: str

    @classmethod
    def build(cls, meeting: Meeting, event_type: EventType) -> "MeetingResponse":
        return cls(
            id=str(meeting.id),
            event_type_id=str(meeting.event_type_id),
            event_type_name=event_type.name,
            event_type_slug=event_type.slug,
            invitee_name=meeting.invitee_name,
            invitee_email=meeting.invitee_email,
            start_time=from_utc(meeting.start_time, "UTC").isoformat(),
            end_time=from_utc(meeting.end_time, "UTC").isoformat(),
            timezone=meeting.timezone,
            local_start=format_civil(from_utc(meeting.start_time, meeting.timezone)),
            local_end=format_civil(from_utc(meeting.end_time, meeting.timezone)),
            status=meeting.status.value,
        )
