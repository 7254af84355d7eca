"""Public booking routes: slot listing and booking creation."""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from bookly.config import Settings, get_settings
from bookly.dependencies import get_db
from bookly.exceptions import ConflictError
from bookly.metrics import bookings_total, slot_requests_total, slots_returned
from bookly.schemas.booking import BookingCreate, SlotResponse
from bookly.schemas.meeting import MeetingResponse
from bookly.services.booking_service import BookingService
from bookly.services.slot_generator import SlotService
from bookly.services.timezones import parse_civil_date

router = APIRouter(prefix="/booking", tags=["booking"])


def get_slot_service() -> SlotService:
    return SlotService()


def get_booking_service() -> BookingService:
    return BookingService()


@router.get("/slots/{event_slug}", response_model=list[SlotResponse])
async def list_slots(
    event_slug: str,
    date: str = Query(..., description="Calendar date, YYYY-MM-DD"),
    timezone: str | None = Query(None, description="IANA zone of the viewer"),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
    slot_service: SlotService = Depends(get_slot_service),
):
    """Bookable slots of an event type on one date, in the viewer's timezone."""
    target_date = parse_civil_date(date)
    viewer_tz = timezone or settings.default_timezone

    slots = await slot_service.get_slots(db, event_slug, target_date, viewer_tz)

    slot_requests_total.inc()
    slots_returned.observe(len(slots))
    return [SlotResponse(**s.as_civil()) for s in slots]


@router.post("", response_model=MeetingResponse, status_code=status.HTTP_201_CREATED)
async def create_booking(
    body: BookingCreate,
    db: AsyncSession = Depends(get_db),
    booking_service: BookingService = Depends(get_booking_service),
):
    """Book a slot. Fails with 409 when it overlaps a scheduled meeting."""
    try:
        confirmation = await booking_service.book(
            db,
            event_slug=body.event_slug,
            invitee_name=body.invitee_name,
            invitee_email=body.invitee_email,
            start_time=body.start_time,
            tz_name=body.timezone,
        )
    except ConflictError:
        bookings_total.labels(result="conflict").inc()
        raise

    bookings_total.labels(result="created").inc()
    return MeetingResponse.build(confirmation.meeting, confirmation.event_type)
