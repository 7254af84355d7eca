"""CRUD routes for event types."""

import uuid

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from bookly.dependencies import get_db
from bookly.models.event_type import EventType
from bookly.schemas.event_type import EventTypeCreate, EventTypeResponse, EventTypeUpdate
from bookly.services import event_type_service

router = APIRouter(prefix="/event-types", tags=["event-types"])


def event_type_response(event_type: EventType) -> EventTypeResponse:
    return EventTypeResponse(
        id=str(event_type.id),
        name=event_type.name,
        slug=event_type.slug,
        duration_minutes=event_type.duration_minutes,
        description=event_type.description,
        color=event_type.color,
        created_at=event_type.created_at.isoformat() if event_type.created_at else None,
        updated_at=event_type.updated_at.isoformat() if event_type.updated_at else None,
    )


@router.get("", response_model=list[EventTypeResponse])
async def list_event_types(db: AsyncSession = Depends(get_db)):
    """List all event types, newest first."""
    event_types = await event_type_service.list_event_types(db)
    return [event_type_response(e) for e in event_types]


@router.get("/slug/{slug}", response_model=EventTypeResponse)
async def get_event_type_by_slug(slug: str, db: AsyncSession = Depends(get_db)):
    """Public lookup used by the booking page."""
    event_type = await event_type_service.get_event_type_by_slug(db, slug)
    return event_type_response(event_type)


@router.get("/{event_type_id}", response_model=EventTypeResponse)
async def get_event_type(event_type_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    event_type = await event_type_service.get_event_type(db, event_type_id)
    return event_type_response(event_type)


@router.post("", response_model=EventTypeResponse, status_code=status.HTTP_201_CREATED)
async def create_event_type(body: EventTypeCreate, db: AsyncSession = Depends(get_db)):
    event_type = await event_type_service.create_event_type(db, body)
    return event_type_response(event_type)


@router.patch("/{event_type_id}", response_model=EventTypeResponse)
async def update_event_type(
    event_type_id: uuid.UUID,
    body: EventTypeUpdate,
    db: AsyncSession = Depends(get_db),
):
    """Partially update an event type."""
    event_type = await event_type_service.update_event_type(db, event_type_id, body)
    return event_type_response(event_type)


@router.delete("/{event_type_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_event_type(event_type_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    """Delete an event type together with its availability and meetings."""
    await event_type_service.delete_event_type(db, event_type_id)
