"""Event type CRUD."""

import logging
import uuid
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from bookly.exceptions import ConflictError, InputValidationError, NotFoundError, StorageError
from bookly.models.event_type import DEFAULT_COLOR, EventType
from bookly.schemas.event_type import EventTypeCreate, EventTypeUpdate
from bookly.services.audit_service import write_audit_log
from bookly.services.storage import storage_errors

logger = logging.getLogger(__name__)

SLUG_TAKEN_MESSAGE = "Slug already exists"


async def list_event_types(db: AsyncSession) -> list[EventType]:
    with storage_errors("Failed to load event types"):
        result = await db.execute(select(EventType).order_by(EventType.created_at.desc()))
        return list(result.scalars().all())


async def fetch_event_type(db: AsyncSession, event_type_id: uuid.UUID, *, for_update: bool = False) -> EventType:
    """Load an event type inside a transaction the caller manages.

    Driver errors propagate unchanged so the caller can roll back.
    """
    query = select(EventType).where(EventType.id == event_type_id)
    if for_update:
        query = query.with_for_update()
    result = await db.execute(query)
    event_type = result.scalar_one_or_none()
    if event_type is None:
        raise NotFoundError("Event type not found", details={"id": str(event_type_id)})
    return event_type


async def get_event_type(db: AsyncSession, event_type_id: uuid.UUID) -> EventType:
    with storage_errors("Failed to load event type"):
        return await fetch_event_type(db, event_type_id)


async def get_event_type_by_slug(db: AsyncSession, slug: str) -> EventType:
    with storage_errors("Failed to load event type"):
        result = await db.execute(select(EventType).where(EventType.slug == slug))
        event_type = result.scalar_one_or_none()
    if event_type is None:
        raise NotFoundError("Event type not found", details={"slug": slug})
    return event_type


async def _slug_in_use(db: AsyncSession, slug: str, exclude_id: uuid.UUID | None = None) -> bool:
    query = select(EventType.id).where(EventType.slug == slug)
    if exclude_id is not None:
        query = query.where(EventType.id != exclude_id)
    result = await db.execute(query)
    return result.scalar_one_or_none() is not None


async def _flush_or_raise(db: AsyncSession) -> None:
    """Flush pending changes, translating a slug collision into ConflictError."""
    try:
        await db.flush()
    except IntegrityError as e:
        if "slug" in str(e.orig):
            raise ConflictError(SLUG_TAKEN_MESSAGE) from e
        raise StorageError("Failed to save event type") from e
    except SQLAlchemyError as e:
        raise StorageError("Failed to save event type") from e


async def create_event_type(db: AsyncSession, data: EventTypeCreate) -> EventType:
    with storage_errors("Failed to save event type"):
        if await _slug_in_use(db, data.slug):
            raise ConflictError(SLUG_TAKEN_MESSAGE, details={"slug": data.slug})

        event_type = EventType(
            name=data.name,
            slug=data.slug,
            duration_minutes=data.duration_minutes,
            description=data.description,
            color=data.color or DEFAULT_COLOR,
        )
        db.add(event_type)
        await _flush_or_raise(db)

        await write_audit_log(
            db=db,
            action="event_type.created",
            entity_type="event_type",
            entity_id=str(event_type.id),
            metadata={"slug": event_type.slug, "duration_minutes": event_type.duration_minutes},
        )
    logger.info("Event type created: %s", event_type.slug)
    return event_type


async def update_event_type(db: AsyncSession, event_type_id: uuid.UUID, data: EventTypeUpdate) -> EventType:
    """Apply a partial update; only fields present in the request change.

    Changing duration_minutes does not resize meetings that are already booked.
    """
    changes: dict[str, Any] = data.model_dump(exclude_unset=True)
    if not changes:
        raise InputValidationError("No fields to update")

    with storage_errors("Failed to save event type"):
        event_type = await fetch_event_type(db, event_type_id)

        new_slug = changes.get("slug")
        if new_slug is not None and new_slug != event_type.slug:
            if await _slug_in_use(db, new_slug, exclude_id=event_type.id):
                raise ConflictError(SLUG_TAKEN_MESSAGE, details={"slug": new_slug})

        for field, value in changes.items():
            if value is None and field in ("name", "slug", "duration_minutes"):
                raise InputValidationError(f"{field} cannot be null")
            if field == "color" and value is None:
                value = DEFAULT_COLOR
            setattr(event_type, field, value)

        await _flush_or_raise(db)

        await write_audit_log(
            db=db,
            action="event_type.updated",
            entity_type="event_type",
            entity_id=str(event_type.id),
            metadata={"fields": sorted(changes)},
        )
    return event_type


async def delete_event_type(db: AsyncSession, event_type_id: uuid.UUID) -> None:
    """Delete an event type; rules, overrides and meetings go with it."""
    with storage_errors("Failed to delete event type"):
        event_type = await fetch_event_type(db, event_type_id)

        await write_audit_log(
            db=db,
            action="event_type.deleted",
            entity_type="event_type",
            entity_id=str(event_type.id),
            metadata={"slug": event_type.slug},
        )
        await db.delete(event_type)
        await db.flush()
    logger.info("Event type deleted: %s", event_type.slug)
