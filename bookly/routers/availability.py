"""Availability routes: weekly rules and per-date overrides."""

import uuid
from datetime import date

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from bookly.dependencies import get_db
from bookly.metrics import availability_saves_total
from bookly.models.availability import AvailabilityOverride, AvailabilityRule
from bookly.schemas.availability import (
    AvailabilityReplaceRequest,
    OverrideResponse,
    OverrideUpsert,
    RuleResponse,
)
from bookly.services import availability_service

router = APIRouter(prefix="/availability", tags=["availability"])


def _rule_response(rule: AvailabilityRule) -> RuleResponse:
    return RuleResponse(
        id=str(rule.id),
        event_type_id=str(rule.event_type_id),
        day_of_week=rule.day_of_week,
        start_time=rule.start_time.isoformat(),
        end_time=rule.end_time.isoformat(),
        timezone=rule.timezone,
    )


def _override_response(override: AvailabilityOverride) -> OverrideResponse:
    return OverrideResponse(
        id=str(override.id),
        event_type_id=str(override.event_type_id),
        override_date=override.override_date,
        is_available=override.is_available,
        start_time=override.start_time.isoformat() if override.start_time else None,
        end_time=override.end_time.isoformat() if override.end_time else None,
    )


@router.get("/{event_type_id}", response_model=list[RuleResponse])
async def list_availability(event_type_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    """Weekly rules of an event type, ordered by day and start time."""
    rules = await availability_service.list_rules(db, event_type_id)
    return [_rule_response(r) for r in rules]


@router.put("", response_model=list[RuleResponse])
async def replace_availability(body: AvailabilityReplaceRequest, db: AsyncSession = Depends(get_db)):
    """Replace the complete weekly rule set of an event type."""
    rules = await availability_service.replace_rules(db, body.event_type_id, body.availability)
    availability_saves_total.inc()
    return [_rule_response(r) for r in rules]


@router.delete("/{event_type_id}")
async def delete_availability(event_type_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    removed = await availability_service.delete_rules(db, event_type_id)
    return {"message": "Availability deleted successfully", "deleted": removed}


@router.get("/{event_type_id}/overrides", response_model=list[OverrideResponse])
async def list_overrides(
    event_type_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    from_date: date | None = Query(None, alias="from"),
    to_date: date | None = Query(None, alias="to"),
):
    overrides = await availability_service.list_overrides(db, event_type_id, from_date, to_date)
    return [_override_response(o) for o in overrides]


@router.put("/{event_type_id}/overrides/{override_date}", response_model=OverrideResponse)
async def upsert_override(
    event_type_id: uuid.UUID,
    override_date: date,
    body: OverrideUpsert,
    db: AsyncSession = Depends(get_db),
):
    """Block a date, or give it a custom time range that replaces the weekly rules."""
    override = await availability_service.upsert_override(
        db,
        event_type_id,
        override_date,
        is_available=body.is_available,
        start_time=body.start_time,
        end_time=body.end_time,
    )
    return _override_response(override)


@router.delete("/{event_type_id}/overrides/{override_date}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_override(
    event_type_id: uuid.UUID,
    override_date: date,
    db: AsyncSession = Depends(get_db),
):
    await availability_service.delete_override(db, event_type_id, override_date)
