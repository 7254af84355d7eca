"""Availability rules (bulk replace) and per-date overrides."""

import logging
import uuid
from collections.abc import Sequence
from datetime import date, time
from typing import Protocol

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from bookly.exceptions import InputValidationError, NotFoundError, StorageError
from bookly.models.availability import AvailabilityOverride, AvailabilityRule
from bookly.services import timezones
from bookly.services.audit_service import write_audit_log
from bookly.services.event_type_service import fetch_event_type
from bookly.services.storage import storage_errors

logger = logging.getLogger(__name__)


class RuleData(Protocol):
    day_of_week: int | None
    start_time: time | None
    end_time: time | None
    timezone: str | None


def _has_offset(value: time | None) -> bool:
    return value is not None and value.tzinfo is not None


def validate_rules(rules: Sequence[RuleData]) -> list[tuple[int, time, time, str]]:
    """Check every submitted row before anything is written.

    Returns normalized ``(day_of_week, start, end, timezone)`` tuples.
    """
    normalized: list[tuple[int, time, time, str]] = []
    seen: set[tuple[int, time, time]] = set()
    for index, rule in enumerate(rules):
        if rule.day_of_week is None or rule.start_time is None or rule.end_time is None:
            raise InputValidationError("Invalid availability data", details={"index": index})
        if not 0 <= rule.day_of_week <= 6:
            raise InputValidationError(
                "day_of_week must be between 0 (Sunday) and 6 (Saturday)",
                details={"index": index, "day_of_week": rule.day_of_week},
            )
        if _has_offset(rule.start_time) or _has_offset(rule.end_time):
            raise InputValidationError(
                "start_time and end_time must not carry a UTC offset",
                details={"index": index},
            )
        if rule.start_time >= rule.end_time:
            raise InputValidationError(
                "start_time must be before end_time",
                details={"index": index},
            )
        tz_name = rule.timezone or "UTC"
        timezones.get_zone(tz_name)

        key = (rule.day_of_week, rule.start_time, rule.end_time)
        if key in seen:
            raise InputValidationError("Duplicate availability range", details={"index": index})
        seen.add(key)
        normalized.append((rule.day_of_week, rule.start_time, rule.end_time, tz_name))
    return normalized


async def list_rules(db: AsyncSession, event_type_id: uuid.UUID) -> list[AvailabilityRule]:
    with storage_errors("Failed to load availability"):
        result = await db.execute(
            select(AvailabilityRule)
            .where(AvailabilityRule.event_type_id == event_type_id)
            .order_by(AvailabilityRule.day_of_week, AvailabilityRule.start_time)
        )
        return list(result.scalars().all())


async def replace_rules(
    db: AsyncSession,
    event_type_id: uuid.UUID,
    rules: Sequence[RuleData],
) -> list[AvailabilityRule]:
    """Atomically swap the whole weekly rule set of an event type.

    The event type row is locked so concurrent saves serialize; readers keep
    seeing the previous set until the transaction commits.
    """
    normalized = validate_rules(rules)

    try:
        await fetch_event_type(db, event_type_id, for_update=True)

        await db.execute(delete(AvailabilityRule).where(AvailabilityRule.event_type_id == event_type_id))
        new_rules = [
            AvailabilityRule(
                event_type_id=event_type_id,
                day_of_week=day,
                start_time=start,
                end_time=end,
                timezone=tz_name,
            )
            for day, start, end, tz_name in normalized
        ]
        db.add_all(new_rules)
        await db.flush()

        await write_audit_log(
            db=db,
            action="availability.replaced",
            entity_type="event_type",
            entity_id=str(event_type_id),
            metadata={"rule_count": len(new_rules)},
        )
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        raise StorageError("Failed to save availability") from e

    logger.info("Availability replaced for event type %s (%d rules)", event_type_id, len(new_rules))
    return sorted(new_rules, key=lambda r: (r.day_of_week, r.start_time))


async def delete_rules(db: AsyncSession, event_type_id: uuid.UUID) -> int:
    """Remove every weekly rule of an event type. Returns the number removed."""
    with storage_errors("Failed to delete availability"):
        result = await db.execute(delete(AvailabilityRule).where(AvailabilityRule.event_type_id == event_type_id))
        removed = result.rowcount or 0
        await write_audit_log(
            db=db,
            action="availability.deleted",
            entity_type="event_type",
            entity_id=str(event_type_id),
            metadata={"rule_count": removed},
        )
    return removed


async def list_overrides(
    db: AsyncSession,
    event_type_id: uuid.UUID,
    from_date: date | None = None,
    to_date: date | None = None,
) -> list[AvailabilityOverride]:
    query = select(AvailabilityOverride).where(AvailabilityOverride.event_type_id == event_type_id)
    if from_date is not None:
        query = query.where(AvailabilityOverride.override_date >= from_date)
    if to_date is not None:
        query = query.where(AvailabilityOverride.override_date <= to_date)
    with storage_errors("Failed to load overrides"):
        result = await db.execute(query.order_by(AvailabilityOverride.override_date))
        return list(result.scalars().all())


async def upsert_override(
    db: AsyncSession,
    event_type_id: uuid.UUID,
    override_date: date,
    is_available: bool,
    start_time: time | None = None,
    end_time: time | None = None,
) -> AvailabilityOverride:
    """Create or replace the override for one date.

    A blocking override never carries times; an available one either carries
    both (replacing the weekly rules) or neither (weekly rules apply).
    """
    if not is_available:
        start_time = end_time = None
    if (start_time is None) != (end_time is None):
        raise InputValidationError("start_time and end_time must be provided together")
    if _has_offset(start_time) or _has_offset(end_time):
        raise InputValidationError("start_time and end_time must not carry a UTC offset")
    if start_time is not None and end_time is not None and start_time >= end_time:
        raise InputValidationError("start_time must be before end_time")

    with storage_errors("Failed to save override"):
        await fetch_event_type(db, event_type_id, for_update=True)

        result = await db.execute(
            select(AvailabilityOverride).where(
                AvailabilityOverride.event_type_id == event_type_id,
                AvailabilityOverride.override_date == override_date,
            )
        )
        override = result.scalar_one_or_none()
        if override is None:
            override = AvailabilityOverride(event_type_id=event_type_id, override_date=override_date)
            db.add(override)

        override.is_available = is_available
        override.start_time = start_time
        override.end_time = end_time
        await db.flush()

        await write_audit_log(
            db=db,
            action="availability_override.saved",
            entity_type="event_type",
            entity_id=str(event_type_id),
            metadata={"date": override_date.isoformat(), "is_available": is_available},
        )
    return override


async def delete_override(db: AsyncSession, event_type_id: uuid.UUID, override_date: date) -> None:
    with storage_errors("Failed to delete override"):
        result = await db.execute(
            select(AvailabilityOverride).where(
                AvailabilityOverride.event_type_id == event_type_id,
                AvailabilityOverride.override_date == override_date,
            )
        )
        override = result.scalar_one_or_none()
        if override is None:
            raise NotFoundError(
                "Override not found",
                details={"event_type_id": str(event_type_id), "date": override_date.isoformat()},
            )

        await write_audit_log(
            db=db,
            action="availability_override.deleted",
            entity_type="event_type",
            entity_id=str(event_type_id),
            metadata={"date": override_date.isoformat()},
        )
        await db.delete(override)
        await db.flush()
