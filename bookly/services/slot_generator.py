"""Slot generation: turn recurring weekly availability into bookable intervals.

The pure helpers in this module work on plain values (anything exposing the
rule/override/meeting attributes) and an explicit ``now``; ``SlotService``
loads those values from storage and runs the pipeline for one calendar date.
"""

import logging
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Protocol

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from bookly.exceptions import InputValidationError, NotFoundError, StorageError
from bookly.models.availability import AvailabilityOverride, AvailabilityRule
from bookly.models.event_type import EventType
from bookly.models.meeting import Meeting, MeetingStatus
from bookly.services import timezones
from bookly.services.timezones import format_civil

logger = logging.getLogger(__name__)


class WeeklyRule(Protocol):
    day_of_week: int
    start_time: time
    end_time: time
    timezone: str


class DateOverride(Protocol):
    is_available: bool
    start_time: time | None
    end_time: time | None


class BusyInterval(Protocol):
    start_time: datetime
    end_time: datetime


@dataclass(frozen=True)
class TimeRange:
    """A civil time-of-day range anchored to a named zone."""

    start: time
    end: time
    timezone: str


@dataclass(frozen=True)
class Slot:
    """A bookable interval; ``start``/``end`` are aware datetimes in ``timezone``."""

    start: datetime
    end: datetime
    timezone: str

    def as_civil(self) -> dict[str, str]:
        return {
            "start": format_civil(self.start),
            "end": format_civil(self.end),
            "timezone": self.timezone,
        }


def overlaps(start_a: datetime, end_a: datetime, start_b: datetime, end_b: datetime) -> bool:
    """Open-interval overlap test; intervals that only touch do not overlap."""
    return start_a < end_b and start_b < end_a


def rules_for_day(rules: Iterable[WeeklyRule], target_date: date, viewer_tz: str) -> list[WeeklyRule]:
    """Rules whose day_of_week matches ``target_date`` read in the viewer's zone.

    The day is evaluated in the viewer zone even though each rule carries its own
    timezone; availability semantics depend on that pairing.
    """
    dow = timezones.day_of_week(target_date, viewer_tz)
    return [r for r in rules if r.day_of_week == dow]


def resolve_ranges(
    day_rules: Sequence[WeeklyRule],
    override: DateOverride | None,
    viewer_tz: str,
) -> list[TimeRange]:
    """Apply a date override to the day's weekly rules.

    A blocking override wins over everything. An available override with its
    own range replaces the weekly rules and is read in the viewer's zone.
    """
    if not day_rules:
        return []
    if override is not None:
        if not override.is_available:
            return []
        if override.start_time is not None and override.end_time is not None:
            return [TimeRange(override.start_time, override.end_time, viewer_tz)]
    return [TimeRange(r.start_time, r.end_time, r.timezone or "UTC") for r in day_rules]


def expand_ranges(
    ranges: Iterable[TimeRange],
    target_date: date,
    duration_minutes: int,
    busy: Iterable[BusyInterval],
    now: datetime,
    viewer_tz: str,
) -> list[Slot]:
    """Step through each range in ``duration_minutes`` increments.

    Arithmetic runs on UTC instants, so every slot spans exactly the duration
    even across DST changes. Slots overlapping a busy interval or starting
    before ``now`` are dropped. Overlapping ranges are not deduplicated.
    """
    if duration_minutes <= 0:
        raise InputValidationError(
            "duration_minutes must be positive",
            details={"duration_minutes": duration_minutes},
        )
    timezones.get_zone(viewer_tz)
    step = timedelta(minutes=duration_minutes)
    busy_intervals = [(b.start_time, b.end_time) for b in busy]

    slots: list[Slot] = []
    for rng in ranges:
        range_start = timezones.to_utc(target_date, rng.start, rng.timezone)
        range_end = timezones.to_utc(target_date, rng.end, rng.timezone)

        current = range_start
        while current + step <= range_end:
            slot_end = current + step
            booked = any(overlaps(current, slot_end, b_start, b_end) for b_start, b_end in busy_intervals)
            if not booked and current >= now:
                slots.append(
                    Slot(
                        start=timezones.from_utc(current, viewer_tz),
                        end=timezones.from_utc(slot_end, viewer_tz),
                        timezone=viewer_tz,
                    )
                )
            current = slot_end

    slots.sort(key=lambda s: (s.start, s.end))
    return slots


def generate_slots(
    *,
    target_date: date,
    viewer_tz: str,
    duration_minutes: int,
    rules: Iterable[WeeklyRule],
    override: DateOverride | None,
    busy: Iterable[BusyInterval],
    now: datetime,
) -> list[Slot]:
    """Full pipeline over in-memory values."""
    day_rules = rules_for_day(rules, target_date, viewer_tz)
    ranges = resolve_ranges(day_rules, override, viewer_tz)
    if not ranges:
        return []
    return expand_ranges(ranges, target_date, duration_minutes, busy, now, viewer_tz)


class SlotService:
    """Loads availability and bookings for a date and produces its slots."""

    def __init__(self, clock: Callable[[], datetime] = timezones.utcnow) -> None:
        self._clock = clock

    async def get_slots(
        self,
        db: AsyncSession,
        event_slug: str,
        target_date: date,
        viewer_tz: str = "UTC",
        now: datetime | None = None,
    ) -> list[Slot]:
        timezones.get_zone(viewer_tz)
        now = now or self._clock()

        try:
            result = await db.execute(select(EventType).where(EventType.slug == event_slug))
            event_type = result.scalar_one_or_none()
            if event_type is None:
                raise NotFoundError("Event type not found", details={"slug": event_slug})

            result = await db.execute(
                select(AvailabilityRule)
                .where(AvailabilityRule.event_type_id == event_type.id)
                .order_by(AvailabilityRule.day_of_week, AvailabilityRule.start_time)
            )
            rules = result.scalars().all()
            if not rules:
                return []

            day_rules = rules_for_day(rules, target_date, viewer_tz)
            if not day_rules:
                return []

            result = await db.execute(
                select(AvailabilityOverride).where(
                    AvailabilityOverride.event_type_id == event_type.id,
                    AvailabilityOverride.override_date == target_date,
                )
            )
            override = result.scalar_one_or_none()
            ranges = resolve_ranges(day_rules, override, viewer_tz)
            if not ranges:
                return []

            window_start, window_end = timezones.day_window_utc(target_date, viewer_tz)
            result = await db.execute(
                select(Meeting).where(
                    Meeting.event_type_id == event_type.id,
                    Meeting.status == MeetingStatus.SCHEDULED,
                    Meeting.start_time >= window_start,
                    Meeting.start_time < window_end,
                )
            )
            meetings = result.scalars().all()
        except SQLAlchemyError as e:
            raise StorageError("Failed to load availability") from e

        slots = expand_ranges(ranges, target_date, event_type.duration_minutes, meetings, now, viewer_tz)
        logger.debug(
            "Generated %d slots for %s on %s (%s)",
            len(slots),
            event_slug,
            target_date.isoformat(),
            viewer_tz,
        )
        return slots
