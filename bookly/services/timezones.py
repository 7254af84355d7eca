"""Timezone-aware conversions between civil date/time values and UTC instants.

Civil values are attached to their zone with ``fold=0``. For a wall time that
occurs twice (DST fall-back) this picks the first occurrence; for a wall time
that does not exist (DST spring-forward) the offset in force before the
transition is applied, so the instant lands just after the gap.
"""

from datetime import date, datetime, time, timedelta, timezone
from functools import lru_cache
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from bookly.exceptions import InputValidationError, InvalidTimezoneError

CIVIL_FORMAT = "%Y-%m-%dT%H:%M:%S"


@lru_cache(maxsize=256)
def _load_zone(name: str) -> ZoneInfo:
    return ZoneInfo(name)


def get_zone(name: str | None) -> ZoneInfo:
    """Resolve an IANA zone name, raising InvalidTimezoneError if unknown."""
    if not name or not isinstance(name, str):
        raise InvalidTimezoneError(name)
    try:
        return _load_zone(name)
    except (ZoneInfoNotFoundError, ValueError, OSError) as e:
        raise InvalidTimezoneError(name) from e


def is_valid_timezone(name: str | None) -> bool:
    try:
        get_zone(name)
    except InvalidTimezoneError:
        return False
    return True


def to_utc(civil_date: date, civil_time: time, tz_name: str) -> datetime:
    """Anchor a civil date + time-of-day in ``tz_name`` and return the UTC instant."""
    zone = get_zone(tz_name)
    local = datetime.combine(civil_date, civil_time.replace(tzinfo=None), tzinfo=zone)
    return local.astimezone(timezone.utc)


def from_utc(instant: datetime, tz_name: str) -> datetime:
    """Express an absolute instant as an aware datetime in ``tz_name``."""
    zone = get_zone(tz_name)
    if instant.tzinfo is None:
        # Naive values coming out of storage are UTC by convention.
        instant = instant.replace(tzinfo=timezone.utc)
    return instant.astimezone(zone)


def localize(value: datetime, tz_name: str) -> datetime:
    """Interpret a naive datetime in ``tz_name``; aware values keep their instant."""
    zone = get_zone(tz_name)
    if value.tzinfo is None:
        return value.replace(tzinfo=zone)
    return value


def day_of_week(civil_date: date, tz_name: str) -> int:
    """Day of week (0=Sunday .. 6=Saturday) of ``civil_date`` read in ``tz_name``."""
    local_midnight = datetime.combine(civil_date, time.min, tzinfo=get_zone(tz_name))
    return local_midnight.isoweekday() % 7


def day_window_utc(civil_date: date, tz_name: str) -> tuple[datetime, datetime]:
    """UTC bounds ``[start, end)`` of the civil day ``civil_date`` in ``tz_name``."""
    start = to_utc(civil_date, time.min, tz_name)
    end = to_utc(civil_date + timedelta(days=1), time.min, tz_name)
    return start, end


def format_civil(value: datetime) -> str:
    return value.strftime(CIVIL_FORMAT)


def parse_civil_date(value: str) -> date:
    """Parse a ``YYYY-MM-DD`` string."""
    try:
        return date.fromisoformat(value)
    except (TypeError, ValueError) as e:
        raise InputValidationError(
            "Date must be in YYYY-MM-DD format",
            details={"date": value},
        ) from e


def utcnow() -> datetime:
    return datetime.now(timezone.utc)
