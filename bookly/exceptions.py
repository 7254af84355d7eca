"""Typed failures raised by the scheduling core.

The HTTP layer maps these onto status codes (see ``bookly.middleware.error_handler``);
the core itself never deals with transport concerns.
"""

from typing import Any


class SchedulingError(Exception):
    """Base class for all failures surfaced by the scheduling core."""

    code = "scheduling_error"

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class NotFoundError(SchedulingError):
    """A referenced event type, meeting or override does not exist."""

    code = "not_found"


class InputValidationError(SchedulingError):
    """A required field is missing or malformed."""

    code = "validation_error"


class InvalidTimezoneError(InputValidationError):
    code = "invalid_timezone"

    def __init__(self, timezone_name: str | None) -> None:
        super().__init__(
            f"Unrecognized timezone: {timezone_name!r}",
            details={"timezone": timezone_name},
        )
        self.timezone_name = timezone_name


class ConflictError(SchedulingError):
    """The operation collides with existing state (overlap, duplicate slug, ...)."""

    code = "conflict"


class StorageError(SchedulingError):
    """Wraps persistence failures that are not otherwise classified."""

    code = "storage_error"
