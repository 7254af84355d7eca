"""Availability rule and override schemas.

Request bodies accept the camelCase names used by the booking frontend
(``dayOfWeek``, ``startTime``, ...) as well as snake_case.
"""

import uuid
from datetime import date, time

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from bookly.services.timezones import is_valid_timezone


def _reject_offset(v):
    # Availability times are wall-clock values read in a named zone.
    if v is not None and v.tzinfo is not None:
        raise ValueError("time must not carry a UTC offset")
    return v


class RuleInput(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    day_of_week: int = Field(..., ge=0, le=6, alias="dayOfWeek")  # 0=Sunday
    start_time: time = Field(..., alias="startTime")
    end_time: time = Field(..., alias="endTime")
    timezone: str = "UTC"

    @field_validator("timezone")
    @classmethod
    def known_timezone(cls, v: str) -> str:
        if not is_valid_timezone(v):
            raise ValueError(f"unrecognized timezone {v!r}")
        return v

    @field_validator("start_time", "end_time")
    @classmethod
    def wall_clock_time(cls, v: time) -> time:
        return _reject_offset(v)

    @model_validator(mode="after")
    def chronological(self) -> "RuleInput":
        if self.start_time >= self.end_time:
            raise ValueError("startTime must be before endTime")
        return self


class AvailabilityReplaceRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    event_type_id: uuid.UUID = Field(..., alias="eventTypeId")
    availability: list[RuleInput]


class RuleResponse(BaseModel):
    id: str
    event_type_id: str
    day_of_week: int
    start_time: str
    end_time: str
    timezone: str

    model_config = {"from_attributes": True}


class OverrideUpsert(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    is_available: bool = Field(True, alias="isAvailable")
    start_time: time | None = Field(None, alias="startTime")
    end_time: time | None = Field(None, alias="endTime")

    @field_validator("start_time", "end_time")
    @classmethod
    def wall_clock_time(cls, v: time | None) -> time | None:
        return _reject_offset(v)

    @model_validator(mode="after")
    def consistent_range(self) -> "OverrideUpsert":
        if (self.start_time is None) != (self.end_time is None):
            raise ValueError("startTime and endTime must be provided together")
        if self.start_time is not None and self.end_time is not None and self.start_time >= self.end_time:
            raise ValueError("startTime must be before endTime")
        return self


class OverrideResponse(BaseModel):
    id: str
    event_type_id: str
    override_date: date
    is_available: bool
    start_time: str | None
    end_time: str | None
