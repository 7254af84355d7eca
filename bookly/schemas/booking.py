"""Slot and booking schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from bookly.services.timezones import is_valid_timezone


class SlotResponse(BaseModel):
    start: str
    end: str
    timezone: str


class BookingCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    event_slug: str = Field(..., min_length=1, alias="eventSlug")
    invitee_name: str = Field(..., min_length=1, max_length=255, alias="inviteeName")
    # Presence only; the address format is not validated.
    invitee_email: str = Field(..., min_length=1, max_length=320, alias="inviteeEmail")
    # Naive values are read in ``timezone``; values with an offset are absolute.
    start_time: datetime = Field(..., alias="startTime")
    timezone: str = Field(..., min_length=1)

    @field_validator("timezone")
    @classmethod
    def known_timezone(cls, v: str) -> str:
        if not is_valid_timezone(v):
            raise ValueError(f"unrecognized timezone {v!r}")
        return v
