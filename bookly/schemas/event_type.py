"""Event type schemas."""

import re

from pydantic import BaseModel, Field, field_validator

SLUG_PATTERN = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
COLOR_PATTERN = re.compile(r"^#[0-9A-Fa-f]{6}$")
MAX_DURATION_MINUTES = 24 * 60


def _normalize_slug(v: str) -> str:
    v = v.strip().lower()
    if not SLUG_PATTERN.match(v):
        raise ValueError("slug must contain only lowercase letters, digits and single hyphens")
    return v


def _check_color(v: str | None) -> str | None:
    if v is not None and not COLOR_PATTERN.match(v):
        raise ValueError("color must be a hex value like #0069FF")
    return v


class EventTypeCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    slug: str = Field(..., min_length=1, max_length=255)
    duration_minutes: int = Field(..., gt=0, le=MAX_DURATION_MINUTES)
    description: str | None = None
    color: str | None = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("name must not be blank")
        return v.strip()

    @field_validator("slug")
    @classmethod
    def normalize_slug(cls, v: str) -> str:
        return _normalize_slug(v)

    @field_validator("color")
    @classmethod
    def check_color(cls, v: str | None) -> str | None:
        return _check_color(v)


class EventTypeUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    slug: str | None = Field(None, min_length=1, max_length=255)
    duration_minutes: int | None = Field(None, gt=0, le=MAX_DURATION_MINUTES)
    description: str | None = None
    color: str | None = None

    @field_validator("slug")
    @classmethod
    def normalize_slug(cls, v: str | None) -> str | None:
        return None if v is None else _normalize_slug(v)

    @field_validator("color")
    @classmethod
    def check_color(cls, v: str | None) -> str | None:
        return _check_color(v)


class EventTypeResponse(BaseModel):
    id: str
    name: str
    slug: str
    duration_minutes: int
    description: str | None
    color: str
    created_at: str | None = None
    updated_at: str | None = None

    model_config = {"from_attributes": True}
