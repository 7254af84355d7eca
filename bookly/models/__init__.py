"""Bookly database models."""

from bookly.models.audit_log import AuditLog
from bookly.models.availability import AvailabilityOverride, AvailabilityRule
from bookly.models.base import Base
from bookly.models.event_type import EventType
from bookly.models.meeting import Meeting, MeetingStatus

__all__ = [
    "Base",
    "EventType",
    "AvailabilityRule",
    "AvailabilityOverride",
    "Meeting",
    "MeetingStatus",
    "AuditLog",
]
