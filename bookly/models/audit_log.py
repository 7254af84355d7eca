"""Audit log model for tracking all mutations."""

from datetime import datetime

from sqlalchemy import DateTime, String, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from bookly.models.base import Base, UUIDPrimaryKeyMixin


class AuditLog(Base, UUIDPrimaryKeyMixin):
    __tablename__ = "audit_log"

    action: Mapped[str] = mapped_column(String(100), nullable=False)  # e.g. "meeting.booked"
    entity_type: Mapped[str] = mapped_column(String(100), nullable=False)  # e.g. "meeting"
    entity_id: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)
    extra_data: Mapped[dict | None] = mapped_column("metadata", JSONB, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        index=True,
    )

    def __repr__(self) -> str:
        return f"<AuditLog {self.action} {self.entity_type}:{self.entity_id}>"
