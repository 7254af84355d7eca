"""Audit logging service for tracking all mutations."""

from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from bookly.models.audit_log import AuditLog


async def write_audit_log(
    db: AsyncSession,
    action: str,
    entity_type: str,
    entity_id: str | None = None,
    metadata: dict[str, Any] | None = None,
) -> AuditLog:
    """Record a mutation in the current transaction.

    Callers must keep invitee PII (names, emails) out of ``metadata``.
    """
    log_entry = AuditLog(
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        extra_data=metadata,
    )
    db.add(log_entry)
    await db.flush()
    return log_entry
