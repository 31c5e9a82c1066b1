"""
Audit logging service for ledger maintenance actions.

Fire-and-forget: a failed audit write is logged, never raised, so it can
not undo or mask the result of the action being audited.
"""

import logging
from typing import Optional, Dict, Any
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy import select, desc
from backend.ledger.models.audit_log import AuditLog

logger = logging.getLogger("ledger.audit")


# Audit event constants
class AuditAction:
    """Standardized audit action constants."""
    JOURNAL_REPAIR = "JOURNAL_REPAIR"
    JOURNAL_ORPHAN_CLEANUP = "JOURNAL_ORPHAN_CLEANUP"
    JOURNAL_MANUAL_ENTRY = "JOURNAL_MANUAL_ENTRY"
    CHART_OF_ACCOUNTS_SEEDED = "CHART_OF_ACCOUNTS_SEEDED"


async def log_event(
    db: AsyncSession,
    business_id: int,
    action: str,
    actor: Optional[Dict[str, Any]] = None,
    entity: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None
) -> Optional[AuditLog]:
    """
    Record a ledger maintenance event.

    Args:
        db: Database session
        business_id: Business the action ran against
        action: Action being performed (use AuditAction constants)
        actor: Token payload of the user who ran it (None for system runs)
        entity: Entity type affected
        details: Additional context as JSON

    Returns:
        Created AuditLog instance, or None if the write failed
    """
    actor = actor or {}
    audit_log = AuditLog(
        business_id=business_id,
        user_id=actor.get("user_id"),
        user_name=actor.get("sub"),
        user_role=actor.get("role"),
        action=action,
        entity=entity,
        details=details
    )

    db.add(audit_log)
    try:
        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.warning("Audit write failed for %s on business %s: %s", action, business_id, exc)
        return None

    return audit_log


async def get_audit_trail(
    db: AsyncSession,
    business_id: int,
    action: Optional[str] = None,
    limit: int = 100
) -> list[AuditLog]:
    """
    Retrieve a business's audit trail, most recent first.

    Args:
        db: Database session
        business_id: Business to read
        action: Filter by action type
        limit: Maximum number of records to return
    """
    query = select(AuditLog).where(AuditLog.business_id == business_id)\
        .order_by(desc(AuditLog.timestamp), desc(AuditLog.id))

    if action:
        query = query.where(AuditLog.action == action)

    query = query.limit(limit)

    result = await db.execute(query)
    return result.scalars().all()
