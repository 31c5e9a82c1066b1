"""
Ledger API Endpoints.

Chart of accounts seeding, manual journal entries and the audit trail.
"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from backend.ledger.db.session import get_db
from backend.ledger.models.enums import UserRole
from backend.ledger.schemas.ledger import (
    AuditLogResponse, AuditTrailResponse, ChartOfAccountsResponse, JournalEntryCreate, JournalEntryResponse
)
from backend.ledger.core.guards import require_business_access
from backend.ledger.domain.accounting.chart_of_accounts import ensure_chart_of_accounts
from backend.ledger.domain.accounting.journal_poster import post_journal_entry
from backend.ledger.services.audit import log_event, AuditAction, get_audit_trail

router = APIRouter(prefix="/businesses/{business_id}", tags=["Ledger"])

manager_access = require_business_access([UserRole.OWNER, UserRole.MANAGER])
owner_access = require_business_access([UserRole.OWNER])


@router.post("/chart-of-accounts", response_model=ChartOfAccountsResponse)
async def seed_chart_of_accounts(
    business_id: int,
    current_user: dict = Depends(manager_access),
    db: AsyncSession = Depends(get_db)
):
    """
    Create any missing standard accounts. Idempotent.
    """
    created = await ensure_chart_of_accounts(db, business_id)
    
    if created:
        await log_event(
            db,
            business_id=business_id,
            action=AuditAction.CHART_OF_ACCOUNTS_SEEDED,
            actor=current_user,
            entity="Account",
            details={"created": created}
        )
    
    return ChartOfAccountsResponse(business_id=business_id, created=created)


@router.post("/journal-entries", response_model=JournalEntryResponse, status_code=status.HTTP_201_CREATED)
async def create_journal_entry(
    business_id: int,
    entry_in: JournalEntryCreate,
    current_user: dict = Depends(manager_access),
    db: AsyncSession = Depends(get_db)
):
    """
    Post a balanced journal entry (adjustments, reversals).
    
    No de-duplication by reference: a reversal may share the
    reference of the entry it reverses.
    """
    entry = await post_journal_entry(
        db,
        business_id=business_id,
        description=entry_in.description,
        lines=entry_in.lines,
        reference_type=entry_in.reference_type,
        reference_id=entry_in.reference_id,
        entry_date=entry_in.entry_date,
    )
    
    await log_event(
        db,
        business_id=business_id,
        action=AuditAction.JOURNAL_MANUAL_ENTRY,
        actor=current_user,
        entity="JournalEntry",
        details={"journal_entry_id": entry.id}
    )
    
    return entry


@router.get("/audit-logs", response_model=AuditTrailResponse)
async def get_audit_logs(
    business_id: int,
    action: str = Query(None, description="Filter by action type"),
    limit: int = Query(100, ge=1, le=500, description="Maximum records to return"),
    current_user: dict = Depends(owner_access),
    db: AsyncSession = Depends(get_db)
):
    """
    Ledger maintenance history for the business (owner-only).
    """
    logs = await get_audit_trail(db, business_id, action=action, limit=limit)
    
    return AuditTrailResponse(
        logs=[AuditLogResponse.model_validate(log) for log in logs],
        total=len(logs)
    )
