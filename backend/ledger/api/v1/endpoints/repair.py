"""
Ledger Repair Endpoints.

Owner/manager actions run after anomalies show up in the statements.
Each is idempotent: a second run reports zero.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from backend.ledger.db.session import get_db
from backend.ledger.models.enums import UserRole
from backend.ledger.schemas.ledger import CleanupResponse, RepairResponse
from backend.ledger.core.guards import require_business_access
from backend.ledger.services.repair import repair_service

router = APIRouter(prefix="/businesses/{business_id}/repair", tags=["Ledger - Repair"])

owner_access = require_business_access([UserRole.OWNER, UserRole.MANAGER])


@router.post("/sales", response_model=RepairResponse)
async def repair_sales_journal_entries(
    business_id: int,
    current_user: dict = Depends(owner_access),
    db: AsyncSession = Depends(get_db)
):
    """Backfill journal entries for sales invoices that have none."""
    return await repair_service.repair_sales_journal_entries(db, business_id, actor=current_user)


@router.post("/purchases", response_model=RepairResponse)
async def repair_purchase_journal_entries(
    business_id: int,
    current_user: dict = Depends(owner_access),
    db: AsyncSession = Depends(get_db)
):
    """Backfill journal entries for purchase invoices that have none."""
    return await repair_service.repair_purchase_journal_entries(db, business_id, actor=current_user)


@router.post("/expenses", response_model=RepairResponse)
async def repair_expense_journal_entries(
    business_id: int,
    current_user: dict = Depends(owner_access),
    db: AsyncSession = Depends(get_db)
):
    """Backfill journal entries for expenses that have none."""
    return await repair_service.repair_expense_journal_entries(db, business_id, actor=current_user)


@router.post("/orphans", response_model=CleanupResponse)
async def clean_orphaned_journal_entries(
    business_id: int,
    current_user: dict = Depends(owner_access),
    db: AsyncSession = Depends(get_db)
):
    """Delete journal entries whose source document no longer exists."""
    return await repair_service.clean_orphaned_journal_entries(db, business_id, actor=current_user)
