"""
Source Document Endpoints.

Finalize sales, purchases and expenses; each posts its journal entry
in the same transaction.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from backend.ledger.db.session import get_db
from backend.ledger.models.enums import UserRole
from backend.ledger.schemas.documents import (
    DocumentResponse, ExpenseCreate, PurchaseCreate, SaleCreate
)
from backend.ledger.core.guards import require_business_access
from backend.ledger.domain.accounting.chart_of_accounts import ensure_chart_of_accounts
from backend.ledger.services.transactions import record_expense, record_purchase, record_sale

router = APIRouter(prefix="/businesses/{business_id}", tags=["Documents"])

staff_access = require_business_access()
manager_access = require_business_access([UserRole.OWNER, UserRole.MANAGER])


@router.post("/sales", response_model=DocumentResponse, status_code=status.HTTP_201_CREATED)
async def create_sale(
    business_id: int,
    sale: SaleCreate,
    current_user: dict = Depends(staff_access),
    db: AsyncSession = Depends(get_db)
):
    await ensure_chart_of_accounts(db, business_id)
    invoice, entry = await record_sale(db, business_id, sale)
    return DocumentResponse(
        id=invoice.id,
        total_pence=invoice.total_pence,
        payment_status=invoice.payment_status,
        journal_entry_id=entry.id,
        created_at=invoice.created_at
    )


@router.post("/purchases", response_model=DocumentResponse, status_code=status.HTTP_201_CREATED)
async def create_purchase(
    business_id: int,
    purchase: PurchaseCreate,
    current_user: dict = Depends(manager_access),
    db: AsyncSession = Depends(get_db)
):
    await ensure_chart_of_accounts(db, business_id)
    invoice, entry = await record_purchase(db, business_id, purchase)
    return DocumentResponse(
        id=invoice.id,
        total_pence=invoice.total_pence,
        payment_status=invoice.payment_status,
        journal_entry_id=entry.id,
        created_at=invoice.created_at
    )


@router.post("/expenses", response_model=DocumentResponse, status_code=status.HTTP_201_CREATED)
async def create_expense(
    business_id: int,
    expense_in: ExpenseCreate,
    current_user: dict = Depends(manager_access),
    db: AsyncSession = Depends(get_db)
):
    await ensure_chart_of_accounts(db, business_id)
    expense, entry = await record_expense(db, business_id, expense_in)
    return DocumentResponse(
        id=expense.id,
        total_pence=expense.amount_pence,
        payment_status=expense.payment_status,
        journal_entry_id=entry.id,
        created_at=expense.created_at
    )
