"""
Financial Report Endpoints.

Read-only statements derived from the journal. Every role of the
business may read them.
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from backend.ledger.db.session import get_db
from backend.ledger.schemas.reports import BalanceSheet, Cashflow, IncomeStatement
from backend.ledger.core.guards import require_business_access
from backend.ledger.domain.accounting.statement_builder import statement_service
from backend.ledger.domain.accounting.types import to_utc_naive

router = APIRouter(prefix="/businesses/{business_id}/reports", tags=["Reports"])

business_access = require_business_access()


def _utc_period(start: datetime, end: datetime):
    start, end = to_utc_naive(start), to_utc_naive(end)
    if start > end:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="start must not be after end"
        )
    return start, end


@router.get("/income-statement", response_model=IncomeStatement)
async def get_income_statement(
    business_id: int,
    start: datetime = Query(..., description="Period start (inclusive)"),
    end: datetime = Query(..., description="Period end (inclusive)"),
    current_user: dict = Depends(business_access),
    db: AsyncSession = Depends(get_db)
):
    start, end = _utc_period(start, end)
    return await statement_service.get_income_statement(db, business_id, start, end)


@router.get("/balance-sheet", response_model=BalanceSheet)
async def get_balance_sheet(
    business_id: int,
    as_of: Optional[datetime] = Query(None, description="Point in time (defaults to now)"),
    current_user: dict = Depends(business_access),
    db: AsyncSession = Depends(get_db)
):
    return await statement_service.get_balance_sheet(db, business_id, to_utc_naive(as_of) or datetime.utcnow())


@router.get("/cashflow", response_model=Cashflow)
async def get_cashflow(
    business_id: int,
    start: datetime = Query(..., description="Period start"),
    end: datetime = Query(..., description="Period end"),
    current_user: dict = Depends(business_access),
    db: AsyncSession = Depends(get_db)
):
    start, end = _utc_period(start, end)
    return await statement_service.get_cashflow(db, business_id, start, end)
