"""
API v1 Router.

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter
from backend.ledger.api.v1.endpoints import documents, ledger, reports, repair

router = APIRouter()

# Chart of accounts and manual journal entries
router.include_router(ledger.router)

# Sales, purchases and expenses (post their own journal entries)
router.include_router(documents.router)

# Income statement, balance sheet, cashflow
router.include_router(reports.router)

# Backfill and orphan cleanup
router.include_router(repair.router)
