"""
Chart of Accounts.

Standard accounts seeded for every business, and code -> account resolution.
"""

from typing import Dict, Iterable

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from backend.ledger.core.exceptions import ResourceNotFoundError
from backend.ledger.models.account import Account
from backend.ledger.models.business import Business
from backend.ledger.models.ledger_enums import AccountType


ACCOUNT_CODES = {
    "cash": "1000",
    "bank": "1010",
    "ar": "1100",
    "inventory": "1200",
    "vatReceivable": "1300",
    "ap": "2000",
    "vatPayable": "2100",
    "equity": "3000",
    "sales": "4000",
    "cogs": "5000",
    "operatingExpenses": "6000",
}

# (code, name, type)
CHART_OF_ACCOUNTS = [
    ("1000", "Cash on Hand", AccountType.ASSET),
    ("1010", "Bank", AccountType.ASSET),
    ("1100", "Accounts Receivable", AccountType.ASSET),
    ("1200", "Inventory", AccountType.ASSET),
    ("1300", "VAT Receivable", AccountType.ASSET),
    ("2000", "Accounts Payable", AccountType.LIABILITY),
    ("2100", "VAT Payable", AccountType.LIABILITY),
    ("3000", "Retained Earnings", AccountType.EQUITY),
    ("4000", "Sales Revenue", AccountType.INCOME),
    ("5000", "Cost of Goods Sold", AccountType.EXPENSE),
    ("6000", "Operating Expenses", AccountType.EXPENSE),
    ("6100", "Rent", AccountType.EXPENSE),
    ("6200", "Utilities", AccountType.EXPENSE),
    ("6300", "Salaries", AccountType.EXPENSE),
    ("6400", "Repairs & Maintenance", AccountType.EXPENSE),
    ("6500", "Fuel & Transport", AccountType.EXPENSE),
    ("6600", "Marketing", AccountType.EXPENSE),
]

ACCOUNT_NAMES = {code: name for code, name, _ in CHART_OF_ACCOUNTS}


async def ensure_chart_of_accounts(db: AsyncSession, business_id: int) -> int:
    """
    Idempotently create any missing standard accounts for a business.
    
    Existing accounts are never modified. Safe to call repeatedly and
    concurrently: a duplicate insert from a racing caller means the chart
    is already seeded.
    
    Args:
        db: Database session
        business_id: Business to seed
        
    Returns:
        Number of accounts created by this call

    Raises:
        ResourceNotFoundError: business does not exist
    """
    if await db.get(Business, business_id) is None:
        raise ResourceNotFoundError("Business", business_id)

    result = await db.execute(
        select(Account.code).where(Account.business_id == business_id)
    )
    existing = set(result.scalars().all())
    
    missing = [
        Account(business_id=business_id, code=code, name=name, type=account_type)
        for code, name, account_type in CHART_OF_ACCOUNTS
        if code not in existing
    ]
    if not missing:
        return 0
    
    db.add_all(missing)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        return 0
    
    return len(missing)


async def load_account_map(
    db: AsyncSession,
    business_id: int,
    codes: Iterable[str] = None
) -> Dict[str, Account]:
    """
    Fetch a business's accounts keyed by code.
    
    Args:
        db: Database session
        business_id: Owning business
        codes: Restrict to these codes (all accounts when omitted)
    """
    query = select(Account).where(Account.business_id == business_id)
    if codes is not None:
        query = query.where(Account.code.in_(set(codes)))
    
    result = await db.execute(query)
    return {account.code: account for account in result.scalars().all()}


async def has_chart_of_accounts(db: AsyncSession, business_id: int) -> bool:
    result = await db.execute(
        select(Account.id).where(Account.business_id == business_id).limit(1)
    )
    return result.scalar_one_or_none() is not None
