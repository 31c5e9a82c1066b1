"""
Balance Deriver.

Balances are never stored; they are aggregated from journal lines on read.
Results are memoized in the statement cache until the next journal write
for the business flushes its tag, or the TTL lapses.
"""

from datetime import datetime
from typing import List, Optional

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from backend.ledger.domain.accounting.types import AccountBalance, BalanceWindow, to_utc_naive
from backend.ledger.models.account import Account
from backend.ledger.models.journal import JournalEntry, JournalLine
from backend.ledger.models.ledger_enums import AccountType
from backend.ledger.services.cache import StatementCache, statement_cache

DEBIT_NORMAL_TYPES = (AccountType.ASSET, AccountType.EXPENSE)


def apply_balance(account_type: AccountType, debit_pence: int, credit_pence: int) -> int:
    """Signed balance: debit-normal for ASSET/EXPENSE, credit-normal otherwise."""
    if AccountType(account_type) in DEBIT_NORMAL_TYPES:
        return debit_pence - credit_pence
    return credit_pence - debit_pence


def _window_filters(window: BalanceWindow) -> list:
    if window.as_of is not None:
        return [JournalEntry.entry_date <= window.as_of]
    return [JournalEntry.entry_date >= window.start, JournalEntry.entry_date <= window.end]


class BalanceDeriver:
    """Read-only balance queries for one cache instance."""

    def __init__(self, cache: Optional[StatementCache] = None):
        self.cache = cache or statement_cache

    async def grouped_balances(
        self,
        db: AsyncSession,
        business_id: int,
        window: BalanceWindow
    ) -> List[AccountBalance]:
        """
        Aggregate every account's movement inside the window.

        One GROUP BY over journal_lines joined to journal_entries and accounts.
        Accounts without lines in the window are omitted; a ledger with no
        lines returns an empty list.
        """
        cached = await self.cache.get(business_id, "balances", window.cache_params)
        if cached is not None:
            return [AccountBalance.model_validate(item) for item in cached]

        stmt = select(
            Account.code,
            Account.name,
            Account.type,
            func.coalesce(func.sum(JournalLine.debit_pence), 0).label("debit"),
            func.coalesce(func.sum(JournalLine.credit_pence), 0).label("credit"),
        ).join(JournalLine, JournalLine.account_id == Account.id)\
         .join(JournalEntry, JournalEntry.id == JournalLine.journal_entry_id)\
         .where(
            Account.business_id == business_id,
            JournalEntry.business_id == business_id,
            *_window_filters(window)
         )\
         .group_by(Account.id, Account.code, Account.name, Account.type)\
         .order_by(Account.code)

        results = await db.execute(stmt)

        balances = []
        for row in results:
            debit = int(row.debit)
            credit = int(row.credit)
            balances.append(AccountBalance(
                account_code=row.code,
                name=row.name,
                type=row.type,
                debit_pence=debit,
                credit_pence=credit,
                balance_pence=apply_balance(row.type, debit, credit),
            ))

        await self.cache.set(
            business_id, "balances", window.cache_params,
            [balance.model_dump(mode="json") for balance in balances]
        )
        return balances

    async def account_balance(
        self,
        db: AsyncSession,
        business_id: int,
        account_code: str,
        as_of: datetime
    ) -> int:
        """Signed balance of one account up to and including as_of. Unknown account -> 0."""
        as_of = to_utc_naive(as_of)
        params = f"{account_code}@{as_of.isoformat()}"
        cached = await self.cache.get(business_id, "account_balance", params)
        if cached is not None:
            return int(cached)

        account = (await db.execute(
            select(Account).where(Account.business_id == business_id, Account.code == account_code)
        )).scalar_one_or_none()
        if account is None:
            return 0

        stmt = select(
            func.coalesce(func.sum(JournalLine.debit_pence), 0),
            func.coalesce(func.sum(JournalLine.credit_pence), 0),
        ).join(JournalEntry, JournalEntry.id == JournalLine.journal_entry_id)\
         .where(
            JournalLine.account_id == account.id,
            JournalEntry.entry_date <= as_of
         )

        debit, credit = (await db.execute(stmt)).one()
        balance = apply_balance(account.type, int(debit), int(credit))

        await self.cache.set(business_id, "account_balance", params, balance)
        return balance


balance_deriver = BalanceDeriver()
