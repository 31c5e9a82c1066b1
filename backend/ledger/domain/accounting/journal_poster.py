"""
Journal Poster (Domain Logic).

Validates and persists one balanced journal entry.
Low-level primitive: it does not de-duplicate by reference; callers that
need one entry per document check with find_journal_entry first.
"""

import logging
from datetime import datetime
from typing import List, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from backend.ledger.core.exceptions import (
    ChartOfAccountsNotSeededError,
    JournalWriteError,
    LedgerValidationError,
    UnbalancedEntryError,
    UnknownAccountCodeError,
)
from backend.ledger.domain.accounting.chart_of_accounts import (
    has_chart_of_accounts,
    load_account_map,
)
from backend.ledger.domain.accounting.types import JournalLineInput, to_utc_naive
from backend.ledger.models.journal import JournalEntry, JournalLine
from backend.ledger.models.ledger_enums import ReferenceType
from backend.ledger.services.cache import StatementCache, statement_cache

logger = logging.getLogger("ledger.journal")


def line_totals(lines: Sequence[JournalLineInput]) -> tuple:
    """Return (total_debit_pence, total_credit_pence)."""
    debit = sum(line.debit_pence for line in lines)
    credit = sum(line.credit_pence for line in lines)
    return debit, credit


def validate_lines(lines: Sequence[JournalLineInput]) -> None:
    """
    Check structural rules for a journal entry.

    Raises:
        LedgerValidationError: fewer than two lines, negative amounts,
            or a line that is both/neither debit and credit
        UnbalancedEntryError: debits != credits
    """
    if len(lines) < 2:
        raise LedgerValidationError(
            "A journal entry needs at least two lines",
            details={"line_count": len(lines)}
        )

    for index, line in enumerate(lines):
        if line.debit_pence < 0 or line.credit_pence < 0:
            raise LedgerValidationError(
                f"Line {index} has a negative amount",
                details={"line": index, "account_code": line.account_code}
            )
        if (line.debit_pence > 0) == (line.credit_pence > 0):
            raise LedgerValidationError(
                f"Line {index} must have either a debit or a credit",
                details={"line": index, "account_code": line.account_code}
            )

    debit, credit = line_totals(lines)
    if debit != credit:
        raise UnbalancedEntryError(debit, credit)


async def post_journal_entry(
    db: AsyncSession,
    business_id: int,
    description: str,
    lines: Sequence[JournalLineInput],
    reference_type: Optional[ReferenceType] = None,
    reference_id: Optional[str] = None,
    entry_date: Optional[datetime] = None,
    commit: bool = True,
    cache: Optional[StatementCache] = None,
) -> JournalEntry:
    """
    Validate and persist one balanced journal entry.

    Flow:
    1. Validate line shape and balance
    2. Resolve account codes for the business
    3. Write header + lines atomically
    4. Flush the business's statement cache (commit=True only)

    Args:
        db: Database session
        business_id: Owning business
        description: Human readable summary
        lines: Debit/credit lines addressed by account code
        reference_type: Kind of source document, if any
        reference_id: Source document id, if any
        entry_date: Accounting date (defaults to now)
        commit: Commit here; pass False to join the caller's transaction,
            in which case the caller commits and invalidates the cache
        cache: Statement cache to invalidate (defaults to the shared one)

    Returns:
        The persisted JournalEntry

    Raises:
        LedgerValidationError / UnbalancedEntryError: malformed lines
        ChartOfAccountsNotSeededError: business has no accounts
        UnknownAccountCodeError: a code is not in the business's chart
        JournalWriteError: the write failed and was rolled back
    """
    lines = list(lines)
    validate_lines(lines)

    codes = {line.account_code for line in lines}
    account_map = await load_account_map(db, business_id, codes)
    missing = sorted(codes - set(account_map))
    if missing:
        if not account_map and not await has_chart_of_accounts(db, business_id):
            raise ChartOfAccountsNotSeededError(business_id)
        raise UnknownAccountCodeError(missing[0], business_id)

    entry = JournalEntry(
        business_id=business_id,
        description=description,
        reference_type=reference_type,
        reference_id=str(reference_id) if reference_id is not None else None,
        entry_date=to_utc_naive(entry_date) or datetime.utcnow(),
        lines=[
            JournalLine(
                account_id=account_map[line.account_code].id,
                debit_pence=line.debit_pence,
                credit_pence=line.credit_pence,
                memo=line.memo,
            )
            for line in lines
        ],
    )
    db.add(entry)

    try:
        if commit:
            await db.commit()
        else:
            await db.flush()
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.error("Journal write failed for business %s (%s): %s", business_id, description, exc)
        raise JournalWriteError(details={"business_id": business_id, "reference_id": reference_id}) from exc

    if commit:
        await (cache or statement_cache).invalidate_business(business_id)

    logger.info(
        "Posted journal entry %s for business %s (%s:%s)",
        entry.id, business_id, reference_type.value if reference_type else None, reference_id
    )
    return entry


async def find_journal_entry(
    db: AsyncSession,
    business_id: int,
    reference_type: ReferenceType,
    reference_id: str
) -> Optional[JournalEntry]:
    """Return the first entry posted for a source document, if any."""
    result = await db.execute(
        select(JournalEntry).where(
            JournalEntry.business_id == business_id,
            JournalEntry.reference_type == reference_type,
            JournalEntry.reference_id == str(reference_id),
        ).order_by(JournalEntry.id).limit(1)
    )
    return result.scalar_one_or_none()


async def referenced_document_ids(
    db: AsyncSession,
    business_id: int,
    reference_type: ReferenceType
) -> List[str]:
    """All reference ids already posted for a document type."""
    result = await db.execute(
        select(JournalEntry.reference_id).where(
            JournalEntry.business_id == business_id,
            JournalEntry.reference_type == reference_type,
            JournalEntry.reference_id.is_not(None),
        ).distinct()
    )
    return list(result.scalars().all())
