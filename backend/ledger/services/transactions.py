"""
Transaction Services.

Finalize a source document and post its journal entry in one database
transaction: document first, then journal. If the process dies between
the two steps in another code path, the repair service backfills the entry.
"""

from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from backend.ledger.core.exceptions import (
    AppException, JournalWriteError, LedgerValidationError, ResourceNotFoundError
)
from backend.ledger.domain.accounting.chart_of_accounts import load_account_map
from backend.ledger.domain.accounting.journal_poster import post_journal_entry
from backend.ledger.domain.accounting.payment_splitter import derive_payment_status
from backend.ledger.domain.accounting.posting_recipes import expense_lines, purchase_lines, sale_lines
from backend.ledger.domain.accounting.types import JournalLineInput
from backend.ledger.models.business import Business
from backend.ledger.models.expense import Expense, ExpensePayment
from backend.ledger.models.journal import JournalEntry
from backend.ledger.models.ledger_enums import AccountType, ReferenceType
from backend.ledger.models.purchase_invoice import PurchaseInvoice, PurchasePayment
from backend.ledger.models.sales_invoice import SalesInvoice, SalesInvoiceLine, SalesPayment
from backend.ledger.schemas.documents import ExpenseCreate, PurchaseCreate, SaleCreate
from backend.ledger.services.cache import StatementCache, statement_cache


# Document -> journal lines. Used for live posting and for backfill.

def sale_cogs_pence(invoice: SalesInvoice) -> int:
    """Cost of goods sold from line costs; lines with unknown cost contribute nothing."""
    return sum(
        line.qty * line.unit_cost_pence
        for line in invoice.lines
        if line.unit_cost_pence is not None
    )


def sale_journal_lines(invoice: SalesInvoice) -> List[JournalLineInput]:
    return sale_lines(
        subtotal_pence=invoice.subtotal_pence,
        vat_pence=invoice.vat_pence,
        total_pence=invoice.total_pence,
        payments=[(p.method, p.amount_pence) for p in invoice.payments],
        cogs_pence=sale_cogs_pence(invoice),
    )


def purchase_journal_lines(invoice: PurchaseInvoice) -> List[JournalLineInput]:
    return purchase_lines(
        subtotal_pence=invoice.subtotal_pence,
        vat_pence=invoice.vat_pence,
        total_pence=invoice.total_pence,
        payments=[(p.method, p.amount_pence) for p in invoice.payments],
    )


def expense_journal_lines(expense: Expense) -> List[JournalLineInput]:
    return expense_lines(
        account_code=expense.account_code,
        amount_pence=expense.amount_pence,
        payments=[(p.method, p.amount_pence) for p in expense.payments],
    )


async def _get_business(db: AsyncSession, business_id: int) -> Business:
    business = await db.get(Business, business_id)
    if not business:
        raise ResourceNotFoundError("Business", business_id)
    return business


async def _check_expense_account(db: AsyncSession, business_id: int, account_code: str):
    """Expenses may only debit EXPENSE accounts. Unknown codes are left to the poster."""
    account = (await load_account_map(db, business_id, {account_code})).get(account_code)
    if account is not None and AccountType(account.type) != AccountType.EXPENSE:
        raise LedgerValidationError(
            message=f"Account {account_code} is not an expense account",
            details={"account_code": account_code, "account_type": AccountType(account.type).value}
        )


async def _finalize(
    db: AsyncSession,
    document,
    business_id: int,
    description: str,
    reference_type: ReferenceType,
    lines: List[JournalLineInput],
    cache: Optional[StatementCache],
) -> JournalEntry:
    """Flush the document, post its entry in the same transaction, commit once."""
    try:
        db.add(document)
        await db.flush()

        entry = await post_journal_entry(
            db,
            business_id=business_id,
            description=f"{description} {document.id}",
            lines=lines,
            reference_type=reference_type,
            reference_id=str(document.id),
            entry_date=document.created_at,
            commit=False,
        )
        await db.commit()
    except AppException:
        await db.rollback()
        raise
    except SQLAlchemyError as exc:
        await db.rollback()
        raise JournalWriteError(
            message=f"Failed to record {reference_type.value}",
            details={"business_id": business_id}
        ) from exc

    await (cache or statement_cache).invalidate_business(business_id)
    return entry


async def record_sale(
    db: AsyncSession,
    business_id: int,
    sale: SaleCreate,
    cache: Optional[StatementCache] = None
) -> Tuple[SalesInvoice, JournalEntry]:
    """
    Finalize a sale and post it.

    VAT is ignored for businesses with VAT disabled.
    """
    business = await _get_business(db, business_id)

    subtotal = sum(line.qty * line.unit_price_pence for line in sale.lines)
    vat = sale.vat_pence if business.vat_enabled else 0
    total = subtotal + vat
    paid = sum(p.amount_pence for p in sale.payments)

    invoice = SalesInvoice(
        business_id=business_id,
        subtotal_pence=subtotal,
        vat_pence=vat,
        total_pence=total,
        payment_status=derive_payment_status(total, paid),
        created_at=datetime.utcnow(),
        lines=[
            SalesInvoiceLine(
                description=line.description,
                qty=line.qty,
                unit_price_pence=line.unit_price_pence,
                unit_cost_pence=line.unit_cost_pence,
            )
            for line in sale.lines
        ],
        payments=[
            SalesPayment(method=p.method, amount_pence=p.amount_pence, reference=p.reference)
            for p in sale.payments if p.amount_pence > 0
        ],
    )

    entry = await _finalize(
        db, invoice, business_id, "Sale", ReferenceType.SALES_INVOICE,
        sale_journal_lines(invoice), cache
    )
    return invoice, entry


async def record_purchase(
    db: AsyncSession,
    business_id: int,
    purchase: PurchaseCreate,
    cache: Optional[StatementCache] = None
) -> Tuple[PurchaseInvoice, JournalEntry]:
    """Record a supplier invoice and post it."""
    await _get_business(db, business_id)

    total = purchase.subtotal_pence + purchase.vat_pence
    paid = sum(p.amount_pence for p in purchase.payments)

    invoice = PurchaseInvoice(
        business_id=business_id,
        supplier_name=purchase.supplier_name,
        subtotal_pence=purchase.subtotal_pence,
        vat_pence=purchase.vat_pence,
        total_pence=total,
        payment_status=derive_payment_status(total, paid),
        created_at=datetime.utcnow(),
        payments=[
            PurchasePayment(method=p.method, amount_pence=p.amount_pence, reference=p.reference)
            for p in purchase.payments if p.amount_pence > 0
        ],
    )

    entry = await _finalize(
        db, invoice, business_id, "Purchase", ReferenceType.PURCHASE_INVOICE,
        purchase_journal_lines(invoice), cache
    )
    return invoice, entry


async def record_expense(
    db: AsyncSession,
    business_id: int,
    expense_in: ExpenseCreate,
    cache: Optional[StatementCache] = None
) -> Tuple[Expense, JournalEntry]:
    """Record an operating expense and post it."""
    await _get_business(db, business_id)
    await _check_expense_account(db, business_id, expense_in.account_code)

    paid = sum(p.amount_pence for p in expense_in.payments)

    expense = Expense(
        business_id=business_id,
        account_code=expense_in.account_code,
        vendor_name=expense_in.vendor_name,
        amount_pence=expense_in.amount_pence,
        payment_status=derive_payment_status(expense_in.amount_pence, paid),
        created_at=datetime.utcnow(),
        payments=[
            ExpensePayment(method=p.method, amount_pence=p.amount_pence)
            for p in expense_in.payments if p.amount_pence > 0
        ],
    )

    entry = await _finalize(
        db, expense, business_id, "Expense", ReferenceType.EXPENSE,
        expense_journal_lines(expense), cache
    )
    return expense, entry
