"""
Repair Service Tests.

Backfill posts exactly one entry per unposted document and is idempotent;
a bad document is skipped without aborting the batch; orphan cleanup only
touches entries whose source document is gone.
"""

import pytest
from datetime import datetime
from sqlalchemy import select, func

from backend.ledger.domain.accounting.balance_deriver import BalanceDeriver
from backend.ledger.domain.accounting.chart_of_accounts import ACCOUNT_CODES
from backend.ledger.domain.accounting.journal_poster import find_journal_entry, post_journal_entry
from backend.ledger.domain.accounting.posting_recipes import sale_lines
from backend.ledger.domain.accounting.statement_builder import StatementService
from backend.ledger.models.audit_log import AuditLog
from backend.ledger.models.expense import Expense, ExpensePayment
from backend.ledger.models.journal import JournalEntry, JournalLine
from backend.ledger.models.ledger_enums import PaymentMethod, PaymentStatus, ReferenceType
from backend.ledger.models.purchase_invoice import PurchaseInvoice, PurchasePayment
from backend.ledger.models.sales_invoice import SalesInvoice, SalesInvoiceLine, SalesPayment
from backend.ledger.services.audit import AuditAction, get_audit_trail
from backend.ledger.schemas.documents import PaymentCreate, SaleCreate, SaleLineCreate
from backend.ledger.services.repair import RepairService
from backend.ledger.services.transactions import record_sale

FAR_FUTURE = datetime(2100, 1, 1)
ACTOR = {"user_id": 7, "sub": "kofi", "role": "OWNER", "business_id": 1}


@pytest.fixture
def repair(cache):
    return RepairService(cache=cache)


@pytest.fixture
def statements(cache):
    return StatementService(deriver=BalanceDeriver(cache=cache))


async def add_sale(db, business_id, qty, price, cost=None, vat=0, paid=None, when=datetime(2026, 2, 3)):
    """Persist a sale with no journal entry, as if posting had failed."""
    subtotal = qty * price
    total = subtotal + vat
    paid = total if paid is None else paid
    invoice = SalesInvoice(
        business_id=business_id,
        subtotal_pence=subtotal,
        vat_pence=vat,
        total_pence=total,
        payment_status=PaymentStatus.PAID if paid >= total else PaymentStatus.PART_PAID,
        created_at=when,
        lines=[SalesInvoiceLine(description="Item", qty=qty, unit_price_pence=price, unit_cost_pence=cost)],
        payments=[SalesPayment(method=PaymentMethod.CASH, amount_pence=paid)] if paid else [],
    )
    db.add(invoice)
    await db.commit()
    return invoice.id


async def add_purchase(db, business_id, subtotal, vat=0, paid=0, when=datetime(2026, 2, 2)):
    invoice = PurchaseInvoice(
        business_id=business_id,
        supplier_name="Wholesale Ltd",
        subtotal_pence=subtotal,
        vat_pence=vat,
        total_pence=subtotal + vat,
        payment_status=PaymentStatus.UNPAID if not paid else PaymentStatus.PART_PAID,
        created_at=when,
        payments=[PurchasePayment(method=PaymentMethod.TRANSFER, amount_pence=paid)] if paid else [],
    )
    db.add(invoice)
    await db.commit()
    return invoice.id


async def add_expense(db, business_id, account_code, amount, when=datetime(2026, 2, 4)):
    expense = Expense(
        business_id=business_id,
        account_code=account_code,
        amount_pence=amount,
        payment_status=PaymentStatus.PAID,
        created_at=when,
        payments=[ExpensePayment(method=PaymentMethod.CASH, amount_pence=amount)],
    )
    db.add(expense)
    await db.commit()
    return expense.id


async def entry_count(db, reference_type=None):
    query = select(func.count(JournalEntry.id))
    if reference_type is not None:
        query = query.where(JournalEntry.reference_type == reference_type)
    return (await db.execute(query)).scalar()


# TEST 1: Backfill and idempotence
@pytest.mark.asyncio
async def test_repair_sales_is_idempotent(db_session, business, repair, statements):
    business_id = business.id
    first = await add_sale(db_session, business_id, qty=2, price=1500, cost=900)
    second = await add_sale(db_session, business_id, qty=1, price=4000, vat=800, paid=2000)

    result = await repair.repair_sales_journal_entries(db_session, business_id, actor=ACTOR)
    assert result == {"repaired": 2}

    sheet_after_first = await statements.get_balance_sheet(db_session, business_id, FAR_FUTURE)
    income_after_first = await statements.get_income_statement(
        db_session, business_id, datetime(2000, 1, 1), FAR_FUTURE
    )

    again = await repair.repair_sales_journal_entries(db_session, business_id, actor=ACTOR)
    assert again == {"repaired": 0}

    assert await entry_count(db_session, ReferenceType.SALES_INVOICE) == 2
    assert await statements.get_balance_sheet(db_session, business_id, FAR_FUTURE) == sheet_after_first
    assert await statements.get_income_statement(
        db_session, business_id, datetime(2000, 1, 1), FAR_FUTURE
    ) == income_after_first

    assert income_after_first.revenue == 3000 + 4000
    assert income_after_first.cogs == 1800
    assert sheet_after_first.total_assets == sheet_after_first.total_liabilities + sheet_after_first.total_equity

    for document_id in (first, second):
        entry = await find_journal_entry(db_session, business_id, ReferenceType.SALES_INVOICE, str(document_id))
        assert entry is not None


@pytest.mark.asyncio
async def test_repaired_entry_uses_document_date(db_session, business, repair):
    business_id = business.id
    sale_id = await add_sale(db_session, business_id, qty=1, price=100, when=datetime(2025, 12, 31, 18, 0))

    await repair.repair_sales_journal_entries(db_session, business_id)

    entry = await find_journal_entry(db_session, business_id, ReferenceType.SALES_INVOICE, str(sale_id))
    assert entry.entry_date.replace(tzinfo=None) == datetime(2025, 12, 31, 18, 0)
    assert entry.description == f"Sale {sale_id} (repaired)"


@pytest.mark.asyncio
async def test_repair_skips_already_posted_documents(db_session, business, repair, cache):
    business_id = business.id
    posted = await add_sale(db_session, business_id, qty=1, price=500)
    await post_journal_entry(
        db_session, business_id, f"Sale {posted}",
        sale_lines(500, 0, 500, [(PaymentMethod.CASH, 500)]),
        reference_type=ReferenceType.SALES_INVOICE, reference_id=str(posted), cache=cache,
    )
    await add_sale(db_session, business_id, qty=1, price=700)

    result = await repair.repair_sales_journal_entries(db_session, business_id)

    assert result == {"repaired": 1}
    assert await entry_count(db_session, ReferenceType.SALES_INVOICE) == 2


@pytest.mark.asyncio
async def test_repair_purchases_and_expenses(db_session, business, repair, statements):
    business_id = business.id
    await add_purchase(db_session, business_id, subtotal=10000, vat=2000, paid=5000)
    await add_expense(db_session, business_id, "6100", 3000)

    assert await repair.repair_purchase_journal_entries(db_session, business_id) == {"repaired": 1}
    assert await repair.repair_expense_journal_entries(db_session, business_id) == {"repaired": 1}

    sheet = await statements.get_balance_sheet(db_session, business_id, FAR_FUTURE)
    liabilities = {line.account_code: line.balance_pence for line in sheet.liabilities}
    assert liabilities[ACCOUNT_CODES["ap"]] == 7000
    assert sheet.total_assets == sheet.total_liabilities + sheet.total_equity


@pytest.mark.asyncio
async def test_repair_seeds_missing_chart(db_session, make_business, repair):
    business = await make_business(seed=False)
    business_id = business.id
    await add_expense(db_session, business_id, "6200", 1200)

    result = await repair.repair_expense_journal_entries(db_session, business_id)

    assert result == {"repaired": 1}


# TEST 2: Bad documents are skipped, not fatal
@pytest.mark.asyncio
async def test_repair_skips_document_that_cannot_post(db_session, business, repair):
    business_id = business.id
    bad = await add_expense(db_session, business_id, "9999", 500)
    good = await add_expense(db_session, business_id, "6300", 800)

    result = await repair.repair_expense_journal_entries(db_session, business_id, actor=ACTOR)

    assert result == {"repaired": 1}
    assert await find_journal_entry(db_session, business_id, ReferenceType.EXPENSE, str(bad)) is None
    assert await find_journal_entry(db_session, business_id, ReferenceType.EXPENSE, str(good)) is not None

    trail = await get_audit_trail(db_session, business_id, action=AuditAction.JOURNAL_REPAIR)
    assert len(trail) == 1
    assert trail[0].details["failed_ids"] == [bad]
    assert trail[0].user_name == "kofi"


@pytest.mark.asyncio
async def test_repair_skips_overpaid_sale(db_session, business, repair):
    business_id = business.id
    await add_sale(db_session, business_id, qty=1, price=1000, paid=1500)

    result = await repair.repair_sales_journal_entries(db_session, business_id)

    assert result == {"repaired": 0}
    assert await entry_count(db_session) == 0


# TEST 3: Orphan cleanup
@pytest.mark.asyncio
async def test_clean_orphaned_entries(db_session, business, repair, cache):
    business_id = business.id
    live = await add_sale(db_session, business_id, qty=1, price=1000)
    await repair.repair_sales_journal_entries(db_session, business_id)

    # Entry pointing at a sale that was deleted
    await post_journal_entry(
        db_session, business_id, "Sale 999",
        sale_lines(2500, 0, 2500, [(PaymentMethod.CASH, 2500)]),
        reference_type=ReferenceType.SALES_INVOICE, reference_id="999", cache=cache,
    )
    # Manual entry with no document table behind it
    await post_journal_entry(
        db_session, business_id, "Owner drawing reversal",
        sale_lines(100, 0, 100, [(PaymentMethod.CASH, 100)]),
        reference_type=ReferenceType.MANUAL, reference_id="adj-1", cache=cache,
    )
    # Entry with no reference at all
    await post_journal_entry(
        db_session, business_id, "Float top-up",
        sale_lines(50, 0, 50, [(PaymentMethod.CASH, 50)]), cache=cache,
    )

    assert await repair.find_orphaned_entry_ids(db_session, business_id) != []

    result = await repair.clean_orphaned_journal_entries(db_session, business_id, actor=ACTOR)

    assert result == {"cleaned": 1}
    assert await entry_count(db_session) == 3
    assert await find_journal_entry(db_session, business_id, ReferenceType.SALES_INVOICE, "999") is None
    assert await find_journal_entry(db_session, business_id, ReferenceType.SALES_INVOICE, str(live)) is not None

    # Lines of the deleted entry are gone too
    dangling = (await db_session.execute(
        select(func.count(JournalLine.id)).where(
            JournalLine.journal_entry_id.not_in(select(JournalEntry.id))
        )
    )).scalar()
    assert dangling == 0

    assert await repair.clean_orphaned_journal_entries(db_session, business_id) == {"cleaned": 0}

    audit_rows = (await db_session.execute(
        select(AuditLog).where(AuditLog.action == AuditAction.JOURNAL_ORPHAN_CLEANUP)
    )).scalars().all()
    assert len(audit_rows) == 1
    assert audit_rows[0].details["cleaned"] == 1


@pytest.mark.asyncio
async def test_orphan_cleanup_is_scoped_to_business(db_session, make_business, repair, cache):
    mine = await make_business(name="Mine")
    theirs = await make_business(name="Theirs")
    mine_id, theirs_id = mine.id, theirs.id

    sale_id = await add_sale(db_session, theirs_id, qty=1, price=300)
    # Business "mine" references a sale id that only exists for "theirs"
    await post_journal_entry(
        db_session, mine_id, "Sale",
        sale_lines(300, 0, 300, [(PaymentMethod.CASH, 300)]),
        reference_type=ReferenceType.SALES_INVOICE, reference_id=str(sale_id), cache=cache,
    )

    assert await repair.clean_orphaned_journal_entries(db_session, theirs_id) == {"cleaned": 0}
    assert await repair.clean_orphaned_journal_entries(db_session, mine_id) == {"cleaned": 1}


@pytest.mark.asyncio
async def test_orphan_cleanup_keeps_sale_committed_during_scan(
    db_session, business, repair, cache, session_factory, monkeypatch
):
    business_id = business.id
    await post_journal_entry(
        db_session, business_id, "Sale 999",
        sale_lines(2500, 0, 2500, [(PaymentMethod.CASH, 2500)]),
        reference_type=ReferenceType.SALES_INVOICE, reference_id="999", cache=cache,
    )

    # A till commits a sale while the cleanup is between its queries
    committed = []
    original_execute = db_session.execute

    async def execute_then_sell(*args, **kwargs):
        result = await original_execute(*args, **kwargs)
        if not committed:
            async with session_factory() as till:
                invoice, _ = await record_sale(till, business_id, SaleCreate(
                    lines=[SaleLineCreate(description="Milk", qty=1, unit_price_pence=120)],
                    payments=[PaymentCreate(method=PaymentMethod.CASH, amount_pence=120)],
                ), cache=cache)
                committed.append(invoice.id)
        return result

    monkeypatch.setattr(db_session, "execute", execute_then_sell)

    result = await repair.clean_orphaned_journal_entries(db_session, business_id)

    assert result == {"cleaned": 1}
    assert await find_journal_entry(db_session, business_id, ReferenceType.SALES_INVOICE, "999") is None
    assert await find_journal_entry(
        db_session, business_id, ReferenceType.SALES_INVOICE, str(committed[0])
    ) is not None
