"""
Repair / Reconciliation Service.

Heals the soft link between journal entries and their source documents:
- backfill: documents with no journal entry get one posted
- orphan cleanup: entries whose document no longer exists are deleted

Both operations are idempotent and run sequentially, one document at a
time, so a bad document is logged and skipped without aborting the batch.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from backend.ledger.core.exceptions import AppException, JournalWriteError
from backend.ledger.domain.accounting.chart_of_accounts import ensure_chart_of_accounts
from backend.ledger.domain.accounting.journal_poster import post_journal_entry, referenced_document_ids
from backend.ledger.domain.accounting.types import JournalLineInput
from backend.ledger.models.expense import Expense
from backend.ledger.models.journal import JournalEntry, JournalLine
from backend.ledger.models.ledger_enums import ReferenceType
from backend.ledger.models.purchase_invoice import PurchaseInvoice
from backend.ledger.models.sales_invoice import SalesInvoice
from backend.ledger.services.audit import AuditAction, log_event
from backend.ledger.services.cache import StatementCache, statement_cache
from backend.ledger.services.transactions import (
    expense_journal_lines,
    purchase_journal_lines,
    sale_journal_lines,
)

logger = logging.getLogger("ledger.repair")


@dataclass(frozen=True)
class SourceDocument:
    """How to find and re-post one kind of source document."""
    label: str
    model: Any
    relations: tuple
    build_lines: Callable[[Any], List[JournalLineInput]]


SOURCE_DOCUMENTS: Dict[ReferenceType, SourceDocument] = {
    ReferenceType.SALES_INVOICE: SourceDocument(
        label="Sale",
        model=SalesInvoice,
        relations=(SalesInvoice.lines, SalesInvoice.payments),
        build_lines=sale_journal_lines,
    ),
    ReferenceType.PURCHASE_INVOICE: SourceDocument(
        label="Purchase",
        model=PurchaseInvoice,
        relations=(PurchaseInvoice.payments,),
        build_lines=purchase_journal_lines,
    ),
    ReferenceType.EXPENSE: SourceDocument(
        label="Expense",
        model=Expense,
        relations=(Expense.payments,),
        build_lines=expense_journal_lines,
    ),
}


class RepairService:

    def __init__(self, cache: Optional[StatementCache] = None):
        self.cache = cache or statement_cache

    async def repair_journal_entries(
        self,
        db: AsyncSession,
        business_id: int,
        reference_type: ReferenceType,
        actor: Optional[Dict[str, Any]] = None
    ) -> Dict[str, int]:
        """
        Post the missing journal entry for every document of one type.

        Flow:
        1. Ensure the chart of accounts exists (lazy seed)
        2. Collect reference ids already posted for this type
        3. Load documents not among them
        4. Rebuild each document's posting recipe and post it; log and skip failures
        5. Audit + cache flush

        Returns:
            {"repaired": number of entries posted by this call}
        """
        source = SOURCE_DOCUMENTS[reference_type]
        model = source.model

        await ensure_chart_of_accounts(db, business_id)

        posted_ids = set(await referenced_document_ids(db, business_id, reference_type))

        result = await db.execute(
            select(model)
            .options(*[selectinload(relation) for relation in source.relations])
            .where(model.business_id == business_id)
            .order_by(model.id)
        )
        documents = [doc for doc in result.scalars().all() if str(doc.id) not in posted_ids]

        if not documents:
            return {"repaired": 0}

        repaired = 0
        failed = []

        # Rebuild every recipe up front: a rollback below expires loaded documents
        plans = []
        for document in documents:
            try:
                plans.append((document.id, document.created_at, source.build_lines(document)))
            except (TypeError, ValueError) as exc:
                failed.append(document.id)
                logger.error(
                    "Cannot rebuild journal for %s %s on business %s: %s",
                    reference_type.value, document.id, business_id, exc
                )

        for document_id, entry_date, lines in plans:
            try:
                await post_journal_entry(
                    db,
                    business_id=business_id,
                    description=f"{source.label} {document_id} (repaired)",
                    lines=lines,
                    reference_type=reference_type,
                    reference_id=str(document_id),
                    entry_date=entry_date,
                    cache=self.cache,
                )
                repaired += 1
            except (AppException, SQLAlchemyError) as exc:
                # Keep going: repair as many documents as possible
                await db.rollback()
                failed.append(document_id)
                logger.error(
                    "Failed to post journal for %s %s on business %s: %s",
                    reference_type.value, document_id, business_id, exc
                )

        logger.info(
            "Journal repair for business %s (%s): repaired=%s failed=%s",
            business_id, reference_type.value, repaired, len(failed)
        )

        await log_event(
            db,
            business_id=business_id,
            action=AuditAction.JOURNAL_REPAIR,
            actor=actor,
            entity="JournalEntry",
            details={
                "reference_type": reference_type.value,
                "repaired": repaired,
                "total": len(documents),
                "failed_ids": failed,
            }
        )

        return {"repaired": repaired}

    async def repair_sales_journal_entries(self, db: AsyncSession, business_id: int, actor=None) -> Dict[str, int]:
        return await self.repair_journal_entries(db, business_id, ReferenceType.SALES_INVOICE, actor)

    async def repair_purchase_journal_entries(self, db: AsyncSession, business_id: int, actor=None) -> Dict[str, int]:
        return await self.repair_journal_entries(db, business_id, ReferenceType.PURCHASE_INVOICE, actor)

    async def repair_expense_journal_entries(self, db: AsyncSession, business_id: int, actor=None) -> Dict[str, int]:
        return await self.repair_journal_entries(db, business_id, ReferenceType.EXPENSE, actor)

    async def find_orphaned_entry_ids(self, db: AsyncSession, business_id: int) -> List[int]:
        """
        Entries whose (reference_type, reference_id) names a document that no longer exists.

        Entries are read before documents. A document commits together with
        its entry, so any entry seen here has its document visible to the
        second query.
        """
        orphan_ids = []
        for reference_type, source in SOURCE_DOCUMENTS.items():
            model = source.model
            entries = (await db.execute(
                select(JournalEntry.id, JournalEntry.reference_id).where(
                    JournalEntry.business_id == business_id,
                    JournalEntry.reference_type == reference_type,
                    JournalEntry.reference_id.is_not(None),
                )
            )).all()
            if not entries:
                continue

            existing = await db.execute(select(model.id).where(model.business_id == business_id))
            existing_ids = {str(document_id) for document_id in existing.scalars().all()}

            orphan_ids.extend(
                entry_id for entry_id, reference_id in entries if reference_id not in existing_ids
            )
        return sorted(orphan_ids)

    async def clean_orphaned_journal_entries(
        self,
        db: AsyncSession,
        business_id: int,
        actor: Optional[Dict[str, Any]] = None
    ) -> Dict[str, int]:
        """
        Delete journal entries (lines and header together) whose source document is gone.

        Entries without a reference, or with a reference type that has no
        document table (MANUAL), are never touched.

        Returns:
            {"cleaned": number of entries deleted}
        """
        orphan_ids = await self.find_orphaned_entry_ids(db, business_id)
        if not orphan_ids:
            return {"cleaned": 0}

        try:
            await db.execute(delete(JournalLine).where(JournalLine.journal_entry_id.in_(orphan_ids)))
            await db.execute(delete(JournalEntry).where(JournalEntry.id.in_(orphan_ids)))
            await db.commit()
        except SQLAlchemyError as exc:
            await db.rollback()
            logger.error("Orphan cleanup failed for business %s: %s", business_id, exc)
            raise JournalWriteError(
                message="Failed to delete orphaned journal entries",
                details={"business_id": business_id}
            ) from exc

        await self.cache.invalidate_business(business_id)
        logger.info("Removed %s orphaned journal entries for business %s", len(orphan_ids), business_id)

        await log_event(
            db,
            business_id=business_id,
            action=AuditAction.JOURNAL_ORPHAN_CLEANUP,
            actor=actor,
            entity="JournalEntry",
            details={"cleaned": len(orphan_ids), "entry_ids": orphan_ids}
        )

        return {"cleaned": len(orphan_ids)}


repair_service = RepairService()
