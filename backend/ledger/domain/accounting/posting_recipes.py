"""
Posting recipes.

Journal lines for each kind of business document. Shared by the
transaction services (live posting) and the repair service (backfill),
so a repaired entry is identical to the one normal traffic would post.
"""

from typing import Iterable, List

from backend.ledger.domain.accounting.chart_of_accounts import ACCOUNT_CODES
from backend.ledger.domain.accounting.payment_splitter import (
    Payment,
    credit_cash_bank_lines,
    debit_cash_bank_lines,
    split_payments,
)
from backend.ledger.domain.accounting.types import JournalLineInput


def sale_lines(
    subtotal_pence: int,
    vat_pence: int,
    total_pence: int,
    payments: Iterable[Payment],
    cogs_pence: int = 0,
) -> List[JournalLineInput]:
    """
    Sale:
        Dr Cash / Bank     (tendered)
        Dr AR              (unpaid remainder)
            Cr Sales Revenue   (subtotal)
            Cr VAT Payable     (vat)
        Dr COGS / Cr Inventory (cost of goods sold, when known)
    """
    split = split_payments(payments)
    ar_pence = total_pence - split.total_pence

    lines = debit_cash_bank_lines(split)
    if ar_pence > 0:
        lines.append(JournalLineInput(account_code=ACCOUNT_CODES["ar"], debit_pence=ar_pence))
    if subtotal_pence > 0:
        lines.append(JournalLineInput(account_code=ACCOUNT_CODES["sales"], credit_pence=subtotal_pence))
    if vat_pence > 0:
        lines.append(JournalLineInput(account_code=ACCOUNT_CODES["vatPayable"], credit_pence=vat_pence))

    if cogs_pence > 0:
        lines.append(JournalLineInput(account_code=ACCOUNT_CODES["cogs"], debit_pence=cogs_pence))
        lines.append(JournalLineInput(account_code=ACCOUNT_CODES["inventory"], credit_pence=cogs_pence))
    return lines


def purchase_lines(
    subtotal_pence: int,
    vat_pence: int,
    total_pence: int,
    payments: Iterable[Payment],
) -> List[JournalLineInput]:
    """
    Purchase:
        Dr Inventory       (subtotal)
        Dr VAT Receivable  (vat)
            Cr Cash / Bank     (paid)
            Cr AP              (unpaid remainder)
    """
    split = split_payments(payments)
    ap_pence = total_pence - split.total_pence

    lines = [JournalLineInput(account_code=ACCOUNT_CODES["inventory"], debit_pence=subtotal_pence)]
    if vat_pence > 0:
        lines.append(JournalLineInput(account_code=ACCOUNT_CODES["vatReceivable"], debit_pence=vat_pence))
    lines.extend(credit_cash_bank_lines(split))
    if ap_pence > 0:
        lines.append(JournalLineInput(account_code=ACCOUNT_CODES["ap"], credit_pence=ap_pence))
    return lines


def expense_lines(
    account_code: str,
    amount_pence: int,
    payments: Iterable[Payment],
) -> List[JournalLineInput]:
    """Expense: Dr expense account, Cr Cash / Bank, Cr AP for the unpaid remainder."""
    split = split_payments(payments)
    ap_pence = amount_pence - split.total_pence

    lines = [JournalLineInput(account_code=account_code, debit_pence=amount_pence)]
    lines.extend(credit_cash_bank_lines(split))
    if ap_pence > 0:
        lines.append(JournalLineInput(account_code=ACCOUNT_CODES["ap"], credit_pence=ap_pence))
    return lines
