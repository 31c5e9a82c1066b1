"""
Payment Splitter.

Buckets a document's payments into cash vs bank and builds the matching
cash/bank journal lines. Pure functions; non-positive payments are ignored.
"""

from dataclasses import dataclass
from typing import Iterable, List, Tuple

from backend.ledger.domain.accounting.chart_of_accounts import ACCOUNT_CODES
from backend.ledger.domain.accounting.types import JournalLineInput
from backend.ledger.models.ledger_enums import PaymentMethod, PaymentStatus

# (method, amount_pence)
Payment = Tuple[PaymentMethod, int]


@dataclass(frozen=True)
class PaymentSplit:
    cash_pence: int
    bank_pence: int  # card + transfer + mobile money
    
    @property
    def total_pence(self) -> int:
        return self.cash_pence + self.bank_pence


def filter_positive_payments(payments: Iterable[Payment]) -> List[Payment]:
    """Keep only payments with a positive amount."""
    return [(method, amount) for method, amount in payments if amount > 0]


def split_payments(payments: Iterable[Payment]) -> PaymentSplit:
    """Split payments into cash vs bank totals. Every non-cash method settles through the bank."""
    cash_pence = 0
    bank_pence = 0
    for method, amount in filter_positive_payments(payments):
        if PaymentMethod(method) == PaymentMethod.CASH:
            cash_pence += amount
        else:
            bank_pence += amount
    return PaymentSplit(cash_pence=cash_pence, bank_pence=bank_pence)


def derive_payment_status(total_pence: int, paid_pence: int) -> PaymentStatus:
    if paid_pence <= 0:
        return PaymentStatus.UNPAID
    if paid_pence >= total_pence:
        return PaymentStatus.PAID
    return PaymentStatus.PART_PAID


def debit_cash_bank_lines(split: PaymentSplit) -> List[JournalLineInput]:
    """Debit lines for money received (sales). Zero buckets produce no line."""
    lines = []
    if split.cash_pence > 0:
        lines.append(JournalLineInput(account_code=ACCOUNT_CODES["cash"], debit_pence=split.cash_pence))
    if split.bank_pence > 0:
        lines.append(JournalLineInput(account_code=ACCOUNT_CODES["bank"], debit_pence=split.bank_pence))
    return lines


def credit_cash_bank_lines(split: PaymentSplit) -> List[JournalLineInput]:
    """Credit lines for money paid out (purchases, expenses)."""
    lines = []
    if split.cash_pence > 0:
        lines.append(JournalLineInput(account_code=ACCOUNT_CODES["cash"], credit_pence=split.cash_pence))
    if split.bank_pence > 0:
        lines.append(JournalLineInput(account_code=ACCOUNT_CODES["bank"], credit_pence=split.bank_pence))
    return lines
