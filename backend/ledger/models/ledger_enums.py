"""
Ledger enumerations.
"""

import enum


class AccountType(str, enum.Enum):
    """Account classification; determines the balance sign convention."""
    ASSET = "ASSET"
    LIABILITY = "LIABILITY"
    INCOME = "INCOME"
    EXPENSE = "EXPENSE"
    EQUITY = "EQUITY"


class ReferenceType(str, enum.Enum):
    """Kind of source document a journal entry was posted for."""
    SALES_INVOICE = "SALES_INVOICE"
    PURCHASE_INVOICE = "PURCHASE_INVOICE"
    EXPENSE = "EXPENSE"
    MANUAL = "MANUAL"  # Posted directly, no source document


class PaymentMethod(str, enum.Enum):
    """Tender used on a payment."""
    CASH = "CASH"
    CARD = "CARD"
    TRANSFER = "TRANSFER"
    MOBILE_MONEY = "MOBILE_MONEY"


class PaymentStatus(str, enum.Enum):
    """Settlement state of a document."""
    PAID = "PAID"
    PART_PAID = "PART_PAID"
    UNPAID = "UNPAID"
