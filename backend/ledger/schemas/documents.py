"""
Source document schemas (sales, purchases, expenses).
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional, List
from backend.ledger.models.ledger_enums import PaymentMethod, PaymentStatus


class PaymentCreate(BaseModel):
    method: PaymentMethod
    amount_pence: int = Field(..., ge=0)
    reference: Optional[str] = Field(None, max_length=100)


class SaleLineCreate(BaseModel):
    description: Optional[str] = Field(None, max_length=255)
    qty: int = Field(..., gt=0)
    unit_price_pence: int = Field(..., ge=0)
    unit_cost_pence: Optional[int] = Field(None, ge=0)


class SaleCreate(BaseModel):
    """Schema for finalizing a sale."""
    lines: List[SaleLineCreate] = Field(..., min_length=1)
    vat_pence: int = Field(0, ge=0)
    payments: List[PaymentCreate] = []


class PurchaseCreate(BaseModel):
    """Schema for recording a purchase invoice."""
    supplier_name: Optional[str] = Field(None, max_length=200)
    subtotal_pence: int = Field(..., gt=0)
    vat_pence: int = Field(0, ge=0)
    payments: List[PaymentCreate] = []


class ExpenseCreate(BaseModel):
    """Schema for recording an expense. account_code must name an EXPENSE account."""
    account_code: str = Field(..., min_length=1, max_length=20)
    vendor_name: Optional[str] = Field(None, max_length=200)
    amount_pence: int = Field(..., gt=0)
    payments: List[PaymentCreate] = []


class DocumentResponse(BaseModel):
    """Finalized document with the journal entry posted for it."""
    id: int
    total_pence: int
    payment_status: PaymentStatus
    journal_entry_id: int
    created_at: datetime
