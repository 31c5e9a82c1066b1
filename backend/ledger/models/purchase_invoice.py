"""
Purchase invoice database models.

Source documents for PURCHASE_INVOICE journal entries.
"""

from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Enum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from backend.ledger.db.session import Base
from backend.ledger.models.ledger_enums import PaymentMethod, PaymentStatus


class PurchaseInvoice(Base):
    """Stock bought from a supplier."""
    __tablename__ = "purchase_invoices"
    
    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    business_id = Column(Integer, ForeignKey('businesses.id'), nullable=False, index=True)
    
    supplier_name = Column(String(200), nullable=True)
    
    # Financials (pence)
    subtotal_pence = Column(Integer, nullable=False)
    vat_pence = Column(Integer, nullable=False, default=0)
    total_pence = Column(Integer, nullable=False)
    
    payment_status = Column(Enum(PaymentStatus), nullable=False, default=PaymentStatus.UNPAID)
    
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    
    payments = relationship("PurchasePayment", cascade="all, delete-orphan")
    
    def __repr__(self):
        return f"<PurchaseInvoice(id={self.id}, total={self.total_pence})>"


class PurchasePayment(Base):
    """Tender paid out against a purchase."""
    __tablename__ = "purchase_payments"
    
    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    purchase_invoice_id = Column(Integer, ForeignKey('purchase_invoices.id'), nullable=False, index=True)
    
    method = Column(Enum(PaymentMethod), nullable=False)
    amount_pence = Column(Integer, nullable=False)
    reference = Column(String(100), nullable=True)
    
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
