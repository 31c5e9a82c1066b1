"""
Sales invoice database models.

Source documents for SALES_INVOICE journal entries.
"""

from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Enum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from backend.ledger.db.session import Base
from backend.ledger.models.ledger_enums import PaymentMethod, PaymentStatus


class SalesInvoice(Base):
    """Finalized sale."""
    __tablename__ = "sales_invoices"
    
    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    business_id = Column(Integer, ForeignKey('businesses.id'), nullable=False, index=True)
    
    # Financials (pence)
    subtotal_pence = Column(Integer, nullable=False)
    vat_pence = Column(Integer, nullable=False, default=0)
    total_pence = Column(Integer, nullable=False)
    
    payment_status = Column(Enum(PaymentStatus), nullable=False, default=PaymentStatus.UNPAID)
    
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    
    lines = relationship("SalesInvoiceLine", cascade="all, delete-orphan")
    payments = relationship("SalesPayment", cascade="all, delete-orphan")
    
    def __repr__(self):
        return f"<SalesInvoice(id={self.id}, total={self.total_pence})>"


class SalesInvoiceLine(Base):
    """Line item; unit_cost_pence is the cost basis used for COGS."""
    __tablename__ = "sales_invoice_lines"
    
    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    sales_invoice_id = Column(Integer, ForeignKey('sales_invoices.id'), nullable=False, index=True)
    
    description = Column(String(255), nullable=True)
    qty = Column(Integer, nullable=False)
    unit_price_pence = Column(Integer, nullable=False)
    unit_cost_pence = Column(Integer, nullable=True)  # Unknown for legacy lines


class SalesPayment(Base):
    """Tender received against a sale."""
    __tablename__ = "sales_payments"
    
    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    sales_invoice_id = Column(Integer, ForeignKey('sales_invoices.id'), nullable=False, index=True)
    
    method = Column(Enum(PaymentMethod), nullable=False)
    amount_pence = Column(Integer, nullable=False)
    reference = Column(String(100), nullable=True)
    
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
