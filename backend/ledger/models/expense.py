"""
Expense database models.

Source documents for EXPENSE journal entries.
"""

from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Enum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from backend.ledger.db.session import Base
from backend.ledger.models.ledger_enums import PaymentMethod, PaymentStatus


class Expense(Base):
    """
    Operating expense.
    
    account_code is the EXPENSE account debited (rent, utilities, ...).
    """
    __tablename__ = "expenses"
    
    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    business_id = Column(Integer, ForeignKey('businesses.id'), nullable=False, index=True)
    
    account_code = Column(String(20), nullable=False)
    vendor_name = Column(String(200), nullable=True)
    amount_pence = Column(Integer, nullable=False)
    
    payment_status = Column(Enum(PaymentStatus), nullable=False, default=PaymentStatus.UNPAID)
    
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    
    payments = relationship("ExpensePayment", cascade="all, delete-orphan")
    
    def __repr__(self):
        return f"<Expense(id={self.id}, account='{self.account_code}', amount={self.amount_pence})>"


class ExpensePayment(Base):
    """Tender paid out against an expense."""
    __tablename__ = "expense_payments"
    
    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    expense_id = Column(Integer, ForeignKey('expenses.id'), nullable=False, index=True)
    
    method = Column(Enum(PaymentMethod), nullable=False)
    amount_pence = Column(Integer, nullable=False)
    
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
