"""
Business database model.

Tenant root for accounts, journals and source documents.
"""

from sqlalchemy import Column, Integer, String, Boolean, DateTime
from sqlalchemy.sql import func
from backend.ledger.db.session import Base


class Business(Base):
    """
    Business model.
    
    opening_capital_pence is the owner's initial cash injection. It has no
    journal entry; statements fold it into Cash and Owner's Capital.
    """
    __tablename__ = "businesses"
    
    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    
    opening_capital_pence = Column(Integer, nullable=False, default=0)
    vat_enabled = Column(Boolean, nullable=False, default=True)
    
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    
    def __repr__(self):
        return f"<Business(id={self.id}, name='{self.name}')>"
