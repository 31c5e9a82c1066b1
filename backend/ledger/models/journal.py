"""
Journal database models.

Double-entry records: one JournalEntry header per business event,
two or more JournalLines whose debits and credits balance.
"""

from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Enum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from backend.ledger.db.session import Base
from backend.ledger.models.ledger_enums import ReferenceType


class JournalEntry(Base):
    """
    Journal entry header.
    
    (reference_type, reference_id) points at the source document. It is a soft
    reference: not unique and not a foreign key. Duplicates and orphans are
    healed by the repair service.
    Entries are never updated in place.
    """
    __tablename__ = "journal_entries"
    
    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    business_id = Column(Integer, ForeignKey('businesses.id'), nullable=False, index=True)
    
    description = Column(String(255), nullable=False)
    
    # Soft reference to the source document
    reference_type = Column(Enum(ReferenceType), nullable=True, index=True)
    reference_id = Column(String(64), nullable=True, index=True)
    
    entry_date = Column(DateTime(timezone=True), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    
    lines = relationship(
        "JournalLine",
        back_populates="journal_entry",
        cascade="all, delete-orphan",
    )
    
    def __repr__(self):
        return f"<JournalEntry(id={self.id}, ref={self.reference_type}:{self.reference_id})>"


class JournalLine(Base):
    """
    Journal line.
    
    Exactly one of debit_pence / credit_pence is non-zero.
    """
    __tablename__ = "journal_lines"
    
    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    journal_entry_id = Column(Integer, ForeignKey('journal_entries.id'), nullable=False, index=True)
    account_id = Column(Integer, ForeignKey('accounts.id'), nullable=False, index=True)
    
    debit_pence = Column(Integer, nullable=False, default=0)
    credit_pence = Column(Integer, nullable=False, default=0)
    memo = Column(String(255), nullable=True)
    
    journal_entry = relationship("JournalEntry", back_populates="lines")
    
    def __repr__(self):
        return f"<JournalLine(account_id={self.account_id}, dr={self.debit_pence}, cr={self.credit_pence})>"
