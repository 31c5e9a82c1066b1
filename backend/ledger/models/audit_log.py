"""
Audit Log Database Model.

Records who ran ledger maintenance actions and what they changed.
"""

from sqlalchemy import Column, Integer, String, DateTime, JSON
from sqlalchemy.sql import func
from backend.ledger.db.session import Base


class AuditLog(Base):
    """
    Audit log model for ledger maintenance actions.
    
    Events logged:
    - JOURNAL_REPAIR
    - JOURNAL_ORPHAN_CLEANUP
    - JOURNAL_MANUAL_ENTRY
    - CHART_OF_ACCOUNTS_SEEDED
    """
    __tablename__ = "audit_logs"
    
    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    
    business_id = Column(Integer, index=True, nullable=False)
    
    # Who performed the action (None for system actions)
    user_id = Column(Integer, index=True, nullable=True)
    user_name = Column(String(100), nullable=True)
    user_role = Column(String(20), nullable=True)
    
    # What action was performed, on which entity
    action = Column(String(100), nullable=False, index=True)
    entity = Column(String(100), nullable=True)
    
    # Additional context (JSON for flexibility)
    details = Column(JSON, nullable=True)
    
    # Timestamp
    timestamp = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)
    
    def __repr__(self):
        return f"<AuditLog(id={self.id}, action='{self.action}', user={self.user_name})>"
