"""
Account database model (chart of accounts).
"""

from sqlalchemy import Column, Integer, String, ForeignKey, Enum, UniqueConstraint
from backend.ledger.db.session import Base
from backend.ledger.models.ledger_enums import AccountType


class Account(Base):
    """
    Ledger account.
    
    Seeded once per business; never updated or deleted.
    Business logic refers to accounts by code, never by id.
    """
    __tablename__ = "accounts"
    __table_args__ = (
        UniqueConstraint("business_id", "code", name="uq_accounts_business_code"),
    )
    
    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    business_id = Column(Integer, ForeignKey('businesses.id'), nullable=False, index=True)
    
    code = Column(String(20), nullable=False)
    name = Column(String(100), nullable=False)
    type = Column(Enum(AccountType), nullable=False)
    
    def __repr__(self):
        return f"<Account(code='{self.code}', type='{self.type.value}')>"
