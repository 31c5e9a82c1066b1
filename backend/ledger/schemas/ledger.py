"""
Ledger Schemas.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional, List
from backend.ledger.domain.accounting.types import JournalLineInput
from backend.ledger.models.ledger_enums import ReferenceType


class JournalEntryCreate(BaseModel):
    """Schema for posting a manual journal entry."""
    description: str = Field(..., min_length=1, max_length=255)
    reference_type: ReferenceType = ReferenceType.MANUAL
    reference_id: Optional[str] = Field(None, max_length=64)
    entry_date: Optional[datetime] = None
    lines: List[JournalLineInput] = Field(..., min_length=2)


class JournalLineResponse(BaseModel):
    """Schema for displaying a journal line."""
    id: int
    account_id: int
    debit_pence: int
    credit_pence: int
    memo: Optional[str]
    
    class Config:
        from_attributes = True


class JournalEntryResponse(BaseModel):
    """Schema for displaying a journal entry."""
    id: int
    business_id: int
    description: str
    reference_type: Optional[ReferenceType]
    reference_id: Optional[str]
    entry_date: datetime
    lines: List[JournalLineResponse]
    
    class Config:
        from_attributes = True


class ChartOfAccountsResponse(BaseModel):
    business_id: int
    created: int


class RepairResponse(BaseModel):
    """Result of a backfill run."""
    repaired: int


class CleanupResponse(BaseModel):
    """Result of an orphan cleanup run."""
    cleaned: int


class AuditLogResponse(BaseModel):
    """Schema for audit log entry."""
    id: int
    user_id: Optional[int]
    user_name: Optional[str]
    user_role: Optional[str]
    action: str
    entity: Optional[str]
    details: Optional[dict]
    timestamp: datetime
    
    class Config:
        from_attributes = True


class AuditTrailResponse(BaseModel):
    logs: List[AuditLogResponse]
    total: int
