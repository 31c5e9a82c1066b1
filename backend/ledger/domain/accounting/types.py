"""
Value types shared by the accounting domain.
"""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, field_validator, model_validator

from backend.ledger.models.ledger_enums import AccountType


def to_utc_naive(value: Optional[datetime]) -> Optional[datetime]:
    """Entry dates are stored as naive UTC; convert offset-aware values to match."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


class JournalLineInput(BaseModel):
    """One debit or credit movement, addressed by account code."""
    account_code: str
    debit_pence: int = 0
    credit_pence: int = 0
    memo: Optional[str] = None


class BalanceWindow(BaseModel):
    """
    Entry-date filter for balance derivation.
    
    Point-in-time: as_of only (entry_date <= as_of).
    Period: start and end (start <= entry_date <= end).
    """
    as_of: Optional[datetime] = None
    start: Optional[datetime] = None
    end: Optional[datetime] = None

    @field_validator("as_of", "start", "end")
    @classmethod
    def normalize_to_utc(cls, value):
        return to_utc_naive(value)

    @model_validator(mode="after")
    def check_shape(self):
        if self.as_of is not None:
            if self.start is not None or self.end is not None:
                raise ValueError("as_of cannot be combined with start/end")
        elif self.start is None or self.end is None:
            raise ValueError("either as_of or both start and end are required")
        elif self.start > self.end:
            raise ValueError("start must not be after end")
        return self
    
    @classmethod
    def point_in_time(cls, as_of: datetime) -> "BalanceWindow":
        return cls(as_of=as_of)
    
    @classmethod
    def period(cls, start: datetime, end: datetime) -> "BalanceWindow":
        return cls(start=start, end=end)
    
    @property
    def cache_params(self) -> str:
        if self.as_of is not None:
            return f"asof={self.as_of.isoformat()}"
        return f"{self.start.isoformat()}..{self.end.isoformat()}"


class AccountBalance(BaseModel):
    """Aggregated movement on one account within a window."""
    account_code: str
    name: str
    type: AccountType
    debit_pence: int
    credit_pence: int
    balance_pence: int
