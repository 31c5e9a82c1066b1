"""
Financial statement schemas.

All amounts are integer pence.
"""

from pydantic import BaseModel
from typing import List
from backend.ledger.models.ledger_enums import AccountType


class StatementLine(BaseModel):
    """One account (or synthetic) line on a statement."""
    account_code: str
    name: str
    type: AccountType
    balance_pence: int


class IncomeStatement(BaseModel):
    revenue: int
    cogs: int
    other_expenses: int
    gross_profit: int
    net_profit: int


class BalanceSheet(BaseModel):
    assets: List[StatementLine]
    liabilities: List[StatementLine]
    equity: List[StatementLine]
    total_assets: int
    total_liabilities: int
    total_equity: int


class Cashflow(BaseModel):
    """Indirect-method cashflow."""
    net_profit: int
    ar_change: int
    ap_change: int
    inv_change: int
    net_cash_from_ops: int
    opening_capital: int
    beginning_cash: int
    ending_cash: int
