"""
Statement Builder.

Income Statement, Balance Sheet and Cashflow assembled from derived
balances. The build_* functions are pure; StatementService loads the
inputs (balances and the business's opening capital) and calls them.
"""

from datetime import datetime
from typing import Iterable, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.ledger.core.exceptions import ResourceNotFoundError
from backend.ledger.domain.accounting.balance_deriver import BalanceDeriver, balance_deriver
from backend.ledger.domain.accounting.chart_of_accounts import ACCOUNT_CODES, ACCOUNT_NAMES
from backend.ledger.domain.accounting.types import AccountBalance, BalanceWindow
from backend.ledger.models.business import Business
from backend.ledger.models.ledger_enums import AccountType
from backend.ledger.schemas.reports import (
    BalanceSheet,
    Cashflow,
    IncomeStatement,
    StatementLine,
)

OWNER_CAPITAL_CODE = "OWNER_CAPITAL"
CURRENT_PROFIT_CODE = "CURRENT_PROFIT"


def build_income_statement(balances: Iterable[AccountBalance]) -> IncomeStatement:
    """
    revenue = all INCOME balances
    cogs = the COGS account
    other_expenses = every other EXPENSE account
    """
    revenue = 0
    cogs = 0
    other_expenses = 0

    for balance in balances:
        if balance.type == AccountType.INCOME:
            revenue += balance.balance_pence
        if balance.account_code == ACCOUNT_CODES["cogs"]:
            cogs += balance.balance_pence
        elif balance.type == AccountType.EXPENSE:
            other_expenses += balance.balance_pence

    gross_profit = revenue - cogs
    return IncomeStatement(
        revenue=revenue,
        cogs=cogs,
        other_expenses=other_expenses,
        gross_profit=gross_profit,
        net_profit=gross_profit - other_expenses,
    )


def build_balance_sheet(balances: Iterable[AccountBalance], opening_capital_pence: int = 0) -> BalanceSheet:
    """
    Group balances into assets / liabilities / equity.

    Opening capital is added to Cash (a synthetic Cash line when no cash
    movement exists yet) and mirrored as an OWNER_CAPITAL equity line.
    CURRENT_PROFIT nets INCOME - EXPENSE over everything up to as_of,
    since there is no period close.
    """
    assets = []
    liabilities = []
    equity = []
    income_total = 0
    expense_total = 0

    for balance in balances:
        line = StatementLine(
            account_code=balance.account_code,
            name=balance.name,
            type=balance.type,
            balance_pence=balance.balance_pence,
        )
        if balance.type == AccountType.ASSET:
            if balance.account_code == ACCOUNT_CODES["cash"] and opening_capital_pence > 0:
                line.balance_pence += opening_capital_pence
            assets.append(line)
        elif balance.type == AccountType.LIABILITY:
            liabilities.append(line)
        elif balance.type == AccountType.EQUITY:
            equity.append(line)
        elif balance.type == AccountType.INCOME:
            income_total += balance.balance_pence
        elif balance.type == AccountType.EXPENSE:
            expense_total += balance.balance_pence

    if opening_capital_pence > 0:
        if not any(line.account_code == ACCOUNT_CODES["cash"] for line in assets):
            assets.insert(0, StatementLine(
                account_code=ACCOUNT_CODES["cash"],
                name=ACCOUNT_NAMES[ACCOUNT_CODES["cash"]],
                type=AccountType.ASSET,
                balance_pence=opening_capital_pence,
            ))
        equity.append(StatementLine(
            account_code=OWNER_CAPITAL_CODE,
            name="Owner's Capital",
            type=AccountType.EQUITY,
            balance_pence=opening_capital_pence,
        ))

    net_income = income_total - expense_total
    if net_income != 0:
        equity.append(StatementLine(
            account_code=CURRENT_PROFIT_CODE,
            name="Current Period Profit",
            type=AccountType.EQUITY,
            balance_pence=net_income,
        ))

    return BalanceSheet(
        assets=assets,
        liabilities=liabilities,
        equity=equity,
        total_assets=sum(line.balance_pence for line in assets),
        total_liabilities=sum(line.balance_pence for line in liabilities),
        total_equity=sum(line.balance_pence for line in equity),
    )


def build_cashflow(
    net_profit: int,
    ar_change: int,
    ap_change: int,
    inv_change: int,
    start_cash_pence: int,
    opening_capital_pence: int = 0,
) -> Cashflow:
    """Indirect method: net profit adjusted for working-capital movements."""
    net_cash_from_ops = net_profit - ar_change - inv_change + ap_change
    beginning_cash = start_cash_pence + opening_capital_pence
    return Cashflow(
        net_profit=net_profit,
        ar_change=ar_change,
        ap_change=ap_change,
        inv_change=inv_change,
        net_cash_from_ops=net_cash_from_ops,
        opening_capital=opening_capital_pence,
        beginning_cash=beginning_cash,
        ending_cash=beginning_cash + net_cash_from_ops,
    )


class StatementService:
    """Loads statement inputs for a business and builds the views."""

    def __init__(self, deriver: Optional[BalanceDeriver] = None):
        self.deriver = deriver or balance_deriver

    @staticmethod
    async def get_opening_capital(db: AsyncSession, business_id: int) -> int:
        result = await db.execute(
            select(Business.opening_capital_pence).where(Business.id == business_id)
        )
        row = result.one_or_none()
        if row is None:
            raise ResourceNotFoundError("Business", business_id)
        return row[0] or 0

    async def get_income_statement(
        self,
        db: AsyncSession,
        business_id: int,
        start: datetime,
        end: datetime
    ) -> IncomeStatement:
        balances = await self.deriver.grouped_balances(db, business_id, BalanceWindow.period(start, end))
        return build_income_statement(balances)

    async def get_balance_sheet(self, db: AsyncSession, business_id: int, as_of: datetime) -> BalanceSheet:
        opening_capital = await self.get_opening_capital(db, business_id)
        balances = await self.deriver.grouped_balances(db, business_id, BalanceWindow.point_in_time(as_of))
        return build_balance_sheet(balances, opening_capital)

    async def get_cashflow(
        self,
        db: AsyncSession,
        business_id: int,
        start: datetime,
        end: datetime
    ) -> Cashflow:
        opening_capital = await self.get_opening_capital(db, business_id)
        income = await self.get_income_statement(db, business_id, start, end)

        async def change(code: str) -> int:
            closing = await self.deriver.account_balance(db, business_id, code, end)
            opening = await self.deriver.account_balance(db, business_id, code, start)
            return closing - opening

        ar_change = await change(ACCOUNT_CODES["ar"])
        ap_change = await change(ACCOUNT_CODES["ap"])
        inv_change = await change(ACCOUNT_CODES["inventory"])
        start_cash = await self.deriver.account_balance(db, business_id, ACCOUNT_CODES["cash"], start)

        return build_cashflow(
            net_profit=income.net_profit,
            ar_change=ar_change,
            ap_change=ap_change,
            inv_change=inv_change,
            start_cash_pence=start_cash,
            opening_capital_pence=opening_capital,
        )


statement_service = StatementService()
