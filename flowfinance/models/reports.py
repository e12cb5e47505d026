"""
Report Models

Read-side results produced by the aggregators. These are plain values:
the UI, the CSV export and the assistant all render from them.
"""

from datetime import date
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from flowfinance.models.ledger import BudgetMethod, DateRange, Granularity, Transaction


class PeriodRow(BaseModel):
    """One calendar bucket of the accounting report."""

    key: str = Field(..., description="Sortable key: YYYY-MM-DD, YYYY-MM or YYYY")
    display: str = Field(..., description="Human label parsed back from the key")
    granularity: Granularity
    income: Decimal = Decimal("0")
    expense: Decimal = Decimal("0")
    net: Decimal = Decimal("0")
    count: int = Field(default=0, ge=0)


class CurrencyTotals(BaseModel):
    """Balance snapshot and in-range flows for one currency."""

    currency: str
    symbol: str = ""
    balance: Decimal = Decimal("0")
    income: Decimal = Decimal("0")
    expense: Decimal = Decimal("0")


class CategoryAmount(BaseModel):
    category: str
    amount: Decimal


class DailyPoint(BaseModel):
    date: date
    income: Decimal = Decimal("0")
    expense: Decimal = Decimal("0")


class DashboardSummary(BaseModel):
    """Everything the dashboard shows for one date range."""

    date_range: DateRange
    per_currency: list[CurrencyTotals] = Field(default_factory=list)
    category_breakdown: list[CategoryAmount] = Field(default_factory=list)
    daily_series: list[DailyPoint] = Field(default_factory=list)
    transactions: list[Transaction] = Field(
        default_factory=list,
        description="In-range transactions, newest first"
    )


class BudgetCategoryStatus(BaseModel):
    category: str
    spent: Decimal = Field(default=Decimal("0"), ge=0)
    limit: Decimal = Decimal("0")
    remaining: Decimal = Decimal("0")
    over_budget: bool = False
    percent_used: Decimal = Decimal("0")


class ZeroBasedSummary(BaseModel):
    total_income: Decimal
    total_budgeted: Decimal
    left_to_budget: Decimal


class BudgetStatus(BaseModel):
    """Per-category budget state for the current month."""

    method: BudgetMethod
    period: str = Field(..., description="Month being evaluated, YYYY-MM")
    per_category: list[BudgetCategoryStatus] = Field(default_factory=list)
    zero_based_extras: Optional[ZeroBasedSummary] = None

    @property
    def over_budget_categories(self) -> list[str]:
        return [c.category for c in self.per_category if c.over_budget]
