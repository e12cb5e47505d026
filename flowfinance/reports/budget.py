"""
Budget Tracker

Evaluates category limits against spend in the current calendar month.

The four budget methods are display conventions only. Every method gets
the same per-category numbers; ZERO_BASED additionally reports how much
of the month's income is still unassigned.
"""

from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional, Sequence, Union

from flowfinance.errors import ValidationError
from flowfinance.models.ledger import (
    BudgetLimit,
    BudgetMethod,
    DateRange,
    Transaction,
    TransactionType,
)
from flowfinance.models.reports import BudgetCategoryStatus, BudgetStatus, ZeroBasedSummary
from flowfinance.validation import parse_amount

DEFAULT_CATEGORIES = ("General", "Food", "Transport", "Utilities")

_PERCENT = Decimal("0.01")


def coerce_method(value: Union[BudgetMethod, str]) -> BudgetMethod:
    if isinstance(value, BudgetMethod):
        return value
    try:
        return BudgetMethod(str(value).strip().upper())
    except ValueError:
        allowed = ", ".join(m.value for m in BudgetMethod)
        raise ValidationError(f"Unknown budget method '{value}'. Use one of: {allowed}.") from None


def set_limit(
    limits: Sequence[BudgetLimit],
    category: str,
    value: Union[Decimal, int, float, str],
) -> list[BudgetLimit]:
    """
    Upsert a category limit. Returns a new list; `limits` is untouched.

    Raises:
        ValidationError: value is non-numeric or negative, or category is blank
    """
    category = (category or "").strip()
    if not category:
        raise ValidationError("Budget category is required")
    amount = parse_amount(value, field="limit")
    updated = [limit for limit in limits if limit.category != category]
    updated.append(BudgetLimit(category=category, limit=amount))
    return updated


class BudgetTracker:
    """
    Per-category budget status over a transaction snapshot.

    Args:
        transactions: Full history (the month filter is applied here)
        limits: Configured limits, at most one per category
        now: Clock override; defaults to the current UTC time
        default_categories: Used when the history has no categories yet
    """

    def __init__(
        self,
        transactions: Iterable[Transaction],
        limits: Iterable[BudgetLimit] = (),
        now: Optional[datetime] = None,
        default_categories: Sequence[str] = DEFAULT_CATEGORIES,
    ):
        self._transactions = list(transactions)
        self._limits = {limit.category: limit.limit for limit in limits}
        self.period = DateRange.current_month(now)
        self._default_categories = list(default_categories)
        self._current = [tx for tx in self._transactions if self.period.contains(tx.date)]

    @property
    def period_key(self) -> str:
        return self.period.start.strftime("%Y-%m")

    def categories(self) -> list[str]:
        observed = sorted({tx.category for tx in self._transactions})
        return observed or list(self._default_categories)

    def spent(self, category: str) -> Decimal:
        return sum(
            (tx.amount for tx in self._current
             if tx.type == TransactionType.EXPENSE and tx.category == category),
            Decimal("0"),
        )

    def limit(self, category: str) -> Decimal:
        return self._limits.get(category, Decimal("0"))

    def category_status(self, category: str) -> BudgetCategoryStatus:
        spent = self.spent(category)
        limit = self.limit(category)
        percent = (spent / limit * 100).quantize(_PERCENT, ROUND_HALF_UP) if limit > 0 else Decimal("0")
        return BudgetCategoryStatus(
            category=category,
            spent=spent,
            limit=limit,
            remaining=limit - spent,
            over_budget=limit > 0 and spent > limit,
            percent_used=percent,
        )

    def zero_based(self) -> ZeroBasedSummary:
        total_income = sum(
            (tx.amount for tx in self._current if tx.type == TransactionType.INCOME),
            Decimal("0"),
        )
        total_budgeted = sum(self._limits.values(), Decimal("0"))
        return ZeroBasedSummary(
            total_income=total_income,
            total_budgeted=total_budgeted,
            left_to_budget=total_income - total_budgeted,
        )

    def status(self, method: Union[BudgetMethod, str] = BudgetMethod.FREE) -> BudgetStatus:
        method = coerce_method(method)
        return BudgetStatus(
            method=method,
            period=self.period_key,
            per_category=[self.category_status(c) for c in self.categories()],
            zero_based_extras=self.zero_based() if method == BudgetMethod.ZERO_BASED else None,
        )
