"""Read-side projections: accounting periods, currency totals and budgets."""

from flowfinance.reports.budget import DEFAULT_CATEGORIES, BudgetTracker, coerce_method, set_limit
from flowfinance.reports.currency import CurrencyGrouper
from flowfinance.reports.periods import (
    CSV_HEADER,
    PeriodAggregator,
    coerce_granularity,
    display_label,
    period_key,
    to_csv,
)

__all__ = [
    "BudgetTracker",
    "CSV_HEADER",
    "CurrencyGrouper",
    "DEFAULT_CATEGORIES",
    "PeriodAggregator",
    "coerce_granularity",
    "coerce_method",
    "display_label",
    "period_key",
    "set_limit",
    "to_csv",
]
