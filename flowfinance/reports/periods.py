"""
Period Aggregator

Folds transactions into calendar buckets for the accounting report.

Keys are zero-padded ISO fragments (YYYY-MM-DD, YYYY-MM, YYYY) taken
from the UTC date, so a plain string sort is also a chronological sort.
Only periods that contain at least one transaction produce a row.
"""

import csv
import io
from collections import defaultdict
from datetime import datetime
from decimal import Decimal
from typing import Iterable, Union

from flowfinance.errors import ValidationError
from flowfinance.models.ledger import Granularity, Transaction, TransactionType, ensure_utc
from flowfinance.models.reports import PeriodRow

CSV_HEADER = ["Period", "Income", "Expense", "Net Result", "Count"]

_KEY_FORMATS = {
    Granularity.DAILY: "%Y-%m-%d",
    Granularity.MONTHLY: "%Y-%m",
    Granularity.YEARLY: "%Y",
}

_DISPLAY_FORMATS = {
    Granularity.DAILY: "%d %b %Y",
    Granularity.MONTHLY: "%B %Y",
}


def coerce_granularity(value: Union[Granularity, str]) -> Granularity:
    """Accept the enum or its string value ("daily", "monthly", "yearly")."""
    if isinstance(value, Granularity):
        return value
    try:
        return Granularity(str(value).strip().lower())
    except ValueError:
        raise ValidationError(
            f"Unknown granularity '{value}'. Use daily, monthly or yearly."
        ) from None


def period_key(moment: datetime, granularity: Granularity) -> str:
    """Sortable bucket key from the UTC calendar date of `moment`."""
    day = ensure_utc(moment).date()
    # strftime does not pad years below 1000 on every platform
    if granularity == Granularity.DAILY:
        return f"{day.year:04d}-{day.month:02d}-{day.day:02d}"
    if granularity == Granularity.MONTHLY:
        return f"{day.year:04d}-{day.month:02d}"
    return f"{day.year:04d}"


def display_label(key: str, granularity: Granularity) -> str:
    """Parse a bucket key back into a readable label."""
    if granularity == Granularity.YEARLY:
        return key
    parsed = datetime.strptime(key, _KEY_FORMATS[granularity])
    return parsed.strftime(_DISPLAY_FORMATS[granularity])


class PeriodAggregator:
    """Builds accounting report rows. Stateless; safe to share."""

    def aggregate(
        self,
        transactions: Iterable[Transaction],
        granularity: Union[Granularity, str],
    ) -> list[PeriodRow]:
        granularity = coerce_granularity(granularity)

        buckets: dict[str, dict] = defaultdict(
            lambda: {"income": Decimal("0"), "expense": Decimal("0"), "count": 0}
        )
        for tx in transactions:
            bucket = buckets[period_key(tx.date, granularity)]
            if tx.type == TransactionType.INCOME:
                bucket["income"] += tx.amount
            elif tx.type == TransactionType.EXPENSE:
                bucket["expense"] += tx.amount
            bucket["count"] += 1

        return [
            PeriodRow(
                key=key,
                display=display_label(key, granularity),
                granularity=granularity,
                income=totals["income"],
                expense=totals["expense"],
                net=totals["income"] - totals["expense"],
                count=totals["count"],
            )
            for key, totals in sorted(buckets.items(), reverse=True)
        ]


def to_csv(rows: Iterable[PeriodRow]) -> str:
    """
    Render report rows as CSV text.

    The Period column carries the display label. Values are raw
    numbers, not locale formatted; row order is kept.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for row in rows:
        writer.writerow([row.display, row.income, row.expense, row.net, row.count])
    return buffer.getvalue()
