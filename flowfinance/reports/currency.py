"""
Currency Grouper

Dashboard projections over wallets and transactions.

Currencies are aggregated side by side and never converted or summed
together. Balances are a snapshot of the wallets right now; income and
expense only count transactions inside the selected date range.
TRANSFER moves money between wallets of one currency and so adds to
neither income nor expense.
"""

from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from flowfinance.models.currency import currency_symbol
from flowfinance.models.ledger import DateRange, Transaction, TransactionType, Wallet
from flowfinance.models.reports import (
    CategoryAmount,
    CurrencyTotals,
    DailyPoint,
    DashboardSummary,
)


class CurrencyGrouper:

    def filter_range(
        self,
        transactions: Iterable[Transaction],
        date_range: DateRange,
    ) -> list[Transaction]:
        """In-range transactions, newest date first."""
        selected = [tx for tx in transactions if date_range.contains(tx.date)]
        selected.sort(key=lambda tx: tx.date, reverse=True)
        return selected

    def group(
        self,
        wallets: Iterable[Wallet],
        transactions: Iterable[Transaction],
        date_range: Optional[DateRange] = None,
    ) -> list[CurrencyTotals]:
        """
        One totals row per currency held by at least one wallet.

        Args:
            wallets: Every wallet; their balances seed the buckets
            transactions: Candidate transactions
            date_range: Inclusive range for income/expense (None = all)
        """
        wallets = list(wallets)
        by_id = {w.id: w for w in wallets}

        buckets: dict[str, dict] = {}
        for wallet in wallets:
            bucket = buckets.setdefault(
                wallet.currency,
                {"balance": Decimal("0"), "income": Decimal("0"), "expense": Decimal("0")},
            )
            bucket["balance"] += wallet.balance

        for tx in transactions:
            if date_range is not None and not date_range.contains(tx.date):
                continue
            wallet = by_id.get(tx.wallet_id)
            if wallet is None:
                continue
            if tx.type == TransactionType.INCOME:
                buckets[wallet.currency]["income"] += tx.amount
            elif tx.type == TransactionType.EXPENSE:
                buckets[wallet.currency]["expense"] += tx.amount

        return [
            CurrencyTotals(currency=currency, symbol=currency_symbol(currency), **totals)
            for currency, totals in buckets.items()
        ]

    def category_breakdown(self, transactions: Iterable[Transaction]) -> list[CategoryAmount]:
        """Expense total per category, largest first."""
        totals: dict[str, Decimal] = defaultdict(Decimal)
        for tx in transactions:
            if tx.type == TransactionType.EXPENSE:
                totals[tx.category] += tx.amount
        return [
            CategoryAmount(category=category, amount=amount)
            for category, amount in sorted(totals.items(), key=lambda item: (-item[1], item[0]))
        ]

    def daily_series(self, transactions: Iterable[Transaction]) -> list[DailyPoint]:
        """Income and expense per UTC day, oldest first."""
        days: dict[date, dict] = defaultdict(
            lambda: {"income": Decimal("0"), "expense": Decimal("0")}
        )
        for tx in transactions:
            if tx.type == TransactionType.INCOME:
                days[tx.date.date()]["income"] += tx.amount
            elif tx.type == TransactionType.EXPENSE:
                days[tx.date.date()]["expense"] += tx.amount
        return [DailyPoint(date=day, **values) for day, values in sorted(days.items())]

    def summarize(
        self,
        wallets: Iterable[Wallet],
        transactions: Iterable[Transaction],
        date_range: DateRange,
    ) -> DashboardSummary:
        in_range = self.filter_range(transactions, date_range)
        return DashboardSummary(
            date_range=date_range,
            per_currency=self.group(wallets, in_range),
            category_breakdown=self.category_breakdown(in_range),
            daily_series=self.daily_series(in_range),
            transactions=in_range,
        )
