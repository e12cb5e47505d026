"""
Tests for the read-side projections: accounting periods,
per-currency dashboard totals and budget status.
"""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from uuid import uuid4

import pytest

from flowfinance.errors import ValidationError
from flowfinance.models.ledger import (
    BudgetLimit,
    BudgetMethod,
    DateRange,
    Granularity,
    Transaction,
    TransactionType,
    Wallet,
)
from flowfinance.reports import (
    BudgetTracker,
    CurrencyGrouper,
    PeriodAggregator,
    display_label,
    period_key,
    set_limit,
    to_csv,
)

UTC = timezone.utc
NOW = datetime(2024, 3, 20, 9, 0, tzinfo=UTC)


def tx(amount, tx_type, when, wallet_id=None, category="General", **extra):
    return Transaction(
        wallet_id=wallet_id or uuid4(),
        amount=Decimal(str(amount)),
        type=tx_type,
        category=category,
        date=when,
        **extra,
    )


class TestPeriodKeys:
    """Tests for sortable keys and display labels."""

    def test_keys_are_zero_padded_and_one_indexed(self):
        """Test January is '01' and days are padded."""
        moment = datetime(2024, 1, 5, tzinfo=UTC)
        assert period_key(moment, Granularity.DAILY) == "2024-01-05"
        assert period_key(moment, Granularity.MONTHLY) == "2024-01"
        assert period_key(moment, Granularity.YEARLY) == "2024"

    def test_december_key_is_twelve(self):
        """Test December maps to '12', not '11' or '00'."""
        assert period_key(datetime(2023, 12, 31, tzinfo=UTC), Granularity.MONTHLY) == "2023-12"

    def test_early_years_are_padded_to_four_digits(self):
        """Test years below 1000 still sort before later years."""
        moment = datetime(999, 6, 1, tzinfo=UTC)
        assert period_key(moment, Granularity.YEARLY) == "0999"
        assert period_key(moment, Granularity.MONTHLY) == "0999-06"
        assert period_key(moment, Granularity.DAILY) == "0999-06-01"
        later = period_key(datetime(2024, 1, 1, tzinfo=UTC), Granularity.YEARLY)
        assert sorted(["0999", later], reverse=True) == ["2024", "0999"]

    def test_display_labels(self):
        """Test labels are parsed back from the key."""
        assert display_label("2024-03-05", Granularity.DAILY) == "05 Mar 2024"
        assert display_label("2024-03", Granularity.MONTHLY) == "March 2024"
        assert display_label("2024", Granularity.YEARLY) == "2024"

    def test_display_label_for_january_and_december(self):
        """Test month names at both ends of the year."""
        assert display_label("2024-01", Granularity.MONTHLY) == "January 2024"
        assert display_label("2023-12", Granularity.MONTHLY) == "December 2023"

    def test_utc_bucketing(self):
        """Test a late 31 March instant in UTC-2 lands in April."""
        minus_two = timezone(timedelta(hours=-2))
        moment = datetime(2024, 3, 31, 23, 0, tzinfo=minus_two)
        assert period_key(moment, Granularity.MONTHLY) == "2024-04"
        assert period_key(moment, Granularity.DAILY) == "2024-04-01"


class TestPeriodAggregator:
    """Tests for accounting report rows."""

    def test_scenario_a_monthly_row(self):
        """Test one expense and one income in March give a single row."""
        wallet_id = uuid4()
        rows = PeriodAggregator().aggregate([
            tx(20, TransactionType.EXPENSE, datetime(2024, 3, 5, tzinfo=UTC), wallet_id, "Food"),
            tx(50, TransactionType.INCOME, datetime(2024, 3, 10, tzinfo=UTC), wallet_id, "Salary"),
        ], Granularity.MONTHLY)

        assert len(rows) == 1
        row = rows[0]
        assert row.key == "2024-03"
        assert row.income == Decimal("50")
        assert row.expense == Decimal("20")
        assert row.net == Decimal("30")
        assert row.count == 2

    @pytest.mark.parametrize("granularity,expected", [
        (Granularity.DAILY, ["2024-01-01", "2023-12-31", "2023-11-30"]),
        (Granularity.MONTHLY, ["2024-01", "2023-12", "2023-11"]),
        (Granularity.YEARLY, ["2024", "2023"]),
    ])
    def test_rows_sorted_descending_across_year_boundary(self, granularity, expected):
        """Test keys sort newest first, including across a year change."""
        transactions = [
            tx(1, TransactionType.EXPENSE, datetime(2023, 11, 30, tzinfo=UTC)),
            tx(1, TransactionType.EXPENSE, datetime(2024, 1, 1, tzinfo=UTC)),
            tx(1, TransactionType.EXPENSE, datetime(2023, 12, 31, tzinfo=UTC)),
        ]
        rows = PeriodAggregator().aggregate(transactions, granularity)
        assert [r.key for r in rows] == expected

    def test_sparse_output(self):
        """Test months without transactions produce no row."""
        rows = PeriodAggregator().aggregate([
            tx(1, TransactionType.INCOME, datetime(2024, 1, 15, tzinfo=UTC)),
            tx(1, TransactionType.INCOME, datetime(2024, 4, 15, tzinfo=UTC)),
        ], "monthly")
        assert [r.key for r in rows] == ["2024-04", "2024-01"]

    def test_transfers_counted_but_not_summed(self):
        """Test transfers raise the count only."""
        rows = PeriodAggregator().aggregate([
            tx(30, TransactionType.TRANSFER, datetime(2024, 3, 1, tzinfo=UTC), destination_wallet_id=uuid4()),
            tx(10, TransactionType.EXPENSE, datetime(2024, 3, 2, tzinfo=UTC)),
        ], Granularity.MONTHLY)
        assert rows[0].count == 2
        assert rows[0].expense == Decimal("10")
        assert rows[0].income == Decimal("0")

    def test_conservation(self):
        """Test the sum of row nets equals total income minus total expense."""
        transactions = [
            tx(12.5, TransactionType.INCOME, datetime(2023, 12, 31, 23, tzinfo=UTC)),
            tx(3.25, TransactionType.EXPENSE, datetime(2024, 1, 1, tzinfo=UTC)),
            tx(100, TransactionType.INCOME, datetime(2024, 2, 14, tzinfo=UTC)),
            tx(40.1, TransactionType.EXPENSE, datetime(2024, 2, 15, tzinfo=UTC)),
        ]
        income = sum(t.amount for t in transactions if t.type == TransactionType.INCOME)
        expense = sum(t.amount for t in transactions if t.type == TransactionType.EXPENSE)
        for granularity in Granularity:
            rows = PeriodAggregator().aggregate(transactions, granularity)
            assert sum(r.net for r in rows) == income - expense

    def test_unknown_granularity_rejected(self):
        """Test an unknown granularity raises ValidationError."""
        with pytest.raises(ValidationError):
            PeriodAggregator().aggregate([], "weekly")

    def test_csv_export(self):
        """Test the CSV header, period labels, raw values and row order."""
        rows = PeriodAggregator().aggregate([
            tx("20", TransactionType.EXPENSE, datetime(2024, 3, 5, tzinfo=UTC)),
            tx("50", TransactionType.INCOME, datetime(2024, 2, 10, tzinfo=UTC)),
        ], Granularity.MONTHLY)
        lines = to_csv(rows).splitlines()
        assert lines[0] == "Period,Income,Expense,Net Result,Count"
        assert lines[1] == "March 2024,0,20,-20,1"
        assert lines[2] == "February 2024,50,0,50,1"


class TestCurrencyGrouper:
    """Tests for dashboard projections."""

    def test_scenario_c_currencies_kept_apart(self):
        """Test a USD and an EUR expense are never summed together."""
        usd = Wallet(name="US", currency="USD")
        eur = Wallet(name="EU", currency="EUR")
        moment = datetime(2024, 3, 5, tzinfo=UTC)
        totals = CurrencyGrouper().group(
            [usd, eur],
            [
                tx(10, TransactionType.EXPENSE, moment, usd.id),
                tx(10, TransactionType.EXPENSE, moment, eur.id),
            ],
        )
        by_currency = {t.currency: t for t in totals}
        assert set(by_currency) == {"USD", "EUR"}
        assert by_currency["USD"].expense == Decimal("10")
        assert by_currency["EUR"].expense == Decimal("10")
        assert by_currency["USD"].symbol == "$"
        assert by_currency["EUR"].symbol == "€"

    def test_balance_is_snapshot_and_flows_are_ranged(self):
        """Test balances ignore the range while income/expense respect it."""
        wallet = Wallet(name="Bank", currency="USD", balance=Decimal("500"))
        other = Wallet(name="Cash", currency="USD", balance=Decimal("25"))
        window = DateRange(start=date(2024, 3, 1), end=date(2024, 3, 31))
        totals = CurrencyGrouper().group(
            [wallet, other],
            [
                tx(100, TransactionType.INCOME, datetime(2024, 3, 31, 23, 59, tzinfo=UTC), wallet.id),
                tx(70, TransactionType.INCOME, datetime(2024, 4, 1, tzinfo=UTC), wallet.id),
            ],
            window,
        )
        assert totals[0].balance == Decimal("525")
        assert totals[0].income == Decimal("100")

    def test_unknown_wallet_and_transfer_skipped(self):
        """Test dangling references and transfers add nothing."""
        wallet = Wallet(name="Bank", currency="USD")
        moment = datetime(2024, 3, 5, tzinfo=UTC)
        totals = CurrencyGrouper().group(
            [wallet],
            [
                tx(5, TransactionType.EXPENSE, moment, uuid4()),
                tx(9, TransactionType.TRANSFER, moment, wallet.id, destination_wallet_id=uuid4()),
            ],
        )
        assert totals[0].income == Decimal("0")
        assert totals[0].expense == Decimal("0")

    def test_summary_series_and_breakdown(self):
        """Test the pie breakdown and daily trend series."""
        wallet = Wallet(name="Bank", currency="USD")
        transactions = [
            tx(5, TransactionType.EXPENSE, datetime(2024, 3, 6, tzinfo=UTC), wallet.id, "Food"),
            tx(15, TransactionType.EXPENSE, datetime(2024, 3, 5, tzinfo=UTC), wallet.id, "Rent"),
            tx(7, TransactionType.EXPENSE, datetime(2024, 3, 5, 18, tzinfo=UTC), wallet.id, "Food"),
            tx(40, TransactionType.INCOME, datetime(2024, 3, 6, tzinfo=UTC), wallet.id, "Salary"),
            tx(99, TransactionType.EXPENSE, datetime(2024, 2, 28, tzinfo=UTC), wallet.id, "Food"),
        ]
        summary = CurrencyGrouper().summarize(
            [wallet], transactions, DateRange(start="2024-03-01", end="2024-03-31"),
        )

        assert [(c.category, c.amount) for c in summary.category_breakdown] == [
            ("Rent", Decimal("15")),
            ("Food", Decimal("12")),
        ]
        assert [p.date for p in summary.daily_series] == [date(2024, 3, 5), date(2024, 3, 6)]
        assert summary.daily_series[0].expense == Decimal("22")
        assert summary.daily_series[1].income == Decimal("40")
        assert len(summary.transactions) == 4
        assert summary.transactions[0].date >= summary.transactions[-1].date


class TestBudgetTracker:
    """Tests for budget status."""

    def test_default_categories_when_empty(self):
        """Test the default set is used before any transaction exists."""
        tracker = BudgetTracker([], now=NOW)
        assert tracker.categories() == ["General", "Food", "Transport", "Utilities"]

    def test_categories_from_history_sorted(self):
        """Test categories come from the full history, sorted."""
        tracker = BudgetTracker([
            tx(1, TransactionType.EXPENSE, datetime(2023, 1, 1, tzinfo=UTC), category="Rent"),
            tx(1, TransactionType.INCOME, NOW, category="Salary"),
        ], now=NOW)
        assert tracker.categories() == ["Rent", "Salary"]

    def test_spent_counts_current_month_expenses_only(self):
        """Test spend excludes other months and income."""
        tracker = BudgetTracker([
            tx(30, TransactionType.EXPENSE, datetime(2024, 3, 1, tzinfo=UTC), category="Food"),
            tx(20, TransactionType.EXPENSE, datetime(2024, 2, 29, tzinfo=UTC), category="Food"),
            tx(50, TransactionType.INCOME, NOW, category="Food"),
        ], now=NOW)
        assert tracker.spent("Food") == Decimal("30")
        assert tracker.spent("Nothing") == Decimal("0")

    def test_over_budget_and_negative_remaining(self):
        """Test overspending flags the category and remaining goes negative."""
        tracker = BudgetTracker(
            [tx(120, TransactionType.EXPENSE, NOW, category="Food")],
            [BudgetLimit(category="Food", limit=Decimal("100"))],
            now=NOW,
        )
        status = tracker.category_status("Food")
        assert status.over_budget is True
        assert status.remaining == Decimal("-20")
        assert status.percent_used == Decimal("120.00")

    def test_no_limit_is_never_over_budget(self):
        """Test a zero limit means no limit configured."""
        tracker = BudgetTracker([tx(500, TransactionType.EXPENSE, NOW, category="Food")], now=NOW)
        status = tracker.category_status("Food")
        assert status.over_budget is False
        assert status.limit == Decimal("0")
        assert status.percent_used == Decimal("0")

    def test_zero_based_extras(self):
        """Test ZERO_BASED reports income left to budget."""
        tracker = BudgetTracker(
            [
                tx(1000, TransactionType.INCOME, NOW, category="Salary"),
                tx(300, TransactionType.INCOME, datetime(2024, 2, 1, tzinfo=UTC), category="Salary"),
            ],
            [
                BudgetLimit(category="Food", limit=Decimal("300")),
                BudgetLimit(category="Rent", limit=Decimal("500")),
            ],
            now=NOW,
        )
        status = tracker.status(BudgetMethod.ZERO_BASED)
        assert status.period == "2024-03"
        assert status.zero_based_extras.total_income == Decimal("1000")
        assert status.zero_based_extras.total_budgeted == Decimal("800")
        assert status.zero_based_extras.left_to_budget == Decimal("200")

    @pytest.mark.parametrize("method", ["ENVELOPE", "FREE", "REMAINING"])
    def test_other_methods_share_numbers(self, method):
        """Test non zero-based methods return the same per-category numbers."""
        transactions = [tx(40, TransactionType.EXPENSE, NOW, category="Food")]
        limits = [BudgetLimit(category="Food", limit=Decimal("50"))]
        status = BudgetTracker(transactions, limits, now=NOW).status(method)
        baseline = BudgetTracker(transactions, limits, now=NOW).status(BudgetMethod.ZERO_BASED)
        assert status.zero_based_extras is None
        assert status.per_category == baseline.per_category

    def test_unknown_method_rejected(self):
        """Test an unknown method raises ValidationError."""
        with pytest.raises(ValidationError):
            BudgetTracker([], now=NOW).status("SPEND_IT_ALL")


class TestSetLimit:
    """Tests for the limit upsert."""

    def test_upsert_replaces_existing(self):
        """Test a second limit for a category replaces the first."""
        limits = set_limit([], "Food", "100")
        limits = set_limit(limits, "Food", 150)
        assert limits == [BudgetLimit(category="Food", limit=Decimal("150"))]

    def test_input_list_untouched(self):
        """Test the upsert returns a new list."""
        original = [BudgetLimit(category="Rent", limit=Decimal("500"))]
        updated = set_limit(original, "Food", 50)
        assert len(original) == 1
        assert len(updated) == 2

    @pytest.mark.parametrize("value", ["-1", "lots", None])
    def test_invalid_limit_rejected(self, value):
        """Test negative or non-numeric limits raise ValidationError."""
        with pytest.raises(ValidationError):
            set_limit([], "Food", value)
