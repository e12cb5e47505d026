"""
Tests for FlowFinance models

Test strategy:
1. Unit tests for individual components (models, validators)
2. Integration tests for the tracker (with in-memory storage)
3. No real API calls in tests (use mocks)
"""

import pytest
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from uuid import uuid4

from flowfinance.models.ledger import (
    BudgetLimit,
    DateRange,
    Transaction,
    TransactionType,
    ValidationIssue,
    Wallet,
    WalletCreate,
)
from flowfinance.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)
from flowfinance.models.currency import CURRENCIES, currency_symbol, get_currency


class TestWalletModels:
    """Tests for wallet Pydantic models."""

    def test_wallet_create_defaults(self):
        """Test WalletCreate fills in type, currency and color."""
        details = WalletCreate(name="Cash")
        assert details.type == "Bank"
        assert details.currency == "USD"
        assert details.color == "#6366f1"

    def test_wallet_currency_is_upper_cased(self):
        """Test currency codes are normalised to upper case."""
        wallet = Wallet(name="Wave", currency=" xof ")
        assert wallet.currency == "XOF"

    def test_wallet_rejects_bad_currency(self):
        """Test a currency code with symbols is rejected."""
        with pytest.raises(ValueError):
            Wallet(name="Odd", currency="$$")

    def test_wallet_name_strips_whitespace(self):
        """Test that whitespace is stripped from wallet name."""
        wallet = Wallet(name="  Orabank  ", currency="EUR")
        assert wallet.name == "Orabank"

    def test_wallet_is_frozen(self):
        """Test that balances cannot be assigned directly."""
        wallet = Wallet(name="Cash", currency="USD", balance=Decimal("10"))
        with pytest.raises(ValueError):
            wallet.balance = Decimal("20")


class TestTransactionModels:
    """Tests for transaction Pydantic models."""

    def test_transaction_date_normalised_to_utc(self):
        """Test an offset-aware date is converted to UTC."""
        minus_two = timezone(timedelta(hours=-2))
        tx = Transaction(
            wallet_id=uuid4(),
            amount=Decimal("5"),
            type=TransactionType.EXPENSE,
            date=datetime(2024, 3, 31, 23, 0, tzinfo=minus_two),
        )
        assert tx.date.tzinfo == timezone.utc
        assert tx.date.date() == date(2024, 4, 1)

    def test_transaction_naive_date_taken_as_utc(self):
        """Test naive datetimes are read as UTC."""
        tx = Transaction(
            wallet_id=uuid4(),
            amount=Decimal("5"),
            type=TransactionType.INCOME,
            date=datetime(2024, 3, 5, 12, 0),
        )
        assert tx.date == datetime(2024, 3, 5, 12, 0, tzinfo=timezone.utc)

    def test_transaction_rejects_negative_amount(self):
        """Test that negative amounts are rejected."""
        with pytest.raises(ValueError):
            Transaction(
                wallet_id=uuid4(),
                amount=Decimal("-1"),
                type=TransactionType.EXPENSE,
                date=datetime(2024, 3, 5, tzinfo=timezone.utc),
            )

    def test_transfer_requires_destination(self):
        """Test that a transfer without a destination wallet is rejected."""
        with pytest.raises(ValueError, match="destination"):
            Transaction(
                wallet_id=uuid4(),
                amount=Decimal("10"),
                type=TransactionType.TRANSFER,
                date=datetime(2024, 3, 5, tzinfo=timezone.utc),
            )

    def test_transfer_to_same_wallet_rejected(self):
        """Test that source and destination must differ."""
        wallet_id = uuid4()
        with pytest.raises(ValueError, match="differ"):
            Transaction(
                wallet_id=wallet_id,
                destination_wallet_id=wallet_id,
                amount=Decimal("10"),
                type=TransactionType.TRANSFER,
                date=datetime(2024, 3, 5, tzinfo=timezone.utc),
            )

    def test_expense_cannot_have_destination(self):
        """Test only transfers carry a destination wallet."""
        with pytest.raises(ValueError, match="Only transfers"):
            Transaction(
                wallet_id=uuid4(),
                destination_wallet_id=uuid4(),
                amount=Decimal("10"),
                type=TransactionType.EXPENSE,
                date=datetime(2024, 3, 5, tzinfo=timezone.utc),
            )


class TestBudgetAndRangeModels:
    """Tests for BudgetLimit and DateRange."""

    def test_budget_limit_rejects_negative(self):
        """Test that negative limits are rejected."""
        with pytest.raises(ValueError):
            BudgetLimit(category="Food", limit=Decimal("-5"))

    def test_date_range_widens_plain_dates(self):
        """Test plain dates cover the whole first and last day."""
        window = DateRange(start=date(2024, 3, 1), end=date(2024, 3, 31))
        assert window.contains(datetime(2024, 3, 1, 0, 0, tzinfo=timezone.utc))
        assert window.contains(datetime(2024, 3, 31, 23, 59, 59, tzinfo=timezone.utc))
        assert not window.contains(datetime(2024, 4, 1, 0, 0, tzinfo=timezone.utc))

    def test_date_range_accepts_iso_day_strings(self):
        """Test 'YYYY-MM-DD' strings behave like plain dates."""
        window = DateRange(start="2024-03-05", end="2024-03-05")
        assert window.contains(datetime(2024, 3, 5, 18, 0, tzinfo=timezone.utc))

    def test_date_range_order_validation(self):
        """Test that end cannot be before start."""
        with pytest.raises(ValueError, match="end cannot be before start"):
            DateRange(start=date(2024, 3, 10), end=date(2024, 3, 1))

    def test_current_month_in_december(self):
        """Test the current month rolls over the year correctly."""
        window = DateRange.current_month(datetime(2023, 12, 15, tzinfo=timezone.utc))
        assert window.start == datetime(2023, 12, 1, tzinfo=timezone.utc)
        assert window.end.date() == date(2023, 12, 31)

    def test_current_month_in_february_leap_year(self):
        """Test February of a leap year ends on the 29th."""
        window = DateRange.current_month(datetime(2024, 2, 10, tzinfo=timezone.utc))
        assert window.end.date() == date(2024, 2, 29)


class TestAuditModels:
    """Tests for audit-related models."""

    def test_audit_event_creation(self):
        """Test AuditEvent model creation."""
        event = AuditEvent(
            event_type=AuditEventType.WALLET_CREATED,
            description="Wallet created",
        )
        assert event.event_type == AuditEventType.WALLET_CREATED
        assert event.severity == AuditSeverity.INFO

    def test_audit_event_to_log_dict(self):
        """Test conversion to log dictionary."""
        event = AuditEvent(
            event_type=AuditEventType.BUDGET_LIMIT_SET,
            description="Limit set",
            details={"category": "Food", "limit": "200"},
        )
        log_dict = event.to_log_dict()
        assert "event_id" in log_dict
        assert log_dict["event_type"] == "budget_limit_set"
        assert log_dict["details"]["category"] == "Food"

    def test_audit_event_to_sheets_row(self):
        """Test conversion to sheets row."""
        event = AuditEvent(
            event_type=AuditEventType.TRANSACTION_ADDED,
            description="Expense added",
            is_automated=True,
        )
        row = event.to_sheets_row()
        assert len(row) == 10  # Expected number of columns
        assert row[2] == "transaction_added"  # event_type
        assert row[9] == "True"  # is_automated

    def test_audit_event_builder_duplicate_detected(self):
        """Test AuditEventBuilder.duplicate_detected."""
        match_id = uuid4()
        event = AuditEventBuilder.duplicate_detected(
            amount="20.00",
            tx_type="EXPENSE",
            day="2024-03-05",
            match_ids=[match_id],
        )
        assert event.event_type == AuditEventType.DUPLICATE_DETECTED
        assert event.severity == AuditSeverity.WARNING
        assert event.details["matches"] == [str(match_id)]
        assert event.is_automated is True

    def test_audit_event_builder_transaction_added(self):
        """Test AuditEventBuilder.transaction_added."""
        tx_id = uuid4()
        event = AuditEventBuilder.transaction_added(
            transaction_id=tx_id,
            wallet_id=uuid4(),
            tx_type="INCOME",
            amount="50",
            category="Salary",
            is_automated=False,
        )
        assert event.entity_id == tx_id
        assert event.entity_type == "transaction"
        assert event.is_automated is False


class TestValidationIssue:
    """Tests for ValidationIssue model."""

    def test_default_severity_is_error(self):
        """Test issues are errors unless marked otherwise."""
        issue = ValidationIssue(field="amount", issue_type="negative", message="Negative")
        assert issue.severity == "error"

    def test_rejects_unknown_severity(self):
        """Test severity must be error or warning."""
        with pytest.raises(ValueError):
            ValidationIssue(field="amount", issue_type="x", message="x", severity="fatal")


class TestCurrencies:
    """Tests for the currency catalog."""

    def test_catalog_sorted_by_name(self):
        """Test currencies are listed alphabetically by name."""
        names = [c.name for c in CURRENCIES]
        assert names == sorted(names)

    def test_lookup_is_case_insensitive(self):
        """Test get_currency accepts lower-case codes."""
        assert get_currency("eur").symbol == "€"

    def test_unknown_symbol_falls_back_to_code(self):
        """Test currency_symbol returns the code for unknown currencies."""
        assert currency_symbol("ZZZ") == "ZZZ"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
