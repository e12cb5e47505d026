"""
Data Models Package

This package contains all Pydantic models used in FlowFinance.
All data flowing through the engine must conform to these schemas.
"""

from flowfinance.models.ledger import (
    BudgetLimit,
    BudgetMethod,
    DateRange,
    Granularity,
    Member,
    MemberRole,
    Transaction,
    TransactionCandidate,
    TransactionType,
    ValidationIssue,
    Wallet,
    WalletCreate,
)
from flowfinance.models.reports import (
    BudgetCategoryStatus,
    BudgetStatus,
    CategoryAmount,
    CurrencyTotals,
    DailyPoint,
    DashboardSummary,
    PeriodRow,
    ZeroBasedSummary,
)
from flowfinance.models.query import QueryResult, TransactionQuery
from flowfinance.models.currency import CURRENCIES, Currency, currency_symbol, get_currency
from flowfinance.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Ledger models
    "BudgetLimit",
    "BudgetMethod",
    "DateRange",
    "Granularity",
    "Member",
    "MemberRole",
    "Transaction",
    "TransactionCandidate",
    "TransactionType",
    "ValidationIssue",
    "Wallet",
    "WalletCreate",
    # Report models
    "BudgetCategoryStatus",
    "BudgetStatus",
    "CategoryAmount",
    "CurrencyTotals",
    "DailyPoint",
    "DashboardSummary",
    "PeriodRow",
    "ZeroBasedSummary",
    # Query models
    "QueryResult",
    "TransactionQuery",
    # Currencies
    "CURRENCIES",
    "Currency",
    "currency_symbol",
    "get_currency",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
