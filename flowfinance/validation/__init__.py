"""Input validation package."""

from flowfinance.validation.validator import (
    TransactionValidator,
    coerce_balance,
    get_user_friendly_summary,
    issues_from_pydantic,
    parse_amount,
    parse_date,
)

__all__ = [
    "TransactionValidator",
    "coerce_balance",
    "get_user_friendly_summary",
    "issues_from_pydantic",
    "parse_amount",
    "parse_date",
]
