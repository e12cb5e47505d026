"""
Duplicate Guard

Heuristic check for repeat submissions from an automated caller
(the assistant). Interactive form submissions are never filtered.

A candidate matches an existing transaction when:
- both fall on the same UTC calendar day
- the types are identical
- the amounts differ by less than the tolerance (default 0.01)
"""

from datetime import datetime
from decimal import Decimal
from typing import Iterable

from flowfinance.errors import DuplicateDetectedError
from flowfinance.models.ledger import Transaction, TransactionType, ensure_utc

DEFAULT_TOLERANCE = Decimal("0.01")


class DuplicateGuard:

    def __init__(self, tolerance: Decimal = DEFAULT_TOLERANCE):
        self.tolerance = tolerance

    def find_matches(
        self,
        moment: datetime,
        amount: Decimal,
        tx_type: TransactionType,
        existing: Iterable[Transaction],
    ) -> list[Transaction]:
        day = ensure_utc(moment).date()
        return [
            tx for tx in existing
            if tx.type == tx_type
            and tx.date.date() == day
            and abs(tx.amount - amount) < self.tolerance
        ]

    def check(
        self,
        moment: datetime,
        amount: Decimal,
        tx_type: TransactionType,
        existing: Iterable[Transaction],
    ) -> None:
        """
        Raises:
            DuplicateDetectedError: if any existing transaction matches
        """
        matches = self.find_matches(moment, amount, tx_type, existing)
        if matches:
            raise DuplicateDetectedError(matches)
