"""
Ledger Error Taxonomy

Every error here is per-operation and recoverable by the caller.
None of them leaves the ledger in a half-applied state.
"""

from typing import Optional, Union
from uuid import UUID

from flowfinance.models.ledger import Transaction, ValidationIssue


class LedgerError(Exception):
    """Base exception for ledger operations."""
    pass


class ValidationError(LedgerError):
    """
    Input rejected at the insert boundary. Nothing was stored.

    `issues` lists every problem found, not just the first.
    """

    def __init__(self, message: str, issues: Optional[list[ValidationIssue]] = None):
        super().__init__(message)
        self.issues = issues or []


class NotFoundError(LedgerError):
    """Lookup or delete of an id the ledger does not hold."""

    def __init__(self, entity_type: str, entity_id: Union[UUID, str]):
        super().__init__(f"{entity_type.capitalize()} not found: {entity_id}")
        self.entity_type = entity_type
        self.entity_id = entity_id


class DuplicateDetectedError(LedgerError):
    """
    An automated insert looks like a repeat of an existing transaction.

    This is a policy signal, not a failure: the caller should ask the
    user and retry with confirmed=True to force the insert.
    """

    def __init__(self, matches: list[Transaction]):
        first = matches[0]
        super().__init__(
            f"Duplicate transaction found: {first.type.value.lower()} of "
            f"{first.amount} on {first.date.date().isoformat()}"
        )
        self.matches = matches
