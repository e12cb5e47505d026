"""
Abstract Storage Interface

DESIGN DECISION: The ledger never talks to a storage technology directly.
It hydrates from and persists to a small key-value port. This allows us to:
1. Run entirely in memory for tests
2. Keep a single JSON file on disk for a local install
3. Mirror the same keys into a Google Sheet
4. Keep ledger logic decoupled from storage implementation

Values are JSON-compatible (dicts, lists, strings, numbers). Serialising
models is the caller's job.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

from flowfinance.models.audit import AuditEvent

# Keys the tracker persists under
WALLETS_KEY = "flow_wallets"
TRANSACTIONS_KEY = "flow_transactions"
BUDGET_LIMITS_KEY = "flow_budget_limits"
BUDGET_METHOD_KEY = "flow_budget_method"
MEMBERS_KEY = "flow_members"

ALL_KEYS = (
    WALLETS_KEY,
    TRANSACTIONS_KEY,
    BUDGET_LIMITS_KEY,
    MEMBERS_KEY,
    BUDGET_METHOD_KEY,
)


class KeyValueStorageInterface(ABC):
    """
    Abstract key-value persistence port.

    Any backend (memory, JSON file, Google Sheets) must implement these.
    """

    @abstractmethod
    def load(self, key: str) -> Optional[Any]:
        """
        Read the value stored under a key.

        Returns:
            The stored value, or None when the key is absent

        Raises:
            StorageError: If the backend cannot be read
        """
        pass

    @abstractmethod
    def save(self, key: str, value: Any) -> None:
        """
        Store a value, replacing whatever was under the key.

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove a key. Deleting an absent key is not an error."""
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        """
        Get the most recent audit events.

        Returns:
            List of recent events (newest first)
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
