"""
Storage Services Package

Provides the key-value persistence port, the audit log port and their
implementations: in-memory, a local JSON file, and Google Sheets.
"""

from flowfinance.services.storage.interface import (
    ALL_KEYS,
    AuditStorageInterface,
    BUDGET_LIMITS_KEY,
    BUDGET_METHOD_KEY,
    MEMBERS_KEY,
    ConnectionError,
    KeyValueStorageInterface,
    StorageError,
    TRANSACTIONS_KEY,
    WALLETS_KEY,
)
from flowfinance.services.storage.memory import (
    InMemoryAuditStorage,
    InMemoryKeyValueStorage,
    JsonFileKeyValueStorage,
)
from flowfinance.services.storage.google_sheets import (
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsKeyValueStorage,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "KeyValueStorageInterface",
    # Keys
    "ALL_KEYS",
    "BUDGET_LIMITS_KEY",
    "BUDGET_METHOD_KEY",
    "MEMBERS_KEY",
    "TRANSACTIONS_KEY",
    "WALLETS_KEY",
    # Exceptions
    "ConnectionError",
    "StorageError",
    # Local implementations
    "InMemoryAuditStorage",
    "InMemoryKeyValueStorage",
    "JsonFileKeyValueStorage",
    # Google Sheets implementation
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsKeyValueStorage",
]
