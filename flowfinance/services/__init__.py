"""Services package."""

from flowfinance.services.storage import (
    AuditStorageInterface,
    ConnectionError,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsKeyValueStorage,
    InMemoryAuditStorage,
    InMemoryKeyValueStorage,
    JsonFileKeyValueStorage,
    KeyValueStorageInterface,
    StorageError,
)

__all__ = [
    # Storage services
    "AuditStorageInterface",
    "ConnectionError",
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsKeyValueStorage",
    "InMemoryAuditStorage",
    "InMemoryKeyValueStorage",
    "JsonFileKeyValueStorage",
    "KeyValueStorageInterface",
    "StorageError",
]
