"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is offered as a shared backend because:
1. Non-technical users can view their data directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)
4. The same spreadsheet can hold the audit trail

TRADEOFFS:
- Not suitable for high-volume data (we're fine for household use)
- No transactions (the in-memory ledger is the source of truth)
- One row per key, value stored as a JSON blob

The implementation follows the key-value port, so the tracker does not
know which backend it is talking to.
"""

import json
from datetime import datetime, timezone
from typing import Any, Optional
from uuid import UUID

import gspread
import structlog
from google.oauth2.service_account import Credentials
from tenacity import retry, stop_after_attempt, wait_exponential

from flowfinance.config import GoogleSheetsSettings, get_settings
from flowfinance.models.audit import AuditEvent, AuditEventType, AuditSeverity
from flowfinance.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    KeyValueStorageInterface,
    StorageError,
)

logger = structlog.get_logger(__name__)


# Column mappings for the key/value sheet
STORE_COLUMNS = [
    "key",
    "value_json",
    "updated_at",
]

# Column mappings for Audit sheet
AUDIT_COLUMNS = [
    "event_id",
    "timestamp",
    "event_type",
    "severity",
    "entity_type",
    "entity_id",
    "description",
    "details_json",
    "error_message",
    "is_automated",
]


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for API calls.
    """

    def __init__(self, settings: Optional[GoogleSheetsSettings] = None):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = settings or get_settings().google_sheets

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(self._settings.spreadsheet_id)
            except gspread.SpreadsheetNotFound:
                raise ConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def _get_or_create_sheet(self, title: str, columns: list[str], rows: int) -> gspread.Worksheet:
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            # Create the sheet with headers
            sheet = spreadsheet.add_worksheet(title=title, rows=rows, cols=len(columns))
            sheet.append_row(columns)
        return sheet

    def get_store_sheet(self) -> gspread.Worksheet:
        """Get or create the key/value worksheet."""
        return self._get_or_create_sheet(self._settings.store_sheet_name, STORE_COLUMNS, 100)

    def get_audit_sheet(self) -> gspread.Worksheet:
        """Get or create the Audit worksheet."""
        # More rows for audit log
        return self._get_or_create_sheet(self._settings.audit_sheet_name, AUDIT_COLUMNS, 5000)


class GoogleSheetsKeyValueStorage(KeyValueStorageInterface):
    """
    Google Sheets implementation of the key-value port.

    One row per key: [key, value_json, updated_at]. Row 1 is the header.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    @staticmethod
    def _find_row(all_rows: list[list], key: str) -> Optional[int]:
        """1-based sheet row index for a key, skipping the header."""
        for idx, row in enumerate(all_rows[1:], start=2):
            if row and row[0] == key:
                return idx
        return None

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def load(self, key: str) -> Optional[Any]:
        try:
            sheet = self._client.get_store_sheet()
            all_rows = sheet.get_all_values()
        except Exception as e:
            raise StorageError(f"Failed to load '{key}': {e}")

        idx = self._find_row(all_rows, key)
        if idx is None:
            return None
        row = all_rows[idx - 1]
        if len(row) < 2 or not row[1]:
            return None
        try:
            return json.loads(row[1])
        except json.JSONDecodeError as e:
            raise StorageError(f"Corrupt value stored under '{key}': {e}")

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def save(self, key: str, value: Any) -> None:
        row = [key, json.dumps(value), datetime.now(timezone.utc).isoformat()]
        try:
            sheet = self._client.get_store_sheet()
            idx = self._find_row(sheet.get_all_values(), key)
            if idx is None:
                sheet.append_row(row, value_input_option="RAW")
            else:
                sheet.update(
                    range_name=f"A{idx}:C{idx}",
                    values=[row],
                    value_input_option="RAW",
                )
        except Exception as e:
            raise StorageError(f"Failed to save '{key}': {e}")

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def delete(self, key: str) -> None:
        try:
            sheet = self._client.get_store_sheet()
            idx = self._find_row(sheet.get_all_values(), key)
            if idx is not None:
                sheet.delete_rows(idx)
        except Exception as e:
            raise StorageError(f"Failed to delete '{key}': {e}")


class GoogleSheetsAuditStorage(AuditStorageInterface):
    """
    Google Sheets implementation of audit log storage.

    Audit events are append-only.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _row_to_event(self, row: list) -> AuditEvent:
        """Convert a spreadsheet row to an AuditEvent."""
        def safe_get(index: int, default: str = "") -> str:
            try:
                return row[index] if row[index] else default
            except IndexError:
                return default

        return AuditEvent(
            event_id=UUID(safe_get(0)),
            timestamp=datetime.fromisoformat(safe_get(1)),
            event_type=AuditEventType(safe_get(2)),
            severity=AuditSeverity(safe_get(3)),
            entity_type=safe_get(4) or None,
            entity_id=UUID(safe_get(5)) if safe_get(5) else None,
            description=safe_get(6),
            details=json.loads(safe_get(7)) if safe_get(7) else {},
            error_message=safe_get(8) or None,
            is_automated=safe_get(9).lower() == "true",
        )

    def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event. Failures are logged, never raised."""
        try:
            sheet = self._client.get_audit_sheet()
            sheet.append_row(event.to_sheets_row(), value_input_option="RAW")
            return True
        except Exception as e:
            logger.warning(
                "audit_write_failed",
                event_type=event.event_type.value,
                error=str(e),
            )
            return False

    def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        try:
            sheet = self._client.get_audit_sheet()
            all_rows = sheet.get_all_values()[1:]
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")

        events = []
        for row in all_rows:
            if not row or not row[0]:
                continue
            try:
                events.append(self._row_to_event(row))
            except (ValueError, json.JSONDecodeError):
                logger.warning("audit_row_skipped", event_id=row[0])

        # Sort newest first
        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
