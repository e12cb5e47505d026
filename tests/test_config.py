"""
Tests for configuration loading and backend selection
"""

from decimal import Decimal

import pytest
from pydantic import ValidationError

from flowfinance.config import (
    LedgerSettings,
    Settings,
    StorageSettings,
    get_settings,
    validate_all_settings,
)
from flowfinance.orchestrator import create_tracker
from flowfinance.services.storage import InMemoryKeyValueStorage, JsonFileKeyValueStorage


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    """Run each test in an empty directory without FlowFinance variables."""
    monkeypatch.chdir(tmp_path)
    for name in (
        "FLOW_DUPLICATE_TOLERANCE",
        "FLOW_STORAGE_BACKEND",
        "FLOW_STORAGE_JSON_PATH",
        "GOOGLE_SHEETS_CREDENTIALS_PATH",
        "GOOGLE_SHEETS_SPREADSHEET_ID",
        "GEMINI_API_KEY",
    ):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class TestLedgerSettings:
    """Tests for ledger behaviour settings."""

    def test_defaults(self):
        """Test the documented defaults."""
        settings = LedgerSettings()
        assert settings.duplicate_tolerance == Decimal("0.01")
        assert settings.default_budget_method == "FREE"
        assert settings.recent_transactions_limit == 20

    def test_environment_override(self, monkeypatch):
        """Test FLOW_ variables override defaults."""
        monkeypatch.setenv("FLOW_DUPLICATE_TOLERANCE", "0.5")
        assert LedgerSettings().duplicate_tolerance == Decimal("0.5")

    def test_unknown_backend_rejected(self, monkeypatch):
        """Test an unsupported storage backend fails validation."""
        monkeypatch.setenv("FLOW_STORAGE_BACKEND", "ftp")
        with pytest.raises(ValidationError):
            StorageSettings()


class TestValidateAllSettings:
    """Tests for the settings health check."""

    def test_missing_credentials_reported(self):
        """Test optional integrations report their errors without raising."""
        results = validate_all_settings()
        assert results["ledger"] is True
        assert results["storage"] is True
        assert results["gemini"] is False
        assert "gemini_error" in results
        assert results["google_sheets"] is False


class TestCreateTracker:
    """Tests for building a tracker from configuration."""

    def test_memory_backend(self, monkeypatch):
        """Test FLOW_STORAGE_BACKEND=memory selects in-memory storage."""
        monkeypatch.setenv("FLOW_STORAGE_BACKEND", "memory")
        tracker = create_tracker(Settings())
        assert isinstance(tracker._storage, InMemoryKeyValueStorage)

    def test_unconfigured_sheets_fall_back_to_json(self, monkeypatch, tmp_path):
        """Test a missing Google Sheets configuration falls back to the JSON file."""
        monkeypatch.setenv("FLOW_STORAGE_BACKEND", "google_sheets")
        tracker = create_tracker(Settings())
        assert isinstance(tracker._storage, JsonFileKeyValueStorage)

        tracker.add_wallet("Cash", type="Cash")
        assert (tmp_path / "flowfinance_data.json").exists()
