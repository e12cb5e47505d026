"""
Configuration Management for FlowFinance

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Storage backend, duplicate tolerance and the assistant model are all
chosen from the environment, so the engine itself stays free of them.
"""

from decimal import Decimal
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LedgerSettings(BaseSettings):
    """Behaviour of the ledger engine itself."""

    model_config = SettingsConfigDict(
        env_prefix="FLOW_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    duplicate_tolerance: Decimal = Field(
        default=Decimal("0.01"),
        gt=0,
        description="Two amounts closer than this are treated as the same amount"
    )
    default_categories: list[str] = Field(
        default_factory=lambda: ["General", "Food", "Transport", "Utilities"],
        description="Budget categories shown before any transaction exists"
    )
    default_budget_method: str = Field(
        default="FREE",
        pattern="^(ENVELOPE|ZERO_BASED|FREE|REMAINING)$",
        description="Budget display method used until the user picks one"
    )
    recent_transactions_limit: int = Field(
        default=20,
        ge=1,
        le=500,
        description="Default number of transactions returned to the assistant"
    )


class StorageSettings(BaseSettings):
    """Persistence backend selection."""

    model_config = SettingsConfigDict(
        env_prefix="FLOW_STORAGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    backend: str = Field(
        default="json",
        pattern="^(memory|json|google_sheets)$",
        description="Which key-value backend persists wallets and transactions"
    )
    json_path: str = Field(
        default="flowfinance_data.json",
        description="File used by the json backend"
    )


class GoogleSheetsSettings(BaseSettings):
    """Google Sheets storage configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GOOGLE_SHEETS_",
        extra="ignore"
    )

    credentials_path: str = Field(
        ...,
        description="Path to Google service account credentials JSON"
    )
    spreadsheet_id: str = Field(
        ...,
        description="ID of the Google Sheets spreadsheet to use"
    )

    # Sheet names within the spreadsheet
    store_sheet_name: str = Field(
        default="Store",
        description="Name of the sheet holding key/value rows"
    )
    audit_sheet_name: str = Field(
        default="AuditLog",
        description="Name of the sheet for audit logs"
    )

    @field_validator('credentials_path')
    @classmethod
    def validate_credentials_path(cls, v: str) -> str:
        """Warn if credentials file doesn't exist (but don't fail - might be mounted later)."""
        if not Path(v).exists():
            import warnings
            warnings.warn(
                f"Google credentials file not found at {v}. "
                "Make sure it exists before running the application."
            )
        return v


class GeminiSettings(BaseSettings):
    """Gemini LLM configuration for the finance assistant."""

    model_config = SettingsConfigDict(
        env_prefix="GEMINI_",
        extra="ignore"
    )

    api_key: str = Field(
        ...,
        description="Gemini API key"
    )
    model_name: str = Field(
        default="gemini-2.5-flash",
        description="Gemini model to use"
    )
    max_tokens: int = Field(
        default=1024,
        ge=100,
        le=8192,
        description="Maximum tokens in response"
    )
    temperature: float = Field(
        default=0.7,
        ge=0.0,
        le=1.0,
        description="Model temperature"
    )


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Sub-settings are loaded lazily so a missing Gemini key
    # does not prevent the ledger from starting.

    @property
    def ledger(self) -> LedgerSettings:
        return LedgerSettings()

    @property
    def storage(self) -> StorageSettings:
        return StorageSettings()

    @property
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()

    @property
    def gemini(self) -> GeminiSettings:
        return GeminiSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, plus
    "<name>_error" entries describing what failed.
    """
    results = {}
    settings = get_settings()

    for name in ("ledger", "storage", "google_sheets", "gemini"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
