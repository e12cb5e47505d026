"""
Query Models

Structured lookups issued by the assistant. The assistant never reads
the ledger directly; it fills in a TransactionQuery and gets back only
what the executor found.
"""

from datetime import date, datetime, time, timezone
from typing import Any, Optional
from uuid import UUID, uuid4

import structlog
from pydantic import BaseModel, Field, field_validator

logger = structlog.get_logger(__name__)


def _lenient_moment(value: Any, end_of_day: bool) -> Optional[datetime]:
    """Unparseable filter dates are dropped rather than failing the query."""
    if value in (None, ""):
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time.max if end_of_day else time.min, tzinfo=timezone.utc)
    text = str(value).strip()
    try:
        if len(text) == 10:
            day = date.fromisoformat(text)
            return datetime.combine(day, time.max if end_of_day else time.min, tzinfo=timezone.utc)
        return datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        logger.warning("query_date_ignored", value=text)
        return None


class TransactionQuery(BaseModel):
    """
    Filters for a transaction lookup.

    Date-only bounds cover the whole day. Category and wallet name are
    case-insensitive substring matches.
    """

    query_id: UUID = Field(default_factory=uuid4)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    category: Optional[str] = None
    wallet_name: Optional[str] = None
    limit: int = Field(default=20, ge=1, le=1000)

    @field_validator('start_date', mode='before')
    @classmethod
    def parse_start(cls, v):
        return _lenient_moment(v, end_of_day=False)

    @field_validator('end_date', mode='before')
    @classmethod
    def parse_end(cls, v):
        return _lenient_moment(v, end_of_day=True)

    @field_validator('start_date', 'end_date')
    @classmethod
    def to_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        if v is None:
            return None
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v.astimezone(timezone.utc)

    @field_validator('category', 'wallet_name')
    @classmethod
    def blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        return v or None


class QueryResult(BaseModel):
    """What the executor found. `result_count` counts all matches, before the limit."""

    query_id: UUID
    success: bool = True
    error_message: Optional[str] = None
    data_found: bool = False
    result_count: int = Field(default=0, ge=0)
    results: list[dict] = Field(default_factory=list)
    query_description: str = ""
