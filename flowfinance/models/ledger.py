"""
Core Data Models for FlowFinance

These models define the strict schemas for everything the ledger stores:
wallets, transactions and budget limits.

DESIGN DECISION: Money is always Decimal, never float.
Applying and then reversing a transaction must give back the exact
balance we started with, which float arithmetic cannot promise.

DESIGN DECISION: Stored records are frozen.
A wallet balance changes by replacing the record (model_copy), and only
the WalletLedger does that. A transaction never changes after insert.
"""

from datetime import date, datetime, time, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Optional, Union
from uuid import UUID, uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class TransactionType(str, Enum):
    """Direction of a money movement."""
    INCOME = "INCOME"
    EXPENSE = "EXPENSE"
    TRANSFER = "TRANSFER"


class BudgetMethod(str, Enum):
    """
    Budget display conventions.

    All four show the same per-category numbers; they only change
    which summary figures are surfaced.
    """
    ENVELOPE = "ENVELOPE"
    ZERO_BASED = "ZERO_BASED"
    FREE = "FREE"
    REMAINING = "REMAINING"


class Granularity(str, Enum):
    """Calendar bucket size for accounting reports."""
    DAILY = "daily"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class MemberRole(str, Enum):
    """What a household member may do."""
    ADMIN = "admin"
    EDITOR = "editor"
    VIEWER = "viewer"


def ensure_utc(value: datetime) -> datetime:
    """Normalise a datetime to UTC. Naive values are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# WALLET
# =============================================================================

class WalletCreate(BaseModel):
    """
    Payload for creating a wallet.

    The initial balance is taken as given; the ledger coerces it and
    falls back to zero when it is not a number.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=100)
    type: str = Field(
        default="Bank",
        min_length=1,
        max_length=50,
        description="Free-form tag: Bank, Mobile Money, Cash, Crypto, ..."
    )
    institution: Optional[str] = Field(
        default=None,
        max_length=100,
        description="Bank or provider, e.g. Orabank, Wave"
    )
    initial_balance: Any = 0
    currency: str = Field(default="USD")
    color: str = Field(default="#6366f1", max_length=32)

    @field_validator('currency')
    @classmethod
    def normalise_currency(cls, v: str) -> str:
        return _normalise_currency(v)


class Wallet(BaseModel):
    """
    A named pot of money in a single currency.

    CRITICAL: `balance` is only ever changed by WalletLedger.apply/reverse.
    """
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    id: UUID = Field(default_factory=uuid4)
    name: str = Field(..., min_length=1, max_length=100)
    type: str = Field(default="Bank", min_length=1, max_length=50)
    institution: Optional[str] = None
    currency: str
    color: str = "#6366f1"
    initial_balance: Decimal = Decimal("0")
    balance: Decimal = Decimal("0")

    @field_validator('currency')
    @classmethod
    def normalise_currency(cls, v: str) -> str:
        return _normalise_currency(v)


def _normalise_currency(value: str) -> str:
    code = value.strip().upper()
    if not code.isalnum() or not 2 <= len(code) <= 10:
        raise ValueError(f"Invalid currency code: {value!r}")
    return code


# =============================================================================
# HOUSEHOLD MEMBER
# =============================================================================

DEFAULT_MEMBER_ID = "1"


class Member(BaseModel):
    """
    A person in the household that transactions are attributed to.

    The first member is the primary user; new transactions default to them.
    """
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    id: str = Field(default_factory=lambda: uuid4().hex)
    name: str = Field(..., min_length=1, max_length=100)
    email: Optional[str] = Field(default=None, max_length=254)
    role: MemberRole = MemberRole.EDITOR
    is_admin: bool = False
    is_premium: bool = False

    @field_validator('email', mode='before')
    @classmethod
    def blank_email_is_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @classmethod
    def default_owner(cls) -> 'Member':
        """The member a fresh ledger starts with."""
        return cls(id=DEFAULT_MEMBER_ID, name="Me", role=MemberRole.ADMIN, is_admin=True)


# =============================================================================
# TRANSACTION
# =============================================================================

class TransactionCandidate(BaseModel):
    """
    An insert request as it arrives at the store boundary.

    Amount and date are deliberately loose here (strings allowed);
    the validator turns them into Decimal and UTC datetime or rejects
    the candidate.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    wallet_id: UUID
    amount: Any
    type: TransactionType
    category: str = Field(default="General", max_length=100)
    description: str = Field(default="", max_length=500)
    date: Union[datetime, date, str]
    member_id: Optional[str] = None
    destination_wallet_id: Optional[UUID] = None


class Transaction(BaseModel):
    """
    A stored money movement. Immutable once created.

    For TRANSFER, `wallet_id` is the source and `destination_wallet_id`
    the receiving wallet.
    """
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    id: UUID = Field(default_factory=uuid4)
    wallet_id: UUID
    amount: Decimal = Field(..., ge=0)
    type: TransactionType
    category: str = Field(default="General", max_length=100)
    description: str = Field(default="", max_length=500)
    date: datetime = Field(..., description="Instant of the movement (UTC)")
    member_id: Optional[str] = Field(
        default=None,
        description="Household member the movement is attributed to"
    )
    destination_wallet_id: Optional[UUID] = None

    @field_validator('date')
    @classmethod
    def normalise_date(cls, v: datetime) -> datetime:
        return ensure_utc(v)

    @model_validator(mode='after')
    def validate_transfer(self) -> 'Transaction':
        """Transfers need a distinct destination; other types must not have one."""
        if self.type == TransactionType.TRANSFER:
            if self.destination_wallet_id is None:
                raise ValueError("Transfer requires a destination wallet")
            if self.destination_wallet_id == self.wallet_id:
                raise ValueError("Transfer source and destination must differ")
        elif self.destination_wallet_id is not None:
            raise ValueError("Only transfers may have a destination wallet")
        return self


# =============================================================================
# BUDGET
# =============================================================================

class BudgetLimit(BaseModel):
    """Monthly spending limit for one category. Zero means no limit."""
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    category: str = Field(..., min_length=1, max_length=100)
    limit: Decimal = Field(..., ge=0)


# =============================================================================
# DATE RANGE
# =============================================================================

def _as_plain_date(value):
    """'YYYY-MM-DD' strings count as plain dates so they widen to whole days."""
    if isinstance(value, str) and len(value.strip()) == 10:
        try:
            return date.fromisoformat(value.strip())
        except ValueError:
            return value
    return value


class DateRange(BaseModel):
    """
    Inclusive [start, end] window.

    Plain dates are widened to whole days: start at 00:00, end at
    23:59:59.999999 UTC.
    """
    model_config = ConfigDict(frozen=True)

    start: datetime
    end: datetime

    @field_validator('start', mode='before')
    @classmethod
    def widen_start(cls, v):
        v = _as_plain_date(v)
        if isinstance(v, date) and not isinstance(v, datetime):
            return datetime.combine(v, time.min, tzinfo=timezone.utc)
        return v

    @field_validator('end', mode='before')
    @classmethod
    def widen_end(cls, v):
        v = _as_plain_date(v)
        if isinstance(v, date) and not isinstance(v, datetime):
            return datetime.combine(v, time.max, tzinfo=timezone.utc)
        return v

    @field_validator('start', 'end')
    @classmethod
    def normalise(cls, v: datetime) -> datetime:
        return ensure_utc(v)

    @model_validator(mode='after')
    def validate_order(self) -> 'DateRange':
        if self.end < self.start:
            raise ValueError("Date range end cannot be before start")
        return self

    def contains(self, moment: datetime) -> bool:
        return self.start <= ensure_utc(moment) <= self.end

    @classmethod
    def current_month(cls, now: Optional[datetime] = None) -> 'DateRange':
        """The calendar month containing `now` (UTC)."""
        now = ensure_utc(now or utc_now())
        first = now.date().replace(day=1)
        if first.month == 12:
            next_first = first.replace(year=first.year + 1, month=1)
        else:
            next_first = first.replace(month=first.month + 1)
        last = date.fromordinal(next_first.toordinal() - 1)
        return cls(start=first, end=last)


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single problem found while validating an insert."""

    field: str = Field(..., description="Field with the issue")
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'invalid_format', 'negative', 'currency_mismatch')"
    )
    message: str = Field(..., description="Human-readable description of the issue")
    severity: str = Field(
        default="error",
        pattern="^(error|warning)$",
        description="Only errors block the insert"
    )
