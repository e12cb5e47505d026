"""
Two-Stage Transaction Validation

STAGE 1 - SCHEMA VALIDATION:
- Amount is a finite, non-negative number (numeric strings accepted)
- Date parses to an instant
- This catches malformed input from forms and from the assistant

STAGE 2 - SEMANTIC VALIDATION:
- Transfers name a distinct destination wallet
- Transfers stay inside one currency (we never convert)
- Unknown wallets are reported as warnings only; the ledger tolerates
  dangling references so history survives wallet removal

IMPORTANT: Validation NEVER silently fixes issues.
A rejected candidate raises ValidationError with every issue found.
"""

from datetime import date, datetime, time, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Optional
from uuid import UUID

import structlog
from pydantic import ValidationError as PydanticValidationError

from flowfinance.errors import ValidationError
from flowfinance.models.ledger import (
    Transaction,
    TransactionCandidate,
    TransactionType,
    ValidationIssue,
    Wallet,
    ensure_utc,
)

logger = structlog.get_logger(__name__)

WalletLookup = Callable[[UUID], Optional[Wallet]]


def _coerce_decimal(value: Any) -> Optional[Decimal]:
    """Decimal for numbers and numeric-looking strings, None for anything else."""
    if value is None or isinstance(value, bool):
        return None
    try:
        if isinstance(value, Decimal):
            result = value
        elif isinstance(value, int):
            result = Decimal(value)
        elif isinstance(value, float):
            result = Decimal(str(value))
        elif isinstance(value, str):
            if not value.strip():
                return None
            result = Decimal(value.strip())
        else:
            return None
    except InvalidOperation:
        return None
    return result if result.is_finite() else None


def parse_amount(value: Any, field: str = "amount") -> Decimal:
    """
    Coerce a transaction amount.

    Raises:
        ValidationError: non-numeric, non-finite or negative input
    """
    amount = _coerce_decimal(value)
    if amount is None:
        raise ValidationError(
            f"{field} must be a number, got {value!r}",
            [ValidationIssue(
                field=field,
                issue_type="invalid_format",
                message=f"{field} must be a finite number, got {value!r}",
            )],
        )
    if amount < 0:
        raise ValidationError(
            f"{field} cannot be negative",
            [ValidationIssue(
                field=field,
                issue_type="negative",
                message=f"{field} cannot be negative ({amount}); use the transaction type for direction",
            )],
        )
    return amount


def coerce_balance(value: Any) -> Decimal:
    """
    Coerce an opening balance. Signed; invalid input becomes zero.

    Wallet creation is lenient on purpose: a blank balance field
    means "start from zero".
    """
    balance = _coerce_decimal(value)
    if balance is None:
        if value not in (None, ""):
            logger.warning("initial_balance_defaulted", raw_value=repr(value))
        return Decimal("0")
    return balance


def parse_date(value: Any, field: str = "date") -> datetime:
    """
    Parse an instant and normalise it to UTC.

    Accepts datetimes, dates (midnight UTC) and ISO 8601 strings,
    including a trailing 'Z'.
    """
    try:
        if isinstance(value, datetime):
            return ensure_utc(value)
        if isinstance(value, date):
            return datetime.combine(value, time.min, tzinfo=timezone.utc)
        if isinstance(value, str) and value.strip():
            text = value.strip()
            if text.endswith(("Z", "z")):
                text = text[:-1] + "+00:00"
            return ensure_utc(datetime.fromisoformat(text))
    except ValueError:
        pass
    raise ValidationError(
        f"{field} is not a valid date: {value!r}",
        [ValidationIssue(
            field=field,
            issue_type="invalid_format",
            message=f"{field} must be an ISO 8601 date, got {value!r}",
        )],
    )


class TransactionValidator:
    """
    Validates insert candidates through a two-stage pipeline.

    Stage 1: Schema validation (no ledger state needed)
    Stage 2: Semantic validation (needs wallet lookup)
    """

    def __init__(self, wallet_lookup: Optional[WalletLookup] = None):
        """
        Args:
            wallet_lookup: Resolves a wallet id to its current record.
                           If None, wallet checks are skipped.
        """
        self._wallet_lookup = wallet_lookup

    def _validate_schema(
        self,
        candidate: TransactionCandidate,
    ) -> tuple[Optional[Decimal], Optional[datetime], list[ValidationIssue]]:
        """Stage 1: amount and date coercion."""
        issues = []
        amount = None
        moment = None

        try:
            amount = parse_amount(candidate.amount)
        except ValidationError as e:
            issues.extend(e.issues)

        try:
            moment = parse_date(candidate.date)
        except ValidationError as e:
            issues.extend(e.issues)

        return amount, moment, issues

    def _validate_semantic(
        self,
        candidate: TransactionCandidate,
    ) -> list[ValidationIssue]:
        """Stage 2: wallet references and transfer rules."""
        issues = []

        if candidate.type == TransactionType.TRANSFER:
            if candidate.destination_wallet_id is None:
                issues.append(ValidationIssue(
                    field="destination_wallet_id",
                    issue_type="missing",
                    message="A transfer needs a destination wallet",
                ))
            elif candidate.destination_wallet_id == candidate.wallet_id:
                issues.append(ValidationIssue(
                    field="destination_wallet_id",
                    issue_type="inconsistent",
                    message="A transfer cannot go to the wallet it comes from",
                ))
        elif candidate.destination_wallet_id is not None:
            issues.append(ValidationIssue(
                field="destination_wallet_id",
                issue_type="inconsistent",
                message="Only transfers can have a destination wallet",
            ))

        if self._wallet_lookup is None:
            return issues

        source = self._wallet_lookup(candidate.wallet_id)
        if source is None:
            issues.append(ValidationIssue(
                field="wallet_id",
                issue_type="unknown_wallet",
                message=f"No wallet with id {candidate.wallet_id}; balance will not change",
                severity="warning",
            ))

        if candidate.type == TransactionType.TRANSFER and candidate.destination_wallet_id:
            destination = self._wallet_lookup(candidate.destination_wallet_id)
            if destination is None:
                issues.append(ValidationIssue(
                    field="destination_wallet_id",
                    issue_type="unknown_wallet",
                    message=f"No wallet with id {candidate.destination_wallet_id}",
                    severity="warning",
                ))
            elif source is not None and source.currency != destination.currency:
                issues.append(ValidationIssue(
                    field="destination_wallet_id",
                    issue_type="currency_mismatch",
                    message=(
                        f"Cannot transfer between {source.currency} and "
                        f"{destination.currency} wallets"
                    ),
                ))

        return issues

    def validate(self, candidate: TransactionCandidate) -> Transaction:
        """
        Run the full pipeline and build the transaction to store.

        Raises:
            ValidationError: if any error-level issue was found
        """
        amount, moment, issues = self._validate_schema(candidate)
        issues.extend(self._validate_semantic(candidate))

        errors = [i for i in issues if i.severity == "error"]
        if errors:
            raise ValidationError(
                "; ".join(i.message for i in errors),
                issues,
            )

        for warning in issues:
            logger.warning(
                "transaction_validation_warning",
                field=warning.field,
                issue_type=warning.issue_type,
                message=warning.message,
            )

        try:
            return Transaction(
                wallet_id=candidate.wallet_id,
                amount=amount,
                type=candidate.type,
                category=candidate.category or "General",
                description=candidate.description,
                date=moment,
                member_id=candidate.member_id,
                destination_wallet_id=candidate.destination_wallet_id,
            )
        except PydanticValidationError as e:
            raise ValidationError(str(e), issues_from_pydantic(e)) from e


def issues_from_pydantic(error: PydanticValidationError) -> list[ValidationIssue]:
    """Translate pydantic errors into ledger validation issues."""
    return [
        ValidationIssue(
            field=".".join(str(part) for part in err.get("loc", ())) or "input",
            issue_type=err.get("type", "invalid"),
            message=err.get("msg", "Invalid value"),
        )
        for err in error.errors()
    ]


def get_user_friendly_summary(error: ValidationError) -> str:
    """Short, readable explanation of why an insert was rejected."""
    lines = ["❌ The transaction was not saved:"]
    for issue in error.issues:
        if issue.severity == "error":
            lines.append(f"   • {issue.message}")
    if len(lines) == 1:
        lines.append(f"   • {error}")
    return "\n".join(lines)
