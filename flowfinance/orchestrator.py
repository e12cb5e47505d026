"""
Main Orchestrator for FlowFinance

This module ties together all the components behind one facade,
FinanceTracker, which is what the UI and the assistant call.

DESIGN DECISION: The orchestrator enforces the boundaries:
- Every balance change goes through the transaction store and ledger
- Automated inserts pass the duplicate guard unless explicitly confirmed
- Every successful mutation is persisted and audited
- A storage failure is audited but never undoes an in-memory mutation

Reports are pure reads over snapshot copies taken under the lock.
"""

import threading
from datetime import datetime
from decimal import Decimal
from typing import Any, Callable, Optional, Union
from uuid import UUID

import structlog
from pydantic import ValidationError as PydanticValidationError

from flowfinance.agents import AssistantToolbox
from flowfinance.audit import AuditLogger
from flowfinance.config import LedgerSettings, Settings, get_settings
from flowfinance.errors import DuplicateDetectedError, NotFoundError, ValidationError
from flowfinance.ledger import DuplicateGuard, TransactionStore, WalletLedger
from flowfinance.models.ledger import (
    BudgetLimit,
    BudgetMethod,
    DateRange,
    Granularity,
    Member,
    MemberRole,
    Transaction,
    TransactionCandidate,
    TransactionType,
    Wallet,
    WalletCreate,
    utc_now,
)
from flowfinance.models.reports import BudgetStatus, DashboardSummary, PeriodRow
from flowfinance.queries import QueryExecutor
from flowfinance.reports import (
    BudgetTracker,
    CurrencyGrouper,
    PeriodAggregator,
    coerce_method,
    set_limit,
    to_csv,
)
from flowfinance.services.storage import (
    ALL_KEYS,
    BUDGET_LIMITS_KEY,
    BUDGET_METHOD_KEY,
    MEMBERS_KEY,
    TRANSACTIONS_KEY,
    WALLETS_KEY,
    AuditStorageInterface,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsKeyValueStorage,
    InMemoryKeyValueStorage,
    JsonFileKeyValueStorage,
    KeyValueStorageInterface,
    StorageError,
)
from flowfinance.validation import issues_from_pydantic

logger = structlog.get_logger(__name__)


class FinanceTracker:
    """
    The ledger engine as one object.

    Hydrates from the key-value port at construction and saves the
    affected keys after every successful mutation.

    Args:
        storage: Persistence port (defaults to in-memory)
        audit_logger: Audit sink (defaults to local structured logging only)
        settings: Ledger behaviour (tolerance, default categories, ...)
        clock: Returns "now"; budget periods and the default dashboard range use it
    """

    def __init__(
        self,
        storage: Optional[KeyValueStorageInterface] = None,
        audit_logger: Optional[AuditLogger] = None,
        settings: Optional[LedgerSettings] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.settings = settings or LedgerSettings()
        self._storage = storage or InMemoryKeyValueStorage()
        self._audit = audit_logger or AuditLogger()
        self._clock = clock or utc_now

        self._lock = threading.RLock()
        self._ledger = WalletLedger()
        self._store = TransactionStore(
            self._ledger,
            guard=DuplicateGuard(self.settings.duplicate_tolerance),
            lock=self._lock,
        )
        self._limits: list[BudgetLimit] = []
        self._budget_method = BudgetMethod(self.settings.default_budget_method)
        self._members: list[Member] = [Member.default_owner()]

        self._aggregator = PeriodAggregator()
        self._grouper = CurrencyGrouper()
        self.queries = QueryExecutor(self.list_wallets, self.list_transactions, self._audit)

        self._hydrate()
        if self.verify_balances():
            logger.warning("hydrated_balances_drifted")

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _load(self, key: str, parse: Callable[[Any], Any]) -> Any:
        try:
            raw = self._storage.load(key)
        except StorageError as e:
            self._audit.log_storage_error(operation=f"load:{key}", error_message=str(e))
            return None
        if raw is None:
            return None
        try:
            return parse(raw)
        except (PydanticValidationError, ValueError, TypeError) as e:
            self._audit.log_storage_error(operation=f"parse:{key}", error_message=str(e))
            return None

    def _hydrate(self) -> None:
        wallets = self._load(WALLETS_KEY, lambda raw: [Wallet.model_validate(w) for w in raw])
        transactions = self._load(
            TRANSACTIONS_KEY, lambda raw: [Transaction.model_validate(t) for t in raw]
        )
        limits = self._load(
            BUDGET_LIMITS_KEY, lambda raw: [BudgetLimit.model_validate(b) for b in raw]
        )
        method = self._load(BUDGET_METHOD_KEY, BudgetMethod)
        members = self._load(MEMBERS_KEY, lambda raw: [Member.model_validate(m) for m in raw])

        with self._lock:
            if wallets:
                self._ledger.load(wallets)
            if transactions:
                self._store.load(transactions)
            if limits:
                self._limits = limits
            if method:
                self._budget_method = method
            if members:
                self._members = members

        logger.info(
            "tracker_hydrated",
            wallets=len(self._ledger),
            transactions=len(self._store),
            budget_limits=len(self._limits),
            members=len(self._members),
        )

    def _serialise(self, key: str) -> Any:
        if key == WALLETS_KEY:
            return [w.model_dump(mode="json") for w in self._ledger.all()]
        if key == TRANSACTIONS_KEY:
            return [t.model_dump(mode="json") for t in self._store.all()]
        if key == BUDGET_LIMITS_KEY:
            return [b.model_dump(mode="json") for b in self._limits]
        if key == BUDGET_METHOD_KEY:
            return self._budget_method.value
        if key == MEMBERS_KEY:
            return [m.model_dump(mode="json") for m in self._members]
        raise KeyError(key)

    def _persist(self, *keys: str) -> None:
        """Save the given keys. Failures are audited, not raised."""
        for key in keys:
            try:
                self._storage.save(key, self._serialise(key))
            except StorageError as e:
                self._audit.log_storage_error(operation=f"save:{key}", error_message=str(e))

    def now(self) -> datetime:
        """Current time from the injected clock (UTC)."""
        return self._clock()

    # ------------------------------------------------------------------
    # Wallets
    # ------------------------------------------------------------------

    def add_wallet(
        self,
        name: str,
        type: str = "Bank",
        institution: Optional[str] = None,
        initial_balance: Union[Decimal, int, float, str, None] = 0,
        currency: str = "USD",
        color: str = "#6366f1",
    ) -> Wallet:
        """
        Create a wallet. An unparseable opening balance becomes 0.

        Raises:
            ValidationError: blank name or malformed currency code
        """
        try:
            details = WalletCreate(
                name=name,
                type=type,
                institution=institution,
                initial_balance=initial_balance,
                currency=currency,
                color=color,
            )
        except PydanticValidationError as e:
            issues = issues_from_pydantic(e)
            raise ValidationError("Invalid wallet", issues) from None

        with self._lock:
            wallet = self._ledger.add_wallet(details)
            self._persist(WALLETS_KEY)

        self._audit.log_wallet_created(
            wallet_id=wallet.id,
            name=wallet.name,
            currency=wallet.currency,
            initial_balance=str(wallet.initial_balance),
        )
        return wallet

    def list_wallets(self) -> list[Wallet]:
        with self._lock:
            return self._ledger.all()

    def get_wallet(self, wallet_id: UUID) -> Wallet:
        """Raises NotFoundError for an unknown id."""
        with self._lock:
            return self._ledger.require(wallet_id)

    # ------------------------------------------------------------------
    # Household members
    # ------------------------------------------------------------------

    def list_members(self) -> list[Member]:
        """Primary member first."""
        with self._lock:
            return list(self._members)

    def add_member(
        self,
        name: str,
        email: Optional[str] = None,
        role: Union[MemberRole, str] = MemberRole.EDITOR,
    ) -> Member:
        """
        Raises:
            ValidationError: blank name or unknown role
        """
        try:
            member = Member(name=name, email=email, role=role)
        except PydanticValidationError as e:
            raise ValidationError("Invalid member", issues_from_pydantic(e)) from None

        with self._lock:
            self._members.append(member)
            self._persist(MEMBERS_KEY)

        self._audit.log_member_added(member_id=member.id, name=member.name, role=member.role.value)
        return member

    def remove_member(self, member_id: str) -> Member:
        """
        Remove a member. Their past transactions keep the member id.

        Raises:
            NotFoundError: no member with this id
            ValidationError: it is the last remaining member
        """
        with self._lock:
            member = next((m for m in self._members if m.id == member_id), None)
            if member is None:
                raise NotFoundError("member", member_id)
            if len(self._members) == 1:
                raise ValidationError("Cannot remove the last household member")
            self._members = [m for m in self._members if m.id != member_id]
            self._persist(MEMBERS_KEY)

        self._audit.log_member_removed(member_id=member.id, name=member.name)
        return member

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    def add_transaction(
        self,
        wallet_id: UUID,
        amount: Union[Decimal, int, float, str],
        type: Union[TransactionType, str],
        category: str = "General",
        description: str = "",
        date: Union[datetime, str, None] = None,
        via_automated_caller: bool = False,
        confirmed: bool = False,
        member_id: Optional[str] = None,
        destination_wallet_id: Optional[UUID] = None,
    ) -> Transaction:
        """
        Record a transaction and apply it to the wallet balance(s).

        Args:
            via_automated_caller: Run the duplicate guard (assistant inserts)
            confirmed: Skip the duplicate guard after the user confirmed
            date: Defaults to now
            member_id: Defaults to the primary member

        Raises:
            ValidationError: bad amount, date, type or transfer wallets
            DuplicateDetectedError: automated insert matches an existing one
        """
        try:
            candidate = TransactionCandidate(
                wallet_id=wallet_id,
                amount=amount,
                type=type,
                category=category,
                description=description,
                date=date if date is not None else self._clock(),
                member_id=member_id if member_id is not None else self._primary_member_id(),
                destination_wallet_id=destination_wallet_id,
            )
        except PydanticValidationError as e:
            issues = issues_from_pydantic(e)
            self._audit.log_validation_failed(
                issues=[i.model_dump() for i in issues],
                is_automated=via_automated_caller,
            )
            raise ValidationError("Invalid transaction", issues) from None

        try:
            with self._lock:
                tx = self._store.add(
                    candidate,
                    check_duplicates=via_automated_caller and not confirmed,
                )
                self._persist(TRANSACTIONS_KEY, WALLETS_KEY)
        except DuplicateDetectedError as e:
            first = e.matches[0]
            self._audit.log_duplicate_detected(
                amount=str(first.amount),
                tx_type=first.type.value,
                day=first.date.date().isoformat(),
                match_ids=[m.id for m in e.matches],
            )
            raise
        except ValidationError as e:
            self._audit.log_validation_failed(
                issues=[i.model_dump() for i in e.issues],
                is_automated=via_automated_caller,
            )
            raise

        self._audit.log_transaction_added(
            transaction_id=tx.id,
            wallet_id=tx.wallet_id,
            tx_type=tx.type.value,
            amount=str(tx.amount),
            category=tx.category,
            is_automated=via_automated_caller,
        )
        return tx

    def _primary_member_id(self) -> Optional[str]:
        with self._lock:
            return self._members[0].id if self._members else None

    def delete_transaction(self, transaction_id: Union[UUID, str]) -> Transaction:
        """
        Remove a transaction and reverse its balance effect.

        Raises:
            NotFoundError: no transaction with this id
        """
        if not isinstance(transaction_id, UUID):
            try:
                transaction_id = UUID(str(transaction_id))
            except ValueError:
                raise NotFoundError("transaction", transaction_id) from None

        with self._lock:
            tx = self._store.remove(transaction_id)
            self._persist(TRANSACTIONS_KEY, WALLETS_KEY)

        self._audit.log_transaction_deleted(
            transaction_id=tx.id,
            tx_type=tx.type.value,
            amount=str(tx.amount),
        )
        return tx

    def list_transactions(self) -> list[Transaction]:
        """Most recently added first."""
        return self._store.all()

    def get_transaction(self, transaction_id: UUID) -> Transaction:
        """Raises NotFoundError for an unknown id."""
        return self._store.require(transaction_id)

    # ------------------------------------------------------------------
    # Budgets
    # ------------------------------------------------------------------

    @property
    def budget_limits(self) -> list[BudgetLimit]:
        with self._lock:
            return list(self._limits)

    @property
    def budget_method(self) -> BudgetMethod:
        return self._budget_method

    def set_budget_limit(self, category: str, limit: Union[Decimal, int, float, str]) -> BudgetLimit:
        """
        Upsert the limit for a category.

        Raises:
            ValidationError: negative or non-numeric limit
        """
        with self._lock:
            self._limits = set_limit(self._limits, category, limit)
            entry = self._limits[-1]
            self._persist(BUDGET_LIMITS_KEY)

        self._audit.log_budget_limit_set(category=entry.category, limit=str(entry.limit))
        return entry

    def set_budget_method(self, method: Union[BudgetMethod, str]) -> BudgetMethod:
        method = coerce_method(method)
        with self._lock:
            self._budget_method = method
            self._persist(BUDGET_METHOD_KEY)

        self._audit.log_budget_method_changed(method=method.value)
        return method

    # ------------------------------------------------------------------
    # Reports
    # ------------------------------------------------------------------

    def _snapshot(self) -> tuple[list[Wallet], list[Transaction], list[BudgetLimit]]:
        with self._lock:
            return self._ledger.all(), self._store.all(), list(self._limits)

    def get_accounting_report(self, granularity: Union[Granularity, str]) -> list[PeriodRow]:
        """Rows per calendar period, most recent period first."""
        _, transactions, _ = self._snapshot()
        return self._aggregator.aggregate(transactions, granularity)

    def export_accounting_report(self, granularity: Union[Granularity, str]) -> str:
        return to_csv(self.get_accounting_report(granularity))

    def get_dashboard_summary(self, date_range: Optional[DateRange] = None) -> DashboardSummary:
        """Per-currency totals and chart series; defaults to the current month."""
        wallets, transactions, _ = self._snapshot()
        date_range = date_range or DateRange.current_month(self._clock())
        return self._grouper.summarize(wallets, transactions, date_range)

    def get_budget_status(self, method: Union[BudgetMethod, str, None] = None) -> BudgetStatus:
        _, transactions, limits = self._snapshot()
        tracker = BudgetTracker(
            transactions,
            limits,
            now=self._clock(),
            default_categories=self.settings.default_categories,
        )
        return tracker.status(method or self._budget_method)

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    def verify_balances(self) -> dict[UUID, tuple[Decimal, Decimal]]:
        """
        Recompute every balance from history and compare.

        Returns:
            {wallet_id: (stored, recomputed)} for wallets that disagree;
            empty when the ledger is consistent
        """
        wallets, transactions, _ = self._snapshot()
        mismatches = {}
        for wallet in wallets:
            recomputed = WalletLedger.recompute_balance(wallet, transactions)
            if recomputed != wallet.balance:
                mismatches[wallet.id] = (wallet.balance, recomputed)
                self._audit.log_balance_mismatch(
                    wallet_id=wallet.id,
                    stored=str(wallet.balance),
                    recomputed=str(recomputed),
                )
        return mismatches

    def reset(self) -> None:
        """
        Clear wallets, transactions, limits, members and method, in memory
        and in storage. The tracker starts over with the default member.
        """
        with self._lock:
            self._store.clear()
            self._ledger.clear()
            self._limits = []
            self._budget_method = BudgetMethod(self.settings.default_budget_method)
            self._members = [Member.default_owner()]
            for key in ALL_KEYS:
                try:
                    self._storage.delete(key)
                except StorageError as e:
                    self._audit.log_storage_error(operation=f"delete:{key}", error_message=str(e))

        self._audit.log_data_reset()

    def toolbox(self) -> AssistantToolbox:
        """Tool handlers for the chat assistant, bound to this tracker."""
        return AssistantToolbox(self)


def create_tracker(settings: Optional[Settings] = None) -> FinanceTracker:
    """
    Factory function to build a tracker from configuration.

    The storage backend comes from FLOW_STORAGE_BACKEND. If Google Sheets
    is selected but not configured, falls back to the local JSON file.
    """
    settings = settings or get_settings()
    storage_settings = settings.storage

    storage: KeyValueStorageInterface
    audit_storage: Optional[AuditStorageInterface] = None

    if storage_settings.backend == "google_sheets":
        try:
            sheets_client = GoogleSheetsClient(settings.google_sheets)
            storage = GoogleSheetsKeyValueStorage(sheets_client)
            audit_storage = GoogleSheetsAuditStorage(sheets_client)
        except PydanticValidationError as e:
            logger.warning("google_sheets_not_configured", error=str(e))
            storage = JsonFileKeyValueStorage(storage_settings.json_path)
    elif storage_settings.backend == "memory":
        storage = InMemoryKeyValueStorage()
    else:
        storage = JsonFileKeyValueStorage(storage_settings.json_path)

    return FinanceTracker(
        storage=storage,
        audit_logger=AuditLogger(audit_storage),
        settings=settings.ledger,
    )
