"""
Transaction Store

Owns the authoritative list of transactions.

DESIGN DECISION: Inserting a transaction and applying it to the wallet
balance are one operation. Both happen under a single re-entrant lock,
and a failed apply rolls the insert back, so the balance can never
drift from the transaction set even with a UI session and the
assistant writing at the same time. Removal mirrors this with reverse.

Ordering is most-recently-added first. That is for recency display
only; anything chronological sorts by `date` itself.
"""

import threading
from typing import Iterable, Optional
from uuid import UUID

import structlog

from flowfinance.errors import NotFoundError
from flowfinance.ledger.duplicates import DuplicateGuard
from flowfinance.ledger.wallets import WalletLedger
from flowfinance.models.ledger import Transaction, TransactionCandidate
from flowfinance.validation import TransactionValidator

logger = structlog.get_logger(__name__)


class TransactionStore:

    def __init__(
        self,
        ledger: WalletLedger,
        guard: Optional[DuplicateGuard] = None,
        lock: Optional[threading.RLock] = None,
    ):
        self._ledger = ledger
        self._guard = guard or DuplicateGuard()
        self._validator = TransactionValidator(ledger.get)
        self._transactions: list[Transaction] = []
        self._lock = lock or threading.RLock()

    @property
    def lock(self) -> threading.RLock:
        """The lock guarding store and ledger together."""
        return self._lock

    def add(
        self,
        candidate: TransactionCandidate,
        check_duplicates: bool = False,
    ) -> Transaction:
        """
        Validate, insert at the head and apply to the ledger.

        Args:
            candidate: The raw insert request
            check_duplicates: Run the duplicate guard first (automated callers)

        Raises:
            ValidationError: candidate rejected, nothing stored
            DuplicateDetectedError: guard matched, nothing stored
        """
        with self._lock:
            tx = self._validator.validate(candidate)
            if check_duplicates:
                self._guard.check(tx.date, tx.amount, tx.type, self._transactions)

            self._transactions.insert(0, tx)
            try:
                self._ledger.apply(tx)
            except Exception:
                self._transactions.pop(0)
                raise

        logger.info(
            "transaction_added",
            transaction_id=str(tx.id),
            wallet_id=str(tx.wallet_id),
            type=tx.type.value,
            amount=str(tx.amount),
        )
        return tx

    def remove(self, transaction_id: UUID) -> Transaction:
        """
        Remove a transaction and reverse its balance effect.

        Raises:
            NotFoundError: no transaction with this id
        """
        with self._lock:
            for index, tx in enumerate(self._transactions):
                if tx.id == transaction_id:
                    break
            else:
                raise NotFoundError("transaction", transaction_id)

            del self._transactions[index]
            try:
                self._ledger.reverse(tx)
            except Exception:
                self._transactions.insert(index, tx)
                raise

        logger.info(
            "transaction_removed",
            transaction_id=str(tx.id),
            type=tx.type.value,
            amount=str(tx.amount),
        )
        return tx

    def get(self, transaction_id: UUID) -> Optional[Transaction]:
        with self._lock:
            return next((tx for tx in self._transactions if tx.id == transaction_id), None)

    def require(self, transaction_id: UUID) -> Transaction:
        tx = self.get(transaction_id)
        if tx is None:
            raise NotFoundError("transaction", transaction_id)
        return tx

    def all(self) -> list[Transaction]:
        """Snapshot copy, most recently added first."""
        with self._lock:
            return list(self._transactions)

    def __len__(self) -> int:
        return len(self._transactions)

    def load(self, transactions: Iterable[Transaction]) -> None:
        """Hydrate from storage without touching balances (they were saved already applied)."""
        with self._lock:
            self._transactions = list(transactions)

    def clear(self) -> None:
        with self._lock:
            self._transactions.clear()
