"""
Wallet Ledger

DESIGN DECISION: This is the ONLY place a wallet balance changes.
Balances move when a transaction is applied or reversed, nothing else.
The balance is maintained incrementally; a full re-scan of history
(recompute_balance) exists only as a consistency check.

Dangling references are tolerated: applying a transaction whose wallet
no longer exists is a logged no-op, so history survives wallet removal.
"""

from decimal import Decimal
from typing import Iterable, Optional
from uuid import UUID

import structlog

from flowfinance.errors import NotFoundError
from flowfinance.models.ledger import Transaction, TransactionType, Wallet, WalletCreate
from flowfinance.validation import coerce_balance

logger = structlog.get_logger(__name__)


def balance_effects(tx: Transaction) -> list[tuple[UUID, Decimal]]:
    """
    Signed balance change per wallet for applying `tx`.

    Reversal uses the same list with the signs flipped.
    """
    if tx.type == TransactionType.INCOME:
        return [(tx.wallet_id, tx.amount)]
    if tx.type == TransactionType.EXPENSE:
        return [(tx.wallet_id, -tx.amount)]
    if tx.type == TransactionType.TRANSFER and tx.destination_wallet_id is not None:
        return [(tx.wallet_id, -tx.amount), (tx.destination_wallet_id, tx.amount)]
    return []


class WalletLedger:
    """
    Owns wallet records and their balances.

    Wallets keep insertion order, which is the order the UI lists them in.
    """

    def __init__(self, wallets: Optional[Iterable[Wallet]] = None):
        self._wallets: dict[UUID, Wallet] = {}
        if wallets:
            self.load(wallets)

    # ------------------------------------------------------------------
    # Wallet records
    # ------------------------------------------------------------------

    def add_wallet(self, details: WalletCreate) -> Wallet:
        """Create a wallet with its opening balance. Invalid balances become 0."""
        opening = coerce_balance(details.initial_balance)
        wallet = Wallet(
            name=details.name,
            type=details.type,
            institution=details.institution or None,
            currency=details.currency,
            color=details.color,
            initial_balance=opening,
            balance=opening,
        )
        self._wallets[wallet.id] = wallet
        logger.info(
            "wallet_created",
            wallet_id=str(wallet.id),
            currency=wallet.currency,
            initial_balance=str(opening),
        )
        return wallet

    def get(self, wallet_id: UUID) -> Optional[Wallet]:
        return self._wallets.get(wallet_id)

    def require(self, wallet_id: UUID) -> Wallet:
        wallet = self._wallets.get(wallet_id)
        if wallet is None:
            raise NotFoundError("wallet", wallet_id)
        return wallet

    def all(self) -> list[Wallet]:
        return list(self._wallets.values())

    def __len__(self) -> int:
        return len(self._wallets)

    def __contains__(self, wallet_id: object) -> bool:
        return wallet_id in self._wallets

    def load(self, wallets: Iterable[Wallet]) -> None:
        """Hydrate from storage. Balances are trusted as stored."""
        self._wallets = {w.id: w for w in wallets}

    def clear(self) -> None:
        self._wallets.clear()

    # ------------------------------------------------------------------
    # Balance mutation
    # ------------------------------------------------------------------

    def _shift(self, wallet_id: UUID, delta: Decimal, tx: Transaction, action: str) -> None:
        wallet = self._wallets.get(wallet_id)
        if wallet is None:
            logger.warning(
                "dangling_wallet_reference",
                action=action,
                wallet_id=str(wallet_id),
                transaction_id=str(tx.id),
            )
            return
        self._wallets[wallet_id] = wallet.model_copy(
            update={"balance": wallet.balance + delta}
        )

    def apply(self, tx: Transaction) -> None:
        """Move balances for a newly inserted transaction."""
        for wallet_id, delta in balance_effects(tx):
            self._shift(wallet_id, delta, tx, "apply")

    def reverse(self, tx: Transaction) -> None:
        """Undo exactly what apply(tx) did."""
        for wallet_id, delta in balance_effects(tx):
            self._shift(wallet_id, -delta, tx, "reverse")

    # ------------------------------------------------------------------
    # Consistency check
    # ------------------------------------------------------------------

    @staticmethod
    def recompute_balance(wallet: Wallet, transactions: Iterable[Transaction]) -> Decimal:
        """
        Balance rebuilt from the opening balance and full history.

        Not used during normal operation; compare against wallet.balance
        to detect drift.
        """
        balance = wallet.initial_balance
        for tx in transactions:
            for wallet_id, delta in balance_effects(tx):
                if wallet_id == wallet.id:
                    balance += delta
        return balance
