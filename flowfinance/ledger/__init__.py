"""Ledger package: transaction store, wallet balances and the duplicate guard."""

from flowfinance.ledger.duplicates import DEFAULT_TOLERANCE, DuplicateGuard
from flowfinance.ledger.store import TransactionStore
from flowfinance.ledger.wallets import WalletLedger, balance_effects

__all__ = [
    "DEFAULT_TOLERANCE",
    "DuplicateGuard",
    "TransactionStore",
    "WalletLedger",
    "balance_effects",
]
