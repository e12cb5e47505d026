"""
FlowFinance - Ledger & Aggregation Engine

Household finance tracking over named wallets (bank, mobile money,
cash, crypto). Balances, accounting reports, currency totals and
budget status are all derived from the transaction history.

DESIGN PRINCIPLES:
1. A balance only ever moves when a transaction is applied or reversed
2. Reports are pure functions of (transactions, wallets, parameters)
3. Currencies are aggregated side by side, never converted
4. Automated callers are guarded against repeat submissions
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "FlowFinance Team"
