"""
Query Execution Engine

DESIGN DECISION: Query execution is DETERMINISTIC.
The assistant turns a question into a TransactionQuery.
This engine runs that query against the ledger snapshot.
The assistant then phrases the answer.

At no point does the assistant read balances or history on its own.
It can only see what this engine returns.
"""

from datetime import datetime
from typing import TYPE_CHECKING, Callable, Optional

from flowfinance.models.ledger import Transaction, Wallet
from flowfinance.models.query import QueryResult, TransactionQuery

if TYPE_CHECKING:
    from flowfinance.audit import AuditLogger


class QueryExecutor:
    """
    Executes structured lookups against the ledger.

    GUARANTEES:
    - Only returns real data from the ledger
    - Never invents or estimates
    - Clear "no data found" if nothing matches

    Args:
        wallets: Returns the current wallet snapshot
        transactions: Returns the current transaction snapshot
        audit_logger: Receives failed lookups, when given
    """

    def __init__(
        self,
        wallets: Callable[[], list[Wallet]],
        transactions: Callable[[], list[Transaction]],
        audit_logger: Optional["AuditLogger"] = None,
    ):
        self._wallets = wallets
        self._transactions = transactions
        self._audit_logger = audit_logger

    def find_wallet(self, name: Optional[str], include_institution: bool = True) -> Optional[Wallet]:
        """
        First wallet whose name (or institution) contains `name`, ignoring case.

        Returns None when nothing matches; the caller decides on a fallback.
        """
        if not name:
            return None
        needle = name.strip().lower()
        for wallet in self._wallets():
            if needle in wallet.name.lower():
                return wallet
            if include_institution and wallet.institution and needle in wallet.institution.lower():
                return wallet
        return None

    def list_wallets(self) -> QueryResult:
        wallets = self._wallets()
        results = [
            {
                "id": str(w.id),
                "name": w.name,
                "balance": float(w.balance),
                "currency": w.currency,
                "institution": w.institution or "N/A",
            }
            for w in wallets
        ]
        return QueryResult(
            query_id=TransactionQuery().query_id,
            data_found=bool(results),
            result_count=len(results),
            results=results,
            query_description="Listing wallets",
        )

    def execute(self, query: TransactionQuery) -> QueryResult:
        """
        Run a transaction lookup.

        Matches are sorted by date, newest first, then cut to `query.limit`.
        `result_count` reports the number of matches before the cut.
        """
        try:
            return self._execute_list(query)
        except Exception as e:
            if self._audit_logger:
                self._audit_logger.log_error(
                    error_type="query_failed",
                    error_message=str(e),
                    details={"query_id": str(query.query_id)},
                )
            return QueryResult(
                query_id=query.query_id,
                success=False,
                error_message=str(e),
                data_found=False,
                result_count=0,
                query_description=f"Query failed: {str(e)}",
            )

    def _execute_list(self, query: TransactionQuery) -> QueryResult:
        wallets = {w.id: w for w in self._wallets()}
        matched = list(self._transactions())

        if query.start_date:
            matched = [t for t in matched if t.date >= query.start_date]
        if query.end_date:
            matched = [t for t in matched if t.date <= query.end_date]
        if query.category:
            needle = query.category.lower()
            matched = [t for t in matched if needle in t.category.lower()]
        if query.wallet_name:
            # Only the wallet name is matched here, not the institution
            wallet = self.find_wallet(query.wallet_name, include_institution=False)
            if wallet is not None:
                matched = [t for t in matched if t.wallet_id == wallet.id]

        matched.sort(key=lambda t: t.date, reverse=True)
        results = [self._transaction_to_dict(t, wallets) for t in matched[:query.limit]]

        desc_parts = ["Listing transactions"]
        if query.category:
            desc_parts.append(f"category: {query.category}")
        if query.wallet_name:
            desc_parts.append(f"wallet: {query.wallet_name}")
        if query.start_date or query.end_date:
            desc_parts.append(self._date_range_str(query.start_date, query.end_date))

        return QueryResult(
            query_id=query.query_id,
            success=True,
            data_found=len(matched) > 0,
            result_count=len(matched),
            results=results,
            query_description=" | ".join(desc_parts),
        )

    def _transaction_to_dict(self, tx: Transaction, wallets: dict) -> dict:
        """Convert a transaction to a dictionary for results."""
        wallet = wallets.get(tx.wallet_id)
        return {
            "date": tx.date.date().isoformat(),
            "description": tx.description,
            "amount": float(tx.amount),
            "type": tx.type.value,
            "category": tx.category,
            "wallet": wallet.name if wallet else None,
        }

    def _date_range_str(
        self,
        date_from: Optional[datetime],
        date_to: Optional[datetime],
    ) -> str:
        """Format date range for description."""
        if date_from and date_to:
            if date_from.date() == date_to.date():
                return f"on {date_from.strftime('%d %b %Y')}"
            elif date_from.month == date_to.month and date_from.year == date_to.year:
                return f"in {date_from.strftime('%B %Y')}"
            elif date_from.year == date_to.year:
                return f"from {date_from.strftime('%b')} to {date_to.strftime('%b %Y')}"
            else:
                return f"from {date_from.strftime('%b %Y')} to {date_to.strftime('%b %Y')}"
        elif date_from:
            return f"from {date_from.strftime('%d %b %Y')}"
        elif date_to:
            return f"until {date_to.strftime('%d %b %Y')}"
        return ""
