"""
Audit Logger

DESIGN DECISION: Every ledger mutation is logged.
This provides:
1. Traceability of each balance change
2. Debugging capability when a balance looks wrong
3. A record of what the assistant did on the user's behalf

The audit logger:
- Is synchronous, like the ledger it records
- Gracefully handles failures (a broken audit sink never fails a mutation)
"""

from typing import Optional
from uuid import UUID

import structlog

from flowfinance.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from flowfinance.services.storage import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. An audit store, when one is configured (memory or Google Sheets)
    """

    def __init__(self, storage: Optional[AuditStorageInterface] = None):
        """
        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("flowfinance.audit")

    @property
    def storage(self) -> Optional[AuditStorageInterface]:
        return self._storage

    def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage is None:
            return True
        try:
            return self._storage.append_event(event)
        except Exception as e:
            self._logger.error(
                "audit_storage_failed",
                error=str(e),
                event_id=str(event.event_id),
            )
            return False

    def log_wallet_created(
        self,
        wallet_id: UUID,
        name: str,
        currency: str,
        initial_balance: str,
    ) -> None:
        self.log(AuditEventBuilder.wallet_created(
            wallet_id=wallet_id,
            name=name,
            currency=currency,
            initial_balance=initial_balance,
        ))

    def log_transaction_added(
        self,
        transaction_id: UUID,
        wallet_id: UUID,
        tx_type: str,
        amount: str,
        category: str,
        is_automated: bool = False,
    ) -> None:
        self.log(AuditEventBuilder.transaction_added(
            transaction_id=transaction_id,
            wallet_id=wallet_id,
            tx_type=tx_type,
            amount=amount,
            category=category,
            is_automated=is_automated,
        ))

    def log_transaction_deleted(self, transaction_id: UUID, tx_type: str, amount: str) -> None:
        self.log(AuditEventBuilder.transaction_deleted(
            transaction_id=transaction_id,
            tx_type=tx_type,
            amount=amount,
        ))

    def log_duplicate_detected(
        self,
        amount: str,
        tx_type: str,
        day: str,
        match_ids: list[UUID],
    ) -> None:
        """Log a blocked automated insert."""
        self.log(AuditEventBuilder.duplicate_detected(
            amount=amount,
            tx_type=tx_type,
            day=day,
            match_ids=match_ids,
        ))

    def log_validation_failed(self, issues: list[dict], is_automated: bool = False) -> None:
        self.log(AuditEventBuilder.validation_failed(issues=issues, is_automated=is_automated))

    def log_budget_limit_set(self, category: str, limit: str) -> None:
        self.log(AuditEventBuilder.budget_limit_set(category=category, limit=limit))

    def log_budget_method_changed(self, method: str) -> None:
        self.log(AuditEventBuilder.budget_method_changed(method=method))

    def log_member_added(self, member_id: str, name: str, role: str) -> None:
        self.log(AuditEventBuilder.member_added(member_id=member_id, name=name, role=role))

    def log_member_removed(self, member_id: str, name: str) -> None:
        self.log(AuditEventBuilder.member_removed(member_id=member_id, name=name))

    def log_data_reset(self) -> None:
        self.log(AuditEventBuilder.data_reset())

    def log_balance_mismatch(self, wallet_id: UUID, stored: str, recomputed: str) -> None:
        self.log(AuditEventBuilder.balance_mismatch(
            wallet_id=wallet_id,
            stored=stored,
            recomputed=recomputed,
        ))

    def log_storage_error(self, operation: str, error_message: str) -> None:
        """Log a persistence failure. The in-memory state is unaffected."""
        self.log(AuditEventBuilder.storage_error(
            operation=operation,
            error_message=error_message,
        ))

    def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
    ) -> None:
        """Log an error."""
        self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
        ))
