"""
Audit Models for FlowFinance

Every mutation of the ledger is logged for audit purposes.
This provides:
1. Traceability of every balance change
2. Debugging information when a balance looks wrong
3. A record of what the assistant did on the user's behalf

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Wallets
    WALLET_CREATED = "wallet_created"

    # Transactions
    TRANSACTION_ADDED = "transaction_added"
    TRANSACTION_DELETED = "transaction_deleted"
    DUPLICATE_DETECTED = "duplicate_detected"
    VALIDATION_FAILED = "validation_failed"

    # Budgets
    BUDGET_LIMIT_SET = "budget_limit_set"
    BUDGET_METHOD_CHANGED = "budget_method_changed"

    # Household
    MEMBER_ADDED = "member_added"
    MEMBER_REMOVED = "member_removed"

    # Maintenance
    DATA_RESET = "data_reset"
    BALANCE_MISMATCH = "balance_mismatch"

    # System events
    STORAGE_ERROR = "storage_error"
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    """

    # Identity
    event_id: UUID = Field(default_factory=uuid4)
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'wallet', 'transaction', 'budget')"
    )
    entity_id: Optional[UUID] = None

    description: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)

    error_message: Optional[str] = None

    is_automated: bool = Field(
        default=False,
        description="Was this triggered by the assistant rather than the user?"
    )

    def to_log_dict(self) -> dict:
        """Convert to a dictionary suitable for structured logging."""
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": str(self.entity_id) if self.entity_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_automated": self.is_automated,
        }

    def to_sheets_row(self) -> list:
        """
        Convert to a row suitable for Google Sheets storage.

        Returns columns in order:
        [event_id, timestamp, event_type, severity, entity_type, entity_id,
         description, details_json, error_message, is_automated]
        """
        return [
            str(self.event_id),
            self.timestamp.isoformat(),
            self.event_type.value,
            self.severity.value,
            self.entity_type or "",
            str(self.entity_id) if self.entity_id else "",
            self.description,
            json.dumps(self.details) if self.details else "",
            self.error_message or "",
            str(self.is_automated),
        ]


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.wallet_created(wallet_id, "Cash", "XOF", "0")
        event = AuditEventBuilder.transaction_deleted(tx_id, "EXPENSE", "20.00")
    """

    @staticmethod
    def wallet_created(
        wallet_id: UUID,
        name: str,
        currency: str,
        initial_balance: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.WALLET_CREATED,
            entity_type="wallet",
            entity_id=wallet_id,
            description=f"Wallet created: {name} ({currency})",
            details={
                "name": name,
                "currency": currency,
                "initial_balance": initial_balance,
            },
        )

    @staticmethod
    def transaction_added(
        transaction_id: UUID,
        wallet_id: UUID,
        tx_type: str,
        amount: str,
        category: str,
        is_automated: bool,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_ADDED,
            entity_type="transaction",
            entity_id=transaction_id,
            description=f"{tx_type.capitalize()} of {amount} added ({category})",
            details={
                "wallet_id": str(wallet_id),
                "type": tx_type,
                "amount": amount,
                "category": category,
            },
            is_automated=is_automated,
        )

    @staticmethod
    def transaction_deleted(
        transaction_id: UUID,
        tx_type: str,
        amount: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_DELETED,
            entity_type="transaction",
            entity_id=transaction_id,
            description=f"{tx_type.capitalize()} of {amount} deleted and reversed",
            details={
                "type": tx_type,
                "amount": amount,
            },
        )

    @staticmethod
    def duplicate_detected(
        amount: str,
        tx_type: str,
        day: str,
        match_ids: list[UUID],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DUPLICATE_DETECTED,
            severity=AuditSeverity.WARNING,
            entity_type="transaction",
            description=f"Possible duplicate {tx_type.lower()} of {amount} on {day} blocked",
            details={
                "amount": amount,
                "type": tx_type,
                "day": day,
                "matches": [str(m) for m in match_ids],
            },
            is_automated=True,
        )

    @staticmethod
    def validation_failed(
        issues: list[dict],
        is_automated: bool,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="transaction",
            description=f"Transaction rejected with {len(issues)} issues",
            details={"issues": issues},
            is_automated=is_automated,
        )

    @staticmethod
    def budget_limit_set(category: str, limit: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BUDGET_LIMIT_SET,
            entity_type="budget",
            description=f"Budget limit for {category} set to {limit}",
            details={"category": category, "limit": limit},
        )

    @staticmethod
    def budget_method_changed(method: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BUDGET_METHOD_CHANGED,
            entity_type="budget",
            description=f"Budget method changed to {method}",
            details={"method": method},
        )

    @staticmethod
    def member_added(member_id: str, name: str, role: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.MEMBER_ADDED,
            entity_type="member",
            description=f"Member added: {name} ({role})",
            details={"member_id": member_id, "name": name, "role": role},
        )

    @staticmethod
    def member_removed(member_id: str, name: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.MEMBER_REMOVED,
            severity=AuditSeverity.WARNING,
            entity_type="member",
            description=f"Member removed: {name}",
            details={"member_id": member_id, "name": name},
        )

    @staticmethod
    def data_reset() -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DATA_RESET,
            severity=AuditSeverity.WARNING,
            description="All wallets, transactions, budgets and members were cleared",
        )

    @staticmethod
    def balance_mismatch(
        wallet_id: UUID,
        stored: str,
        recomputed: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BALANCE_MISMATCH,
            severity=AuditSeverity.ERROR,
            entity_type="wallet",
            entity_id=wallet_id,
            description="Stored balance disagrees with transaction history",
            details={"stored": stored, "recomputed": recomputed},
        )

    @staticmethod
    def storage_error(
        operation: str,
        error_message: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORAGE_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"Storage error during {operation}",
            error_message=error_message,
            details={"operation": operation},
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
        )
