"""
Audit Models for Finance Tracker

Every change to the data folder is described by an audit event.
This provides:
1. Traceability of who-changed-what between two app sessions
2. Debugging information when a document looks wrong
3. A record of one-off operations (migration, data reset)

DESIGN DECISION: Audit events are emitted to the structured log only.
They are never written into the data folder, so a broken log sink can
never corrupt user data.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Transactions
    TRANSACTION_ADDED = "transaction_added"
    TRANSACTION_UPDATED = "transaction_updated"
    TRANSACTION_MOVED = "transaction_moved"
    TRANSACTION_DELETED = "transaction_deleted"
    TRANSACTIONS_BULK_UPDATED = "transactions_bulk_updated"

    # Goals
    GOAL_ADDED = "goal_added"
    GOAL_UPDATED = "goal_updated"
    GOAL_DEPOSIT = "goal_deposit"
    GOAL_COMPLETED = "goal_completed"

    # Recurring obligations
    OBLIGATION_ADDED = "obligation_added"
    OBLIGATION_UPDATED = "obligation_updated"
    OBLIGATION_DELETED = "obligation_deleted"
    PAID_MARKERS_REPLACED = "paid_markers_replaced"

    # Settings
    SETTINGS_SAVED = "settings_saved"

    # Housekeeping
    MIGRATION_COMPLETED = "migration_completed"
    MIGRATION_FAILED = "migration_failed"
    DATA_RESET = "data_reset"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class AuditEvent(BaseModel):
    """
    A single audit event.

    Every mutating ledger operation creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=_utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType
    severity: AuditSeverity = Field(default=AuditSeverity.INFO)

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'transaction', 'goal', 'fixed_bill')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="Id of the entity this event relates to"
    )

    description: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.transaction_added(txn_id, "2025-01", 42.0)
        event = AuditEventBuilder.goal_deposit(goal_id, 100.0, txn_id)
    """

    @staticmethod
    def transaction_added(
        transaction_id: str,
        month: str,
        amount: float,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_ADDED,
            entity_type="transaction",
            entity_id=transaction_id,
            description=f"Transaction added to {month}",
            details={"month": month, "amount": amount},
        )

    @staticmethod
    def transaction_updated(
        transaction_id: str,
        old_month: str,
        new_month: str,
        fields: list[str],
    ) -> AuditEvent:
        moved = old_month != new_month
        return AuditEvent(
            event_type=(
                AuditEventType.TRANSACTION_MOVED
                if moved
                else AuditEventType.TRANSACTION_UPDATED
            ),
            entity_type="transaction",
            entity_id=transaction_id,
            description=(
                f"Transaction moved from {old_month} to {new_month}"
                if moved
                else f"Transaction updated in {old_month}"
            ),
            details={"old_month": old_month, "new_month": new_month, "fields": fields},
        )

    @staticmethod
    def transaction_deleted(transaction_id: str, month: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_DELETED,
            entity_type="transaction",
            entity_id=transaction_id,
            description=f"Transaction deleted from {month}",
            details={"month": month},
        )

    @staticmethod
    def transactions_bulk_updated(requested: int, updated: int) -> AuditEvent:
        partial = updated < requested
        return AuditEvent(
            event_type=AuditEventType.TRANSACTIONS_BULK_UPDATED,
            severity=AuditSeverity.WARNING if partial else AuditSeverity.INFO,
            entity_type="transaction",
            description=f"Bulk update applied to {updated} of {requested} transactions",
            details={"requested": requested, "updated": updated},
        )

    @staticmethod
    def goal_added(goal_id: str, name: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.GOAL_ADDED,
            entity_type="goal",
            entity_id=goal_id,
            description=f"Goal added: {name}",
            details={"name": name},
        )

    @staticmethod
    def goal_updated(goal_id: str, fields: list[str]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.GOAL_UPDATED,
            entity_type="goal",
            entity_id=goal_id,
            description="Goal updated",
            details={"fields": fields},
        )

    @staticmethod
    def goal_deposit(
        goal_id: str,
        amount: float,
        transaction_id: Optional[str],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.GOAL_DEPOSIT,
            entity_type="goal",
            entity_id=goal_id,
            description=f"Deposit of {amount} recorded",
            details={"amount": amount, "transaction_id": transaction_id},
        )

    @staticmethod
    def goal_completed(
        goal_id: str,
        amount: float,
        transaction_id: Optional[str],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.GOAL_COMPLETED,
            entity_type="goal",
            entity_id=goal_id,
            description="Goal marked as paid",
            details={"amount": amount, "transaction_id": transaction_id},
        )

    @staticmethod
    def obligation_changed(
        event_type: AuditEventType,
        entity_type: str,
        entity_id: str,
    ) -> AuditEvent:
        verb = event_type.value.rsplit("_", 1)[-1]
        return AuditEvent(
            event_type=event_type,
            entity_type=entity_type,
            entity_id=entity_id,
            description=f"{entity_type.replace('_', ' ').capitalize()} {verb}",
        )

    @staticmethod
    def paid_markers_replaced(count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PAID_MARKERS_REPLACED,
            entity_type="paid_markers",
            description=f"Paid markers replaced ({count} ids)",
            details={"count": count},
        )

    @staticmethod
    def settings_saved(categories: int, tags: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SETTINGS_SAVED,
            entity_type="settings",
            description="Settings saved",
            details={"categories": categories, "tags": tags},
        )

    @staticmethod
    def migration_completed(
        transactions: int,
        skipped: int,
        goals: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.MIGRATION_COMPLETED,
            description="Migration from old format completed",
            details={
                "transactions_imported": transactions,
                "transactions_skipped": skipped,
                "goals_imported": goals,
            },
        )

    @staticmethod
    def migration_failed(source: str, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.MIGRATION_FAILED,
            severity=AuditSeverity.WARNING,
            description=f"Legacy import skipped: {source}",
            error_message=error_message,
            details={"source": source},
        )

    @staticmethod
    def data_reset(documents_removed: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DATA_RESET,
            severity=AuditSeverity.WARNING,
            description="All data removed",
            details={"documents_removed": documents_removed},
        )
