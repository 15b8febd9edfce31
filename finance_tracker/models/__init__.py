"""
Data Models Package

This package contains all Pydantic models used by the data manager.
Every document in the data folder conforms to these schemas.
"""

from finance_tracker.models.finance import (
    AppSettings,
    BulkTransactionPatch,
    Category,
    DepositResult,
    FixedBill,
    FixedBillCreate,
    FixedBillPatch,
    FutureBillItem,
    Goal,
    GoalCreate,
    GoalDeposit,
    GoalPatch,
    InstallmentDebt,
    InstallmentDebtCreate,
    InstallmentDebtPatch,
    MigrationReport,
    MonthProjection,
    OccurrenceKind,
    Recurrence,
    Tag,
    Theme,
    Transaction,
    TransactionCreate,
    TransactionPatch,
    TransactionType,
    ValidationIssue,
    default_app_settings,
    month_key_of,
)
from finance_tracker.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Finance models
    "AppSettings",
    "BulkTransactionPatch",
    "Category",
    "DepositResult",
    "FixedBill",
    "FixedBillCreate",
    "FixedBillPatch",
    "FutureBillItem",
    "Goal",
    "GoalCreate",
    "GoalDeposit",
    "GoalPatch",
    "InstallmentDebt",
    "InstallmentDebtCreate",
    "InstallmentDebtPatch",
    "MigrationReport",
    "MonthProjection",
    "OccurrenceKind",
    "Recurrence",
    "Tag",
    "Theme",
    "Transaction",
    "TransactionCreate",
    "TransactionPatch",
    "TransactionType",
    "ValidationIssue",
    "default_app_settings",
    "month_key_of",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
