"""
Ledgers Package

One ledger per kind of document. Ledgers are the only writers of the
data folder.
"""

from finance_tracker.ledgers.base import Ledger, new_id, utc_now
from finance_tracker.ledgers.goals import GOALS_DOCUMENT, GoalLedger
from finance_tracker.ledgers.obligations import (
    FIXED_BILLS_DOCUMENT,
    INSTALLMENT_DEBTS_DOCUMENT,
    FixedBillBook,
    InstallmentDebtBook,
    RecordBook,
)
from finance_tracker.ledgers.paid_markers import PAID_MARKERS_DOCUMENT, PaidMarkerSet
from finance_tracker.ledgers.settings_store import SETTINGS_DOCUMENT, SettingsStore
from finance_tracker.ledgers.transactions import (
    MONTH_FILE_RE,
    TransactionLedger,
    month_document,
)

__all__ = [
    "FIXED_BILLS_DOCUMENT",
    "GOALS_DOCUMENT",
    "INSTALLMENT_DEBTS_DOCUMENT",
    "MONTH_FILE_RE",
    "PAID_MARKERS_DOCUMENT",
    "SETTINGS_DOCUMENT",
    "FixedBillBook",
    "GoalLedger",
    "InstallmentDebtBook",
    "Ledger",
    "PaidMarkerSet",
    "RecordBook",
    "SettingsStore",
    "TransactionLedger",
    "month_document",
    "new_id",
    "utc_now",
]
