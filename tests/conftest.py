"""
Shared fixtures.

Every test gets its own data folder under tmp_path, a clock pinned to
2025-03-15 12:00 UTC and sequential ids ("id-1", "id-2", ...), so stored
documents are fully predictable.
"""

import itertools
from datetime import datetime, timezone

import pytest

from finance_tracker.audit import AuditLogger
from finance_tracker.ledgers import (
    FixedBillBook,
    GoalLedger,
    InstallmentDebtBook,
    PaidMarkerSet,
    SettingsStore,
    TransactionLedger,
)
from finance_tracker.orchestrator import DataManager
from finance_tracker.services.storage import JsonDocumentStore


FIXED_NOW = datetime(2025, 3, 15, 12, 0, tzinfo=timezone.utc)


class RecordingAuditLogger(AuditLogger):
    """Audit logger that also keeps the events for assertions."""

    def __init__(self):
        super().__init__("tests.audit")
        self.events = []

    async def log(self, event):
        self.events.append(event)
        return await super().log(event)

    def types(self):
        return [event.event_type for event in self.events]


@pytest.fixture
def clock():
    return lambda: FIXED_NOW


@pytest.fixture
def id_factory():
    counter = itertools.count(1)
    return lambda: f"id-{next(counter)}"


@pytest.fixture
def audit_logger():
    return RecordingAuditLogger()


@pytest.fixture
def data_root(tmp_path):
    return tmp_path / "finance-data"


@pytest.fixture
def store(data_root):
    return JsonDocumentStore(data_root)


@pytest.fixture
def ledger_args(audit_logger, clock, id_factory):
    return {"audit_logger": audit_logger, "clock": clock, "id_factory": id_factory}


@pytest.fixture
def transactions(store, ledger_args):
    return TransactionLedger(store, **ledger_args)


@pytest.fixture
def goals(store, transactions, ledger_args):
    return GoalLedger(store, transactions, **ledger_args)


@pytest.fixture
def fixed_bills(store, ledger_args):
    return FixedBillBook(store, **ledger_args)


@pytest.fixture
def installment_debts(store, ledger_args):
    return InstallmentDebtBook(store, **ledger_args)


@pytest.fixture
def paid_markers(store, ledger_args):
    return PaidMarkerSet(store, **ledger_args)


@pytest.fixture
def settings_store(store, ledger_args):
    return SettingsStore(store, **ledger_args)


@pytest.fixture
def manager(data_root, audit_logger, clock, id_factory):
    return DataManager(
        data_root,
        audit_logger=audit_logger,
        clock=clock,
        id_factory=id_factory,
    )


def expense(**overrides):
    """A valid expense payload in the camelCase wire format."""
    payload = {
        "date": "2025-03-10",
        "description": "Mercado",
        "amount": 120.5,
        "type": "expense",
        "categoryId": "cat-1",
        "tagIds": [],
    }
    payload.update(overrides)
    return payload
