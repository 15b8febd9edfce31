"""
Shared plumbing for the ledgers.

Every ledger owns one kind of document and talks to it only through the
document store. The clock and the id source are injected so that tests
(and the migration) can pin them.
"""

from datetime import date, datetime, timezone
from typing import Callable, Optional
from uuid import uuid4

import structlog

from finance_tracker.audit import AuditLogger
from finance_tracker.models.audit import AuditEvent
from finance_tracker.services.storage import DocumentStoreInterface


Clock = Callable[[], datetime]
IdFactory = Callable[[], str]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    """Random 128-bit id, rendered as a UUID4 string."""
    return str(uuid4())


def find_index(records: list[dict], record_id: str) -> Optional[int]:
    """Position of the record with `record_id`, or None."""
    for index, record in enumerate(records):
        if record.get("id") == record_id:
            return index
    return None


class Ledger:
    """Base class wiring a ledger to its store, clock, id source and audit log."""

    def __init__(
        self,
        store: DocumentStoreInterface,
        audit_logger: Optional[AuditLogger] = None,
        clock: Optional[Clock] = None,
        id_factory: Optional[IdFactory] = None,
    ):
        self._store = store
        self._audit_logger = audit_logger
        self._clock = clock or utc_now
        self._id_factory = id_factory or new_id
        self._logger = structlog.get_logger(type(self).__module__)

    def _now(self) -> datetime:
        return self._clock()

    def _today(self) -> date:
        return self._clock().date()

    def _new_id(self) -> str:
        return self._id_factory()

    async def _read_records(self, name: str) -> list[dict]:
        """Read a list document, dropping entries that are not objects."""
        raw = await self._store.read(name, [])
        records = [record for record in raw if isinstance(record, dict)]
        if len(records) != len(raw):
            self._logger.warning(
                "non_object_entries_dropped",
                document=name,
                dropped=len(raw) - len(records),
            )
        return records

    async def _audit(self, event: AuditEvent) -> None:
        if self._audit_logger:
            await self._audit_logger.log(event)
