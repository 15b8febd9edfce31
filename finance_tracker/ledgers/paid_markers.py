"""
Paid-Marker Set

Ids of projected bill occurrences the user confirmed as paid, e.g.
"fixed-<billId>-2025-03" or "installment-<debtId>-2". The set is read and
replaced wholesale; toggling one id is a read-modify-write done by the
caller (see queries.projection.toggle_paid_marker).
"""

from typing import Iterable

from finance_tracker.ledgers.base import Ledger
from finance_tracker.models.audit import AuditEventBuilder
from finance_tracker.validation import validate_marker_ids


PAID_MARKERS_DOCUMENT = "futureBillsPaid.json"


class PaidMarkerSet(Ledger):

    async def list_all(self) -> list[str]:
        raw = await self._store.read(PAID_MARKERS_DOCUMENT, [])
        return [item for item in raw if isinstance(item, str)]

    async def set_all(self, ids: Iterable[str]) -> list[str]:
        """
        Replace the whole set.

        Raises:
            ValidationError: If an id is not a non-empty string
        """
        markers = validate_marker_ids(ids)
        await self._store.write(PAID_MARKERS_DOCUMENT, markers)
        await self._audit(AuditEventBuilder.paid_markers_replaced(len(markers)))
        return markers
