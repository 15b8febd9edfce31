"""
Transaction Ledger

Transactions are sharded into one document per calendar month:

    data/2025-01.json -> every transaction dated January 2025

DESIGN DECISION: No in-memory cache. Every operation re-reads the
documents it touches, fresh, right before changing them. Slower, but a
household's transactions are small and the files on disk are always the
source of truth.

Records are kept as raw dicts while a document is being rewritten, so a
record this version cannot parse is carried over untouched instead of
being dropped. Only the records handed back to callers are validated.
"""

import re
from typing import Any, Iterable, Mapping, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from finance_tracker.ledgers.base import Ledger, find_index
from finance_tracker.models.audit import AuditEventBuilder
from finance_tracker.models.finance import (
    BulkTransactionPatch,
    Transaction,
    TransactionCreate,
    TransactionPatch,
)
from finance_tracker.services.storage import DATA_FOLDER
from finance_tracker.validation import ValidationError, validate_input, validate_month_key


MONTH_FILE_RE = re.compile(r"^\d{4}-\d{2}\.json$")


def month_document(month: str) -> str:
    return f"{DATA_FOLDER}/{month}.json"


def _sort_records(records: list[dict]) -> None:
    # ISO dates sort lexicographically; stable for equal dates
    records.sort(key=lambda record: str(record.get("date", "")), reverse=True)


class TransactionLedger(Ledger):
    """
    Month-sharded transaction storage.

    Invariant: a transaction is stored in exactly one document, the one
    whose month key matches its date.
    """

    def _parse(self, records: Iterable[dict], month: str) -> list[Transaction]:
        """Validate stored records, skipping (and logging) the broken ones."""
        transactions = []
        for record in records:
            try:
                transactions.append(Transaction.model_validate(record))
            except PydanticValidationError as e:
                self._logger.warning(
                    "transaction_record_skipped",
                    month=month,
                    record_id=record.get("id"),
                    errors=e.error_count(),
                )
        return transactions

    async def _read_month(self, month: str) -> list[dict]:
        return await self._read_records(month_document(month))

    async def _write_month(self, month: str, records: list[dict]) -> None:
        _sort_records(records)
        await self._store.write(month_document(month), records)

    async def list_month_keys(self) -> list[str]:
        """
        Months that have a transaction document, newest first.

        Derived from file names only.
        """
        names = await self._store.list_documents(DATA_FOLDER, MONTH_FILE_RE)
        return sorted((name[: -len(".json")] for name in names), reverse=True)

    async def list_all(self, month: Optional[str] = None) -> list[Transaction]:
        """
        List transactions, most recent first.

        Args:
            month: Optional YYYY-MM filter. Without it every month is loaded.

        Raises:
            ValidationError: If `month` is not a YYYY-MM key
        """
        if month is not None:
            validate_month_key(month)
            months = [month]
        else:
            months = await self.list_month_keys()

        transactions: list[Transaction] = []
        for key in months:
            transactions.extend(self._parse(await self._read_month(key), key))
        transactions.sort(key=lambda t: t.date, reverse=True)
        return transactions

    async def _locate(self, transaction_id: str) -> Optional[tuple[str, list[dict], int]]:
        """Scan every month document for an id."""
        for month in await self.list_month_keys():
            records = await self._read_month(month)
            index = find_index(records, transaction_id)
            if index is not None:
                return month, records, index
        return None

    async def get(self, transaction_id: str) -> Optional[Transaction]:
        located = await self._locate(transaction_id)
        if located is None:
            return None
        month, records, index = located
        parsed = self._parse([records[index]], month)
        return parsed[0] if parsed else None

    async def add(self, fields: Union[TransactionCreate, Mapping[str, Any]]) -> Transaction:
        """
        Record a new transaction.

        Assigns a fresh id, stamps createdAt and appends it to the month
        document of its date.

        Raises:
            ValidationError: If the fields are invalid (e.g. amount <= 0)
            StorageWriteError: If the month document could not be saved
        """
        payload = validate_input(TransactionCreate, fields)
        transaction = Transaction.model_validate({
            **payload.model_dump(),
            "id": self._new_id(),
            "created_at": self._now(),
        })

        month = transaction.month_key
        records = await self._read_month(month)
        records.append(transaction.to_document())
        await self._write_month(month, records)

        await self._audit(AuditEventBuilder.transaction_added(
            transaction_id=transaction.id,
            month=month,
            amount=transaction.amount,
        ))
        return transaction

    async def update(
        self,
        transaction_id: str,
        fields: Union[TransactionPatch, Mapping[str, Any]],
    ) -> Optional[Transaction]:
        """
        Merge `fields` into an existing transaction.

        If the new date falls in another month the record is moved: it is
        written to the new month document first and removed from the old
        one second, so a crash in between duplicates rather than loses it.

        Returns:
            The updated transaction, or None if no transaction has that id

        Raises:
            ValidationError: If the fields or the merged record are invalid
        """
        patch = validate_input(TransactionPatch, fields)
        changes = patch.model_dump(mode="json", by_alias=True, exclude_unset=True)

        located = await self._locate(transaction_id)
        if located is None:
            return None
        old_month, records, index = located

        updated = validate_input(Transaction, {**records[index], **changes, "id": transaction_id})
        new_month = updated.month_key

        if new_month == old_month:
            records[index] = updated.to_document()
            await self._write_month(old_month, records)
        else:
            target = await self._read_month(new_month)
            target.append(updated.to_document())
            await self._write_month(new_month, target)
            del records[index]
            await self._write_month(old_month, records)

        await self._audit(AuditEventBuilder.transaction_updated(
            transaction_id=transaction_id,
            old_month=old_month,
            new_month=new_month,
            fields=sorted(changes),
        ))
        return updated

    async def update_bulk(
        self,
        transaction_ids: Iterable[str],
        fields: Union[BulkTransactionPatch, Mapping[str, Any]],
    ) -> int:
        """
        Apply a category/tags change to many transactions.

        NOT atomic: each id is updated on its own and nothing is rolled
        back. Unknown ids and records that fail validation are skipped.

        Returns:
            Number of transactions actually updated
        """
        patch = validate_input(BulkTransactionPatch, fields)
        changes = patch.model_dump(exclude_unset=True, exclude_none=True)

        requested = 0
        count = 0
        for transaction_id in transaction_ids:
            requested += 1
            try:
                if await self.update(transaction_id, changes) is not None:
                    count += 1
            except ValidationError as e:
                self._logger.warning(
                    "bulk_update_skipped",
                    transaction_id=transaction_id,
                    error=str(e),
                )

        await self._audit(AuditEventBuilder.transactions_bulk_updated(requested, count))
        return count

    async def delete(self, transaction_id: str) -> bool:
        """
        Delete a transaction wherever it is stored.

        Returns:
            False (and writes nothing) if no transaction has that id
        """
        located = await self._locate(transaction_id)
        if located is None:
            return False
        month, records, index = located
        del records[index]
        await self._write_month(month, records)

        await self._audit(AuditEventBuilder.transaction_deleted(transaction_id, month))
        return True
