"""
Recurring Obligations

Fixed bills and installment debts are plain CRUD collections, one document
each. They store templates only; expanding them into dated occurrences is
done by finance_tracker.queries.projection.
"""

from typing import Any, Generic, Mapping, Optional, TypeVar, Union

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from finance_tracker.ledgers.base import Ledger, find_index
from finance_tracker.models.audit import AuditEventBuilder, AuditEventType
from finance_tracker.models.finance import (
    FixedBill,
    FixedBillCreate,
    FixedBillPatch,
    InstallmentDebt,
    InstallmentDebtCreate,
    InstallmentDebtPatch,
    TransactionType,
)
from finance_tracker.validation import validate_input


FIXED_BILLS_DOCUMENT = "fixedBills.json"
INSTALLMENT_DEBTS_DOCUMENT = "installmentDebts.json"

EntityT = TypeVar("EntityT", bound=BaseModel)


class RecordBook(Ledger, Generic[EntityT]):
    """
    A list of entities in one document, addressed by id.

    Subclasses set the document name and the entity/create/patch models.
    """

    document: str
    entity_type: str
    entity_cls: type[BaseModel]
    create_cls: type[BaseModel]
    patch_cls: type[BaseModel]

    def _normalize(self, record: dict) -> dict:
        """Hook to upgrade records written by older versions."""
        return record

    async def _read(self) -> list[dict]:
        return [self._normalize(record) for record in await self._read_records(self.document)]

    async def _write(self, records: list[dict]) -> None:
        await self._store.write(self.document, records)

    async def list_all(self) -> list[EntityT]:
        entities = []
        for record in await self._read():
            try:
                entities.append(self.entity_cls.model_validate(record))
            except PydanticValidationError as e:
                self._logger.warning(
                    "record_skipped",
                    document=self.document,
                    record_id=record.get("id"),
                    errors=e.error_count(),
                )
        return entities

    async def get(self, entity_id: str) -> Optional[EntityT]:
        for entity in await self.list_all():
            if entity.id == entity_id:
                return entity
        return None

    async def add(self, fields: Union[BaseModel, Mapping[str, Any]]) -> EntityT:
        """
        Create an entity with a fresh id; tagIds defaults to [].

        Raises:
            ValidationError: If the fields are invalid
        """
        payload = validate_input(self.create_cls, fields)
        entity = self.entity_cls.model_validate({**payload.model_dump(), "id": self._new_id()})

        records = await self._read()
        records.append(entity.to_document())
        await self._write(records)

        await self._audit(AuditEventBuilder.obligation_changed(
            AuditEventType.OBLIGATION_ADDED, self.entity_type, entity.id,
        ))
        return entity

    async def update(
        self,
        entity_id: str,
        fields: Union[BaseModel, Mapping[str, Any]],
    ) -> Optional[EntityT]:
        """Merge `fields` into an entity; None if the id is unknown."""
        patch = validate_input(self.patch_cls, fields)
        changes = patch.model_dump(mode="json", by_alias=True, exclude_unset=True)

        records = await self._read()
        index = find_index(records, entity_id)
        if index is None:
            return None

        entity = validate_input(self.entity_cls, {**records[index], **changes, "id": entity_id})
        records[index] = entity.to_document()
        await self._write(records)

        await self._audit(AuditEventBuilder.obligation_changed(
            AuditEventType.OBLIGATION_UPDATED, self.entity_type, entity_id,
        ))
        return entity

    async def delete(self, entity_id: str) -> bool:
        """Remove an entity; False (and no write) if the id is unknown."""
        records = await self._read()
        index = find_index(records, entity_id)
        if index is None:
            return False
        del records[index]
        await self._write(records)

        await self._audit(AuditEventBuilder.obligation_changed(
            AuditEventType.OBLIGATION_DELETED, self.entity_type, entity_id,
        ))
        return True


class FixedBillBook(RecordBook[FixedBill]):
    """Monthly fixed bills (and fixed income such as a salary)."""

    document = FIXED_BILLS_DOCUMENT
    entity_type = "fixed_bill"
    entity_cls = FixedBill
    create_cls = FixedBillCreate
    patch_cls = FixedBillPatch

    def _normalize(self, record: dict) -> dict:
        # Bills saved before income support had no type
        record.setdefault("tagIds", [])
        if record.get("type") != TransactionType.INCOME.value:
            record["type"] = TransactionType.EXPENSE.value
        return record


class InstallmentDebtBook(RecordBook[InstallmentDebt]):
    """Purchases paid in a fixed number of monthly installments."""

    document = INSTALLMENT_DEBTS_DOCUMENT
    entity_type = "installment_debt"
    entity_cls = InstallmentDebt
    create_cls = InstallmentDebtCreate
    patch_cls = InstallmentDebtPatch

    def _normalize(self, record: dict) -> dict:
        record.setdefault("tagIds", [])
        return record
