"""
Goal Ledger

Savings goals live in a single document, goals.json. Each goal carries an
append-only deposit log.

Linked writes (deposit -> expense transaction -> back-link) are done in two
explicit phases:

    phase 1: the deposit is saved with linkPending=true
    phase 2: the transaction is created, its id is written into the deposit
             and linkPending is cleared

If anything fails between the phases the goal document keeps the phase-1
shape: the money is counted, the link is visibly pending. Completion
(mark-as-paid) follows the same pattern with completionLinkPending.
"""

import math
from typing import Any, Mapping, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from finance_tracker.audit import AuditLogger
from finance_tracker.ledgers.base import Clock, IdFactory, Ledger, find_index
from finance_tracker.ledgers.transactions import TransactionLedger
from finance_tracker.models.audit import AuditEventBuilder
from finance_tracker.models.finance import (
    DepositResult,
    Goal,
    GoalCreate,
    GoalDeposit,
    GoalPatch,
    TransactionType,
)
from finance_tracker.services.storage import DocumentStoreInterface
from finance_tracker.validation import validate_input


GOALS_DOCUMENT = "goals.json"

DEPOSIT_DESCRIPTION = "Depósito para meta: {name}"
COMPLETION_DESCRIPTION = "Meta concluída: {name}"


class GoalLedger(Ledger):
    """Savings goals and their deposit history."""

    def __init__(
        self,
        store: DocumentStoreInterface,
        transactions: TransactionLedger,
        audit_logger: Optional[AuditLogger] = None,
        clock: Optional[Clock] = None,
        id_factory: Optional[IdFactory] = None,
    ):
        super().__init__(store, audit_logger, clock, id_factory)
        self._transactions = transactions

    async def _read(self) -> list[dict]:
        return await self._read_records(GOALS_DOCUMENT)

    async def _write(self, records: list[dict]) -> None:
        await self._store.write(GOALS_DOCUMENT, records)

    async def _load(self, goal_id: str) -> Optional[tuple[list[dict], int, Goal]]:
        records = await self._read()
        index = find_index(records, goal_id)
        if index is None:
            return None
        return records, index, validate_input(Goal, records[index])

    async def _save(self, goal: Goal) -> None:
        """Re-read the document and replace one goal in it."""
        records = await self._read()
        index = find_index(records, goal.id)
        if index is None:
            records.append(goal.to_document())
        else:
            records[index] = goal.to_document()
        await self._write(records)

    async def list_all(self) -> list[Goal]:
        """List goals; records without depositHistory read as an empty log."""
        goals = []
        for record in await self._read():
            try:
                goals.append(Goal.model_validate(record))
            except PydanticValidationError as e:
                self._logger.warning(
                    "goal_record_skipped",
                    record_id=record.get("id"),
                    errors=e.error_count(),
                )
        return goals

    async def get(self, goal_id: str) -> Optional[Goal]:
        loaded = await self._load(goal_id)
        return loaded[2] if loaded else None

    async def add(self, fields: Union[GoalCreate, Mapping[str, Any]]) -> Goal:
        """
        Create a goal with an empty deposit history.

        Raises:
            ValidationError: If targetAmount <= 0 or currentAmount < 0
        """
        payload = validate_input(GoalCreate, fields)
        goal = Goal.model_validate({
            **payload.model_dump(),
            "id": self._new_id(),
            "deposit_history": [],
        })

        records = await self._read()
        records.append(goal.to_document())
        await self._write(records)

        await self._audit(AuditEventBuilder.goal_added(goal.id, goal.name))
        return goal

    async def update(
        self,
        goal_id: str,
        fields: Union[GoalPatch, Mapping[str, Any]],
    ) -> Optional[Goal]:
        """
        Merge `fields` into a goal.

        Setting currentAmount here is an explicit override; it is not
        reconciled against the deposit log.
        """
        patch = validate_input(GoalPatch, fields)
        changes = patch.model_dump(mode="json", by_alias=True, exclude_unset=True)

        records = await self._read()
        index = find_index(records, goal_id)
        if index is None:
            return None

        goal = validate_input(Goal, {**records[index], **changes, "id": goal_id})
        records[index] = goal.to_document()
        await self._write(records)

        await self._audit(AuditEventBuilder.goal_updated(goal_id, sorted(changes)))
        return goal

    async def deposit(
        self,
        goal_id: str,
        amount: float,
        create_expense_transaction: bool = False,
        expense_category_id: Optional[str] = None,
    ) -> Optional[DepositResult]:
        """
        Add money to a goal.

        A non-positive or non-finite amount, or an unknown goal, is a soft
        failure: nothing is written and None is returned.

        When `create_expense_transaction` is set and a category is given,
        an expense transaction for the same amount is recorded and linked
        to the deposit (two-phase, see module docstring).

        Raises:
            StorageWriteError: If either phase could not be saved
        """
        if (
            isinstance(amount, bool)
            or not isinstance(amount, (int, float))
            or not math.isfinite(amount)
            or amount <= 0
        ):
            return None

        loaded = await self._load(goal_id)
        if loaded is None:
            return None
        records, index, goal = loaded

        link_requested = bool(create_expense_transaction and expense_category_id)
        today = self._today()
        deposit = GoalDeposit(
            date=today,
            amount=amount,
            link_pending=True if link_requested else None,
        )
        goal.current_amount = (goal.current_amount or 0) + amount
        goal.deposit_history.append(deposit)
        records[index] = goal.to_document()
        await self._write(records)

        transaction = None
        if link_requested:
            transaction = await self._transactions.add({
                "date": today,
                "description": DEPOSIT_DESCRIPTION.format(name=goal.name),
                "amount": amount,
                "type": TransactionType.EXPENSE,
                "category_id": expense_category_id,
                "tag_ids": [],
            })
            deposit.transaction_id = transaction.id
            deposit.link_pending = None
            await self._save(goal)

        await self._audit(AuditEventBuilder.goal_deposit(
            goal_id=goal.id,
            amount=amount,
            transaction_id=transaction.id if transaction else None,
        ))
        return DepositResult(goal=goal, transaction=transaction)

    async def mark_as_paid(
        self,
        goal_id: str,
        create_investment_transaction: bool = False,
        investment_category_id: Optional[str] = None,
    ) -> Optional[DepositResult]:
        """
        Mark a goal as completed.

        Optionally records one expense transaction for the full current
        amount in the given (investment) category, linked back to the goal
        with the same two-phase pattern as deposits. A goal that is already
        completed is returned unchanged.
        """
        loaded = await self._load(goal_id)
        if loaded is None:
            return None
        records, index, goal = loaded

        if goal.is_completed:
            return DepositResult(goal=goal)

        amount = goal.current_amount or 0
        link_requested = bool(
            create_investment_transaction and investment_category_id and amount > 0
        )
        goal.completed_at = self._now()
        if link_requested:
            goal.completion_link_pending = True
        records[index] = goal.to_document()
        await self._write(records)

        transaction = None
        if link_requested:
            transaction = await self._transactions.add({
                "date": self._today(),
                "description": COMPLETION_DESCRIPTION.format(name=goal.name),
                "amount": amount,
                "type": TransactionType.EXPENSE,
                "category_id": investment_category_id,
                "tag_ids": [],
            })
            goal.completion_transaction_id = transaction.id
            goal.completion_link_pending = None
            await self._save(goal)

        await self._audit(AuditEventBuilder.goal_completed(
            goal_id=goal.id,
            amount=amount,
            transaction_id=transaction.id if transaction else None,
        ))
        return DepositResult(goal=goal, transaction=transaction)
