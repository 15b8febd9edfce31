"""
Main Orchestrator for Finance Tracker

This module ties together all the ledgers behind one context object,
the DataManager, and exposes them two ways:
1. Direct async methods (get_transactions, deposit_to_goal, ...)
2. A named command surface (invoke("depositToGoal", ...)) for a client
   boundary such as a desktop shell or the CLI

DESIGN DECISION: There is no module-level instance. A DataManager is built
explicitly (usually via create_data_manager) and passed to whoever needs
it, so tests can point one at a temporary folder with a pinned clock.

DESIGN DECISION: Direct calls are not locked. Calls made through invoke()
are serialized by one asyncio lock, which makes the command surface a
single-writer queue: one read-modify-write finishes before the next starts.
"""

import asyncio
from pathlib import Path
from typing import Any, Iterable, Mapping, Optional, Union

import structlog
from pydantic import BaseModel

from finance_tracker.audit import AuditLogger
from finance_tracker.config import Settings, get_settings
from finance_tracker.ledgers import (
    FixedBillBook,
    GoalLedger,
    InstallmentDebtBook,
    PaidMarkerSet,
    SettingsStore,
    TransactionLedger,
)
from finance_tracker.ledgers.base import Clock, IdFactory, utc_now
from finance_tracker.migration import migrate_if_needed
from finance_tracker.models.audit import AuditEventBuilder
from finance_tracker.models.finance import (
    AppSettings,
    DepositResult,
    FixedBill,
    FutureBillItem,
    Goal,
    InstallmentDebt,
    MigrationReport,
    MonthProjection,
    Transaction,
)
from finance_tracker.queries import (
    build_future_items,
    build_month_projections,
    current_month_key,
)
from finance_tracker.services.storage import DocumentStoreInterface, JsonDocumentStore


logger = structlog.get_logger(__name__)

DEFAULT_MONTHS_AHEAD = 12

Fields = Union[BaseModel, Mapping[str, Any]]


class UnknownCommandError(LookupError):
    """Raised when invoke() is given a command name that does not exist."""

    def __init__(self, command: str):
        self.command = command
        super().__init__(f"Unknown command: {command!r}")


def to_wire(value: Any) -> Any:
    """Convert a command result into plain JSON-compatible data (camelCase keys)."""
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True, exclude_none=True)
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, (list, tuple)):
        return [to_wire(item) for item in value]
    return value


class DataManager:
    """
    Owns the data folder and every ledger working on it.

    Usage:
        manager = create_data_manager()
        await manager.startup()
        await manager.add_transaction({...})
    """

    # Command name -> method name
    COMMANDS = {
        "getDataFolderPath": "get_data_folder_path",
        "resetAllData": "reset_all_data",
        "getSettings": "get_settings",
        "saveSettings": "save_settings",
        "getTransactions": "get_transactions",
        "getTransactionMonths": "get_transaction_months",
        "addTransaction": "add_transaction",
        "updateTransaction": "update_transaction",
        "updateTransactionsBulk": "update_transactions_bulk",
        "deleteTransaction": "delete_transaction",
        "getGoals": "get_goals",
        "addGoal": "add_goal",
        "updateGoal": "update_goal",
        "depositToGoal": "_deposit_to_goal_command",
        "markGoalAsPaid": "_mark_goal_as_paid_command",
        "getFixedBills": "get_fixed_bills",
        "addFixedBill": "add_fixed_bill",
        "updateFixedBill": "update_fixed_bill",
        "deleteFixedBill": "delete_fixed_bill",
        "getInstallmentDebts": "get_installment_debts",
        "addInstallmentDebt": "add_installment_debt",
        "updateInstallmentDebt": "update_installment_debt",
        "deleteInstallmentDebt": "delete_installment_debt",
        "getFutureBillsPaid": "get_future_bills_paid",
        "setFutureBillsPaid": "set_future_bills_paid",
        "getFutureBills": "get_future_bills",
        "getProjection": "get_projection",
    }

    def __init__(
        self,
        root: Path,
        store: Optional[DocumentStoreInterface] = None,
        audit_logger: Optional[AuditLogger] = None,
        clock: Optional[Clock] = None,
        id_factory: Optional[IdFactory] = None,
        run_migration: bool = True,
        json_indent: int = 2,
    ):
        self._store = store or JsonDocumentStore(Path(root), indent=json_indent)
        self._audit_logger = audit_logger or AuditLogger()
        self._clock = clock or utc_now
        self._run_migration = run_migration
        self._lock = asyncio.Lock()

        ledger_args = {
            "audit_logger": self._audit_logger,
            "clock": self._clock,
            "id_factory": id_factory,
        }
        self.settings_store = SettingsStore(self._store, **ledger_args)
        self.transactions = TransactionLedger(self._store, **ledger_args)
        self.goals = GoalLedger(self._store, self.transactions, **ledger_args)
        self.fixed_bills = FixedBillBook(self._store, **ledger_args)
        self.installment_debts = InstallmentDebtBook(self._store, **ledger_args)
        self.paid_markers = PaidMarkerSet(self._store, **ledger_args)

    # =========================================================================
    # Lifecycle and housekeeping
    # =========================================================================

    @property
    def data_folder_path(self) -> Path:
        return self._store.root

    async def get_data_folder_path(self) -> Path:
        return self.data_folder_path

    async def startup(self) -> MigrationReport:
        """Create the folder layout, then import legacy files if enabled."""
        await self._store.ensure_dirs()
        if not self._run_migration:
            return MigrationReport()
        return await migrate_if_needed(
            self._store,
            self.settings_store,
            self.transactions,
            self.goals,
            audit_logger=self._audit_logger,
        )

    async def reset_all_data(self) -> int:
        """
        Delete every document and recreate the empty folder layout.

        Returns:
            Number of files removed
        """
        removed = await self._store.clear()
        logger.warning("data_reset", root=str(self.data_folder_path), removed=removed)
        await self._audit_logger.log(AuditEventBuilder.data_reset(removed))
        return removed

    # =========================================================================
    # Settings
    # =========================================================================

    async def get_settings(self) -> AppSettings:
        return await self.settings_store.get()

    async def save_settings(self, settings: Fields) -> AppSettings:
        return await self.settings_store.save(settings)

    # =========================================================================
    # Transactions
    # =========================================================================

    async def get_transactions(self, month: Optional[str] = None) -> list[Transaction]:
        return await self.transactions.list_all(month)

    async def get_transaction_months(self) -> list[str]:
        return await self.transactions.list_month_keys()

    async def add_transaction(self, fields: Fields) -> Transaction:
        return await self.transactions.add(fields)

    async def update_transaction(self, transaction_id: str, fields: Fields) -> Optional[Transaction]:
        return await self.transactions.update(transaction_id, fields)

    async def update_transactions_bulk(self, transaction_ids: Iterable[str], fields: Fields) -> int:
        return await self.transactions.update_bulk(transaction_ids, fields)

    async def delete_transaction(self, transaction_id: str) -> bool:
        return await self.transactions.delete(transaction_id)

    # =========================================================================
    # Goals
    # =========================================================================

    async def get_goals(self) -> list[Goal]:
        return await self.goals.list_all()

    async def add_goal(self, fields: Fields) -> Goal:
        return await self.goals.add(fields)

    async def update_goal(self, goal_id: str, fields: Fields) -> Optional[Goal]:
        return await self.goals.update(goal_id, fields)

    async def deposit_to_goal(
        self,
        goal_id: str,
        amount: float,
        create_expense_transaction: bool = False,
        expense_category_id: Optional[str] = None,
    ) -> Optional[DepositResult]:
        return await self.goals.deposit(
            goal_id,
            amount,
            create_expense_transaction=create_expense_transaction,
            expense_category_id=expense_category_id,
        )

    async def mark_goal_as_paid(
        self,
        goal_id: str,
        create_investment_transaction: bool = False,
        investment_category_id: Optional[str] = None,
    ) -> Optional[DepositResult]:
        return await self.goals.mark_as_paid(
            goal_id,
            create_investment_transaction=create_investment_transaction,
            investment_category_id=investment_category_id,
        )

    async def _deposit_to_goal_command(
        self,
        goal_id: str,
        amount: float,
        options: Optional[Mapping[str, Any]] = None,
    ) -> Optional[DepositResult]:
        options = options or {}
        return await self.deposit_to_goal(
            goal_id,
            amount,
            create_expense_transaction=bool(options.get("createExpenseTransaction")),
            expense_category_id=options.get("expenseCategoryId"),
        )

    async def _mark_goal_as_paid_command(
        self,
        goal_id: str,
        options: Optional[Mapping[str, Any]] = None,
    ) -> Optional[DepositResult]:
        options = options or {}
        return await self.mark_goal_as_paid(
            goal_id,
            create_investment_transaction=bool(options.get("createInvestmentTransaction")),
            investment_category_id=options.get("investmentCategoryId"),
        )

    # =========================================================================
    # Fixed bills and installment debts
    # =========================================================================

    async def get_fixed_bills(self) -> list[FixedBill]:
        return await self.fixed_bills.list_all()

    async def add_fixed_bill(self, fields: Fields) -> FixedBill:
        return await self.fixed_bills.add(fields)

    async def update_fixed_bill(self, bill_id: str, fields: Fields) -> Optional[FixedBill]:
        return await self.fixed_bills.update(bill_id, fields)

    async def delete_fixed_bill(self, bill_id: str) -> bool:
        return await self.fixed_bills.delete(bill_id)

    async def get_installment_debts(self) -> list[InstallmentDebt]:
        return await self.installment_debts.list_all()

    async def add_installment_debt(self, fields: Fields) -> InstallmentDebt:
        return await self.installment_debts.add(fields)

    async def update_installment_debt(self, debt_id: str, fields: Fields) -> Optional[InstallmentDebt]:
        return await self.installment_debts.update(debt_id, fields)

    async def delete_installment_debt(self, debt_id: str) -> bool:
        return await self.installment_debts.delete(debt_id)

    # =========================================================================
    # Paid markers and projection
    # =========================================================================

    async def get_future_bills_paid(self) -> list[str]:
        return await self.paid_markers.list_all()

    async def set_future_bills_paid(self, ids: Iterable[str]) -> list[str]:
        return await self.paid_markers.set_all(ids)

    def _start_month(self) -> str:
        return current_month_key(self._clock().date())

    async def get_future_bills(self, months_ahead: int = DEFAULT_MONTHS_AHEAD) -> list[FutureBillItem]:
        """Upcoming bill occurrences from the current month on."""
        return build_future_items(
            await self.fixed_bills.list_all(),
            await self.installment_debts.list_all(),
            months_ahead,
            self._start_month(),
        )

    async def get_projection(self, months_ahead: int = DEFAULT_MONTHS_AHEAD) -> list[MonthProjection]:
        """Expected income and unpaid expenses per month."""
        return build_month_projections(
            await self.fixed_bills.list_all(),
            await self.installment_debts.list_all(),
            months_ahead,
            await self.paid_markers.list_all(),
            self._start_month(),
        )

    # =========================================================================
    # Command surface
    # =========================================================================

    async def invoke(self, command: str, *args: Any, **kwargs: Any) -> Any:
        """
        Run a named command and return its result as plain JSON data.

        Raises:
            UnknownCommandError: If no command has that name
            ValidationError: If the arguments are invalid
            StorageWriteError: If a document could not be saved
        """
        method_name = self.COMMANDS.get(command)
        if method_name is None:
            raise UnknownCommandError(command)
        method = getattr(self, method_name)

        async with self._lock:
            logger.debug("command_invoked", command=command)
            result = await method(*args, **kwargs)
        return to_wire(result)


def create_data_manager(settings: Optional[Settings] = None, **overrides: Any) -> DataManager:
    """
    Build a DataManager from configuration.

    Keyword overrides are passed straight to DataManager (e.g. root, clock,
    id_factory).
    """
    storage = (settings or get_settings()).storage
    options = {
        "root": storage.base_dir,
        "run_migration": storage.run_migration,
        "json_indent": storage.json_indent,
    }
    options.update(overrides)
    return DataManager(**options)
