"""
Tests for the DataManager and its named command surface.
"""

import asyncio

import pytest

from conftest import expense
from finance_tracker.config import Settings
from finance_tracker.orchestrator import (
    DataManager,
    UnknownCommandError,
    create_data_manager,
)
from finance_tracker.services.storage import JsonDocumentStore
from finance_tracker.validation import ValidationError


class YieldingStore(JsonDocumentStore):
    """Gives other tasks a turn between reading a document and using it."""

    async def read(self, name, default):
        value = await super().read(name, default)
        await asyncio.sleep(0)
        return value


class TestLifecycle:
    """Tests for startup, reset and construction."""

    @pytest.mark.asyncio
    async def test_startup_creates_layout(self, manager, data_root):
        report = await manager.startup()

        assert (data_root / "data").is_dir()
        assert not report.migrated
        assert manager.data_folder_path == data_root

    @pytest.mark.asyncio
    async def test_startup_runs_migration(self, manager, store):
        await store.write("transactions.json", [
            {"date": "2025-01-10", "amount": 10, "type": "expense", "category": "Lazer"},
        ])

        report = await manager.startup()

        assert report.transactions_imported == 1
        assert (await manager.get_transactions())[0].category_id == "cat-5"

    @pytest.mark.asyncio
    async def test_startup_can_skip_migration(self, data_root, store):
        await store.write("transactions.json", [
            {"date": "2025-01-10", "amount": 10, "type": "expense", "category": "Lazer"},
        ])
        manager = DataManager(data_root, run_migration=False)

        await manager.startup()

        assert await store.exists("transactions.json")

    @pytest.mark.asyncio
    async def test_reset_all_data(self, manager, data_root):
        await manager.add_transaction(expense())
        await manager.add_goal({"name": "Viagem", "targetAmount": 100})

        removed = await manager.reset_all_data()

        assert removed == 2
        assert await manager.get_transactions() == []
        assert await manager.get_goals() == []
        assert (data_root / "data").is_dir()

    def test_create_data_manager_from_settings(self, tmp_path, monkeypatch):
        monkeypatch.setenv("FINANCE_DATA_ROOT", str(tmp_path))
        monkeypatch.setenv("FINANCE_BASE_DIR_NAME", "my-finances")

        manager = create_data_manager(Settings())

        assert manager.data_folder_path == tmp_path / "my-finances"

    def test_create_data_manager_overrides(self, tmp_path):
        manager = create_data_manager(Settings(), root=tmp_path / "elsewhere")
        assert manager.data_folder_path == tmp_path / "elsewhere"


class TestDirectMethods:
    """Tests for the read models exposed by the manager."""

    @pytest.mark.asyncio
    async def test_future_bills_start_at_current_month(self, manager):
        await manager.add_fixed_bill({"name": "Internet", "amount": 100, "categoryId": "cat-3", "dueDay": 15})

        items = await manager.get_future_bills(months_ahead=2)

        # Clock is pinned to March 2025
        assert [item.month_key for item in items] == ["2025-03", "2025-04"]

    @pytest.mark.asyncio
    async def test_projection_uses_paid_markers(self, manager):
        bill = await manager.add_fixed_bill({"name": "Internet", "amount": 100, "categoryId": "cat-3", "dueDay": 15})
        await manager.set_future_bills_paid([f"fixed-{bill.id}-2025-03"])

        projections = await manager.get_projection(months_ahead=2)

        assert [p.total_expenses for p in projections] == [0, 100]

    @pytest.mark.asyncio
    async def test_deposit_and_mark_as_paid(self, manager):
        goal = await manager.add_goal({"name": "Viagem", "targetAmount": 1000})

        deposit = await manager.deposit_to_goal(
            goal.id, 300, create_expense_transaction=True, expense_category_id="cat-6",
        )
        paid = await manager.mark_goal_as_paid(goal.id)

        assert deposit.goal.current_amount == 300
        assert paid.goal.is_completed
        assert len(await manager.get_transactions()) == 1


class TestInvoke:
    """Tests for the named command surface."""

    def test_every_command_maps_to_a_method(self):
        for command, method_name in DataManager.COMMANDS.items():
            assert callable(getattr(DataManager, method_name, None)), command

    @pytest.mark.asyncio
    async def test_unknown_command(self, manager):
        with pytest.raises(UnknownCommandError):
            await manager.invoke("dropDatabase")

    @pytest.mark.asyncio
    async def test_results_are_plain_camel_case_data(self, manager):
        added = await manager.invoke("addTransaction", expense())

        assert isinstance(added, dict)
        assert added["id"] == "id-1"
        assert added["categoryId"] == "cat-1"
        assert added["date"] == "2025-03-10"

        listed = await manager.invoke("getTransactions", "2025-03")
        assert [t["id"] for t in listed] == ["id-1"]
        assert await manager.invoke("getTransactionMonths") == ["2025-03"]

    @pytest.mark.asyncio
    async def test_goal_commands_take_option_objects(self, manager):
        goal = await manager.invoke("addGoal", {"name": "Viagem", "targetAmount": 1000})

        result = await manager.invoke(
            "depositToGoal", goal["id"], 250,
            {"createExpenseTransaction": True, "expenseCategoryId": "cat-6"},
        )
        assert result["goal"]["currentAmount"] == 250
        assert result["transaction"]["amount"] == 250

        paid = await manager.invoke("markGoalAsPaid", goal["id"], {})
        assert "completedAt" in paid["goal"]
        assert "transaction" not in paid

    @pytest.mark.asyncio
    async def test_soft_failures_and_not_found(self, manager):
        assert await manager.invoke("depositToGoal", "missing", 10) is None
        assert await manager.invoke("updateTransaction", "missing", {"amount": 1}) is None
        assert await manager.invoke("deleteFixedBill", "missing") is False

    @pytest.mark.asyncio
    async def test_validation_errors_propagate(self, manager):
        with pytest.raises(ValidationError):
            await manager.invoke("addTransaction", expense(amount=-1))

    @pytest.mark.asyncio
    async def test_data_folder_path_command(self, manager, data_root):
        assert await manager.invoke("getDataFolderPath") == str(data_root)

    @pytest.mark.asyncio
    async def test_concurrent_commands_lose_nothing(self, data_root, clock, id_factory):
        manager = DataManager(data_root, store=YieldingStore(data_root), clock=clock, id_factory=id_factory)

        await asyncio.gather(*[
            manager.invoke("addTransaction", expense(description=f"t{i}"))
            for i in range(20)
        ])

        listed = await manager.invoke("getTransactions")
        assert len(listed) == 20

    @pytest.mark.asyncio
    async def test_unserialized_writers_overwrite_each_other(self, data_root, clock, id_factory):
        manager = DataManager(data_root, store=YieldingStore(data_root), clock=clock, id_factory=id_factory)

        await asyncio.gather(*[
            manager.add_transaction(expense(description=f"t{i}"))
            for i in range(20)
        ])

        assert len(await manager.get_transactions()) < 20
