"""
Tests for importing the legacy flat-file format.
"""

import pytest

from finance_tracker.migration import is_legacy_goal_list, migrate_if_needed
from finance_tracker.models.audit import AuditEventType
from finance_tracker.models.finance import Category, default_app_settings


LEGACY_TRANSACTIONS = [
    {"id": "1", "date": "2024-12-05T10:00:00.000Z", "description": "Uber",
     "amount": 25, "type": "expense", "category": "Transporte"},
    {"id": "2", "date": "2025-01-10", "description": "Salário",
     "amount": 4000, "type": "income", "category": "Salary"},
    {"id": "3", "date": "2025-01-11", "description": "Broken", "amount": -3,
     "type": "expense", "category": "Lazer"},
    "not a record",
]

LEGACY_GOALS = [
    {"id": "old-1", "name": "Reserva", "targetAmount": 10000, "currentAmount": 2500, "deadline": "2026-01-01"},
    {"id": "old-2", "name": "Sem alvo", "targetAmount": 0, "currentAmount": 0},
]


async def run_migration(store, settings_store, transactions, goals, audit_logger):
    return await migrate_if_needed(store, settings_store, transactions, goals, audit_logger)


class TestLegacyDetection:
    """Tests for telling old goal files from current ones."""

    def test_records_without_history_are_legacy(self):
        assert is_legacy_goal_list(LEGACY_GOALS)

    def test_records_with_history_are_current(self):
        assert not is_legacy_goal_list([{"id": "g", "depositHistory": []}])

    def test_empty_list_is_not_legacy(self):
        assert not is_legacy_goal_list([])


class TestTransactionMigration:
    """Tests for the legacy transactions.json import."""

    @pytest.mark.asyncio
    async def test_imports_and_archives(
        self, store, settings_store, transactions, goals, audit_logger,
    ):
        await store.write("transactions.json", LEGACY_TRANSACTIONS)

        report = await run_migration(store, settings_store, transactions, goals, audit_logger)

        assert report.transactions_imported == 2
        assert report.transactions_skipped == 2
        assert report.migrated
        assert not await store.exists("transactions.json")
        assert await store.exists("transactions.json.migrated")

        by_description = {t.description: t for t in await transactions.list_all()}
        assert by_description["Uber"].category_id == "cat-2"
        assert by_description["Uber"].month_key == "2024-12"
        # Unknown names fall back to the first category
        assert by_description["Salário"].category_id == "cat-1"
        assert by_description["Salário"].id != "2"
        assert await transactions.list_month_keys() == ["2025-01", "2024-12"]
        assert AuditEventType.MIGRATION_COMPLETED in audit_logger.types()

    @pytest.mark.asyncio
    async def test_uses_saved_categories(
        self, store, settings_store, transactions, goals, audit_logger,
    ):
        settings = default_app_settings()
        settings.categories = [Category(id="custom", name="Casa")]
        await settings_store.save(settings)
        await store.write("transactions.json", [
            {"date": "2025-01-10", "amount": 10, "type": "expense", "category": "Whatever"},
        ])

        await run_migration(store, settings_store, transactions, goals, audit_logger)

        assert (await transactions.list_all())[0].category_id == "custom"

    @pytest.mark.asyncio
    async def test_second_run_is_noop(
        self, store, settings_store, transactions, goals, audit_logger,
    ):
        await store.write("transactions.json", LEGACY_TRANSACTIONS)
        await run_migration(store, settings_store, transactions, goals, audit_logger)

        report = await run_migration(store, settings_store, transactions, goals, audit_logger)

        assert not report.migrated
        assert len(await transactions.list_all()) == 2

    @pytest.mark.asyncio
    async def test_non_text_category_falls_back_and_archives(
        self, store, settings_store, transactions, goals, audit_logger,
    ):
        await store.write("transactions.json", [
            {"date": "2025-01-10", "amount": 10, "type": "expense", "category": "Transporte"},
            {"date": "2025-01-11", "amount": 20, "type": "expense", "category": ["Lazer"]},
            {"date": "2025-01-12", "amount": 30, "type": "expense", "category": {"name": "Lazer"}},
        ])

        report = await run_migration(store, settings_store, transactions, goals, audit_logger)

        assert report.transactions_imported == 3
        assert await store.exists("transactions.json.migrated")
        by_amount = {t.amount: t.category_id for t in await transactions.list_all()}
        assert by_amount == {10: "cat-2", 20: "cat-1", 30: "cat-1"}

        again = await run_migration(store, settings_store, transactions, goals, audit_logger)

        assert again.transactions_imported == 0
        assert len(await transactions.list_all()) == 3

    @pytest.mark.asyncio
    async def test_nothing_to_migrate(
        self, store, settings_store, transactions, goals, audit_logger,
    ):
        report = await run_migration(store, settings_store, transactions, goals, audit_logger)
        assert report.transactions_imported == 0
        assert report.goals_imported == 0
        assert audit_logger.events == []


class TestGoalMigration:
    """Tests for the legacy goals.json import."""

    @pytest.mark.asyncio
    async def test_imports_legacy_goals(
        self, store, settings_store, transactions, goals, audit_logger,
    ):
        await store.write("goals.json", LEGACY_GOALS)

        report = await run_migration(store, settings_store, transactions, goals, audit_logger)

        assert report.goals_imported == 1
        assert await store.read("goals.json.migrated", []) == LEGACY_GOALS
        imported = await goals.list_all()
        assert len(imported) == 1
        assert imported[0].name == "Reserva"
        assert imported[0].current_amount == 2500
        assert imported[0].deposit_history == []
        assert imported[0].id != "old-1"

    @pytest.mark.asyncio
    async def test_current_goals_untouched(
        self, store, settings_store, transactions, goals, audit_logger,
    ):
        await goals.add({"name": "Carro", "targetAmount": 20000})

        report = await run_migration(store, settings_store, transactions, goals, audit_logger)

        assert report.goals_imported == 0
        assert not await store.exists("goals.json.migrated")
        assert [g.name for g in await goals.list_all()] == ["Carro"]


class TestFailureIsolation:
    """Migration problems never escape."""

    @pytest.mark.asyncio
    async def test_failed_transaction_step_does_not_stop_goals(
        self, store, settings_store, transactions, goals, audit_logger, monkeypatch,
    ):
        await store.write("transactions.json", LEGACY_TRANSACTIONS)
        await store.write("goals.json", LEGACY_GOALS)

        async def broken_get():
            raise OSError("settings unavailable")

        monkeypatch.setattr(settings_store, "get", broken_get)

        report = await run_migration(store, settings_store, transactions, goals, audit_logger)

        assert report.transactions_imported == 0
        assert report.goals_imported == 1
        assert await store.exists("transactions.json")
        assert AuditEventType.MIGRATION_FAILED in audit_logger.types()
