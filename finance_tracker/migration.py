"""
Legacy Migration

Imports data written by the first, flat-file version of the app:

    transactions.json  -> one flat list, category stored by NAME
    goals.json         -> goals without a deposit history

Migrated records go through the normal ledger operations, so they get fresh
ids, month sharding and createdAt exactly like natively created data.
After a successful import the legacy file is renamed with a ".migrated"
suffix; the original name no longer existing is what makes the next
startup a no-op.

DESIGN DECISION: Migration is best-effort. Any failure is logged and
swallowed - startup must never be blocked by trouble with old files.

The legacy goals file has the same name as the current goals document.
It is only treated as legacy when no record carries a depositHistory, and
it is archived BEFORE the goals are re-added, so the re-added goals land
in a fresh goals.json.
"""

from typing import Optional

import structlog

from finance_tracker.audit import AuditLogger
from finance_tracker.ledgers import (
    GOALS_DOCUMENT,
    GoalLedger,
    SettingsStore,
    TransactionLedger,
)
from finance_tracker.models.audit import AuditEventBuilder
from finance_tracker.models.finance import MigrationReport
from finance_tracker.services.storage import DocumentStoreInterface
from finance_tracker.validation import ValidationError


logger = structlog.get_logger(__name__)

LEGACY_TRANSACTIONS_DOCUMENT = "transactions.json"
LEGACY_GOALS_DOCUMENT = GOALS_DOCUMENT
ARCHIVE_SUFFIX = ".migrated"
FALLBACK_CATEGORY_ID = "cat-1"


def is_legacy_goal_list(records: list) -> bool:
    """A non-empty goals list in which no record has a deposit history."""
    return bool(records) and all(
        isinstance(record, dict) and "depositHistory" not in record
        for record in records
    )


async def _migrate_transactions(
    store: DocumentStoreInterface,
    settings_store: SettingsStore,
    transactions: TransactionLedger,
    report: MigrationReport,
) -> None:
    if not await store.exists(LEGACY_TRANSACTIONS_DOCUMENT):
        return
    records = await store.read(LEGACY_TRANSACTIONS_DOCUMENT, [])
    if not records:
        return

    settings = await settings_store.get()
    name_to_id = {category.name: category.id for category in settings.categories}
    default_category_id = (
        settings.categories[0].id if settings.categories else FALLBACK_CATEGORY_ID
    )

    for record in records:
        if not isinstance(record, dict):
            report.transactions_skipped += 1
            continue
        category = record.get("category")
        category_id = (
            name_to_id.get(category, default_category_id)
            if isinstance(category, str)
            else default_category_id
        )
        try:
            await transactions.add({
                "date": record.get("date"),
                "description": record.get("description") or "",
                "amount": record.get("amount"),
                "type": record.get("type"),
                "category_id": category_id,
                "tag_ids": [],
            })
            report.transactions_imported += 1
        except (ValidationError, TypeError) as e:
            report.transactions_skipped += 1
            logger.warning(
                "legacy_transaction_skipped",
                legacy_id=record.get("id"),
                error=str(e),
            )

    await store.rename(
        LEGACY_TRANSACTIONS_DOCUMENT,
        LEGACY_TRANSACTIONS_DOCUMENT + ARCHIVE_SUFFIX,
    )


async def _migrate_goals(
    store: DocumentStoreInterface,
    goals: GoalLedger,
    report: MigrationReport,
) -> None:
    if not await store.exists(LEGACY_GOALS_DOCUMENT):
        return
    records = await store.read(LEGACY_GOALS_DOCUMENT, [])
    if not is_legacy_goal_list(records):
        return

    await store.rename(LEGACY_GOALS_DOCUMENT, LEGACY_GOALS_DOCUMENT + ARCHIVE_SUFFIX)

    for record in records:
        try:
            # Deposit provenance cannot be rebuilt; the balance is kept
            await goals.add({
                "name": record.get("name"),
                "target_amount": record.get("targetAmount"),
                "current_amount": record.get("currentAmount") or 0,
                "deadline": record.get("deadline") or "",
            })
            report.goals_imported += 1
        except (ValidationError, TypeError) as e:
            logger.warning(
                "legacy_goal_skipped",
                legacy_id=record.get("id"),
                error=str(e),
            )


async def migrate_if_needed(
    store: DocumentStoreInterface,
    settings_store: SettingsStore,
    transactions: TransactionLedger,
    goals: GoalLedger,
    audit_logger: Optional[AuditLogger] = None,
) -> MigrationReport:
    """
    Import legacy flat files, if any.

    The transaction and goal imports are independent: a failure in one
    does not stop the other.

    Returns:
        What was imported (all zeros when there was nothing to do)
    """
    report = MigrationReport()

    steps = (
        (LEGACY_TRANSACTIONS_DOCUMENT, _migrate_transactions(store, settings_store, transactions, report)),
        (LEGACY_GOALS_DOCUMENT, _migrate_goals(store, goals, report)),
    )
    for source, step in steps:
        try:
            await step
        except Exception as e:  # noqa: BLE001 - startup must not fail on legacy data
            logger.warning("legacy_import_failed", source=source, error=str(e))
            if audit_logger:
                await audit_logger.log(AuditEventBuilder.migration_failed(source, str(e)))

    if report.migrated:
        logger.info(
            "migration_completed",
            transactions=report.transactions_imported,
            goals=report.goals_imported,
        )
        if audit_logger:
            await audit_logger.log(AuditEventBuilder.migration_completed(
                transactions=report.transactions_imported,
                skipped=report.transactions_skipped,
                goals=report.goals_imported,
            ))
    return report
