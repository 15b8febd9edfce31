"""
Command-line Frontend for Finance Tracker

Thin shell over the DataManager command surface. Every data operation goes
through DataManager.invoke, exactly as a desktop client would call it, and
the result is printed as JSON.

Examples:
    python app/main.py init
    python app/main.py commands
    python app/main.py invoke getTransactions 2025-03
    python app/main.py invoke addTransaction '{"date": "2025-03-10", "description": "Mercado",
        "amount": 120.5, "type": "expense", "categoryId": "cat-1", "tagIds": []}'
    python app/main.py invoke depositToGoal <goalId> 100 '{"createExpenseTransaction": true,
        "expenseCategoryId": "cat-6"}'
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any, Optional

import structlog

from finance_tracker.audit import configure_logging
from finance_tracker.config import get_settings
from finance_tracker.orchestrator import DataManager, UnknownCommandError, create_data_manager, to_wire
from finance_tracker.services.storage import StorageError
from finance_tracker.validation import ValidationError


logger = structlog.get_logger(__name__)


def parse_argument(raw: str) -> Any:
    """Arguments are JSON when they parse as JSON, plain strings otherwise."""
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Personal finance data manager.")
    parser.add_argument("--data-root", type=Path, default=None,
                        help="Directory holding the data folder (overrides FINANCE_DATA_ROOT)")
    parser.add_argument("--no-migration", action="store_true",
                        help="Skip the legacy file import on startup")

    sub = parser.add_subparsers(dest="action", required=True)
    sub.add_parser("init", help="Create the data folder and import legacy files")
    sub.add_parser("commands", help="List the available command names")
    invoke = sub.add_parser("invoke", help="Run one named command")
    invoke.add_argument("command", help="Command name, e.g. getTransactions")
    invoke.add_argument("args", nargs="*", help="Positional arguments (JSON or plain strings)")
    return parser


def _create_manager(args: argparse.Namespace) -> DataManager:
    overrides: dict[str, Any] = {}
    if args.data_root is not None:
        overrides["root"] = args.data_root / get_settings().storage.base_dir_name
    if args.no_migration:
        overrides["run_migration"] = False
    return create_data_manager(**overrides)


async def run(args: argparse.Namespace) -> Any:
    if args.action == "commands":
        return sorted(DataManager.COMMANDS)

    manager = _create_manager(args)
    report = await manager.startup()
    if args.action == "init":
        return {"dataFolderPath": str(manager.data_folder_path), "migration": to_wire(report)}

    return await manager.invoke(args.command, *[parse_argument(raw) for raw in args.args])


def main(argv: Optional[list[str]] = None) -> int:
    configure_logging(get_settings().logging)
    args = build_parser().parse_args(argv)

    try:
        result = asyncio.run(run(args))
    except UnknownCommandError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2
    except ValidationError as e:
        print(f"Invalid input: {e}", file=sys.stderr)
        return 1
    except StorageError as e:
        logger.error("storage_failed", error=str(e))
        print(f"Storage error: {e}", file=sys.stderr)
        return 1

    print(json.dumps(result, indent=2, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
