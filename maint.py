#!/usr/bin/env python3
"""
Unified CLI for motorcycle maintenance tracking.

Commands:
  status       - Show what maintenance is ok, due, or overdue
  history      - View work history
  log          - Add a new work entry
  edit         - Edit a work entry
  delete       - Delete a work entry
  items        - List the maintenance schedule
  add-item     - Add a custom maintenance item
  update-item  - Edit a maintenance item
  delete-item  - Delete a custom maintenance item
  update-miles - Update current mileage
  export       - Write a JSON backup
  import       - Replace all data from a JSON backup
"""

import argparse
import asyncio
import logging
import sys
from dataclasses import replace
from datetime import date
from enum import Enum
from pathlib import Path
from typing import List, Optional, Tuple, assert_never

from tabulate import tabulate

from motolog import (
    LegacyFlatStore,
    MaintenanceItem,
    MaintenanceStatus,
    RecordStore,
    Result,
    Status,
    Tracker,
    WorkRecord,
    load_config,
)
from motolog.exchange import backup_filename

# =============================================================================
# Formatting helpers
# =============================================================================


def format_miles(miles: Optional[float]) -> str:
    """Format mileage for display."""
    return f"{miles:,.0f}" if miles is not None else "-"


def format_next_due(svc: MaintenanceStatus) -> str:
    """Next due point: a mileage, or a time description."""
    if svc.next_due is None:
        return "-"
    if isinstance(svc.next_due, str):
        return svc.next_due
    return format_miles(svc.next_due)


def truncate(text: Optional[str], max_len: int = 30) -> str:
    """Truncate text with ellipsis if too long."""
    if not text:
        return "-"
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."


def report_failure(result: Result) -> int:
    """Print a failed Result without a traceback."""
    print(f"Error: {result.message}")
    if result.error is not None:
        print(f"  {result.error_kind}: {result.error}")
    return 1


# =============================================================================
# Tables
# =============================================================================


def make_status_table(
    statuses: List[Tuple[MaintenanceItem, MaintenanceStatus]],
) -> List[List[str]]:
    """Convert item statuses to table rows."""
    rows = []
    for item, svc in statuses:
        rows.append(
            [
                item.name,
                item.interval_text,
                format_miles(svc.last_mileage),
                format_next_due(svc),
                svc.message,
            ]
        )
    return rows


def make_history_table(entries: List[WorkRecord], tracker: Tracker) -> List[List[str]]:
    """Convert work entries to table rows."""
    rows = []
    for work in entries:
        rows.append(
            [
                work.id,
                work.date,
                format_miles(work.mileage),
                tracker.item_name(work.type),
                truncate(work.description),
            ]
        )
    return rows


# =============================================================================
# Commands
# =============================================================================


STATUS_TITLES = {
    Status.OVERDUE: "OVERDUE",
    Status.DUE: "DUE SOON",
    Status.OK: "OK",
}


class Command(Enum):
    STATUS = "status"
    HISTORY = "history"
    LOG = "log"
    EDIT = "edit"
    DELETE = "delete"
    ITEMS = "items"
    ADD_ITEM = "add-item"
    UPDATE_ITEM = "update-item"
    DELETE_ITEM = "delete-item"
    UPDATE_MILES = "update-miles"
    EXPORT = "export"
    IMPORT = "import"


async def cmd_status(tracker: Tracker, args) -> int:
    """Show what maintenance is ok, due, or overdue."""
    print(f"Current mileage: {format_miles(tracker.current_mileage)}")
    print(f"Schedule items: {len(tracker.maintenance_schedule)}")
    print(f"History entries: {len(tracker.work_history)}")
    print()

    if not tracker.current_mileage:
        print("Please set your current mileage to see maintenance status.")
        return 0

    statuses = tracker.all_statuses()
    headers = ["Item", "Interval", "Last (mi)", "Next Due", "Status"]
    for status in sorted(Status, key=lambda s: s.rank):
        group = [(item, svc) for item, svc in statuses if svc.status == status]
        if group:
            print(f"{STATUS_TITLES[status]}:")
            print(tabulate(make_status_table(group), headers=headers, tablefmt="simple"))
            print()
    attention = sum(1 for _, svc in statuses if svc.is_due)
    print(f"{attention} item(s) need attention.")
    return 0


async def cmd_history(tracker: Tracker, args) -> int:
    """View work history, most recent first."""
    entries = tracker.work_history
    if args.type:
        entries = [w for w in entries if w.type == args.type]

    print(f"Total entries: {len(tracker.work_history)}")
    if args.type:
        print(f"Showing: {len(entries)} (filtered)")
    print()

    if not entries:
        print("No work history recorded yet.")
        return 0

    headers = ["ID", "Date", "Mileage", "Type", "Description"]
    print(tabulate(make_history_table(entries, tracker), headers=headers, tablefmt="simple"))
    return 0


async def cmd_log(tracker: Tracker, args) -> int:
    """Add a new work entry."""
    result = await tracker.add_work(
        args.date or date.today().isoformat(),
        args.mileage,
        args.type,
        args.description or "",
    )
    if not result:
        return report_failure(result)
    print(f"Entry saved (id {result.value}).")
    return 0


async def cmd_edit(tracker: Tracker, args) -> int:
    """Edit a work entry."""
    result = await tracker.update_work(
        args.id,
        date=args.date,
        mileage=args.mileage,
        type=args.type,
        description=args.description,
    )
    if not result:
        return report_failure(result)
    print("Entry updated.")
    return 0


async def cmd_delete(tracker: Tracker, args) -> int:
    """Delete a work entry."""
    result = await tracker.delete_work(args.id)
    if not result:
        return report_failure(result)
    print("Entry deleted.")
    return 0


async def cmd_items(tracker: Tracker, args) -> int:
    """List the maintenance schedule."""
    rows = [
        [item.id, item.name, item.interval_text, "custom" if item.is_custom else "built-in"]
        for item in tracker.maintenance_schedule
    ]
    if not rows:
        print("No maintenance items configured.")
        return 0
    print(tabulate(rows, headers=["ID", "Name", "Interval", "Kind"], tablefmt="simple"))
    return 0


async def cmd_add_item(tracker: Tracker, args) -> int:
    """Add a custom maintenance item."""
    result = await tracker.add_item(
        args.name, args.description or "", args.interval_miles, args.interval_months
    )
    if not result:
        return report_failure(result)
    print(f"Maintenance item added (id {result.value}).")
    return 0


async def cmd_update_item(tracker: Tracker, args) -> int:
    """Edit a maintenance item."""
    changes = {}
    if args.interval_miles is not None:
        changes["interval_miles"] = args.interval_miles or None
    if args.interval_months is not None:
        changes["interval_months"] = args.interval_months or None
    result = await tracker.update_item(
        args.id, name=args.name, description=args.description, **changes
    )
    if not result:
        return report_failure(result)
    print("Maintenance item updated.")
    return 0


async def cmd_delete_item(tracker: Tracker, args) -> int:
    """Delete a custom maintenance item."""
    result = await tracker.delete_item(args.id)
    if not result:
        return report_failure(result)
    print("Maintenance item deleted.")
    return 0


async def cmd_update_miles(tracker: Tracker, args) -> int:
    """Update current mileage."""
    print(f"Current mileage: {format_miles(tracker.current_mileage)}")
    print(f"New mileage:     {format_miles(args.mileage)}")
    result = await tracker.set_mileage(args.mileage)
    if not result:
        return report_failure(result)
    print("Mileage updated.")
    return 0


async def cmd_export(tracker: Tracker, args) -> int:
    """Write a JSON backup."""
    result = tracker.export_data()
    if not result:
        return report_failure(result)
    if args.output == "-":
        print(result.value)
        return 0
    path = Path(args.output or backup_filename())
    path.write_text(result.value, encoding="utf-8")
    print(f"Exported to {path}")
    return 0


async def cmd_import(tracker: Tracker, args) -> int:
    """Replace all data from a JSON backup."""
    text = args.file.read_text(encoding="utf-8")
    if not args.yes:
        answer = input("This will replace all current data. Are you sure? [y/N] ")
        if answer.strip().lower() not in ("y", "yes"):
            print("Import cancelled.")
            return 0
    result = await tracker.import_data(text)
    if not result:
        return report_failure(result)
    print(f"Imported {result.value} work entries.")
    return 0


async def dispatch(command: Command, tracker: Tracker, args) -> int:
    match command:
        case Command.STATUS:
            return await cmd_status(tracker, args)
        case Command.HISTORY:
            return await cmd_history(tracker, args)
        case Command.LOG:
            return await cmd_log(tracker, args)
        case Command.EDIT:
            return await cmd_edit(tracker, args)
        case Command.DELETE:
            return await cmd_delete(tracker, args)
        case Command.ITEMS:
            return await cmd_items(tracker, args)
        case Command.ADD_ITEM:
            return await cmd_add_item(tracker, args)
        case Command.UPDATE_ITEM:
            return await cmd_update_item(tracker, args)
        case Command.DELETE_ITEM:
            return await cmd_delete_item(tracker, args)
        case Command.UPDATE_MILES:
            return await cmd_update_miles(tracker, args)
        case Command.EXPORT:
            return await cmd_export(tracker, args)
        case Command.IMPORT:
            return await cmd_import(tracker, args)
        case _:
            assert_never(command)


# =============================================================================
# Main
# =============================================================================


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Motorcycle maintenance tracker",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s status
  %(prog)s update-miles 32300
  %(prog)s log oil-change 28500 --date 2025-03-01 --description "Rotella T6"
  %(prog)s history --type oil-change
  %(prog)s add-item "Chain Adjustment" --interval-miles 1000
  %(prog)s export -o backup.json
  %(prog)s import backup.json --yes
""",
    )
    parser.add_argument("--config", type=Path, help="Path to YAML config file")
    parser.add_argument("--data-dir", type=Path, help="Directory holding the data files")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser(Command.STATUS.value, help="Show what maintenance is due")

    history_parser = subparsers.add_parser(Command.HISTORY.value, help="View work history")
    history_parser.add_argument("--type", type=str, help="Only show entries of this item id")

    log_parser = subparsers.add_parser(Command.LOG.value, help="Add a new work entry")
    log_parser.add_argument("type", type=str, help="Maintenance item id (e.g., 'oil-change')")
    log_parser.add_argument("mileage", type=int, help="Mileage at time of work")
    log_parser.add_argument("--date", type=str, help="Work date YYYY-MM-DD (default: today)")
    log_parser.add_argument("--description", type=str, help="What was done")

    edit_parser = subparsers.add_parser(Command.EDIT.value, help="Edit a work entry")
    edit_parser.add_argument("id", type=int, help="Work entry id")
    edit_parser.add_argument("--type", type=str)
    edit_parser.add_argument("--mileage", type=int)
    edit_parser.add_argument("--date", type=str)
    edit_parser.add_argument("--description", type=str)

    delete_parser = subparsers.add_parser(Command.DELETE.value, help="Delete a work entry")
    delete_parser.add_argument("id", type=int, help="Work entry id")

    subparsers.add_parser(Command.ITEMS.value, help="List the maintenance schedule")

    add_item_parser = subparsers.add_parser(
        Command.ADD_ITEM.value, help="Add a custom maintenance item"
    )
    add_item_parser.add_argument("name", type=str)
    add_item_parser.add_argument("--description", type=str)
    add_item_parser.add_argument("--interval-miles", type=int)
    add_item_parser.add_argument("--interval-months", type=int)

    update_item_parser = subparsers.add_parser(
        Command.UPDATE_ITEM.value, help="Edit a maintenance item (0 clears an interval)"
    )
    update_item_parser.add_argument("id", type=str)
    update_item_parser.add_argument("--name", type=str)
    update_item_parser.add_argument("--description", type=str)
    update_item_parser.add_argument("--interval-miles", type=int)
    update_item_parser.add_argument("--interval-months", type=int)

    delete_item_parser = subparsers.add_parser(
        Command.DELETE_ITEM.value, help="Delete a custom maintenance item"
    )
    delete_item_parser.add_argument("id", type=str)

    miles_parser = subparsers.add_parser(Command.UPDATE_MILES.value, help="Update current mileage")
    miles_parser.add_argument("mileage", type=int, help="Current mileage")

    export_parser = subparsers.add_parser(Command.EXPORT.value, help="Write a JSON backup")
    export_parser.add_argument(
        "-o", "--output", type=str, help="Output file ('-' for stdout, default: dated backup name)"
    )

    import_parser = subparsers.add_parser(
        Command.IMPORT.value, help="Replace all data from a JSON backup"
    )
    import_parser.add_argument("file", type=Path, help="Backup file to import")
    import_parser.add_argument("--yes", action="store_true", help="Skip the confirmation prompt")

    return parser


def open_tracker(config) -> Tracker:
    """Wire a tracker to the configured data files."""
    return Tracker(RecordStore(config.db_path), LegacyFlatStore(config.legacy_path))


async def run(args) -> int:
    config = load_config(args.config)
    if args.data_dir:
        config = replace(config, data_dir=args.data_dir)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else config.log_level,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.command == Command.IMPORT.value and not args.file.exists():
        print(f"Error: File not found: {args.file}")
        return 1

    tracker = open_tracker(config)
    started = await tracker.start()
    if not started:
        print(f"Warning: {started.message}")
    try:
        return await dispatch(Command(args.command), tracker, args)
    finally:
        await tracker.close()


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main() or 0)
